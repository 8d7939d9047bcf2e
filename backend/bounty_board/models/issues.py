from __future__ import annotations

from dataclasses import asdict, dataclass, field


@dataclass(frozen=True)
class ScoreFactors:
    has_bounty_label: bool = False
    has_bounty_comment: bool = False
    has_implementation_details: bool = False
    has_payout_comment: bool = False
    has_assignment_comment: bool = False
    comment_count: int = 0


@dataclass
class RankedIssue:
    """A fetched issue plus the annotations computed while ranking it."""

    id: int
    number: int
    title: str
    html_url: str
    repository_url: str
    body: str = ""
    state: str = "open"
    comments: int = 0
    labels: list[str] = field(default_factory=list)
    created_at: str | None = None
    updated_at: str | None = None
    comments_url: str = ""
    user_login: str = ""

    score: int = 0
    repository: str = "unknown/repository"
    has_bounty_label: bool = False
    has_bounty_comment: bool = False
    has_payout_comment: bool = False
    has_assignment_comment: bool = False
    comment_count: int = 0
    has_implementation_details: bool = False
    bounty_value: int = 0
    language: str = "Unknown"

    def score_factors(self) -> ScoreFactors:
        return ScoreFactors(
            has_bounty_label=self.has_bounty_label,
            has_bounty_comment=self.has_bounty_comment,
            has_implementation_details=self.has_implementation_details,
            has_payout_comment=self.has_payout_comment,
            has_assignment_comment=self.has_assignment_comment,
            comment_count=self.comment_count,
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class SyncReport:
    received: int = 0
    qualifying: int = 0
    skipped: int = 0
    inserted: int = 0
    updated: int = 0
    errors: int = 0
    pruned: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class RefreshReport:
    status: str  # "completed" | "empty" | "failed" | "timeout" | "skipped"
    trigger: str = "manual"
    started_at: str | None = None
    finished_at: str | None = None
    duration_ms: int = 0
    fetched: int = 0
    ranked: int = 0
    sync: SyncReport | None = None
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status in ("completed", "empty")

    def to_dict(self) -> dict:
        return asdict(self)
