from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

IssueStatusType = Literal["interested", "in_progress", "unwanted"]


class IssueResult(BaseModel):
    id: int
    number: int
    title: str
    html_url: str
    body: str = ""
    state: str = "open"
    comments: int = 0
    labels: list[str] = Field(default_factory=list)
    repository_url: str = ""
    created_at: str = ""
    updated_at: str = ""
    score: float = 0
    repository: str = "unknown"
    has_bounty_label: bool = False
    has_bounty_comment: bool = False
    has_payout_comment: bool = False
    has_assignment_comment: bool = False
    comment_count: int = 0
    has_implementation_details: bool = False
    bounty_value: float = 0
    language: str = "Unknown"
    user_status: IssueStatusType | None = None


class Pagination(BaseModel):
    current_page: int = 1
    has_next: bool = False
    has_prev: bool = False
    per_page: int = 30
    actual_result_count: int = 0
    total_count: int = 0
    total_pages: int = 0


class SearchResponse(BaseModel):
    issues: list[IssueResult] = Field(default_factory=list)
    pagination: Pagination = Field(default_factory=Pagination)


class UpdateStatusRequest(BaseModel):
    github_id: int = Field(gt=0)
    status: str | None = None


class StatusCounts(BaseModel):
    interested: int = 0
    in_progress: int = 0
    unwanted: int = 0


class UpdateSettingsRequest(BaseModel):
    setting_key: str = Field(min_length=1)
    setting_value: Any = None


class ActionResponse(BaseModel):
    success: bool
    message: str | None = None


class SettingsResponse(BaseModel):
    success: bool = True
    settings: dict[str, Any] = Field(default_factory=dict)


class RepositoriesResponse(BaseModel):
    success: bool = True
    repositories: list[str] = Field(default_factory=list)


class RefreshResponse(BaseModel):
    success: bool
    message: str
    report: dict | None = None


class JobStatus(BaseModel):
    name: str = "refresh"
    state: str
    running: bool = False
    last_report: dict | None = None


class FreshnessResponse(BaseModel):
    last_fetch: str | None = None
    hours_ago: float | None = None
