from __future__ import annotations

from bounty_board.models.issues import ScoreFactors

BOUNTY_POINTS = 30
IMPLEMENTATION_POINTS = 25
NOT_PAID_POINTS = 20
LOW_DISCUSSION_POINTS = 25
ASSIGNED_PENALTY = 30
LOW_DISCUSSION_LIMIT = 10


def calculate_score(factors: ScoreFactors) -> int:
    """Additive workability score for a bounty issue, never below 0.

    +30 bounty label or bounty comment
    +25 clear implementation details
    +20 no payout comment yet
    +25 fewer than 10 comments
    -30 someone has claimed it
    """
    score = 0
    if factors.has_bounty_label or factors.has_bounty_comment:
        score += BOUNTY_POINTS
    if factors.has_implementation_details:
        score += IMPLEMENTATION_POINTS
    if not factors.has_payout_comment:
        score += NOT_PAID_POINTS
    if factors.comment_count < LOW_DISCUSSION_LIMIT:
        score += LOW_DISCUSSION_POINTS
    if factors.has_assignment_comment:
        score -= ASSIGNED_PENALTY
    return max(score, 0)


def score_reasons(factors: ScoreFactors) -> list[str]:
    """Human-readable breakdown of :func:`calculate_score`."""
    reasons: list[str] = []
    if factors.has_bounty_label or factors.has_bounty_comment:
        reasons.append(f"+{BOUNTY_POINTS} bounty marker")
    if factors.has_implementation_details:
        reasons.append(f"+{IMPLEMENTATION_POINTS} implementation details")
    if not factors.has_payout_comment:
        reasons.append(f"+{NOT_PAID_POINTS} not paid out")
    if factors.comment_count < LOW_DISCUSSION_LIMIT:
        reasons.append(f"+{LOW_DISCUSSION_POINTS} low discussion (<{LOW_DISCUSSION_LIMIT} comments)")
    if factors.has_assignment_comment:
        reasons.append(f"-{ASSIGNED_PENALTY} already claimed")
    return reasons
