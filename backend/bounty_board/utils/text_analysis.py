from __future__ import annotations

import re

_AMOUNT = r"(\d+(?:,\d{3})*(?:\.\d{2})?)"
# ASCII digits only; other scripts are not amounts.
_FLAGS = re.IGNORECASE | re.ASCII

# Order matters only for readability; every pattern is applied and the max wins.
_BOUNTY_VALUE_PATTERNS = [
    re.compile(rf"\[bounty[:\s]*\$?{_AMOUNT}\]", _FLAGS),
    re.compile(rf"\(bounty[:\s]*\$?{_AMOUNT}\)", _FLAGS),
    re.compile(rf"bounty[:\s]*\$?{_AMOUNT}", _FLAGS),
    re.compile(rf"reward[:\s]*\$?{_AMOUNT}", _FLAGS),
    re.compile(rf"prize[:\s]*\$?{_AMOUNT}", _FLAGS),
    re.compile(rf"\${_AMOUNT}\s*(?:bounty|reward|prize)", _FLAGS),
    re.compile(rf"\${_AMOUNT}", _FLAGS),
    re.compile(rf"{_AMOUNT}\s*usd", _FLAGS),
    re.compile(rf"{_AMOUNT}\$", _FLAGS),
]

_ASSIGNMENT_PATTERNS = [
    # direct assignment
    r"i\s+have\s+assigned\s+this\s+ticket",
    r"this\s+(?:ticket|issue)\s+(?:is|has\s+been)\s+taken",
    r"assigned\s+to\s+@?\w+",
    r"i\s+am\s+assigned\s+to\s+this",
    r"i\s+have\s+been\s+assigned",
    # working on it
    r"is\s+working\s+on\s+this\s+(?:ticket|issue)",
    r"working\s+on\s+this\s+now",
    r"i\s+am\s+working\s+on\s+this",
    r"i'm\s+working\s+on\s+this",
    r"currently\s+working\s+on\s+this",
    r"will\s+work\s+on\s+this",
    r"i'll\s+work\s+on\s+this",
    r"taking\s+this\s+one",
    r"i'll\s+take\s+this",
    r"i\s+will\s+take\s+this",
    # asking to be assigned
    r"can\s+i\s+be\s+assigned",
    r"please\s+assign\s+me",
    r"assign\s+me\s+to\s+this",
    r"i\s+would\s+like\s+to\s+work\s+on\s+this",
    r"i'd\s+like\s+to\s+work\s+on\s+this",
    r"interested\s+in\s+working\s+on\s+this",
    r"can\s+i\s+work\s+on\s+this",
    # github-style
    r"assigned\s+@?\w+",
    r"@\w+\s+assigned",
    r"assignee:\s*@?\w+",
    # progress
    r"(?:started|began)\s+working\s+on\s+this",
    r"in\s+progress",
    r"wip",
    # claims
    r"claiming\s+this\s+(?:issue|ticket)",
    r"i\s+claim\s+this",
    r"claimed\s+by",
]
_ASSIGNMENT = re.compile("|".join(f"(?:{p})" for p in _ASSIGNMENT_PATTERNS), re.IGNORECASE)

_PAYOUT = re.compile(
    r"(paid\s+out|payout\s+(?:sent|completed|done)|"
    r"bounty\s+(?:has\s+been\s+|was\s+)?(?:paid|awarded|claimed)|"
    r"\brewarded\b|payment\s+(?:sent|completed))",
    re.IGNORECASE,
)
_BOUNTY_WORD = re.compile(r"bounty", re.IGNORECASE)
_IMPLEMENTATION_KEYWORDS = ("implementation", "steps to reproduce", "expected behavior")


def extract_bounty_value(text: str | None) -> int:
    """Return the largest currency amount mentioned in ``text``, or 0."""
    if not text:
        return 0

    values: list[int] = []
    for pattern in _BOUNTY_VALUE_PATTERNS:
        for match in pattern.finditer(text):
            try:
                value = float(match.group(1).replace(",", ""))
            except ValueError:
                continue
            if value > 0:
                values.append(int(value))
    return max(values, default=0)


def has_assignment_statement(text: str | None) -> bool:
    """True when ``text`` says someone has claimed or is working on the issue."""
    if not text:
        return False
    return bool(_ASSIGNMENT.search(text))


def has_payout_statement(text: str | None) -> bool:
    if not text:
        return False
    return bool(_PAYOUT.search(text))


def has_bounty_mention(text: str | None) -> bool:
    if not text:
        return False
    return bool(_BOUNTY_WORD.search(text)) or extract_bounty_value(text) > 0


def has_implementation_details(body: str | None) -> bool:
    if not body:
        return False
    if len(body) > 200:
        return True
    lowered = body.lower()
    return any(keyword in lowered for keyword in _IMPLEMENTATION_KEYWORDS)
