from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Optional, Tuple

from models import Interval

MONDAY, FRIDAY, SATURDAY = 0, 4, 5

# (check-in weekday, checkout weekday), date.weekday() numbering
ALLOWED_PATTERNS: FrozenSet[Tuple[int, int]] = frozenset(
    {
        (FRIDAY, MONDAY),
        (MONDAY, FRIDAY),
        (SATURDAY, SATURDAY),
    }
)

REASON_MINIMUM_STAY = "minimum stay"
REASON_MAXIMUM_STAY = "maximum stay"
REASON_DISALLOWED_PATTERN = "disallowed pattern"


@dataclass(frozen=True)
class StayDecision:
    ok: bool
    reason: Optional[str] = None


def check_stay(
    interval: Interval,
    enforce_pattern: bool = True,
    min_nights: int = 3,
    max_nights: Optional[int] = None,
) -> StayDecision:
    """
    Decide whether a stay may be requested.

    Public requests must last at least ``min_nights`` (and at most
    ``max_nights`` when given) and start/end on one of the allowed weekday
    pairs. The owner bypasses both rules by passing
    ``enforce_pattern=False``.
    """
    if not enforce_pattern:
        return StayDecision(ok=True)

    if interval.nights < min_nights:
        return StayDecision(ok=False, reason=REASON_MINIMUM_STAY)

    if max_nights is not None and interval.nights > max_nights:
        return StayDecision(ok=False, reason=REASON_MAXIMUM_STAY)

    pattern = (interval.start.weekday(), interval.end.weekday())
    if pattern not in ALLOWED_PATTERNS:
        return StayDecision(ok=False, reason=REASON_DISALLOWED_PATTERN)

    return StayDecision(ok=True)
