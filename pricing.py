from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional

from models import Interval, RateRule, RateType, each_day


@dataclass(frozen=True)
class PriceQuote:
    total: Decimal
    method: RateType
    nights: int


def _exact_total(interval: Interval, rules: List[RateRule]) -> Optional[RateRule]:
    for rule in rules:
        if rule.rate_type is RateType.TOTAL and rule.interval == interval:
            return rule
    return None


def _nightly_rule_for(day: date, rules: List[RateRule]) -> Optional[RateRule]:
    # Most specific (shortest) covering rule wins; ties keep iteration order.
    best: Optional[RateRule] = None
    for rule in rules:
        if rule.rate_type is not RateType.NIGHTLY or not rule.interval.contains(day):
            continue
        if best is None or rule.interval.nights < best.interval.nights:
            best = rule
    return best


def price_stay(interval: Interval, rules: Iterable[RateRule]) -> Optional[PriceQuote]:
    """
    Price a stay against the rate rules.

    A Total rule covering exactly the stay takes precedence. Otherwise every
    night must be covered by a Nightly rule and the nightly prices are summed.
    Returns None when any night is unpriced; a partial sum is never returned.
    """
    rules = list(rules)

    total_rule = _exact_total(interval, rules)
    if total_rule is not None:
        return PriceQuote(total=total_rule.price, method=RateType.TOTAL, nights=interval.nights)

    total = Decimal("0")
    nights = 0
    for day in each_day(interval):
        rule = _nightly_rule_for(day, rules)
        if rule is None:
            return None
        total += rule.price
        nights += 1

    if nights == 0:
        return None

    return PriceQuote(total=total, method=RateType.NIGHTLY, nights=nights)
