from models import Interval, parse_iso_date
from rules import REASON_DISALLOWED_PATTERN, REASON_MAXIMUM_STAY, REASON_MINIMUM_STAY, check_stay


def iv(start: str, end: str) -> Interval:
    return Interval(parse_iso_date(start), parse_iso_date(end))


def test_friday_to_monday_allowed():
    decision = check_stay(iv("2024-07-05", "2024-07-08"))
    assert decision.ok is True
    assert decision.reason is None


def test_monday_to_friday_allowed():
    assert check_stay(iv("2024-07-08", "2024-07-12")).ok is True


def test_saturday_to_saturday_allowed():
    assert check_stay(iv("2024-07-06", "2024-07-13")).ok is True
    assert check_stay(iv("2024-07-06", "2024-07-20")).ok is True


def test_two_nights_rejected_as_too_short():
    decision = check_stay(iv("2024-07-05", "2024-07-07"))
    assert decision.ok is False
    assert decision.reason == REASON_MINIMUM_STAY


def test_monday_to_thursday_rejected_as_wrong_pattern():
    decision = check_stay(iv("2024-07-08", "2024-07-11"))
    assert decision.ok is False
    assert decision.reason == REASON_DISALLOWED_PATTERN


def test_long_stay_with_other_weekdays_rejected():
    decision = check_stay(iv("2024-07-02", "2024-07-16"))
    assert decision.reason == REASON_DISALLOWED_PATTERN


def test_minimum_is_configurable():
    decision = check_stay(iv("2024-07-05", "2024-07-08"), min_nights=4)
    assert decision.reason == REASON_MINIMUM_STAY


def test_owner_bypasses_pattern_and_minimum():
    assert check_stay(iv("2024-07-09", "2024-07-10"), enforce_pattern=False).ok is True


def test_stay_longer_than_maximum_rejected():
    decision = check_stay(iv("2024-07-06", "2024-08-31"), max_nights=28)
    assert decision.ok is False
    assert decision.reason == REASON_MAXIMUM_STAY


def test_stay_at_maximum_allowed():
    assert check_stay(iv("2024-07-06", "2024-08-03"), max_nights=28).ok is True


def test_owner_bypasses_maximum():
    assert check_stay(iv("2024-07-06", "2024-08-31"), enforce_pattern=False, max_nights=28).ok is True
