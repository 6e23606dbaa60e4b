from __future__ import annotations

import logging
from datetime import datetime, timezone
from threading import Lock
from typing import Dict, FrozenSet, List, Optional
from uuid import uuid4

from models import (
    GUEST_FIELDS,
    ActingAs,
    AvailabilityOut,
    Booking,
    BookingOut,
    BookingStatus,
    CreateBookingIn,
    CreateRateIn,
    Interval,
    QuoteOut,
    RateOut,
    RateRule,
    StayCheckOut,
    UpdateBookingIn,
    each_day,
    intervals_overlap,
    iso,
    parse_iso_date,
)
from pricing import price_stay
from repository import InMemoryBookingRepository, InMemoryRateRepository
from rules import check_stay

logger = logging.getLogger(__name__)


class BookingError(Exception):
    """Base class for domain/service errors."""


class BookingValidationError(BookingError):
    """Caller-correctable input problem."""


class InvalidDatesError(BookingValidationError):
    pass


class StayNotAllowedError(BookingValidationError):
    pass


class InvalidTransitionError(BookingValidationError):
    pass


class OverlapConflictError(BookingError):
    pass


class NotOwnerError(BookingError):
    pass


class BookingNotFoundError(BookingError):
    pass


class RateNotFoundError(BookingError):
    pass


_TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    BookingStatus.PROVISIONAL: frozenset(
        {BookingStatus.PROVISIONAL, BookingStatus.CONFIRMED, BookingStatus.DECLINED}
    ),
    BookingStatus.CONFIRMED: frozenset(
        {BookingStatus.CONFIRMED, BookingStatus.PROVISIONAL, BookingStatus.DECLINED}
    ),
    # terminal
    BookingStatus.DECLINED: frozenset({BookingStatus.DECLINED}),
}


def ensure_transition(current: BookingStatus, target: BookingStatus) -> None:
    if target not in _TRANSITIONS[current]:
        raise InvalidTransitionError(
            f"Cannot move a {current.value} booking to {target.value}."
        )


def parse_interval(start_date: str, end_date: str) -> Interval:
    try:
        start = parse_iso_date(start_date)
        end = parse_iso_date(end_date)
    except ValueError as exc:
        raise InvalidDatesError(str(exc)) from exc

    # Rule: end must be after start (at least one night)
    if not (start < end):
        raise InvalidDatesError("end_date must be after start_date.")
    return Interval(start, end)


def require_owner(acting_as: ActingAs) -> None:
    if acting_as is not ActingAs.OWNER:
        raise NotOwnerError("Only the owner can do this.")


def find_conflict(
    interval: Interval, bookings: List[Booking], exclude_id: Optional[str] = None
) -> Optional[Booking]:
    """First confirmed booking (other than exclude_id) sharing a night with interval."""
    for b in bookings:
        if b.booking_id == exclude_id or b.status is not BookingStatus.CONFIRMED:
            continue
        if intervals_overlap(interval, b.interval):
            return b
    return None


def to_booking_out(booking: Booking) -> BookingOut:
    return BookingOut(
        booking_id=booking.booking_id,
        start_date=iso(booking.interval.start),
        end_date=iso(booking.interval.end),
        nights=booking.interval.nights,
        status=booking.status,
        created_at=booking.created_at,
        decided_at=booking.decided_at,
        **booking.details,
    )


def _now() -> datetime:
    return datetime.now(timezone.utc)


class BookingService:
    def __init__(
        self,
        repo: InMemoryBookingRepository,
        write_lock: Optional[Lock] = None,
        min_stay_nights: int = 3,
        max_stay_nights: Optional[int] = None,
    ) -> None:
        self._repo = repo
        # Serializes every read-check-write against the confirmed set.
        self._write_lock = write_lock or Lock()
        self._min_stay_nights = min_stay_nights
        self._max_stay_nights = max_stay_nights

    def _get(self, booking_id: str) -> Booking:
        booking = self._repo.get(booking_id)
        if booking is None:
            raise BookingNotFoundError()
        return booking

    def _ensure_no_conflict(self, interval: Interval, exclude_id: Optional[str] = None) -> None:
        confirmed = self._repo.list_by_status(BookingStatus.CONFIRMED)
        conflict = find_conflict(interval, confirmed, exclude_id=exclude_id)
        if conflict is not None:
            logger.warning(
                "Rejected %s -> %s: overlaps confirmed booking %s",
                iso(interval.start),
                iso(interval.end),
                conflict.booking_id,
            )
            raise OverlapConflictError()

    def create_booking(self, payload: CreateBookingIn, acting_as: ActingAs) -> BookingOut:
        interval = parse_interval(payload.start_date, payload.end_date)
        status = payload.status or BookingStatus.PROVISIONAL

        if status is BookingStatus.DECLINED:
            raise InvalidTransitionError("A booking cannot be created as declined.")
        if status is BookingStatus.CONFIRMED:
            require_owner(acting_as)

        # Rule: public requests must follow the stay length and weekday patterns
        decision = check_stay(
            interval,
            enforce_pattern=acting_as is ActingAs.GUEST,
            min_nights=self._min_stay_nights,
            max_nights=self._max_stay_nights,
        )
        if not decision.ok:
            raise StayNotAllowedError(decision.reason)

        now = _now()
        booking = Booking(
            booking_id=f"bkg_{uuid4().hex}",
            interval=interval,
            status=status,
            created_at=now,
            decided_at=now if status is BookingStatus.CONFIRMED else None,
            details=payload.model_dump(include=set(GUEST_FIELDS), exclude_none=True),
        )

        with self._write_lock:
            if status is BookingStatus.CONFIRMED:
                self._ensure_no_conflict(interval)
            self._repo.insert(booking)

        logger.info(
            "Created %s booking %s (%s -> %s)",
            status.value,
            booking.booking_id,
            iso(interval.start),
            iso(interval.end),
        )
        return to_booking_out(booking)

    def approve_booking(self, booking_id: str, acting_as: ActingAs) -> BookingOut:
        require_owner(acting_as)

        with self._write_lock:
            booking = self._get(booking_id)
            if booking.status is BookingStatus.CONFIRMED:
                return to_booking_out(booking)
            ensure_transition(booking.status, BookingStatus.CONFIRMED)
            self._ensure_no_conflict(booking.interval, exclude_id=booking_id)
            updated = self._repo.update(
                booking_id, status=BookingStatus.CONFIRMED, decided_at=_now()
            )

        if updated is None:
            raise BookingNotFoundError()
        logger.info("Approved booking %s", booking_id)
        return to_booking_out(updated)

    def decline_booking(self, booking_id: str, acting_as: ActingAs) -> BookingOut:
        require_owner(acting_as)

        with self._write_lock:
            booking = self._get(booking_id)
            if booking.status is BookingStatus.DECLINED:
                return to_booking_out(booking)
            updated = self._repo.update(
                booking_id, status=BookingStatus.DECLINED, decided_at=_now()
            )

        if updated is None:
            raise BookingNotFoundError()
        logger.info("Declined booking %s", booking_id)
        return to_booking_out(updated)

    def update_booking(
        self, booking_id: str, payload: UpdateBookingIn, acting_as: ActingAs
    ) -> BookingOut:
        require_owner(acting_as)
        changes = payload.model_dump(exclude_unset=True)
        start_date = changes.pop("start_date", None)
        end_date = changes.pop("end_date", None)
        status = changes.pop("status", None)

        with self._write_lock:
            booking = self._get(booking_id)
            interval = parse_interval(
                start_date or iso(booking.interval.start),
                end_date or iso(booking.interval.end),
            )
            status = status or booking.status
            ensure_transition(booking.status, status)

            # Rule: a booking that is (or stays) confirmed must not overlap another
            if status is BookingStatus.CONFIRMED:
                self._ensure_no_conflict(interval, exclude_id=booking_id)

            updated = self._repo.update(
                booking_id,
                interval=interval,
                status=status,
                decided_at=_now() if status is not booking.status else booking.decided_at,
                details={**booking.details, **changes},
            )

        if updated is None:
            raise BookingNotFoundError()
        logger.info("Updated booking %s", booking_id)
        return to_booking_out(updated)

    def delete_booking(self, booking_id: str, acting_as: ActingAs) -> None:
        require_owner(acting_as)
        deleted = self._repo.delete(booking_id)
        if not deleted:
            raise BookingNotFoundError()
        logger.info("Deleted booking %s", booking_id)

    def list_bookings(self) -> List[BookingOut]:
        items = self._repo.list_by_status(BookingStatus.PROVISIONAL, BookingStatus.CONFIRMED)
        return [to_booking_out(b) for b in items]

    def occupancy(self) -> AvailabilityOut:
        """Calendar days taken by confirmed stays and by pending requests."""
        confirmed = set()
        provisional = set()
        for b in self._repo.list_by_status(BookingStatus.PROVISIONAL, BookingStatus.CONFIRMED):
            days = confirmed if b.status is BookingStatus.CONFIRMED else provisional
            days.update(each_day(b.interval))

        return AvailabilityOut(
            confirmed=[iso(d) for d in sorted(confirmed)],
            provisional=[iso(d) for d in sorted(provisional - confirmed)],
        )

    def check_stay_request(self, start_date: str, end_date: str) -> StayCheckOut:
        interval = parse_interval(start_date, end_date)
        decision = check_stay(
            interval,
            min_nights=self._min_stay_nights,
            max_nights=self._max_stay_nights,
        )
        return StayCheckOut(
            start_date=start_date,
            end_date=end_date,
            nights=interval.nights,
            allowed=decision.ok,
            reason=decision.reason,
        )


def to_rate_out(rule: RateRule) -> RateOut:
    return RateOut(
        rate_id=rule.rate_id,
        start_date=iso(rule.interval.start),
        end_date=iso(rule.interval.end),
        price=rule.price,
        rate_type=rule.rate_type,
        note=rule.note,
    )


class RateService:
    def __init__(self, repo: InMemoryRateRepository) -> None:
        self._repo = repo

    def create_rate(self, payload: CreateRateIn, acting_as: ActingAs) -> RateOut:
        require_owner(acting_as)
        rule = RateRule(
            rate_id=f"rate_{uuid4().hex}",
            interval=parse_interval(payload.start_date, payload.end_date),
            price=payload.price,
            rate_type=payload.rate_type,
            note=payload.note,
        )
        self._repo.insert(rule)
        logger.info(
            "Created %s rate %s (%s -> %s) at %s",
            rule.rate_type.value,
            rule.rate_id,
            payload.start_date,
            payload.end_date,
            rule.price,
        )
        return to_rate_out(rule)

    def delete_rate(self, rate_id: str, acting_as: ActingAs) -> None:
        require_owner(acting_as)
        if not self._repo.delete(rate_id):
            raise RateNotFoundError()

    def list_rates(self) -> List[RateOut]:
        return [to_rate_out(r) for r in self._repo.list_all()]

    def quote(self, start_date: str, end_date: str) -> QuoteOut:
        interval = parse_interval(start_date, end_date)
        result = price_stay(interval, self._repo.list_all())
        if result is None:
            return QuoteOut(
                start_date=start_date,
                end_date=end_date,
                nights=interval.nights,
                priced=False,
                message="Price not set for these dates.",
            )
        return QuoteOut(
            start_date=start_date,
            end_date=end_date,
            nights=result.nights,
            priced=True,
            total=result.total,
            method=result.method,
        )
