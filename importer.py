from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from threading import Lock
from typing import Any, List, Optional, Sequence
from uuid import uuid4

from models import (
    ActingAs,
    Booking,
    BookingStatus,
    ImportMode,
    ImportRowIn,
    Interval,
    intervals_overlap,
    parse_iso_date,
)
from repository import InMemoryBookingRepository
from services import BookingValidationError, InvalidDatesError, OverlapConflictError, require_owner

logger = logging.getLogger(__name__)

_ZERO_WIDTH = re.compile("[\u200b-\u200d\ufeff]")
_SPACES = re.compile(r"[^\S\r\n]+")
_NOT_DATE_CHARS = re.compile(r"[^\d-]")
_DATE_SHAPE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_MONEY_NOISE = re.compile(r"[,£$]")


def clean_str(value: Any) -> str:
    """Strip the invisible characters mobile browsers like to paste in."""
    if value is None:
        return ""
    s = _ZERO_WIDTH.sub("", str(value))
    s = s.replace("\u00a0", " ")
    return _SPACES.sub(" ", s).strip()


def clean_date(value: Any) -> str:
    """Reduce a value to YYYY-MM-DD, or "" when it does not look like a date."""
    s = _NOT_DATE_CHARS.sub("", clean_str(value))
    if not _DATE_SHAPE.match(s):
        return ""
    try:
        parse_iso_date(s)
    except ValueError:
        return ""
    return s


def to_number(value: Any) -> Optional[Decimal]:
    s = _MONEY_NOISE.sub("", clean_str(value))
    if not s:
        return None
    try:
        n = Decimal(s)
    except InvalidOperation:
        return None
    return n if n.is_finite() else None


def to_count(value: Any) -> Optional[int]:
    n = to_number(value)
    if n is None or n < 0 or n != n.to_integral_value():
        return None
    return int(n)


def to_price(value: Any) -> Optional[Decimal]:
    n = to_number(value)
    return n if n is not None and n >= 0 else None


@dataclass
class ImportResult:
    mode: ImportMode
    imported: int = 0
    skipped: int = 0
    errors: List[str] = field(default_factory=list)


class BookingImporter:
    """
    Reconciles a batch of candidate bookings against the confirmed set.

    Rows are checked in order against a working set seeded from the store and
    extended as confirmed rows are accepted, so later rows see earlier ones.
    STRICT raises on the first bad row and writes nothing; SKIP records the
    problem and writes every row that passed on its own.
    """

    def __init__(
        self,
        repo: InMemoryBookingRepository,
        write_lock: Optional[Lock] = None,
        chunk_size: int = 200,
    ) -> None:
        self._repo = repo
        self._write_lock = write_lock or Lock()
        self._chunk_size = chunk_size

    def import_rows(
        self, rows: Sequence[ImportRowIn], mode: ImportMode, acting_as: ActingAs
    ) -> ImportResult:
        require_owner(acting_as)
        if not rows:
            raise BookingValidationError("No rows provided.")

        result = ImportResult(mode=mode)

        with self._write_lock:
            working_set: List[Interval] = [
                b.interval for b in self._repo.list_by_status(BookingStatus.CONFIRMED)
            ]
            accepted: List[Booking] = []

            for n, row in enumerate(rows, start=1):
                try:
                    booking = self._reconcile_row(n, row, working_set)
                except (InvalidDatesError, OverlapConflictError) as exc:
                    if mode is ImportMode.STRICT:
                        logger.warning("Import aborted: %s", exc)
                        raise
                    result.errors.append(str(exc))
                    result.skipped += 1
                    continue
                accepted.append(booking)

            for i in range(0, len(accepted), self._chunk_size):
                result.imported += self._repo.insert_many(accepted[i : i + self._chunk_size])

        logger.info(
            "Imported %d booking(s), skipped %d (%s mode)",
            result.imported,
            result.skipped,
            mode.value,
        )
        return result

    def _reconcile_row(self, n: int, row: ImportRowIn, working_set: List[Interval]) -> Booking:
        start_date = clean_date(row.start_date)
        end_date = clean_date(row.end_date)
        if not start_date or not end_date:
            raise InvalidDatesError(
                f'Row {n}: invalid date(s). start_date="{clean_str(row.start_date)}" '
                f'end_date="{clean_str(row.end_date)}"'
            )
        if end_date <= start_date:
            raise InvalidDatesError(
                f"Row {n}: end_date must be after start_date ({start_date} -> {end_date})"
            )

        interval = Interval(parse_iso_date(start_date), parse_iso_date(end_date))
        status = (
            BookingStatus.PROVISIONAL
            if clean_str(row.status).lower() == BookingStatus.PROVISIONAL.value
            else BookingStatus.CONFIRMED
        )

        if status is BookingStatus.CONFIRMED:
            if any(intervals_overlap(interval, other) for other in working_set):
                raise OverlapConflictError(
                    f"Row {n}: overlaps an existing confirmed booking ({start_date} -> {end_date})"
                )
            working_set.append(interval)

        details = {
            "guest_name": clean_str(row.guest_name) or None,
            "guest_email": clean_str(row.guest_email) or None,
            "phone": clean_str(row.phone) or None,
            "guests_count": to_count(row.guests_count),
            "children_count": to_count(row.children_count),
            "dogs_count": to_count(row.dogs_count),
            "vehicle_reg": clean_str(row.vehicle_reg) or None,
            "price": to_price(row.price),
            "special_requests": clean_str(row.special_requests) or None,
        }
        now = datetime.now(timezone.utc)
        return Booking(
            booking_id=f"bkg_{uuid4().hex}",
            interval=interval,
            status=status,
            created_at=now,
            decided_at=now if status is BookingStatus.CONFIRMED else None,
            details={k: v for k, v in details.items() if v is not None},
        )
