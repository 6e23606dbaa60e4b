from __future__ import annotations

from dataclasses import replace
from threading import Lock
from typing import Any, Dict, Iterable, List, Optional

from models import Booking, BookingStatus, RateRule


class StoreUnavailableError(RuntimeError):
    """The backing record store could not be read or written."""


class InMemoryBookingRepository:
    def __init__(self) -> None:
        self._items: Dict[str, Booking] = {}
        self._lock = Lock()

    def get(self, booking_id: str) -> Optional[Booking]:
        with self._lock:
            return self._items.get(booking_id)

    def list_by_status(self, *statuses: BookingStatus) -> List[Booking]:
        """Bookings in any of the given statuses, ordered by start date."""
        with self._lock:
            items = [b for b in self._items.values() if not statuses or b.status in statuses]
        items.sort(key=lambda b: (b.interval.start, b.interval.end))
        return items

    def insert(self, booking: Booking) -> None:
        with self._lock:
            self._items[booking.booking_id] = booking

    def insert_many(self, bookings: Iterable[Booking]) -> int:
        bookings = list(bookings)
        with self._lock:
            for booking in bookings:
                self._items[booking.booking_id] = booking
        return len(bookings)

    def update(self, booking_id: str, **changes: Any) -> Optional[Booking]:
        with self._lock:
            current = self._items.get(booking_id)
            if current is None:
                return None
            updated = replace(current, **changes)
            self._items[booking_id] = updated
            return updated

    def delete(self, booking_id: str) -> bool:
        with self._lock:
            if booking_id not in self._items:
                return False
            del self._items[booking_id]
            return True

    def reset(self) -> None:
        """Clear all bookings. For testing only."""
        with self._lock:
            self._items.clear()


class InMemoryRateRepository:
    def __init__(self) -> None:
        self._items: Dict[str, RateRule] = {}
        self._lock = Lock()

    def list_all(self) -> List[RateRule]:
        """Rate rules ordered by (start, end); equal ranges keep creation order."""
        with self._lock:
            items = list(self._items.values())
        items.sort(key=lambda r: (r.interval.start, r.interval.end))
        return items

    def insert(self, rule: RateRule) -> None:
        with self._lock:
            self._items[rule.rate_id] = rule

    def delete(self, rate_id: str) -> bool:
        with self._lock:
            if rate_id not in self._items:
                return False
            del self._items[rate_id]
            return True

    def reset(self) -> None:
        """Clear all rate rules. For testing only."""
        with self._lock:
            self._items.clear()
