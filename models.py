from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


# -----------------------------
# Shared date helpers
# -----------------------------
def parse_iso_date(value: str) -> date:
    """
    Parse a zero-padded YYYY-MM-DD string into a calendar date.
    Calendar dates only: no time of day, no timezone.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValueError("date must be a non-empty string")

    s = value.strip()
    if not _ISO_DATE.match(s):
        raise ValueError("date must be formatted as YYYY-MM-DD")
    return date.fromisoformat(s)


@dataclass(frozen=True)
class Interval:
    """Half-open stay interval: start night included, checkout day excluded."""

    start: date
    end: date

    @property
    def nights(self) -> int:
        return days_between(self.start, self.end)

    def contains(self, day: date) -> bool:
        return self.start <= day < self.end


def days_between(a: date, b: date) -> int:
    # whole nights from a to b; negative when b is before a
    return (b - a).days


def each_day(interval: Interval) -> Iterator[date]:
    """Yield every night of the interval in ascending order."""
    day = interval.start
    while day < interval.end:
        yield day
        day += timedelta(days=1)


def intervals_overlap(a: Interval, b: Interval) -> bool:
    """
    Half-open interval overlap: [start, end)
    Overlap iff a.start < b.end AND b.start < a.end.
    Same-day checkout / check-in is allowed (a.end == b.start is NOT overlap).
    """
    return a.start < b.end and b.start < a.end


def iso(d: date) -> str:
    return d.isoformat()


# -----------------------------
# Closed vocabularies
# -----------------------------
class BookingStatus(str, Enum):
    PROVISIONAL = "provisional"
    CONFIRMED = "confirmed"
    DECLINED = "declined"


class RateType(str, Enum):
    NIGHTLY = "nightly"
    TOTAL = "total"


class ImportMode(str, Enum):
    SKIP = "skip"
    STRICT = "strict"


class ActingAs(str, Enum):
    OWNER = "owner"
    GUEST = "guest"


# -----------------------------
# API models (transport layer)
# -----------------------------
class GuestDetails(BaseModel):
    guest_name: Optional[str] = None
    guest_email: Optional[str] = None
    phone: Optional[str] = None
    guests_count: Optional[int] = Field(None, ge=0)
    children_count: Optional[int] = Field(None, ge=0)
    dogs_count: Optional[int] = Field(None, ge=0)
    vehicle_reg: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0)
    special_requests: Optional[str] = None
    notes: Optional[str] = None


GUEST_FIELDS = tuple(GuestDetails.model_fields)


class CreateBookingIn(GuestDetails):
    start_date: str
    end_date: str
    status: Optional[BookingStatus] = None

    @field_validator("start_date", "end_date")
    @classmethod
    def must_be_iso_date(cls, v: str) -> str:
        # Format only; ordering of start/end is a service rule.
        parse_iso_date(v)
        return v


class UpdateBookingIn(GuestDetails):
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    status: Optional[BookingStatus] = None

    @field_validator("start_date", "end_date")
    @classmethod
    def must_be_iso_date(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            parse_iso_date(v)
        return v


class BookingOut(GuestDetails):
    booking_id: str
    start_date: str
    end_date: str
    nights: int
    status: BookingStatus
    created_at: datetime
    decided_at: Optional[datetime] = None


class AvailabilityOut(BaseModel):
    confirmed: List[str]
    provisional: List[str]


class StayCheckOut(BaseModel):
    start_date: str
    end_date: str
    nights: int
    allowed: bool
    reason: Optional[str] = None


class CreateRateIn(BaseModel):
    start_date: str
    end_date: str
    price: Decimal = Field(..., gt=0)
    rate_type: RateType = RateType.TOTAL
    note: Optional[str] = None

    @field_validator("start_date", "end_date")
    @classmethod
    def must_be_iso_date(cls, v: str) -> str:
        parse_iso_date(v)
        return v


class RateOut(BaseModel):
    rate_id: str
    start_date: str
    end_date: str
    price: Decimal
    rate_type: RateType
    note: Optional[str] = None


class QuoteOut(BaseModel):
    start_date: str
    end_date: str
    nights: int
    priced: bool
    total: Optional[Decimal] = None
    method: Optional[RateType] = None
    message: Optional[str] = None


class ImportRowIn(BaseModel):
    """One raw row of a bulk import. Values are cleaned by the importer."""

    model_config = ConfigDict(extra="ignore")

    start_date: Any = None
    end_date: Any = None
    status: Any = None
    guest_name: Any = None
    guest_email: Any = None
    phone: Any = None
    guests_count: Any = None
    children_count: Any = None
    dogs_count: Any = None
    vehicle_reg: Any = None
    price: Any = None
    special_requests: Any = None


class ImportIn(BaseModel):
    rows: List[ImportRowIn] = Field(default_factory=list)
    mode: ImportMode = ImportMode.SKIP


class ImportResultOut(BaseModel):
    ok: bool = True
    mode: ImportMode
    imported: int
    skipped: int
    errors: List[str]


class LoginIn(BaseModel):
    password: str
    next: str = "/"

    @model_validator(mode="after")
    def local_redirect_only(self) -> "LoginIn":
        if not self.next.startswith("/") or self.next.startswith("//"):
            self.next = "/"
        return self


# -----------------------------
# Domain model
# -----------------------------
@dataclass(frozen=True)
class Booking:
    booking_id: str
    interval: Interval
    status: BookingStatus
    created_at: datetime
    decided_at: Optional[datetime] = None
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RateRule:
    rate_id: str
    interval: Interval
    price: Decimal
    rate_type: RateType
    note: Optional[str] = None
