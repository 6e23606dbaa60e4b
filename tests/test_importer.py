from datetime import datetime, timezone
from decimal import Decimal

import pytest

from importer import BookingImporter, clean_date, clean_str, to_count, to_number
from models import ActingAs, Booking, BookingStatus, ImportMode, ImportRowIn, Interval, parse_iso_date
from repository import InMemoryBookingRepository
from services import BookingValidationError, InvalidDatesError, NotOwnerError, OverlapConflictError


def seed_confirmed(repo, start: str, end: str) -> None:
    repo.insert(
        Booking(
            booking_id=f"seed_{start}",
            interval=Interval(parse_iso_date(start), parse_iso_date(end)),
            status=BookingStatus.CONFIRMED,
            created_at=datetime.now(timezone.utc),
        )
    )


@pytest.fixture
def repo():
    r = InMemoryBookingRepository()
    seed_confirmed(r, "2026-04-10", "2026-04-14")
    return r


def three_rows():
    return [
        ImportRowIn(start_date="2026-04-03", end_date="2026-04-06", guest_name="One"),
        ImportRowIn(start_date="2026-04-12", end_date="2026-04-15", guest_name="Two"),
        ImportRowIn(start_date="2026-04-20", end_date="2026-04-24", guest_name="Three"),
    ]


def test_strict_mode_aborts_without_writing(repo):
    importer = BookingImporter(repo)
    with pytest.raises(OverlapConflictError, match="Row 2"):
        importer.import_rows(three_rows(), ImportMode.STRICT, ActingAs.OWNER)
    assert len(repo.list_by_status()) == 1


def test_skip_mode_imports_the_rest(repo):
    importer = BookingImporter(repo)
    result = importer.import_rows(three_rows(), ImportMode.SKIP, ActingAs.OWNER)
    assert result.imported == 2
    assert result.skipped == 1
    assert len(result.errors) == 1
    assert result.errors[0].startswith("Row 2: overlaps")
    names = sorted(b.details.get("guest_name", "") for b in repo.list_by_status() if b.details)
    assert names == ["One", "Three"]


def test_later_rows_see_earlier_rows(repo):
    importer = BookingImporter(repo)
    rows = [
        ImportRowIn(start_date="2026-05-01", end_date="2026-05-05"),
        ImportRowIn(start_date="2026-05-04", end_date="2026-05-08"),
    ]
    result = importer.import_rows(rows, ImportMode.SKIP, ActingAs.OWNER)
    assert result.imported == 1
    assert result.errors == ["Row 2: overlaps an existing confirmed booking (2026-05-04 -> 2026-05-08)"]


def test_provisional_rows_skip_the_gate(repo):
    importer = BookingImporter(repo)
    rows = [ImportRowIn(start_date="2026-04-10", end_date="2026-04-14", status="Provisional")]
    result = importer.import_rows(rows, ImportMode.STRICT, ActingAs.OWNER)
    assert result.imported == 1
    assert len(repo.list_by_status(BookingStatus.PROVISIONAL)) == 1


def test_bad_dates_are_validation_errors(repo):
    importer = BookingImporter(repo)
    rows = [
        ImportRowIn(start_date="not a date", end_date="2026-06-01"),
        ImportRowIn(start_date="2026-06-05", end_date="2026-06-05"),
    ]
    result = importer.import_rows(rows, ImportMode.SKIP, ActingAs.OWNER)
    assert result.imported == 0
    assert result.skipped == 2
    assert result.errors[0].startswith("Row 1: invalid date(s).")
    assert result.errors[1].startswith("Row 2: end_date must be after start_date")

    with pytest.raises(InvalidDatesError, match="Row 1"):
        importer.import_rows(rows, ImportMode.STRICT, ActingAs.OWNER)


def test_empty_batch_rejected(repo):
    with pytest.raises(BookingValidationError):
        BookingImporter(repo).import_rows([], ImportMode.SKIP, ActingAs.OWNER)


def test_guest_cannot_import(repo):
    with pytest.raises(NotOwnerError):
        BookingImporter(repo).import_rows(three_rows(), ImportMode.SKIP, ActingAs.GUEST)


class CountingRepository(InMemoryBookingRepository):
    def __init__(self):
        super().__init__()
        self.batches = []

    def insert_many(self, bookings):
        bookings = list(bookings)
        self.batches.append(len(bookings))
        return super().insert_many(bookings)


def test_writes_are_chunked():
    repo = CountingRepository()
    rows = [
        ImportRowIn(start_date=f"2026-07-{day:02d}", end_date=f"2026-07-{day + 1:02d}")
        for day in range(1, 8)
    ]
    result = BookingImporter(repo, chunk_size=3).import_rows(rows, ImportMode.SKIP, ActingAs.OWNER)
    assert result.imported == 7
    assert repo.batches == [3, 3, 1]


def test_row_values_are_cleaned(repo):
    rows = [
        ImportRowIn(
            start_date="\u200b2026-08-01 ",
            end_date="2026-08-04",
            guest_name="  Ann\u00a0 Smith ",
            guests_count="4",
            dogs_count="two",
            price="£1,250.00",
        )
    ]
    BookingImporter(repo).import_rows(rows, ImportMode.STRICT, ActingAs.OWNER)
    imported = [b for b in repo.list_by_status() if b.booking_id.startswith("bkg_")][0]
    assert imported.interval.start == parse_iso_date("2026-08-01")
    assert imported.details["guest_name"] == "Ann Smith"
    assert imported.details["guests_count"] == 4
    assert "dogs_count" not in imported.details
    assert imported.details["price"] == Decimal("1250.00")


def test_cleaning_helpers():
    assert clean_str(None) == ""
    assert clean_str("a\u200d b") == "a b"
    assert clean_date("2026/08/01") == ""
    assert clean_date("2026-13-01") == ""
    assert to_number("$99") == Decimal("99")
    assert to_number("abc") is None
    assert to_count("2.5") is None
