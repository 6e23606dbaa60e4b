from __future__ import annotations

from typing import List, Union

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Response, status

from auth import (
    AdminPasswordNotSetError,
    clear_owner_cookie,
    get_acting_as,
    password_matches,
    set_owner_cookie,
)
from importer import BookingImporter
from models import (
    ActingAs,
    AvailabilityOut,
    BookingOut,
    CreateBookingIn,
    CreateRateIn,
    ImportIn,
    ImportResultOut,
    LoginIn,
    QuoteOut,
    RateOut,
    StayCheckOut,
    UpdateBookingIn,
)
from repository import StoreUnavailableError
from services import (
    BookingError,
    BookingNotFoundError,
    BookingService,
    BookingValidationError,
    NotOwnerError,
    OverlapConflictError,
    RateNotFoundError,
    RateService,
)

OVERLAP_DETAIL = "Overlap conflict: dates overlap a confirmed booking."


def to_http_error(exc: Union[BookingError, StoreUnavailableError]) -> HTTPException:
    if isinstance(exc, OverlapConflictError):
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(exc) or OVERLAP_DETAIL,
        )
    if isinstance(exc, BookingValidationError):
        return HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            detail=f"Validation error: {exc}",
        )
    if isinstance(exc, NotOwnerError):
        return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    if isinstance(exc, BookingNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found.")
    if isinstance(exc, RateNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Rate not found.")
    if isinstance(exc, StoreUnavailableError):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Booking store unavailable.",
        )
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def create_router(
    bookings: BookingService, rates: RateService, importer: BookingImporter
) -> APIRouter:
    router = APIRouter()

    # -----------------------------
    # Owner login (shared secret)
    # -----------------------------
    @router.post("/login")
    def login(payload: LoginIn, response: Response) -> dict:
        try:
            matches = password_matches(payload.password)
        except AdminPasswordNotSetError:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Server missing ADMIN_PASSWORD",
            )
        if not matches:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Incorrect password",
            )
        set_owner_cookie(response)
        return {"ok": True, "next": payload.next}

    @router.post("/logout")
    def logout(response: Response) -> dict:
        clear_owner_cookie(response)
        return {"ok": True}

    # -----------------------------
    # Bookings
    # -----------------------------
    @router.get("/bookings", response_model=List[BookingOut])
    def list_bookings() -> List[BookingOut]:
        try:
            return bookings.list_bookings()
        except StoreUnavailableError as exc:
            raise to_http_error(exc)

    @router.post("/bookings", response_model=BookingOut, status_code=status.HTTP_201_CREATED)
    def create_booking(
        payload: CreateBookingIn, acting_as: ActingAs = Depends(get_acting_as)
    ) -> BookingOut:
        try:
            return bookings.create_booking(payload, acting_as)
        except (BookingError, StoreUnavailableError) as exc:
            raise to_http_error(exc)

    @router.patch("/bookings/{booking_id}", response_model=BookingOut)
    def update_booking(
        payload: UpdateBookingIn,
        booking_id: str = Path(..., min_length=1),
        acting_as: ActingAs = Depends(get_acting_as),
    ) -> BookingOut:
        try:
            return bookings.update_booking(booking_id, payload, acting_as)
        except (BookingError, StoreUnavailableError) as exc:
            raise to_http_error(exc)

    @router.post("/bookings/{booking_id}/approve", response_model=BookingOut)
    def approve_booking(
        booking_id: str = Path(..., min_length=1),
        acting_as: ActingAs = Depends(get_acting_as),
    ) -> BookingOut:
        try:
            return bookings.approve_booking(booking_id, acting_as)
        except (BookingError, StoreUnavailableError) as exc:
            raise to_http_error(exc)

    @router.post("/bookings/{booking_id}/decline", response_model=BookingOut)
    def decline_booking(
        booking_id: str = Path(..., min_length=1),
        acting_as: ActingAs = Depends(get_acting_as),
    ) -> BookingOut:
        try:
            return bookings.decline_booking(booking_id, acting_as)
        except (BookingError, StoreUnavailableError) as exc:
            raise to_http_error(exc)

    @router.delete("/bookings/{booking_id}", status_code=status.HTTP_204_NO_CONTENT)
    def delete_booking(
        booking_id: str = Path(..., min_length=1),
        acting_as: ActingAs = Depends(get_acting_as),
    ) -> None:
        try:
            bookings.delete_booking(booking_id, acting_as)
            return None
        except (BookingError, StoreUnavailableError) as exc:
            raise to_http_error(exc)

    # -----------------------------
    # Public availability
    # -----------------------------
    @router.get("/availability", response_model=AvailabilityOut)
    def availability() -> AvailabilityOut:
        try:
            return bookings.occupancy()
        except StoreUnavailableError as exc:
            raise to_http_error(exc)

    @router.get("/availability/check", response_model=StayCheckOut)
    def check_stay(
        start_date: str = Query(..., min_length=1),
        end_date: str = Query(..., min_length=1),
    ) -> StayCheckOut:
        try:
            return bookings.check_stay_request(start_date, end_date)
        except BookingError as exc:
            raise to_http_error(exc)

    # -----------------------------
    # Rates
    # -----------------------------
    @router.get("/rates", response_model=List[RateOut])
    def list_rates() -> List[RateOut]:
        try:
            return rates.list_rates()
        except StoreUnavailableError as exc:
            raise to_http_error(exc)

    @router.post("/rates", response_model=RateOut, status_code=status.HTTP_201_CREATED)
    def create_rate(
        payload: CreateRateIn, acting_as: ActingAs = Depends(get_acting_as)
    ) -> RateOut:
        try:
            return rates.create_rate(payload, acting_as)
        except (BookingError, StoreUnavailableError) as exc:
            raise to_http_error(exc)

    @router.delete("/rates/{rate_id}", status_code=status.HTTP_204_NO_CONTENT)
    def delete_rate(
        rate_id: str = Path(..., min_length=1),
        acting_as: ActingAs = Depends(get_acting_as),
    ) -> None:
        try:
            rates.delete_rate(rate_id, acting_as)
            return None
        except (BookingError, StoreUnavailableError) as exc:
            raise to_http_error(exc)

    @router.get("/rates/quote", response_model=QuoteOut)
    def quote(
        start_date: str = Query(..., min_length=1),
        end_date: str = Query(..., min_length=1),
    ) -> QuoteOut:
        try:
            return rates.quote(start_date, end_date)
        except (BookingError, StoreUnavailableError) as exc:
            raise to_http_error(exc)

    # -----------------------------
    # Bulk import
    # -----------------------------
    @router.post("/import", response_model=ImportResultOut)
    def import_bookings(
        payload: ImportIn, acting_as: ActingAs = Depends(get_acting_as)
    ) -> ImportResultOut:
        try:
            result = importer.import_rows(payload.rows, payload.mode, acting_as)
        except (BookingError, StoreUnavailableError) as exc:
            raise to_http_error(exc)
        return ImportResultOut(
            mode=result.mode,
            imported=result.imported,
            skipped=result.skipped,
            errors=result.errors,
        )

    return router
