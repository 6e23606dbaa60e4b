from __future__ import annotations

import logging
from threading import Lock

from fastapi import FastAPI

from api import create_router
from config import settings
from importer import BookingImporter
from repository import InMemoryBookingRepository, InMemoryRateRepository
from services import BookingService, RateService

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title=settings.app_name, version=settings.app_version)

# Wire up dependencies (in-memory store; one writer at a time on bookings)
_repo = InMemoryBookingRepository()
_rates_repo = InMemoryRateRepository()
_write_lock = Lock()

_service = BookingService(
    _repo,
    _write_lock,
    min_stay_nights=settings.min_stay_nights,
    max_stay_nights=settings.max_stay_nights,
)
_rates = RateService(_rates_repo)
_importer = BookingImporter(_repo, _write_lock, chunk_size=settings.import_chunk_size)

app.include_router(create_router(_service, _rates, _importer))


@app.get("/health", tags=["health"])
def health_check() -> dict:
    return {"status": "healthy", "service": settings.app_name}
