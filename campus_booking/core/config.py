"""Application settings, loaded from the environment and an optional .env file."""

from __future__ import annotations

import logging

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    PROJECT_NAME: str = "Campus Resource Booking"
    LOG_LEVEL: str = "INFO"

    # IANA zone used to interpret wall-clock form input; unset means the
    # process's local zone.
    LOCAL_TIMEZONE: str | None = None
    CANCELLATION_WINDOW_HOURS: float = Field(default=2, gt=0)

    BOOKING_STORE: str = "memory"  # "memory" or "firestore"
    FIRESTORE_PROJECT_ID: str | None = None
    FIRESTORE_BOOKINGS_COLLECTION: str = "bookings"
    SEED_SAMPLE_DATA: bool = True

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
