import hmac
import logging
from functools import lru_cache

from fastapi import Header, HTTPException, status

from clinic_scheduler.core.config import settings
from clinic_scheduler.core.db import create_engine_for, make_session_maker
from clinic_scheduler.services.event_store import EventStore
from clinic_scheduler.services.google_calendar import GoogleCalendarEventStore
from clinic_scheduler.services.holiday_service import HolidayOracle, PublicHolidayService
from clinic_scheduler.services.sms_service import LoggingSmsGateway, SmsGateway
from clinic_scheduler.services.sql_event_store import SqlEventStore

logger = logging.getLogger(__name__)


@lru_cache
def get_event_store() -> EventStore:
    """The configured system of record, built once per process."""
    if settings.event_store_backend == "database":
        logger.info("Event store: SQL database")
        engine = create_engine_for(settings.database_url)
        return SqlEventStore(make_session_maker(engine))
    logger.info("Event store: Google Calendar %s", settings.calendar_id)
    return GoogleCalendarEventStore(calendar_id=settings.calendar_id)


@lru_cache
def get_holiday_service() -> PublicHolidayService:
    return PublicHolidayService()


def get_holiday_oracle() -> HolidayOracle:
    return get_holiday_service()


@lru_cache
def get_sms_gateway() -> SmsGateway:
    return LoggingSmsGateway()


def verify_webhook_secret(
    x_webhook_secret: str | None = Header(default=None, alias="X-Webhook-Secret"),
) -> None:
    """Shared-secret check for the voice webhook; disabled when no secret is configured."""
    if not settings.webhook_secret:
        return
    if not x_webhook_secret or not hmac.compare_digest(x_webhook_secret, settings.webhook_secret):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing webhook secret",
        )
