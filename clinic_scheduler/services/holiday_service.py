import logging
from datetime import date, timedelta
from typing import Protocol

import holidays

from clinic_scheduler.core.config import settings

logger = logging.getLogger(__name__)


class HolidayOracle(Protocol):
    async def is_holiday(self, d: date) -> bool: ...

    async def is_working_day(self, d: date) -> bool: ...


class PublicHolidayService:
    """Working-day oracle backed by the `holidays` package for the clinic's country."""

    def __init__(
        self,
        country: str | None = None,
        work_days: list[int] | None = None,
        enabled: bool | None = None,
    ) -> None:
        self.country = country or settings.holidays_country
        self.work_days = work_days if work_days is not None else settings.work_days
        self.enabled = settings.holidays_enabled if enabled is None else enabled
        self._calendars: dict[int, holidays.HolidayBase] = {}

    def _calendar(self, year: int) -> holidays.HolidayBase:
        if year not in self._calendars:
            self._calendars[year] = holidays.country_holidays(self.country, years=year)
        return self._calendars[year]

    def holiday_name(self, d: date) -> str | None:
        if not self.enabled:
            return None
        return self._calendar(d.year).get(d)

    async def is_holiday(self, d: date) -> bool:
        return self.holiday_name(d) is not None

    async def is_working_day(self, d: date) -> bool:
        if d.weekday() not in self.work_days:
            return False
        return not await self.is_holiday(d)

    def upcoming_holidays(self, start: date, days: int = 30) -> list[dict]:
        upcoming = []
        for offset in range(days + 1):
            d = start + timedelta(days=offset)
            name = self.holiday_name(d)
            if name:
                upcoming.append({"date": d.isoformat(), "name": name, "day_name": d.strftime("%A")})
        logger.debug("Found %d holidays in the %d days from %s", len(upcoming), days, start)
        return upcoming
