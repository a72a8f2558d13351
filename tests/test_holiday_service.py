from datetime import date

from clinic_scheduler.services.holiday_service import PublicHolidayService


class TestPublicHolidayService:
    async def test_slovak_public_holiday(self):
        service = PublicHolidayService(country="SK", work_days=[0, 1, 2, 3, 4], enabled=True)
        # Christmas Day
        assert await service.is_holiday(date(2026, 12, 25))
        assert not await service.is_working_day(date(2026, 12, 25))
        assert await service.is_working_day(date(2026, 12, 28))

    async def test_weekend_is_not_working(self):
        service = PublicHolidayService(country="SK", work_days=[0, 1, 2, 3, 4], enabled=True)
        assert not await service.is_working_day(date(2026, 10, 24))

    async def test_disabled_holidays(self):
        service = PublicHolidayService(country="SK", work_days=[0, 1, 2, 3, 4], enabled=False)
        assert not await service.is_holiday(date(2027, 1, 1))

    def test_upcoming(self):
        service = PublicHolidayService(country="SK", work_days=[0, 1, 2, 3, 4], enabled=True)
        upcoming = service.upcoming_holidays(date(2026, 12, 20), days=10)
        dates = [h["date"] for h in upcoming]
        assert "2026-12-24" in dates
        assert "2026-12-25" in dates
        assert "2026-12-26" in dates
