from fastapi import APIRouter, Depends, Query

from clinic_scheduler.api.deps import get_holiday_service
from clinic_scheduler.api.schemas.appointment import HolidayInfo, UpcomingHolidaysResponse
from clinic_scheduler.core.clock import now_local
from clinic_scheduler.services.holiday_service import PublicHolidayService

router = APIRouter(prefix="/holidays", tags=["holidays"])


@router.get("/upcoming", response_model=UpcomingHolidaysResponse)
async def upcoming_holidays(
    days: int = Query(30, ge=1, le=366),
    holiday_service: PublicHolidayService = Depends(get_holiday_service),
) -> UpcomingHolidaysResponse:
    found = holiday_service.upcoming_holidays(now_local().date(), days)
    return UpcomingHolidaysResponse(days=days, holidays=[HolidayInfo(**h) for h in found])
