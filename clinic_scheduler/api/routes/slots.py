from datetime import date

from fastapi import APIRouter, Depends, Query

from clinic_scheduler.api.deps import get_event_store, get_holiday_oracle
from clinic_scheduler.api.schemas.appointment import (
    AvailableSlotsResponse,
    SoonestSlotRequest,
    SoonestSlotResponse,
    slot_info,
    soonest_slot_info,
)
from clinic_scheduler.core.config import settings
from clinic_scheduler.services.appointment_service import (
    find_closest_slot,
    get_available_slots,
    resolve_type_or_raise,
)
from clinic_scheduler.services.event_store import EventStore
from clinic_scheduler.services.holiday_service import HolidayOracle

router = APIRouter(prefix="/slots", tags=["slots"])


@router.get("/available", response_model=AvailableSlotsResponse)
async def available_slots(
    date_param: date = Query(..., alias="date"),
    appointment_type: str = Query(...),
    time_preference: str | None = Query(None),
    store: EventStore = Depends(get_event_store),
    oracle: HolidayOracle = Depends(get_holiday_oracle),
) -> AvailableSlotsResponse:
    """Free start times for one type on one date, optionally narrowed by a spoken time preference."""
    type_config = resolve_type_or_raise(appointment_type)
    slots = await get_available_slots(store, oracle, date_param, type_config.key, time_preference)
    return AvailableSlotsResponse(
        date=date_param.isoformat(),
        appointment_type=type_config.name,
        total_slots=len(slots),
        slots=[slot_info(s) for s in slots],
    )


@router.post("/soonest", response_model=SoonestSlotResponse)
async def soonest_slot(
    body: SoonestSlotRequest,
    store: EventStore = Depends(get_event_store),
    oracle: HolidayOracle = Depends(get_holiday_oracle),
) -> SoonestSlotResponse:
    type_config = resolve_type_or_raise(body.appointment_type)
    days = body.days_to_search or settings.soonest_days_to_search
    slot = await find_closest_slot(store, oracle, type_config.key, body.preferred_date, days)
    if slot is None:
        return SoonestSlotResponse(found=False, message=f"No free slots in the next {days} days")
    return SoonestSlotResponse(found=True, closest_slot=soonest_slot_info(slot, type_config))
