"""Voice-agent webhook: one POST endpoint dispatching on `action`.

Scheduling failures are answered with HTTP 200 and `success: false` so the
agent can read the reason back to the caller.
"""

import logging
from datetime import date
from typing import Any, Awaitable, Callable

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from pydantic import BaseModel, ValidationError

from clinic_scheduler.api.deps import (
    get_event_store,
    get_holiday_oracle,
    get_sms_gateway,
    verify_webhook_secret,
)
from clinic_scheduler.api.routes.appointments import queue_sms
from clinic_scheduler.api.schemas.appointment import (
    BookAppointmentRequest,
    CancelAppointmentRequest,
    RescheduleAppointmentRequest,
    SoonestSlotRequest,
    WebhookRequest,
    alternatives_payload,
    appointment_public,
    appointment_time,
    slot_info,
    soonest_slot_info,
)
from clinic_scheduler.core.config import settings
from clinic_scheduler.core.errors import BookingRejected, SchedulingError
from clinic_scheduler.services.appointment_service import (
    book_appointment,
    cancel_appointment,
    find_closest_slot,
    get_available_slots,
    reschedule_appointment,
    resolve_type_or_raise,
)
from clinic_scheduler.services.event_store import EventStore
from clinic_scheduler.services.holiday_service import HolidayOracle
from clinic_scheduler.services.sms_service import (
    SmsGateway,
    SmsNotification,
    cancellation_notification,
    confirmation_notification,
    reschedule_notification,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/booking", tags=["webhook"])

# Slots read out per answer; a voice agent cannot list fifty times
MAX_SLOTS_SPOKEN = 10

HandlerResult = tuple[dict[str, Any], SmsNotification | None]


class AvailableSlotsParams(BaseModel):
    date: date
    appointment_type: str
    time_preference: str | None = None


async def handle_get_available_slots(
    store: EventStore, oracle: HolidayOracle, params: dict[str, Any]
) -> HandlerResult:
    query = AvailableSlotsParams.model_validate(params)
    type_config = resolve_type_or_raise(query.appointment_type)
    slots = await get_available_slots(store, oracle, query.date, type_config.key, query.time_preference)
    return {
        "success": True,
        "date": query.date.isoformat(),
        "appointment_type": type_config.name,
        "total_slots": len(slots),
        "slots": [slot_info(s).model_dump(mode="json") for s in slots[:MAX_SLOTS_SPOKEN]],
        "price": type_config.price_display,
        "insurance_covered": type_config.insurance,
        "requirements": type_config.requirements,
    }, None


async def handle_find_closest_slot(
    store: EventStore, oracle: HolidayOracle, params: dict[str, Any]
) -> HandlerResult:
    query = SoonestSlotRequest.model_validate(params)
    type_config = resolve_type_or_raise(query.appointment_type)
    days = query.days_to_search or settings.soonest_days_to_search
    slot = await find_closest_slot(store, oracle, type_config.key, query.preferred_date, days)
    if slot is None:
        return {"success": True, "found": False, "message": f"No free slots in the next {days} days"}, None
    return {
        "success": True,
        "found": True,
        "closest_slot": soonest_slot_info(slot, type_config).model_dump(mode="json"),
    }, None


async def handle_book_appointment(
    store: EventStore, oracle: HolidayOracle, params: dict[str, Any]
) -> HandlerResult:
    body = BookAppointmentRequest.model_validate(params)
    result = await book_appointment(store, oracle, body.to_patient(), body.appointment_type, body.date_time)
    return {
        "success": True,
        "message": "Appointment booked",
        "appointment": appointment_public(result).model_dump(mode="json"),
    }, confirmation_notification(result)


async def handle_cancel_appointment(
    store: EventStore, oracle: HolidayOracle, params: dict[str, Any]
) -> HandlerResult:
    body = CancelAppointmentRequest.model_validate(params)
    result = await cancel_appointment(store, body.patient_name, body.phone, body.appointment_date)
    return {
        "success": True,
        "message": "Appointment cancelled",
        "cancelled_appointment": {
            "patient_name": result.patient_name,
            **appointment_time(result.event.start).model_dump(exclude={"order_number"}),
        },
    }, cancellation_notification(result)


async def handle_reschedule_appointment(
    store: EventStore, oracle: HolidayOracle, params: dict[str, Any]
) -> HandlerResult:
    body = RescheduleAppointmentRequest.model_validate(params)
    result = await reschedule_appointment(
        store, oracle, body.patient_name, body.phone, body.old_date, body.new_date_time
    )
    return {
        "success": True,
        "message": "Appointment rescheduled",
        "old_appointment": appointment_time(result.old_event.start).model_dump(exclude={"order_number"}),
        "new_appointment": appointment_time(result.new_event.start, result.order_number).model_dump(),
    }, reschedule_notification(result)


HANDLERS: dict[str, Callable[[EventStore, HolidayOracle, dict[str, Any]], Awaitable[HandlerResult]]] = {
    "get_available_slots": handle_get_available_slots,
    "find_closest_slot": handle_find_closest_slot,
    "book_appointment": handle_book_appointment,
    "cancel_appointment": handle_cancel_appointment,
    "reschedule_appointment": handle_reschedule_appointment,
}


def _failure(exc: SchedulingError) -> dict[str, Any]:
    body: dict[str, Any] = {"success": False, **exc.to_dict()}
    if isinstance(exc, BookingRejected):
        body["alternatives"] = alternatives_payload(exc.alternatives)
    return body


def _missing_parameters(exc: ValidationError) -> dict[str, Any]:
    fields = sorted({".".join(str(p) for p in err["loc"]) for err in exc.errors()})
    return {"success": False, "kind": "invalid_input", "error": f"Missing or invalid parameters: {', '.join(fields)}"}


@router.post("/webhook", dependencies=[Depends(verify_webhook_secret)])
async def booking_webhook(
    body: WebhookRequest,
    background_tasks: BackgroundTasks,
    store: EventStore = Depends(get_event_store),
    oracle: HolidayOracle = Depends(get_holiday_oracle),
    gateway: SmsGateway = Depends(get_sms_gateway),
) -> dict[str, Any]:
    if not body.action:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "Missing action parameter", "supported_actions": list(HANDLERS)},
        )
    handler = HANDLERS.get(body.action)
    if handler is None:
        return {
            "success": False,
            "error": f"Unsupported action: {body.action}",
            "supported_actions": list(HANDLERS),
        }

    logger.info("Webhook action: %s", body.action)
    try:
        result, notification = await handler(store, oracle, body.parameters)
    except ValidationError as e:
        result, notification = _missing_parameters(e), None
    except SchedulingError as e:
        logger.info("Webhook %s failed (%s): %s", body.action, e.kind.value, e.message)
        result, notification = _failure(e), None

    if notification is not None:
        result["sms_queued"] = queue_sms(background_tasks, gateway, notification)
    logger.info("Webhook %s - %s", body.action, "SUCCESS" if result["success"] else "ERROR")
    return result
