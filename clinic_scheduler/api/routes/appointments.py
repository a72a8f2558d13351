import logging

from fastapi import APIRouter, BackgroundTasks, Depends, status

from clinic_scheduler.api.deps import get_event_store, get_holiday_oracle, get_sms_gateway
from clinic_scheduler.api.schemas.appointment import (
    BookAppointmentRequest,
    BookingResponse,
    CancelAppointmentRequest,
    CancellationResponse,
    RescheduleAppointmentRequest,
    RescheduleResponse,
    appointment_public,
    appointment_time,
)
from clinic_scheduler.core.config import settings
from clinic_scheduler.services.appointment_service import (
    book_appointment,
    cancel_appointment,
    reschedule_appointment,
)
from clinic_scheduler.services.event_store import EventStore
from clinic_scheduler.services.holiday_service import HolidayOracle
from clinic_scheduler.services.sms_service import (
    SmsGateway,
    SmsNotification,
    cancellation_notification,
    confirmation_notification,
    dispatch_sms,
    reschedule_notification,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/appointments", tags=["appointments"])


def queue_sms(background_tasks: BackgroundTasks, gateway: SmsGateway, notification: SmsNotification) -> bool:
    """Schedule the SMS after the response is sent; returns whether anything was queued."""
    if not settings.sms_enabled:
        return False
    background_tasks.add_task(dispatch_sms, gateway, notification.phone, notification.message)
    return True


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_appointment(
    body: BookAppointmentRequest,
    background_tasks: BackgroundTasks,
    store: EventStore = Depends(get_event_store),
    oracle: HolidayOracle = Depends(get_holiday_oracle),
    gateway: SmsGateway = Depends(get_sms_gateway),
) -> BookingResponse:
    result = await book_appointment(store, oracle, body.to_patient(), body.appointment_type, body.date_time)
    sms_queued = queue_sms(background_tasks, gateway, confirmation_notification(result))
    return BookingResponse(
        message="Appointment booked",
        appointment=appointment_public(result),
        sms_queued=sms_queued,
    )


@router.post("/cancel", response_model=CancellationResponse)
async def cancel_existing_appointment(
    body: CancelAppointmentRequest,
    background_tasks: BackgroundTasks,
    store: EventStore = Depends(get_event_store),
    gateway: SmsGateway = Depends(get_sms_gateway),
) -> CancellationResponse:
    result = await cancel_appointment(store, body.patient_name, body.phone, body.appointment_date)
    sms_queued = queue_sms(background_tasks, gateway, cancellation_notification(result))
    return CancellationResponse(
        message="Appointment cancelled",
        patient_name=result.patient_name,
        cancelled_appointment=appointment_time(result.event.start),
        sms_queued=sms_queued,
    )


@router.post("/reschedule", response_model=RescheduleResponse)
async def reschedule_existing_appointment(
    body: RescheduleAppointmentRequest,
    background_tasks: BackgroundTasks,
    store: EventStore = Depends(get_event_store),
    oracle: HolidayOracle = Depends(get_holiday_oracle),
    gateway: SmsGateway = Depends(get_sms_gateway),
) -> RescheduleResponse:
    result = await reschedule_appointment(
        store, oracle, body.patient_name, body.phone, body.old_date, body.new_date_time
    )
    sms_queued = queue_sms(background_tasks, gateway, reschedule_notification(result))
    return RescheduleResponse(
        message="Appointment rescheduled",
        old_appointment=appointment_time(result.old_event.start),
        new_appointment=appointment_time(result.new_event.start, result.order_number),
        sms_queued=sms_queued,
    )
