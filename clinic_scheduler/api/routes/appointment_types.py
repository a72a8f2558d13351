from fastapi import APIRouter

from clinic_scheduler.api.schemas.appointment import AppointmentTypeInfo, RequirementsResponse, type_info
from clinic_scheduler.core.config import get_appointment_types
from clinic_scheduler.services.appointment_service import resolve_type_or_raise

router = APIRouter(prefix="/appointment-types", tags=["appointment-types"])


@router.get("", response_model=list[AppointmentTypeInfo])
async def list_appointment_types() -> list[AppointmentTypeInfo]:
    return [type_info(t) for t in get_appointment_types().values()]


@router.get("/{appointment_type}/requirements", response_model=RequirementsResponse)
async def appointment_requirements(appointment_type: str) -> RequirementsResponse:
    """Accepts the key or any spoken form of the type ("športová prehliadka")."""
    type_config = resolve_type_or_raise(appointment_type)
    return RequirementsResponse(
        appointment_type=type_config.key,
        name=type_config.name,
        requirements=type_config.requirements,
        price=type_config.price_display,
        insurance_covered=type_config.insurance,
    )
