from fastapi import APIRouter, Body, Depends

from doctor_portal.api.deps import get_operator, get_store, http_error
from doctor_portal.core.errors import PortalError
from doctor_portal.models.appointment import StatusUpdate
from doctor_portal.services.dashboard import list_appointments, update_status

router = APIRouter(prefix="/doctor/appointments", tags=["doctor_appointments"])


@router.get("/")
async def all_appointments(operator=Depends(get_operator), store=Depends(get_store)):
    try:
        return {"items": list_appointments(store, operator.hospital)}
    except PortalError as e:
        raise http_error(e) from e


@router.patch("/{appointment_id}/status")
async def change_status(
    appointment_id: str,
    payload: StatusUpdate = Body(...),
    operator=Depends(get_operator),
    store=Depends(get_store),
):
    """Confirm, complete or cancel an appointment at the doctor's hospital."""
    try:
        appointment = update_status(store, appointment_id, payload.status, operator.hospital)
    except PortalError as e:
        raise http_error(e) from e
    return {"message": "Status updated", "appointment": appointment}
