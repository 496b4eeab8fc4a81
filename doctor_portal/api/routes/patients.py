"""Patient rollup built from the hospital's appointments."""

from fastapi import APIRouter, Depends

from doctor_portal.api.deps import get_operator, get_store, http_error
from doctor_portal.core.errors import PortalError
from doctor_portal.services.dashboard import list_appointments, patient_rollup

router = APIRouter(prefix="/doctor/patients", tags=["doctor_patients"])


@router.get("/")
async def list_patients(operator=Depends(get_operator), store=Depends(get_store)):
    """Unique patients seen at the doctor's hospital, one row per email."""
    try:
        appointments = list_appointments(store, operator.hospital)
    except PortalError as e:
        raise http_error(e) from e
    return {"items": patient_rollup(appointments)}
