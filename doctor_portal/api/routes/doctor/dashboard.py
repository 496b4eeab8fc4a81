from fastapi import APIRouter, Depends

from doctor_portal.api.deps import get_operator, get_store, http_error
from doctor_portal.core.errors import PortalError
from doctor_portal.models.appointment import DashboardOverview
from doctor_portal.services.dashboard import (
    compute_stats,
    list_appointments,
    todays_appointments,
)

router = APIRouter(prefix="/doctor/dashboard", tags=["doctor_dashboard"])


@router.get("/", response_model=DashboardOverview)
async def doctor_dashboard(operator=Depends(get_operator), store=Depends(get_store)):
    """
    Doctor dashboard overview:
    - Counts across all of the hospital's appointments
    - Today's appointments, newest first
    """
    try:
        appointments = list_appointments(store, operator.hospital)
    except PortalError as e:
        raise http_error(e) from e

    return DashboardOverview(
        stats=compute_stats(appointments),
        today=todays_appointments(appointments),
    )
