"""Secure patient access routes.

Flow: search -> send OTP -> verify -> edit/delete while the session lasts.
The code itself stays on the server; responses only ever carry the
session view (state, target, remaining seconds).
"""
from fastapi import APIRouter, Body, Depends, HTTPException

from doctor_portal.api.deps import get_access_machine, http_error
from doctor_portal.core.errors import PortalError
from doctor_portal.models.access import (
    AccessSessionView,
    CloseRequest,
    SearchRequest,
    VerifyRequest,
)
from doctor_portal.models.patient import PatientEdits

router = APIRouter(prefix="/doctor/access", tags=["doctor_secure_access"])


@router.get("/", response_model=AccessSessionView)
async def session_status(machine=Depends(get_access_machine)):
    return machine.view()


@router.post("/search", response_model=AccessSessionView)
async def search_patient(payload: SearchRequest = Body(...), machine=Depends(get_access_machine)):
    """Find a patient by phone or email. Replaces any open session."""
    try:
        return machine.search(payload.key, payload.value)
    except PortalError as e:
        raise http_error(e) from e


@router.post("/cancel", response_model=AccessSessionView)
async def cancel_request(machine=Depends(get_access_machine)):
    try:
        return machine.cancel()
    except PortalError as e:
        raise http_error(e) from e


@router.post("/otp", response_model=AccessSessionView)
async def send_otp(machine=Depends(get_access_machine)):
    """Publish an access request with a fresh code to the patient's app."""
    try:
        return machine.send_otp()
    except PortalError as e:
        raise http_error(e) from e


@router.post("/verify", response_model=AccessSessionView)
async def verify_otp(payload: VerifyRequest = Body(...), machine=Depends(get_access_machine)):
    try:
        return machine.verify(payload.code)
    except PortalError as e:
        raise http_error(e) from e


@router.put("/record", response_model=AccessSessionView)
async def save_record(edits: PatientEdits = Body(...), machine=Depends(get_access_machine)):
    """Save edits. Records without a `patients` document get one created."""
    try:
        return machine.save(edits)
    except PortalError as e:
        raise http_error(e) from e


@router.delete("/record", response_model=AccessSessionView)
async def delete_record(machine=Depends(get_access_machine)):
    try:
        return machine.delete()
    except PortalError as e:
        raise http_error(e) from e


@router.post("/close", response_model=AccessSessionView)
async def close_connection(payload: CloseRequest = Body(...), machine=Depends(get_access_machine)):
    if not payload.confirm:
        raise HTTPException(status_code=400, detail="Confirm to close the connection")
    try:
        return machine.close()
    except PortalError as e:
        raise http_error(e) from e
