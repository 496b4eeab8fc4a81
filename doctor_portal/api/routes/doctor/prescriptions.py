"""Prescriptions for the patient whose record is currently open.

Two tabs, never merged: prescriptions issued by doctors, and uploads the
patient made from their own app.
"""
import json
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from pydantic import ValidationError

from doctor_portal.api.deps import get_access_machine, get_prescription_service, http_error
from doctor_portal.core.errors import PortalError
from doctor_portal.models.prescription import PrescriptionInput

router = APIRouter(prefix="/doctor/access", tags=["doctor_prescriptions"])


@router.get("/prescriptions")
async def list_prescriptions(
    machine=Depends(get_access_machine),
    service=Depends(get_prescription_service),
):
    try:
        patient = machine.require_accessing()
        return {"items": service.list_prescriptions(*patient.prescription_keys)}
    except PortalError as e:
        raise http_error(e) from e


@router.get("/uploads")
async def list_uploads(
    machine=Depends(get_access_machine),
    service=Depends(get_prescription_service),
):
    try:
        patient = machine.require_accessing()
        uploads = machine.cached_uploads()
        if uploads is None:
            uploads = service.list_uploads(patient.email)
            machine.cache_uploads(uploads)
        return {"items": uploads}
    except PortalError as e:
        raise http_error(e) from e


@router.post("/prescriptions")
async def create_prescription(
    payload: str = Form("{}"),
    image: Optional[UploadFile] = File(None),
    machine=Depends(get_access_machine),
    service=Depends(get_prescription_service),
):
    """
    Multipart form:
    - payload: JSON {"medicines": [...], "notes": "..."}
    - image: optional prescription photo

    Nothing is written when every medicine name is blank and no image is
    attached; the response then has "created": false.
    """
    try:
        data = PrescriptionInput(**json.loads(payload or "{}"))
    except (TypeError, ValueError, ValidationError) as e:
        raise HTTPException(status_code=400, detail=f"Invalid prescription payload: {e}")

    image_bytes = await image.read() if image is not None else None

    try:
        # runs under the session lock so the record cannot expire mid-write
        result = machine.while_accessing(lambda patient: service.create(
            patient,
            machine.operator,
            data.medicines,
            notes=data.notes,
            image=image_bytes or None,
            filename=(image.filename if image is not None else None) or "prescription",
            content_type=(image.content_type if image is not None else None) or "image/jpeg",
        ))
    except PortalError as e:
        raise http_error(e) from e

    if result is None:
        return {"created": False}

    if result.mirrored_upload is not None:
        machine.mirror_upload(result.mirrored_upload)
    return {"created": True, **result.model_dump()}
