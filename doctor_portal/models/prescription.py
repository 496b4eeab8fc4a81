"""Pydantic models for doctor-issued prescriptions and patient uploads."""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


def _iso(v):
    # Firestore hands back timestamps as datetime subclasses
    if isinstance(v, datetime):
        return v.isoformat()
    return v


class Medicine(BaseModel):
    # Free text; no unit validation
    name: str = ""
    dosage: str = ""
    frequency: str = ""
    duration: str = ""

    def is_blank(self) -> bool:
        return not self.name.strip()


class PrescriptionInput(BaseModel):
    medicines: List[Medicine] = Field(default_factory=list)
    notes: str = ""


class Prescription(BaseModel):
    id: Optional[str] = None
    patientId: str
    issuerName: Optional[str] = None
    issuerOrg: Optional[str] = None
    medicines: List[Medicine] = Field(default_factory=list)
    notes: str = ""
    imageUrl: Optional[str] = None
    createdAt: str

    @field_validator("createdAt", mode="before")
    @classmethod
    def validate_created_at(cls, v):
        return _iso(v)


class UploadRecord(BaseModel):
    """Entry of a patient account's embedded `uploads` list."""

    id: Optional[str] = None
    uri: str
    severity: str = "Important"
    hospital: Optional[str] = None
    uploadedAt: str = ""

    @field_validator("uploadedAt", mode="before")
    @classmethod
    def validate_uploaded_at(cls, v):
        return _iso(v) or ""


class PrescriptionResult(BaseModel):
    prescription: Prescription
    mirrored_upload: Optional[UploadRecord] = None
