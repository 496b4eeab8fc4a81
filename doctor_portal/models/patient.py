"""Pydantic models for patient records shown in the secure access flow.

A record's provenance decides how it may be mutated, so every consumer
matches on `provenance` before writing.
"""
from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field


class Provenance(str, Enum):
    STORED = "stored"
    EXTERNAL_USER = "external-user"
    APPOINTMENT_DERIVED = "appointment-derived"


class _PatientBase(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    history: Optional[str] = None

    @property
    def prescription_keys(self) -> List[str]:
        return [self.key]

    def identity_fields(self) -> dict:
        """Firestore fields for a `patients` document."""
        return {
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "medicalHistory": self.history,
        }


class StoredPatient(_PatientBase):
    """A document in the `patients` collection; mutable in place."""

    provenance: Literal["stored"] = "stored"
    id: str
    # set when the document was materialized from another source
    source_appointment_id: Optional[str] = None
    source_user_id: Optional[str] = None

    @property
    def key(self) -> str:
        return self.id

    @property
    def prescription_keys(self) -> List[str]:
        """Its own key plus the keys prescriptions were filed under before materialization."""
        keys = [self.id]
        for source in (self.source_appointment_id, self.source_user_id):
            if source and source not in keys:
                keys.append(source)
        return keys


class ExternalUserPatient(_PatientBase):
    """A patient's own mobile-app account in `users`."""

    provenance: Literal["external-user"] = "external-user"
    id: str

    @property
    def key(self) -> str:
        return self.id


class DerivedPatient(_PatientBase):
    """Identity rebuilt from an appointment; has no document of its own."""

    provenance: Literal["appointment-derived"] = "appointment-derived"
    derived_from: str

    @property
    def key(self) -> str:
        return self.derived_from


PatientRecord = Annotated[
    Union[StoredPatient, ExternalUserPatient, DerivedPatient],
    Field(discriminator="provenance"),
]


class PatientEdits(BaseModel):
    """Fields the operator may change while accessing a record."""

    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    history: Optional[str] = None

    def to_fields(self) -> dict:
        data = self.model_dump(exclude_none=True)
        if "history" in data:
            data["medicalHistory"] = data.pop("history")
        return data


class PatientRollupRow(BaseModel):
    name: Optional[str] = None
    email: str
    phone: Optional[str] = None
    visits: int = 0
    lastVisit: Optional[str] = None
