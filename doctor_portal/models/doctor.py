"""Pydantic models for the signed-in doctor (the dashboard operator)."""
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class Operator(BaseModel):
    uid: str
    name: Optional[str] = None
    email: Optional[str] = None
    hospital: Optional[str] = None
    specialty: Optional[str] = None


class DoctorSignup(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    hospital: str = Field(..., min_length=1)
    phone: str = ""
    specialty: Optional[str] = None
