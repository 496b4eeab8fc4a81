from typing import List, Literal, Optional

from pydantic import BaseModel

AppointmentStatus = Literal["pending", "confirmed", "completed", "cancelled"]


class Appointment(BaseModel):
    id: str
    patientName: Optional[str] = None
    patientEmail: Optional[str] = None
    patientPhone: Optional[str] = None
    hospitalName: Optional[str] = None
    appointmentDate: Optional[str] = None
    appointmentTime: Optional[str] = None
    reason: Optional[str] = None
    status: Optional[str] = None


class DashboardStats(BaseModel):
    total: int = 0
    pending: int = 0
    confirmedToday: int = 0
    completed: int = 0


class DashboardOverview(BaseModel):
    stats: DashboardStats
    today: List[Appointment]


class StatusUpdate(BaseModel):
    status: AppointmentStatus
