"""Doctor dashboard: appointments, stats, patient rollup and signup.

Thin layer over the document store; the routes in api/routes/doctor call
these and shape nothing themselves.
"""
from datetime import date, datetime, time, timezone
from typing import Dict, Iterable, List, Optional

from doctor_portal.core.errors import InvalidStatusTransition, RecordNotFoundError
from doctor_portal.models.appointment import Appointment, DashboardStats
from doctor_portal.models.doctor import DoctorSignup, Operator
from doctor_portal.models.patient import PatientRollupRow
from doctor_portal.services.logger import log_error

APPOINTMENTS = "appointments"
DOCTORS = "doctors"
HOSPITALS = "hospitals"

# current status -> statuses the doctor may move it to
STATUS_TRANSITIONS = {
    "pending": {"confirmed", "cancelled"},
    "confirmed": {"completed", "cancelled"},
}

_TIME_FORMATS = ("%H:%M", "%I:%M %p", "%H:%M:%S")


def _parse_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def _parse_time(value: Optional[str]) -> time:
    if value:
        for fmt in _TIME_FORMATS:
            try:
                return datetime.strptime(value.strip(), fmt).time()
            except ValueError:
                continue
    return time.min


def _sort_key(appt: Appointment) -> datetime:
    d = _parse_date(appt.appointmentDate) or date.min
    return datetime.combine(d, _parse_time(appt.appointmentTime))


# -------------------------
# Operator
# -------------------------
def load_operator(store, uid: str) -> Optional[Operator]:
    doc = store.get(DOCTORS, uid)
    if doc is None:
        return None
    return Operator(
        uid=uid,
        name=doc.get("name"),
        email=doc.get("email"),
        hospital=doc.get("hospital"),
        specialty=doc.get("specialty"),
    )


def register_doctor(store, uid: str, signup: DoctorSignup) -> Operator:
    hospital = signup.hospital.strip()
    doctor_info = {
        "name": signup.name.strip(),
        "email": str(signup.email).lower().strip(),
        "hospital": hospital,
        "phone": signup.phone.strip(),
        "specialty": signup.specialty,
        "createdAt": datetime.now(timezone.utc).isoformat(),
        "isActive": True,
    }
    store.set(DOCTORS, uid, doctor_info)
    add_hospital_to_list(store, hospital)
    return Operator(uid=uid, **{k: doctor_info[k] for k in ("name", "email", "hospital", "specialty")})


def add_hospital_to_list(store, hospital_name: str):
    """Record the hospital in the shared list the patient app offers. Best effort."""
    try:
        if store.find(HOSPITALS, {"name": hospital_name}):
            return
        store.create(HOSPITALS, {
            "name": hospital_name,
            "addedAt": datetime.now(timezone.utc).isoformat(),
            "isActive": True,
        })
    except Exception as e:
        log_error("hospital_list_update_failed", {"hospital": hospital_name, "error": str(e)})


# -------------------------
# Appointments
# -------------------------
def list_appointments(store, hospital: str) -> List[Appointment]:
    docs = store.find(APPOINTMENTS, {"hospitalName": hospital})
    appointments = [Appointment(**d) for d in docs]
    appointments.sort(key=_sort_key, reverse=True)
    return appointments


def todays_appointments(appointments: Iterable[Appointment], today: Optional[date] = None) -> List[Appointment]:
    today = today or datetime.now(timezone.utc).date()
    return [a for a in appointments if _parse_date(a.appointmentDate) == today]


def compute_stats(appointments: List[Appointment], today: Optional[date] = None) -> DashboardStats:
    today = today or datetime.now(timezone.utc).date()
    return DashboardStats(
        total=len(appointments),
        pending=sum(1 for a in appointments if a.status == "pending"),
        confirmedToday=sum(
            1 for a in appointments
            if a.status == "confirmed" and _parse_date(a.appointmentDate) == today
        ),
        completed=sum(1 for a in appointments if a.status == "completed"),
    )


def update_status(store, appointment_id: str, status: str, hospital: Optional[str] = None) -> Appointment:
    doc = store.get(APPOINTMENTS, appointment_id)
    if doc is None or (hospital and doc.get("hospitalName") != hospital):
        raise RecordNotFoundError("Appointment not found")

    current = doc.get("status")
    if status not in STATUS_TRANSITIONS.get(current, set()):
        raise InvalidStatusTransition(f"Cannot change appointment from {current} to {status}")

    store.update(APPOINTMENTS, appointment_id, {"status": status})
    return Appointment(**{**doc, "status": status})


def patient_rollup(appointments: Iterable[Appointment]) -> List[PatientRollupRow]:
    """Unique patients by email, with visit count and latest visit date."""
    rows: Dict[str, PatientRollupRow] = {}

    for appt in appointments:
        if not appt.patientEmail:
            continue
        row = rows.get(appt.patientEmail)
        if row is None:
            row = PatientRollupRow(
                name=appt.patientName,
                email=appt.patientEmail,
                phone=appt.patientPhone,
                lastVisit=appt.appointmentDate,
            )
            rows[appt.patientEmail] = row

        row.visits += 1
        visit = _parse_date(appt.appointmentDate)
        last = _parse_date(row.lastVisit)
        if visit and (last is None or visit > last):
            row.lastVisit = appt.appointmentDate

    return list(rows.values())
