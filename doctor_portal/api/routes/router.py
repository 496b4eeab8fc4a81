from fastapi import APIRouter

from doctor_portal.api.routes import auth, patients
from doctor_portal.api.routes.doctor.access import router as doctor_access_router
from doctor_portal.api.routes.doctor.appointments import router as doctor_appointments_router
from doctor_portal.api.routes.doctor.dashboard import router as doctor_dashboard_router
from doctor_portal.api.routes.doctor.prescriptions import router as doctor_prescriptions_router

api_router = APIRouter()

api_router.include_router(auth.router)

# Doctor routes
api_router.include_router(doctor_dashboard_router)
api_router.include_router(doctor_appointments_router)
api_router.include_router(patients.router)
api_router.include_router(doctor_access_router)
api_router.include_router(doctor_prescriptions_router)
