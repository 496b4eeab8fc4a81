"""Authentication-related routes.

Frontend performs authentication with Firebase; backend stores the
doctor's profile and drops their access session on logout.
"""
from fastapi import APIRouter, Body, Depends

from doctor_portal.api.deps import get_current_user, get_registry, get_store, http_error
from doctor_portal.core.errors import PortalError
from doctor_portal.models.doctor import DoctorSignup
from doctor_portal.services.dashboard import register_doctor

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/me")
async def get_me(user=Depends(get_current_user)):
    return {"uid": user.get("uid"), "email": user.get("email"), "role": user.get("role")}


@router.post("/register", status_code=201)
async def register(
    payload: DoctorSignup = Body(...),
    user=Depends(get_current_user),
    store=Depends(get_store),
):
    """Create the `doctors/{uid}` profile after Firebase signup."""
    try:
        operator = register_doctor(store, user["uid"], payload)
    except PortalError as e:
        raise http_error(e) from e
    return {"message": "Account created successfully", "doctor": operator}


@router.post("/logout")
async def logout(user=Depends(get_current_user), registry=Depends(get_registry)):
    registry.dispose(user["uid"])
    return {"message": "Logged out"}
