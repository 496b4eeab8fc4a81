"""
API dependencies (Firebase auth verification, services, error mapping).

Provides FastAPI dependencies to verify Firebase ID tokens and to hand
routes the store, the signed-in doctor and their secure access machine.
"""

from functools import lru_cache
from typing import List, Callable

from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from firebase_admin import auth

from doctor_portal.core import firebase
from doctor_portal.core.errors import PortalError
from doctor_portal.models.doctor import Operator
from doctor_portal.services.access_registry import AccessRegistry
from doctor_portal.services.blob_upload import BlobUploader
from doctor_portal.services.dashboard import load_operator
from doctor_portal.services.document_store import DocumentStore
from doctor_portal.services.notification_channel import NotificationChannel
from doctor_portal.services.prescriptions import PrescriptionService
from doctor_portal.services.secure_access import SecureAccessMachine

# 🔐 FastAPI security scheme (this fixes Swagger + header binding)
security = HTTPBearer(auto_error=True)


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
):
    """
    Verify Firebase ID token from Authorization header.

    Expects:
        Authorization: Bearer <id_token>
    """
    try:
        id_token = credentials.credentials
        decoded = auth.verify_id_token(id_token)
        return decoded
    except Exception as exc:
        raise HTTPException(
            status_code=401,
            detail="Invalid ID token",
        ) from exc


def require_role(allowed: List[str]) -> Callable:
    """
    Return a FastAPI dependency that enforces a user's role.

    The Firebase ID token is expected to have a custom claim `role`
    (set with set_role.py). Example claims:
        {'role': 'doctor'}
    """

    def _checker(user=Depends(get_current_user)):
        role = user.get("role") or user.get("roles")

        if isinstance(role, list):
            is_allowed = any(r in allowed for r in role)
        else:
            is_allowed = role in allowed

        if not is_allowed:
            raise HTTPException(
                status_code=403,
                detail="Insufficient permissions",
            )

        return user

    return _checker


def http_error(exc: PortalError) -> HTTPException:
    """Inline message for the dashboard, status from the error class."""
    return HTTPException(status_code=exc.status_code, detail=exc.message)


# -------------------------
# Services
# -------------------------
@lru_cache
def get_store() -> DocumentStore:
    if firebase.get_db() is None:
        raise HTTPException(status_code=500, detail="Firestore client not initialized")
    return DocumentStore(firebase.get_db())


@lru_cache
def get_uploader() -> BlobUploader:
    return BlobUploader()


@lru_cache
def get_registry() -> AccessRegistry:
    def _machine(operator: Operator) -> SecureAccessMachine:
        store = get_store()
        return SecureAccessMachine(store, NotificationChannel(store), operator)

    return AccessRegistry(_machine)


def get_prescription_service(
    store: DocumentStore = Depends(get_store),
    uploader: BlobUploader = Depends(get_uploader),
) -> PrescriptionService:
    return PrescriptionService(store, uploader)


def get_operator(
    user=Depends(require_role(["doctor"])),
    store: DocumentStore = Depends(get_store),
) -> Operator:
    """The signed-in doctor's profile from `doctors/{uid}`."""
    try:
        operator = load_operator(store, user["uid"])
    except PortalError as e:
        raise http_error(e) from e
    if operator is None:
        raise HTTPException(status_code=404, detail="Doctor profile not found")
    return operator


def get_access_machine(
    operator: Operator = Depends(get_operator),
    registry: AccessRegistry = Depends(get_registry),
) -> SecureAccessMachine:
    return registry.get(operator)
