"""Secure patient access: search -> contact_found -> verifying -> accessing.

A doctor finds a patient by phone or email, sends a one-time code to the
patient's app, and only after the patient reads the code back does the
record open for editing, for a limited time. One machine exists per
operator; starting a new search throws away whatever session came before.

All state lives on the machine and is only touched under its lock, so the
countdown thread and request handlers never observe a half-reset session.
"""
import hmac
import secrets
import threading
from datetime import datetime, timezone
from typing import Callable, List, Optional

from doctor_portal.core.config import settings
from doctor_portal.core.errors import (
    AccessStateError,
    InvalidOtpError,
    OtpAttemptsExceededError,
    PatientNotFoundError,
)
from doctor_portal.models.access import AccessSessionView, AccessState, OtpNotification
from doctor_portal.models.doctor import Operator
from doctor_portal.models.patient import (
    DerivedPatient,
    ExternalUserPatient,
    PatientEdits,
    StoredPatient,
)
from doctor_portal.models.prescription import UploadRecord
from doctor_portal.services.logger import log_debug
from doctor_portal.services.session_timer import SessionTimer

PATIENTS = "patients"
USERS = "users"
APPOINTMENTS = "appointments"

# lookup key -> appointment field holding the same contact detail
APPOINTMENT_CONTACT_FIELDS = {
    "phone": "patientPhone",
    "email": "patientEmail",
}


def generate_otp() -> str:
    """Six ASCII digits, uniform over 100000..999999."""
    return str(100000 + secrets.randbelow(900000))


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _stored_from(doc: dict) -> StoredPatient:
    return StoredPatient(
        id=doc["id"],
        name=doc.get("name"),
        email=doc.get("email"),
        phone=doc.get("phone"),
        history=doc.get("medicalHistory"),
        source_appointment_id=doc.get("sourceAppointmentId"),
        source_user_id=doc.get("sourceUserId"),
    )


def _external_from(doc: dict) -> ExternalUserPatient:
    return ExternalUserPatient(
        id=doc["id"],
        name=doc.get("name") or doc.get("fullName") or doc.get("displayName"),
        email=doc.get("email"),
        phone=doc.get("phone"),
        history=doc.get("medicalHistory"),
    )


def _derived_from(doc: dict) -> DerivedPatient:
    return DerivedPatient(
        derived_from=doc["id"],
        name=doc.get("patientName"),
        email=doc.get("patientEmail"),
        phone=doc.get("patientPhone"),
    )


class SecureAccessMachine:
    def __init__(
        self,
        store,
        channel,
        operator: Operator,
        timer_factory: Callable = SessionTimer,
        ttl: Optional[int] = None,
        max_attempts: Optional[int] = None,
    ):
        self.store = store
        self.channel = channel
        self.operator = operator
        self.timer_factory = timer_factory
        self.session_ttl = ttl if ttl is not None else settings.ACCESS_SESSION_TTL
        self.max_attempts = max_attempts if max_attempts is not None else settings.OTP_MAX_ATTEMPTS

        self._lock = threading.RLock()
        self._generation = 0
        self._timer = None
        self._state = AccessState.SEARCH
        self._target = None
        self._code: Optional[str] = None
        self._ttl: Optional[int] = None
        self._failed_attempts = 0
        self._uploads: Optional[List[UploadRecord]] = None

    # -------------------------
    # Snapshots
    # -------------------------
    @property
    def state(self) -> AccessState:
        with self._lock:
            return self._state

    @property
    def target(self):
        with self._lock:
            return self._target

    @property
    def ttl(self) -> Optional[int]:
        with self._lock:
            return self._ttl

    @property
    def code(self) -> Optional[str]:
        with self._lock:
            return self._code

    def view(self) -> AccessSessionView:
        with self._lock:
            return AccessSessionView(
                state=self._state,
                target=self._target,
                ttl=self._ttl,
                failed_attempts=self._failed_attempts,
            )

    # -------------------------
    # Transitions
    # -------------------------
    def search(self, key: str, value: str) -> AccessSessionView:
        if key not in APPOINTMENT_CONTACT_FIELDS:
            raise ValueError(f"Unsupported lookup key: {key}")
        value = value.strip()

        with self._lock:
            self._reset_locked()
            if not value:
                raise PatientNotFoundError(f"No patient found with an empty {key}")
            target = self._lookup(key, value)
            if target is None:
                raise PatientNotFoundError(f"No patient found with {key} {value}")
            self._target = target
            self._state = AccessState.CONTACT_FOUND
            return self.view()

    def cancel(self) -> AccessSessionView:
        with self._lock:
            self._require(AccessState.CONTACT_FOUND, AccessState.VERIFYING)
            self._reset_locked()
            return self.view()

    def send_otp(self) -> AccessSessionView:
        with self._lock:
            self._require(AccessState.CONTACT_FOUND)
            if not self._target.email:
                raise AccessStateError("This patient has no email address to send a code to")

            code = generate_otp()
            self.channel.publish(
                OtpNotification(
                    targetEmail=self._target.email,
                    code=code,
                    issuerName=self.operator.name,
                    issuerOrg=self.operator.hospital,
                )
            )

            self._code = code
            self._failed_attempts = 0
            self._state = AccessState.VERIFYING
            log_debug("otp_issued", {
                "operator": self.operator.uid,
                "target_email": self._target.email,
                "provenance": self._target.provenance,
            })
            return self.view()

    def verify(self, code: str) -> AccessSessionView:
        with self._lock:
            self._require(AccessState.VERIFYING)

            if hmac.compare_digest(code.encode("utf-8"), self._code.encode("utf-8")):
                self._state = AccessState.ACCESSING
                self._ttl = self.session_ttl
                self._failed_attempts = 0
                self._start_timer_locked()
                return self.view()

            self._failed_attempts += 1
            if self.max_attempts and self._failed_attempts >= self.max_attempts:
                log_debug("otp_attempts_exceeded", {
                    "operator": self.operator.uid,
                    "target_email": self._target.email,
                })
                self._reset_locked()
                raise OtpAttemptsExceededError("Too many invalid codes. Search for the patient again.")
            raise InvalidOtpError("Invalid code")

    def tick(self):
        """Advance the countdown by one second."""
        with self._lock:
            self._advance(self._generation)

    def close(self) -> AccessSessionView:
        with self._lock:
            self._require(AccessState.ACCESSING)
            self._reset_locked()
            return self.view()

    def dispose(self):
        with self._lock:
            self._reset_locked()

    # -------------------------
    # Record mutation (accessing only)
    # -------------------------
    def save(self, edits: PatientEdits) -> AccessSessionView:
        with self._lock:
            self._require(AccessState.ACCESSING)
            target = self._target
            fields = edits.to_fields()

            if isinstance(target, StoredPatient):
                if fields:
                    self.store.update(PATIENTS, target.id, {**fields, "updatedAt": _now_iso()})
                self._target = target.model_copy(update=edits.model_dump(exclude_none=True))
                return self.view()

            # No document of our own yet: materialize one
            doc = {
                **target.identity_fields(),
                **fields,
                "createdAt": _now_iso(),
                "createdBy": self.operator.uid,
            }
            if isinstance(target, DerivedPatient):
                doc["sourceAppointmentId"] = target.derived_from
            else:
                doc["sourceUserId"] = target.id

            new_id = self.store.create(PATIENTS, doc)
            self._target = _stored_from({"id": new_id, **doc})
            log_debug("patient_materialized", {
                "operator": self.operator.uid,
                "patient_id": new_id,
                "from": target.provenance,
            })
            return self.view()

    def delete(self) -> AccessSessionView:
        with self._lock:
            self._require(AccessState.ACCESSING)
            target = self._target

            if isinstance(target, StoredPatient):
                self.store.delete(PATIENTS, target.id)
            elif isinstance(target, DerivedPatient):
                # Nothing stored to remove; the appointment is the record
                self.store.delete(APPOINTMENTS, target.derived_from)
            else:
                raise AccessStateError("Patient app accounts can only be removed by the patient")

            self._reset_locked()
            return self.view()

    # -------------------------
    # Uploads view cache (prescription tab)
    # -------------------------
    def cached_uploads(self) -> Optional[List[UploadRecord]]:
        with self._lock:
            return None if self._uploads is None else list(self._uploads)

    def cache_uploads(self, uploads: List[UploadRecord]):
        with self._lock:
            if self._state == AccessState.ACCESSING:
                self._uploads = list(uploads)

    def mirror_upload(self, upload: UploadRecord):
        with self._lock:
            if self._state == AccessState.ACCESSING and self._uploads is not None:
                self._uploads.insert(0, upload)

    def while_accessing(self, action: Callable):
        """Run action(target) with the record held open; expiry waits for it."""
        with self._lock:
            self._require(AccessState.ACCESSING)
            return action(self._target)

    def require_accessing(self):
        """Return the open record, or raise if no record is open."""
        with self._lock:
            self._require(AccessState.ACCESSING)
            return self._target

    # -------------------------
    # Helpers
    # -------------------------
    def _lookup(self, key: str, value: str):
        docs = self.store.find(PATIENTS, {key: value})
        if docs:
            return _stored_from(docs[0])

        docs = self.store.find(USERS, {key: value})
        if docs:
            return _external_from(docs[0])

        if not self.operator.hospital:
            return None

        docs = self.store.find(APPOINTMENTS, {
            APPOINTMENT_CONTACT_FIELDS[key]: value,
            "hospitalName": self.operator.hospital,
        })
        if docs:
            return _derived_from(docs[0])
        return None

    def _require(self, *states: AccessState):
        if self._state not in states:
            allowed = ", ".join(s.value for s in states)
            raise AccessStateError(
                f"Not allowed while {self._state.value} (needs {allowed})"
            )

    def _start_timer_locked(self):
        generation = self._generation
        self._timer = self.timer_factory(
            lambda remaining: self._advance(generation),
            lambda: self._advance(generation),
        )
        self._timer.start(self._ttl)

    def _advance(self, generation: int):
        with self._lock:
            if generation != self._generation or self._state != AccessState.ACCESSING:
                return
            self._ttl -= 1
            if self._ttl <= 0:
                log_debug("access_session_expired", {"operator": self.operator.uid})
                self._reset_locked()

    def _reset_locked(self):
        if self._timer is not None:
            self._timer.cancel()
        self._timer = None
        self._generation += 1
        self._state = AccessState.SEARCH
        self._target = None
        self._code = None
        self._ttl = None
        self._failed_attempts = 0
        self._uploads = None
