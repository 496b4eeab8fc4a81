"""Doctor-issued prescriptions and the patient's own upload list.

The two are separate read models: prescriptions are filed under the
patient's record key, uploads live inside the patient's app account
(found by email). Creating a prescription with an image also mirrors the
image into that upload list, best effort: if the mirror fails the
prescription still stands and the two stores are left to diverge.
"""
from datetime import datetime, timezone
from typing import List, Optional

from doctor_portal.models.doctor import Operator
from doctor_portal.models.prescription import (
    Medicine,
    Prescription,
    PrescriptionResult,
    UploadRecord,
)
from doctor_portal.services.logger import log_error

PRESCRIPTIONS = "prescriptions"
USERS = "users"
MIRRORED_SEVERITY = "Important"


class PrescriptionService:
    def __init__(self, store, uploader):
        self.store = store
        self.uploader = uploader

    def list_prescriptions(self, *patient_keys: str) -> List[Prescription]:
        """Prescriptions filed under any of `patient_keys`, newest first."""
        seen = {}
        for key in patient_keys:
            for d in self.store.find(PRESCRIPTIONS, {"patientId": key}):
                seen.setdefault(d["id"], d)
        docs = list(seen.values())
        docs.sort(key=lambda d: d.get("createdAt") or "", reverse=True)
        return [Prescription(**d) for d in docs]

    def list_uploads(self, email: Optional[str]) -> List[UploadRecord]:
        account = self._find_account(email)
        if account is None:
            return []
        uploads = [UploadRecord(**u) for u in account.get("uploads") or []]
        uploads.sort(key=lambda u: u.uploadedAt, reverse=True)
        return uploads

    def create(
        self,
        patient,
        operator: Operator,
        medicines: List[Medicine],
        notes: str = "",
        image: Optional[bytes] = None,
        filename: str = "prescription",
        content_type: str = "image/jpeg",
    ) -> Optional[PrescriptionResult]:
        """
        Persist a prescription for `patient` (any PatientRecord variant).

        Returns None, without touching the store or the image host, when
        there is neither a named medicine nor an image.
        """
        medicines = [m for m in medicines if not m.is_blank()]
        if not medicines and not image:
            return None

        image_url = None
        if image:
            image_url = self.uploader.upload(image, filename=filename, content_type=content_type)

        prescription = Prescription(
            patientId=patient.key,
            issuerName=operator.name,
            issuerOrg=operator.hospital,
            medicines=medicines,
            notes=notes or "",
            imageUrl=image_url,
            createdAt=datetime.now(timezone.utc).isoformat(),
        )
        prescription.id = self.store.create(
            PRESCRIPTIONS, prescription.model_dump(exclude={"id"})
        )

        mirrored = None
        if image_url:
            mirrored = self._mirror_upload(prescription, patient.email)
        return PrescriptionResult(prescription=prescription, mirrored_upload=mirrored)

    def _find_account(self, email: Optional[str]) -> Optional[dict]:
        if not email:
            return None
        docs = self.store.find(USERS, {"email": email})
        return docs[0] if docs else None

    def _mirror_upload(self, prescription: Prescription, email: Optional[str]) -> Optional[UploadRecord]:
        try:
            account = self._find_account(email)
            if account is None:
                return None

            upload = UploadRecord(
                id=prescription.id,
                uri=prescription.imageUrl,
                severity=MIRRORED_SEVERITY,
                hospital=prescription.issuerOrg,
                uploadedAt=prescription.createdAt,
            )
            self.store.append_to_array(USERS, account["id"], "uploads", upload.model_dump())
            return upload
        except Exception as e:
            log_error("prescription_upload_sync_failed", {
                "prescription_id": prescription.id,
                "patient_email": email,
                "error": str(e),
            })
            return None
