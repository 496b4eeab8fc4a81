import unittest

from doctor_portal.core.errors import BlobUploadError, StoreError
from doctor_portal.models.doctor import Operator
from doctor_portal.models.patient import DerivedPatient, StoredPatient
from doctor_portal.models.prescription import Medicine
from doctor_portal.services.prescriptions import PrescriptionService
from portal_fakes import FakeStore, FakeUploader

OPERATOR = Operator(uid="doc-1", name="Dr. Grey", hospital="Acme")
PATIENT = StoredPatient(id="P1", name="Jane", email="j@x.com")
ACCOUNT = {"name": "Jane", "email": "j@x.com", "uploads": []}


class TestCreatePrescription(unittest.TestCase):
    def setUp(self):
        self.store = FakeStore({"users": {"U1": ACCOUNT}})
        self.uploader = FakeUploader()
        self.service = PrescriptionService(self.store, self.uploader)

    def test_blank_medicines_without_image_does_nothing(self):
        result = self.service.create(
            PATIENT, OPERATOR, [Medicine(name="  ", dosage="5mg"), Medicine()], notes="rest"
        )
        self.assertIsNone(result)
        self.assertEqual(self.store.calls, [])
        self.assertEqual(self.uploader.calls, [])

    def test_medicines_only(self):
        result = self.service.create(
            PATIENT,
            OPERATOR,
            [Medicine(name="Amoxicillin", dosage="500mg", frequency="3x daily", duration="7 days"), Medicine()],
            notes="after food",
        )
        rx = result.prescription
        self.assertIsNotNone(rx.id)
        self.assertEqual(rx.patientId, "P1")
        self.assertEqual(rx.issuerName, "Dr. Grey")
        self.assertEqual(rx.issuerOrg, "Acme")
        self.assertEqual([m.name for m in rx.medicines], ["Amoxicillin"])
        self.assertIsNone(rx.imageUrl)
        self.assertIsNone(result.mirrored_upload)
        self.assertEqual(self.uploader.calls, [])
        self.assertEqual(self.store.data["users"]["U1"]["uploads"], [])

        saved = self.store.data["prescriptions"][rx.id]
        self.assertEqual(saved["notes"], "after food")
        self.assertNotIn("id", saved)

    def test_image_is_uploaded_and_mirrored_to_patient_account(self):
        result = self.service.create(PATIENT, OPERATOR, [], image=b"\x89PNG", filename="rx.png", content_type="image/png")

        self.assertEqual(self.uploader.calls, [(b"\x89PNG", "rx.png", "image/png")])
        rx = result.prescription
        self.assertEqual(rx.imageUrl, "https://img.example.com/rx.jpg")

        (upload,) = self.store.data["users"]["U1"]["uploads"]
        self.assertEqual(upload["id"], rx.id)
        self.assertEqual(upload["uri"], rx.imageUrl)
        self.assertEqual(upload["severity"], "Important")
        self.assertEqual(upload["hospital"], "Acme")
        self.assertEqual(upload["uploadedAt"], rx.createdAt)
        self.assertEqual(result.mirrored_upload.id, rx.id)

    def test_upload_happens_before_the_prescription_write(self):
        self.service.create(PATIENT, OPERATOR, [Medicine(name="Ibuprofen")], image=b"img")
        first_write = self.store.mutations()[0]
        self.assertEqual(first_write[:2], ("create", "prescriptions"))
        self.assertEqual(first_write[2]["imageUrl"], self.uploader.url)

    def test_upload_failure_aborts(self):
        self.uploader.error = BlobUploadError("quota exceeded")
        with self.assertRaises(BlobUploadError):
            self.service.create(PATIENT, OPERATOR, [Medicine(name="Ibuprofen")], image=b"img")
        self.assertEqual(self.store.docs("prescriptions"), {})

    def test_sync_failure_does_not_fail_the_prescription(self):
        self.store.fail_on("append_to_array", "users", StoreError("permission denied"))
        result = self.service.create(PATIENT, OPERATOR, [], image=b"img")

        self.assertIsNotNone(result)
        self.assertIn(result.prescription.id, self.store.data["prescriptions"])
        self.assertIsNone(result.mirrored_upload)
        self.assertEqual(self.store.data["users"]["U1"]["uploads"], [])

    def test_no_patient_account_means_no_mirror(self):
        patient = StoredPatient(id="P2", name="Kim", email="k@x.com")
        result = self.service.create(patient, OPERATOR, [], image=b"img")
        self.assertIsNone(result.mirrored_upload)
        self.assertEqual(len(self.store.data["prescriptions"]), 1)

    def test_derived_patient_files_under_source_appointment(self):
        patient = DerivedPatient(derived_from="A1", name="Jane", email="j@x.com")
        result = self.service.create(patient, OPERATOR, [Medicine(name="Paracetamol")])
        self.assertEqual(result.prescription.patientId, "A1")


class TestReadModels(unittest.TestCase):
    def test_prescriptions_newest_first(self):
        store = FakeStore({"prescriptions": {
            "R1": {"patientId": "P1", "createdAt": "2026-10-01T09:00:00+00:00", "medicines": []},
            "R2": {"patientId": "P1", "createdAt": "2026-10-03T09:00:00+00:00", "medicines": []},
            "R3": {"patientId": "P9", "createdAt": "2026-10-04T09:00:00+00:00", "medicines": []},
            "R4": {"patientId": "P1", "createdAt": "2026-10-02T09:00:00+00:00", "medicines": []},
        }})
        service = PrescriptionService(store, FakeUploader())
        self.assertEqual([p.id for p in service.list_prescriptions("P1")], ["R2", "R4", "R1"])

    def test_materialized_patient_keeps_prescriptions_filed_before(self):
        store = FakeStore({"users": {"U1": ACCOUNT}})
        service = PrescriptionService(store, FakeUploader())
        before = service.create(
            DerivedPatient(derived_from="A1", name="Jane", email="j@x.com"), OPERATOR, [Medicine(name="Ibuprofen")]
        ).prescription
        materialized = StoredPatient(id="P7", name="Jane", email="j@x.com", source_appointment_id="A1")
        after = service.create(materialized, OPERATOR, [Medicine(name="Paracetamol")]).prescription

        listed = service.list_prescriptions(*materialized.prescription_keys)
        self.assertEqual(sorted(p.id for p in listed), sorted([before.id, after.id]))
        self.assertEqual(len(service.list_prescriptions("A1", "A1")), 1)

    def test_uploads_from_patient_account(self):
        store = FakeStore({"users": {"U1": {**ACCOUNT, "uploads": [
            {"id": "x", "uri": "https://a", "severity": "Normal", "uploadedAt": "2026-09-01"},
            {"id": "y", "uri": "https://b", "severity": "Important", "hospital": "Acme", "uploadedAt": "2026-09-05"},
        ]}}})
        service = PrescriptionService(store, FakeUploader())
        self.assertEqual([u.id for u in service.list_uploads("j@x.com")], ["y", "x"])

    def test_uploads_empty_without_account(self):
        service = PrescriptionService(FakeStore(), FakeUploader())
        self.assertEqual(service.list_uploads("nobody@x.com"), [])
        self.assertEqual(service.list_uploads(None), [])


if __name__ == '__main__':
    unittest.main()
