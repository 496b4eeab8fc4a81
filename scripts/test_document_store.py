import unittest
from unittest import mock

from google.api_core.exceptions import FailedPrecondition, InternalServerError, PermissionDenied

from doctor_portal.core.errors import StoreError, StorePermissionError, StorePreconditionError
from doctor_portal.services.document_store import DocumentStore


def snapshot(doc_id, data, exists=True):
    snap = mock.Mock()
    snap.id = doc_id
    snap.exists = exists
    snap.to_dict.return_value = data
    return snap


class TestDocumentStore(unittest.TestCase):
    def setUp(self):
        self.client = mock.MagicMock()
        self.collection = self.client.collection.return_value
        self.store = DocumentStore(self.client)

    def test_find_chains_equality_filters(self):
        query = self.collection.where.return_value.where.return_value
        query.stream.return_value = [snapshot("A1", {"patientEmail": "j@x.com"})]

        docs = self.store.find("appointments", {"patientEmail": "j@x.com", "hospitalName": "Acme"})

        self.assertEqual(docs, [{"id": "A1", "patientEmail": "j@x.com"}])
        self.assertEqual(self.collection.where.call_count, 1)
        self.assertEqual(self.collection.where.return_value.where.call_count, 1)

    def test_get_missing_document(self):
        self.collection.document.return_value.get.return_value = snapshot("P1", None, exists=False)
        self.assertIsNone(self.store.get("patients", "P1"))

    def test_create_returns_new_id(self):
        ref = mock.Mock()
        ref.id = "P9"
        self.collection.add.return_value = (object(), ref)
        self.assertEqual(self.store.create("patients", {"name": "Jane"}), "P9")

    def test_permission_denied(self):
        self.collection.document.return_value.delete.side_effect = PermissionDenied("Missing or insufficient permissions.")
        with self.assertRaises(StorePermissionError) as ctx:
            self.store.delete("patients", "P1")
        self.assertEqual(ctx.exception.status_code, 403)

    def test_missing_index(self):
        self.collection.where.return_value.stream.side_effect = FailedPrecondition("The query requires an index.")
        with self.assertRaises(StorePreconditionError):
            self.store.find("prescriptions", {"patientId": "P1"})

    def test_other_api_errors(self):
        self.collection.document.return_value.update.side_effect = InternalServerError("backend")
        with self.assertRaises(StoreError):
            self.store.update("patients", "P1", {"name": "X"})


if __name__ == '__main__':
    unittest.main()
