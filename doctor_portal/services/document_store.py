"""Firestore access for the portal services.

Every document comes back as a plain dict with its id under "id".
Google API failures are translated into the portal's store errors so
routes can report them without knowing about Firestore.
"""
from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, List, Optional

from firebase_admin import firestore
from google.api_core.exceptions import (
    FailedPrecondition,
    GoogleAPICallError,
    PermissionDenied,
    RetryError,
)
from google.cloud.firestore import FieldFilter

from doctor_portal.core.errors import (
    StoreError,
    StorePermissionError,
    StorePreconditionError,
)


@contextmanager
def _translate_errors(action: str, collection: str):
    try:
        yield
    except PermissionDenied as e:
        raise StorePermissionError(f"Permission denied on {collection}: {e.message}") from e
    except FailedPrecondition as e:
        # Usually a composite index that still has to be created
        raise StorePreconditionError(
            f"Query on {collection} needs an index or precondition: {e.message}"
        ) from e
    except (GoogleAPICallError, RetryError) as e:
        raise StoreError(f"Failed to {action} {collection}: {e}") from e


def _with_id(snapshot) -> Dict[str, Any]:
    return {"id": snapshot.id, **(snapshot.to_dict() or {})}


class DocumentStore:
    def __init__(self, client=None):
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = firestore.client()
        return self._client

    def find(self, collection: str, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Equality-only query; all filters must match."""
        query = self.client.collection(collection)
        for field, value in filters.items():
            query = query.where(filter=FieldFilter(field, "==", value))
        with _translate_errors("query", collection):
            return [_with_id(doc) for doc in query.stream()]

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        with _translate_errors("read", collection):
            snapshot = self.client.collection(collection).document(doc_id).get()
        if not snapshot.exists:
            return None
        return _with_id(snapshot)

    def create(self, collection: str, fields: Dict[str, Any]) -> str:
        with _translate_errors("create in", collection):
            _, ref = self.client.collection(collection).add(fields)
        return ref.id

    def set(self, collection: str, doc_id: str, fields: Dict[str, Any], merge: bool = False):
        with _translate_errors("write", collection):
            self.client.collection(collection).document(doc_id).set(fields, merge=merge)

    def update(self, collection: str, doc_id: str, fields: Dict[str, Any]):
        with _translate_errors("update", collection):
            self.client.collection(collection).document(doc_id).update(fields)

    def delete(self, collection: str, doc_id: str):
        with _translate_errors("delete from", collection):
            self.client.collection(collection).document(doc_id).delete()

    def append_to_array(self, collection: str, doc_id: str, field: str, item: Dict[str, Any]):
        with _translate_errors("update", collection):
            self.client.collection(collection).document(doc_id).update(
                {field: firestore.ArrayUnion([item])}
            )
