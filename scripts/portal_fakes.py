"""In-memory stand-ins for Firestore, the notification channel, the image
host and the countdown thread, shared by the test modules in this folder."""
import copy
import itertools
from typing import Any, Dict, List, Optional


class FakeStore:
    """Same surface as DocumentStore, backed by dicts. Records every call."""

    def __init__(self, data: Optional[Dict[str, Dict[str, dict]]] = None):
        self.data: Dict[str, Dict[str, dict]] = copy.deepcopy(data or {})
        self.calls: List[tuple] = []
        self.failures: Dict[tuple, Exception] = {}
        self._ids = itertools.count(1)

    def fail_on(self, method: str, collection: str, exc: Exception):
        self.failures[(method, collection)] = exc

    def _record(self, method: str, collection: str, *args):
        self.calls.append((method, collection) + args)
        exc = self.failures.get((method, collection))
        if exc is not None:
            raise exc

    def docs(self, collection: str) -> Dict[str, dict]:
        return self.data.setdefault(collection, {})

    def find(self, collection: str, filters: Dict[str, Any]) -> List[dict]:
        self._record("find", collection, dict(filters))
        return [
            {"id": doc_id, **doc}
            for doc_id, doc in self.docs(collection).items()
            if all(doc.get(f) == v for f, v in filters.items())
        ]

    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        self._record("get", collection, doc_id)
        doc = self.docs(collection).get(doc_id)
        return None if doc is None else {"id": doc_id, **doc}

    def create(self, collection: str, fields: dict) -> str:
        self._record("create", collection, dict(fields))
        doc_id = f"{collection}-{next(self._ids)}"
        self.docs(collection)[doc_id] = dict(fields)
        return doc_id

    def set(self, collection: str, doc_id: str, fields: dict, merge: bool = False):
        self._record("set", collection, doc_id)
        current = self.docs(collection).get(doc_id, {}) if merge else {}
        self.docs(collection)[doc_id] = {**current, **fields}

    def update(self, collection: str, doc_id: str, fields: dict):
        self._record("update", collection, doc_id, dict(fields))
        self.docs(collection)[doc_id].update(fields)

    def delete(self, collection: str, doc_id: str):
        self._record("delete", collection, doc_id)
        self.docs(collection).pop(doc_id, None)

    def append_to_array(self, collection: str, doc_id: str, field: str, item: dict):
        self._record("append_to_array", collection, doc_id, field)
        doc = self.docs(collection)[doc_id]
        doc.setdefault(field, [])
        if item not in doc[field]:
            doc[field].append(item)

    def mutations(self) -> List[tuple]:
        return [c for c in self.calls if c[0] not in ("find", "get")]


class FakeChannel:
    def __init__(self, error: Optional[Exception] = None):
        self.published = []
        self.error = error

    def publish(self, notification) -> str:
        if self.error is not None:
            raise self.error
        self.published.append(notification)
        return f"notification-{len(self.published)}"

    @property
    def last_code(self) -> Optional[str]:
        return self.published[-1].code if self.published else None


class FakeUploader:
    def __init__(self, url: str = "https://img.example.com/rx.jpg", error: Optional[Exception] = None):
        self.url = url
        self.error = error
        self.calls = []

    def upload(self, data: bytes, filename: str = "prescription", content_type: str = "image/jpeg") -> str:
        self.calls.append((data, filename, content_type))
        if self.error is not None:
            raise self.error
        return self.url


class ManualTimer:
    """Never ticks on its own; the test drives the machine's tick()."""

    def __init__(self, on_tick, on_expire):
        self.on_tick = on_tick
        self.on_expire = on_expire
        self.started_with: Optional[int] = None
        self.cancelled = 0

    def start(self, ttl_seconds: int):
        self.started_with = ttl_seconds

    def cancel(self):
        self.cancelled += 1


class TimerRecorder:
    """timer_factory that keeps every ManualTimer it hands out."""

    def __init__(self):
        self.timers: List[ManualTimer] = []

    def __call__(self, on_tick, on_expire) -> ManualTimer:
        timer = ManualTimer(on_tick, on_expire)
        self.timers.append(timer)
        return timer

    @property
    def last(self) -> Optional[ManualTimer]:
        return self.timers[-1] if self.timers else None
