import json
from datetime import datetime

from doctor_portal.core.config import settings


def _emit(tag: str, event: str, data: dict):
    entry = {
        "timestamp": datetime.now().isoformat(),
        "event": event,
        "data": data,
    }
    print(f"\n[{tag}] {event}:")
    print(json.dumps(entry, indent=2, default=str))


def log_debug(event: str, data: dict):
    """
    Logs structured debug info if enabled.
    """
    if not settings.PORTAL_DEBUG_MODE:
        return
    _emit("PORTAL DEBUG", event, data)


def log_error(event: str, data: dict):
    """
    Logs a failure that was handled without surfacing to the operator.
    Always printed, regardless of debug mode.
    """
    _emit("PORTAL ERROR", event, data)
