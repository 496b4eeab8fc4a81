from datetime import datetime, timezone
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field, constr

from .patient import PatientRecord


class AccessState(str, Enum):
    SEARCH = "search"
    CONTACT_FOUND = "contact_found"
    VERIFYING = "verifying"
    ACCESSING = "accessing"


LookupKey = Literal["phone", "email"]


class AccessSessionView(BaseModel):
    """What the dashboard may see of an access session. Never holds the code."""

    state: AccessState = AccessState.SEARCH
    target: Optional[PatientRecord] = None
    ttl: Optional[int] = None
    failed_attempts: int = 0


class OtpNotification(BaseModel):
    targetEmail: str
    code: str
    kind: Literal["access_request"] = "access_request"
    issuerName: Optional[str] = None
    issuerOrg: Optional[str] = None
    status: str = "pending"
    createdAt: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


class SearchRequest(BaseModel):
    key: LookupKey
    value: constr(strip_whitespace=True, min_length=1)


class VerifyRequest(BaseModel):
    code: str


class CloseRequest(BaseModel):
    confirm: bool = False
