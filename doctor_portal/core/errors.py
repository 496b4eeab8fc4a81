"""Domain exceptions raised by the portal services.

Routes translate these into HTTP responses (see api/deps.py); services
never build HTTP errors themselves.
"""


class PortalError(Exception):
    """Base class for every error the portal surfaces to the operator."""

    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.__class__.__doc__ or ""


# -------------------------
# Document store
# -------------------------
class StoreError(PortalError):
    """The document store rejected or failed the request."""


class StorePermissionError(StoreError):
    """The document store denied access."""

    status_code = 403


class StorePreconditionError(StoreError):
    """The query needs a missing index or a failed precondition."""

    status_code = 412


# -------------------------
# Blob upload
# -------------------------
class BlobUploadError(PortalError):
    """The image host failed to store the file."""

    status_code = 502


# -------------------------
# Secure access
# -------------------------
class PatientNotFoundError(PortalError):
    """No patient matched the search."""

    status_code = 404


class AccessStateError(PortalError):
    """The operation is not allowed in the current access state."""

    status_code = 409


class InvalidOtpError(PortalError):
    """The verification code does not match."""

    status_code = 400


class OtpAttemptsExceededError(PortalError):
    """Too many wrong codes; the access session was closed."""

    status_code = 429


# -------------------------
# Dashboard
# -------------------------
class InvalidStatusTransition(PortalError):
    """The appointment cannot move to the requested status."""

    status_code = 400


class RecordNotFoundError(PortalError):
    """The requested document does not exist."""

    status_code = 404
