"""Error taxonomy for the analysis client.

Every failure surfaced to callers derives from SuspiciousActivityError, so a
UI layer can render one dismissible message per failed action.
"""

from typing import Optional


class SuspiciousActivityError(Exception):
    """Base class for all client errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthMissing(SuspiciousActivityError):
    """No bearer token is available; the request was never sent."""

    def __init__(self, message: str = "No authentication token available"):
        super().__init__(message)


class TransportFailure(SuspiciousActivityError):
    """HTTP or network level failure (non-2xx, connection error, bad body)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"HTTP {self.status_code}: {self.message}"
        return self.message


class MalformedResponse(TransportFailure):
    """Response body did not decode into the expected entities."""


class ApiRejected(SuspiciousActivityError):
    """The backend answered with success=false."""


class InvalidSelection(SuspiciousActivityError):
    """Client-side precondition failed before any network call."""


class JobNotFound(SuspiciousActivityError, LookupError):
    """The analysis job is not known to the store."""

    def __init__(self, job_id: int):
        super().__init__(f"Analysis job {job_id} not found")
        self.job_id = job_id


class DetectionNotFound(SuspiciousActivityError, LookupError):
    """The detection is not present in any fetched job detail."""

    def __init__(self, detection_id: int):
        super().__init__(f"Detection {detection_id} not found")
        self.detection_id = detection_id
