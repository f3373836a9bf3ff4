"""Wire-level request bodies and tagged response results."""

from suspicious_activity.schemas.requests import StartAnalysisRequest
from suspicious_activity.schemas.results import ApiError, ApiResult, Ok, TransportError

__all__ = ["ApiError", "ApiResult", "Ok", "StartAnalysisRequest", "TransportError"]
