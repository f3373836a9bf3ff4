"""Tagged results returned by the API client.

Every backend call resolves to exactly one of:

- ``Ok``: HTTP 2xx with ``success: true``; ``payload`` is the decoded body.
- ``ApiError``: HTTP 2xx with ``success: false``; ``message`` is the server's.
- ``TransportError``: non-2xx status, network failure or undecodable body.
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Union

from suspicious_activity.exceptions import ApiRejected, TransportFailure


@dataclass(frozen=True)
class Ok:
    payload: dict[str, Any] = field(default_factory=dict)

    def unwrap(self) -> dict[str, Any]:
        return self.payload


@dataclass(frozen=True)
class ApiError:
    message: str

    def unwrap(self) -> dict[str, Any]:
        raise ApiRejected(self.message)


@dataclass(frozen=True)
class TransportError:
    message: str
    status_code: Optional[int] = None

    def unwrap(self) -> dict[str, Any]:
        raise TransportFailure(self.message, status_code=self.status_code)


ApiResult = Union[Ok, ApiError, TransportError]
