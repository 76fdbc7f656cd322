"""Error taxonomy shared by the platform clients."""

from __future__ import annotations

import httpx


class CatalogSyncError(RuntimeError):
    pass


class RateLimitExceeded(CatalogSyncError):
    """Every attempt allowed for a call came back as "too many requests"."""


class ValidationRejected(CatalogSyncError):
    """The platform refused the payload (HTTP 422)."""

    def __init__(self, message: str, *, body: str = "") -> None:
        super().__init__(message)
        self.body = body


class ResourceNotFound(CatalogSyncError):
    pass


class DependencyUnavailable(CatalogSyncError):
    """A credential or location required to proceed could not be obtained."""


class UpstreamError(CatalogSyncError):
    """Any other non-success response."""

    def __init__(self, message: str, *, status_code: int, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body

    @classmethod
    def from_response(cls, response: httpx.Response) -> "UpstreamError":
        request = response.request
        return cls(
            f"{request.method} {request.url} failed with {response.status_code}",
            status_code=response.status_code,
            body=response.text,
        )
