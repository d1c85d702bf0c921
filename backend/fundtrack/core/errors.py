"""Error taxonomy shared by the service and the client.

Each error carries the HTTP status it maps to and a short ``detail`` code,
the same codes the routes put in their JSON bodies.
"""
from __future__ import annotations

from typing import Any


class FundTrackError(Exception):
    status_code = 500
    detail = "server_error"

    def __init__(self, detail: str | None = None, message: str | None = None):
        if detail is not None:
            self.detail = detail
        self.message = message or self.detail
        super().__init__(self.message)

    def to_body(self) -> dict[str, Any]:
        return {"detail": self.detail}


class ValidationError(FundTrackError):
    status_code = 400
    detail = "validation_error"


class NotFoundError(FundTrackError):
    status_code = 404
    detail = "not_found"


class ConflictError(FundTrackError):
    status_code = 409
    detail = "entry_exists"

    def __init__(self, existing: dict[str, Any] | None = None, detail: str | None = None, message: str | None = None):
        super().__init__(detail, message)
        self.existing = existing

    def to_body(self) -> dict[str, Any]:
        return {"detail": self.detail, "existing": self.existing}


class AuthError(FundTrackError):
    status_code = 401
    detail = "invalid_credentials"


class CapabilityError(FundTrackError):
    """The device cannot run the requested credential flow, or the user declined it."""

    detail = "capability_unavailable"
