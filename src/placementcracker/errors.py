"""Error taxonomy shared by the generation workflow and the HTTP layer.

Every error carries the HTTP status it maps to and a message that is safe to
show to the end user. ``extra`` adds machine-readable fields to the JSON body.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any


class PlacementError(Exception):
    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def extra(self) -> dict[str, Any]:
        return {}


class Unauthenticated(PlacementError):
    status_code = 401


class ValidationFailed(PlacementError):
    status_code = 400


class NotFound(PlacementError):
    status_code = 404


class QuotaExceeded(PlacementError):
    status_code = 403

    def __init__(
        self,
        message: str,
        *,
        feature: str,
        limit: int | None = None,
        resets_at: datetime | None = None,
    ):
        super().__init__(message)
        self.feature = feature
        self.limit = limit
        self.resets_at = resets_at

    @property
    def extra(self) -> dict[str, Any]:
        return {
            "feature": self.feature,
            "limit": self.limit,
            "resets_at": self.resets_at.isoformat() if self.resets_at else None,
        }


class GateMisconfigured(PlacementError):
    status_code = 500


class UpstreamFailure(PlacementError):
    status_code = 500

    def __init__(self, message: str, *, kind: str):
        super().__init__(message)
        self.kind = kind

    @property
    def extra(self) -> dict[str, Any]:
        return {"kind": self.kind}


class PersistenceFailure(PlacementError):
    status_code = 500
