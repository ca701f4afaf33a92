"""
Error taxonomy shared by the client, the pipeline and the outer surfaces.
Each error carries a short kind and the HTTP status the surfaces map it to.
"""
import math
from datetime import datetime, timezone
from typing import Optional


class SpiritError(Exception):
    """Base exception for all gh-spirit errors."""

    kind = 'internal'
    status = 500

    def __init__(self, message: str = ''):
        self.message = message or self.__class__.__doc__ or self.kind
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {'error': self.kind, 'message': self.message}


class ValidationError(SpiritError):
    """Missing or malformed subject identifier."""

    kind = 'validation'
    status = 400


class AuthenticationError(SpiritError):
    """GitHub token missing or rejected."""

    kind = 'authentication'
    status = 401


class NotFoundError(SpiritError):
    """GitHub has no such user or resource."""

    kind = 'not_found'
    status = 404


class RateLimitExceededError(SpiritError):
    """Raised when the remaining GitHub quota is below the guard floor."""

    kind = 'rate_limit'
    status = 429

    def __init__(self, reset_at: Optional[float] = None, remaining: Optional[int] = None, message: str = ''):
        self.reset_at = reset_at
        self.remaining = remaining
        if not message:
            message = f"GitHub API rate limit near exceeded. {remaining} calls remaining."
            if reset_at:
                reset_dt = datetime.fromtimestamp(float(reset_at), tz=timezone.utc)
                minutes = max(0, math.ceil((float(reset_at) - datetime.now(timezone.utc).timestamp()) / 60))
                message += f" Resets in {minutes} minutes at {reset_dt.isoformat()}"
        super().__init__(message)

    def retry_after(self) -> int:
        """Seconds until the quota resets (0 when unknown or already past)."""
        if not self.reset_at:
            return 0
        return max(0, int(float(self.reset_at) - datetime.now(timezone.utc).timestamp()))

    def to_dict(self) -> dict:
        data = super().to_dict()
        data['resetAt'] = self.reset_at
        data['remaining'] = self.remaining
        return data


class TransientUpstreamError(SpiritError):
    """Network-level or 5xx failure talking to GitHub."""

    kind = 'transient'
    status = 500


class UpstreamError(SpiritError):
    """Unclassified GitHub failure."""

    kind = 'upstream'
    status = 500

    def __init__(self, message: str = '', upstream_status: Optional[int] = None):
        self.upstream_status = upstream_status
        super().__init__(message)


__all__ = [
    "SpiritError",
    "ValidationError",
    "AuthenticationError",
    "NotFoundError",
    "RateLimitExceededError",
    "TransientUpstreamError",
    "UpstreamError",
]
