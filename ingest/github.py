"""
GitHub REST client used by the analytics service.
Fetches and parses JSON; every call goes through storage.retry and HTTP failures are
mapped onto the errors module taxonomy. The token is only checked on first use.
"""
import logging
import time
from typing import List, Dict, Any, Optional

import requests

from errors import (
    AuthenticationError,
    NotFoundError,
    RateLimitExceededError,
    TransientUpstreamError,
    UpstreamError,
)
from storage.rate_limit import RateLimitState
from storage.retry import call_with_retries

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.github.com"
DEFAULT_TIMEOUT = 30.0
# the events API never returns more than this per page
EVENTS_PER_PAGE = 100
TRANSIENT_STATUSES = (500, 502, 503, 504)


def _header_float(headers: Dict[str, Any], key: str) -> Optional[float]:
    try:
        val = headers.get(key)
        return float(val) if val is not None else None
    except (TypeError, ValueError):
        return None


def raise_for_github_status(resp) -> None:
    """Map a non-2xx GitHub response onto the error taxonomy."""
    status = getattr(resp, 'status_code', 0)
    if 200 <= status < 300:
        return
    headers = getattr(resp, 'headers', {}) or {}
    try:
        body = resp.json()
    except ValueError:
        body = None
    message = (body.get('message') or '') if isinstance(body, dict) else ''

    if status == 401:
        raise AuthenticationError("GitHub authentication failed" + (f": {message}" if message else ""))
    remaining = _header_float(headers, 'X-RateLimit-Remaining')
    if status == 429 or (status == 403 and remaining is not None and remaining <= 0):
        reset_at = _header_float(headers, 'X-RateLimit-Reset')
        if reset_at is None:
            retry_after = _header_float(headers, 'Retry-After')
            if retry_after is not None:
                reset_at = time.time() + retry_after
        raise RateLimitExceededError(reset_at=reset_at, remaining=int(remaining or 0))
    if status == 404:
        raise NotFoundError(message or "Not Found")
    if status in TRANSIENT_STATUSES:
        raise TransientUpstreamError(f"GitHub returned {status}: {message}")
    raise UpstreamError(f"GitHub returned {status}: {message}", upstream_status=status)


class GitHubClient:
    """Simple GitHub client for user profiles, event feeds and quota."""

    def __init__(
        self,
        token: Optional[str],
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        max_attempts: Optional[int] = None,
        backoff_base: Optional[float] = None,
    ):
        self.token = token
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip('/')
        self.timeout = float(timeout) if timeout is not None else DEFAULT_TIMEOUT
        self.max_attempts = max_attempts
        self.backoff_base = backoff_base

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}" if self.token else "",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "gh-spirit",
        }

    def _get_once(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}{path}"
        logger.debug(f"GET {url} params={params or {}}")
        try:
            resp = requests.get(url, headers=self.headers, params=params or {}, timeout=self.timeout)
        except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as ex:
            raise TransientUpstreamError(f"Could not reach GitHub at {url}: {ex}") from ex
        raise_for_github_status(resp)
        try:
            return resp.json()
        except ValueError as ex:
            raise UpstreamError(f"Invalid JSON from {url}: {ex}", upstream_status=resp.status_code)

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        if not self.token:
            raise AuthenticationError("GitHub token is not configured")
        return call_with_retries(
            self._get_once, path, params,
            max_attempts=self.max_attempts,
            backoff_base=self.backoff_base,
        )

    def get_user(self, username: str) -> Dict[str, Any]:
        return self._get(f"/users/{username}")

    def get_user_events(self, username: str, per_page: int = EVENTS_PER_PAGE) -> List[Dict[str, Any]]:
        """Events performed by the user (most recent first, capped by GitHub)."""
        return self._get(f"/users/{username}/events", {"per_page": per_page}) or []

    def get_received_events(self, username: str, per_page: int = EVENTS_PER_PAGE) -> List[Dict[str, Any]]:
        """Events other users performed towards this user (e.g. follows)."""
        return self._get(f"/users/{username}/received_events", {"per_page": per_page}) or []

    def get_rate_limit(self) -> RateLimitState:
        return RateLimitState.from_api(self._get("/rate_limit"))
