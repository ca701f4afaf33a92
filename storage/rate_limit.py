"""
Quota guard run before any batch of GitHub calls.
The quota is read fresh on every check; this module never stores or mutates it.
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, Callable, Optional

from errors import RateLimitExceededError

logger = logging.getLogger(__name__)

# conservative: fail while a few dozen calls are still left rather than risk a hard block
DEFAULT_RATE_FLOOR = int(os.getenv("SPIRIT_RATE_FLOOR", "20"))


@dataclass(frozen=True)
class RateLimitState:
    remaining: int
    reset_at: Optional[float]
    limit: int

    @classmethod
    def from_api(cls, data: dict) -> 'RateLimitState':
        """Parse the body of GET /rate_limit (resources.core, falling back to the top-level rate)."""
        core = ((data or {}).get('resources') or {}).get('core') or (data or {}).get('rate') or {}
        reset = core.get('reset')
        return cls(
            remaining=int(core.get('remaining') or 0),
            reset_at=float(reset) if reset is not None else None,
            limit=int(core.get('limit') or 0),
        )


class RateLimitGuard:
    """
    Fail fast when the remaining quota drops below `floor`.

    fetch_state is any callable returning a RateLimitState (normally GitHubClient.get_rate_limit).
    """

    def __init__(self, fetch_state: Callable[[], RateLimitState], floor: Optional[int] = None):
        self.fetch_state = fetch_state
        self.floor = int(floor) if floor is not None else DEFAULT_RATE_FLOOR

    def check(self) -> RateLimitState:
        state = self.fetch_state()
        if state.remaining < self.floor:
            logger.warning(f"Rate limit guard tripped: {state.remaining}/{state.limit} remaining (floor {self.floor})")
            raise RateLimitExceededError(reset_at=state.reset_at, remaining=state.remaining)
        return state

    def run(self, fn: Callable[..., Any], *args, **kwargs) -> Any:
        """Check the quota, then call fn. fn is never attempted when the guard trips."""
        self.check()
        return fn(*args, **kwargs)


__all__ = ["RateLimitState", "RateLimitGuard", "DEFAULT_RATE_FLOOR"]
