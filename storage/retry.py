"""
Bounded retry with exponential backoff for transient upstream failures.
This module centralizes retry logic so callers (e.g. ingest.github) can wrap any upstream call.

Only transient failures are retried. Authentication, not-found and rate-limit
errors go straight back to the caller.
"""

import logging
import os
import random
import time
from typing import Any, Callable, Optional, Tuple, Type

import requests

from errors import TransientUpstreamError

logger = logging.getLogger(__name__)

# retry/backoff defaults from environment
DEFAULT_MAX_RETRIES = int(os.getenv("SPIRIT_MAX_RETRIES", "3"))
DEFAULT_BACKOFF_BASE = float(os.getenv("SPIRIT_BACKOFF_BASE", "1.0"))
DEFAULT_BACKOFF_JITTER = float(os.getenv("SPIRIT_BACKOFF_JITTER", "0") or 0)
DEFAULT_MAX_BACKOFF = float(os.getenv("SPIRIT_MAX_BACKOFF", "30.0"))

TRANSIENT_ERRORS: Tuple[Type[BaseException], ...] = (
    TransientUpstreamError,
    requests.exceptions.ConnectionError,
    requests.exceptions.Timeout,
)

# runtime-overrides
_runtime_max_retries: Optional[int] = None
_runtime_backoff_base: Optional[float] = None


def configure_retry(max_retries: Optional[int] = None, backoff_base: Optional[float] = None):
    """Configure retry/backoff defaults at runtime (e.g. from CLI)."""
    global _runtime_max_retries, _runtime_backoff_base
    if max_retries is not None:
        if int(max_retries) < 1:
            raise ValueError("max_retries must be at least 1")
        _runtime_max_retries = int(max_retries)
    if backoff_base is not None:
        _runtime_backoff_base = float(backoff_base)


def reset_retry_config():
    """Drop runtime overrides and fall back to environment defaults."""
    global _runtime_max_retries, _runtime_backoff_base
    _runtime_max_retries = None
    _runtime_backoff_base = None


def _resolve_params(max_attempts: Optional[int], backoff_base: Optional[float]) -> Tuple[int, float]:
    if max_attempts is not None:
        attempts = int(max_attempts)
    elif _runtime_max_retries is not None:
        attempts = _runtime_max_retries
    else:
        attempts = DEFAULT_MAX_RETRIES

    if backoff_base is not None:
        base = float(backoff_base)
    elif _runtime_backoff_base is not None:
        base = _runtime_backoff_base
    else:
        base = DEFAULT_BACKOFF_BASE
    return max(1, attempts), base


def backoff_delay(attempt: int, base: float, jitter: float = DEFAULT_BACKOFF_JITTER, max_backoff: float = DEFAULT_MAX_BACKOFF) -> float:
    """Delay before retry number `attempt` (1-based): base, 2*base, 4*base, ..."""
    delay = base * (2 ** (attempt - 1))
    if jitter:
        delay += random.uniform(0, jitter)
    return min(delay, max_backoff)


def call_with_retries(
    fn: Callable[..., Any],
    *args,
    max_attempts: Optional[int] = None,
    backoff_base: Optional[float] = None,
    retry_on: Tuple[Type[BaseException], ...] = TRANSIENT_ERRORS,
    sleep: Callable[[float], Any] = time.sleep,
    **kwargs,
) -> Any:
    """
    Call fn(*args, **kwargs), retrying transient failures.

    With the defaults this makes at most 3 attempts, sleeping 1s then 2s between them.
    After the last attempt the last error is re-raised unchanged.
    """
    attempts, base = _resolve_params(max_attempts, backoff_base)
    attempt = 0
    while True:
        attempt += 1
        try:
            return fn(*args, **kwargs)
        except retry_on as ex:
            if attempt >= attempts:
                logger.warning(f"Giving up after {attempt} attempt(s): {ex}")
                raise
            delay = backoff_delay(attempt, base)
            logger.warning(f"Transient failure (attempt {attempt}/{attempts}): {ex}. Retrying in {delay:.1f}s...")
            sleep(delay)


__all__ = ["configure_retry", "reset_retry_config", "call_with_retries", "backoff_delay", "TRANSIENT_ERRORS"]
