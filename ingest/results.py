"""
Explicit outcome of an upstream fetch.

Fetched  - data came back.
Empty    - the upstream has nothing for this subject (404 or an empty payload); a valid state.
Failed   - anything else; callers re-raise it rather than defaulting.
"""
from dataclasses import dataclass
from typing import Any, Callable, Union

import requests

from errors import SpiritError, NotFoundError


@dataclass(frozen=True)
class Fetched:
    value: Any


@dataclass(frozen=True)
class Empty:
    reason: str = ''


@dataclass(frozen=True)
class Failed:
    error: BaseException

    @property
    def kind(self) -> str:
        return getattr(self.error, 'kind', 'transient')

    def raise_error(self):
        raise self.error


FetchResult = Union[Fetched, Empty, Failed]


def fetch_result(fn: Callable[..., Any], *args, **kwargs) -> FetchResult:
    """Run a fetch and classify its outcome instead of letting 'no data' surface as an exception."""
    try:
        value = fn(*args, **kwargs)
    except NotFoundError as ex:
        return Empty(reason=ex.message)
    except (SpiritError, requests.exceptions.RequestException) as ex:
        return Failed(error=ex)
    if value is None or value == [] or value == {}:
        return Empty(reason='empty payload')
    return Fetched(value=value)


def value_or(result: FetchResult, default: Any) -> Any:
    """Fetched value, the default for Empty, and a raise for Failed."""
    if isinstance(result, Failed):
        result.raise_error()
    if isinstance(result, Empty):
        return default
    return result.value
