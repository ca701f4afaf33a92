"""
Normalization utility helpers.
Small helpers to turn raw GitHub payloads into normalize.models entities.

All timestamps are converted to UTC, which is the only clock used for
day-of-week / hour-of-day bucketing downstream.
"""
import logging
from datetime import datetime, timezone
from typing import Dict, Any, Iterable, List, Optional, Union

from normalize.models import RawEvent, Event, UserProfileData

logger = logging.getLogger(__name__)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp (GitHub uses a trailing 'Z') into an aware UTC datetime.
    Naive values are assumed to already be UTC. Returns None when the value cannot be parsed.
    """
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        text = str(value).strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _as_raw_event(item: Union[RawEvent, Dict[str, Any]]) -> Optional[RawEvent]:
    if isinstance(item, RawEvent):
        return item
    if isinstance(item, dict):
        return RawEvent.from_api(item)
    return None


def normalize_event(item: Union[RawEvent, Dict[str, Any]]) -> Optional[Event]:
    """Return a normalized Event, or None if the event lacks a type or a usable created_at."""
    raw = _as_raw_event(item)
    if raw is None or not raw.type or not raw.created_at:
        return None
    ts = parse_timestamp(raw.created_at)
    if ts is None:
        return None
    repo = raw.repo or {}
    return Event(
        id=raw.id,
        type=raw.type,
        timestamp=ts,
        repo_id=repo.get('id'),
        repo_name=repo.get('name') or '',
        payload=raw.payload or {},
    )


def normalize_events(items: Iterable[Union[RawEvent, Dict[str, Any]]]) -> List[Event]:
    """Filter and convert raw events. Order is preserved, nothing is sorted."""
    events: List[Event] = []
    dropped = 0
    for item in items or []:
        ev = normalize_event(item)
        if ev is None:
            dropped += 1
            continue
        events.append(ev)
    if dropped:
        logger.debug(f"Dropped {dropped} event(s) without type or created_at")
    return events


def normalize_profile(raw: Dict[str, Any], username: str = '') -> UserProfileData:
    """Create the simplified profile from a raw GitHub user dict, filling blanks with defaults."""
    return UserProfileData(
        login=raw.get('login') or username,
        name=raw.get('name') or raw.get('login') or username,
        avatar_url=raw.get('avatar_url') or '',
        bio=raw.get('bio') or '',
        blog=raw.get('blog') or '',
        twitter_username=raw.get('twitter_username') or '',
        followers=int(raw.get('followers') or 0),
        following=int(raw.get('following') or 0),
        created_at=raw.get('created_at'),
    )
