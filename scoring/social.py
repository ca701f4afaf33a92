"""
Follower / following timelines rebuilt from the recent events feed.

GitHub only exposes current totals, so the history is reconstructed backwards:
the total at the end of a day is the current total minus every follow event
that happened after that day. Days are UTC calendar days.
"""
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional

from normalize.models import Event, TimelinePoint

FOLLOW_EVENT = 'FollowEvent'
TIMELINE_DAYS = 30


def _today(now: Optional[datetime]) -> date:
    return (now if now is not None else datetime.now(timezone.utc)).astimezone(timezone.utc).date()


def running_totals(
    events: List[Event],
    current_count: int,
    days: int = TIMELINE_DAYS,
    now: Optional[datetime] = None,
    event_type: str = FOLLOW_EVENT,
) -> List[TimelinePoint]:
    """
    Daily totals for the last `days` days ending today (days + 1 points, oldest first).
    Days without events are filled in; counts never go below zero.
    """
    today = _today(now)
    event_days = sorted(e.timestamp.date() for e in events if e.type == event_type)

    points: List[TimelinePoint] = []
    for offset in range(days, -1, -1):
        day = today - timedelta(days=offset)
        later = sum(1 for d in event_days if d > day)
        points.append(TimelinePoint(date=day.isoformat(), count=max(0, int(current_count) - later)))
    return points
