"""
Contribution metrics over normalized events.
Window aggregation, the day/hour heatmap and coarse trend statistics.
"""
from datetime import datetime, timedelta, timezone
from typing import List, Dict, Optional, Tuple

from normalize.models import Event, ActivityWindow, HeatmapCell, ActivityTrends, DAY_NAMES

# window name -> trailing days
WINDOWS = {
    'daily': 1,
    'weekly': 7,
    'monthly': 30,
    'yearly': 365,
}

# exact event type -> ActivityWindow counter
CATEGORY_TYPES = {
    'PushEvent': 'commits',
    'PullRequestEvent': 'pull_requests',
    'IssuesEvent': 'issues',
    'IssueCommentEvent': 'comments',
}

MAX_INTENSITY = 4


def _now(now: Optional[datetime]) -> datetime:
    return now if now is not None else datetime.now(timezone.utc)


def aggregate(events: List[Event], window_days: int, now: Optional[datetime] = None) -> ActivityWindow:
    """
    Count contributions in the trailing window [now - window_days, now].
    Each call filters the full event list on its own; windows are never derived from each other.
    """
    now = _now(now)
    cutoff = now - timedelta(days=window_days)
    filtered = [e for e in events if e.timestamp >= cutoff]

    counts = {attr: 0 for attr in CATEGORY_TYPES.values()}
    for e in filtered:
        attr = CATEGORY_TYPES.get(e.type)
        if attr:
            counts[attr] += 1

    return ActivityWindow(
        repositories=len({e.repo_id for e in filtered}),
        contributions=len(filtered),
        timestamp=now.isoformat(),
        **counts,
    )


def aggregate_windows(events: List[Event], now: Optional[datetime] = None) -> Dict[str, ActivityWindow]:
    """Aggregate every named window (daily, weekly, monthly, yearly) against the same clock."""
    now = _now(now)
    return {name: aggregate(events, days, now) for name, days in WINDOWS.items()}


def build_heatmap(events: List[Event]) -> List[HeatmapCell]:
    """
    Map events onto a sparse 7x24 day/hour grid. Intensity saturates at MAX_INTENSITY,
    so the map shows relative rather than absolute density.
    """
    cells: Dict[Tuple[int, int], HeatmapCell] = {}
    for e in events:
        key = (e.day, e.hour)
        cell = cells.get(key)
        if cell is None:
            cells[key] = HeatmapCell(day=e.day, hour=e.hour, intensity=1)
        else:
            cell.intensity = min(MAX_INTENSITY, cell.intensity + 1)
    return list(cells.values())


def weekly_growth(events: List[Event], now: Optional[datetime] = None) -> float:
    """
    Week-over-week growth in percent.
    this week: ts >= now-7d; last week: now-14d <= ts < now-7d. Zero when last week is empty.
    """
    now = _now(now)
    week_start = now - timedelta(days=7)
    prev_start = now - timedelta(days=14)
    this_week = sum(1 for e in events if e.timestamp >= week_start)
    last_week = sum(1 for e in events if prev_start <= e.timestamp < week_start)
    if not last_week:
        return 0.0
    return (this_week - last_week) / last_week * 100


def _argmax(values: List[int]) -> int:
    # first index wins on ties
    best = 0
    for i, v in enumerate(values):
        if v > values[best]:
            best = i
    return best


def analyze_trends(events: List[Event], now: Optional[datetime] = None) -> ActivityTrends:
    by_day = [0] * 7
    by_hour = [0] * 24
    for e in events:
        by_day[e.day] += 1
        by_hour[e.hour] += 1

    return ActivityTrends(
        daily_average=len(events) / 7,
        weekly_growth=weekly_growth(events, now),
        most_active_day=DAY_NAMES[_argmax(by_day)],
        most_active_time=f"{_argmax(by_hour)}:00",
    )
