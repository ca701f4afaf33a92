"""
Rule-based "spirit animal" classification.

Pure functions over an activity window, a heatmap and an explicit profile table.
Each profile is scored on its own (20 points per satisfied condition, capped at
100); scores are independent confidences and are never normalized across
profiles, so they do not need to sum to 100.
"""
from typing import List, Optional, Sequence

from normalize.models import (
    ActivityWindow,
    HeatmapCell,
    ArchetypeProfile,
    ArchetypeMatch,
    SpiritAnalysis,
)
from .utils import load_profiles

POINTS_PER_CONDITION = 20
MAX_SCORE = 100
DOMINANT_TRAITS_LIMIT = 5

# daylight is 06:00 through 18:59 (hours 6..18 inclusive)
DAY_START_HOUR = 6
DAY_END_HOUR = 18
PATTERN_FACTOR = 1.5


def determine_activity_pattern(heatmap: List[HeatmapCell]) -> str:
    """
    diurnal if daytime intensity beats night by 1.5x, nocturnal for the reverse,
    crepuscular otherwise. An empty heatmap is diurnal.
    """
    if not heatmap:
        return 'diurnal'
    day = sum(c.intensity for c in heatmap if DAY_START_HOUR <= c.hour <= DAY_END_HOUR)
    night = sum(c.intensity for c in heatmap if c.hour < DAY_START_HOUR or c.hour > DAY_END_HOUR)
    if day > night * PATTERN_FACTOR:
        return 'diurnal'
    if night > day * PATTERN_FACTOR:
        return 'nocturnal'
    return 'crepuscular'


def calculate_consistency(window: ActivityWindow) -> str:
    """
    Consistency bucket from the commit count.

    The threshold is derived from the commit count itself (daily average = commits / 7),
    so any positive count lands in 'high'. Kept as-is for parity with the existing
    classification; see DESIGN.md before changing it.
    """
    commits = window.commits
    if commits <= 0:
        return 'low'
    daily_average = commits / 7
    if commits >= daily_average * 7:
        return 'high'
    if commits >= daily_average * 0.5 * 7:
        return 'medium'
    return 'low'


def score_profile(profile: ArchetypeProfile, window: ActivityWindow, pattern: str, consistency: str) -> int:
    """20 points per satisfied condition. Unset (None or zero) minimums award nothing."""
    cond = profile.conditions
    score = 0
    if cond.min_commits and window.commits >= cond.min_commits:
        score += POINTS_PER_CONDITION
    if cond.min_prs and window.pull_requests >= cond.min_prs:
        score += POINTS_PER_CONDITION
    if cond.min_issues and window.issues >= cond.min_issues:
        score += POINTS_PER_CONDITION
    if cond.activity_pattern is not None and cond.activity_pattern == pattern:
        score += POINTS_PER_CONDITION
    if cond.consistency is not None and cond.consistency == consistency:
        score += POINTS_PER_CONDITION
    return min(score, MAX_SCORE)


def dominant_traits(matches: List[ArchetypeMatch], limit: int = DOMINANT_TRAITS_LIMIT) -> List[str]:
    seen: List[str] = []
    for m in matches:
        for trait in m.traits:
            if trait not in seen:
                seen.append(trait)
    return seen[:limit]


def classify(
    window: ActivityWindow,
    heatmap: List[HeatmapCell],
    profiles: Optional[Sequence[ArchetypeProfile]] = None,
) -> SpiritAnalysis:
    """
    Score every profile against the window and heatmap and rank them.

    Parameters:
        window: current-window activity counts.
        heatmap: day/hour heatmap of the same events.
        profiles: rule table; defaults to the bundled archetypes.yaml.

    Returns:
        SpiritAnalysis with one match per profile, highest score first (ties keep table order).
    """
    if profiles is None:
        profiles = load_profiles()
    pattern = determine_activity_pattern(heatmap)
    consistency = calculate_consistency(window)

    matches = [
        ArchetypeMatch(
            name=p.name,
            score=score_profile(p, window, pattern, consistency),
            traits=list(p.traits),
            color=p.color,
            emoji=p.emoji,
        )
        for p in profiles
    ]
    # sorted() is stable, so equal scores keep table order
    matches = sorted(matches, key=lambda m: m.score, reverse=True)

    return SpiritAnalysis(
        animals=matches,
        dominant_traits=dominant_traits(matches),
        activity_pattern=pattern,
        consistency=consistency,
    )
