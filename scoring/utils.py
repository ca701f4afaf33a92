"""
Scoring utility functions.
Loads the archetype rule table from YAML so the classifier itself stays a pure function
over whatever table it is handed.
"""
from functools import lru_cache
from typing import Dict, Any, Optional, Tuple
import logging
import os

import yaml

from normalize.models import ArchetypeProfile, ArchetypeConditions

logger = logging.getLogger(__name__)

# filename of the bundled rule table
ARCHETYPES_FILENAME = 'archetypes.yaml'

PATTERNS = ('diurnal', 'nocturnal', 'crepuscular')
CONSISTENCY_LEVELS = ('high', 'medium', 'low')

_CONDITION_KEYS = ('min_commits', 'min_prs', 'min_issues', 'activity_pattern', 'consistency')


def default_profiles_path() -> str:
    """Bundled table, unless SPIRIT_ARCHETYPES points somewhere else."""
    return os.getenv('SPIRIT_ARCHETYPES') or os.path.join(os.path.dirname(__file__), ARCHETYPES_FILENAME)


def _parse_conditions(raw: Dict[str, Any], name: str) -> ArchetypeConditions:
    raw = raw or {}
    unknown = set(raw) - set(_CONDITION_KEYS)
    if unknown:
        raise ValueError(f"Profile '{name}' has unknown conditions: {', '.join(sorted(unknown))}")
    pattern = raw.get('activity_pattern')
    if pattern is not None and pattern not in PATTERNS:
        raise ValueError(f"Profile '{name}' has invalid activity_pattern: {pattern}")
    consistency = raw.get('consistency')
    if consistency is not None and consistency not in CONSISTENCY_LEVELS:
        raise ValueError(f"Profile '{name}' has invalid consistency: {consistency}")
    return ArchetypeConditions(
        min_commits=int(raw['min_commits']) if raw.get('min_commits') is not None else None,
        min_prs=int(raw['min_prs']) if raw.get('min_prs') is not None else None,
        min_issues=int(raw['min_issues']) if raw.get('min_issues') is not None else None,
        activity_pattern=pattern,
        consistency=consistency,
    )


def parse_profiles(doc: Any) -> Tuple[ArchetypeProfile, ...]:
    """Build profiles from an already-parsed document ({'profiles': [...]} or a bare list)."""
    items = doc.get('profiles') if isinstance(doc, dict) else doc
    if not isinstance(items, list):
        raise ValueError("Archetype table must be a list of profiles")
    profiles = []
    for item in items:
        name = item.get('name')
        if not name:
            raise ValueError("Archetype profile without a name")
        profiles.append(ArchetypeProfile(
            name=name,
            traits=tuple(item.get('traits') or ()),
            color=item.get('color') or '',
            emoji=item.get('emoji') or '',
            conditions=_parse_conditions(item.get('conditions'), name),
        ))
    return tuple(profiles)


@lru_cache(maxsize=8)
def load_profiles(path: Optional[str] = None) -> Tuple[ArchetypeProfile, ...]:
    """
    Load the archetype rule table once per path.
    Raises ValueError when the file is missing or malformed.
    """
    path = path or default_profiles_path()
    if not os.path.exists(path):
        raise ValueError(f"Archetype table not found at: {path}")
    with open(path, 'r', encoding='utf-8') as f:
        doc = yaml.safe_load(f) or {}
    profiles = parse_profiles(doc)
    logger.debug(f"Loaded {len(profiles)} archetype profile(s) from {path}")
    return profiles
