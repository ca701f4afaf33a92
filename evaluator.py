"""
Orchestration for the per-user sections: profile, activity, social, spirit analysis and
the combined dashboard. Wires client -> normalize -> scoring with caching and the quota guard.
"""
import logging
import re
from concurrent.futures import ThreadPoolExecutor, wait, FIRST_EXCEPTION
from typing import Any, Callable, Dict, List, Optional, Sequence

from errors import ValidationError, NotFoundError
from ingest.github import GitHubClient
from ingest.results import fetch_result, value_or, Empty
from normalize.models import (
    ActivityReport,
    ArchetypeProfile,
    Event,
    SocialTimeline,
    SpiritAnalysis,
    UserProfileData,
)
from normalize.util import normalize_events, normalize_profile
from scoring.archetypes import classify
from scoring.metrics import aggregate, aggregate_windows, build_heatmap, analyze_trends
from scoring.quality import calculate_code_quality, calculate_engagement
from scoring.social import running_totals
from scoring.utils import load_profiles
from settings import Settings
from storage.cache import Cache
from storage.rate_limit import RateLimitGuard

logger = logging.getLogger(__name__)

# GitHub logins: alphanumerics and single inner hyphens, at most 39 characters
USERNAME_RE = re.compile(r"^[A-Za-z0-9](?:[A-Za-z0-9]|-(?=[A-Za-z0-9])){0,38}$")

CACHE_GROUP = 'github'
ANALYTICS_GROUP = 'analytics'

# event types the classifier looks at, and the window its counts come from
CLASSIFIER_EVENT_TYPES = ('PushEvent', 'PullRequestEvent', 'IssuesEvent')
CLASSIFIER_WINDOW_DAYS = 365


def validate_username(username: Optional[str]) -> str:
    name = (username or '').strip()
    if not name:
        raise ValidationError("Username is required")
    if not USERNAME_RE.match(name):
        raise ValidationError(f"Invalid GitHub username: {name}")
    return name


def gather_all(tasks: Dict[str, Callable[[], Any]]) -> Dict[str, Any]:
    """
    Run independent tasks concurrently and return {name: result}.
    All-or-nothing: the first failure cancels what has not started and is re-raised;
    results that already completed are discarded.
    """
    if not tasks:
        return {}
    with ThreadPoolExecutor(max_workers=len(tasks)) as pool:
        futures = {pool.submit(fn): name for name, fn in tasks.items()}
        done, not_done = wait(futures, return_when=FIRST_EXCEPTION)
        failed = [f for f in done if f.exception() is not None]
        if failed:
            for f in not_done:
                f.cancel()
            raise failed[0].exception()
        return {futures[f]: f.result() for f in done}


def _subject_key(username: str, events: List[Event]) -> str:
    # newest event id changes whenever the feed does
    return f"{username.lower()}:{events[0].id if events else 'empty'}"


class SpiritService:
    """
    Builds every section for one GitHub user.

    The client, cache and guard are passed in explicitly so tests can substitute doubles.
    """

    def __init__(
        self,
        client: GitHubClient,
        cache: Cache,
        guard: Optional[RateLimitGuard] = None,
        profiles: Optional[Sequence[ArchetypeProfile]] = None,
        cache_ttl: float = Settings.cache_ttl,
        quality_ttl: float = Settings.quality_ttl,
    ):
        self.client = client
        self.cache = cache
        self.guard = guard or RateLimitGuard(client.get_rate_limit)
        self.profiles = tuple(profiles) if profiles is not None else load_profiles()
        self.cache_ttl = cache_ttl
        self.quality_ttl = quality_ttl

    @classmethod
    def from_settings(cls, settings: Settings, cache: Optional[Cache] = None) -> 'SpiritService':
        client = GitHubClient(
            settings.github_token,
            base_url=settings.github_api_url,
            timeout=settings.request_timeout,
            max_attempts=settings.max_retries,
            backoff_base=settings.backoff_base,
        )
        cache = cache or Cache(
            default_ttl=settings.cache_ttl,
            grace=settings.cache_grace,
            max_entries=settings.cache_max_entries,
        )
        return cls(
            client,
            cache,
            guard=RateLimitGuard(client.get_rate_limit, floor=settings.rate_floor),
            profiles=load_profiles(settings.archetypes_path),
            cache_ttl=settings.cache_ttl,
            quality_ttl=settings.quality_ttl,
        )

    # --- upstream fetches (cached) ---

    def _raw_profile(self, username: str) -> Dict[str, Any]:
        raw = self.cache.get(CACHE_GROUP, 'fetchUserProfile', username.lower(), self.cache_ttl,
                             lambda: self.client.get_user(username))
        if not raw or not raw.get('login'):
            raise NotFoundError(f"No profile found for username: {username}")
        return raw

    def _events(self, username: str, name: str, fetch: Callable[[str], List[Dict[str, Any]]]) -> List[Event]:
        result = fetch_result(self.cache.get, CACHE_GROUP, name, username.lower(), self.cache_ttl,
                              lambda: fetch(username))
        if isinstance(result, Empty):
            logger.info(f"No {name} data for {username}: {result.reason}")
        return normalize_events(value_or(result, []))

    def _user_events(self, username: str) -> List[Event]:
        return self._events(username, 'fetchUserEvents', self.client.get_user_events)

    # --- sections ---

    def profile(self, username: str) -> UserProfileData:
        username = validate_username(username)
        return normalize_profile(self._raw_profile(username), username)

    def activity(self, username: str) -> ActivityReport:
        """Window counts, heatmap, trends and quality/engagement proxies for the user's recent events."""
        username = validate_username(username)
        self.guard.check()
        self._raw_profile(username)
        events = self._user_events(username)
        key = _subject_key(username, events)

        parts = gather_all({
            'current': lambda: aggregate_windows(events),
            'heatmap': lambda: build_heatmap(events),
            'trends': lambda: analyze_trends(events),
            'code_quality': lambda: self.cache.get(ANALYTICS_GROUP, 'codeQuality', key, self.quality_ttl,
                                                   lambda: calculate_code_quality(events)),
            'engagement': lambda: self.cache.get(ANALYTICS_GROUP, 'engagement', key, self.quality_ttl,
                                                 lambda: calculate_engagement(events)),
        })
        return ActivityReport(**parts)

    def _classify(self, events: List[Event]) -> SpiritAnalysis:
        parts = gather_all({
            'window': lambda: aggregate(events, CLASSIFIER_WINDOW_DAYS),
            'heatmap': lambda: build_heatmap(events),
        })
        return classify(parts['window'], parts['heatmap'], self.profiles)

    def spirit(self, username: str) -> SpiritAnalysis:
        """Archetype classification; users without push/PR/issue activity get the default result."""
        username = validate_username(username)
        self.guard.check()
        self._raw_profile(username)
        logger.info(f"Starting spirit analysis for: {username}")
        events = [e for e in self._user_events(username) if e.type in CLASSIFIER_EVENT_TYPES]
        if not events:
            return SpiritAnalysis.default()
        return self.cache.get(ANALYTICS_GROUP, 'spirit', _subject_key(username, events), self.quality_ttl,
                              lambda: self._classify(events))

    def social(self, username: str) -> SocialTimeline:
        """
        Follower/following history for the last 30 days.
        Followers come from received follow events, following from the user's own follow events.
        """
        username = validate_username(username)
        self.guard.check()
        raw = self._raw_profile(username)
        feeds = gather_all({
            'followers': lambda: self._events(username, 'fetchReceivedEvents', self.client.get_received_events),
            'following': lambda: self._user_events(username),
        })
        return SocialTimeline(
            followers=running_totals(feeds['followers'], int(raw.get('followers') or 0)),
            following=running_totals(feeds['following'], int(raw.get('following') or 0)),
        )

    def dashboard(self, username: str) -> Dict[str, Any]:
        """All four sections for one page load; any section failing fails the whole response."""
        username = validate_username(username)
        parts = gather_all({
            'profile': lambda: self.profile(username),
            'spirit': lambda: self.spirit(username),
            'social': lambda: self.social(username),
            'activity': lambda: self.activity(username),
        })
        return {name: parts[name].to_dict() for name in ('profile', 'spirit', 'social', 'activity')}
