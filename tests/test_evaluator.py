"""
Unit tests for SpiritService orchestration with a fake GitHub client.
Covers validation, empty/failed upstream data, caching, the quota guard and the dashboard.
"""
import threading
import unittest
from datetime import datetime, timedelta, timezone

from errors import (
    ValidationError,
    NotFoundError,
    RateLimitExceededError,
    TransientUpstreamError,
)
from evaluator import SpiritService, gather_all, validate_username
from storage.cache import Cache
from storage.rate_limit import RateLimitState


def _iso(dt):
    return dt.strftime('%Y-%m-%dT%H:%M:%SZ')


def _night(days_ago):
    """23:00 UTC a few days back."""
    day = datetime.now(timezone.utc) - timedelta(days=days_ago)
    return _iso(day.replace(hour=23, minute=0, second=0, microsecond=0))


class MockGitHubClient:
    def __init__(self, user=None, events=None, received=None, remaining=5000):
        self.user = user if user is not None else {'login': 'octo', 'name': 'Octo', 'followers': 3, 'following': 1}
        self.events = events if events is not None else []
        self.received = received if received is not None else []
        self.remaining = remaining
        self.calls = []
        self._lock = threading.Lock()

    def _record(self, name, value):
        with self._lock:
            self.calls.append(name)
        if isinstance(value, Exception):
            raise value
        return value

    def get_user(self, username):
        return self._record('user', self.user)

    def get_user_events(self, username):
        return self._record('events', self.events)

    def get_received_events(self, username):
        return self._record('received', self.received)

    def get_rate_limit(self):
        return self._record('rate_limit', RateLimitState(remaining=self.remaining, reset_at=None, limit=5000))


class TestEvaluator(unittest.TestCase):
    def _service(self, client):
        cache = Cache(default_ttl=60, grace=0)
        self.addCleanup(cache.close)
        return SpiritService(client, cache)

    def test_invalid_username_makes_no_upstream_call(self):
        client = MockGitHubClient()
        service = self._service(client)
        for bad in ('', '   ', '-octo', 'octo-', 'oc--to', 'a' * 40, 'octo/cat'):
            with self.assertRaises(ValidationError):
                service.spirit(bad)
        self.assertEqual(client.calls, [])

    def test_validate_username_strips(self):
        self.assertEqual(validate_username('  octo-cat '), 'octo-cat')

    def test_missing_profile_is_hard_not_found(self):
        service = self._service(MockGitHubClient(user=NotFoundError('Not Found')))
        with self.assertRaises(NotFoundError):
            service.profile('ghost')
        with self.assertRaises(NotFoundError):
            service.spirit('ghost')

    def test_profile_defaults(self):
        profile = self._service(MockGitHubClient()).profile('octo')
        self.assertEqual(profile.login, 'octo')
        self.assertEqual(profile.bio, '')
        self.assertEqual(profile.followers, 3)

    def test_no_activity_gives_default_spirit(self):
        result = self._service(MockGitHubClient(events=[])).spirit('octo')
        self.assertEqual(result.to_dict(), {
            'animals': [], 'dominantTraits': [], 'activityPattern': 'diurnal', 'consistency': 'low',
        })

    def test_events_not_found_gives_default_spirit(self):
        result = self._service(MockGitHubClient(events=NotFoundError('no events'))).spirit('octo')
        self.assertEqual(result.animals, [])

    def test_only_classifier_event_types_count(self):
        events = [{'id': '1', 'type': 'WatchEvent', 'created_at': _night(1)}]
        result = self._service(MockGitHubClient(events=events)).spirit('octo')
        self.assertEqual(result.animals, [])

    def test_failed_events_fetch_is_raised(self):
        service = self._service(MockGitHubClient(events=TransientUpstreamError('503')))
        with self.assertRaises(TransientUpstreamError):
            service.spirit('octo')

    def test_nocturnal_pr_author_is_wolf(self):
        events = [{'id': str(i), 'type': 'PullRequestEvent', 'created_at': _night(i + 1),
                   'payload': {'action': 'opened'}} for i in range(5)]
        events.append({'id': 'p', 'type': 'PushEvent', 'created_at': _night(1), 'payload': {'commits': []}})
        result = self._service(MockGitHubClient(events=events)).spirit('octo')
        self.assertEqual(result.activity_pattern, 'nocturnal')
        self.assertEqual(result.consistency, 'high')
        self.assertEqual(result.animals[0].name, 'Wolf')
        self.assertEqual(result.animals[0].score, 60)

    def test_rate_guard_blocks_analytics(self):
        client = MockGitHubClient(remaining=5)
        service = self._service(client)
        with self.assertRaises(RateLimitExceededError):
            service.activity('octo')
        self.assertEqual(client.calls, ['rate_limit'])

    def test_activity_report_and_cache_reuse(self):
        events = [
            {'id': '2', 'type': 'IssuesEvent', 'created_at': _night(1), 'payload': {'action': 'closed'}},
            {'id': '1', 'type': 'PushEvent', 'created_at': _night(10), 'repo': {'id': 9},
             'payload': {'commits': [{'message': 'fix'}]}},
        ]
        client = MockGitHubClient(events=events)
        service = self._service(client)
        report = service.activity('octo').to_dict()
        self.assertEqual(set(report), {'current', 'heatmap', 'trends', 'codeQuality', 'engagement'})
        self.assertEqual(report['current']['weekly']['issues'], 1)
        self.assertEqual(report['current']['weekly']['commits'], 0)
        self.assertEqual(report['current']['monthly']['commits'], 1)
        self.assertEqual(report['codeQuality']['issueResolutionRate'], 100)

        service.activity('octo')
        self.assertEqual(client.calls.count('events'), 1)
        self.assertEqual(client.calls.count('user'), 1)

    def test_social_timeline_from_follow_events(self):
        received = [{'id': 'f1', 'type': 'FollowEvent', 'created_at': _iso(datetime.now(timezone.utc))}]
        client = MockGitHubClient(received=received)
        timeline = self._service(client).social('octo')
        self.assertEqual(len(timeline.followers), 31)
        self.assertEqual(timeline.followers[-1].count, 3)
        self.assertEqual(timeline.followers[0].count, 2)
        self.assertEqual({p.count for p in timeline.following}, {1})

    def test_dashboard_has_all_sections(self):
        data = self._service(MockGitHubClient()).dashboard('octo')
        self.assertEqual(set(data), {'profile', 'spirit', 'social', 'activity'})
        self.assertEqual(data['profile']['login'], 'octo')

    def test_dashboard_fails_as_a_whole(self):
        service = self._service(MockGitHubClient(events=TransientUpstreamError('503')))
        with self.assertRaises(TransientUpstreamError):
            service.dashboard('octo')


class TestGatherAll(unittest.TestCase):
    def test_returns_named_results(self):
        self.assertEqual(gather_all({'a': lambda: 1, 'b': lambda: 2}), {'a': 1, 'b': 2})

    def test_first_failure_is_raised(self):
        def fail():
            raise NotFoundError('gone')

        with self.assertRaises(NotFoundError):
            gather_all({'ok': lambda: 1, 'bad': fail})

    def test_empty(self):
        self.assertEqual(gather_all({}), {})


if __name__ == '__main__':
    unittest.main()
