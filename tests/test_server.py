import time

import pytest

from errors import AuthenticationError, NotFoundError, TransientUpstreamError, UpstreamError
from evaluator import SpiritService
from server import create_app
from storage.cache import Cache
from storage.rate_limit import RateLimitGuard, RateLimitState
from test_evaluator import MockGitHubClient


@pytest.fixture
def make_client():
    caches = []

    def _make(guard_state=None, **kwargs):
        gh = MockGitHubClient(**kwargs)
        cache = Cache(default_ttl=60, grace=0)
        caches.append(cache)
        guard = RateLimitGuard(lambda: guard_state, floor=20) if guard_state else None
        app = create_app(SpiritService(gh, cache, guard=guard))
        return app.test_client()

    yield _make
    for cache in caches:
        cache.close()


def test_profile_route(make_client):
    resp = make_client().get('/users/octo')
    assert resp.status_code == 200
    assert resp.get_json()['login'] == 'octo'


@pytest.mark.parametrize('path', ['/users/octo/activity', '/users/octo/social', '/users/octo/spirit-analysis'])
def test_section_routes_ok(make_client, path):
    resp = make_client().get(path)
    assert resp.status_code == 200


def test_spirit_route_defaults_without_activity(make_client):
    body = make_client().get('/users/octo/spirit-analysis').get_json()
    assert body == {'animals': [], 'dominantTraits': [], 'activityPattern': 'diurnal', 'consistency': 'low'}


def test_dashboard_route(make_client):
    body = make_client().get('/users/octo/dashboard').get_json()
    assert set(body) == {'profile', 'spirit', 'social', 'activity'}


def test_missing_username_is_400(make_client):
    resp = make_client().get('/users/')
    assert resp.status_code == 400
    assert resp.get_json()['error'] == 'validation'


def test_invalid_username_is_400(make_client):
    assert make_client().get('/users/-bad-').status_code == 400


@pytest.mark.parametrize('error, status', [
    (AuthenticationError('Bad credentials'), 401),
    (NotFoundError('Not Found'), 404),
    (TransientUpstreamError('503'), 500),
    (UpstreamError('teapot', upstream_status=418), 500),
])
def test_error_status_mapping(make_client, error, status):
    resp = make_client(user=error).get('/users/octo')
    assert resp.status_code == status
    assert resp.get_json()['message']


def test_rate_limit_is_429_with_retry_after(make_client):
    state = RateLimitState(remaining=3, reset_at=time.time() + 120, limit=5000)
    resp = make_client(guard_state=state).get('/users/octo/activity')
    assert resp.status_code == 429
    body = resp.get_json()
    assert body['error'] == 'rate_limit'
    assert body['resetAt'] == state.reset_at
    assert 0 < int(resp.headers['Retry-After']) <= 120


def test_healthz(make_client):
    body = make_client().get('/healthz').get_json()
    assert body['ok'] is True
    assert 'count' in body['cache']
