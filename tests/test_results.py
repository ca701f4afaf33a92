import pytest
import requests

from errors import NotFoundError, TransientUpstreamError, AuthenticationError
from ingest.results import fetch_result, value_or, Fetched, Empty, Failed


def _raise(error):
    def fn(*args, **kwargs):
        raise error
    return fn


def test_value_is_fetched():
    result = fetch_result(lambda name: [name], 'octo')
    assert result == Fetched(value=['octo'])
    assert value_or(result, []) == ['octo']


@pytest.mark.parametrize('payload', [None, [], {}])
def test_empty_payload_is_empty(payload):
    result = fetch_result(lambda: payload)
    assert isinstance(result, Empty)
    assert value_or(result, 'default') == 'default'


def test_not_found_is_empty():
    result = fetch_result(_raise(NotFoundError('no events')))
    assert result == Empty(reason='no events')


def test_other_errors_are_failed_and_reraised():
    error = TransientUpstreamError('503')
    result = fetch_result(_raise(error))
    assert isinstance(result, Failed)
    assert result.kind == 'transient'
    with pytest.raises(TransientUpstreamError):
        value_or(result, [])


def test_auth_failure_kind():
    result = fetch_result(_raise(AuthenticationError('nope')))
    assert result.kind == 'authentication'


def test_requests_errors_are_failed():
    result = fetch_result(_raise(requests.exceptions.Timeout('slow')))
    assert isinstance(result, Failed)
    assert result.kind == 'transient'


def test_programming_errors_propagate():
    with pytest.raises(KeyError):
        fetch_result(_raise(KeyError('bug')))
