"""Tests for the retry policy."""

import pytest

from memoryrelay_mcp.utils import retry
from memoryrelay_mcp.utils.errors import (APIError, AuthenticationError, BadRequestError, NetworkError, NotFoundError,
                                          RateLimitError, RequestTimeoutError, ValidationError)
from memoryrelay_mcp.utils.retry import backoff_delay, is_retryable, with_retry


class Flaky:
    """Async operation failing with the given errors before succeeding."""

    def __init__(self, *errors, result='ok'):
        self.errors = list(errors)
        self.result = result
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.result


@pytest.fixture
def sleeps(monkeypatch):
    """Record backoff sleeps instead of waiting."""
    recorded = []

    async def fake_sleep(delay):
        recorded.append(delay)

    monkeypatch.setattr(retry.asyncio, 'sleep', fake_sleep)
    return recorded


class TestClassification:

    @pytest.mark.parametrize('error', [
        BadRequestError('bad', status_code=400),
        AuthenticationError('unauthorized', status_code=401),
        AuthenticationError('forbidden', status_code=403),
        NotFoundError('missing', status_code=404),
        ValidationError('too big'),
    ])
    def test_fatal_errors(self, error):
        assert not is_retryable(error)

    @pytest.mark.parametrize('error', [
        APIError('boom', status_code=500),
        APIError('unavailable', status_code=503),
        RateLimitError('slow down', retry_after=1),
        RequestTimeoutError('timeout', timeout_ms=100),
        NetworkError('refused'),
        ConnectionError('reset'),
    ])
    def test_transient_errors(self, error):
        assert is_retryable(error)

    def test_plain_api_error_with_fatal_status(self):
        assert not is_retryable(APIError('odd', status_code=404))


class TestBackoff:

    def test_exponential_growth_without_jitter(self, monkeypatch):
        monkeypatch.setattr(retry.random, 'uniform', lambda a, b: 0)
        assert [backoff_delay(i) for i in range(3)] == [1.0, 2.0, 4.0]

    @pytest.mark.parametrize('attempt', [0, 1, 2])
    def test_jitter_within_30_percent(self, attempt):
        base = 2**attempt
        for _ in range(50):
            delay = backoff_delay(attempt)
            assert base <= delay <= base * 1.3


class TestWithRetry:

    @pytest.mark.asyncio
    async def test_success_first_try(self, sleeps):
        op = Flaky()
        assert await with_retry(op) == 'ok'
        assert op.calls == 1
        assert sleeps == []

    @pytest.mark.asyncio
    async def test_retries_transient_then_succeeds(self, sleeps, monkeypatch):
        monkeypatch.setattr(retry.random, 'uniform', lambda a, b: 0)
        op = Flaky(APIError('500', status_code=500), APIError('500', status_code=500))
        assert await with_retry(op) == 'ok'
        assert op.calls == 3
        assert sleeps == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_fatal_error_surfaces_immediately(self, sleeps):
        op = Flaky(AuthenticationError('API request failed: 401 Unauthorized', status_code=401))
        with pytest.raises(AuthenticationError):
            await with_retry(op)
        assert op.calls == 1
        assert sleeps == []

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self, sleeps):
        errors = [NetworkError(f'refused #{i}') for i in range(1, 6)]
        op = Flaky(*errors)
        with pytest.raises(NetworkError, match='refused #4'):
            await with_retry(op)
        assert op.calls == 4
        assert len(sleeps) == 3

    @pytest.mark.asyncio
    async def test_custom_attempts_and_delay(self, sleeps, monkeypatch):
        monkeypatch.setattr(retry.random, 'uniform', lambda a, b: 0)
        op = Flaky(NetworkError('a'), NetworkError('b'))
        with pytest.raises(NetworkError, match='b'):
            await with_retry(op, max_attempts=2, initial_delay=0.5)
        assert op.calls == 2
        assert sleeps == [0.5]
