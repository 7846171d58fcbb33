"""Tests for retry/backoff behaviour of RequestExecutor and the client verbs."""

import asyncio

import pytest

from RestScroll.DataAccess.errors import ApiError, ErrorKind, TransportFailure
from RestScroll.DataAccess.retry import RequestExecutor, backoff_delay_ms, is_retryable


class FlakyCall:
    """Request callable failing with the given statuses before succeeding."""

    def __init__(self, *statuses, value="ok"):
        self.statuses = list(statuses)
        self.value = value
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.statuses:
            raise TransportFailure(self.statuses.pop(0))
        return self.value


def test_backoff_is_pure_exponential():
    assert [backoff_delay_ms(100, n) for n in range(4)] == [100, 200, 400, 800]


def test_is_retryable_only_for_transient_api_errors():
    assert is_retryable(ApiError(ErrorKind.NETWORK, 0, "x"))
    assert is_retryable(ApiError(ErrorKind.SERVER, 500, "x"))
    assert not is_retryable(ApiError(ErrorKind.CLIENT, 404, "x"))
    assert not is_retryable(ValueError("x"))


def test_negative_settings_rejected():
    with pytest.raises(ValueError):
        RequestExecutor(max_attempts=-1)
    with pytest.raises(ValueError):
        RequestExecutor(base_delay_ms=-5)


def test_server_errors_exhaust_attempts_with_doubling_delays(sleeps):
    call = FlakyCall(500, 500, 500, 500, 500)
    executor = RequestExecutor(3, 100, sleep=sleeps)

    outcome = asyncio.run(executor.execute(call))

    assert not outcome.ok
    assert outcome.error.kind is ErrorKind.SERVER
    assert call.calls == 4
    assert sleeps.delays == pytest.approx([0.1, 0.2, 0.4])


def test_recovers_after_transient_failures(sleeps):
    call = FlakyCall(0, 503, value={"id": 1})
    executor = RequestExecutor(3, 100, sleep=sleeps)

    outcome = asyncio.run(executor.execute(call))

    assert outcome.ok
    assert outcome.value == {"id": 1}
    assert call.calls == 3
    assert sleeps.delays == pytest.approx([0.1, 0.2])


def test_client_error_is_not_retried(sleeps):
    call = FlakyCall(404)
    outcome = asyncio.run(RequestExecutor(3, 100, sleep=sleeps).execute(call))

    assert outcome.error.kind is ErrorKind.CLIENT
    assert outcome.error.message == "not found"
    assert call.calls == 1
    assert sleeps.delays == []


def test_bad_data_is_not_retried(sleeps):
    calls = []

    async def request():
        calls.append(1)
        raise ApiError(ErrorKind.BAD_DATA, 200, "bad data")

    outcome = asyncio.run(RequestExecutor(3, 100, sleep=sleeps).execute(request))
    assert outcome.error.kind is ErrorKind.BAD_DATA
    assert len(calls) == 1


def test_zero_attempts_means_single_call(sleeps):
    call = FlakyCall(500)
    outcome = asyncio.run(RequestExecutor(0, 100, sleep=sleeps).execute(call))
    assert not outcome.ok
    assert call.calls == 1
    assert sleeps.delays == []


def test_execute_once_never_retries(sleeps):
    call = FlakyCall(503)
    outcome = asyncio.run(RequestExecutor(3, 100, sleep=sleeps).execute_once(call))
    assert outcome.error.kind is ErrorKind.SERVER
    assert call.calls == 1
    assert sleeps.delays == []


class TestClientVerbs:
    def test_get_retries_server_errors(self, api, make_client, sleeps):
        api.reply(500, {"message": "db down"}).reply(502).reply_ok([{"id": 1}])
        client = make_client()

        outcome = asyncio.run(client.list())

        assert outcome.ok
        assert api.calls == 3
        assert sleeps.delays == pytest.approx([0.1, 0.2])

    def test_get_gives_up_after_budget(self, api, make_client, sleeps):
        for _ in range(4):
            api.reply(503)
        client = make_client()

        outcome = asyncio.run(client.get_by_id(1))

        assert outcome.error.kind is ErrorKind.SERVER
        assert outcome.error.message == "unavailable"
        assert api.calls == 4

    def test_post_is_never_retried(self, api, make_client, sleeps):
        api.reply(500)
        client = make_client()

        outcome = asyncio.run(client.create({"title": "x"}))

        assert outcome.error.kind is ErrorKind.SERVER
        assert api.calls == 1
        assert sleeps.delays == []

    @pytest.mark.parametrize("verb", ["update", "patch"])
    def test_put_and_patch_are_never_retried(self, api, make_client, sleeps, verb):
        api.fail_connect()
        client = make_client()

        outcome = asyncio.run(getattr(client, verb)(1, {"title": "x"}))

        assert outcome.error.kind is ErrorKind.NETWORK
        assert api.calls == 1

    def test_delete_is_retried(self, api, make_client, sleeps):
        api.fail_connect().reply_ok(None)
        client = make_client()

        outcome = asyncio.run(client.remove(3))

        assert outcome.ok
        assert api.calls == 2
        assert [r.method for r in api.requests] == ["DELETE", "DELETE"]
        assert sleeps.delays == pytest.approx([0.1])
