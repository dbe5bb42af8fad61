"""Bounded polling primitive tests.

Validates:
  - N pending polls then ready -> N+1 predicate calls, N intervals elapsed
  - fatal stops immediately regardless of remaining budget
  - exhausted budgets resolve to timed_out, never fatal
  - the error policy decides whether predicate exceptions are fatal
  - minimum poll spacing is honored
"""

from __future__ import annotations

import pytest

from vpx_provisioner.errors import ProvisionerError, WaitTimeoutError
from vpx_provisioner.provisioning.waiter import (
    ErrorPolicy,
    ProvisioningWaiter,
    WaitPolicy,
    WaitResult,
    WaitStatus,
    fatal,
    pending,
    ready,
)


class ScriptedPredicate:
    """Returns the scripted polls in order; counts calls."""

    def __init__(self, *polls) -> None:
        self._polls = list(polls)
        self.calls = 0

    def __call__(self):
        self.calls += 1
        item = self._polls.pop(0) if len(self._polls) > 1 else self._polls[0]
        if isinstance(item, Exception):
            raise item
        return item


def _waiter(clock) -> ProvisioningWaiter:
    return ProvisioningWaiter(clock=clock, sleep=clock.sleep)


def _policy(**overrides) -> WaitPolicy:
    fields = {'name': 'test_wait', 'poll_interval': 5, 'max_attempts': 10}
    fields.update(overrides)
    return WaitPolicy(**fields)


class TestReady:
    @pytest.mark.parametrize('pending_polls', [0, 1, 2, 7])
    def test_n_pending_then_ready(self, fake_clock, pending_polls):
        predicate = ScriptedPredicate(
            *([pending()] * pending_polls), ready('appliance-x')
        )

        result = _waiter(fake_clock).wait(predicate, _policy())

        assert result.status is WaitStatus.READY
        assert result.value == 'appliance-x'
        assert predicate.calls == pending_polls + 1
        assert result.attempts == pending_polls + 1
        assert result.elapsed_seconds == pending_polls * 5
        assert fake_clock.sleeps == [5] * pending_polls

    def test_ready_on_final_attempt_is_not_a_timeout(self, fake_clock):
        predicate = ScriptedPredicate(*([pending()] * 3), ready(42))

        result = _waiter(fake_clock).wait(predicate, _policy(max_attempts=4))

        assert result.ok
        assert result.unwrap() == 42

    def test_no_sleep_after_ready(self, fake_clock):
        _waiter(fake_clock).wait(ScriptedPredicate(ready()), _policy())
        assert fake_clock.sleeps == []


class TestFatal:
    def test_fatal_is_never_retried(self, fake_clock):
        error = RuntimeError('ambiguous')
        predicate = ScriptedPredicate(pending(), fatal(error), ready('late'))

        result = _waiter(fake_clock).wait(predicate, _policy(max_attempts=100))

        assert result.status is WaitStatus.FATAL
        assert result.error is error
        assert predicate.calls == 2

    def test_unwrap_raises_fatal_error(self, fake_clock):
        error = ValueError('boom')
        result = _waiter(fake_clock).wait(ScriptedPredicate(fatal(error)), _policy())

        with pytest.raises(ValueError, match='boom'):
            result.unwrap()

    def test_unwrap_fatal_without_error(self):
        result = WaitResult(
            wait_name='order_binding',
            status=WaitStatus.FATAL,
            attempts=1,
            elapsed_seconds=0,
        )

        with pytest.raises(ProvisionerError, match='order_binding failed without an error'):
            result.unwrap()


class TestTimeout:
    def test_attempt_budget_exhausted(self, fake_clock):
        predicate = ScriptedPredicate(pending())

        result = _waiter(fake_clock).wait(predicate, _policy(max_attempts=4))

        assert result.status is WaitStatus.TIMED_OUT
        assert result.error is None
        assert predicate.calls == 4
        # No sleep after the last attempt.
        assert fake_clock.sleeps == [5, 5, 5]

    def test_elapsed_budget_exhausted(self, fake_clock):
        predicate = ScriptedPredicate(pending())
        policy = WaitPolicy(name='elapsed', poll_interval=5, timeout_seconds=20)

        result = _waiter(fake_clock).wait(predicate, policy)

        assert result.status is WaitStatus.TIMED_OUT
        # Polls at t=0, 5, 10, 15, 20.
        assert predicate.calls == 5
        assert result.elapsed_seconds == 20

    def test_unwrap_raises_wait_timeout_error(self, fake_clock):
        result = _waiter(fake_clock).wait(
            ScriptedPredicate(pending()), _policy(max_attempts=2)
        )

        with pytest.raises(WaitTimeoutError) as exc_info:
            result.unwrap('still nothing')

        assert exc_info.value.wait_name == 'test_wait'
        assert exc_info.value.attempts == 2
        assert 'still nothing' in str(exc_info.value)


class TestErrorPolicy:
    def test_fatal_policy_stops_on_exception(self, fake_clock):
        predicate = ScriptedPredicate(ConnectionError('down'), ready())

        result = _waiter(fake_clock).wait(
            predicate, _policy(on_error=ErrorPolicy.FATAL)
        )

        assert result.status is WaitStatus.FATAL
        assert isinstance(result.error, ConnectionError)
        assert predicate.calls == 1

    def test_retry_policy_treats_exception_as_pending(self, fake_clock):
        predicate = ScriptedPredicate(
            ConnectionError('down'), ConnectionError('down'), ready('up')
        )

        result = _waiter(fake_clock).wait(
            predicate, _policy(on_error=ErrorPolicy.RETRY)
        )

        assert result.status is WaitStatus.READY
        assert result.value == 'up'
        assert predicate.calls == 3

    def test_retry_policy_still_times_out(self, fake_clock):
        predicate = ScriptedPredicate(ConnectionError('down'))

        result = _waiter(fake_clock).wait(
            predicate, _policy(on_error=ErrorPolicy.RETRY, max_attempts=3)
        )

        assert result.status is WaitStatus.TIMED_OUT
        assert predicate.calls == 3


class TestPolicy:
    def test_min_poll_interval_raises_spacing(self, fake_clock):
        predicate = ScriptedPredicate(pending(), pending(), ready())

        _waiter(fake_clock).wait(
            predicate, _policy(poll_interval=1, min_poll_interval=3)
        )

        assert fake_clock.sleeps == [3, 3]

    def test_requires_a_budget(self):
        with pytest.raises(ValueError, match='max_attempts or timeout_seconds'):
            WaitPolicy(name='unbounded', poll_interval=1)

    def test_rejects_zero_attempts(self):
        with pytest.raises(ValueError, match='max_attempts must be >= 1'):
            WaitPolicy(name='empty', poll_interval=1, max_attempts=0)
