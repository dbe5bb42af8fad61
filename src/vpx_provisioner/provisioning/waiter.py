"""Bounded polling primitive for provisioning readiness.

A predicate classifies the current remote state on every poll:

  pending          -> sleep ``poll_interval`` and poll again
  ready(value)     -> stop, return ``value``
  fatal(error)     -> stop immediately, no further polling

The wait resolves to ``ready``, ``fatal`` or ``timed_out`` (attempt or elapsed
budget exhausted while pending). Whether an exception raised by the predicate
is fatal or just another pending poll is an explicit ``ErrorPolicy`` on the
``WaitPolicy``; nothing about it is hardcoded in the loop.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from ..errors import ProvisionerError, WaitTimeoutError
from ..observability.metrics import WAIT_ATTEMPTS, WAIT_OUTCOMES_TOTAL

logger = logging.getLogger(__name__)


class PollStatus(str, Enum):
    PENDING = 'pending'
    READY = 'ready'
    FATAL = 'fatal'


class WaitStatus(str, Enum):
    READY = 'ready'
    TIMED_OUT = 'timed_out'
    FATAL = 'fatal'


class ErrorPolicy(str, Enum):
    """How the waiter treats an exception raised by the predicate."""

    FATAL = 'fatal'
    RETRY = 'retry'


@dataclass(frozen=True, slots=True)
class Poll:
    """Classification of remote state produced by one predicate call."""

    status: PollStatus
    value: Any = None
    error: BaseException | None = None


def pending() -> Poll:
    return Poll(PollStatus.PENDING)


def ready(value: Any = None) -> Poll:
    return Poll(PollStatus.READY, value=value)


def fatal(error: BaseException) -> Poll:
    return Poll(PollStatus.FATAL, error=error)


@dataclass(frozen=True, slots=True)
class WaitPolicy:
    """Poll spacing, budget and error policy for one kind of wait.

    At least one of ``max_attempts`` or ``timeout_seconds`` must be set.
    """

    name: str
    poll_interval: float
    max_attempts: int | None = None
    timeout_seconds: float | None = None
    min_poll_interval: float = 0.0
    on_error: ErrorPolicy = ErrorPolicy.FATAL

    def __post_init__(self) -> None:
        if self.max_attempts is None and self.timeout_seconds is None:
            raise ValueError('wait policy needs max_attempts or timeout_seconds')
        if self.max_attempts is not None and self.max_attempts < 1:
            raise ValueError('max_attempts must be >= 1')
        if self.poll_interval < 0 or self.min_poll_interval < 0:
            raise ValueError('poll intervals must be >= 0')

    @property
    def interval(self) -> float:
        return max(self.poll_interval, self.min_poll_interval)


@dataclass(frozen=True, slots=True)
class WaitResult:
    """Outcome of one bounded wait."""

    wait_name: str
    status: WaitStatus
    attempts: int
    elapsed_seconds: float
    value: Any = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.status is WaitStatus.READY

    def unwrap(self, detail: str = '') -> Any:
        """Return the ready value, or raise the fatal error / a timeout error."""
        if self.status is WaitStatus.READY:
            return self.value
        if self.status is WaitStatus.FATAL:
            if self.error is None:
                raise ProvisionerError(f'{self.wait_name} failed without an error')
            raise self.error
        raise WaitTimeoutError(
            self.wait_name,
            attempts=self.attempts,
            elapsed_seconds=self.elapsed_seconds,
            detail=detail,
        )


Predicate = Callable[[], Poll]


class ProvisioningWaiter:
    """Synchronous bounded poller; clock and sleep are injectable."""

    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._clock = clock
        self._sleep = sleep

    def wait(self, predicate: Predicate, policy: WaitPolicy) -> WaitResult:
        started = self._clock()
        attempts = 0
        interval = policy.interval

        while True:
            attempts += 1
            poll = self._poll(predicate, policy, attempts)
            elapsed = self._clock() - started

            if poll.status is PollStatus.READY:
                return self._finish(
                    policy, WaitStatus.READY, attempts, elapsed, value=poll.value
                )
            if poll.status is PollStatus.FATAL:
                return self._finish(
                    policy, WaitStatus.FATAL, attempts, elapsed, error=poll.error
                )

            if policy.max_attempts is not None and attempts >= policy.max_attempts:
                return self._finish(policy, WaitStatus.TIMED_OUT, attempts, elapsed)
            if (
                policy.timeout_seconds is not None
                and elapsed + interval > policy.timeout_seconds
            ):
                return self._finish(policy, WaitStatus.TIMED_OUT, attempts, elapsed)

            logger.info(
                'Waiting %.0fs for %s (attempt %d)',
                interval,
                policy.name,
                attempts,
                extra={'wait': policy.name, 'attempt': attempts},
            )
            self._sleep(interval)

    def _poll(self, predicate: Predicate, policy: WaitPolicy, attempt: int) -> Poll:
        try:
            return predicate()
        except Exception as exc:
            if policy.on_error is ErrorPolicy.RETRY:
                logger.debug(
                    '%s not ready on attempt %d: %s',
                    policy.name,
                    attempt,
                    exc,
                    extra={'wait': policy.name, 'attempt': attempt},
                )
                return pending()
            return fatal(exc)

    def _finish(
        self,
        policy: WaitPolicy,
        status: WaitStatus,
        attempts: int,
        elapsed: float,
        *,
        value: Any = None,
        error: BaseException | None = None,
    ) -> WaitResult:
        WAIT_OUTCOMES_TOTAL.labels(wait=policy.name, status=status.value).inc()
        WAIT_ATTEMPTS.labels(wait=policy.name).observe(attempts)
        log = logger.warning if status is not WaitStatus.READY else logger.info
        log(
            '%s finished: status=%s attempts=%d elapsed=%.0fs',
            policy.name,
            status.value,
            attempts,
            elapsed,
            extra={'wait': policy.name, 'status': status.value},
        )
        return WaitResult(
            wait_name=policy.name,
            status=status,
            attempts=attempts,
            elapsed_seconds=elapsed,
            value=value,
            error=error,
        )
