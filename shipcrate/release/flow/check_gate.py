"""Status-check gate.

Polls a StatusSource until every required check succeeds. A reported failure
ends the wait at once; checks that have not reported yet are treated as
pending until the last attempt, because CI often publishes statuses a while
after the commit lands.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Mapping
from datetime import UTC, datetime

from shipcrate.core.result import Err, Ok, Result
from shipcrate.output.console import ConsoleProtocol, Style
from shipcrate.release.domain.errors import (
    Cancelled,
    CheckFailed,
    CheckGateError,
    CheckNotFound,
    Timeout,
)
from shipcrate.release.domain.model import CheckResult, CheckStatus
from shipcrate.release.flow.ports import StatusSource


class CancelToken:
    """Cancellation signal shared with the host's signal handlers."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, seconds: float) -> bool:
        """Sleep up to seconds; returns True if cancelled meanwhile."""
        return self._event.wait(timeout=max(0.0, seconds))


class CheckGate:
    def __init__(
        self,
        source: StatusSource,
        *,
        console: ConsoleProtocol,
        token: CancelToken | None = None,
        sleep: Callable[[float], bool] | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._source = source
        self._console = console
        self._token = token or CancelToken()
        self._sleep = sleep or self._token.wait
        self._clock = clock or (lambda: datetime.now(UTC))

    def wait(
        self,
        requirements: frozenset[str],
        *,
        ref: str,
        interval: float,
        max_attempts: int,
    ) -> Result[None, CheckGateError]:
        if not requirements:
            return Ok(None)

        try:
            return self._poll_until_settled(
                requirements, ref=ref, interval=interval, max_attempts=max_attempts
            )
        except KeyboardInterrupt:
            return Err(Cancelled())

    def _poll_until_settled(
        self,
        requirements: frozenset[str],
        *,
        ref: str,
        interval: float,
        max_attempts: int,
    ) -> Result[None, CheckGateError]:
        names = sorted(requirements)
        attempts = max(1, max_attempts)

        for attempt in range(1, attempts + 1):
            if self._token.cancelled:
                return Err(Cancelled())

            results = self._observe(requirements, ref=ref)

            failed = [n for n in names if results[n].status is CheckStatus.FAILURE]
            if failed:
                return Err(CheckFailed(name=failed[0]))

            waiting = [n for n in names if results[n].status is not CheckStatus.SUCCESS]
            if not waiting:
                self._console.success(f"checks passed: {', '.join(names)}")
                return Ok(None)

            if attempt == attempts:
                missing = [n for n in waiting if results[n].status is CheckStatus.NOT_FOUND]
                if missing:
                    return Err(CheckNotFound(name=missing[0]))
                return Err(Timeout(remaining=tuple(waiting)))

            summary = ", ".join(f"{n}={results[n].status}" for n in waiting)
            self._console.print(
                f"attempt {attempt}/{attempts}: waiting on {summary}; next poll in {interval:g}s",
                Style.DIM,
            )
            if self._sleep(interval):
                return Err(Cancelled())

        raise AssertionError("unreachable: loop always returns on the last attempt")

    def _observe(self, requirements: frozenset[str], *, ref: str) -> Mapping[str, CheckResult]:
        now = self._clock()
        polled = self._source.poll(requirements, ref=ref)
        if isinstance(polled, Err):
            # A flaky status API is not a failed check; wait and ask again.
            self._console.warning(f"status query failed: {polled.error}")
            return {n: CheckResult(n, CheckStatus.PENDING, now) for n in requirements}

        out: dict[str, CheckResult] = {}
        for name in requirements:
            out[name] = polled.value.get(name) or CheckResult(name, CheckStatus.NOT_FOUND, now)
        return out
