"""Retry/recover/restart negotiation with the user-supplied error handler."""

from __future__ import annotations

import inspect
import logging
import math
from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal
from numbers import Real
from typing import Any

from task_harness.errors import InvalidRetryArgument
from task_harness.models import (
    NO_DECISION,
    RESTART,
    UNHANDLED,
    Decision,
    Directive,
    ErrorContext,
    Handler,
    RecoveryControls,
)

logger = logging.getLogger(__name__)


class ControlRecorder:
    """Records which controls one handler invocation used.

    Each recorder backs exactly one ``RecoveryControls`` triple. Calls made
    after :meth:`close` are ignored, so controls leaked out of a handler
    cannot influence a later negotiation.
    """

    __slots__ = ("_open", "_recoverable", "_restart", "_recover", "_recover_value", "_retry_budget")

    def __init__(self, *, recoverable: bool) -> None:
        self._open = True
        self._recoverable = recoverable
        self._restart = False
        self._recover = False
        self._recover_value: Any = None
        self._retry_budget: float | None = None

    def controls(self) -> RecoveryControls:
        return RecoveryControls(recover=self._on_recover, retry=self._on_retry, restart=self._on_restart)

    def _on_restart(self) -> None:
        if self._open:
            self._restart = True

    def _on_recover(self, value: Any = None) -> None:
        if self._open and self._recoverable:
            self._recover = True
            self._recover_value = value

    def _on_retry(self, max_attempts: float = 1) -> None:
        if not (self._open and self._recoverable):
            return
        if not _is_retry_budget(max_attempts):
            raise InvalidRetryArgument(max_attempts)
        self._retry_budget = max_attempts

    def close(self) -> Decision:
        """Stop accepting calls and resolve them as restart > recover > retry."""

        self._open = False
        if self._restart:
            return RESTART
        if self._recover:
            return Decision(Directive.RECOVER, self._recover_value)
        if self._retry_budget is not None and self._retry_budget > 0:
            return Decision(Directive.RETRY, self._retry_budget)
        return NO_DECISION


@dataclass(slots=True)
class RetryResult:
    """Outcome of re-running a failed computation."""

    succeeded: bool
    value: Any = None
    error: BaseException | None = None


def retry_computation(computation: Callable[[], Any], budget: float) -> RetryResult:
    """Re-invoke ``computation`` up to ``budget`` times, stopping at the first success.

    An infinite budget keeps going until the computation succeeds.
    """

    remaining = budget
    error: BaseException | None = None
    attempt = 0
    while remaining > 0:
        attempt += 1
        try:
            value = computation()
        except Exception as exc:  # noqa: BLE001
            logger.debug("Retry attempt %d failed: %r", attempt, exc)
            error = exc
            remaining -= 1
            continue
        return RetryResult(succeeded=True, value=value)
    return RetryResult(succeeded=False, error=error)


async def retry_computation_async(computation: Callable[[], Any], budget: float) -> RetryResult:
    """Async counterpart of :func:`retry_computation`; awaits awaitable results."""

    remaining = budget
    error: BaseException | None = None
    attempt = 0
    while remaining > 0:
        attempt += 1
        try:
            value = computation()
            if inspect.isawaitable(value):
                value = await value
        except Exception as exc:  # noqa: BLE001
            logger.debug("Retry attempt %d failed: %r", attempt, exc)
            error = exc
            remaining -= 1
            continue
        return RetryResult(succeeded=True, value=value)
    return RetryResult(succeeded=False, error=error)


def negotiate_unrecoverable(handler: Handler, error: BaseException) -> Decision:
    """Ask the handler about an error raised by the task body; only restart is live."""

    recorder = ControlRecorder(recoverable=False)
    handler(ErrorContext(error=error, is_recoverable=False), recorder.controls())
    return _finish(recorder.close())


async def negotiate_unrecoverable_async(handler: Handler, error: BaseException) -> Decision:
    recorder = ControlRecorder(recoverable=False)
    outcome = handler(ErrorContext(error=error, is_recoverable=False), recorder.controls())
    if inspect.isawaitable(outcome):
        await outcome
    return _finish(recorder.close())


def negotiate(handler: Handler, computation: Callable[[], Any], error: BaseException) -> Decision:
    """Negotiate recovery for a failed deferred computation.

    Returns RESTART, RECOVER, RETRY_SUCCEEDED or UNHANDLED. When a bounded
    retry budget runs out, the handler is asked again with the latest error
    and a fresh set of controls.
    """

    attempt = 1
    while True:
        recorder = ControlRecorder(recoverable=True)
        handler(ErrorContext(error=error, is_recoverable=True, attempt=attempt), recorder.controls())
        decision = recorder.close()
        if decision.directive is not Directive.RETRY:
            return _finish(decision)
        result = retry_computation(computation, decision.value)
        if result.succeeded:
            logger.info("Computation succeeded on retry")
            return Decision(Directive.RETRY_SUCCEEDED, result.value)
        logger.debug("Retry budget of %s exhausted, asking handler again", decision.value)
        error = result.error
        attempt += 1


async def negotiate_async(
    handler: Handler,
    computation: Callable[[], Any],
    error: BaseException,
) -> Decision:
    """Async counterpart of :func:`negotiate`."""

    attempt = 1
    while True:
        recorder = ControlRecorder(recoverable=True)
        outcome = handler(
            ErrorContext(error=error, is_recoverable=True, attempt=attempt),
            recorder.controls(),
        )
        if inspect.isawaitable(outcome):
            await outcome
        decision = recorder.close()
        if decision.directive is not Directive.RETRY:
            return _finish(decision)
        result = await retry_computation_async(computation, decision.value)
        if result.succeeded:
            logger.info("Computation succeeded on retry")
            return Decision(Directive.RETRY_SUCCEEDED, result.value)
        logger.debug("Retry budget of %s exhausted, asking handler again", decision.value)
        error = result.error
        attempt += 1


def _is_retry_budget(value: object) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, Decimal):
        return not value.is_nan()
    return isinstance(value, Real) and not math.isnan(value)


def _finish(decision: Decision) -> Decision:
    if decision.directive is Directive.NONE:
        return UNHANDLED
    return decision
