"""Run loop stepping a task, routing failures to the handler and restarting on demand."""

from __future__ import annotations

import inspect
import logging
from typing import TYPE_CHECKING, Any

from task_harness.models import Directive, RunOutcome
from task_harness.negotiator import (
    negotiate,
    negotiate_async,
    negotiate_unrecoverable,
    negotiate_unrecoverable_async,
)
from task_harness.resumable import AsyncResumableTask, ResumableTask

if TYPE_CHECKING:
    from task_harness.builder import BoundTask

logger = logging.getLogger(__name__)


class Execution:
    """One synchronous run attempt of a task definition.

    Holds the live step cursor and the last resume value. A restart discards
    the whole execution and builds a new one; nothing carries over.
    """

    __slots__ = ("_bound", "_task", "_resume_value")

    def __init__(self, bound: BoundTask) -> None:
        self._bound = bound
        self._task = ResumableTask.create(bound.definition)
        self._resume_value: Any = None

    def run(self) -> RunOutcome:
        try:
            return self._loop()
        finally:
            try:
                self._task.close()
            except Exception as error:  # noqa: BLE001
                logger.warning("Task cleanup error absorbed: %r", error)

    def _loop(self) -> RunOutcome:
        handler = self._bound.handler
        while True:
            try:
                step = self._task.advance(self._resume_value)
            except Exception as error:  # noqa: BLE001
                logger.debug("Task body raised %r", error)
                decision = negotiate_unrecoverable(handler, error)
                return _outcome_for_unrecoverable(decision.directive, error)
            if step.done:
                return RunOutcome.COMPLETED

            computation = step.yielded
            if not callable(computation):
                self._resume_value = computation
                continue
            try:
                self._resume_value = computation()
                continue
            except Exception as error:  # noqa: BLE001
                failure = error
                logger.debug("Yielded computation raised %r", error)
                decision = negotiate(handler, computation, error)

            if decision.directive is Directive.RESTART:
                return RunOutcome.RESTART
            if decision.directive in (Directive.RECOVER, Directive.RETRY_SUCCEEDED):
                logger.info("Resuming task after %s", decision.directive.value)
                self._resume_value = decision.value
                continue
            logger.warning("Unhandled computation error absorbed: %r", failure)
            return RunOutcome.ABSORBED


class AsyncExecution:
    """One suspending run attempt of an async task definition."""

    __slots__ = ("_bound", "_task", "_resume_value")

    def __init__(self, bound: BoundTask) -> None:
        self._bound = bound
        self._task = AsyncResumableTask.create(bound.definition)
        self._resume_value: Any = None

    async def run(self) -> RunOutcome:
        try:
            return await self._loop()
        finally:
            try:
                await self._task.close()
            except Exception as error:  # noqa: BLE001
                logger.warning("Task cleanup error absorbed: %r", error)

    async def _loop(self) -> RunOutcome:
        handler = self._bound.handler
        while True:
            try:
                step = await self._task.advance(self._resume_value)
            except Exception as error:  # noqa: BLE001
                logger.debug("Task body raised %r", error)
                decision = await negotiate_unrecoverable_async(handler, error)
                return _outcome_for_unrecoverable(decision.directive, error)
            if step.done:
                return RunOutcome.COMPLETED

            computation = step.yielded
            if not callable(computation):
                self._resume_value = computation
                continue
            try:
                value = computation()
                if inspect.isawaitable(value):
                    value = await value
                self._resume_value = value
                continue
            except Exception as error:  # noqa: BLE001
                failure = error
                logger.debug("Yielded computation raised %r", error)
                decision = await negotiate_async(handler, computation, error)

            if decision.directive is Directive.RESTART:
                return RunOutcome.RESTART
            if decision.directive in (Directive.RECOVER, Directive.RETRY_SUCCEEDED):
                logger.info("Resuming task after %s", decision.directive.value)
                self._resume_value = decision.value
                continue
            logger.warning("Unhandled computation error absorbed: %r", failure)
            return RunOutcome.ABSORBED


def run_sync(bound: BoundTask) -> None:
    """Run a bound task to termination, restarting as the handler asks.

    The finalizer runs once, after the last attempt, even when the handler raises.
    """

    try:
        restarts = 0
        while Execution(bound).run() is RunOutcome.RESTART:
            restarts += 1
            logger.info("Restarting task (restart #%d)", restarts)
    finally:
        if bound.finalizer is not None:
            bound.finalizer()


async def run_async(bound: BoundTask) -> None:
    """Async counterpart of :func:`run_sync`; the finalizer may be a coroutine function."""

    try:
        restarts = 0
        while await AsyncExecution(bound).run() is RunOutcome.RESTART:
            restarts += 1
            logger.info("Restarting task (restart #%d)", restarts)
    finally:
        if bound.finalizer is not None:
            outcome = bound.finalizer()
            if inspect.isawaitable(outcome):
                await outcome


def _outcome_for_unrecoverable(directive: Directive, error: BaseException) -> RunOutcome:
    if directive is Directive.RESTART:
        return RunOutcome.RESTART
    logger.warning("Unhandled task error absorbed: %r", error)
    return RunOutcome.ABSORBED
