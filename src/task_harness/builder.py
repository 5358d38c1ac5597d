"""Fluent construction surface gating the call order of a task.

``perform(task).attach_handler(handler)[.attach_finalizer(finalizer)].start()``

Each gate only exposes the next valid operation, so a task cannot be started
without a handler and cannot get a second handler or finalizer.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from typing import Any

from task_harness.driver import run_async, run_sync
from task_harness.errors import InvalidFinalizer, InvalidHandler, InvalidTaskKind
from task_harness.guards import is_async_generator_function, is_function, is_generator_function
from task_harness.models import ExecutionMode, Finalizer, Handler


@dataclass(slots=True, frozen=True)
class BoundTask:
    """Task definition with its handler and optional finalizer, ready to start."""

    definition: Callable[[], Any]
    handler: Handler
    finalizer: Finalizer | None
    mode: ExecutionMode


def perform(definition: Callable[[], Any]) -> PendingTask:
    """Wrap a generator function whose steps run synchronously."""

    if not is_generator_function(definition):
        raise InvalidTaskKind(definition, expected="a generator function")
    return PendingTask(definition, ExecutionMode.SYNC)


def perform_async(definition: Callable[[], Any]) -> PendingTask:
    """Wrap an async generator function whose steps may suspend."""

    if not is_async_generator_function(definition):
        raise InvalidTaskKind(definition, expected="an async generator function")
    return PendingTask(definition, ExecutionMode.ASYNC)


class PendingTask:
    """Task without a handler; the only available step is :meth:`attach_handler`."""

    __slots__ = ("_definition", "_mode")

    def __init__(self, definition: Callable[[], Any], mode: ExecutionMode) -> None:
        self._definition = definition
        self._mode = mode

    @property
    def mode(self) -> ExecutionMode:
        return self._mode

    def attach_handler(self, handler: Handler) -> HandledTask:
        if not is_function(handler):
            raise InvalidHandler(handler)
        if self._mode is ExecutionMode.SYNC and inspect.iscoroutinefunction(handler):
            raise InvalidHandler(handler, reason="is a coroutine function; use perform_async")
        return HandledTask(
            BoundTask(definition=self._definition, handler=handler, finalizer=None, mode=self._mode),
        )


class HandledTask:
    """Task with a handler; can take a finalizer or start right away."""

    __slots__ = ("_bound",)

    def __init__(self, bound: BoundTask) -> None:
        self._bound = bound

    def attach_finalizer(self, finalizer: Finalizer) -> FinalizedTask:
        if not is_function(finalizer):
            raise InvalidFinalizer(finalizer)
        if self._bound.mode is ExecutionMode.SYNC and inspect.iscoroutinefunction(finalizer):
            raise InvalidFinalizer(finalizer, reason="is a coroutine function; use perform_async")
        return FinalizedTask(
            BoundTask(
                definition=self._bound.definition,
                handler=self._bound.handler,
                finalizer=finalizer,
                mode=self._bound.mode,
            ),
        )

    def start(self) -> Coroutine[Any, Any, None] | None:
        return _launch(self._bound)


class FinalizedTask:
    """Task with handler and finalizer; the only available step is :meth:`start`."""

    __slots__ = ("_bound",)

    def __init__(self, bound: BoundTask) -> None:
        self._bound = bound

    def start(self) -> Coroutine[Any, Any, None] | None:
        return _launch(self._bound)


def _launch(bound: BoundTask) -> Coroutine[Any, Any, None] | None:
    """Run synchronously, or return the coroutine for suspending tasks.

    Nothing of the task runs until the returned coroutine is awaited.
    """

    if bound.mode is ExecutionMode.ASYNC:
        return run_async(bound)
    run_sync(bound)
    return None
