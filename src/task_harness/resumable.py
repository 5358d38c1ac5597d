"""Explicit resumable-computation wrappers over generator-based task definitions.

The driver only relies on ``advance(resume_value) -> Step``; how steps are
produced stays behind this module.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable, Generator
from dataclasses import dataclass
from typing import Any


@dataclass(slots=True, frozen=True)
class Step:
    """Result of advancing a task by one yield point."""

    done: bool
    yielded: Any = None


class ResumableTask:
    """Synchronous step cursor created fresh from a generator function."""

    __slots__ = ("_cursor", "_started")

    def __init__(self, cursor: Generator[Any, Any, Any]) -> None:
        self._cursor = cursor
        self._started = False

    @classmethod
    def create(cls, definition: Callable[[], Generator[Any, Any, Any]]) -> ResumableTask:
        return cls(definition())

    def advance(self, resume_value: Any = None) -> Step:
        """Resume the task with ``resume_value`` and return the next step.

        The first advance starts the generator and ignores ``resume_value``.
        Exceptions raised by the task body propagate to the caller.
        """

        try:
            if self._started:
                yielded = self._cursor.send(resume_value)
            else:
                self._started = True
                yielded = next(self._cursor)
        except StopIteration:
            return Step(done=True)
        return Step(done=False, yielded=yielded)

    def close(self) -> None:
        self._cursor.close()


class AsyncResumableTask:
    """Suspending step cursor created fresh from an async generator function."""

    __slots__ = ("_cursor", "_started")

    def __init__(self, cursor: AsyncGenerator[Any, Any]) -> None:
        self._cursor = cursor
        self._started = False

    @classmethod
    def create(cls, definition: Callable[[], AsyncGenerator[Any, Any]]) -> AsyncResumableTask:
        return cls(definition())

    async def advance(self, resume_value: Any = None) -> Step:
        """Async counterpart of :meth:`ResumableTask.advance`."""

        try:
            if self._started:
                yielded = await self._cursor.asend(resume_value)
            else:
                self._started = True
                yielded = await self._cursor.__anext__()
        except StopAsyncIteration:
            return Step(done=True)
        return Step(done=False, yielded=yielded)

    async def close(self) -> None:
        await self._cursor.aclose()
