"""Value types shared by the execution driver and the error negotiator."""

from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

INFINITE = math.inf


class ExecutionMode(str, Enum):
    """Whether task steps may suspend on awaitables."""

    SYNC = "sync"
    ASYNC = "async"


class Directive(str, Enum):
    """Outcome of one recovery negotiation."""

    NONE = "none"
    RESTART = "restart"
    RECOVER = "recover"
    RETRY = "retry"
    RETRY_SUCCEEDED = "retry_succeeded"
    UNHANDLED = "unhandled"


class RunOutcome(str, Enum):
    """How a single execution attempt ended."""

    COMPLETED = "completed"
    RESTART = "restart"
    ABSORBED = "absorbed"


@dataclass(slots=True, frozen=True)
class Decision:
    """Tagged recovery decision; ``value`` is the resume value or the retry budget."""

    directive: Directive
    value: Any = None


NO_DECISION = Decision(Directive.NONE)
UNHANDLED = Decision(Directive.UNHANDLED)
RESTART = Decision(Directive.RESTART)


@dataclass(slots=True, frozen=True)
class ErrorContext:
    """Error shown to the handler.

    ``is_recoverable`` is true when the error came from evaluating a yielded
    computation and false when it came from the task body itself. ``attempt``
    counts handler invocations within the current negotiation.
    """

    error: BaseException
    is_recoverable: bool
    attempt: int = 1


@dataclass(slots=True, frozen=True)
class RecoveryControls:
    """Recovery primitives offered to the handler for one failure."""

    recover: Callable[..., None]
    retry: Callable[..., None]
    restart: Callable[[], None]


Handler = Callable[[ErrorContext, RecoveryControls], Any]
Finalizer = Callable[[], Any]
