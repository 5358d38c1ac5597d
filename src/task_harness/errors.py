"""Construction-time errors raised by the task builder."""

from __future__ import annotations


class ConstructionError(TypeError):
    """Invalid argument passed to a builder operation."""


class InvalidTaskKind(ConstructionError):
    """Task definition is not a generator function of the expected kind."""

    def __init__(self, value: object, *, expected: str) -> None:
        super().__init__(f"{value!r} is not {expected}")
        self.value = value


class InvalidHandler(ConstructionError):
    """Error handler is not callable, or cannot run in the task's mode."""

    def __init__(self, value: object, *, reason: str = "is not a function") -> None:
        super().__init__(f"{value!r} {reason}")
        self.value = value


class InvalidFinalizer(ConstructionError):
    """Finalizer is not callable, or cannot run in the task's mode."""

    def __init__(self, value: object, *, reason: str = "is not a function") -> None:
        super().__init__(f"{value!r} {reason}")
        self.value = value


class InvalidRetryArgument(ConstructionError):
    """Retry budget passed to ``retry`` is not a number."""

    def __init__(self, value: object) -> None:
        super().__init__(f"{value!r} is not a valid argument for the retry function")
        self.value = value
