"""Type guards telling plain callables apart from step-wise task definitions."""

from __future__ import annotations

import inspect


def is_function(value: object) -> bool:
    return callable(value)


def is_generator_function(value: object) -> bool:
    return callable(value) and inspect.isgeneratorfunction(value)


def is_async_generator_function(value: object) -> bool:
    return callable(value) and inspect.isasyncgenfunction(value)
