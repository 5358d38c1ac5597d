"""Shared test fixtures."""

from __future__ import annotations

import os

import pytest


class Flaky:
    """Computation failing a fixed number of times before returning ``value``."""

    def __init__(self, failures: int, value: object = None) -> None:
        self.failures = failures
        self.value = value
        self.calls = 0

    def __call__(self) -> object:
        self.calls += 1
        if self.calls <= self.failures:
            raise RuntimeError(f"failure #{self.calls}")
        return self.value


class AsyncFlaky(Flaky):
    """Awaitable variant of :class:`Flaky`."""

    async def __call__(self) -> object:  # type: ignore[override]
        return Flaky.__call__(self)


@pytest.fixture(autouse=True)
def _clean_harness_env(monkeypatch):
    """Keep TASK_HARNESS_* variables from the outer shell out of tests."""
    for name in list(os.environ):
        if name.startswith("TASK_HARNESS_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture()
def flaky():
    return Flaky


@pytest.fixture()
def async_flaky():
    return AsyncFlaky

