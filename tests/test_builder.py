from __future__ import annotations

import allure
import pytest

from task_harness import (
    ConstructionError,
    FinalizedTask,
    HandledTask,
    InvalidFinalizer,
    InvalidHandler,
    InvalidTaskKind,
    PendingTask,
    perform,
    perform_async,
)
from task_harness.models import ExecutionMode

pytestmark = [
    allure.epic("Task Engine"),
    allure.feature("Builder Gating"),
]


def _task():
    yield 1


async def _async_task():
    yield 1


def _handler(context, controls) -> None:
    pass


@pytest.mark.parametrize("value", [lambda: None, _async_task, None, 42, "task"])
def test_perform_rejects_non_generator_functions(value) -> None:
    with pytest.raises(InvalidTaskKind, match="is not a generator function"):
        perform(value)


@pytest.mark.parametrize("value", [lambda: None, _task, None])
def test_perform_async_rejects_non_async_generator_functions(value) -> None:
    with pytest.raises(InvalidTaskKind, match="is not an async generator function"):
        perform_async(value)


def test_construction_errors_are_type_errors() -> None:
    with pytest.raises(TypeError):
        perform(None)
    assert issubclass(InvalidHandler, ConstructionError)
    assert issubclass(InvalidFinalizer, ConstructionError)


def test_pending_task_only_exposes_attach_handler() -> None:
    pending = perform(_task)

    assert isinstance(pending, PendingTask)
    assert pending.mode is ExecutionMode.SYNC
    assert callable(pending.attach_handler)
    assert not hasattr(pending, "start")
    assert not hasattr(pending, "attach_finalizer")


def test_handled_task_exposes_finalizer_and_start() -> None:
    handled = perform(_task).attach_handler(_handler)

    assert isinstance(handled, HandledTask)
    assert callable(handled.attach_finalizer)
    assert callable(handled.start)
    assert not hasattr(handled, "attach_handler")


def test_finalized_task_only_exposes_start() -> None:
    finalized = perform(_task).attach_handler(_handler).attach_finalizer(lambda: None)

    assert isinstance(finalized, FinalizedTask)
    assert callable(finalized.start)
    assert not hasattr(finalized, "attach_finalizer")
    assert not hasattr(finalized, "attach_handler")


@pytest.mark.parametrize("value", [None, 3, "handler", {}])
def test_attach_handler_rejects_non_callables(value) -> None:
    with pytest.raises(InvalidHandler, match="is not a function"):
        perform(_task).attach_handler(value)


@pytest.mark.parametrize("value", [None, 3, []])
def test_attach_finalizer_rejects_non_callables(value) -> None:
    with pytest.raises(InvalidFinalizer, match="is not a function"):
        perform(_task).attach_handler(_handler).attach_finalizer(value)


def test_async_gates_mirror_sync_gates() -> None:
    pending = perform_async(_async_task)
    assert pending.mode is ExecutionMode.ASYNC

    finalized = pending.attach_handler(_handler).attach_finalizer(lambda: None)
    coroutine = finalized.start()
    try:
        assert hasattr(coroutine, "__await__")
    finally:
        coroutine.close()


def test_building_without_start_has_no_side_effects() -> None:
    events: list[str] = []

    def task():
        events.append("body")
        yield lambda: events.append("computation")

    def handler(context, controls) -> None:
        events.append("handler")

    perform(task).attach_handler(handler).attach_finalizer(lambda: events.append("final"))

    assert events == []


def test_sync_task_rejects_coroutine_handler_and_finalizer() -> None:
    async def handler(context, controls) -> None:
        controls.recover(1)

    async def finalizer() -> None:
        pass

    with pytest.raises(InvalidHandler, match="is a coroutine function"):
        perform(_task).attach_handler(handler)
    with pytest.raises(InvalidFinalizer, match="is a coroutine function"):
        perform(_task).attach_handler(_handler).attach_finalizer(finalizer)


def test_async_task_accepts_coroutine_handler_and_finalizer() -> None:
    async def handler(context, controls) -> None:
        controls.recover(1)

    async def finalizer() -> None:
        pass

    finalized = perform_async(_async_task).attach_handler(handler).attach_finalizer(finalizer)

    assert isinstance(finalized, FinalizedTask)
