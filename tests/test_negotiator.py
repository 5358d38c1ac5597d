from __future__ import annotations

import math
from decimal import Decimal

import allure
import pytest

from task_harness.errors import InvalidRetryArgument
from task_harness.models import Directive
from task_harness.negotiator import (
    ControlRecorder,
    negotiate,
    negotiate_unrecoverable,
    retry_computation,
)

pytestmark = [
    allure.epic("Task Engine"),
    allure.feature("Recovery Negotiation"),
]


def test_recorder_without_calls_resolves_to_none() -> None:
    recorder = ControlRecorder(recoverable=True)

    assert recorder.close().directive is Directive.NONE


def test_recorder_precedence_is_restart_then_recover_then_retry() -> None:
    recorder = ControlRecorder(recoverable=True)
    controls = recorder.controls()
    controls.retry(2)
    controls.recover("value")
    assert recorder.close().directive is Directive.RECOVER

    recorder = ControlRecorder(recoverable=True)
    controls = recorder.controls()
    controls.recover("value")
    controls.restart()
    controls.retry(2)
    assert recorder.close().directive is Directive.RESTART


def test_recorder_keeps_last_recover_value_and_retry_budget() -> None:
    recorder = ControlRecorder(recoverable=True)
    controls = recorder.controls()
    controls.recover("first")
    controls.recover("second")
    decision = recorder.close()
    assert (decision.directive, decision.value) == (Directive.RECOVER, "second")

    recorder = ControlRecorder(recoverable=True)
    recorder.controls().retry(math.inf)
    decision = recorder.close()
    assert (decision.directive, decision.value) == (Directive.RETRY, math.inf)


def test_unrecoverable_recorder_only_honours_restart() -> None:
    recorder = ControlRecorder(recoverable=False)
    controls = recorder.controls()
    controls.recover("value")
    controls.retry("not even validated")
    assert recorder.close().directive is Directive.NONE

    recorder = ControlRecorder(recoverable=False)
    controls = recorder.controls()
    controls.recover("value")
    controls.restart()
    assert recorder.close().directive is Directive.RESTART


def test_closed_recorder_ignores_late_calls() -> None:
    recorder = ControlRecorder(recoverable=True)
    controls = recorder.controls()
    recorder.close()

    controls.restart()
    controls.recover(1)

    assert recorder.close().directive is Directive.NONE


@pytest.mark.parametrize("budget", ["1", None, math.nan, Decimal("NaN"), False, object()])
def test_retry_validates_budget(budget) -> None:
    controls = ControlRecorder(recoverable=True).controls()

    with pytest.raises(InvalidRetryArgument):
        controls.retry(budget)


def test_retry_computation_stops_at_first_success(flaky) -> None:
    computation = flaky(failures=3, value="ok")

    result = retry_computation(computation, 10)

    assert result.succeeded is True
    assert result.value == "ok"
    assert computation.calls == 4


def test_retry_computation_reports_latest_error(flaky) -> None:
    computation = flaky(failures=10)

    result = retry_computation(computation, 4)

    assert result.succeeded is False
    assert str(result.error) == "failure #4"
    assert computation.calls == 4


def test_negotiate_reports_retry_success(flaky) -> None:
    computation = flaky(failures=2, value=5)
    with pytest.raises(RuntimeError):
        computation()

    decision = negotiate(
        lambda context, controls: controls.retry(10),
        computation,
        RuntimeError("failure #1"),
    )

    assert decision.directive is Directive.RETRY_SUCCEEDED
    assert decision.value == 5


def test_negotiate_reports_unhandled_when_handler_does_nothing() -> None:
    decision = negotiate(lambda context, controls: None, lambda: None, RuntimeError("x"))

    assert decision.directive is Directive.UNHANDLED


def test_negotiate_unrecoverable_passes_flag_to_handler() -> None:
    seen = []

    def handler(context, controls) -> None:
        seen.append(context)
        controls.restart()

    decision = negotiate_unrecoverable(handler, ValueError("body"))

    assert decision.directive is Directive.RESTART
    assert seen[0].is_recoverable is False
    assert seen[0].attempt == 1