"""Controllers for task-harness CLI commands."""

from __future__ import annotations

import asyncio
import importlib
import math
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Any

from task_harness.builder import perform, perform_async
from task_harness.config import PolicySettings, Settings
from task_harness.guards import is_async_generator_function, is_generator_function
from task_harness.policies import PolicyHandler, RetryPolicy


class TargetError(ValueError):
    """CLI target cannot be resolved to a task definition."""


@dataclass(slots=True)
class RunTaskCommand:
    """CLI input for running one task definition under a recovery policy."""

    target: str
    max_retries: int | None = None
    retry_forever: bool = False
    max_restarts: int | None = None
    recover_on_exhaustion: bool = False


@dataclass(slots=True)
class RunTaskResult:
    """Lines to print plus the handler that drove the run."""

    lines: list[str]
    handler: PolicyHandler


class HarnessCliController:
    """Translate CLI commands into engine calls."""

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings

    def run_task(self, command: RunTaskCommand) -> RunTaskResult:
        settings = _apply_overrides(self._settings or Settings.from_env(), command)
        settings.validate()
        policy = RetryPolicy.from_settings(settings.policy)

        definition = load_target(command.target)
        handler = PolicyHandler(policy)
        if is_async_generator_function(definition):
            asyncio.run(
                perform_async(definition)
                .attach_handler(handler)
                .attach_finalizer(handler.end_run)
                .start(),
            )
            mode = "async"
        else:
            perform(definition).attach_handler(handler).attach_finalizer(handler.end_run).start()
            mode = "sync"

        lines = [f"task: {command.target}", f"mode: {mode}"]
        lines.extend(handler.summary.lines())
        return RunTaskResult(lines=lines, handler=handler)


def load_target(target: str) -> Callable[[], Any]:
    """Import ``package.module:attribute`` and check it is a task definition."""

    module_name, sep, attribute = target.partition(":")
    if not sep or not module_name or not attribute:
        raise TargetError(f"Invalid target {target!r}, expected 'module:function'")
    try:
        module = importlib.import_module(module_name)
    except ImportError as error:
        raise TargetError(f"Cannot import module {module_name!r}: {error}") from error

    value: Any = module
    for part in attribute.split("."):
        try:
            value = getattr(value, part)
        except AttributeError as error:
            raise TargetError(f"Module {module_name!r} has no attribute {attribute!r}") from error

    if not (is_generator_function(value) or is_async_generator_function(value)):
        raise TargetError(f"{target!r} is not a task definition")
    return value


def _apply_overrides(settings: Settings, command: RunTaskCommand) -> Settings:
    defaults = settings.policy
    if command.retry_forever:
        max_retries: float = math.inf
    elif command.max_retries is not None:
        max_retries = command.max_retries
    else:
        max_retries = defaults.max_retries
    policy = PolicySettings(
        max_retries=max_retries,
        max_restarts=(
            command.max_restarts if command.max_restarts is not None else defaults.max_restarts
        ),
        recover_on_exhaustion=command.recover_on_exhaustion or defaults.recover_on_exhaustion,
    )
    return replace(settings, policy=policy)
