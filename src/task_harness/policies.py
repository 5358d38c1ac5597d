"""Ready-made error handlers driven by retry/restart budgets."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from task_harness.config import PolicySettings
from task_harness.models import Directive, ErrorContext, RecoveryControls

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    """Budgets applied by :class:`PolicyHandler`."""

    max_retries: float = 3
    max_restarts: int = 0
    recover_on_exhaustion: bool = False
    fallback: Any = None

    @classmethod
    def from_settings(cls, settings: PolicySettings, *, fallback: Any = None) -> RetryPolicy:
        return cls(
            max_retries=settings.max_retries,
            max_restarts=settings.max_restarts,
            recover_on_exhaustion=settings.recover_on_exhaustion,
            fallback=fallback,
        )


@dataclass(slots=True)
class PolicyDecision:
    """Decision returned by the policy for one handler invocation."""

    directive: Directive
    reason: str


@dataclass(slots=True)
class HandlerSummary:
    """Counters accumulated by a policy handler across a run."""

    failures: int = 0
    unrecoverable: int = 0
    retries_requested: int = 0
    recovered: int = 0
    restarted: int = 0
    absorbed: int = 0

    def lines(self) -> list[str]:
        return [
            f"failures: {self.failures}",
            f"unrecoverable: {self.unrecoverable}",
            f"retries_requested: {self.retries_requested}",
            f"recovered: {self.recovered}",
            f"restarted: {self.restarted}",
            f"absorbed: {self.absorbed}",
        ]


def decide(policy: RetryPolicy, context: ErrorContext, *, restarts_used: int) -> PolicyDecision:
    """Pick a recovery directive for one failure."""

    can_restart = restarts_used < policy.max_restarts
    if not context.is_recoverable:
        if can_restart:
            return PolicyDecision(Directive.RESTART, "Task body failed; restart budget left.")
        return PolicyDecision(Directive.UNHANDLED, "Task body failed; no restart budget left.")

    if context.attempt == 1 and policy.max_retries > 0:
        return PolicyDecision(Directive.RETRY, "First failure of this computation.")
    if policy.recover_on_exhaustion:
        return PolicyDecision(Directive.RECOVER, "Retries exhausted; resuming with fallback.")
    if can_restart:
        return PolicyDecision(Directive.RESTART, "Retries exhausted; restart budget left.")
    return PolicyDecision(Directive.UNHANDLED, "Retries and restarts exhausted.")


class PolicyHandler:
    """Error handler applying a :class:`RetryPolicy` and counting what it did.

    The restart budget applies per run. To reuse one handler across several
    ``start()`` calls, attach :meth:`end_run` as the finalizer so the budget
    is renewed when each run ends; ``summary`` keeps accumulating.
    """

    def __init__(self, policy: RetryPolicy) -> None:
        self.policy = policy
        self.summary = HandlerSummary()
        self._restarts_this_run = 0

    def end_run(self) -> None:
        self._restarts_this_run = 0

    def __call__(self, context: ErrorContext, controls: RecoveryControls) -> None:
        self.summary.failures += 1
        if not context.is_recoverable:
            self.summary.unrecoverable += 1

        decision = decide(self.policy, context, restarts_used=self._restarts_this_run)
        logger.info(
            "Policy decided %s for %r: %s",
            decision.directive.value,
            context.error,
            decision.reason,
        )
        if decision.directive is Directive.RETRY:
            self.summary.retries_requested += 1
            controls.retry(self.policy.max_retries)
        elif decision.directive is Directive.RECOVER:
            self.summary.recovered += 1
            controls.recover(self.policy.fallback)
        elif decision.directive is Directive.RESTART:
            self.summary.restarted += 1
            self._restarts_this_run += 1
            controls.restart()
        else:
            self.summary.absorbed += 1
