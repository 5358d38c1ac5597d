"""Step-wise task execution with retry, recover and restart control over failures."""

from task_harness.builder import (
    BoundTask,
    FinalizedTask,
    HandledTask,
    PendingTask,
    perform,
    perform_async,
)
from task_harness.errors import (
    ConstructionError,
    InvalidFinalizer,
    InvalidHandler,
    InvalidRetryArgument,
    InvalidTaskKind,
)
from task_harness.models import INFINITE, ErrorContext, RecoveryControls
from task_harness.policies import PolicyHandler, RetryPolicy

__version__ = "0.1.0"

__all__ = [
    "INFINITE",
    "BoundTask",
    "ConstructionError",
    "ErrorContext",
    "FinalizedTask",
    "HandledTask",
    "InvalidFinalizer",
    "InvalidHandler",
    "InvalidRetryArgument",
    "InvalidTaskKind",
    "PendingTask",
    "PolicyHandler",
    "RecoveryControls",
    "RetryPolicy",
    "__version__",
    "perform",
    "perform_async",
]
