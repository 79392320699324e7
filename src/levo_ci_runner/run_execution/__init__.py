"""Run execution domain exports."""

from .credential_lifecycle import (
    CleanupWarning,
    CredentialLifecycleManager,
    CredentialSession,
    LoginError,
)
from .levo_run_use_case import (
    ExecutionError,
    RunCancelled,
    cancellation_on_sigterm,
    execute_levo_run,
    run_build_step,
)
from .run_contracts import JobResult, RunOutcome, RunRequest

__all__ = [
    "CleanupWarning",
    "CredentialLifecycleManager",
    "CredentialSession",
    "LoginError",
    "ExecutionError",
    "RunCancelled",
    "cancellation_on_sigterm",
    "execute_levo_run",
    "run_build_step",
    "JobResult",
    "RunOutcome",
    "RunRequest",
]
