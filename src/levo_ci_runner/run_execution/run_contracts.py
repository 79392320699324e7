"""Run execution entities."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from levo_ci_runner.configuration.runtime_settings import ExecutionMode


class JobResult(str, Enum):
    """CI job result a run maps to."""

    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"
    ABORTED = "ABORTED"

    @property
    def exit_status(self) -> int:
        return {JobResult.SUCCESS: 0, JobResult.FAILURE: 1, JobResult.ABORTED: 130}[self]


@dataclass(frozen=True)
class RunRequest:
    """Input contract for executing one build step."""

    config_path: str
    workspace: str


@dataclass(frozen=True)
class RunOutcome:
    """Output contract for one finished build step."""

    result: JobResult
    mode: ExecutionMode | None = None
    exit_code: int | None = None
    junit_report_path: Path | None = None
    message: str | None = None
