"""Shared test doubles."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator

import pytest
from levo_ci_runner.process_execution import ProcessInvocation, ProcessResult

Responder = Callable[[ProcessInvocation], ProcessResult | BaseException]


class RecordingLauncher:
    """Launcher double that records invocations and answers from a responder."""

    def __init__(self, responder: Responder | None = None) -> None:
        self.invocations: list[ProcessInvocation] = []
        self._responder = responder or _default_responder

    def run(self, invocation: ProcessInvocation) -> ProcessResult:
        self.invocations.append(invocation)
        response = self._responder(invocation)
        if isinstance(response, BaseException):
            raise response
        return response

    def subcommands(self) -> list[str]:
        return [describe(invocation) for invocation in self.invocations]


def describe(invocation: ProcessInvocation) -> str:
    """Short name of an invocation: 'pull', 'id -u', 'login', 'test', ..."""
    argv = invocation.argv
    if argv[0] == "id":
        return " ".join(argv)
    if argv[1] == "pull":
        return "pull"
    image_index = next(index for index, arg in enumerate(argv) if arg.startswith("levoai/"))
    return argv[image_index + 1]


def _default_responder(invocation: ProcessInvocation) -> ProcessResult:
    if invocation.argv[:2] == ("id", "-u"):
        return ProcessResult(exit_code=0, output="1000\n")
    if invocation.argv[:2] == ("id", "-g"):
        return ProcessResult(exit_code=0, output="1001\n")
    return ProcessResult(exit_code=0)


@pytest.fixture
def recording_launcher() -> Callable[..., RecordingLauncher]:
    return RecordingLauncher


@pytest.fixture
def default_responder() -> Responder:
    return _default_responder


@pytest.fixture(autouse=True)
def _reset_package_logger() -> Iterator[None]:
    package_logger = logging.getLogger("levo_ci_runner")
    level = package_logger.level
    yield
    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)
    package_logger.setLevel(level)
