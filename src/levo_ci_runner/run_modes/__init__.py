"""Run mode domain exports."""

from .mode_dispatch import (
    DEFAULT_EXECUTION_MODE,
    AppNameRun,
    DispatchedRun,
    RemoteTestRun,
    RunMode,
    TestPlanRun,
    dispatch,
    normalize_data_source,
    normalize_run_on,
    select_mode,
    tokenize_extra_arguments,
)

__all__ = [
    "DEFAULT_EXECUTION_MODE",
    "AppNameRun",
    "DispatchedRun",
    "RemoteTestRun",
    "RunMode",
    "TestPlanRun",
    "dispatch",
    "normalize_data_source",
    "normalize_run_on",
    "select_mode",
    "tokenize_extra_arguments",
]
