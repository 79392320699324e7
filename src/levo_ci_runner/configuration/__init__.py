"""Configuration domain exports."""

from .config_scaffold_builder import (
    DEFAULT_CONFIG_FILENAME,
    build_placeholder_configuration,
    write_placeholder_configuration,
)
from .field_resolution import first_non_blank, resolve_flag
from .loader import ConfigurationError, build_run_configuration, load_step_configuration
from .runtime_settings import ExecutionMode, RunConfiguration, RuntimeSettings

__all__ = [
    "ExecutionMode",
    "RunConfiguration",
    "RuntimeSettings",
    "ConfigurationError",
    "build_run_configuration",
    "load_step_configuration",
    "first_non_blank",
    "resolve_flag",
    "DEFAULT_CONFIG_FILENAME",
    "build_placeholder_configuration",
    "write_placeholder_configuration",
]
