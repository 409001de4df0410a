"""Public observability primitives: scoped progress logging and log sinks."""

from gitlink.observability.logging import (
    LoggingConfig,
    LoggingHandle,
    LogScope,
    configure_structlog,
    get_active_logging_handle,
    project_scope,
    setup_logging,
    shutdown_logging,
)

__all__ = [
    "LogScope",
    "LoggingConfig",
    "LoggingHandle",
    "configure_structlog",
    "get_active_logging_handle",
    "project_scope",
    "setup_logging",
    "shutdown_logging",
]
