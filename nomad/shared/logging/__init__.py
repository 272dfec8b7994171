"""Logging configuration and utilities."""

from nomad.shared.logging.config import (
    TRANSITIONS_LOGGER,
    StructuredFormatter,
    log_state_transition,
    setup_logging,
)

__all__ = [
    "TRANSITIONS_LOGGER",
    "StructuredFormatter",
    "log_state_transition",
    "setup_logging",
]
