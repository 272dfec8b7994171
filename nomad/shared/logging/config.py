"""
Structured logging for state transitions.

Conversation transitions and generation-job stage changes go to the
`nomad.transitions` logger. Each record carries a `transition` attribute
(event name, state summary, extras) that StructuredFormatter writes out as
one JSON line; plain-text handlers still get a readable one-line message.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional


TRANSITIONS_LOGGER = "nomad.transitions"

# Keys pulled out of a state dict for the transition summary
_SUMMARY_KEYS = (
    "session_id",
    "job_id",
    "state",
    "pending_question",
    "stage",
    "percentage",
)


class StructuredFormatter(logging.Formatter):
    """
    Formats records as JSON lines.

    Output keys: timestamp, level, logger, message, plus `transition` when
    the record came from log_state_transition and `exception` when it
    carries exc_info.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        transition = getattr(record, "transition", None)
        if transition is not None:
            entry["transition"] = transition

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    logger_name: str = TRANSITIONS_LOGGER,
) -> logging.Logger:
    """
    Send transition events to their own JSON handlers.

    The logger stops propagating, so transitions no longer appear in the
    plain-text application log once this has been called.

    Args:
        level: Logging level for the transitions logger
        log_file: Optional JSON-lines file; without one, events go to stderr
        logger_name: Logger to configure

    Returns:
        The configured logger
    """
    logger = logging.getLogger(logger_name)
    logger.setLevel(level)
    logger.handlers = []
    logger.propagate = False

    handler: logging.Handler = logging.FileHandler(log_file) if log_file else logging.StreamHandler()
    handler.setFormatter(StructuredFormatter())
    logger.addHandler(handler)

    return logger


def summarize_state(state: Dict[str, Any]) -> Dict[str, Any]:
    """The non-empty summary keys of a state dict."""
    return {key: state[key] for key in _SUMMARY_KEYS if state.get(key) is not None}


def log_state_transition(
    event: str,
    state: Dict[str, Any],
    extra: Optional[Dict[str, Any]] = None,
    logger: Optional[logging.Logger] = None,
) -> None:
    """
    Log a conversation or job state transition.

    Args:
        event: Event name ("conversation_transition", "job_stage", ...)
        state: State dict; only the summary keys are kept
        extra: Additional fields for the event
        logger: Logger to use instead of the transitions logger
    """
    logger = logger or logging.getLogger(TRANSITIONS_LOGGER)
    summary = summarize_state(state)

    transition: Dict[str, Any] = {"event": event, "summary": summary}
    if extra:
        transition["extra"] = extra

    details = ", ".join(f"{key}={value}" for key, value in summary.items())
    logger.info(f"[transition={event}] {details}", extra={"transition": transition})
