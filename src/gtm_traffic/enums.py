"""
Enumeration types for the GTM traffic manager.
"""

from enum import Enum


class PropagationStatus(Enum):
    """Remote propagation state of a configuration change."""

    PENDING = "PENDING"
    COMPLETE = "COMPLETE"
    DENIED = "DENIED"

    @property
    def is_terminal(self) -> bool:
        return self is not PropagationStatus.PENDING


class MonitorState(Enum):
    """State reported by the propagation monitor for each poll."""

    PENDING = "pending"
    COMPLETE = "complete"
    DENIED = "denied"
    TIMEOUT = "timeout"
    POLL_ERROR = "poll_error"

    @property
    def is_terminal(self) -> bool:
        return self is not MonitorState.PENDING


class LogLevel(Enum):
    """Logging severity levels."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


class OutputFormat(Enum):
    """Log output formats."""

    JSON = "json"
    TEXT = "text"
    BOTH = "both"


class ChangeKind(Enum):
    """Kind of subject a planned field change applies to."""

    TRAFFIC_TARGET = "traffic_target"
    LIVENESS_TEST = "liveness_test"
