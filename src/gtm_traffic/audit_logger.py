"""
Audit Logger module for the GTM traffic manager.

Provides structured logging with dual-format output (JSON and human-readable
text), minimum-level filtering and masking of credentials in log data.
"""

import json
import sys
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, TextIO

from gtm_traffic.enums import LogLevel, OutputFormat


_LEVEL_ORDER = {
    LogLevel.DEBUG: 0,
    LogLevel.INFO: 1,
    LogLevel.WARN: 2,
    LogLevel.ERROR: 3,
}


@dataclass
class LogEntry:
    """Represents a single log entry with all metadata."""

    timestamp: str
    level: LogLevel
    component: str
    message: str
    data: dict = field(default_factory=dict)


class AuditLogger:
    """
    Structured logger for configuration changes and status queries.

    Supports:
    - JSON and human-readable text output formats
    - Minimum level filtering (entries below it are dropped)
    - Automatic masking of credentials (tokens, secrets, authorization headers)
    """

    # Keys that should be masked in log output
    SENSITIVE_KEYS = frozenset({
        'token', 'secret', 'password', 'auth', 'authorization',
        'credential', 'client_secret', 'access_token', 'client_token',
    })

    MASK_VALUE = "***MASKED***"

    def __init__(
        self,
        output_format: str = "text",
        output_stream: Optional[TextIO] = None,
        level: str = "info",
    ):
        """
        Initialize the audit logger.

        Args:
            output_format: Output format - 'json', 'text', or 'both'
            output_stream: Output stream for log entries (defaults to sys.stderr)
            level: Minimum level - 'debug', 'info', 'warn' or 'error'
        """
        try:
            self._output_format = OutputFormat(output_format)
        except ValueError:
            raise ValueError(f"Invalid output_format: {output_format}")
        try:
            self._min_level = LogLevel(level)
        except ValueError:
            raise ValueError(f"Invalid log level: {level}")

        self._output_stream = output_stream or sys.stderr
        self._entries: list[LogEntry] = []

    @property
    def output_format(self) -> str:
        return self._output_format.value

    @property
    def entries(self) -> list[LogEntry]:
        """Get all emitted entries."""
        return self._entries.copy()

    def is_enabled_for(self, level: LogLevel) -> bool:
        return _LEVEL_ORDER[level] >= _LEVEL_ORDER[self._min_level]

    def log(
        self,
        level: LogLevel,
        component: str,
        message: str,
        data: Optional[dict] = None,
    ) -> Optional[LogEntry]:
        """
        Log an entry in the configured format(s).

        Returns:
            The created LogEntry, or None if the level is filtered out
        """
        if not self.is_enabled_for(level):
            return None

        entry = LogEntry(
            timestamp=datetime.now(timezone.utc).isoformat(),
            level=level,
            component=component,
            message=message,
            data=self.mask_sensitive_data(data or {}),
        )
        self._entries.append(entry)
        self._output_entry(entry)
        return entry

    def log_error(
        self,
        component: str,
        message: str,
        error: Optional[Exception] = None,
        additional_data: Optional[dict] = None,
    ) -> Optional[LogEntry]:
        """Log an error together with the exception's type and text."""
        data = dict(additional_data) if additional_data else {}
        if error is not None:
            data["error_message"] = str(error)
            data["error_type"] = type(error).__name__
        return self.log(LogLevel.ERROR, component, message, data)

    def mask_sensitive_data(self, data: dict) -> dict:
        """Recursively mask values whose key names a credential."""
        if not isinstance(data, dict):
            return data

        masked = {}
        for key, value in data.items():
            key_lower = str(key).lower()
            if any(s in key_lower for s in self.SENSITIVE_KEYS):
                masked[key] = self.MASK_VALUE
            elif isinstance(value, dict):
                masked[key] = self.mask_sensitive_data(value)
            elif isinstance(value, list):
                masked[key] = [
                    self.mask_sensitive_data(item) if isinstance(item, dict) else item
                    for item in value
                ]
            else:
                masked[key] = value
        return masked

    def _output_entry(self, entry: LogEntry) -> None:
        if self._output_format in (OutputFormat.JSON, OutputFormat.BOTH):
            self._output_stream.write(self.format_json(entry) + "\n")
        if self._output_format in (OutputFormat.TEXT, OutputFormat.BOTH):
            self._output_stream.write(self.format_text(entry) + "\n")
        self._output_stream.flush()

    def format_json(self, entry: LogEntry) -> str:
        return json.dumps({
            "timestamp": entry.timestamp,
            "level": entry.level.value,
            "component": entry.component,
            "message": entry.message,
            "data": entry.data,
        }, ensure_ascii=False, default=str)

    def format_text(self, entry: LogEntry) -> str:
        # [TIMESTAMP] LEVEL [COMPONENT] MESSAGE {data}
        parts = [
            f"[{entry.timestamp}]",
            entry.level.value.upper(),
            f"[{entry.component}]",
            entry.message,
        ]
        if entry.data:
            parts.append(json.dumps(entry.data, ensure_ascii=False, default=str))
        return " ".join(parts)
