"""
Configuration dataclasses for the GTM traffic manager.

This module defines the configuration structures used throughout the system:
service access, propagation monitoring, report windows and logging.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class ApiConfig:
    """Access to the configuration and reporting services."""

    base_url: str
    auth_token: Optional[str] = None
    timeout_seconds: float = 30.0
    headers: dict[str, str] = field(default_factory=dict)


@dataclass
class MonitorConfig:
    """Propagation monitoring behavior."""

    poll_interval_seconds: float = 5.0
    timeout_seconds: float = 300.0


@dataclass
class ReportConfig:
    """Telemetry query configuration."""

    period: str = "15m"  # e.g. '15m', '1h', '90s'


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "info"
    output_format: str = "text"  # 'json', 'text', 'both'


@dataclass
class SystemConfig:
    """Main system configuration combining all sub-configurations."""

    api: ApiConfig
    monitor: MonitorConfig = field(default_factory=MonitorConfig)
    report: ReportConfig = field(default_factory=ReportConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    language: str = "en"  # 'en' or 'de'
