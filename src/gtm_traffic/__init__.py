"""
GTM Traffic - traffic target management for global traffic management domains.

This package reconciles operator changes to traffic targets against a
domain's live configuration, submits the minimal update, follows its
propagation, and aggregates traffic telemetry with configuration into
status reports.
"""

__version__ = "0.1.0"
__author__ = "GTM Traffic Team"

from gtm_traffic.exceptions import (
    GTMError,
    ValidationError,
    NotFoundError,
    RemoteServiceError,
    PropertyUpdateError,
    PollFetchError,
)
from gtm_traffic.enums import (
    ChangeKind,
    LogLevel,
    MonitorState,
    OutputFormat,
    PropagationStatus,
)
from gtm_traffic.config import (
    ApiConfig,
    MonitorConfig,
    ReportConfig,
    LoggingConfig,
    SystemConfig,
)
from gtm_traffic.models import (
    Datacenter,
    TrafficTarget,
    LivenessTest,
    Property,
    Domain,
    DeploymentStatus,
    TrafficWindow,
    PropertyTrafficReport,
    DatacenterTrafficReport,
    IpAvailabilityReport,
)
from gtm_traffic.descriptor import (
    DesiredChange,
    TargetOverride,
    parse_bool,
    parse_target_override,
    collect_target_overrides,
    parse_datacenter_selectors,
    resolve_nicknames,
)
from gtm_traffic.diff_engine import (
    DiffEngine,
    FieldChange,
    ReconcileResult,
)
from gtm_traffic.config_client import (
    ConfigClient,
    ConfigService,
)
from gtm_traffic.reports_client import (
    ReportsClient,
    ReportsService,
)
from gtm_traffic.applier import (
    MutationApplier,
)
from gtm_traffic.monitor import (
    PollOutcome,
    PropagationMonitor,
)
from gtm_traffic.aggregator import (
    AggregatedReport,
    DatacenterStatusSummary,
    DatacenterTrafficStatus,
    StatusAggregator,
    compute_window,
    parse_period,
)
from gtm_traffic.audit_logger import (
    AuditLogger,
    LogEntry,
)
from gtm_traffic.i18n import (
    get_message,
    get_all_message_keys,
    get_missing_translations,
    TRANSLATIONS,
    SUPPORTED_LANGUAGES,
    DEFAULT_LANGUAGE,
)
from gtm_traffic.orchestrator import (
    UpdateOrchestrator,
    ReportingOrchestrator,
    UpdateSummary,
    UpdateRecord,
    FailedUpdate,
    PlannedChange,
    DetailedStatus,
    SummaryStatus,
    resolve_datacenters,
)
from gtm_traffic.cli import (
    main as cli_main,
    create_parser,
    create_default_config,
    load_config_from_file,
    save_config_to_file,
)

__all__ = [
    # Exceptions
    "GTMError",
    "ValidationError",
    "NotFoundError",
    "RemoteServiceError",
    "PropertyUpdateError",
    "PollFetchError",
    # Enums
    "ChangeKind",
    "LogLevel",
    "MonitorState",
    "OutputFormat",
    "PropagationStatus",
    # Configuration
    "ApiConfig",
    "MonitorConfig",
    "ReportConfig",
    "LoggingConfig",
    "SystemConfig",
    # Models
    "Datacenter",
    "TrafficTarget",
    "LivenessTest",
    "Property",
    "Domain",
    "DeploymentStatus",
    "TrafficWindow",
    "PropertyTrafficReport",
    "DatacenterTrafficReport",
    "IpAvailabilityReport",
    # Descriptor
    "DesiredChange",
    "TargetOverride",
    "parse_bool",
    "parse_target_override",
    "collect_target_overrides",
    "parse_datacenter_selectors",
    "resolve_nicknames",
    # Diff Engine
    "DiffEngine",
    "FieldChange",
    "ReconcileResult",
    # Clients
    "ConfigClient",
    "ConfigService",
    "ReportsClient",
    "ReportsService",
    # Applier / Monitor
    "MutationApplier",
    "PollOutcome",
    "PropagationMonitor",
    # Aggregator
    "AggregatedReport",
    "DatacenterStatusSummary",
    "DatacenterTrafficStatus",
    "StatusAggregator",
    "compute_window",
    "parse_period",
    # Audit Logger
    "AuditLogger",
    "LogEntry",
    # I18n
    "get_message",
    "get_all_message_keys",
    "get_missing_translations",
    "TRANSLATIONS",
    "SUPPORTED_LANGUAGES",
    "DEFAULT_LANGUAGE",
    # Orchestrator
    "UpdateOrchestrator",
    "ReportingOrchestrator",
    "UpdateSummary",
    "UpdateRecord",
    "FailedUpdate",
    "PlannedChange",
    "DetailedStatus",
    "SummaryStatus",
    "resolve_datacenters",
    # CLI
    "cli_main",
    "create_parser",
    "create_default_config",
    "load_config_from_file",
    "save_config_to_file",
]
