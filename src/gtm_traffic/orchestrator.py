"""
Orchestration of configuration updates and status queries.

This module wires the components into the flows of one invocation:

- update-property: validate → fetch property → reconcile → apply → (monitor)
- update-datacenter: validate → fetch domain → per property:
  reconcile → apply → (monitor); failures are isolated per property
- query-status: fetch telemetry window, IP availability, traffic and the live
  property → aggregate

The steps of a flow always run in this order and one at a time. Batch results
are returned as an explicit UpdateSummary value; nothing is shared between
invocations.
"""

import time
from dataclasses import dataclass, field
from functools import partial
from typing import Callable, Iterable, Optional, Union

from .aggregator import (
    AggregatedReport,
    DatacenterTrafficStatus,
    StatusAggregator,
    compute_window,
)
from .applier import MutationApplier
from .audit_logger import AuditLogger
from .config import MonitorConfig, ReportConfig
from .config_client import ConfigService
from .descriptor import DesiredChange, parse_datacenter_selectors, resolve_nicknames
from .diff_engine import DiffEngine, FieldChange, ReconcileResult
from .enums import LogLevel
from .exceptions import PropertyUpdateError, RemoteServiceError
from .models import DeploymentStatus, TrafficWindow
from .monitor import PollOutcome, PropagationMonitor
from .reports_client import ReportsService


@dataclass
class DetailedStatus:
    """Full deployment status, reported in verbose mode."""

    status: DeploymentStatus

    @property
    def change_id(self) -> str:
        return self.status.change_id

    def to_dict(self) -> dict:
        return self.status.to_dict()


@dataclass
class SummaryStatus:
    """Change id only, reported in non-verbose mode."""

    change_id: str

    def to_dict(self) -> dict:
        return {"changeId": self.change_id}


StatusView = Union[DetailedStatus, SummaryStatus]


def status_view(status: DeploymentStatus, verbose: bool) -> StatusView:
    """Select the status representation once, at the boundary."""
    if verbose:
        return DetailedStatus(status=status)
    return SummaryStatus(change_id=status.change_id)


@dataclass
class UpdateRecord:
    """A property whose submission was accepted."""

    property_name: str
    status: StatusView
    outcome: Optional[PollOutcome] = None

    def to_dict(self) -> dict:
        out = {"propertyName": self.property_name, "status": self.status.to_dict()}
        if self.outcome is not None:
            out["completion"] = self.outcome.state.value
        return out


@dataclass
class FailedUpdate:
    """A property whose submission was rejected or failed."""

    property_name: str
    message: str
    code: str = ""

    def to_dict(self) -> dict:
        return {"propertyName": self.property_name, "failMessage": self.message, "code": self.code}


@dataclass
class PlannedChange:
    """Changes a dry run would have submitted for one property."""

    property_name: str
    changes: list[FieldChange] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "propertyName": self.property_name,
            "changes": [c.to_dict() for c in self.changes],
        }


@dataclass
class UpdateSummary:
    """Result of an update invocation."""

    updated: list[UpdateRecord] = field(default_factory=list)
    failed: list[FailedUpdate] = field(default_factory=list)
    planned: list[PlannedChange] = field(default_factory=list)
    dry_run: bool = False

    @property
    def has_changes(self) -> bool:
        return bool(self.updated or self.failed or self.planned)

    @property
    def all_failed(self) -> bool:
        """True if submissions were attempted and every one of them failed."""
        return bool(self.failed) and not self.updated

    def to_dict(self) -> dict:
        if self.dry_run:
            return {"plannedChanges": [p.to_dict() for p in self.planned]}
        return {
            "updatedProperties": [u.to_dict() for u in self.updated],
            "failedUpdates": [f.to_dict() for f in self.failed],
        }


PollCallback = Callable[[str, PollOutcome], None]


def resolve_datacenters(
    config_service: ConfigService,
    domain: str,
    selectors: Iterable[str],
) -> list[int]:
    """
    Turn datacenter selectors (ids or nicknames) into datacenter ids.

    The domain's datacenter list is only fetched if a nickname is given.
    """
    ids, nicknames = parse_datacenter_selectors(selectors)
    if nicknames:
        datacenters = config_service.list_datacenters(domain)
        for dc_id in resolve_nicknames(nicknames, datacenters):
            if dc_id not in ids:
                ids.append(dc_id)
    return ids


class UpdateOrchestrator:
    """Runs update-property and update-datacenter flows."""

    def __init__(
        self,
        config_service: ConfigService,
        monitor_config: Optional[MonitorConfig] = None,
        logger: Optional[AuditLogger] = None,
        sleep: Callable[[float], None] = time.sleep,
        on_poll: Optional[PollCallback] = None,
    ) -> None:
        """
        Initialize the orchestrator.

        Args:
            config_service: Configuration service (client or fake)
            monitor_config: Poll interval and timeout for completion waits
            logger: Optional audit logger
            sleep: Sleep function used between polls
            on_poll: Optional callback receiving (property name, outcome) for
                every poll, for progress display
        """
        self._config_service = config_service
        self._monitor_config = monitor_config or MonitorConfig()
        self._logger = logger
        self._sleep = sleep
        self._on_poll = on_poll
        self._diff_engine = DiffEngine()
        self._applier = MutationApplier(config_service, logger=logger)

    def update_property(
        self,
        domain: str,
        property_name: str,
        change: DesiredChange,
        verbose: bool = False,
        wait: bool = False,
        dry_run: bool = False,
    ) -> UpdateSummary:
        """
        Reconcile and submit one property.

        Raises:
            ValidationError: If the change is invalid or does not apply
            NotFoundError: If the property does not exist
        """
        change.validate()
        live = self._config_service.get_property(property_name, domain)
        self._log_info(f"Property {live.name} contains {len(live.traffic_targets)} targets", {
            "domain": domain,
            "property": live.name,
        })

        result = self._diff_engine.reconcile(live, change, strict=True)
        summary = UpdateSummary(dry_run=dry_run)
        self._submit(domain, result, summary, verbose, wait)
        return summary

    def update_datacenter(
        self,
        domain: str,
        datacenter_ids: Iterable[int],
        enabled: Optional[bool],
        verbose: bool = False,
        wait: bool = False,
        dry_run: bool = False,
    ) -> UpdateSummary:
        """
        Enable or disable datacenter traffic targets in every property.

        Each property runs its full cycle, including completion wait, before
        the next one starts. A failed submission is recorded and the batch
        continues.

        Raises:
            ValidationError: If no datacenter or no enable/disable directive
                is given
            NotFoundError: If the domain does not exist
        """
        change = DesiredChange(datacenter_ids=tuple(datacenter_ids), enabled=enabled)
        change.validate()

        dom = self._config_service.get_domain(domain)
        self._log_info(f"{dom.name} contains {len(dom.properties)} properties", {
            "domain": domain,
        })

        summary = UpdateSummary(dry_run=dry_run)
        for prop in dom.properties:
            result = self._diff_engine.reconcile(prop, change, strict=False)
            self._submit(domain, result, summary, verbose, wait)
        return summary

    def _submit(
        self,
        domain: str,
        result: ReconcileResult,
        summary: UpdateSummary,
        verbose: bool,
        wait: bool,
    ) -> None:
        name = result.property.name
        if not result.changed:
            self._log_info(f"No update required for property {name}", {"domain": domain})
            return

        if summary.dry_run:
            summary.planned.append(PlannedChange(property_name=name, changes=result.changes))
            return

        try:
            status = self._applier.apply(result.property, domain)
        except PropertyUpdateError as e:
            summary.failed.append(FailedUpdate(property_name=name, message=e.message, code=e.code))
            return

        outcome = None
        if wait:
            outcome = self._wait_for_completion(domain, name, status)
            status = outcome.status
        summary.updated.append(UpdateRecord(
            property_name=name,
            status=status_view(status, verbose),
            outcome=outcome,
        ))

    def _wait_for_completion(
        self,
        domain: str,
        property_name: str,
        status: DeploymentStatus,
    ) -> PollOutcome:
        monitor = PropagationMonitor(
            fetch_status=lambda: self._config_service.get_domain_status(domain),
            poll_interval=self._monitor_config.poll_interval_seconds,
            timeout=self._monitor_config.timeout_seconds,
            sleep=self._sleep,
            logger=self._logger,
        )
        on_outcome = partial(self._on_poll, property_name) if self._on_poll else None
        return monitor.wait(status, on_outcome)

    def _log_info(self, message: str, data: dict) -> None:
        if self._logger:
            self._logger.log(LogLevel.INFO, "UpdateOrchestrator", message, data)


class ReportingOrchestrator:
    """Runs query-status flows."""

    def __init__(
        self,
        config_service: ConfigService,
        reports_service: ReportsService,
        report_config: Optional[ReportConfig] = None,
        logger: Optional[AuditLogger] = None,
    ) -> None:
        self._config_service = config_service
        self._reports_service = reports_service
        self._report_config = report_config or ReportConfig()
        self._logger = logger
        self._aggregator = StatusAggregator()

    def query_property_status(self, domain: str, property_name: str) -> AggregatedReport:
        """
        Build the aggregated status of a property.

        Raises:
            NotFoundError: If the property does not exist
            RemoteServiceError: If a report cannot be retrieved
        """
        start, end = self._window(self._reports_service.get_properties_traffic_window())
        ip_availability = self._reports_service.get_ip_status_per_property(domain, property_name)
        traffic = self._reports_service.get_traffic_per_property(domain, property_name, start, end)
        live = self._config_service.get_property(property_name, domain)

        report = self._aggregator.aggregate(traffic, ip_availability, live)
        if self._logger:
            self._logger.log(LogLevel.INFO, "ReportingOrchestrator", "Property status collected", {
                "domain": domain,
                "property": property_name,
                "datacenters": len(report.datacenters),
                "total_requests": report.total_requests,
            })
        return report

    def query_datacenter_status(
        self,
        domain: str,
        datacenter_ids: Iterable[int],
    ) -> DatacenterTrafficStatus:
        """
        Collect traffic per datacenter across the domain's properties.

        Raises:
            RemoteServiceError: If a report cannot be retrieved
        """
        start, end = self._window(self._reports_service.get_datacenters_traffic_window())
        reports = []
        for dc_id in datacenter_ids:
            reports.append((
                dc_id,
                self._reports_service.get_traffic_per_datacenter(domain, dc_id, start, end),
            ))
        return self._aggregator.aggregate_datacenters(domain, start, end, reports)

    def _window(self, window: TrafficWindow) -> tuple[str, str]:
        try:
            return compute_window(window, self._report_config.period)
        except ValueError as e:
            raise RemoteServiceError(
                code="parse_error",
                message=f"Invalid report window: {e}",
                details={"start": window.start, "end": window.end},
            )
