"""
Status Aggregator for property and datacenter traffic reports.

Telemetry from the reporting service is incomplete by nature: a disabled
traffic target serves no requests and therefore does not show up in traffic
reports at all. The aggregator merges telemetry with the live property
configuration so every declared traffic target appears in the report, and
computes each datacenter's share of the property's requests.

The live property is only read, never modified.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

from .models import (
    DatacenterTrafficRow,
    IpAvailabilityReport,
    IpStatus,
    Property,
    PropertyTrafficReport,
    PropertyTrafficRow,
    TrafficWindow,
)

DEFAULT_PERIOD = timedelta(minutes=15)
NOT_AVAILABLE = "Not Available"
BACKFILL_STATUS = "0"

_PERIOD_PATTERN = re.compile(r"(\d+(?:\.\d+)?)(h|m|s)")
_PERIOD_UNITS = {"h": "hours", "m": "minutes", "s": "seconds"}


@dataclass
class DatacenterStatusSummary:
    """Traffic share and IP availability of one datacenter for a property."""

    datacenter_id: int
    nickname: Optional[str] = None
    target_name: Optional[str] = None
    enabled: Optional[bool] = None
    requests: int = 0
    percentage: float = 0.0
    status: str = BACKFILL_STATUS
    ips: list[IpStatus] = field(default_factory=list)

    @property
    def usage(self) -> str:
        return f"{self.percentage:.2f}%"

    def to_dict(self) -> dict:
        return {
            "datacenterId": self.datacenter_id,
            "nickname": self.nickname,
            "trafficTargetName": self.target_name,
            "enabled": self.enabled,
            "dcTotalPeriodRequests": self.requests,
            "dcPropertyUsage": self.usage,
            "status": self.status,
            "ips": [ip.to_dict() for ip in self.ips],
        }


@dataclass
class AvailabilityRow:
    """One flattened row of the availability view (one per IP)."""

    summary: DatacenterStatusSummary
    ip: Optional[IpStatus]
    first: bool


@dataclass
class AggregatedReport:
    """Property status combining telemetry with configuration truth."""

    domain: str
    property_name: str
    period_start: Optional[str] = None
    period_end: Optional[str] = None
    report_interval: Optional[str] = None
    last_update: str = NOT_AVAILABLE
    cut_off: Optional[float] = None
    datacenters: list[DatacenterStatusSummary] = field(default_factory=list)
    interval_status: list[PropertyTrafficRow] = field(default_factory=list)

    @property
    def total_requests(self) -> int:
        return sum(dc.requests for dc in self.datacenters)

    def availability_rows(self) -> list[AvailabilityRow]:
        """
        Flatten to one row per IP.

        A datacenter without IP entries still yields a placeholder row so
        positional table rendering stays aligned.
        """
        rows: list[AvailabilityRow] = []
        for dc in self.datacenters:
            if not dc.ips:
                rows.append(AvailabilityRow(summary=dc, ip=None, first=True))
                continue
            for index, ip in enumerate(dc.ips):
                rows.append(AvailabilityRow(summary=dc, ip=ip, first=index == 0))
        return rows

    def to_dict(self) -> dict:
        return {
            "domain": self.domain,
            "propertyName": self.property_name,
            "periodStart": self.period_start,
            "periodEnd": self.period_end,
            "reportInterval": self.report_interval,
            "statusSummary": {
                "lastUpdate": self.last_update,
                "cutOff": self.cut_off,
                "propertyDCStatus": [dc.to_dict() for dc in self.datacenters],
            },
            "datacenterIntervalStatus": [row.to_dict() for row in self.interval_status],
        }


@dataclass
class DatacenterStatusDetail:
    """Traffic of one datacenter across the domain's properties."""

    datacenter_id: int
    nickname: Optional[str] = None
    report_interval: Optional[str] = None
    rows: list[DatacenterTrafficRow] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "datacenterId": self.datacenter_id,
            "datacenterNickname": self.nickname,
            "reportInterval": self.report_interval,
            "dcStatusByProperty": [row.to_dict() for row in self.rows],
        }


@dataclass
class DatacenterTrafficStatus:
    """Traffic status for a set of datacenters of a domain."""

    domain: str
    period_start: str
    period_end: str
    datacenters: list[DatacenterStatusDetail] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "domain": self.domain,
            "periodStart": self.period_start,
            "periodEnd": self.period_end,
            "statusByDatacenter": [dc.to_dict() for dc in self.datacenters],
        }


def parse_period(period: str) -> timedelta:
    """
    Parse a period such as '15m', '1h30m' or '90s'.

    Unparseable input falls back to the default 15 minute period.
    """
    text = (period or "").strip().lower()
    if not text:
        return DEFAULT_PERIOD
    matches = list(_PERIOD_PATTERN.finditer(text))
    if not matches or "".join(m.group(0) for m in matches) != text:
        return DEFAULT_PERIOD
    delta = timedelta()
    for m in matches:
        delta += timedelta(**{_PERIOD_UNITS[m.group(2)]: float(m.group(1))})
    return delta if delta > timedelta() else DEFAULT_PERIOD


def compute_window(window: TrafficWindow, period: str) -> tuple[str, str]:
    """
    Compute the query window ending at the latest available report data.

    Returns:
        Tuple of (start, end) as RFC 3339 strings
    """
    end = datetime.fromisoformat(window.end.replace("Z", "+00:00"))
    start = end - parse_period(period)
    return _rfc3339(start), _rfc3339(end)


def _rfc3339(value: datetime) -> str:
    return value.isoformat().replace("+00:00", "Z")


class StatusAggregator:
    """Merges traffic and IP telemetry with live property configuration."""

    def aggregate(
        self,
        traffic: PropertyTrafficReport,
        ip_availability: IpAvailabilityReport,
        live_property: Property,
    ) -> AggregatedReport:
        """
        Build the status report of a property.

        Args:
            traffic: Property traffic rows for the query window
            ip_availability: IP availability (most recent row is used)
            live_property: The property's live configuration

        Returns:
            AggregatedReport with one summary per declared or reporting datacenter
        """
        report = AggregatedReport(
            domain=ip_availability.metadata.domain or traffic.metadata.domain,
            property_name=(
                ip_availability.metadata.property_name
                or traffic.metadata.property_name
                or live_property.name
            ),
            period_start=traffic.metadata.start,
            period_end=traffic.metadata.end,
            report_interval=traffic.metadata.interval,
            interval_status=list(traffic.rows),
        )

        summaries = self._summarize_traffic(traffic.rows)
        self._apply_percentages(summaries)
        targets = live_property.targets_by_datacenter()

        ordered: list[DatacenterStatusSummary] = []
        for dc_id, target in targets.items():
            summary = summaries.pop(dc_id, None)
            if summary is None:
                summary = DatacenterStatusSummary(
                    datacenter_id=dc_id,
                    target_name=target.name,
                    requests=0,
                    percentage=0.0,
                    status=BACKFILL_STATUS,
                )
            summary.enabled = target.enabled
            if summary.target_name is None:
                summary.target_name = target.name
            ordered.append(summary)
        # Telemetry for datacenters the property no longer declares
        ordered.extend(summaries.values())

        if ip_availability.rows:
            latest = ip_availability.rows[0]
            report.last_update = latest.timestamp
            report.cut_off = latest.cut_off
            by_id = {dc.datacenter_id: dc for dc in ordered}
            for ip_dc in latest.datacenters:
                summary = by_id.get(ip_dc.datacenter_id)
                if summary is None:
                    summary = DatacenterStatusSummary(datacenter_id=ip_dc.datacenter_id)
                    by_id[ip_dc.datacenter_id] = summary
                    ordered.append(summary)
                summary.ips.extend(ip_dc.ips)
                summary.nickname = summary.nickname or ip_dc.nickname
                summary.target_name = summary.target_name or ip_dc.traffic_target_name

        report.datacenters = ordered
        return report

    def _summarize_traffic(
        self, rows: list[PropertyTrafficRow]
    ) -> dict[int, DatacenterStatusSummary]:
        """Sum requests per datacenter; status is taken from the latest row."""
        summaries: dict[int, DatacenterStatusSummary] = {}
        for row in rows:
            for dc in row.datacenters:
                summary = summaries.get(dc.datacenter_id)
                if summary is None:
                    summary = DatacenterStatusSummary(datacenter_id=dc.datacenter_id)
                    summaries[dc.datacenter_id] = summary
                summary.requests += dc.requests
                summary.status = dc.status
                summary.nickname = dc.nickname or summary.nickname
                summary.target_name = dc.traffic_target_name or summary.target_name
        return summaries

    def _apply_percentages(self, summaries: dict[int, DatacenterStatusSummary]) -> None:
        total = sum(s.requests for s in summaries.values())
        for summary in summaries.values():
            if total > 0:
                summary.percentage = (summary.requests / total) * 100
            else:
                summary.percentage = 0.0

    def aggregate_datacenters(
        self,
        domain: str,
        period_start: str,
        period_end: str,
        reports: list,
    ) -> DatacenterTrafficStatus:
        """
        Build the per-datacenter traffic view.

        Args:
            domain: Domain name
            period_start: Query window start
            period_end: Query window end
            reports: Pairs of (datacenter id, DatacenterTrafficReport)
        """
        status = DatacenterTrafficStatus(
            domain=domain,
            period_start=period_start,
            period_end=period_end,
        )
        for dc_id, report in reports:
            status.datacenters.append(DatacenterStatusDetail(
                datacenter_id=dc_id,
                nickname=report.metadata.datacenter_nickname,
                report_interval=report.metadata.interval,
                rows=list(report.rows),
            ))
        return status
