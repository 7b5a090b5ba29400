"""
Data models for the GTM traffic manager.

This module defines the configuration entities (domain, datacenter, property,
traffic target, liveness test), the deployment status returned by mutating
submissions, and the read-only telemetry rows of the reporting service.

Wire payloads use the configuration API's camelCase JSON. Fields the tool does
not model are kept in ``extra`` and written back unchanged, so a property
submission never drops configuration it does not understand.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from .enums import PropagationStatus


def _split_known(data: dict, known: tuple[str, ...]) -> dict:
    """Return the entries of ``data`` whose keys are not in ``known``."""
    return {k: v for k, v in data.items() if k not in known}


@dataclass
class Datacenter:
    """A routing destination, identified by id."""

    datacenter_id: int
    nickname: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "Datacenter":
        return cls(
            datacenter_id=int(data["datacenterId"]),
            nickname=data.get("nickname"),
        )

    def to_dict(self) -> dict:
        return {"datacenterId": self.datacenter_id, "nickname": self.nickname}


@dataclass
class TrafficTarget:
    """One routing destination of a property."""

    _KNOWN = ("datacenterId", "enabled", "weight", "servers", "name", "handoutCName")

    datacenter_id: int
    enabled: bool = False
    weight: float = 0.0
    servers: list[str] = field(default_factory=list)
    name: Optional[str] = None
    handout_cname: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> "TrafficTarget":
        return cls(
            datacenter_id=int(data["datacenterId"]),
            enabled=bool(data.get("enabled", False)),
            weight=float(data.get("weight") or 0.0),
            servers=list(data.get("servers") or []),
            name=data.get("name"),
            handout_cname=data.get("handoutCName"),
            extra=_split_known(data, cls._KNOWN),
        )

    def to_dict(self) -> dict:
        out = dict(self.extra)
        out.update({
            "datacenterId": self.datacenter_id,
            "enabled": self.enabled,
            "weight": self.weight,
            "servers": list(self.servers),
            "name": self.name,
            "handoutCName": self.handout_cname,
        })
        return out


@dataclass
class LivenessTest:
    """
    A health check attached to a property.

    Note the polarity: liveness tests carry ``disabled`` while traffic
    targets carry ``enabled``. An "enable" directive therefore clears
    ``disabled``.
    """

    _KNOWN = ("name", "disabled")

    name: str
    disabled: bool = False
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> "LivenessTest":
        return cls(
            name=data["name"],
            disabled=bool(data.get("disabled", False)),
            extra=_split_known(data, cls._KNOWN),
        )

    def to_dict(self) -> dict:
        out = dict(self.extra)
        out.update({"name": self.name, "disabled": self.disabled})
        return out


@dataclass
class Property:
    """A load-balanced resource definition within a domain."""

    _KNOWN = ("name", "trafficTargets", "livenessTests")

    name: str
    traffic_targets: list[TrafficTarget] = field(default_factory=list)
    liveness_tests: list[LivenessTest] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> "Property":
        return cls(
            name=data["name"],
            traffic_targets=[
                TrafficTarget.from_dict(t) for t in data.get("trafficTargets") or []
            ],
            liveness_tests=[
                LivenessTest.from_dict(t) for t in data.get("livenessTests") or []
            ],
            extra=_split_known(data, cls._KNOWN),
        )

    def to_dict(self) -> dict:
        out = dict(self.extra)
        out.update({
            "name": self.name,
            "trafficTargets": [t.to_dict() for t in self.traffic_targets],
            "livenessTests": [t.to_dict() for t in self.liveness_tests],
        })
        return out

    def targets_by_datacenter(self) -> dict[int, TrafficTarget]:
        """Map datacenter id to traffic target."""
        return {t.datacenter_id: t for t in self.traffic_targets}


@dataclass
class Domain:
    """Root configuration container."""

    name: str
    datacenters: list[Datacenter] = field(default_factory=list)
    properties: list[Property] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "Domain":
        return cls(
            name=data["name"],
            datacenters=[Datacenter.from_dict(d) for d in data.get("datacenters") or []],
            properties=[Property.from_dict(p) for p in data.get("properties") or []],
        )


@dataclass
class DeploymentStatus:
    """Remote status of the latest configuration change."""

    change_id: str
    message: str
    passing_validation: bool
    propagation_status: PropagationStatus
    propagation_status_date: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "DeploymentStatus":
        return cls(
            change_id=data.get("changeId") or "",
            message=data.get("message") or "",
            passing_validation=bool(data.get("passingValidation", False)),
            propagation_status=PropagationStatus(data["propagationStatus"]),
            propagation_status_date=data.get("propagationStatusDate"),
        )

    def to_dict(self) -> dict:
        return {
            "changeId": self.change_id,
            "message": self.message,
            "passingValidation": self.passing_validation,
            "propagationStatus": self.propagation_status.value,
            "propagationStatusDate": self.propagation_status_date,
        }


# ---------------------------------------------------------------------------
# Telemetry (reporting service)
# ---------------------------------------------------------------------------


@dataclass
class TrafficWindow:
    """Time range for which the reporting service holds data."""

    start: str
    end: str

    @classmethod
    def from_dict(cls, data: dict) -> "TrafficWindow":
        return cls(start=data["startTime"], end=data["endTime"])


@dataclass
class ReportMetadata:
    """Envelope metadata shared by all report responses."""

    domain: str
    start: Optional[str] = None
    end: Optional[str] = None
    interval: Optional[str] = None
    property_name: Optional[str] = None
    datacenter_id: Optional[int] = None
    datacenter_nickname: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "ReportMetadata":
        dc_id = data.get("datacenterId")
        return cls(
            domain=data.get("domain", ""),
            start=data.get("start"),
            end=data.get("end"),
            interval=data.get("interval"),
            property_name=data.get("property"),
            datacenter_id=int(dc_id) if dc_id is not None else None,
            datacenter_nickname=data.get("datacenterNickname"),
        )


@dataclass
class DatacenterTraffic:
    """Requests served by one datacenter during one report interval."""

    datacenter_id: int
    requests: int = 0
    status: str = ""
    nickname: Optional[str] = None
    traffic_target_name: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "DatacenterTraffic":
        return cls(
            datacenter_id=int(data["datacenterId"]),
            requests=int(data.get("requests") or 0),
            status=str(data.get("status", "")),
            nickname=data.get("nickname"),
            traffic_target_name=data.get("trafficTargetName"),
        )

    def to_dict(self) -> dict:
        return {
            "datacenterId": self.datacenter_id,
            "nickname": self.nickname,
            "trafficTargetName": self.traffic_target_name,
            "requests": self.requests,
            "status": self.status,
        }


@dataclass
class PropertyTrafficRow:
    """One interval of a property traffic report."""

    timestamp: str
    datacenters: list[DatacenterTraffic] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "PropertyTrafficRow":
        return cls(
            timestamp=data.get("timestamp", ""),
            datacenters=[DatacenterTraffic.from_dict(d) for d in data.get("datacenters") or []],
        )

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "datacenters": [d.to_dict() for d in self.datacenters],
        }


@dataclass
class PropertyTrafficReport:
    """Traffic per property, split by datacenter and interval."""

    metadata: ReportMetadata
    rows: list[PropertyTrafficRow] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "PropertyTrafficReport":
        return cls(
            metadata=ReportMetadata.from_dict(data.get("metadata") or {}),
            rows=[PropertyTrafficRow.from_dict(r) for r in data.get("dataRows") or []],
        )


@dataclass
class PropertyTraffic:
    """Requests for one property, seen from a datacenter report."""

    name: str
    requests: int = 0
    status: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "PropertyTraffic":
        return cls(
            name=data.get("name", ""),
            requests=int(data.get("requests") or 0),
            status=str(data.get("status", "")),
        )

    def to_dict(self) -> dict:
        return {"name": self.name, "requests": self.requests, "status": self.status}


@dataclass
class DatacenterTrafficRow:
    """One interval of a datacenter traffic report."""

    timestamp: str
    properties: list[PropertyTraffic] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "DatacenterTrafficRow":
        return cls(
            timestamp=data.get("timestamp", ""),
            properties=[PropertyTraffic.from_dict(p) for p in data.get("properties") or []],
        )

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "properties": [p.to_dict() for p in self.properties],
        }


@dataclass
class DatacenterTrafficReport:
    """Traffic per datacenter, split by property and interval."""

    metadata: ReportMetadata
    rows: list[DatacenterTrafficRow] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "DatacenterTrafficReport":
        return cls(
            metadata=ReportMetadata.from_dict(data.get("metadata") or {}),
            rows=[DatacenterTrafficRow.from_dict(r) for r in data.get("dataRows") or []],
        )


@dataclass
class IpStatus:
    """Liveness detail for one IP handed out by a datacenter."""

    ip: str
    handed_out: bool = False
    score: float = 0.0
    alive: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "IpStatus":
        return cls(
            ip=data.get("ip", ""),
            handed_out=bool(data.get("handedOut", False)),
            score=float(data.get("score") or 0.0),
            alive=bool(data.get("alive", False)),
        )

    def to_dict(self) -> dict:
        return {
            "ip": self.ip,
            "handedOut": self.handed_out,
            "score": self.score,
            "alive": self.alive,
        }


@dataclass
class IpAvailabilityDatacenter:
    """IP availability of one datacenter within an IP availability row."""

    datacenter_id: int
    nickname: Optional[str] = None
    traffic_target_name: Optional[str] = None
    ips: list[IpStatus] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "IpAvailabilityDatacenter":
        return cls(
            datacenter_id=int(data["datacenterId"]),
            nickname=data.get("nickname"),
            traffic_target_name=data.get("trafficTargetName"),
            ips=[IpStatus.from_dict(ip) for ip in data.get("IPs") or data.get("ips") or []],
        )


@dataclass
class IpAvailabilityRow:
    """One snapshot of IP availability for a property."""

    timestamp: str
    cut_off: Optional[float] = None
    datacenters: list[IpAvailabilityDatacenter] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "IpAvailabilityRow":
        cut_off = data.get("cutOff")
        return cls(
            timestamp=data.get("timestamp", ""),
            cut_off=float(cut_off) if cut_off is not None else None,
            datacenters=[
                IpAvailabilityDatacenter.from_dict(d) for d in data.get("datacenters") or []
            ],
        )


@dataclass
class IpAvailabilityReport:
    """IP availability per property."""

    metadata: ReportMetadata
    rows: list[IpAvailabilityRow] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "IpAvailabilityReport":
        return cls(
            metadata=ReportMetadata.from_dict(data.get("metadata") or {}),
            rows=[IpAvailabilityRow.from_dict(r) for r in data.get("dataRows") or []],
        )
