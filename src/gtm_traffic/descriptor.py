"""
Desired-state descriptor for traffic target changes.

A DesiredChange is the normalized form of an operator's intent. It selects
traffic targets (by datacenter id), target overrides or liveness tests and
carries the directives to apply to them. Everything that can be checked
without looking at the live configuration is checked here, so that an
invalid request never reaches the remote service.
"""

import json
from dataclasses import dataclass, field
from typing import Iterable, Optional

from .exceptions import ValidationError
from .models import Datacenter


@dataclass
class TargetOverride:
    """
    Explicit field values for one traffic target.

    ``None`` means the field is left untouched. Overrides for a datacenter
    the property does not reference yet add a new traffic target.
    """

    datacenter_id: int
    enabled: Optional[bool] = None
    weight: Optional[float] = None
    servers: Optional[list[str]] = None
    name: Optional[str] = None
    handout_cname: Optional[str] = None

    def to_dict(self) -> dict:
        out: dict = {"datacenterId": self.datacenter_id}
        if self.enabled is not None:
            out["enabled"] = self.enabled
        if self.weight is not None:
            out["weight"] = self.weight
        if self.servers is not None:
            out["servers"] = list(self.servers)
        if self.name is not None:
            out["name"] = self.name
        if self.handout_cname is not None:
            out["handoutCName"] = self.handout_cname
        return out


@dataclass
class DesiredChange:
    """Normalized operator intent for one invocation."""

    datacenter_ids: tuple[int, ...] = ()
    enabled: Optional[bool] = None
    weight: Optional[float] = None
    servers: Optional[list[str]] = None
    targets: dict[int, TargetOverride] = field(default_factory=dict)
    liveness_tests: tuple[str, ...] = ()
    liveness_enabled: Optional[bool] = None

    def __post_init__(self) -> None:
        # Preserve first-seen order, drop repeats
        self.datacenter_ids = tuple(dict.fromkeys(self.datacenter_ids))
        self.liveness_tests = tuple(dict.fromkeys(self.liveness_tests))

    @property
    def has_datacenter_directive(self) -> bool:
        return (
            self.enabled is not None
            or self.weight is not None
            or self.servers is not None
        )

    def validate(self) -> None:
        """
        Check the descriptor for contradictions before any remote call.

        Raises:
            ValidationError: If no selector is given, directives conflict,
                a weight/server edit is ambiguous, or a directive has
                nothing to apply to.
        """
        if not self.datacenter_ids and not self.targets and not self.liveness_tests:
            raise ValidationError(
                code="selector_required",
                message="One or more datacenters, targets or liveness tests is required",
            )

        if self.enabled is not None and self.liveness_enabled is not None:
            raise ValidationError(
                code="exclusive_directives",
                message="Enable/disable may apply to datacenters or liveness tests, not both",
            )

        overlap = set(self.datacenter_ids) & set(self.targets)
        if overlap:
            raise ValidationError(
                code="exclusive_selectors",
                message="Datacenter may not be selected and overridden as a target at once",
                details={"datacenter_ids": sorted(overlap)},
            )

        if len(self.datacenter_ids) > 1:
            if self.weight is not None:
                raise ValidationError(
                    code="ambiguous_weight",
                    message="Weight update may only apply to one datacenter",
                    details={"datacenter_ids": list(self.datacenter_ids)},
                )
            if self.servers is not None:
                raise ValidationError(
                    code="ambiguous_servers",
                    message="Server update may only apply to one datacenter",
                    details={"datacenter_ids": list(self.datacenter_ids)},
                )

        if self.has_datacenter_directive and not self.datacenter_ids:
            raise ValidationError(
                code="no_applicable_target",
                message="Datacenter directive given without a datacenter",
            )
        if self.datacenter_ids and not self.has_datacenter_directive:
            raise ValidationError(
                code="directive_required",
                message="Selected datacenters need an enable, disable, weight or server change",
                details={"datacenter_ids": list(self.datacenter_ids)},
            )

        if self.liveness_enabled is not None and not self.liveness_tests:
            raise ValidationError(
                code="no_applicable_target",
                message="Liveness test directive given without a liveness test name",
            )
        if self.liveness_tests and self.liveness_enabled is None:
            raise ValidationError(
                code="directive_required",
                message="Selected liveness tests need an enable or disable directive",
                details={"liveness_tests": list(self.liveness_tests)},
            )


def parse_bool(value: str) -> bool:
    """Parse 'true' / 'false' (any case)."""
    lowered = value.strip().lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    raise ValidationError(
        code="invalid_bool",
        message="Invalid value provided. Acceptable values: true, false",
        details={"value": value},
    )


def parse_target_override(raw: str) -> TargetOverride:
    """
    Decode one traffic target override from its JSON text.

    Accepts the configuration API's field names (``datacenterId``,
    ``enabled``, ``weight``, ``servers``, ``name``, ``handoutCName``).
    """
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValidationError(
            code="invalid_target",
            message=f"Target is not valid JSON: {e}",
            details={"value": raw},
        )
    if not isinstance(data, dict) or "datacenterId" not in data:
        raise ValidationError(
            code="invalid_target",
            message="Target must be a JSON object with a datacenterId",
            details={"value": raw},
        )

    servers = data.get("servers")
    if servers is not None and not isinstance(servers, list):
        raise ValidationError(
            code="invalid_target",
            message="Target servers must be a list",
            details={"value": raw},
        )

    enabled = data.get("enabled")
    if enabled is not None and not isinstance(enabled, bool):
        raise ValidationError(
            code="invalid_target",
            message="Target enabled must be true or false",
            details={"value": raw},
        )

    weight = data.get("weight")
    if weight is not None and (isinstance(weight, bool) or not isinstance(weight, (int, float))):
        raise ValidationError(
            code="invalid_target",
            message="Target weight must be a number",
            details={"value": raw},
        )

    try:
        return TargetOverride(
            datacenter_id=int(data["datacenterId"]),
            enabled=enabled,
            weight=float(weight) if weight is not None else None,
            servers=[str(s) for s in servers] if servers is not None else None,
            name=data.get("name"),
            handout_cname=data.get("handoutCName"),
        )
    except (TypeError, ValueError) as e:
        raise ValidationError(
            code="invalid_target",
            message=f"Target has an invalid field value: {e}",
            details={"value": raw},
        )


def collect_target_overrides(raw_values: Iterable[str]) -> dict[int, TargetOverride]:
    """
    Parse several target overrides, keyed by datacenter id.

    An identical repeat of a datacenter's override is ignored; a repeat that
    differs in any field is an error.
    """
    overrides: dict[int, TargetOverride] = {}
    for raw in raw_values:
        target = parse_target_override(raw)
        existing = overrides.get(target.datacenter_id)
        if existing is None:
            overrides[target.datacenter_id] = target
            continue
        if existing == target:
            continue
        raise ValidationError(
            code="conflicting_target",
            message=f"Target {target.datacenter_id} already specified with different values",
            details={"datacenter_id": target.datacenter_id},
        )
    return overrides


def parse_datacenter_selectors(values: Iterable[str]) -> tuple[list[int], list[str]]:
    """
    Split raw datacenter selectors into numeric ids and nicknames.

    Returns:
        Tuple of (ids, nicknames), each de-duplicated in first-seen order
    """
    ids: list[int] = []
    nicknames: list[str] = []
    for value in values:
        value = value.strip()
        if not value:
            continue
        try:
            dc_id = int(value)
        except ValueError:
            if value not in nicknames:
                nicknames.append(value)
            continue
        if dc_id not in ids:
            ids.append(dc_id)
    return ids, nicknames


def resolve_nicknames(
    nicknames: Iterable[str],
    datacenters: Iterable[Datacenter],
) -> list[int]:
    """
    Resolve datacenter nicknames to ids.

    Raises:
        ValidationError: If a nickname matches no datacenter of the domain
    """
    by_nickname = {dc.nickname: dc.datacenter_id for dc in datacenters if dc.nickname}
    resolved: list[int] = []
    for nickname in nicknames:
        if nickname not in by_nickname:
            raise ValidationError(
                code="unknown_nickname",
                message=f"No datacenter with nickname '{nickname}'",
                details={"nickname": nickname},
            )
        resolved.append(by_nickname[nickname])
    return resolved
