"""
Diff Engine for traffic target reconciliation.

This module compares a desired change against a live property and produces
the mutated copy of the property together with the list of field-level
changes. Only fields whose value actually differs are touched, so applying
the same change twice results in no submission the second time.

The live property passed in is never modified; the engine works on a deep
copy which it owns until the caller submits or discards it.
"""

import copy
from dataclasses import dataclass, field
from typing import Any, Optional

from .descriptor import DesiredChange, TargetOverride
from .enums import ChangeKind
from .exceptions import ValidationError
from .models import Property, TrafficTarget


@dataclass
class FieldChange:
    """A single planned field mutation."""

    kind: ChangeKind
    subject: str  # datacenter id or liveness test name
    field: str
    old: Any
    new: Any

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "subject": self.subject,
            "field": self.field,
            "old": self.old,
            "new": self.new,
        }


@dataclass
class ReconcileResult:
    """Outcome of reconciling one property."""

    property: Property
    changes: list[FieldChange] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.changes)


class DiffEngine:
    """
    Reconciles desired changes against live properties.

    Matching is done through a datacenter id → traffic target mapping built
    once per call, and a name lookup for liveness tests.
    """

    def reconcile(
        self,
        live_property: Property,
        change: DesiredChange,
        strict: bool = True,
    ) -> ReconcileResult:
        """
        Compute the minimal mutation of a property.

        Args:
            live_property: The property as fetched from the configuration service
            change: The validated desired change
            strict: If True, a selected datacenter or liveness test that the
                property does not contain is an error. If False, it is skipped
                (used for domain-wide datacenter updates).

        Returns:
            ReconcileResult with the mutated copy and the applied changes

        Raises:
            ValidationError: If the change is invalid, or in strict mode
                references a target the property does not have
        """
        change.validate()

        mutated = copy.deepcopy(live_property)
        result = ReconcileResult(property=mutated)
        targets = mutated.targets_by_datacenter()

        if strict:
            missing = [dc for dc in change.datacenter_ids if dc not in targets]
            if missing:
                raise ValidationError(
                    code="no_applicable_target",
                    message=(
                        f"Property {live_property.name} has no traffic target "
                        f"for datacenter(s) {', '.join(str(dc) for dc in missing)}"
                    ),
                    details={"property": live_property.name, "datacenter_ids": missing},
                )

        for dc_id in change.datacenter_ids:
            target = targets.get(dc_id)
            if target is None:
                continue
            self._set(result, target, "enabled", change.enabled)
            self._set(result, target, "weight", change.weight)
            self._set_servers(result, target, change.servers)

        for dc_id, override in change.targets.items():
            target = targets.get(dc_id)
            if target is None:
                target = self._add_target(result, override)
                targets[dc_id] = target
                continue
            self._apply_override(result, target, override)

        self._reconcile_liveness(result, change, strict)

        return result

    def _set(
        self,
        result: ReconcileResult,
        target: TrafficTarget,
        attr: str,
        value: Optional[Any],
    ) -> None:
        """Set a scalar target field if a value is given and it differs."""
        if value is None:
            return
        current = getattr(target, attr)
        if current == value:
            return
        setattr(target, attr, value)
        result.changes.append(FieldChange(
            kind=ChangeKind.TRAFFIC_TARGET,
            subject=str(target.datacenter_id),
            field=attr,
            old=current,
            new=value,
        ))

    def _set_servers(
        self,
        result: ReconcileResult,
        target: TrafficTarget,
        servers: Optional[list[str]],
    ) -> None:
        """Replace the server list wholesale if its membership differs."""
        if servers is None:
            return
        if set(servers) == set(target.servers):
            return
        old = list(target.servers)
        target.servers = list(servers)
        result.changes.append(FieldChange(
            kind=ChangeKind.TRAFFIC_TARGET,
            subject=str(target.datacenter_id),
            field="servers",
            old=old,
            new=list(servers),
        ))

    def _apply_override(
        self,
        result: ReconcileResult,
        target: TrafficTarget,
        override: TargetOverride,
    ) -> None:
        self._set(result, target, "enabled", override.enabled)
        self._set(result, target, "weight", override.weight)
        self._set_servers(result, target, override.servers)
        self._set(result, target, "name", override.name)
        self._set(result, target, "handout_cname", override.handout_cname)

    def _add_target(
        self,
        result: ReconcileResult,
        override: TargetOverride,
    ) -> TrafficTarget:
        """Append a new traffic target built from an override."""
        target = TrafficTarget(datacenter_id=override.datacenter_id)
        if override.enabled is not None:
            target.enabled = override.enabled
        if override.weight is not None:
            target.weight = override.weight
        if override.servers is not None:
            target.servers = list(override.servers)
        target.name = override.name
        target.handout_cname = override.handout_cname

        result.property.traffic_targets.append(target)
        result.changes.append(FieldChange(
            kind=ChangeKind.TRAFFIC_TARGET,
            subject=str(target.datacenter_id),
            field="trafficTarget",
            old=None,
            new=target.to_dict(),
        ))
        return target

    def _reconcile_liveness(
        self,
        result: ReconcileResult,
        change: DesiredChange,
        strict: bool,
    ) -> None:
        if not change.liveness_tests or change.liveness_enabled is None:
            return

        wanted = set(change.liveness_tests)
        disabled = not change.liveness_enabled
        matched: set[str] = set()

        for test in result.property.liveness_tests:
            if test.name not in wanted:
                continue
            matched.add(test.name)
            if test.disabled == disabled:
                continue
            result.changes.append(FieldChange(
                kind=ChangeKind.LIVENESS_TEST,
                subject=test.name,
                field="disabled",
                old=test.disabled,
                new=disabled,
            ))
            test.disabled = disabled

        unmatched = [name for name in change.liveness_tests if name not in matched]
        if strict and unmatched:
            raise ValidationError(
                code="no_applicable_target",
                message=(
                    f"Property {result.property.name} has no liveness test "
                    f"named {', '.join(unmatched)}"
                ),
                details={"property": result.property.name, "liveness_tests": unmatched},
            )
