"""
Property-based tests for the update and reporting orchestrators.

The configuration and reporting services are replaced by in-memory fakes
that record every submission.
"""

from typing import Optional

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from gtm_traffic.config import MonitorConfig
from gtm_traffic.config_client import ConfigService
from gtm_traffic.descriptor import DesiredChange, TargetOverride
from gtm_traffic.enums import MonitorState, PropagationStatus
from gtm_traffic.exceptions import (
    NotFoundError,
    RemoteServiceError,
    ValidationError,
)
from gtm_traffic.models import (
    Datacenter,
    DeploymentStatus,
    Domain,
    IpAvailabilityReport,
    Property,
    PropertyTrafficReport,
    ReportMetadata,
    TrafficTarget,
    TrafficWindow,
)
from gtm_traffic.orchestrator import (
    DetailedStatus,
    ReportingOrchestrator,
    SummaryStatus,
    UpdateOrchestrator,
    resolve_datacenters,
)


DOMAIN = "example.akadns.net"


def status(state: PropagationStatus, change_id: str = "chg-1") -> DeploymentStatus:
    return DeploymentStatus(
        change_id=change_id,
        message="ok",
        passing_validation=True,
        propagation_status=state,
    )


class FakeConfigService:
    """In-memory configuration service."""

    def __init__(
        self,
        properties: list[Property],
        reject: Optional[set[str]] = None,
        statuses: Optional[list[DeploymentStatus]] = None,
        datacenters: Optional[list[Datacenter]] = None,
    ):
        self.properties = {p.name: p for p in properties}
        self.reject = reject or set()
        self.statuses = list(statuses or [status(PropagationStatus.COMPLETE)])
        self.datacenters = datacenters or []
        self.submitted: list[Property] = []
        self.status_calls = 0
        self.datacenter_list_calls = 0
        self.reads = 0

    def get_domain(self, domain: str) -> Domain:
        self.reads += 1
        if domain != DOMAIN:
            raise NotFoundError(code="not_found", message=f"Domain {domain} not found")
        return Domain(name=domain, properties=list(self.properties.values()))

    def get_property(self, name: str, domain: str) -> Property:
        self.reads += 1
        if name not in self.properties:
            raise NotFoundError(code="not_found", message=f"Property {name} not found")
        return self.properties[name]

    def update_property(self, prop: Property, domain: str) -> DeploymentStatus:
        self.submitted.append(prop)
        if prop.name in self.reject:
            raise RemoteServiceError(code="http_400", message=f"Invalid property {prop.name}")
        return status(PropagationStatus.PENDING, change_id=f"chg-{prop.name}")

    def get_domain_status(self, domain: str) -> DeploymentStatus:
        item = self.statuses[min(self.status_calls, len(self.statuses) - 1)]
        self.status_calls += 1
        return item

    def get_datacenter(self, datacenter_id: int, domain: str) -> Datacenter:
        for dc in self.datacenters:
            if dc.datacenter_id == datacenter_id:
                return dc
        raise NotFoundError(code="not_found", message="Datacenter not found")

    def list_datacenters(self, domain: str) -> list[Datacenter]:
        self.datacenter_list_calls += 1
        return list(self.datacenters)


def no_sleep(seconds: float) -> None:
    pass


@st.composite
def domain_properties_strategy(draw) -> list[Property]:
    """Properties that all reference datacenter 1 and maybe datacenter 2."""
    names = draw(st.lists(
        st.text(alphabet="abcdefghij", min_size=1, max_size=6),
        min_size=1,
        max_size=6,
        unique=True,
    ))
    props = []
    for name in names:
        targets = [TrafficTarget(datacenter_id=1, enabled=draw(st.booleans()), weight=50.0)]
        if draw(st.booleans()):
            targets.append(TrafficTarget(datacenter_id=2, enabled=True, weight=50.0))
        props.append(Property(name=name, traffic_targets=targets))
    return props


class TestBatchIsolationProperty:
    """
    Property-based tests for batch updates.

    Property 15: One property's failure never aborts the batch
    """

    @given(props=domain_properties_strategy(), data=st.data())
    @settings(max_examples=100)
    def test_failures_are_isolated(self, props: list[Property], data) -> None:
        """
        Property 15a: Failed submissions are recorded, the rest proceed.

        *For any* set of properties where some submissions are rejected,
        every property needing a change SHALL be submitted, and each SHALL
        appear either in updated or in failed.
        """
        reject = set(data.draw(st.lists(st.sampled_from([p.name for p in props]), unique=True)))
        service = FakeConfigService(props, reject=reject)
        orchestrator = UpdateOrchestrator(service, MonitorConfig(), sleep=no_sleep)

        summary = orchestrator.update_datacenter(DOMAIN, [1], enabled=True)

        needing = [p.name for p in props if not p.targets_by_datacenter()[1].enabled]
        assert [p.name for p in service.submitted] == needing
        assert [f.property_name for f in summary.failed] == [n for n in needing if n in reject]
        assert [u.property_name for u in summary.updated] == [n for n in needing if n not in reject]
        assert summary.all_failed == (bool(summary.failed) and not summary.updated)

    @given(props=domain_properties_strategy())
    @settings(max_examples=100)
    def test_no_op_submits_nothing(self, props: list[Property]) -> None:
        """
        Property 15b: Reconciled properties are not resubmitted.

        *For any* domain, a second identical update run against the already
        updated state SHALL submit nothing.
        """
        service = FakeConfigService(props)
        orchestrator = UpdateOrchestrator(service, MonitorConfig(), sleep=no_sleep)
        orchestrator.update_datacenter(DOMAIN, [1], enabled=False)

        for submitted in service.submitted:
            service.properties[submitted.name] = submitted
        service.submitted = []
        summary = orchestrator.update_datacenter(DOMAIN, [1], enabled=False)

        assert service.submitted == []
        assert not summary.has_changes
        assert not summary.all_failed

    @given(props=domain_properties_strategy())
    @settings(max_examples=100)
    def test_dry_run_submits_nothing(self, props: list[Property]) -> None:
        """
        Property 15c: Dry runs only plan.

        *For any* domain, a dry run SHALL submit nothing and plan one entry
        per property that needs a change.
        """
        service = FakeConfigService(props)
        orchestrator = UpdateOrchestrator(service, MonitorConfig(), sleep=no_sleep)

        summary = orchestrator.update_datacenter(DOMAIN, [1], enabled=True, dry_run=True)

        needing = [p.name for p in props if not p.targets_by_datacenter()[1].enabled]
        assert service.submitted == []
        assert [p.property_name for p in summary.planned] == needing
        assert summary.updated == [] and summary.failed == []
        assert "plannedChanges" in summary.to_dict()

    def test_unknown_domain_is_fatal(self) -> None:
        service = FakeConfigService([])
        with pytest.raises(NotFoundError):
            UpdateOrchestrator(service).update_datacenter("other.akadns.net", [1], enabled=True)

    def test_missing_datacenter_selector(self) -> None:
        service = FakeConfigService([])
        with pytest.raises(ValidationError):
            UpdateOrchestrator(service).update_datacenter(DOMAIN, [], enabled=True)
        assert service.reads == 0

    def test_missing_directive_changes_nothing(self) -> None:
        service = FakeConfigService([
            Property(name="www", traffic_targets=[TrafficTarget(datacenter_id=1, enabled=False)]),
        ])
        with pytest.raises(ValidationError) as exc_info:
            UpdateOrchestrator(service).update_datacenter(DOMAIN, [1], enabled=None)
        assert exc_info.value.code == "directive_required"
        assert service.reads == 0
        assert service.submitted == []


class TestUpdatePropertyProperty:
    """
    Property 16: Single property updates report the typed status
    """

    def _property(self) -> Property:
        return Property(name="www", traffic_targets=[
            TrafficTarget(datacenter_id=1, enabled=True, weight=50.0),
            TrafficTarget(datacenter_id=2, enabled=True, weight=50.0),
        ])

    @given(verbose=st.booleans())
    @settings(max_examples=10)
    def test_status_variant(self, verbose: bool) -> None:
        """
        *For any* verbosity, the status SHALL be DetailedStatus in verbose
        mode and SummaryStatus otherwise.
        """
        service = FakeConfigService([self._property()])
        summary = UpdateOrchestrator(service).update_property(
            DOMAIN, "www", DesiredChange(datacenter_ids=(2,), weight=25.0), verbose=verbose,
        )

        record = summary.updated[0]
        expected = DetailedStatus if verbose else SummaryStatus
        assert isinstance(record.status, expected)
        assert record.status.to_dict()["changeId"] == "chg-www"
        assert service.submitted[0].targets_by_datacenter()[2].weight == 25.0

    def test_wait_for_completion(self) -> None:
        service = FakeConfigService(
            [self._property()],
            statuses=[status(PropagationStatus.PENDING), status(PropagationStatus.COMPLETE)],
        )
        polls = []
        orchestrator = UpdateOrchestrator(
            service,
            MonitorConfig(poll_interval_seconds=5, timeout_seconds=300),
            sleep=no_sleep,
            on_poll=lambda name, outcome: polls.append((name, outcome.state)),
        )

        summary = orchestrator.update_property(
            DOMAIN, "www", DesiredChange(datacenter_ids=(1,), enabled=False), wait=True,
        )

        record = summary.updated[0]
        assert record.outcome.state == MonitorState.COMPLETE
        assert polls == [("www", MonitorState.PENDING), ("www", MonitorState.COMPLETE)]
        assert record.to_dict()["completion"] == "complete"

    def test_rejection_is_recorded(self) -> None:
        service = FakeConfigService([self._property()], reject={"www"})
        summary = UpdateOrchestrator(service).update_property(
            DOMAIN, "www", DesiredChange(datacenter_ids=(1,), enabled=False),
        )

        assert summary.all_failed
        assert summary.failed[0].message == "Invalid property www"
        assert summary.failed[0].code == "http_400"

    def test_absent_datacenter_is_rejected_before_submission(self) -> None:
        service = FakeConfigService([self._property()])
        with pytest.raises(ValidationError):
            UpdateOrchestrator(service).update_property(
                DOMAIN, "www", DesiredChange(datacenter_ids=(9,), enabled=False),
            )
        assert service.submitted == []

    @pytest.mark.parametrize("change", [
        DesiredChange(
            datacenter_ids=(1,), enabled=False,
            targets={1: TargetOverride(datacenter_id=1, weight=10.0)},
        ),
        DesiredChange(datacenter_ids=(1, 2), weight=10.0),
        DesiredChange(datacenter_ids=(1,), enabled=False, liveness_tests=("http",), liveness_enabled=True),
        DesiredChange(),
    ])
    def test_invalid_change_is_rejected_before_any_read(self, change: DesiredChange) -> None:
        service = FakeConfigService([self._property()])
        with pytest.raises(ValidationError):
            UpdateOrchestrator(service).update_property(DOMAIN, "www", change)
        assert service.reads == 0
        assert service.submitted == []

    def test_unknown_property(self) -> None:
        service = FakeConfigService([])
        with pytest.raises(NotFoundError):
            UpdateOrchestrator(service).update_property(
                DOMAIN, "www", DesiredChange(datacenter_ids=(1,), enabled=False),
            )

    def test_fake_satisfies_protocol(self) -> None:
        assert isinstance(FakeConfigService([]), ConfigService)


class TestResolveDatacenters:
    def test_ids_only_skip_listing(self) -> None:
        service = FakeConfigService([])
        assert resolve_datacenters(service, DOMAIN, ["3131", "3132"]) == [3131, 3132]
        assert service.datacenter_list_calls == 0

    def test_nicknames_are_resolved(self) -> None:
        service = FakeConfigService([], datacenters=[
            Datacenter(datacenter_id=3131, nickname="frankfurt"),
            Datacenter(datacenter_id=3132, nickname="paris"),
        ])
        assert resolve_datacenters(service, DOMAIN, ["3131", "paris", "frankfurt"]) == [3131, 3132]


class FakeReportsService:
    def __init__(self, window_end: str = "2024-03-01T10:00:00Z"):
        self.window = TrafficWindow(start="2024-02-29T10:00:00Z", end=window_end)
        self.calls: list[tuple] = []

    def get_datacenters_traffic_window(self) -> TrafficWindow:
        return self.window

    def get_properties_traffic_window(self) -> TrafficWindow:
        return self.window

    def get_traffic_per_datacenter(self, domain, datacenter_id, start, end):
        raise AssertionError("not used")

    def get_traffic_per_property(self, domain, property_name, start, end):
        self.calls.append(("traffic", start, end))
        return PropertyTrafficReport(metadata=ReportMetadata(domain=domain, property_name=property_name))

    def get_ip_status_per_property(self, domain, property_name, start=None, end=None):
        self.calls.append(("ip", start, end))
        return IpAvailabilityReport(metadata=ReportMetadata(domain=domain, property_name=property_name))


class TestReportingOrchestrator:
    def test_property_status_uses_latest_window(self) -> None:
        config = FakeConfigService([Property(name="www", traffic_targets=[
            TrafficTarget(datacenter_id=1, enabled=False),
        ])])
        reports = FakeReportsService()

        report = ReportingOrchestrator(config, reports).query_property_status(DOMAIN, "www")

        assert ("traffic", "2024-03-01T09:45:00Z", "2024-03-01T10:00:00Z") in reports.calls
        assert ("ip", None, None) in reports.calls
        assert [dc.datacenter_id for dc in report.datacenters] == [1]
        assert report.datacenters[0].enabled is False

    def test_malformed_window_is_a_remote_error(self) -> None:
        config = FakeConfigService([Property(name="www")])
        reports = FakeReportsService(window_end="yesterday")

        with pytest.raises(RemoteServiceError) as exc_info:
            ReportingOrchestrator(config, reports).query_property_status(DOMAIN, "www")
        assert exc_info.value.code == "parse_error"
