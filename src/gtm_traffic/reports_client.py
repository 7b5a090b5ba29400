"""
Client for the GTM reporting service.

Telemetry is read-only: traffic per property or datacenter over a time
window, and IP availability per property.
"""

from typing import Optional, Protocol, runtime_checkable
from urllib.parse import quote

import httpx

from .config import ApiConfig
from .models import (
    DatacenterTrafficReport,
    IpAvailabilityReport,
    PropertyTrafficReport,
    TrafficWindow,
)
from .transport import ApiSession, decode_model


@runtime_checkable
class ReportsService(Protocol):
    """Operations consumed from the reporting service."""

    def get_datacenters_traffic_window(self) -> TrafficWindow:
        ...

    def get_properties_traffic_window(self) -> TrafficWindow:
        ...

    def get_traffic_per_datacenter(
        self, domain: str, datacenter_id: int, start: str, end: str
    ) -> DatacenterTrafficReport:
        ...

    def get_traffic_per_property(
        self, domain: str, property_name: str, start: str, end: str
    ) -> PropertyTrafficReport:
        ...

    def get_ip_status_per_property(
        self,
        domain: str,
        property_name: str,
        start: Optional[str] = None,
        end: Optional[str] = None,
    ) -> IpAvailabilityReport:
        ...


class ReportsClient:
    """httpx-backed reporting service client."""

    BASE_PATH = "/gtm-api/v1/reports"

    def __init__(
        self,
        config: ApiConfig,
        auth: Optional[httpx.Auth] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._session = ApiSession(config, auth=auth, transport=transport)

    def __enter__(self) -> "ReportsClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        self._session.close()

    def get_datacenters_traffic_window(self) -> TrafficWindow:
        data = self._session.get_json(f"{self.BASE_PATH}/traffic/datacenters-window")
        return decode_model(TrafficWindow.from_dict, data, "window")

    def get_properties_traffic_window(self) -> TrafficWindow:
        data = self._session.get_json(f"{self.BASE_PATH}/traffic/properties-window")
        return decode_model(TrafficWindow.from_dict, data, "window")

    def get_traffic_per_datacenter(
        self, domain: str, datacenter_id: int, start: str, end: str
    ) -> DatacenterTrafficReport:
        path = (
            f"{self.BASE_PATH}/traffic/domains/{quote(domain, safe='')}"
            f"/datacenters/{datacenter_id}"
        )
        data = self._session.get_json(path, params={"start": start, "end": end})
        return decode_model(DatacenterTrafficReport.from_dict, data, "datacenter traffic")

    def get_traffic_per_property(
        self, domain: str, property_name: str, start: str, end: str
    ) -> PropertyTrafficReport:
        path = (
            f"{self.BASE_PATH}/traffic/domains/{quote(domain, safe='')}"
            f"/properties/{quote(property_name, safe='')}"
        )
        data = self._session.get_json(path, params={"start": start, "end": end})
        return decode_model(PropertyTrafficReport.from_dict, data, "property traffic")

    def get_ip_status_per_property(
        self,
        domain: str,
        property_name: str,
        start: Optional[str] = None,
        end: Optional[str] = None,
    ) -> IpAvailabilityReport:
        """
        Fetch IP availability; without a window only the most recent snapshot
        is requested.
        """
        path = (
            f"{self.BASE_PATH}/ip-availability/domains/{quote(domain, safe='')}"
            f"/properties/{quote(property_name, safe='')}"
        )
        if start and end:
            params = {"start": start, "end": end}
        else:
            params = {"mostRecent": "true"}
        data = self._session.get_json(path, params=params)
        return decode_model(IpAvailabilityReport.from_dict, data, "ip availability")
