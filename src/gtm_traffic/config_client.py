"""
Client for the GTM configuration service.

The orchestration layer depends only on the ConfigService protocol; the
ConfigClient below is the httpx-backed implementation.
"""

from typing import Optional, Protocol, runtime_checkable
from urllib.parse import quote

import httpx

from .config import ApiConfig
from .exceptions import RemoteServiceError
from .models import Datacenter, DeploymentStatus, Domain, Property
from .transport import ApiSession, decode_model


@runtime_checkable
class ConfigService(Protocol):
    """Operations consumed from the configuration service."""

    def get_domain(self, domain: str) -> Domain:
        ...

    def get_property(self, name: str, domain: str) -> Property:
        ...

    def update_property(self, prop: Property, domain: str) -> DeploymentStatus:
        ...

    def get_domain_status(self, domain: str) -> DeploymentStatus:
        ...

    def get_datacenter(self, datacenter_id: int, domain: str) -> Datacenter:
        ...

    def list_datacenters(self, domain: str) -> list[Datacenter]:
        ...


class ConfigClient:
    """httpx-backed configuration service client."""

    BASE_PATH = "/config-gtm/v1/domains"

    def __init__(
        self,
        config: ApiConfig,
        auth: Optional[httpx.Auth] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._session = ApiSession(config, auth=auth, transport=transport)

    def __enter__(self) -> "ConfigClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        self._session.close()

    def _domain_path(self, domain: str) -> str:
        return f"{self.BASE_PATH}/{quote(domain, safe='')}"

    def get_domain(self, domain: str) -> Domain:
        data = self._session.get_json(self._domain_path(domain))
        return decode_model(Domain.from_dict, data, "domain")

    def get_property(self, name: str, domain: str) -> Property:
        path = f"{self._domain_path(domain)}/properties/{quote(name, safe='')}"
        data = self._session.get_json(path)
        return decode_model(Property.from_dict, data, "property")

    def update_property(self, prop: Property, domain: str) -> DeploymentStatus:
        """
        Submit a full property.

        The service answers with the stored resource and the status of the
        change it created; only the status is returned.
        """
        path = f"{self._domain_path(domain)}/properties/{quote(prop.name, safe='')}"
        data = self._session.put_json(path, prop.to_dict())
        status = data.get("status") if isinstance(data, dict) else None
        if status is None:
            raise RemoteServiceError(
                code="parse_error",
                message="Property update response has no status",
                details={"property": prop.name},
            )
        return decode_model(DeploymentStatus.from_dict, status, "status")

    def get_domain_status(self, domain: str) -> DeploymentStatus:
        data = self._session.get_json(f"{self._domain_path(domain)}/status/current")
        return decode_model(DeploymentStatus.from_dict, data, "status")

    def get_datacenter(self, datacenter_id: int, domain: str) -> Datacenter:
        data = self._session.get_json(
            f"{self._domain_path(domain)}/datacenters/{datacenter_id}"
        )
        return decode_model(Datacenter.from_dict, data, "datacenter")

    def list_datacenters(self, domain: str) -> list[Datacenter]:
        data = self._session.get_json(f"{self._domain_path(domain)}/datacenters")
        items = data.get("items", []) if isinstance(data, dict) else data
        return [decode_model(Datacenter.from_dict, item, "datacenter") for item in items]

