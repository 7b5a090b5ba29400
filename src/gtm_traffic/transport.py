"""
HTTP transport shared by the configuration and reporting clients.

Wraps an httpx client built from ApiConfig and maps HTTP and network
failures onto the GTMError hierarchy:

- 404 → NotFoundError
- other non-2xx → RemoteServiceError (code 'http_<status>', body as message)
- timeouts → RemoteServiceError (code 'timeout')
- other transport failures → RemoteServiceError (code 'network_error')
- undecodable JSON → RemoteServiceError (code 'parse_error')
"""

from typing import Any, Optional

import httpx

from .config import ApiConfig
from .exceptions import NotFoundError, RemoteServiceError


class ApiSession:
    """Synchronous JSON session against one API host."""

    def __init__(
        self,
        config: ApiConfig,
        auth: Optional[httpx.Auth] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        """
        Initialize the session.

        Args:
            config: Base URL, token, timeout and extra headers
            auth: Optional request signer; takes precedence over auth_token
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        headers = {"Accept": "application/json"}
        headers.update(config.headers)
        if config.auth_token and auth is None:
            headers["Authorization"] = f"Bearer {config.auth_token}"

        self._config = config
        self._client = httpx.Client(
            base_url=config.base_url.rstrip("/"),
            headers=headers,
            auth=auth,
            timeout=httpx.Timeout(config.timeout_seconds),
            transport=transport,
            follow_redirects=True,
        )

    def __enter__(self) -> "ApiSession":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def get_json(self, path: str, params: Optional[dict[str, str]] = None) -> Any:
        return self._request("GET", path, params=params)

    def put_json(self, path: str, body: dict) -> Any:
        return self._request("PUT", path, json=body)

    def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.TimeoutException:
            raise RemoteServiceError(
                code="timeout",
                message=f"Request timed out after {self._config.timeout_seconds}s",
                details={"method": method, "path": path},
            )
        except httpx.HTTPError as e:
            raise RemoteServiceError(
                code="network_error",
                message=f"Connection error: {e}",
                details={"method": method, "path": path},
            )

        if response.status_code == 404:
            raise NotFoundError(
                code="not_found",
                message=response.text or f"Not found: {path}",
                details={"method": method, "path": path},
            )
        if response.status_code >= 400:
            raise RemoteServiceError(
                code=f"http_{response.status_code}",
                message=response.text or f"HTTP {response.status_code}",
                details={
                    "method": method,
                    "path": path,
                    "http_status_code": response.status_code,
                },
            )

        try:
            return response.json()
        except ValueError as e:
            raise RemoteServiceError(
                code="parse_error",
                message=f"Failed to parse response: {e}",
                details={"method": method, "path": path},
            )


def decode_model(factory, data, what: str):
    """Build a model from wire data, mapping shape errors to RemoteServiceError."""
    try:
        return factory(data)
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise RemoteServiceError(
            code="parse_error",
            message=f"Malformed {what} in response: {e}",
            details={"object": what},
        )
