"""
Exception classes for the GTM traffic manager.

All exceptions inherit from GTMError and carry a machine-readable code,
a human-readable message and optional structured details.
"""

from typing import Optional


class GTMError(Exception):
    """Base exception for all GTM traffic manager errors."""

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[dict] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"

    def to_dict(self) -> dict:
        """Convert exception to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(GTMError):
    """Raised when a desired change is contradictory, ambiguous or incomplete."""

    pass


class NotFoundError(GTMError):
    """Raised when a domain, property or datacenter does not exist."""

    pass


class RemoteServiceError(GTMError):
    """Raised when the configuration or reporting service call fails."""

    pass


class PropertyUpdateError(RemoteServiceError):
    """Raised when the configuration service rejects a property submission."""

    pass


class PollFetchError(RemoteServiceError):
    """Raised when a deployment status re-fetch fails while monitoring."""

    pass
