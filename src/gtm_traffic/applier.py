"""
Mutation Applier: submits a reconciled property as one atomic update.
"""

from typing import Optional

from .audit_logger import AuditLogger
from .config_client import ConfigService
from .enums import LogLevel
from .exceptions import NotFoundError, PropertyUpdateError, RemoteServiceError
from .models import DeploymentStatus, Property


class MutationApplier:
    """
    Submits full properties to the configuration service.

    The remote service accepts or rejects a property as a whole. On rejection
    the caller's mutated copy is simply dropped; nothing is tracked.
    """

    def __init__(
        self,
        config_service: ConfigService,
        logger: Optional[AuditLogger] = None,
    ) -> None:
        self._config_service = config_service
        self._logger = logger

    def apply(self, mutated_property: Property, domain: str) -> DeploymentStatus:
        """
        Submit a mutated property.

        Returns:
            The DeploymentStatus created by the submission (normally PENDING)

        Raises:
            PropertyUpdateError: If the service rejects the submission or the
                call fails; the remote message is carried verbatim
        """
        try:
            status = self._config_service.update_property(mutated_property, domain)
        except (NotFoundError, RemoteServiceError) as e:
            if self._logger:
                self._logger.log_error(
                    "MutationApplier",
                    f"Update of property {mutated_property.name} failed",
                    error=e,
                    additional_data={"domain": domain, "code": e.code},
                )
            raise PropertyUpdateError(
                code=e.code,
                message=e.message,
                details={**e.details, "property": mutated_property.name},
            ) from e

        if self._logger:
            self._logger.log(
                LogLevel.INFO,
                "MutationApplier",
                f"Property {mutated_property.name} submitted",
                {
                    "domain": domain,
                    "change_id": status.change_id,
                    "propagation_status": status.propagation_status.value,
                },
            )
        return status
