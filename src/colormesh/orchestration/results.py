"""Result types for topology assembly."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

from colormesh.core.errors import ProvisioningFailure
from colormesh.providers.base import PublicAddress


@dataclass
class AssemblyResult:
    """Result of assembling the topology."""

    virtual_service_fqdn: str
    public_address: PublicAddress | None = None
    created: List[str] = field(default_factory=list)
    handles: Dict[str, Any] = field(default_factory=dict)
    duration_seconds: float = 0.0

    @property
    def total_resources(self) -> int:
        """Total number of resources created."""
        return len(self.created)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "virtual_service": self.virtual_service_fqdn,
            "public_url": self.public_address.url if self.public_address else None,
            "created": self.created,
            "total_resources": self.total_resources,
            "duration_seconds": round(self.duration_seconds, 3),
        }


class ResultCollector:
    """Tracks created resources, in order, during submission."""

    def __init__(self) -> None:
        self._created: List[str] = []
        self._handles: Dict[str, Any] = {}

    @property
    def created(self) -> List[str]:
        return list(self._created)

    def record(self, resource_id: str, handle: Any) -> None:
        """Record a successfully created resource."""
        self._created.append(resource_id)
        self._handles[resource_id] = handle

    def failure(self, resource_id: str, cause: BaseException) -> ProvisioningFailure:
        """Build the failure for ``resource_id`` with everything created so far."""
        return ProvisioningFailure(resource_id, cause, self._created)

    def finalize(
        self,
        virtual_service_fqdn: str,
        public_address: PublicAddress | None,
        duration: float,
    ) -> AssemblyResult:
        """Return the final result."""
        return AssemblyResult(
            virtual_service_fqdn=virtual_service_fqdn,
            public_address=public_address,
            created=list(self._created),
            handles=dict(self._handles),
            duration_seconds=duration,
        )
