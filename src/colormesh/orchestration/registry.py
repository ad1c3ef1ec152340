"""Resource handler protocol and registry for plan submission."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol, runtime_checkable

from colormesh.providers.base import ResourceHandle, ResourceProvisioner
from colormesh.topology.models import MeshResource, ResourceKind
from colormesh.topology.plan import Plan


@dataclass
class SubmissionContext:
    """Shared context passed to all resource handlers."""

    plan: Plan
    provisioner: ResourceProvisioner
    handles: Dict[str, ResourceHandle] = field(default_factory=dict)

    def handle_for(self, resource_id: str) -> ResourceHandle:
        """Handle of an already-created resource."""
        return self.handles[resource_id]


@runtime_checkable
class ResourceHandler(Protocol):
    """Protocol for handlers that submit one kind of mesh resource."""

    @property
    def kind(self) -> ResourceKind:
        """Resource kind handled."""
        ...

    @property
    def display_name(self) -> str:
        """Human-readable name for log messages."""
        ...

    def submit(self, ctx: SubmissionContext, resource: MeshResource) -> ResourceHandle:
        """Create the resource and return its handle."""
        ...


class ResourceRegistry:
    """In-memory registry for resource handlers."""

    def __init__(self) -> None:
        self._handlers: Dict[ResourceKind, ResourceHandler] = {}

    def register(self, handler: ResourceHandler) -> None:
        """Register a handler by its kind."""
        self._handlers[handler.kind] = handler

    def get(self, kind: ResourceKind) -> Optional[ResourceHandler]:
        """Get a handler by resource kind."""
        return self._handlers.get(kind)

    def list(self) -> List[ResourceKind]:
        """List all registered kinds."""
        return list(self._handlers.keys())
