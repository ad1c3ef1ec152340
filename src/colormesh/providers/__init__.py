"""
Provider contracts and backends.

The orchestration layer depends only on the protocols in ``base``;
``memory`` and ``template`` are interchangeable implementations.
"""

from colormesh.providers.base import (
    ClusterHandle,
    ClusterProvider,
    ComputeProvider,
    EntryPointProvider,
    HealthCheckSpec,
    InfraKind,
    IngressRule,
    LogSpec,
    NamespaceHandle,
    NetworkHandle,
    NetworkProvider,
    PublicAddress,
    ResourceHandle,
    ResourceProvisioner,
    SecurityGroupHandle,
    ServiceHandle,
    SubnetSpec,
    TaskSpec,
    infra_resource_id,
)
from colormesh.providers.memory import InMemoryBackend, SimulatedFailure
from colormesh.providers.template import TemplateProvisioner

__all__ = [
    # Contracts
    "NetworkProvider",
    "ClusterProvider",
    "ComputeProvider",
    "ResourceProvisioner",
    "EntryPointProvider",
    # Values
    "SubnetSpec",
    "IngressRule",
    "HealthCheckSpec",
    "TaskSpec",
    "LogSpec",
    "NetworkHandle",
    "SecurityGroupHandle",
    "ClusterHandle",
    "NamespaceHandle",
    "ServiceHandle",
    "PublicAddress",
    "ResourceHandle",
    "InfraKind",
    "infra_resource_id",
    # Backends
    "InMemoryBackend",
    "SimulatedFailure",
    "TemplateProvisioner",
]
