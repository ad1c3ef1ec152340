"""Orchestration package: ordered submission of the topology plan."""

from colormesh.orchestration.assembler import MeshAssembler
from colormesh.orchestration.engine import ExecutionEngine
from colormesh.orchestration.handlers import register_default_handlers
from colormesh.orchestration.registry import (
    ResourceHandler,
    ResourceRegistry,
    SubmissionContext,
)
from colormesh.orchestration.results import AssemblyResult, ResultCollector

__all__ = [
    "AssemblyResult",
    "ExecutionEngine",
    "MeshAssembler",
    "ResourceHandler",
    "ResourceRegistry",
    "ResultCollector",
    "SubmissionContext",
    "register_default_handlers",
]
