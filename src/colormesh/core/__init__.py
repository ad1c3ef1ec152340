"""Core modules for colormesh - centralized error definitions."""

from colormesh.core.errors import (
    ColorMeshError,
    ConfigurationError,
    CyclicDependencyError,
    DanglingReferenceError,
    EmptyTopologyError,
    ExitCode,
    InvalidVariantError,
    InvalidWeightError,
    ProviderError,
    ProvisioningFailure,
    ValidationError,
    format_error_message,
    main_with_error_handling,
)

__all__ = [
    "ExitCode",
    "ColorMeshError",
    "ConfigurationError",
    "ProviderError",
    "ValidationError",
    # Topology errors
    "InvalidVariantError",
    "EmptyTopologyError",
    "DanglingReferenceError",
    "InvalidWeightError",
    "CyclicDependencyError",
    "ProvisioningFailure",
    "main_with_error_handling",
    "format_error_message",
]
