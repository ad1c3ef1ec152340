"""
Naming policy for colorteller variants.

The default variant (index 0) owns the canonical service name and its
virtual node discovers instances through that name. Every other variant gets
a suffixed service name and its virtual node is discovered by its own name.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from colormesh.core.errors import InvalidVariantError

SERVICE_PREFIX = "colorteller"
NODE_SUFFIX = "-vn"

# RFC 1123 label
DNS_LABEL_RE = re.compile(r"^[a-z0-9]([a-z0-9-]*[a-z0-9])?$")
MAX_LABEL_LENGTH = 63


@dataclass(frozen=True)
class ResolvedNames:
    """Names derived for a single variant."""

    service_name: str
    node_name: str
    hostname: str
    log_stream_prefix: str


def validate_variant(variant: str) -> None:
    """Raise InvalidVariantError unless ``variant`` is a usable DNS label."""
    if not variant:
        raise InvalidVariantError(variant, "identifier must not be empty")
    if not DNS_LABEL_RE.match(variant):
        raise InvalidVariantError(
            variant,
            "use lowercase letters, digits and inner hyphens only",
        )
    longest = max(len(f"{SERVICE_PREFIX}-{variant}"), len(f"{variant}{NODE_SUFFIX}"))
    if longest > MAX_LABEL_LENGTH:
        raise InvalidVariantError(
            variant, f"derived names exceed {MAX_LABEL_LENGTH} characters"
        )


def node_name_for(variant: str) -> str:
    return f"{variant}{NODE_SUFFIX}"


def resolve(variant: str, index: int) -> ResolvedNames:
    """
    Resolve service, virtual node and discovery names for a variant.

    Args:
        variant: Variant identifier, e.g. "blue"
        index: Position of the variant; 0 is the default variant

    Returns:
        ResolvedNames for the variant
    """
    validate_variant(variant)
    if index < 0:
        raise InvalidVariantError(variant, f"position must be >= 0, got {index}")

    node_name = node_name_for(variant)
    if index == 0:
        service_name = SERVICE_PREFIX
        hostname = service_name
    else:
        service_name = f"{SERVICE_PREFIX}-{variant}"
        hostname = node_name

    return ResolvedNames(
        service_name=service_name,
        node_name=node_name,
        hostname=hostname,
        log_stream_prefix=f"{SERVICE_PREFIX}-{variant}",
    )
