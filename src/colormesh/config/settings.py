"""
Application settings using Pydantic.

Provides environment-based configuration loading with COLORMESH_ prefix.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    # Topology
    variants: list[str] = ["blue", "green"]
    namespace: str = "mesh.local"
    mesh_name: str = "demomesh"

    # gateway and colorteller listen on 8080 by default
    app_port: int = Field(8080, ge=1, le=65535)

    # short ttl while testing; the default variant uses the registry default
    dns_ttl_seconds: int = Field(10, ge=0)

    # Images (same tag for gateway and colorteller)
    image_tag: str = "latest"
    gateway_image: str = "subfuzion/colorgateway"
    colorteller_image: str = "subfuzion/colorteller"

    # Network
    vpc_cidr: str = "10.0.0.0/16"
    max_azs: int = Field(2, ge=1)
    subnet_cidr_mask: int = Field(24, ge=16, le=28)
    public_port: int = Field(80, ge=1, le=65535)
    envoy_admin_port: int = Field(9901, ge=1, le=65535)
    envoy_ingress_port: int = Field(15000, ge=1, le=65535)

    # Task sizing
    task_cpu: int = 512
    task_memory_mib: int = 1024
    desired_count: int = Field(1, ge=0)

    # Logs
    log_group: str = "demo"
    log_retention_days: int = Field(1, ge=1)
    log_level: str = "INFO"
    log_format: str = Field("json", pattern="^(json|console)$")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_prefix = "COLORMESH_"

    def image_for(self, repository: str) -> str:
        """Return ``repository:tag`` using the shared image tag."""
        return f"{repository}:{self.image_tag}"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
