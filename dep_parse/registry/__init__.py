"""Container registry access for digest resolution."""

from .client import DockerRegistryClient

__all__ = ["DockerRegistryClient"]
