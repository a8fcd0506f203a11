"""Runtime settings for dep-parse."""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_REGISTRY = "registry.hub.docker.com"

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class ParserSettings:
    """Settings shared by the ecosystem parsers."""

    default_registry: str = DEFAULT_REGISTRY
    registry_timeout: float = 30.0
    go_binary: str = "go"
    verify_ssl: bool = True

    def __post_init__(self) -> None:
        """Validate settings."""
        if not self.default_registry:
            raise ValueError("default_registry cannot be empty")
        if self.registry_timeout <= 0:
            raise ValueError(f"registry_timeout must be positive: {self.registry_timeout}")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ParserSettings":
        """Build settings from ``DEP_PARSE_*`` environment variables.

        Args:
            environ: Mapping to read from (defaults to ``os.environ``)

        Returns:
            Settings with any overrides applied
        """
        env = os.environ if environ is None else environ
        settings = cls()

        if env.get("DEP_PARSE_DEFAULT_REGISTRY"):
            settings.default_registry = env["DEP_PARSE_DEFAULT_REGISTRY"]
        if env.get("DEP_PARSE_REGISTRY_TIMEOUT"):
            settings.registry_timeout = float(env["DEP_PARSE_REGISTRY_TIMEOUT"])
        if env.get("DEP_PARSE_GO_BINARY"):
            settings.go_binary = env["DEP_PARSE_GO_BINARY"]
        if "DEP_PARSE_VERIFY_SSL" in env:
            settings.verify_ssl = env["DEP_PARSE_VERIFY_SSL"].strip().lower() in _TRUTHY

        settings.__post_init__()
        return settings
