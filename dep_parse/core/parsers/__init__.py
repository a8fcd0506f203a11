"""Dependency file parsers for various ecosystems."""

from typing import Type

from .base import (
    BaseParser,
    Credential,
    DefaultSource,
    Dependency,
    DependencyFile,
    DependencySet,
    GitSource,
    RegistrySource,
    Requirement,
    Source,
)
from .docker import DockerParser
from .go_dep import GoDepParser
from .go_modules import GoModulesParser
from .registry import Ecosystem, ParserRegistry

# Register built-in parsers
registry = ParserRegistry()
registry.register(Ecosystem.DOCKER, DockerParser)
registry.register(Ecosystem.DEP, GoDepParser)
registry.register(Ecosystem.GO_MODULES, GoModulesParser)


def for_package_manager(package_manager: str) -> Type[BaseParser]:
    """Resolve an ecosystem identifier to its parser class.

    Raises:
        UnsupportedEcosystem: If the identifier is unknown
    """
    return registry.resolve(package_manager)


__all__ = [
    "BaseParser",
    "Credential",
    "DefaultSource",
    "Dependency",
    "DependencyFile",
    "DependencySet",
    "DockerParser",
    "Ecosystem",
    "GitSource",
    "GoDepParser",
    "GoModulesParser",
    "ParserRegistry",
    "RegistrySource",
    "Requirement",
    "Source",
    "for_package_manager",
    "registry",
]
