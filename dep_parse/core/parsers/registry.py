"""Registry mapping ecosystem identifiers to parser classes."""

from enum import Enum
from typing import Dict, List, Type

from ...errors import UnsupportedEcosystem
from .base import BaseParser


class Ecosystem(str, Enum):
    """Ecosystems with a parser in this package."""

    DOCKER = "docker"
    DEP = "dep"
    GO_MODULES = "go_modules"

    @classmethod
    def from_identifier(cls, identifier: str) -> "Ecosystem":
        """Look up an ecosystem by its identifier string.

        Raises:
            UnsupportedEcosystem: If the identifier is unknown
        """
        try:
            return cls(identifier)
        except ValueError:
            raise UnsupportedEcosystem(identifier) from None


class ParserRegistry:
    """Static lookup table from ecosystem to parser class."""

    def __init__(self) -> None:
        """Initialize the parser registry."""
        self._parsers: Dict[Ecosystem, Type[BaseParser]] = {}

    def register(self, ecosystem: Ecosystem, parser_class: Type[BaseParser]) -> None:
        """Register the parser class for an ecosystem.

        Args:
            ecosystem: Ecosystem the parser handles
            parser_class: Parser class to register
        """
        if ecosystem in self._parsers:
            raise ValueError(f"Parser already registered for {ecosystem.value}")
        if parser_class.ecosystem != ecosystem.value:
            raise ValueError(
                f"{parser_class.__name__} handles {parser_class.ecosystem!r}, "
                f"not {ecosystem.value!r}"
            )
        self._parsers[ecosystem] = parser_class

    def resolve(self, identifier: str) -> Type[BaseParser]:
        """Get the parser class for an ecosystem identifier.

        Args:
            identifier: Ecosystem identifier, e.g. ``"docker"``

        Returns:
            Parser class for the ecosystem

        Raises:
            UnsupportedEcosystem: If no parser handles the identifier
        """
        ecosystem = Ecosystem.from_identifier(identifier)
        parser_class = self._parsers.get(ecosystem)
        if parser_class is None:
            raise UnsupportedEcosystem(identifier)
        return parser_class

    def get_supported_ecosystems(self) -> List[str]:
        """Get list of supported ecosystem identifiers.

        Returns:
            List of ecosystem identifiers
        """
        return [ecosystem.value for ecosystem in self._parsers]
