"""Error types raised while parsing dependency files."""

from typing import Optional


class DepParseError(Exception):
    """Base class for expected, user-reportable parse failures."""


class UnsupportedEcosystem(DepParseError):
    """Raised when no parser is registered for an ecosystem identifier."""

    def __init__(self, ecosystem: str) -> None:
        self.ecosystem = ecosystem
        super().__init__(f"Unsupported package manager: {ecosystem}")


class MissingRequiredFile(DepParseError):
    """Raised when a parser's required input file was not supplied."""

    def __init__(self, file_name: str) -> None:
        self.file_name = file_name
        super().__init__(f"Missing required file: {file_name}")


class DependencyFileNotParseable(DepParseError):
    """Raised when a file cannot be parsed or the ecosystem tool rejects it."""

    def __init__(self, file_path: str, message: Optional[str] = None) -> None:
        self.file_path = file_path
        self.message = message
        detail = f": {message}" if message else ""
        super().__init__(f"Dependency file not parseable: {file_path}{detail}")


class PrivateSourceAuthenticationFailure(DepParseError):
    """Raised when a private registry rejects (or lacks) configured credentials."""

    def __init__(self, source: str) -> None:
        self.source = source
        super().__init__(
            f"The following source could not be reached as it requires "
            f"authentication (and any provided details were invalid or lacked "
            f"the required permissions): {source}"
        )


class RegistryAuthenticationError(DepParseError):
    """Raised by the registry client when authentication is refused."""

    def __init__(self, registry: str) -> None:
        self.registry = registry
        super().__init__(f"Authentication with registry {registry} failed")


class RegistryNotFound(DepParseError):
    """Raised by the registry client for a 404 response."""

    def __init__(self, url: str) -> None:
        self.url = url
        super().__init__(f"Registry resource not found: {url}")


class ParserDefect(RuntimeError):
    """Base class for logic or data defects. Never caught by the library."""


class DependencyConflictError(ParserDefect):
    """Two records for the same dependency disagree on the resolved version."""

    def __init__(self, name: str, version: str, other_version: str) -> None:
        self.name = name
        self.versions = (version, other_version)
        super().__init__(
            f"Conflicting versions for {name}: {version} != {other_version}"
        )


class UnresolvableGitSourceError(ParserDefect):
    """A git-pinned declaration has no resolvable repository location."""

    def __init__(self, name: str, source: str) -> None:
        self.name = name
        self.source = source
        super().__init__(f"No git source for a git declaration: {name} ({source})")


class UnexpectedDeclarationError(ParserDefect):
    """A manifest declaration has an unexpected shape."""

    def __init__(self, declaration: object) -> None:
        self.declaration = declaration
        super().__init__(f"Unexpected dependency declaration: {declaration!r}")
