"""Base parser class and data models for dependency parsing."""

import posixpath
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, Iterator, List, Optional, Union

from ...config import ParserSettings
from ...errors import DependencyConflictError, MissingRequiredFile
from ...utils.logging import get_logger


@dataclass(frozen=True)
class DependencyFile:
    """Raw content of one fetched dependency file."""

    name: str
    content: str
    directory: str = "/"

    @property
    def path(self) -> str:
        """Full path of the file within the fetched repository."""
        return posixpath.normpath(posixpath.join(self.directory, self.name))


@dataclass(frozen=True)
class Credential:
    """One credential record, scoped by registry or host."""

    type: str
    registry: Optional[str] = None
    host: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Credential":
        """Build a credential from a plain mapping.

        Args:
            data: Mapping with a ``type`` key and optional scope/secret keys

        Returns:
            Credential instance
        """
        if not data.get("type"):
            raise ValueError("Credential type cannot be empty")
        return cls(
            type=data["type"],
            registry=data.get("registry"),
            host=data.get("host"),
            username=data.get("username"),
            password=data.get("password"),
        )


@dataclass(frozen=True)
class DefaultSource:
    """Dependency resolved through the ecosystem's default package index."""

    source: str

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "default", "source": self.source}


@dataclass(frozen=True)
class RegistrySource:
    """Container image reference details, as declared."""

    registry: Optional[str] = None
    tag: Optional[str] = None
    digest: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        # Only the parts present in the declaration are kept
        source = {}
        if self.registry:
            source["registry"] = self.registry
        if self.tag:
            source["tag"] = self.tag
        if self.digest:
            source["digest"] = self.digest
        return source


@dataclass(frozen=True)
class GitSource:
    """Dependency pinned to a version-control revision."""

    url: str
    branch: Optional[str] = None
    ref: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "git", "url": self.url, "branch": self.branch, "ref": self.ref}


Source = Union[DefaultSource, RegistrySource, GitSource]


@dataclass(frozen=True)
class Requirement:
    """One file-scoped declaration of a dependency."""

    requirement: Optional[str]
    file: str
    groups: tuple = ()
    source: Optional[Source] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "requirement": self.requirement,
            "file": self.file,
            "groups": list(self.groups),
            "source": self.source.to_dict() if self.source is not None else None,
        }


@dataclass
class Dependency:
    """One logical dependency as observed in one or more files."""

    name: str
    package_manager: str
    version: Optional[str] = None
    requirements: List[Requirement] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Validate the dependency."""
        if not self.name:
            raise ValueError("Dependency name cannot be empty")
        if not self.package_manager:
            raise ValueError(f"Package manager cannot be empty for {self.name}")

    @property
    def top_level(self) -> bool:
        """Whether the dependency is declared directly in a manifest."""
        return bool(self.requirements)

    def to_dict(self) -> Dict[str, Any]:
        """Convert the dependency to a JSON-serializable dictionary.

        Returns:
            Dictionary representation of the dependency
        """
        return {
            "name": self.name,
            "version": self.version,
            "package_manager": self.package_manager,
            "requirements": [req.to_dict() for req in self.requirements],
        }


class DependencySet:
    """Name-keyed accumulator that merges repeated dependency records.

    Adding a record for a name that is already present concatenates the
    requirement lists (dropping exact repeats) and keeps whichever version is
    known. Two different versions for one name raise
    ``DependencyConflictError``.
    """

    def __init__(self, dependencies: Optional[Iterable[Dependency]] = None) -> None:
        self._dependencies: Dict[str, Dependency] = {}
        for dependency in dependencies or []:
            self.add(dependency)

    def add(self, dependency: Dependency) -> "DependencySet":
        """Add a dependency, merging it with any record of the same name.

        Args:
            dependency: Dependency to add

        Returns:
            This set, for chaining
        """
        existing = self._dependencies.get(dependency.name)
        if existing is None:
            self._dependencies[dependency.name] = replace(
                dependency, requirements=list(dependency.requirements)
            )
        else:
            self._dependencies[dependency.name] = self._combine(existing, dependency)
        return self

    def update(self, other: "DependencySet") -> "DependencySet":
        """Merge every dependency of another set into this one."""
        for dependency in other:
            self.add(dependency)
        return self

    @property
    def dependencies(self) -> List[Dependency]:
        """Plain list of the merged dependencies, in first-insertion order."""
        return list(self._dependencies.values())

    def find(self, name: str) -> Optional[Dependency]:
        return self._dependencies.get(name)

    def _combine(self, existing: Dependency, new: Dependency) -> Dependency:
        if existing.version and new.version and existing.version != new.version:
            raise DependencyConflictError(existing.name, existing.version, new.version)

        requirements = list(existing.requirements)
        for req in new.requirements:
            if req not in requirements:
                requirements.append(req)

        return replace(
            existing,
            version=existing.version or new.version,
            requirements=requirements,
        )

    def __add__(self, other: "DependencySet") -> "DependencySet":
        combined = DependencySet(self)
        return combined.update(other)

    def __iadd__(self, other: "DependencySet") -> "DependencySet":
        return self.update(other)

    def __iter__(self) -> Iterator[Dependency]:
        return iter(self.dependencies)

    def __len__(self) -> int:
        return len(self._dependencies)

    def __contains__(self, name: object) -> bool:
        return name in self._dependencies


class BaseParser(ABC):
    """Abstract base class for ecosystem dependency file parsers.

    A parser is constructed with the fetched files and the available
    credentials, checks that its required files are present, and turns them
    into ``Dependency`` records through ``parse()``.
    """

    ecosystem: str = ""

    def __init__(
        self,
        dependency_files: Iterable[DependencyFile],
        credentials: Optional[Iterable[Credential]] = None,
        settings: Optional[ParserSettings] = None,
    ) -> None:
        """Initialize the parser.

        Args:
            dependency_files: Files supplied by the fetching stage
            credentials: Credentials available to the parser
            settings: Parser settings (defaults apply when omitted)

        Raises:
            MissingRequiredFile: If a required file is absent
        """
        self.dependency_files: List[DependencyFile] = list(dependency_files)
        self.credentials: List[Credential] = list(credentials or [])
        self.settings = settings or ParserSettings()
        self.logger = get_logger(self.__class__.__name__, ecosystem=self.ecosystem)
        self.check_required_files()

    @abstractmethod
    def parse(self) -> List[Dependency]:
        """Parse the dependency files.

        Returns:
            Flat list of merged dependencies
        """
        pass

    @abstractmethod
    def check_required_files(self) -> None:
        """Raise ``MissingRequiredFile`` unless the required files are present."""
        pass

    def get_original_file(self, name: str) -> Optional[DependencyFile]:
        """Find a supplied file by name.

        Args:
            name: File name to look for

        Returns:
            The first file with that name, or None
        """
        for dependency_file in self.dependency_files:
            if dependency_file.name == name:
                return dependency_file
        return None

    def _require_files(self, *names: str) -> None:
        for name in names:
            if self.get_original_file(name) is None:
                raise MissingRequiredFile(name)

    def credentials_of_type(self, credential_type: str) -> List[Credential]:
        return [cred for cred in self.credentials if cred.type == credential_type]
