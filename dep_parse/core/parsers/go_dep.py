"""Parser for Go dep manifests (Gopkg.toml) and lockfiles (Gopkg.lock).

Relevant dep docs:
- https://github.com/golang/dep/blob/master/docs/Gopkg.toml.md
- https://github.com/golang/dep/blob/master/docs/Gopkg.lock.md
"""

import re
from typing import Any, Dict, List, Optional

try:
    import tomllib
except ImportError:
    import tomli as tomllib

from ...errors import (
    DependencyFileNotParseable,
    UnexpectedDeclarationError,
    UnresolvableGitSourceError,
)
from ...utils.performance import benchmark
from ..go_requirement import ConstraintKind, probe_constraint
from ..path_converter import git_url_for_path
from .base import (
    BaseParser,
    DefaultSource,
    Dependency,
    DependencyFile,
    DependencySet,
    GitSource,
    Requirement,
    Source,
)

MANIFEST_NAME = "Gopkg.toml"
LOCKFILE_NAME = "Gopkg.lock"

REQUIREMENT_TYPES = ("constraint", "override")


class GoDepParser(BaseParser):
    """Parser combining Gopkg.toml declarations with Gopkg.lock versions."""

    ecosystem = "dep"

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        self._parsed_files: Dict[str, Dict[str, Any]] = {}
        super().__init__(*args, **kwargs)

    def check_required_files(self) -> None:
        self._require_files(MANIFEST_NAME, LOCKFILE_NAME)

    @benchmark
    def parse(self) -> List[Dependency]:
        dependency_set = DependencySet()
        dependency_set += self._manifest_dependencies()
        dependency_set += self._lockfile_dependencies()
        return dependency_set.dependencies

    @property
    def manifest(self) -> DependencyFile:
        return self.get_original_file(MANIFEST_NAME)

    @property
    def lockfile(self) -> Optional[DependencyFile]:
        return self.get_original_file(LOCKFILE_NAME)

    def _manifest_dependencies(self) -> DependencySet:
        dependency_set = DependencySet()
        locked_names = self._locked_project_names()

        for requirement_type in REQUIREMENT_TYPES:
            for declaration in self._parsed_file(self.manifest).get(requirement_type, []):
                if not isinstance(declaration, dict):
                    raise UnexpectedDeclarationError(declaration)

                name = declaration.get("name")
                if not name:
                    raise UnexpectedDeclarationError(declaration)

                if locked_names is not None and name not in locked_names:
                    self.logger.debug(f"Skipping {name}: declared in {MANIFEST_NAME} but not locked")
                    continue

                dependency_set.add(Dependency(
                    name=name,
                    version=None,
                    package_manager=self.ecosystem,
                    requirements=[Requirement(
                        requirement=self._requirement_from_declaration(declaration),
                        file=self.manifest.name,
                        groups=(),
                        source=self._source_from_declaration(declaration),
                    )],
                ))

        return dependency_set

    def _lockfile_dependencies(self) -> DependencySet:
        dependency_set = DependencySet()

        for details in self._locked_projects():
            if not isinstance(details, dict) or not details.get("name"):
                raise UnexpectedDeclarationError(details)

            dependency_set.add(Dependency(
                name=details["name"],
                version=self._version_from_lockfile(details),
                package_manager=self.ecosystem,
                requirements=[],
            ))

        return dependency_set

    def _version_from_lockfile(self, details: Dict[str, Any]) -> Optional[str]:
        if details.get("version"):
            return re.sub(r"^v", "", details["version"])
        return details.get("revision")

    def _requirement_from_declaration(self, declaration: Dict[str, Any]) -> Optional[str]:
        if self._git_declaration(declaration):
            return None
        return declaration.get("version")

    def _source_from_declaration(self, declaration: Dict[str, Any]) -> Source:
        source = declaration.get("source") or declaration["name"]
        git_declaration = self._git_declaration(declaration)

        if not git_declaration:
            return DefaultSource(source=source)

        git_source_url = git_url_for_path(source)
        if git_source_url is None:
            raise UnresolvableGitSourceError(declaration["name"], source)

        return GitSource(
            url=git_source_url,
            branch=declaration.get("branch"),
            ref=declaration.get("revision") or declaration.get("version"),
        )

    def _git_declaration(self, declaration: Dict[str, Any]) -> bool:
        """Whether a declaration pins a branch, revision or tag name.

        A ``version`` that looks like a name but not a constraint (``master``,
        ``release-1.2``) is a tag or branch.
        """
        if declaration.get("branch") or declaration.get("revision"):
            return True

        version = declaration.get("version")
        if version is None:
            return False

        kind = probe_constraint(str(version))
        if kind is ConstraintKind.MALFORMED:
            self.logger.warning(f"Unparseable constraint {version!r} for {declaration['name']}")
        return kind is ConstraintKind.NOT_A_CONSTRAINT

    def _locked_projects(self) -> List[Dict[str, Any]]:
        if self.lockfile is None:
            return []
        return self._parsed_file(self.lockfile).get("projects", [])

    def _locked_project_names(self) -> Optional[set]:
        if self.lockfile is None:
            return None
        return {
            details.get("name")
            for details in self._locked_projects()
            if isinstance(details, dict)
        }

    def _parsed_file(self, dependency_file: DependencyFile) -> Dict[str, Any]:
        if dependency_file.name not in self._parsed_files:
            try:
                self._parsed_files[dependency_file.name] = tomllib.loads(dependency_file.content)
            except tomllib.TOMLDecodeError as e:
                raise DependencyFileNotParseable(dependency_file.path, str(e)) from e
        return self._parsed_files[dependency_file.name]
