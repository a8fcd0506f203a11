"""Parser for Go modules, delegating resolution to ``go list``."""

import json
import re
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional

from ...config import ParserSettings
from ...errors import DependencyFileNotParseable
from ...utils.performance import benchmark
from ...utils.shared_helpers import (
    CommandResult,
    in_a_temporary_directory,
    run_command,
    with_git_configured,
)
from ..path_converter import git_url_for_path
from .base import (
    BaseParser,
    Credential,
    DefaultSource,
    Dependency,
    DependencyFile,
    DependencySet,
    GitSource,
    Requirement,
)

GO_MOD_NAME = "go.mod"
GO_SUM_NAME = "go.sum"

# Pseudo-versions encode an untagged commit, e.g. v0.0.0-20200101000000-abcdef012345
GIT_VERSION_REGEX = re.compile(r"^v\d+\.\d+\.\d+-.*-(?P<sha>[0-9a-f]{12})$")

CommandRunner = Callable[[List[str], Path, Mapping[str, str]], CommandResult]


def iter_json_chunks(output: str) -> Iterator[str]:
    """Split concatenated ``go list -m -json`` output into one text block per record.

    A line consisting of a single ``{`` opens a new record; all lines up to
    the next such line (or the end of the output) belong to it.

    Args:
        output: Raw standard output of the tool

    Yields:
        The text of each record
    """
    chunk: List[str] = []
    for line in output.splitlines(keepends=True):
        if line.rstrip("\r\n") == "{" and chunk:
            yield "".join(chunk)
            chunk = []
        chunk.append(line)

    if chunk and "".join(chunk).strip():
        yield "".join(chunk)


class GoModulesParser(BaseParser):
    """Parser for go.mod files.

    Runs ``go list -m -json all`` against the manifest in a scratch directory
    and converts each listed module into a dependency.
    """

    ecosystem = "go_modules"

    def __init__(
        self,
        dependency_files: Iterable[DependencyFile],
        credentials: Optional[Iterable[Credential]] = None,
        settings: Optional[ParserSettings] = None,
        command_runner: Optional[CommandRunner] = None,
    ) -> None:
        self.command_runner = command_runner or run_command
        self._module_info: Optional[str] = None
        super().__init__(dependency_files, credentials, settings)

    def check_required_files(self) -> None:
        self._require_files(GO_MOD_NAME)

    @property
    def go_mod(self) -> DependencyFile:
        return self.get_original_file(GO_MOD_NAME)

    @benchmark
    def parse(self) -> List[Dependency]:
        dependency_set = DependencySet()

        for details in self._module_records():
            # The project itself appears in the listing as "Main"
            if details.get("Main"):
                continue

            dependency_set.add(self._dependency_from_details(details))

        return dependency_set.dependencies

    def _module_records(self) -> Iterator[Dict[str, Any]]:
        for chunk in iter_json_chunks(self._list_modules()):
            try:
                yield json.loads(chunk)
            except json.JSONDecodeError as e:
                raise DependencyFileNotParseable(self.go_mod.path, f"invalid go list output: {e}") from e

    def _dependency_from_details(self, details: Dict[str, Any]) -> Dependency:
        path = details["Path"]
        raw_version = details.get("Version")

        if self._rev_identifier(raw_version):
            revision = GIT_VERSION_REGEX.match(raw_version).group("sha")
            version = revision
            requirement = Requirement(
                requirement=None,
                file=self.go_mod.name,
                groups=(),
                # No way to tell if a branch is followed, so assume a fixed ref
                source=GitSource(url=git_url_for_path(path) or path, branch=None, ref=revision),
            )
        else:
            version = re.sub(r"^v", "", raw_version) if raw_version else None
            requirement = Requirement(
                requirement=raw_version,
                file=self.go_mod.name,
                groups=(),
                source=DefaultSource(source=path),
            )

        return Dependency(
            name=path,
            version=version,
            package_manager=self.ecosystem,
            requirements=[] if details.get("Indirect") else [requirement],
        )

    def _rev_identifier(self, version: Optional[str]) -> bool:
        return bool(version) and GIT_VERSION_REGEX.match(version) is not None

    def _list_modules(self) -> str:
        if self._module_info is not None:
            return self._module_info

        with in_a_temporary_directory() as directory:
            with with_git_configured(self.credentials) as env:
                (directory / GO_MOD_NAME).write_text(self.go_mod.content)
                go_sum = self.get_original_file(GO_SUM_NAME)
                if go_sum is not None:
                    (directory / GO_SUM_NAME).write_text(go_sum.content)
                env["GO111MODULE"] = "on"

                result = self.command_runner(
                    [self.settings.go_binary, "list", "-m", "-json", "all"],
                    directory,
                    env,
                )

        if not result.success:
            self.logger.debug(f"go list failed: {result.stderr.strip()}")
            raise DependencyFileNotParseable(self.go_mod.path, result.stderr.strip() or None)

        self._module_info = result.stdout
        return self._module_info
