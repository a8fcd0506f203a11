"""Path utilities for loading an ecosystem's dependency files from disk."""

import fnmatch
from pathlib import Path, PurePosixPath
from typing import Dict, Iterator, List, Optional, Tuple

from ..core.parsers.base import DependencyFile
from ..core.parsers.registry import Ecosystem


class PathFilter:
    """Decides which files below a project root are skipped.

    Paths are judged relative to the root, so a project that itself lives
    under e.g. ``vendor/`` is still searched.
    """

    IGNORED_DIRECTORIES = frozenset({
        "node_modules",
        ".git",
        "vendor",
        ".venv",
        "venv",
        "__pycache__",
    })

    def __init__(self, ignore_patterns: Optional[List[str]] = None) -> None:
        """Initialize path filter.

        Args:
            ignore_patterns: Extra glob patterns, matched against the relative path
        """
        self.ignore_patterns = list(ignore_patterns or [])

    def is_ignored(self, relative_path: PurePosixPath) -> bool:
        """Check if a path should be skipped.

        Args:
            relative_path: Path relative to the project root

        Returns:
            True if any parent directory is ignored or a pattern matches
        """
        if any(part in self.IGNORED_DIRECTORIES for part in relative_path.parts[:-1]):
            return True

        path_str = relative_path.as_posix()
        return any(fnmatch.fnmatch(path_str, pattern) for pattern in self.ignore_patterns)


class DependencyFileFinder:
    """Finds the files an ecosystem's parser consumes."""

    # Ecosystem -> (file name patterns, search subdirectories)
    ECOSYSTEM_PATTERNS: Dict[Ecosystem, Tuple[Tuple[str, ...], bool]] = {
        Ecosystem.DOCKER: (("Dockerfile", "*.Dockerfile", "Dockerfile.*"), True),
        Ecosystem.DEP: (("Gopkg.toml", "Gopkg.lock"), False),
        Ecosystem.GO_MODULES: (("go.mod", "go.sum"), False),
    }

    def __init__(self, ignore_patterns: Optional[List[str]] = None) -> None:
        """Initialize dependency file finder.

        Args:
            ignore_patterns: Additional ignore patterns
        """
        self.path_filter = PathFilter(ignore_patterns)

    def find_dependency_files(self, root_path: Path, ecosystem: str) -> List[DependencyFile]:
        """Load the ecosystem's dependency files below a directory.

        Args:
            root_path: Project directory
            ecosystem: Ecosystem identifier

        Returns:
            Files in discovery order, named relative to ``root_path``
        """
        if not root_path.is_dir():
            raise ValueError(f"Root path is not a directory: {root_path}")

        patterns, recursive = self.ECOSYSTEM_PATTERNS[Ecosystem.from_identifier(ecosystem)]
        dependency_files = []

        for file_path in self._walk_files(root_path, recursive):
            if not any(fnmatch.fnmatch(file_path.name, pattern) for pattern in patterns):
                continue

            dependency_files.append(DependencyFile(
                name=file_path.relative_to(root_path).as_posix(),
                content=file_path.read_text(encoding="utf-8"),
            ))

        return dependency_files

    def _walk_files(self, root_path: Path, recursive: bool) -> Iterator[Path]:
        """Walk through files in directory tree.

        Args:
            root_path: Root directory to walk
            recursive: Descend into subdirectories

        Yields:
            File paths that are not ignored
        """
        candidates = root_path.rglob("*") if recursive else root_path.iterdir()
        for file_path in sorted(candidates):
            relative_path = PurePosixPath(file_path.relative_to(root_path).as_posix())
            if file_path.is_file() and not self.path_filter.is_ignored(relative_path):
                yield file_path


def find_dependency_files(
    root_path: Path,
    ecosystem: str,
    ignore_patterns: Optional[List[str]] = None
) -> List[DependencyFile]:
    """Convenience function to load an ecosystem's dependency files.

    Args:
        root_path: Root directory to search
        ecosystem: Ecosystem identifier
        ignore_patterns: Additional ignore patterns

    Returns:
        List of loaded dependency files
    """
    finder = DependencyFileFinder(ignore_patterns)
    return finder.find_dependency_files(root_path, ecosystem)
