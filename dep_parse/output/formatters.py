"""Output formatters for parsed dependencies."""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..core.parsers.base import Dependency, GitSource, RegistrySource
from ..utils.logging import get_logger


def describe_source(dependency: Dependency) -> str:
    """Short human-readable description of where a dependency comes from."""
    for requirement in dependency.requirements:
        source = requirement.source
        if isinstance(source, GitSource):
            ref = source.branch or source.ref
            return f"git {source.url}" + (f" @ {ref}" if ref else "")
        if isinstance(source, RegistrySource):
            parts = source.to_dict()
            return ", ".join(f"{key}={value}" for key, value in parts.items()) or "default registry"
        if source is not None:
            return source.source
    return "(indirect)"


class ConsoleFormatter:
    """Rich console formatter for parsed dependencies."""

    def __init__(self, console: Optional[Console] = None) -> None:
        """Initialize the console formatter.

        Args:
            console: Rich console instance
        """
        self.console = console or Console()

    def format_dependencies(self, ecosystem: str, dependencies: List[Dependency]) -> None:
        """Display dependencies as a table.

        Args:
            ecosystem: Ecosystem the dependencies were parsed for
            dependencies: Parsed dependencies
        """
        if not dependencies:
            self.console.print(Panel(f"No {ecosystem} dependencies found", style="yellow"))
            return

        table = Table(title=f"{ecosystem} dependencies ({len(dependencies)})")
        table.add_column("Name", style="cyan")
        table.add_column("Version", style="green")
        table.add_column("Requirement", style="magenta")
        table.add_column("Files")
        table.add_column("Source", style="dim")

        for dependency in sorted(dependencies, key=lambda dep: dep.name):
            requirements = sorted({
                req.requirement for req in dependency.requirements if req.requirement
            })
            files = sorted({req.file for req in dependency.requirements})
            table.add_row(
                dependency.name,
                dependency.version or "-",
                ", ".join(requirements) or "-",
                ", ".join(files) or "-",
                describe_source(dependency),
            )

        self.console.print(table)


class JSONFormatter:
    """JSON formatter for parsed dependencies."""

    def __init__(self, output_file: Optional[Path] = None) -> None:
        """Initialize the JSON formatter.

        Args:
            output_file: Optional output file path
        """
        self.output_file = output_file
        self.logger = get_logger("JSONFormatter")

    def format_dependencies(
        self,
        ecosystem: str,
        dependencies: List[Dependency],
        metadata: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Format dependencies as JSON-serializable data.

        Args:
            ecosystem: Ecosystem the dependencies were parsed for
            dependencies: Parsed dependencies
            metadata: Optional additional metadata

        Returns:
            Formatted JSON data
        """
        result = {
            "ecosystem": ecosystem,
            "generated_at": datetime.now().isoformat(),
            "dependencies": [dependency.to_dict() for dependency in dependencies],
        }

        if metadata:
            result["metadata"] = metadata

        return result

    def save_results(
        self,
        results: Dict[str, Any],
        output_file: Optional[Path] = None
    ) -> None:
        """Save results to JSON file.

        Args:
            results: Results dictionary
            output_file: Output file path (uses instance default if None)
        """
        if not (output_file or self.output_file):
            raise ValueError("No output file specified")

        file_path = Path(output_file or self.output_file)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(json.dumps(results, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
        self.logger.info(f"Results saved to {file_path}")
