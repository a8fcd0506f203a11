"""Main CLI interface for dep-parse."""

import json
import time
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.panel import Panel

from ..config import ParserSettings
from ..core.parsers import Credential, for_package_manager, registry
from ..errors import DepParseError
from ..output.formatters import ConsoleFormatter, JSONFormatter
from ..utils.logging import get_logger, setup_logging
from ..utils.path_utils import find_dependency_files

app = typer.Typer(
    name="dep-parse",
    help="Extract normalized dependency records from manifests and lockfiles",
    add_completion=False
)

console = Console()
logger = get_logger("CLI")


def _load_credentials(credentials_file: Optional[Path]) -> List[Credential]:
    """Load credential records from a JSON list.

    Args:
        credentials_file: Path to a JSON file holding a list of credential objects

    Returns:
        Parsed credentials (empty when no file is given)
    """
    if credentials_file is None:
        return []

    with open(credentials_file, 'r', encoding='utf-8') as f:
        data = json.load(f)

    if not isinstance(data, list):
        raise typer.BadParameter("Credentials file must contain a JSON list")

    return [Credential.from_dict(item) for item in data]


@app.command()
def parse(
    ecosystem: str = typer.Argument(
        ...,
        help="Ecosystem identifier, e.g. 'docker', 'dep' or 'go_modules'"
    ),
    path: Path = typer.Argument(
        Path("."),
        help="Path to the project directory"
    ),
    credentials_file: Optional[Path] = typer.Option(
        None,
        "--credentials",
        "-c",
        help="JSON file with a list of credential records"
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output file for JSON results"
    ),
    ignore_patterns: Optional[List[str]] = typer.Option(
        None,
        "--ignore",
        help="Additional ignore patterns"
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        help="Also write the log to this file"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging"
    ),
) -> None:
    """Parse a project's dependency files for one ecosystem."""
    setup_logging(log_file=log_file, verbose=verbose)

    if not path.is_dir():
        console.print(f"[red]Error: Path is not a directory: {path}[/red]")
        raise typer.Exit(1)

    try:
        parser_class = for_package_manager(ecosystem)
        dependency_files = find_dependency_files(path, ecosystem, ignore_patterns)
        console.print(f"Found {len(dependency_files)} {ecosystem} files in {path}")

        start_time = time.perf_counter()
        parser = parser_class(
            dependency_files,
            credentials=_load_credentials(credentials_file),
            settings=ParserSettings.from_env(),
        )
        dependencies = parser.parse()
        parse_time = time.perf_counter() - start_time
    except DepParseError as e:
        logger.error(f"Parse failed: {e}")
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    ConsoleFormatter(console).format_dependencies(ecosystem, dependencies)
    console.print(f"[dim]Parsed in {parse_time:.2f}s[/dim]")

    if output:
        json_formatter = JSONFormatter(output)
        results = json_formatter.format_dependencies(
            ecosystem,
            dependencies,
            metadata={"path": str(path), "files": [f.name for f in dependency_files]},
        )
        json_formatter.save_results(results)
        console.print(f"[green]Results saved to: {output}[/green]")


@app.command()
def ecosystems() -> None:
    """List the supported ecosystem identifiers."""
    console.print(Panel.fit(
        "\n".join(registry.get_supported_ecosystems()),
        title="Supported Ecosystems"
    ))


def main() -> None:
    """Main entry point for the dep-parse CLI."""
    app()


if __name__ == "__main__":
    main()
