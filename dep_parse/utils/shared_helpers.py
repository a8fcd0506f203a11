"""Helpers for running ecosystem tools in isolated working directories."""

import os
import subprocess
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Mapping, Optional
from urllib.parse import quote

from .logging import get_logger

logger = get_logger("SharedHelpers")

GIT_SOURCE_CREDENTIAL = "git_source"


@dataclass
class CommandResult:
    """Captured output of an external command."""

    stdout: str
    stderr: str
    returncode: int

    @property
    def success(self) -> bool:
        return self.returncode == 0


@contextmanager
def in_a_temporary_directory(prefix: str = "dep-parse-") -> Iterator[Path]:
    """Create a scratch directory that is removed on exit.

    Yields:
        Path to the directory
    """
    with tempfile.TemporaryDirectory(prefix=prefix) as directory:
        yield Path(directory)


@contextmanager
def with_git_configured(
    credentials: Iterable,
    base_env: Optional[Mapping[str, str]] = None,
) -> Iterator[Dict[str, str]]:
    """Build a subprocess environment with git credentials configured.

    The git config and credential store live in their own temporary directory
    and are only referenced from the returned environment, so nothing outside
    the subprocess sees them. Both files are removed on exit.

    Args:
        credentials: Credential records; those of type ``git_source`` are used
        base_env: Environment to extend (defaults to ``os.environ``)

    Yields:
        Environment mapping for ``subprocess`` calls
    """
    git_credentials = [
        cred for cred in credentials
        if cred.type == GIT_SOURCE_CREDENTIAL and cred.host
    ]

    with in_a_temporary_directory(prefix="dep-parse-git-") as git_dir:
        store_path = git_dir / "git.store"
        config_path = git_dir / "gitconfig"

        store_lines = []
        for cred in git_credentials:
            username = quote(cred.username or "x-access-token", safe="")
            password = quote(cred.password or "", safe="")
            store_lines.append(f"https://{username}:{password}@{cred.host}")
        store_path.write_text("\n".join(store_lines) + ("\n" if store_lines else ""))
        os.chmod(store_path, 0o600)

        config_lines = [
            "[credential]",
            f"\thelper = store --file={store_path.as_posix()}",
        ]
        for cred in git_credentials:
            config_lines.extend([
                f'[url "https://{cred.host}/"]',
                f"\tinsteadOf = ssh://git@{cred.host}/",
                f"\tinsteadOf = git@{cred.host}:",
            ])
        config_path.write_text("\n".join(config_lines) + "\n")

        env = dict(os.environ if base_env is None else base_env)
        env["GIT_CONFIG_GLOBAL"] = str(config_path)
        env["GIT_TERMINAL_PROMPT"] = "0"

        logger.debug(f"Configured git credentials for {len(git_credentials)} host(s)")
        yield env


def run_command(
    args: List[str],
    cwd: Path,
    env: Optional[Mapping[str, str]] = None,
) -> CommandResult:
    """Run a command and capture its output.

    Args:
        args: Command and arguments
        cwd: Working directory
        env: Environment for the process

    Returns:
        Captured stdout, stderr and exit status
    """
    logger.debug(f"Running {' '.join(args)} in {cwd}")
    completed = subprocess.run(
        args,
        cwd=str(cwd),
        env=dict(env) if env is not None else None,
        capture_output=True,
        text=True,
        check=False,
    )
    return CommandResult(
        stdout=completed.stdout,
        stderr=completed.stderr,
        returncode=completed.returncode,
    )
