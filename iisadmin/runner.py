"""Running PowerShell scripts and collecting their output."""

from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass
from pathlib import Path

from iisadmin.helpers import random_int

POWERSHELL_ARGS = (
    "-ExecutionPolicy",
    "Bypass",
    "-NoLogo",
    "-NonInteractive",
    "-NoProfile",
    "-File",
)


class IISError(Exception):
    """Raised when an IIS operation fails."""


@dataclass(frozen=True)
class CommandResult:
    """Captured output of a PowerShell script."""

    stdout: str
    stderr: str


@dataclass
class PowerShellRunner:
    """Runs PowerShell scripts by writing them to a temporary .ps1 file."""

    executable: str = "powershell.exe"
    directory: Path | str | None = None

    def run(self, commands: str) -> CommandResult:
        """Run the given script and return its standard output and error."""
        folder = Path(self.directory) if self.directory is not None else Path.cwd()
        script = folder / f"command-{random_int()}.ps1"
        try:
            fd = os.open(script, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o700)
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(commands)
        except OSError as exc:
            raise IISError(f"Error writing command file: {exc}") from exc

        try:
            try:
                completed = subprocess.run(
                    [self.executable, *POWERSHELL_ARGS, str(script)],
                    capture_output=True,
                    check=False,
                )
            except OSError as exc:
                raise IISError(f"Error starting: {exc}") from exc
            if completed.returncode != 0:
                raise IISError(f"Error waiting: exit status {completed.returncode}")
            return CommandResult(
                stdout=_decode(completed.stdout),
                stderr=_decode(completed.stderr),
            )
        finally:
            try:
                script.unlink()
            except OSError:
                pass


def _decode(data: bytes | str | None) -> str:
    if data is None:
        return ""
    if isinstance(data, str):
        return data
    return data.decode("utf-8", errors="replace")