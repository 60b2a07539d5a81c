"""Thin wrappers around external package-manager commands."""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

import structlog

from licensesentinel.exceptions import ShellError

log = structlog.get_logger("licensesentinel.shell")


def tool_available(tool: str) -> bool:
    """Return True if *tool* is on PATH."""
    return shutil.which(tool) is not None


def execute(cmd: str, *args: str, cwd: Path | str | None = None) -> str:
    """Run a command and return its stdout, raising ShellError on failure."""
    argv = [cmd, *args]
    log.debug("shell.execute", cmd=argv, cwd=str(cwd) if cwd else None)
    try:
        proc = subprocess.run(
            argv,
            cwd=cwd,
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as exc:
        raise ShellError(argv, -1, str(exc)) from exc
    if proc.returncode != 0:
        raise ShellError(argv, proc.returncode, proc.stderr)
    return proc.stdout


def success(cmd: str, *args: str, cwd: Path | str | None = None) -> bool:
    """Run a command and report whether it exited cleanly."""
    try:
        execute(cmd, *args, cwd=cwd)
    except ShellError:
        return False
    return True
