"""
Thin wrapper around the git binary.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Optional

from govscan.errors import GitError

logger = logging.getLogger("govscan.scanner.git")


def run_git(args: list[str], cwd: Optional[Path] = None, timeout: int = 120) -> str:
    """Run git and return stdout. Raises GitError on a non-zero exit."""
    try:
        proc = subprocess.run(
            ["git", *args],
            cwd=str(cwd) if cwd else None,
            text=True,
            capture_output=True,
            check=False,
            timeout=timeout,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        raise GitError(f"git {' '.join(args)} failed: {e}") from e

    if proc.returncode != 0:
        err = (proc.stderr or proc.stdout or "").strip()
        raise GitError(f"git {' '.join(args)} failed: {err}", detail=err)
    return proc.stdout


def output_lines(out: str) -> list[str]:
    return [line.strip() for line in out.strip().splitlines() if line.strip()]
