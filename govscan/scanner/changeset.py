"""
Change-Set Builder — the set of paths a diff-mode scan is restricted to.
"""

from __future__ import annotations

import logging
from pathlib import Path

from govscan.scanner.git import output_lines, run_git

logger = logging.getLogger("govscan.scanner.changeset")

DIFF_FILTER = "--diff-filter=ACMR"


def git_changed_files(directory: Path | str, base: str = "HEAD", timeout: int = 120) -> set[str]:
    """
    Union of files changed against `base`, unstaged changes, and untracked
    files not excluded by ignore rules. Paths are relative to `directory`.

    Any failing git invocation raises GitError.
    """
    base = base or "HEAD"
    cwd = Path(directory)

    committed = run_git(["diff", "--name-only", "--relative", DIFF_FILTER, base], cwd=cwd, timeout=timeout)
    unstaged = run_git(["diff", "--name-only", "--relative", DIFF_FILTER], cwd=cwd, timeout=timeout)
    untracked = run_git(["ls-files", "--others", "--exclude-standard"], cwd=cwd, timeout=timeout)

    changed: set[str] = set()
    for out in (committed, unstaged, untracked):
        changed.update(output_lines(out))

    logger.info(f"Change-set against {base}: {len(changed)} file(s)")
    return changed
