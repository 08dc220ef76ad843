"""
Glob helpers shared by file discovery and the rule engine.

Globs are shell-style (fnmatch); `*` also matches path separators, so a
pattern may be tested against a full relative path or a bare basename.
"""

from __future__ import annotations

import fnmatch
import logging
import re
from pathlib import Path
from typing import Optional

logger = logging.getLogger("govscan.scanner.globs")


def compile_glob(pattern: str) -> Optional[re.Pattern[str]]:
    """Compile a glob, returning None if it cannot be compiled."""
    try:
        return re.compile(fnmatch.translate(pattern))
    except re.error as e:
        logger.debug(f"Invalid glob {pattern!r}: {e}")
        return None


def glob_matches(glob: re.Pattern[str], rel_path: str) -> bool:
    """Match against the full relative path or its basename."""
    return bool(glob.match(rel_path) or glob.match(rel_path.rsplit("/", 1)[-1]))


def load_ignore_patterns(root: Path | str, file_name: str) -> list[re.Pattern[str]]:
    """
    Read a project-local ignore file.

    One glob per line; blank lines and '#' comments are skipped; a trailing
    '/' is stripped so directory patterns match the directory path itself.
    """
    path = Path(root) / file_name
    try:
        lines = path.read_text(encoding="utf-8", errors="replace").splitlines()
    except OSError:
        return []

    patterns: list[re.Pattern[str]] = []
    for line in lines:
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        compiled = compile_glob(line.rstrip("/"))
        if compiled is not None:
            patterns.append(compiled)
    logger.debug(f"Loaded {len(patterns)} ignore pattern(s) from {path}")
    return patterns
