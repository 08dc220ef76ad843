"""
File Discovery — walks a resolved target and lists scannable files.

Listing applies, in order: skip-listed directory names, ignore-file globs on
directories, binary extensions, the per-file size cap, the change-set
allow-list, ignore-file globs on files, and finally the file-count cap.
Entries are visited in lexical order, so the cap is deterministic.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Iterable, Optional

from govscan.scanner.globs import compile_glob, glob_matches, load_ignore_patterns

logger = logging.getLogger("govscan.scanner.files")

BINARY_EXTENSIONS = frozenset({
    ".png", ".jpg", ".jpeg", ".gif", ".webp", ".pdf", ".zip", ".tar", ".gz",
    ".tgz", ".jar", ".exe", ".dmg", ".woff", ".woff2", ".ttf", ".ico", ".svg",
    ".mp3", ".mp4", ".mov", ".avi", ".so", ".dylib", ".dll", ".a", ".o",
    ".pyc", ".class", ".wasm", ".bmp", ".eot", ".otf", ".db", ".sqlite",
})

SKIP_DIRS = frozenset({
    "node_modules", ".git", "__pycache__", ".venv", "venv", "vendor", "dist",
    "build", ".next", ".nuxt", "target", ".idea", ".vscode", "coverage",
    ".cache", ".tox", ".mypy_cache", ".pytest_cache", "env", ".env",
    ".terraform",
})


def is_text_file(path: str) -> bool:
    return os.path.splitext(path)[1].lower() not in BINARY_EXTENSIONS


class _CapReached(Exception):
    pass


class FileDiscovery:
    """
    Lists files under a root directory and reads them on demand.

    Usage:
        discovery = FileDiscovery(root, max_files=800, max_file_size_kb=80)
        paths = discovery.list_files()
        contents = discovery.read_contents()
    """

    def __init__(
        self,
        root: Path | str,
        max_files: int = 0,
        max_file_size_kb: int = 0,
        ignore_file_name: str = ".govscanignore",
        extra_ignore: Iterable[str] = (),
        allow_list: Optional[set[str]] = None,
    ) -> None:
        self.root = Path(root)
        self.max_files = max_files
        self.max_file_size_kb = max_file_size_kb
        self.allow_list = allow_list
        self.ignore_patterns: list[re.Pattern[str]] = load_ignore_patterns(
            self.root, ignore_file_name
        )
        for pattern in extra_ignore:
            compiled = compile_glob(pattern.rstrip("/"))
            if compiled is not None:
                self.ignore_patterns.append(compiled)
        self._files: Optional[list[str]] = None

    def list_files(self) -> list[str]:
        """Relative posix paths of all scannable files. Cached per instance."""
        if self._files is not None:
            return self._files

        files: list[str] = []
        try:
            self._walk(self.root, "", files)
        except _CapReached:
            logger.info(f"File cap of {self.max_files} reached under {self.root}")

        self._files = files
        logger.info(f"Discovered {len(files)} file(s) under {self.root}")
        return files

    def _walk(self, directory: Path, rel_dir: str, files: list[str]) -> None:
        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as e:
            logger.debug(f"Skipping unreadable directory {directory}: {e}")
            return

        for entry in entries:
            rel_path = f"{rel_dir}/{entry.name}" if rel_dir else entry.name
            try:
                is_dir = entry.is_dir(follow_symlinks=False)
            except OSError:
                continue

            if is_dir:
                if self._skip_dir(entry.name, rel_path):
                    continue
                self._walk(Path(entry.path), rel_path, files)
            elif self._include_file(entry, rel_path):
                files.append(rel_path)
                if self.max_files > 0 and len(files) >= self.max_files:
                    raise _CapReached

    def _skip_dir(self, name: str, rel_path: str) -> bool:
        if name in SKIP_DIRS:
            return True
        for pattern in self.ignore_patterns:
            if pattern.match(rel_path) or pattern.match(rel_path + "/") or pattern.match(name):
                return True
        return False

    def _include_file(self, entry: os.DirEntry, rel_path: str) -> bool:
        if not is_text_file(entry.name):
            return False

        if self.max_file_size_kb > 0:
            try:
                size = entry.stat().st_size
            except OSError:
                return False
            if size > self.max_file_size_kb * 1024:
                return False

        if self.allow_list is not None and rel_path not in self.allow_list:
            return False

        return not any(glob_matches(p, rel_path) for p in self.ignore_patterns)

    def read_file(self, rel_path: str) -> str:
        """Read one file as text. Raises OSError on failure."""
        return (self.root / rel_path).read_text(encoding="utf-8", errors="replace")

    def read_contents(self) -> dict[str, str]:
        """Contents of every listed file; unreadable files are skipped."""
        contents: dict[str, str] = {}
        for rel_path in self.list_files():
            try:
                contents[rel_path] = self.read_file(rel_path)
            except OSError as e:
                logger.debug(f"Skipping unreadable file {rel_path}: {e}")
        return contents
