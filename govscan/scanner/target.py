"""
Target Resolver — turns a scan target string into a local directory.

GitHub references are shallow-cloned into a temporary directory that is
removed when the resolution context exits, whatever the exit path.
"""

from __future__ import annotations

import logging
import os
import re
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from govscan.errors import (
    CloneError,
    GitError,
    InvalidTargetError,
    NotADirectoryTargetError,
    TargetNotFoundError,
)
from govscan.models.scan_models import ScanTarget, TargetKind
from govscan.scanner.git import run_git

logger = logging.getLogger("govscan.scanner.target")

_TOKEN_RE = re.compile(r"https://[^@/\s]+@github\.com")


def is_github_url(target: str) -> bool:
    return "github.com/" in target or target.startswith("git@github.com:")


def parse_github_url(url: str) -> tuple[str, str]:
    """
    Extract (owner, repo) from a GitHub reference.

    Supports https://github.com/owner/repo(.git) and git@github.com:owner/repo(.git).
    Query strings and fragments are ignored.
    """
    url = url.strip()

    if "github.com/" in url:
        rest = url.split("github.com/", 1)[1]
        rest = rest.split("?", 1)[0].split("#", 1)[0].strip("/")
        segments = rest.split("/")
        if len(segments) >= 2 and segments[0] and segments[1]:
            return segments[0], segments[1].removesuffix(".git")

    if url.startswith("git@github.com:"):
        rest = url.split(":", 1)[1].strip("/")
        segments = rest.split("/")
        if len(segments) >= 2 and segments[0] and segments[1]:
            return segments[0], segments[1].removesuffix(".git")

    raise InvalidTargetError(f"cannot parse GitHub URL: {url}")


def build_clone_url(owner: str, repo: str, token: str = "") -> str:
    if token:
        return f"https://{token}@github.com/{owner}/{repo}.git"
    return f"https://github.com/{owner}/{repo}.git"


def _redact(text: str) -> str:
    return _TOKEN_RE.sub("https://***@github.com", text)


@contextmanager
def clone_repo(url: str, branch: str = "", timeout: int = 300) -> Iterator[Path]:
    """Depth-1 clone into a fresh temp dir; the dir is removed on exit."""
    tmp_dir = Path(tempfile.mkdtemp(prefix="govscan-scan-"))
    try:
        args = ["clone", "--depth=1"]
        if branch:
            args += ["--branch", branch]
        args += [url, str(tmp_dir)]
        try:
            run_git(args, timeout=timeout)
        except GitError as e:
            raise CloneError(f"git clone failed: {_redact(str(e))}") from None
        yield tmp_dir
    finally:
        shutil.rmtree(tmp_dir, ignore_errors=True)
        logger.debug(f"Removed clone directory {tmp_dir}")


def get_commit_sha(directory: Path) -> str:
    """HEAD commit of a checkout, or "" when it cannot be determined."""
    try:
        return run_git(["-C", str(directory), "rev-parse", "HEAD"]).strip()
    except GitError as e:
        logger.warning(f"Could not read HEAD of {directory}: {e}")
        return ""


def resolve_local(target: str) -> ScanTarget:
    """Resolve a local path to an absolute directory target."""
    path = os.getcwd() if target == "." else os.path.abspath(os.path.expanduser(target))
    if not os.path.exists(path):
        raise TargetNotFoundError(f"target path {target!r} does not exist")
    if not os.path.isdir(path):
        raise NotADirectoryTargetError(f"target {target!r} is not a directory")
    return ScanTarget(kind=TargetKind.LOCAL, path=path)


@contextmanager
def resolve_target(
    target: str,
    branch: str = "",
    token: str = "",
    timeout: int = 300,
) -> Iterator[ScanTarget]:
    """
    Resolve a CLI/API target argument.

    Usage:
        with resolve_target("https://github.com/org/repo") as resolved:
            walk(resolved.path)
    """
    if not is_github_url(target):
        yield resolve_local(target)
        return

    owner, repo = parse_github_url(target)
    clone_url = build_clone_url(owner, repo, token)
    logger.info(f"Cloning {owner}/{repo}" + (f" at {branch}" if branch else ""))

    with clone_repo(clone_url, branch=branch, timeout=timeout) as directory:
        yield ScanTarget(
            kind=TargetKind.GITHUB,
            path=str(directory),
            url=f"https://github.com/{owner}/{repo}",
            branch=branch,
            commit_sha=get_commit_sha(directory),
        )
