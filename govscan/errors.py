"""Error types raised across the scan pipeline, poller and collaborators."""

from __future__ import annotations

from typing import Optional


class GovscanError(RuntimeError):
    def __init__(self, message: str, *, detail: Optional[str] = None) -> None:
        super().__init__(message)
        self.detail = detail


class ResolutionError(GovscanError):
    """Raised when a scan target cannot be turned into a local directory."""


class InvalidTargetError(ResolutionError):
    """Raised for GitHub references that do not name an owner and repository."""


class TargetNotFoundError(ResolutionError):
    """Raised when a local target path does not exist."""


class NotADirectoryTargetError(ResolutionError):
    """Raised when a local target path exists but is not a directory."""


class CloneError(ResolutionError):
    """Raised when the shallow clone of a remote repository fails."""


class GitError(GovscanError):
    """Raised when a git invocation used for change-set construction fails."""


class LLMError(GovscanError):
    """Raised when the completion service is unavailable or exhausts retries."""


class FetchError(GovscanError):
    """Raised when a monitored document cannot be downloaded."""


class IngestionError(GovscanError):
    """Raised when no compliance rules can be extracted from a document."""


class StoreError(GovscanError):
    """Raised for persistence failures, including unknown record ids."""


class AgentProcessError(GovscanError):
    """Raised when the background agent cannot be started or stopped."""


class UnknownPresetError(GovscanError):
    """Raised when a built-in preset slug is not in the registry."""
