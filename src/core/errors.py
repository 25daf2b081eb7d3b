"""Exception hierarchy for workflow-relay.

Every failure the pipeline can raise derives from `RelayError`, so the CLI
catches a single type and turns it into one failure message.
"""

from __future__ import annotations


class RelayError(Exception):
    """Base exception for all workflow-relay errors."""


class ConfigurationError(RelayError):
    """Raised when inputs are missing or malformed."""


class GitHubAPIError(RelayError):
    """Raised when the GitHub API answers with a non-success status."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RepositoryAccessError(GitHubAPIError):
    """Raised when the token cannot read the remote repository's actions."""


class WorkflowNotFoundError(RelayError):
    """Raised when no workflow path matches the requested file name."""


class RunDetectionTimeoutError(RelayError):
    """Raised when the dispatched run never shows up in the runs list."""


class WaitTimeoutError(RelayError):
    """Raised when the run does not complete within the wait timeout."""


class EmptyLogArchiveError(RelayError):
    """Raised when the downloaded log archive contains no files."""
