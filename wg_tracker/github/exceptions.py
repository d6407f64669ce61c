"""Contains exceptions raised by the GitHub adapter.

githubkit exceptions are translated into these so that callers can decide
between aborting a run and skipping a single item without knowing about
HTTP status codes.
"""


class GitHubError(Exception):
    """Base class for GitHub API failures."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        """Initializes the exception with a message and the HTTP status code, if any."""
        super().__init__(message)
        self.status_code = status_code


class GitHubAuthorizationError(GitHubError):
    """Raised when credentials are rejected or lack permission. Fatal to a run."""


class GitHubTransientError(GitHubError):
    """Raised for network failures, timeouts, server errors, and exhausted rate limits."""


class GitHubIssueNotFoundError(GitHubError):
    """Raised when a referenced issue or resource does not exist (404) or was deleted (410)."""


class GitHubUnprocessableEntityError(GitHubError, ValueError):
    """Raised when GitHub rejects a request payload (422)."""
