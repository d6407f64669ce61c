"""Base ABC for GitHub clients."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any


class GitHubClientBase(ABC):
    """Base ABC for GitHub clients.

    The sync engine only depends on this interface, so tests and alternative
    issue trackers can stand in for the githubkit adapter.
    """

    # Issue CRUD
    @abstractmethod
    async def create_issue(
        self,
        title: str,
        body: str | None = None,
        labels: list[str] | None = None,
        **kwargs: Any,
    ) -> Any:
        """Create an issue for a repository."""
        pass

    @abstractmethod
    async def list_issues_updated_since(self, since: datetime, labels: str | None = None) -> list[Any]:
        """List every issue updated at or after a point in time, oldest update first."""
        pass

    # Issue comments
    @abstractmethod
    async def list_issue_comments(self, issue_number: int, **kwargs: Any) -> list[Any]:
        """List comments on an issue."""
        pass

    @abstractmethod
    async def create_issue_comment(self, issue_number: int, body: str) -> Any:
        """Create a comment on an issue."""
        pass

    # Label CRUD
    @abstractmethod
    async def create_label(self, name: str, color: str, description: str | None = None, **kwargs: Any) -> Any:
        """Create a label for a repository."""
        pass

    @abstractmethod
    async def list_labels(self, **kwargs: Any) -> list[Any]:
        """List labels for a repository."""
        pass

    # Repository content
    @abstractmethod
    async def get_file_content(self, file_path: str, ref: str | None = None) -> str:
        """Get the content of a file, from the default branch unless a ref is given."""
        pass
