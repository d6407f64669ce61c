"""GitHub client adapter for the githubkit library."""

import base64
from datetime import datetime
from functools import wraps
from pathlib import Path
from typing import Any, Awaitable, Callable, Self, TypeVar

import structlog
from githubkit import Response
from githubkit.exception import (
    AuthCredentialError,
    AuthExpiredError,
    PrimaryRateLimitExceeded,
    RequestError,
    RequestFailed,
    RequestTimeout,
    SecondaryRateLimitExceeded,
)
from githubkit.versions.latest.models import Issue, IssueComment, Label

from wg_tracker.configuration.models import GitHubAuthenticationType
from wg_tracker.utils.github import split_repository_in_configuration
from wg_tracker.utils.retry import is_rate_limit_response, retry_on_rate_limit

from .abc import GitHubClientBase
from .client import GitHubClient, get_github_client
from .exceptions import (
    GitHubAuthorizationError,
    GitHubError,
    GitHubIssueNotFoundError,
    GitHubTransientError,
    GitHubUnprocessableEntityError,
)

logger = structlog.get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])
T = TypeVar("T")


def handle_github_422(func: F) -> F:
    """Decorator to handle GitHub 422 Unprocessable Entity errors, logging and raising with details."""

    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await func(*args, **kwargs)
        except RequestFailed as exc:
            if exc.response.status_code == 422:
                try:
                    error_data = exc.response.json()
                except Exception:
                    error_data = {}
                message = error_data.get("message", "Unprocessable Entity")
                errors = error_data.get("errors", [])
                logger.error(
                    "GitHub 422 Unprocessable Entity",
                    function=func.__name__,
                    message=message,
                    errors=errors,
                    url=getattr(exc.response, "url", None),
                    status_code=422,
                )
                raise GitHubUnprocessableEntityError(
                    f"GitHub 422 error in {func.__name__}: {message} | errors: {errors} | url: {getattr(exc.response, 'url', None)}",
                    status_code=422,
                ) from exc
            raise

    return wrapper  # type: ignore


def translate_github_errors(func: F) -> F:
    """Decorator translating githubkit exceptions into wg_tracker.github.exceptions."""

    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await func(*args, **kwargs)
        except GitHubError:
            raise
        except (AuthCredentialError, AuthExpiredError) as exc:
            raise GitHubAuthorizationError(f"GitHub credentials rejected in {func.__name__}: {exc}") from exc
        except (PrimaryRateLimitExceeded, SecondaryRateLimitExceeded) as exc:
            raise GitHubTransientError(f"GitHub rate limit still exceeded in {func.__name__}", status_code=exc.response.status_code) from exc
        except RequestFailed as exc:
            status_code = exc.response.status_code
            if is_rate_limit_response(exc):
                raise GitHubTransientError(f"GitHub rate limit still exceeded in {func.__name__}", status_code=status_code) from exc
            if status_code in (401, 403):
                raise GitHubAuthorizationError(f"GitHub denied access in {func.__name__} (HTTP {status_code})", status_code=status_code) from exc
            if status_code in (404, 410):
                raise GitHubIssueNotFoundError(f"GitHub resource not found in {func.__name__} (HTTP {status_code})", status_code=status_code) from exc
            raise GitHubTransientError(f"GitHub request failed in {func.__name__} (HTTP {status_code})", status_code=status_code) from exc
        except (RequestTimeout, RequestError) as exc:
            raise GitHubTransientError(f"Could not reach GitHub in {func.__name__}: {exc}") from exc

    return wrapper  # type: ignore


class GitHubKitAdapter(GitHubClientBase):
    """GitHub client adapter for the githubkit library, bound to one repository."""

    def __init__(self, client: GitHubClient, owner: str, repo_name: str) -> None:
        """Initialize the adapter with an already authenticated client."""
        self.client = client
        self.owner = owner
        self.repo_name = repo_name

    @classmethod
    async def create(
        cls,
        repo: str,
        github_auth_type: GitHubAuthenticationType,
        github_pat_token: str | None = None,
        github_app_id: int | None = None,
        github_app_private_key_path: Path | None = None,
        github_app_installation_id: int | None = None,
        github_api_url: str = "https://api.github.com",
    ) -> Self:
        """Authenticate against GitHub and return an adapter for a repository.

        Args:
            repo: Repository in 'owner/repo' format
            github_auth_type: Type of authentication (PAT or APP)
            github_pat_token: Personal access token, for PAT authentication
            github_app_id: GitHub App ID, for APP authentication
            github_app_private_key_path: Path to the App private key, for APP authentication
            github_app_installation_id: Expected installation ID, for APP authentication
            github_api_url: GitHub API URL (defaults to https://api.github.com)

        Raises:
            ValueError: If repo is not in 'owner/repo' format
            GitHubAuthorizationError: If the GitHub App is not installed on the repository
        """
        owner, repo_name = await split_repository_in_configuration(repo=repo)
        logger.info("Creating GitHub client for repository", github_api_url=github_api_url, repo=repo, auth_type=github_auth_type.value)
        client = await get_github_client(
            repo=repo,
            github_auth_type=github_auth_type,
            github_pat_token=github_pat_token,
            github_app_id=github_app_id,
            github_app_private_key_path=github_app_private_key_path,
            github_app_installation_id=github_app_installation_id,
            github_api_url=github_api_url,
        )
        return cls(client, owner, repo_name)

    @property
    def repo(self) -> str:
        """The repository in 'owner/repo' format."""
        return f"{self.owner}/{self.repo_name}"

    def _omit_null_parameters(self, **kwargs: Any) -> dict[str, Any]:
        """Omit parameters that are None."""
        return {k: v for k, v in kwargs.items() if v is not None}

    async def _paginate(self, endpoint: Callable[..., Awaitable[Response[list[T]]]], per_page: int, **params: Any) -> list[T]:
        """Call a list endpoint of this repository page by page until a short page comes back."""
        results: list[T] = []
        page = 1
        while True:
            response = await endpoint(owner=self.owner, repo=self.repo_name, per_page=per_page, page=page, **params)
            batch = response.parsed_data
            results.extend(batch)
            if len(batch) < per_page:
                return results
            page += 1

    # Issues
    @translate_github_errors
    @handle_github_422
    @retry_on_rate_limit()
    async def create_issue(self, title: str, body: str | None = None, labels: list[str] | None = None, **kwargs: Any) -> Issue:
        """Create an issue in the repository."""
        params = self._omit_null_parameters(title=title, body=body, labels=labels, **kwargs)
        response: Response[Issue] = await self.client.rest.issues.async_create(owner=self.owner, repo=self.repo_name, **params)
        return response.parsed_data

    @translate_github_errors
    @retry_on_rate_limit()
    async def list_issues_updated_since(self, since: datetime, labels: str | None = None, per_page: int = 100) -> list[Issue]:
        """List every issue updated at or after a point in time, oldest update first.

        Pages are requested with a moving 'since' cursor instead of a page
        number. An issue updated while the listing runs moves past the cursor
        and cannot push another issue onto a page that was already read. Issues
        seen twice are kept once, in their latest state. The page number only
        advances while a full page shares a single update time.

        GitHub returns pull requests from this endpoint too; callers filter them.
        """
        issues_by_number: dict[int, Issue] = {}
        cursor = since
        page = 1
        while True:
            params = self._omit_null_parameters(state="all", since=cursor, labels=labels, sort="updated", direction="asc")
            response: Response[list[Issue]] = await self.client.rest.issues.async_list_for_repo(
                owner=self.owner, repo=self.repo_name, per_page=per_page, page=page, **params
            )
            batch = response.parsed_data
            for issue in batch:
                issues_by_number[issue.number] = issue
            if len(batch) < per_page:
                break
            if batch[-1].updated_at > cursor:
                cursor = batch[-1].updated_at
                page = 1
            else:
                page += 1
        return sorted(issues_by_number.values(), key=lambda issue: issue.updated_at)

    # Issue comments
    @translate_github_errors
    @retry_on_rate_limit()
    async def list_issue_comments(self, issue_number: int, per_page: int = 100, **kwargs: Any) -> list[IssueComment]:
        """List every comment on an issue."""
        return await self._paginate(self.client.rest.issues.async_list_comments, per_page, issue_number=issue_number, **kwargs)

    @translate_github_errors
    @handle_github_422
    @retry_on_rate_limit()
    async def create_issue_comment(self, issue_number: int, body: str) -> IssueComment:
        """Comment on an issue."""
        response: Response[IssueComment] = await self.client.rest.issues.async_create_comment(
            owner=self.owner,
            repo=self.repo_name,
            issue_number=issue_number,
            body=body,
        )
        return response.parsed_data

    # Labels
    @translate_github_errors
    @handle_github_422
    @retry_on_rate_limit()
    async def create_label(self, name: str, color: str, description: str | None = None, **kwargs: Any) -> Label:
        """Create a label in the repository."""
        params = self._omit_null_parameters(name=name, color=color, description=description, **kwargs)
        response: Response[Label] = await self.client.rest.issues.async_create_label(owner=self.owner, repo=self.repo_name, **params)
        return response.parsed_data

    @translate_github_errors
    @retry_on_rate_limit()
    async def list_labels(self, per_page: int = 100, **kwargs: Any) -> list[Label]:
        """List every label of the repository."""
        return await self._paginate(self.client.rest.issues.async_list_labels_for_repo, per_page, **kwargs)

    # Repository content
    @translate_github_errors
    @retry_on_rate_limit()
    async def get_file_content(self, file_path: str, ref: str | None = None) -> str:
        """Get the text of a file, from the default branch unless a ref is given."""
        params = self._omit_null_parameters(ref=ref)
        response = await self.client.rest.repos.async_get_content(owner=self.owner, repo=self.repo_name, path=file_path, **params)
        content = getattr(response.parsed_data, "content", None)
        if not isinstance(content, str):
            raise GitHubIssueNotFoundError(f"'{file_path}' in {self.repo} is not a file")
        return base64.b64decode(content).decode("utf-8")
