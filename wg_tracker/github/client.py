"""Builds authenticated githubkit clients for the source and destination repositories."""

from pathlib import Path
from typing import TypeAlias

import structlog
from githubkit import GitHub
from githubkit.auth import AppAuthStrategy, AppInstallationAuthStrategy, TokenAuthStrategy
from githubkit.exception import RequestError, RequestFailed, RequestTimeout
from githubkit.versions.latest.models import Installation

from wg_tracker.configuration.models import GitHubAuthenticationType
from wg_tracker.utils.github import split_repository_in_configuration

from .exceptions import GitHubAuthorizationError, GitHubTransientError

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

GitHubClient: TypeAlias = GitHub[AppInstallationAuthStrategy] | GitHub[TokenAuthStrategy]


async def get_github_app_client(
    repo: str,
    github_app_id: int,
    github_app_private_key_path: Path,
    github_app_installation_id: int,
    github_api_url: str,
) -> GitHub[AppInstallationAuthStrategy]:
    """Returns a client authenticated as the App installation serving a repository.

    The source and destination repositories usually belong to different
    organisations, so the installation is looked up per repository. The
    configured installation ID is only compared against it.

    Raises:
        GitHubAuthorizationError: If the private key cannot be read or the App is not installed on the repository.
        GitHubTransientError: If GitHub could not be reached.
    """
    try:
        private_key = github_app_private_key_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise GitHubAuthorizationError(f"Could not read GitHub App private key {github_app_private_key_path}: {exc}") from exc

    # Disable HTTP caching to always get fresh data
    app_client = GitHub(auth=AppAuthStrategy(app_id=github_app_id, private_key=private_key), base_url=github_api_url, http_cache=False)
    owner, repo_name = await split_repository_in_configuration(repo=repo)
    try:
        response = await app_client.rest.apps.async_get_repo_installation(owner=owner, repo=repo_name)
    except RequestFailed as exc:
        raise GitHubAuthorizationError(
            f"GitHub App {github_app_id} is not installed on {repo} (HTTP {exc.response.status_code})",
            status_code=exc.response.status_code,
        ) from exc
    except (RequestTimeout, RequestError) as exc:
        raise GitHubTransientError(f"Could not look up the GitHub App installation for {repo}: {exc}") from exc

    installation: Installation = response.parsed_data
    if installation.id != github_app_installation_id:
        logger.info(
            "Repository is served by a different installation of the GitHub App",
            repo=repo,
            installation_id=installation.id,
            configured_installation_id=github_app_installation_id,
        )
    return app_client.with_auth(app_client.auth.as_installation(installation.id))


def get_github_pat_client(github_pat_token: str, github_api_url: str) -> GitHub[TokenAuthStrategy]:
    """Returns a client authenticated with a personal access token."""
    # Disable HTTP caching to always get fresh data
    return GitHub(auth=TokenAuthStrategy(github_pat_token), base_url=github_api_url, http_cache=False)


async def get_github_client(
    repo: str,
    github_auth_type: GitHubAuthenticationType,
    github_pat_token: str | None,
    github_app_id: int | None,
    github_app_private_key_path: Path | None,
    github_app_installation_id: int | None,
    github_api_url: str,
) -> GitHubClient:
    """Returns an authenticated client for a repository.

    Supports custom base URL for GitHub Enterprise Server (GHES). Raises
    RuntimeError if the credentials of the chosen authentication type are
    incomplete, which reconciliation of the configuration rules out.
    """
    if github_auth_type == GitHubAuthenticationType.APP:
        if not (github_app_id and github_app_private_key_path and github_app_installation_id):
            raise RuntimeError("GitHub App authentication requires app_id, private_key_path, and installation_id in config.")
        return await get_github_app_client(repo, github_app_id, github_app_private_key_path, github_app_installation_id, github_api_url)
    if not github_pat_token:
        raise RuntimeError("GitHub PAT authentication requires github_pat_token in config.")
    return get_github_pat_client(github_pat_token, github_api_url)
