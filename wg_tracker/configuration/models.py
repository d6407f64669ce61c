"""Reconciled configuration passed from the CLI to the sync workflow."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from wg_tracker.schemas.configuration import TrackerConfigModel


class GitHubAuthenticationType(str, Enum):
    """Enum for GitHub authentication types."""

    PAT = "pat"
    APP = "app"


@dataclass
class GitHubCredentialsConfig:
    """Credentials and endpoint used for every GitHub client of a run."""

    github_api_url: str
    github_authentication_type: GitHubAuthenticationType
    github_pat_token: str | None
    github_app_id: int | None
    github_app_private_key_path: Path | None
    github_app_installation_id: int | None


@dataclass
class SyncConfig:
    """Configuration class for the sync command."""

    debug: bool
    credentials: GitHubCredentialsConfig
    tracker: TrackerConfigModel
