"""Reconcile the tracker configuration file with GitHub authentication settings."""

from pathlib import Path

import structlog
from pydantic import ValidationError
from ruamel.yaml.error import YAMLError

from wg_tracker.configuration.exceptions import GitHubAuthenticationConfigurationUndefinedError, TrackerConfigurationError
from wg_tracker.configuration.models import GitHubAuthenticationType, GitHubCredentialsConfig, SyncConfig
from wg_tracker.schemas.configuration import TrackerConfigModel
from wg_tracker.utils.yaml import load_yaml_file

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


GITHUB_APP_SETTINGS = (
    ("github_app_id", "GitHub App ID", "GITHUB_APP_ID"),
    ("github_app_private_key_path", "GitHub App private key path", "GITHUB_APP_PRIVATE_KEY_PATH"),
    ("github_app_installation_id", "GitHub App installation ID", "GITHUB_APP_INSTALLATION_ID"),
)
"""Option name, display name, and environment variable of each GitHub App setting."""


async def validate_github_authentication_configuration(
    github_pat_token: str | None,
    github_app_id: int | None,
    github_app_private_key_path: Path | None,
    github_app_installation_id: int | None,
) -> GitHubAuthenticationType:
    """Validates the GitHub authentication configuration.

    Exactly one of a PAT or a complete GitHub App configuration must be given.

    Args:
        github_pat_token (str | None): The GitHub PAT token.
        github_app_id (int | None): The GitHub App ID.
        github_app_private_key_path (Path | None): The path to the GitHub App private key.
        github_app_installation_id (int | None): The GitHub App installation ID.

    Raises:
        GitHubAuthenticationConfigurationUndefinedError: If the configuration is missing, incomplete, or ambiguous.

    Returns:
        GitHubAuthenticationType: The type of GitHub authentication used.
    """
    app_values = {
        "github_app_id": github_app_id,
        "github_app_private_key_path": github_app_private_key_path,
        "github_app_installation_id": github_app_installation_id,
    }
    any_app_setting = any(app_values.values())

    if github_pat_token and any_app_setting:
        raise GitHubAuthenticationConfigurationUndefinedError("Both PAT and GitHub App configurations are defined. Please use one or the other.")
    if github_pat_token:
        return GitHubAuthenticationType.PAT
    if not any_app_setting:
        raise GitHubAuthenticationConfigurationUndefinedError(
            "No GitHub authentication configuration provided. Please provide either a PAT or a GitHub App configuration."
        )

    missing_settings = [
        f"{name} (command line option {cli_name}, environment variable {env_name})"
        for cli_name, name, env_name in GITHUB_APP_SETTINGS
        if not app_values[cli_name]
    ]
    if missing_settings:
        msg = "Incomplete GitHub App configuration - missing settings include " + ", ".join(missing_settings)
        raise GitHubAuthenticationConfigurationUndefinedError(msg)
    return GitHubAuthenticationType.APP


async def load_tracker_configuration(config_path: Path) -> TrackerConfigModel:
    """Load and validate the tracker configuration file.

    Raises:
        TrackerConfigurationError: If the file is missing, is not valid YAML, or fails validation.
    """
    if not config_path.is_file():
        raise TrackerConfigurationError(str(config_path), "file not found")
    try:
        content = load_yaml_file(config_path)
    except YAMLError as exc:
        raise TrackerConfigurationError(str(config_path), f"could not parse YAML: {exc}") from exc
    if not isinstance(content, dict):
        raise TrackerConfigurationError(str(config_path), "expected a mapping at the top level")
    try:
        tracker_config = TrackerConfigModel.model_validate(content)
    except ValidationError as exc:
        problems = "; ".join(f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors())
        raise TrackerConfigurationError(str(config_path), problems) from exc
    logger.debug(
        "Loaded tracker configuration",
        config_path=str(config_path),
        source_repo=tracker_config.source_repo,
        destination_repo=tracker_config.destination_repo,
    )
    return tracker_config


async def reconcile_sync_configuration(
    config_path: Path,
    debug: bool,
    github_api_url: str,
    github_pat_token: str | None,
    github_app_id: int | None,
    github_app_private_key_path: Path | None,
    github_app_installation_id: int | None,
) -> SyncConfig:
    """Build the configuration of a sync run from the config file and credential options."""
    github_auth_type = await validate_github_authentication_configuration(
        github_pat_token=github_pat_token,
        github_app_id=github_app_id,
        github_app_private_key_path=github_app_private_key_path,
        github_app_installation_id=github_app_installation_id,
    )
    tracker_config = await load_tracker_configuration(config_path)
    return SyncConfig(
        debug=debug,
        credentials=GitHubCredentialsConfig(
            github_api_url=github_api_url,
            github_authentication_type=github_auth_type,
            github_pat_token=github_pat_token,
            github_app_id=github_app_id,
            github_app_private_key_path=github_app_private_key_path,
            github_app_installation_id=github_app_installation_id,
        ),
        tracker=tracker_config,
    )
