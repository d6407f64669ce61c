"""Unit tests for loading the tracker configuration and reconciling the sync configuration."""

from datetime import date, datetime, timezone
from pathlib import Path

import pytest

from wg_tracker.configuration.exceptions import GitHubAuthenticationConfigurationUndefinedError, TrackerConfigurationError
from wg_tracker.configuration.models import GitHubAuthenticationType
from wg_tracker.configuration.reconcile import load_tracker_configuration, reconcile_sync_configuration

VALID_CONFIG = """\
source_repo: w3c/csswg-drafts
destination_repo: w3c/css-tracker
state_directory: /var/lib/wg-tracker
start_date: 2024-01-15
source_label: Agenda+
"""


def write_config(tmp_path: Path, content: str) -> Path:
    """Write a tracker configuration file and return its path."""
    config_path = tmp_path / "config.yaml"
    config_path.write_text(content, encoding="utf-8")
    return config_path


@pytest.mark.asyncio
async def test_load_tracker_configuration(tmp_path: Path) -> None:
    """Test that a valid configuration file is loaded."""
    tracker_config = await load_tracker_configuration(write_config(tmp_path, VALID_CONFIG))

    assert tracker_config.source_repo == "w3c/csswg-drafts"
    assert tracker_config.destination_repo == "w3c/css-tracker"
    assert tracker_config.state_directory == Path("/var/lib/wg-tracker")
    assert tracker_config.start_date == date(2024, 1, 15)
    assert tracker_config.start_datetime == datetime(2024, 1, 15, tzinfo=timezone.utc)
    assert tracker_config.source_label == "Agenda+"
    assert tracker_config.repo_config_path == "config.yaml"


@pytest.mark.asyncio
async def test_load_tracker_configuration_missing_file(tmp_path: Path) -> None:
    """Test that a missing configuration file is reported."""
    with pytest.raises(TrackerConfigurationError, match="file not found"):
        await load_tracker_configuration(tmp_path / "absent.yaml")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "content, expected",
    [
        ("source_repo: [unclosed\n", "could not parse YAML"),
        ("- a\n- list\n", "expected a mapping at the top level"),
        (VALID_CONFIG.replace("w3c/csswg-drafts", "csswg-drafts"), "source_repo: Value error, value must have 'owner/repo' syntax"),
        (VALID_CONFIG.replace("2024-01-15", "'15/01/2024'"), "start_date: Value error, value must have 'YYYY-MM-DD' syntax"),
        (VALID_CONFIG.replace("destination_repo: w3c/css-tracker\n", ""), "destination_repo: Field required"),
    ],
)
async def test_load_tracker_configuration_invalid(tmp_path: Path, content: str, expected: str) -> None:
    """Test that invalid configuration files are rejected with the reason."""
    with pytest.raises(TrackerConfigurationError) as exc_info:
        await load_tracker_configuration(write_config(tmp_path, content))
    assert expected in str(exc_info.value)


@pytest.mark.asyncio
async def test_reconcile_sync_configuration(tmp_path: Path) -> None:
    """Test that credentials and the tracker configuration are combined."""
    sync_config = await reconcile_sync_configuration(
        config_path=write_config(tmp_path, VALID_CONFIG),
        debug=True,
        github_api_url="https://api.github.com",
        github_pat_token="test-token",
        github_app_id=None,
        github_app_private_key_path=None,
        github_app_installation_id=None,
    )

    assert sync_config.debug is True
    assert sync_config.credentials.github_authentication_type == GitHubAuthenticationType.PAT
    assert sync_config.credentials.github_pat_token == "test-token"
    assert sync_config.tracker.source_label == "Agenda+"


@pytest.mark.asyncio
async def test_reconcile_sync_configuration_requires_credentials(tmp_path: Path) -> None:
    """Test that missing credentials are reported before the configuration file is read."""
    with pytest.raises(GitHubAuthenticationConfigurationUndefinedError):
        await reconcile_sync_configuration(
            config_path=tmp_path / "absent.yaml",
            debug=False,
            github_api_url="https://api.github.com",
            github_pat_token=None,
            github_app_id=None,
            github_app_private_key_path=None,
            github_app_installation_id=None,
        )
