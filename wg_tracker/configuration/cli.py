"""Defines the Command Line Interface (CLI) using Typer."""

import asyncio
from pathlib import Path

import typer
from dotenv import load_dotenv
from typer import Argument, Option
from typing_extensions import Annotated

from wg_tracker.configuration.env import settings
from wg_tracker.configuration.exceptions import GitHubAuthenticationConfigurationUndefinedError, TrackerConfigurationError
from wg_tracker.configuration.reconcile import load_tracker_configuration, reconcile_sync_configuration
from wg_tracker.github.exceptions import GitHubError
from wg_tracker.state.exceptions import TrackingStateError
from wg_tracker.state.store import YAMLFileTrackingStore
from wg_tracker.synchronize.driver import run_sync_workflow
from wg_tracker.synchronize.engine import SyncAbortedError
from wg_tracker.utils.logging import configure_logging

load_dotenv()

typer_app = typer.Typer(pretty_exceptions_show_locals=False, help="File tracking issues for CSS Working Group resolutions.")


@typer_app.command(name="sync")
def sync_cli(
    config_path: Annotated[Path, Argument(envvar="WG_TRACKER_CONFIG", help="Path to the tracker configuration YAML file.")],
    github_api_url: Annotated[str, Option(help="GitHub API URL.")] = settings.GITHUB_API_URL,
    github_pat_token: Annotated[str | None, Option(help="GitHub Personal Access Token.")] = settings.GITHUB_PAT_TOKEN,
    github_app_id: Annotated[int | None, Option(help="GitHub App ID.")] = settings.GITHUB_APP_ID,
    github_app_private_key_path: Annotated[Path | None, Option(help="Path to GitHub App private key.")] = settings.GITHUB_APP_PRIVATE_KEY_PATH,
    github_app_installation_id: Annotated[int | None, Option(help="GitHub App Installation ID.")] = settings.GITHUB_APP_INSTALLATION_ID,
    debug: Annotated[bool, Option(help="Enable debug logging.")] = settings.DEBUG,
) -> None:
    """Poll the source repository once and file or update tracking issues."""
    configure_logging(debug)

    try:
        sync_config = asyncio.run(
            reconcile_sync_configuration(
                config_path=config_path,
                debug=debug,
                github_api_url=github_api_url,
                github_pat_token=github_pat_token,
                github_app_id=github_app_id,
                github_app_private_key_path=github_app_private_key_path,
                github_app_installation_id=github_app_installation_id,
            )
        )
    except (GitHubAuthenticationConfigurationUndefinedError, TrackerConfigurationError) as exc:
        typer.echo(f"Configuration error: {exc}", err=True)
        raise typer.Exit(1) from exc

    typer.echo(f"Tracking resolutions from {sync_config.tracker.source_repo} in {sync_config.tracker.destination_repo}")

    try:
        result = asyncio.run(run_sync_workflow(sync_config))
    except SyncAbortedError as exc:
        typer.echo(f"Sync aborted, {len(exc.result.created)} tracking issue(s) filed before the abort were saved: {exc.reason}", err=True)
        raise typer.Exit(1) from exc
    except (TrackingStateError, TrackerConfigurationError) as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(1) from exc
    except GitHubError as exc:
        typer.echo(f"Could not poll the source repository, nothing was changed: {exc}", err=True)
        raise typer.Exit(1) from exc

    if result is None:
        typer.echo("Another run is in progress, nothing to do.")
        return

    sync_result = result.sync_result
    typer.echo(f"Source issues polled: {result.polled_issue_count}")
    typer.echo(f"Tracking issues created: {len(sync_result.created)}")
    typer.echo(f"Tracking issues updated: {len(sync_result.updated)}")
    typer.echo(f"Tracking issues unchanged: {len(sync_result.unchanged)}")
    if result.has_failures:
        retried = sorted(set(sync_result.failed_source_numbers) | set(result.failed_fetch_numbers))
        typer.echo(f"Source issues to retry next run: {', '.join(f'#{number}' for number in retried)}")
    typer.echo(f"Next poll starts at {result.watermark.isoformat()}")


@typer_app.command(name="status")
def status_cli(
    config_path: Annotated[Path, Argument(envvar="WG_TRACKER_CONFIG", help="Path to the tracker configuration YAML file.")],
) -> None:
    """Show the saved tracking state without contacting GitHub."""
    try:
        tracker_config = asyncio.run(load_tracker_configuration(config_path))
        state = YAMLFileTrackingStore.in_directory(tracker_config.state_directory).load()
    except (TrackerConfigurationError, TrackingStateError) as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(1) from exc

    if state is None:
        typer.echo(f"No runs recorded yet, the first poll starts at {tracker_config.start_datetime.isoformat()}")
        return

    last_synced_at = state.last_synced_at or tracker_config.start_datetime
    typer.echo(f"Next poll starts at {last_synced_at.isoformat()}")
    typer.echo(f"Tracked source issues: {len(state.records)}")
    for source_number in sorted(state.records):
        record = state.records[source_number]
        typer.echo(f"  {tracker_config.source_repo}#{source_number} -> {tracker_config.destination_repo}#{record.destination_number}")


if __name__ == "__main__":
    typer_app()
