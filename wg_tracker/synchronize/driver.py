"""Orchestrates one run of the resolution tracking workflow."""

import time

import structlog
from pydantic import ValidationError
from ruamel.yaml.error import YAMLError

from wg_tracker.configuration.exceptions import TrackerConfigurationError
from wg_tracker.configuration.models import GitHubCredentialsConfig, SyncConfig
from wg_tracker.github.abc import GitHubClientBase
from wg_tracker.github.adapter import GitHubKitAdapter
from wg_tracker.github.exceptions import GitHubIssueNotFoundError
from wg_tracker.schemas.configuration import RepoConfigModel
from wg_tracker.schemas.tracking import TrackingStateModel
from wg_tracker.state.lock import acquire_run_lock
from wg_tracker.state.records import TrackingRecordSet
from wg_tracker.state.store import TrackingStore, YAMLFileTrackingStore
from wg_tracker.synchronize.compose import TrackingIssueComposer
from wg_tracker.synchronize.engine import SyncAbortedError, sync_tracking_issues
from wg_tracker.synchronize.resolutions import collect_source_items, next_watermark
from wg_tracker.synchronize.results import SyncRunResult
from wg_tracker.utils.yaml import load_yaml_string

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


async def create_github_adapter(repo: str, credentials: GitHubCredentialsConfig) -> GitHubKitAdapter:
    """Create an adapter for a repository with the credentials of the run."""
    return await GitHubKitAdapter.create(
        repo=repo,
        github_auth_type=credentials.github_authentication_type,
        github_pat_token=credentials.github_pat_token,
        github_app_id=credentials.github_app_id,
        github_app_private_key_path=credentials.github_app_private_key_path,
        github_app_installation_id=credentials.github_app_installation_id,
        github_api_url=credentials.github_api_url,
    )


async def load_repo_config(destination: GitHubClientBase, repo_config_path: str) -> RepoConfigModel:
    """Fetch the per-repository configuration from the destination's default branch.

    A missing file means no labels are mirrored.
    """
    try:
        content = await destination.get_file_content(repo_config_path)
    except GitHubIssueNotFoundError:
        logger.info("No repository config found in destination repository", repo_config_path=repo_config_path)
        return RepoConfigModel()
    try:
        data = load_yaml_string(content)
        repo_config = RepoConfigModel.model_validate(data or {})
    except (YAMLError, ValidationError) as exc:
        raise TrackerConfigurationError(repo_config_path, f"invalid repository config: {exc}") from exc
    logger.info("Loaded repository config", repo_config_path=repo_config_path, labels=repo_config.labels)
    return repo_config


async def run_sync_workflow(
    sync_config: SyncConfig,
    store: TrackingStore | None = None,
    source: GitHubClientBase | None = None,
    destination: GitHubClientBase | None = None,
) -> SyncRunResult | None:
    """Run the sync workflow once: lock, load state, poll, sync, save.

    Returns None without doing anything when another run holds the lock.
    Adapters and the store are created from the configuration unless given.

    Raises:
        SyncAbortedError: If the destination rejected our credentials. The
            records created before the abort have been saved.
    """
    tracker = sync_config.tracker
    with acquire_run_lock(tracker.state_directory) as locked:
        if not locked:
            logger.info("Skipping run, another run is in progress", state_directory=str(tracker.state_directory))
            return None

        if store is None:
            store = YAMLFileTrackingStore.in_directory(tracker.state_directory)
        state = store.load()
        since = state.last_synced_at if state is not None and state.last_synced_at is not None else tracker.start_datetime
        records = TrackingRecordSet(state.records.values() if state is not None else ())

        if source is None:
            source = await create_github_adapter(tracker.source_repo, sync_config.credentials)
        if destination is None:
            destination = await create_github_adapter(tracker.destination_repo, sync_config.credentials)

        repo_config = await load_repo_config(destination, tracker.repo_config_path)
        composer = TrackingIssueComposer(tracker.source_repo, repo_config)

        start_time = time.time()
        fetch_result = await collect_source_items(source, since, tracker.source_label)
        try:
            sync_result = await sync_tracking_issues(fetch_result.items, records, destination, composer)
        except SyncAbortedError as exc:
            store.save(TrackingStateModel(last_synced_at=since, records=exc.result.records.to_dict()))
            raise

        watermark = next_watermark(since, fetch_result, sync_result.failed_source_numbers)
        store.save(TrackingStateModel(last_synced_at=watermark, records=sync_result.records.to_dict()))
        logger.info(
            "Finished sync run",
            duration=round(time.time() - start_time, 2),
            polled_issue_count=fetch_result.polled_issue_count,
            resolution_issue_count=len(fetch_result.items),
            failed_fetch_count=len(fetch_result.failed_issues),
            watermark=watermark.isoformat(),
        )
        return SyncRunResult(sync_result, fetch_result.polled_issue_count, sorted(fetch_result.failed_issues), watermark)
