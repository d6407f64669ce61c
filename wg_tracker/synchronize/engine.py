"""Contains the synchronization logic between source items and tracking issues."""

import time
from collections.abc import Sequence
from datetime import datetime, timezone

import structlog

from wg_tracker.github.abc import GitHubClientBase
from wg_tracker.github.exceptions import GitHubAuthorizationError, GitHubError, GitHubIssueNotFoundError
from wg_tracker.schemas.tracking import SourceItem, TrackingRecord
from wg_tracker.state.records import TrackingRecordSet
from wg_tracker.synchronize.compose import TrackingIssueComposer
from wg_tracker.synchronize.fingerprint import compute_fingerprint
from wg_tracker.synchronize.labels import DestinationLabelCache
from wg_tracker.synchronize.models import SyncDecision
from wg_tracker.synchronize.results import TrackingSyncLogEntry, TrackingSyncResult

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class SyncAbortedError(Exception):
    """Raised when the destination rejects our credentials in the middle of a sync.

    Carries the partial result so that records created before the abort can
    still be saved.
    """

    def __init__(self, result: TrackingSyncResult, reason: str) -> None:
        """Initializes the exception with the partial result and the reason."""
        super().__init__(f"Sync aborted: {reason}")
        self.result = result
        self.reason = reason


async def decide_tracking_sync_action(item: SourceItem, record: TrackingRecord | None, fingerprint: str | None = None) -> SyncDecision:
    """Compare a source item with its tracking record and decide whether to create, update, or no-op.

    Key is source issue number.
    """
    if record is None:
        logger.info("Source item is not tracked yet", source_number=item.number, title=item.title)
        return SyncDecision.CREATE

    if fingerprint is None:
        fingerprint = compute_fingerprint(item)
    if record.fingerprint != fingerprint:
        logger.info(
            "Source item changed since it was tracked",
            source_number=item.number,
            destination_number=record.destination_number,
            current_fingerprint=record.fingerprint,
            new_fingerprint=fingerprint,
        )
        return SyncDecision.UPDATE

    logger.debug("Source item is up to date", source_number=item.number, destination_number=record.destination_number)
    return SyncDecision.NOOP


async def create_tracking_issue(
    item: SourceItem,
    fingerprint: str,
    destination: GitHubClientBase,
    composer: TrackingIssueComposer,
    label_cache: DestinationLabelCache,
) -> TrackingRecord:
    """File a tracking issue for a source item and return its new record."""
    label_names = await label_cache.ensure_labels(composer.mirrored_labels(item))
    github_issue = await destination.create_issue(
        title=composer.issue_title(item),
        body=composer.issue_body(item),
        labels=label_names or None,
    )
    logger.info("Created tracking issue", source_number=item.number, destination_number=github_issue.number, labels=label_names)
    return TrackingRecord(
        source_number=item.number,
        destination_number=github_issue.number,
        fingerprint=fingerprint,
        reported_comment_urls=item.resolution_comment_urls,
        synced_at=datetime.now(timezone.utc),
    )


async def post_tracking_update(
    item: SourceItem,
    record: TrackingRecord,
    fingerprint: str,
    destination: GitHubClientBase,
    composer: TrackingIssueComposer,
) -> TrackingRecord:
    """Comment on an existing tracking issue about changed resolutions and return the re-fingerprinted record."""
    await destination.create_issue_comment(record.destination_number, composer.update_comment(item, record))
    logger.info("Posted update to tracking issue", source_number=item.number, destination_number=record.destination_number)
    reported_comment_urls = list(dict.fromkeys([*record.reported_comment_urls, *item.resolution_comment_urls]))
    return record.model_copy(
        update={
            "fingerprint": fingerprint,
            "reported_comment_urls": reported_comment_urls,
            "synced_at": datetime.now(timezone.utc),
        }
    )


async def sync_tracking_issues(
    source_items: Sequence[SourceItem],
    records: TrackingRecordSet,
    destination: GitHubClientBase,
    composer: TrackingIssueComposer,
) -> TrackingSyncResult:
    """For each source item, decide whether to create, update, or no-op, and call the destination accordingly.

    Items are handled one at a time and independently: a failing item is
    logged, left with its previous record (or none), and retried next run.
    The given record set is not modified; the returned result holds a new one.

    Raises:
        SyncAbortedError: If the destination rejects our credentials. Items
            handled before the failure are kept in the attached result.
    """
    start_time = time.time()
    logger.info("Synchronizing tracking issues", source_item_count=len(source_items), tracked_count=len(records))
    updated_records = records.copy()
    entries: list[TrackingSyncLogEntry] = []
    label_cache = DestinationLabelCache(destination)

    for item in source_items:
        fingerprint = compute_fingerprint(item)
        record = updated_records.get(item.number)
        decision = await decide_tracking_sync_action(item, record, fingerprint)
        if decision == SyncDecision.NOOP:
            entries.append(TrackingSyncLogEntry(item.number, decision, record.destination_number if record else None))
            continue

        replaced_destination_number: int | None = None
        try:
            if decision == SyncDecision.UPDATE and record is not None:
                try:
                    new_record = await post_tracking_update(item, record, fingerprint, destination, composer)
                except GitHubIssueNotFoundError:
                    logger.warning(
                        "Tracking issue no longer exists, filing a new one",
                        source_number=item.number,
                        missing_destination_number=record.destination_number,
                    )
                    decision = SyncDecision.CREATE
                    replaced_destination_number = record.destination_number
                    new_record = await create_tracking_issue(item, fingerprint, destination, composer, label_cache)
            else:
                new_record = await create_tracking_issue(item, fingerprint, destination, composer, label_cache)
        except GitHubAuthorizationError as exc:
            logger.error("Destination repository rejected our credentials, aborting", source_number=item.number, error=str(exc))
            entries.append(TrackingSyncLogEntry(item.number, decision, None, succeeded=False, error=str(exc)))
            raise SyncAbortedError(TrackingSyncResult(updated_records, entries), str(exc)) from exc
        except GitHubError as exc:
            logger.warning(
                "Could not sync source item, will retry next run",
                source_number=item.number,
                decision=decision.value,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            destination_number = record.destination_number if record else None
            entries.append(TrackingSyncLogEntry(item.number, decision, destination_number, succeeded=False, error=str(exc)))
            continue

        updated_records.put(new_record)
        entries.append(
            TrackingSyncLogEntry(
                item.number,
                decision,
                new_record.destination_number,
                replaced_destination_number=replaced_destination_number,
            )
        )

    result = TrackingSyncResult(updated_records, entries)
    logger.info(
        "Synchronized tracking issues",
        duration=round(time.time() - start_time, 2),
        created=len(result.created),
        updated=len(result.updated),
        unchanged=len(result.unchanged),
        failed=len(result.failed),
    )
    return result
