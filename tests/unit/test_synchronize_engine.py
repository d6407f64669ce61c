"""Unit tests for the tracking issue sync engine."""

import logging
from types import SimpleNamespace
from typing import Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

from wg_tracker.github.adapter import GitHubKitAdapter
from wg_tracker.github.exceptions import (
    GitHubAuthorizationError,
    GitHubIssueNotFoundError,
    GitHubTransientError,
    GitHubUnprocessableEntityError,
)
from wg_tracker.schemas.configuration import RepoConfigModel
from wg_tracker.schemas.tracking import SourceItem, SourceLabel, TrackingRecord
from wg_tracker.state.records import TrackingRecordSet
from wg_tracker.synchronize.compose import TrackingIssueComposer
from wg_tracker.synchronize.engine import SyncAbortedError, decide_tracking_sync_action, sync_tracking_issues
from wg_tracker.synchronize.fingerprint import compute_fingerprint
from wg_tracker.synchronize.models import SyncDecision


@pytest.fixture
def composer() -> TrackingIssueComposer:
    """Composer for tracking issues of w3c/csswg-drafts."""
    return TrackingIssueComposer("w3c/csswg-drafts")


@pytest.fixture
def destination() -> AsyncMock:
    """Destination adapter filing tracking issues numbered from 100."""
    adapter = AsyncMock(spec=GitHubKitAdapter)
    numbers = iter(range(100, 200))
    adapter.create_issue.side_effect = lambda **kwargs: SimpleNamespace(number=next(numbers))
    adapter.create_issue_comment.return_value = MagicMock()
    adapter.list_labels.return_value = []
    return adapter


def tracked(item: SourceItem, destination_number: int, fingerprint: str | None = None) -> TrackingRecord:
    """Build the record of an item that was synced before."""
    return TrackingRecord(
        source_number=item.number,
        destination_number=destination_number,
        fingerprint=fingerprint if fingerprint is not None else compute_fingerprint(item),
        reported_comment_urls=item.resolution_comment_urls,
    )


@pytest.mark.asyncio
async def test_decide_create_when_untracked(make_source_item: Callable[..., SourceItem]) -> None:
    """Test that an item without a record is created."""
    assert await decide_tracking_sync_action(make_source_item(1), None) == SyncDecision.CREATE


@pytest.mark.asyncio
async def test_decide_noop_when_fingerprint_matches(make_source_item: Callable[..., SourceItem]) -> None:
    """Test that an item whose fingerprint matches its record is left alone."""
    item = make_source_item(1)
    assert await decide_tracking_sync_action(item, tracked(item, 10)) == SyncDecision.NOOP


@pytest.mark.asyncio
async def test_decide_update_when_fingerprint_differs(make_source_item: Callable[..., SourceItem]) -> None:
    """Test that an item whose content changed since it was tracked is updated."""
    item = make_source_item(1)
    assert await decide_tracking_sync_action(item, tracked(item, 10, fingerprint="stale")) == SyncDecision.UPDATE


@pytest.mark.asyncio
async def test_sync_new_unchanged_and_changed_items(
    make_source_item: Callable[..., SourceItem], composer: TrackingIssueComposer, destination: AsyncMock
) -> None:
    """Test one poll with a new, an unchanged, and a changed source item."""
    item_a = make_source_item(1)
    item_b = make_source_item(2)
    item_c = make_source_item(3, resolutions=["Accept proposal 3", "Also rename the property"])
    old_c = make_source_item(3)
    records = TrackingRecordSet([tracked(item_b, 20), tracked(old_c, 30)])

    result = await sync_tracking_issues([item_a, item_b, item_c], records, destination, composer)

    destination.create_issue.assert_awaited_once()
    assert destination.create_issue.await_args.kwargs["title"] == item_a.title
    destination.create_issue_comment.assert_awaited_once()
    assert destination.create_issue_comment.await_args.args[0] == 30

    assert result.records.get(1) is not None
    assert result.records.get(1).destination_number == 100
    assert result.records.get(1).fingerprint == compute_fingerprint(item_a)
    assert result.records.get(2) == records.get(2)
    assert result.records.get(3).destination_number == 30
    assert result.records.get(3).fingerprint == compute_fingerprint(item_c)
    assert [entry.source_number for entry in result.created] == [1]
    assert [entry.source_number for entry in result.updated] == [3]
    assert [entry.source_number for entry in result.unchanged] == [2]
    assert result.failed == []


@pytest.mark.asyncio
async def test_sync_is_idempotent(make_source_item: Callable[..., SourceItem], composer: TrackingIssueComposer, destination: AsyncMock) -> None:
    """Test that re-running with the returned records makes no destination calls."""
    items = [make_source_item(1), make_source_item(2)]
    first = await sync_tracking_issues(items, TrackingRecordSet(), destination, composer)
    destination.reset_mock()

    second = await sync_tracking_issues(items, first.records, destination, composer)

    destination.create_issue.assert_not_awaited()
    destination.create_issue_comment.assert_not_awaited()
    assert second.records == first.records
    assert len(second.unchanged) == 2


@pytest.mark.asyncio
async def test_sync_does_not_mutate_given_records(
    make_source_item: Callable[..., SourceItem], composer: TrackingIssueComposer, destination: AsyncMock
) -> None:
    """Test that the engine returns a new record set and leaves its input alone."""
    records = TrackingRecordSet()
    result = await sync_tracking_issues([make_source_item(1)], records, destination, composer)
    assert len(records) == 0
    assert len(result.records) == 1


@pytest.mark.asyncio
async def test_sync_creation_failure_leaves_record_absent(
    make_source_item: Callable[..., SourceItem], composer: TrackingIssueComposer, destination: AsyncMock
) -> None:
    """Test that a failed creation leaves no record and the other items are still handled."""
    item_a = make_source_item(1)
    item_b = make_source_item(2)
    item_c = make_source_item(3, resolutions=["Changed"])
    records = TrackingRecordSet([tracked(item_b, 20), tracked(make_source_item(3), 30)])
    destination.create_issue.side_effect = GitHubTransientError("HTTP 502", status_code=502)

    result = await sync_tracking_issues([item_a, item_b, item_c], records, destination, composer)

    assert 1 not in result.records
    assert result.records.get(2) == records.get(2)
    assert result.records.get(3).fingerprint == compute_fingerprint(item_c)
    assert result.failed_source_numbers == [1]
    destination.create_issue_comment.assert_awaited_once()


@pytest.mark.asyncio
async def test_sync_recovers_failed_creation_on_next_run(
    make_source_item: Callable[..., SourceItem], composer: TrackingIssueComposer, destination: AsyncMock
) -> None:
    """Test that an item whose creation failed is created on the following run."""
    item = make_source_item(1)
    destination.create_issue.side_effect = GitHubTransientError("timeout")
    first = await sync_tracking_issues([item], TrackingRecordSet(), destination, composer)
    assert 1 not in first.records

    destination.create_issue.side_effect = None
    destination.create_issue.return_value = SimpleNamespace(number=150)
    second = await sync_tracking_issues([item], first.records, destination, composer)

    assert second.records.get(1).destination_number == 150
    assert [entry.source_number for entry in second.created] == [1]


@pytest.mark.asyncio
async def test_sync_update_failure_keeps_previous_record(
    make_source_item: Callable[..., SourceItem], composer: TrackingIssueComposer, destination: AsyncMock
) -> None:
    """Test that a failed update keeps the stale fingerprint so the item is retried."""
    item = make_source_item(1, resolutions=["Changed"])
    previous = tracked(make_source_item(1), 10)
    destination.create_issue_comment.side_effect = GitHubTransientError("HTTP 500", status_code=500)

    result = await sync_tracking_issues([item], TrackingRecordSet([previous]), destination, composer)

    assert result.records.get(1) == previous
    assert result.failed_source_numbers == [1]
    assert result.failed[0].decision == SyncDecision.UPDATE


@pytest.mark.asyncio
async def test_sync_recreates_missing_tracking_issue(
    make_source_item: Callable[..., SourceItem], composer: TrackingIssueComposer, destination: AsyncMock
) -> None:
    """Test that an update to a deleted tracking issue files a new one instead."""
    item = make_source_item(1, resolutions=["Changed"])
    destination.create_issue_comment.side_effect = GitHubIssueNotFoundError("HTTP 404", status_code=404)

    result = await sync_tracking_issues([item], TrackingRecordSet([tracked(make_source_item(1), 10)]), destination, composer)

    destination.create_issue.assert_awaited_once()
    assert result.records.get(1).destination_number == 100
    assert result.records.get(1).fingerprint == compute_fingerprint(item)
    assert result.created[0].replaced_destination_number == 10


@pytest.mark.asyncio
async def test_sync_logs_replaced_tracking_issue(
    make_source_item: Callable[..., SourceItem], composer: TrackingIssueComposer, destination: AsyncMock, caplog: pytest.LogCaptureFixture
) -> None:
    """Test that filing a replacement for a deleted tracking issue is logged as a warning."""
    destination.create_issue_comment.side_effect = GitHubIssueNotFoundError("HTTP 410", status_code=410)
    records = TrackingRecordSet([tracked(make_source_item(1), 10)])

    with caplog.at_level(logging.WARNING):
        await sync_tracking_issues([make_source_item(1, resolutions=["Changed"])], records, destination, composer)

    assert "Tracking issue no longer exists, filing a new one" in caplog.text


@pytest.mark.asyncio
async def test_sync_aborts_on_authorization_error(
    make_source_item: Callable[..., SourceItem], composer: TrackingIssueComposer, destination: AsyncMock
) -> None:
    """Test that rejected credentials abort the sync and carry the records created so far."""
    destination.create_issue.side_effect = [SimpleNamespace(number=100), GitHubAuthorizationError("HTTP 401", status_code=401)]
    items = [make_source_item(1), make_source_item(2), make_source_item(3)]

    with pytest.raises(SyncAbortedError) as exc_info:
        await sync_tracking_issues(items, TrackingRecordSet(), destination, composer)

    partial = exc_info.value.result
    assert partial.records.get(1).destination_number == 100
    assert 2 not in partial.records
    assert 3 not in partial.records
    assert partial.failed_source_numbers == [2]
    assert destination.create_issue.await_count == 2


@pytest.mark.asyncio
async def test_sync_creates_mirrored_labels(make_source_item: Callable[..., SourceItem], destination: AsyncMock) -> None:
    """Test that new tracking issues carry the mirrored labels of their source item."""
    composer = TrackingIssueComposer("w3c/csswg-drafts", RepoConfigModel.model_validate({"labels": {"prefixes": ["css-"]}}))
    item = make_source_item(1, labels=[SourceLabel(name="css-grid-2", color="fbca04"), SourceLabel(name="Needs Edits")])

    await sync_tracking_issues([item], TrackingRecordSet(), destination, composer)

    destination.create_label.assert_awaited_once_with(name="[spec] css-grid-2", color="fbca04")
    assert destination.create_issue.await_args.kwargs["labels"] == ["[spec] css-grid-2"]


@pytest.mark.asyncio
async def test_sync_files_issue_without_rejected_label(make_source_item: Callable[..., SourceItem], destination: AsyncMock) -> None:
    """Test that a label GitHub refuses to create does not keep the tracking issue from being filed."""
    composer = TrackingIssueComposer("w3c/csswg-drafts", RepoConfigModel.model_validate({"labels": {"prefixes": ["css-"]}}))
    destination.create_label.side_effect = GitHubUnprocessableEntityError("GitHub 422 error in create_label: Validation Failed", status_code=422)

    result = await sync_tracking_issues([make_source_item(1, labels=[SourceLabel(name="css-grid-2")])], TrackingRecordSet(), destination, composer)

    assert destination.create_issue.await_args.kwargs["labels"] is None
    assert [entry.source_number for entry in result.created] == [1]
    assert result.failed == []
