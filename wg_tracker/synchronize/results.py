"""Contains results of the tracking issue synchronization."""

from datetime import datetime

from wg_tracker.state.records import TrackingRecordSet
from wg_tracker.synchronize.models import SyncDecision


class TrackingSyncLogEntry:
    """Records what happened to one source item during a sync."""

    def __init__(
        self,
        source_number: int,
        decision: SyncDecision,
        destination_number: int | None,
        succeeded: bool = True,
        error: str | None = None,
        replaced_destination_number: int | None = None,
    ) -> None:
        """Initialize the entry with the decision taken and its outcome."""
        self.source_number = source_number
        self.decision = decision
        self.destination_number = destination_number
        self.succeeded = succeeded
        self.error = error
        self.replaced_destination_number = replaced_destination_number

    def __repr__(self) -> str:
        outcome = "ok" if self.succeeded else f"failed: {self.error}"
        return f"TrackingSyncLogEntry(#{self.source_number} -> #{self.destination_number}, {self.decision.value}, {outcome})"


class TrackingSyncResult:
    """Contains the updated tracking records and the log of a sync."""

    def __init__(self, records: TrackingRecordSet, entries: list[TrackingSyncLogEntry]) -> None:
        """Initialize the result with the updated record set and the per-item log."""
        self.records = records
        self.entries = entries

    def _succeeded_with(self, decision: SyncDecision) -> list[TrackingSyncLogEntry]:
        return [entry for entry in self.entries if entry.succeeded and entry.decision == decision]

    @property
    def created(self) -> list[TrackingSyncLogEntry]:
        """Entries of source items for which a tracking issue was filed."""
        return self._succeeded_with(SyncDecision.CREATE)

    @property
    def updated(self) -> list[TrackingSyncLogEntry]:
        """Entries of source items whose tracking issue received an update comment."""
        return self._succeeded_with(SyncDecision.UPDATE)

    @property
    def unchanged(self) -> list[TrackingSyncLogEntry]:
        """Entries of source items that were already tracked with unchanged content."""
        return self._succeeded_with(SyncDecision.NOOP)

    @property
    def failed(self) -> list[TrackingSyncLogEntry]:
        """Entries of source items that will be retried next run."""
        return [entry for entry in self.entries if not entry.succeeded]

    @property
    def failed_source_numbers(self) -> list[int]:
        """Source numbers of failed entries."""
        return [entry.source_number for entry in self.failed]


class SyncRunResult:
    """Contains results of one run of the sync workflow."""

    def __init__(self, sync_result: TrackingSyncResult, polled_issue_count: int, failed_fetch_numbers: list[int], watermark: datetime) -> None:
        """Initialize the result with the engine result, the poll statistics, and the saved watermark."""
        self.sync_result = sync_result
        self.polled_issue_count = polled_issue_count
        self.failed_fetch_numbers = failed_fetch_numbers
        self.watermark = watermark

    @property
    def has_failures(self) -> bool:
        """Whether any source issue will be retried next run."""
        return bool(self.failed_fetch_numbers or self.sync_result.failed)
