"""In-memory set of tracking records indexed by source issue number."""

from collections.abc import Iterable, Iterator

from wg_tracker.schemas.tracking import TrackingRecord


class TrackingRecordSet:
    """Tracking records keyed by source issue number.

    The sync engine receives one of these and returns a new one; it never
    mutates the set it was given.
    """

    def __init__(self, records: Iterable[TrackingRecord] = ()) -> None:
        """Index the given records by source number. Later records replace earlier ones."""
        self._records: dict[int, TrackingRecord] = {}
        for record in records:
            self._records[record.source_number] = record

    def get(self, source_number: int) -> TrackingRecord | None:
        """Return the record for a source issue, if it was ever synced."""
        return self._records.get(source_number)

    def put(self, record: TrackingRecord) -> None:
        """Add a record, replacing any existing record for the same source issue."""
        self._records[record.source_number] = record

    def copy(self) -> "TrackingRecordSet":
        """Return a shallow copy. Records are treated as immutable."""
        return TrackingRecordSet(self._records.values())

    def to_dict(self) -> dict[int, TrackingRecord]:
        """Return the records keyed by source number."""
        return dict(self._records)

    def __contains__(self, source_number: object) -> bool:
        return source_number in self._records

    def __iter__(self) -> Iterator[TrackingRecord]:
        return iter(sorted(self._records.values(), key=lambda record: record.source_number))

    def __len__(self) -> int:
        return len(self._records)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TrackingRecordSet):
            return NotImplemented
        return self._records == other._records

    def __repr__(self) -> str:
        return f"TrackingRecordSet({len(self._records)} records)"
