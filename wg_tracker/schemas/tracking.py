"""Pydantic schemas for source items, tracking records, and the persisted tracking state."""

from datetime import datetime

from pydantic import BaseModel, Field

CURRENT_STATE_VERSION = 1
"""Format version written to the tracking state file."""


class SourceLabel(BaseModel):
    """A label attached to a source issue."""

    name: str
    color: str = ""


class Resolution(BaseModel):
    """One 'RESOLVED:' line from a comment on a source issue."""

    text: str
    comment_url: str


class SourceItem(BaseModel):
    """A resolution-bearing issue in the source repository.

    The number is the identifier TrackingRecords are keyed by.
    """

    number: int
    title: str
    body: str = ""
    updated_at: datetime
    url: str
    labels: list[SourceLabel] = Field(default_factory=list)
    resolutions: list[Resolution] = Field(default_factory=list)

    @property
    def resolution_comment_urls(self) -> list[str]:
        """URLs of the comments carrying resolutions, in order and without duplicates."""
        return list(dict.fromkeys(resolution.comment_url for resolution in self.resolutions))


class TrackingRecord(BaseModel):
    """Links a source issue to the tracking issue filed for it."""

    source_number: int
    destination_number: int
    fingerprint: str
    reported_comment_urls: list[str] = Field(default_factory=list)
    synced_at: datetime | None = None


class TrackingStateModel(BaseModel):
    """Pydantic model for the tracking state file."""

    version: int = CURRENT_STATE_VERSION
    last_synced_at: datetime | None = None
    records: dict[int, TrackingRecord] = Field(default_factory=dict)
