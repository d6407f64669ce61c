"""Pydantic schemas for the tracker and per-repository configuration files."""

import re
from datetime import date, datetime, time, timezone
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

REPOSITORY_PATTERN = re.compile(r"^([^/]+)/([^/]+)$")
"""Pattern a repository must match ('owner/repo')."""

DATE_PATTERN = re.compile(r"^(\d\d\d\d)-(\d\d)-(\d\d)$")
"""Pattern a configured date must match ('YYYY-MM-DD')."""


class TrackerConfigModel(BaseModel):
    """Pydantic model for the tracker configuration file."""

    source_repo: str
    destination_repo: str
    state_directory: Path
    start_date: date
    source_label: str | None = None
    repo_config_path: str = "config.yaml"

    @field_validator("source_repo", "destination_repo")
    @classmethod
    def validate_repository_syntax(cls, value: str) -> str:
        """Ensure repositories use 'owner/repo' syntax."""
        if not REPOSITORY_PATTERN.match(value):
            raise ValueError("value must have 'owner/repo' syntax")
        return value

    @field_validator("start_date", mode="before")
    @classmethod
    def validate_start_date_syntax(cls, value: object) -> object:
        """Ensure dates written as strings use 'YYYY-MM-DD' syntax."""
        if isinstance(value, str) and not DATE_PATTERN.match(value):
            raise ValueError("value must have 'YYYY-MM-DD' syntax")
        return value

    @property
    def start_datetime(self) -> datetime:
        """Midnight UTC of the start date, used as the first polling watermark."""
        return datetime.combine(self.start_date, time.min, tzinfo=timezone.utc)


class RepoConfigLabelsModel(BaseModel):
    """Label mirroring settings of the destination repository."""

    color: str | None = None
    prefixes: list[str] = Field(default_factory=list)


class RepoConfigModel(BaseModel):
    """Pydantic model for the configuration file stored in the destination repository."""

    labels: RepoConfigLabelsModel | None = None
