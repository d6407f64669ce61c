"""Stores that load and save the tracking state between runs."""

from abc import ABC, abstractmethod
from pathlib import Path

import structlog
from pydantic import ValidationError
from ruamel.yaml.error import YAMLError

from wg_tracker.schemas.tracking import CURRENT_STATE_VERSION, TrackingStateModel
from wg_tracker.state.exceptions import TrackingStateError, UnsupportedStateVersionError
from wg_tracker.utils.yaml import dump_yaml_to_file_atomically, load_yaml_file

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

STATE_FILE_NAME = "state.yaml"


class TrackingStore(ABC):
    """Base ABC for tracking state stores."""

    @abstractmethod
    def load(self) -> TrackingStateModel | None:
        """Load the saved state, or None if nothing was saved yet."""
        pass

    @abstractmethod
    def save(self, state: TrackingStateModel) -> None:
        """Persist the state, replacing whatever was saved before."""
        pass


class InMemoryTrackingStore(TrackingStore):
    """Keeps the state in memory. Used in tests and dry runs."""

    def __init__(self, state: TrackingStateModel | None = None) -> None:
        """Initialize the store, optionally with an existing state."""
        self._state = state.model_copy(deep=True) if state is not None else None
        self.save_count = 0

    def load(self) -> TrackingStateModel | None:
        """Return a copy of the stored state."""
        return self._state.model_copy(deep=True) if self._state is not None else None

    def save(self, state: TrackingStateModel) -> None:
        """Store a copy of the state."""
        self._state = state.model_copy(deep=True)
        self.save_count += 1


class YAMLFileTrackingStore(TrackingStore):
    """Keeps the state in a YAML file, rewritten atomically on every save."""

    def __init__(self, path: Path) -> None:
        """Initialize the store for the given state file path."""
        self.path = path

    @classmethod
    def in_directory(cls, state_directory: Path) -> "YAMLFileTrackingStore":
        """Return the store for the standard state file inside a state directory."""
        return cls(state_directory / STATE_FILE_NAME)

    def load(self) -> TrackingStateModel | None:
        """Load the state file.

        Raises:
            TrackingStateError: If the file cannot be parsed or fails validation.
            UnsupportedStateVersionError: If the file was written in an unknown format version.
        """
        if not self.path.exists():
            logger.info("No tracking state file found, starting fresh", state_path=str(self.path))
            return None
        try:
            content = load_yaml_file(self.path)
        except (OSError, YAMLError) as exc:
            raise TrackingStateError(str(self.path), f"could not read state file: {exc}") from exc
        if not isinstance(content, dict):
            raise TrackingStateError(str(self.path), "expected a mapping at the top level")
        version = content.get("version")
        if version != CURRENT_STATE_VERSION:
            raise UnsupportedStateVersionError(str(self.path), version)
        try:
            state = TrackingStateModel.model_validate(content)
        except ValidationError as exc:
            raise TrackingStateError(str(self.path), f"could not parse state file v{version}: {exc}") from exc
        logger.info("Loaded tracking state", state_path=str(self.path), record_count=len(state.records), last_synced_at=state.last_synced_at)
        return state

    def save(self, state: TrackingStateModel) -> None:
        """Write the state file atomically."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            dump_yaml_to_file_atomically(state.model_dump(mode="json"), self.path)
        except OSError as exc:
            raise TrackingStateError(str(self.path), f"could not write state file: {exc}") from exc
        logger.info("Saved tracking state", state_path=str(self.path), record_count=len(state.records), last_synced_at=state.last_synced_at)
