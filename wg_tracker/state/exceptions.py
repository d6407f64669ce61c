"""Contains exceptions raised when loading or saving the tracking state."""


class TrackingStateError(Exception):
    """Raised when the tracking state file cannot be read or written."""

    def __init__(self, path: str, reason: str) -> None:
        """Initializes the exception with the state file path and the reason."""
        super().__init__(f"Tracking state file {path}: {reason}")
        self.path = path
        self.reason = reason


class UnsupportedStateVersionError(TrackingStateError):
    """Raised when the tracking state file was written in an unknown format version."""

    def __init__(self, path: str, version: object) -> None:
        """Initializes the exception with the version number found in the file."""
        super().__init__(path, f"unknown state file version number {version}")
        self.version = version
