"""Run lock preventing overlapping sync runs against the same state directory."""

import fcntl
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import structlog

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

LOCK_FILE_NAME = "lock"


@contextmanager
def acquire_run_lock(state_directory: Path) -> Iterator[bool]:
    """Try to take an exclusive, non-blocking lock on the state directory.

    Yields True when the lock is held for the duration of the block, or False
    when another run already holds it. The lock is released when the process
    exits, even if it crashes.
    """
    state_directory.mkdir(parents=True, exist_ok=True)
    lock_path = state_directory / LOCK_FILE_NAME
    with open(lock_path, "w", encoding="utf-8") as lock_file:
        try:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            logger.info("Another run holds the lock", lock_path=str(lock_path))
            yield False
            return
        logger.debug("Acquired run lock", lock_path=str(lock_path))
        try:
            yield True
        finally:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)
            logger.debug("Released run lock", lock_path=str(lock_path))
