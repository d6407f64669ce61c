"""Fixtures for unit tests."""

from datetime import datetime, timezone
from typing import Callable, Generator

import pytest
import structlog

from wg_tracker.schemas.tracking import Resolution, SourceItem, SourceLabel


@pytest.fixture(autouse=True)
def configure_structlog_for_caplog() -> Generator[None, None, None]:
    """Configure structlog for use with caplog."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    yield
    structlog.reset_defaults()


@pytest.fixture
def make_source_item() -> Callable[..., SourceItem]:
    """Return a factory for source items with one resolution per given text."""

    def factory(
        number: int,
        resolutions: list[str] | None = None,
        title: str | None = None,
        labels: list[SourceLabel] | None = None,
        updated_at: datetime | None = None,
    ) -> SourceItem:
        texts = resolutions if resolutions is not None else [f"Accept proposal {number}"]
        return SourceItem(
            number=number,
            title=title if title is not None else f"[css-foo] Issue {number}",
            body="Issue body",
            updated_at=updated_at or datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
            url=f"https://github.com/w3c/csswg-drafts/issues/{number}",
            labels=labels or [],
            resolutions=[
                Resolution(text=text, comment_url=f"https://github.com/w3c/csswg-drafts/issues/{number}#issuecomment-{number}{index}")
                for index, text in enumerate(texts)
            ],
        )

    return factory
