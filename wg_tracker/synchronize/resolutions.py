"""Collects resolution-bearing issues from the source repository."""

import re
import time
from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Any

import structlog

from wg_tracker.github.abc import GitHubClientBase
from wg_tracker.github.exceptions import GitHubAuthorizationError, GitHubError
from wg_tracker.schemas.tracking import Resolution, SourceItem, SourceLabel

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

RESOLUTION_PATTERN = re.compile(
    r"^[ \t]*(?:(?:>|[*+-]|\d+[.)])[ \t]*)*(?P<code>`)?[ \t]*RESOLVED:[ \t]*(?P<text>\S.*?)[ \t]*(?(code)`)[ \t]*$",
    re.MULTILINE,
)
"""Matches one resolution line of a Markdown comment.

Minutes comments list resolutions as inline code, e.g. '* `RESOLVED: Accept the proposal`'.
Leading quote and list markers are skipped, and the backticks around the
line are dropped. Backticks inside the resolution text are kept.
"""


def extract_resolutions(comment_body: str | None, comment_url: str) -> list[Resolution]:
    """Extract every 'RESOLVED:' line from a comment body."""
    if not comment_body:
        return []
    body = comment_body.replace("\r\n", "\n")
    return [Resolution(text=match.group("text"), comment_url=comment_url) for match in RESOLUTION_PATTERN.finditer(body)]


def extract_source_labels(labels: Sequence[Any] | None) -> list[SourceLabel]:
    """Extract names and colours from GitHub label objects, strings, or dicts."""
    source_labels: list[SourceLabel] = []
    for label in labels or []:
        if isinstance(label, str):
            source_labels.append(SourceLabel(name=label))
        elif isinstance(label, dict) and label.get("name"):
            source_labels.append(SourceLabel(name=label["name"], color=label.get("color") or ""))
        elif getattr(label, "name", None):
            source_labels.append(SourceLabel(name=label.name, color=getattr(label, "color", None) or ""))
    return source_labels


class SourceFetchResult:
    """Contains the source items of one poll and what could not be fetched."""

    def __init__(
        self,
        items: list[SourceItem],
        failed_issues: dict[int, datetime],
        latest_updated_at: datetime | None,
        polled_issue_count: int,
    ) -> None:
        """Initialize the result with the items, failed issue update times, and the newest update time seen."""
        self.items = items
        self.failed_issues = failed_issues
        self.latest_updated_at = latest_updated_at
        self.polled_issue_count = polled_issue_count


async def collect_source_items(source: GitHubClientBase, since: datetime, label: str | None = None) -> SourceFetchResult:
    """Poll the source repository for issues updated since the watermark and build SourceItems.

    Issues without any resolution are skipped. A failure fetching the comments
    of one issue skips that issue only; authorization failures propagate.
    """
    start_time = time.time()
    logger.info("Fetching updated issues from source repository", since=since.isoformat(), label=label)
    issues = await source.list_issues_updated_since(since=since, labels=label)
    logger.info("Fetched updated issues from source repository", issue_count=len(issues), duration=round(time.time() - start_time, 2))

    items: list[SourceItem] = []
    failed_issues: dict[int, datetime] = {}
    latest_updated_at: datetime | None = None
    for issue in issues:
        if latest_updated_at is None or issue.updated_at > latest_updated_at:
            latest_updated_at = issue.updated_at
        if getattr(issue, "pull_request", None):
            logger.debug("Skipping pull request", source_number=issue.number)
            continue

        try:
            comments = await source.list_issue_comments(issue.number)
        except GitHubAuthorizationError:
            raise
        except GitHubError as exc:
            logger.warning("Could not fetch comments of source issue, will retry next run", source_number=issue.number, error=str(exc))
            failed_issues[issue.number] = issue.updated_at
            continue

        resolutions: list[Resolution] = []
        for comment in comments:
            resolutions.extend(extract_resolutions(comment.body, comment.html_url))
        if not resolutions:
            logger.debug("Source issue has no resolutions", source_number=issue.number)
            continue

        logger.info("Found resolutions on source issue", source_number=issue.number, resolution_count=len(resolutions))
        items.append(
            SourceItem(
                number=issue.number,
                title=issue.title,
                body=issue.body or "",
                updated_at=issue.updated_at,
                url=issue.html_url,
                labels=extract_source_labels(issue.labels),
                resolutions=resolutions,
            )
        )
    return SourceFetchResult(items, failed_issues, latest_updated_at, len(issues))


def next_watermark(previous: datetime, fetch_result: SourceFetchResult, failed_source_numbers: Iterable[int] = ()) -> datetime:
    """Compute the 'since' value for the next poll.

    When every issue was handled the watermark moves to the newest update
    seen. Otherwise it stops at the oldest failed issue so the next poll
    returns it again. It never moves backwards.
    """
    failed_numbers = set(failed_source_numbers)
    failed_times = list(fetch_result.failed_issues.values())
    failed_times.extend(item.updated_at for item in fetch_result.items if item.number in failed_numbers)
    if failed_times:
        candidate = min(failed_times)
    elif fetch_result.latest_updated_at is not None:
        candidate = fetch_result.latest_updated_at
    else:
        candidate = previous
    return max(previous, candidate)
