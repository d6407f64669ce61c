"""Renders tracking issues and update comments from source items."""

import jinja2
import structlog

from wg_tracker.schemas.configuration import RepoConfigModel
from wg_tracker.schemas.tracking import Resolution, SourceItem, SourceLabel, TrackingRecord
from wg_tracker.synchronize.labels import select_mirrored_labels
from wg_tracker.utils.templates import construct_jinja2_environment, load_template, render_template

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

TRACKING_ISSUE_BODY_TEMPLATE = "tracking_issue_body.j2"
RESOLUTION_UPDATE_COMMENT_TEMPLATE = "resolution_update_comment.j2"


class TrackingIssueComposer:
    """Builds the title, body, labels, and update comments of tracking issues."""

    def __init__(self, source_repo: str, repo_config: RepoConfigModel | None = None, environment: jinja2.Environment | None = None) -> None:
        """Load the templates for tracking issues of the given source repository."""
        if environment is None:
            environment = construct_jinja2_environment()
        self.source_repo = source_repo
        self.source_repo_name = source_repo.split("/", 1)[-1]
        self.repo_config = repo_config or RepoConfigModel()
        self.issue_body_template = load_template(TRACKING_ISSUE_BODY_TEMPLATE, environment)
        self.update_comment_template = load_template(RESOLUTION_UPDATE_COMMENT_TEMPLATE, environment)

    def issue_title(self, item: SourceItem) -> str:
        """Tracking issues reuse the source issue title."""
        return item.title

    def issue_body(self, item: SourceItem) -> str:
        """Render the body of a new tracking issue."""
        return render_template(self.issue_body_template, item=item, source_repo_name=self.source_repo_name)

    def mirrored_labels(self, item: SourceItem) -> list[SourceLabel]:
        """Return the destination labels a new tracking issue should carry."""
        return select_mirrored_labels(item.labels, self.repo_config)

    def update_comment(self, item: SourceItem, record: TrackingRecord) -> str:
        """Render the comment announcing changed resolutions on an existing tracking issue.

        Resolutions from comments that were not reported before are listed on
        their own. When only already reported resolutions or the title were
        edited, the complete current list is repeated.
        """
        reported = set(record.reported_comment_urls)
        new_resolutions: list[Resolution] = [resolution for resolution in item.resolutions if resolution.comment_url not in reported]
        new_comment_urls = [url for url in item.resolution_comment_urls if url not in reported]
        return render_template(
            self.update_comment_template,
            item=item,
            source_repo_name=self.source_repo_name,
            new_resolutions=new_resolutions,
            new_comment_urls=new_comment_urls,
        )
