"""Contains synchronization logic for labels mirrored into the destination repository."""

from collections.abc import Collection, Sequence

import structlog

from wg_tracker.github.abc import GitHubClientBase
from wg_tracker.github.exceptions import GitHubUnprocessableEntityError
from wg_tracker.schemas.configuration import RepoConfigModel
from wg_tracker.schemas.tracking import SourceLabel
from wg_tracker.synchronize.models import SyncDecision

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

MIRRORED_LABEL_PREFIX = "[spec] "
DEFAULT_LABEL_COLOR = "ededed"
GITHUB_LABEL_NAME_MAX_LENGTH = 50


def select_mirrored_labels(source_labels: Sequence[SourceLabel], repo_config: RepoConfigModel) -> list[SourceLabel]:
    """Pick the source labels to mirror and return them under their destination names.

    A label is mirrored when its colour matches the configured colour or its
    name starts with one of the configured prefixes.
    """
    labels_config = repo_config.labels
    if labels_config is None:
        return []

    mirrored: list[SourceLabel] = []
    for label in source_labels:
        color_matches = labels_config.color is not None and label.color.lower() == labels_config.color.lower()
        prefix_matches = any(label.name.startswith(prefix) for prefix in labels_config.prefixes)
        if color_matches or prefix_matches:
            mirrored.append(SourceLabel(name=f"{MIRRORED_LABEL_PREFIX}{label.name}", color=label.color or DEFAULT_LABEL_COLOR))
    return mirrored


async def decide_github_label_sync_action(desired_label: SourceLabel, known_label_names: Collection[str]) -> SyncDecision:
    """Decide whether a mirrored label has to be created.

    Key is label name, compared case-insensitively like GitHub does.
    """
    if desired_label.name.casefold() in {name.casefold() for name in known_label_names}:
        return SyncDecision.NOOP
    logger.info("Label not found in destination repository", label_name=desired_label.name)
    return SyncDecision.CREATE


class DestinationLabelCache:
    """Creates missing mirrored labels, listing the destination labels at most once.

    Labels GitHub refuses to create are left off the tracking issue instead of
    failing it.
    """

    def __init__(self, destination: GitHubClientBase) -> None:
        """Initialize the cache for a destination repository."""
        self.destination = destination
        self._known_labels: dict[str, str] | None = None

    async def _refresh(self) -> dict[str, str]:
        existing_labels = await self.destination.list_labels()
        self._known_labels = {label.name.casefold(): label.name for label in existing_labels}
        logger.debug("Fetched destination labels", label_count=len(self._known_labels))
        return self._known_labels

    async def ensure_labels(self, labels: Sequence[SourceLabel]) -> list[str]:
        """Make sure every label exists in the destination repository.

        Returns:
            list[str]: The destination names of the labels, in the casing the destination uses.
        """
        if not labels:
            return []
        known_labels = self._known_labels if self._known_labels is not None else await self._refresh()

        label_names: list[str] = []
        for label in labels:
            if len(label.name) > GITHUB_LABEL_NAME_MAX_LENGTH:
                logger.warning("Mirrored label name is too long for GitHub, skipping it", label_name=label.name)
                continue
            decision = await decide_github_label_sync_action(label, known_labels.values())
            if decision == SyncDecision.CREATE:
                try:
                    await self.destination.create_label(name=label.name, color=label.color)
                except GitHubUnprocessableEntityError as exc:
                    if "already_exists" not in str(exc):
                        logger.warning("Destination rejected mirrored label, skipping it", label_name=label.name, error=str(exc))
                        continue
                    # Created since the labels were listed
                    known_labels = await self._refresh()
                    if label.name.casefold() not in known_labels:
                        logger.warning("Mirrored label reported as existing but not listed, skipping it", label_name=label.name)
                        continue
                else:
                    known_labels[label.name.casefold()] = label.name
                    logger.info("Created label in destination repository", label_name=label.name, color=label.color)
            label_names.append(known_labels[label.name.casefold()])
        return label_names
