"""Fingerprints of the source content mirrored into tracking issues."""

import hashlib
import json

from wg_tracker.schemas.tracking import SourceItem


def compute_fingerprint(item: SourceItem) -> str:
    """Return the SHA-256 hex digest of the item's title and resolution texts.

    Only content that appears in the tracking issue is hashed, so edits to the
    source issue body or labels do not count as changes.
    """
    canonical = json.dumps(
        {"title": item.title, "resolutions": [resolution.text for resolution in item.resolutions]},
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
