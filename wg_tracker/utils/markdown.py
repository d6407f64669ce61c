"""Contains helpers for embedding untrusted text in GitHub Markdown."""

import re

MARKDOWN_SPECIAL_CHARACTERS_PATTERN = re.compile(r"[#&()*+<>\[\]\\_`|-]")
"""Characters that change meaning when rendered as GitHub Markdown."""

_HTML_REPLACEMENTS = {
    "\\": "\\\\",
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    "|": "&#124;",
}


def escape_markdown(text: str) -> str:
    """Escape text so GitHub renders it literally.

    Markdown punctuation is backslash-escaped, while characters that would
    otherwise be read as HTML or table syntax are replaced by entities.
    """
    return MARKDOWN_SPECIAL_CHARACTERS_PATTERN.sub(lambda match: _HTML_REPLACEMENTS.get(match.group(0), f"\\{match.group(0)}"), text)
