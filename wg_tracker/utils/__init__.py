"""Utility modules for shared functionality."""

from .markdown import escape_markdown
from .retry import retry_on_rate_limit

__all__ = [
    "escape_markdown",
    "retry_on_rate_limit",
]
