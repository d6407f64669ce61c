"""Contains utilities for rendering Jinja2 templates."""

from pathlib import Path
from typing import Any

import jinja2
import structlog

from wg_tracker.utils.markdown import escape_markdown

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

TEMPLATES_DIR = Path(__file__).parent.parent / "templates"


def construct_jinja2_environment(templates_dir: Path = TEMPLATES_DIR) -> jinja2.Environment:
    """Construct a Jinja2 environment that loads templates shipped with the package."""
    jinja_env = jinja2.Environment(
        loader=jinja2.FileSystemLoader(str(templates_dir)),
        undefined=jinja2.StrictUndefined,
        autoescape=False,
        keep_trailing_newline=True,
    )
    jinja_env.filters["escape_markdown"] = escape_markdown
    return jinja_env


def load_template(name: str, environment: jinja2.Environment | None = None) -> jinja2.Template:
    """Load a named template from the package templates directory."""
    if environment is None:
        environment = construct_jinja2_environment()
    try:
        return environment.get_template(name)
    except jinja2.TemplateNotFound:
        logger.error("Jinja2 template not found", template_name=name)
        raise


def render_template(template: jinja2.Template, **context: Any) -> str:
    """Render a Jinja2 template with the given context."""
    try:
        return template.render(**context)
    except jinja2.UndefinedError as exc:
        logger.error("Failed to render template", template_name=template.name, error=str(exc))
        raise
