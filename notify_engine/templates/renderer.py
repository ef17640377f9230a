"""Placeholder and conditional-block rendering for message templates.

The template language has two constructs:

- ``{{name}}`` is replaced by the value of ``name`` from the variable bag.
  Names missing from the bag are left in the output as-is.
- ``{{#name}}...{{/name}}`` keeps its content when ``name`` is truthy and
  drops the whole block otherwise. Blocks are single-level; nesting is not
  supported.

Substitution runs first, over the whole template, so placeholders inside a
conditional block are already resolved when the block is kept or dropped.
"""

import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Mapping

from notify_engine.domain.models import Template

from .exceptions import TemplateRenderError

logger = logging.getLogger(__name__)

_CONDITIONAL_BLOCK = re.compile(r"\{\{#(\w+)\}\}(.*?)\{\{/\1\}\}", re.DOTALL)


@dataclass(frozen=True)
class RenderedMessage:
    """Rendered subject and bodies for one notification."""

    subject: str
    html_body: str
    text_body: str


def stringify(value: Any) -> str:
    """Convert a variable value to the text substituted into a template."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer() and abs(value) < 1e21:
        # Whole floats print as integers: 45.0 -> "45"
        return str(int(value))
    return str(value)


def is_truthy(value: Any) -> bool:
    """Decide whether a conditional block is kept.

    Absent/None, False, empty strings, and numeric zero (or NaN) are falsy.
    Any other object, including empty collections, is truthy.
    """
    if value is None or isinstance(value, bool):
        return bool(value)
    if isinstance(value, str):
        return value != ""
    if isinstance(value, (int, float)):
        return value != 0 and not (isinstance(value, float) and math.isnan(value))
    return True


def render_template(template: str, variables: Mapping[str, Any]) -> str:
    """Render a template string against a variable bag.

    Args:
        template: Template text with ``{{name}}`` and ``{{#name}}..{{/name}}`` markers
        variables: Variable bag supplied with the event

    Returns:
        Rendered text

    Example:
        >>> render_template("{{x}} {{y}}", {"x": "A"})
        'A {{y}}'
        >>> render_template("a{{#flag}}b{{/flag}}c", {"flag": False})
        'ac'
    """
    rendered = template
    for key, value in variables.items():
        rendered = rendered.replace("{{" + str(key) + "}}", stringify(value))

    def _resolve_block(match: "re.Match[str]") -> str:
        key, content = match.group(1), match.group(2)
        return content if is_truthy(variables.get(key)) else ""

    return _CONDITIONAL_BLOCK.sub(_resolve_block, rendered)


class TemplateRenderer:
    """Renders the subject and both bodies of a Template."""

    def render(self, template: Template, variables: Mapping[str, Any]) -> RenderedMessage:
        """Render all parts of a template.

        Args:
            template: Registered template
            variables: Variable bag supplied with the event

        Returns:
            RenderedMessage with each part rendered as-is

        Raises:
            TemplateRenderError: If any part fails to render
        """
        try:
            subject = render_template(template.subject, variables)
            html_body = render_template(template.html_body, variables)
            text_body = render_template(template.text_body, variables)
        except Exception as e:
            error_msg = f"Template {template.id!r} failed to render: {e}"
            logger.error(error_msg, exc_info=True)
            raise TemplateRenderError(error_msg) from e

        missing = [name for name in template.variables if name not in variables]
        if missing:
            logger.debug(
                f"Template {template.id} rendered without variables: {', '.join(missing)}",
                extra={"template_id": template.id, "missing_variables": missing},
            )

        return RenderedMessage(subject=subject, html_body=html_body, text_body=text_body)
