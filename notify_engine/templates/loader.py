"""Load template definitions from YAML.

A template file has a single top-level ``templates`` list; each entry maps
onto the Template model. The package ships ``default_templates.yaml`` with
the built-in templates used when no custom file is configured.
"""

import logging
from importlib import resources
from pathlib import Path
from typing import Any, List, Union

import yaml
from pydantic import ValidationError

from notify_engine.domain.models import Template

from .exceptions import TemplateLoadError

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATES_RESOURCE = "default_templates.yaml"


def load_templates(path: Union[str, Path]) -> List[Template]:
    """Load and validate templates from a YAML file.

    Args:
        path: Path to the YAML template file

    Returns:
        Templates in file order

    Raises:
        TemplateLoadError: If the file is missing, unparsable, or invalid
    """
    template_file = Path(path)
    try:
        text = template_file.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise TemplateLoadError(f"Template file not found: {template_file}")
    except OSError as e:
        raise TemplateLoadError(f"Failed to read template file {template_file}: {e}") from e

    return parse_templates(text, source=str(template_file))


def load_default_templates() -> List[Template]:
    """Load the built-in templates bundled with the package."""
    text = (
        resources.files("notify_engine.templates")
        .joinpath(DEFAULT_TEMPLATES_RESOURCE)
        .read_text(encoding="utf-8")
    )
    return parse_templates(text, source=DEFAULT_TEMPLATES_RESOURCE)


def parse_templates(text: str, source: str = "<string>") -> List[Template]:
    """Parse YAML text into Template models.

    Args:
        text: YAML document with a top-level ``templates`` list
        source: Name used in error messages

    Returns:
        Templates in document order

    Raises:
        TemplateLoadError: If the document is malformed or any entry is invalid
    """
    try:
        document: Any = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise TemplateLoadError(f"Failed to parse YAML in {source}: {e}") from e

    if not isinstance(document, dict) or not isinstance(document.get("templates"), list):
        raise TemplateLoadError(f"{source} must contain a top-level 'templates' list")

    templates: List[Template] = []
    errors: List[str] = []
    seen_ids = set()

    for index, entry in enumerate(document["templates"]):
        try:
            template = Template.model_validate(entry)
        except ValidationError as e:
            for error in e.errors():
                field_path = " -> ".join(str(loc) for loc in error["loc"]) or "<entry>"
                errors.append(f"templates[{index}] {field_path}: {error['msg']}")
            continue

        if template.id in seen_ids:
            errors.append(f"templates[{index}]: duplicate template id '{template.id}'")
            continue

        seen_ids.add(template.id)
        templates.append(template)

    if errors:
        raise TemplateLoadError(f"Invalid templates in {source}", errors=errors)

    logger.debug(f"Loaded {len(templates)} templates from {source}")
    return templates
