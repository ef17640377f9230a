"""Template storage, loading, and rendering.

- TemplateStore: registry with first-active-match lookup per event type
- TemplateRenderer / render_template: placeholder and conditional rendering
- load_templates / load_default_templates: YAML template sources
"""

from .exceptions import TemplateError, TemplateLoadError, TemplateRenderError
from .loader import load_default_templates, load_templates, parse_templates
from .renderer import RenderedMessage, TemplateRenderer, is_truthy, render_template, stringify
from .store import TemplateStore

__all__ = [
    "TemplateStore",
    "TemplateRenderer",
    "RenderedMessage",
    "render_template",
    "stringify",
    "is_truthy",
    "load_templates",
    "load_default_templates",
    "parse_templates",
    "TemplateError",
    "TemplateLoadError",
    "TemplateRenderError",
]
