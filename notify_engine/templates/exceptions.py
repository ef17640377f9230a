"""Exceptions raised while loading or rendering templates."""

from typing import List, Optional


class TemplateError(Exception):
    """Base exception for template-related errors."""

    pass


class TemplateRenderError(TemplateError):
    """Raised when a template cannot be rendered."""

    pass


class TemplateLoadError(TemplateError):
    """Raised when a template file is missing, unparsable, or invalid."""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        self.message = message
        self.errors = errors or []
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if not self.errors:
            return self.message
        lines = [self.message] + [f"  {i}. {error}" for i, error in enumerate(self.errors, 1)]
        return "\n".join(lines)
