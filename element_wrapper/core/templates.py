"""
Template engine wrapper for report rendering.

Provides a simple interface for Jinja2 template rendering of the
diagnostics summary.
"""

from typing import Dict, Any

from jinja2 import (
    Environment,
    DictLoader,
    StrictUndefined,
    TemplateError as JinjaTemplateError,
)


class TemplateError(Exception):
    """Exception raised for template-related errors."""

    pass


class TemplateEngine:
    """Wrapper for Jinja2 template engine."""

    def __init__(self):
        self._env = None
        self._setup_environment()

    def _setup_environment(self):
        """Setup Jinja2 environment."""
        self._env = Environment(
            loader=DictLoader({}),
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        self._env.filters["plural_count"] = self._plural_count_filter

    def render_template(self, template_name: str, context: Dict[str, Any]) -> str:
        """
        Render a template with the given context.

        Args:
            template_name: Name of template
            context: Variables to pass to template

        Returns:
            Rendered template content
        """
        try:
            template = self._env.get_template(template_name)
            return template.render(**context)
        except JinjaTemplateError as e:
            raise TemplateError(f"Failed to render template {template_name}: {e}") from e

    def add_template(self, name: str, content: str):
        """
        Add an in-memory template.

        Args:
            name: Template name
            content: Template content
        """
        self._env.loader.mapping[name] = content

    def _plural_count_filter(self, value: int, noun: str) -> str:
        """Format ``3, "candidate"`` as ``3 candidate(s)``."""
        return f"{value} {noun}(s)"


SUMMARY_TEMPLATE = """\
{{ candidates | plural_count("candidate") }} being considered
{{ modifications | plural_count("modification") }} to original code
{{ deletions | plural_count("deletion") }} from original code
{% for scope, requested, assigned in renames %}
renamed {{ requested }} to {{ assigned }}{% if scope %} in {{ scope }}{% endif %}

{% endfor %}
"""

_default_engine = None


def get_default_template_engine() -> TemplateEngine:
    """Get the default template engine instance."""
    global _default_engine
    if _default_engine is None:
        _default_engine = TemplateEngine()
        _default_engine.add_template("summary", SUMMARY_TEMPLATE)

    return _default_engine
