"""Template manager for loading and rendering Jinja2 prompt templates.

Builds the natural-language request sent to the model for a code span
and documentation kind, from templates stored in autoscribe/templates.
"""

import logging
from pathlib import Path
from typing import Any, Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from autoscribe.parsers.structure import DocKind

logger = logging.getLogger(__name__)

_DEFAULT_TEMPLATES_DIR = Path(__file__).parent.parent / "templates"

_TEMPLATES = {
    DocKind.FILE: "file_doc.j2",
    DocKind.FUNCTION: "function_doc.j2",
}

_FORMAT_LABELS = {
    "jsdoc": "JSDoc",
    "tsdoc": "TSDoc",
}


class TemplateManager:
    """Loads and renders Jinja2 prompt templates for comment generation."""

    def __init__(self, templates_dir: Optional[str] = None) -> None:
        """Initialize the template manager.

        Args:
            templates_dir: Path to the templates directory. Uses the
                packaged templates/ directory if not specified.
        """
        self._templates_path = (
            Path(templates_dir) if templates_dir else _DEFAULT_TEMPLATES_DIR
        )

        if not self._templates_path.exists():
            logger.warning("Templates directory not found: %s", self._templates_path)

        self._env = Environment(
            loader=FileSystemLoader(str(self._templates_path)),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=False,
            undefined=StrictUndefined,
        )
        logger.debug("Template manager initialized with: %s", self._templates_path)

    def render_prompt(
        self,
        code: str,
        kind: DocKind,
        output_format: str = "jsdoc",
        name: Optional[str] = None,
    ) -> str:
        """Render the generation prompt for a piece of code.

        Args:
            code: Source text of the file or function to document.
            kind: Whether a file-level or a function-level comment is wanted.
            output_format: "jsdoc" or "tsdoc".
            name: Optional identifier of the function being documented.

        Returns:
            Rendered prompt string ready for LLM submission.

        Raises:
            ValueError: If the output format is unknown.
        """
        if output_format not in _FORMAT_LABELS:
            raise ValueError(f"Unknown output format: {output_format!r}")
        return self._render(
            _TEMPLATES[DocKind(kind)],
            code=code,
            name=name,
            output_format=output_format,
            format_label=_FORMAT_LABELS[output_format],
        )

    def _render(self, template_name: str, **kwargs: Any) -> str:
        """Render a template with the given context variables.

        Raises:
            TemplateNotFound: If the template file does not exist.
        """
        template = self._env.get_template(template_name)
        rendered = template.render(**kwargs)
        logger.debug("Rendered template %s (%d chars)", template_name, len(rendered))
        return rendered
