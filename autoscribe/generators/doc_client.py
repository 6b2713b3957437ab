"""Documentation client: prompt, request, clean and validate.

Turns a code span into a validated JSDoc/TSDoc comment block, retrying
failed or malformed generations with a linear backoff.
"""

import logging
import re
import time
from typing import Optional

import anthropic

from autoscribe.errors import GenerationError, ValidationFailure
from autoscribe.generators.llm_client import LLMClient
from autoscribe.generators.template_manager import TemplateManager
from autoscribe.generators.validator import (
    BLOCK_CLOSE,
    BLOCK_OPEN,
    validate_comment_block,
)
from autoscribe.parsers.structure import DocKind
from autoscribe.utils.config import GenerationConfig

logger = logging.getLogger(__name__)

_SYSTEM_PROMPT = (
    "You are an expert JavaScript and TypeScript developer writing API "
    "documentation. Generate clear, concise and accurate documentation "
    "comments. Return only the comment block, without Markdown formatting, "
    "code, or explanation."
)

_FENCED_BLOCK = re.compile(r"```[\w+-]*[ \t]*\r?\n?(.*?)```", re.DOTALL)
_FENCE_MARKER = re.compile(r"```[\w+-]*")
_DOUBLED_OPEN = re.compile(r"/\*\*\s*/\*\*")
_LANGUAGE_TOKEN = re.compile(
    r"^\s*(?:javascript|typescript|jsx|tsx|js|ts|jsdoc|tsdoc)[ \t]*(?:\r?\n|(?=/\*\*))",
    re.IGNORECASE,
)


def clean_response(text: str) -> str:
    """Normalize raw model output into a comment block.

    Unwraps fenced code blocks, drops leftover fence markers and stray
    backticks, collapses a doubled ``/**``, removes a leading bare
    language name, and makes sure the result opens with ``/**`` and
    closes with ``*/``.

    Args:
        text: Raw text returned by the model.

    Returns:
        The cleaned comment block.
    """
    cleaned = _FENCED_BLOCK.sub(lambda m: m.group(1), text)
    cleaned = _FENCE_MARKER.sub("", cleaned)
    cleaned = cleaned.replace("`", "")
    cleaned = _DOUBLED_OPEN.sub(BLOCK_OPEN, cleaned)
    cleaned = _LANGUAGE_TOKEN.sub("", cleaned, count=1)
    cleaned = cleaned.strip()

    if not cleaned.startswith(BLOCK_OPEN):
        cleaned = f"{BLOCK_OPEN}\n{cleaned}"
    if not cleaned.endswith(BLOCK_CLOSE):
        cleaned = f"{cleaned}\n {BLOCK_CLOSE}"
    return cleaned


class DocumentationClient:
    """Generates validated comment blocks for files and functions."""

    def __init__(
        self,
        llm_client: LLMClient,
        config: Optional[GenerationConfig] = None,
        template_manager: Optional[TemplateManager] = None,
    ) -> None:
        """Initialize the documentation client.

        Args:
            llm_client: The LLM client for API calls.
            config: Output format and retry settings. Uses defaults if
                not provided.
            template_manager: Prompt builder. Creates a default instance
                if not provided.
        """
        self.llm = llm_client
        self.config = config or GenerationConfig()
        self.templates = template_manager or TemplateManager()

    def generate(
        self,
        code_text: str,
        kind: DocKind,
        retries: Optional[int] = None,
        name: Optional[str] = None,
    ) -> str:
        """Generate a comment block for a piece of code.

        Each failed attempt other than the last waits
        ``retry_base_delay * attempt`` seconds before trying again. A
        response that cannot be turned into a valid comment block counts
        as a failed attempt.

        Args:
            code_text: Source text of the file or function.
            kind: File-level or function-level documentation.
            retries: Maximum number of attempts. Defaults to
                config.max_retries.
            name: Optional function name, given to the prompt.

        Returns:
            A comment block starting with ``/**`` and ending with ``*/``.

        Raises:
            GenerationError: If every attempt failed.
            ValueError: If retries is below 1.
        """
        attempts = self.config.max_retries if retries is None else retries
        if attempts < 1:
            raise ValueError(f"retries must be at least 1, got {attempts}")

        prompt = self.templates.render_prompt(
            code_text, kind, output_format=self.config.output_format, name=name
        )
        label = name or DocKind(kind).value
        last_error: Optional[Exception] = None

        for attempt in range(1, attempts + 1):
            try:
                result = self.llm.generate(prompt, system=_SYSTEM_PROMPT)
                block = self._accept(result.content)
                logger.debug("Generated documentation for %s", label)
                return block
            except (anthropic.APIError, ValidationFailure) as e:
                last_error = e
                if attempt == attempts:
                    break
                delay = self.config.retry_base_delay * attempt
                logger.warning(
                    "Generation for %s failed (attempt %d/%d): %s; "
                    "retrying in %.1f seconds",
                    label,
                    attempt,
                    attempts,
                    e,
                    delay,
                )
                time.sleep(delay)

        raise GenerationError(
            f"Failed to generate documentation for {label} "
            f"after {attempts} attempts: {last_error}",
            attempts=attempts,
            cause=last_error,
        ) from last_error

    def _accept(self, content: str) -> str:
        """Clean a raw response and check its shape.

        Raises:
            ValidationFailure: If the response is empty or malformed.
        """
        if not content or not content.strip():
            raise ValidationFailure("Model returned an empty response")
        block = clean_response(content)
        if not validate_comment_block(block):
            raise ValidationFailure(f"Malformed comment block: {block[:60]!r}")
        # A close marker before the end would leave the rest as code.
        first_close = block.find(BLOCK_CLOSE, len(BLOCK_OPEN) - 1)
        if first_close != len(block) - len(BLOCK_CLOSE):
            raise ValidationFailure(
                f"Comment block closes before its end: {block[:60]!r}"
            )
        return block
