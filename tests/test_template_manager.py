"""Tests for the prompt template manager."""

from pathlib import Path

import pytest
from jinja2 import TemplateNotFound

from autoscribe.generators.template_manager import TemplateManager
from autoscribe.parsers.structure import DocKind


@pytest.fixture
def manager() -> TemplateManager:
    """Create a TemplateManager using the packaged templates."""
    return TemplateManager()


class TestRenderPrompt:
    """Tests for rendering file and function prompts."""

    def test_function_prompt_contains_code_and_name(
        self, manager: TemplateManager
    ) -> None:
        code = "function add(a, b) { return a + b; }"
        prompt = manager.render_prompt(code, DocKind.FUNCTION, name="add")
        assert code in prompt
        assert "`add`" in prompt
        assert "JSDoc" in prompt
        assert "/**" in prompt

    def test_function_prompt_without_name(self, manager: TemplateManager) -> None:
        prompt = manager.render_prompt("() => 1", DocKind.FUNCTION)
        assert "following function" in prompt

    def test_file_prompt(self, manager: TemplateManager) -> None:
        code = "export const a = 1;\n"
        prompt = manager.render_prompt(code, DocKind.FILE)
        assert code.strip() in prompt
        assert "file-level" in prompt
        assert "@file" in prompt

    def test_tsdoc_prompt(self, manager: TemplateManager) -> None:
        prompt = manager.render_prompt("x", DocKind.FUNCTION, output_format="tsdoc")
        assert "TSDoc" in prompt
        assert "@param name - description" in prompt

    def test_tsdoc_file_prompt(self, manager: TemplateManager) -> None:
        prompt = manager.render_prompt("x", DocKind.FILE, output_format="tsdoc")
        assert "@packageDocumentation" in prompt

    def test_accepts_kind_as_string(self, manager: TemplateManager) -> None:
        prompt = manager.render_prompt("x", "file")  # type: ignore[arg-type]
        assert "file-level" in prompt

    def test_unknown_format_rejected(self, manager: TemplateManager) -> None:
        with pytest.raises(ValueError, match="format"):
            manager.render_prompt("x", DocKind.FILE, output_format="rst")


class TestTemplateDirectory:
    """Tests for template discovery."""

    def test_custom_directory(self, tmp_path: Path) -> None:
        (tmp_path / "function_doc.j2").write_text("Document {{ name }} as {{ format_label }}")
        manager = TemplateManager(templates_dir=str(tmp_path))
        prompt = manager.render_prompt("x", DocKind.FUNCTION, name="run")
        assert prompt == "Document run as JSDoc"

    def test_missing_template(self, tmp_path: Path) -> None:
        manager = TemplateManager(templates_dir=str(tmp_path))
        with pytest.raises(TemplateNotFound):
            manager.render_prompt("x", DocKind.FILE)
