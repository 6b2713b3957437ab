"""Tests for the file and directory documentation pipeline."""

import os
import threading
import time
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from autoscribe.errors import GenerationError, ParseError
from autoscribe.generators.doc_client import DocumentationClient
from autoscribe.generators.documenter import (
    DocumentedFile,
    FileDocumenter,
    collect_files,
)
from autoscribe.parsers.structure import DocKind
from autoscribe.utils.config import GenerationConfig, WalkerConfig

_JS_SOURCE = "function add(a, b) {\n  return a + b;\n}\n\nconst double = (x) => x * 2;\n"


def _fake_generate(code_text, kind, retries=None, name=None) -> str:
    if kind == DocKind.FILE:
        return "/** File overview. */"
    return f"/** Documents {name}. */"


@pytest.fixture
def doc_client() -> MagicMock:
    """Create a mocked DocumentationClient with deterministic blocks."""
    client = MagicMock(spec=DocumentationClient)
    client.generate.side_effect = _fake_generate
    return client


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """Create a small project tree: a.js, b.py and sub/c.ts."""
    (tmp_path / "a.js").write_text(_JS_SOURCE)
    (tmp_path / "b.py").write_text("def f():\n    pass\n")
    sub = tmp_path / "sub"
    sub.mkdir()
    (sub / "c.ts").write_text("export function greet(name: string): string {\n  return name;\n}\n")
    return tmp_path


class TestCollectFiles:
    """Tests for directory traversal."""

    def test_default_extensions(self, project: Path) -> None:
        files = collect_files(project, WalkerConfig().supported_extensions)
        assert files == [project / "a.js", project / "sub" / "c.ts"]

    def test_custom_extensions(self, project: Path) -> None:
        assert collect_files(project, (".py",)) == [project / "b.py"]

    def test_recurses_into_every_directory(self, tmp_path: Path) -> None:
        deep = tmp_path / "x" / "y" / "node_modules"
        deep.mkdir(parents=True)
        (deep / "lib.js").write_text("function f() {}\n")
        assert collect_files(tmp_path, (".js",)) == [deep / "lib.js"]

    def test_symlinked_directory_not_followed(self, tmp_path: Path) -> None:
        src = tmp_path / "src"
        src.mkdir()
        (src / "a.js").write_text("function a() {}\n")
        os.symlink(src, tmp_path / "alias", target_is_directory=True)
        assert collect_files(tmp_path, (".js",)) == [src / "a.js"]

    def test_symlink_loop_terminates(self, tmp_path: Path) -> None:
        (tmp_path / "a.js").write_text("function a() {}\n")
        os.symlink(tmp_path, tmp_path / "loop", target_is_directory=True)
        assert collect_files(tmp_path, (".js",)) == [tmp_path / "a.js"]

    def test_file_symlink_listed_once(self, tmp_path: Path) -> None:
        (tmp_path / "a.js").write_text("function a() {}\n")
        os.symlink(tmp_path / "a.js", tmp_path / "b.js")
        assert collect_files(tmp_path, (".js",)) == [tmp_path / "a.js"]


class TestProcessFile:
    """Tests for documenting a single file."""

    def test_writes_documented_source(
        self, doc_client: MagicMock, project: Path
    ) -> None:
        documenter = FileDocumenter(doc_client)
        result = documenter.process_file(project / "a.js")

        expected = (
            "/** File overview. */\n\n"
            "/** Documents add. */\n"
            "function add(a, b) {\n  return a + b;\n}\n\n"
            "/** Documents double. */\n"
            "const double = (x) => x * 2;\n"
        )
        assert isinstance(result, DocumentedFile)
        assert result.written is True
        assert result.content == expected
        assert (project / "a.js").read_text() == expected
        assert [s.name for s in result.spans] == ["add", "double"]

    def test_requests_every_span(self, doc_client: MagicMock, project: Path) -> None:
        documenter = FileDocumenter(
            doc_client, generation_config=GenerationConfig(max_retries=5)
        )
        documenter.process_file(project / "a.js")

        assert doc_client.generate.call_count == 3
        kinds = [c.args[1] for c in doc_client.generate.call_args_list]
        assert kinds.count(DocKind.FILE) == 1
        assert kinds.count(DocKind.FUNCTION) == 2
        assert all(c.kwargs["retries"] == 5 for c in doc_client.generate.call_args_list)

    def test_file_without_functions(self, doc_client: MagicMock, tmp_path: Path) -> None:
        path = tmp_path / "const.js"
        path.write_text("export const PI = 3.14;\n")
        result = FileDocumenter(doc_client).process_file(path)
        assert result.content == "/** File overview. */\n\nexport const PI = 3.14;\n"

    def test_order_kept_when_responses_arrive_out_of_order(
        self, tmp_path: Path
    ) -> None:
        path = tmp_path / "slow.js"
        path.write_text("function first() {}\nfunction second() {}\n")

        def slow_first(code_text, kind, retries=None, name=None) -> str:
            if name == "first":
                time.sleep(0.05)
            return _fake_generate(code_text, kind, retries, name)

        client = MagicMock(spec=DocumentationClient)
        client.generate.side_effect = slow_first
        result = FileDocumenter(client).process_file(path)
        assert result.content == (
            "/** File overview. */\n\n"
            "/** Documents first. */\nfunction first() {}\n"
            "/** Documents second. */\nfunction second() {}\n"
        )

    def test_requests_run_concurrently(self, tmp_path: Path) -> None:
        path = tmp_path / "pair.js"
        path.write_text("function a() {}\nfunction b() {}\n")
        barrier = threading.Barrier(3, timeout=5)

        def wait_for_all(code_text, kind, retries=None, name=None) -> str:
            barrier.wait()
            return _fake_generate(code_text, kind, retries, name)

        client = MagicMock(spec=DocumentationClient)
        client.generate.side_effect = wait_for_all
        documenter = FileDocumenter(
            client, generation_config=GenerationConfig(max_workers=3)
        )
        assert documenter.process_file(path).written

    def test_dry_run_leaves_file_untouched(
        self, doc_client: MagicMock, project: Path
    ) -> None:
        path = project / "a.js"
        before = path.read_bytes()
        observed: list[tuple[Path, str]] = []

        documenter = FileDocumenter(
            doc_client,
            walker_config=WalkerConfig(dry_run=True),
            on_dry_run=lambda p, content: observed.append((p, content)),
        )
        result = documenter.process_file(path)

        assert path.read_bytes() == before
        assert result.written is False
        assert observed == [(path, result.content)]
        assert result.content.startswith("/** File overview. */")

    def test_dry_run_default_logs(
        self, doc_client: MagicMock, project: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        documenter = FileDocumenter(doc_client, walker_config=WalkerConfig(dry_run=True))
        with caplog.at_level("INFO", logger="autoscribe"):
            documenter.process_file(project / "a.js")
        assert "Documents add" in caplog.text

    def test_parse_error_propagates(self, doc_client: MagicMock, tmp_path: Path) -> None:
        path = tmp_path / "broken.js"
        path.write_text("function broken( {\n")
        with pytest.raises(ParseError):
            FileDocumenter(doc_client).process_file(path)
        doc_client.generate.assert_not_called()
        assert path.read_text() == "function broken( {\n"

    def test_non_utf8_file_raises_parse_error(
        self, doc_client: MagicMock, tmp_path: Path
    ) -> None:
        path = tmp_path / "latin1.js"
        path.write_bytes(b"const s = 'caf\xe9';\n")
        with pytest.raises(ParseError, match="UTF-8") as exc_info:
            FileDocumenter(doc_client).process_file(path)
        assert exc_info.value.file_path == str(path)
        doc_client.generate.assert_not_called()

    def test_generation_error_propagates(self, project: Path) -> None:
        client = MagicMock(spec=DocumentationClient)
        client.generate.side_effect = GenerationError("gave up", attempts=3)
        path = project / "a.js"
        with pytest.raises(GenerationError):
            FileDocumenter(client).process_file(path)
        assert path.read_text() == _JS_SOURCE


class TestProcessDirectory:
    """Tests for documenting a directory tree."""

    def test_visits_supported_files_only(
        self, doc_client: MagicMock, project: Path
    ) -> None:
        results = FileDocumenter(doc_client).process_directory(project)
        assert [r.path for r in results] == [project / "a.js", project / "sub" / "c.ts"]
        assert (project / "b.py").read_text() == "def f():\n    pass\n"
        assert (project / "sub" / "c.ts").read_text().startswith(
            "/** File overview. */\n\n/** Documents greet. */\nexport function greet"
        )

    def test_failure_aborts_run_without_rollback(
        self, doc_client: MagicMock, tmp_path: Path
    ) -> None:
        (tmp_path / "a.js").write_text("function a() {}\n")
        (tmp_path / "b.js").write_text("function broken( {\n")
        (tmp_path / "c.js").write_text("function c() {}\n")

        with pytest.raises(ParseError):
            FileDocumenter(doc_client).process_directory(tmp_path)

        assert (tmp_path / "a.js").read_text().startswith("/** File overview. */")
        assert (tmp_path / "c.js").read_text() == "function c() {}\n"

    def test_dry_run_directory(self, doc_client: MagicMock, project: Path) -> None:
        before = {p: p.read_bytes() for p in project.rglob("*") if p.is_file()}
        documenter = FileDocumenter(
            doc_client,
            walker_config=WalkerConfig(dry_run=True),
            on_dry_run=lambda p, content: None,
        )
        results = documenter.process_directory(project)
        assert len(results) == 2
        assert {p: p.read_bytes() for p in before} == before

    def test_symlinked_directory_documented_once(
        self, doc_client: MagicMock, tmp_path: Path
    ) -> None:
        src = tmp_path / "src"
        src.mkdir()
        (src / "a.js").write_text("function a() {}\n")
        os.symlink(src, tmp_path / "alias", target_is_directory=True)

        results = FileDocumenter(doc_client).process_directory(tmp_path)

        assert len(results) == 1
        assert (src / "a.js").read_text().count("/** File overview. */") == 1
