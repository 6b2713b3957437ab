"""File and directory documentation pipeline.

Orchestrates span extraction, concurrent comment generation and
splicing for single files and for directory trees.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

from autoscribe.generators.doc_client import DocumentationClient
from autoscribe.output.splicer import splice_documentation
from autoscribe.parsers.js_parser import SpanExtractor, read_source
from autoscribe.parsers.structure import Language, Span
from autoscribe.utils.config import GenerationConfig, WalkerConfig

logger = logging.getLogger(__name__)


@dataclass
class DocumentedFile:
    """Result of documenting a single file.

    Attributes:
        path: The processed file.
        content: The documented source text.
        spans: Function spans that received a comment block.
        written: Whether the content was written back to disk.
    """

    path: Path
    content: str
    spans: list[Span] = field(default_factory=list)
    written: bool = False


def _log_dry_run(path: Path, content: str) -> None:
    logger.info("Dry run, not writing %s:\n%s", path, content)


def collect_files(path: str | Path, extensions: tuple[str, ...]) -> list[Path]:
    """List the files under a directory whose suffix is in extensions.

    Subdirectories are descended into, except symlinked ones. A file
    reachable under several names through file symlinks is listed once.
    Entries are visited in sorted order so runs are reproducible.

    Args:
        path: Directory to scan.
        extensions: Accepted file suffixes, e.g. (".js", ".ts").

    Returns:
        Matching file paths.
    """
    files: list[Path] = []
    seen: set[Path] = set()

    def walk(directory: Path) -> None:
        for entry in sorted(directory.iterdir()):
            if entry.is_dir():
                if entry.is_symlink():
                    logger.debug("Skipping symlinked directory %s", entry)
                    continue
                walk(entry)
            elif entry.is_file() and entry.suffix in extensions:
                real = entry.resolve()
                if real not in seen:
                    seen.add(real)
                    files.append(entry)

    walk(Path(path))
    return files


class FileDocumenter:
    """Documents source files in place.

    Failures are not isolated: an error in one file propagates and ends
    the run, leaving files processed before it as written.
    """

    def __init__(
        self,
        doc_client: DocumentationClient,
        walker_config: Optional[WalkerConfig] = None,
        generation_config: Optional[GenerationConfig] = None,
        extractor: Optional[SpanExtractor] = None,
        on_dry_run: Optional[Callable[[Path, str], None]] = None,
    ) -> None:
        """Initialize the documenter.

        Args:
            doc_client: Client that produces comment blocks.
            walker_config: Extension filter and dry-run switch.
            generation_config: Retry count and worker pool size.
            extractor: Span extractor. Creates one if not provided.
            on_dry_run: Receives (path, documented text) instead of a
                write when dry-run is on. Logs the text by default.
        """
        self.doc_client = doc_client
        self.walker_config = walker_config or WalkerConfig()
        self.generation_config = generation_config or GenerationConfig()
        self.extractor = extractor or SpanExtractor()
        self.on_dry_run = on_dry_run or _log_dry_run

    def process_file(self, path: str | Path) -> DocumentedFile:
        """Document one file and write it back, or report it in dry-run.

        The file-level comment and every function comment are requested
        concurrently; the results are spliced in source order once all
        of them have arrived.

        Args:
            path: File to document.

        Returns:
            A DocumentedFile describing the outcome.

        Raises:
            ParseError: If the file is not valid UTF-8 or does not parse.
            GenerationError: If any comment could not be generated.
        """
        file_path = Path(path)
        logger.info("Processing %s", file_path)
        source = read_source(file_path)
        spans = self.extractor.extract_spans(
            source, str(file_path), Language.from_path(file_path)
        )

        file_doc, blocks = self._generate_blocks(source, spans)
        content = splice_documentation(source, file_doc, list(zip(spans, blocks)))

        result = DocumentedFile(path=file_path, content=content, spans=spans)
        if self.walker_config.dry_run:
            self.on_dry_run(file_path, content)
        else:
            file_path.write_text(content, encoding="utf-8")
            result.written = True
            logger.info("Documented %s (%d functions)", file_path, len(spans))
        return result

    def process_directory(self, path: str | Path) -> list[DocumentedFile]:
        """Document every supported file under a directory, recursively.

        Args:
            path: Directory to walk.

        Returns:
            One DocumentedFile per processed file, in visit order.
        """
        files = collect_files(path, self.walker_config.supported_extensions)
        logger.info("Found %d files to document in %s", len(files), path)
        return [self.process_file(f) for f in files]

    def _generate_blocks(
        self, source: str, spans: list[Span]
    ) -> tuple[str, list[str]]:
        """Request the file comment and all function comments in parallel.

        Returns:
            The file-level block and one block per span, in span order.
        """
        retries = self.generation_config.max_retries
        file_span = Span.for_file(source)
        jobs = [file_span, *spans]

        def generate(span: Span) -> str:
            return self.doc_client.generate(
                span.source_text, span.doc_kind, retries=retries, name=span.name
            )

        with ThreadPoolExecutor(
            max_workers=self.generation_config.max_workers
        ) as executor:
            results = list(executor.map(generate, jobs))

        return results[0], results[1:]
