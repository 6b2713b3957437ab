"""CLI commands for autoscribe.

Provides the Click-based command group 'autoscribe' with subcommands
for documenting sources in place, listing documentable spans and
estimating API cost.
"""

import json
import logging
from pathlib import Path
from typing import NoReturn, Optional

import click
from dotenv import load_dotenv

from autoscribe import __version__
from autoscribe.errors import AutoscribeError, UsageError
from autoscribe.generators.doc_client import DocumentationClient
from autoscribe.generators.documenter import FileDocumenter, collect_files
from autoscribe.generators.llm_client import LLMClient
from autoscribe.generators.template_manager import TemplateManager
from autoscribe.parsers.js_parser import SpanExtractor, read_source
from autoscribe.parsers.structure import Language, Span
from autoscribe.utils.config import (
    OUTPUT_FORMATS,
    AppConfig,
    apply_env_overrides,
    load_config,
    resolve_config,
)
from autoscribe.utils.logging import setup_logging

logger = logging.getLogger(__name__)

# Rough size of one generated comment block, in tokens
_ESTIMATED_OUTPUT_TOKENS = 300


def _usage_error(ctx: click.Context, message: str) -> NoReturn:
    """Print the usage line and an error, then exit with status 1."""
    click.echo(ctx.get_usage(), err=True)
    click.echo(f"Error: {message}", err=True)
    ctx.exit(1)


def _resolve_targets(
    path: str, recursive: bool, extensions: tuple[str, ...]
) -> list[Path]:
    """Turn the PATH argument into the list of files to handle.

    Raises:
        UsageError: If path is a directory and recursive is not set.
    """
    target = Path(path)
    if target.is_dir():
        if not recursive:
            raise UsageError(
                f"'{path}' is a directory; pass --recursive to process it."
            )
        return collect_files(target, extensions)
    return [target]


def _echo_dry_run(path: Path, content: str) -> None:
    click.echo(f"----- {path} (dry run) -----")
    click.echo(content)


@click.group()
@click.version_option(version=__version__, prog_name="autoscribe")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="YAML configuration file.",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[str]) -> None:
    """autoscribe: write JSDoc/TSDoc comments into JS and TS sources."""
    load_dotenv()
    try:
        config = apply_env_overrides(load_config(config_path))
    except AutoscribeError as e:
        raise click.ClickException(str(e)) from e
    setup_logging(
        level=config.logging.level,
        log_format=config.logging.format,
        log_file=config.logging.file,
    )
    ctx.obj = config


@cli.command()
@click.argument("path", required=False, type=click.Path(exists=True))
@click.option(
    "--dry-run",
    is_flag=True,
    default=False,
    help="Print the documented sources instead of writing them.",
)
@click.option("--api-key", default=None, help="Anthropic API key.")
@click.option(
    "--recursive", "-r", is_flag=True, help="Process a directory recursively."
)
@click.option("--model", default=None, help="Model used for generation.")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(OUTPUT_FORMATS),
    default=None,
    help="Comment style to generate.",
)
@click.pass_context
def run(
    ctx: click.Context,
    path: Optional[str],
    dry_run: bool,
    api_key: Optional[str],
    recursive: bool,
    model: Optional[str],
    output_format: Optional[str],
) -> None:
    """Generate documentation comments and write them into the sources.

    PATH is a source file, or a directory when --recursive is given.
    Command-line flags take precedence over environment variables.
    """
    base: AppConfig = ctx.obj
    config = resolve_config(
        base,
        api_key=api_key,
        model=model,
        output_format=output_format,
        dry_run=True if dry_run else None,
    )

    try:
        if not path:
            raise UsageError("Missing argument 'PATH'.")
        if not config.api.api_key:
            raise UsageError(
                "No API key found. Set ANTHROPIC_API_KEY or pass --api-key."
            )
        if Path(path).is_dir() and not recursive:
            raise UsageError(
                f"'{path}' is a directory; pass --recursive to process it."
            )
    except UsageError as e:
        _usage_error(ctx, str(e))

    llm = LLMClient(config=config.api)
    doc_client = DocumentationClient(llm, config=config.generation)
    documenter = FileDocumenter(
        doc_client,
        walker_config=config.walker,
        generation_config=config.generation,
        on_dry_run=_echo_dry_run,
    )

    try:
        if Path(path).is_dir():
            results = documenter.process_directory(path)
        else:
            results = [documenter.process_file(path)]
    except AutoscribeError as e:
        raise click.ClickException(str(e)) from e

    functions = sum(len(r.spans) for r in results)
    usage = llm.total_usage
    if config.walker.dry_run:
        click.echo(
            f"Dry run complete: {len(results)} files, {functions} functions. "
            "No files were modified."
        )
    else:
        click.echo(f"Documented {len(results)} files ({functions} functions)")
    click.echo(
        f"Tokens used: {usage.total_tokens:,} "
        f"(input: {usage.input_tokens:,}, output: {usage.output_tokens:,})"
    )


@cli.command()
@click.argument("path", type=click.Path(exists=True))
@click.option(
    "--recursive", "-r", is_flag=True, help="Scan a directory recursively."
)
@click.option("--json", "as_json", is_flag=True, help="Print spans as JSON.")
@click.pass_context
def spans(ctx: click.Context, path: str, recursive: bool, as_json: bool) -> None:
    """List the functions that would be documented.

    Parses each file and prints its documentable spans without calling
    the API.
    """
    config: AppConfig = ctx.obj
    try:
        files = _resolve_targets(path, recursive, config.walker.supported_extensions)
    except UsageError as e:
        _usage_error(ctx, str(e))

    extractor = SpanExtractor()
    report: dict[str, list[dict]] = {}
    try:
        for f in files:
            report[str(f)] = [s.to_dict() for s in extractor.parse_file(str(f))]
    except AutoscribeError as e:
        raise click.ClickException(str(e)) from e

    if as_json:
        click.echo(json.dumps(report, indent=2))
        return

    total = 0
    for file_name, file_spans in report.items():
        click.echo(f"{file_name} ({len(file_spans)} functions)")
        for span in file_spans:
            line, kind = span["line_number"], span["kind"]
            click.echo(f"  {line:>5}  {kind:<15} {span['name']}")
        total += len(file_spans)
    click.echo(f"Found {total} documentable functions in {len(report)} files")


@cli.command()
@click.argument("path", type=click.Path(exists=True))
@click.option(
    "--recursive", "-r", is_flag=True, help="Scan a directory recursively."
)
@click.option("--model", default=None, help="Model to price the estimate with.")
@click.pass_context
def estimate(
    ctx: click.Context, path: str, recursive: bool, model: Optional[str]
) -> None:
    """Estimate API cost without generating documentation.

    Renders every prompt a run would send and prices it, assuming one
    comment block of typical size per request.
    """
    config = resolve_config(ctx.obj, model=model)
    try:
        files = _resolve_targets(path, recursive, config.walker.supported_extensions)
    except UsageError as e:
        _usage_error(ctx, str(e))

    extractor = SpanExtractor()
    templates = TemplateManager()
    llm = LLMClient(config=config.api)
    fmt = config.generation.output_format

    requests = 0
    input_tokens = 0
    total_cost = 0.0
    try:
        for f in files:
            source = read_source(f)
            function_spans = extractor.extract_spans(
                source, str(f), Language.from_path(f)
            )
            jobs = [Span.for_file(source), *function_spans]
            for span in jobs:
                prompt = templates.render_prompt(
                    span.source_text, span.doc_kind, output_format=fmt, name=span.name
                )
                est = llm.estimate_cost(
                    prompt, estimated_output_tokens=_ESTIMATED_OUTPUT_TOKENS
                )
                requests += 1
                input_tokens += est.input_tokens
                total_cost += est.total_cost_usd
    except AutoscribeError as e:
        raise click.ClickException(str(e)) from e

    click.echo(f"Files: {len(files)}")
    click.echo(
        f"Requests: {requests} "
        f"({requests - len(files)} functions, {len(files)} file comments)"
    )
    click.echo(f"Estimated input tokens: {input_tokens:,}")
    click.echo(f"Estimated cost: ${total_cost:.4f} USD")
    click.echo(f"Model: {config.api.model}")
    logger.debug("Estimated %d requests for %s", requests, path)


