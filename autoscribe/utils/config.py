"""Configuration loader and resolver for autoscribe.

Loads settings from configs/config.yaml into frozen dataclasses, then
layers environment variables and command-line flags on top. Every
stage returns a new value; a resolved configuration is never mutated.
"""

import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from autoscribe.errors import ConfigError

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "configs" / "config.yaml"

OUTPUT_FORMATS = ("jsdoc", "tsdoc")
DEFAULT_EXTENSIONS = (".js", ".jsx", ".ts")

_TRUE_STRINGS = {"1", "true", "yes", "on"}
_FALSE_STRINGS = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class APIConfig:
    """Configuration for the Anthropic API client."""

    api_key: Optional[str] = field(default=None, repr=False)
    model: str = "claude-sonnet-4-20250514"
    max_tokens: int = 1024
    temperature: float = 0.2
    rate_limit_rpm: int = 50


@dataclass(frozen=True)
class GenerationConfig:
    """Configuration for comment generation and its retry loop."""

    output_format: str = "jsdoc"
    max_retries: int = 3
    retry_base_delay: float = 1.0
    max_workers: int = 4


@dataclass(frozen=True)
class WalkerConfig:
    """Configuration for file selection and writing."""

    supported_extensions: tuple[str, ...] = DEFAULT_EXTENSIONS
    dry_run: bool = False


@dataclass(frozen=True)
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: Optional[str] = None


@dataclass(frozen=True)
class AppConfig:
    """Top-level application configuration."""

    api: APIConfig = field(default_factory=APIConfig)
    generation: GenerationConfig = field(default_factory=GenerationConfig)
    walker: WalkerConfig = field(default_factory=WalkerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def parse_extensions(value: Any) -> tuple[str, ...]:
    """Normalize an extension list.

    Accepts a comma-separated string or a sequence. Blank entries are
    dropped and a leading dot is added where missing.

    Args:
        value: Comma-separated string or iterable of suffixes.

    Returns:
        A tuple of suffixes such as (".js", ".ts").
    """
    items = value.split(",") if isinstance(value, str) else list(value)
    extensions = []
    for item in items:
        ext = str(item).strip()
        if not ext:
            continue
        if not ext.startswith("."):
            ext = f".{ext}"
        extensions.append(ext)
    return tuple(extensions)


def parse_bool(value: Any, name: str = "value") -> bool:
    """Interpret a boolean given as a string (e.g. "true", "0")."""
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_STRINGS:
        return True
    if text in _FALSE_STRINGS:
        return False
    raise ConfigError(f"{name} must be a boolean, got {value!r}")


def parse_positive_int(value: Any, name: str = "value") -> int:
    """Interpret a strictly positive integer.

    Raises:
        ConfigError: If the value is not an integer or is below 1.
    """
    try:
        number = int(str(value).strip())
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from e
    if number < 1:
        raise ConfigError(f"{name} must be a positive integer, got {number}")
    return number


def _check_format(output_format: str) -> str:
    fmt = output_format.strip().lower()
    if fmt not in OUTPUT_FORMATS:
        raise ConfigError(
            f"Output format must be one of {', '.join(OUTPUT_FORMATS)}, "
            f"got {output_format!r}"
        )
    return fmt


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """Load application configuration from a YAML file.

    Reads the YAML config file and constructs a fully typed AppConfig.
    Falls back to defaults for any missing values. The API key is never
    read from the file; it comes from the environment or the CLI.

    Args:
        config_path: Path to the YAML config file. If None, uses the
            default path at configs/config.yaml.

    Returns:
        A fully populated AppConfig instance.

    Raises:
        ConfigError: If a value in the file is malformed.
        yaml.YAMLError: If the config file contains invalid YAML.
    """
    path = Path(config_path) if config_path else _DEFAULT_CONFIG_PATH

    if not path.exists():
        logger.debug("Config file not found at %s, using defaults", path)
        return AppConfig()

    with open(path, encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    logger.debug("Loaded configuration from %s", path)

    defaults = AppConfig()

    api_data = raw.get("api") or {}
    api_config = APIConfig(
        model=api_data.get("model", defaults.api.model),
        max_tokens=api_data.get("max_tokens", defaults.api.max_tokens),
        temperature=api_data.get("temperature", defaults.api.temperature),
        rate_limit_rpm=api_data.get("rate_limit_rpm", defaults.api.rate_limit_rpm),
    )

    generation_data = raw.get("generation") or {}
    generation_config = GenerationConfig(
        output_format=_check_format(
            generation_data.get("output_format", defaults.generation.output_format)
        ),
        max_retries=parse_positive_int(
            generation_data.get("max_retries", defaults.generation.max_retries),
            "generation.max_retries",
        ),
        retry_base_delay=float(
            generation_data.get(
                "retry_base_delay", defaults.generation.retry_base_delay
            )
        ),
        max_workers=parse_positive_int(
            generation_data.get("max_workers", defaults.generation.max_workers),
            "generation.max_workers",
        ),
    )

    walker_data = raw.get("walker") or {}
    walker_config = WalkerConfig(
        supported_extensions=parse_extensions(
            walker_data.get(
                "supported_extensions", defaults.walker.supported_extensions
            )
        ),
        dry_run=parse_bool(walker_data.get("dry_run", False), "walker.dry_run"),
    )

    logging_data = raw.get("logging") or {}
    logging_config = LoggingConfig(
        level=logging_data.get("level", defaults.logging.level),
        format=logging_data.get("format", defaults.logging.format),
        file=logging_data.get("file"),
    )

    return AppConfig(
        api=api_config,
        generation=generation_config,
        walker=walker_config,
        logging=logging_config,
    )


def apply_env_overrides(
    config: AppConfig, environ: Optional[Mapping[str, str]] = None
) -> AppConfig:
    """Return a copy of config with environment variables applied.

    Recognized variables: ANTHROPIC_API_KEY, AUTOSCRIBE_MODEL,
    AUTOSCRIBE_FORMAT, SUPPORTED_EXTENSIONS, MAX_RETRIES and DRY_RUN.

    Args:
        config: The base configuration.
        environ: Mapping to read from. Defaults to os.environ.

    Returns:
        A new AppConfig.

    Raises:
        ConfigError: If a variable holds a malformed value.
    """
    env = os.environ if environ is None else environ

    api = config.api
    if env.get("ANTHROPIC_API_KEY"):
        api = replace(api, api_key=env["ANTHROPIC_API_KEY"])
    if env.get("AUTOSCRIBE_MODEL"):
        api = replace(api, model=env["AUTOSCRIBE_MODEL"])

    generation = config.generation
    if env.get("AUTOSCRIBE_FORMAT"):
        generation = replace(
            generation, output_format=_check_format(env["AUTOSCRIBE_FORMAT"])
        )
    if env.get("MAX_RETRIES"):
        generation = replace(
            generation,
            max_retries=parse_positive_int(env["MAX_RETRIES"], "MAX_RETRIES"),
        )

    walker = config.walker
    if env.get("SUPPORTED_EXTENSIONS"):
        extensions = parse_extensions(env["SUPPORTED_EXTENSIONS"])
        if extensions:
            walker = replace(walker, supported_extensions=extensions)
    if env.get("DRY_RUN") is not None:
        walker = replace(walker, dry_run=parse_bool(env["DRY_RUN"], "DRY_RUN"))

    return replace(config, api=api, generation=generation, walker=walker)


def resolve_config(
    config: AppConfig,
    api_key: Optional[str] = None,
    model: Optional[str] = None,
    output_format: Optional[str] = None,
    dry_run: Optional[bool] = None,
) -> AppConfig:
    """Return a copy of config with command-line flags applied.

    Only flags that were actually given (not None) take effect, so
    values resolved from the environment survive otherwise.
    """
    api = config.api
    if api_key:
        api = replace(api, api_key=api_key)
    if model:
        api = replace(api, model=model)

    generation = config.generation
    if output_format:
        generation = replace(generation, output_format=_check_format(output_format))

    walker = config.walker
    if dry_run is not None:
        walker = replace(walker, dry_run=dry_run)

    return replace(config, api=api, generation=generation, walker=walker)
