"""Exception hierarchy for autoscribe.

Every error raised deliberately by the tool derives from
AutoscribeError so the CLI can report it uniformly.
"""

from typing import Optional


class AutoscribeError(Exception):
    """Base class for all autoscribe errors."""


class UsageError(AutoscribeError):
    """Raised when the command line is missing a required value."""


class ConfigError(AutoscribeError):
    """Raised when a configuration or environment value is malformed."""


class ParseError(AutoscribeError):
    """Raised when a source file cannot be parsed.

    Attributes:
        file_path: Path of the offending file, if known.
    """

    def __init__(self, message: str, file_path: Optional[str] = None) -> None:
        self.file_path = file_path
        if file_path:
            message = f"{file_path}: {message}"
        super().__init__(message)


class GenerationError(AutoscribeError):
    """Raised when documentation generation exhausts its retries.

    Attributes:
        attempts: Number of attempts made before giving up.
        cause: The exception raised by the final attempt.
    """

    def __init__(
        self, message: str, attempts: int, cause: Optional[BaseException] = None
    ) -> None:
        super().__init__(message)
        self.attempts = attempts
        self.cause = cause


class ValidationFailure(AutoscribeError):
    """Raised internally when a generated comment block is malformed."""
