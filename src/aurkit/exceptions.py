"""Exception hierarchy for aurkit.

All exceptions inherit from :class:`AurkitError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`aurkit.exit_codes`.
The CLI entry point in :func:`aurkit.app.main` catches ``AurkitError``
and exits with the appropriate code.

Subclass hierarchy::

    AurkitError (exit 1)
    +-- InvalidUsageError        (exit 2)
    +-- NotFoundError            (exit 4)
    +-- ServerError              (exit 5)
    +-- NetworkError             (exit 6)
    +-- ParseError               (exit 7)
    +-- ConfigError              (exit 1)
    +-- CacheError               (exit 8)
        +-- CacheSerializationError
        +-- CacheIOError

Cache reads never raise; see :mod:`aurkit.cache` for which cache
operations surface these errors and which swallow them.
"""

from aurkit.exit_codes import (
    EXIT_CACHE_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NETWORK_ERROR,
    EXIT_NOT_FOUND,
    EXIT_PARSE_ERROR,
    EXIT_SERVER_ERROR,
)


class AurkitError(Exception):
    """Base exception for all aurkit errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`aurkit.exit_codes`.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(AurkitError):
    """Raised for invalid CLI arguments or empty required inputs."""

    exit_code = EXIT_INVALID_USAGE


class NotFoundError(AurkitError):
    """Raised when the AUR returns HTTP 404."""

    exit_code = EXIT_NOT_FOUND


class ServerError(AurkitError):
    """Raised when the AUR answers with an HTTP error status other than 404."""

    exit_code = EXIT_SERVER_ERROR


class NetworkError(AurkitError):
    """Raised on transport failures (timeout, DNS resolution, connection refused)."""

    exit_code = EXIT_NETWORK_ERROR


class ParseError(AurkitError):
    """Raised when an RPC response or package page cannot be parsed."""

    exit_code = EXIT_PARSE_ERROR


class ConfigError(AurkitError):
    """Raised for configuration problems (invalid JSON, failed validation)."""

    exit_code = EXIT_GENERIC_FAILURE


class CacheError(AurkitError):
    """Base class for cache failures.

    Raised directly for failures that are neither serialization nor I/O
    problems, such as a system clock set before the Unix epoch.
    """

    exit_code = EXIT_CACHE_ERROR


class CacheSerializationError(CacheError):
    """Raised when a value cannot be encoded to JSON for storage."""


class CacheIOError(CacheError):
    """Raised when a disk cache file or directory cannot be read, written, or removed."""
