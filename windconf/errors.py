"""Error types raised while resolving a windconf configuration.

Every failure surfaced by the resolution pipeline derives from
:class:`ConfigError` and carries an :class:`ErrorKind` so callers can branch on
the failure category without string matching. Errors are raised synchronously
and never retried; the facade re-raises stage errors untouched.
"""

from __future__ import annotations

import enum


class ErrorKind(enum.Enum):
    """Categories of configuration failure."""

    INVALID_FIELD = "InvalidField"
    INVALID_PATTERN = "InvalidPattern"
    UNSAFE_PATTERN = "UnsafePattern"
    DUPLICATE_PLUGIN = "DuplicatePlugin"
    PLUGIN_FAILURE = "PluginFailure"
    EMPTY_CONTENT = "EmptyContent"


class ConfigError(ValueError):
    """Raised when the configuration is invalid or cannot be resolved."""

    kind: ErrorKind | None = None


class InvalidFieldError(ConfigError):
    """A field has the wrong type or an unsupported value."""

    kind = ErrorKind.INVALID_FIELD

    def __init__(self, field_path: str, expected: str) -> None:
        self.field_path = field_path
        self.expected = expected
        msg = f"Invalid value for '{field_path}': expected {expected}."
        super().__init__(msg)


class InvalidPatternError(ConfigError):
    """A content glob is syntactically malformed."""

    kind = ErrorKind.INVALID_PATTERN

    def __init__(self, pattern: str, reason: str) -> None:
        self.pattern = pattern
        self.reason = reason
        msg = f"Invalid content pattern {pattern!r}: {reason}."
        super().__init__(msg)


class UnsafePatternError(ConfigError):
    """A content glob would resolve outside the project root."""

    kind = ErrorKind.UNSAFE_PATTERN

    def __init__(self, pattern: str, root: object) -> None:
        self.pattern = pattern
        self.root = root
        msg = f"Content pattern {pattern!r} escapes the project root '{root}'."
        super().__init__(msg)


class DuplicatePluginError(ConfigError):
    """The same plugin identity was declared more than once."""

    kind = ErrorKind.DUPLICATE_PLUGIN

    def __init__(self, name: str, positions: tuple[int, int]) -> None:
        self.name = name
        self.positions = positions
        first, second = positions
        msg = f"Plugin '{name}' is declared twice (positions {first} and {second})."
        super().__init__(msg)


class PluginFailureError(ConfigError):
    """A plugin could not be loaded or its contribution function failed."""

    kind = ErrorKind.PLUGIN_FAILURE

    def __init__(self, name: str, cause: BaseException | str) -> None:
        self.name = name
        self.cause = cause
        msg = f"Plugin '{name}' failed: {cause}"
        super().__init__(msg)


class EmptyContentError(ConfigError):
    """No content sources were declared for an eager build."""

    kind = ErrorKind.EMPTY_CONTENT

    def __init__(self, mode: str) -> None:
        self.mode = mode
        msg = f"'content' must list at least one source pattern in '{mode}' mode."
        super().__init__(msg)


class ResolutionCancelled(RuntimeError):
    """Raised inside a resolution superseded by a newer change event."""


__all__ = [
    "ConfigError",
    "DuplicatePluginError",
    "EmptyContentError",
    "ErrorKind",
    "InvalidFieldError",
    "InvalidPatternError",
    "PluginFailureError",
    "ResolutionCancelled",
    "UnsafePatternError",
]
