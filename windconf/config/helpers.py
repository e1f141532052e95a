"""Utility helpers shared by the windconf schema validator."""

from __future__ import annotations

import collections.abc as cabc
import typing as typ

from windconf._constants import NEGATION_PREFIX
from windconf.errors import InvalidFieldError


def _is_sequence(value: object) -> bool:
    """Return ``True`` for list-like values that are not strings or bytes."""
    return isinstance(value, cabc.Sequence) and not isinstance(value, str | bytes)


def _require_mapping(value: object, field_path: str) -> cabc.Mapping[str, typ.Any]:
    """Return ``value`` as a mapping or raise :class:`InvalidFieldError`."""
    if not isinstance(value, cabc.Mapping):
        raise InvalidFieldError(field_path, "mapping")
    return value


def _require_str(value: object, field_path: str) -> str:
    """Return a stripped, non-empty string or raise :class:`InvalidFieldError`."""
    if not isinstance(value, str) or not value.strip():
        raise InvalidFieldError(field_path, "non-empty string")
    return value.strip()


def _string_list(value: object, field_path: str) -> list[str]:
    """Normalise a string or sequence of strings into a list of strings."""
    if isinstance(value, str):
        return [_require_str(value, field_path)]
    if not _is_sequence(value):
        raise InvalidFieldError(field_path, "string or sequence of strings")
    return [
        _require_str(item, f"{field_path}[{index}]")
        for index, item in enumerate(typ.cast("cabc.Sequence[object]", value))
    ]


def _split_negation(text: str) -> tuple[str, bool]:
    """Strip a leading ``!`` and report whether it was present."""
    if text.startswith(NEGATION_PREFIX):
        return text[len(NEGATION_PREFIX) :].lstrip(), True
    return text, False


def _normalize_extensions(value: object, field_path: str) -> frozenset[str]:
    """Return extensions without leading dots, lower-cased for comparison."""
    if value is None:
        return frozenset()
    return frozenset(
        item.lstrip(".").lower() for item in _string_list(value, field_path)
    )


__all__ = [
    "_is_sequence",
    "_normalize_extensions",
    "_require_mapping",
    "_require_str",
    "_split_negation",
    "_string_list",
]
