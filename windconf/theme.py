"""Merge the engine default theme with user and plugin theme trees.

Overrides replace a whole category; extensions are merged key by key. The
asymmetry is deliberate: a category named under ``theme`` is owned by the
user, so anything ``theme.extend`` (or a plugin) adds to it is discarded.

Examples
--------
>>> resolved = merge_theme(
...     {"spacing": {"sm": 4, "md": 8}},
...     {"spacing": {"lg": 16}},
...     {"spacing": {"md": 99}},
... )
>>> dict(resolved["spacing"])
{'md': 99}
"""

from __future__ import annotations

import collections.abc as cabc
import logging
import types
import typing as typ

from .errors import InvalidFieldError

logger = logging.getLogger(__name__)

ThemeTree = cabc.Mapping[str, cabc.Mapping[str, typ.Any]]


def merge_extensions(
    *fragments: cabc.Mapping[str, typ.Any] | None,
) -> dict[str, dict[str, typ.Any]]:
    """Fold extension fragments additively, later fragments winning per key.

    ``merge_extensions(merge_extensions(a, b), c)`` equals
    ``merge_extensions(a, b, c)``; inputs are never mutated.
    """
    merged: dict[str, dict[str, typ.Any]] = {}
    for position, fragment in enumerate(fragments):
        if not fragment:
            continue
        for category, tokens in _categories(fragment, f"extend[{position}]"):
            merged.setdefault(category, {}).update(tokens)
    return merged


def merge_theme(
    default: cabc.Mapping[str, typ.Any],
    extend: cabc.Mapping[str, typ.Any] | None = None,
    override: cabc.Mapping[str, typ.Any] | None = None,
) -> ThemeTree:
    """Resolve the final theme tree.

    Parameters
    ----------
    default : Mapping
        Engine default theme, keyed by category.
    extend : Mapping | None
        Additive tree; keys replace or add to the default category.
    override : Mapping | None
        Category-atomic tree; each category present replaces the default
        category wholesale and suppresses ``extend`` for that category.

    Returns
    -------
    ThemeTree
        Deep-frozen resolved theme.

    Raises
    ------
    InvalidFieldError
        If a category in any tree is not a mapping.
    """
    resolved: dict[str, dict[str, typ.Any]] = {
        category: dict(tokens) for category, tokens in _categories(default, "default")
    }
    overrides = dict(_categories(override or {}, "theme"))
    for category, tokens in overrides.items():
        resolved[category] = dict(tokens)

    for category, tokens in _categories(extend or {}, "theme.extend"):
        if category in overrides:
            logger.debug("Discarding extend for overridden category %r", category)
            continue
        resolved.setdefault(category, {}).update(tokens)

    logger.debug("Merged theme with categories: %s", sorted(resolved))
    return typ.cast("ThemeTree", freeze_tree(resolved))


def _categories(
    tree: cabc.Mapping[str, typ.Any], label: str
) -> cabc.Iterator[tuple[str, cabc.Mapping[str, typ.Any]]]:
    if not isinstance(tree, cabc.Mapping):
        raise InvalidFieldError(label, "mapping of theme categories")
    for category, tokens in tree.items():
        if not isinstance(tokens, cabc.Mapping):
            raise InvalidFieldError(f"{label}.{category}", "mapping of tokens")
        yield category, tokens


def freeze_tree(value: typ.Any) -> typ.Any:
    """Return a deep, read-only copy of nested mappings and sequences."""
    match value:
        case cabc.Mapping():
            return types.MappingProxyType(
                {key: freeze_tree(item) for key, item in value.items()}
            )
        case list() | tuple():
            return tuple(freeze_tree(item) for item in value)
        case set() | frozenset():
            return frozenset(freeze_tree(item) for item in value)
        case _:
            return value


def thaw_tree(value: typ.Any) -> typ.Any:
    """Convert a frozen tree back into plain dicts and lists."""
    match value:
        case cabc.Mapping():
            return {key: thaw_tree(item) for key, item in value.items()}
        case tuple() | list():
            return [thaw_tree(item) for item in value]
        case frozenset() | set():
            return sorted((thaw_tree(item) for item in value), key=repr)
        case _:
            return value


__all__ = ["ThemeTree", "freeze_tree", "merge_extensions", "merge_theme", "thaw_tree"]
