"""Validate raw configuration mappings into :class:`ValidatedConfig`.

The validator is a pure function of its input: it never touches the file
system and never imports plugins. It checks field types, supplies defaults for
omitted sections and keeps unrecognised top-level keys untouched so newer
config files keep working with older engines.
"""

from __future__ import annotations

import collections.abc as cabc
import logging
import typing as typ

from windconf._constants import RECOGNISED_KEYS, ROOT_FIELD, THEME_EXTEND_KEY
from windconf.errors import EmptyContentError, InvalidFieldError

from .helpers import (
    _is_sequence,
    _normalize_extensions,
    _require_mapping,
    _require_str,
    _split_negation,
    _string_list,
)
from .models import ContentPattern, Mode, PluginReference, ValidatedConfig

logger = logging.getLogger(__name__)

_MODE_CHOICES = ", ".join(mode.value for mode in Mode)


def validate(raw: object, *, default_mode: Mode = Mode.ALL) -> ValidatedConfig:
    """Normalise ``raw`` into a :class:`ValidatedConfig`.

    Parameters
    ----------
    raw : object
        User-authored configuration, typically a mapping loaded from YAML,
        JSON or TOML.
    default_mode : Mode, optional
        Mode applied when ``raw`` omits ``mode``.

    Returns
    -------
    ValidatedConfig
        Fully defaulted configuration shape.

    Raises
    ------
    InvalidFieldError
        If any recognised field has the wrong type.
    EmptyContentError
        If no inclusion pattern is declared and the mode is eager.

    Examples
    --------
    >>> config = validate({"content": ["./src/**/*.{rs,html,css}"]})
    >>> config.mode.value, config.content[0].glob
    ('all', 'src/**/*.{rs,html,css}')
    """
    payload = _require_mapping(raw, ROOT_FIELD)

    mode = _parse_mode(payload.get("mode"), default_mode)
    content = _parse_content(payload.get("content"))
    if not any(not pattern.negated for pattern in content) and mode.eager:
        raise EmptyContentError(mode.value)

    extend, override = _parse_theme(payload.get("theme"))
    plugins = _parse_plugins(payload.get("plugins"))

    extras = {key: value for key, value in payload.items() if key not in RECOGNISED_KEYS}
    if extras:
        logger.debug("Preserving unrecognised config keys: %s", sorted(extras))

    return ValidatedConfig(
        mode=mode,
        content=content,
        theme_extend=extend,
        theme_override=override,
        plugins=plugins,
        extras=extras,
    )


def _parse_mode(value: object, default: Mode) -> Mode:
    if value is None:
        return default
    if isinstance(value, Mode):
        return value
    if not isinstance(value, str):
        raise InvalidFieldError("mode", f"one of: {_MODE_CHOICES}")
    try:
        return Mode(value.strip().lower())
    except ValueError as exc:
        raise InvalidFieldError("mode", f"one of: {_MODE_CHOICES}") from exc


def _parse_content(value: object) -> tuple[ContentPattern, ...]:
    """Parse the ``content`` field into content patterns in declaration order."""
    if value is None:
        return ()
    if isinstance(value, cabc.Mapping):
        # ``{files: [...], relative: true}`` form; ``relative`` is implied
        # because patterns are always evaluated against the project root.
        return _parse_content(value.get("files"))
    if not _is_sequence(value):
        raise InvalidFieldError("content", "sequence of glob patterns")

    patterns: list[ContentPattern] = []
    for index, entry in enumerate(typ.cast("cabc.Sequence[object]", value)):
        field_path = f"content[{index}]"
        match entry:
            case str():
                glob, negated = _split_negation(_require_str(entry, field_path))
                patterns.append(ContentPattern(glob=_strip_dot(glob), negated=negated))
            case cabc.Mapping():
                patterns.extend(_parse_content_entry(entry, field_path))
            case _:
                raise InvalidFieldError(field_path, "glob string or mapping")
    return tuple(patterns)


def _parse_content_entry(
    entry: cabc.Mapping[str, typ.Any], field_path: str
) -> list[ContentPattern]:
    files = entry.get("files", entry.get("glob"))
    if files is None:
        raise InvalidFieldError(f"{field_path}.files", "glob string or list")
    base = entry.get("base")
    if base is not None:
        base = _strip_dot(_require_str(base, f"{field_path}.base")).rstrip("/") or None
    extensions = _normalize_extensions(
        entry.get("extensions"), f"{field_path}.extensions"
    )
    patterns = []
    for glob_text in _string_list(files, f"{field_path}.files"):
        glob, negated = _split_negation(glob_text)
        patterns.append(
            ContentPattern(
                glob=_strip_dot(glob),
                base=base,
                extensions=extensions,
                negated=negated,
            )
        )
    return patterns


def _strip_dot(text: str) -> str:
    while text.startswith("./"):
        text = text[2:]
    return text or "."


def _parse_theme(
    value: object,
) -> tuple[dict[str, typ.Any], dict[str, typ.Any]]:
    """Split ``theme`` into its ``extend`` tree and direct category overrides."""
    if value is None:
        return {}, {}
    theme = _require_mapping(value, "theme")
    extend_raw = theme.get(THEME_EXTEND_KEY)
    extend: dict[str, typ.Any] = {}
    if extend_raw is not None:
        for category, tokens in _require_mapping(
            extend_raw, f"theme.{THEME_EXTEND_KEY}"
        ).items():
            extend[category] = _require_mapping(
                tokens, f"theme.{THEME_EXTEND_KEY}.{category}"
            )
    override: dict[str, typ.Any] = {}
    for category, tokens in theme.items():
        if category == THEME_EXTEND_KEY:
            continue
        override[category] = _require_mapping(tokens, f"theme.{category}")
    return extend, override


def _parse_plugins(value: object) -> tuple[PluginReference, ...]:
    if value is None:
        return ()
    if not _is_sequence(value):
        raise InvalidFieldError("plugins", "sequence of plugin references")
    references: list[PluginReference] = []
    for index, entry in enumerate(typ.cast("cabc.Sequence[object]", value)):
        field_path = f"plugins[{index}]"
        match entry:
            case str():
                references.append(PluginReference(name=_require_str(entry, field_path)))
            case cabc.Mapping():
                name = _require_str(entry.get("name"), f"{field_path}.name")
                options = entry.get("options")
                if options is None:
                    options = {}
                _require_mapping(options, f"{field_path}.options")
                references.append(PluginReference(name=name, options=dict(options)))
            case _ if callable(entry):
                references.append(
                    PluginReference(name=_callable_name(entry), target=entry)
                )
            case _:
                raise InvalidFieldError(field_path, "plugin name, mapping or callable")
    return tuple(references)


def _callable_name(target: cabc.Callable[..., typ.Any]) -> str:
    explicit = getattr(target, "plugin_name", None)
    if isinstance(explicit, str) and explicit:
        return explicit
    module = getattr(target, "__module__", None)
    qualname = getattr(target, "__qualname__", None)
    name = qualname or type(target).__qualname__
    if module:
        name = f"{module}:{name}"
    if qualname is None or "<" in qualname:
        # anonymous callables share their names across distinct objects
        name = f"{name}@{id(target):#x}"
    return name


__all__ = ["validate"]
