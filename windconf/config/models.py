"""Typed dataclasses describing validated windconf configuration structures."""

from __future__ import annotations

import dataclasses as dc
import enum
import typing as typ

if typ.TYPE_CHECKING:
    import collections.abc as cabc


class Mode(enum.Enum):
    """Content discovery strategy requested by the config."""

    ALL = "all"
    LAZY = "lazy"

    @property
    def eager(self) -> bool:
        """Return ``True`` when files are discovered at resolution time."""
        return self is Mode.ALL


@dc.dataclass(frozen=True, slots=True)
class ContentPattern:
    """A single content source glob relative to the project root.

    Attributes
    ----------
    glob : str
        Glob expression such as ``"src/**/*.{html,ts}"``.
    base : str | None
        Optional directory (relative to the project root) the glob is
        evaluated under.
    extensions : frozenset[str]
        Optional extension allow-list (without leading dots). Empty means
        every extension the glob itself admits.
    negated : bool
        ``True`` for exclusion patterns declared with a leading ``!``.
    """

    glob: str
    base: str | None = None
    extensions: frozenset[str] = frozenset()
    negated: bool = False

    @property
    def declared(self) -> str:
        """Return the pattern as the user would have written it."""
        prefix = "!" if self.negated else ""
        joined = f"{self.base.rstrip('/')}/{self.glob}" if self.base else self.glob
        return f"{prefix}{joined}"

    def sort_key(self) -> tuple[str, str, tuple[str, ...], bool]:
        """Return a stable ordering key used to canonicalise pattern sets."""
        return (self.glob, self.base or "", tuple(sorted(self.extensions)), self.negated)


@dc.dataclass(frozen=True, slots=True)
class PluginReference:
    """A plugin as declared in the raw config, before it is loaded."""

    name: str
    options: cabc.Mapping[str, typ.Any] = dc.field(default_factory=dict)
    target: cabc.Callable[..., typ.Any] | None = dc.field(
        default=None, compare=False
    )


@dc.dataclass(frozen=True, slots=True)
class ValidatedConfig:
    """Normalised config shape produced by the schema validator."""

    mode: Mode
    content: tuple[ContentPattern, ...]
    theme_extend: cabc.Mapping[str, typ.Any]
    theme_override: cabc.Mapping[str, typ.Any]
    plugins: tuple[PluginReference, ...]
    extras: cabc.Mapping[str, typ.Any] = dc.field(default_factory=dict)


@dc.dataclass(frozen=True, slots=True)
class EngineDefaults:
    """Engine-wide defaults injected into every resolution.

    Passing this value explicitly keeps resolutions free of ambient global
    state so many configs can be resolved side by side.
    """

    theme: cabc.Mapping[str, typ.Any]
    mode: Mode = Mode.ALL


__all__ = [
    "ContentPattern",
    "EngineDefaults",
    "Mode",
    "PluginReference",
    "ValidatedConfig",
]
