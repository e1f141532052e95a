"""Config resolution facade.

:func:`resolve_config` runs the pipeline in a fixed order (validate, resolve
content, register plugins, merge theme) and assembles an immutable
:class:`ResolvedConfig`. The first failing stage's exception propagates
unchanged, so callers can rely on :attr:`ConfigError.kind`.
"""

from __future__ import annotations

import dataclasses as dc
import logging
import typing as typ

from .config.loader import load_raw_config
from .config.validator import validate
from .content import CancelToken, ContentFileSet, resolve_content
from .defaults import DEFAULT_ENGINE
from .plugins import OrderedPluginSet, UtilityRule, register_plugins
from .theme import ThemeTree, freeze_tree, merge_extensions, merge_theme, thaw_tree

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    import os
    from pathlib import Path

    from .config.models import EngineDefaults, Mode
    from .plugins import ContributionFunction

logger = logging.getLogger(__name__)


@dc.dataclass(frozen=True, slots=True)
class ResolvedConfig:
    """Fully defaulted configuration handed to the generation engine.

    Instances are never mutated; every build derives a fresh one.

    Attributes
    ----------
    mode : Mode
        Resolved discovery mode.
    content : ContentFileSet
        Deduplicated patterns and, in eager mode, the matching files.
    theme : ThemeTree
        Deep-frozen merged theme.
    plugins : OrderedPluginSet
        Plugin contributions in declaration order.
    extras : Mapping
        Unrecognised top-level keys, preserved verbatim (frozen).
    """

    mode: Mode
    content: ContentFileSet
    theme: ThemeTree
    plugins: OrderedPluginSet
    extras: cabc.Mapping[str, typ.Any]

    @property
    def root(self) -> Path:
        return self.content.root

    @property
    def files(self) -> frozenset[Path] | None:
        return self.content.files

    @property
    def utilities(self) -> tuple[UtilityRule, ...]:
        return self.plugins.utilities

    def matches(self, path: str | os.PathLike[str]) -> bool:
        """Return whether a changed ``path`` is a content source of this build."""
        return self.content.matches(path)

    def as_dict(self) -> dict[str, typ.Any]:
        """Return a plain, serialisable view used for inspection and diffs."""
        return {
            "mode": self.mode.value,
            "root": self.root.as_posix(),
            "content": [pattern.declared for pattern in self.content.patterns],
            "files": list(self.content.relative_files()),
            "theme": thaw_tree(self.theme),
            "plugins": list(self.plugins.names),
            "utilities": [rule.name for rule in self.utilities],
            "extras": thaw_tree(self.extras),
        }


def resolve_config(
    raw: object,
    project_root: str | os.PathLike[str],
    engine_defaults: EngineDefaults = DEFAULT_ENGINE,
    *,
    catalog: cabc.Mapping[str, ContributionFunction] | None = None,
    watch: bool = False,
    cancel: CancelToken | None = None,
    workers: int | None = None,
) -> ResolvedConfig:
    """Resolve a raw config object into a :class:`ResolvedConfig`.

    Parameters
    ----------
    raw : object
        User-authored config mapping.
    project_root : str | PathLike
        Directory content patterns are evaluated against.
    engine_defaults : EngineDefaults, optional
        Default theme and mode; injected rather than read from global state.
    catalog : Mapping[str, Callable] | None, optional
        Named plugins available to this build.
    watch : bool, optional
        Resolve for a watch session; unbounded content globs become
        predicates instead of full-root walks.
    cancel : CancelToken | None, optional
        Cooperative cancellation for the content walk.
    workers : int | None, optional
        Thread fan-out for the content walk.

    Returns
    -------
    ResolvedConfig
        Complete result; there is no partial success.

    Raises
    ------
    ConfigError
        The first stage failure, unwrapped.
    ResolutionCancelled
        If ``cancel`` fired before the result was assembled.

    Examples
    --------
    >>> config = resolve_config(
    ...     {"content": ["src/**/*.{html,ts}"]}, "project"
    ... )  # doctest: +SKIP
    >>> config.content.relative_files()  # doctest: +SKIP
    ('src/a.html', 'src/b.ts')
    """
    validated = validate(raw, default_mode=engine_defaults.mode)
    content = resolve_content(
        validated.content,
        project_root,
        materialize=validated.mode.eager,
        watch=watch,
        cancel=cancel,
        workers=workers,
    )
    plugins = register_plugins(validated.plugins, catalog=catalog)
    extend = merge_extensions(*plugins.theme_fragments, validated.theme_extend)
    theme = merge_theme(engine_defaults.theme, extend, validated.theme_override)
    if cancel is not None:
        cancel.raise_if_cancelled()

    logger.debug(
        "Resolved config: mode=%s, %d patterns, %d plugins",
        validated.mode.value,
        len(content.patterns),
        len(plugins.plugins),
    )
    return ResolvedConfig(
        mode=validated.mode,
        content=content,
        theme=theme,
        plugins=plugins,
        extras=freeze_tree(dict(validated.extras)),
    )


def resolve_config_file(
    path: Path,
    project_root: str | os.PathLike[str] | None = None,
    engine_defaults: EngineDefaults = DEFAULT_ENGINE,
    **kwargs: typ.Any,
) -> ResolvedConfig:
    """Load ``path`` and resolve it; the root defaults to the file's directory."""
    raw = load_raw_config(path)
    root = project_root if project_root is not None else path.parent
    return resolve_config(raw, root, engine_defaults, **kwargs)


__all__ = ["ResolvedConfig", "resolve_config", "resolve_config_file"]
