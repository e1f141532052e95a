"""Configuration resolution for a utility-class CSS generation engine.

windconf turns a ``tailwind.config.js``-shaped object (``mode``, ``content``,
``theme`` and ``plugins``) into an immutable :class:`ResolvedConfig`: the
content files to scan, the merged design-token theme and the ordered plugin
contributions. The generation engine itself lives elsewhere.

Exports
-------
- ``resolve_config``: resolve an in-memory raw config against a project root.
- ``resolve_config_file``: load a YAML, JSON or TOML config file and resolve it.
- ``WatchSession``: re-resolve on file changes for incremental rebuilds.

Examples
--------
>>> from windconf import resolve_config
>>> config = resolve_config(
...     {"mode": "all", "content": ["./src/**/*.{rs,html,css}"]}, "."
... )  # doctest: +SKIP
>>> config.matches("src/app.rs")  # doctest: +SKIP
True
"""

from __future__ import annotations

from .config import ContentPattern, EngineDefaults, Mode, PluginReference
from .defaults import DEFAULT_ENGINE, DEFAULT_THEME
from .errors import (
    ConfigError,
    DuplicatePluginError,
    EmptyContentError,
    ErrorKind,
    InvalidFieldError,
    InvalidPatternError,
    PluginFailureError,
    ResolutionCancelled,
    UnsafePatternError,
)
from .plugins import PluginContext, PluginContribution, UtilityRule
from .resolver import ResolvedConfig, resolve_config, resolve_config_file
from .watch import BuildFailed, BuildSucceeded, WatchSession

__all__ = [
    "DEFAULT_ENGINE",
    "DEFAULT_THEME",
    "BuildFailed",
    "BuildSucceeded",
    "ConfigError",
    "ContentPattern",
    "DuplicatePluginError",
    "EmptyContentError",
    "EngineDefaults",
    "ErrorKind",
    "InvalidFieldError",
    "InvalidPatternError",
    "Mode",
    "PluginContext",
    "PluginContribution",
    "PluginFailureError",
    "PluginReference",
    "ResolutionCancelled",
    "ResolvedConfig",
    "UnsafePatternError",
    "UtilityRule",
    "WatchSession",
    "resolve_config",
    "resolve_config_file",
]
