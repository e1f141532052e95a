"""Built-in engine defaults.

:data:`DEFAULT_ENGINE` is an immutable value passed explicitly to
:func:`windconf.resolver.resolve_config`; callers that need different defaults
build their own :class:`EngineDefaults` rather than mutating this one.
"""

from __future__ import annotations

from .config.models import EngineDefaults, Mode
from .theme import freeze_tree

DEFAULT_THEME = freeze_tree(
    {
        "screens": {
            "sm": "640px",
            "md": "768px",
            "lg": "1024px",
            "xl": "1280px",
            "2xl": "1536px",
        },
        "colors": {
            "transparent": "transparent",
            "current": "currentColor",
            "black": "#000",
            "white": "#fff",
            "gray": {"100": "#f3f4f6", "500": "#6b7280", "900": "#111827"},
            "blue": {"100": "#dbeafe", "500": "#3b82f6", "900": "#1e3a8a"},
        },
        "spacing": {
            "0": "0px",
            "px": "1px",
            "1": "0.25rem",
            "2": "0.5rem",
            "4": "1rem",
            "8": "2rem",
            "16": "4rem",
        },
        "fontSize": {
            "xs": ["0.75rem", {"lineHeight": "1rem"}],
            "sm": ["0.875rem", {"lineHeight": "1.25rem"}],
            "base": ["1rem", {"lineHeight": "1.5rem"}],
            "lg": ["1.125rem", {"lineHeight": "1.75rem"}],
        },
        "borderRadius": {
            "none": "0px",
            "DEFAULT": "0.25rem",
            "lg": "0.5rem",
            "full": "9999px",
        },
    }
)

DEFAULT_ENGINE = EngineDefaults(theme=DEFAULT_THEME, mode=Mode.ALL)

__all__ = ["DEFAULT_ENGINE", "DEFAULT_THEME"]
