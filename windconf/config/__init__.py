"""Load and validate windconf configuration objects.

This subpackage reads a user-authored config file (YAML, JSON or TOML),
checks it against the recognised schema and produces a
:class:`ValidatedConfig` with every omitted field defaulted. The validator is
pure; file access is confined to :func:`load_raw_config`.

Examples
--------
>>> from windconf.config import validate
>>> config = validate({"mode": "lazy"})
>>> config.mode.value, config.content
('lazy', ())
"""

from .loader import find_config_file, load_raw_config
from .models import (
    ContentPattern,
    EngineDefaults,
    Mode,
    PluginReference,
    ValidatedConfig,
)
from .validator import validate

__all__ = [
    "ContentPattern",
    "EngineDefaults",
    "Mode",
    "PluginReference",
    "ValidatedConfig",
    "find_config_file",
    "load_raw_config",
    "validate",
]
