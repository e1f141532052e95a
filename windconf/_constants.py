"""Common literal values used across windconf.

Recognised config keys and file names live here so the validator, loader and
tests can import the same values without drifting. Intended for internal use
within the windconf package.

Examples
--------
>>> from windconf import _constants
>>> _constants.CONFIG_FILENAMES[0]
'windconf.yaml'
>>> "content" in _constants.RECOGNISED_KEYS
True
"""

RECOGNISED_KEYS = frozenset({"mode", "content", "theme", "plugins"})
THEME_EXTEND_KEY = "extend"
NEGATION_PREFIX = "!"
ROOT_FIELD = "<root>"

CONFIG_FILENAMES = (
    "windconf.yaml",
    "windconf.yml",
    "windconf.json",
    "windconf.toml",
)
YAML_SUFFIXES = frozenset({".yaml", ".yml", ".json"})
TOML_SUFFIXES = frozenset({".toml"})
