"""Load raw windconf configuration files into plain mappings."""

from __future__ import annotations

import typing as typ
from pathlib import Path

import tomlkit
from ruamel.yaml import YAML

from windconf._constants import (
    CONFIG_FILENAMES,
    ROOT_FIELD,
    TOML_SUFFIXES,
    YAML_SUFFIXES,
)
from windconf.errors import ConfigError, InvalidFieldError


def load_raw_config(path: Path) -> dict[str, typ.Any]:
    """Read a YAML, JSON or TOML config file without interpreting it.

    Parameters
    ----------
    path : Path
        Filesystem path to the config file (for example ``windconf.yaml``).

    Returns
    -------
    dict[str, Any]
        The top-level mapping, converted to plain Python containers.

    Raises
    ------
    FileNotFoundError
        If the configuration file does not exist at ``path``.
    ConfigError
        If the suffix is not a supported format.
    InvalidFieldError
        If the document's top level is not a mapping.
    YAMLError
        If the YAML content cannot be parsed by the underlying loader.
    tomlkit.exceptions.ParseError
        If the TOML content cannot be parsed.

    Examples
    --------
    >>> from pathlib import Path
    >>> raw = load_raw_config(Path("windconf.yaml"))  # doctest: +SKIP
    >>> raw["mode"]  # doctest: +SKIP
    'all'
    """
    if not path.exists():
        msg = f"Configuration file '{path}' not found."
        raise FileNotFoundError(msg)

    suffix = path.suffix.lower()
    if suffix in YAML_SUFFIXES:
        loader = YAML(typ="safe")
        loader.version = (1, 2)
        with path.open("r", encoding="utf-8") as handle:
            loaded = loader.load(handle)
    elif suffix in TOML_SUFFIXES:
        loaded = tomlkit.parse(path.read_text(encoding="utf-8")).unwrap()
    else:
        msg = f"Unsupported configuration format '{suffix or path.name}'."
        raise ConfigError(msg)

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise InvalidFieldError(ROOT_FIELD, "mapping")
    return dict(loaded)


def find_config_file(directory: Path) -> Path | None:
    """Return the first conventional config file found in ``directory``."""
    for name in CONFIG_FILENAMES:
        candidate = directory / name
        if candidate.is_file():
            return candidate
    return None


__all__ = ["find_config_file", "load_raw_config"]
