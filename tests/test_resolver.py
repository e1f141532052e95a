"""Tests for the config resolution facade.

These exercise the full pipeline (validation, content discovery, plugin
registration and theme merge) and check that stage errors surface untouched
and that results are deterministic and immutable.
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

import pytest

from windconf import (
    DEFAULT_ENGINE,
    DuplicatePluginError,
    EmptyContentError,
    EngineDefaults,
    ErrorKind,
    InvalidPatternError,
    Mode,
    PluginFailureError,
    ResolutionCancelled,
    UnsafePatternError,
    resolve_config,
)
from windconf.content import CancelToken
from windconf.theme import thaw_tree

if typ.TYPE_CHECKING:
    from pathlib import Path

    from pytest_mock import MockerFixture

ENGINE = EngineDefaults(theme={"spacing": {"sm": 4, "md": 8}, "colors": {"ink": "#000"}})


def test_sample_config_resolves_eagerly(project: Path) -> None:
    raw = {
        "mode": "all",
        "content": [
            {"base": "packages/web", "files": "../../packages/ui/src/**/*.{rs,html,css}"},
            {"base": "packages/web", "files": "./src/**/*.{rs,html,css}"},
        ],
        "theme": {"extend": {}},
        "plugins": [],
    }
    config = resolve_config(raw, project)
    assert config.mode is Mode.ALL
    assert config.content.relative_files() == (
        "packages/ui/src/button.rs",
        "packages/ui/src/card.html",
        "packages/web/src/main.rs",
    )
    assert thaw_tree(config.theme) == thaw_tree(DEFAULT_ENGINE.theme), (
        "an empty extend must leave the engine defaults untouched"
    )
    assert config.matches("packages/ui/src/new.rs")


def test_resolution_is_deterministic(project: Path) -> None:
    raw = {
        "content": ["src/**/*.{html,ts}", "!src/vendor/**"],
        "theme": {"extend": {"spacing": {"lg": 16}}},
        "plugins": ["forms"],
    }
    catalog = {"forms": lambda ctx: {"theme": {"colors": {"field": "#fff"}}}}
    first = resolve_config(raw, project, ENGINE, catalog=catalog)
    second = resolve_config(raw, project, ENGINE, catalog=catalog)
    assert first == second
    assert first.as_dict() == second.as_dict()


def test_theme_layers_apply_in_order(project: Path) -> None:
    """Defaults, then plugin fragments in order, then user extend, then overrides."""
    catalog = {
        "brand": lambda ctx: {"theme": {"colors": {"brand": "#111", "accent": "#a00"}}},
        "spacing": lambda ctx: {"theme": {"spacing": {"xl": 32}}},
    }
    raw = {
        "content": ["src/*.html"],
        "theme": {
            "extend": {"colors": {"brand": "#222"}, "spacing": {"lg": 16}},
            "spacing": {"md": 99},
        },
        "plugins": ["brand", "spacing"],
    }
    config = resolve_config(raw, project, ENGINE, catalog=catalog)
    assert thaw_tree(config.theme) == {
        "colors": {"ink": "#000", "brand": "#222", "accent": "#a00"},
        "spacing": {"md": 99},
    }


def test_unknown_keys_survive_resolution(project: Path) -> None:
    config = resolve_config({"content": ["src/*.html"], "prefix": "tw-"}, project)
    assert dict(config.extras) == {"prefix": "tw-"}
    assert config.as_dict()["extras"] == {"prefix": "tw-"}


def test_lazy_mode_defers_discovery(project: Path) -> None:
    config = resolve_config({"mode": "lazy", "content": ["src/**/*.html"]}, project)
    assert config.files is None
    assert config.matches(project / "src" / "later.html")
    assert config.as_dict()["files"] == []


def test_lazy_mode_accepts_empty_content(project: Path) -> None:
    config = resolve_config({"mode": "lazy"}, project)
    assert config.content.patterns == ()
    assert not config.matches("src/a.html")


def test_resolved_config_is_immutable(project: Path) -> None:
    config = resolve_config({"content": ["src/*.html"]}, project)
    with pytest.raises(dc.FrozenInstanceError):
        config.mode = Mode.LAZY  # type: ignore[misc]
    with pytest.raises(TypeError):
        config.theme["spacing"] = {}  # type: ignore[index]


def test_fresh_config_per_resolution(make_tree: typ.Callable[..., Path]) -> None:
    root = make_tree(["src/a.html"])
    before = resolve_config({"content": ["src/*.html"]}, root)
    (root / "src" / "b.html").write_text("", encoding="utf-8")
    after = resolve_config({"content": ["src/*.html"]}, root)
    assert before.content.relative_files() == ("src/a.html",)
    assert after.content.relative_files() == ("src/a.html", "src/b.html")


@pytest.mark.parametrize(
    ("raw", "error_type", "kind"),
    [
        ({"mode": "all", "content": []}, EmptyContentError, ErrorKind.EMPTY_CONTENT),
        ({"content": ["../outside/**/*"]}, UnsafePatternError, ErrorKind.UNSAFE_PATTERN),
        ({"content": ["src/*.{html"]}, InvalidPatternError, ErrorKind.INVALID_PATTERN),
        (
            {"content": ["src/*.html"], "plugins": ["forms", "forms"]},
            DuplicatePluginError,
            ErrorKind.DUPLICATE_PLUGIN,
        ),
        (
            {"content": ["src/*.html"], "plugins": ["missing"]},
            PluginFailureError,
            ErrorKind.PLUGIN_FAILURE,
        ),
    ],
)
def test_stage_errors_surface_unwrapped(
    project: Path, raw: dict[str, object], error_type: type[Exception], kind: ErrorKind
) -> None:
    with pytest.raises(error_type) as excinfo:
        resolve_config(raw, project, catalog={"forms": lambda ctx: None})
    assert type(excinfo.value) is error_type, "facade must not wrap stage errors"
    assert excinfo.value.kind is kind  # type: ignore[attr-defined]


def test_content_failure_short_circuits_plugins(
    project: Path, mocker: MockerFixture
) -> None:
    plugin = mocker.Mock(return_value=None)
    with pytest.raises(UnsafePatternError):
        resolve_config(
            {"content": ["../x/*.html"], "plugins": ["forms"]},
            project,
            catalog={"forms": plugin},
        )
    plugin.assert_not_called()


def test_cancelled_resolution_returns_nothing(project: Path) -> None:
    token = CancelToken()
    token.cancel()
    with pytest.raises(ResolutionCancelled):
        resolve_config({"content": ["src/**/*"]}, project, cancel=token)


def test_utilities_exposed_in_order(project: Path) -> None:
    catalog = {
        "a": lambda ctx: {"utilities": [{"name": "aspect"}]},
        "b": lambda ctx: {"utilities": [{"name": "clamp"}]},
    }
    config = resolve_config(
        {"content": ["src/*.html"], "plugins": ["a", "b"]}, project, catalog=catalog
    )
    assert [rule.name for rule in config.utilities] == ["aspect", "clamp"]
    assert config.as_dict()["plugins"] == ["a", "b"]
