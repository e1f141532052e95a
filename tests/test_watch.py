"""Tests for the change-driven watch session.

Debouncing is disabled (``debounce=0``) in most tests so resolutions run
inline and the assertions stay deterministic.
"""

from __future__ import annotations

import os
import threading
import time
import typing as typ
from textwrap import dedent

import pytest

from windconf import BuildFailed, BuildSucceeded, ErrorKind, WatchSession
from windconf.content import CancelToken
from windconf.errors import ResolutionCancelled

if typ.TYPE_CHECKING:
    from pathlib import Path

    from pytest_mock import MockerFixture


def _write_config(root: Path, content: str) -> Path:
    path = root / "windconf.yaml"
    path.write_text(dedent(content).strip() + "\n", encoding="utf-8")
    return path


@pytest.fixture
def events() -> list[object]:
    return []


def test_initial_rebuild_publishes_success(project: Path, events: list[object]) -> None:
    config_path = _write_config(project, "content: ['src/*.html']")
    session = WatchSession.from_file(config_path, on_event=events.append)
    event = session.rebuild()
    assert isinstance(event, BuildSucceeded)
    assert events == [event]
    assert session.current is event.config
    assert event.config.content.relative_files() == ("src/a.html",)


def test_irrelevant_changes_are_ignored(project: Path, events: list[object]) -> None:
    config_path = _write_config(project, "content: ['src/*.html']")
    session = WatchSession.from_file(config_path, on_event=events.append)
    session.rebuild()
    assert session.notify(project / "src" / "c.css") is False
    assert session.notify("README.md") is False
    assert len(events) == 1


def test_new_content_file_triggers_fresh_config(
    project: Path, events: list[object]
) -> None:
    config_path = _write_config(project, "content: ['src/*.html']")
    session = WatchSession.from_file(config_path, on_event=events.append)
    first = session.rebuild()
    (project / "src" / "z.html").write_text("", encoding="utf-8")
    assert session.notify("src/z.html") is True
    latest = events[-1]
    assert isinstance(latest, BuildSucceeded)
    assert latest.config is not typ.cast("BuildSucceeded", first).config
    assert latest.config.content.relative_files() == ("src/a.html", "src/z.html")


def test_failure_is_published_and_watching_continues(
    project: Path, events: list[object]
) -> None:
    config_path = _write_config(project, "content: ['src/*.html']")
    session = WatchSession.from_file(config_path, on_event=events.append)
    session.rebuild()

    _write_config(project, "content: ['../outside/**/*']")
    assert session.notify(config_path) is True
    failed = events[-1]
    assert isinstance(failed, BuildFailed)
    assert failed.kind is ErrorKind.UNSAFE_PATTERN
    assert session.current is not None, "last good config stays available"

    _write_config(project, "content: ['src/**/*.ts']")
    assert session.notify(config_path) is True
    recovered = events[-1]
    assert isinstance(recovered, BuildSucceeded)
    assert recovered.config.content.relative_files() == ("src/b.ts",)


def test_missing_config_file_becomes_build_failed(
    tmp_path: Path, events: list[object]
) -> None:
    session = WatchSession.from_file(tmp_path / "windconf.yaml", on_event=events.append)
    event = session.rebuild()
    assert isinstance(event, BuildFailed)
    assert isinstance(event.error, FileNotFoundError)
    assert event.kind is None


def test_cancelled_resolution_publishes_nothing(
    project: Path, events: list[object], mocker: MockerFixture
) -> None:
    mocker.patch(
        "windconf.watch.resolve_config",
        side_effect=ResolutionCancelled("superseded"),
    )
    session = WatchSession(
        lambda: {"content": ["src/*.html"]}, project, on_event=events.append
    )
    assert session.rebuild() is None
    assert events == []


def test_new_rebuild_cancels_in_flight_one(project: Path, events: list[object]) -> None:
    """A second change cancels the first resolution; only the second publishes."""
    started = threading.Event()
    release = threading.Event()
    tokens: list[CancelToken] = []
    calls = 0

    def load_raw() -> dict[str, object]:
        nonlocal calls
        calls += 1
        if calls == 1:
            started.set()
            release.wait(timeout=5)
        return {"content": ["src/*.html"]}

    session = WatchSession(load_raw, project, on_event=events.append)
    original = session.rebuild

    first_result: list[object] = []
    worker = threading.Thread(target=lambda: first_result.append(original()))
    worker.start()
    assert started.wait(timeout=5)
    tokens.append(typ.cast("CancelToken", session._token))

    second = threading.Thread(target=session.rebuild)
    second.start()
    # the second rebuild cancels the first token before queueing on the lock
    for _ in range(500):
        if tokens[0].cancelled:
            break
        time.sleep(0.01)
    release.set()
    worker.join(timeout=5)
    second.join(timeout=5)

    assert tokens[0].cancelled
    assert first_result == [None], "superseded resolution must not publish"
    assert len(events) == 1
    assert isinstance(events[0], BuildSucceeded)


def test_debounced_changes_coalesce(project: Path) -> None:
    done = threading.Event()
    published: list[object] = []

    def on_event(event: object) -> None:
        published.append(event)
        done.set()

    session = WatchSession(
        lambda: {"content": ["src/*.html"]},
        project,
        on_event=on_event,
        debounce=0.05,
    )
    for _ in range(5):
        assert session.notify("src/a.html") is True
    assert done.wait(timeout=5)
    session.close()
    assert len(published) == 1, "bursts of changes should trigger one resolution"


def test_closed_session_ignores_changes(project: Path, events: list[object]) -> None:
    with WatchSession(
        lambda: {"content": ["src/*.html"]}, project, on_event=events.append
    ) as session:
        pass
    assert session.notify("src/a.html") is False
    assert session.rebuild() is None
    assert events == []


def test_malformed_character_class_becomes_build_failed(
    project: Path, events: list[object]
) -> None:
    session = WatchSession(
        lambda: {"content": ["src/[z-a].html"]}, project, on_event=events.append
    )
    event = session.rebuild()
    assert isinstance(event, BuildFailed)
    assert event.kind is ErrorKind.INVALID_PATTERN
    assert events == [event]


def test_plugin_failing_at_import_becomes_build_failed(
    project: Path,
    tmp_path: Path,
    events: list[object],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    (tmp_path / "windconf_broken_watch_plugin.py").write_text(
        "raise ValueError('bad plugin module')\n", encoding="utf-8"
    )
    monkeypatch.syspath_prepend(str(tmp_path))
    session = WatchSession(
        lambda: {
            "content": ["src/*.html"],
            "plugins": ["windconf_broken_watch_plugin:plugin"],
        },
        project,
        on_event=events.append,
    )
    event = session.rebuild()
    assert isinstance(event, BuildFailed)
    assert event.kind is ErrorKind.PLUGIN_FAILURE


def test_changes_under_a_symlinked_root_are_relevant(
    linked_project: Path, events: list[object]
) -> None:
    config_path = _write_config(linked_project, "content: ['src/*.html']")
    session = WatchSession.from_file(config_path, on_event=events.append)
    session.rebuild()
    (linked_project / "src" / "z.html").write_text("", encoding="utf-8")
    assert session.notify(linked_project / "src" / "z.html") is True
    latest = events[-1]
    assert isinstance(latest, BuildSucceeded)
    assert latest.config.content.relative_files() == ("src/a.html", "src/z.html")
    assert session.notify(config_path) is True, "config edits seen through the link"
    assert session.notify(linked_project / "src" / "c.css") is False


def test_unbounded_globs_are_not_walked_on_rebuild(
    project: Path, events: list[object], mocker: MockerFixture
) -> None:
    session = WatchSession(
        lambda: {"content": ["**/*.html"]}, project, on_event=events.append
    )
    scandir = mocker.spy(os, "scandir")
    event = session.rebuild()
    assert isinstance(event, BuildSucceeded)
    assert scandir.call_count == 0, "a root-wide glob must not walk the project"
    assert session.notify("packages/ui/src/card.html") is True
    assert session.notify("src/c.css") is False
