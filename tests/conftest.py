"""Shared fixtures for windconf tests."""

from __future__ import annotations

import typing as typ

import pytest

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path

TreeFactory = typ.Callable[..., "Path"]


def _write_tree(root: Path, files: cabc.Iterable[str]) -> Path:
    for relative in files:
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text('<div class="p-4"></div>\n', encoding="utf-8")
    return root


@pytest.fixture
def make_tree(tmp_path: Path) -> TreeFactory:
    """Return a helper that writes placeholder files under a fresh root."""

    def factory(files: cabc.Iterable[str], name: str = "tree") -> Path:
        root = tmp_path / name
        root.mkdir(exist_ok=True)
        return _write_tree(root, files)

    return factory


@pytest.fixture
def project(make_tree: TreeFactory) -> Path:
    """Return a project root mirroring a small multi-package web workspace."""
    return make_tree(
        [
            "src/a.html",
            "src/b.ts",
            "src/c.css",
            "src/nested/deep/d.html",
            "src/vendor/e.html",
            "packages/ui/src/button.rs",
            "packages/ui/src/card.html",
            "packages/ui/README.md",
            "packages/web/src/main.rs",
            "index.html",
        ],
        name="project",
    )


@pytest.fixture
def linked_project(project: Path) -> Path:
    """Return a symlink pointing at :func:`project`, as seen in linked checkouts."""
    link = project.parent / "project-link"
    try:
        link.symlink_to(project, target_is_directory=True)
    except OSError:  # pragma: no cover - platform without symlink support
        pytest.skip("symlinks unavailable")
    return link
