"""Resolve content patterns into a deduplicated, root-bounded file set."""

from __future__ import annotations

import concurrent.futures as cf
import dataclasses as dc
import logging
import os
import threading
import typing as typ
from pathlib import Path

from windconf.errors import ResolutionCancelled

from .patterns import CompiledGlob, compile_pattern

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from windconf.config.models import ContentPattern

logger = logging.getLogger(__name__)


class CancelToken:
    """Cooperative cancellation flag checked at every directory visited."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        """Request cancellation of the resolution holding this token."""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        """Raise :class:`ResolutionCancelled` once cancellation was requested."""
        if self._event.is_set():
            msg = "Content resolution superseded by a newer change."
            raise ResolutionCancelled(msg)


def canonical_path(path: Path) -> Path:
    """Resolve symlinks in the parent of ``path``, keeping its final component.

    Deleted files and files about to be created still canonicalise, and a
    symlinked file is reported under its own name rather than its target.
    """
    return path.parent.resolve() / path.name


@dc.dataclass(frozen=True, slots=True)
class ContentFileSet:
    """Resolved content sources for one build.

    Attributes
    ----------
    root : Path
        Absolute project root every pattern is evaluated against.
    patterns : tuple[ContentPattern, ...]
        Deduplicated patterns in canonical (sorted) order.
    files : frozenset[Path] | None
        Absolute matching files, or ``None`` when discovery is deferred and
        only :meth:`matches` is available.
    predicate_only : tuple[CompiledGlob, ...]
        Inclusion globs left unwalked in a watch resolution because they have
        no static base directory. Files they select are only reported through
        :meth:`matches`.
    """

    root: Path
    patterns: tuple[ContentPattern, ...]
    files: frozenset[Path] | None
    includes: tuple[CompiledGlob, ...] = dc.field(repr=False)
    excludes: tuple[CompiledGlob, ...] = dc.field(repr=False)
    predicate_only: tuple[CompiledGlob, ...] = dc.field(default=(), repr=False)

    @property
    def deferred(self) -> bool:
        return self.files is None

    def matches(self, path: str | os.PathLike[str]) -> bool:
        """Return whether ``path`` belongs to this content set.

        Relative paths are interpreted against :attr:`root`. Paths outside the
        root never match.
        """
        relative = self._relative(Path(path))
        if relative is None:
            return False
        return self._matches_relative(relative)

    def relative_files(self) -> tuple[str, ...]:
        """Return matched files as sorted root-relative POSIX strings."""
        if self.files is None:
            return ()
        return tuple(sorted(path.relative_to(self.root).as_posix() for path in self.files))

    def _relative(self, path: Path) -> str | None:
        candidate = path if path.is_absolute() else self.root / path
        normalised = Path(os.path.normpath(candidate))
        if not normalised.is_relative_to(self.root):
            normalised = canonical_path(normalised)
            if not normalised.is_relative_to(self.root):
                return None
        return normalised.relative_to(self.root).as_posix()

    def _matches_relative(self, relative: str) -> bool:
        if not any(glob.matches(relative) for glob in self.includes):
            return False
        return not any(glob.matches(relative) for glob in self.excludes)


def resolve_content(
    patterns: cabc.Iterable[ContentPattern],
    project_root: str | os.PathLike[str],
    *,
    materialize: bool = True,
    watch: bool = False,
    cancel: CancelToken | None = None,
    workers: int | None = None,
) -> ContentFileSet:
    """Expand ``patterns`` into the set of matching files under ``project_root``.

    Parameters
    ----------
    patterns : Iterable[ContentPattern]
        Declared content patterns. Order only affects log output.
    project_root : str | PathLike
        Directory the patterns are relative to.
    materialize : bool, optional
        When ``False`` the file system is not walked; the returned set only
        answers :meth:`ContentFileSet.matches`.
    watch : bool, optional
        Resolve for a watch session: inclusion globs without a static base
        directory (``**/*.html``, ``*.html``) are registered as predicates
        instead of walking the whole root on every change.
    cancel : CancelToken | None, optional
        Token checked before each directory is listed.
    workers : int | None, optional
        Walk independent base directories on this many threads.

    Returns
    -------
    ContentFileSet
        Deduplicated matches. A pattern matching nothing is not an error.

    Raises
    ------
    InvalidPatternError
        If a pattern is malformed.
    UnsafePatternError
        If a pattern escapes ``project_root``.
    ResolutionCancelled
        If ``cancel`` fires during the walk; no partial result is returned.
    """
    root = Path(project_root).resolve()
    canonical = tuple(sorted(set(patterns), key=lambda item: item.sort_key()))

    includes: list[CompiledGlob] = []
    excludes: list[CompiledGlob] = []
    for pattern in canonical:
        target = excludes if pattern.negated else includes
        target.extend(compile_pattern(pattern, root))

    if not materialize:
        logger.debug("Deferring discovery for %d content globs", len(includes))
        return ContentFileSet(root, canonical, None, tuple(includes), tuple(excludes))

    unbounded: tuple[CompiledGlob, ...] = ()
    if watch:
        unbounded = tuple(glob for glob in includes if not glob.static_dir)
    if unbounded:
        logger.debug("Registering %d unbounded globs as predicates", len(unbounded))
    file_set = ContentFileSet(
        root, canonical, frozenset(), tuple(includes), tuple(excludes), unbounded
    )
    found = _walk_all(file_set, cancel=cancel, workers=workers)
    if cancel is not None:
        cancel.raise_if_cancelled()
    logger.debug(
        "Resolved %d content files from %d globs under %s",
        len(found),
        len(includes),
        root,
    )
    return dc.replace(file_set, files=frozenset(found))


def _walk_all(
    file_set: ContentFileSet, *, cancel: CancelToken | None, workers: int | None
) -> set[Path]:
    walked = [
        glob for glob in file_set.includes if glob not in file_set.predicate_only
    ]
    bases = _collapse_bases(glob.static_dir for glob in walked)
    depth_limit = _depth_limit(walked)

    def walk(base: tuple[str, ...]) -> set[Path]:
        return _walk(file_set, base, depth_limit=depth_limit, cancel=cancel)

    found: set[Path] = set()
    if workers and workers > 1 and len(bases) > 1:
        with cf.ThreadPoolExecutor(max_workers=workers) as pool:
            for partial in pool.map(walk, bases):
                found.update(partial)
    else:
        for base in bases:
            found.update(walk(base))
    return found


def _collapse_bases(
    bases: cabc.Iterable[tuple[str, ...]],
) -> list[tuple[str, ...]]:
    """Drop base directories nested inside another base so no tree is walked twice."""
    collapsed: list[tuple[str, ...]] = []
    for base in sorted(set(bases), key=len):
        if not any(base[: len(kept)] == kept for kept in collapsed):
            collapsed.append(base)
    return sorted(collapsed)


def _depth_limit(includes: cabc.Sequence[CompiledGlob]) -> int | None:
    if any(glob.recursive for glob in includes):
        return None
    return max((len(glob.segments) for glob in includes), default=0)


def _walk(
    file_set: ContentFileSet,
    base: tuple[str, ...],
    *,
    depth_limit: int | None,
    cancel: CancelToken | None,
) -> set[Path]:
    root = file_set.root
    start = root.joinpath(*base)
    found: set[Path] = set()
    if not start.is_dir():
        return found

    pending = [(start, len(base))]
    while pending:
        if cancel is not None:
            cancel.raise_if_cancelled()
        directory, depth = pending.pop()
        try:
            entries = list(os.scandir(directory))
        except (FileNotFoundError, NotADirectoryError, PermissionError) as exc:
            logger.debug("Skipping unreadable directory %s: %s", directory, exc)
            continue
        for entry in entries:
            path = Path(entry.path)
            if entry.is_dir(follow_symlinks=False):
                if depth_limit is None or depth + 1 < depth_limit:
                    pending.append((path, depth + 1))
                continue
            if not entry.is_file():
                continue
            relative = path.relative_to(root).as_posix()
            if file_set._matches_relative(relative):
                found.add(path)
    return found


__all__ = ["CancelToken", "ContentFileSet", "canonical_path", "resolve_content"]
