"""Re-resolve configuration in response to file-change notifications.

The session does not watch the file system itself; an external watcher calls
:meth:`WatchSession.notify` for every created, renamed, modified or deleted
path. Relevant changes cancel any in-flight resolution and schedule a fresh
one. Resolutions are serialised with a lock, failures are published as
:class:`BuildFailed` events, and cancelled resolutions publish nothing.

Examples
--------
>>> from pathlib import Path
>>> events = []
>>> session = WatchSession.from_file(
...     Path("windconf.yaml"), on_event=events.append
... )  # doctest: +SKIP
>>> session.rebuild()  # doctest: +SKIP
BuildSucceeded(config=ResolvedConfig(...))
>>> session.notify("src/app.html")  # doctest: +SKIP
True
"""

from __future__ import annotations

import dataclasses as dc
import logging
import os
import threading
import typing as typ
from pathlib import Path

from ruamel.yaml.error import YAMLError
from tomlkit.exceptions import TOMLKitError

from .config.loader import load_raw_config
from .content import CancelToken, canonical_path
from .defaults import DEFAULT_ENGINE
from .errors import ConfigError, ResolutionCancelled
from .resolver import ResolvedConfig, resolve_config

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .config.models import EngineDefaults
    from .errors import ErrorKind
    from .plugins import ContributionFunction

logger = logging.getLogger(__name__)

_BUILD_ERRORS = (ConfigError, OSError, YAMLError, TOMLKitError)


@dc.dataclass(frozen=True, slots=True)
class BuildSucceeded:
    """A resolution completed; ``config`` is ready for the engine."""

    config: ResolvedConfig


@dc.dataclass(frozen=True, slots=True)
class BuildFailed:
    """A resolution failed; the session keeps waiting for a corrective change."""

    error: Exception

    @property
    def kind(self) -> ErrorKind | None:
        return getattr(self.error, "kind", None)


BuildEvent = BuildSucceeded | BuildFailed


class WatchSession:
    """Serialise, debounce and cancel config resolutions triggered by changes."""

    def __init__(
        self,
        load_raw: cabc.Callable[[], object],
        project_root: str | os.PathLike[str],
        engine_defaults: EngineDefaults = DEFAULT_ENGINE,
        *,
        on_event: cabc.Callable[[BuildEvent], None],
        config_path: Path | None = None,
        debounce: float = 0.0,
        catalog: cabc.Mapping[str, ContributionFunction] | None = None,
        workers: int | None = None,
    ) -> None:
        """Create a session.

        Parameters
        ----------
        load_raw : Callable[[], object]
            Returns the current raw config; called once per resolution.
        project_root : str | PathLike
            Root passed to every resolution.
        engine_defaults : EngineDefaults, optional
            Injected engine defaults.
        on_event : Callable[[BuildEvent], None]
            Receives every published build event.
        config_path : Path | None, optional
            Config file whose changes always trigger a rebuild.
        debounce : float, optional
            Seconds to wait for further changes before resolving. ``0`` runs
            the resolution inline in :meth:`notify`.
        catalog, workers
            Forwarded to :func:`windconf.resolver.resolve_config`.
        """
        self._load_raw = load_raw
        self._root = Path(project_root).resolve()
        self._defaults = engine_defaults
        self._on_event = on_event
        self._config_path = (
            canonical_path(Path(config_path).absolute()) if config_path else None
        )
        self._debounce = debounce
        self._catalog = catalog
        self._workers = workers

        self._build_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._token: CancelToken | None = None
        self._timer: threading.Timer | None = None
        self._current: ResolvedConfig | None = None
        self._closed = False

    @classmethod
    def from_file(
        cls,
        path: Path,
        project_root: str | os.PathLike[str] | None = None,
        engine_defaults: EngineDefaults = DEFAULT_ENGINE,
        **kwargs: typ.Any,
    ) -> WatchSession:
        """Build a session that reloads ``path`` on every resolution."""
        root = project_root if project_root is not None else path.parent
        return cls(
            lambda: load_raw_config(path),
            root,
            engine_defaults,
            config_path=path,
            **kwargs,
        )

    @property
    def current(self) -> ResolvedConfig | None:
        """Return the last successfully published config, if any."""
        return self._current

    def notify(self, path: str | os.PathLike[str]) -> bool:
        """Record a change to ``path``; return ``True`` if it triggers a rebuild."""
        if self._closed or not self._is_relevant(Path(path)):
            return False
        if self._debounce <= 0:
            self.rebuild()
            return True
        with self._state_lock:
            if self._token is not None:
                self._token.cancel()
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self._debounce, self.rebuild)
            self._timer.daemon = True
            self._timer.start()
        return True

    def rebuild(self) -> BuildEvent | None:
        """Resolve now, superseding any in-flight resolution.

        Returns
        -------
        BuildEvent | None
            The published event, or ``None`` when this resolution was itself
            superseded before completing.
        """
        token = CancelToken()
        with self._state_lock:
            if self._closed:
                return None
            if self._token is not None:
                self._token.cancel()
            self._token = token
            self._timer = None

        with self._build_lock:
            if token.cancelled:
                return None
            try:
                config = resolve_config(
                    self._load_raw(),
                    self._root,
                    self._defaults,
                    catalog=self._catalog,
                    watch=True,
                    cancel=token,
                    workers=self._workers,
                )
            except ResolutionCancelled:
                logger.debug("Discarding superseded resolution")
                return None
            except _BUILD_ERRORS as exc:
                logger.warning("Config resolution failed: %s", exc)
                event: BuildEvent = BuildFailed(exc)
            else:
                if token.cancelled:
                    return None
                self._current = config
                event = BuildSucceeded(config)
            self._on_event(event)
            return event

    def close(self) -> None:
        """Stop scheduling resolutions and cancel any pending work."""
        with self._state_lock:
            self._closed = True
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            if self._token is not None:
                self._token.cancel()

    def __enter__(self) -> WatchSession:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _is_relevant(self, path: Path) -> bool:
        candidate = path if path.is_absolute() else self._root / path
        candidate = Path(os.path.normpath(candidate))
        config_path = self._config_path
        if config_path is not None and (
            candidate == config_path or canonical_path(candidate) == config_path
        ):
            return True
        current = self._current
        return current is None or current.matches(candidate)


__all__ = ["BuildEvent", "BuildFailed", "BuildSucceeded", "WatchSession"]
