"""File watcher for Folio.

Watches a project's content directory and ``folio.yaml`` and reloads the
content collection whenever something changes:
- Each reload is a fresh, independent load producing a new collection.
- A successful reload replaces the active collection in one assignment.
- A failed reload keeps the previous collection and reports the problems.
- Reloads are debounced and skipped when no source file actually changed.
  A change that arrives while a reload is debounced or running schedules
  one trailing reload, so the last change is never lost.
- The content directory is re-read from ``folio.yaml`` on every reload and
  the observer follows it when it moves.

Key classes:
- ContentWatcher: Owns the active collection and the watchdog observer.
- _ChangeHandler: File system event handler that triggers reloads.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from pathlib import Path

import click
import yaml
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from .collections import ContentCollection
from .config import CONFIG_FILENAME, SiteConfig, load_config
from .errors import ContentLoadError, LoadProblem, ProblemKind
from .store import load_project

ReloadCallback = Callable[[ContentCollection | None, ContentLoadError | None], None]

# Shortest wait before retrying a declined reload.
_RETRY_SECONDS = 0.05


class ContentWatcher:
    """Keeps an up-to-date content collection for a project.

    Attributes:
        project_root: Root directory of the project.
        content_dir: Directory whose changes trigger reloads.
        on_reload: Called after every reload attempt with either the new
            collection or the load error.
    """

    def __init__(
        self,
        project_root: Path,
        on_reload: ReloadCallback | None = None,
        debounce_seconds: float = 0.2,
    ):
        self.project_root = project_root
        self.content_dir = project_root / SiteConfig().content_dir
        self.on_reload = on_reload or _report
        self._collection: ContentCollection | None = None
        self._last_error: ContentLoadError | None = None
        self._observer = None
        self._handler: _ChangeHandler | None = None
        self._watched_dir: Path | None = None
        self._lock = threading.Lock()
        self._rebuilding = False
        self._last_rebuild_at = 0.0
        self._debounce_seconds = debounce_seconds
        self._last_signature: tuple | None = None
        self._pending: threading.Timer | None = None
        self._refresh_content_dir()

    @property
    def collection(self) -> ContentCollection | None:
        """The most recent collection that loaded without problems."""
        return self._collection

    @property
    def last_error(self) -> ContentLoadError | None:
        """The error from the latest reload, or None if it succeeded."""
        return self._last_error

    @property
    def has_pending_reload(self) -> bool:
        """Whether a trailing reload is scheduled."""
        return self._pending is not None

    def start(self) -> None:
        """Load once, then watch until interrupted."""
        self.reload(force=True)
        self._start_watcher()
        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            self.stop()

    def stop(self) -> None:
        with self._lock:
            if self._pending is not None:
                self._pending.cancel()
                self._pending = None
        if self._observer:
            self._observer.stop()
            self._observer.join()
            self._observer = None

    def _start_watcher(self) -> None:
        self._handler = _ChangeHandler(self)
        observer = Observer()
        self._schedule(observer)
        observer.start()
        self._observer = observer

    def _schedule(self, observer) -> None:
        self._watched_dir = self.content_dir if self.content_dir.exists() else None
        if self._watched_dir is not None:
            observer.schedule(self._handler, str(self._watched_dir), recursive=True)
        # Watch root for folio.yaml and a content directory that appears later
        observer.schedule(self._handler, str(self.project_root), recursive=False)

    def _refresh_content_dir(self) -> None:
        """Follow content_dir changes in folio.yaml, rescheduling the observer."""
        try:
            config = load_config(self.project_root)
        except (ValueError, yaml.YAMLError):
            # The reload reports the config error; keep watching what we have.
            return
        self.content_dir = self.project_root / config.content_dir
        wanted = self.content_dir if self.content_dir.exists() else None
        if self._observer is not None and wanted != self._watched_dir:
            self._observer.unschedule_all()
            self._schedule(self._observer)

    def reload(self, force: bool = False) -> bool:
        """Reload the collection if sources changed.

        A reload declined by the debounce window or by a reload already in
        progress is retried once things settle.

        Args:
            force: Skip the debounce and signature checks.

        Returns:
            True if a reload was attempted.
        """
        with self._lock:
            now = time.time()
            if self._rebuilding:
                self._schedule_pending(self._debounce_seconds)
                return False
            remaining = self._debounce_seconds - (now - self._last_rebuild_at)
            if not force and remaining > 0:
                self._schedule_pending(remaining)
                return False
            self._rebuilding = True
        try:
            self._refresh_content_dir()
            signature = self._compute_signature()
            if not force and signature == self._last_signature:
                return False
            try:
                fresh = load_project(self.project_root)
            except ContentLoadError as exc:
                self._fail(exc)
            except (FileNotFoundError, ValueError, yaml.YAMLError) as exc:
                # Config or directory problems must not kill the watcher.
                self._fail(
                    ContentLoadError(
                        [LoadProblem(ProblemKind.UNREADABLE_SOURCE, CONFIG_FILENAME, str(exc))]
                    )
                )
            else:
                self._collection = fresh
                self._last_error = None
                self.on_reload(fresh, None)
            self._last_signature = signature
            return True
        finally:
            with self._lock:
                self._rebuilding = False
                self._last_rebuild_at = time.time()

    def _schedule_pending(self, delay: float) -> None:
        # Caller holds self._lock.
        if self._pending is not None:
            return
        timer = threading.Timer(max(delay, _RETRY_SECONDS), self._run_pending)
        timer.daemon = True
        self._pending = timer
        timer.start()

    def _run_pending(self) -> None:
        with self._lock:
            self._pending = None
        self.reload()

    def _fail(self, error: ContentLoadError) -> None:
        self._last_error = error
        self.on_reload(None, error)

    def _compute_signature(self) -> tuple:
        entries: list[tuple] = []
        config_path = self.project_root / CONFIG_FILENAME
        candidates = [config_path] if config_path.exists() else []
        if self.content_dir.exists():
            candidates.extend(sorted(self.content_dir.rglob("*")))
        for path in candidates:
            if path.is_dir():
                continue
            try:
                stat = path.stat()
            except OSError:
                continue
            rel = path.relative_to(self.project_root)
            entries.append((str(rel), stat.st_mtime_ns, stat.st_size))
        return tuple(entries)


def _report(collection: ContentCollection | None, error: ContentLoadError | None) -> None:
    stamp = time.strftime("%H:%M:%S")
    if error is not None:
        click.echo(
            click.style(f"[{stamp}] Reload failed; keeping previous content:", fg="red"),
            err=True,
        )
        for problem in error.problems:
            click.echo(click.style(f"  {problem}", fg="yellow"), err=True)
        return
    if collection is not None:
        click.echo(
            f"[{stamp}] Loaded {len(collection.posts())} posts and "
            f"{len(collection.pages())} pages"
        )


class _ChangeHandler(FileSystemEventHandler):
    def __init__(self, watcher: ContentWatcher):
        super().__init__()
        self.watcher = watcher

    def on_any_event(self, event):
        path = Path(event.src_path)
        if event.is_directory:
            # Only the content directory itself appearing or vanishing matters
            if path != self.watcher.content_dir:
                return
        elif path.parent == self.watcher.project_root and path.name != CONFIG_FILENAME:
            return
        if any(part.startswith(".") for part in path.parts[-2:]):
            return
        self.watcher.reload()
