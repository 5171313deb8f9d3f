"""
File system watcher for live re-rendering.

This module provides:
- Watchdog-based monitoring of vault markdown files and the settings file
- Debounced change notification (editor save cycles collapse to one)
- A blocking loop that flushes pending changes to a callback
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

logger = logging.getLogger(__name__)


class PendingChange:
    """Tracks a pending change for debouncing."""

    def __init__(self, path: Path, timestamp: float, is_settings: bool = False):
        self.path = path
        self.timestamp = timestamp
        self.is_settings = is_settings


class ViewChangeHandler(FileSystemEventHandler):
    """
    Collects changes that may affect a rendered view.

    Key behaviors:
    - Only markdown notes (outside hidden folders) and the settings file count
    - Repeated events for the same path within the debounce window merge,
      so the latest change wins
    - ``flush_pending`` hands settled changes to ``on_change``
    """

    RELEVANT_EXTENSIONS = {".md"}
    DEBOUNCE_SECONDS = 0.5

    def __init__(
        self,
        vault_path: Path,
        settings_path: Path | None = None,
        on_change: Callable[[list[PendingChange]], None] | None = None,
    ):
        super().__init__()
        self.vault_path = vault_path.resolve()
        self.settings_path = settings_path.resolve() if settings_path is not None else None
        self.on_change = on_change
        self.pending: dict[str, PendingChange] = {}

    def _is_settings(self, path: str) -> bool:
        return self.settings_path is not None and Path(path).resolve() == self.settings_path

    def _is_relevant(self, path: str) -> bool:
        if self._is_settings(path):
            return True

        p = Path(path)
        try:
            rel = p.resolve().relative_to(self.vault_path)
        except ValueError:
            return False

        if any(part.startswith(".") for part in rel.parts):
            return False
        return p.suffix.lower() in self.RELEVANT_EXTENSIONS

    def _queue(self, path: str) -> None:
        if not self._is_relevant(path):
            return
        self.pending[path] = PendingChange(
            path=Path(path),
            timestamp=time.time(),
            is_settings=self._is_settings(path),
        )

    def flush_pending(self) -> list[PendingChange]:
        """Emit changes that have passed the debounce window."""
        now = time.time()
        settled = []

        for path_str, pending in list(self.pending.items()):
            if now - pending.timestamp >= self.DEBOUNCE_SECONDS:
                settled.append(pending)
                del self.pending[path_str]

        if settled and self.on_change:
            self.on_change(settled)
        return settled

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._queue(event.src_path)

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._queue(event.src_path)

    def on_deleted(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._queue(event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        self._queue(event.src_path)
        self._queue(event.dest_path)


def watch_vault(
    vault_path: Path,
    settings_path: Path | None = None,
    on_change: Callable[[list[PendingChange]], None] | None = None,
) -> tuple[Observer, ViewChangeHandler]:
    """
    Start watching a vault.

    Returns:
        Tuple of (observer, handler) - caller should call observer.stop() to stop watching
    """
    handler = ViewChangeHandler(vault_path, settings_path=settings_path, on_change=on_change)

    observer = Observer()
    observer.schedule(handler, str(vault_path), recursive=True)
    if settings_path is not None:
        settings_dir = settings_path.resolve().parent
        vault_root = vault_path.resolve()
        # Settings usually live under the hidden .obsidian folder, still inside the vault.
        if settings_dir.exists() and vault_root not in (settings_dir, *settings_dir.parents):
            observer.schedule(handler, str(settings_dir), recursive=False)
    observer.start()

    return observer, handler


def run_watch_loop(
    vault_path: Path,
    settings_path: Path | None = None,
    on_change: Callable[[list[PendingChange]], None] | None = None,
) -> None:
    """
    Run the watch loop until interrupted.

    This is a blocking function that watches for changes and flushes
    pending ones periodically.
    """
    observer, handler = watch_vault(vault_path, settings_path=settings_path, on_change=on_change)

    try:
        while True:
            time.sleep(0.25)
            handler.flush_pending()
    except KeyboardInterrupt:
        observer.stop()

    observer.join()
