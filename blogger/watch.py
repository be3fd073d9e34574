"""Rebuild the site whenever a watched file changes."""

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from .cache import CREATED, MODIFIED, diff_snapshots, list_dirs, snapshot
from .errors import StartupFatal
from .pipeline import PublishPipeline

logger = logging.getLogger("blogger.watch")

IDLE = "idle"
RUNNING = "running"


@dataclass(frozen=True)
class ChangeEvent:
    path: str
    kind: str

    @property
    def is_write(self) -> bool:
        return self.kind in (CREATED, MODIFIED)


def watched_directories(roots: Iterable[Path]) -> list[Path]:
    dirs: list[Path] = []
    for root in roots:
        for path in list_dirs(root):
            if path not in dirs:
                dirs.append(path)
    return dirs


class DirectoryPoller(threading.Thread):
    """Compares content snapshots of the watched roots every ``interval`` seconds.

    A file only counts as modified when its content hash changes, so touching
    a file without writing to it does not trigger a rebuild.
    """

    def __init__(self, roots: Iterable[Path], events: queue.Queue, interval: float = 1.0) -> None:
        super().__init__(name="blogger-watch", daemon=True)
        self.roots = tuple(roots)
        self.events = events
        self.interval = interval
        self._stop_event = threading.Event()
        self._state = snapshot(self.roots)

    def poll(self) -> list[ChangeEvent]:
        current = snapshot(self.roots)
        changes = [ChangeEvent(path, kind) for path, kind in diff_snapshots(self._state, current)]
        self._state = current
        for change in changes:
            self.events.put(change)
        return changes

    def check(self) -> list[ChangeEvent]:
        """Poll once, logging filesystem errors instead of ending the thread."""
        try:
            return self.poll()
        except OSError:
            logger.exception("Could not scan %s", ", ".join(str(root) for root in self.roots))
            return []

    def run(self) -> None:
        while not self._stop_event.wait(self.interval):
            self.check()

    def stop(self) -> None:
        self._stop_event.set()


class WatchSupervisor:
    """Runs the pipeline once per content-modifying change event.

    Events are consumed one at a time on the calling thread, so a burst of
    changes during a rebuild waits in the queue instead of starting a second,
    overlapping run.
    """

    def __init__(
        self,
        pipeline: PublishPipeline,
        roots: Optional[Iterable[Path]] = None,
        interval: float = 1.0,
        events: Optional[queue.Queue] = None,
    ) -> None:
        self.pipeline = pipeline
        self.roots = tuple(roots) if roots is not None else pipeline.config.watched_dirs
        self.interval = interval
        self.events = events if events is not None else queue.Queue()
        self.state = IDLE
        self.runs = 0

    def handle(self, event: ChangeEvent) -> bool:
        if not event.is_write:
            logger.debug("Ignoring %s event for %s", event.kind, event.path)
            return False
        logger.info("Modified file: %s", event.path)
        self.state = RUNNING
        try:
            self.pipeline.run()
        except StartupFatal as exc:
            logger.error("Rebuild aborted: %s", exc)
        except Exception:
            logger.exception("Rebuild failed")
        finally:
            self.state = IDLE
            self.runs += 1
        return True

    def drain(self) -> int:
        """Handle every queued event without blocking; returns the rebuild count."""
        rebuilt = 0
        while True:
            try:
                event = self.events.get_nowait()
            except queue.Empty:
                return rebuilt
            if self.handle(event):
                rebuilt += 1

    def serve_forever(self) -> None:
        poller = DirectoryPoller(self.roots, self.events, self.interval)
        dirs = watched_directories(self.roots)
        logger.info(
            "Listening to changes in directories: %s",
            ", ".join(path.as_posix() for path in dirs),
        )
        poller.start()
        while True:
            self.handle(self.events.get())
