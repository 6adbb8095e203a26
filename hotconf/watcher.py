"""
Watch loop: one background thread per loader that reconciles external file changes with the reload pipeline.

- Watches the directory holding the config file (watchdog), so rename/recreate saves are seen.
- Every trigger is a message on one control queue; a get() timeout is the periodic timer tick.
- Falls back to pure polling when notifications are disabled or the observer cannot start.
- Commands: UPDATE re-points the watch to a new path, STOP exits and releases the observer.
"""

from __future__ import annotations

import enum
import os
import queue
import threading
from typing import Any, Callable

import structlog
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from hotconf.settings import LoaderSettings

logger = structlog.get_logger(__name__)


class Command(enum.Enum):
    CHANGED = "changed"
    UPDATE = "update"
    STOP = "stop"


class WatchState(enum.Enum):
    NOT_STARTED = "not_started"
    RUNNING = "running"
    STOPPED = "stopped"


def _real(path: str) -> str:
    return os.path.realpath(os.path.abspath(path))


class ConfigFileHandler(FileSystemEventHandler):
    """Forwards write-type events for one file in the watched directory to the control queue."""

    def __init__(self, target: str, notify: Callable[[str], None]):
        super().__init__()
        self._lock = threading.Lock()
        self._target = _real(target) if target else ""
        self._notify = notify

    def retarget(self, target: str) -> None:
        with self._lock:
            self._target = _real(target) if target else ""

    def _matches(self, path: Any) -> bool:
        if not path:
            return False
        with self._lock:
            target = self._target
        return bool(target) and _real(os.fsdecode(path)) == target

    def on_modified(self, event):
        if not event.is_directory and self._matches(event.src_path):
            self._notify(os.fsdecode(event.src_path))

    def on_created(self, event):
        if not event.is_directory and self._matches(event.src_path):
            self._notify(os.fsdecode(event.src_path))

    def on_moved(self, event):
        # editors that save via rename land on dest_path
        if not event.is_directory and self._matches(event.dest_path):
            self._notify(os.fsdecode(event.dest_path))


class WatchLoop:
    """
    Background thread driving reloads.

    reload is called with the trigger name ("timer" or "event") and must not raise
    for expected config failures; anything it does raise is logged and the loop continues.
    """

    def __init__(
        self,
        reload: Callable[[str], None],
        path: str,
        settings: LoaderSettings,
        name: str = "hotconf-watch",
    ):
        self._reload = reload
        self._initial_path = path
        self.settings = settings
        self.control: queue.Queue[tuple[Command, str | None]] = queue.Queue()
        self.state = WatchState.NOT_STARTED
        self.mode: str | None = None
        self.watched_dir: str | None = None
        self._started = threading.Event()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)

    def start(self) -> None:
        """Start the thread and wait until it has chosen notify or poll mode."""
        if self.state is not WatchState.NOT_STARTED:
            return
        self.state = WatchState.RUNNING
        self._thread.start()
        self._started.wait(timeout=self.settings.join_timeout_seconds)

    def update_path(self, path: str) -> None:
        """Ask the loop to re-point its watch; commands are applied in the order sent."""
        self.control.put((Command.UPDATE, path))

    def stop(self) -> None:
        """Cooperative shutdown: the loop exits at its next queue read."""
        if self.state is WatchState.NOT_STARTED:
            self.state = WatchState.STOPPED
            return
        if self._thread.is_alive():
            self.control.put((Command.STOP, None))
            self._thread.join(timeout=self.settings.join_timeout_seconds)
            if self._thread.is_alive():
                logger.warning("watch_loop_join_timeout", thread=self._thread.name)
        self.state = WatchState.STOPPED

    def is_alive(self) -> bool:
        return self._thread.is_alive()

    def _notify(self, path: str) -> None:
        self.control.put((Command.CHANGED, path))

    def _safe_reload(self, trigger: str) -> None:
        try:
            self._reload(trigger)
        except Exception:
            logger.exception("watch_reload_crashed", trigger=trigger)

    def _run(self) -> None:
        try:
            observer = self._open_observer()
            if observer is None:
                self.mode = "poll"
                self._started.set()
                self._poll()
            else:
                self.mode = "notify"
                self._watch(observer)
        finally:
            self._started.set()
            self.state = WatchState.STOPPED
            logger.info("watch_loop_exited")

    def _open_observer(self) -> Any:
        if not self.settings.use_notifications:
            logger.info("watch_notifications_disabled", path=self._initial_path)
            return None
        observer = Observer()
        try:
            observer.start()
        except OSError as e:
            logger.warning("watch_observer_unavailable", error=str(e), error_type=type(e).__name__)
            return None
        return observer

    def _poll(self) -> None:
        interval = self.settings.poll_interval_seconds
        logger.info("polling_config_file", path=self._initial_path, interval_seconds=interval)
        while True:
            try:
                cmd, _ = self.control.get(timeout=interval)
            except queue.Empty:
                self._safe_reload("timer")
                continue
            if cmd is Command.STOP:
                logger.info("watch_stop_requested", mode="poll")
                return

    def _schedule(self, observer: Any, handler: ConfigFileHandler, path: str) -> Any:
        if not path:
            self.watched_dir = None
            return None
        directory = os.path.dirname(os.path.abspath(path))
        try:
            watch = observer.schedule(handler, directory, recursive=False)
        except OSError as e:
            logger.warning("watch_schedule_failed", directory=directory, error=str(e))
            self.watched_dir = None
            return None
        self.watched_dir = directory
        return watch

    def _watch(self, observer: Any) -> None:
        interval = self.settings.poll_interval_seconds
        path = self._initial_path
        handler = ConfigFileHandler(path, self._notify)
        watch = self._schedule(observer, handler, path)
        logger.info("watching_config_file", path=path, directory=self.watched_dir)
        self._started.set()
        try:
            while True:
                try:
                    cmd, payload = self.control.get(timeout=interval)
                except queue.Empty:
                    self._safe_reload("timer")
                else:
                    if cmd is Command.STOP:
                        logger.info("watch_stop_requested", mode="notify")
                        return
                    if cmd is Command.UPDATE:
                        old_dir = self.watched_dir
                        path = payload or ""
                        if watch is not None:
                            try:
                                observer.unschedule(watch)
                            except (KeyError, OSError) as e:
                                logger.warning("watch_unschedule_failed", directory=old_dir, error=str(e))
                        handler.retarget(path)
                        watch = self._schedule(observer, handler, path)
                        logger.info("watch_path_updated", path=path, old_directory=old_dir, directory=self.watched_dir)
                    elif cmd is Command.CHANGED:
                        self._safe_reload("event")
                if not observer.is_alive():
                    logger.error("watch_source_closed", path=path)
                    return
        finally:
            observer.stop()
            if observer.is_alive():
                observer.join(timeout=self.settings.join_timeout_seconds)
