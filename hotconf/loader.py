"""
ConfigLoader: fingerprinted reload pipeline, snapshot store, and subscriber broadcast.

- load(): read -> fingerprint compare -> decode -> validate -> store -> broadcast, all under one lock.
- Identical bytes never trigger a second decode or broadcast.
- A rejected reload (read, parse, or validation failure) leaves the stored snapshot untouched.
- A WatchLoop thread calls the same pipeline on file events and timer ticks; its errors are
  logged and kept in last_error instead of being raised.
"""

from __future__ import annotations

import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Generic, TypeVar

import structlog
from pydantic import BaseModel

from hotconf.codecs import BaseCodec, codec_for_path
from hotconf.errors import ConfigError, NoPathError, ReadError, TruncatedError, ValidationError
from hotconf.fingerprint import fingerprint
from hotconf.settings import LoaderSettings, get_settings
from hotconf.subscription import SubscriberRegistry, Subscription
from hotconf.watcher import WatchLoop

logger = structlog.get_logger(__name__)

ConfigT = TypeVar("ConfigT")

# Receives the candidate value; returns a replacement (or None to keep it) or raises to reject it.
Validator = Callable[[Any], Any]


def _as_path(path: str | os.PathLike[str] | None) -> str:
    """Normalize a path argument; None, '' and Path('') (which renders as '.') all mean no file."""
    if path is None:
        return ""
    text = os.fspath(path)
    return "" if text in ("", os.curdir) else text


@dataclass(frozen=True)
class Snapshot(Generic[ConfigT]):
    """The accepted value, the fingerprint of its source bytes, and where it came from (None = default)."""

    value: ConfigT
    fingerprint: str
    source: str | None = None


class ConfigLoader(Generic[ConfigT]):
    """
    Holds the latest valid config loaded from a file and republishes it to subscribers.

    Args:
        path: Initial config file; empty or None means no file yet.
        required: If True, a missing path or unreadable file is an error instead of a default.
        codec: Document codec; default picked from the path suffix (YAML unless *.json),
            and picked again whenever set_config_path changes the path.
        model: Pydantic model the default codec binds documents to.
        validate: Initial validation callback (see register_callback).
        settings: Loader settings; default from get_settings().
        start_watcher: Start the background watch loop immediately.
    """

    def __init__(
        self,
        path: str | os.PathLike[str] | None = None,
        *,
        required: bool = False,
        codec: BaseCodec | None = None,
        model: type[BaseModel] | None = None,
        validate: Validator | None = None,
        settings: LoaderSettings | None = None,
        start_watcher: bool = True,
    ):
        self.settings = settings or get_settings()
        self._lock = threading.RLock()
        self._path = _as_path(path)
        self._required = required
        self._model = model
        # None: follow the path suffix on every re-point
        self._fixed_codec = codec
        self._codec = codec or codec_for_path(self._path, model)
        self._callback = validate
        self._snapshot: Snapshot[ConfigT] | None = None
        self._subs: SubscriberRegistry[ConfigT] = SubscriberRegistry()
        self._last_error: ConfigError | None = None
        self._closed = False

        if self._path:
            try:
                self.load()
            except ConfigError as e:
                logger.warning("config_initial_load_failed", path=self._path, error=str(e), error_type=type(e).__name__)

        self._watcher = WatchLoop(self._background_load, self._path, self.settings)
        if start_watcher:
            self._watcher.start()

    # --- public API ---

    def start(self) -> None:
        """Start the watch loop if the loader was built with start_watcher=False."""
        self._watcher.start()

    def close(self) -> None:
        """Stop the watch loop and release its observer. The loader must not be reused."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
        # joined outside the lock: the loop may be waiting on it inside a reload
        self._watcher.stop()
        logger.info("config_loader_closed", path=self._path)

    def __enter__(self) -> ConfigLoader[ConfigT]:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def set_config_path(self, path: str | os.PathLike[str] | None, required: bool = False) -> None:
        """
        Point the loader at a new file and reload it synchronously.

        Raises:
            ConfigError: Whatever the reload raised (the watch is re-pointed regardless).
        """
        new_path = _as_path(path)
        with self._lock:
            old_path = self._path
            self._path = new_path
            self._required = required
            if new_path != old_path and self._fixed_codec is None:
                self._codec = codec_for_path(new_path, self._model)
            if new_path != old_path and not self._closed:
                # enqueued under the lock so the watch loop sees path changes in order
                self._watcher.update_path(new_path)
            self.load()

    def register_callback(self, fn: Validator | None) -> None:
        """
        Install the validation/transform callback used by subsequent reloads.

        The callback gets the decoded value and returns the value to store (None keeps
        the candidate). Raising any exception rejects the candidate. The currently
        stored value is not revalidated.
        """
        with self._lock:
            self._callback = fn

    def load(self) -> None:
        """
        Run the reload pipeline once.

        Raises:
            NoPathError: No path and required.
            ReadError: File unreadable or truncated, and required or no value to fall back on.
            ParseError: Malformed document.
            ValidationError: Callback rejected the value.
        """
        with self._lock:
            self._last_error = None
            try:
                self._load_locked()
            except ConfigError as e:
                self._last_error = e
                raise

    def config(self) -> ConfigT | None:
        """Last accepted value; loads lazily when nothing has been stored yet."""
        with self._lock:
            if self._snapshot is None:
                try:
                    self.load()
                except ConfigError as e:
                    logger.info("config_lazy_load_failed", path=self._path, error=str(e))
            return self._snapshot.value if self._snapshot is not None else None

    def snapshot(self) -> Snapshot[ConfigT] | None:
        with self._lock:
            return self._snapshot

    def subscribe(self) -> Subscription[ConfigT]:
        """Register a subscriber; it immediately receives the current value if one is stored."""
        with self._lock:
            sub = self._subs.add()
            if self._snapshot is not None:
                sub.offer(self._snapshot.value)
            return sub

    @property
    def path(self) -> str:
        with self._lock:
            return self._path

    @property
    def required(self) -> bool:
        with self._lock:
            return self._required

    @property
    def fingerprint(self) -> str | None:
        with self._lock:
            return self._snapshot.fingerprint if self._snapshot is not None else None

    @property
    def last_error(self) -> ConfigError | None:
        """Error of the most recent reload (direct or background); None after a success."""
        with self._lock:
            return self._last_error

    @property
    def codec(self) -> BaseCodec:
        with self._lock:
            return self._codec

    @property
    def watcher(self) -> WatchLoop:
        return self._watcher

    @property
    def closed(self) -> bool:
        return self._closed

    # --- pipeline ---

    def _load_locked(self) -> None:
        if not self._path:
            if self._required:
                raise NoPathError()
            self._store_default()
            return

        try:
            data = self._read(self._path)
        except ReadError as e:
            if self._snapshot is None:
                if self._required:
                    raise
                logger.info("config_file_unavailable_using_default", path=self._path, error=str(e))
                self._store_default()
                return
            logger.warning(
                "config_read_failed_keeping_previous",
                path=self._path,
                error=str(e),
                required=self._required,
            )
            if self._required:
                raise
            self._last_error = e
            return

        fprint = fingerprint(data)
        # defaults are fingerprinted from their encoding, so only file snapshots short-circuit
        snap = self._snapshot
        if snap is not None and snap.source is not None and fprint == snap.fingerprint:
            return

        value = self._codec.decode(data)
        value = self._apply_callback(value, self._path)
        self._store(Snapshot(value=value, fingerprint=fprint, source=self._path))

    def _read(self, path: str) -> bytes:
        try:
            data = Path(path).read_bytes()
        except OSError as e:
            raise ReadError(path, f"could not read config @ {path!r}: {e}") from e
        if len(data) < self.settings.min_file_bytes:
            raise TruncatedError(path, len(data), self.settings.min_file_bytes)
        return data

    def _apply_callback(self, value: ConfigT, source: str | None) -> ConfigT:
        if self._callback is None:
            return value
        try:
            result = self._callback(value)
        except Exception as e:
            logger.warning("config_callback_rejected", path=source, error=str(e))
            raise ValidationError(f"config callback rejected {source or 'default'} config: {e}") from e
        return value if result is None else result

    def _store_default(self) -> None:
        value = self._apply_callback(self._codec.zero(), None)
        fprint = fingerprint(self._codec.encode(value))
        self._store(Snapshot(value=value, fingerprint=fprint, source=None))

    def _store(self, snap: Snapshot[ConfigT]) -> None:
        self._snapshot = snap
        delivered = self._subs.broadcast(snap.value)
        logger.info(
            "config_loaded",
            path=snap.source,
            fingerprint=snap.fingerprint,
            subscribers=len(self._subs),
            delivered=delivered,
        )

    def _background_load(self, trigger: str) -> None:
        with self._lock:
            if not self._path or self._closed:
                return
            try:
                self.load()
            except ConfigError as e:
                logger.warning(
                    "config_reload_failed",
                    trigger=trigger,
                    path=self._path,
                    error=str(e),
                    error_type=type(e).__name__,
                )


def create_loader(
    path: str | os.PathLike[str] | None = None, **kwargs: Any
) -> tuple[ConfigLoader[Any], ConfigError | None]:
    """Build and start a loader; also return the initial load error, if any (the loader is usable either way)."""
    loader: ConfigLoader[Any] = ConfigLoader(path, **kwargs)
    return loader, loader.last_error
