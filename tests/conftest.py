"""Pytest fixtures: config files, fast loader settings, loaders closed after each test."""

import os
import time
from pathlib import Path
from typing import Callable

import pytest
import structlog
from pydantic import BaseModel

from hotconf.loader import ConfigLoader
from hotconf.settings import LoaderSettings, reset_settings_cache


class FooConf(BaseModel):
    """Document shape used throughout the tests (`foo: <str>`)."""

    foo: str = ""


def write_config(path: Path, text: str) -> Path:
    """Replace the file in one step (write temp, then rename over it)."""
    tmp = path.with_name(path.name + ".tmp")
    tmp.write_text(text, encoding="utf-8")
    os.replace(tmp, path)
    return path


def wait_for(predicate: Callable[[], bool], timeout: float = 5.0, interval: float = 0.02) -> bool:
    """Poll predicate until true or timeout; return its last result."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch):
    for name in list(os.environ):
        if name.startswith("HOTCONF_"):
            monkeypatch.delenv(name, raising=False)
    reset_settings_cache()
    yield
    reset_settings_cache()
    structlog.reset_defaults()


@pytest.fixture
def config_file(tmp_path) -> Path:
    """config.yaml containing `foo: foo!`."""
    return write_config(tmp_path / "config.yaml", "foo: foo!\n")


@pytest.fixture
def poll_settings() -> LoaderSettings:
    """Pure polling with a short interval."""
    return LoaderSettings(poll_interval_seconds=0.1, use_notifications=False, join_timeout_seconds=2.0)


@pytest.fixture
def notify_settings() -> LoaderSettings:
    """Notifications on; timer fallback long enough that only events can trigger within a test."""
    return LoaderSettings(poll_interval_seconds=60.0, use_notifications=True, join_timeout_seconds=2.0)


@pytest.fixture
def make_loader():
    """Build loaders bound to FooConf; every loader is closed at teardown."""
    loaders: list[ConfigLoader] = []

    def _make(path=None, **kwargs) -> ConfigLoader:
        kwargs.setdefault("model", FooConf)
        kwargs.setdefault("start_watcher", False)
        loader = ConfigLoader(path, **kwargs)
        loaders.append(loader)
        return loader

    yield _make
    for loader in loaders:
        loader.close()
