"""
Exceptions raised by the reload pipeline.

All derive from ConfigError so callers can catch one type. TruncatedError is a
ReadError: a file too short to be a document is handled like an unreadable one.
"""

from __future__ import annotations


class ConfigError(Exception):
    """Base class for every loader failure."""


class NoPathError(ConfigError):
    """No config path is set and the config is required."""

    def __init__(self, message: str = "no config path specified"):
        super().__init__(message)


class ReadError(ConfigError):
    """The config file could not be read."""

    def __init__(self, path: str, message: str):
        super().__init__(message)
        self.path = path


class TruncatedError(ReadError):
    """The config file is below the minimum viable size."""

    def __init__(self, path: str, size: int, min_size: int):
        super().__init__(path, f"empty or truncated config @ {path!r} ({size} bytes, need {min_size})")
        self.size = size
        self.min_size = min_size


class ParseError(ConfigError):
    """The document is malformed or does not fit the bound model."""


class ValidationError(ConfigError):
    """The registered callback rejected the candidate value."""
