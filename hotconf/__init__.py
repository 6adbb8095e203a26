"""Hot-reloading configuration loader: fingerprinted reloads, validation callback, latest-value subscribers."""

from hotconf.codecs import BaseCodec, JsonCodec, YamlCodec, codec_for_path
from hotconf.errors import ConfigError, NoPathError, ParseError, ReadError, TruncatedError, ValidationError
from hotconf.loader import ConfigLoader, Snapshot, create_loader
from hotconf.settings import LoaderSettings, get_settings, load_settings
from hotconf.subscription import Subscription

__version__ = "0.1.0"

__all__ = [
    "BaseCodec",
    "ConfigError",
    "ConfigLoader",
    "JsonCodec",
    "LoaderSettings",
    "NoPathError",
    "ParseError",
    "ReadError",
    "Snapshot",
    "Subscription",
    "TruncatedError",
    "ValidationError",
    "YamlCodec",
    "codec_for_path",
    "create_loader",
    "get_settings",
    "load_settings",
]
