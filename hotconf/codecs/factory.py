"""Pick a codec from the config file suffix."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel

from hotconf.codecs.base import BaseCodec
from hotconf.codecs.json_codec import JsonCodec
from hotconf.codecs.yaml_codec import YamlCodec


def codec_for_path(path: str | Path | None, model: type[BaseModel] | None = None) -> BaseCodec:
    """JsonCodec for *.json, YamlCodec for everything else (including no path)."""
    if path and Path(path).suffix.lower() == ".json":
        return JsonCodec(model=model)
    return YamlCodec(model=model)
