"""Document codecs: YAML (default) and JSON, optionally bound to a Pydantic model."""

from hotconf.codecs.base import BaseCodec
from hotconf.codecs.factory import codec_for_path
from hotconf.codecs.json_codec import JsonCodec
from hotconf.codecs.yaml_codec import YamlCodec

__all__ = ["BaseCodec", "JsonCodec", "YamlCodec", "codec_for_path"]
