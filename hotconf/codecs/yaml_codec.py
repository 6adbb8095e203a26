"""YAML codec (PyYAML safe_load / safe_dump)."""

from typing import Any

import yaml

from hotconf.codecs.base import BaseCodec


class YamlCodec(BaseCodec):
    """Default document format."""

    name = "yaml"
    errors = (yaml.YAMLError,)

    def _loads(self, text: str) -> Any:
        return yaml.safe_load(text)

    def _dumps(self, data: Any) -> str:
        return yaml.safe_dump(data, allow_unicode=True, default_flow_style=False, sort_keys=True)
