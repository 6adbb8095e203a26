"""JSON codec."""

import json
from typing import Any

from hotconf.codecs.base import BaseCodec


class JsonCodec(BaseCodec):
    name = "json"
    errors = (ValueError,)

    def _loads(self, text: str) -> Any:
        return json.loads(text)

    def _dumps(self, data: Any) -> str:
        return json.dumps(data, ensure_ascii=False, sort_keys=True, indent=2) + "\n"
