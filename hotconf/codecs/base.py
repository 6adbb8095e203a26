"""
Abstract base for document codecs: decode(bytes), encode(value), zero().

- Optionally binds documents to a Pydantic model; without a model the decoded mapping is returned as is.
- Malformed documents and model mismatches raise ParseError.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Generic, TypeVar

import pydantic
from pydantic import BaseModel

from hotconf.errors import ParseError

ConfigT = TypeVar("ConfigT")


class BaseCodec(ABC, Generic[ConfigT]):
    """Converts between raw file bytes and config values of one document format."""

    name = "base"
    errors: tuple[type[Exception], ...] = (ValueError,)

    def __init__(self, model: type[BaseModel] | None = None):
        self.model = model

    @abstractmethod
    def _loads(self, text: str) -> Any:
        """Parse document text into plain Python data."""
        ...

    @abstractmethod
    def _dumps(self, data: Any) -> str:
        """Serialize plain Python data into document text."""
        ...

    def decode(self, data: bytes) -> ConfigT:
        """
        Decode raw bytes into a config value.

        Raises:
            ParseError: Undecodable text, malformed document, or model validation failure.
        """
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ParseError(f"config is not valid UTF-8: {e}") from e
        try:
            raw = self._loads(text)
        except self.errors as e:
            raise ParseError(f"could not parse {self.name} config: {e}") from e
        return self._build({} if raw is None else raw)

    def encode(self, value: ConfigT) -> bytes:
        """
        Encode a config value back to document bytes.

        Raises:
            ParseError: If the value cannot be represented in this format.
        """
        data: Any = value.model_dump(mode="json") if isinstance(value, BaseModel) else value
        try:
            return self._dumps(data).encode("utf-8")
        except (TypeError, *self.errors) as e:
            raise ParseError(f"could not encode {self.name} config: {e}") from e

    def zero(self) -> ConfigT:
        """
        The value used when no file is available: the model built from an empty mapping.

        Raises:
            ParseError: If the bound model has required fields without defaults.
        """
        return self._build({})

    def _build(self, raw: Any) -> ConfigT:
        if self.model is None:
            return raw
        if not isinstance(raw, dict):
            raise ParseError(f"top-level {self.name} must be a mapping, got: {type(raw).__name__}")
        try:
            return self.model.model_validate(raw)  # type: ignore[return-value]
        except pydantic.ValidationError as e:
            raise ParseError(f"config does not match {self.model.__name__}: {e}") from e
