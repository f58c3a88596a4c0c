"""JSON Schema inference from example responses.

Infers a structural schema from a single response body:
- Type detection (string, number, boolean, null, object, array)
- Object properties in the order they appear in the body
- Array items from the first element only
"""

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from .errors import BodyDecodeError

logger = logging.getLogger(__name__)

UNKNOWN = "unknown"


@dataclass(frozen=True)
class SchemaNode:
    """Inferred schema for a value."""

    type: str  # object, array, string, number, boolean, null, unknown
    properties: Mapping[str, "SchemaNode"] = field(default_factory=dict)
    items: "SchemaNode | None" = None  # For arrays

    def __post_init__(self) -> None:
        object.__setattr__(self, "properties", MappingProxyType(dict(self.properties)))

    def to_json_schema(self) -> dict[str, Any]:
        """Convert to JSON Schema format."""
        schema: dict[str, Any] = {"type": self.type}

        if self.type == "object":
            schema["properties"] = {
                name: prop.to_json_schema() for name, prop in self.properties.items()
            }

        if self.type == "array" and self.items is not None:
            schema["items"] = self.items.to_json_schema()

        return schema


def is_json_content_type(content_type: str | None) -> bool:
    """Check whether a media type carries JSON (``application/json``, ``+json``)."""
    if not content_type:
        return False
    return "json" in content_type.split(";")[0].lower()


class SchemaInferrer:
    """Infer a schema tree from decoded or raw response data.

    Inference is single-sample: no unions, no optional-field detection and
    no narrowing to ranges or enums.
    """

    def infer(self, data: Any, content_type: str | None = None, url: str | None = None) -> SchemaNode:
        """Infer schema from data.

        Args:
            data: Decoded JSON value, or raw text/bytes of the body
            content_type: Media type of the body; JSON types are decoded first
            url: Source URL, used only for error messages

        Returns:
            Inferred schema

        Raises:
            BodyDecodeError: If a JSON body cannot be parsed
        """
        if isinstance(data, bytes):
            data = data.decode("utf-8", errors="replace")

        if is_json_content_type(content_type) and isinstance(data, str):
            try:
                data = json.loads(data)
            except json.JSONDecodeError as e:
                raise BodyDecodeError(f"Invalid JSON body: {e}", url=url) from e

        return self._infer_value(data)

    def _infer_value(self, value: Any) -> SchemaNode:
        """Infer schema for a single value."""
        if value is None:
            return SchemaNode(type="null")

        # bool is a subclass of int
        if isinstance(value, bool):
            return SchemaNode(type="boolean")

        if isinstance(value, (int, float)):
            return SchemaNode(type="number")

        if isinstance(value, str):
            return SchemaNode(type="string")

        if isinstance(value, (list, tuple)):
            return self._infer_array(value)

        if isinstance(value, dict):
            return self._infer_object(value)

        logger.debug("Unrecognised value type %s", type(value).__name__)
        return SchemaNode(type=UNKNOWN)

    def _infer_array(self, value: list | tuple) -> SchemaNode:
        """Infer schema for an array from its first element."""
        if not value:
            return SchemaNode(type="array", items=SchemaNode(type=UNKNOWN))
        return SchemaNode(type="array", items=self._infer_value(value[0]))

    def _infer_object(self, value: dict) -> SchemaNode:
        """Infer schema for an object value."""
        return SchemaNode(
            type="object",
            properties={str(key): self._infer_value(val) for key, val in value.items()},
        )
