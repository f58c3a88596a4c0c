"""OpenAPI document model.

Immutable value objects produced by the assembler and rendered to an
OpenAPI 3.0 dictionary by ``to_dict``.
"""

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from ..discovery.schema_inferrer import SchemaNode


@dataclass(frozen=True)
class Operation:
    """A GET operation generated from one example response."""

    route_name: str
    path: str
    summary: str
    description: str
    tags: tuple[str, ...]
    parameter_names: tuple[str, ...]
    content_type: str
    schema: SchemaNode

    def parameters(self) -> list[dict[str, Any]]:
        """Path parameters in template order."""
        return [
            {
                "name": name,
                "in": "path",
                "required": True,
                "description": f"Example value for the {name} parameter",
                "schema": {"type": "string"},
            }
            for name in self.parameter_names
        ]

    def to_dict(self) -> dict[str, Any]:
        """Render as an OpenAPI path item."""
        return {
            "get": {
                "summary": self.summary,
                "description": self.description,
                "tags": list(self.tags),
                "parameters": self.parameters(),
                "responses": {
                    "200": {
                        "description": "Example response",
                        "content": {
                            self.content_type: {
                                "schema": self.schema.to_json_schema(),
                            },
                        },
                    },
                },
            },
        }


@dataclass(frozen=True)
class ApiDocument:
    """An assembled OpenAPI document."""

    title: str
    version: str
    description: str
    server_url: str
    contact: Mapping[str, str] = field(default_factory=dict)
    server_description: str = "Production"
    openapi: str = "3.0.0"
    tags: tuple[Mapping[str, Any], ...] = ()
    paths: Mapping[str, Operation] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Freeze the mappings handed in by the assembler
        object.__setattr__(self, "contact", MappingProxyType(dict(self.contact)))
        object.__setattr__(self, "paths", MappingProxyType(dict(self.paths)))

    def operation_for_route(self, route_name: str) -> Operation | None:
        """Find the operation generated for a route name."""
        return next((op for op in self.paths.values() if op.route_name == route_name), None)

    def to_dict(self) -> dict[str, Any]:
        """Render as an OpenAPI 3.0 dictionary."""
        return {
            "openapi": self.openapi,
            "info": {
                "title": self.title,
                "version": self.version,
                "description": self.description,
                "contact": dict(self.contact),
            },
            "servers": [
                {
                    "url": self.server_url,
                    "description": self.server_description,
                },
            ],
            "tags": [dict(tag) for tag in self.tags],
            "paths": {path: op.to_dict() for path, op in self.paths.items()},
        }

    def to_json(self, indent: int = 2) -> str:
        """Serialize to JSON, preserving document order."""
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)
