"""API metadata: declared endpoints and example URLs."""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .errors import MetadataError
from .route_compiler import RouteTemplate


@dataclass(frozen=True)
class ExampleRef:
    """A named example request URL."""

    name: str
    url: str


@dataclass(frozen=True)
class MetadataSource:
    """Endpoints and examples published by an API at ``/api``."""

    name: str
    url: str
    description: str = ""
    endpoints: tuple[RouteTemplate, ...] = ()
    examples: tuple[ExampleRef, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MetadataSource":
        """Build from the ``{api: {...}, examples: {...}}`` document shape.

        Raises:
            MetadataError: If ``api`` is missing or endpoints/examples are not mappings
        """
        if not isinstance(data, dict):
            raise MetadataError("Metadata must be a mapping")

        api = data.get("api")
        if not isinstance(api, dict):
            raise MetadataError("Metadata is missing the 'api' section")

        endpoints = api.get("endpoints") or {}
        examples = data.get("examples") or {}
        if not isinstance(endpoints, dict):
            raise MetadataError("'api.endpoints' must be a mapping of name to URL template")
        if not isinstance(examples, dict):
            raise MetadataError("'examples' must be a mapping of name to URL")

        return cls(
            name=str(api.get("name", "")),
            url=str(api.get("url", "")),
            description=str(api.get("description", "")),
            endpoints=tuple(RouteTemplate(name, str(url)) for name, url in endpoints.items()),
            examples=tuple(ExampleRef(name, str(url)) for name, url in examples.items()),
        )


def load_metadata_file(path: Path) -> MetadataSource:
    """Load a metadata document from a YAML or JSON file."""
    with path.open(encoding="utf-8") as f:
        if path.suffix == ".json":
            data = json.load(f)
        else:
            data = yaml.safe_load(f)
    return MetadataSource.from_dict(data)
