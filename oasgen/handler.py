"""Request dispatch for the API documentation service.

Maps a request context to one of:
- A redirect to the interactive viewer (``?pretty``)
- A JSON Schema for one endpoint (``/api/oas/<endpoint>``)
- The full OpenAPI document
"""

from __future__ import annotations

import json
import logging
import traceback
from dataclasses import dataclass, field
from typing import Any, Protocol

from .discovery.fetcher import FetchedBody
from .discovery.metadata import MetadataSource
from .openapi.assembler import DocumentAssembler
from .openapi.extractor import extract_json_schema
from .utils.config import DEFAULT_CONFIG

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json; charset=utf-8"
TEXT_CONTENT_TYPE = "text/plain; charset=utf-8"


class Fetcher(Protocol):
    """Collaborator that performs outbound requests."""

    async def fetch(self, url: str) -> FetchedBody: ...

    async def fetch_metadata(self, hostname: str) -> MetadataSource: ...


@dataclass(frozen=True)
class RequestContext:
    """The parts of an incoming request the handler looks at."""

    hostname: str
    path_segments: tuple[str, ...] = ()
    query: dict[str, str] = field(default_factory=dict)

    @property
    def target_route(self) -> str | None:
        """Endpoint name requested as the third path segment, if any."""
        if len(self.path_segments) > 2 and self.path_segments[2]:
            return self.path_segments[2]
        return None


@dataclass(frozen=True)
class HandlerResponse:
    """Status, headers and body to send back."""

    status: int
    headers: dict[str, str] = field(default_factory=dict)
    body: str = ""


def json_response(data: Any, indent: int = 2) -> HandlerResponse:
    """Pretty-printed JSON response."""
    return HandlerResponse(
        status=200,
        headers={"content-type": JSON_CONTENT_TYPE},
        body=json.dumps(data, indent=indent, ensure_ascii=False),
    )


class RequestHandler:
    """Serves generated documents for a host."""

    def __init__(
        self,
        fetcher: Fetcher,
        config: dict[str, Any] | None = None,
        assembler: DocumentAssembler | None = None,
    ) -> None:
        self.fetcher = fetcher
        self.config = config or DEFAULT_CONFIG
        self.assembler = assembler or DocumentAssembler(self.config)

    def viewer_location(self, hostname: str) -> str:
        """URL of the interactive viewer for a host's document."""
        return self.config.get("viewer_url", DEFAULT_CONFIG["viewer_url"]).format(hostname=hostname)

    async def handle(self, context: RequestContext) -> HandlerResponse:
        """Handle one request; unhandled errors become a 500 with the traceback."""
        try:
            return await self._dispatch(context)
        except Exception:
            logger.exception("Failed to generate API document for %s", context.hostname)
            return HandlerResponse(
                status=500,
                headers={"content-type": TEXT_CONTENT_TYPE},
                body=traceback.format_exc(),
            )

    async def _dispatch(self, context: RequestContext) -> HandlerResponse:
        if "pretty" in context.query:
            return HandlerResponse(
                status=302,
                headers={"location": self.viewer_location(context.hostname)},
            )

        metadata = await self.fetcher.fetch_metadata(context.hostname)
        document = await self.assembler.assemble_metadata(metadata, self.fetcher.fetch)
        indent = self.config.get("output", {}).get("indent", 2)

        target = context.target_route
        if target is None:
            return json_response(document.to_dict(), indent=indent)

        schema = extract_json_schema(document, target, context.hostname)
        if schema is None:
            logger.info("No operation for endpoint %s on %s", target, context.hostname)
            return HandlerResponse(status=404, headers={"content-type": TEXT_CONTENT_TYPE})
        return json_response(schema, indent=indent)
