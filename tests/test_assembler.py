"""Tests for DocumentAssembler.

Covers route resolution, schema inference and document layout, plus the
ordering, failure and concurrency behaviour of assembly.
"""

from __future__ import annotations

import asyncio
import copy
import json
from unittest.mock import AsyncMock

import pytest

from oasgen.discovery.errors import (
    BodyDecodeError,
    ExampleFetchError,
    InvalidTemplateError,
    UnmatchedExampleError,
)
from oasgen.discovery.fetcher import FetchedBody
from oasgen.discovery.metadata import ExampleRef, MetadataSource
from oasgen.discovery.route_compiler import RouteTemplate
from oasgen.openapi.assembler import DocumentAssembler
from oasgen.utils.config import DEFAULT_CONFIG

# ============================================================================
# Fixtures
# ============================================================================

TEMPLATES = [
    RouteTemplate("listCategories", "https://templates.do/api"),
    RouteTemplate("getCategory", "https://templates.do/:type"),
]


def json_body(data) -> FetchedBody:
    """FetchedBody carrying a JSON document."""
    return FetchedBody(content_type="application/json", body=json.dumps(data))


def fetch_from(bodies: dict[str, FetchedBody]):
    """Build a fetch coroutine serving canned bodies."""

    async def fetch(url: str) -> FetchedBody:
        return bodies[url]

    return fetch


@pytest.fixture
def config():
    """Mutable copy of the default configuration."""
    return copy.deepcopy(DEFAULT_CONFIG)


@pytest.fixture
def assembler(config):
    """Assembler using the default configuration."""
    return DocumentAssembler(config)


async def assemble_templates(assembler, examples, bodies, **kwargs):
    """Assemble the templates.do routes with canned bodies."""
    return await assembler.assemble(
        TEMPLATES,
        examples,
        fetch_from(bodies),
        title="API specification for templates.do",
        description="Cloudflare Worker Template",
        server_url="https://templates.do/api",
        **kwargs,
    )


# ============================================================================
# Document Layout
# ============================================================================


class TestDocumentLayout:
    """Test the generated OpenAPI document."""

    @pytest.mark.asyncio
    async def test_single_example(self, assembler) -> None:
        """Verify a resolved example produces a GET operation."""
        doc = await assemble_templates(
            assembler,
            [ExampleRef("listItems", "https://templates.do/worker")],
            {"https://templates.do/worker": json_body({"id": "1"})},
        )
        spec = doc.to_dict()

        assert list(spec["paths"]) == ["/:type"]
        operation = spec["paths"]["/:type"]["get"]
        assert operation["summary"] == "[Example] List Items"
        assert operation["description"] == "Example response for the getCategory endpoint"
        assert operation["tags"] == ["Examples"]
        assert operation["parameters"] == [
            {
                "name": "type",
                "in": "path",
                "required": True,
                "description": "Example value for the type parameter",
                "schema": {"type": "string"},
            },
        ]
        assert operation["responses"]["200"] == {
            "description": "Example response",
            "content": {
                "application/json": {
                    "schema": {
                        "type": "object",
                        "properties": {"id": {"type": "string"}},
                    },
                },
            },
        }

    @pytest.mark.asyncio
    async def test_document_metadata(self, assembler) -> None:
        """Verify info, servers and tags sections."""
        doc = await assemble_templates(
            assembler,
            [ExampleRef("listItems", "https://templates.do/worker")],
            {"https://templates.do/worker": json_body({"id": "1"})},
        )
        spec = doc.to_dict()

        assert spec["openapi"] == "3.0.0"
        assert spec["info"] == {
            "title": "API specification for templates.do",
            "version": "1.0.0",
            "description": "Cloudflare Worker Template",
            "contact": {
                "name": "Drivly support, bug reports, and feature requests",
                "email": "developers@driv.ly",
            },
        }
        assert spec["servers"] == [{"url": "https://templates.do/api", "description": "Production"}]
        assert spec["tags"] == [
            {"name": "Examples", "description": "Example responses for the API endpoints"},
            {"name": "List Items"},
        ]

    @pytest.mark.asyncio
    async def test_configured_contact_and_version(self, config) -> None:
        """Verify document settings come from configuration."""
        config["document"]["version"] = "2.1.0"
        config["document"]["contact"] = {"name": "API Team", "email": "api@example.com"}

        doc = await assemble_templates(DocumentAssembler(config), [], {})

        assert doc.to_dict()["info"]["version"] == "2.1.0"
        assert doc.to_dict()["info"]["contact"] == {"name": "API Team", "email": "api@example.com"}

    @pytest.mark.asyncio
    async def test_text_example(self, assembler) -> None:
        """Verify non-JSON examples are keyed by their media type."""
        doc = await assemble_templates(
            assembler,
            [ExampleRef("home", "https://templates.do/api")],
            {"https://templates.do/api": FetchedBody("text/html", "<h1>hi</h1>")},
        )

        content = doc.to_dict()["paths"]["/api"]["get"]["responses"]["200"]["content"]
        assert content == {"text/html": {"schema": {"type": "string"}}}
        assert doc.to_dict()["paths"]["/api"]["get"]["parameters"] == []

    @pytest.mark.asyncio
    async def test_empty_array_example(self, assembler) -> None:
        """Verify '[]' bodies give unknown items."""
        doc = await assemble_templates(
            assembler,
            [ExampleRef("listNothing", "https://templates.do/empty")],
            {"https://templates.do/empty": FetchedBody("application/json", "[]")},
        )

        schema = doc.paths["/:type"].schema.to_json_schema()
        assert schema == {"type": "array", "items": {"type": "unknown"}}

    @pytest.mark.asyncio
    async def test_no_examples(self, assembler) -> None:
        """Verify a document without examples has only the group tag."""
        doc = await assemble_templates(assembler, [], {})

        assert doc.to_dict()["paths"] == {}
        assert [t["name"] for t in doc.to_dict()["tags"]] == ["Examples"]

    @pytest.mark.asyncio
    async def test_document_is_read_only(self, assembler) -> None:
        """Verify assembled paths cannot be modified."""
        doc = await assemble_templates(assembler, [], {})

        with pytest.raises(TypeError):
            doc.paths["/new"] = None  # type: ignore[index]

    @pytest.mark.asyncio
    async def test_assemble_metadata(self, assembler) -> None:
        """Verify metadata sources supply title, description and server."""
        meta = MetadataSource(
            name="templates.do",
            url="https://templates.do/api",
            description="Cloudflare Worker Template",
            endpoints=tuple(TEMPLATES),
            examples=(ExampleRef("listItems", "https://templates.do/worker"),),
        )

        doc = await assembler.assemble_metadata(
            meta,
            fetch_from({"https://templates.do/worker": json_body({"id": "1"})}),
        )

        assert doc.title == "API specification for templates.do"
        assert doc.description == "Cloudflare Worker Template"
        assert doc.server_url == "https://templates.do/api"
        assert doc.operation_for_route("getCategory") is not None


# ============================================================================
# Ordering and Idempotence
# ============================================================================


class TestOrdering:
    """Test output order is declaration order."""

    @pytest.mark.asyncio
    async def test_idempotent(self, assembler) -> None:
        """Verify identical inputs give byte-identical documents."""
        examples = [
            ExampleRef("listItems", "https://templates.do/worker"),
            ExampleRef("home", "https://templates.do/api"),
        ]
        bodies = {
            "https://templates.do/worker": json_body({"b": 1, "a": [{"z": None}]}),
            "https://templates.do/api": json_body({"categories": ["worker"]}),
        }

        first = await assemble_templates(assembler, examples, bodies)
        second = await assemble_templates(assembler, examples, bodies)

        assert first.to_json() == second.to_json()

    @pytest.mark.asyncio
    async def test_order_independent_of_fetch_completion(self) -> None:
        """Verify slow early fetches do not reorder the document."""
        templates = [RouteTemplate(f"route{i}", f"https://x.do/r{i}") for i in range(4)]
        examples = [ExampleRef(f"example{i}", f"https://x.do/r{i}") for i in range(4)]

        async def fetch(url: str) -> FetchedBody:
            index = int(url[-1])
            await asyncio.sleep(0.01 * (4 - index))
            return json_body({"index": index})

        doc = await DocumentAssembler().assemble(templates, examples, fetch, title="x")

        assert list(doc.paths) == ["/r0", "/r1", "/r2", "/r3"]
        assert [t["name"] for t in doc.tags] == [
            "Examples",
            "Example0",
            "Example1",
            "Example2",
            "Example3",
        ]

    @pytest.mark.asyncio
    async def test_later_example_replaces_same_route(self, assembler) -> None:
        """Verify two examples of one route keep both tags and one path."""
        doc = await assemble_templates(
            assembler,
            [
                ExampleRef("getWorker", "https://templates.do/worker"),
                ExampleRef("home", "https://templates.do/api"),
                ExampleRef("getSite", "https://templates.do/site"),
            ],
            {
                "https://templates.do/worker": json_body({"worker": True}),
                "https://templates.do/api": json_body({"ok": True}),
                "https://templates.do/site": json_body({"site": "x"}),
            },
        )

        assert list(doc.paths) == ["/:type", "/api"]
        assert doc.paths["/:type"].summary == "[Example] Get Site"
        assert list(doc.paths["/:type"].schema.properties) == ["site"]
        assert [t["name"] for t in doc.tags] == ["Examples", "Get Worker", "Home", "Get Site"]

    @pytest.mark.asyncio
    async def test_concurrency_limit(self, config) -> None:
        """Verify at most max_concurrency fetches run at once."""
        config["fetch"]["max_concurrency"] = 2
        templates = [RouteTemplate("item", "https://x.do/items/:id")]
        examples = [ExampleRef(f"item{i}", f"https://x.do/items/{i}") for i in range(6)]
        in_flight = 0
        peak = 0

        async def fetch(url: str) -> FetchedBody:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return json_body({})

        await DocumentAssembler(config).assemble(templates, examples, fetch, title="x")

        assert peak == 2


# ============================================================================
# Failure Semantics
# ============================================================================


class TestFailures:
    """Test errors abort the whole assembly."""

    @pytest.mark.asyncio
    async def test_invalid_template_aborts_before_fetching(self, assembler) -> None:
        """Verify a malformed template fails with no fetches made."""
        fetch = AsyncMock()

        with pytest.raises(InvalidTemplateError):
            await assembler.assemble(
                [*TEMPLATES, RouteTemplate("broken", "https://templates.do/items/{id")],
                [ExampleRef("listItems", "https://templates.do/worker")],
                fetch,
                title="x",
            )

        fetch.assert_not_called()

    @pytest.mark.asyncio
    async def test_unmatched_example_skipped(self, assembler) -> None:
        """Verify lenient mode omits unmatched examples only."""
        doc = await assemble_templates(
            assembler,
            [
                ExampleRef("deepLink", "https://templates.do/a/b/c"),
                ExampleRef("listItems", "https://templates.do/worker"),
            ],
            {"https://templates.do/worker": json_body({"id": "1"})},
        )

        assert [t["name"] for t in doc.tags] == ["Examples", "List Items"]
        assert list(doc.paths) == ["/:type"]

    @pytest.mark.asyncio
    async def test_unmatched_example_strict(self, assembler) -> None:
        """Verify strict mode raises UnmatchedExampleError."""
        with pytest.raises(UnmatchedExampleError) as exc_info:
            await assemble_templates(
                assembler,
                [
                    ExampleRef("listItems", "https://templates.do/worker"),
                    ExampleRef("deepLink", "https://templates.do/a/b/c"),
                ],
                {"https://templates.do/worker": json_body({"id": "1"})},
                strict=True,
            )

        assert exc_info.value.example_name == "deepLink"
        assert exc_info.value.url == "https://templates.do/a/b/c"

    @pytest.mark.asyncio
    async def test_strict_from_config(self, config) -> None:
        """Verify the configured policy applies when not overridden."""
        config["assembly"]["strict"] = True

        with pytest.raises(UnmatchedExampleError):
            await assemble_templates(
                DocumentAssembler(config),
                [ExampleRef("deepLink", "https://templates.do/a/b/c")],
                {},
            )

    @pytest.mark.asyncio
    async def test_decode_error_propagates(self, assembler) -> None:
        """Verify an unparseable JSON body fails the assembly."""
        with pytest.raises(BodyDecodeError) as exc_info:
            await assemble_templates(
                assembler,
                [ExampleRef("listItems", "https://templates.do/worker")],
                {"https://templates.do/worker": FetchedBody("application/json", "{oops")},
            )

        assert exc_info.value.url == "https://templates.do/worker"

    @pytest.mark.asyncio
    async def test_fetch_error_propagates_unchanged(self, assembler) -> None:
        """Verify fetch errors reach the caller as raised."""
        error = ExampleFetchError("https://templates.do/worker", "boom")

        async def fetch(url: str) -> FetchedBody:
            raise error

        with pytest.raises(ExampleFetchError) as exc_info:
            await assembler.assemble(
                TEMPLATES,
                [ExampleRef("listItems", "https://templates.do/worker")],
                fetch,
                title="x",
            )

        assert exc_info.value is error

    @pytest.mark.asyncio
    async def test_failure_cancels_siblings(self, assembler) -> None:
        """Verify in-flight fetches are cancelled after a failure."""
        cancelled = asyncio.Event()

        async def fetch(url: str) -> FetchedBody:
            if url.endswith("/slow"):
                try:
                    await asyncio.sleep(10)
                except asyncio.CancelledError:
                    cancelled.set()
                    raise
            await asyncio.sleep(0)
            raise ExampleFetchError(url, "boom")

        with pytest.raises(ExampleFetchError):
            await assembler.assemble(
                TEMPLATES,
                [
                    ExampleRef("slow", "https://templates.do/slow"),
                    ExampleRef("broken", "https://templates.do/broken"),
                ],
                fetch,
                title="x",
            )

        assert cancelled.is_set()
