"""Assemble an OpenAPI document from endpoint templates and live examples.

Each example URL is resolved to the endpoint that owns it, its response is
fetched and its schema inferred. Fetches run concurrently but the document is
always built in declaration order, so identical inputs give identical output.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from ..discovery.errors import UnmatchedExampleError
from ..discovery.fetcher import FetchedBody
from ..discovery.metadata import ExampleRef, MetadataSource
from ..discovery.route_compiler import CompiledRoute, RouteTemplate, compile_routes
from ..discovery.route_resolver import resolve_route
from ..discovery.schema_inferrer import SchemaInferrer
from ..utils.config import DEFAULT_CONFIG
from ..utils.tag_generator import EXAMPLES_TAG, TagGenerator
from .document import ApiDocument, Operation

logger = logging.getLogger(__name__)

FetchFunc = Callable[[str], Awaitable[FetchedBody]]


class DocumentAssembler:
    """Builds ApiDocument instances.

    Usage::

        assembler = DocumentAssembler(config)
        async with ExampleFetcher(config) as fetcher:
            doc = await assembler.assemble_metadata(metadata, fetcher.fetch)
    """

    def __init__(
        self,
        config: dict[str, Any] | None = None,
        inferrer: SchemaInferrer | None = None,
    ) -> None:
        """Initialize the assembler.

        Args:
            config: Loaded oasgen configuration (defaults when omitted)
            inferrer: Schema inferrer to use for example bodies
        """
        self.config = config or DEFAULT_CONFIG
        self.inferrer = inferrer or SchemaInferrer()

    @property
    def strict(self) -> bool:
        """Whether unmatched examples fail the assembly."""
        return bool(self.config.get("assembly", {}).get("strict", False))

    @property
    def max_concurrency(self) -> int:
        """Upper bound on simultaneous example fetches."""
        return max(1, int(self.config.get("fetch", {}).get("max_concurrency", 10)))

    def resolve_examples(
        self,
        routes: Sequence[CompiledRoute],
        examples: Sequence[ExampleRef],
        strict: bool,
    ) -> list[tuple[ExampleRef, CompiledRoute]]:
        """Pair each example with its route, in declaration order.

        Raises:
            UnmatchedExampleError: If strict and an example matches no route
        """
        resolved: list[tuple[ExampleRef, CompiledRoute]] = []
        for example in examples:
            route = resolve_route(routes, example.url)
            if route is None:
                if strict:
                    raise UnmatchedExampleError(example.name, example.url)
                logger.warning("No endpoint found for %s (%s)", example.name, example.url)
                continue
            resolved.append((example, route))
        return resolved

    async def _build_operation(
        self,
        example: ExampleRef,
        route: CompiledRoute,
        title: str,
        fetch: FetchFunc,
        semaphore: asyncio.Semaphore,
    ) -> Operation:
        """Fetch one example and turn its body into an operation."""
        async with semaphore:
            fetched = await fetch(example.url)

        schema = self.inferrer.infer(fetched.body, fetched.content_type, url=example.url)
        logger.debug("Inferred %s schema for %s", schema.type, example.name)

        return Operation(
            route_name=route.name,
            path=route.path,
            summary=f"[Example] {title}",
            description=f"Example response for the {route.name} endpoint",
            tags=(EXAMPLES_TAG,),
            parameter_names=route.parameter_names,
            content_type=fetched.content_type,
            schema=schema,
        )

    async def assemble(
        self,
        route_templates: Sequence[RouteTemplate],
        examples: Sequence[ExampleRef],
        fetch: FetchFunc,
        *,
        title: str,
        description: str = "",
        server_url: str = "",
        strict: bool | None = None,
    ) -> ApiDocument:
        """Assemble a document.

        Args:
            route_templates: Declared endpoints, in order
            examples: Example URLs, in order
            fetch: Coroutine returning the FetchedBody of a URL
            title: Document title
            description: Document description
            server_url: Production server URL
            strict: Override of the configured unmatched-example policy

        Returns:
            The completed document

        Raises:
            InvalidTemplateError: If any endpoint template is malformed
            UnmatchedExampleError: In strict mode, for an unmatched example
            BodyDecodeError: If a JSON example body cannot be parsed
            ExampleFetchError: Or whatever ``fetch`` raises, unchanged
        """
        routes = compile_routes(route_templates)
        resolved = self.resolve_examples(routes, examples, self.strict if strict is None else strict)

        tag_generator = TagGenerator()
        tag_titles = [tag_generator.add_example(example.name) for example, _ in resolved]

        semaphore = asyncio.Semaphore(self.max_concurrency)
        tasks = [
            asyncio.create_task(self._build_operation(example, route, tag, fetch, semaphore))
            for (example, route), tag in zip(resolved, tag_titles, strict=True)
        ]

        try:
            operations = await asyncio.gather(*tasks)
        except BaseException:
            # Abort on the first failure; siblings are not needed any more
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        paths: dict[str, Operation] = {}
        for operation in operations:
            # A later example for the same route replaces the earlier one
            paths[operation.path] = operation

        logger.info(
            "Assembled %d paths from %d of %d examples",
            len(paths),
            len(resolved),
            len(examples),
        )

        document_config = self.config.get("document", {})
        return ApiDocument(
            title=title,
            version=document_config.get("version", "1.0.0"),
            description=description,
            server_url=server_url,
            contact=document_config.get("contact", {}),
            server_description=document_config.get("server_description", "Production"),
            openapi=document_config.get("openapi", "3.0.0"),
            tags=tuple(tag_generator.tags),
            paths=paths,
        )

    async def assemble_metadata(
        self,
        metadata: MetadataSource,
        fetch: FetchFunc,
        strict: bool | None = None,
    ) -> ApiDocument:
        """Assemble a document from a metadata source."""
        return await self.assemble(
            metadata.endpoints,
            metadata.examples,
            fetch,
            title=f"API specification for {metadata.name}",
            description=metadata.description,
            server_url=metadata.url,
            strict=strict,
        )
