"""Route and schema discovery for example-driven API documents.

Compiles endpoint templates, resolves example URLs to endpoints and infers
response schemas from live example bodies:
- Route template compilation and matching
- Single-sample schema inference
- Async fetching of example bodies and API metadata
"""

from .errors import (
    BodyDecodeError,
    ExampleFetchError,
    InvalidTemplateError,
    MetadataError,
    OasgenError,
    UnmatchedExampleError,
)
from .fetcher import ExampleFetcher, FetchedBody
from .metadata import ExampleRef, MetadataSource, load_metadata_file
from .route_compiler import CompiledRoute, RouteTemplate, compile_route, compile_routes, normalize_path
from .route_resolver import match_params, resolve_route
from .schema_inferrer import SchemaInferrer, SchemaNode

__all__ = [
    "BodyDecodeError",
    "CompiledRoute",
    "ExampleFetchError",
    "ExampleFetcher",
    "ExampleRef",
    "FetchedBody",
    "InvalidTemplateError",
    "MetadataError",
    "MetadataSource",
    "OasgenError",
    "RouteTemplate",
    "SchemaInferrer",
    "SchemaNode",
    "UnmatchedExampleError",
    "compile_route",
    "compile_routes",
    "load_metadata_file",
    "match_params",
    "normalize_path",
    "resolve_route",
]
