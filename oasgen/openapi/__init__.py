"""OpenAPI document assembly and JSON Schema extraction."""

from .assembler import DocumentAssembler
from .document import ApiDocument, Operation
from .extractor import JSON_SCHEMA_DRAFT, extract_json_schema

__all__ = [
    "JSON_SCHEMA_DRAFT",
    "ApiDocument",
    "DocumentAssembler",
    "Operation",
    "extract_json_schema",
]
