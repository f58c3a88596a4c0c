"""Standalone JSON Schema for a single route of an assembled document."""

from typing import Any

from .document import ApiDocument

JSON_SCHEMA_DRAFT = "http://json-schema.org/draft-07/schema#"


def extract_json_schema(
    document: ApiDocument,
    route_name: str,
    hostname: str,
) -> dict[str, Any] | None:
    """Build a draft-07 JSON Schema for one route's example response.

    Args:
        document: Assembled document
        route_name: Endpoint name as declared in the metadata
        hostname: Host the schema is published under (used for ``$id``)

    Returns:
        The schema, or None when the document has no operation for the route
    """
    operation = document.operation_for_route(route_name)
    if operation is None:
        return None

    return {
        "$schema": JSON_SCHEMA_DRAFT,
        "$id": f"https://{hostname}/{route_name}",
        "title": route_name,
        "description": f"Method {route_name} on {hostname}",
        **operation.schema.to_json_schema(),
    }
