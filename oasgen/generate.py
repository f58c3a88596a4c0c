#!/usr/bin/env python3
"""Generate an OpenAPI document from an API's endpoints and live examples.

Reads the API metadata (endpoint templates and example URLs), fetches every
example, infers response schemas and writes the assembled document.

Usage:
    python -m oasgen.generate --host templates.do              # Fetch metadata from host
    python -m oasgen.generate --metadata api.yaml              # Metadata from file
    python -m oasgen.generate --host templates.do --route getCategory
    python -m oasgen.generate --metadata api.yaml --validate -o openapi.yaml
"""

import argparse
import asyncio
import json
import logging
import re
import sys
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import yaml
from openapi_spec_validator import validate
from openapi_spec_validator.validation.exceptions import OpenAPIValidationError
from rich.console import Console
from rich.table import Table

from .discovery import ExampleFetcher, MetadataSource, OasgenError, load_metadata_file
from .openapi import ApiDocument, DocumentAssembler, extract_json_schema
from .utils.config import DEFAULT_CONFIG_PATH, load_config

console = Console(stderr=True)

PATH_PARAM = re.compile(r":([A-Za-z0-9_]+)")


async def run_generation(
    config: dict[str, Any],
    metadata_path: Path | None = None,
    host: str | None = None,
) -> tuple[MetadataSource, ApiDocument]:
    """Load metadata and assemble the document.

    Args:
        config: oasgen configuration
        metadata_path: Local metadata file (takes precedence over host)
        host: Hostname whose ``/api`` metadata should be fetched

    Returns:
        Tuple of (metadata, document)
    """
    async with ExampleFetcher(config) as fetcher:
        if metadata_path is not None:
            metadata = load_metadata_file(metadata_path)
        else:
            metadata = await fetcher.fetch_metadata(host or "")

        assembler = DocumentAssembler(config)
        document = await assembler.assemble_metadata(metadata, fetcher.fetch)

    return metadata, document


def templated_paths(document: dict[str, Any]) -> dict[str, Any]:
    """Copy of a document whose path keys use OpenAPI ``{name}`` templates.

    Emitted keys keep the ``:name`` form of the route templates, which
    OpenAPI validators do not resolve against path parameters.
    """
    paths = {
        PATH_PARAM.sub(r"{\1}", path): item for path, item in document.get("paths", {}).items()
    }
    return {**document, "paths": paths}


def validate_document(document: dict[str, Any]) -> tuple[bool, str | None]:
    """Validate an OpenAPI document."""
    try:
        validate(templated_paths(document))
        return True, None
    except OpenAPIValidationError as e:
        return False, str(e)
    except Exception as e:
        return False, f"Validation error: {e}"


def render(data: dict[str, Any], fmt: str, indent: int) -> str:
    """Serialize output as JSON or YAML, preserving key order."""
    if fmt == "yaml":
        return yaml.safe_dump(data, sort_keys=False, allow_unicode=True)
    return json.dumps(data, indent=indent, ensure_ascii=False) + "\n"


def print_summary(metadata: MetadataSource, document: ApiDocument) -> None:
    """Print generation summary to console."""
    table = Table(title="Generation Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("API", metadata.name)
    table.add_row("Server", document.server_url)
    table.add_row("Endpoints Declared", str(len(metadata.endpoints)))
    table.add_row("Examples Declared", str(len(metadata.examples)))
    table.add_row("Paths Generated", str(len(document.paths)))

    console.print(table)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Generate an OpenAPI document from live API examples",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--metadata",
        "-m",
        type=Path,
        help="Metadata file (YAML or JSON) with api.endpoints and examples",
    )
    source.add_argument(
        "--host",
        type=str,
        help="Hostname to fetch https://<host>/api metadata from",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help="Path to oasgen configuration",
    )
    parser.add_argument(
        "--route",
        "-r",
        type=str,
        help="Emit the JSON Schema of a single endpoint instead of the document",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail when an example matches no endpoint",
    )
    parser.add_argument(
        "--output",
        "-o",
        type=Path,
        help="Output file (default: stdout)",
    )
    parser.add_argument(
        "--format",
        choices=["json", "yaml"],
        help="Output format (default: from config)",
    )
    parser.add_argument(
        "--validate",
        action="store_true",
        help="Validate the generated document with openapi-spec-validator",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    config = load_config(args.config)
    if args.strict:
        config["assembly"]["strict"] = True

    output_config = config.get("output", {})
    fmt = args.format or output_config.get("format", "json")
    indent = output_config.get("indent", 2)

    console.print("[bold blue]oasgen[/bold blue]")
    console.print(f"  Source: {args.metadata or args.host}")
    console.print(f"  Config: {args.config}")

    try:
        metadata, document = asyncio.run(
            run_generation(config, metadata_path=args.metadata, host=args.host),
        )
    except (OasgenError, OSError, yaml.YAMLError, json.JSONDecodeError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    if args.route:
        hostname = args.host or urlparse(metadata.url).hostname or metadata.name
        output = extract_json_schema(document, args.route, hostname)
        if output is None:
            console.print(f"[red]No example operation for endpoint {args.route!r}[/red]")
            return 2
    else:
        output = document.to_dict()

    exit_code = 0
    if args.validate and not args.route:
        valid, error = validate_document(output)
        if valid:
            console.print("[green]Document is valid OpenAPI[/green]")
        else:
            console.print(f"[red]Validation failed: {error}[/red]")
            exit_code = 1

    text = render(output, fmt, indent)
    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(text)
        console.print(f"  Written: {args.output}")
    else:
        sys.stdout.write(text)

    print_summary(metadata, document)
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
