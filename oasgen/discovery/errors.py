"""Exception types raised while generating API documents."""


class OasgenError(Exception):
    """Base class for all oasgen errors."""


class InvalidTemplateError(OasgenError, ValueError):
    """A route template could not be compiled."""

    def __init__(self, template: str, message: str, position: int | None = None) -> None:
        self.template = template
        self.position = position
        where = f" at {position}" if position is not None else ""
        super().__init__(f"Invalid route template {template!r}: {message}{where}")


class BodyDecodeError(OasgenError, ValueError):
    """A body declared as JSON could not be parsed."""

    def __init__(self, message: str, url: str | None = None) -> None:
        self.url = url
        prefix = f"{url}: " if url else ""
        super().__init__(f"{prefix}{message}")


class UnmatchedExampleError(OasgenError, LookupError):
    """An example URL matched none of the declared routes (strict mode)."""

    def __init__(self, example_name: str, url: str) -> None:
        self.example_name = example_name
        self.url = url
        super().__init__(f"No endpoint found for example {example_name!r} ({url})")


class ExampleFetchError(OasgenError):
    """Fetching an example or metadata document failed."""

    def __init__(self, url: str, message: str, status_code: int | None = None) -> None:
        self.url = url
        self.status_code = status_code
        super().__init__(f"Failed to fetch {url}: {message}")


class MetadataError(OasgenError, ValueError):
    """The metadata source is missing required fields."""
