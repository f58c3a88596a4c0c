"""Tag generation for example operations.

Example names are camelCase identifiers; tags are their Title Case form.
"""

import re
from typing import Any

EXAMPLES_TAG = "Examples"
EXAMPLES_TAG_DESCRIPTION = "Example responses for the API endpoints"

_CAPITAL = re.compile(r"([A-Z])")


def title_case(name: str) -> str:
    """Convert a camelCase name to Title Case.

    Every capital letter after the first character gets a leading space,
    then the first character is upper-cased::

        "listItems" -> "List Items"
        "ListItems" -> "List Items"
        "getURL"    -> "Get U R L"
    """
    spaced = name[:1] + _CAPITAL.sub(r" \1", name[1:])
    return spaced[:1].upper() + spaced[1:]


class TagGenerator:
    """Builds the top-level tag list of an example-driven document."""

    def __init__(self) -> None:
        self.tags: list[dict[str, Any]] = [
            {"name": EXAMPLES_TAG, "description": EXAMPLES_TAG_DESCRIPTION},
        ]

    def add_example(self, example_name: str) -> str:
        """Register the tag for an example and return its title."""
        title = title_case(example_name)
        self.tags.append({"name": title})
        return title
