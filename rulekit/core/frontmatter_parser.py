"""
Frontmatter parsing for content files.

Expected format:
---
name: php-reviewer
description: Reviews PHP code
tools: ["Read", "Grep", "Glob"]
---

# Body...

Only flat `key: value` lines are supported. Values are strings or inline
bracketed lists of strings. Anything else YAML allows (nesting, block lists,
anchors, block scalars, tags) is rejected rather than coerced.
"""

import json
import re

from rulekit.lib.typed_errors import FrontmatterError
from rulekit.models.content import FrontmatterValue

DELIMITER = "---"

_BLOCK_SCALAR = re.compile(r"^[|>][-+0-9]*$")
_QUOTES = ("'", '"')


def split_frontmatter(content: str) -> tuple[dict[str, FrontmatterValue], str]:
    """Split content into (metadata, body).

    Content that does not start with a `---` line has no frontmatter:
    the metadata is empty and the body is the whole content.
    """
    lines = content.splitlines(keepends=True)
    if not lines or lines[0].rstrip("\r\n") != DELIMITER:
        return {}, content

    closing = None
    for index in range(1, len(lines)):
        if lines[index].rstrip("\r\n") == DELIMITER:
            closing = index
            break

    if closing is None:
        raise FrontmatterError.malformed("Frontmatter block is never closed", line=1)

    metadata: dict[str, FrontmatterValue] = {}
    for index in range(1, closing):
        line_no = index + 1
        raw = lines[index].rstrip("\r\n")

        if not raw.strip():
            continue
        if raw[0] in (" ", "\t"):
            raise FrontmatterError.unsupported("indented line (nested mapping or block list)", line_no)

        line = raw.rstrip()
        if line.startswith("#"):
            continue
        if line == "...":
            raise FrontmatterError.unsupported("document end marker", line_no)
        if line == "-" or line.startswith("- "):
            raise FrontmatterError.unsupported("block list item", line_no)
        if ":" not in line:
            raise FrontmatterError.malformed("Expected 'key: value'", line=line_no)

        key, value = line.split(":", 1)
        key = _unquote(key.strip())
        if not key:
            raise FrontmatterError.malformed("Empty key", line=line_no)

        # Duplicate keys: last write wins
        metadata[key] = _parse_value(value.strip(), line_no)

    body = "".join(lines[closing + 1:])
    return metadata, body


def parse_frontmatter(content: str) -> dict[str, FrontmatterValue]:
    """Parse the frontmatter header of a content file.

    Returns {} when the content has no frontmatter. Raises FrontmatterError
    for an unclosed block, a malformed line, or an unsupported YAML feature.
    """
    metadata, _ = split_frontmatter(content)
    return metadata


def _parse_value(value: str, line_no: int) -> FrontmatterValue:
    if not value:
        return ""

    first = value[0]
    if first == "&":
        raise FrontmatterError.unsupported("anchor", line_no)
    if first == "*":
        raise FrontmatterError.unsupported("alias", line_no)
    if first == "!":
        raise FrontmatterError.unsupported("tag", line_no)
    if first == "{":
        raise FrontmatterError.unsupported("flow mapping", line_no)
    if _BLOCK_SCALAR.match(value):
        raise FrontmatterError.unsupported("block scalar", line_no)

    if first == "[" and value.endswith("]"):
        return _parse_list(value, line_no)

    return _unquote(value)


def _parse_list(value: str, line_no: int) -> list[str]:
    """Parse an inline list: JSON-style ["a", "b"] or bare [a, b]."""
    try:
        items = json.loads(value)
    except json.JSONDecodeError:
        items = None

    if isinstance(items, list):
        for item in items:
            if not isinstance(item, str):
                raise FrontmatterError.unsupported(
                    f"non-string list element {item!r}", line_no
                )
        return items

    inner = value[1:-1].strip()
    if not inner:
        return []

    result: list[str] = []
    for item in _split_list_items(inner, line_no):
        item = item.strip()
        if not item:
            continue
        if item[0] in ("[", "{"):
            raise FrontmatterError.unsupported("nested collection in list", line_no)
        result.append(_unquote(item))
    return result


def _split_list_items(inner: str, line_no: int) -> list[str]:
    """Split on commas that are not inside a quoted element."""
    items: list[str] = []
    current: list[str] = []
    quote = None

    for char in inner:
        if quote:
            current.append(char)
            if char == quote:
                quote = None
        elif char in _QUOTES and not "".join(current).strip():
            quote = char
            current.append(char)
        elif char == ",":
            items.append("".join(current))
            current = []
        else:
            current.append(char)

    if quote:
        raise FrontmatterError.malformed("Unterminated quote in list", line=line_no)
    items.append("".join(current))
    return items


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in _QUOTES:
        return value[1:-1]
    return value
