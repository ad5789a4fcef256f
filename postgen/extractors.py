"""Front matter extraction for Postgen.

A post starts with an optional YAML block fenced by ``---`` lines:

    ---
    heading: Hello
    date: 1-1-2023
    ---
    # Hi

Key functions:
- extract_frontmatter: Split a document into its metadata mapping and body.
- normalize_metadata: Coerce scalar YAML values to strings.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import date, datetime
from pathlib import Path
from typing import Any

import yaml

from .errors import MalformedMetadataError

FRONTMATTER_OPEN_RE = re.compile(r"^---[ \t]*\r?\n")
FRONTMATTER_CLOSE_RE = re.compile(r"^---[ \t]*(?:\r?\n|\Z)", re.MULTILINE)


def extract_frontmatter(
    text: str, path: Path | None = None
) -> tuple[dict[str, Any], str]:
    """Extract YAML front matter from content.

    Args:
        text: Raw file content.
        path: Source path, only used for error reporting.

    Returns:
        Tuple of (front matter dict, remaining body).

    Raises:
        MalformedMetadataError: If the block is not closed, is not valid YAML,
            or does not hold a mapping.
    """
    if text.startswith("\ufeff"):
        text = text[1:]
    opening = FRONTMATTER_OPEN_RE.match(text)
    if not opening:
        return {}, text
    closing = FRONTMATTER_CLOSE_RE.search(text, opening.end())
    if not closing:
        raise MalformedMetadataError(path, "Front matter block is missing its closing '---'")
    block = text[opening.end() : closing.start()]
    try:
        data = yaml.safe_load(block)
    except yaml.YAMLError as exc:
        raise MalformedMetadataError(path, f"Invalid front matter: {exc}", exc) from exc
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise MalformedMetadataError(
            path, f"Front matter must be a mapping, got {type(data).__name__}"
        )
    return normalize_metadata(data), text[closing.end() :]


def normalize_metadata(data: Mapping[Any, Any]) -> dict[str, Any]:
    """Coerce keys and scalar values to strings.

    YAML turns ``date: 2023-01-01`` into a ``date`` and ``draft: yes`` into a
    bool; templates expect the text the author wrote, so scalars become
    strings. Lists and mappings are kept as-is, ``null`` becomes ``""``.
    """
    result: dict[str, Any] = {}
    for key, value in data.items():
        result[str(key)] = _normalize_value(value)
    return result


def _normalize_value(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, (list, tuple, dict)):
        return value
    if isinstance(value, datetime):
        return value.isoformat(sep=" ")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
