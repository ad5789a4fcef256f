"""Content parsing for Postgen.

This module turns the raw text of a post into a ParsedDocument and derives
the PostSummary records the index page is built from.

Key classes:
- ParsedDocument: Front matter fields plus the rendered HTML body.
- PostSummary: Heading, date and link of one published post.
- ContentParser: Splits front matter from the body and renders the body.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

from .extractors import extract_frontmatter
from .renderers import MarkdownRenderer
from .utils import post_href, titleize


@dataclass(frozen=True)
class ParsedDocument:
    """A parsed post.

    Attributes:
        metadata: Front matter fields, read-only.
        content: Rendered HTML body.
    """

    metadata: Mapping[str, Any] = field(default_factory=dict)
    content: str = ""

    def __post_init__(self):
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    def context(self) -> dict[str, Any]:
        """Return the template context for this document.

        ``content`` always refers to the rendered body, even when the front
        matter defines a field of the same name.
        """
        return {**self.metadata, "content": self.content}


@dataclass(frozen=True)
class PostSummary:
    """Index entry for one post."""

    heading: str
    date: str
    href: str

    @classmethod
    def from_document(cls, document: ParsedDocument, rel_path: Path) -> PostSummary:
        """Derive a summary from a parsed post.

        Args:
            document: The parsed post.
            rel_path: Path of the source file relative to the posts directory.
        """
        heading = str(document.metadata.get("heading") or "")
        if not heading:
            name = rel_path.parent.name if rel_path.parent != Path(".") else rel_path.stem
            heading = titleize(name)
        return cls(
            heading=heading,
            date=str(document.metadata.get("date") or ""),
            href=post_href(rel_path),
        )

    def as_dict(self) -> dict[str, str]:
        return {"heading": self.heading, "date": self.date, "href": self.href}


class ContentParser:
    """Parses post source text into ParsedDocument objects.

    Attributes:
        renderer: Markdown renderer used for the body.
    """

    def __init__(self, renderer: MarkdownRenderer | None = None):
        self.renderer = renderer or MarkdownRenderer()

    def parse(self, text: str, path: Path | None = None) -> ParsedDocument:
        """Parse a post.

        Args:
            text: Raw document text.
            path: Source path, only used for error reporting.

        Returns:
            ParsedDocument with metadata and rendered content.

        Raises:
            MalformedMetadataError: If the front matter block is malformed.
        """
        metadata, body = extract_frontmatter(text, path)
        return ParsedDocument(metadata=metadata, content=self.renderer.render(body))
