"""Template rendering for Postgen.

Pages and the index are rendered with Jinja2. Autoescaping is off so the
rendered Markdown body and front matter values are inserted verbatim, and
undefined names render as empty strings, including attribute and item
lookups on them such as ``{{ author.name }}``.

Key class:
- TemplateRenderer: Compiles one template string and renders contexts into it.

Key function:
- transform: Parse a Markdown document and render it into a template.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from jinja2 import ChainableUndefined, Environment

from .content import ContentParser, ParsedDocument, PostSummary

__all__ = ["TemplateRenderer", "transform"]


def _make_environment() -> Environment:
    return Environment(
        autoescape=False,
        undefined=ChainableUndefined,
        keep_trailing_newline=True,
    )


class TemplateRenderer:
    """Renders contexts into a single compiled template.

    Attributes:
        source: The template source text.
        env: Jinja2 environment the template was compiled in.
    """

    def __init__(self, source: str, env: Environment | None = None):
        """Compile the template.

        Args:
            source: Template text.
            env: Optional environment; a non-escaping one is created by default.

        Raises:
            jinja2.TemplateSyntaxError: If the template does not compile.
        """
        self.source = source
        self.env = env or _make_environment()
        self._template = self.env.from_string(source)

    def render(self, context: Mapping[str, Any]) -> str:
        """Render the template with a context.

        Args:
            context: Variables to make available in the template.

        Returns:
            Rendered string.
        """
        return self._template.render(dict(context))

    def render_document(self, document: ParsedDocument, refresh: bool = False) -> str:
        """Render a post page.

        The template sees every front matter field plus ``content`` and
        ``refresh``.
        """
        context = document.context()
        context["refresh"] = refresh
        return self.render(context)

    def render_index(self, posts: Iterable[PostSummary]) -> str:
        """Render the index page with ``posts`` as a list of plain dicts."""
        return self.render({"posts": [post.as_dict() for post in posts]})


def transform(
    markdown: str,
    template: str,
    dev: bool = False,
    parser: ContentParser | None = None,
) -> str:
    """Render a Markdown document into a page template.

    Args:
        markdown: Raw document text with optional front matter.
        template: Page template text.
        dev: Set the template's ``refresh`` flag.
        parser: Optional parser, a default one is used otherwise.

    Returns:
        The rendered page.
    """
    document = (parser or ContentParser()).parse(markdown)
    return TemplateRenderer(template).render_document(document, refresh=dev)
