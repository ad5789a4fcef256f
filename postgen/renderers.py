"""Markdown rendering for Postgen.

Post bodies are converted to HTML with mistune. Fenced code blocks that name
a language are highlighted with Pygments.

Key classes:
- MarkdownConfig: Immutable renderer settings, passed in at construction.
- MarkdownRenderer: Renders Markdown text to an HTML fragment.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import mistune
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

DEFAULT_PLUGINS = ("strikethrough", "footnotes", "table", "url")


@dataclass(frozen=True)
class MarkdownConfig:
    """Settings for the Markdown renderer.

    Attributes:
        highlight: Highlight fenced code blocks with Pygments.
        plugins: Names of mistune plugins to enable.
        css_class: CSS class of the wrapper div Pygments emits.
    """

    highlight: bool = True
    plugins: tuple[str, ...] = DEFAULT_PLUGINS
    css_class: str = "highlight"

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> MarkdownConfig:
        """Build a config from the ``markdown`` section of postgen.yaml."""
        if not isinstance(data, Mapping):
            return cls()
        plugins = data.get("plugins", DEFAULT_PLUGINS)
        if isinstance(plugins, str):
            plugins = [plugins]
        return cls(
            highlight=bool(data.get("highlight", True)),
            plugins=tuple(str(p) for p in plugins or ()),
            css_class=str(data.get("css_class", "highlight")),
        )


class _HighlightRenderer(mistune.HTMLRenderer):
    """HTML renderer that runs fenced code through Pygments."""

    def __init__(self, config: MarkdownConfig):
        super().__init__(escape=False)
        self.config = config

    def block_code(self, code: str, info: str | None = None) -> str:
        """Render a code block with Pygments syntax highlighting.

        Args:
            code: The code content.
            info: Language identifier (e.g., 'python', 'javascript').

        Returns:
            HTML string with highlighted code.
        """
        language = info.split()[0] if info and info.strip() else None
        if language and self.config.highlight:
            try:
                lexer = get_lexer_by_name(language, stripall=True)
            except ClassNotFound:
                lexer = None
            if lexer is not None:
                formatter = HtmlFormatter(nowrap=False, cssclass=self.config.css_class)
                return highlight(code, lexer, formatter)
        escaped = mistune.escape(code)
        lang_class = f' class="language-{mistune.escape(language)}"' if language else ""
        return f"<pre><code{lang_class}>{escaped}</code></pre>\n"


class MarkdownRenderer:
    """Renders Markdown content to HTML.

    A fresh mistune parser is created per call so no renderer state leaks
    from one document into the next.
    """

    def __init__(self, config: MarkdownConfig | None = None):
        self.config = config or MarkdownConfig()

    def render(self, content: str) -> str:
        """Render Markdown content to HTML.

        Args:
            content: Markdown source content.

        Returns:
            Rendered HTML fragment.
        """
        markdown = mistune.create_markdown(
            renderer=_HighlightRenderer(self.config),
            plugins=list(self.config.plugins),
        )
        return markdown(content)
