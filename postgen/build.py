"""Site building functionality for Postgen.

This module contains the build pipeline that turns a project directory into a
static site:

1. Clean the output directory (optional).
2. Copy ``public/`` into the output root.
3. Copy ``posts/`` into ``<output>/posts/``.
4. Render every copied Markdown file to a sibling HTML file and remove the
   Markdown copy. Files are processed concurrently.
5. Render ``public/index.html`` with the collected post summaries and write
   it to ``<output>/index.html`` and ``<output>/posts/index.html``.

The first failure aborts the build. Output written before the failure is
left in place.

Key functions:
- build: Async pipeline.
- build_site: Synchronous wrapper around build.
- load_config: Loads configuration from postgen.yaml.

Running ``python -m postgen.build`` performs a cleaned build of the current
working directory.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from jinja2 import TemplateSyntaxError

from .content import ContentParser, PostSummary
from .errors import BuildError, IOFailureError
from .renderers import MarkdownConfig, MarkdownRenderer
from .templates import TemplateRenderer
from .utils import copy_tree, ensure_clean_dir, html_path_for, is_markdown, iter_files

CONFIG_FILENAME = "postgen.yaml"
INDEX_TEMPLATE = "index.html"

DEFAULT_CONFIG: dict[str, Any] = {
    "output_dir": "build",
    "posts_dir": "posts",
    "public_dir": "public",
    "template": "template.html",
    "port": 8000,
    "ws_port": 8001,
    "markdown": {},
}


@dataclass(frozen=True)
class BuildDirectories:
    """Directories and files a build reads from and writes to.

    Attributes:
        root: Project root.
        output: Output directory.
        posts: Source posts directory.
        public: Static assets directory, also holds the index template.
        template: Page template file.
    """

    root: Path
    output: Path
    posts: Path
    public: Path
    template: Path

    @classmethod
    def resolve(
        cls, root: Path, config: Mapping[str, Any] | None = None
    ) -> BuildDirectories:
        """Resolve build directories relative to ``root``.

        Args:
            root: Project root.
            config: Optional configuration, defaults are used for missing keys.
        """
        settings = {**DEFAULT_CONFIG, **(config or {})}
        root = Path(root).resolve()
        return cls(
            root=root,
            output=root / str(settings["output_dir"]),
            posts=root / str(settings["posts_dir"]),
            public=root / str(settings["public_dir"]),
            template=root / str(settings["template"]),
        )

    @property
    def output_posts(self) -> Path:
        return self.output / "posts"

    @property
    def index_template(self) -> Path:
        return self.public / INDEX_TEMPLATE


@dataclass
class BuildOptions:
    """Options for a single build.

    Attributes:
        clean: Remove the output directory before building.
        dev: Render pages with ``refresh`` set, for the live reload server.
    """

    clean: bool = True
    dev: bool = False


@dataclass
class BuildResult:
    """Result of a site build operation.

    Attributes:
        posts: Summaries of every rendered post, in discovery order.
        output_dir: Directory where the site was built.
        pages: HTML files written for posts.
    """

    posts: list[PostSummary]
    output_dir: Path
    pages: list[Path] = field(default_factory=list)


def load_config(project_root: Path) -> dict[str, Any]:
    """Load configuration from postgen.yaml.

    Args:
        project_root: Root directory of the project.

    Returns:
        Dictionary containing configuration values, with defaults applied.
    """
    config_path = project_root / CONFIG_FILENAME
    config = DEFAULT_CONFIG.copy()
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            loaded = yaml.safe_load(f) or {}
            if isinstance(loaded, dict):
                config.update(loaded)
    return config


async def build(
    root: Path | None = None,
    options: BuildOptions | None = None,
    config: Mapping[str, Any] | None = None,
) -> BuildResult:
    """Build the site.

    Args:
        root: Project root, the current working directory by default.
        options: Build options.
        config: Configuration; loaded from postgen.yaml when omitted.

    Returns:
        BuildResult with the post summaries and written pages.

    Raises:
        MalformedMetadataError: If a post has malformed front matter.
        IOFailureError: If a filesystem operation fails.
        BuildError: If a template does not compile.
    """
    root = Path(root) if root is not None else Path.cwd()
    options = options or BuildOptions()
    if config is None:
        config = load_config(root)
    dirs = BuildDirectories.resolve(root, config)
    parser = ContentParser(MarkdownRenderer(MarkdownConfig.from_mapping(config.get("markdown"))))

    template = _compile_template(dirs.template, await _read_text(dirs.template))

    if options.clean:
        await _run_io(ensure_clean_dir, dirs.output, path=dirs.output)
    else:
        await _run_io(dirs.output.mkdir, parents=True, exist_ok=True, path=dirs.output)

    await _run_io(copy_tree, dirs.public, dirs.output, path=dirs.public)
    await _run_io(copy_tree, dirs.posts, dirs.output_posts, path=dirs.posts)

    files = await _run_io(iter_files, dirs.output_posts, path=dirs.output_posts)
    sources = [path for path in files if is_markdown(path)]
    results = await asyncio.gather(
        *(_render_post(path, dirs, parser, template, options.dev) for path in sources)
    )
    posts = [summary for summary, _ in results]
    pages = [page for _, page in results]

    await _write_index(dirs, posts)
    return BuildResult(posts=posts, output_dir=dirs.output, pages=pages)


def build_site(
    project_root: Path | None = None,
    clean: bool = True,
    dev: bool = False,
    config: Mapping[str, Any] | None = None,
) -> BuildResult:
    """Build the site synchronously.

    Args:
        project_root: Root directory of the project, the cwd by default.
        clean: Whether to wipe the output directory before building.
        dev: Render pages with the live reload ``refresh`` flag set.
        config: Optional configuration overriding postgen.yaml.

    Returns:
        BuildResult containing all post summaries and the output directory.
    """
    return asyncio.run(build(project_root, BuildOptions(clean=clean, dev=dev), config))


async def _render_post(
    path: Path,
    dirs: BuildDirectories,
    parser: ContentParser,
    template: TemplateRenderer,
    dev: bool,
) -> tuple[PostSummary, Path]:
    """Render one copied Markdown file in place.

    The document is parsed before anything is written, so a malformed post
    leaves no HTML behind.
    """
    source = dirs.posts / path.relative_to(dirs.output_posts)
    out = html_path_for(path)
    if out == dirs.output_posts / INDEX_TEMPLATE:
        raise BuildError(
            source,
            f"Renders to posts/{INDEX_TEMPLATE}, which is reserved for the post index; "
            "move the post into its own folder",
        )
    text = await _run_io(path.read_text, encoding="utf-8", path=source)
    document = parser.parse(text, source)
    try:
        rendered = template.render_document(document, refresh=dev)
    except Exception as exc:
        raise BuildError(source, _format_error_message(exc), exc) from exc
    await _run_io(out.write_text, rendered, encoding="utf-8", path=out)
    await _run_io(path.unlink, path=path)
    summary = PostSummary.from_document(document, path.relative_to(dirs.output_posts))
    return summary, out


async def _write_index(dirs: BuildDirectories, posts: list[PostSummary]) -> None:
    """Render the index template and write it to both index locations."""
    source = await _read_text(dirs.index_template)
    template = _compile_template(dirs.index_template, source)
    try:
        rendered = template.render_index(posts)
    except Exception as exc:
        raise BuildError(dirs.index_template, _format_error_message(exc), exc) from exc
    for target in (dirs.output / INDEX_TEMPLATE, dirs.output_posts / INDEX_TEMPLATE):
        await _run_io(target.parent.mkdir, parents=True, exist_ok=True, path=target)
        await _run_io(target.write_text, rendered, encoding="utf-8", path=target)


def _compile_template(path: Path, source: str) -> TemplateRenderer:
    try:
        return TemplateRenderer(source)
    except TemplateSyntaxError as exc:
        raise BuildError(
            path,
            f"Template syntax error on line {exc.lineno}: {exc.message}",
            exc,
        ) from exc


async def _read_text(path: Path) -> str:
    return await _run_io(path.read_text, encoding="utf-8", path=path)


async def _run_io(func, *args, path: Path | None = None, **kwargs):
    """Run a blocking filesystem call off the event loop.

    OSError is re-raised as IOFailureError for ``path``, and so is text that
    is not valid UTF-8.
    """
    try:
        return await asyncio.to_thread(func, *args, **kwargs)
    except OSError as exc:
        raise IOFailureError.from_os_error(exc, path) from exc
    except UnicodeDecodeError as exc:
        raise IOFailureError(path, f"File is not valid UTF-8: {exc.reason}", exc) from exc


def _format_error_message(exc: Exception) -> str:
    """Format an exception into a user-friendly error message.

    Args:
        exc: The exception to format.

    Returns:
        A human-readable error message.
    """
    error_type = type(exc).__name__
    error_msg = str(exc)

    if error_type == "UndefinedError":
        return f"Undefined variable: {error_msg}"
    if error_type == "TypeError":
        return f"Type error: {error_msg}"

    return f"{error_type}: {error_msg}"


if __name__ == "__main__":  # pragma: no cover
    build_site()
