"""Command-line interface for Postgen.

This module defines the CLI commands using Click framework.

Commands:
- build: Build the site into the output directory.
- serve: Run the development server with live reload.
- new-post: Create a new post interactively.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import click
import questionary

from . import __version__
from .utils import slugify


@click.group()
@click.version_option(version=__version__, prog_name="postgen")
def cli():
    """Postgen static site generator."""


@cli.command()
@click.option("--clean/--no-clean", default=True, help="Wipe the output directory first")
@click.option("--dev", is_flag=True, help="Render pages with live reload enabled")
def build(clean: bool, dev: bool):
    """Build the site into the output directory."""
    project_root = Path.cwd()
    from .build import build_site
    from .errors import BuildError

    try:
        result = build_site(project_root, clean=clean, dev=dev)
    except BuildError as exc:
        click.echo(click.style("Build failed:", fg="red", bold=True), err=True)
        if exc.source_path is not None:
            click.echo(
                click.style(f"  File: {_display_path(exc.source_path, project_root)}", fg="yellow"),
                err=True,
            )
        click.echo(click.style(f"  Error: {exc.message}", fg="white"), err=True)
        raise SystemExit(1) from None
    click.echo(f"Built {len(result.posts)} posts into {result.output_dir}")


@cli.command()
@click.option(
    "--port",
    type=int,
    required=False,
    help="Port to serve static files on (overrides postgen.yaml)",
)
@click.option(
    "--ws-port",
    type=int,
    required=False,
    help="Port for the live reload websocket server (overrides postgen.yaml ws_port)",
)
def serve(port: int | None, ws_port: int | None):
    """Run dev server with live reload."""
    project_root = Path.cwd()
    from .server import DevServer

    server = DevServer(project_root, http_port=port, ws_port=ws_port)
    server.start()


@cli.command(name="new-post")
def new_post():
    """Create a new post interactively."""
    project_root = Path.cwd()
    from .build import BuildDirectories, load_config

    posts_dir = BuildDirectories.resolve(project_root, load_config(project_root)).posts
    if not posts_dir.exists():
        raise click.ClickException(
            "No posts/ directory found. Run this command from a Postgen project root."
        )

    heading = questionary.text(
        "Heading:",
        validate=lambda x: len(x.strip()) > 0 or "Heading cannot be empty",
        style=_questionary_style(),
    ).ask()
    if heading is None:
        raise click.Abort()
    heading = heading.strip()

    slug = questionary.text(
        "Folder name:",
        default=slugify(heading),
        validate=lambda x: len(slugify(x)) > 0 or "Folder name cannot be empty",
        style=_questionary_style(),
    ).ask()
    if slug is None:
        raise click.Abort()
    slug = slugify(slug)

    target_dir = posts_dir / slug
    if target_dir.exists():
        raise click.ClickException(
            f"Post already exists: {_display_path(target_dir, project_root)}"
        )

    target_dir.mkdir(parents=True)
    target_path = target_dir / "index.md"
    target_path.write_text(_post_stub(heading, datetime.now()), encoding="utf-8")
    click.echo(f"Created {_display_path(target_path, project_root)}")


def _post_stub(heading: str, when: datetime) -> str:
    """Return the initial text of a new post."""
    escaped = heading.replace("\\", "\\\\").replace('"', '\\"')
    return (
        "---\n"
        f'heading: "{escaped}"\n'
        f"date: {when.month}-{when.day}-{when.year}\n"
        "---\n\n"
        f"# {heading}\n\n"
    )


def _display_path(path: Path, project_root: Path) -> Path:
    try:
        return Path(path).resolve().relative_to(project_root.resolve())
    except ValueError:
        return Path(path)


def _questionary_style():
    """Return consistent questionary style."""
    return questionary.Style(
        [
            ("qmark", "fg:cyan bold"),
            ("question", "bold"),
            ("answer", "fg:cyan"),
            ("pointer", "fg:cyan bold"),
            ("highlighted", "fg:cyan bold"),
            ("selected", "fg:cyan"),
        ]
    )


def main():
    """Entry point for the CLI application."""
    cli()
