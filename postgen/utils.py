"""Utility functions for Postgen.

This module contains the filesystem and string helpers used by the build
pipeline and the CLI.

Key functions:
    ensure_clean_dir: Ensure a directory exists and is empty.
    copy_tree: Recursively copy a directory, merging into the destination.
    iter_files: Walk a directory tree and list every file.
    is_markdown: Check if a path is a Markdown file.
    html_path_for: Sibling ``.html`` path of a Markdown file.
    post_href: Public link of a post.
    slugify: Convert a name to a URL slug.
    titleize: Convert a file or folder name to a human-readable title.
"""

from __future__ import annotations

import os
import re
import shutil
from pathlib import Path


def ensure_clean_dir(path: Path) -> None:
    """Ensure a directory exists and is empty.

    If the directory exists, removes all contents. Creates the
    directory if it doesn't exist.

    Args:
        path: Directory path to clean or create.

    Raises:
        OSError: If the directory cannot be removed or created.
    """
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    elif path.exists() or path.is_symlink():
        path.unlink()
    path.mkdir(parents=True, exist_ok=True)


def copy_tree(src: Path, dest: Path) -> None:
    """Recursively copy ``src`` into ``dest``.

    Existing files in ``dest`` are overwritten, other files are kept.

    Raises:
        FileNotFoundError: If ``src`` does not exist.
        OSError: On any other copy failure.
    """
    if not src.is_dir():
        raise FileNotFoundError(2, "No such directory", str(src))
    shutil.copytree(src, dest, dirs_exist_ok=True)


def iter_files(root: Path) -> list[Path]:
    """List every file below ``root``, depth first, in sorted order.

    Args:
        root: Directory to walk.

    Returns:
        List of file paths. Empty when ``root`` has no files.
    """
    files: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        base = Path(dirpath)
        files.extend(base / name for name in sorted(filenames))
    return files


def is_markdown(path: Path) -> bool:
    """Check if a path is a Markdown file.

    Args:
        path: Path to check.

    Returns:
        True if the file has .md extension (case-insensitive).
    """
    return path.suffix.lower() == ".md"


def html_path_for(path: Path) -> Path:
    """Return the sibling path of ``path`` with its extension swapped for .html."""
    return path.with_suffix(".html")


def post_href(rel_path: Path) -> str:
    """Return the public link of a post.

    Posts kept in their own folder are linked by folder; a Markdown file
    placed directly in the posts directory is linked by its HTML name.

    Args:
        rel_path: Source path relative to the posts directory.

    Examples:
        >>> post_href(Path("hello-world/index.md"))
        '/posts/hello-world'

        >>> post_href(Path("notes.md"))
        '/posts/notes.html'
    """
    if rel_path.parent == Path("."):
        return f"/posts/{html_path_for(rel_path).as_posix()}"
    return f"/posts/{rel_path.parent.as_posix()}"


def slugify(name: str) -> str:
    """Convert a name to a URL slug.

    Args:
        name: Free text, e.g. a post heading.

    Returns:
        Lowercase slug of letters, digits and hyphens.
    """
    cleaned = re.sub(r"[^a-zA-Z0-9]+", "-", name)
    return cleaned.strip("-").lower()


def titleize(filename: str) -> str:
    """Convert a file or folder name to a human-readable title.

    Examples:
        >>> titleize("hello-world.md")
        'Hello World'
    """
    base = Path(filename).stem if filename.endswith(".md") else filename
    words = re.split(r"[\s\-_]+", base)
    return " ".join(word.capitalize() for word in words if word) or "Untitled"
