"""Postgen static site generator.

This package turns a folder of Markdown posts with YAML front matter into a
static HTML site. Posts are rendered through a single Jinja2 page template,
static assets are copied alongside them, and an index page lists every post.

The main entry point is the CLI module, which provides commands for building
the site, running the live reload development server, and creating new posts.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
