"""Error types raised while building a Postgen site.

Two kinds of failure abort a build:
- MalformedMetadataError: a document's front matter block cannot be parsed.
- IOFailureError: a filesystem operation failed (missing template, missing
  directories, permission errors).

Both carry the offending path so the CLI can point at the file.
"""

from __future__ import annotations

from pathlib import Path


class BuildError(Exception):
    """Error during site build with file context.

    Attributes:
        source_path: Path to the file that caused the error, when known.
        message: Human-readable error message.
        original_error: The original exception that was caught.
    """

    def __init__(
        self,
        source_path: Path | None,
        message: str,
        original_error: Exception | None = None,
    ):
        self.source_path = source_path
        self.message = message
        self.original_error = original_error
        if source_path is None:
            super().__init__(message)
        else:
            super().__init__(f"{source_path}: {message}")


class MalformedMetadataError(BuildError):
    """Front matter block is unterminated, invalid YAML, or not a mapping."""


class IOFailureError(BuildError):
    """A filesystem operation failed during the build."""

    @classmethod
    def from_os_error(cls, exc: OSError, path: Path | None = None) -> IOFailureError:
        target = path
        if target is None and exc.filename is not None:
            target = Path(exc.filename)
        reason = exc.strerror or type(exc).__name__
        return cls(target, reason, exc)
