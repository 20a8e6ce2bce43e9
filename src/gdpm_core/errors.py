"""Exception hierarchy for gdpm-core."""

from __future__ import annotations


class GdpmError(Exception):
    """Base class for every error raised by gdpm-core."""


# ---------------------------------------------------------------------------
# Settings text
# ---------------------------------------------------------------------------

class ParseError(GdpmError):
    """Malformed settings text.

    *position* is the 0-based character offset; *line* and *column* are
    1-based and point at the same character.
    """

    def __init__(self, message: str, position: int, line: int, column: int) -> None:
        self.message = message
        self.position = position
        self.line = line
        self.column = column
        super().__init__(f"{message} (line {line}, column {column})")


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------

class DescriptorError(GdpmError):
    """A dependency entry does not have the expected shape."""

    def __init__(self, entry: str, message: str) -> None:
        self.entry = entry
        self.message = message
        super().__init__(f"malformed dependency '{entry}': {message}")


class NotFoundError(GdpmError):
    """A named entry is not declared."""

    def __init__(self, name: str, what: str = "dependency") -> None:
        self.name = name
        super().__init__(f"{what} '{name}' not found")


class InstallError(GdpmError):
    """Copying or cloning a dependency failed."""

    def __init__(self, name: str, cause: Exception | str) -> None:
        self.name = name
        self.cause = cause
        super().__init__(f"failed to install '{name}': {cause}")


class CannotDesyncError(GdpmError):
    """A project-local (current) dependency cannot be desynchronized."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"dependency '{name}' lives in the project and cannot be desynchronized")


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------

class FileSystemError(GdpmError):
    """A filesystem operation failed."""


class RemoteError(GdpmError):
    """A remote (git) operation failed."""


# ---------------------------------------------------------------------------
# Project
# ---------------------------------------------------------------------------

class ProjectNotFoundError(GdpmError):
    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"project not found: {path}")


class MalformedProjectError(GdpmError):
    """The project file lacks a required property."""
