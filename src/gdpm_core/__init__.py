"""gdpm-core: settings documents and addon dependencies of Godot projects."""

from .config import Settings
from .dependency import (
    CURRENT,
    CurrentSource,
    Dependency,
    DependencySource,
    GitSource,
    PathSource,
    source_from_string,
)
from .document import Comment, Document, Property, Section
from .errors import (
    CannotDesyncError,
    DescriptorError,
    FileSystemError,
    GdpmError,
    InstallError,
    MalformedProjectError,
    NotFoundError,
    ParseError,
    ProjectNotFoundError,
    RemoteError,
)
from .project import Project, ProjectInfo
from .reader import parse, parse_value
from .sync import DependencyManager, SyncReport
from .values import (
    Null,
    Value,
    VArray,
    VBool,
    VClassInstance,
    VFloat,
    VIdentifier,
    VInt,
    VNull,
    VObject,
    VString,
)
from .writer import serialize, serialize_value

__all__ = [
    "parse",
    "parse_value",
    "serialize",
    "serialize_value",
    "Document",
    "Section",
    "Property",
    "Comment",
    "Null",
    "Value",
    "VNull",
    "VBool",
    "VInt",
    "VFloat",
    "VString",
    "VIdentifier",
    "VArray",
    "VObject",
    "VClassInstance",
    "Dependency",
    "DependencySource",
    "CurrentSource",
    "PathSource",
    "GitSource",
    "CURRENT",
    "source_from_string",
    "DependencyManager",
    "SyncReport",
    "Project",
    "ProjectInfo",
    "Settings",
    "GdpmError",
    "ParseError",
    "DescriptorError",
    "NotFoundError",
    "InstallError",
    "CannotDesyncError",
    "FileSystemError",
    "RemoteError",
    "ProjectNotFoundError",
    "MalformedProjectError",
]
