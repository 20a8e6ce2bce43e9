"""Dependency descriptor layer.

Dependencies are stored one per property inside the ``[dependencies]``
section, keyed by name::

    [dependencies]

    gut={"version": "9.1.0", "source": Git("https://github.com/bitwes/Gut")}
    tools={"version": "1.0.0", "source": Path("../shared")}
    dialogs={"version": "0.0.0", "source": "current"}

This module converts between those properties and Dependency objects.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Union

from .document import Document
from .errors import DescriptorError, NotFoundError
from .values import Value, VClassInstance, VObject, VString, as_str

DEPENDENCIES_SECTION = "dependencies"

# a single path segment under the addons folder; rules out ".", ".." and "/"
ADDON_NAME_RE = re.compile(r"^[A-Za-z0-9_-][A-Za-z0-9._-]*$")


def is_valid_addon_name(name: str) -> bool:
    return bool(ADDON_NAME_RE.match(name))


_CURRENT_MARKER = "current"


# ---------------------------------------------------------------------------
# Sources
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CurrentSource:
    """Content lives in the project's own addons folder."""

    def __str__(self) -> str:
        return "current"


CURRENT = CurrentSource()


@dataclass(frozen=True)
class PathSource:
    path: str  # relative paths are resolved against the project root

    def __str__(self) -> str:
        return f"path: {self.path}"


@dataclass(frozen=True)
class GitSource:
    url: str

    def __str__(self) -> str:
        return f"git: {self.url}"


DependencySource = Union[CurrentSource, PathSource, GitSource]

_SOURCE_CLASSES = {"Path": PathSource, "Git": GitSource}


def source_from_string(text: str) -> DependencySource:
    """Guess a source from a user-supplied location.

    ``.`` or ``current`` → current, ``http(s)://``, ``git@`` or ``*.git``
    → git, anything else → filesystem path.
    """
    if text in (".", _CURRENT_MARKER):
        return CURRENT
    if text.startswith(("http://", "https://", "git@", "ssh://")) or text.endswith(".git"):
        return GitSource(text)
    return PathSource(text)


def source_to_value(source: DependencySource) -> Value:
    if isinstance(source, CurrentSource):
        return VString(_CURRENT_MARKER)
    if isinstance(source, PathSource):
        return VClassInstance("Path", [VString(source.path)])
    return VClassInstance("Git", [VString(source.url)])


def source_from_value(entry: str, value: Value | None) -> DependencySource:
    if isinstance(value, VString):
        if value.value == _CURRENT_MARKER:
            return CURRENT
        raise DescriptorError(entry, f"unknown source {value.value!r}")

    if isinstance(value, VClassInstance):
        cls = _SOURCE_CLASSES.get(value.type_name)
        if cls is None:
            raise DescriptorError(entry, f"unknown source type {value.type_name!r}")
        if value.kwargs or len(value.args) != 1 or not isinstance(value.args[0], VString):
            raise DescriptorError(
                entry, f"{value.type_name}() takes exactly one string argument"
            )
        return cls(value.args[0].value)

    raise DescriptorError(entry, "missing or invalid 'source'")


# ---------------------------------------------------------------------------
# Dependency
# ---------------------------------------------------------------------------

@dataclass
class Dependency:
    name: str
    version: str
    source: DependencySource = CURRENT

    @property
    def is_current(self) -> bool:
        return isinstance(self.source, CurrentSource)

    def describe(self) -> str:
        return f"{self.name} (v{self.version}) (source: {self.source})"


def dependency_from_value(name: str, value: Value) -> Dependency:
    """Interpret one ``[dependencies]`` property; raises DescriptorError."""
    if not is_valid_addon_name(name):
        raise DescriptorError(name, "invalid dependency name")
    if not isinstance(value, VObject):
        raise DescriptorError(name, "expected an object")
    version = as_str(value.entries.get("version"))
    if version is None:
        raise DescriptorError(name, "missing or invalid 'version'")
    source = source_from_value(name, value.entries.get("source"))
    return Dependency(name=name, version=version, source=source)


def dependency_to_value(dep: Dependency) -> VObject:
    try:
        return VObject({
            "version": VString(dep.version),
            "source": source_to_value(dep.source),
        })
    except ValueError as exc:
        raise DescriptorError(dep.name, str(exc)) from exc


# ---------------------------------------------------------------------------
# Document projection
# ---------------------------------------------------------------------------

@dataclass
class DescriptorView:
    """Dependencies declared in a document.

    ``names`` lists every declared entry, including the malformed ones
    reported in ``errors``.
    """

    dependencies: list[Dependency] = field(default_factory=list)
    errors: list[DescriptorError] = field(default_factory=list)
    names: list[str] = field(default_factory=list)

    def get(self, name: str) -> Dependency | None:
        for dep in self.dependencies:
            if dep.name == name:
                return dep
        return None


def read_dependencies(doc: Document, section: str = DEPENDENCIES_SECTION) -> DescriptorView:
    """Read every entry; a malformed one is reported, not fatal."""
    view = DescriptorView()
    sec = doc.get_section(section)
    if sec is None:
        return view
    for name, value in sec:
        view.names.append(name)
        try:
            view.dependencies.append(dependency_from_value(name, value))
        except DescriptorError as exc:
            view.errors.append(exc)
    return view


def get_dependency(doc: Document, name: str, section: str = DEPENDENCIES_SECTION) -> Dependency:
    value = doc.get_property(section, name)
    if value is None:
        raise NotFoundError(name)
    return dependency_from_value(name, value)


def write_dependency(doc: Document, dep: Dependency, section: str = DEPENDENCIES_SECTION) -> None:
    """Insert or replace *dep*; an existing entry keeps its position."""
    if not is_valid_addon_name(dep.name):
        raise DescriptorError(dep.name, "invalid dependency name")
    doc.set_property(section, dep.name, dependency_to_value(dep))


def delete_dependency(doc: Document, name: str, section: str = DEPENDENCIES_SECTION) -> Value:
    value = doc.remove_property(section, name)
    if value is None:
        raise NotFoundError(name)
    return value
