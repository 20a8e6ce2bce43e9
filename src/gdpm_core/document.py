"""Document: in-memory representation of a settings file.

A document is an ordered list of sections. Each section is an ordered list
of entries, either properties or comments, so comments keep the position
they had among the surrounding properties. The global section (properties
written before the first ``[header]``) has the empty name and always comes
first.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterator, Union

from .values import Value

PROPERTY_NAME_RE = re.compile(r"^[A-Za-z0-9._/\-]+$")

GLOBAL_SECTION = ""


def is_valid_name(name: str) -> bool:
    return bool(PROPERTY_NAME_RE.match(name))


@dataclass
class Property:
    name: str
    value: Value


@dataclass
class Comment:
    text: str  # everything after the leading ";"


Entry = Union[Property, Comment]


# ---------------------------------------------------------------------------
# Section
# ---------------------------------------------------------------------------

@dataclass
class Section:
    name: str
    entries: list[Entry] = field(default_factory=list)

    def _find(self, name: str) -> Property | None:
        for entry in self.entries:
            if isinstance(entry, Property) and entry.name == name:
                return entry
        return None

    @property
    def properties(self) -> dict[str, Value]:
        """Properties in file order (a copy)."""
        return {e.name: e.value for e in self.entries if isinstance(e, Property)}

    def get(self, name: str) -> Value | None:
        prop = self._find(name)
        return prop.value if prop is not None else None

    def set(self, name: str, value: Value) -> None:
        """Replace an existing property in place, or append a new one."""
        prop = self._find(name)
        if prop is not None:
            prop.value = value
            return
        if not is_valid_name(name):
            raise ValueError(f"invalid property name: {name!r}")
        self.entries.append(Property(name, value))

    def remove(self, name: str) -> Value | None:
        """Remove a property; returns its value, or None when absent."""
        for i, entry in enumerate(self.entries):
            if isinstance(entry, Property) and entry.name == name:
                del self.entries[i]
                return entry.value
        return None

    def add_comment(self, text: str) -> None:
        if "\n" in text or "\r" in text:
            raise ValueError("comments cannot span several lines")
        self.entries.append(Comment(text))

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self._find(name) is not None

    def __len__(self) -> int:
        return sum(1 for e in self.entries if isinstance(e, Property))

    def __iter__(self) -> Iterator[tuple[str, Value]]:
        for entry in self.entries:
            if isinstance(entry, Property):
                yield entry.name, entry.value


# ---------------------------------------------------------------------------
# Document
# ---------------------------------------------------------------------------

@dataclass
class Document:
    """Ordered collection of sections, keyed by name."""

    sections: list[Section] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.sections or self.sections[0].name != GLOBAL_SECTION:
            self.sections.insert(0, Section(GLOBAL_SECTION))

    @property
    def global_section(self) -> Section:
        return self.sections[0]

    @property
    def section_names(self) -> list[str]:
        return [s.name for s in self.sections]

    # -- Sections --------------------------------------------------------

    def get_section(self, name: str) -> Section | None:
        for section in self.sections:
            if section.name == name:
                return section
        return None

    def upsert_section(self, name: str) -> Section:
        """Return the named section, appending an empty one if absent."""
        section = self.get_section(name)
        if section is None:
            if not is_valid_name(name):
                raise ValueError(f"invalid section name: {name!r}")
            section = Section(name)
            self.sections.append(section)
        return section

    def remove_section(self, name: str) -> Section | None:
        """Remove a section and return it.

        The global section cannot be removed; its entries are cleared
        instead.
        """
        if name == GLOBAL_SECTION:
            removed = Section(GLOBAL_SECTION, self.global_section.entries)
            self.global_section.entries = []
            return removed
        for i, section in enumerate(self.sections):
            if section.name == name:
                return self.sections.pop(i)
        return None

    # -- Properties ------------------------------------------------------

    def get_property(self, section: str, name: str) -> Value | None:
        sec = self.get_section(section)
        return sec.get(name) if sec is not None else None

    def set_property(self, section: str, name: str, value: Value) -> None:
        self.upsert_section(section).set(name, value)

    def remove_property(self, section: str, name: str) -> Value | None:
        """Remove a property; the section itself stays even when emptied."""
        sec = self.get_section(section)
        return sec.remove(name) if sec is not None else None
