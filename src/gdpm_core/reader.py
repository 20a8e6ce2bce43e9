"""Reader layer: converts settings text to a Document."""

from __future__ import annotations

import re
from typing import NoReturn

from .document import Comment, Document, Section
from .errors import ParseError
from .values import (
    Null,
    Value,
    VArray,
    VBool,
    VClassInstance,
    VFloat,
    VIdentifier,
    VInt,
    VObject,
    VString,
)

_FLOAT_RE = re.compile(r"-?(?:0|[1-9][0-9]*)\.[0-9]+")
_INT_RE = re.compile(r"-?(?:0|[1-9][0-9]*)")
_CLASS_RE = re.compile(r"[A-Za-z0-9]+(?=\()")
_WORD_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_NAME_RE = re.compile(r"[A-Za-z0-9._/\-]+")
_WORD_CHAR_RE = re.compile(r"[A-Za-z0-9_.]")

_BOOLEANS = {"true": True, "false": False, "True": True, "False": False}

_WHITESPACE = " \t\r\n"
_INLINE_WHITESPACE = " \t"


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------

def parse(text: str) -> Document:
    """Parse settings *text* into a Document.

    Raises ParseError on malformed input; nothing is partially returned.
    """
    return _Scanner(text).document()


def parse_value(text: str) -> Value:
    """Parse a single value, e.g. ``Vector2(0, 25)``."""
    scanner = _Scanner(text)
    scanner.skip_whitespace()
    value = scanner.value()
    scanner.skip_whitespace()
    if not scanner.at_end():
        scanner.fail("unexpected text after value")
    return value


# ---------------------------------------------------------------------------
# Scanner
# ---------------------------------------------------------------------------

class _Scanner:
    """Recursive-descent parser over the whole text.

    Values may span several lines (the engine writes large objects over
    multiple lines), so the scanner works on characters rather than lines.
    """

    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    # -- Low-level helpers ----------------------------------------------

    def fail(self, message: str, pos: int | None = None) -> NoReturn:
        pos = self.pos if pos is None else pos
        line = self.text.count("\n", 0, pos) + 1
        column = pos - (self.text.rfind("\n", 0, pos) + 1) + 1
        raise ParseError(message, pos, line, column)

    def at_end(self) -> bool:
        return self.pos >= len(self.text)

    def peek(self) -> str:
        return self.text[self.pos] if self.pos < len(self.text) else ""

    def skip_whitespace(self) -> None:
        while self.pos < len(self.text) and self.text[self.pos] in _WHITESPACE:
            self.pos += 1

    def skip_inline_whitespace(self) -> None:
        while self.pos < len(self.text) and self.text[self.pos] in _INLINE_WHITESPACE:
            self.pos += 1

    def expect(self, char: str) -> None:
        if self.peek() != char:
            found = repr(self.peek()) if self.peek() else "end of input"
            self.fail(f"expected {char!r}, found {found}")
        self.pos += 1

    def match(self, pattern: re.Pattern[str]) -> str | None:
        m = pattern.match(self.text, self.pos)
        return m.group(0) if m else None

    def end_of_line(self) -> None:
        """Only blanks may follow a header or a value on its line."""
        self.skip_inline_whitespace()
        if self.at_end() or self.peek() in "\r\n":
            return
        if self.peek() == ";":
            self.fail("trailing comments are not supported")
        self.fail("unexpected text at end of line")

    def terminated(self, start: int, what: str) -> None:
        """A literal must not run into another word character."""
        if _WORD_CHAR_RE.match(self.peek()):
            self.fail(f"malformed {what}", start)

    # -- Statements -----------------------------------------------------

    def document(self) -> Document:
        doc = Document()
        section: Section = doc.global_section

        while True:
            self.skip_whitespace()
            if self.at_end():
                break
            start = self.pos
            char = self.peek()

            if char == ";":
                end = self.pos + 1
                while end < len(self.text) and self.text[end] != "\n":
                    end += 1
                section.entries.append(Comment(self.text[self.pos + 1:end].rstrip("\r")))
                self.pos = end
            elif char == "[":
                self.pos += 1
                name = self.match(_NAME_RE)
                if name is None:
                    self.fail("expected a section name")
                self.pos += len(name)
                self.expect("]")
                self.end_of_line()
                section = doc.upsert_section(name)
            else:
                name = self.match(_NAME_RE)
                if name is None:
                    end = self.text.find("\n", start)
                    line = self.text[start:end if end != -1 else None].rstrip("\r")
                    self.fail(f"unrecognized line: {line!r}")
                self.pos += len(name)
                # name, "=" and the start of the value share one line
                self.skip_inline_whitespace()
                self.expect("=")
                self.skip_inline_whitespace()
                value = self.value()
                self.end_of_line()
                # Duplicates: last write wins, first position is kept
                section.set(name, value)

        return doc

    # -- Values ---------------------------------------------------------

    def value(self, allow_identifier: bool = False) -> Value:
        start = self.pos
        char = self.peek()

        if char == "{":
            return self.object()
        if char == "[":
            return self.array()

        class_name = self.match(_CLASS_RE)
        if class_name is not None:
            return self.class_instance(class_name)

        number = self.match(_FLOAT_RE)
        if number is not None:
            self.pos += len(number)
            self.terminated(start, "float")
            return VFloat(float(number))

        number = self.match(_INT_RE)
        if number is not None:
            self.pos += len(number)
            self.terminated(start, "integer")
            return VInt(int(number))

        word = self.match(_WORD_RE)
        if word is not None:
            self.pos += len(word)
            if word in _BOOLEANS:
                return VBool(_BOOLEANS[word])
            if word == "null":
                return Null
            if allow_identifier:
                return VIdentifier(word)
            self.fail(f"bare identifier {word!r} is not a value", start)

        if char == '"':
            return self.string()

        if not char:
            self.fail("expected a value, found end of input")
        self.fail(f"unexpected character {char!r}")

    def string(self) -> VString:
        start = self.pos
        self.expect('"')
        end = self.text.find('"', self.pos)
        if end == -1:
            self.fail("unterminated string", start)
        content = self.text[self.pos:end]
        self.pos = end + 1
        return VString(content)

    def array(self) -> VArray:
        self.expect("[")
        items: list[Value] = []
        self.skip_whitespace()
        if self.peek() == "]":
            self.pos += 1
            return VArray(items)

        while True:
            self.skip_whitespace()
            items.append(self.value())
            self.skip_whitespace()
            if self.peek() == ",":
                self.pos += 1
                self.skip_whitespace()
                if self.peek() == "]":
                    self.fail("trailing comma in array")
                continue
            self.expect("]")
            return VArray(items)

    def object(self) -> VObject:
        self.expect("{")
        entries: dict[str, Value] = {}
        self.skip_whitespace()
        if self.peek() == "}":
            self.pos += 1
            return VObject(entries)

        while True:
            self.skip_whitespace()
            if self.peek() != '"':
                self.fail("object keys must be strings")
            key = self.string().value
            self.skip_whitespace()
            self.expect(":")
            self.skip_whitespace()
            entries[key] = self.value()
            self.skip_whitespace()
            if self.peek() == ",":
                self.pos += 1
                self.skip_whitespace()
                if self.peek() == "}":
                    self.fail("trailing comma in object")
                continue
            self.expect("}")
            return VObject(entries)

    def class_instance(self, type_name: str) -> VClassInstance:
        self.pos += len(type_name)
        self.expect("(")
        instance = VClassInstance(type_name)
        self.skip_whitespace()
        if self.peek() == ")":
            self.pos += 1
            return instance

        while True:
            self.skip_whitespace()
            self.argument(instance)
            self.skip_whitespace()
            if self.peek() == ",":
                self.pos += 1
                self.skip_whitespace()
                if self.peek() == ")":
                    self.fail("trailing comma in argument list")
                continue
            self.expect(")")
            return instance

    def argument(self, instance: VClassInstance) -> None:
        """Parse one ``key: value``, bare identifier or value argument."""
        if self.peek() == '"':
            text = self.string()
            self.skip_whitespace()
            if self.peek() == ":":
                self.pos += 1
                self.skip_whitespace()
                instance.kwargs.append((text.value, self.value()))
                instance.quoted_keys = True
            else:
                instance.args.append(text)
            return

        word = self.match(_WORD_RE)
        if word is not None and self.match(_CLASS_RE) is None:
            after = self.pos + len(word)
            while after < len(self.text) and self.text[after] in _WHITESPACE:
                after += 1
            if after < len(self.text) and self.text[after] == ":":
                self.pos = after + 1
                self.skip_whitespace()
                instance.kwargs.append((word, self.value()))
                return

        instance.args.append(self.value(allow_identifier=True))
