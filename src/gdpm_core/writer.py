"""Writer layer: renders a Document back to settings text."""

from __future__ import annotations

import math
import re
from decimal import Decimal

from .document import Comment, Document, Property
from .values import (
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

_KEY_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def serialize(doc: Document) -> str:
    """Render *doc* as text; ``parse(serialize(doc)) == doc``.

    Global properties come first without a header, each other section is
    preceded by a blank line and followed by one after its header.
    """
    lines: list[str] = []
    for section in doc.sections:
        if section.name:
            if lines:
                lines.append("")
            lines.append(f"[{section.name}]")
            if section.entries:
                lines.append("")
        for entry in section.entries:
            if isinstance(entry, Comment):
                lines.append(f";{entry.text}")
            elif isinstance(entry, Property):
                lines.append(f"{entry.name}={serialize_value(entry.value)}")
    return "\n".join(lines) + "\n" if lines else ""


def serialize_value(value: Value) -> str:
    """Render a single value in canonical form."""
    return _fmt(value, argument=False)


def format_float(number: float) -> str:
    """Positional notation with at least one fractional digit.

    ``repr`` gives the shortest round-tripping digits but may switch to
    exponent notation, which the grammar does not accept.
    """
    if not math.isfinite(number):
        raise ValueError(f"cannot write non-finite float {number!r}")
    text = format(Decimal(repr(number)), "f")
    if "." not in text:
        text += ".0"
    return text


def _fmt(value: Value, argument: bool) -> str:
    if isinstance(value, VNull):
        return "null"
    if isinstance(value, VBool):
        return "true" if value.value else "false"
    if isinstance(value, VInt):
        return str(value.value)
    if isinstance(value, VFloat):
        return format_float(value.value)
    if isinstance(value, VString):
        return f'"{value.value}"'
    if isinstance(value, VIdentifier):
        if not argument:
            raise ValueError(f"identifier {value.name!r} is only valid as a constructor argument")
        return value.name
    if isinstance(value, VArray):
        return "[" + ", ".join(_fmt(v, False) for v in value.items) + "]"
    if isinstance(value, VObject):
        pairs = (f'"{k}": {_fmt(v, False)}' for k, v in value.entries.items())
        return "{" + ", ".join(pairs) + "}"
    if isinstance(value, VClassInstance):
        return _fmt_class_instance(value)
    raise TypeError(f"not a settings value: {value!r}")


def _fmt_class_instance(value: VClassInstance) -> str:
    parts = [_fmt(v, True) for v in value.args]
    for key, v in value.kwargs:
        if value.quoted_keys:
            parts.append(f'"{key}": {_fmt(v, False)}')
        elif _KEY_RE.match(key):
            parts.append(f"{key}: {_fmt(v, False)}")
        else:
            raise ValueError(f"keyword {key!r} needs quoted keys")
    return f"{value.type_name}({', '.join(parts)})"
