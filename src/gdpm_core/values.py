"""Value types for settings documents."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Union

_TYPE_NAME_RE = re.compile(r"^[A-Za-z0-9]+$")


# ---------------------------------------------------------------------------
# Null singleton
# ---------------------------------------------------------------------------

class VNull:
    """Singleton for the ``null`` literal."""

    _instance: VNull | None = None

    def __new__(cls) -> VNull:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "Null"

    def __bool__(self) -> bool:
        return False


Null = VNull()


# ---------------------------------------------------------------------------
# Scalars
# ---------------------------------------------------------------------------

@dataclass(slots=True)
class VBool:
    value: bool


@dataclass(slots=True)
class VInt:
    value: int


@dataclass(slots=True)
class VFloat:
    value: float


@dataclass(slots=True)
class VString:
    value: str

    def __post_init__(self) -> None:
        if '"' in self.value:
            raise ValueError(f"strings cannot contain a double quote: {self.value!r}")


@dataclass(slots=True)
class VIdentifier:
    """Bare symbol, only valid as a positional constructor argument."""

    name: str


# ---------------------------------------------------------------------------
# Containers
# ---------------------------------------------------------------------------

@dataclass(slots=True)
class VArray:
    items: list[Value] = field(default_factory=list)


@dataclass(slots=True)
class VObject:
    entries: dict[str, Value] = field(default_factory=dict)


@dataclass(slots=True)
class VClassInstance:
    """Constructor call such as ``Vector2(0, 25)``.

    Positional and keyword arguments are stored separately, each in source
    order. ``quoted_keys`` marks calls whose keyword keys were written as
    strings (``Object(InputEventKey, "device": 0)``).
    """

    type_name: str
    args: list[Value] = field(default_factory=list)
    kwargs: list[tuple[str, Value]] = field(default_factory=list)
    quoted_keys: bool = False

    def __post_init__(self) -> None:
        if not _TYPE_NAME_RE.match(self.type_name):
            raise ValueError(f"invalid class name: {self.type_name!r}")

    def kwarg(self, key: str) -> Value | None:
        for k, v in self.kwargs:
            if k == key:
                return v
        return None


Value = Union[
    VNull, VBool, VInt, VFloat, VString, VIdentifier, VArray, VObject, VClassInstance
]


# ---------------------------------------------------------------------------
# Accessors
# ---------------------------------------------------------------------------

def as_str(value: Value | None) -> str | None:
    return value.value if isinstance(value, VString) else None


def as_int(value: Value | None) -> int | None:
    return value.value if isinstance(value, VInt) else None


def as_float(value: Value | None) -> float | None:
    return value.value if isinstance(value, VFloat) else None


def as_bool(value: Value | None) -> bool | None:
    return value.value if isinstance(value, VBool) else None


def as_list(value: Value | None) -> list[Value] | None:
    return value.items if isinstance(value, VArray) else None


def as_dict(value: Value | None) -> dict[str, Value] | None:
    return value.entries if isinstance(value, VObject) else None


def from_python(obj: object) -> Value:
    """Build a Value from plain Python data.

    ``None`` → Null, ``bool``/``int``/``float``/``str`` → scalars,
    ``list``/``tuple`` → VArray, ``dict`` → VObject. Values are passed
    through unchanged.
    """
    if obj is None:
        return Null
    if isinstance(obj, (VNull, VBool, VInt, VFloat, VString, VIdentifier,
                        VArray, VObject, VClassInstance)):
        return obj
    # bool before int: bool is an int subclass
    if isinstance(obj, bool):
        return VBool(obj)
    if isinstance(obj, int):
        return VInt(obj)
    if isinstance(obj, float):
        return VFloat(obj)
    if isinstance(obj, str):
        return VString(obj)
    if isinstance(obj, (list, tuple)):
        return VArray([from_python(o) for o in obj])
    if isinstance(obj, dict):
        return VObject({str(k): from_python(v) for k, v in obj.items()})
    raise TypeError(f"cannot convert {type(obj).__name__} to a settings value")
