"""
FluxState Codec - Primitive Text Encodings
==========================================

Persisted values are plain strings. Three primitive kinds have a built-in
encoding; anything else needs caller-supplied serialize/deserialize
functions.

    Primitive.INT   42     <-> "42"
    Primitive.STR   "hi"   <-> "hi"
    Primitive.BOOL  True   <-> "true"

Kinds are looked up by exact type, so `True` is a BOOL and never an INT,
and subclasses of the primitives are not treated as primitives.
"""

from enum import Enum
from typing import Any, Callable, Dict, Optional, Union

from .errors import UnsupportedTypeError


class Primitive(Enum):
    """Closed set of value kinds with a built-in text encoding."""

    INT = "int"
    STR = "str"
    BOOL = "bool"

    def encode(self, value: Any) -> str:
        if self is Primitive.BOOL:
            return "true" if value else "false"
        if self is Primitive.INT:
            return str(value)
        return value

    def decode(self, text: str) -> Any:
        if self is Primitive.BOOL:
            return text == "true"
        if self is Primitive.INT:
            return int(text)
        return text


_BY_TYPE: Dict[type, Primitive] = {
    int: Primitive.INT,
    str: Primitive.STR,
    bool: Primitive.BOOL,
}

KindLike = Union[Primitive, type, None]


def primitive_for(value: Any) -> Optional[Primitive]:
    """Return the Primitive for `value`'s exact type, or None."""
    return _BY_TYPE.get(type(value))


def resolve_kind(kind: KindLike) -> Optional[Primitive]:
    """Accept a Primitive, one of int/str/bool, or None."""
    if kind is None or isinstance(kind, Primitive):
        return kind
    try:
        return _BY_TYPE[kind]
    except KeyError:
        raise UnsupportedTypeError(f"{kind!r} has no built-in encoding")


def encode_value(
    value: Any, serialize: Optional[Callable[[Any], str]] = None
) -> str:
    """Serialize with `serialize` if given, else with the primitive codec."""
    if serialize is not None:
        return serialize(value)
    kind = primitive_for(value)
    if kind is None:
        raise UnsupportedTypeError(
            f"Type {type(value).__name__} is not supported without a serialize function"
        )
    return kind.encode(value)


def decode_value(
    text: str,
    deserialize: Optional[Callable[[str], Any]] = None,
    kind: KindLike = None,
    current: Any = None,
) -> Any:
    """
    Deserialize `text`.

    Uses `deserialize` if given, then an explicit `kind`, then the kind of
    `current` (the value the target cell holds now).
    """
    if deserialize is not None:
        return deserialize(text)
    resolved = resolve_kind(kind) or primitive_for(current)
    if resolved is None:
        raise UnsupportedTypeError(
            f"Type {type(current).__name__} is not supported without a deserialize function"
        )
    return resolved.decode(text)
