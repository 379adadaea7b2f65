from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator

from shapebuf.core.errors import Error
from shapebuf.core.ports.serializer import Serializer


@dataclass(frozen=True, slots=True)
class Value:
    """
    Base of the tagged union every buffer is made of.

    The set of subclasses below is closed: one class per shape of the
    push/pull protocol. Instances are immutable and children are stored in
    tuples, so a Value tree can never contain a cycle and may be shared
    freely between readers.

    Every Value can replay itself through the push interface with
    `serialize`, which makes exactly the calls that the original value made
    when it was captured.
    """

    def serialize(self, serializer: Serializer) -> Any:
        return replay(self, serializer)


@dataclass(frozen=True, slots=True)
class Unit(Value):
    pass


@dataclass(frozen=True, slots=True)
class U8(Value):
    v: int


@dataclass(frozen=True, slots=True)
class U16(Value):
    v: int


@dataclass(frozen=True, slots=True)
class U32(Value):
    v: int


@dataclass(frozen=True, slots=True)
class U64(Value):
    v: int


@dataclass(frozen=True, slots=True)
class U128(Value):
    v: int


@dataclass(frozen=True, slots=True)
class I8(Value):
    v: int


@dataclass(frozen=True, slots=True)
class I16(Value):
    v: int


@dataclass(frozen=True, slots=True)
class I32(Value):
    v: int


@dataclass(frozen=True, slots=True)
class I64(Value):
    v: int


@dataclass(frozen=True, slots=True)
class I128(Value):
    v: int


@dataclass(frozen=True, slots=True)
class F32(Value):
    v: float


@dataclass(frozen=True, slots=True)
class F64(Value):
    v: float


@dataclass(frozen=True, slots=True)
class Bool(Value):
    v: bool


@dataclass(frozen=True, slots=True)
class Char(Value):
    v: str


@dataclass(frozen=True, slots=True)
class Str(Value):
    """Text owned by the buffer."""
    v: str


@dataclass(frozen=True, slots=True)
class BorrowedStr(Value):
    """Text lent by the caller; decoding hands out the same object."""
    v: str


@dataclass(frozen=True, slots=True)
class Bytes(Value):
    """An independent copy of a byte string."""
    v: bytes


@dataclass(frozen=True, slots=True)
class BorrowedBytes(Value):
    """
    Bytes lent by the caller. When `v` is a memoryview it aliases the
    caller's buffer and is only valid as long as that buffer is.
    """
    v: bytes | memoryview


@dataclass(frozen=True, slots=True)
class NoneValue(Value):
    pass


@dataclass(frozen=True, slots=True)
class Some(Value):
    value: Value


@dataclass(frozen=True, slots=True)
class UnitStruct(Value):
    name: str


@dataclass(frozen=True, slots=True)
class NewtypeStruct(Value):
    name: str
    value: Value


@dataclass(frozen=True, slots=True)
class Struct(Value):
    name: str
    fields: tuple[tuple[str, Value], ...]


@dataclass(frozen=True, slots=True)
class TupleStruct(Value):
    name: str
    fields: tuple[Value, ...]


@dataclass(frozen=True, slots=True)
class Tuple(Value):
    fields: tuple[Value, ...]


@dataclass(frozen=True, slots=True)
class UnitVariant(Value):
    name: str
    variant_index: int
    variant: str


@dataclass(frozen=True, slots=True)
class NewtypeVariant(Value):
    name: str
    variant_index: int
    variant: str
    value: Value


@dataclass(frozen=True, slots=True)
class TupleVariant(Value):
    name: str
    variant_index: int
    variant: str
    fields: tuple[Value, ...]


@dataclass(frozen=True, slots=True)
class StructVariant(Value):
    name: str
    variant_index: int
    variant: str
    fields: tuple[tuple[str, Value], ...]


@dataclass(frozen=True, slots=True)
class Seq(Value):
    items: tuple[Value, ...]


@dataclass(frozen=True, slots=True)
class Map(Value):
    entries: tuple[tuple[Value, Value], ...]


INTEGER_BOUNDS: dict[type[Value], tuple[int, int]] = {
    U8: (0, (1 << 8) - 1),
    U16: (0, (1 << 16) - 1),
    U32: (0, (1 << 32) - 1),
    U64: (0, (1 << 64) - 1),
    U128: (0, (1 << 128) - 1),
    I8: (-(1 << 7), (1 << 7) - 1),
    I16: (-(1 << 15), (1 << 15) - 1),
    I32: (-(1 << 31), (1 << 31) - 1),
    I64: (-(1 << 63), (1 << 63) - 1),
    I128: (-(1 << 127), (1 << 127) - 1),
}


def check_scalar(kind: type[Value], v: Any) -> None:
    """
    Validate a scalar payload against the exact shape it is stored as.

    Integers must be plain ints (never bools) within the width of `kind`,
    floats must be real numbers, chars a single code point. Nothing is ever
    coerced: a value that does not fit raises an Error.
    """
    label = kind.__name__.lower()

    if kind in INTEGER_BOUNDS:
        if isinstance(v, bool) or not isinstance(v, int):
            raise Error.custom(f"expected an integer for {label}, got {type(v).__name__}")
        lo, hi = INTEGER_BOUNDS[kind]
        if not lo <= v <= hi:
            raise Error.custom(f"{v} is out of range for {label}")
    elif kind in (F32, F64):
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            raise Error.custom(f"expected a float for {label}, got {type(v).__name__}")
    elif kind is Bool:
        if not isinstance(v, bool):
            raise Error.custom(f"expected a bool, got {type(v).__name__}")
    elif kind is Char:
        if not isinstance(v, str) or len(v) != 1:
            raise Error.custom(f"expected a single character, got {v!r}")


def check_variant_index(variant_index: int) -> None:
    if isinstance(variant_index, bool) or not isinstance(variant_index, int):
        raise Error.custom(f"variant index must be an integer, got {type(variant_index).__name__}")
    lo, hi = INTEGER_BOUNDS[U32]
    if not lo <= variant_index <= hi:
        raise Error.custom(f"variant index {variant_index} is out of range for u32")


def children(value: Value) -> Iterator[Value]:
    """Yield the direct sub-values of `value`, in stored order."""
    match value:
        case Some(inner) | NewtypeStruct(_, inner) | NewtypeVariant(_, _, _, inner):
            yield inner
        case Struct(_, fields) | StructVariant(_, _, _, fields):
            for _, field in fields:
                yield field
        case TupleStruct(_, fields) | Tuple(fields) | TupleVariant(_, _, _, fields) | Seq(fields):
            yield from fields
        case Map(entries):
            for key, item in entries:
                yield key
                yield item


def replay(value: Value, serializer: Serializer) -> Any:
    """
    Drive `serializer` with the calls that describe `value`.

    Borrowed and owned text (or bytes) collapse onto the same push call:
    the push interface has no notion of ownership, which is what makes a
    buffer indistinguishable from the value it was captured from.
    """
    match value:
        case Unit():
            return serializer.serialize_unit()
        case U8(v):
            return serializer.serialize_u8(v)
        case U16(v):
            return serializer.serialize_u16(v)
        case U32(v):
            return serializer.serialize_u32(v)
        case U64(v):
            return serializer.serialize_u64(v)
        case U128(v):
            return serializer.serialize_u128(v)
        case I8(v):
            return serializer.serialize_i8(v)
        case I16(v):
            return serializer.serialize_i16(v)
        case I32(v):
            return serializer.serialize_i32(v)
        case I64(v):
            return serializer.serialize_i64(v)
        case I128(v):
            return serializer.serialize_i128(v)
        case F32(v):
            return serializer.serialize_f32(v)
        case F64(v):
            return serializer.serialize_f64(v)
        case Bool(v):
            return serializer.serialize_bool(v)
        case Char(v):
            return serializer.serialize_char(v)
        case Str(v) | BorrowedStr(v):
            return serializer.serialize_str(v)
        case Bytes(v) | BorrowedBytes(v):
            return serializer.serialize_bytes(v)
        case NoneValue():
            return serializer.serialize_none()
        case Some(inner):
            return serializer.serialize_some(inner)
        case UnitStruct(name):
            return serializer.serialize_unit_struct(name)
        case NewtypeStruct(name, inner):
            return serializer.serialize_newtype_struct(name, inner)
        case Struct(name, fields):
            builder = serializer.serialize_struct(name, len(fields))
            for key, field in fields:
                builder.serialize_field(key, field)
            return builder.end()
        case TupleStruct(name, fields):
            builder = serializer.serialize_tuple_struct(name, len(fields))
            for field in fields:
                builder.serialize_field(field)
            return builder.end()
        case Tuple(fields):
            builder = serializer.serialize_tuple(len(fields))
            for field in fields:
                builder.serialize_element(field)
            return builder.end()
        case UnitVariant(name, variant_index, variant):
            return serializer.serialize_unit_variant(name, variant_index, variant)
        case NewtypeVariant(name, variant_index, variant, inner):
            return serializer.serialize_newtype_variant(name, variant_index, variant, inner)
        case TupleVariant(name, variant_index, variant, fields):
            builder = serializer.serialize_tuple_variant(name, variant_index, variant, len(fields))
            for field in fields:
                builder.serialize_field(field)
            return builder.end()
        case StructVariant(name, variant_index, variant, fields):
            builder = serializer.serialize_struct_variant(name, variant_index, variant, len(fields))
            for key, field in fields:
                builder.serialize_field(key, field)
            return builder.end()
        case Seq(items):
            builder = serializer.serialize_seq(len(items))
            for item in items:
                builder.serialize_element(item)
            return builder.end()
        case Map(entries):
            builder = serializer.serialize_map(len(entries))
            for key, item in entries:
                builder.serialize_entry(key, item)
            return builder.end()

    raise TypeError(f"not a buffered value: {value!r}")
