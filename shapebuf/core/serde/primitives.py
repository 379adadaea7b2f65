from __future__ import annotations

from collections.abc import Mapping
from typing import Any, ClassVar, Iterable

from shapebuf.core.errors import Error, Unexpected
from shapebuf.core.models import value as shapes
from shapebuf.core.ports.deserializer import END, Deserializer, MapAccess, SeqAccess, EnumAccess, Visitor
from shapebuf.core.ports.serializer import Serializer


# Python has a single `int`, so typed targets spell out the width they stand
# for. Each of them is both Serialize (it makes the exact push call of its
# width) and Deserialize (it accepts any integer shape that fits).


class _Integer(int):
    shape: ClassVar[type[shapes.Value]]

    def __new__(cls, v: int = 0) -> _Integer:
        shapes.check_scalar(cls.shape, v)
        return super().__new__(cls, v)

    @classmethod
    def kind(cls) -> str:
        return cls.shape.__name__.lower()

    def serialize(self, serializer: Serializer) -> Any:
        return getattr(serializer, f"serialize_{self.kind()}")(int(self))

    @classmethod
    def deserialize(cls, deserializer: Deserializer) -> Any:
        return getattr(deserializer, f"deserialize_{cls.kind()}")(_IntegerVisitor(cls))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({int(self)})"


class _IntegerVisitor(Visitor):
    def __init__(self, target: type[_Integer]) -> None:
        self._target = target

    def expecting(self) -> str:
        return self._target.kind()

    def _fit(self, v: int, unexpected: Unexpected) -> _Integer:
        lo, hi = shapes.INTEGER_BOUNDS[self._target.shape]
        if not lo <= v <= hi:
            raise Error.invalid_value(unexpected, self.expecting())
        return self._target(v)

    def visit_i64(self, v: int) -> _Integer:
        return self._fit(v, Unexpected.signed(v))

    def visit_i128(self, v: int) -> _Integer:
        return self._fit(v, Unexpected.signed(v))

    def visit_u64(self, v: int) -> _Integer:
        return self._fit(v, Unexpected.unsigned(v))

    def visit_u128(self, v: int) -> _Integer:
        return self._fit(v, Unexpected.unsigned(v))


class UInt8(_Integer):
    shape = shapes.U8


class UInt16(_Integer):
    shape = shapes.U16


class UInt32(_Integer):
    shape = shapes.U32


class UInt64(_Integer):
    shape = shapes.U64


class UInt128(_Integer):
    shape = shapes.U128


class Int8(_Integer):
    shape = shapes.I8


class Int16(_Integer):
    shape = shapes.I16


class Int32(_Integer):
    shape = shapes.I32


class Int64(_Integer):
    shape = shapes.I64


class Int128(_Integer):
    shape = shapes.I128


class _Float(float):
    shape: ClassVar[type[shapes.Value]]

    @classmethod
    def kind(cls) -> str:
        return cls.shape.__name__.lower()

    def serialize(self, serializer: Serializer) -> Any:
        return getattr(serializer, f"serialize_{self.kind()}")(float(self))

    @classmethod
    def deserialize(cls, deserializer: Deserializer) -> Any:
        return getattr(deserializer, f"deserialize_{cls.kind()}")(_FloatVisitor(cls))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({float(self)!r})"


class _FloatVisitor(Visitor):
    def __init__(self, target: type[_Float]) -> None:
        self._target = target

    def expecting(self) -> str:
        return self._target.kind()

    def visit_f64(self, v: float) -> _Float:
        return self._target(v)

    def visit_i64(self, v: int) -> _Float:
        return self._target(v)

    def visit_u64(self, v: int) -> _Float:
        return self._target(v)


class Float32(_Float):
    shape = shapes.F32


class Float64(_Float):
    shape = shapes.F64


class Boolean:
    """Typed boolean target. Compares equal to the plain bool it wraps."""
    __slots__ = ("v",)

    def __init__(self, v: bool) -> None:
        shapes.check_scalar(shapes.Bool, v)
        self.v = v

    def __bool__(self) -> bool:
        return self.v

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Boolean):
            return self.v == other.v
        if isinstance(other, bool):
            return self.v == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.v)

    def __repr__(self) -> str:
        return f"Boolean({self.v})"

    def serialize(self, serializer: Serializer) -> Any:
        return serializer.serialize_bool(self.v)

    @classmethod
    def deserialize(cls, deserializer: Deserializer) -> Boolean:
        return deserializer.deserialize_bool(_BooleanVisitor())


class _BooleanVisitor(Visitor):
    def expecting(self) -> str:
        return "a boolean"

    def visit_bool(self, v: bool) -> Boolean:
        return Boolean(v)


class Char(str):
    """A single code point, pushed with `serialize_char`."""

    def __new__(cls, v: str) -> Char:
        shapes.check_scalar(shapes.Char, v)
        return super().__new__(cls, v)

    def serialize(self, serializer: Serializer) -> Any:
        return serializer.serialize_char(str(self))

    @classmethod
    def deserialize(cls, deserializer: Deserializer) -> Char:
        return deserializer.deserialize_char(_CharVisitor())


class _CharVisitor(Visitor):
    def expecting(self) -> str:
        return "a character"

    def visit_char(self, v: str) -> Char:
        return Char(v)

    def visit_str(self, v: str) -> Char:
        if len(v) != 1:
            raise Error.invalid_value(Unexpected.string(v), self.expecting())
        return Char(v)


class CowStr(str):
    """
    Text that remembers how it was decoded: `borrowed` is True when the
    source lent it (the visitor's borrowed-string path was taken) and False
    when it was handed over or copied. Comparison is by content only.
    """

    def __new__(cls, v: str, borrowed: bool = False) -> CowStr:
        obj = super().__new__(cls, v)
        obj.borrowed = borrowed
        return obj

    def serialize(self, serializer: Serializer) -> Any:
        return serializer.serialize_str(str(self))

    @classmethod
    def deserialize(cls, deserializer: Deserializer) -> CowStr:
        return deserializer.deserialize_str(_CowStrVisitor())


class _CowStrVisitor(Visitor):
    def expecting(self) -> str:
        return "a string"

    def visit_borrowed_str(self, v: str) -> CowStr:
        return CowStr(v, borrowed=True)

    def visit_str(self, v: str) -> CowStr:
        return CowStr(v)


class CowBytes:
    """
    Bytes that are either borrowed (`data` is the very object the source
    lent, possibly a memoryview over foreign memory) or owned (`data` is an
    independent `bytes`). Comparison is by content only.
    """
    __slots__ = ("data", "borrowed")

    def __init__(self, data: bytes | memoryview, borrowed: bool = False) -> None:
        self.data = data
        self.borrowed = borrowed

    def __bytes__(self) -> bytes:
        return bytes(self.data)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, CowBytes):
            return bytes(self.data) == bytes(other.data)
        if isinstance(other, (bytes, bytearray, memoryview)):
            return bytes(self.data) == bytes(other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        state = "borrowed" if self.borrowed else "owned"
        return f"CowBytes({bytes(self.data)!r}, {state})"

    def serialize(self, serializer: Serializer) -> Any:
        return serializer.serialize_bytes(self.data)

    @classmethod
    def deserialize(cls, deserializer: Deserializer) -> CowBytes:
        return deserializer.deserialize_bytes(_CowBytesVisitor())


class _CowBytesVisitor(Visitor):
    def expecting(self) -> str:
        return "a byte string"

    def visit_borrowed_bytes(self, v: bytes | memoryview) -> CowBytes:
        return CowBytes(v, borrowed=True)

    def visit_bytes(self, v: bytes | memoryview) -> CowBytes:
        return CowBytes(bytes(v))


class ByteBuf(bytes):
    """Owned byte string pushed with `serialize_bytes`."""

    def serialize(self, serializer: Serializer) -> Any:
        return serializer.serialize_bytes(bytes(self))

    @classmethod
    def deserialize(cls, deserializer: Deserializer) -> ByteBuf:
        return deserializer.deserialize_byte_buf(_ByteBufVisitor())


class _ByteBufVisitor(Visitor):
    def expecting(self) -> str:
        return "a byte string"

    def visit_bytes(self, v: bytes | memoryview) -> ByteBuf:
        return ByteBuf(v)


class UnitType:
    """The unit value `()`; all instances are equal."""
    __slots__ = ()

    def __eq__(self, other: object) -> bool:
        if isinstance(other, UnitType):
            return True
        return NotImplemented

    def __hash__(self) -> int:
        return 0

    def __repr__(self) -> str:
        return "UnitType()"

    def serialize(self, serializer: Serializer) -> Any:
        return serializer.serialize_unit()

    @classmethod
    def deserialize(cls, deserializer: Deserializer) -> UnitType:
        return deserializer.deserialize_unit(_UnitVisitor())


class _UnitVisitor(Visitor):
    def expecting(self) -> str:
        return "unit"

    def visit_unit(self) -> UnitType:
        return UnitType()


class IgnoredAny:
    """
    Target that accepts any shape and throws it away, draining nested
    sequences, maps and enum payloads. Decodes to None.
    """

    @classmethod
    def deserialize(cls, deserializer: Deserializer) -> None:
        return deserializer.deserialize_ignored_any(_IgnoredAnyVisitor())


class _IgnoredAnyVisitor(Visitor):
    def expecting(self) -> str:
        return "anything at all"

    def visit_bool(self, v: bool) -> None:
        return None

    def visit_i64(self, v: int) -> None:
        return None

    def visit_i128(self, v: int) -> None:
        return None

    def visit_u64(self, v: int) -> None:
        return None

    def visit_u128(self, v: int) -> None:
        return None

    def visit_f64(self, v: float) -> None:
        return None

    def visit_str(self, v: str) -> None:
        return None

    def visit_bytes(self, v: bytes | memoryview) -> None:
        return None

    def visit_none(self) -> None:
        return None

    def visit_some(self, deserializer: Deserializer) -> None:
        return IgnoredAny.deserialize(deserializer)

    def visit_unit(self) -> None:
        return None

    def visit_newtype_struct(self, deserializer: Deserializer) -> None:
        return IgnoredAny.deserialize(deserializer)

    def visit_seq(self, seq: SeqAccess) -> None:
        while seq.next_element(IgnoredAny) is not END:
            pass

    def visit_map(self, map: MapAccess) -> None:
        while map.next_entry(IgnoredAny, IgnoredAny) is not END:
            pass

    def visit_enum(self, data: EnumAccess) -> None:
        _, variant = data.variant(IgnoredAny)
        variant.newtype_variant(IgnoredAny)


class Bound:
    """A plain Python object paired with the target describing its shape."""
    __slots__ = ("target", "obj")

    def __init__(self, target: Any, obj: Any) -> None:
        self.target = target
        self.obj = obj

    def serialize(self, serializer: Serializer) -> Any:
        return self.target.encode(self.obj, serializer)

    def __repr__(self) -> str:
        return f"Bound({self.target!r}, {self.obj!r})"


def bind(target: Any, obj: Any) -> Any:
    """
    Turn `obj` into something that can drive a serializer as `target`.

    Container descriptors pair the object with themselves, typed classes
    keep their own instances and convert anything else through their
    constructor (which validates the width).
    """
    if hasattr(target, "encode"):
        return Bound(target, obj)
    if isinstance(obj, target):
        return obj
    return target(obj)


class OptionOf:
    """`None` or one value of `target`; decodes to `None` or the value."""

    def __init__(self, target: Any) -> None:
        self.target = target

    def __call__(self, obj: Any) -> Bound:
        return Bound(self, obj)

    def __repr__(self) -> str:
        return f"OptionOf({self.target!r})"

    def encode(self, obj: Any, serializer: Serializer) -> Any:
        if obj is None:
            return serializer.serialize_none()
        return serializer.serialize_some(bind(self.target, obj))

    def deserialize(self, deserializer: Deserializer) -> Any:
        return deserializer.deserialize_option(_OptionVisitor(self.target))


class _OptionVisitor(Visitor):
    def __init__(self, target: Any) -> None:
        self._target = target

    def expecting(self) -> str:
        return "option"

    def visit_none(self) -> None:
        return None

    def visit_unit(self) -> None:
        return None

    def visit_some(self, deserializer: Deserializer) -> Any:
        return self._target.deserialize(deserializer)


class SeqOf:
    """A homogeneous sequence of `target`; decodes to a list."""

    def __init__(self, target: Any) -> None:
        self.target = target

    def __call__(self, obj: Iterable[Any]) -> Bound:
        return Bound(self, obj)

    def __repr__(self) -> str:
        return f"SeqOf({self.target!r})"

    def encode(self, obj: Iterable[Any], serializer: Serializer) -> Any:
        items = list(obj)
        builder = serializer.serialize_seq(len(items))
        for item in items:
            builder.serialize_element(bind(self.target, item))
        return builder.end()

    def deserialize(self, deserializer: Deserializer) -> list[Any]:
        return deserializer.deserialize_seq(_SeqVisitor(self.target))


class _SeqVisitor(Visitor):
    def __init__(self, target: Any) -> None:
        self._target = target

    def expecting(self) -> str:
        return "a sequence"

    def visit_seq(self, seq: SeqAccess) -> list[Any]:
        items = []
        while (item := seq.next_element(self._target)) is not END:
            items.append(item)
        return items


class TupleOf:
    """A fixed-arity tuple, one target per position; decodes to a tuple."""

    def __init__(self, *targets: Any) -> None:
        self.targets = targets

    def __call__(self, obj: Iterable[Any]) -> Bound:
        return Bound(self, obj)

    def __repr__(self) -> str:
        return f"TupleOf{self.targets!r}"

    def encode(self, obj: Iterable[Any], serializer: Serializer) -> Any:
        items = tuple(obj)
        if len(items) != len(self.targets):
            raise Error.invalid_length(len(items), f"a tuple of size {len(self.targets)}")

        builder = serializer.serialize_tuple(len(items))
        for target, item in zip(self.targets, items):
            builder.serialize_element(bind(target, item))
        return builder.end()

    def deserialize(self, deserializer: Deserializer) -> tuple[Any, ...]:
        return deserializer.deserialize_tuple(len(self.targets), _TupleVisitor(self.targets))


class _TupleVisitor(Visitor):
    def __init__(self, targets: tuple[Any, ...]) -> None:
        self._targets = targets

    def expecting(self) -> str:
        return f"a tuple of size {len(self._targets)}"

    def visit_seq(self, seq: SeqAccess) -> tuple[Any, ...]:
        items = []
        for index, target in enumerate(self._targets):
            item = seq.next_element(target)
            if item is END:
                raise Error.invalid_length(index, self.expecting())
            items.append(item)

        if seq.next_element(IgnoredAny) is not END:
            raise Error.invalid_length(len(self._targets) + 1, self.expecting())
        return tuple(items)


class MapOf:
    """
    A map from `key` targets to `value` targets. Encodes from a mapping or
    an iterable of pairs and decodes to a list of `(key, value)` pairs, in
    stored order and without dedup, since keys may be of any shape.
    """

    def __init__(self, key: Any, value: Any) -> None:
        self.key = key
        self.value = value

    def __call__(self, obj: Mapping[Any, Any] | Iterable[tuple[Any, Any]]) -> Bound:
        return Bound(self, obj)

    def __repr__(self) -> str:
        return f"MapOf({self.key!r}, {self.value!r})"

    def encode(self, obj: Mapping[Any, Any] | Iterable[tuple[Any, Any]], serializer: Serializer) -> Any:
        entries = list(obj.items() if isinstance(obj, Mapping) else obj)
        builder = serializer.serialize_map(len(entries))
        for key, item in entries:
            builder.serialize_entry(bind(self.key, key), bind(self.value, item))
        return builder.end()

    def deserialize(self, deserializer: Deserializer) -> list[tuple[Any, Any]]:
        return deserializer.deserialize_map(_MapVisitor(self.key, self.value))


class _MapVisitor(Visitor):
    def __init__(self, key: Any, value: Any) -> None:
        self._key = key
        self._value = value

    def expecting(self) -> str:
        return "a map"

    def visit_map(self, map: MapAccess) -> list[tuple[Any, Any]]:
        entries = []
        while (entry := map.next_entry(self._key, self._value)) is not END:
            entries.append(entry)
        return entries
