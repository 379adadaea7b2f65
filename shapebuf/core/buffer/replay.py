from __future__ import annotations

import logging
from enum import StrEnum
from typing import Any, Iterator, Sequence

from shapebuf.core.errors import Error, Unexpected
from shapebuf.core.models.value import (
    Bool, BorrowedBytes, BorrowedStr, Bytes, Char, F32, F64, I8, I16, I32, I64,
    I128, Map, NewtypeStruct, NewtypeVariant, NoneValue, Seq, Some, Str, Struct,
    StructVariant, Tuple, TupleStruct, TupleVariant, U8, U16, U32, U64, U128,
    Unit, UnitStruct, UnitVariant, Value,
)
from shapebuf.core.ports.deserializer import END, DeserializeSeed, Visitor, _End


class Deserializer:
    """
    Replay adapter: a pull-interface implementation reading from a buffer.

    `deserialize_any` performs exactly one visit call chosen from the
    top-level Value: scalars reach their `visit_<kind>` method, owned text
    and bytes are handed over through `visit_string` / `visit_byte_buf`,
    borrowed ones through `visit_borrowed_str` / `visit_borrowed_bytes`
    with the very object stored in the buffer (no copy), sequences and maps
    are exposed through cursors and enum variants through an EnumCursor.

    Every typed entry point forwards to `deserialize_any`. The buffer never
    reinterprets what it holds to satisfy a request: a caller asking for a
    u16 while a u8 is stored receives `visit_u8`, and a shape mismatch is
    reported by the visitor, not by the buffer.

    A Deserializer is single-use. Its node is released on the first visit;
    driving it again raises Error. The buffer it came from is untouched and
    can hand out new deserializers.
    """

    def __init__(self, value: Value) -> None:
        self._value: Value | None = value

    def _take(self) -> Value:
        value, self._value = self._value, None
        if value is None:
            raise Error.custom("deserializer already consumed")
        return value

    def deserialize_any(self, visitor: Visitor) -> Any:
        match self._take():
            case U8(v):
                return visitor.visit_u8(v)
            case U16(v):
                return visitor.visit_u16(v)
            case U32(v):
                return visitor.visit_u32(v)
            case U64(v):
                return visitor.visit_u64(v)
            case U128(v):
                return visitor.visit_u128(v)
            case I8(v):
                return visitor.visit_i8(v)
            case I16(v):
                return visitor.visit_i16(v)
            case I32(v):
                return visitor.visit_i32(v)
            case I64(v):
                return visitor.visit_i64(v)
            case I128(v):
                return visitor.visit_i128(v)
            case F32(v):
                return visitor.visit_f32(v)
            case F64(v):
                return visitor.visit_f64(v)
            case Bool(v):
                return visitor.visit_bool(v)
            case Char(v):
                return visitor.visit_char(v)
            case Str(v):
                return visitor.visit_string(v)
            case BorrowedStr(v):
                return visitor.visit_borrowed_str(v)
            case Bytes(v):
                return visitor.visit_byte_buf(v)
            case BorrowedBytes(v):
                return visitor.visit_borrowed_bytes(v)
            case NoneValue():
                return visitor.visit_none()
            case Some(inner):
                return visitor.visit_some(Deserializer(inner))
            case Unit() | UnitStruct():
                return visitor.visit_unit()
            case NewtypeStruct(_, inner):
                return visitor.visit_newtype_struct(Deserializer(inner))
            case Struct(_, fields):
                return visitor.visit_map(MapCursor.of_fields(fields))
            case TupleStruct(_, fields) | Tuple(fields) | Seq(fields):
                return visitor.visit_seq(SeqCursor(fields))
            case Map(entries):
                return visitor.visit_map(MapCursor(entries))
            case UnitVariant(_, variant_index, variant):
                return visitor.visit_enum(
                    EnumCursor(variant_index, variant, VariantKind.UNIT, Unit())
                )
            case NewtypeVariant(_, variant_index, variant, inner):
                return visitor.visit_enum(
                    EnumCursor(variant_index, variant, VariantKind.NEWTYPE, inner)
                )
            case TupleVariant(_, variant_index, variant, fields):
                return visitor.visit_enum(
                    EnumCursor(variant_index, variant, VariantKind.TUPLE, fields)
                )
            case StructVariant(_, variant_index, variant, fields):
                return visitor.visit_enum(
                    EnumCursor(variant_index, variant, VariantKind.STRUCT, fields)
                )

        raise TypeError("not a buffered value")

    def deserialize_bool(self, visitor: Visitor) -> Any:
        return self.deserialize_any(visitor)

    def deserialize_i8(self, visitor: Visitor) -> Any:
        return self.deserialize_any(visitor)

    def deserialize_i16(self, visitor: Visitor) -> Any:
        return self.deserialize_any(visitor)

    def deserialize_i32(self, visitor: Visitor) -> Any:
        return self.deserialize_any(visitor)

    def deserialize_i64(self, visitor: Visitor) -> Any:
        return self.deserialize_any(visitor)

    def deserialize_i128(self, visitor: Visitor) -> Any:
        return self.deserialize_any(visitor)

    def deserialize_u8(self, visitor: Visitor) -> Any:
        return self.deserialize_any(visitor)

    def deserialize_u16(self, visitor: Visitor) -> Any:
        return self.deserialize_any(visitor)

    def deserialize_u32(self, visitor: Visitor) -> Any:
        return self.deserialize_any(visitor)

    def deserialize_u64(self, visitor: Visitor) -> Any:
        return self.deserialize_any(visitor)

    def deserialize_u128(self, visitor: Visitor) -> Any:
        return self.deserialize_any(visitor)

    def deserialize_f32(self, visitor: Visitor) -> Any:
        return self.deserialize_any(visitor)

    def deserialize_f64(self, visitor: Visitor) -> Any:
        return self.deserialize_any(visitor)

    def deserialize_char(self, visitor: Visitor) -> Any:
        return self.deserialize_any(visitor)

    def deserialize_str(self, visitor: Visitor) -> Any:
        return self.deserialize_any(visitor)

    def deserialize_string(self, visitor: Visitor) -> Any:
        return self.deserialize_any(visitor)

    def deserialize_bytes(self, visitor: Visitor) -> Any:
        return self.deserialize_any(visitor)

    def deserialize_byte_buf(self, visitor: Visitor) -> Any:
        return self.deserialize_any(visitor)

    def deserialize_option(self, visitor: Visitor) -> Any:
        return self.deserialize_any(visitor)

    def deserialize_unit(self, visitor: Visitor) -> Any:
        return self.deserialize_any(visitor)

    def deserialize_unit_struct(self, name: str, visitor: Visitor) -> Any:
        return self.deserialize_any(visitor)

    def deserialize_newtype_struct(self, name: str, visitor: Visitor) -> Any:
        return self.deserialize_any(visitor)

    def deserialize_seq(self, visitor: Visitor) -> Any:
        return self.deserialize_any(visitor)

    def deserialize_tuple(self, length: int, visitor: Visitor) -> Any:
        return self.deserialize_any(visitor)

    def deserialize_tuple_struct(self, name: str, length: int, visitor: Visitor) -> Any:
        return self.deserialize_any(visitor)

    def deserialize_map(self, visitor: Visitor) -> Any:
        return self.deserialize_any(visitor)

    def deserialize_struct(self, name: str, fields: Sequence[str], visitor: Visitor) -> Any:
        return self.deserialize_any(visitor)

    def deserialize_enum(self, name: str, variants: Sequence[str], visitor: Visitor) -> Any:
        return self.deserialize_any(visitor)

    def deserialize_identifier(self, visitor: Visitor) -> Any:
        return self.deserialize_any(visitor)

    def deserialize_ignored_any(self, visitor: Visitor) -> Any:
        return self.deserialize_any(visitor)


class FieldNameDeserializer(Deserializer):
    """
    Deserializer for the field names of records. Names are static text
    owned by the record's type, so they reach the visitor through
    `visit_str`.
    """

    def __init__(self, name: str) -> None:
        super().__init__(BorrowedStr(name))

    def deserialize_any(self, visitor: Visitor) -> Any:
        field = self._take()
        return visitor.visit_str(field.v)


class SeqCursor:
    """Single-pass cursor over stored elements; returns END once drained."""

    def __init__(self, fields: Sequence[Value]) -> None:
        self._remaining = len(fields)
        self._fields = iter(fields)

    def next_element_seed(self, seed: DeserializeSeed) -> Any:
        field = next(self._fields, None)
        if field is None:
            return END

        self._remaining -= 1
        return seed.deserialize(Deserializer(field))

    def next_element(self, target: DeserializeSeed) -> Any:
        return self.next_element_seed(target)

    def size_hint(self) -> int | None:
        return self._remaining


class MapCursor:
    """
    Cursor over stored map entries, driven strictly key then value.

    Asking for a key stages the entry's value; asking for a value takes the
    staged one, or raises "missing map value" when no key was decoded
    first.
    """

    def __init__(
        self,
        entries: Sequence[tuple[Any, Value]],
        key_deserializer: type[Deserializer] = Deserializer
    ) -> None:
        self._remaining = len(entries)
        self._entries: Iterator[tuple[Any, Value]] = iter(entries)
        self._key_deserializer = key_deserializer
        self._value: Value | None = None

    @classmethod
    def of_fields(cls, fields: Sequence[tuple[str, Value]]) -> MapCursor:
        return cls(fields, key_deserializer=FieldNameDeserializer)

    def next_key_seed(self, seed: DeserializeSeed) -> Any:
        entry = next(self._entries, None)
        if entry is None:
            return END

        key, self._value = entry
        self._remaining -= 1
        return seed.deserialize(self._key_deserializer(key))

    def next_value_seed(self, seed: DeserializeSeed) -> Any:
        value, self._value = self._value, None
        if value is None:
            raise Error.custom("missing map value")
        return seed.deserialize(Deserializer(value))

    def next_entry_seed(
        self,
        key_seed: DeserializeSeed,
        value_seed: DeserializeSeed
    ) -> tuple[Any, Any] | _End:
        key = self.next_key_seed(key_seed)
        if key is END:
            return END
        return key, self.next_value_seed(value_seed)

    def next_key(self, target: DeserializeSeed) -> Any:
        return self.next_key_seed(target)

    def next_value(self, target: DeserializeSeed) -> Any:
        return self.next_value_seed(target)

    def next_entry(self, key: DeserializeSeed, value: DeserializeSeed) -> tuple[Any, Any] | _End:
        return self.next_entry_seed(key, value)

    def size_hint(self) -> int | None:
        return self._remaining


class VariantKind(StrEnum):
    """Payload category of a stored enum variant, as named in type errors."""
    UNIT = "unit variant"
    NEWTYPE = "newtype variant"
    TUPLE = "tuple variant"
    STRUCT = "struct variant"

    def unexpected(self) -> Unexpected:
        return Unexpected(self.value)


class EnumCursor:
    """
    Enum access over a stored variant.

    `variant_seed` first decodes the variant index (as a plain u32 scalar)
    with the caller's seed and returns the cursor itself as the variant
    access. Exactly one of the payload methods must follow:

    - `unit_variant` confirms a unit payload;
    - `newtype_variant_seed` decodes the single payload; a tuple or record
      payload is rewrapped as a synthetic Tuple / Struct value so that the
      seed can decode it with its tuple or struct logic;
    - `tuple_variant` / `struct_variant` hand the fields to the visitor
      through a SeqCursor / MapCursor.

    Asking for a payload category the variant does not have raises an
    invalid-type Error naming the stored category and the requested one.
    """

    def __init__(
        self,
        variant_index: int,
        variant: str,
        kind: VariantKind,
        payload: Any
    ) -> None:
        self._variant_index = variant_index
        self._variant = variant
        self._kind = kind
        self._payload = payload
        self._logger = logging.getLogger("core.buffer.replay")

    def variant_seed(self, seed: DeserializeSeed) -> tuple[Any, EnumCursor]:
        return seed.deserialize(Deserializer(U32(self._variant_index))), self

    def variant(self, target: DeserializeSeed) -> tuple[Any, EnumCursor]:
        return self.variant_seed(target)

    def _mismatch(self, expected: VariantKind) -> Error:
        self._logger.debug(
            f"Variant '{self._variant}' holds a {self._kind} payload, "
            f"{expected} requested"
        )
        return Error.invalid_type(self._kind.unexpected(), expected)

    def unit_variant(self) -> None:
        match self._kind:
            case VariantKind.UNIT:
                return None
            case VariantKind.NEWTYPE if isinstance(self._payload, Unit):
                return None
        raise self._mismatch(VariantKind.UNIT)

    def newtype_variant_seed(self, seed: DeserializeSeed) -> Any:
        match self._kind:
            case VariantKind.TUPLE:
                value = Tuple(self._payload)
            case VariantKind.STRUCT:
                value = Struct(self._variant, self._payload)
            case _:
                value = self._payload
        return seed.deserialize(Deserializer(value))

    def newtype_variant(self, target: DeserializeSeed) -> Any:
        return self.newtype_variant_seed(target)

    def tuple_variant(self, length: int, visitor: Visitor) -> Any:
        if self._kind is not VariantKind.TUPLE:
            raise self._mismatch(VariantKind.TUPLE)
        return visitor.visit_seq(SeqCursor(self._payload))

    def struct_variant(self, fields: Sequence[str], visitor: Visitor) -> Any:
        if self._kind is not VariantKind.STRUCT:
            raise self._mismatch(VariantKind.STRUCT)
        return visitor.visit_map(MapCursor.of_fields(self._payload))
