from __future__ import annotations

import logging
from enum import Enum
from typing import Any

from shapebuf.core.buffer.handles import Owned
from shapebuf.core.errors import Error
from shapebuf.core.models.value import (
    Bool, Bytes, Char, F32, F64, I8, I16, I32, I64, I128, Map, NewtypeStruct,
    NewtypeVariant, NoneValue, Seq, Some, Str, Struct, StructVariant, Tuple,
    TupleStruct, TupleVariant, U8, U16, U32, U64, U128, Unit, UnitStruct,
    UnitVariant, Value, check_scalar, check_variant_index,
)
from shapebuf.core.ports.serializer import Serialize


class Serializer:
    """
    Capture adapter: a push-interface implementation whose output is a
    buffer.

    Each push call allocates the Value variant matching the call and returns
    it wrapped in `Owned`. Nested values (option payloads, newtype payloads,
    elements, fields, map keys and values) are captured recursively by
    driving them through a fresh adapter, so every leaf ends up
    independently owned: text is stored as `Str`, bytes as a `Bytes` copy.

    Declared length hints are ignored: the builders grow with the elements
    actually pushed, so an untrusted hint can never cause a large
    allocation.

    When `check_ranges` is enabled (the default), integers must fit the
    width of the call that carries them and chars must be a single code
    point; a violation raises Error. Disabling it stores payloads as given.

    Errors raised by the captured value itself propagate unchanged, and a
    failed capture never yields a partial buffer.
    """

    def __init__(self, check_ranges: bool = True) -> None:
        self._check_ranges = check_ranges
        self._logger = logging.getLogger("core.buffer.capture")

    def capture(self, value: Serialize) -> Owned:
        """Buffer `value` by letting it drive this adapter."""
        result = value.serialize(self)
        if not isinstance(result, Owned):
            raise Error.custom(
                f"{type(value).__name__}.serialize did not return the serializer's result"
            )
        return result

    def capture_value(self, value: Serialize) -> Value:
        return Serializer(self._check_ranges).capture(value).value

    def _scalar(self, kind: type[Value], v: Any) -> Owned:
        if self._check_ranges:
            check_scalar(kind, v)
        return Owned(kind(v))

    def serialize_bool(self, v: bool) -> Owned:
        return self._scalar(Bool, v)

    def serialize_i8(self, v: int) -> Owned:
        return self._scalar(I8, v)

    def serialize_i16(self, v: int) -> Owned:
        return self._scalar(I16, v)

    def serialize_i32(self, v: int) -> Owned:
        return self._scalar(I32, v)

    def serialize_i64(self, v: int) -> Owned:
        return self._scalar(I64, v)

    def serialize_i128(self, v: int) -> Owned:
        return self._scalar(I128, v)

    def serialize_u8(self, v: int) -> Owned:
        return self._scalar(U8, v)

    def serialize_u16(self, v: int) -> Owned:
        return self._scalar(U16, v)

    def serialize_u32(self, v: int) -> Owned:
        return self._scalar(U32, v)

    def serialize_u64(self, v: int) -> Owned:
        return self._scalar(U64, v)

    def serialize_u128(self, v: int) -> Owned:
        return self._scalar(U128, v)

    def serialize_f32(self, v: float) -> Owned:
        return self._scalar(F32, v)

    def serialize_f64(self, v: float) -> Owned:
        return self._scalar(F64, v)

    def serialize_char(self, v: str) -> Owned:
        return self._scalar(Char, v)

    def serialize_str(self, v: str) -> Owned:
        return Owned(Str(str(v)))

    def serialize_bytes(self, v: bytes | bytearray | memoryview) -> Owned:
        return Owned(Bytes(bytes(v)))

    def serialize_none(self) -> Owned:
        return Owned(NoneValue())

    def serialize_some(self, value: Serialize) -> Owned:
        return Owned(Some(self.capture_value(value)))

    def serialize_unit(self) -> Owned:
        return Owned(Unit())

    def serialize_unit_struct(self, name: str) -> Owned:
        return Owned(UnitStruct(name))

    def serialize_unit_variant(self, name: str, variant_index: int, variant: str) -> Owned:
        check_variant_index(variant_index)
        return Owned(UnitVariant(name, variant_index, variant))

    def serialize_newtype_struct(self, name: str, value: Serialize) -> Owned:
        return Owned(NewtypeStruct(name, self.capture_value(value)))

    def serialize_newtype_variant(
        self,
        name: str,
        variant_index: int,
        variant: str,
        value: Serialize
    ) -> Owned:
        check_variant_index(variant_index)
        return Owned(NewtypeVariant(name, variant_index, variant, self.capture_value(value)))

    def serialize_seq(self, length: int | None) -> SerializeSeq:
        return SerializeSeq(self)

    def serialize_tuple(self, length: int) -> SerializeTuple:
        return SerializeTuple(self)

    def serialize_tuple_struct(self, name: str, length: int) -> SerializeTupleStruct:
        return SerializeTupleStruct(self, name)

    def serialize_tuple_variant(
        self,
        name: str,
        variant_index: int,
        variant: str,
        length: int
    ) -> SerializeTupleVariant:
        check_variant_index(variant_index)
        return SerializeTupleVariant(self, name, variant_index, variant)

    def serialize_map(self, length: int | None) -> SerializeMap:
        return SerializeMap(self)

    def serialize_struct(self, name: str, length: int) -> SerializeStruct:
        return SerializeStruct(self, name)

    def serialize_struct_variant(
        self,
        name: str,
        variant_index: int,
        variant: str,
        length: int
    ) -> SerializeStructVariant:
        check_variant_index(variant_index)
        return SerializeStructVariant(self, name, variant_index, variant)


class SerializeSeq:
    def __init__(self, serializer: Serializer) -> None:
        self._serializer = serializer
        self._fields: list[Value] = []

    def serialize_element(self, value: Serialize) -> None:
        self._fields.append(self._serializer.capture_value(value))

    def end(self) -> Owned:
        return Owned(Seq(tuple(self._fields)))


class SerializeTuple:
    def __init__(self, serializer: Serializer) -> None:
        self._serializer = serializer
        self._fields: list[Value] = []

    def serialize_element(self, value: Serialize) -> None:
        self._fields.append(self._serializer.capture_value(value))

    def end(self) -> Owned:
        return Owned(Tuple(tuple(self._fields)))


class SerializeTupleStruct:
    def __init__(self, serializer: Serializer, name: str) -> None:
        self._serializer = serializer
        self._name = name
        self._fields: list[Value] = []

    def serialize_field(self, value: Serialize) -> None:
        self._fields.append(self._serializer.capture_value(value))

    def end(self) -> Owned:
        return Owned(TupleStruct(self._name, tuple(self._fields)))


class SerializeTupleVariant:
    def __init__(
        self,
        serializer: Serializer,
        name: str,
        variant_index: int,
        variant: str
    ) -> None:
        self._serializer = serializer
        self._name = name
        self._variant_index = variant_index
        self._variant = variant
        self._fields: list[Value] = []

    def serialize_field(self, value: Serialize) -> None:
        self._fields.append(self._serializer.capture_value(value))

    def end(self) -> Owned:
        return Owned(TupleVariant(
            self._name,
            self._variant_index,
            self._variant,
            tuple(self._fields)
        ))


class MapState(Enum):
    """Staging state of a map builder between the key and value phases."""
    EMPTY = "empty"
    KEY_STAGED = "key_staged"


class SerializeMap:
    """
    Map builder with two-phase staging.

    `serialize_key` stages a key and moves the builder to KEY_STAGED;
    `serialize_value` pairs the staged key with a value and returns to
    EMPTY. `serialize_entry` pushes a complete pair without touching the
    stage. Any call that would leave a key unpaired, or pair a value with no
    key, raises Error:

    - a second key while one is staged: "missing map value"
    - a value with nothing staged: "missing map key"
    - an entry while a key is staged: "missing map value"
    - `end()` while a key is staged: "missing map value"
    """

    def __init__(self, serializer: Serializer) -> None:
        self._serializer = serializer
        self._logger = serializer._logger
        self._state = MapState.EMPTY
        self._key: Value = Unit()
        self._entries: list[tuple[Value, Value]] = []

    def serialize_key(self, key: Serialize) -> None:
        if self._state is MapState.KEY_STAGED:
            self._logger.debug("Map key pushed while another key is still staged")
            raise Error.custom("missing map value")

        self._key = self._serializer.capture_value(key)
        self._state = MapState.KEY_STAGED

    def serialize_value(self, value: Serialize) -> None:
        if self._state is MapState.EMPTY:
            self._logger.debug("Map value pushed without a staged key")
            raise Error.custom("missing map key")

        item = self._serializer.capture_value(value)
        self._entries.append((self._key, item))
        self._key = Unit()
        self._state = MapState.EMPTY

    def serialize_entry(self, key: Serialize, value: Serialize) -> None:
        if self._state is MapState.KEY_STAGED:
            self._logger.debug("Map entry pushed while a key is still staged")
            raise Error.custom("missing map value")

        captured_key = self._serializer.capture_value(key)
        captured_value = self._serializer.capture_value(value)
        self._entries.append((captured_key, captured_value))

    def end(self) -> Owned:
        if self._state is MapState.KEY_STAGED:
            self._logger.debug("Map finalized with an unpaired key")
            raise Error.custom("missing map value")

        return Owned(Map(tuple(self._entries)))


class SerializeStruct:
    def __init__(self, serializer: Serializer, name: str) -> None:
        self._serializer = serializer
        self._name = name
        self._fields: list[tuple[str, Value]] = []

    def serialize_field(self, key: str, value: Serialize) -> None:
        self._fields.append((key, self._serializer.capture_value(value)))

    def end(self) -> Owned:
        return Owned(Struct(self._name, tuple(self._fields)))


class SerializeStructVariant:
    def __init__(
        self,
        serializer: Serializer,
        name: str,
        variant_index: int,
        variant: str
    ) -> None:
        self._serializer = serializer
        self._name = name
        self._variant_index = variant_index
        self._variant = variant
        self._fields: list[tuple[str, Value]] = []

    def serialize_field(self, key: str, value: Serialize) -> None:
        self._fields.append((key, self._serializer.capture_value(value)))

    def end(self) -> Owned:
        return Owned(StructVariant(
            self._name,
            self._variant_index,
            self._variant,
            tuple(self._fields)
        ))
