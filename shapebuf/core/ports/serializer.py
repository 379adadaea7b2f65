from __future__ import annotations

from typing import Any, Protocol


class Serialize(Protocol):
    """
    A value that can describe its own shape through the push interface.

    `serialize` must make exactly the calls that describe the value on the
    given serializer and return whatever the serializer's final call
    returned. The value decides its shape; the serializer decides what the
    shape becomes (bytes on a wire, a buffered tree, a token trace, ...).
    """

    def serialize(self, serializer: Serializer) -> Any:
        """Drive `serializer` with the calls describing this value."""


class Serializer(Protocol):
    """
    Push interface: the encoder side of the shape protocol.

    A value drives a Serializer call by call. Scalars, strings, bytes,
    options, units and single-payload structs/variants are described by one
    call each. Compound shapes (sequences, tuples, maps, records and the
    tuple/record variants) return a builder object that is fed element by
    element and explicitly finalized with `end()`.

    Enum variants are described by the enum name, the author-assigned
    0-based variant index and the variant name. Implementations may use any
    of them; the index is the authoritative one.

    Length hints are advisory. Implementations must not trust them for
    allocation since they may come from untrusted input.
    """

    def serialize_bool(self, v: bool) -> Any:
        ...

    def serialize_i8(self, v: int) -> Any:
        ...

    def serialize_i16(self, v: int) -> Any:
        ...

    def serialize_i32(self, v: int) -> Any:
        ...

    def serialize_i64(self, v: int) -> Any:
        ...

    def serialize_i128(self, v: int) -> Any:
        ...

    def serialize_u8(self, v: int) -> Any:
        ...

    def serialize_u16(self, v: int) -> Any:
        ...

    def serialize_u32(self, v: int) -> Any:
        ...

    def serialize_u64(self, v: int) -> Any:
        ...

    def serialize_u128(self, v: int) -> Any:
        ...

    def serialize_f32(self, v: float) -> Any:
        ...

    def serialize_f64(self, v: float) -> Any:
        ...

    def serialize_char(self, v: str) -> Any:
        ...

    def serialize_str(self, v: str) -> Any:
        ...

    def serialize_bytes(self, v: bytes | bytearray | memoryview) -> Any:
        ...

    def serialize_none(self) -> Any:
        ...

    def serialize_some(self, value: Serialize) -> Any:
        ...

    def serialize_unit(self) -> Any:
        ...

    def serialize_unit_struct(self, name: str) -> Any:
        ...

    def serialize_unit_variant(self, name: str, variant_index: int, variant: str) -> Any:
        ...

    def serialize_newtype_struct(self, name: str, value: Serialize) -> Any:
        ...

    def serialize_newtype_variant(
        self,
        name: str,
        variant_index: int,
        variant: str,
        value: Serialize
    ) -> Any:
        ...

    def serialize_seq(self, length: int | None) -> SerializeSeq:
        ...

    def serialize_tuple(self, length: int) -> SerializeTuple:
        ...

    def serialize_tuple_struct(self, name: str, length: int) -> SerializeTupleStruct:
        ...

    def serialize_tuple_variant(
        self,
        name: str,
        variant_index: int,
        variant: str,
        length: int
    ) -> SerializeTupleVariant:
        ...

    def serialize_map(self, length: int | None) -> SerializeMap:
        ...

    def serialize_struct(self, name: str, length: int) -> SerializeStruct:
        ...

    def serialize_struct_variant(
        self,
        name: str,
        variant_index: int,
        variant: str,
        length: int
    ) -> SerializeStructVariant:
        ...


class SerializeSeq(Protocol):
    def serialize_element(self, value: Serialize) -> None:
        ...

    def end(self) -> Any:
        ...


class SerializeTuple(Protocol):
    def serialize_element(self, value: Serialize) -> None:
        ...

    def end(self) -> Any:
        ...


class SerializeTupleStruct(Protocol):
    def serialize_field(self, value: Serialize) -> None:
        ...

    def end(self) -> Any:
        ...


class SerializeTupleVariant(Protocol):
    def serialize_field(self, value: Serialize) -> None:
        ...

    def end(self) -> Any:
        ...


class SerializeMap(Protocol):
    """
    Map builder. Entries are pushed either in two phases (`serialize_key`
    then `serialize_value`) or atomically with `serialize_entry`.
    """

    def serialize_key(self, key: Serialize) -> None:
        ...

    def serialize_value(self, value: Serialize) -> None:
        ...

    def serialize_entry(self, key: Serialize, value: Serialize) -> None:
        ...

    def end(self) -> Any:
        ...


class SerializeStruct(Protocol):
    def serialize_field(self, key: str, value: Serialize) -> None:
        ...

    def end(self) -> Any:
        ...


class SerializeStructVariant(Protocol):
    def serialize_field(self, key: str, value: Serialize) -> None:
        ...

    def end(self) -> Any:
        ...
