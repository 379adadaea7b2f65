from __future__ import annotations

from typing import Any, Protocol, Sequence

from shapebuf.core.errors import Error, Unexpected


class _End:
    """Marker returned by the pull cursors once they are drained."""
    _instance: _End | None = None

    def __new__(cls) -> _End:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "END"

    def __bool__(self) -> bool:
        return False


END = _End()
"""
Returned by `SeqAccess.next_element*` and `MapAccess.next_key*` when
the cursor has no entries left. `None` cannot play that role because a
decoded element may legitimately be `None`.
"""


class Deserializer(Protocol):
    """
    Pull interface: the decoder side of the shape protocol.

    The caller states which shape it expects by picking one of the
    `deserialize_*` entry points and hands over a Visitor. The deserializer
    then performs exactly one `visit_*` call on the visitor, chosen from the
    data it holds, and returns whatever the visitor returned.
    """

    def deserialize_any(self, visitor: Visitor) -> Any:
        ...

    def deserialize_bool(self, visitor: Visitor) -> Any:
        ...

    def deserialize_i8(self, visitor: Visitor) -> Any:
        ...

    def deserialize_i16(self, visitor: Visitor) -> Any:
        ...

    def deserialize_i32(self, visitor: Visitor) -> Any:
        ...

    def deserialize_i64(self, visitor: Visitor) -> Any:
        ...

    def deserialize_i128(self, visitor: Visitor) -> Any:
        ...

    def deserialize_u8(self, visitor: Visitor) -> Any:
        ...

    def deserialize_u16(self, visitor: Visitor) -> Any:
        ...

    def deserialize_u32(self, visitor: Visitor) -> Any:
        ...

    def deserialize_u64(self, visitor: Visitor) -> Any:
        ...

    def deserialize_u128(self, visitor: Visitor) -> Any:
        ...

    def deserialize_f32(self, visitor: Visitor) -> Any:
        ...

    def deserialize_f64(self, visitor: Visitor) -> Any:
        ...

    def deserialize_char(self, visitor: Visitor) -> Any:
        ...

    def deserialize_str(self, visitor: Visitor) -> Any:
        ...

    def deserialize_string(self, visitor: Visitor) -> Any:
        ...

    def deserialize_bytes(self, visitor: Visitor) -> Any:
        ...

    def deserialize_byte_buf(self, visitor: Visitor) -> Any:
        ...

    def deserialize_option(self, visitor: Visitor) -> Any:
        ...

    def deserialize_unit(self, visitor: Visitor) -> Any:
        ...

    def deserialize_unit_struct(self, name: str, visitor: Visitor) -> Any:
        ...

    def deserialize_newtype_struct(self, name: str, visitor: Visitor) -> Any:
        ...

    def deserialize_seq(self, visitor: Visitor) -> Any:
        ...

    def deserialize_tuple(self, length: int, visitor: Visitor) -> Any:
        ...

    def deserialize_tuple_struct(self, name: str, length: int, visitor: Visitor) -> Any:
        ...

    def deserialize_map(self, visitor: Visitor) -> Any:
        ...

    def deserialize_struct(
        self,
        name: str,
        fields: Sequence[str],
        visitor: Visitor
    ) -> Any:
        ...

    def deserialize_enum(
        self,
        name: str,
        variants: Sequence[str],
        visitor: Visitor
    ) -> Any:
        ...

    def deserialize_identifier(self, visitor: Visitor) -> Any:
        ...

    def deserialize_ignored_any(self, visitor: Visitor) -> Any:
        ...


class DeserializeSeed(Protocol):
    """
    Anything that can decode one value out of a Deserializer.

    Every `Deserialize` class is a seed as well (its `deserialize` is a
    classmethod), and so is every stateful target descriptor such as
    `SeqOf(UInt8)`.
    """

    def deserialize(self, deserializer: Deserializer) -> Any:
        ...


class Deserialize(Protocol):
    @classmethod
    def deserialize(cls, deserializer: Deserializer) -> Any:
        ...


class SeqAccess(Protocol):
    """
    Single-pass cursor over the elements of a sequence-like shape.
    Each step decodes one element with the given seed; `END` is returned
    once the elements are exhausted.
    """

    def next_element_seed(self, seed: DeserializeSeed) -> Any:
        ...

    def next_element(self, target: DeserializeSeed) -> Any:
        ...

    def size_hint(self) -> int | None:
        ...


class MapAccess(Protocol):
    """
    Cursor over the entries of a map-like shape. Must be driven strictly
    key then value for every entry.
    """

    def next_key_seed(self, seed: DeserializeSeed) -> Any:
        ...

    def next_value_seed(self, seed: DeserializeSeed) -> Any:
        ...

    def next_entry_seed(
        self,
        key_seed: DeserializeSeed,
        value_seed: DeserializeSeed
    ) -> tuple[Any, Any] | _End:
        ...

    def next_key(self, target: DeserializeSeed) -> Any:
        ...

    def next_value(self, target: DeserializeSeed) -> Any:
        ...

    def next_entry(self, key: DeserializeSeed, value: DeserializeSeed) -> tuple[Any, Any] | _End:
        ...

    def size_hint(self) -> int | None:
        ...


class VariantAccess(Protocol):
    """
    Access to the payload of an enum variant once its identifier has been
    decoded. Exactly one of the four methods may be called.
    """

    def unit_variant(self) -> None:
        ...

    def newtype_variant_seed(self, seed: DeserializeSeed) -> Any:
        ...

    def newtype_variant(self, target: DeserializeSeed) -> Any:
        ...

    def tuple_variant(self, length: int, visitor: Visitor) -> Any:
        ...

    def struct_variant(self, fields: Sequence[str], visitor: Visitor) -> Any:
        ...


class EnumAccess(Protocol):
    def variant_seed(self, seed: DeserializeSeed) -> tuple[Any, VariantAccess]:
        ...

    def variant(self, target: DeserializeSeed) -> tuple[Any, VariantAccess]:
        ...


class Visitor:
    """
    Base class for the consumer side of the pull interface.

    A deserializer calls exactly one `visit_*` method per decoded value.
    The defaults mirror the usual shape lattice: narrower integers forward
    to their 64-bit method, `f32` to `f64`, `char` to `str`, and the
    borrowed/owned flavours of text and bytes to `visit_str` and
    `visit_bytes`. Anything a subclass does not override ends in an
    invalid-type Error built from `expecting()`.

    Subclasses that care about zero-copy decoding override
    `visit_borrowed_str` / `visit_borrowed_bytes`; those receive the very
    object stored in the buffer.
    """

    def expecting(self) -> str:
        return "a value"

    def _invalid(self, unexpected: Unexpected) -> Error:
        return Error.invalid_type(unexpected, self.expecting())

    def visit_bool(self, v: bool) -> Any:
        raise self._invalid(Unexpected.boolean(v))

    def visit_i8(self, v: int) -> Any:
        return self.visit_i64(v)

    def visit_i16(self, v: int) -> Any:
        return self.visit_i64(v)

    def visit_i32(self, v: int) -> Any:
        return self.visit_i64(v)

    def visit_i64(self, v: int) -> Any:
        raise self._invalid(Unexpected.signed(v))

    def visit_i128(self, v: int) -> Any:
        raise self._invalid(Unexpected.other(f"integer `{v}` as i128"))

    def visit_u8(self, v: int) -> Any:
        return self.visit_u64(v)

    def visit_u16(self, v: int) -> Any:
        return self.visit_u64(v)

    def visit_u32(self, v: int) -> Any:
        return self.visit_u64(v)

    def visit_u64(self, v: int) -> Any:
        raise self._invalid(Unexpected.unsigned(v))

    def visit_u128(self, v: int) -> Any:
        raise self._invalid(Unexpected.other(f"integer `{v}` as u128"))

    def visit_f32(self, v: float) -> Any:
        return self.visit_f64(v)

    def visit_f64(self, v: float) -> Any:
        raise self._invalid(Unexpected.floating(v))

    def visit_char(self, v: str) -> Any:
        return self.visit_str(v)

    def visit_str(self, v: str) -> Any:
        raise self._invalid(Unexpected.string(v))

    def visit_borrowed_str(self, v: str) -> Any:
        return self.visit_str(v)

    def visit_string(self, v: str) -> Any:
        return self.visit_str(v)

    def visit_bytes(self, v: bytes | memoryview) -> Any:
        raise self._invalid(Unexpected.byte_array())

    def visit_borrowed_bytes(self, v: bytes | memoryview) -> Any:
        return self.visit_bytes(v)

    def visit_byte_buf(self, v: bytes) -> Any:
        return self.visit_bytes(v)

    def visit_none(self) -> Any:
        raise self._invalid(Unexpected.option())

    def visit_some(self, deserializer: Deserializer) -> Any:
        raise self._invalid(Unexpected.option())

    def visit_unit(self) -> Any:
        raise self._invalid(Unexpected.unit())

    def visit_newtype_struct(self, deserializer: Deserializer) -> Any:
        raise self._invalid(Unexpected.newtype_struct())

    def visit_seq(self, seq: SeqAccess) -> Any:
        raise self._invalid(Unexpected.seq())

    def visit_map(self, map: MapAccess) -> Any:
        raise self._invalid(Unexpected.map())

    def visit_enum(self, data: EnumAccess) -> Any:
        raise self._invalid(Unexpected.enum())
