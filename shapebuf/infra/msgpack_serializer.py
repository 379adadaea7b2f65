import logging
from typing import Any

import msgpack

from shapebuf.core.errors import Error
from shapebuf.core.ports.serializer import Serialize


_I64_MIN = -(1 << 63)
_U64_MAX = (1 << 64) - 1


def _key(obj: Any) -> Any:
    # msgpack keys must be hashable once unpacked
    if isinstance(obj, list):
        return tuple(_key(item) for item in obj)
    if isinstance(obj, dict):
        raise Error.custom("msgpack map keys cannot be maps")
    return obj


def _pairs(pairs: Any) -> dict[Any, Any]:
    return {_key(key): value for key, value in pairs}


class MsgPackSerializer:
    """
    MsgPack-based implementation of the push interface.

    Every push call returns the packed bytes of its shape, so compound
    shapes are written as a header followed by their packed children:

    - unit, unit structs and none become nil
    - options and newtype structs are transparent
    - sequences, tuples and tuple structs become arrays
    - maps and structs become maps
    - unit variants become the variant name, other variants a single-entry
      map `{variant: payload}`

    Map entries are written in push order and never merged, so duplicate
    keys and keys Python considers equal (`True`, `1`, `1.0`) all reach the
    wire. `decode` builds dicts and keeps the last of such entries; use
    `decode_pairs` to see every entry.

    MsgPack has no 128-bit integers: a value outside the 64-bit range
    raises Error.
    """

    def __init__(self) -> None:
        self._packer = msgpack.Packer(use_bin_type=True)
        self._logger = logging.getLogger("infra.msgpack_serializer")

    def encode(self, value: Serialize) -> bytes:
        return value.serialize(self)

    def decode(self, data: bytes) -> Any:
        return msgpack.unpackb(data, raw=False, strict_map_key=False, object_pairs_hook=_pairs)

    def decode_pairs(self, data: bytes) -> Any:
        """Decode with every map as a list of `(key, value)` pairs."""
        return msgpack.unpackb(data, raw=False, strict_map_key=False, object_pairs_hook=list)

    def _pack(self, obj: Any) -> bytes:
        return self._packer.pack(obj)

    def _int(self, v: int) -> bytes:
        if not _I64_MIN <= v <= _U64_MAX:
            self._logger.debug(f"Integer {v} exceeds the msgpack range")
            raise Error.custom(f"integer {v} cannot be encoded as msgpack")
        return self._pack(v)

    def _tagged(self, variant: str, payload: bytes) -> bytes:
        return self._packer.pack_map_header(1) + self._pack(variant) + payload

    def serialize_bool(self, v: bool) -> bytes:
        return self._pack(bool(v))

    def serialize_i8(self, v: int) -> bytes:
        return self._int(v)

    def serialize_i16(self, v: int) -> bytes:
        return self._int(v)

    def serialize_i32(self, v: int) -> bytes:
        return self._int(v)

    def serialize_i64(self, v: int) -> bytes:
        return self._int(v)

    def serialize_i128(self, v: int) -> bytes:
        return self._int(v)

    def serialize_u8(self, v: int) -> bytes:
        return self._int(v)

    def serialize_u16(self, v: int) -> bytes:
        return self._int(v)

    def serialize_u32(self, v: int) -> bytes:
        return self._int(v)

    def serialize_u64(self, v: int) -> bytes:
        return self._int(v)

    def serialize_u128(self, v: int) -> bytes:
        return self._int(v)

    def serialize_f32(self, v: float) -> bytes:
        return self._pack(float(v))

    def serialize_f64(self, v: float) -> bytes:
        return self._pack(float(v))

    def serialize_char(self, v: str) -> bytes:
        return self._pack(v)

    def serialize_str(self, v: str) -> bytes:
        return self._pack(v)

    def serialize_bytes(self, v: bytes | bytearray | memoryview) -> bytes:
        return self._pack(bytes(v))

    def serialize_none(self) -> bytes:
        return self._pack(None)

    def serialize_some(self, value: Serialize) -> bytes:
        return value.serialize(self)

    def serialize_unit(self) -> bytes:
        return self._pack(None)

    def serialize_unit_struct(self, name: str) -> bytes:
        return self._pack(None)

    def serialize_unit_variant(self, name: str, variant_index: int, variant: str) -> bytes:
        return self._pack(variant)

    def serialize_newtype_struct(self, name: str, value: Serialize) -> bytes:
        return value.serialize(self)

    def serialize_newtype_variant(
        self,
        name: str,
        variant_index: int,
        variant: str,
        value: Serialize
    ) -> bytes:
        return self._tagged(variant, value.serialize(self))

    def serialize_seq(self, length: int | None) -> "ArrayBuilder":
        return ArrayBuilder(self)

    def serialize_tuple(self, length: int) -> "ArrayBuilder":
        return ArrayBuilder(self)

    def serialize_tuple_struct(self, name: str, length: int) -> "ArrayBuilder":
        return ArrayBuilder(self)

    def serialize_tuple_variant(
        self,
        name: str,
        variant_index: int,
        variant: str,
        length: int
    ) -> "ArrayBuilder":
        return ArrayBuilder(self, variant)

    def serialize_map(self, length: int | None) -> "MapBuilder":
        return MapBuilder(self)

    def serialize_struct(self, name: str, length: int) -> "MapBuilder":
        return MapBuilder(self)

    def serialize_struct_variant(
        self,
        name: str,
        variant_index: int,
        variant: str,
        length: int
    ) -> "MapBuilder":
        return MapBuilder(self, variant)


class ArrayBuilder:
    def __init__(self, serializer: MsgPackSerializer, variant: str | None = None) -> None:
        self._serializer = serializer
        self._variant = variant
        self._items: list[bytes] = []

    def serialize_element(self, value: Serialize) -> None:
        self._items.append(value.serialize(self._serializer))

    def serialize_field(self, value: Serialize) -> None:
        self.serialize_element(value)

    def end(self) -> bytes:
        packed = self._serializer._packer.pack_array_header(len(self._items)) + b"".join(self._items)
        if self._variant is None:
            return packed
        return self._serializer._tagged(self._variant, packed)


class MapBuilder:
    def __init__(self, serializer: MsgPackSerializer, variant: str | None = None) -> None:
        self._serializer = serializer
        self._variant = variant
        self._entries: list[bytes] = []
        self._staged: list[bytes] = []

    def serialize_key(self, key: Serialize) -> None:
        if self._staged:
            raise Error.custom("missing map value")
        self._staged.append(key.serialize(self._serializer))

    def serialize_value(self, value: Serialize) -> None:
        if not self._staged:
            raise Error.custom("missing map key")
        self._entries.append(self._staged.pop() + value.serialize(self._serializer))

    def serialize_entry(self, key: Serialize, value: Serialize) -> None:
        self.serialize_key(key)
        self.serialize_value(value)

    def serialize_field(self, key: str, value: Serialize) -> None:
        self._entries.append(self._serializer._pack(key) + value.serialize(self._serializer))

    def end(self) -> bytes:
        if self._staged:
            raise Error.custom("missing map value")
        packed = self._serializer._packer.pack_map_header(len(self._entries)) + b"".join(self._entries)
        if self._variant is None:
            return packed
        return self._serializer._tagged(self._variant, packed)
