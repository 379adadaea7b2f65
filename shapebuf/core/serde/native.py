from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from enum import Enum
from typing import Any

from shapebuf.core.buffer.handles import Owned, Ref
from shapebuf.core.errors import Error, Unexpected
from shapebuf.core.ports.deserializer import END, Deserializer, EnumAccess, MapAccess, SeqAccess, Visitor
from shapebuf.core.ports.serializer import Serializer


_I64 = (-(1 << 63), (1 << 63) - 1)
_U64 = (0, (1 << 64) - 1)
_I128 = (-(1 << 127), (1 << 127) - 1)
_U128 = (0, (1 << 128) - 1)


class Native:
    """
    Bridge between plain Python objects and the push/pull interfaces.

    As Serialize, `Native(obj)` describes `obj` with the closest shape:

    ======================  ===============================================
    None                    none
    bool                    bool
    Enum member             unit variant (index = declaration position)
    int                     i64, u64, i128 or u128, the narrowest that fits
    float                   f64
    str                     str
    bytes-like              bytes
    dataclass instance      struct named after the class
    Mapping                 map
    list, set, frozenset    seq
    tuple                   tuple
    ======================  ===============================================

    Anything exposing its own `serialize` method drives the serializer
    itself. As Deserialize, `Native.deserialize` turns any shape back into
    plain objects; see NativeVisitor.
    """
    __slots__ = ("obj",)

    def __init__(self, obj: Any) -> None:
        self.obj = obj

    def __repr__(self) -> str:
        return f"Native({self.obj!r})"

    def serialize(self, serializer: Serializer) -> Any:
        obj = self.obj

        if not isinstance(obj, type) and callable(getattr(obj, "serialize", None)):
            return obj.serialize(serializer)
        if obj is None:
            return serializer.serialize_none()
        if isinstance(obj, bool):
            return serializer.serialize_bool(obj)
        if isinstance(obj, Enum):
            members = list(type(obj))
            return serializer.serialize_unit_variant(type(obj).__name__, members.index(obj), obj.name)
        if isinstance(obj, int):
            return _serialize_int(obj, serializer)
        if isinstance(obj, float):
            return serializer.serialize_f64(obj)
        if isinstance(obj, str):
            return serializer.serialize_str(obj)
        if isinstance(obj, (bytes, bytearray, memoryview)):
            return serializer.serialize_bytes(obj)
        if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
            fields = dataclasses.fields(obj)
            builder = serializer.serialize_struct(type(obj).__name__, len(fields))
            for field in fields:
                builder.serialize_field(field.name, Native(getattr(obj, field.name)))
            return builder.end()
        if isinstance(obj, Mapping):
            builder = serializer.serialize_map(len(obj))
            for key, item in obj.items():
                builder.serialize_entry(Native(key), Native(item))
            return builder.end()
        if isinstance(obj, tuple):
            builder = serializer.serialize_tuple(len(obj))
            for item in obj:
                builder.serialize_element(Native(item))
            return builder.end()
        if isinstance(obj, (list, set, frozenset)):
            builder = serializer.serialize_seq(len(obj))
            for item in obj:
                builder.serialize_element(Native(item))
            return builder.end()

        raise Error.custom(f"cannot serialize object of type {type(obj).__name__}")

    @classmethod
    def deserialize(cls, deserializer: Deserializer) -> Any:
        return deserializer.deserialize_any(NativeVisitor())


def _serialize_int(v: int, serializer: Serializer) -> Any:
    if _I64[0] <= v <= _I64[1]:
        return serializer.serialize_i64(v)
    if _U64[0] <= v <= _U64[1]:
        return serializer.serialize_u64(v)
    if _I128[0] <= v <= _I128[1]:
        return serializer.serialize_i128(v)
    if _U128[0] <= v <= _U128[1]:
        return serializer.serialize_u128(v)
    raise Error.custom(f"integer {v} does not fit in 128 bits")


class NativeVisitor(Visitor):
    """
    Visitor building plain Python objects out of any shape.

    Scalars come back as themselves (borrowed bytes are copied), none and
    unit as None, option and newtype payloads transparently, sequences as
    lists, maps and structs as dicts, and enum variants as a
    `(variant_index, payload)` pair whose payload is None for unit
    variants, a list for tuple variants and a dict for struct variants.
    """

    def expecting(self) -> str:
        return "any value"

    def visit_bool(self, v: bool) -> bool:
        return v

    def visit_i64(self, v: int) -> int:
        return v

    def visit_i128(self, v: int) -> int:
        return v

    def visit_u64(self, v: int) -> int:
        return v

    def visit_u128(self, v: int) -> int:
        return v

    def visit_f64(self, v: float) -> float:
        return v

    def visit_str(self, v: str) -> str:
        return v

    def visit_bytes(self, v: bytes | memoryview) -> bytes:
        return bytes(v)

    def visit_none(self) -> None:
        return None

    def visit_some(self, deserializer: Deserializer) -> Any:
        return Native.deserialize(deserializer)

    def visit_unit(self) -> None:
        return None

    def visit_newtype_struct(self, deserializer: Deserializer) -> Any:
        return Native.deserialize(deserializer)

    def visit_seq(self, seq: SeqAccess) -> list[Any]:
        items = []
        while (item := seq.next_element(Native)) is not END:
            items.append(item)
        return items

    def visit_map(self, map: MapAccess) -> dict[Any, Any]:
        result: dict[Any, Any] = {}
        while (entry := map.next_entry(Native, Native)) is not END:
            key, item = entry
            try:
                result[key] = item
            except TypeError as ex:
                raise Error.invalid_type(Unexpected.other(f"unhashable map key {key!r}"), "a hashable key") from ex
        return result

    def visit_enum(self, data: EnumAccess) -> tuple[int, Any]:
        index, variant = data.variant(Native)
        return index, variant.newtype_variant(Native)


def to_native(buffer: Ref | Owned) -> Any:
    """Decode a buffer into plain Python objects."""
    return Native.deserialize(buffer.into_deserializer())
