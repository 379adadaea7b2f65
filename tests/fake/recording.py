from typing import Any


class RecordingSerializer:
    """
    A push-interface implementation that records every call as a token.

    Tokens are plain tuples, e.g. ``("Struct", "Point", 2)``, ``("Field", "x")``,
    ``("I32", 1)``, ``("StructEnd",)``, so two traces can be compared with ==.
    """

    def __init__(self):
        self.tokens: list[tuple] = []

    def _emit(self, *token: Any) -> None:
        self.tokens.append(token)

    def serialize_bool(self, v):
        self._emit("Bool", v)

    def serialize_i8(self, v):
        self._emit("I8", v)

    def serialize_i16(self, v):
        self._emit("I16", v)

    def serialize_i32(self, v):
        self._emit("I32", v)

    def serialize_i64(self, v):
        self._emit("I64", v)

    def serialize_i128(self, v):
        self._emit("I128", v)

    def serialize_u8(self, v):
        self._emit("U8", v)

    def serialize_u16(self, v):
        self._emit("U16", v)

    def serialize_u32(self, v):
        self._emit("U32", v)

    def serialize_u64(self, v):
        self._emit("U64", v)

    def serialize_u128(self, v):
        self._emit("U128", v)

    def serialize_f32(self, v):
        self._emit("F32", v)

    def serialize_f64(self, v):
        self._emit("F64", v)

    def serialize_char(self, v):
        self._emit("Char", v)

    def serialize_str(self, v):
        self._emit("Str", v)

    def serialize_bytes(self, v):
        self._emit("Bytes", bytes(v))

    def serialize_none(self):
        self._emit("None")

    def serialize_some(self, value):
        self._emit("Some")
        value.serialize(self)

    def serialize_unit(self):
        self._emit("Unit")

    def serialize_unit_struct(self, name):
        self._emit("UnitStruct", name)

    def serialize_unit_variant(self, name, variant_index, variant):
        self._emit("UnitVariant", name, variant_index, variant)

    def serialize_newtype_struct(self, name, value):
        self._emit("NewtypeStruct", name)
        value.serialize(self)

    def serialize_newtype_variant(self, name, variant_index, variant, value):
        self._emit("NewtypeVariant", name, variant_index, variant)
        value.serialize(self)

    def serialize_seq(self, length):
        self._emit("Seq", length)
        return RecordingCompound(self, "SeqEnd")

    def serialize_tuple(self, length):
        self._emit("Tuple", length)
        return RecordingCompound(self, "TupleEnd")

    def serialize_tuple_struct(self, name, length):
        self._emit("TupleStruct", name, length)
        return RecordingCompound(self, "TupleStructEnd")

    def serialize_tuple_variant(self, name, variant_index, variant, length):
        self._emit("TupleVariant", name, variant_index, variant, length)
        return RecordingCompound(self, "TupleVariantEnd")

    def serialize_map(self, length):
        self._emit("Map", length)
        return RecordingCompound(self, "MapEnd")

    def serialize_struct(self, name, length):
        self._emit("Struct", name, length)
        return RecordingCompound(self, "StructEnd")

    def serialize_struct_variant(self, name, variant_index, variant, length):
        self._emit("StructVariant", name, variant_index, variant, length)
        return RecordingCompound(self, "StructVariantEnd")


class RecordingCompound:
    def __init__(self, serializer: RecordingSerializer, end_token: str):
        self._serializer = serializer
        self._end_token = end_token

    def serialize_element(self, value):
        value.serialize(self._serializer)

    def serialize_field(self, *args):
        if len(args) == 2:
            key, value = args
            self._serializer._emit("Field", key)
        else:
            (value,) = args
        value.serialize(self._serializer)

    def serialize_key(self, key):
        key.serialize(self._serializer)

    def serialize_value(self, value):
        value.serialize(self._serializer)

    def serialize_entry(self, key, value):
        key.serialize(self._serializer)
        value.serialize(self._serializer)

    def end(self):
        self._serializer._emit(self._end_token)


def tokens_of(value) -> list[tuple]:
    recorder = RecordingSerializer()
    value.serialize(recorder)
    return recorder.tokens
