import msgpack
import pytest

from shapebuf.core.buffer.handles import Owned, Ref
from shapebuf.core.errors import Error
from shapebuf.core.serde.native import Native
from shapebuf.core.serde.primitives import (
    ByteBuf, MapOf, OptionOf, SeqOf, TupleOf, UInt8, UInt128, UnitType,
)
from shapebuf.infra.msgpack_serializer import MsgPackSerializer
from tests.fake.targets import Empty, Meters, Point, Rgb, Shape


@pytest.fixture
def codec():
    return MsgPackSerializer()


@pytest.mark.it
@pytest.mark.parametrize("value,document", [
    (UInt8(7), 7),
    (UnitType(), None),
    (Empty(), None),
    (OptionOf(UInt8)(None), None),
    (OptionOf(UInt8)(3), 3),
    (ByteBuf(b"\x01"), b"\x01"),
    (Meters(2.5), 2.5),
    (Point(1, 2), {"x": 1, "y": 2}),
    (Rgb(1, 2, 3), [1, 2, 3]),
    (SeqOf(UInt8)([1, 2]), [1, 2]),
    (TupleOf(UInt8, UnitType)((1, UnitType())), [1, None]),
    (Shape("Nothing"), "Nothing"),
    (Shape("Circle", 1.0), {"Circle": 1.0}),
    (Shape("Line", (1, 2)), {"Line": [1, 2]}),
    (Shape("Rect", {"w": 1, "h": 2}), {"Rect": {"w": 1, "h": 2}}),
])
def test_shapes_map_to_msgpack_documents(codec, value, document):
    data = codec.encode(value)

    assert data == msgpack.packb(document, use_bin_type=True)
    assert codec.decode(data) == document


@pytest.mark.it
@pytest.mark.parametrize("value", [
    Point(-5, 5),
    Shape("Rect", {"w": 9, "h": 8}),
    MapOf(UInt8, SeqOf(Shape))({1: [Shape("Nothing"), Shape("Circle", 0.5)]}),
    Native({"nested": [1, "two", b"three", None, {"deep": True}]}),
])
def test_buffer_encodes_like_the_captured_value(codec, value):
    assert codec.encode(Owned.buffer(value)) == codec.encode(value)


@pytest.mark.it
def test_borrowed_data_encodes_like_owned_data(codec):
    borrowed = Ref.seq([Ref.str("a"), Ref.bytes(bytearray(b"b"))])
    owned = Ref.seq([Ref.owned_str("a"), Ref.owned_bytes(b"b")])

    assert codec.encode(borrowed) == codec.encode(owned)


@pytest.mark.it
def test_sequence_keys_become_tuples(codec):
    value = MapOf(TupleOf(UInt8, UInt8), UInt8)([((1, 2), 3)])

    assert codec.decode(codec.encode(value)) == {(1, 2): 3}


@pytest.mark.it
def test_wide_integers_are_rejected(codec):
    with pytest.raises(Error, match="cannot be encoded as msgpack"):
        codec.encode(UInt128(1 << 64))

    assert codec.decode(codec.encode(UInt128(5))) == 5


@pytest.mark.it
def test_map_staging_misuse(codec):
    builder = codec.serialize_map(1)

    with pytest.raises(Error, match="missing map key"):
        builder.serialize_value(UInt8(1))

    builder.serialize_key(UInt8(1))
    with pytest.raises(Error, match="missing map value"):
        builder.end()


@pytest.mark.it
def test_map_entries_are_never_merged(codec):
    value = Ref.map([
        (Ref.bool(True), Ref.u8(1)),
        (Ref.u8(1), Ref.u8(2)),
        (Ref.u8(1), Ref.u8(3)),
    ])
    data = codec.encode(value)

    assert data == msgpack.Packer(use_bin_type=True).pack_map_pairs([(True, 1), (1, 2), (1, 3)])
    pairs = codec.decode_pairs(data)
    assert pairs == [(True, 1), (1, 2), (1, 3)]
    assert [type(key) for key, _ in pairs] == [bool, int, int]


@pytest.mark.it
def test_duplicate_fields_are_kept(codec):
    record = Ref.record_struct("S", [("a", Ref.u8(1)), ("a", Ref.u8(2))])
    variant = Ref.record_struct_variant("E", 0, "V", [("a", Ref.u8(1)), ("a", Ref.u8(2))])

    assert codec.decode_pairs(codec.encode(record)) == [("a", 1), ("a", 2)]
    assert codec.decode_pairs(codec.encode(variant)) == [("V", [("a", 1), ("a", 2)])]
    assert codec.decode(codec.encode(record)) == {"a": 2}
