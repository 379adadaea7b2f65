import enum
from dataclasses import dataclass

import pytest

from shapebuf.core.buffer.handles import Owned, Ref
from shapebuf.core.errors import Error
from shapebuf.core.models.value import (
    Bool, Bytes, F64, I64, I128, Map, NoneValue, Seq, Str, Struct, Tuple, U64,
    U8, U128, UnitVariant,
)
from shapebuf.core.serde.native import Native, to_native
from shapebuf.core.serde.primitives import UInt8
from tests.fake.targets import Shape


class Color(enum.Enum):
    RED = "r"
    GREEN = "g"


@dataclass
class Item:
    name: str
    tags: list


def capture(obj):
    return Owned.buffer(Native(obj)).value


@pytest.mark.ut
@pytest.mark.parametrize("obj,value", [
    (None, NoneValue()),
    (True, Bool(True)),
    (-5, I64(-5)),
    ((1 << 63), U64(1 << 63)),
    (-(1 << 64), I128(-(1 << 64))),
    ((1 << 127), U128(1 << 127)),
    (1.5, F64(1.5)),
    ("s", Str("s")),
    (bytearray(b"b"), Bytes(b"b")),
    ((1, "a"), Tuple((I64(1), Str("a")))),
    ([True], Seq((Bool(True),))),
    ({"k": None}, Map(((Str("k"), NoneValue()),))),
    (Color.GREEN, UnitVariant("Color", 1, "GREEN")),
])
def test_plain_objects_take_the_closest_shape(obj, value):
    assert capture(obj) == value


@pytest.mark.ut
def test_dataclasses_become_structs():
    assert capture(Item("a", [])) == Struct("Item", (("name", Str("a")), ("tags", Seq(()))))


@pytest.mark.ut
def test_objects_with_serialize_drive_the_serializer():
    assert capture([UInt8(1)]) == Seq((U8(1),))
    assert to_native(Owned.buffer(Native([UInt8(1)]))) == [1]


@pytest.mark.ut
def test_unsupported_objects():
    with pytest.raises(Error, match="cannot serialize object of type object"):
        capture(object())
    with pytest.raises(Error, match="does not fit in 128 bits"):
        capture(1 << 200)


@pytest.mark.ut
def test_round_trip_through_a_buffer():
    obj = {"a": [1, 2.5, None, "x", b"y"], "b": {"nested": (True, False)}}

    assert to_native(Owned.buffer(Native(obj))) == {
        "a": [1, 2.5, None, "x", b"y"],
        "b": {"nested": [True, False]},
    }


@pytest.mark.ut
def test_enum_variants_decode_to_index_and_payload():
    assert to_native(Owned.buffer(Shape("Nothing"))) == (0, None)
    assert to_native(Owned.buffer(Shape("Circle", 2.0))) == (1, 2.0)
    assert to_native(Owned.buffer(Shape("Line", (1, 2)))) == (2, [1, 2])
    assert to_native(Owned.buffer(Shape("Rect", {"w": 1, "h": 2}))) == (3, {"w": 1, "h": 2})


@pytest.mark.ut
def test_borrowed_bytes_are_copied():
    data = bytearray(b"abc")

    decoded = to_native(Ref.bytes(data))
    data[0] = ord("z")

    assert decoded == b"abc"


@pytest.mark.ut
def test_unit_and_newtype_shapes():
    assert to_native(Ref.unit()) is None
    assert to_native(Ref.unit_struct("U")) is None
    assert to_native(Ref.newtype_struct("N", Ref.u8(3))) == 3
    assert to_native(Ref.some(Ref.char("c"))) == "c"
