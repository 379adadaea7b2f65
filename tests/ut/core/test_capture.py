import logging

import pytest

from shapebuf.core.buffer.capture import MapState, Serializer, SerializeMap
from shapebuf.core.buffer.handles import Owned
from shapebuf.core.errors import Error
from shapebuf.core.models.value import (
    Bytes, Char, I8, Map, NewtypeStruct, NewtypeVariant, NoneValue, Seq, Some,
    Str, Struct, StructVariant, Tuple, TupleStruct, TupleVariant, U8, U16,
    Unit, UnitStruct, UnitVariant,
)
from shapebuf.core.serde.primitives import Char as CharTarget, Int32, UInt8
from tests.fake.targets import Empty, Failing, KeyOnly, Meters, Point, Rgb, Shape


@pytest.mark.ut
def test_scalars_keep_their_width(capture):
    assert capture.serialize_u8(7) == Owned(U8(7))
    assert capture.serialize_u16(7) == Owned(U16(7))
    assert capture.serialize_i8(-7) == Owned(I8(-7))
    assert capture.serialize_char("x") == Owned(Char("x"))
    assert capture.serialize_unit() == Owned(Unit())
    assert capture.serialize_none() == Owned(NoneValue())


@pytest.mark.ut
def test_text_and_bytes_are_owned_copies(capture):
    data = bytearray(b"abc")

    buffered = capture.serialize_bytes(data)
    data[0] = ord("z")

    assert buffered == Owned(Bytes(b"abc"))
    assert capture.serialize_str("hi") == Owned(Str("hi"))


@pytest.mark.ut
def test_range_checks_are_enforced(capture):
    with pytest.raises(Error, match="300 is out of range for u8"):
        capture.serialize_u8(300)

    with pytest.raises(Error, match="single character"):
        capture.serialize_char("xy")


@pytest.mark.ut
def test_range_checks_can_be_disabled(lenient_capture):
    assert lenient_capture.serialize_u8(300) == Owned(U8(300))


@pytest.mark.ut
def test_nested_values_are_captured_recursively(capture):
    assert capture.serialize_some(UInt8(42)) == Owned(Some(U8(42)))
    assert capture.capture(Meters(1.5)).value.name == "Meters"
    assert capture.capture(Empty()) == Owned(UnitStruct("Empty"))


@pytest.mark.ut
def test_records_and_tuples(capture):
    assert capture.capture(Point(1, -2)).value == Struct(
        "Point",
        (("x", Int32.shape(1)), ("y", Int32.shape(-2)))
    )
    assert capture.capture(Rgb(1, 2, 3)).value == TupleStruct("Rgb", (U8(1), U8(2), U8(3)))

    builder = capture.serialize_tuple(2)
    builder.serialize_element(UInt8(1))
    builder.serialize_element(CharTarget("c"))
    assert builder.end() == Owned(Tuple((U8(1), Char("c"))))


@pytest.mark.ut
def test_variants(capture):
    assert capture.capture(Shape("Nothing")).value == UnitVariant("Shape", 0, "Nothing")
    assert isinstance(capture.capture(Shape("Circle", 1.0)).value, NewtypeVariant)
    assert capture.capture(Shape("Line", (1, 2))).value == TupleVariant(
        "Shape", 2, "Line", (Int32.shape(1), Int32.shape(2))
    )
    assert capture.capture(Shape("Rect", {"w": 3, "h": 4})).value == StructVariant(
        "Shape", 3, "Rect", (("w", U8(3)), ("h", U8(4)))
    )


@pytest.mark.ut
def test_variant_index_out_of_range(capture):
    with pytest.raises(Error, match="variant index"):
        capture.serialize_unit_variant("E", 1 << 32, "A")


@pytest.mark.ut
def test_length_hints_are_ignored(capture):
    builder = capture.serialize_seq(1_000_000_000)
    builder.serialize_element(UInt8(1))

    assert builder.end() == Owned(Seq((U8(1),)))


@pytest.mark.ut
def test_map_entries_keep_order_and_duplicates(capture):
    builder = capture.serialize_map(None)
    builder.serialize_entry(UInt8(1), UInt8(10))
    builder.serialize_key(UInt8(1))
    builder.serialize_value(UInt8(11))

    assert builder.end() == Owned(Map(((U8(1), U8(10)), (U8(1), U8(11)))))


@pytest.mark.ut
def test_map_value_without_key(capture):
    builder = capture.serialize_map(1)

    with pytest.raises(Error, match="^missing map key$"):
        builder.serialize_value(UInt8(1))


@pytest.mark.ut
def test_map_two_keys_in_a_row(capture):
    builder = capture.serialize_map(2)
    builder.serialize_key(UInt8(1))

    with pytest.raises(Error, match="^missing map value$"):
        builder.serialize_key(UInt8(2))


@pytest.mark.ut
def test_map_entry_while_key_staged(capture):
    builder = capture.serialize_map(2)
    builder.serialize_key(UInt8(1))

    with pytest.raises(Error, match="^missing map value$"):
        builder.serialize_entry(UInt8(2), UInt8(3))


@pytest.mark.ut
def test_map_end_with_unpaired_key(capture, caplog):
    with caplog.at_level(logging.DEBUG, logger="core.buffer.capture"):
        with pytest.raises(Error, match="^missing map value$"):
            capture.capture(KeyOnly())

    assert "unpaired key" in caplog.text


@pytest.mark.ut
def test_map_state_transitions(capture):
    builder = SerializeMap(capture)
    assert builder._state is MapState.EMPTY

    builder.serialize_key(UInt8(1))
    assert builder._state is MapState.KEY_STAGED

    builder.serialize_value(UInt8(2))
    assert builder._state is MapState.EMPTY


@pytest.mark.ut
def test_errors_from_the_value_propagate_unchanged(capture):
    with pytest.raises(ValueError, match="cannot describe this value"):
        capture.capture(Failing())


@pytest.mark.ut
def test_value_must_return_the_serializer_result(capture):
    class Forgetful:
        def serialize(self, serializer):
            serializer.serialize_unit()

    with pytest.raises(Error, match="Forgetful.serialize"):
        capture.capture(Forgetful())


@pytest.mark.ut
def test_owned_buffer_entry_point():
    assert Owned.buffer(UInt8(5)) == Owned(U8(5))
    assert Owned.buffer(UInt8(5), Serializer(check_ranges=False)) == Owned(U8(5))


@pytest.mark.ut
def test_newtype_struct_payload(capture):
    assert capture.serialize_newtype_struct("N", UInt8(1)) == Owned(NewtypeStruct("N", U8(1)))
