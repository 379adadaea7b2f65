from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterable

from shapebuf.core.buffer.replay import Deserializer
from shapebuf.core.errors import Error
from shapebuf.core.models.value import (
    Bool, BorrowedBytes, BorrowedStr, Bytes, Char, F32, F64, I8, I16, I32, I64,
    I128, Map, NewtypeStruct, NewtypeVariant, NoneValue, Seq, Some, Str, Struct,
    StructVariant, Tuple, TupleStruct, TupleVariant, U8, U16, U32, U64, U128,
    Unit, UnitStruct, UnitVariant, Value, check_scalar, check_variant_index,
    children,
)
from shapebuf.core.ports.serializer import Serialize, Serializer

if TYPE_CHECKING:
    from shapebuf.core.buffer.capture import Serializer as CaptureSerializer


logger = logging.getLogger("core.buffer.handles")


def lends_immutable(payload: Any) -> bool:
    """
    Whether a borrowed payload can outlive whatever it was borrowed from.

    Text is immutable in Python and so are `bytes` objects and read-only
    views over them; those are not bounded by any lifetime. A view over a
    `bytearray`, an `mmap` or any other exported buffer aliases memory its
    owner may change or release, and is bounded by that owner.
    A released view is bounded as well.
    """
    if isinstance(payload, (str, bytes)):
        return True
    if isinstance(payload, memoryview):
        try:
            return payload.readonly and isinstance(payload.obj, bytes)
        except ValueError:
            # released views no longer lend anything
            return False
    return False


def is_unbounded(value: Value) -> bool:
    """Whether no borrowed leaf of the tree is bounded by a lifetime."""
    stack = [value]
    while stack:
        node = stack.pop()
        if isinstance(node, (BorrowedStr, BorrowedBytes)) and not lends_immutable(node.v):
            return False
        stack.extend(children(node))
    return True


class Owned:
    """
    A fully owned buffer.

    Every leaf of an Owned buffer is either an independent copy or borrowed
    from immutable data, so the buffer may be kept for as long as needed.
    Owned buffers are produced by the capture adapter (`Owned.buffer`) or by
    converting a Ref whose borrowed leaves are unbounded.

    An Owned buffer serializes exactly like the value it was captured from
    and can be decoded any number of times through `into_deserializer`.
    """
    __slots__ = ("_value",)

    def __init__(self, value: Value) -> None:
        self._value = value

    @property
    def value(self) -> Value:
        return self._value

    @classmethod
    def buffer(cls, v: Serialize, serializer: CaptureSerializer | None = None) -> Owned:
        """
        Buffer `v` into an owned buffer by capturing its push calls.

        The resulting buffer is guaranteed to serialize to the same calls as
        `v`. Without an explicit adapter range checks are on;
        `shapebuf.bootstrap.deps.buffer` captures as the settings say.
        """
        if serializer is None:
            from shapebuf.core.buffer.capture import Serializer as CaptureSerializer
            serializer = CaptureSerializer()
        return serializer.capture(v)

    @classmethod
    def from_ref(cls, ref: Ref) -> Owned:
        return ref.into_owned()

    def into_ref(self) -> Ref:
        """Reinterpret as a Ref. Owned data satisfies any borrow, so nothing is copied."""
        return Ref(self._value)

    def serialize(self, serializer: Serializer) -> Any:
        return self._value.serialize(serializer)

    def into_deserializer(self) -> Deserializer:
        return Deserializer(self._value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Owned):
            return NotImplemented
        return self._value == other._value

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Owned({self._value!r})"


def _unwrap(buffer: Ref | Owned) -> Value:
    if isinstance(buffer, (Ref, Owned)):
        return buffer.value
    raise TypeError(f"expected a Ref or Owned buffer, got {type(buffer).__name__}")


def _scalar(kind: type[Value], v: Any) -> Ref:
    check_scalar(kind, v)
    return Ref(kind(v))


class Ref:
    """
    A partly owned buffer.

    Ref buffers may hold borrowed text and bytes: `Ref.str` and `Ref.bytes`
    store the caller's object itself, and decoding hands that same object to
    the visitor's borrowed-data methods without copying. A borrowed
    memoryview over mutable memory is only valid for as long as the memory
    it views; such a Ref cannot become Owned.

    The classmethods below are the construction API: one constructor per
    shape, taking child buffers (Ref or Owned) for compound shapes. This is
    how data that cannot drive the push interface still ends up in a
    buffer.
    """
    __slots__ = ("_value",)

    def __init__(self, value: Value) -> None:
        self._value = value

    @property
    def value(self) -> Value:
        return self._value

    @classmethod
    def buffer(cls, v: Serialize, serializer: CaptureSerializer | None = None) -> Ref:
        """Capture `v` into a buffer; see `Owned.buffer`."""
        return Owned.buffer(v, serializer).into_ref()

    @classmethod
    def from_owned(cls, owned: Owned) -> Ref:
        return owned.into_ref()

    def is_unbounded(self) -> bool:
        return is_unbounded(self._value)

    def into_owned(self) -> Owned:
        """
        Reinterpret as Owned without copying.

        Only possible when no borrowed leaf is bounded by the lifetime of
        the memory it views; otherwise raises Error.
        """
        if not self.is_unbounded():
            logger.debug("Refusing to reinterpret a lifetime-bounded Ref as Owned")
            raise Error.custom("buffer borrows from a bounded lifetime")
        return Owned(self._value)

    def serialize(self, serializer: Serializer) -> Any:
        return self._value.serialize(serializer)

    def into_deserializer(self) -> Deserializer:
        return Deserializer(self._value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Ref):
            return NotImplemented
        return self._value == other._value

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Ref({self._value!r})"

    @classmethod
    def unit(cls) -> Ref:
        return cls(Unit())

    @classmethod
    def bool(cls, v: bool) -> Ref:
        return _scalar(Bool, v)

    @classmethod
    def u8(cls, v: int) -> Ref:
        return _scalar(U8, v)

    @classmethod
    def u16(cls, v: int) -> Ref:
        return _scalar(U16, v)

    @classmethod
    def u32(cls, v: int) -> Ref:
        return _scalar(U32, v)

    @classmethod
    def u64(cls, v: int) -> Ref:
        return _scalar(U64, v)

    @classmethod
    def u128(cls, v: int) -> Ref:
        return _scalar(U128, v)

    @classmethod
    def i8(cls, v: int) -> Ref:
        return _scalar(I8, v)

    @classmethod
    def i16(cls, v: int) -> Ref:
        return _scalar(I16, v)

    @classmethod
    def i32(cls, v: int) -> Ref:
        return _scalar(I32, v)

    @classmethod
    def i64(cls, v: int) -> Ref:
        return _scalar(I64, v)

    @classmethod
    def i128(cls, v: int) -> Ref:
        return _scalar(I128, v)

    @classmethod
    def f32(cls, v: float) -> Ref:
        return _scalar(F32, v)

    @classmethod
    def f64(cls, v: float) -> Ref:
        return _scalar(F64, v)

    @classmethod
    def char(cls, v: str) -> Ref:
        return _scalar(Char, v)

    @classmethod
    def owned_str(cls, v: str) -> Ref:
        return cls(Str(str(v)))

    @classmethod
    def str(cls, v: str) -> Ref:
        return cls(BorrowedStr(v))

    @classmethod
    def owned_bytes(cls, v: bytes | bytearray | memoryview) -> Ref:
        return cls(Bytes(bytes(v)))

    @classmethod
    def bytes(cls, v: bytes | bytearray | memoryview) -> Ref:
        """
        Borrow `v`. A `bytes` object is stored as is; any other buffer is
        viewed through a memoryview that aliases the caller's memory.
        """
        if isinstance(v, (bytes, memoryview)):
            return cls(BorrowedBytes(v))
        return cls(BorrowedBytes(memoryview(v)))

    @classmethod
    def none(cls) -> Ref:
        return cls(NoneValue())

    @classmethod
    def some(cls, v: Ref | Owned) -> Ref:
        return cls(Some(_unwrap(v)))

    @classmethod
    def unit_struct(cls, name: str) -> Ref:
        """A unit struct, like `struct A`."""
        return cls(UnitStruct(name))

    @classmethod
    def newtype_struct(cls, name: str, value: Ref | Owned) -> Ref:
        """A newtype struct, like `struct A(T)`."""
        return cls(NewtypeStruct(name, _unwrap(value)))

    @classmethod
    def record_struct(cls, name: str, fields: Iterable[tuple[str, Ref | Owned]]) -> Ref:
        """A struct with named fields, like `struct A { a: T, b: U }`."""
        return cls(Struct(name, tuple((key, _unwrap(v)) for key, v in fields)))

    @classmethod
    def tuple_struct(cls, name: str, fields: Iterable[Ref | Owned]) -> Ref:
        """A struct with unnamed fields, like `struct A(T, U)`."""
        return cls(TupleStruct(name, tuple(_unwrap(v) for v in fields)))

    @classmethod
    def tuple(cls, fields: Iterable[Ref | Owned]) -> Ref:
        return cls(Tuple(tuple(_unwrap(v) for v in fields)))

    @classmethod
    def unit_variant(cls, name: str, variant_index: int, variant: str) -> Ref:
        check_variant_index(variant_index)
        return cls(UnitVariant(name, variant_index, variant))

    @classmethod
    def newtype_variant(
        cls,
        name: str,
        variant_index: int,
        variant: str,
        value: Ref | Owned
    ) -> Ref:
        check_variant_index(variant_index)
        return cls(NewtypeVariant(name, variant_index, variant, _unwrap(value)))

    @classmethod
    def tuple_variant(
        cls,
        name: str,
        variant_index: int,
        variant: str,
        fields: Iterable[Ref | Owned]
    ) -> Ref:
        check_variant_index(variant_index)
        return cls(TupleVariant(
            name,
            variant_index,
            variant,
            tuple(_unwrap(v) for v in fields)
        ))

    @classmethod
    def record_struct_variant(
        cls,
        name: str,
        variant_index: int,
        variant: str,
        fields: Iterable[tuple[str, Ref | Owned]]
    ) -> Ref:
        check_variant_index(variant_index)
        return cls(StructVariant(
            name,
            variant_index,
            variant,
            tuple((key, _unwrap(v)) for key, v in fields)
        ))

    @classmethod
    def seq(cls, items: Iterable[Ref | Owned]) -> Ref:
        return cls(Seq(tuple(_unwrap(v) for v in items)))

    @classmethod
    def map(cls, entries: Iterable[tuple[Ref | Owned, Ref | Owned]]) -> Ref:
        return cls(Map(tuple((_unwrap(k), _unwrap(v)) for k, v in entries)))
