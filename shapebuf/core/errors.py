from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable


@dataclass(frozen=True, slots=True)
class Unexpected:
    """
    Describes the shape a decoder actually found when it reports a type
    mismatch. Rendered into the human-readable half of an invalid-type
    message, e.g. ``invalid type: unit variant, expected tuple variant``.
    """
    kind: str
    detail: Any = None

    def __str__(self) -> str:
        match self.kind:
            case "bool":
                return f"boolean `{str(self.detail).lower()}`"
            case "unsigned" | "signed":
                return f"integer `{self.detail}`"
            case "float":
                return f"floating point `{self.detail!r}`"
            case "char":
                return f"character `{self.detail}`"
            case "str":
                return f"string {self.detail!r}"
            case "other":
                return str(self.detail)
        return self.kind

    @classmethod
    def boolean(cls, v: bool) -> Unexpected:
        return cls("bool", v)

    @classmethod
    def unsigned(cls, v: int) -> Unexpected:
        return cls("unsigned", v)

    @classmethod
    def signed(cls, v: int) -> Unexpected:
        return cls("signed", v)

    @classmethod
    def floating(cls, v: float) -> Unexpected:
        return cls("float", v)

    @classmethod
    def char(cls, v: str) -> Unexpected:
        return cls("char", v)

    @classmethod
    def string(cls, v: str) -> Unexpected:
        return cls("str", v)

    @classmethod
    def byte_array(cls) -> Unexpected:
        return cls("byte array")

    @classmethod
    def unit(cls) -> Unexpected:
        return cls("unit value")

    @classmethod
    def option(cls) -> Unexpected:
        return cls("Option value")

    @classmethod
    def newtype_struct(cls) -> Unexpected:
        return cls("newtype struct")

    @classmethod
    def seq(cls) -> Unexpected:
        return cls("sequence")

    @classmethod
    def map(cls) -> Unexpected:
        return cls("map")

    @classmethod
    def enum(cls) -> Unexpected:
        return cls("enum")

    @classmethod
    def unit_variant(cls) -> Unexpected:
        return cls("unit variant")

    @classmethod
    def newtype_variant(cls) -> Unexpected:
        return cls("newtype variant")

    @classmethod
    def tuple_variant(cls) -> Unexpected:
        return cls("tuple variant")

    @classmethod
    def struct_variant(cls) -> Unexpected:
        return cls("struct variant")

    @classmethod
    def other(cls, what: str) -> Unexpected:
        return cls("other", what)


class Error(Exception):
    """
    The single error kind raised while buffering or replaying a value.

    An Error carries nothing but a displayable message. It is raised by the
    capture adapter (map staging violations, out-of-range scalars), by the
    replay adapter (map value without key, enum payload mismatch), and by
    visitors reporting that the shape they received is not the one they
    expect. Errors raised by a value's own `serialize` logic are never
    wrapped: they reach the caller unchanged.

    All errors are terminal for the call that raised them. A failed capture
    produces no buffer; a failed decode produces no partial target.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message

    @classmethod
    def custom(cls, msg: object) -> Error:
        return cls(str(msg))

    @classmethod
    def invalid_type(cls, unexpected: Unexpected, expected: object) -> Error:
        return cls(f"invalid type: {unexpected}, expected {expected}")

    @classmethod
    def invalid_value(cls, unexpected: Unexpected, expected: object) -> Error:
        return cls(f"invalid value: {unexpected}, expected {expected}")

    @classmethod
    def invalid_length(cls, length: int, expected: object) -> Error:
        return cls(f"invalid length {length}, expected {expected}")

    @classmethod
    def unknown_variant(cls, variant: str, expected: Iterable[str]) -> Error:
        names = ", ".join(f"`{name}`" for name in expected)
        if not names:
            return cls(f"unknown variant `{variant}`, there are no variants")
        return cls(f"unknown variant `{variant}`, expected one of {names}")

    @classmethod
    def unknown_field(cls, field: str, expected: Iterable[str]) -> Error:
        names = ", ".join(f"`{name}`" for name in expected)
        if not names:
            return cls(f"unknown field `{field}`, there are no fields")
        return cls(f"unknown field `{field}`, expected one of {names}")

    @classmethod
    def missing_field(cls, field: str) -> Error:
        return cls(f"missing field `{field}`")

    @classmethod
    def duplicate_field(cls, field: str) -> Error:
        return cls(f"duplicate field `{field}`")
