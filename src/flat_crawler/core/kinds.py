"""Operator type tokens and the field kinds they describe.

The format does not describe itself, so the operator's label is the only
source of truth for how a field is decoded. A label that does not match the
bytes silently misdecodes; an unknown label is reported as
``TypeCode.UNRECOGNIZED``.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from flat_crawler.core import cursor
from flat_crawler.core.cursor import Buffer


class TypeCode(Enum):
    UNRECOGNIZED = "unrecognized"
    BOOL = "bool"
    SBYTE = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    BYTE = "uint8"
    UINT16 = "uint16"
    UINT32 = "uint32"
    UINT64 = "uint64"
    SINGLE = "float"
    DOUBLE = "double"
    STRING = "string"
    OBJECT = "object"
    STRUCT = "struct"

    @property
    def is_scalar(self) -> bool:
        return self in _SCALAR_READERS

    @property
    def width(self) -> int:
        """Byte width of a scalar value; references and structs have no fixed scalar width."""
        try:
            return _SCALAR_READERS[self][0]
        except KeyError:
            raise ValueError(f"{self.value} is not a scalar type") from None

    def read(self, data: Buffer, offset: int) -> bool | int | float:
        try:
            reader = _SCALAR_READERS[self][1]
        except KeyError:
            raise ValueError(f"{self.value} is not a scalar type") from None
        return reader(data, offset)


_SCALAR_READERS: dict[TypeCode, tuple[int, Callable[[Buffer, int], bool | int | float]]] = {
    TypeCode.BOOL: (1, cursor.read_bool),
    TypeCode.SBYTE: (1, cursor.read_i8),
    TypeCode.INT16: (2, cursor.read_i16),
    TypeCode.INT32: (4, cursor.read_i32),
    TypeCode.INT64: (8, cursor.read_i64),
    TypeCode.BYTE: (1, cursor.read_u8),
    TypeCode.UINT16: (2, cursor.read_u16),
    TypeCode.UINT32: (4, cursor.read_u32),
    TypeCode.UINT64: (8, cursor.read_u64),
    TypeCode.SINGLE: (4, cursor.read_f32),
    TypeCode.DOUBLE: (8, cursor.read_f64),
}

_TOKENS: dict[str, TypeCode] = {
    "bool": TypeCode.BOOL,
    "sbyte": TypeCode.SBYTE,
    "s8": TypeCode.SBYTE,
    "short": TypeCode.INT16,
    "s16": TypeCode.INT16,
    "int": TypeCode.INT32,
    "s32": TypeCode.INT32,
    "long": TypeCode.INT64,
    "s64": TypeCode.INT64,
    "byte": TypeCode.BYTE,
    "u8": TypeCode.BYTE,
    "i8": TypeCode.BYTE,
    "ushort": TypeCode.UINT16,
    "u16": TypeCode.UINT16,
    "i16": TypeCode.UINT16,
    "uint": TypeCode.UINT32,
    "u32": TypeCode.UINT32,
    "i32": TypeCode.UINT32,
    "ulong": TypeCode.UINT64,
    "u64": TypeCode.UINT64,
    "i64": TypeCode.UINT64,
    "float": TypeCode.SINGLE,
    "double": TypeCode.DOUBLE,
    "string": TypeCode.STRING,
    "str": TypeCode.STRING,
    "object": TypeCode.OBJECT,
    "obj": TypeCode.OBJECT,
    "table": TypeCode.OBJECT,
}

_STRUCT_TOKEN = re.compile(r"struct(?:(\d+)|<(\d+)>)?")

ARRAY_SUFFIX = "[]"


@dataclass(frozen=True)
class FieldKind:
    """How the operator wants a field decoded."""

    code: TypeCode
    is_array: bool = False
    struct_size: int | None = None

    @property
    def is_recognized(self) -> bool:
        return self.code is not TypeCode.UNRECOGNIZED

    def __str__(self) -> str:
        if self.code is TypeCode.STRUCT:
            base = f"struct{self.struct_size}" if self.struct_size is not None else "struct"
        else:
            base = self.code.value
        return base + ARRAY_SUFFIX if self.is_array else base


def get_type_code(token: str) -> TypeCode:
    return _TOKENS.get(token.strip().lower(), TypeCode.UNRECOGNIZED)


def parse_field_kind(token: str) -> FieldKind:
    """Parse an operator label such as ``u32``, ``string[]``, ``table`` or ``struct12[]``.

    ``table`` always means an array of objects.
    """
    text = token.strip().lower()
    is_array = False
    if text.endswith(ARRAY_SUFFIX):
        is_array = True
        text = text[: -len(ARRAY_SUFFIX)].strip()

    if text == "table":
        return FieldKind(TypeCode.OBJECT, is_array=True)

    match = _STRUCT_TOKEN.fullmatch(text)
    if match:
        size_text = match.group(1) or match.group(2)
        size = int(size_text) if size_text else None
        if size == 0:
            return FieldKind(TypeCode.UNRECOGNIZED, is_array=is_array)
        return FieldKind(TypeCode.STRUCT, is_array=is_array, struct_size=size)

    return FieldKind(get_type_code(text), is_array=is_array)
