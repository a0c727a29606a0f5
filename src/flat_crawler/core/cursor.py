import struct
from typing import Any

from flat_crawler.core.errors import MalformedLayoutError

Buffer = bytes | bytearray | memoryview

_U8 = struct.Struct("<B")
_I8 = struct.Struct("<b")
_U16 = struct.Struct("<H")
_I16 = struct.Struct("<h")
_U32 = struct.Struct("<I")
_I32 = struct.Struct("<i")
_U64 = struct.Struct("<Q")
_I64 = struct.Struct("<q")
_F32 = struct.Struct("<f")
_F64 = struct.Struct("<d")

UOFFSET_SIZE = _U32.size


def check_range(data: Buffer, offset: int, size: int) -> None:
    """Raise ``MalformedLayoutError`` unless ``[offset, offset + size)`` lies inside ``data``."""
    if offset < 0 or size < 0 or offset + size > len(data):
        raise MalformedLayoutError(
            f"Read of {size} byte(s) at 0x{offset:X} is outside the buffer (length 0x{len(data):X})"
        )


def read_struct(fmt: struct.Struct, data: Buffer, offset: int) -> Any:
    check_range(data, offset, fmt.size)
    return fmt.unpack_from(data, offset)[0]


def read_bytes(data: Buffer, offset: int, size: int) -> bytes:
    check_range(data, offset, size)
    return bytes(data[offset : offset + size])


def read_u8(data: Buffer, offset: int) -> int:
    return read_struct(_U8, data, offset)


def read_i8(data: Buffer, offset: int) -> int:
    return read_struct(_I8, data, offset)


def read_u16(data: Buffer, offset: int) -> int:
    return read_struct(_U16, data, offset)


def read_i16(data: Buffer, offset: int) -> int:
    return read_struct(_I16, data, offset)


def read_u32(data: Buffer, offset: int) -> int:
    return read_struct(_U32, data, offset)


def read_i32(data: Buffer, offset: int) -> int:
    return read_struct(_I32, data, offset)


def read_u64(data: Buffer, offset: int) -> int:
    return read_struct(_U64, data, offset)


def read_i64(data: Buffer, offset: int) -> int:
    return read_struct(_I64, data, offset)


def read_f32(data: Buffer, offset: int) -> float:
    return read_struct(_F32, data, offset)


def read_f64(data: Buffer, offset: int) -> float:
    return read_struct(_F64, data, offset)


def read_bool(data: Buffer, offset: int) -> bool:
    return read_u8(data, offset) != 0


def resolve_reference(data: Buffer, slot: int) -> int:
    """Follow the relative forward reference stored at ``slot``.

    References are relative to their own storage slot, never to the table start.
    """
    target = slot + read_u32(data, slot)
    if target >= len(data):
        raise MalformedLayoutError(f"Reference at 0x{slot:X} points outside the buffer (0x{target:X})")
    return target
