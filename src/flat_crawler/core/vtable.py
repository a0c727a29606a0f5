from dataclasses import dataclass

from flat_crawler.core import cursor
from flat_crawler.core.cursor import Buffer
from flat_crawler.core.errors import MalformedLayoutError

VTABLE_HEADER_SIZE = 4
VOFFSET_SIZE = 2


@dataclass(frozen=True)
class VTable:
    """Per-table field offsets, relative to the table start. 0 marks an absent field."""

    length: int
    table_length: int
    field_offsets: tuple[int, ...]

    @property
    def field_count(self) -> int:
        return len(self.field_offsets)

    def present_fields(self) -> list[int]:
        return [i for i, ofs in enumerate(self.field_offsets) if ofs != 0]


def read_vtable(offset: int, data: Buffer) -> VTable:
    vtable_length = cursor.read_u16(data, offset)
    table_length = cursor.read_u16(data, offset + 2)

    body = vtable_length - VTABLE_HEADER_SIZE
    if body < 0 or body % VOFFSET_SIZE != 0:
        raise MalformedLayoutError(f"VTable at 0x{offset:X} has invalid length {vtable_length}")

    field_count = body // VOFFSET_SIZE
    cursor.check_range(data, offset, vtable_length)
    field_offsets = tuple(
        cursor.read_u16(data, offset + VTABLE_HEADER_SIZE + VOFFSET_SIZE * i) for i in range(field_count)
    )
    return VTable(length=vtable_length, table_length=table_length, field_offsets=field_offsets)


def get_vtable_offset(table_offset: int, data: Buffer) -> int:
    """Locate a table's vtable through the signed offset stored at the table start."""
    vtable_offset = table_offset - cursor.read_i32(data, table_offset)
    if vtable_offset < 0 or vtable_offset + VTABLE_HEADER_SIZE > len(data):
        raise MalformedLayoutError(
            f"Table at 0x{table_offset:X} points to a vtable outside the buffer (0x{vtable_offset:X})"
        )
    return vtable_offset
