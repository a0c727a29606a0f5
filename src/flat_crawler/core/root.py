from flat_crawler.core import cursor
from flat_crawler.core.cursor import Buffer
from flat_crawler.core.errors import MalformedLayoutError
from flat_crawler.core.nodes import NodeArena
from flat_crawler.core.table import RootNode
from flat_crawler.core.vtable import VTABLE_HEADER_SIZE

# Root reference, an empty vtable and the table's own vtable reference.
MIN_BUFFER_SIZE = cursor.UOFFSET_SIZE + VTABLE_HEADER_SIZE + cursor.UOFFSET_SIZE


def is_size_valid(data: Buffer) -> bool:
    return len(data) >= MIN_BUFFER_SIZE


def read_root(data: Buffer) -> RootNode:
    """Decode the root table of ``data`` into a fresh node tree."""
    if len(data) < cursor.UOFFSET_SIZE:
        raise MalformedLayoutError(f"Buffer of {len(data)} byte(s) is too short for a root reference")

    root_offset = cursor.read_u32(data, 0)
    if root_offset >= len(data):
        raise MalformedLayoutError(f"Root offset 0x{root_offset:X} exceeds the buffer length 0x{len(data):X}")

    arena = NodeArena(data)
    return RootNode.read(arena, root_offset, None)
