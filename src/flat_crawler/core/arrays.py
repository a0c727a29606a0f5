from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from flat_crawler.core import cursor, table
from flat_crawler.core.errors import IndexOutOfRangeError, MalformedLayoutError
from flat_crawler.core.kinds import TypeCode
from flat_crawler.core.nodes import Node, NodeArena, StringNode, StructNode, ValueNode


class ElementCategory(Enum):
    SCALAR = "scalar"
    REFERENCE = "reference"
    STRUCT = "struct"


@dataclass(frozen=True)
class ElementKind:
    """Shape of one vector entry."""

    category: ElementCategory
    code: TypeCode
    size: int

    @classmethod
    def scalar(cls, code: TypeCode) -> ElementKind:
        return cls(ElementCategory.SCALAR, code, code.width)

    @classmethod
    def reference(cls, target: TypeCode) -> ElementKind:
        if target not in (TypeCode.STRING, TypeCode.OBJECT):
            raise ValueError(f"References point to strings or objects, not {target.value}")
        return cls(ElementCategory.REFERENCE, target, cursor.UOFFSET_SIZE)

    @classmethod
    def struct(cls, size: int) -> ElementKind:
        if size <= 0:
            raise ValueError(f"Struct size must be positive, got {size}")
        return cls(ElementCategory.STRUCT, TypeCode.STRUCT, size)

    @property
    def label(self) -> str:
        if self.category is ElementCategory.STRUCT:
            return f"struct{self.size}"
        return self.code.value


class ArrayNode(Node):
    """A count-prefixed, fixed-stride vector. Entries are decoded one at a time and cached."""

    def __init__(
        self,
        arena: NodeArena,
        offset: int,
        parent: Node | None,
        entry_count: int,
        element_kind: ElementKind,
    ) -> None:
        self.entry_count = entry_count
        self.element_kind = element_kind
        self.base_offset = offset + cursor.UOFFSET_SIZE
        self._entries: dict[int, int] = {}
        super().__init__(arena, offset, parent)

    @classmethod
    def read(cls, arena: NodeArena, offset: int, parent: Node | None, element_kind: ElementKind) -> ArrayNode:
        entry_count = cursor.read_u32(arena.data, offset)
        span = entry_count * element_kind.size
        if offset + cursor.UOFFSET_SIZE + span > len(arena.data):
            raise MalformedLayoutError(
                f"Vector at 0x{offset:X} declares {entry_count} entries of {element_kind.size} byte(s), "
                f"which runs past the end of the buffer"
            )
        return cls(arena, offset, parent, entry_count, element_kind)

    @property
    def element_size(self) -> int:
        return self.element_kind.size

    @property
    def name(self) -> str:
        return f"Array<{self.element_kind.label}>"

    def describe(self) -> str:
        return f"{self.entry_count} entries of {self.element_kind.label}, data @0x{self.base_offset:X}"

    def get_entry_offset(self, index: int) -> int:
        if index < 0 or index >= self.entry_count:
            raise IndexOutOfRangeError(f"Entry index {index} is out of range (entry count {self.entry_count})")
        return self.base_offset + index * self.element_size

    def get_entry(self, index: int) -> Node:
        entry_offset = self.get_entry_offset(index)
        cached = self._entries.get(index)
        if cached is not None:
            return self.arena.get(cached)

        node = self._decode_entry(entry_offset)
        self._entries[index] = node.handle
        return node

    def _decode_entry(self, entry_offset: int) -> Node:
        kind = self.element_kind
        if kind.category is ElementCategory.SCALAR:
            return ValueNode.read(self.arena, entry_offset, self, kind.code)
        if kind.category is ElementCategory.STRUCT:
            return StructNode.read(self.arena, entry_offset, self, kind.size)

        target = cursor.resolve_reference(self.data, entry_offset)
        if kind.code is TypeCode.STRING:
            return StringNode.read(self.arena, target, self)
        return table.ObjectNode.read(self.arena, target, self)

    def explored_children(self) -> list[tuple[str, Node]]:
        return [(f"[{index}]", self.arena.get(handle)) for index, handle in sorted(self._entries.items())]
