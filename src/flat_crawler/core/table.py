"""Table nodes: a data region whose field layout is indirected through a vtable."""

from __future__ import annotations

from typing import TYPE_CHECKING, Self, cast

from flat_crawler.core import arrays, cursor
from flat_crawler.core.errors import DecodeMismatchError, FieldAbsentError, IndexOutOfRangeError
from flat_crawler.core.kinds import FieldKind, TypeCode, parse_field_kind
from flat_crawler.core.nodes import Node, NodeArena, StringNode, StructNode, ValueNode
from flat_crawler.core.vtable import VTable, get_vtable_offset, read_vtable

if TYPE_CHECKING:
    from flat_crawler.core.union import UnionInfo, UnionNode

_OBJECT_KIND = FieldKind(TypeCode.OBJECT)


class FieldNode(Node):
    """A table together with its vtable.

    Typed children are only decoded when the operator asks for them, and the
    result of every ``read_node`` call is cached so that navigating to the
    same field again returns the same node.
    """

    def __init__(
        self,
        arena: NodeArena,
        offset: int,
        parent: Node | None,
        vtable: VTable,
        table_offset: int,
        vtable_offset: int,
    ) -> None:
        self.vtable = vtable
        self.table_offset = table_offset
        self.vtable_offset = vtable_offset
        self._hints: dict[int, str] = {}
        self._children: dict[int, int] = {}
        self._decoded: dict[tuple[int, FieldKind], int] = {}
        self._unions: dict[tuple[int, tuple[tuple[int, FieldKind], ...]], int] = {}
        super().__init__(arena, offset, parent)

    @classmethod
    def read(cls, arena: NodeArena, table_offset: int, parent: Node | None) -> Self:
        vtable_offset = get_vtable_offset(table_offset, arena.data)
        vtable = read_vtable(vtable_offset, arena.data)
        return cls(arena, table_offset, parent, vtable, table_offset, vtable_offset)

    @property
    def field_count(self) -> int:
        return self.vtable.field_count

    @property
    def name(self) -> str:
        return "Table"

    def describe(self) -> str:
        present = len(self.vtable.present_fields())
        return (
            f"{self.field_count} field(s), {present} present, "
            f"vtable @0x{self.vtable_offset:X}, table length {self.vtable.table_length}"
        )

    # -----------------------------------------------------------------------
    # Offsets
    # -----------------------------------------------------------------------

    def _check_index(self, index: int) -> None:
        if index < 0 or index >= self.field_count:
            raise IndexOutOfRangeError(f"Field index {index} is out of range (field count {self.field_count})")

    def has_field(self, index: int) -> bool:
        return 0 <= index < self.field_count and self.vtable.field_offsets[index] != 0

    def get_field_offset(self, index: int) -> int:
        self._check_index(index)
        relative = self.vtable.field_offsets[index]
        if relative == 0:
            raise FieldAbsentError(f"Field {index} is not present in the vtable")
        return self.table_offset + relative

    def get_reference_offset(self, index: int) -> int:
        return cursor.resolve_reference(self.data, self.get_field_offset(index))

    # -----------------------------------------------------------------------
    # Typed readers
    # -----------------------------------------------------------------------

    def read_scalar(self, index: int, code: TypeCode) -> bool | int | float:
        if not code.is_scalar:
            raise DecodeMismatchError(f"{code.value} is not a scalar type")
        return code.read(self.data, self.get_field_offset(index))

    def get_field_value(self, index: int, code: TypeCode) -> ValueNode:
        return ValueNode.read(self.arena, self.get_field_offset(index), self, code)

    def read_string(self, index: int) -> StringNode:
        return StringNode.read(self.arena, self.get_reference_offset(index), self)

    def read_object(self, index: int) -> ObjectNode:
        return ObjectNode.read(self.arena, self.get_reference_offset(index), self)

    def read_struct(self, index: int, size: int) -> StructNode:
        return StructNode.read(self.arena, self.get_field_offset(index), self, size)

    def read_array_object(self, index: int) -> arrays.ArrayNode:
        return self._read_array(index, arrays.ElementKind.reference(TypeCode.OBJECT))

    def read_array_string(self, index: int) -> arrays.ArrayNode:
        return self._read_array(index, arrays.ElementKind.reference(TypeCode.STRING))

    def get_table_struct(self, index: int, kind: FieldKind | TypeCode) -> arrays.ArrayNode:
        """Read a vector of values stored inline: scalars, or structs of a declared size."""
        if isinstance(kind, TypeCode):
            kind = FieldKind(kind, is_array=True)
        if kind.code is TypeCode.STRUCT:
            if kind.struct_size is None:
                raise DecodeMismatchError("Struct arrays need a declared element size (e.g. struct12[])")
            element = arrays.ElementKind.struct(kind.struct_size)
        elif kind.code.is_scalar:
            element = arrays.ElementKind.scalar(kind.code)
        else:
            raise DecodeMismatchError(f"Cannot read {kind} as an inline vector")
        return self._read_array(index, element)

    def _read_array(self, index: int, element: arrays.ElementKind) -> arrays.ArrayNode:
        return arrays.ArrayNode.read(self.arena, self.get_reference_offset(index), self, element)

    def get_object(self, index: int) -> ObjectNode:
        """Return the cached object at field ``index`` without marking the field explored."""
        return cast(ObjectNode, self._decode_cached(index, _OBJECT_KIND))

    def read_union(self, index: int, info: UnionInfo) -> UnionNode:
        """Follow field ``index`` to a union wrapper table and resolve it."""
        key = (index, info.key)
        cached = self._unions.get(key)
        if cached is not None:
            result = self.arena.get(cached)
        else:
            result = info.read_union(self.get_object(index))
            self._unions[key] = result.handle
        self.set_field_hint(index, "union")
        self.track_child(index, result)
        return result

    def read_node(self, index: int, kind: FieldKind | str) -> Node:
        """Decode field ``index`` as ``kind`` and remember the result."""
        if isinstance(kind, str):
            kind = parse_field_kind(kind)

        node = self._decode_cached(index, kind)
        self.set_field_hint(index, str(kind))
        self.track_child(index, node)
        return node

    def _decode_cached(self, index: int, kind: FieldKind) -> Node:
        cached = self._decoded.get((index, kind))
        if cached is not None:
            return self.arena.get(cached)
        node = self._decode(index, kind)
        self._decoded[(index, kind)] = node.handle
        return node

    def _decode(self, index: int, kind: FieldKind) -> Node:
        code = kind.code
        if code is TypeCode.UNRECOGNIZED:
            raise DecodeMismatchError(f"Unrecognized type for field {index}")
        if code is TypeCode.STRING:
            return self.read_array_string(index) if kind.is_array else self.read_string(index)
        if code is TypeCode.OBJECT:
            return self.read_array_object(index) if kind.is_array else self.read_object(index)
        if kind.is_array:
            return self.get_table_struct(index, kind)
        if code is TypeCode.STRUCT:
            if kind.struct_size is None:
                raise DecodeMismatchError("Inline structs need a declared size (e.g. struct12)")
            return self.read_struct(index, kind.struct_size)
        return self.get_field_value(index, code)

    # -----------------------------------------------------------------------
    # Exploration bookkeeping
    # -----------------------------------------------------------------------

    def get_field(self, index: int) -> Node | None:
        """Return the last node decoded for ``index``, or None if it was never explored."""
        self._check_index(index)
        handle = self._children.get(index)
        return self.arena.get(handle) if handle is not None else None

    def field_hint(self, index: int) -> str | None:
        return self._hints.get(index)

    def set_field_hint(self, index: int, label: str) -> None:
        self._hints.setdefault(index, label)

    def track_child(self, index: int, node: Node) -> None:
        self._children[index] = node.handle

    def explored_children(self) -> list[tuple[str, Node]]:
        return [(f"[{index}]", self.arena.get(handle)) for index, handle in sorted(self._children.items())]


class ObjectNode(FieldNode):
    @property
    def name(self) -> str:
        return "Object"


class RootNode(FieldNode):
    @property
    def name(self) -> str:
        return "Root"
