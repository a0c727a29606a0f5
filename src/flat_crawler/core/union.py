"""Union dispatch.

A union is stored as a table with two fields: the discriminant byte at
field 0 and a reference to the payload table at field 1. The format does
not say which discriminant means what, so the operator supplies the mapping.
"""

from __future__ import annotations

from flat_crawler.core.errors import UnknownUnionTagError
from flat_crawler.core.kinds import FieldKind, TypeCode, parse_field_kind
from flat_crawler.core.nodes import Node, NodeArena
from flat_crawler.core.table import FieldNode, ObjectNode

UNION_TYPE_FIELD = 0
UNION_VALUE_FIELD = 1


class UnionNode(Node):
    def __init__(
        self,
        arena: NodeArena,
        parent: Node | None,
        tag: int,
        kind: FieldKind,
        value: ObjectNode,
        payload: Node,
    ) -> None:
        self.tag = tag
        self.kind = kind
        self.value = value
        self.payload = payload
        super().__init__(arena, value.offset, parent)

    @property
    def name(self) -> str:
        return f"Union<{self.tag}:{self.kind}>"

    def describe(self) -> str:
        return f"tag {self.tag} -> {self.payload.name} @0x{self.payload.offset:X}"

    def explored_children(self) -> list[tuple[str, Node]]:
        return [("payload", self.payload)]


class UnionInfo:
    def __init__(self, mapping: dict[int, FieldKind] | None = None) -> None:
        self.mapping: dict[int, FieldKind] = dict(mapping or {})

    @property
    def key(self) -> tuple[tuple[int, FieldKind], ...]:
        return tuple(sorted(self.mapping.items(), key=lambda item: item[0]))

    @classmethod
    def parse(cls, text: str) -> UnionInfo:
        """Build a mapping from ``"1=object,2=table,3=string"``."""
        mapping: dict[int, FieldKind] = {}
        for part in text.split(","):
            part = part.strip()
            if not part:
                continue
            tag_text, sep, kind_text = part.partition("=")
            if not sep:
                raise ValueError(f"Expected <tag>=<type>, got {part!r}")
            tag = int(tag_text.strip(), 0)
            if not 0 <= tag <= 0xFF:
                raise ValueError(f"Union tag {tag} does not fit in a byte")
            mapping[tag] = parse_field_kind(kind_text)
        return cls(mapping)

    def read_union(self, parent: FieldNode) -> UnionNode:
        tag = int(parent.read_scalar(UNION_TYPE_FIELD, TypeCode.BYTE))
        kind = self.mapping.get(tag)
        if kind is None:
            raise UnknownUnionTagError(f"Union tag {tag} has no mapped payload type")
        value = parent.get_object(UNION_VALUE_FIELD)
        return self.read_union_type(value, tag, kind, parent)

    def read_union_type(self, value: ObjectNode, tag: int, kind: FieldKind, parent: Node | None) -> UnionNode:
        payload = value.read_node(0, kind)
        return UnionNode(value.arena, parent, tag, kind, value, payload)
