"""Node model shared by every decoded element of a buffer.

Nodes never own each other. A ``NodeArena`` owns every node decoded from one
buffer, and nodes refer to their parent and cached children through integer
handles into that arena.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator

from flat_crawler.core import cursor
from flat_crawler.core.cursor import Buffer
from flat_crawler.core.errors import DecodeMismatchError
from flat_crawler.core.kinds import TypeCode


class NodeArena:
    """Storage for the nodes of one decoded tree, all reading the same buffer."""

    def __init__(self, data: Buffer) -> None:
        self.data = data
        self._nodes: list[Node] = []

    def add(self, node: Node) -> int:
        self._nodes.append(node)
        return len(self._nodes) - 1

    def get(self, handle: int) -> Node:
        return self._nodes[handle]

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[Node]:
        return iter(self._nodes)


class Node(ABC):
    """A decoded element at a fixed absolute offset."""

    def __init__(self, arena: NodeArena, offset: int, parent: Node | None) -> None:
        self._arena = arena
        self._offset = offset
        self._parent_handle = parent.handle if parent is not None else None
        self.handle = arena.add(self)

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def arena(self) -> NodeArena:
        return self._arena

    @property
    def data(self) -> Buffer:
        return self._arena.data

    @property
    def parent(self) -> Node | None:
        if self._parent_handle is None:
            return None
        return self._arena.get(self._parent_handle)

    @property
    def root(self) -> Node:
        node = self
        while node.parent is not None:
            node = node.parent
        return node

    def ancestors(self) -> list[Node]:
        """Return the chain from the root down to this node, inclusive."""
        chain: list[Node] = []
        node: Node | None = self
        while node is not None:
            chain.append(node)
            node = node.parent
        chain.reverse()
        return chain

    @property
    @abstractmethod
    def name(self) -> str: ...

    @abstractmethod
    def describe(self) -> str:
        """One-line description of the decoded content."""

    def explored_children(self) -> list[tuple[str, Node]]:
        return []

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name} @0x{self.offset:X}>"


class ValueNode(Node):
    """A fixed-width scalar read in place."""

    def __init__(
        self, arena: NodeArena, offset: int, parent: Node | None, code: TypeCode, value: bool | int | float
    ) -> None:
        self.code = code
        self.value = value
        super().__init__(arena, offset, parent)

    @classmethod
    def read(cls, arena: NodeArena, offset: int, parent: Node | None, code: TypeCode) -> ValueNode:
        if not code.is_scalar:
            raise DecodeMismatchError(f"{code.value} is not a scalar type")
        value = code.read(arena.data, offset)
        return cls(arena, offset, parent, code, value)

    @property
    def name(self) -> str:
        return f"Value<{self.code.value}>"

    def describe(self) -> str:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            return f"{self.value}"
        return f"{self.value} (0x{self.value & ((1 << (8 * self.code.width)) - 1):X})"


class StringNode(Node):
    """A length-prefixed UTF-8 string. ``offset`` points at the length prefix."""

    def __init__(self, arena: NodeArena, offset: int, parent: Node | None, value: str, length: int) -> None:
        self.value = value
        self.length = length
        super().__init__(arena, offset, parent)

    @classmethod
    def read(cls, arena: NodeArena, offset: int, parent: Node | None) -> StringNode:
        length = cursor.read_u32(arena.data, offset)
        raw = cursor.read_bytes(arena.data, offset + cursor.UOFFSET_SIZE, length)
        try:
            value = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecodeMismatchError(f"String at 0x{offset:X} is not valid UTF-8: {exc}") from exc
        return cls(arena, offset, parent, value, length)

    @property
    def name(self) -> str:
        return "String"

    def describe(self) -> str:
        return f"{self.value!r} ({self.length} bytes)"


class StructNode(Node):
    """A fixed-size struct stored by value, kept as raw bytes."""

    def __init__(self, arena: NodeArena, offset: int, parent: Node | None, raw: bytes) -> None:
        self.raw = raw
        super().__init__(arena, offset, parent)

    @classmethod
    def read(cls, arena: NodeArena, offset: int, parent: Node | None, size: int) -> StructNode:
        return cls(arena, offset, parent, cursor.read_bytes(arena.data, offset, size))

    @property
    def size(self) -> int:
        return len(self.raw)

    @property
    def name(self) -> str:
        return f"Struct[{self.size}]"

    def describe(self) -> str:
        return self.raw.hex(" ").upper()
