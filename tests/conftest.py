"""Shared fixtures and helpers for tests."""

import struct
from dataclasses import dataclass, field
from pathlib import Path

import pytest

_REPO_ROOT = Path(__file__).parent.parent


# ---------------------------------------------------------------------------
# Auto-marker: tag tests as "unit" or "integration" based on directory
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        test_path = Path(str(item.fspath))
        rel = test_path.relative_to(_REPO_ROOT / "tests")
        parts = rel.parts
        if parts and parts[0] == "integration":
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# ---------------------------------------------------------------------------
# LayoutWriter: hand-made FlatBuffer layouts, written front to back
# ---------------------------------------------------------------------------


class LayoutWriter:
    """Append-only writer for test buffers.

    Offset 0 is reserved for the root reference. References are patched in
    once their target has been written, so targets always follow their slot.
    """

    def __init__(self) -> None:
        self.buf = bytearray(4)

    @property
    def position(self) -> int:
        return len(self.buf)

    def align(self, size: int = 4) -> None:
        while len(self.buf) % size:
            self.buf.append(0)

    def put(self, fmt: str, *values: object) -> int:
        offset = len(self.buf)
        self.buf += struct.pack("<" + fmt, *values)
        return offset

    def raw(self, data: bytes) -> int:
        offset = len(self.buf)
        self.buf += data
        return offset

    def patch(self, fmt: str, at: int, *values: object) -> None:
        struct.pack_into("<" + fmt, self.buf, at, *values)

    def vtable(self, table_length: int, field_offsets: list[int]) -> int:
        self.align(2)
        offset = self.put("HH", 4 + 2 * len(field_offsets), table_length)
        for relative in field_offsets:
            self.put("H", relative)
        return offset

    def table(self, vtable_offset: int, table_length: int) -> int:
        self.align(4)
        offset = self.put("i", len(self.buf) - vtable_offset)
        self.buf += bytes(table_length - 4)
        return offset

    def point(self, slot: int, target: int) -> None:
        self.patch("I", slot, target - slot)

    def set_root(self, table_offset: int) -> None:
        self.patch("I", 0, table_offset)

    def string(self, text: str) -> int:
        self.align(4)
        encoded = text.encode("utf-8")
        offset = self.put("I", len(encoded))
        self.buf += encoded + b"\x00"
        return offset

    def vector(self, fmt: str, values: list[object]) -> int:
        self.align(4)
        offset = self.put("I", len(values))
        if values:
            self.put(f"{len(values)}{fmt}", *values)
        return offset

    def struct_vector(self, count: int, data: bytes) -> int:
        self.align(4)
        offset = self.put("I", count)
        self.raw(data)
        return offset

    def ref_vector(self, count: int) -> tuple[int, list[int]]:
        self.align(4)
        offset = self.put("I", count)
        slots = [self.put("I", 0) for _ in range(count)]
        return offset, slots

    def simple_table(self, fmt: str, value: object) -> int:
        """A one-field table holding a single inline scalar."""
        size = struct.calcsize("<" + fmt)
        vtable = self.vtable(4 + size, [4])
        table = self.table(vtable, 4 + size)
        self.patch(fmt, table + 4, value)
        return table

    def build(self) -> bytes:
        return bytes(self.buf)


@dataclass
class SampleLayout:
    data: bytes
    root: int
    root_vtable: int
    offsets: dict[str, int] = field(default_factory=dict)


# Root table of the sample buffer, field index -> (relative offset, content)
#   0: u32 hp = 300             6: vector<u16> [1, 2, 3]
#   1: u8 flag = 1              7: absent
#   2: string "orc"             8: union wrapper (tag 2 -> object with hp 99)
#   3: child table              9: inline struct of three floats
#   4: vector<table> (10, 20)  10: vector of 4-byte structs (1,2) (3,4)
#   5: vector<string> ["a", "bc"]
SAMPLE_FIELD_OFFSETS = [4, 8, 12, 16, 20, 24, 28, 0, 32, 36, 48]
SAMPLE_TABLE_LENGTH = 52


def build_sample_layout() -> SampleLayout:
    w = LayoutWriter()
    root_vtable = w.vtable(SAMPLE_TABLE_LENGTH, SAMPLE_FIELD_OFFSETS)
    root = w.table(root_vtable, SAMPLE_TABLE_LENGTH)
    w.set_root(root)
    offsets: dict[str, int] = {}

    w.patch("I", root + 4, 300)
    w.patch("B", root + 8, 1)

    name = w.string("orc")
    w.point(root + 12, name)
    offsets["name"] = name

    child_vtable = w.vtable(12, [4, 0, 8])
    child = w.table(child_vtable, 12)
    w.patch("H", child + 4, 7)
    weapon = w.string("axe")
    w.point(child + 8, weapon)
    w.point(root + 16, child)
    offsets["child"] = child
    offsets["weapon"] = weapon

    tables, slots = w.ref_vector(2)
    for index, (slot, value) in enumerate(zip(slots, (10, 20), strict=True)):
        entry = w.simple_table("I", value)
        w.point(slot, entry)
        offsets[f"table_entry_{index}"] = entry
    w.point(root + 20, tables)
    offsets["tables"] = tables

    strings, slots = w.ref_vector(2)
    for index, (slot, text) in enumerate(zip(slots, ("a", "bc"), strict=True)):
        entry = w.string(text)
        w.point(slot, entry)
        offsets[f"string_entry_{index}"] = entry
    w.point(root + 24, strings)
    offsets["strings"] = strings

    shorts = w.vector("H", [1, 2, 3])
    w.point(root + 28, shorts)
    offsets["shorts"] = shorts

    wrapper_vtable = w.vtable(12, [4, 8])
    wrapper = w.table(wrapper_vtable, 12)
    w.patch("B", wrapper + 4, 2)
    value_vtable = w.vtable(8, [4])
    value = w.table(value_vtable, 8)
    payload = w.simple_table("I", 99)
    w.point(value + 4, payload)
    w.point(wrapper + 8, value)
    w.point(root + 32, wrapper)
    offsets["union_wrapper"] = wrapper
    offsets["union_value"] = value
    offsets["union_payload"] = payload

    w.patch("fff", root + 36, 1.0, 2.0, 3.0)

    pairs = w.struct_vector(2, struct.pack("<HHHH", 1, 2, 3, 4))
    w.point(root + 48, pairs)
    offsets["pairs"] = pairs

    return SampleLayout(data=w.build(), root=root, root_vtable=root_vtable, offsets=offsets)


def build_record(hp: int, name: str | None, name_as_scalar: bool = False) -> bytes:
    """A three-field record: u32 hp, string name, u16 level.

    ``name_as_scalar`` stores a plain u32 in the name slot instead of a reference.
    """
    w = LayoutWriter()
    vtable = w.vtable(16, [4, 8, 12])
    root = w.table(vtable, 16)
    w.set_root(root)
    w.patch("I", root + 4, hp)
    w.patch("H", root + 12, 5)
    if name_as_scalar:
        w.patch("I", root + 8, 0xFFFFFFF0)
    elif name is not None:
        w.point(root + 8, w.string(name))
    return w.build()


# ---------------------------------------------------------------------------
# Shared unit-test fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sample() -> SampleLayout:
    """Return a buffer exercising every node kind."""
    return build_sample_layout()


@pytest.fixture
def writer() -> LayoutWriter:
    return LayoutWriter()
