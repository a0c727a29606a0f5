"""Structural fingerprints for clustering buffers that probably share a schema.

Every present field of the root table gets a best-effort shape guess. The
guesses are folded, in field index order, into one signed 64-bit hash. Only
the shape of a field (its kind and slot size) feeds the hash, never its
value, so two files written with the same schema hash alike.
"""

import hashlib
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum

from flat_crawler.core import cursor
from flat_crawler.core.cursor import Buffer
from flat_crawler.core.errors import MalformedLayoutError
from flat_crawler.core.kinds import TypeCode
from flat_crawler.core.root import is_size_valid, read_root
from flat_crawler.core.table import FieldNode
from flat_crawler.core.vtable import get_vtable_offset, read_vtable
from flat_crawler.models import FileAnalysisResult

_STRING_PREVIEW = 32


class ObservationKind(Enum):
    UNKNOWN = "unknown"
    SCALAR8 = "scalar8"
    SCALAR16 = "scalar16"
    SCALAR32 = "scalar32"
    SCALAR64 = "scalar64"
    STRING = "string"
    TABLE = "table"
    VECTOR = "vector"
    STRUCT = "struct"


_SCALAR_KINDS = {
    1: (ObservationKind.SCALAR8, TypeCode.BYTE),
    2: (ObservationKind.SCALAR16, TypeCode.UINT16),
    4: (ObservationKind.SCALAR32, TypeCode.UINT32),
    8: (ObservationKind.SCALAR64, TypeCode.UINT64),
}


@dataclass(frozen=True)
class Observation:
    """Guess about one field. ``detail`` is display-only and excluded from equality and hashing."""

    kind: ObservationKind
    size: int
    detail: int | str | None = field(default=None, compare=False)

    def shape_hash(self) -> int:
        digest = hashlib.sha256(f"{self.kind.value}|{self.size}".encode()).digest()
        return int.from_bytes(digest[:8], "little", signed=True)

    def summary(self, node: FieldNode, index: int, data: Buffer) -> str:
        slot = node.get_field_offset(index)
        prefix = f"@0x{slot:X} {self.kind.value}"
        if self.kind in (ObservationKind.SCALAR8, ObservationKind.SCALAR16, ObservationKind.SCALAR32):
            _, code = _SCALAR_KINDS[self.size]
            value = code.read(data, slot)
            return f"{prefix} = {value} (0x{value:X})"
        if self.kind is ObservationKind.SCALAR64:
            value = cursor.read_u64(data, slot)
            return f"{prefix} = {value} (0x{value:X}) / {cursor.read_f64(data, slot)!r}"
        if self.kind is ObservationKind.STRING:
            return f"{prefix} -> {self.detail!r}"
        if self.kind is ObservationKind.TABLE:
            return f"{prefix} -> {self.detail} field(s)"
        if self.kind is ObservationKind.VECTOR:
            return f"{prefix} -> {self.detail} entries"
        if self.kind is ObservationKind.STRUCT:
            return f"{prefix}[{self.size}] {cursor.read_bytes(data, slot, self.size).hex(' ').upper()}"
        return f"{prefix} (slot size {self.size})"


# ---------------------------------------------------------------------------
# Probing
# ---------------------------------------------------------------------------


def _probe_string(data: Buffer, target: int) -> str | None:
    try:
        length = cursor.read_u32(data, target)
        raw = cursor.read_bytes(data, target + cursor.UOFFSET_SIZE, length + 1)
    except MalformedLayoutError:
        return None
    if raw[-1] != 0:
        return None
    try:
        text = raw[:-1].decode("utf-8")
    except UnicodeDecodeError:
        return None
    if not all(ch.isprintable() or ch in "\t\r\n" for ch in text):
        return None
    return text[:_STRING_PREVIEW]


def _probe_table(data: Buffer, target: int) -> int | None:
    try:
        vtable = read_vtable(get_vtable_offset(target, data), data)
    except MalformedLayoutError:
        return None
    if vtable.table_length < cursor.UOFFSET_SIZE or target + vtable.table_length > len(data):
        return None
    for relative in vtable.field_offsets:
        if relative != 0 and not cursor.UOFFSET_SIZE <= relative < vtable.table_length:
            return None
    return vtable.field_count


def _probe_vector(data: Buffer, target: int) -> int | None:
    try:
        count = cursor.read_u32(data, target)
    except MalformedLayoutError:
        return None
    if target + cursor.UOFFSET_SIZE + count > len(data):
        return None
    return count


def _observe_reference(data: Buffer, slot: int) -> Observation | None:
    relative = cursor.read_u32(data, slot)
    if relative == 0:
        return None
    target = slot + relative
    if target + cursor.UOFFSET_SIZE > len(data):
        return None

    text = _probe_string(data, target)
    if text is not None:
        return Observation(ObservationKind.STRING, cursor.UOFFSET_SIZE, text)
    field_count = _probe_table(data, target)
    if field_count is not None:
        return Observation(ObservationKind.TABLE, cursor.UOFFSET_SIZE, field_count)
    count = _probe_vector(data, target)
    if count is not None:
        return Observation(ObservationKind.VECTOR, cursor.UOFFSET_SIZE, count)
    return None


def observe_field(node: FieldNode, index: int, size: int) -> Observation:
    """Guess the shape of a present field that occupies ``size`` bytes of its table."""
    if size <= 0:
        return Observation(ObservationKind.UNKNOWN, max(size, 0))
    slot = node.get_field_offset(index)
    cursor.check_range(node.data, slot, size)
    if size == cursor.UOFFSET_SIZE:
        reference = _observe_reference(node.data, slot)
        if reference is not None:
            return reference
    if size in _SCALAR_KINDS:
        return Observation(_SCALAR_KINDS[size][0], size)
    return Observation(ObservationKind.STRUCT, size)


def _slot_sizes(node: FieldNode) -> dict[int, int]:
    """Bytes between each present field and the next one in table order."""
    offsets = node.vtable.field_offsets
    present = sorted(node.vtable.present_fields(), key=lambda i: (offsets[i], i))
    sizes: dict[int, int] = {}
    for position, index in enumerate(present):
        if position + 1 < len(present):
            end = offsets[present[position + 1]]
        else:
            end = node.vtable.table_length
        sizes[index] = end - offsets[index]
    return sizes


def analyze_fields(node: FieldNode) -> list[tuple[int, Observation]]:
    """Observe every present field of ``node``, ascending by field index."""
    sizes = _slot_sizes(node)
    return [(index, observe_field(node, index, sizes[index])) for index in sorted(sizes)]


# ---------------------------------------------------------------------------
# Hashing and grouping
# ---------------------------------------------------------------------------


def combine_hash(accumulator: int, value: int) -> int:
    digest = hashlib.sha256(
        accumulator.to_bytes(8, "little", signed=True) + value.to_bytes(8, "little", signed=True)
    ).digest()
    return int.from_bytes(digest[:8], "little", signed=True)


def compute_fingerprint(observations: Iterable[Observation]) -> int:
    accumulator = 0
    for observation in observations:
        accumulator = combine_hash(accumulator, observation.shape_hash())
    return accumulator


def analyze_buffer(
    data: Buffer, file_name: str, full_path: str, include_summary: bool = True
) -> FileAnalysisResult:
    """Fingerprint the root table of ``data``.

    Summaries are rendered here because the buffer may be reused once this returns.
    """
    if not is_size_valid(data):
        raise MalformedLayoutError(f"Buffer of {len(data)} byte(s) is too small to hold a root table")

    root = read_root(data)
    observations = analyze_fields(root)
    summaries: tuple[str, ...] = ()
    if include_summary:
        summaries = tuple(f"[{index}] {obs.summary(root, index, data)}" for index, obs in observations)

    return FileAnalysisResult(
        field_count=root.field_count,
        fingerprint_hash=compute_fingerprint(obs for _, obs in observations),
        file_name=file_name,
        full_path=full_path,
        field_summaries=summaries,
    )


def group_results(results: Sequence[FileAnalysisResult]) -> dict[int, dict[int, list[FileAnalysisResult]]]:
    """Group by field count, then by fingerprint hash. Keys and members are sorted."""
    grouped: dict[int, dict[int, list[FileAnalysisResult]]] = {}
    for result in results:
        grouped.setdefault(result.field_count, {}).setdefault(result.fingerprint_hash, []).append(result)

    return {
        field_count: {
            fingerprint: sorted(members, key=lambda r: (r.file_name, r.full_path))
            for fingerprint, members in sorted(by_hash.items())
        }
        for field_count, by_hash in sorted(grouped.items())
    }
