from flat_crawler.core.arrays import ArrayNode, ElementCategory, ElementKind
from flat_crawler.core.errors import (
    DecodeMismatchError,
    FieldAbsentError,
    FlatCrawlerError,
    IndexOutOfRangeError,
    MalformedLayoutError,
    UnknownUnionTagError,
)
from flat_crawler.core.fingerprint import (
    Observation,
    ObservationKind,
    analyze_buffer,
    analyze_fields,
    compute_fingerprint,
    group_results,
)
from flat_crawler.core.kinds import FieldKind, TypeCode, parse_field_kind
from flat_crawler.core.nodes import Node, NodeArena, StringNode, StructNode, ValueNode
from flat_crawler.core.root import is_size_valid, read_root
from flat_crawler.core.table import FieldNode, ObjectNode, RootNode
from flat_crawler.core.union import UnionInfo, UnionNode
from flat_crawler.core.vtable import VTable, read_vtable

__all__ = [
    "ArrayNode",
    "DecodeMismatchError",
    "ElementCategory",
    "ElementKind",
    "FieldAbsentError",
    "FieldKind",
    "FieldNode",
    "FlatCrawlerError",
    "IndexOutOfRangeError",
    "MalformedLayoutError",
    "Node",
    "NodeArena",
    "ObjectNode",
    "Observation",
    "ObservationKind",
    "RootNode",
    "StringNode",
    "StructNode",
    "TypeCode",
    "UnionInfo",
    "UnionNode",
    "UnknownUnionTagError",
    "VTable",
    "ValueNode",
    "analyze_buffer",
    "analyze_fields",
    "compute_fingerprint",
    "group_results",
    "is_size_valid",
    "parse_field_kind",
    "read_root",
    "read_vtable",
]
