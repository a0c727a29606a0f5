from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from flat_crawler.core.nodes import Node
from flat_crawler.core.table import FieldNode


def node_label(node: Node, current: bool = False) -> str:
    label = f"[bold]{escape(node.name)}[/bold] @0x{node.offset:X}: {escape(node.describe())}"
    return f"[reverse]{label}[/reverse]" if current else label


def build_tree(node: Node) -> Tree:
    """Render the path from the root to ``node`` plus the children explored below it."""
    chain = node.ancestors()
    tree = Tree(node_label(chain[0], current=len(chain) == 1))
    branch = tree
    for ancestor in chain[1:]:
        branch = branch.add(node_label(ancestor, current=ancestor is node))
    for label, child in node.explored_children():
        branch.add(f"{escape(label)} {node_label(child)}")
    return tree


def build_field_table(node: FieldNode) -> Table:
    table = Table(title=f"{node.name} @0x{node.offset:X}", show_lines=False)
    for header in ("index", "offset", "hint", "explored"):
        table.add_column(header)
    for index, relative in enumerate(node.vtable.field_offsets):
        offset = f"0x{node.table_offset + relative:X}" if relative else "absent"
        child = node.get_field(index)
        table.add_row(
            str(index),
            offset,
            escape(node.field_hint(index) or ""),
            escape(child.name) if child is not None else "",
        )
    return table
