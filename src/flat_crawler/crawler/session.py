"""Interactive navigation over one decoded buffer.

All mutable state of a crawl (current node, command history) lives on the
``CrawlSession``; the decoding engine itself stays stateless apart from the
per-node child caches.
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path

from rich.console import Console
from rich.markup import escape

from flat_crawler import hexdump
from flat_crawler.config import DEFAULT_HISTORY_FILE_NAME
from flat_crawler.core.arrays import ArrayNode
from flat_crawler.core.cursor import Buffer
from flat_crawler.core.errors import FlatCrawlerError
from flat_crawler.core.nodes import Node
from flat_crawler.core.root import read_root
from flat_crawler.core.table import FieldNode
from flat_crawler.core.union import UnionInfo
from flat_crawler.crawler.render import build_field_table, build_tree, node_label

logger = logging.getLogger(__name__)

HELP_TEXT = """\
rf <i>                 go to the explored child of field i (or entry i of an array)
rf <i> <type>          decode field i as type: u8..u64, s8..s64, bool, float, double,
                       string, object, structN, and any of these with [] (table = object[])
union <i> <tag>=<type>,...  decode field i as a union wrapper
ro|fo|eo <hex i>       print reference / field / entry offset
hex|h [<hex offset>]   hex dump at offset or at the current node
tree, p|info, up, root, dump, load, clear, help, quit"""


class CrawlResult(Enum):
    NAVIGATE = "navigate"
    SILENT = "silent"
    QUIT = "quit"
    UNRECOGNIZED = "unrecognized"
    ERROR = "error"

    @property
    def is_saved_navigation(self) -> bool:
        return self is CrawlResult.NAVIGATE


def _parse_hex(text: str) -> int:
    return int(text.strip().lower().replace("0x", ""), 16)


class CrawlSession:
    def __init__(
        self,
        data: Buffer,
        path: str | Path = "<memory>",
        console: Console | None = None,
        history_path: Path | None = None,
    ) -> None:
        self.data = data
        self.path = Path(path)
        self.console = console or Console()
        self.history_path = history_path or Path(DEFAULT_HISTORY_FILE_NAME)
        self.root = read_root(data)
        self.node: Node = self.root
        self.history: list[str] = []

    @classmethod
    def from_file(cls, path: Path, console: Console | None = None, history_path: Path | None = None) -> CrawlSession:
        return cls(path.read_bytes(), path, console=console, history_path=history_path)

    def run(self, prompt: str = ">>> ") -> None:
        self.console.print(f"Crawling {escape(self.path.name)}...")
        self.print_tree()
        while True:
            try:
                command = self.console.input(prompt)
            except EOFError:
                break
            if self.execute(command) is CrawlResult.QUIT:
                break

    def execute(self, command: str) -> CrawlResult:
        """Run one command, report failures and record successful navigation."""
        result = self.process(command)
        if result is CrawlResult.UNRECOGNIZED:
            self.console.print(f"Try again... unable to recognize command: {escape(command)}")
        elif result is CrawlResult.ERROR:
            self.console.print(f"Try again... parsing/executing that command didn't work: {escape(command)}")
        elif result.is_saved_navigation:
            self.history.append(command.strip())
            self.print_tree()
        return result

    def process(self, command: str) -> CrawlResult:
        verb, _, args = command.strip().partition(" ")
        verb = verb.lower()
        args = args.strip()
        if not verb:
            return CrawlResult.UNRECOGNIZED
        try:
            if args:
                return self._process_with_args(verb, args)
            return self._process_single(verb)
        except (FlatCrawlerError, ValueError, OSError) as exc:
            logger.debug("Command %r failed", command, exc_info=True)
            self.console.print(f"[red]{type(exc).__name__}[/red]: {escape(str(exc))}")
            return CrawlResult.ERROR

    # -----------------------------------------------------------------------
    # Commands
    # -----------------------------------------------------------------------

    def _process_with_args(self, verb: str, args: str) -> CrawlResult:
        node = self.node
        if verb == "ro" and isinstance(node, FieldNode):
            self.console.print(f"Offset: 0x{node.get_reference_offset(_parse_hex(args)):X}")
            return CrawlResult.SILENT
        if verb == "fo" and isinstance(node, FieldNode):
            self.console.print(f"Offset: 0x{node.get_field_offset(_parse_hex(args)):X}")
            return CrawlResult.SILENT
        if verb == "eo" and isinstance(node, ArrayNode):
            self.console.print(f"Offset: 0x{node.get_entry_offset(_parse_hex(args)):X}")
            return CrawlResult.SILENT
        if verb == "rf":
            return self._read_field(args)
        if verb == "union" and isinstance(node, FieldNode):
            index_text, _, mapping = args.partition(" ")
            union = node.read_union(int(index_text), UnionInfo.parse(mapping))
            self.node = union.payload
            return CrawlResult.NAVIGATE
        if verb in ("hex", "h"):
            self._dump_hex(_parse_hex(args))
            return CrawlResult.SILENT
        if verb in ("ro", "fo", "eo", "union"):
            self.console.print(f"{escape(self.node.name)} does not support '{verb}'.")
            return CrawlResult.SILENT
        return CrawlResult.UNRECOGNIZED

    def _read_field(self, args: str) -> CrawlResult:
        node = self.node
        index_text, _, type_text = args.partition(" ")
        index = int(index_text)
        type_text = type_text.strip()

        if isinstance(node, ArrayNode):
            self.node = node.get_entry(index)
            return CrawlResult.NAVIGATE
        if not isinstance(node, FieldNode):
            self.console.print("Node has no fields. Unable to read the requested field node.")
            return CrawlResult.SILENT

        if not type_text:
            child = node.get_field(index)
            if child is None:
                self.console.print(f"Field {index} has not been explored yet; give a type: rf {index} <type>")
                return CrawlResult.ERROR
            self.node = child
            return CrawlResult.NAVIGATE

        self.node = node.read_node(index, type_text)
        return CrawlResult.NAVIGATE

    def _process_single(self, verb: str) -> CrawlResult:
        if verb == "tree":
            self.print_tree()
            return CrawlResult.SILENT
        if verb in ("p", "info"):
            self.print_info()
            return CrawlResult.SILENT
        if verb in ("hex", "h"):
            self._dump_hex(self.node.offset)
            return CrawlResult.SILENT
        if verb == "up":
            parent = self.node.parent
            if parent is None:
                self.console.print("Node has no parent. Unable to go up.")
                return CrawlResult.SILENT
            self.node = parent
            return CrawlResult.NAVIGATE
        if verb == "root":
            self.node = self.node.root
            self.console.print(f"Success! Reset to root @ offset 0x{self.node.offset:X}")
            return CrawlResult.NAVIGATE
        if verb == "dump":
            self.save_history()
            return CrawlResult.SILENT
        if verb == "load":
            self.load_history()
            return CrawlResult.SILENT
        if verb == "clear":
            self.console.clear()
            return CrawlResult.SILENT
        if verb == "help":
            self.console.print(escape(HELP_TEXT))
            return CrawlResult.SILENT
        if verb in ("quit", "exit"):
            return CrawlResult.QUIT
        return CrawlResult.UNRECOGNIZED

    # -----------------------------------------------------------------------
    # Output and history
    # -----------------------------------------------------------------------

    def print_tree(self) -> None:
        self.console.print(build_tree(self.node))

    def print_info(self) -> None:
        self.console.print(node_label(self.node))
        if isinstance(self.node, FieldNode):
            self.console.print(build_field_table(self.node))

    def _dump_hex(self, offset: int) -> None:
        self.console.print(f"Requested offset: 0x{offset:08X}")
        self.console.print(escape(hexdump.dump(self.data, offset)), highlight=False)

    def save_history(self) -> None:
        self.history_path.write_text("".join(f"{line}\n" for line in self.history), encoding="utf-8")
        self.console.print(f"Saved {len(self.history)} command(s) to {escape(str(self.history_path))}")

    def load_history(self) -> None:
        """Replay saved navigation commands from the history file."""
        lines = self.history_path.read_text(encoding="utf-8").splitlines()
        for line in lines:
            if not line.strip():
                continue
            result = self.process(line)
            if result.is_saved_navigation:
                self.history.append(line.strip())
            else:
                logger.info("Replayed command %r returned %s", line, result.value)
        self.console.print("Reloaded state.")
        self.print_tree()
