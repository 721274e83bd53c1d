"""
mlog Document Model
===================

``MlogDocument`` owns the parsed state of one source file: the node
sequence, the tokenizer diagnostics and the tables derived from the nodes.

The state is rebuilt from scratch on every ``update()`` and swapped in with
a single assignment, so readers never observe a half-updated document. There
is no API for editing individual nodes.

Example:
    >>> doc = MlogDocument("loop:\\njump loop always")
    >>> doc.labels
    {'loop': 0}
    >>> doc.node_at(1).opcode
    'jump'
"""

import bisect
import logging
from typing import NamedTuple, Optional

from mlog_tools.diagnostics import Diagnostic, Position
from mlog_tools.parser.nodes import (
    Instruction,
    LabelDeclaration,
    NodeKind,
    SyntaxNode,
    parse,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Label Table
# =============================================================================

class LabelTable(NamedTuple):
    """
    Label name to declaring node index.

    Attributes:
        labels: First declaration of every label name
        duplicates: ``(node_index, original_index)`` for every later
            declaration of an already declared name
    """
    labels: dict[str, int]
    duplicates: list[tuple[int, int]]


def build_label_table(nodes: list[SyntaxNode]) -> LabelTable:
    """
    Collect label declarations. The first declaration of a name wins.
    """
    labels: dict[str, int] = {}
    duplicates: list[tuple[int, int]] = []

    for index, node in enumerate(nodes):
        if node.kind != NodeKind.LABEL_DECLARATION:
            continue
        original = labels.get(node.name)
        if original is None:
            labels[node.name] = index
        else:
            duplicates.append((index, original))

    return LabelTable(labels, duplicates)


def instruction_node_indices(nodes: list[SyntaxNode]) -> list[int]:
    """Return the node index of every Instruction, in program order."""
    return [i for i, node in enumerate(nodes) if node.kind == NodeKind.INSTRUCTION]


# =============================================================================
# Document
# =============================================================================

class _DocumentState(NamedTuple):
    text: str
    lines: list[str]
    nodes: list[SyntaxNode]
    diagnostics: list[Diagnostic]
    label_table: LabelTable
    instructions: list[int]
    line_starts: list[int]


class MlogDocument:
    """
    The parsed form of one mlog source file.

    Attributes:
        uri: Identifier of the document (file path or editor URI)
    """

    def __init__(self, text: str = "", uri: str = ""):
        self.uri = uri
        self._state = self._build(text)

    @classmethod
    def from_file(cls, path: str, encoding: str = "utf-8") -> "MlogDocument":
        """Read and parse a source file."""
        with open(path, "r", encoding=encoding) as f:
            return cls(f.read(), uri=path)

    def update(self, text: str) -> None:
        """Replace the document content and rebuild every derived table."""
        self._state = self._build(text)

    @staticmethod
    def _build(text: str) -> _DocumentState:
        nodes, diagnostics = parse(text)
        label_table = build_label_table(nodes)
        instructions = instruction_node_indices(nodes)
        line_starts = [node.start.line for node in nodes]

        logger.debug(
            f"Document rebuilt: {len(nodes)} nodes, {len(instructions)} instructions, "
            f"{len(label_table.labels)} labels"
        )
        return _DocumentState(
            text,
            text.split("\n"),
            nodes,
            diagnostics,
            label_table,
            instructions,
            line_starts,
        )

    # =========================================================================
    # Content
    # =========================================================================

    @property
    def text(self) -> str:
        return self._state.text

    @property
    def nodes(self) -> list[SyntaxNode]:
        return self._state.nodes

    @property
    def parse_diagnostics(self) -> list[Diagnostic]:
        """Diagnostics produced by the tokenizer."""
        return self._state.diagnostics

    @property
    def label_table(self) -> LabelTable:
        return self._state.label_table

    @property
    def labels(self) -> dict[str, int]:
        return self._state.label_table.labels

    @property
    def instructions(self) -> list[int]:
        """Node indices of the Instruction nodes, in program order."""
        return self._state.instructions

    @property
    def instruction_count(self) -> int:
        return len(self._state.instructions)

    def __len__(self) -> int:
        return len(self._state.nodes)

    def line_text(self, line: int) -> Optional[str]:
        """Return the text of a source line, None past the end."""
        lines = self._state.lines
        if 0 <= line < len(lines):
            return lines[line]
        return None

    def offset_at(self, position: Position) -> int:
        """
        Convert a position to an offset into ``text``.

        Characters past the end of a line are clamped to the line end, and
        lines past the end of the document map to the end of the text.
        """
        lines = self._state.lines
        if position.line >= len(lines):
            return len(self._state.text)
        line = max(position.line, 0)
        offset = sum(len(text) + 1 for text in lines[:line])
        return offset + min(max(position.character, 0), len(lines[line]))

    # =========================================================================
    # Lookups
    # =========================================================================

    def node_at(self, index: int) -> SyntaxNode:
        """Return node ``index``. An invalid index raises IndexError."""
        return self._state.nodes[index]

    def instruction_at(self, counter: int) -> Instruction:
        """Return the Instruction executed when ``@counter`` equals ``counter``."""
        return self._state.nodes[self._state.instructions[counter]]

    def instruction_index(self, node_index: int) -> Optional[int]:
        """Return the program counter value of a node, None for non-instructions."""
        instructions = self._state.instructions
        position = bisect.bisect_left(instructions, node_index)
        if position < len(instructions) and instructions[position] == node_index:
            return position
        return None

    def nodes_on_line(self, line: int) -> list[SyntaxNode]:
        """Return every node starting on ``line``."""
        starts = self._state.line_starts
        low = bisect.bisect_left(starts, line)
        high = bisect.bisect_right(starts, line)
        return self._state.nodes[low:high]

    def node_at_position(self, position: Position) -> Optional[SyntaxNode]:
        """Return the node whose range contains ``position``."""
        for node in self.nodes_on_line(position.line):
            if node.range.contains(position):
                return node
        return None

    def label_declaration(self, name: str) -> Optional[LabelDeclaration]:
        """Return the (first) declaration of label ``name``."""
        index = self.labels.get(name)
        if index is None:
            return None
        return self._state.nodes[index]
