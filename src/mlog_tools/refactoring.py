"""
mlog Jump Refactorings
======================

Rewrites jump targets between the two address forms the processor accepts:
label names and literal instruction indices.

    convert_to_numbered_jumps          convert_to_labeled_jumps
    -------------------------          ------------------------
    set i 0                            set i 0
    loop:                              label_0:
        op add i i 1          <->          op add i i 1
        jump loop lessThan i 5             jump label_0 lessThan i 5

An instruction index counts Instruction nodes only, the same way the
processor's ``@counter`` does, so comments and labels never shift it.

Both conversions return ``TextEdit`` lists in Language Server Protocol
shape instead of new text. ``apply_edits()`` turns them into the rewritten
source.
"""

import bisect
import itertools
import logging
from typing import Any, NamedTuple, Optional

from mlog_tools.analysis.flow import is_jump, jump_address
from mlog_tools.diagnostics import Position, Range
from mlog_tools.document import MlogDocument
from mlog_tools.errors import OverlappingEditsError
from mlog_tools.parser.lexer import Token
from mlog_tools.parser.nodes import NodeKind, SyntaxNode

logger = logging.getLogger(__name__)

GENERATED_LABEL_PREFIX = "label_"


# =============================================================================
# Text Edits
# =============================================================================

class TextEdit(NamedTuple):
    """Replace ``range`` with ``new_text``. Inserts use an empty range."""
    range: Range
    new_text: str

    @classmethod
    def insert(cls, position: Position, text: str) -> "TextEdit":
        return cls(Range(position, position), text)

    @classmethod
    def replace(cls, range: Range, text: str) -> "TextEdit":
        return cls(range, text)

    @classmethod
    def delete(cls, range: Range) -> "TextEdit":
        return cls(range, "")

    def to_dict(self) -> dict[str, Any]:
        return {"range": self.range.to_dict(), "newText": self.new_text}


def apply_edits(doc: MlogDocument, edits: list[TextEdit]) -> str:
    """
    Apply edits computed against ``doc`` and return the new text.

    Raises:
        OverlappingEditsError: If two edits cover the same text
    """
    text = doc.text
    pieces: list[str] = []
    cursor = 0
    previous = None

    for edit in sorted(edits, key=lambda e: (e.range.start, e.range.end)):
        start = doc.offset_at(edit.range.start)
        end = doc.offset_at(edit.range.end)
        if start < cursor:
            raise OverlappingEditsError(previous.range, edit.range)
        pieces.append(text[cursor:start])
        pieces.append(edit.new_text)
        cursor = end
        previous = edit

    pieces.append(text[cursor:])
    return "".join(pieces)


# =============================================================================
# Line Helpers
# =============================================================================

def _line_start(doc: MlogDocument, node: SyntaxNode) -> Position:
    """Start of the node, moved left over the blanks in front of it."""
    line = doc.line_text(node.start.line) or ""
    prefix = line[:node.start.character]
    blanks = len(prefix) - len(prefix.rstrip(" \t"))
    return Position(node.start.line, node.start.character - blanks)


def _line_end(doc: MlogDocument, node: SyntaxNode) -> Position:
    """
    End of the node plus the blanks after it.

    When nothing else follows on the line, the line break is included.
    """
    line = doc.line_text(node.end.line) or ""
    rest = line[node.end.character:]
    stripped = rest.lstrip(" \t")

    if stripped.rstrip("\r") == "" and doc.line_text(node.end.line + 1) is not None:
        return Position(node.end.line + 1, 0)
    return Position(node.end.line, node.end.character + len(rest) - len(stripped))


def _jump_destination(node: SyntaxNode) -> Optional[Token]:
    if not is_jump(node):
        return None
    return node.operand(0)


# =============================================================================
# Numeric Targets to Labels
# =============================================================================

def convert_to_labeled_jumps(doc: MlogDocument) -> list[TextEdit]:
    """
    Replace numeric jump targets with labels.

    A label already declared in front of the target instruction is reused.
    Otherwise a fresh ``label_<n>:`` is inserted on its own line above the
    instruction. Targets that are not a valid instruction index are left
    alone; the flow analysis reports them as ``out-of-range-value``.
    """
    instructions = doc.instructions
    taken = {node.name for node in doc.nodes if node.kind == NodeKind.LABEL_DECLARATION}

    reusable: dict[int, str] = {}
    for name, node_index in doc.labels.items():
        counter = bisect.bisect_left(instructions, node_index)
        if counter < len(instructions):
            reusable.setdefault(counter, name)

    references: dict[int, list[Token]] = {}
    for node in doc.nodes:
        destination = _jump_destination(node)
        if destination is None or not destination.is_number:
            continue
        address = jump_address(destination)
        if address is None or not 0 <= address < len(instructions):
            continue
        references.setdefault(address, []).append(destination)

    edits: list[TextEdit] = []
    names = (f"{GENERATED_LABEL_PREFIX}{n}" for n in itertools.count())

    for address in sorted(references):
        label = reusable.get(address)
        if label is None:
            label = next(name for name in names if name not in taken)
            taken.add(label)
            target = doc.instruction_at(address)
            edits.append(TextEdit.insert(_line_start(doc, target), f"{label}:\n"))

        for token in references[address]:
            edits.append(TextEdit.replace(token.range, label))

    logger.debug(f"Labeled jumps: {len(references)} targets, {len(edits)} edits")
    return edits


# =============================================================================
# Labels to Numeric Targets
# =============================================================================

def convert_to_numbered_jumps(doc: MlogDocument) -> list[TextEdit]:
    """
    Replace label jump targets with instruction indices.

    The declarations of converted labels are deleted. Undefined labels and
    labels with no instruction after them are left alone.
    """
    instructions = doc.instructions
    counters: dict[str, int] = {}
    for name, node_index in doc.labels.items():
        counter = bisect.bisect_left(instructions, node_index)
        if counter < len(instructions):
            counters[name] = counter

    edits: list[TextEdit] = []
    converted: set[str] = set()

    for node in doc.nodes:
        destination = _jump_destination(node)
        if destination is None or destination.is_number:
            continue
        counter = counters.get(destination.content)
        if counter is None:
            continue
        converted.add(destination.content)
        edits.append(TextEdit.replace(destination.range, str(counter)))

    for name in sorted(converted, key=doc.labels.get):
        declaration = doc.node_at(doc.labels[name])
        edits.append(TextEdit.delete(Range(_line_start(doc, declaration), _line_end(doc, declaration))))

    logger.debug(f"Numbered jumps: {len(converted)} labels removed, {len(edits)} edits")
    return edits
