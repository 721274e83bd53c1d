"""
mlog Formatter
==============

Re-renders a node sequence as canonically formatted source. Only whitespace
changes: every token is written back with its exact content, in order.

Layout Rules
------------
The node sequence is split into *indentation blocks*:

- A label declaration and the column-0 comment lines directly above it form
  an unindented block. Indented comments inside that run are passed over
  while looking for the start of the block.
- A trailing run of column-0 comment lines at the end of the file forms an
  unindented block.
- Everything before the first such block is unindented.
- Everything else is indented by one unit (``tab_size`` spaces or a tab).

Comment lines that were indented keep one level of indentation even inside
unindented blocks, so that formatting twice gives the same result.

Between two nodes the formatter writes ``clamp(line gap, 1, 3)`` line breaks.
The first node of the document uses ``(0, 2)`` and the first node of an
unindented block uses ``(2, 3)``, which leaves at least one blank line above
every label.

Example:
    >>> print(format_text("start:\\nset x 1\\n\\n\\n\\n\\njump start always"), end="")
    start:
        set x 1
    <BLANKLINE>
    <BLANKLINE>
        jump start always
"""

import logging
from dataclasses import dataclass
from typing import NamedTuple, Optional

from mlog_tools.document import MlogDocument
from mlog_tools.parser.nodes import NodeKind, SyntaxNode, parse

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FormatOptions:
    """
    Formatting options.

    Attributes:
        tab_size: Spaces per indentation level when ``insert_spaces`` is set
        insert_spaces: Indent with spaces instead of a tab
        insert_final_newline: End the output with a line break
    """
    tab_size: int = 4
    insert_spaces: bool = True
    insert_final_newline: bool = True


class IndentationBlock(NamedTuple):
    """A run of nodes ``[start, end)`` rendered at the same indentation."""
    start: int
    end: int
    indent: bool


def clamp(value: int, minimum: int, maximum: int) -> int:
    return min(max(value, minimum), maximum)


# =============================================================================
# Block Partitioning
# =============================================================================

def _is_comment(node: SyntaxNode) -> bool:
    return node.kind == NodeKind.COMMENT_LINE


def _comment_run_start(nodes: list[SyntaxNode], end: int) -> int:
    """
    Walk back from ``end`` over comment lines.

    Returns:
        Index of the earliest column-0 comment in the run, or ``end`` if the
        run holds none
    """
    start = end
    for i in range(end - 1, -1, -1):
        node = nodes[i]
        if not _is_comment(node):
            break
        if node.start.character != 0:
            continue
        start = i
    return start


def get_indentation_blocks(nodes: list[SyntaxNode]) -> list[IndentationBlock]:
    """Partition ``nodes`` into indentation blocks covering every node."""
    flat_blocks: list[tuple[int, int]] = []

    for index, node in enumerate(nodes):
        if node.kind == NodeKind.LABEL_DECLARATION:
            flat_blocks.append((_comment_run_start(nodes, index), index + 1))

    # Column-0 comments closing the file stay unindented
    if nodes and _is_comment(nodes[-1]):
        end = len(nodes)
        start = _comment_run_start(nodes, end)
        if start != end:
            flat_blocks.append((start, end))

    blocks: list[IndentationBlock] = []
    previous_end = 0

    for start, end in flat_blocks:
        if previous_end < start:
            blocks.append(IndentationBlock(previous_end, start, previous_end != 0))
        blocks.append(IndentationBlock(start, end, False))
        previous_end = end

    if previous_end != len(nodes):
        blocks.append(IndentationBlock(previous_end, len(nodes), previous_end != 0))

    return blocks


# =============================================================================
# Rendering
# =============================================================================

def format_code(
    nodes: list[SyntaxNode],
    tab_size: int = 4,
    insert_spaces: bool = True,
    insert_final_newline: bool = True,
) -> str:
    """
    Render ``nodes`` as formatted source text.

    Never fails and performs no validation: malformed statements are written
    back token by token.

    Args:
        nodes: Nodes produced by ``parse()``
        tab_size: Spaces per indentation level
        insert_spaces: Indent with spaces (True) or tabs (False)
        insert_final_newline: Append a line break at the end

    Returns:
        The formatted text
    """
    unit = " " * tab_size if insert_spaces else "\t"
    parts: list[str] = []
    line_number = 0

    for block in get_indentation_blocks(nodes):
        for i in range(block.start, block.end):
            node = nodes[i]

            if i == 0:
                min_lines, max_lines = 0, 2
            elif i == block.start and not block.indent:
                min_lines, max_lines = 2, 3
            else:
                min_lines, max_lines = 1, 3

            parts.append("\n" * clamp(node.start.line - line_number, min_lines, max_lines))

            if block.indent or (_is_comment(node) and node.start.character != 0):
                parts.append(unit)

            parts.append(" ".join(token.content for token in node.tokens))
            line_number = node.start.line

    if insert_final_newline:
        parts.append("\n")

    return "".join(parts)


def format_document(doc: MlogDocument, options: Optional[FormatOptions] = None) -> str:
    """Format an ``MlogDocument``."""
    options = options or FormatOptions()
    return format_code(
        doc.nodes,
        tab_size=options.tab_size,
        insert_spaces=options.insert_spaces,
        insert_final_newline=options.insert_final_newline,
    )


def format_text(text: str, options: Optional[FormatOptions] = None) -> str:
    """Parse and format source text in one step."""
    options = options or FormatOptions()
    nodes = parse(text).nodes
    result = format_code(
        nodes,
        tab_size=options.tab_size,
        insert_spaces=options.insert_spaces,
        insert_final_newline=options.insert_final_newline,
    )
    logger.debug(f"Formatted {len(nodes)} nodes ({len(text)} -> {len(result)} characters)")
    return result
