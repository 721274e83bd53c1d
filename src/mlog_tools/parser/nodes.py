"""
mlog Syntax Nodes
=================

This module turns token lines into statement-level syntax nodes. A document
is a flat, ordered sequence of nodes; mlog has no nesting, so no tree is
needed.

Node Kinds
----------
1. **CommentLine**: A line holding only a comment
   ```mlog
   # wait for the reactor to cool down
   ```

2. **LabelDeclaration**: A name followed by a colon
   ```mlog
   loop:
   ```

3. **Instruction**: An opcode followed by operands
   ```mlog
   sensor heat reactor1 @heat
   jump loop lessThan heat 0.5
   ```

Every node carries an explicit ``kind`` discriminant. Consumers switch on
``node.kind`` and raise ``UnknownNodeKindError`` in their default branch.

Chained Statements
------------------
Statements separated by ``;`` become separate nodes on the same line. A label
declaration followed by more tokens (``loop: print x``) yields a label node
and an instruction node for the tail, again on the same line:

    loop: print x; end
    -> LabelDeclaration(loop) Instruction(print) Instruction(end)

Parsing is total: any statement that is neither a comment nor a label becomes
an Instruction, whatever its opcode. Unknown opcodes are reported later by
the validator.
"""

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import ClassVar, NamedTuple, Optional

from mlog_tools.diagnostics import Diagnostic, Position, Range
from mlog_tools.parser.lexer import Token, TokenLine, tokenize

logger = logging.getLogger(__name__)


# =============================================================================
# Node Kind Discriminant
# =============================================================================

class NodeKind(Enum):
    """Discriminant of the syntax node variants."""
    COMMENT_LINE = auto()
    LABEL_DECLARATION = auto()
    INSTRUCTION = auto()


# =============================================================================
# Node Data Classes
# =============================================================================

@dataclass(frozen=True)
class SyntaxNode:
    """
    Base class for all syntax nodes.

    Attributes:
        start: Position of the first token
        end: Position just past the last token
        tokens: The tokens making up the node
    """
    kind: ClassVar[NodeKind]

    start: Position
    end: Position
    tokens: tuple[Token, ...]

    @property
    def range(self) -> Range:
        return Range(self.start, self.end)

    @property
    def line(self) -> int:
        return self.start.line


@dataclass(frozen=True)
class CommentLine(SyntaxNode):
    """A statement holding nothing but a comment."""
    kind: ClassVar[NodeKind] = NodeKind.COMMENT_LINE

    @property
    def text(self) -> str:
        """Comment text without the leading ``#``."""
        return self.tokens[0].content[1:]


@dataclass(frozen=True)
class LabelDeclaration(SyntaxNode):
    """
    A label declaration (``name:``).

    Attributes:
        name: The label name without the trailing colon
    """
    kind: ClassVar[NodeKind] = NodeKind.LABEL_DECLARATION

    name: str = ""

    @property
    def name_range(self) -> Range:
        """Range of the name only, excluding the colon."""
        token = self.tokens[0]
        return Range(token.start, Position(token.end.line, token.end.character - 1))


@dataclass(frozen=True)
class Instruction(SyntaxNode):
    """
    An instruction: opcode plus operands.

    Attributes:
        opcode: The content of the first token
    """
    kind: ClassVar[NodeKind] = NodeKind.INSTRUCTION

    opcode: str = ""

    @property
    def operands(self) -> tuple[Token, ...]:
        """Tokens after the opcode, without a trailing comment."""
        if self.tokens[-1].is_comment:
            return self.tokens[1:-1]
        return self.tokens[1:]

    @property
    def trailing_comment(self) -> Optional[Token]:
        if len(self.tokens) > 1 and self.tokens[-1].is_comment:
            return self.tokens[-1]
        return None

    def operand(self, index: int) -> Optional[Token]:
        """Return operand ``index`` (0 = first after the opcode), or None."""
        operands = self.operands
        if 0 <= index < len(operands):
            return operands[index]
        return None


class ParseResult(NamedTuple):
    """Result of ``parse()``: the node sequence and tokenizer diagnostics."""
    nodes: list[SyntaxNode]
    diagnostics: list[Diagnostic]


# =============================================================================
# Parsing
# =============================================================================

def is_label_token(token: Token) -> bool:
    """Return True if ``token`` declares a label (``name:``)."""
    return (
        token.is_identifier
        and len(token.content) > 1
        and token.content.endswith(":")
    )


def parse_line(line: TokenLine) -> list[SyntaxNode]:
    """
    Convert one token line into syntax nodes.

    Returns:
        One node, or several when a label declaration has a chained tail
    """
    nodes: list[SyntaxNode] = []
    tokens = line.tokens
    end = line.end

    while tokens:
        first = tokens[0]

        if first.is_comment:
            nodes.append(CommentLine(first.start, end, tokens))
            break

        if is_label_token(first):
            rest = tokens[1:]
            name = first.content[:-1]

            # A trailing comment stays with the label
            if not rest or rest[0].is_comment:
                nodes.append(LabelDeclaration(first.start, end, tokens, name=name))
                break

            nodes.append(LabelDeclaration(first.start, first.end, (first,), name=name))
            tokens = rest
            continue

        nodes.append(Instruction(first.start, end, tokens, opcode=first.content))
        break

    return nodes


def parse_nodes(lines: list[TokenLine]) -> list[SyntaxNode]:
    """
    Convert token lines into the document's node sequence.

    Nodes come out in source order: by line, then by character.
    """
    nodes: list[SyntaxNode] = []
    for line in lines:
        nodes.extend(parse_line(line))
    return nodes


def parse(text: str) -> ParseResult:
    """
    Parse mlog source text.

    This is a total function: it never raises for any input. Lexical problems
    are returned as diagnostics alongside a best-effort node sequence.

    Args:
        text: The complete source text

    Returns:
        ParseResult(nodes, diagnostics)

    Example:
        >>> result = parse('print "hi"')
        >>> [node.kind for node in result.nodes]
        [<NodeKind.INSTRUCTION: 3>]
    """
    lines, diagnostics = tokenize(text)
    nodes = parse_nodes(lines)
    line_count = text.count("\n") + 1
    logger.debug(f"Parsed {len(nodes)} nodes from {line_count} lines")
    return ParseResult(nodes, diagnostics)
