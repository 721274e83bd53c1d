"""
Document Validation
===================

``check_document()`` runs every check mlog-tools knows about and returns one
list of diagnostics, sorted by position.

Checks
------
| Code                   | Severity | Source                              |
|------------------------|----------|-------------------------------------|
| unclosed-string        | error    | tokenizer                           |
| missing-space          | error    | tokenizer                           |
| label-redeclaration    | error    | flow analysis                       |
| undefined-label        | error    | flow analysis                       |
| out-of-range-value     | error    | flow analysis                       |
| unreachable-code       | warning  | flow analysis                       |
| undefined-variable     | warning  | variable dataflow                   |
| possibly-unset-variable| info     | variable dataflow                   |
| unused-variable        | warning  | variable dataflow                   |
| unknown-instruction    | warning  | instruction table                   |
| line-too-long          | error    | statement token limit               |
| unused-label           | warning  | label usage                         |
| prefer-jump-labels     | hint     | label usage                         |
| too-many-labels        | error    | processor limit                     |
| too-many-instructions  | error    | processor limit                     |
| unknown-color-name     | warning  | string and color literal markup     |
"""

import logging
import re
from typing import Optional

from mlog_tools.analysis.flow import FlowGraph, is_jump
from mlog_tools.analysis.variables import VariableAnalysis
from mlog_tools.config import MlogConfig
from mlog_tools.constants import COLOR_NAMES
from mlog_tools.diagnostics import (
    Diagnostic,
    DiagnosticCode,
    DiagnosticSeverity,
    Range,
    make_diagnostic,
)
from mlog_tools.document import MlogDocument
from mlog_tools.errors import UnknownNodeKindError
from mlog_tools.instructions import INSTRUCTION_NAMES
from mlog_tools.parser.lexer import Token
from mlog_tools.parser.nodes import NodeKind, SyntaxNode
from mlog_tools.util.spelling import did_you_mean

logger = logging.getLogger(__name__)

HEX_TAG_PATTERN = re.compile(r"#(?:[0-9a-fA-F]{6}|[0-9a-fA-F]{8})")


# =============================================================================
# Individual Checks
# =============================================================================

def check_instructions(nodes: list[SyntaxNode]) -> list[Diagnostic]:
    """Report opcodes missing from the instruction table."""
    result = []
    for node in nodes:
        if node.kind != NodeKind.INSTRUCTION or node.opcode in INSTRUCTION_NAMES:
            continue
        result.append(make_diagnostic(
            node.tokens[0].range,
            f"Unknown instruction '{node.opcode}'.{did_you_mean(node.opcode, sorted(INSTRUCTION_NAMES))}",
            DiagnosticSeverity.WARNING,
            DiagnosticCode.UNKNOWN_INSTRUCTION,
        ))
    return result


def check_line_length(nodes: list[SyntaxNode], max_tokens: int) -> list[Diagnostic]:
    """Report statements holding more tokens than a processor accepts."""
    result = []
    for node in nodes:
        tokens = node.tokens
        if len(tokens) <= max_tokens:
            continue
        result.append(make_diagnostic(
            Range(tokens[max_tokens].start, tokens[-1].end),
            f"Line too long; may only contain {max_tokens} tokens",
            DiagnosticSeverity.ERROR,
            DiagnosticCode.LINE_TOO_LONG,
        ))
    return result


def check_label_usage(nodes: list[SyntaxNode], labels: dict[str, int]) -> list[Diagnostic]:
    """Report unused labels and numeric jump targets."""
    result = []
    used: set[str] = set()

    for node in nodes:
        if not is_jump(node):
            continue
        destination = node.operand(0)
        if destination is None:
            continue
        if destination.is_number:
            result.append(make_diagnostic(
                destination.range,
                "Prefer using labels instead of jump addresses",
                DiagnosticSeverity.HINT,
                DiagnosticCode.PREFER_JUMP_LABELS,
            ))
        else:
            used.add(destination.content)

    for name, index in labels.items():
        if name in used:
            continue
        result.append(make_diagnostic(
            nodes[index].name_range,
            f"Label '{name}' is declared but never used",
            DiagnosticSeverity.WARNING,
            DiagnosticCode.UNUSED_LABEL,
            unnecessary=True,
        ))

    return result


def check_limits(nodes: list[SyntaxNode], config: MlogConfig) -> list[Diagnostic]:
    """Report labels and instructions beyond the processor limits."""
    result = []
    label_count = 0
    instruction_count = 0

    for node in nodes:
        if node.kind == NodeKind.LABEL_DECLARATION:
            label_count += 1
            if label_count > config.max_labels:
                result.append(make_diagnostic(
                    node.name_range,
                    f"Exceeded maximum label count of {config.max_labels}",
                    DiagnosticSeverity.ERROR,
                    DiagnosticCode.TOO_MANY_LABELS,
                ))
        elif node.kind == NodeKind.INSTRUCTION:
            instruction_count += 1
            if instruction_count > config.max_instructions:
                result.append(make_diagnostic(
                    node.range,
                    f"Exceeded maximum instruction count of {config.max_instructions}",
                    DiagnosticSeverity.ERROR,
                    DiagnosticCode.TOO_MANY_INSTRUCTIONS,
                ))
        elif node.kind != NodeKind.COMMENT_LINE:
            raise UnknownNodeKindError(node.kind)

    return result


def is_known_color(name: str) -> bool:
    """Return True if a color tag name is a named color or ``#rrggbb[aa]``."""
    return name.lower() in COLOR_NAMES or HEX_TAG_PATTERN.fullmatch(name) is not None


def _check_token_colors(token: Token) -> list[Diagnostic]:
    result = []
    for tag in token.tags:
        if tag.is_reset:
            continue
        name = token.tag_name(tag)
        if is_known_color(name):
            continue
        result.append(make_diagnostic(
            token.tag_range(tag),
            f"Unknown color name: {name}.{did_you_mean(name, sorted(COLOR_NAMES))}",
            DiagnosticSeverity.WARNING,
            DiagnosticCode.UNKNOWN_COLOR_NAME,
        ))
    return result


def check_colors(nodes: list[SyntaxNode]) -> list[Diagnostic]:
    """Report color tags naming no known color."""
    result = []
    for node in nodes:
        if node.kind == NodeKind.COMMENT_LINE:
            continue
        for token in node.tokens:
            if token.is_string or token.is_color:
                result.extend(_check_token_colors(token))
    return result


# =============================================================================
# Entry Point
# =============================================================================

def check_document(doc: MlogDocument, config: Optional[MlogConfig] = None) -> list[Diagnostic]:
    """
    Run every check on a document.

    Args:
        doc: The parsed document
        config: Limits to check against (defaults if omitted)

    Returns:
        All diagnostics, ordered by position
    """
    config = config or MlogConfig()
    nodes = doc.nodes

    graph = FlowGraph(nodes, doc.label_table, uri=doc.uri)

    diagnostics: list[Diagnostic] = list(doc.parse_diagnostics)
    diagnostics.extend(graph.diagnostics)
    diagnostics.extend(graph.unreachable_diagnostics())
    diagnostics.extend(VariableAnalysis(graph).diagnostics())
    diagnostics.extend(check_instructions(nodes))
    diagnostics.extend(check_line_length(nodes, config.max_tokens_per_line))
    diagnostics.extend(check_label_usage(nodes, doc.labels))
    diagnostics.extend(check_limits(nodes, config))
    diagnostics.extend(check_colors(nodes))

    diagnostics.sort(key=Diagnostic.sort_key)
    logger.debug(f"Checked {doc.uri or '<input>'}: {len(diagnostics)} diagnostics")
    return diagnostics
