"""
Control Flow and Reachability
=============================

This module derives the control-flow graph of an mlog program and finds the
instructions that can never execute.

Edges
-----
Edges are computed on demand from the node sequence and never stored:

| Source                          | Edges                                   |
|---------------------------------|-----------------------------------------|
| any node                        | FALLTHROUGH to the next node            |
| ``jump <target> always``        | JUMP to target, no fall-through         |
| ``jump <target> <cond> a b``    | JUMP to target (conditional) + fall     |
| write to ``@counter``           | JUMP to every node (indirect)           |

A jump target is either a label name or a literal instruction index. Literal
indices count Instruction nodes only, exactly like the processor's program
counter. A jump whose target cannot be resolved does nothing at run time and
only falls through.

Reachability
------------
A breadth-first walk from node 0 marks every node it reaches in a BitSet.
Unreached Instruction nodes are reported as ``unreachable-code``; comment
lines and label declarations carry no executable meaning and are never
reported.

Example:
    >>> from mlog_tools.parser import parse
    >>> result = analyze_flow(parse("end\\njump 0 always\\nprint 1").nodes)
    >>> result.reachability
    [True, True, False]
"""

import logging
from collections import deque
from enum import Enum, auto
from typing import Iterator, NamedTuple, Optional

from mlog_tools.constants import ALWAYS_CONDITION, COUNTER_VAR
from mlog_tools.diagnostics import (
    Diagnostic,
    DiagnosticCode,
    DiagnosticSeverity,
    RelatedInformation,
    make_diagnostic,
)
from mlog_tools.document import LabelTable, build_label_table, instruction_node_indices
from mlog_tools.instructions import OperandRole, resolve_operands
from mlog_tools.parser.lexer import Token
from mlog_tools.parser.nodes import Instruction, NodeKind, SyntaxNode
from mlog_tools.util.bitset import BitSet

logger = logging.getLogger(__name__)


# =============================================================================
# Edges
# =============================================================================

class EdgeKind(Enum):
    """How control moves along an edge."""
    FALLTHROUGH = auto()
    JUMP = auto()


class Edge(NamedTuple):
    """
    A control-flow edge between two node indices.

    ``conditional`` is only meaningful for JUMP edges: False for
    ``jump ... always``, True for conditional and indirect jumps.
    """
    source: int
    target: int
    kind: EdgeKind
    conditional: bool = False


class FlowResult(NamedTuple):
    """Result of ``analyze_flow()``."""
    reachability: list[bool]
    diagnostics: list[Diagnostic]


# =============================================================================
# Jump Helpers
# =============================================================================

def is_jump(node: SyntaxNode) -> bool:
    return node.kind == NodeKind.INSTRUCTION and node.opcode == "jump"


def is_unconditional_jump(node: SyntaxNode) -> bool:
    """Return True for ``jump <target> always``."""
    if not is_jump(node):
        return False
    condition = node.operand(1)
    return condition is not None and condition.content == ALWAYS_CONDITION


def writes_counter(node: SyntaxNode) -> bool:
    """Return True if the instruction assigns ``@counter``."""
    if node.kind != NodeKind.INSTRUCTION:
        return False
    return any(
        operand.role == OperandRole.WRITE and operand.token.content == COUNTER_VAR
        for operand in resolve_operands(node)
    )


def jump_address(token: Token) -> Optional[int]:
    """
    Return the literal instruction index of a numeric jump target.

    None if the token is not an integral number.
    """
    value = token.number_value
    if value is None or not float(value).is_integer():
        return None
    return int(value)


# =============================================================================
# Flow Graph
# =============================================================================

class FlowGraph:
    """
    Control-flow graph of a node sequence.

    Building the graph resolves every jump target and records problems with
    them in ``diagnostics``. Edges are produced lazily by ``successors()``
    and ``iter_edges()``.

    Attributes:
        nodes: The analyzed node sequence
        label_table: Labels of the sequence (first declaration wins)
        instructions: Node index of every Instruction, in program order
        diagnostics: Label and jump target problems
    """

    def __init__(self, nodes: list[SyntaxNode], label_table: Optional[LabelTable] = None, uri: str = ""):
        self.nodes = nodes
        self.uri = uri
        self.label_table = label_table if label_table is not None else build_label_table(nodes)
        self.instructions = instruction_node_indices(nodes)
        self.diagnostics: list[Diagnostic] = []

        # node index -> resolved jump target node index (None if unresolved)
        self._jump_targets: dict[int, Optional[int]] = {}
        self._indirect: set[int] = set()
        self._reachable: Optional[BitSet] = None

        self._report_redeclarations()
        self._resolve_jumps()

    def __len__(self) -> int:
        return len(self.nodes)

    # =========================================================================
    # Target resolution
    # =========================================================================

    def _report_redeclarations(self) -> None:
        for index, original in self.label_table.duplicates:
            node = self.nodes[index]
            first = self.nodes[original]
            self.diagnostics.append(make_diagnostic(
                node.name_range,
                f"Redeclaration of label '{node.name}'",
                DiagnosticSeverity.ERROR,
                DiagnosticCode.LABEL_REDECLARATION,
                related=[RelatedInformation(first.name_range, "The label is first declared here", self.uri)],
            ))

    def _resolve_jumps(self) -> None:
        for index, node in enumerate(self.nodes):
            if writes_counter(node):
                self._indirect.add(index)
            if is_jump(node):
                self._jump_targets[index] = self._resolve_target(node)

    def _resolve_target(self, node: Instruction) -> Optional[int]:
        destination = node.operand(0)
        if destination is None:
            return None

        if destination.is_number:
            address = jump_address(destination)
            if address is None or not 0 <= address < len(self.instructions):
                self.diagnostics.append(make_diagnostic(
                    destination.range,
                    f"Jump address '{destination.content}' is out of range "
                    f"(the program has {len(self.instructions)} instructions)",
                    DiagnosticSeverity.ERROR,
                    DiagnosticCode.OUT_OF_RANGE_VALUE,
                ))
                return None
            return self.instructions[address]

        target = self.label_table.labels.get(destination.content)
        if target is None:
            self.diagnostics.append(make_diagnostic(
                node.range,
                f"Label '{destination.content}' is not declared",
                DiagnosticSeverity.ERROR,
                DiagnosticCode.UNDEFINED_LABEL,
            ))
        return target

    def jump_target(self, index: int) -> Optional[int]:
        """Return the resolved target node of the jump at ``index``."""
        return self._jump_targets.get(index)

    # =========================================================================
    # Edges
    # =========================================================================

    def successors(self, index: int) -> list[Edge]:
        """Return the outgoing edges of node ``index``."""
        node = self.nodes[index]
        count = len(self.nodes)

        if index in self._indirect:
            return [Edge(index, target, EdgeKind.JUMP, True) for target in range(count)]

        edges = []
        target = self._jump_targets.get(index)
        unconditional = is_unconditional_jump(node)

        if target is not None:
            edges.append(Edge(index, target, EdgeKind.JUMP, not unconditional))

        # An unresolved jump behaves like a no-op
        if (target is None or not unconditional) and index + 1 < count:
            edges.append(Edge(index, index + 1, EdgeKind.FALLTHROUGH))

        return edges

    def iter_edges(self) -> Iterator[Edge]:
        """Yield every edge of the graph, grouped by source node."""
        for index in range(len(self.nodes)):
            yield from self.successors(index)

    # =========================================================================
    # Reachability
    # =========================================================================

    @property
    def reachable(self) -> BitSet:
        """Nodes reachable from the entry (node 0). Computed once."""
        if self._reachable is None:
            self._reachable = self._compute_reachable()
        return self._reachable

    def _compute_reachable(self) -> BitSet:
        visited = BitSet(len(self.nodes))
        if not self.nodes:
            return visited

        visited.set(0)
        queue = deque([0])

        while queue:
            index = queue.popleft()
            for edge in self.successors(index):
                if not visited.get(edge.target):
                    visited.set(edge.target)
                    queue.append(edge.target)

        return visited

    def unreachable_diagnostics(self) -> list[Diagnostic]:
        """Report every Instruction node the entry cannot reach."""
        reachable = self.reachable
        return [
            make_diagnostic(
                node.range,
                "Unreachable code",
                DiagnosticSeverity.WARNING,
                DiagnosticCode.UNREACHABLE_CODE,
                unnecessary=True,
            )
            for index, node in enumerate(self.nodes)
            if node.kind == NodeKind.INSTRUCTION and not reachable.get(index)
        ]


# =============================================================================
# Entry Point
# =============================================================================

def analyze_flow(nodes: list[SyntaxNode], uri: str = "") -> FlowResult:
    """
    Compute reachability and control-flow diagnostics for a node sequence.

    Args:
        nodes: Nodes produced by ``parse()``
        uri: Document identifier used in related-information locations

    Returns:
        FlowResult with one boolean per node and the diagnostics for
        duplicate labels, undefined labels, out-of-range jump addresses and
        unreachable instructions
    """
    graph = FlowGraph(nodes, uri=uri)
    reachable = graph.reachable
    diagnostics = graph.diagnostics + graph.unreachable_diagnostics()

    logger.debug(
        f"Flow analysis: {reachable.count()}/{len(nodes)} nodes reachable, "
        f"{len(diagnostics)} diagnostics"
    )
    return FlowResult([reachable.get(i) for i in range(len(nodes))], diagnostics)
