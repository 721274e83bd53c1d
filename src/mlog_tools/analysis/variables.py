"""
Variable Dataflow
=================

Forward "maybe unset" analysis over the control-flow graph, built on the same
BitSet machinery as reachability: one bit per variable, one set per node.

Algorithm
---------
1. The universe is every variable name used as a READ or WRITE operand.
   Globals (``@unit``), keywords (``true``), numbers, strings and colors are
   not variables.
2. Each node gets a *keep* set: every bit except the variables it writes.
3. At the entry every variable is unset: ``in[0]`` has every bit set.
4. ``out[i] = in[i] & keep[i]``; ``in[j] |= out[i]`` for every edge i -> j.
5. A worklist revisits a node whenever its ``in`` set grows. Sets only grow
   and the universe is finite, so the loop reaches a fixed point.

Diagnostics
-----------
| Code                      | Severity    | When                              |
|---------------------------|-------------|-----------------------------------|
| possibly-unset-variable   | information | read while maybe unset on a path  |
| undefined-variable        | warning     | read, never written anywhere      |
| unused-variable           | warning     | written, never read               |

Linked buildings (``cell1``, ``message2``) are provided by the processor and
are never reported as undefined. ``_`` discards a result and is never
reported as unused.
"""

import logging
from collections import deque
from typing import NamedTuple, Optional

from mlog_tools.constants import DISCARD_VAR, KEYWORDS, is_building_link
from mlog_tools.diagnostics import (
    Diagnostic,
    DiagnosticCode,
    DiagnosticSeverity,
    make_diagnostic,
)
from mlog_tools.analysis.flow import FlowGraph
from mlog_tools.instructions import OperandRole, resolve_operands
from mlog_tools.parser.lexer import Token
from mlog_tools.parser.nodes import NodeKind, SyntaxNode
from mlog_tools.util.bitset import BitSet

logger = logging.getLogger(__name__)


def is_variable_token(token: Token) -> bool:
    """Return True if ``token`` names a program variable."""
    return (
        token.is_identifier
        and not token.content.startswith("@")
        and token.content not in KEYWORDS
    )


class VariableAccess(NamedTuple):
    """One read or write of a variable."""
    token: Token
    variable: int


class VariableAnalysis:
    """
    Maybe-unset dataflow facts for one flow graph.

    Attributes:
        graph: The analyzed control-flow graph
        names: Variable names, indexed by bit position
        reads: Per node, the variable reads of that node
        writes: Per node, the variable writes of that node
    """

    def __init__(self, graph: FlowGraph):
        self.graph = graph
        self.names: list[str] = []
        self._index: dict[str, int] = {}
        self.reads: list[list[VariableAccess]] = []
        self.writes: list[list[VariableAccess]] = []

        self._collect()
        self._unset_before: Optional[list[BitSet]] = None

    def _variable(self, name: str) -> int:
        index = self._index.get(name)
        if index is None:
            index = len(self.names)
            self._index[name] = index
            self.names.append(name)
        return index

    def _collect(self) -> None:
        for node in self.graph.nodes:
            reads: list[VariableAccess] = []
            writes: list[VariableAccess] = []

            if node.kind == NodeKind.INSTRUCTION:
                for operand in resolve_operands(node):
                    if not is_variable_token(operand.token):
                        continue
                    if operand.role == OperandRole.READ:
                        reads.append(VariableAccess(operand.token, self._variable(operand.token.content)))
                    elif operand.role == OperandRole.WRITE:
                        writes.append(VariableAccess(operand.token, self._variable(operand.token.content)))

            self.reads.append(reads)
            self.writes.append(writes)

    @property
    def variable_count(self) -> int:
        return len(self.names)

    # =========================================================================
    # Fixed point
    # =========================================================================

    def unset_before(self) -> list[BitSet]:
        """
        Return, per node, the variables that may be unset when it executes.

        Unreachable nodes get an empty set.
        """
        if self._unset_before is None:
            self._unset_before = self._solve()
        return self._unset_before

    def _solve(self) -> list[BitSet]:
        count = len(self.graph.nodes)
        size = self.variable_count
        facts_in = [BitSet(size) for _ in range(count)]
        if count == 0:
            return facts_in

        keep = []
        for writes in self.writes:
            bits = BitSet.full(size)
            for access in writes:
                bits.set(access.variable, False)
            keep.append(bits)

        facts_out: list[Optional[BitSet]] = [None] * count
        facts_in[0] = BitSet.full(size)

        worklist = deque([0])
        queued = BitSet(count)
        queued.set(0)
        iterations = 0

        while worklist:
            index = worklist.popleft()
            queued.set(index, False)
            iterations += 1

            out = facts_in[index].and_(keep[index])
            if facts_out[index] is not None and facts_out[index] == out:
                continue
            facts_out[index] = out

            for edge in self.graph.successors(index):
                target = edge.target
                merged = facts_in[target].or_(out)
                if facts_out[target] is None or merged != facts_in[target]:
                    facts_in[target] = merged
                    if not queued.get(target):
                        queued.set(target)
                        worklist.append(target)

        logger.debug(f"Variable dataflow converged after {iterations} node visits")
        return facts_in

    # =========================================================================
    # Diagnostics
    # =========================================================================

    def diagnostics(self) -> list[Diagnostic]:
        written = BitSet(self.variable_count)
        read = BitSet(self.variable_count)
        for accesses in self.writes:
            for access in accesses:
                written.set(access.variable)
        for accesses in self.reads:
            for access in accesses:
                read.set(access.variable)

        reachable = self.graph.reachable
        unset_before = self.unset_before()
        result: list[Diagnostic] = []

        for index, accesses in enumerate(self.reads):
            for access in accesses:
                name = self.names[access.variable]
                if not written.get(access.variable):
                    if not is_building_link(name):
                        result.append(make_diagnostic(
                            access.token.range,
                            f"Variable '{name}' is never set",
                            DiagnosticSeverity.WARNING,
                            DiagnosticCode.UNDEFINED_VARIABLE,
                        ))
                elif reachable.get(index) and unset_before[index].get(access.variable):
                    result.append(make_diagnostic(
                        access.token.range,
                        f"Variable '{name}' might not be set before it is read",
                        DiagnosticSeverity.INFORMATION,
                        DiagnosticCode.POSSIBLY_UNSET_VARIABLE,
                    ))

        for accesses in self.writes:
            for access in accesses:
                name = self.names[access.variable]
                if name == DISCARD_VAR or read.get(access.variable):
                    continue
                result.append(make_diagnostic(
                    access.token.range,
                    f"Variable '{name}' is set but never read",
                    DiagnosticSeverity.WARNING,
                    DiagnosticCode.UNUSED_VARIABLE,
                    unnecessary=True,
                ))

        return result


def analyze_variables(nodes: list[SyntaxNode], graph: Optional[FlowGraph] = None) -> list[Diagnostic]:
    """
    Report variable problems in a node sequence.

    Args:
        nodes: Nodes produced by ``parse()``
        graph: A flow graph of ``nodes`` to reuse, built if omitted

    Returns:
        possibly-unset, undefined and unused variable diagnostics
    """
    if graph is None:
        graph = FlowGraph(nodes)
    return VariableAnalysis(graph).diagnostics()
