# =============================================================================
# test_flow.py - Control Flow and Reachability Tests
# =============================================================================
# Tests for jump resolution, edge derivation and reachability.
#
# Test coverage includes:
#   - Label and literal-index jump targets
#   - Conditional and unconditional jumps
#   - Indirect jumps through writes to @counter
#   - Undefined labels, out-of-range addresses, label redeclarations
#   - Unreachable instruction reporting
# =============================================================================

import pytest
from mlog_tools.analysis.flow import (
    Edge,
    EdgeKind,
    FlowGraph,
    analyze_flow,
    is_unconditional_jump,
    jump_address,
    writes_counter,
)
from mlog_tools.diagnostics import DiagnosticCode, DiagnosticSeverity, DiagnosticTag
from mlog_tools.parser import parse


def graph_of(text: str) -> FlowGraph:
    return FlowGraph(parse(text).nodes)


def codes(diagnostics) -> list[str]:
    return [d.code.value for d in diagnostics]


# =============================================================================
# Reference Scenarios
# =============================================================================

class TestScenarios:
    """End-to-end reachability on small programs."""

    def test_single_print(self):
        """A single instruction is reachable and clean."""
        result = analyze_flow(parse('print "hi"').nodes)
        assert result.reachability == [True]
        assert result.diagnostics == []

    def test_label_loop(self):
        """An unconditional jump back to a label."""
        nodes = parse("start:\njump start always").nodes
        graph = FlowGraph(nodes)
        assert graph.label_table.labels == {"start": 0}
        assert graph.successors(1) == [Edge(1, 0, EdgeKind.JUMP, False)]
        assert list(graph.reachable) == [0, 1]
        assert graph.diagnostics == []
        assert analyze_flow(nodes).diagnostics == []

    def test_undefined_label(self):
        """A jump to a missing label is reported at the instruction's range."""
        nodes = parse("jump missing always").nodes
        result = analyze_flow(nodes)
        assert codes(result.diagnostics) == ["undefined-label"]
        diagnostic = result.diagnostics[0]
        assert diagnostic.range == nodes[0].range
        assert diagnostic.severity == DiagnosticSeverity.ERROR
        assert diagnostic.message == "Label 'missing' is not declared"

    def test_code_after_jump_unreachable(self):
        nodes = parse('end\njump 0 always\nprint "unreachable"').nodes
        result = analyze_flow(nodes)
        assert result.reachability == [True, True, False]
        assert codes(result.diagnostics) == ["unreachable-code"]
        diagnostic = result.diagnostics[0]
        assert diagnostic.range == nodes[2].range
        assert diagnostic.severity == DiagnosticSeverity.WARNING
        assert DiagnosticTag.UNNECESSARY in diagnostic.tags


# =============================================================================
# Edge Tests
# =============================================================================

class TestEdges:
    """Test edge derivation."""

    def test_fallthrough(self):
        graph = graph_of("set x 1\nprint x")
        assert graph.successors(0) == [Edge(0, 1, EdgeKind.FALLTHROUGH)]
        assert graph.successors(1) == []

    def test_conditional_jump_has_two_edges(self):
        graph = graph_of("loop:\nop add i i 1\njump loop lessThan i 10\nend")
        assert graph.successors(2) == [
            Edge(2, 0, EdgeKind.JUMP, True),
            Edge(2, 3, EdgeKind.FALLTHROUGH),
        ]

    def test_jump_without_condition_is_conditional(self):
        graph = graph_of("a:\njump a\nend")
        assert not is_unconditional_jump(graph.nodes[1])
        assert len(graph.successors(1)) == 2

    def test_end_falls_through(self):
        """'end' restarts the program but is modeled as falling through."""
        graph = graph_of("end\nprint 1")
        assert list(graph.reachable) == [0, 1]

    def test_comments_and_labels_fall_through(self):
        graph = graph_of("# c\nl:\nprint 1")
        assert [e.target for e in graph.iter_edges()] == [1, 2]

    def test_literal_address_counts_instructions_only(self):
        graph = graph_of("# header\nstart:\nset x 1\njump 0 always")
        assert graph.jump_target(3) == 2

    def test_iter_edges(self):
        graph = graph_of("a:\njump a always\nend")
        assert list(graph.iter_edges()) == [
            Edge(0, 1, EdgeKind.FALLTHROUGH),
            Edge(1, 0, EdgeKind.JUMP, False),
        ]


# =============================================================================
# Indirect Jump Tests
# =============================================================================

class TestCounterWrites:
    """Test writes to @counter."""

    def test_writes_counter(self):
        assert writes_counter(parse("set @counter 0").nodes[0])
        assert writes_counter(parse("op add @counter @counter 1").nodes[0])
        assert not writes_counter(parse("set x @counter").nodes[0])
        assert not writes_counter(parse("# set @counter 0").nodes[0])

    def test_counter_write_reaches_everything(self):
        graph = graph_of("set @counter 3\njump 0 always\nprint 1\nprint 2")
        edges = graph.successors(0)
        assert [e.target for e in edges] == [0, 1, 2, 3]
        assert all(e.kind == EdgeKind.JUMP and e.conditional for e in edges)
        assert list(graph.reachable) == [0, 1, 2, 3]


# =============================================================================
# Target Error Tests
# =============================================================================

class TestTargetErrors:
    """Test unresolvable jump targets."""

    @pytest.mark.parametrize("address", ["5", "-1", "1.5", "1e9"])
    def test_out_of_range_address(self, address):
        nodes = parse(f"jump {address} always\nend").nodes
        result = analyze_flow(nodes)
        assert codes(result.diagnostics) == ["out-of-range-value"]
        assert result.diagnostics[0].range == nodes[0].tokens[1].range
        assert "the program has 2 instructions" in result.diagnostics[0].message

    def test_unresolved_jump_falls_through(self):
        """A jump that cannot be resolved does nothing at run time."""
        result = analyze_flow(parse("jump nowhere always\nprint 1").nodes)
        assert result.reachability == [True, True]

    def test_jump_address_helper(self):
        tokens = parse("jump 2 always\njump 2.0 always\njump 2.5 always\njump x always").nodes
        assert jump_address(tokens[0].operand(0)) == 2
        assert jump_address(tokens[1].operand(0)) == 2
        assert jump_address(tokens[2].operand(0)) is None
        assert jump_address(tokens[3].operand(0)) is None

    def test_hex_address(self):
        graph = graph_of("jump 0x1 always\nend")
        assert graph.jump_target(0) == 1
        assert graph.diagnostics == []


# =============================================================================
# Label Redeclaration Tests
# =============================================================================

class TestRedeclaration:
    """Test duplicate label declarations."""

    def test_redeclaration_reported(self):
        nodes = parse("a:\nend\na:\njump a always").nodes
        result = analyze_flow(nodes, uri="file.mlog")
        redeclared = [d for d in result.diagnostics if d.code == DiagnosticCode.LABEL_REDECLARATION]
        assert len(redeclared) == 1
        diagnostic = redeclared[0]
        assert diagnostic.message == "Redeclaration of label 'a'"
        assert diagnostic.range == nodes[2].name_range
        related = diagnostic.related_information[0]
        assert related.range == nodes[0].name_range
        assert related.uri == "file.mlog"

    def test_first_declaration_is_jump_target(self):
        graph = graph_of("a:\nend\na:\njump a always")
        assert graph.jump_target(3) == 0


# =============================================================================
# Reachability Tests
# =============================================================================

class TestReachability:
    """Test reachability edge cases."""

    def test_empty_program(self):
        result = analyze_flow([])
        assert result.reachability == []
        assert result.diagnostics == []

    def test_only_instructions_reported(self):
        """Comments and labels after a dead end are unreachable but silent."""
        result = analyze_flow(parse("l:\njump l always\n# note\ndead:\nprint 1").nodes)
        assert result.reachability == [True, True, False, False, False]
        assert codes(result.diagnostics) == ["unreachable-code"]

    def test_reachable_from_jump_target(self):
        text = "jump skip always\nprint 1\nskip:\nprint 2"
        result = analyze_flow(parse(text).nodes)
        assert result.reachability == [True, False, True, True]

    def test_reachable_is_cached(self):
        graph = graph_of("end")
        assert graph.reachable is graph.reachable
