# =============================================================================
# test_variables.py - Variable Dataflow Tests
# =============================================================================
# Tests for the maybe-unset variable analysis.
#
# Test coverage includes:
#   - Straight-line code, branches and loops
#   - Undefined, possibly unset and unused variables
#   - Globals, keywords, building links and the discard variable
# =============================================================================

from mlog_tools.analysis.flow import FlowGraph
from mlog_tools.analysis.variables import VariableAnalysis, analyze_variables, is_variable_token
from mlog_tools.diagnostics import DiagnosticSeverity, DiagnosticTag
from mlog_tools.parser import parse


def check(text: str):
    return analyze_variables(parse(text).nodes)


def summary(text: str) -> list[tuple[str, str]]:
    """(code, variable token) for every diagnostic."""
    nodes = parse(text).nodes
    result = []
    for diagnostic in analyze_variables(nodes):
        line = diagnostic.range.start.line
        start = diagnostic.range.start.character
        end = diagnostic.range.end.character
        source = text.split("\n")[line]
        result.append((diagnostic.code.value, source[start:end]))
    return sorted(result)


# =============================================================================
# Variable Token Tests
# =============================================================================

class TestVariableTokens:
    """Test which tokens name variables."""

    def test_identifiers_are_variables(self):
        tokens = parse("set x y").nodes[0].tokens
        assert is_variable_token(tokens[1])

    def test_non_variables(self):
        tokens = parse('set @unit true 1 "s" %ff0000').nodes[0].tokens
        assert not any(is_variable_token(t) for t in tokens[1:])


# =============================================================================
# Straight-Line Tests
# =============================================================================

class TestStraightLine:
    """Test programs without branches."""

    def test_set_then_read(self):
        assert check("set x 1\nprint x") == []

    def test_read_before_set(self):
        """A variable read before its first write might be unset."""
        diagnostics = check("print x\nset x 1\nprint x")
        assert len(diagnostics) == 1
        assert diagnostics[0].code.value == "possibly-unset-variable"
        assert diagnostics[0].severity == DiagnosticSeverity.INFORMATION
        assert diagnostics[0].range.start.line == 0

    def test_never_set(self):
        diagnostics = check("print speed")
        assert [d.code.value for d in diagnostics] == ["undefined-variable"]
        assert diagnostics[0].severity == DiagnosticSeverity.WARNING
        assert diagnostics[0].message == "Variable 'speed' is never set"

    def test_never_read(self):
        diagnostics = check("set x 1")
        assert [d.code.value for d in diagnostics] == ["unused-variable"]
        assert DiagnosticTag.UNNECESSARY in diagnostics[0].tags
        assert diagnostics[0].message == "Variable 'x' is set but never read"

    def test_discard_never_unused(self):
        assert check("ucontrol within 1 2 3 _") == []

    def test_building_links_never_undefined(self):
        assert check("printflush message1\nsensor h reactor2 @heat\nprint h") == []

    def test_globals_ignored(self):
        assert check("print @time\nprint true") == []


# =============================================================================
# Control Flow Tests
# =============================================================================

class TestControlFlow:
    """Test facts flowing along jumps."""

    def test_one_branch_sets(self):
        text = (
            "jump skip equal a 1\n"
            "set x 1\n"
            "skip:\n"
            "print x\n"
            "set a 0"
        )
        assert summary(text) == [
            ("possibly-unset-variable", "a"),
            ("possibly-unset-variable", "x"),
        ]

    def test_both_branches_set(self):
        text = (
            "set a 0\n"
            "jump other equal a 1\n"
            "set x 1\n"
            "jump done always\n"
            "other:\n"
            "set x 2\n"
            "done:\n"
            "print x"
        )
        assert check(text) == []

    def test_loop_carried_variable(self):
        """A variable set before a loop stays set around the back edge."""
        text = (
            "set i 0\n"
            "loop:\n"
            "op add i i 1\n"
            "jump loop lessThan i 10"
        )
        assert check(text) == []

    def test_set_late_in_loop(self):
        """A read on the first iteration precedes the write."""
        text = (
            "loop:\n"
            "print last\n"
            "set last 1\n"
            "jump loop always"
        )
        assert summary(text) == [("possibly-unset-variable", "last")]

    def test_unreachable_reads_not_reported_as_unset(self):
        text = (
            "set x 1\n"
            "end\n"
            "jump 0 always\n"
            "print x"
        )
        graph = FlowGraph(parse(text).nodes)
        analysis = VariableAnalysis(graph)
        assert analysis.diagnostics() == []

    def test_counter_write_reaches_all(self):
        """An indirect jump makes every node a possible successor."""
        text = (
            "read mode cell1 0\n"
            "op add @counter @counter mode\n"
            "set color 1\n"
            "print color"
        )
        assert summary(text) == [("possibly-unset-variable", "color")]


# =============================================================================
# Fixed Point Tests
# =============================================================================

class TestFixedPoint:
    """Test the solved per-node facts."""

    def test_unset_before(self):
        nodes = parse("set a 1\nset b a\nprint b").nodes
        analysis = VariableAnalysis(FlowGraph(nodes))
        assert analysis.names == ["a", "b"]
        facts = analysis.unset_before()
        assert list(facts[0]) == [0, 1]
        assert list(facts[1]) == [1]
        assert list(facts[2]) == []

    def test_empty_program(self):
        analysis = VariableAnalysis(FlowGraph([]))
        assert analysis.unset_before() == []
        assert analysis.diagnostics() == []
