# =============================================================================
# test_validation.py - Document Validation Tests
# =============================================================================
# Tests for check_document() and the individual checks it runs.
#
# Test coverage includes:
#   - Unknown instructions with spelling suggestions
#   - Statement token limit
#   - Unused labels and numeric jump targets
#   - Processor label and instruction limits
#   - Color tag names in strings and color literals
#   - Aggregation and ordering of all diagnostics
# =============================================================================

from dataclasses import dataclass
from typing import ClassVar

import pytest
from mlog_tools.analysis.validation import (
    check_colors,
    check_document,
    check_instructions,
    check_label_usage,
    check_limits,
    check_line_length,
    is_known_color,
)
from mlog_tools.config import MlogConfig
from mlog_tools.diagnostics import DiagnosticCode, DiagnosticSeverity, DiagnosticTag, Position
from mlog_tools.document import MlogDocument
from mlog_tools.errors import UnknownNodeKindError
from mlog_tools.parser import SyntaxNode, parse


def codes(diagnostics) -> list[str]:
    return [d.code.value for d in diagnostics]


# =============================================================================
# Instruction Tests
# =============================================================================

class TestUnknownInstructions:
    """Test the unknown-instruction check."""

    def test_known_instruction(self):
        assert check_instructions(parse("set x 1").nodes) == []

    def test_unknown_with_suggestion(self):
        diagnostics = check_instructions(parse("prnit x").nodes)
        assert codes(diagnostics) == ["unknown-instruction"]
        assert diagnostics[0].message == "Unknown instruction 'prnit'. Did you mean 'print'?"
        assert diagnostics[0].severity == DiagnosticSeverity.WARNING

    def test_case_only_difference(self):
        diagnostics = check_instructions(parse("SET x 1").nodes)
        assert diagnostics[0].message == "Unknown instruction 'SET'. Did you mean 'set'?"

    def test_unknown_without_suggestion(self):
        diagnostics = check_instructions(parse("zzzzzzzz").nodes)
        assert diagnostics[0].message == "Unknown instruction 'zzzzzzzz'."

    def test_range_is_opcode(self):
        nodes = parse("  frob a b").nodes
        diagnostics = check_instructions(nodes)
        assert diagnostics[0].range == nodes[0].tokens[0].range


# =============================================================================
# Line Length Tests
# =============================================================================

class TestLineLength:
    """Test the per-statement token limit."""

    def test_within_limit(self):
        text = "draw triangle 1 2 3 4 5 6"
        assert check_line_length(parse(text).nodes, 16) == []

    def test_too_long(self):
        text = "print " + " ".join(str(i) for i in range(20))
        nodes = parse(text).nodes
        diagnostics = check_line_length(nodes, 16)
        assert codes(diagnostics) == ["line-too-long"]
        assert diagnostics[0].range.start == nodes[0].tokens[16].start
        assert diagnostics[0].range.end == nodes[0].tokens[-1].end
        assert diagnostics[0].message == "Line too long; may only contain 16 tokens"

    def test_custom_limit(self):
        assert codes(check_line_length(parse("set x 1").nodes, 2)) == ["line-too-long"]


# =============================================================================
# Label Usage Tests
# =============================================================================

class TestLabelUsage:
    """Test unused labels and numeric jump targets."""

    def test_unused_label(self):
        doc = MlogDocument("start:\nend")
        diagnostics = check_label_usage(doc.nodes, doc.labels)
        assert codes(diagnostics) == ["unused-label"]
        assert DiagnosticTag.UNNECESSARY in diagnostics[0].tags
        assert diagnostics[0].message == "Label 'start' is declared but never used"

    def test_used_label(self):
        doc = MlogDocument("start:\njump start always")
        assert check_label_usage(doc.nodes, doc.labels) == []

    def test_numeric_jump_target_hint(self):
        doc = MlogDocument("end\njump 0 always")
        diagnostics = check_label_usage(doc.nodes, doc.labels)
        assert codes(diagnostics) == ["prefer-jump-labels"]
        assert diagnostics[0].severity == DiagnosticSeverity.HINT
        assert diagnostics[0].range == doc.nodes[1].tokens[1].range


# =============================================================================
# Limit Tests
# =============================================================================

class TestLimits:
    """Test processor label and instruction limits."""

    def test_instruction_limit(self):
        nodes = parse("end\nend\nend").nodes
        diagnostics = check_limits(nodes, MlogConfig(max_instructions=2))
        assert codes(diagnostics) == ["too-many-instructions"]
        assert diagnostics[0].range.start.line == 2
        assert diagnostics[0].message == "Exceeded maximum instruction count of 2"

    def test_label_limit(self):
        nodes = parse("a:\nb:\nc:").nodes
        diagnostics = check_limits(nodes, MlogConfig(max_labels=1))
        assert codes(diagnostics) == ["too-many-labels", "too-many-labels"]

    def test_default_limits(self):
        text = "\n".join(["end"] * 1001)
        diagnostics = check_limits(parse(text).nodes, MlogConfig())
        assert len(diagnostics) == 1

    def test_unknown_node_kind(self):
        """A node kind no check knows about is a programming error."""

        @dataclass(frozen=True)
        class StrangeNode(SyntaxNode):
            kind: ClassVar[str] = "strange"

        node = StrangeNode(Position(0, 0), Position(0, 1), ())
        with pytest.raises(UnknownNodeKindError):
            check_limits([node], MlogConfig())


# =============================================================================
# Color Tests
# =============================================================================

class TestColors:
    """Test color tag names."""

    @pytest.mark.parametrize("name", ["red", "RED", "royal", "#ff0000", "#ff000080"])
    def test_known_colors(self, name):
        assert is_known_color(name)

    @pytest.mark.parametrize("name", ["rde", "#ff00", "#gggggg", ""])
    def test_unknown_colors(self, name):
        assert not is_known_color(name)

    def test_string_color_tags(self):
        nodes = parse('print "[red]ok [reds]bad []reset"').nodes
        diagnostics = check_colors(nodes)
        assert codes(diagnostics) == ["unknown-color-name"]
        assert diagnostics[0].message == "Unknown color name: reds. Did you mean 'red'?"
        assert diagnostics[0].range.start == Position(0, 16)

    def test_named_color_literal(self):
        diagnostics = check_colors(parse("set c %[sky]\nset d %[skyy]").nodes)
        assert len(diagnostics) == 1
        assert diagnostics[0].range.start.line == 1

    def test_comments_not_checked(self):
        assert check_colors(parse('# "[nope]"').nodes) == []


# =============================================================================
# Aggregation Tests
# =============================================================================

class TestCheckDocument:
    """Test the combined check."""

    def test_clean_program(self):
        assert check_document(MlogDocument('print "hi"')) == []

    def test_clean_loop(self):
        assert check_document(MlogDocument("start:\njump start always")) == []

    def test_undefined_label(self):
        assert codes(check_document(MlogDocument("jump missing always"))) == ["undefined-label"]

    def test_sorted_by_position(self):
        text = 'print "[bogus]"\nprnt 1\nend\nprint "x'
        diagnostics = check_document(MlogDocument(text))
        starts = [d.range.start for d in diagnostics]
        assert starts == sorted(starts)
        assert set(codes(diagnostics)) == {
            "unknown-color-name",
            "unknown-instruction",
            "unclosed-string",
        }

    def test_config_limits_applied(self):
        config = MlogConfig(max_tokens_per_line=2)
        diagnostics = check_document(MlogDocument("print 1"), config)
        assert codes(diagnostics) == []
        diagnostics = check_document(MlogDocument("set x 1\nprint x"), config)
        assert codes(diagnostics) == ["line-too-long"]

    def test_all_flow_diagnostics_included(self):
        text = "a:\na:\njump a always\nprint x"
        found = codes(check_document(MlogDocument(text)))
        assert "label-redeclaration" in found
        assert "unreachable-code" in found
        assert "undefined-variable" in found

    def test_error_severities(self):
        diagnostics = check_document(MlogDocument("jump nowhere always"))
        assert all(d.severity == DiagnosticSeverity.ERROR for d in diagnostics)
        assert diagnostics[0].code == DiagnosticCode.UNDEFINED_LABEL
