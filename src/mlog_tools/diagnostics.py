"""
Diagnostics and Source Positions
================================

Every problem mlog-tools finds in source code is reported as a
``Diagnostic``: a range in the document, a severity, a human readable message
and a stable machine readable code.

Positions are zero-based ``(line, character)`` pairs, the same convention the
Language Server Protocol uses, so diagnostics can be handed to an editor
without conversion. ``Diagnostic.to_dict()`` produces exactly the JSON shape
an LSP ``textDocument/publishDiagnostics`` notification expects.

When printed for humans (``DiagnosticCollector.report()``) positions are shown
one-based, in the familiar compiler format:

    main.mlog:3:1: warning: Unreachable code [unreachable-code]
        print "never"
        ^
"""

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, Iterable, Optional


# =============================================================================
# Positions and Ranges
# =============================================================================

@dataclass(frozen=True, order=True)
class Position:
    """
    A zero-based position in a text document.

    Attributes:
        line: Line number (0-indexed)
        character: Column offset inside the line (0-indexed)
    """
    line: int
    character: int

    def to_dict(self) -> dict[str, int]:
        return {"line": self.line, "character": self.character}


@dataclass(frozen=True, order=True)
class Range:
    """
    A half-open span ``[start, end)`` of text.

    Attributes:
        start: First position covered by the range
        end: Position just past the last covered character
    """
    start: Position
    end: Position

    @classmethod
    def create(cls, start_line: int, start_character: int, end_line: int, end_character: int) -> "Range":
        """Build a range from four integers."""
        return cls(Position(start_line, start_character), Position(end_line, end_character))

    def contains(self, position: Position) -> bool:
        """Return True if ``position`` lies inside the range (end inclusive)."""
        return self.start <= position <= self.end

    def to_dict(self) -> dict[str, Any]:
        return {"start": self.start.to_dict(), "end": self.end.to_dict()}


# =============================================================================
# Diagnostic Classification
# =============================================================================

class DiagnosticSeverity(IntEnum):
    """Severity levels, numbered as in the Language Server Protocol."""
    ERROR = 1
    WARNING = 2
    INFORMATION = 3
    HINT = 4

    @property
    def label(self) -> str:
        """Lowercase name used in text reports ("error", "warning", ...)."""
        return self.name.lower()


class DiagnosticTag(IntEnum):
    """Extra rendering hints for editors."""
    UNNECESSARY = 1     # rendered faded out
    DEPRECATED = 2      # rendered struck through


class DiagnosticCode(str, Enum):
    """
    Stable identifiers for every kind of diagnostic.

    The values are what editors show next to a message and what users
    reference when they want to silence a particular check.
    """

    # Tokenizer
    UNCLOSED_STRING = "unclosed-string"
    MISSING_SPACE = "missing-space"

    # Labels and control flow
    UNDEFINED_LABEL = "undefined-label"
    LABEL_REDECLARATION = "label-redeclaration"
    UNUSED_LABEL = "unused-label"
    UNREACHABLE_CODE = "unreachable-code"
    PREFER_JUMP_LABELS = "prefer-jump-labels"
    OUT_OF_RANGE_VALUE = "out-of-range-value"

    # Variables
    UNDEFINED_VARIABLE = "undefined-variable"
    POSSIBLY_UNSET_VARIABLE = "possibly-unset-variable"
    UNUSED_VARIABLE = "unused-variable"

    # Instructions and limits
    UNKNOWN_INSTRUCTION = "unknown-instruction"
    LINE_TOO_LONG = "line-too-long"
    TOO_MANY_LABELS = "too-many-labels"
    TOO_MANY_INSTRUCTIONS = "too-many-instructions"
    UNKNOWN_COLOR_NAME = "unknown-color-name"


# =============================================================================
# Diagnostic Data Classes
# =============================================================================

@dataclass(frozen=True)
class RelatedInformation:
    """
    A secondary location relevant to a diagnostic.

    Used, for example, to point a label redeclaration at the original
    declaration.
    """
    range: Range
    message: str
    uri: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "location": {"uri": self.uri, "range": self.range.to_dict()},
            "message": self.message,
        }


@dataclass(frozen=True)
class Diagnostic:
    """
    A single problem found in a document.

    Attributes:
        range: Where the problem is
        message: Human readable description
        severity: How serious it is
        code: Stable identifier of the check that produced it
        tags: Rendering hints (e.g. UNNECESSARY for dead code)
        related_information: Secondary locations
        source: Name of the tool that produced the diagnostic
    """
    range: Range
    message: str
    severity: DiagnosticSeverity
    code: DiagnosticCode
    tags: tuple[DiagnosticTag, ...] = ()
    related_information: tuple[RelatedInformation, ...] = ()
    source: str = "mlog"

    @property
    def is_error(self) -> bool:
        return self.severity == DiagnosticSeverity.ERROR

    def sort_key(self) -> tuple:
        return (self.range.start, self.severity, self.code.value)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert to the Language Server Protocol JSON shape.

        Optional members are omitted when empty, as LSP clients expect.
        """
        result: dict[str, Any] = {
            "range": self.range.to_dict(),
            "severity": int(self.severity),
            "code": self.code.value,
            "source": self.source,
            "message": self.message,
        }
        if self.tags:
            result["tags"] = [int(tag) for tag in self.tags]
        if self.related_information:
            result["relatedInformation"] = [info.to_dict() for info in self.related_information]
        return result

    def format(self, filename: str = "<input>", source_line: Optional[str] = None) -> str:
        """
        Format for terminal output with optional source context.

        Example output:
            main.mlog:2:1: error: Label 'loop' is not declared [undefined-label]
                jump loop always
                ^^^^^^^^^^^^^^^^
        """
        start = self.range.start
        parts = [
            f"{filename}:{start.line + 1}:{start.character + 1}: "
            f"{self.severity.label}: {self.message} [{self.code.value}]"
        ]

        if source_line is not None:
            parts.append(f"    {source_line}")
            if self.range.end.line == start.line:
                width = max(1, self.range.end.character - start.character)
            else:
                width = max(1, len(source_line) - start.character)
            parts.append(" " * (4 + start.character) + "^" * width)

        return "\n".join(parts)


# =============================================================================
# Diagnostic Collection
# =============================================================================

class DiagnosticCollector:
    """
    Collects diagnostics for one document and renders a report.

    Example:
        collector = DiagnosticCollector("main.mlog", source_text)
        collector.extend(check_document(doc))

        if collector.has_errors():
            print(collector.report())
    """

    def __init__(self, filename: str = "<input>", source: Optional[str] = None):
        """
        Initialize the collector.

        Args:
            filename: Name shown in front of every reported position
            source: The document text, used to print source context lines
        """
        self.filename = filename
        self.diagnostics: list[Diagnostic] = []
        self._source_lines: Optional[list[str]] = None
        if source is not None:
            self._source_lines = [line.rstrip("\r") for line in source.split("\n")]

    def add(self, diagnostic: Diagnostic) -> None:
        """Add a single diagnostic."""
        self.diagnostics.append(diagnostic)

    def extend(self, diagnostics: Iterable[Diagnostic]) -> None:
        """Add several diagnostics."""
        self.diagnostics.extend(diagnostics)

    def count(self, severity: DiagnosticSeverity) -> int:
        """Return the number of diagnostics with the given severity."""
        return sum(1 for d in self.diagnostics if d.severity == severity)

    def has_errors(self) -> bool:
        """Return True if any error-severity diagnostic was collected."""
        return any(d.is_error for d in self.diagnostics)

    def error_count(self) -> int:
        return self.count(DiagnosticSeverity.ERROR)

    def warning_count(self) -> int:
        return self.count(DiagnosticSeverity.WARNING)

    def sorted(self) -> list[Diagnostic]:
        """Return the diagnostics ordered by position."""
        return sorted(self.diagnostics, key=Diagnostic.sort_key)

    def _source_line(self, line: int) -> Optional[str]:
        if self._source_lines is None or line >= len(self._source_lines):
            return None
        return self._source_lines[line]

    def report(self) -> str:
        """
        Format all diagnostics followed by a summary line.

        Returns:
            Formatted string with every diagnostic and the totals
        """
        lines = []

        for diagnostic in self.sorted():
            lines.append(diagnostic.format(self.filename, self._source_line(diagnostic.range.start.line)))
            lines.append("")

        errors = self.error_count()
        warnings = self.warning_count()
        error_word = "error" if errors == 1 else "errors"
        warning_word = "warning" if warnings == 1 else "warnings"
        lines.append(f"{errors} {error_word}, {warnings} {warning_word}")

        return "\n".join(lines)

    def to_list(self) -> list[dict[str, Any]]:
        """Return every diagnostic in LSP JSON shape, ordered by position."""
        return [d.to_dict() for d in self.sorted()]


def make_diagnostic(
    range: Range,
    message: str,
    severity: DiagnosticSeverity,
    code: DiagnosticCode,
    *,
    unnecessary: bool = False,
    related: Optional[list[RelatedInformation]] = None,
) -> Diagnostic:
    """Shorthand used by the analyzers to build a Diagnostic."""
    return Diagnostic(
        range=range,
        message=message,
        severity=severity,
        code=code,
        tags=(DiagnosticTag.UNNECESSARY,) if unnecessary else (),
        related_information=tuple(related or ()),
    )


__all__ = [
    "Position",
    "Range",
    "DiagnosticSeverity",
    "DiagnosticTag",
    "DiagnosticCode",
    "RelatedInformation",
    "Diagnostic",
    "DiagnosticCollector",
    "make_diagnostic",
]
