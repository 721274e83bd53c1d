"""
mlog-tools - Static Analysis and Formatting for Mindustry Logic
===============================================================

This package analyzes and formats "mlog", the line-oriented assembly-like
language run by Mindustry's logic processors.

Main Components
---------------
- **parser**: Tokenizer and statement-level node parser
    Turns source text into a position-tracked node sequence

- **document**: Document model
    Owns the nodes of one file and the tables derived from them

- **analysis**: Static checks
    Control-flow reachability, label resolution, variable dataflow and
    the full set of validation checks

- **formatter**: Canonical formatting
    Re-renders the node sequence with normalized indentation and spacing

- **refactoring**: Jump rewrites
    Converts jump targets between labels and instruction indexes

- **util**: BitSet and spelling suggestions

Quick Start
-----------
Parse and analyze a program:
    >>> from mlog_tools import parse, analyze_flow
    >>> result = parse("end\\njump 0 always\\nprint 1")
    >>> analyze_flow(result.nodes).reachability
    [True, True, False]

Run every check on a document:
    >>> from mlog_tools import MlogDocument, check_document
    >>> doc = MlogDocument("jump missing always")
    >>> [d.code.value for d in check_document(doc)]
    ['undefined-label']

Format source text:
    >>> from mlog_tools import format_text
    >>> format_text("loop:\\nset x 1\\njump loop always")
    'loop:\\n    set x 1\\n    jump loop always\\n'

Or use the command-line tool:
    $ mlog format -i program.mlog
    $ mlog check program.mlog
    $ mlog jumps --labels program.mlog

Version History
---------------
1.0.0 - Initial release with parser, flow analysis, checks and formatter
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from mlog_tools.errors import (
    MlogError,
    ConfigError,
    OverlappingEditsError,
    UnknownNodeKindError,
)
from mlog_tools.diagnostics import (
    Position,
    Range,
    Diagnostic,
    DiagnosticCode,
    DiagnosticCollector,
    DiagnosticSeverity,
    DiagnosticTag,
    RelatedInformation,
)
from mlog_tools.parser import (
    Token,
    TokenType,
    NodeKind,
    SyntaxNode,
    CommentLine,
    LabelDeclaration,
    Instruction,
    ParseResult,
    parse,
)
from mlog_tools.document import MlogDocument
from mlog_tools.util import BitSet
from mlog_tools.analysis import (
    FlowGraph,
    FlowResult,
    analyze_flow,
    analyze_variables,
    check_document,
)
from mlog_tools.formatter import (
    FormatOptions,
    format_code,
    format_document,
    format_text,
)
from mlog_tools.refactoring import (
    TextEdit,
    apply_edits,
    convert_to_labeled_jumps,
    convert_to_numbered_jumps,
)
from mlog_tools.config import MlogConfig

__all__ = [
    # Version info
    "__version__",
    # Exception hierarchy
    "MlogError",
    "ConfigError",
    "OverlappingEditsError",
    "UnknownNodeKindError",
    # Diagnostics
    "Position",
    "Range",
    "Diagnostic",
    "DiagnosticCode",
    "DiagnosticCollector",
    "DiagnosticSeverity",
    "DiagnosticTag",
    "RelatedInformation",
    # Parsing
    "Token",
    "TokenType",
    "NodeKind",
    "SyntaxNode",
    "CommentLine",
    "LabelDeclaration",
    "Instruction",
    "ParseResult",
    "parse",
    "MlogDocument",
    # Analysis
    "BitSet",
    "FlowGraph",
    "FlowResult",
    "analyze_flow",
    "analyze_variables",
    "check_document",
    # Formatting
    "FormatOptions",
    "format_code",
    "format_document",
    "format_text",
    # Refactoring
    "TextEdit",
    "apply_edits",
    "convert_to_labeled_jumps",
    "convert_to_numbered_jumps",
    # Configuration
    "MlogConfig",
]
