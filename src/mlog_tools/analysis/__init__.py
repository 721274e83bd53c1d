"""
mlog Analysis Package
=====================

Static analysis passes over a parsed document.

Modules:
    flow: Control-flow graph, jump resolution and reachability
    variables: Maybe-unset variable dataflow
    validation: Runs every check and collects the diagnostics
"""

from mlog_tools.analysis.flow import Edge, EdgeKind, FlowGraph, FlowResult, analyze_flow
from mlog_tools.analysis.variables import VariableAnalysis, analyze_variables
from mlog_tools.analysis.validation import check_document

__all__ = [
    "Edge",
    "EdgeKind",
    "FlowGraph",
    "FlowResult",
    "analyze_flow",
    "VariableAnalysis",
    "analyze_variables",
    "check_document",
]
