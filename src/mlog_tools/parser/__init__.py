"""
mlog Parser Package
===================

Tokenizer and syntax node parser for mlog source code.

Modules:
    lexer: Splits source lines into tokens and statements
    nodes: Turns statements into the document's node sequence
"""

from mlog_tools.parser.lexer import (
    Lexer,
    LineKind,
    StringTag,
    Token,
    TokenLine,
    TokenType,
    tokenize,
)
from mlog_tools.parser.nodes import (
    CommentLine,
    Instruction,
    LabelDeclaration,
    NodeKind,
    ParseResult,
    SyntaxNode,
    parse,
    parse_nodes,
)

__all__ = [
    "Lexer",
    "LineKind",
    "StringTag",
    "Token",
    "TokenLine",
    "TokenType",
    "tokenize",
    "CommentLine",
    "Instruction",
    "LabelDeclaration",
    "NodeKind",
    "ParseResult",
    "SyntaxNode",
    "parse",
    "parse_nodes",
]
