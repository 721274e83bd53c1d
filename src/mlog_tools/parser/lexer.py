"""
mlog Lexer
==========

This module implements the tokenizer for mlog source code. It works one
physical line at a time and splits every line into *token lines*: logical
statements separated by ``;``.

Token Types
-----------
- COMMENT: ``#`` up to the end of the physical line
- STRING: Double-quoted text (``"hello"``), closed by ``"`` or end of line
- NUMBER: Decimal, hexadecimal, binary and exponent literals
- COLOR: Color literals (``%ff0000``, ``%ff000080``, ``%[red]``)
- IDENTIFIER: Everything else (opcodes, variables, labels, keywords)

Number Formats
--------------
| Format      | Example           |
|-------------|-------------------|
| Decimal     | 12, -3, 0.5, .5   |
| Exponent    | 1e5, 2.5e-3       |
| Hexadecimal | 0xFF              |
| Binary      | 0b1010            |

A token is only a number when the *whole* token matches, so a sign or a
decimal point glued to a name (``-speed``, ``unit.5``) never splits a token
into a number and an identifier.

Strings
-------
Strings are kept verbatim, quotes included. The lexer records three kinds of
markup found inside them:

- escaped newlines: ``\\n``
- color tags: ``[red]``, ``[]`` resets, ``[[`` is an escaped bracket
- format placeholders: ``{0}`` .. ``{9}``

Error Recovery
--------------
The lexer never raises. An unterminated string is closed at end of line and
reported as ``unclosed-string``; a token glued to a closing quote is reported
as ``missing-space``. Anything unrecognized becomes an identifier.

Example
-------
>>> from mlog_tools.parser.lexer import Lexer
>>> lexer = Lexer('set x 5; print "x=[red]{0}"', line_number=0)
>>> for line in lexer.tokenize():
...     print([token.content for token in line.tokens])
['set', 'x', '5']
['print', '"x=[red]{0}"']
"""

import dataclasses
import logging
import re
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional

from mlog_tools.constants import LEGACY_OP_NAMES, LEGACY_OPERAND_NAMES
from mlog_tools.diagnostics import (
    Diagnostic,
    DiagnosticCode,
    DiagnosticSeverity,
    Position,
    Range,
    make_diagnostic,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Token Type Enumeration
# =============================================================================

class TokenType(Enum):
    """Lexical categories of mlog tokens."""
    COMMENT = auto()     # "# ..." to end of line
    STRING = auto()      # "..."
    NUMBER = auto()      # 12, 0x1F, 0b101, 1e5
    COLOR = auto()       # %rrggbb, %rrggbbaa, %[name]
    IDENTIFIER = auto()  # opcodes, variables, labels, keywords


class LineKind(Enum):
    """Classification of a token line."""
    COMMENT = auto()     # the line holds nothing but a comment
    STATEMENT = auto()   # label declaration or instruction


# =============================================================================
# Literal Patterns
# =============================================================================

NUMBER_PATTERN = re.compile(
    r"""
    (?<![\w.])                          # nothing glued on the left
    (?:
        0x[0-9a-fA-F]+                  # hexadecimal
      | 0b[01]+                         # binary
      | [+-]?(?:\d+\.?\d*|\.\d+)        # decimal, optional sign and fraction
        (?:[eE][+-]?\d+)?               # optional exponent
    )
    (?![\w.])                           # nothing glued on the right
    """,
    re.VERBOSE,
)

HEX_COLOR_PATTERN = re.compile(r"%([0-9a-fA-F]{6}|[0-9a-fA-F]{8})")
NAMED_COLOR_PATTERN = re.compile(r"%\[([^\]]*)\]")

PLACEHOLDER_PATTERN = re.compile(r"\{\d\}")

# Characters that end an unquoted token
WORD_TERMINATORS = " \t\r;#"


def is_number_literal(text: str) -> bool:
    """Return True if the whole of ``text`` is a numeric literal."""
    match = NUMBER_PATTERN.match(text)
    return match is not None and match.end() == len(text)


def parse_number(text: str) -> Optional[float]:
    """
    Convert a numeric literal to its value.

    Returns:
        The value (int for hex/binary, float otherwise), or None if ``text``
        is not a numeric literal.
    """
    if not is_number_literal(text):
        return None
    if text.startswith("0x"):
        return int(text[2:], 16)
    if text.startswith("0b"):
        return int(text[2:], 2)
    return float(text)


def parse_color(hex_digits: str) -> tuple[float, float, float, float]:
    """
    Convert ``rrggbb`` or ``rrggbbaa`` hex digits to RGBA components in [0, 1].

    Invalid input yields opaque black.
    """
    if len(hex_digits) not in (6, 8):
        return (0.0, 0.0, 0.0, 1.0)

    red = int(hex_digits[0:2], 16) / 255
    green = int(hex_digits[2:4], 16) / 255
    blue = int(hex_digits[4:6], 16) / 255
    alpha = int(hex_digits[6:8], 16) / 255 if len(hex_digits) == 8 else 1.0
    return (red, green, blue, alpha)


# =============================================================================
# Token Data Classes
# =============================================================================

@dataclass(frozen=True)
class StringTag:
    """
    A color tag inside a string or named color literal.

    Offsets are relative to the start of the token content, so for the
    string ``"[red]hi"`` the tag name ``red`` spans ``2..5``.

    Attributes:
        name_start: Offset of the first character of the tag name
        name_end: Offset just past the tag name (the closing ``]``)
    """
    name_start: int
    name_end: int

    @property
    def is_reset(self) -> bool:
        """``[]`` restores the previous color and names nothing."""
        return self.name_start == self.name_end


@dataclass(frozen=True)
class Token:
    """
    A single token of mlog source.

    Tokens are immutable. Positions are zero-based and ``end`` is exclusive.

    Attributes:
        type: The TokenType classification
        content: The exact source text of the token
        start: Position of the first character
        end: Position just past the last character
        tags: Color tags (strings and named color literals)
        placeholders: Offsets of ``{digit}`` placeholders (strings only)
        escapes: Offsets of ``\\n`` escaped newlines (strings only)
    """
    type: TokenType
    content: str
    start: Position
    end: Position
    tags: tuple[StringTag, ...] = ()
    placeholders: tuple[int, ...] = ()
    escapes: tuple[int, ...] = ()

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.content!r}, {self.start.line}:{self.start.character})"

    @property
    def range(self) -> Range:
        return Range(self.start, self.end)

    @property
    def is_comment(self) -> bool:
        return self.type == TokenType.COMMENT

    @property
    def is_string(self) -> bool:
        return self.type == TokenType.STRING

    @property
    def is_number(self) -> bool:
        return self.type == TokenType.NUMBER

    @property
    def is_color(self) -> bool:
        return self.type == TokenType.COLOR

    @property
    def is_identifier(self) -> bool:
        return self.type == TokenType.IDENTIFIER

    @property
    def is_closed_string(self) -> bool:
        return self.is_string and len(self.content) >= 2 and self.content.endswith('"')

    @property
    def number_value(self) -> Optional[float]:
        """Numeric value of a NUMBER token, None for anything else."""
        if not self.is_number:
            return None
        return parse_number(self.content)

    @property
    def color(self) -> Optional[tuple[float, float, float, float]]:
        """RGBA value of a hex color literal, None otherwise."""
        if not self.is_color:
            return None
        match = HEX_COLOR_PATTERN.fullmatch(self.content)
        if match is None:
            return None
        return parse_color(match.group(1))

    def tag_name(self, tag: StringTag) -> str:
        """Return the text of a color tag name."""
        return self.content[tag.name_start:tag.name_end]

    def tag_range(self, tag: StringTag) -> Range:
        """Return the document range of a color tag name."""
        return Range.create(
            self.start.line,
            self.start.character + tag.name_start,
            self.start.line,
            self.start.character + tag.name_end,
        )

    def with_content(self, content: str) -> "Token":
        """Return a copy with different content and the same position."""
        return dataclasses.replace(self, content=content)


@dataclass(frozen=True)
class TokenLine:
    """
    A logical line of tokens: one statement or one comment.

    Token lines always hold at least one token. A physical line yields
    several token lines when statements are chained with ``;``.

    Attributes:
        start: Position of the first character of the statement
        end: Position just past the statement
        tokens: The tokens of the statement
        kind: Whether the line is comment-only or a statement
    """
    start: Position
    end: Position
    tokens: tuple[Token, ...]
    kind: LineKind

    @property
    def is_comment(self) -> bool:
        return self.kind == LineKind.COMMENT


# =============================================================================
# String Markup
# =============================================================================

def find_color_tags(text: str) -> tuple[StringTag, ...]:
    """
    Locate ``[name]`` color tags in ``text``.

    ``[[`` is an escaped bracket and opens no tag; ``[]`` is a reset tag with
    an empty name.
    """
    tags: list[StringTag] = []

    # -2 so that a bracket at offset 0 is never mistaken for an escape
    no_tag = -2
    tag_start = no_tag

    for i, char in enumerate(text):
        if char == "[":
            if tag_start == i - 1:
                tag_start = no_tag
            else:
                tag_start = i
        elif char == "]" and tag_start != no_tag:
            tags.append(StringTag(tag_start + 1, i))
            tag_start = no_tag

    return tuple(tags)


def find_placeholders(text: str) -> tuple[int, ...]:
    """Return the offsets of ``{digit}`` placeholders in ``text``."""
    return tuple(match.start() for match in PLACEHOLDER_PATTERN.finditer(text))


def find_escaped_newlines(text: str) -> tuple[int, ...]:
    """Return the offsets of ``\\n`` escape sequences in ``text``."""
    offsets = []
    index = text.find("\\n")
    while index != -1:
        offsets.append(index)
        index = text.find("\\n", index + 2)
    return tuple(offsets)


# =============================================================================
# Lexer Implementation
# =============================================================================

class Lexer:
    """
    Tokenizes one physical line of mlog source.

    Usage:
        lexer = Lexer(line_text, line_number)
        token_lines = lexer.tokenize()
        problems = lexer.diagnostics

    Attributes:
        source: The text of the line (without the line break)
        line_number: Zero-based line number used for token positions
        diagnostics: Problems found while tokenizing
    """

    def __init__(self, source: str, line_number: int = 0):
        """
        Initialize the lexer.

        Args:
            source: A single line of source text
            line_number: Zero-based line number of this line in its document
        """
        self.source = source
        self.line_number = line_number
        self.diagnostics: list[Diagnostic] = []
        self._pos = 0

    def tokenize(self) -> list[TokenLine]:
        """
        Split the line into token lines.

        Returns:
            Token lines in source order; empty for a blank line
        """
        lines: list[TokenLine] = []
        self._pos = 0

        while not self._at_end():
            # Separators and whitespace between statements
            if self._peek() in " \t\r;":
                self._advance()
                continue

            line = self._scan_statement()
            if line is not None:
                lines.append(line)

        return lines

    # =========================================================================
    # Character Access Methods
    # =========================================================================

    def _at_end(self) -> bool:
        return self._pos >= len(self.source)

    def _peek(self) -> str:
        """Current character, or empty string past the end."""
        if self._at_end():
            return ""
        return self.source[self._pos]

    def _advance(self) -> str:
        char = self._peek()
        self._pos += 1
        return char

    def _position(self, offset: Optional[int] = None) -> Position:
        return Position(self.line_number, self._pos if offset is None else offset)

    # =========================================================================
    # Statement Scanning
    # =========================================================================

    def _scan_statement(self) -> Optional[TokenLine]:
        """
        Read tokens until ``;``, ``\\r`` or end of line.

        Returns:
            The token line, or None when the statement held no tokens
        """
        start = self._position()
        tokens: list[Token] = []
        expect_space = False
        missing_space = False

        while not self._at_end():
            char = self._peek()

            if char in ";\r":
                break

            if expect_space and char not in " \t#":
                missing_space = True
            expect_space = False

            if char == "#":
                tokens.append(self._scan_comment())
                break

            if char == '"':
                token = self._scan_string()
            elif char in " \t":
                self._advance()
                continue
            else:
                token = self._scan_word()

            tokens.append(token)

            if missing_space:
                self._report(
                    token.range,
                    "Expected space after string.",
                    DiagnosticCode.MISSING_SPACE,
                )
                missing_space = False

            # An unclosed string stops at the end of the statement
            if token.is_string and not token.is_closed_string:
                break

            expect_space = True

        if not tokens:
            return None

        tokens = self._apply_legacy_names(tokens)
        kind = LineKind.COMMENT if tokens[0].is_comment else LineKind.STATEMENT
        return TokenLine(start, self._position(), tuple(tokens), kind)

    def _scan_comment(self) -> Token:
        """Consume ``#`` and everything after it up to ``\\r`` or end of line."""
        start = self._pos
        end = self.source.find("\r", start)
        self._pos = len(self.source) if end < 0 else end
        return Token(
            TokenType.COMMENT,
            self.source[start:self._pos],
            self._position(start),
            self._position(),
        )

    def _scan_string(self) -> Token:
        """
        Consume a quoted string.

        The string ends at the closing quote, or at end of line when the
        quote is missing (reported as ``unclosed-string``). A bare ``\\r``
        also ends it, and scanning resumes after the ``\\r``.
        """
        start = self._pos
        self._advance()  # opening quote

        while not self._at_end() and self._peek() not in '"\r':
            self._advance()

        closed = self._peek() == '"'
        if closed:
            self._advance()

        content = self.source[start:self._pos]
        token = Token(
            TokenType.STRING,
            content,
            self._position(start),
            self._position(),
            tags=find_color_tags(content),
            placeholders=find_placeholders(content),
            escapes=find_escaped_newlines(content),
        )

        if not closed:
            self._report(
                token.range,
                'Missing closing quote " before end of line.',
                DiagnosticCode.UNCLOSED_STRING,
            )

        return token

    def _scan_word(self) -> Token:
        """Consume an unquoted token and classify it."""
        start = self._pos
        while not self._at_end() and self._peek() not in WORD_TERMINATORS:
            self._advance()

        content = self.source[start:self._pos]
        token_type, tags = classify_word(content)
        return Token(token_type, content, self._position(start), self._position(), tags=tags)

    # =========================================================================
    # Post-processing
    # =========================================================================

    def _apply_legacy_names(self, tokens: list[Token]) -> list[Token]:
        """
        Rename operands the game renames on load.

        ``op atan2`` became ``op angle``, ``op dst`` became ``op len`` and
        ``configure`` became ``config``.
        """
        result = list(tokens)

        if len(result) > 1 and result[0].content == "op":
            new_name = LEGACY_OP_NAMES.get(result[1].content)
            if new_name is not None:
                result[1] = result[1].with_content(new_name)

        for i in range(1, len(result)):
            new_name = LEGACY_OPERAND_NAMES.get(result[i].content)
            if new_name is not None:
                result[i] = result[i].with_content(new_name)

        return result

    def _report(self, range: Range, message: str, code: DiagnosticCode) -> None:
        self.diagnostics.append(
            make_diagnostic(range, message, DiagnosticSeverity.ERROR, code)
        )


def classify_word(content: str) -> tuple[TokenType, tuple[StringTag, ...]]:
    """
    Decide the token type of an unquoted word.

    Returns:
        The token type and, for named color literals, the color tag
    """
    if content.startswith("%"):
        if HEX_COLOR_PATTERN.fullmatch(content):
            return TokenType.COLOR, ()
        named = NAMED_COLOR_PATTERN.fullmatch(content)
        if named:
            return TokenType.COLOR, (StringTag(2, len(content) - 1),)

    if is_number_literal(content):
        return TokenType.NUMBER, ()

    return TokenType.IDENTIFIER, ()


# =============================================================================
# Convenience Function
# =============================================================================

def tokenize(text: str) -> tuple[list[TokenLine], list[Diagnostic]]:
    """
    Tokenize a whole document.

    Lines are split on ``\\n``; a ``\\r`` ends a statement like ``;``.

    Args:
        text: The complete source text

    Returns:
        Tuple of (token lines in source order, tokenizer diagnostics)
    """
    lines: list[TokenLine] = []
    diagnostics: list[Diagnostic] = []

    for line_number, line_text in enumerate(text.split("\n")):
        lexer = Lexer(line_text, line_number)
        lines.extend(lexer.tokenize())
        diagnostics.extend(lexer.diagnostics)

    logger.debug(f"Tokenized {len(lines)} statements, {len(diagnostics)} problems")
    return lines, diagnostics
