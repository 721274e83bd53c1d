"""
mlog-tools Error Hierarchy
==========================

This module defines the exception hierarchy for mlog-tools.

Problems in mlog *source code* are never exceptions. The tokenizer, parser,
analyzers and formatter always produce a best-effort result and report what
they found as diagnostics (see ``mlog_tools.diagnostics``). Exceptions are
reserved for problems with how the library itself is being driven.

Exception Hierarchy
-------------------
MlogError (base)
├── ConfigError - invalid configuration value (environment, CLI options)
├── OverlappingEditsError - text edits that cannot be applied together
└── UnknownNodeKindError - a node carries a discriminant no consumer knows

Error messages follow this format:
    error: description
    hint: suggestion for fixing (when available)
"""

from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class MlogError(Exception):
    """
    Base exception for all mlog-tools errors.

    Callers can catch every library error with a single except clause:

        try:
            config = MlogConfig(tab_size=0).validate()
        except MlogError as e:
            print(f"Error: {e}")

    Attributes:
        message: The error description
        hint: A suggestion for fixing the error (optional)
    """

    def __init__(self, message: str, hint: Optional[str] = None):
        self.message = message
        self.hint = hint
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """
        Format the error message with its optional hint.

        Example output:
            error: tab size must be at least 1 (got 0)
            hint: set MLOG_TAB_SIZE to a positive integer
        """
        parts = [f"error: {self.message}"]
        if self.hint:
            parts.append(f"hint: {self.hint}")
        return "\n".join(parts)


# =============================================================================
# Configuration Exceptions
# =============================================================================

class ConfigError(MlogError):
    """
    Invalid configuration value.

    Raised by ``MlogConfig.validate()`` when a setting cannot be honoured,
    for example a tab size below 1 or a negative instruction limit.
    """

    def __init__(self, option: str, value: object, reason: str, hint: Optional[str] = None):
        self.option = option
        self.value = value
        super().__init__(f"{option} {reason} (got {value!r})", hint=hint)


# =============================================================================
# Programmer Errors
# =============================================================================

class UnknownNodeKindError(MlogError):
    """
    A syntax node carries a kind that the consumer does not handle.

    Node consumers switch on ``node.kind``; this is raised from the default
    branch of such a switch. It always indicates a bug in mlog-tools (a new
    node kind was added without updating every consumer), never a problem in
    the user's source.
    """

    def __init__(self, kind: object):
        self.kind = kind
        super().__init__(f"unknown syntax node kind {kind!r}")


# =============================================================================
# Edit Exceptions
# =============================================================================

class OverlappingEditsError(MlogError):
    """Two text edits touch the same span of the document."""

    def __init__(self, first: object, second: object):
        self.first = first
        self.second = second
        super().__init__(
            f"edits overlap: {first} and {second}",
            hint="compute every edit from the same version of the document",
        )
