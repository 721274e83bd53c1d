"""
mlog-tools Command-Line Interface
=================================

This package provides the ``mlog`` command:

- **mlog format**: Canonical formatting of mlog source files
- **mlog check**: Static checks with compiler-style or JSON output

The command is a Click group with comprehensive help and error reporting.
"""

__all__ = ["main"]
