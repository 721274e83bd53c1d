"""
Utility Modules
===============

bitset: Fixed-length bit vector used by the flow analyzers
spelling: Edit-distance based name suggestions
"""

from mlog_tools.util.bitset import BitSet
from mlog_tools.util.spelling import did_you_mean, edit_distance, suggest

__all__ = ["BitSet", "did_you_mean", "edit_distance", "suggest"]
