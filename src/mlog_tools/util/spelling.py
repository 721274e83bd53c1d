"""
Spelling Suggestions
====================

"Did you mean ...?" hints for misspelled names (instructions, labels,
variables). Candidates are ranked by Levenshtein edit distance; names that
only differ by case always win.
"""

from typing import Iterable, Optional


def edit_distance(source: str, target: str, limit: Optional[int] = None) -> Optional[int]:
    """
    Return the Levenshtein distance between two strings.

    With ``limit`` set, return None as soon as the distance is known to
    exceed it.
    """
    if len(source) < len(target):
        source, target = target, source
    if limit is not None and len(source) - len(target) > limit:
        return None

    previous = list(range(len(target) + 1))
    for row, char in enumerate(source, start=1):
        current = [row]
        for column, other in enumerate(target, start=1):
            current.append(min(
                previous[column] + 1,
                current[column - 1] + 1,
                previous[column - 1] + (char != other),
            ))
        if limit is not None and min(current) > limit:
            return None
        previous = current

    distance = previous[-1]
    if limit is not None and distance > limit:
        return None
    return distance


def suggest(name: str, candidates: Iterable[str]) -> Optional[str]:
    """
    Return the candidate closest to ``name``, or None if nothing is close.

    A candidate is considered when its length differs from ``name`` by at
    most a third of the name's length (minimum 2) and its distance is at most
    40% of the name's length. Names shorter than 3 characters only match
    case-insensitively.

    Example:
        >>> suggest("prnit", ["print", "printflush", "set"])
        'print'
    """
    max_length_difference = max(2, int(len(name) * 0.34))
    best_distance = int(len(name) * 0.4) + 1
    best: Optional[str] = None
    name_lower = name.lower()

    for candidate in candidates:
        if candidate == name:
            continue
        if abs(len(candidate) - len(name)) > max_length_difference:
            continue

        candidate_lower = candidate.lower()
        if candidate_lower == name_lower:
            return candidate
        if len(candidate) < 3:
            continue

        distance = edit_distance(name_lower, candidate_lower, best_distance - 1)
        if distance is not None:
            best_distance = distance
            best = candidate

    return best


def did_you_mean(name: str, candidates: Iterable[str]) -> str:
    """Return ``" Did you mean 'x'?"`` or an empty string."""
    suggestion = suggest(name, candidates)
    if suggestion is None:
        return ""
    return f" Did you mean '{suggestion}'?"
