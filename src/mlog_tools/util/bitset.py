"""
Fixed-Length Bit Vector
=======================

``BitSet`` packs a fixed number of booleans into 32-bit words. It is the set
representation used by every flow computation in mlog-tools: one bit per node
for reachability, one bit per variable for dataflow facts.

Bit ``i`` lives in word ``i >> 5`` at bit position ``i & 31``.

Ownership
---------
A BitSet is a mutable value. ``assign_or``/``assign_and`` and ``set``/
``toggle`` change the receiver; ``or_``/``and_`` (and the ``|``/``&``
operators) return a new set and leave both operands untouched. Code that
needs to modify a set it does not own must ``clone()`` it first.

Binary operations expect operands of equal length and do not check it.
Mixing lengths is a caller bug.
"""

from typing import Iterator

WORD_BITS = 32
WORD_MASK = 0xFFFFFFFF


class BitSet:
    """
    A fixed-length set of bits.

    Example:
        >>> visited = BitSet(40)
        >>> visited.set(3)
        >>> visited.get(3), visited.get(4)
        (True, False)
        >>> list(visited | BitSet.full(40))[:5]
        [0, 1, 2, 3, 4]
    """

    __slots__ = ("length", "words")

    def __init__(self, length: int):
        self.length = length
        self.words = [0] * ((length + WORD_BITS - 1) // WORD_BITS)

    @classmethod
    def full(cls, length: int) -> "BitSet":
        """Create a set with every bit in ``[0, length)`` set."""
        result = cls(length)
        for i in range(len(result.words)):
            result.words[i] = WORD_MASK
        result._clear_padding()
        return result

    def _clear_padding(self) -> None:
        """Zero the unused high bits of the last word."""
        used = self.length & (WORD_BITS - 1)
        if used and self.words:
            self.words[-1] &= (1 << used) - 1

    # =========================================================================
    # Single-bit access
    # =========================================================================

    def get(self, index: int) -> bool:
        return (self.words[index >> 5] >> (index & 31)) & 1 == 1

    def set(self, index: int, value: bool = True) -> None:
        if value:
            self.words[index >> 5] |= 1 << (index & 31)
        else:
            self.words[index >> 5] &= ~(1 << (index & 31)) & WORD_MASK

    def toggle(self, index: int) -> None:
        self.words[index >> 5] ^= 1 << (index & 31)

    # =========================================================================
    # Set algebra
    # =========================================================================

    def assign_or(self, other: "BitSet") -> None:
        """Union ``other`` into this set in place."""
        words = self.words
        for i, word in enumerate(other.words):
            words[i] |= word

    def assign_and(self, other: "BitSet") -> None:
        """Intersect this set with ``other`` in place."""
        words = self.words
        for i, word in enumerate(other.words):
            words[i] &= word

    def or_(self, other: "BitSet") -> "BitSet":
        """Return the union as a new set."""
        result = self.clone()
        result.assign_or(other)
        return result

    def and_(self, other: "BitSet") -> "BitSet":
        """Return the intersection as a new set."""
        result = self.clone()
        result.assign_and(other)
        return result

    __or__ = or_
    __and__ = and_

    def clone(self) -> "BitSet":
        """Return an independent copy."""
        result = BitSet.__new__(BitSet)
        result.length = self.length
        result.words = list(self.words)
        return result

    # =========================================================================
    # Queries
    # =========================================================================

    def count(self) -> int:
        """Return the number of set bits."""
        return sum(bin(word).count("1") for word in self.words)

    def any(self) -> bool:
        return any(self.words)

    def __iter__(self) -> Iterator[int]:
        """Yield the indices of set bits in ascending order."""
        for word_index, word in enumerate(self.words):
            base = word_index << 5
            while word:
                low = word & -word
                yield base + low.bit_length() - 1
                word ^= low

    def __len__(self) -> int:
        return self.length

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BitSet):
            return NotImplemented
        return self.length == other.length and self.words == other.words

    __hash__ = None  # mutable

    def __repr__(self) -> str:
        bits = "".join("1" if self.get(i) else "0" for i in range(self.length))
        return f"BitSet({self.length}, {bits!r})"
