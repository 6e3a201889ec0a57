"""
Module for fuzzy match records.
"""
from typing import Callable, Optional

import numpy as np

from fuzzyseq.containers.seq import Sequence
from fuzzyseq.utils.protocols import HasAlphabet


# Classes --------------------------------------------------------------------------------------------------------------
class Item(HasAlphabet):
    """
    An aligned sub-sequence together with its position range in the source sequence.

    Positions are 1-based: ``start`` is the first aligned source symbol and ``end`` the last one, conventionally
    rendered as ``[start ... end)``. The aligned sequence may contain gap symbols absent from the source.

    Examples:
        >>> item = Item(Sequence.from_text('AC-GT'), 3, 6)
        >>> item.text()
        'AC-GT from 3 to 6'
    """
    __slots__ = ('_sequence', '_start', '_end')
    def __init__(self, sequence: Sequence, start: int, end: int):
        self._sequence = sequence.copy()
        self._start = int(start)
        self._end = int(end)

    @property
    def alphabet(self) -> 'Alphabet': return self._sequence.alphabet
    @property
    def sequence(self) -> Sequence:
        """Returns a copy of the aligned sub-sequence."""
        return self._sequence.copy()
    @property
    def start(self) -> int: return self._start
    @property
    def end(self) -> int: return self._end

    def __len__(self): return len(self._sequence)
    def __str__(self): return self.text()
    def __repr__(self): return f"Item({self._sequence!r}, start={self._start}, end={self._end})"

    def __eq__(self, other):
        if not isinstance(other, Item): return NotImplemented
        return self._start == other._start and self._end == other._end and self._sequence == other._sequence

    def __hash__(self): return hash((self._sequence.tobytes(), self._start, self._end))

    def to_string(self) -> str:
        """Returns the aligned sub-sequence as text."""
        return self._sequence.to_string()

    def text(self, formatter: Optional[Callable[['Item'], str]] = None) -> str:
        """
        Renders the item, either through ``formatter`` or as ``"<sequence> from <start> to <end>"``.

        Args:
            formatter: Optional callable taking this item and returning its display string.

        Returns:
            The rendered string.
        """
        if formatter is not None: return formatter(self)
        return f"{self._sequence} from {self._start} to {self._end}"


class Match:
    """
    A fuzzy match pairing the aligned needle with the aligned haystack region it was found in.

    Matches are created by ``FuzzyQuery.search`` and never change afterwards.

    Attributes:
        needle (Item): The aligned part of the needle.
        haystack (Item): The aligned part of the haystack.
        score (int): The alignment score of the match.
        formatter: The optional item formatter used by the ``format_*`` methods.
    """
    __slots__ = ('_needle', '_haystack', '_score', '_formatter')
    def __init__(self, needle: Item, haystack: Item, score: int, formatter: Optional[Callable[[Item], str]] = None):
        self._needle = needle
        self._haystack = haystack
        self._score = int(score)
        self._formatter = formatter

    @property
    def needle(self) -> Item: return self._needle
    @property
    def haystack(self) -> Item: return self._haystack
    @property
    def score(self) -> int: return self._score
    @property
    def formatter(self) -> Optional[Callable[[Item], str]]: return self._formatter

    def __repr__(self):
        return f"Match({self._needle.to_string()}->{self._haystack.to_string()}, score={self._score})"

    def __eq__(self, other):
        if not isinstance(other, Match): return NotImplemented
        return self._score == other._score and self._needle == other._needle and self._haystack == other._haystack

    def __hash__(self): return hash((self._needle, self._haystack, self._score))

    def format_needle(self) -> str: return self._needle.text(self._formatter)
    def format_haystack(self) -> str: return self._haystack.text(self._formatter)
    def format_score(self) -> str: return f"Score {self._score}"

    @property
    def n_matches(self) -> int:
        """Number of aligned columns in which the needle and haystack symbols are equal (ignoring gaps)."""
        needle, haystack = self._needle._sequence.encoded, self._haystack._sequence.encoded
        gap = needle.dtype.type(ord(self._needle.alphabet.gap or '\0'))
        return int(np.count_nonzero((needle == haystack) & (needle != gap)))

    def identity(self) -> float:
        """Fraction of aligned columns that are identical."""
        length = len(self._needle)
        return self.n_matches / length if length > 0 else 0.0
