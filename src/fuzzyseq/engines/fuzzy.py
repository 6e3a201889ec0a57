"""Fuzzy local alignment engine returning the top-K non-overlapping matches of a needle in a haystack."""
from typing import Union, Callable, Optional, ClassVar, Final, NamedTuple, Iterator
from enum import IntEnum, auto
from warnings import warn

import numpy as np

from fuzzyseq import FuzzyseqWarning
from fuzzyseq.core.alphabet import Alphabet
from fuzzyseq.containers.seq import Sequence
from fuzzyseq.containers.match import Item, Match
from fuzzyseq.utils.resources import RESOURCES, jit


# Exceptions and Warnings ----------------------------------------------------------------------------------------------
class AlignmentError(Exception):
    """Base class for fuzzy alignment errors."""


class ConfigurationError(AlignmentError, ValueError):
    """Raised when a query is given an invalid score model or match count, or searched before configuration."""


class EmptySequenceWarning(FuzzyseqWarning):
    """Issued when the needle or haystack is empty, so no match can exist."""


class SearchCancelledWarning(FuzzyseqWarning):
    """Issued when a search is stopped early by its cancellation callback."""


# Constants ------------------------------------------------------------------------------------------------------------
UNDEFINED: Final = np.iinfo(np.int32).max
_JIT_HINT_CELLS: Final = 1_000_000  # Above this many cells, pure Python rescoring gets slow


class QueryState(IntEnum):
    """Lifecycle of a ``FuzzyQuery``."""
    UNINITIALIZED = auto()
    MATRIX_BUILT = auto()
    SCORED = auto()
    MATCH_EXTRACTED = auto()
    EXHAUSTED = auto()
    QUOTA_REACHED = auto()
    CANCELLED = auto()


# Classes --------------------------------------------------------------------------------------------------------------
class ScoreModel:
    """
    Rewards and penalties used to score an alignment: a flat match reward, a mismatch score and a flat gap penalty.

    Symbols are compared case-insensitively. The gap penalty is subtracted by the recurrence for every gap move that
    is not a free end gap.

    Args:
        match: Reward for two equal symbols (>= 0).
        mismatch: Score for two different symbols (usually <= 0).
        gap: Penalty for a gap move (>= 0).

    Raises:
        ConfigurationError: If a value is not an integer, or ``match`` or ``gap`` is negative.

    Examples:
        >>> ScoreModel.CONTINUITY.score('a', 'A')
        1
        >>> ScoreModel.preset('standard') == ScoreModel.BALANCED
        True
    """
    __slots__ = ('_match', '_mismatch', '_gap')
    CONTINUITY: ClassVar['ScoreModel']
    DISPARITY: ClassVar['ScoreModel']
    BALANCED: ClassVar['ScoreModel']
    _PRESETS: ClassVar[dict[str, 'ScoreModel']]

    def __init__(self, match: int = 1, mismatch: int = -1, gap: int = 1):
        for name, value in (('match', match), ('mismatch', mismatch), ('gap', gap)):
            if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
                raise ConfigurationError(f'Score model {name} must be an integer, not {value!r}')
        if match < 0: raise ConfigurationError(f'Match reward must be >= 0, got {match}')
        if gap < 0: raise ConfigurationError(f'Gap penalty must be >= 0, got {gap}')
        self._match = int(match)
        self._mismatch = int(mismatch)
        self._gap = int(gap)

    @classmethod
    def preset(cls, name: str) -> 'ScoreModel':
        """
        Looks up a named preset.

        Args:
            name: One of 'continuity', 'disparity' or 'balanced' (aliases 'standard' and 'mixed'), any case.

        Returns:
            The preset ``ScoreModel``.

        Raises:
            ConfigurationError: If the name is not a known preset.
        """
        if (model := cls._PRESETS.get(name.lower())) is None:
            raise ConfigurationError(f'Unknown score model preset "{name}"; choose from {", ".join(cls._PRESETS)}')
        return model

    @property
    def match(self) -> int: return self._match
    @property
    def mismatch(self) -> int: return self._mismatch
    @property
    def gap(self) -> int: return self._gap

    def __iter__(self) -> Iterator[int]: return iter((self._match, self._mismatch, self._gap))
    def __repr__(self): return f"ScoreModel(match={self._match}, mismatch={self._mismatch}, gap={self._gap})"
    def __hash__(self): return hash(tuple(self))
    def __eq__(self, other):
        if not isinstance(other, ScoreModel): return NotImplemented
        return tuple(self) == tuple(other)

    def score(self, a: Union[str, bytes, int], b: Union[str, bytes, int]) -> int:
        """Returns the match reward if ``a`` and ``b`` are the same symbol ignoring case, else the mismatch score."""
        return self._match if _fold(a) == _fold(b) else self._mismatch


class Node(NamedTuple):
    """Read-only snapshot of one alignment matrix cell."""
    value: int
    trace_i: int
    trace_j: int
    consumed: bool

    @property
    def has_traceback(self) -> bool: return self.trace_i != UNDEFINED and self.trace_j != UNDEFINED


class Traceback(NamedTuple):
    """
    Result of reconstructing one alignment from the matrix.

    Attributes:
        needle: Codes of the aligned needle, gaps included.
        haystack: Codes of the aligned haystack, gaps included.
        start: 1-based (needle, haystack) start positions.
        end: (needle, haystack) coordinates of the last aligned column.
        steps: Number of cells visited and consumed.
    """
    needle: np.ndarray
    haystack: np.ndarray
    start: tuple[int, int]
    end: tuple[int, int]
    steps: int


class AlignmentMatrix:
    """
    The (N + 1) x (H + 1) dynamic programming grid for a needle of length N against a haystack of length H.

    Each cell holds an accumulated score, traceback coordinates and a "consumed" flag, stored as four parallel numpy
    arrays. Row 0 and column 0 score 0 and point back along their axis, so alignments may start anywhere in either
    sequence for free. Interior cells start undefined until the first ``rescore``.

    Examples:
        >>> m = AlignmentMatrix(3, 5)
        >>> m.shape
        (4, 6)
        >>> m[2, 0]
        Node(value=0, trace_i=1, trace_j=0, consumed=False)
    """
    __slots__ = ('_values', '_trace_i', '_trace_j', '_consumed')
    DTYPE: Final = np.int32
    UNDEFINED: Final = int(UNDEFINED)

    def __init__(self, n_needle: int, n_haystack: int):
        shape = (n_needle + 1, n_haystack + 1)
        self._values = np.full(shape, UNDEFINED, dtype=self.DTYPE)
        self._trace_i = np.full(shape, UNDEFINED, dtype=self.DTYPE)
        self._trace_j = np.full(shape, UNDEFINED, dtype=self.DTYPE)
        self._consumed = np.zeros(shape, dtype=np.bool_)
        # Free leading gaps: borders score 0 and point to the previous cell along their axis
        self._values[0, :] = 0
        self._values[:, 0] = 0
        self._trace_i[1:, 0] = np.arange(n_needle, dtype=self.DTYPE)
        self._trace_j[1:, 0] = 0
        self._trace_i[0, 1:] = 0
        self._trace_j[0, 1:] = np.arange(n_haystack, dtype=self.DTYPE)

    def __getitem__(self, item: tuple[int, int]) -> Node:
        i, j = item
        return Node(int(self._values[i, j]), int(self._trace_i[i, j]), int(self._trace_j[i, j]),
                    bool(self._consumed[i, j]))

    def __repr__(self): return f"AlignmentMatrix{self.shape}"
    @property
    def shape(self) -> tuple[int, int]: return self._values.shape
    @property
    def size(self) -> int: return self._values.size
    @property
    def corner(self) -> int:
        """Value of the bottom-right cell."""
        return int(self._values[-1, -1])

    @property
    def values(self) -> np.ndarray:
        """Read-only view of the cell scores."""
        view = self._values.view()
        view.flags.writeable = False
        return view

    @property
    def consumed(self) -> np.ndarray:
        """Read-only view of the consumed mask."""
        view = self._consumed.view()
        view.flags.writeable = False
        return view

    def rescore(self, needle: np.ndarray, haystack: np.ndarray, model: ScoreModel) -> int:
        """
        Recomputes every interior cell in row-major order.

        Args:
            needle: Needle codes (length N).
            haystack: Haystack codes (length H).
            model: The score model.

        Returns:
            The bottom-right cell value after rescoring.
        """
        _rescore_kernel(self._values, self._trace_i, self._trace_j, self._consumed,
                        _folded(needle), _folded(haystack), model.match, model.mismatch, model.gap)
        return self.corner

    def best(self) -> Optional[tuple[int, int, int]]:
        """
        Finds the highest-scoring interior cell, the first one in row-major order on ties.

        Returns:
            ``(i, j, value)``, or ``None`` if the interior is empty or no cell scores above 0.
        """
        interior = self._values[1:, 1:]
        if interior.size == 0: return None
        flat = int(np.argmax(interior))
        i, j = divmod(flat, interior.shape[1])
        if (value := int(interior[i, j])) <= 0: return None
        return i + 1, j + 1, value

    def traceback(self, i: int, j: int, needle: np.ndarray, haystack: np.ndarray, gap_code: int) -> Traceback:
        """
        Follows traceback pointers back from cell (i, j), consuming every visited cell.

        Gap moves seen before the first diagonal move are not emitted. The visited cells are set to 0 and flagged as
        consumed so later rounds cannot reuse them.

        Args:
            i: Row of the starting cell.
            j: Column of the starting cell.
            needle: Needle codes.
            haystack: Haystack codes.
            gap_code: Code of the gap symbol written into the aligned sequences.

        Returns:
            A ``Traceback`` with the aligned codes in left-to-right order and their positions.
        """
        aligned_needle, aligned_haystack, stop_i, stop_j, end_i, end_j, steps = _traceback_kernel(
            self._values, self._trace_i, self._trace_j, self._consumed, needle, haystack, i, j, gap_code)
        return Traceback(aligned_needle, aligned_haystack, (int(stop_i) + 1, int(stop_j) + 1), (int(end_i), int(end_j)),
                         int(steps))


class FuzzyQuery:
    """
    Searches a haystack for the top-K non-overlapping approximate occurrences of a needle.

    Every round rescores the whole matrix, takes the best remaining cell, reconstructs its alignment and consumes the
    cells on its path, so later rounds find different, lower or equal scoring regions. The search stops after
    ``amount`` matches or when no cell scores above 0; the latter is not an error.

    Args:
        haystack: The sequence to search in (``Sequence`` or text, text is read with ``Alphabet.DNA5``).
        needle: The sequence to search for.
        model: A ``ScoreModel`` or preset name; may be given later through ``configure``.
        amount: Number of matches to return.
        formatter: Optional callable rendering an ``Item`` for the returned matches.

    Raises:
        ValueError: If the needle and haystack use different alphabets.

    Examples:
        >>> query = FuzzyQuery('ttATGGCTAGCaa', 'ATGGCTAGC')
        >>> query.configure(ScoreModel.CONTINUITY, 1)
        >>> [m.score for m in query.search()]
        [9]
    """
    __slots__ = ('_haystack', '_needle', '_model', '_amount', '_formatter', '_matrix', '_state', '_corner_score')
    def __init__(self, haystack: Union[Sequence, str, bytes], needle: Union[Sequence, str, bytes],
                 model: Union[ScoreModel, str] = None, amount: int = 1,
                 formatter: Callable[[Item], str] = None):
        self._haystack = _as_sequence(haystack)
        self._needle = _as_sequence(needle)
        if self._haystack.alphabet != self._needle.alphabet:
            raise ValueError(f'Needle and haystack alphabets differ: '
                             f'{self._needle.alphabet} != {self._haystack.alphabet}')
        self._model: Optional[ScoreModel] = None
        self._amount = 1
        self._formatter = None
        self._matrix: Optional[AlignmentMatrix] = None
        self._state = QueryState.UNINITIALIZED
        self._corner_score: Optional[int] = None
        if model is not None: self.configure(model, amount)
        else: self._amount = _check_amount(amount)
        self.set_formatter(formatter)

    def __repr__(self):
        return f"FuzzyQuery(needle={self._needle!r}, haystack={self._haystack!r}, state={self._state.name})"

    @property
    def haystack(self) -> Sequence: return self._haystack
    @property
    def needle(self) -> Sequence: return self._needle
    @property
    def model(self) -> Optional[ScoreModel]: return self._model
    @property
    def amount(self) -> int: return self._amount
    @property
    def formatter(self) -> Optional[Callable[[Item], str]]: return self._formatter
    @property
    def matrix(self) -> Optional[AlignmentMatrix]: return self._matrix
    @property
    def state(self) -> QueryState: return self._state
    @property
    def corner_score(self) -> Optional[int]:
        """Bottom-right cell value after the latest rescore. Informational only; it never drives match selection."""
        return self._corner_score

    def configure(self, model: Union[ScoreModel, str], amount: int = 1) -> None:
        """
        Sets the score model and the number of matches to retrieve.

        Args:
            model: A ``ScoreModel`` or the name of a preset.
            amount: Positive number of matches.

        Raises:
            ConfigurationError: If the model or amount is invalid.
        """
        if isinstance(model, str): model = ScoreModel.preset(model)
        elif not isinstance(model, ScoreModel):
            raise ConfigurationError(f'Expected a ScoreModel or preset name, not {type(model).__name__}')
        self._amount = _check_amount(amount)
        self._model = model

    def set_formatter(self, formatter: Optional[Callable[[Item], str]]) -> None:
        """Sets the item formatter passed on to the matches (``None`` restores the default rendering)."""
        if formatter is not None and not callable(formatter):
            raise TypeError(f'Formatter must be callable, not {type(formatter).__name__}')
        self._formatter = formatter

    def build_matrix(self) -> AlignmentMatrix:
        """Allocates a fresh matrix with initialised borders, discarding any previous one."""
        self._matrix = AlignmentMatrix(len(self._needle), len(self._haystack))
        self._corner_score = None
        self._state = QueryState.MATRIX_BUILT
        return self._matrix

    def search(self, cancel: Callable[[], bool] = None) -> list[Match]:
        """
        Runs the search from a freshly built matrix.

        Args:
            cancel: Optional callable checked before each round; when it returns true the search stops, a
                ``SearchCancelledWarning`` is issued and the matches found so far are returned.

        Returns:
            The matches in discovery order, best first. May hold fewer than ``amount`` matches.

        Raises:
            ConfigurationError: If no score model has been configured.
        """
        if self._model is None: raise ConfigurationError('No score model configured; call configure() first')
        matrix = self.build_matrix()
        matches = []
        if not self._needle or not self._haystack:
            warn(f'Cannot search with an empty {"needle" if not self._needle else "haystack"}', EmptySequenceWarning)
            self._state = QueryState.EXHAUSTED
            return matches
        if matrix.size > _JIT_HINT_CELLS: RESOURCES.require('numba')

        alphabet = self._needle.alphabet
        needle, haystack = self._needle.encoded, self._haystack.encoded
        while len(matches) < self._amount:
            if cancel is not None and cancel():
                warn(f'Search cancelled after {len(matches)} of {self._amount} matches', SearchCancelledWarning)
                self._state = QueryState.CANCELLED
                break
            self._corner_score = matrix.rescore(needle, haystack, self._model)
            self._state = QueryState.SCORED
            if (best := matrix.best()) is None:
                self._state = QueryState.EXHAUSTED
                break
            i, j, score = best
            trace = matrix.traceback(i, j, needle, haystack, alphabet.gap_code)
            matches.append(Match(
                Item(alphabet.seq_from(trace.needle), trace.start[0], trace.end[0]),
                Item(alphabet.seq_from(trace.haystack), trace.start[1], trace.end[1]),
                score, self._formatter
            ))
            self._state = QueryState.MATCH_EXTRACTED
        else:
            self._state = QueryState.QUOTA_REACHED
        return matches


# Functions ------------------------------------------------------------------------------------------------------------
def fuzzy_search(haystack: Union[Sequence, str, bytes], needle: Union[Sequence, str, bytes],
                 model: Union[ScoreModel, str] = 'continuity', amount: int = 1,
                 formatter: Callable[[Item], str] = None) -> list[Match]:
    """
    Convenience wrapper building a ``FuzzyQuery`` and running its search.

    Examples:
        >>> [m.haystack.start for m in fuzzy_search('ccccACGTAcccc', 'ACGTA')]
        [5]
    """
    return FuzzyQuery(haystack, needle, model, amount, formatter).search()


def _as_sequence(seq) -> Sequence:
    if isinstance(seq, Sequence): return seq.copy()
    if isinstance(seq, (str, bytes, bytearray)): return Alphabet.DNA5.seq(seq)
    raise TypeError(f'Expected a Sequence or text, not {type(seq).__name__}')


def _check_amount(amount) -> int:
    if isinstance(amount, bool) or not isinstance(amount, (int, np.integer)) or amount <= 0:
        raise ConfigurationError(f'Match count must be a positive integer, got {amount!r}')
    return int(amount)


def _fold(symbol: Union[str, bytes, int]) -> int:
    if isinstance(symbol, (str, bytes)):
        if len(symbol) != 1: raise ValueError(f'Expected a single symbol, got {symbol!r}')
        symbol = ord(symbol)
    symbol = int(symbol)
    return symbol + 32 if 65 <= symbol <= 90 else symbol


def _folded(codes: np.ndarray) -> np.ndarray:
    """Lower-cases ASCII letters so codes compare case-insensitively."""
    return np.where((codes >= 65) & (codes <= 90), codes + 32, codes).astype(np.uint8)


# Kernels --------------------------------------------------------------------------------------------------------------
@jit(nopython=True, cache=True, nogil=True)
def _rescore_kernel(values, trace_i, trace_j, consumed, needle, haystack, match, mismatch, gap):
    n_rows, n_cols = values.shape
    last_i = n_rows - 1
    last_j = n_cols - 1
    for i in range(1, n_rows):
        for j in range(1, n_cols):
            if consumed[i, j]:
                # Dead end: nothing propagates through a consumed cell
                values[i, j] = 0
                trace_i[i, j] = UNDEFINED
                trace_j[i, j] = UNDEFINED
                continue
            # Trailing end gaps are free
            up = values[i - 1, j] - (gap if j != last_j else 0)
            left = values[i, j - 1] - (gap if i != last_i else 0)
            diag = values[i - 1, j - 1] + (match if needle[i - 1] == haystack[j - 1] else mismatch)

            if up > left and up > diag:
                value, ti, tj = up, i - 1, j
            elif left > diag and left > up:
                value, ti, tj = left, i, j - 1
            else:
                value, ti, tj = diag, i - 1, j - 1

            if value < 0:
                values[i, j] = 0
                trace_i[i, j] = UNDEFINED
                trace_j[i, j] = UNDEFINED
            else:
                values[i, j] = value
                trace_i[i, j] = ti
                trace_j[i, j] = tj


@jit(nopython=True, cache=True, nogil=True)
def _traceback_kernel(values, trace_i, trace_j, consumed, needle, haystack, i, j, gap_code):
    capacity = len(needle) + len(haystack)
    out_needle = np.empty(capacity, dtype=np.uint8)
    out_haystack = np.empty(capacity, dtype=np.uint8)
    n = 0
    steps = 0
    end_i = -1
    end_j = -1
    while i > 0 and j > 0 and trace_i[i, j] != UNDEFINED and trace_j[i, j] != UNDEFINED:
        ti = trace_i[i, j]
        tj = trace_j[i, j]
        if ti == i - 1 and tj == j - 1:
            if end_i < 0:
                end_i = i
                end_j = j
            out_needle[n] = needle[i - 1]
            out_haystack[n] = haystack[j - 1]
            n += 1
        elif tj == j - 1:
            if end_i >= 0:
                out_needle[n] = gap_code
                out_haystack[n] = haystack[j - 1]
                n += 1
        elif end_i >= 0:
            out_needle[n] = needle[i - 1]
            out_haystack[n] = gap_code
            n += 1
        values[i, j] = 0
        consumed[i, j] = True
        steps += 1
        i = ti
        j = tj
    if end_i < 0:
        end_i = i
        end_j = j
    return out_needle[:n][::-1].copy(), out_haystack[:n][::-1].copy(), i, j, end_i, end_j, steps


# Initialize Presets
ScoreModel.CONTINUITY = ScoreModel(match=1, mismatch=0, gap=2)
ScoreModel.DISPARITY = ScoreModel(match=1, mismatch=-1, gap=0)
ScoreModel.BALANCED = ScoreModel(match=1, mismatch=-1, gap=1)
ScoreModel._PRESETS = {'continuity': ScoreModel.CONTINUITY, 'disparity': ScoreModel.DISPARITY,
                       'balanced': ScoreModel.BALANCED, 'standard': ScoreModel.BALANCED, 'mixed': ScoreModel.BALANCED}
