"""Mutable, alphabet-aware symbol sequences backed by a contiguous, growable uint8 buffer."""
from typing import Union, Iterator, Final

import numpy as np

from fuzzyseq.utils.resources import jit
from fuzzyseq.utils.protocols import HasAlphabet, HasCodes


# Exceptions and Warnings ----------------------------------------------------------------------------------------------
class SequenceError(Exception):
    """Raised when sequences are combined in an incompatible way (e.g. different alphabets)."""


# Classes --------------------------------------------------------------------------------------------------------------
class Sequence(HasAlphabet, HasCodes):
    """
    Ordered, mutable collection of alphabet-constrained symbols.

    Every character given to the sequence (at construction, append or assignment) is resolved independently through
    the alphabet, so the stored symbols are always canonical. Symbols are stored as ASCII codes in a contiguous buffer
    with spare capacity, which keeps appends amortised O(1) and indexed reads O(1).

    Args:
        text: Initial content as str or bytes.
        alphabet: The ``Alphabet`` used to resolve symbols (defaults to ``Alphabet.DNA5``).

    Examples:
        >>> seq = Sequence.from_text('acgtx')
        >>> str(seq)
        'ACGTN'
        >>> seq.append('GG')
        ACGTNGG
        >>> seq[2]
        'G'
        >>> seq.reverse(); str(seq)
        'GGNTGCA'
    """
    __slots__ = ('_data', '_size', '_alphabet')
    _MIN_CAPACITY: Final = 16

    def __init__(self, text: Union[str, bytes] = b'', alphabet: 'Alphabet' = None):
        self._alphabet = alphabet if alphabet is not None else _default_alphabet()
        self._data: np.ndarray = self._alphabet.encode(text)
        self._size = len(self._data)

    @classmethod
    def from_text(cls, text: Union[str, bytes], alphabet: 'Alphabet' = None) -> 'Sequence':
        """Creates a sequence by resolving each character of ``text`` through the alphabet.

        Args:
            text: The source text.
            alphabet: The ``Alphabet`` to use (defaults to ``Alphabet.DNA5``).

        Returns:
            A new ``Sequence``.
        """
        return cls(text, alphabet)

    @classmethod
    def wrap(cls, codes: np.ndarray, alphabet: 'Alphabet', size: int = None) -> 'Sequence':
        """
        Adopts an array of already-canonical codes as the buffer of a new sequence (no copy, no resolution).
        """
        seq = cls.__new__(cls)
        seq._alphabet = alphabet
        seq._data = codes
        seq._size = len(codes) if size is None else size
        return seq

    @property
    def alphabet(self) -> 'Alphabet':
        """Returns the alphabet used for resolving symbols."""
        return self._alphabet

    @property
    def encoded(self) -> np.ndarray:
        """Returns a read-only view of the live symbol codes (zero copy).

        Returns:
            A read-only ``uint8`` numpy array of length ``len(self)``.
        """
        view = self._data[:self._size]
        view.flags.writeable = False
        return view

    def __array__(self, dtype=None):
        """Allows the Sequence to be treated as a numpy array."""
        return self.encoded.astype(dtype, copy=False) if dtype else self.encoded

    def __len__(self): return self._size
    def __bool__(self): return self._size > 0
    def __bytes__(self) -> bytes: return self._data[:self._size].tobytes()
    def __str__(self): return self.to_string()
    def __iter__(self) -> Iterator[str]: return iter(self.to_string())
    def __reversed__(self) -> Iterator[str]: return reversed(self.to_string())
    def __repr__(self):
        if self._size <= 14: return str(self)
        text = self.to_string()
        return f"{text[:7]}...{text[-7:]}"

    def to_string(self) -> str:
        """Renders the full sequence as text."""
        return self.__bytes__().decode('ascii')

    def tobytes(self) -> bytes:
        """Renders the full sequence as bytes."""
        return self.__bytes__()

    def __eq__(self, other):
        if self is other: return True
        if isinstance(other, Sequence):
            return self._alphabet == other._alphabet and np.array_equal(self.encoded, other.encoded)
        if isinstance(other, (str, bytes)): return np.array_equal(self.encoded, self._alphabet.encode(other))
        return NotImplemented

    __hash__ = None  # Mutable

    def _index(self, index: int) -> int:
        position = index + self._size if index < 0 else index
        if not 0 <= position < self._size:
            raise IndexError(f"Sequence index {index} out of range for length {self._size}")
        return position

    def __getitem__(self, item: Union[int, slice]) -> Union[str, 'Sequence']:
        """Reads the symbol at an index, or copies out a sub-sequence for a slice.

        Args:
            item: An integer index (negative indices count from the end) or a slice.

        Returns:
            A one-character string for an index, a new ``Sequence`` for a slice.

        Raises:
            IndexError: If the index is out of range.
        """
        if isinstance(item, slice): return self._alphabet.seq_from(self.encoded[item])
        if isinstance(item, (int, np.integer)): return chr(self._data[self._index(int(item))])
        raise TypeError(f"Sequence indices must be integers or slices, not {type(item).__name__}")

    def __setitem__(self, index: int, value: Union[str, bytes, int]):
        self._data[self._index(int(index))] = ord(self._alphabet.resolve(value))

    def _reserve(self, extra: int):
        needed = self._size + extra
        if needed <= len(self._data): return
        grown = np.empty(max(needed, 2 * len(self._data), self._MIN_CAPACITY), dtype=self._data.dtype)
        grown[:self._size] = self._data[:self._size]
        self._data = grown

    def append(self, item: Union[str, bytes, int, 'Sequence']) -> 'Sequence':
        """
        Appends a single symbol, a text, or another sequence (in place).

        Args:
            item: A one-character or longer str/bytes (each character resolved independently), an integer code
                point, or a ``Sequence`` with the same alphabet.

        Returns:
            This sequence, for chaining.

        Raises:
            SequenceError: If appending a sequence with a different alphabet.
        """
        if isinstance(item, Sequence):
            if item.alphabet != self._alphabet:
                raise SequenceError("Cannot append a sequence with a different alphabet")
            codes = item.encoded
        elif isinstance(item, (int, np.integer)):
            codes = np.array([ord(self._alphabet.resolve(item))], dtype=self._data.dtype)
        elif isinstance(item, (str, bytes, bytearray)):
            codes = self._alphabet.encode(item)
        else:
            raise TypeError(f"Cannot append {type(item).__name__} to a Sequence")
        n = len(codes)
        self._reserve(n)
        self._data[self._size:self._size + n] = codes
        self._size += n
        return self

    def __iadd__(self, other): return self.append(other)
    def __add__(self, other) -> 'Sequence': return self.copy().append(other)

    def reverse(self) -> None:
        """Reverses the sequence in place by swapping symbols from both ends toward the middle."""
        _reverse_kernel(self._data, self._size)

    def copy(self) -> 'Sequence':
        """Returns a deep copy that shares no storage with this sequence."""
        return self._alphabet.seq_from(self.encoded)

    def view(self) -> 'Sequence':
        """
        Returns a shallow copy aliasing this sequence's buffer.

        Writes through either object are visible in the other until one of them outgrows the shared buffer; treat
        the result as aliasing the original unless you ``copy()`` explicitly.
        """
        return Sequence.wrap(self._data, self._alphabet, self._size)

    def begin(self) -> 'SequenceCursor':
        """Returns a cursor at the first symbol."""
        return SequenceCursor(self, 0)

    def end(self) -> 'SequenceCursor':
        """Returns a cursor at the last symbol (the same position as ``begin()`` for lengths 0 and 1)."""
        return SequenceCursor(self, max(self._size - 1, 0))


class SequenceCursor:
    """
    Bidirectional cursor over a ``Sequence``.

    Cursors may be moved past either end freely; only dereferencing (``value``) checks bounds.

    Examples:
        >>> seq = Sequence.from_text('ACGT')
        >>> first, last = seq.begin(), seq.end()
        >>> (first + 3) == last
        True
        >>> last.retreat().value
        'G'
        >>> first.value = 't'; str(seq)
        'TCGT'
    """
    __slots__ = ('_sequence', '_position')
    def __init__(self, sequence: Sequence, position: int = 0):
        self._sequence = sequence
        self._position = position

    @property
    def sequence(self) -> Sequence: return self._sequence
    @property
    def position(self) -> int: return self._position

    def _check(self):
        if not 0 <= self._position < len(self._sequence):
            raise IndexError(f"Cursor position {self._position} out of range for length {len(self._sequence)}")

    @property
    def value(self) -> str:
        """Dereferences the cursor to the symbol it points at."""
        self._check()
        return self._sequence[self._position]

    @value.setter
    def value(self, symbol: Union[str, bytes, int]):
        self._check()
        self._sequence[self._position] = symbol

    def advance(self, n: int = 1) -> 'SequenceCursor':
        """Moves this cursor forward by ``n`` symbols in place."""
        self._position += n
        return self

    def retreat(self, n: int = 1) -> 'SequenceCursor':
        """Moves this cursor backward by ``n`` symbols in place."""
        self._position -= n
        return self

    def __add__(self, n: int) -> 'SequenceCursor':
        if not isinstance(n, (int, np.integer)): return NotImplemented
        return SequenceCursor(self._sequence, self._position + int(n))

    def __sub__(self, other: Union[int, 'SequenceCursor']):
        if isinstance(other, SequenceCursor):
            if other._sequence is not self._sequence: raise SequenceError("Cursors belong to different sequences")
            return self._position - other._position
        if not isinstance(other, (int, np.integer)): return NotImplemented
        return SequenceCursor(self._sequence, self._position - int(other))

    def __iadd__(self, n: int) -> 'SequenceCursor': return self.advance(n)
    def __isub__(self, n: int) -> 'SequenceCursor': return self.retreat(n)

    def __eq__(self, other):
        if not isinstance(other, SequenceCursor): return NotImplemented
        return self._sequence is other._sequence and self._position == other._position

    __hash__ = None

    def __repr__(self): return f"SequenceCursor({self._sequence!r}, position={self._position})"


# Functions ------------------------------------------------------------------------------------------------------------
def _default_alphabet() -> 'Alphabet':
    from fuzzyseq.core.alphabet import Alphabet  # Deferred: the alphabet module imports this one
    return Alphabet.DNA5


# Kernels --------------------------------------------------------------------------------------------------------------
@jit(nopython=True, cache=True, nogil=True)
def _reverse_kernel(data, n):
    first = 0
    last = n - 1
    while first < last:
        tmp = data[first]
        data[first] = data[last]
        data[last] = tmp
        first += 1
        last -= 1
