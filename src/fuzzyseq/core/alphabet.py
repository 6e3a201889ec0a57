"""
Module for representing ASCII biological alphabets and resolving raw input to canonical symbols
"""
from typing import Union, Final, ClassVar

import numpy as np

from fuzzyseq.containers.seq import Sequence
from fuzzyseq.utils.resources import RESOURCES


# Exceptions and Warnings ----------------------------------------------------------------------------------------------
class AlphabetError(Exception):
    """Raised when an alphabet is invalid or an operation is incompatible with the alphabet."""


# Classes --------------------------------------------------------------------------------------------------------------
class Alphabet:
    """
    An alphabet of ASCII symbols acting as a total codec: every raw code point resolves to either a canonical
    symbol of the alphabet or the alphabet's "unknown" symbol. Raw unrecognised input is never stored verbatim.

    Canonical symbols are stored as their upper-case ASCII codes (uint8), so encoded arrays decode to text with a
    plain ``tobytes()``.

    Examples:
        >>> Alphabet.DNA5.encode(b'acgtx-')
        array([65, 67, 71, 84, 78, 45], dtype=uint8)
        >>> Alphabet.DNA5.resolve('g')
        'G'
        >>> Alphabet.DNA5.resolve(ord('?'))
        'N'
    """
    __slots__ = ('_data', '_lookup_table', '_unknown', '_gap')
    DTYPE: Final = np.uint8
    MAX_LEN: Final = np.iinfo(DTYPE).max + 1
    ENCODING: Final = 'ascii'

    DNA5: ClassVar['Alphabet']
    RNA5: ClassVar['Alphabet']
    AMINO: ClassVar['Alphabet']

    def __init__(self, symbols: bytes, unknown: bytes = b'N', gap: bytes = None, aliases: dict[bytes, bytes] = None):
        """
        Initializes an Alphabet.

        Args:
            symbols: The canonical symbols of the alphabet as bytes (case-insensitive on input).
            unknown: The single fallback symbol substituted for unrecognised input.
            gap: Optional single gap marker. It resolves to itself but is not counted among ``symbols``.
            aliases: Optional mapping of extra input characters to canonical ones (e.g. {b'U': b'T'}).

        Raises:
            AlphabetError: If symbols are not ASCII, contain duplicates, or if unknown/gap/aliases are invalid.
        """
        if not symbols.isascii(): raise AlphabetError('Alphabet symbols must be a valid ASCII string')
        symbols = symbols.upper()
        if len(set(symbols)) != len(symbols): raise AlphabetError('Alphabet contains duplicate symbols')
        if len(unknown) != 1 or not unknown.isascii(): raise AlphabetError('Unknown symbol must be a single ASCII byte')
        if gap is not None:
            if len(gap) != 1 or not gap.isascii(): raise AlphabetError('Gap symbol must be a single ASCII byte')
            if gap.upper() in symbols or gap.upper() == unknown.upper():
                raise AlphabetError('Gap symbol cannot also be an alphabet or unknown symbol')

        self._data: np.ndarray = np.frombuffer(symbols, dtype=self.DTYPE)
        self._data.flags.writeable = False
        self._unknown = unknown.upper()[0]
        self._gap = gap[0] if gap is not None else None

        # Build Lookup Table: everything unrecognised falls back to the unknown symbol
        self._lookup_table = np.full(self.MAX_LEN, self._unknown, dtype=self.DTYPE)
        self._lookup_table[np.frombuffer(symbols, dtype=self.DTYPE)] = self._data
        self._lookup_table[np.frombuffer(symbols.lower(), dtype=self.DTYPE)] = self._data
        if self._gap is not None: self._lookup_table[self._gap] = self._gap

        # Apply Aliases (Map extra chars to canonical codes)
        if aliases:
            for src, dst in aliases.items():
                if len(src) != 1 or len(dst) != 1: raise AlphabetError("Aliases must be single bytes")
                if dst.upper() not in symbols: raise AlphabetError(f"Alias target {dst} not in alphabet")
                target = ord(dst.upper())
                self._lookup_table[ord(src.upper())] = target
                self._lookup_table[ord(src.lower())] = target

        self._lookup_table.flags.writeable = False

    def __len__(self): return len(self._data)
    def __iter__(self): return iter(self._data.tobytes().decode(self.ENCODING))
    def __repr__(self): return f"Alphabet({self._data.tobytes().decode(self.ENCODING)!r})"

    def __contains__(self, item):
        # Symbols, aliases and the gap are members; the fallback symbol only if it is also a canonical symbol
        if isinstance(item, (int, np.integer)): code = int(item)
        elif isinstance(item, (str, bytes)) and len(item) == 1: code = ord(item)
        else: return False
        if not 0 <= code < self.MAX_LEN: return False
        if self._lookup_table[code] != self._unknown: return True
        return self._unknown in self._data and chr(code).upper() == chr(self._unknown)

    def __eq__(self, other):
        if self is other: return True
        if not isinstance(other, Alphabet): return False
        return np.array_equal(self._lookup_table, other._lookup_table)

    def __ne__(self, other): return not self.__eq__(other)
    def __hash__(self): return hash(self._lookup_table.tobytes())

    @property
    def symbols(self) -> bytes:
        """Returns the canonical symbols (without the gap or unknown markers)."""
        return self._data.tobytes()

    @property
    def unknown(self) -> str:
        """Returns the fallback symbol used for unrecognised input."""
        return chr(self._unknown)

    @property
    def unknown_code(self) -> int: return int(self._unknown)

    @property
    def gap(self) -> Union[str, None]:
        """Returns the gap marker, or ``None`` if this alphabet has none."""
        return None if self._gap is None else chr(self._gap)

    @property
    def gap_code(self) -> int:
        """Returns the ASCII code of the gap marker.

        Raises:
            AlphabetError: If the alphabet defines no gap marker.
        """
        if self._gap is None: raise AlphabetError(f'{self!r} has no gap symbol')
        return int(self._gap)

    def resolve(self, code: Union[int, str, bytes]) -> str:
        """
        Resolves a single raw code point to its canonical symbol.

        This is total: anything not in the alphabet (including code points outside the byte range) resolves to the
        unknown symbol rather than raising.

        Args:
            code: An integer code point, or a one-character str/bytes.

        Returns:
            The canonical symbol as a one-character string.

        Examples:
            >>> Alphabet.DNA5.resolve(97)
            'A'
        """
        if isinstance(code, (str, bytes)):
            if len(code) != 1: raise ValueError(f'Expected a single symbol, got {code!r}')
            code = ord(code)
        code = int(code)
        if not 0 <= code < self.MAX_LEN: return chr(self._unknown)
        return chr(self._lookup_table[code])

    def encode(self, text: Union[str, bytes, bytearray, np.ndarray]) -> np.ndarray:
        """
        Resolves every character of a text to canonical codes.

        Args:
            text: The text to encode as str or bytes. Each character is resolved independently; non-ASCII code points
                resolve to the unknown symbol.

        Returns:
            A new, writeable numpy array of canonical codes.
        """
        if isinstance(text, str):
            if text.isascii(): return self._lookup_table[np.frombuffer(text.encode(self.ENCODING), dtype=self.DTYPE)]
            # Full code points, one per character
            points = np.frombuffer(text.encode('utf-32-le'), dtype='<u4')
            return np.where(points < self.MAX_LEN, self._lookup_table[np.minimum(points, self.MAX_LEN - 1)],
                            self._unknown).astype(self.DTYPE)
        if isinstance(text, np.ndarray): return self._lookup_table[text.astype(self.DTYPE, copy=False)]
        return self._lookup_table[np.frombuffer(bytes(text), dtype=self.DTYPE)]

    def decode(self, encoded: np.ndarray) -> bytes:
        """Decodes an array of canonical codes back to bytes.

        Args:
            encoded: The numpy array of codes (uint8).

        Returns:
            The decoded bytes string.
        """
        if encoded.dtype != self.DTYPE: encoded = encoded.astype(self.DTYPE, copy=False)
        return encoded.tobytes()

    def seq(self, text: Union[str, bytes, 'Sequence'] = b'') -> 'Sequence':
        """Creates a Sequence from text, resolving each character through this alphabet.

        Args:
            text: The input text, or an existing ``Sequence`` (returned as a deep copy).

        Returns:
            A new ``Sequence`` with this alphabet.

        Raises:
            AlphabetError: If an input ``Sequence`` has a different alphabet.
        """
        if isinstance(text, Sequence):
            if text.alphabet != self: raise AlphabetError(f'Sequence has a different alphabet "{text.alphabet}"')
            return text.copy()
        return Sequence(text, self)

    def seq_from(self, codes: np.ndarray) -> 'Sequence':
        """
        Wraps already-canonical codes in a Sequence without re-resolving them.
        """
        return Sequence.wrap(np.array(codes, dtype=self.DTYPE), self)

    def empty_seq(self) -> 'Sequence':
        """Returns an empty sequence with this alphabet.

        Returns:
            An empty ``Sequence``.
        """
        return self.seq_from(np.empty(0, dtype=self.DTYPE))

    def random_seq(self, length: int, rng: np.random.Generator = None, weights=None) -> 'Sequence':
        """
        Generates a random sequence from the canonical symbols of this alphabet (never gaps or unknowns).

        Args:
            length: Exact length of sequence to generate.
            rng: Random number generator (optional).
            weights: Weights for each symbol (optional).

        Returns:
            A random Sequence object.

        Examples:
            >>> s = Alphabet.DNA5.random_seq(10)
            >>> len(s)
            10
        """
        if rng is None: rng = RESOURCES.rng
        if weights is None: indices = rng.integers(0, len(self._data), size=length)
        else: indices = rng.choice(len(self._data), size=length, p=weights)
        return self.seq_from(self._data[indices])


# Initialize Standard Alphabets
Alphabet.DNA5 = Alphabet(b'ACGT', unknown=b'N', gap=b'-')
Alphabet.RNA5 = Alphabet(b'ACGU', unknown=b'N', gap=b'-')
Alphabet.AMINO = Alphabet(b'ACDEFGHIKLMNPQRSTVWY', unknown=b'X', gap=b'-')
