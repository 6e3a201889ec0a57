from io import BytesIO
from lzma import LZMAError
from pathlib import Path
from typing import Union, Generator, BinaryIO, Iterable

from fuzzyseq.core.alphabet import Alphabet
from fuzzyseq.containers.seq import Sequence
from fuzzyseq.io import SeqFileError
from fuzzyseq.io.open import Xopen


# Constants ------------------------------------------------------------------------------------------------------------
_WHITESPACE = b' \t\r\n\v\f'


# Classes --------------------------------------------------------------------------------------------------------------
class FastaReader:
    """
    Reader for FASTA format files, yielding ``(name, Sequence)`` pairs.

    The name is the header up to the first space. Line breaks inside records are dropped before the symbols are
    resolved through the alphabet.

    Examples:
        >>> with open("genome.fasta", "rb") as f:
        ...     for name, seq in FastaReader(f):
        ...         print(name, len(seq))
    """
    __slots__ = ('_handle', '_alphabet', '_min_seq_length')
    _CHUNK_SIZE = 65536
    def __init__(self, handle: BinaryIO, alphabet: Alphabet = None, min_seq_length: int = 1):
        self._handle = handle
        self._alphabet = alphabet or Alphabet.DNA5
        self._min_seq_length = min_seq_length

    def __iter__(self) -> Generator[tuple[str, Sequence], None, None]:
        for header, seq_parts in self._read_entries():
            yield self._make_record(header, seq_parts)

    def _read_entries(self):
        """Internal generator that yields (header, seq_parts_list)."""
        read = self._handle.read
        buf = b""
        header = None
        seq_parts = []

        while True:
            chunk = read(self._CHUNK_SIZE)
            if not chunk:
                if header is not None:
                    if buf: seq_parts.append(buf)
                    if self._keep(seq_parts): yield header, seq_parts
                break

            buf += chunk
            pos = 0
            while True:
                gt_pos = buf.find(b'>', pos)
                if gt_pos == -1:
                    if header is not None: seq_parts.append(buf[pos:])
                    buf = b""
                    break

                if header is not None:
                    seq_parts.append(buf[pos:gt_pos])
                    if self._keep(seq_parts): yield header, seq_parts
                    seq_parts = []
                    header = None

                nl_pos = buf.find(b'\n', gt_pos)
                if nl_pos == -1:  # Header continues in the next chunk
                    buf = buf[gt_pos:]
                    break
                header = buf[gt_pos + 1:nl_pos].rstrip()
                pos = nl_pos + 1

    def _keep(self, seq_parts: list[bytes]) -> bool:
        return sum(len(p.translate(None, _WHITESPACE)) for p in seq_parts) >= self._min_seq_length

    def _make_record(self, header: bytes, seq_parts: Iterable[bytes]) -> tuple[str, Sequence]:
        name = header.partition(b' ')[0].decode('ascii', errors='replace')
        return name, self._alphabet.seq(b"".join(seq_parts).translate(None, _WHITESPACE))


# Functions ------------------------------------------------------------------------------------------------------------
def read_sequence(file: Union[str, Path, BinaryIO], alphabet: Alphabet = None) -> Sequence:
    """
    Loads a single sequence from a file.

    FASTA input yields its first record; anything else is read as raw text with whitespace removed. Compressed
    files (gzip, bzip2, xz) are decompressed transparently.

    Args:
        file: File path or binary file object.
        alphabet: The ``Alphabet`` used to resolve symbols (defaults to ``Alphabet.DNA5``).

    Returns:
        The loaded ``Sequence``.

    Raises:
        SeqFileError: If the file cannot be read or holds no sequence.

    Examples:
        >>> genome = read_sequence("AAV-CamKII-GCaMP6s-WPRE-SV40.fasta")
    """
    alphabet = alphabet or Alphabet.DNA5
    try:
        with Xopen(file) as handle: data = handle.read()
    except (OSError, EOFError, LZMAError) as e:
        raise SeqFileError(f'Cannot read sequence file {file}: {e}') from e

    if data.lstrip().startswith(b'>'):
        for _, seq in FastaReader(BytesIO(data), alphabet): return seq
        raise SeqFileError(f'No sequence records found in {file}')
    if not (text := data.translate(None, _WHITESPACE)): raise SeqFileError(f'Sequence file {file} is empty')
    return alphabet.seq(text)
