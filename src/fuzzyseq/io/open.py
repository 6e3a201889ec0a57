from io import IOBase, BytesIO
from typing import Union, BinaryIO
from pathlib import Path
from importlib import import_module


# Classes --------------------------------------------------------------------------------------------------------------
class Xopen:
    """
    Opens a file for binary reading, transparently decompressing gzip, bzip2 and xz content.

    Compression is sniffed from the leading magic bytes rather than the file extension. Non-seekable streams are read
    into memory first so they can be sniffed too.

    Examples:
        >>> with Xopen("genome.fasta.gz") as f:
        ...     content = f.read()
    """
    _MAGIC = {
        b'\x1f\x8b': 'gzip',
        b'\x42\x5a\x68': 'bz2',
        b'\xfd7zXZ\x00': 'lzma',
    }
    _MIN_N_BYTES = max(len(i) for i in _MAGIC.keys())
    _OPEN_FUNCS = {}
    __slots__ = ('file', '_to_close')

    def __init__(self, file: Union[str, Path, BinaryIO]):
        """
        Initializes the Xopen context manager.

        Args:
            file: File path (str or Path) or an existing binary file object.
        """
        self.file = file
        self._to_close: list[BinaryIO] = []

    def __enter__(self) -> BinaryIO: return self._open()

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Closes the handles opened by this instance, innermost last."""
        while self._to_close: self._to_close.pop().close()

    def _get_opener(self, pkg_name: str):
        if pkg_name not in self._OPEN_FUNCS:
            self._OPEN_FUNCS[pkg_name] = import_module(pkg_name).open
        return self._OPEN_FUNCS[pkg_name]

    def _open(self) -> BinaryIO:
        # 1. Resolve Raw Stream
        if isinstance(self.file, IOBase): raw_stream = self.file
        else:
            raw_stream = open(Path(self.file).expanduser(), mode='rb')
            self._to_close.append(raw_stream)

        try:
            # 2. Make it seekable so the magic bytes can be put back
            if not raw_stream.seekable(): raw_stream = BytesIO(raw_stream.read())

            # 3. Sniff Compression
            start = raw_stream.read(self._MIN_N_BYTES)
            raw_stream.seek(0)
            for magic, pkg in self._MAGIC.items():
                if start.startswith(magic):
                    handle = self._get_opener(pkg)(raw_stream, mode='rb')
                    self._to_close.append(handle)
                    return handle
            return raw_stream
        except BaseException:
            self.__exit__(None, None, None)
            raise
