import bz2
import gzip
import lzma
from io import BytesIO

import pytest
from fuzzyseq.core.alphabet import Alphabet
from fuzzyseq.containers.seq import Sequence
from fuzzyseq.containers.match import Item, Match
from fuzzyseq.io import FastaReader, SeqFileError, Xopen, read_sequence
from fuzzyseq.io.report import bracket_formatter, center, format_match

FASTA = b'>seq1 first record\nACGT\nacgn\n>seq2\nTTTT\n'


class TestFastaReader:
    def test_records(self):
        records = list(FastaReader(BytesIO(FASTA)))
        assert [name for name, _ in records] == ['seq1', 'seq2']
        assert records[0][1] == 'ACGTACGN'
        assert records[1][1] == 'TTTT'

    def test_min_seq_length(self):
        records = list(FastaReader(BytesIO(FASTA), min_seq_length=5))
        assert [name for name, _ in records] == ['seq1']

    def test_alphabet(self):
        (_, seq), = FastaReader(BytesIO(b'>p\nMKV\n'), alphabet=Alphabet.AMINO)
        assert seq.alphabet is Alphabet.AMINO
        assert seq == 'MKV'


class TestReadSequence:
    def test_fasta_first_record(self, tmp_path):
        path = tmp_path / 'genome.fasta'
        path.write_bytes(FASTA)
        assert read_sequence(path) == 'ACGTACGN'

    def test_raw_text(self, tmp_path):
        path = tmp_path / 'genome.txt'
        path.write_bytes(b'acgt\nACGT\n')
        seq = read_sequence(str(path))
        assert isinstance(seq, Sequence)
        assert seq == 'ACGTACGT'

    @pytest.mark.parametrize('module', [gzip, bz2, lzma])
    def test_compressed(self, tmp_path, module):
        # Named without a suffix: compression is detected from the content
        path = tmp_path / 'genome'
        with module.open(path, 'wb') as handle: handle.write(FASTA)
        assert read_sequence(path) == 'ACGTACGN'

    def test_file_object(self):
        assert read_sequence(BytesIO(b'>a\nAC\n')) == 'AC'

    def test_empty_file(self, tmp_path):
        path = tmp_path / 'empty.fasta'
        path.write_bytes(b'\n\n')
        with pytest.raises(SeqFileError, match="empty"):
            read_sequence(path)

    def test_header_only(self, tmp_path):
        path = tmp_path / 'header.fasta'
        path.write_bytes(b'>nothing\n')
        with pytest.raises(SeqFileError, match="No sequence records"):
            read_sequence(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(SeqFileError, match="Cannot read"):
            read_sequence(tmp_path / 'missing.fasta')

    def test_corrupt_xz(self, tmp_path):
        path = tmp_path / 'corrupt.fasta'
        path.write_bytes(b'\xfd7zXZ\x00not really xz')
        with pytest.raises(SeqFileError, match="Cannot read"):
            read_sequence(path)


class TestXopen:
    def test_plain(self, tmp_path):
        path = tmp_path / 'plain.txt'
        path.write_bytes(b'ACGT')
        with Xopen(path) as handle: assert handle.read() == b'ACGT'

    def test_gzip(self, tmp_path):
        path = tmp_path / 'seq.gz'
        with gzip.open(path, 'wb') as handle: handle.write(b'ACGT')
        with Xopen(path) as handle: assert handle.read() == b'ACGT'

    def test_closes_file_when_opener_fails(self, tmp_path, monkeypatch):
        path = tmp_path / 'seq.gz'
        with gzip.open(path, 'wb') as handle: handle.write(b'ACGT')
        streams = []

        def failing_opener(stream, mode):
            streams.append(stream)
            raise OSError('cannot decompress')

        monkeypatch.setattr(Xopen, '_get_opener', lambda self, pkg: failing_opener)
        with pytest.raises(OSError, match="cannot decompress"):
            with Xopen(path): pass
        assert streams[0].closed


class TestReport:
    def test_bracket_formatter(self):
        assert bracket_formatter(Item(Sequence.from_text('ACGT'), 1, 4)) == '   [1 ... ACGT ... 4)   '

    def test_bracket_formatter_wide_positions(self):
        item = Item(Sequence.from_text('ACGT'), 1509, 1541)
        assert bracket_formatter(item) == '[1509 ... ACGT ... 1541)'
        assert bracket_formatter(item, width=7) == '  [1509 ... ACGT ... 1541)  '

    def test_center(self):
        assert center('Score 3', 20) == ' ' * 7 + 'Score 3'
        assert center('a long text', 2) == 'a long text'

    def test_format_match(self):
        match = Match(Item(Sequence.from_text('ACGT'), 1, 4), Item(Sequence.from_text('ACGT'), 11, 14), 4,
                      formatter=bracket_formatter)
        needle, haystack, score = format_match(match).split('\n')
        assert needle == '   [1 ... ACGT ... 4)   '
        assert haystack == '  [11 ... ACGT ... 14)  '
        assert score == ' ' * 9 + 'Score 4'
