import pytest
from fuzzyseq.core.alphabet import Alphabet
from fuzzyseq.containers.seq import Sequence, SequenceCursor, SequenceError


class TestSequenceInit:
    def test_empty(self):
        seq = Sequence()
        assert len(seq) == 0
        assert not seq
        assert str(seq) == ''
        assert seq.alphabet is Alphabet.DNA5

    def test_from_text_canonicalises(self):
        # Case-normalised, unknown characters replaced by the fallback symbol
        assert Sequence.from_text('aCgT?-n').to_string() == 'ACGTN-N'

    def test_from_bytes(self):
        assert bytes(Sequence.from_text(b'acgt')) == b'ACGT'

    def test_other_alphabet(self):
        seq = Sequence.from_text('acgut', Alphabet.RNA5)
        assert str(seq) == 'ACGUN'

    def test_repr_long(self):
        assert repr(Sequence.from_text('A' * 10 + 'C' * 10)) == 'AAAAAAA...CCCCCCC'


class TestSequenceAccess:
    def test_getitem(self):
        seq = Sequence.from_text('ACGT')
        assert seq[0] == 'A'
        assert seq[3] == 'T'
        assert seq[-1] == 'T'
        assert seq[-4] == 'A'

    def test_getitem_out_of_range(self):
        seq = Sequence.from_text('ACGT')
        with pytest.raises(IndexError, match="out of range"):
            seq[4]
        with pytest.raises(IndexError, match="out of range"):
            seq[-5]
        with pytest.raises(IndexError, match="out of range"):
            Sequence()[0]

    def test_getitem_invalid_type(self):
        with pytest.raises(TypeError):
            Sequence.from_text('ACGT')['a']

    def test_slice(self):
        sub = Sequence.from_text('ACGT')[1:3]
        assert isinstance(sub, Sequence)
        assert sub == 'CG'

    def test_setitem(self):
        seq = Sequence.from_text('ACGT')
        seq[0] = 'g'
        seq[-1] = '?'
        assert seq == 'GCGN'
        with pytest.raises(IndexError):
            seq[10] = 'A'

    def test_encoded_is_read_only(self):
        seq = Sequence.from_text('ACGT')
        with pytest.raises(ValueError):
            seq.encoded[0] = 65

    def test_iteration(self):
        seq = Sequence.from_text('ACGT')
        assert list(seq) == ['A', 'C', 'G', 'T']
        assert list(reversed(seq)) == ['T', 'G', 'C', 'A']


class TestSequenceAppend:
    def test_append_chain(self):
        seq = Sequence().append('A').append('cg').append(ord('t'))
        assert seq == 'ACGT'

    def test_append_sequence(self):
        seq = Sequence.from_text('AC')
        seq += Sequence.from_text('GT')
        assert seq == 'ACGT'

    def test_append_grows(self):
        seq = Sequence()
        for _ in range(100): seq.append('A')
        assert len(seq) == 100
        assert str(seq) == 'A' * 100

    def test_add_returns_new(self):
        seq = Sequence.from_text('AC')
        combined = seq + 'GT'
        assert combined == 'ACGT'
        assert seq == 'AC'

    def test_append_other_alphabet(self):
        with pytest.raises(SequenceError, match="different alphabet"):
            Sequence.from_text('AC').append(Sequence.from_text('GU', Alphabet.RNA5))

    def test_append_invalid_type(self):
        with pytest.raises(TypeError):
            Sequence().append(1.5)


class TestSequenceReverse:
    @pytest.mark.parametrize('length', [0, 1, 2, 3, 4, 7, 8])
    def test_reverse_is_involution(self, length):
        text = 'ACGTTGCA'[:length]
        seq = Sequence.from_text(text)
        seq.reverse()
        assert str(seq) == text[::-1]
        seq.reverse()
        assert str(seq) == text

    def test_reverse_after_append(self):
        seq = Sequence.from_text('AC')
        seq.append('GTT')
        seq.reverse()
        assert seq == 'TTGCA'


class TestSequenceCopies:
    def test_copy_is_independent(self):
        seq = Sequence.from_text('ACGT')
        copied = seq.copy()
        copied[0] = 'T'
        assert seq[0] == 'A'

    def test_view_aliases_storage(self):
        seq = Sequence.from_text('ACGT')
        view = seq.view()
        view[0] = 'T'
        assert seq[0] == 'T'

    def test_equality(self):
        assert Sequence.from_text('acgt') == 'ACGT'
        assert Sequence.from_text('acgt') == b'acgt'
        assert Sequence.from_text('ACGT') == Sequence.from_text('ACGT')
        assert Sequence.from_text('ACGT') != Sequence.from_text('ACGA')
        assert Sequence.from_text('ACG', Alphabet.DNA5) != Sequence.from_text('ACG', Alphabet.RNA5)


class TestSequenceCursor:
    def test_begin_end(self):
        seq = Sequence.from_text('ACGT')
        assert seq.begin().value == 'A'
        assert seq.end().value == 'T'
        assert seq.begin() + 3 == seq.end()
        assert seq.end() - seq.begin() == 3
        assert (seq.end() - 1).value == 'G'

    def test_in_place_moves(self):
        cursor = Sequence.from_text('ACGT').begin()
        assert cursor.advance().value == 'C'
        cursor += 2
        assert cursor.value == 'T'
        cursor -= 1
        assert cursor.value == 'G'
        assert cursor.retreat(2).position == 0

    def test_forward_then_backward_returns_to_origin(self):
        seq = Sequence.from_text('ACGTA')
        cursor, forward = seq.begin(), []
        while cursor != seq.end():
            forward.append(cursor.value)
            cursor.advance()
        forward.append(cursor.value)
        backward = []
        while cursor != seq.begin():
            backward.append(cursor.value)
            cursor.retreat()
        backward.append(cursor.value)
        assert ''.join(forward) == 'ACGTA'
        assert ''.join(backward) == 'ATGCA'
        assert cursor == seq.begin()

    def test_write_through(self):
        seq = Sequence.from_text('ACGT')
        cursor = seq.begin() + 1
        cursor.value = 'a'
        assert seq == 'AAGT'
        cursor.value = '?'
        assert seq == 'ANGT'

    def test_dereference_out_of_range(self):
        seq = Sequence.from_text('ACGT')
        with pytest.raises(IndexError, match="out of range"):
            (seq.end() + 1).value
        with pytest.raises(IndexError, match="out of range"):
            Sequence().begin().value

    def test_empty_begin_equals_end(self):
        seq = Sequence()
        assert seq.begin() == seq.end()

    def test_cursors_of_different_sequences(self):
        a, b = Sequence.from_text('AC'), Sequence.from_text('AC')
        assert a.begin() != b.begin()
        with pytest.raises(SequenceError):
            a.end() - b.begin()

    def test_properties(self):
        seq = Sequence.from_text('ACGT')
        cursor = SequenceCursor(seq, 2)
        assert cursor.sequence is seq
        assert cursor.position == 2
        assert cursor.value == 'G'
