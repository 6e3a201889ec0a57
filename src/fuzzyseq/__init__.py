"""
Fuzzy local alignment of a short needle sequence within a long haystack sequence.

Examples:
    >>> from fuzzyseq import Sequence, FuzzyQuery, ScoreModel
    >>> query = FuzzyQuery(Sequence.from_text('ttATGGCTAGCaa'), Sequence.from_text('ATGGCTAGC'))
    >>> query.configure(ScoreModel.CONTINUITY, 1)
    >>> [m.score for m in query.search()]
    [9]
"""


# Exceptions and Warnings ----------------------------------------------------------------------------------------------
class FuzzyseqWarning(Warning): pass
class DependencyWarning(FuzzyseqWarning): pass


# Exports --------------------------------------------------------------------------------------------------------------
from fuzzyseq.core.alphabet import Alphabet, AlphabetError
from fuzzyseq.containers.seq import Sequence, SequenceCursor, SequenceError
from fuzzyseq.containers.match import Item, Match
from fuzzyseq.engines.fuzzy import (
    ScoreModel, AlignmentMatrix, Node, FuzzyQuery, QueryState, fuzzy_search,
    AlignmentError, ConfigurationError, EmptySequenceWarning, SearchCancelledWarning
)

__all__ = [
    'FuzzyseqWarning', 'DependencyWarning', 'Alphabet', 'AlphabetError', 'Sequence', 'SequenceCursor',
    'SequenceError', 'Item', 'Match', 'ScoreModel', 'AlignmentMatrix', 'Node', 'FuzzyQuery', 'QueryState',
    'fuzzy_search', 'AlignmentError', 'ConfigurationError', 'EmptySequenceWarning', 'SearchCancelledWarning'
]
