"""
Module for loading needle and haystack sequences from plain or compressed FASTA and raw text files.
"""


# Exceptions and Warnings ----------------------------------------------------------------------------------------------
class SeqFileError(Exception):
    """Exception raised for errors in sequence file processing."""


from fuzzyseq.io.open import Xopen
from fuzzyseq.io.seq import FastaReader, read_sequence

__all__ = ['SeqFileError', 'Xopen', 'FastaReader', 'read_sequence']
