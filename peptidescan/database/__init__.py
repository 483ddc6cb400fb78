"""Protein sequence databases.

One ProteinDatabase is built per FASTA source: the UniProt (primary)
database, the combined multi-sample database and one individual database
per sample. Proteins keep their FASTA order so that "first containing
protein" is well defined during substring search.
"""

from .fasta_reader import (
    ProteinDatabase,
    load_fasta_database,
    read_fasta,
    parse_accession,
    is_fasta_path,
    encode_sequence_to_ord,
)

__all__ = [
    'ProteinDatabase',
    'load_fasta_database',
    'read_fasta',
    'parse_accession',
    'is_fasta_path',
    'encode_sequence_to_ord',
]
