"""Peptide identification input (PSM CSV files)."""

from .psm_reader import (
    PsmColumns,
    detect_columns,
    filter_accessions,
    is_decoy,
    is_transcript,
    read_identifications,
)

__all__ = [
    'PsmColumns',
    'detect_columns',
    'filter_accessions',
    'is_decoy',
    'is_transcript',
    'read_identifications',
]
