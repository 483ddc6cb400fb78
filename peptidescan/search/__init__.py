"""Substring search of peptides in protein databases.

Core algorithms:
1. First-hit substring scan over flat ord() protein storage (Numba, nogil)
2. Match/unmatch partition of identification lists
3. Sharded matching over a fixed-size worker pool
4. Per-accession start/end positions for individual databases
"""

from .sequence_matching import (
    find_subsequence_numba,
    find_first_match_numba,
    match_batch_numba,
    encode_queries,
    find_first_match,
    locate_in_accessions,
    match_identifications,
    split_into_shards,
    merge_results,
    SequenceMatcher,
)

__all__ = [
    # Numba kernels
    'find_subsequence_numba',
    'find_first_match_numba',
    'match_batch_numba',
    # Matching
    'encode_queries',
    'find_first_match',
    'locate_in_accessions',
    'match_identifications',
    'split_into_shards',
    'merge_results',
    'SequenceMatcher',
]
