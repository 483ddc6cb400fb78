"""Peptide-to-protein substring matching.

Decides for every identified peptide whether its bare sequence (modification
annotations stripped) occurs in any protein of a database. The search scans
proteins in FASTA order and stops at the first containing protein, so
results depend on database order; ProteinDatabase keeps that order fixed.

Key Features
------------
- Numba kernels over flat ord() arrays, compiled with nogil=True so shards
  run truly parallel in the worker pool
- Identification lists are split into contiguous disjoint shards; every
  worker returns a private MatchResult merged in shard order
- Individual-database variant reports 1-based (start, end) positions of the
  peptide in each protein accession listed for it

Performance
-----------
O(n_peptides * n_residues * peptide_length) worst case. Matching is done
once per PSM file, so database size dominates.

Examples
--------
>>> db = ProteinDatabase([ProteinRecord("P1", "MKTAYIAKQRQISFVK")])
>>> result = match_identifications([Identification("AYIAK(+15.99)")], db)
>>> [ident.sequence for ident in result.matched]
['AYIAK(+15.99)']
"""

from __future__ import annotations

import logging
from dataclasses import replace
from functools import partial
from typing import List, Optional, Sequence, Tuple

import numba
import numpy as np

from ..database.fasta_reader import ProteinDatabase, encode_sequence_to_ord
from ..records import Identification, MatchResult
from ..workers import WorkerPool

logger = logging.getLogger(__name__)


# =============================================================================
# Numba-Accelerated Substring Search
# =============================================================================

@numba.njit(nogil=True, cache=True)
def find_subsequence_numba(
    flat: np.ndarray,
    start: int,
    length: int,
    query: np.ndarray,
) -> int:
    """Offset of the first occurrence of ``query`` in one stored sequence.

    Parameters
    ----------
    flat : np.ndarray (uint8)
        Flat sequence storage
    start : int
        Start of the sequence in ``flat``
    length : int
        Length of the sequence
    query : np.ndarray (uint8)
        Encoded peptide

    Returns
    -------
    offset : int
        0-based offset within the sequence, -1 if absent. An empty query
        is found at offset 0.
    """
    m = query.shape[0]
    if m > length:
        return -1

    for i in range(length - m + 1):
        j = 0
        while j < m and flat[start + i + j] == query[j]:
            j += 1
        if j == m:
            return i

    return -1


@numba.njit(nogil=True, cache=True)
def find_first_match_numba(
    flat: np.ndarray,
    starts: np.ndarray,
    lengths: np.ndarray,
    query: np.ndarray,
) -> Tuple[int, int]:
    """First protein (in storage order) containing ``query``.

    Returns
    -------
    protein_idx : int
        Index of the first containing protein, -1 if none
    offset : int
        Offset of the query in that protein, -1 if none
    """
    for p in range(starts.shape[0]):
        offset = find_subsequence_numba(flat, starts[p], lengths[p], query)
        if offset >= 0:
            return p, offset
    return -1, -1


@numba.njit(nogil=True, cache=True)
def match_batch_numba(
    flat: np.ndarray,
    starts: np.ndarray,
    lengths: np.ndarray,
    queries_flat: np.ndarray,
    query_starts: np.ndarray,
    query_lengths: np.ndarray,
) -> Tuple[np.ndarray, np.ndarray]:
    """Run find_first_match_numba for a batch of flat-stored queries.

    Returns
    -------
    protein_idx : np.ndarray (int64)
        First containing protein per query (-1 = no match)
    offsets : np.ndarray (int64)
        Offset within that protein (-1 = no match)
    """
    n = query_starts.shape[0]
    protein_idx = np.full(n, -1, dtype=np.int64)
    offsets = np.full(n, -1, dtype=np.int64)

    for q in range(n):
        query = queries_flat[query_starts[q]:query_starts[q] + query_lengths[q]]
        p, offset = find_first_match_numba(flat, starts, lengths, query)
        protein_idx[q] = p
        offsets[q] = offset

    return protein_idx, offsets


# =============================================================================
# Python Wrappers
# =============================================================================

def encode_queries(
    sequences: Sequence[str],
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Encode peptide sequences into flat ord() storage.

    Returns
    -------
    queries_flat : np.ndarray (uint8)
    query_starts : np.ndarray (int64)
    query_lengths : np.ndarray (int64)
    """
    query_lengths = np.array([len(seq) for seq in sequences], dtype=np.int64)
    query_starts = np.zeros(len(sequences), dtype=np.int64)
    if len(sequences) > 0:
        query_starts[1:] = query_lengths[:-1].cumsum()
    queries_flat = encode_sequence_to_ord("".join(sequences))
    return queries_flat, query_starts, query_lengths


def find_first_match(sequence: str, database: ProteinDatabase) -> Tuple[int, int]:
    """First protein containing a bare sequence.

    Examples
    --------
    >>> db = ProteinDatabase([ProteinRecord("P1", "MKTAYIAKQRQISFVK")])
    >>> find_first_match("AYIAK", db)
    (0, 3)
    """
    flat, starts, lengths = database.get_flat_arrays()
    p, offset = find_first_match_numba(
        flat, starts, lengths, encode_sequence_to_ord(sequence)
    )
    return int(p), int(offset)


def locate_in_accessions(
    sequence: str,
    accessions: Sequence[str],
    database: ProteinDatabase,
) -> List[Optional[Tuple[int, int]]]:
    """1-based inclusive (start, end) of ``sequence`` per accession.

    Parameters
    ----------
    sequence : str
        Bare peptide sequence
    accessions : Sequence[str]
        Accessions reported for the peptide
    database : ProteinDatabase
        Database to look the accessions up in

    Returns
    -------
    positions : List[Optional[Tuple[int, int]]]
        Position of the first occurrence, or None when the accession is not
        in the database or its protein does not contain the sequence

    Examples
    --------
    >>> db = ProteinDatabase([ProteinRecord("P1", "MKTAYIAKQRQISFVK")])
    >>> locate_in_accessions("AYIAK", ["P1", "P9"], db)
    [(4, 8), None]
    """
    flat, starts, lengths = database.get_flat_arrays()
    query = encode_sequence_to_ord(sequence)

    positions: List[Optional[Tuple[int, int]]] = []
    for accession in accessions:
        idx = database.index_of(accession)
        if idx is None:
            positions.append(None)
            continue
        offset = find_subsequence_numba(flat, starts[idx], lengths[idx], query)
        if offset < 0:
            positions.append(None)
        else:
            positions.append((int(offset) + 1, int(offset) + len(sequence)))
    return positions


def match_identifications(
    identifications: Sequence[Identification],
    database: ProteinDatabase,
    with_positions: bool = False,
) -> MatchResult:
    """Partition identifications by substring membership in a database.

    Parameters
    ----------
    identifications : Sequence[Identification]
        Identifications to test; not modified
    database : ProteinDatabase
        Proteins searched in FASTA order
    with_positions : bool
        Attach per-accession positions to matched identifications
        (individual database variant)

    Returns
    -------
    MatchResult
        ``matched``: some protein contains the stripped sequence;
        ``unmatched``: no protein does. Input order is kept in both.
    """
    stripped = [ident.stripped_sequence for ident in identifications]
    queries_flat, query_starts, query_lengths = encode_queries(stripped)

    flat, starts, lengths = database.get_flat_arrays()
    protein_idx, _ = match_batch_numba(
        flat, starts, lengths, queries_flat, query_starts, query_lengths
    )

    matched: List[Identification] = []
    unmatched: List[Identification] = []
    for ident, sequence, hit in zip(identifications, stripped, protein_idx):
        if hit < 0:
            unmatched.append(ident)
        elif with_positions:
            matched.append(
                replace(
                    ident,
                    positions=locate_in_accessions(sequence, ident.accessions, database),
                )
            )
        else:
            matched.append(ident)

    return MatchResult(matched, unmatched)


def split_into_shards(
    identifications: Sequence[Identification],
    n_shards: int,
) -> List[List[Identification]]:
    """Split into ``n_shards`` contiguous, disjoint, possibly empty slices.

    Examples
    --------
    >>> [len(s) for s in split_into_shards([Identification("A")] * 5, 2)]
    [3, 2]
    """
    return [
        [identifications[i] for i in chunk]
        for chunk in np.array_split(np.arange(len(identifications)), n_shards)
    ]


def merge_results(results: Sequence[MatchResult]) -> MatchResult:
    """Concatenate per-shard results in shard order."""
    matched: List[Identification] = []
    unmatched: List[Identification] = []
    for result in results:
        matched.extend(result.matched)
        unmatched.extend(result.unmatched)
    return MatchResult(matched, unmatched)


class SequenceMatcher:
    """Shards matching work over a WorkerPool.

    Parameters
    ----------
    pool : WorkerPool
        Running pool; one shard per worker thread

    Examples
    --------
    >>> with WorkerPool(threads=2) as pool:
    ...     result = SequenceMatcher(pool).match(identifications, uniprot_db)
    """

    def __init__(self, pool: WorkerPool):
        self.pool = pool

    def match(
        self,
        identifications: Sequence[Identification],
        database: ProteinDatabase,
        with_positions: bool = False,
    ) -> MatchResult:
        """Match identifications against a database using all workers.

        Raises
        ------
        MatchingInterrupted
            Waiting for the workers was interrupted
        MatchingTimeout
            Workers did not finish within the pool timeout
        """
        label = database.name or "protein"
        logger.info(
            f"Using {self.pool.threads} threads to match {len(identifications):,} "
            f"peptides to the {label} database"
        )

        shards = split_into_shards(identifications, self.pool.threads)
        results = self.pool.run_all(
            partial(match_identifications, database=database, with_positions=with_positions),
            shards,
        )
        result = merge_results(results)

        logger.info(
            f"✓ {len(result.matched):,} peptides matched to the {label} database, "
            f"{len(result.unmatched):,} did not match"
        )
        return result

    def match_individual(
        self,
        identifications: Sequence[Identification],
        database: ProteinDatabase,
    ) -> MatchResult:
        """Match against a per-sample database and attach positions."""
        return self.match(identifications, database, with_positions=True)
