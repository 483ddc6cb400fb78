"""CSV output for matrices, the scan comparison table and peptide positions.

Every file is written to a temporary file next to its destination and moved
into place with ``os.replace`` once complete, so an aborted run never leaves
a half-written CSV behind.
"""

import csv
import logging
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

from ..constants import (
    PLACEHOLDER,
    POSITION_SEPARATOR,
    SCAN_COLUMN_SUFFIX,
    TIER_ORDER,
    VALUE_SEPARATOR,
)
from ..records import Identification, ScanRecord, format_score
from .builder import MatrixRow, SampleLayout

logger = logging.getLogger(__name__)


@contextmanager
def atomic_write(path: Union[str, Path]) -> Iterator[IO[str]]:
    """Open a text file that only appears at ``path`` when closed cleanly."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    handle = tempfile.NamedTemporaryFile(
        "w",
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
        delete=False,
        newline="",
        encoding="utf-8",
    )
    try:
        with handle:
            yield handle
        os.replace(handle.name, path)
    except BaseException:
        Path(handle.name).unlink(missing_ok=True)
        raise


# =============================================================================
# Peptide Matrix
# =============================================================================

def write_matrix_csv(
    rows: Iterable[MatrixRow],
    path: Union[str, Path],
    layout: SampleLayout,
) -> int:
    """Write a peptide matrix.

    Parameters
    ----------
    rows : Iterable[MatrixRow]
        Filled matrix rows
    path : str or Path
        Output file
    layout : SampleLayout
        Layout the rows were built with

    Returns
    -------
    n_rows : int
        Number of rows written (header excluded)
    """
    n_rows = 0
    with atomic_write(path) as f:
        writer = csv.writer(f)
        writer.writerow(layout.header())
        for row in rows:
            writer.writerow(row.cells())
            n_rows += 1

    logger.info(f"✓ Wrote {n_rows:,} peptides to {path}")
    return n_rows


def read_matrix_csv(path: Union[str, Path]) -> Tuple[List[str], List[MatrixRow]]:
    """Read a matrix written by write_matrix_csv.

    Returns
    -------
    header : List[str]
    rows : List[MatrixRow]
    """
    with open(path, newline="", encoding="utf-8") as f:
        reader = csv.reader(f)
        header = next(reader, [])
        rows = [
            MatrixRow(
                sequence=cells[0],
                datasets=cells[1].split(VALUE_SEPARATOR) if cells[1] else [],
                slots=cells[2:],
            )
            for cells in reader
            if cells
        ]
    return header, rows


def matrix_to_dataframe(rows: Iterable[MatrixRow], layout: SampleLayout):
    """Matrix as a pandas DataFrame with the CSV column names.

    Requires the optional ``pandas`` dependency.
    """
    import pandas as pd

    return pd.DataFrame([row.cells() for row in rows], columns=layout.header())


# =============================================================================
# Scan Comparison Table
# =============================================================================

def scan_table_header() -> List[str]:
    return (
        [SCAN_COLUMN_SUFFIX, "Method"]
        + [f"{tier} PSM sequences" for tier in TIER_ORDER]
        + [f"{tier} PSM -10lgP" for tier in TIER_ORDER]
    )


def _join_or_placeholder(values: List[str]) -> str:
    return VALUE_SEPARATOR.join(values) if values else PLACEHOLDER


def scan_table_cells(record: ScanRecord) -> List[str]:
    """One scan comparison row; empty sequence and score lists become '-'."""
    hits = [record.hits(tier) for tier in TIER_ORDER]
    return (
        [record.scan_key, record.method or PLACEHOLDER]
        + [_join_or_placeholder(h.sequences) for h in hits]
        + [_join_or_placeholder([format_score(s) for s in h.scores]) for h in hits]
    )


def write_scan_table_csv(
    scans: Mapping[str, ScanRecord],
    path: Union[str, Path],
) -> int:
    """Write reconciled scan records, one row per scan key.

    Returns
    -------
    n_rows : int
        Number of scan rows written
    """
    with atomic_write(path) as f:
        writer = csv.writer(f)
        writer.writerow(scan_table_header())
        for record in scans.values():
            writer.writerow(scan_table_cells(record))

    logger.info(f"✓ Wrote {len(scans):,} scan IDs to {path}")
    return len(scans)


# =============================================================================
# Individual Positions
# =============================================================================

POSITIONS_HEADER = ["Sequence", "Sample", "Dataset", "Accessions", "Positions"]


def format_position(position: Optional[Tuple[int, int]]) -> str:
    """``start_end`` of a 1-based inclusive position, '-' when unknown.

    Examples
    --------
    >>> format_position((4, 8))
    '4_8'
    >>> format_position(None)
    '-'
    """
    if position is None:
        return PLACEHOLDER
    start, end = position
    return f"{start}{POSITION_SEPARATOR}{end}"


def positions_cells(ident: Identification) -> List[str]:
    """One positions row; positions line up with the accessions."""
    return [
        ident.sequence,
        ident.sample,
        ident.dataset,
        _join_or_placeholder(ident.accessions),
        _join_or_placeholder([format_position(p) for p in ident.positions]),
    ]


def write_positions_csv(
    identifications: Iterable[Identification],
    path: Union[str, Path],
) -> int:
    """Write protein positions of individual database matches.

    One row per identification, in the order given.

    Returns
    -------
    n_rows : int
        Number of rows written
    """
    n_rows = 0
    with atomic_write(path) as f:
        writer = csv.writer(f)
        writer.writerow(POSITIONS_HEADER)
        for ident in identifications:
            writer.writerow(positions_cells(ident))
            n_rows += 1

    logger.info(f"✓ Wrote {n_rows:,} peptide positions to {path}")
    return n_rows
