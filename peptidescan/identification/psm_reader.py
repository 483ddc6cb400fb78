"""PSM CSV reading.

Parses "DB search psm.csv" style exports into Identification records.

Columns are located by keyword, case-insensitively:
- ``peptide``   (exact name)     → peptide sequence (required)
- ``accession`` (substring)      → protein accessions, ``:`` separated
- ``scan``      (substring)      → scan number, optionally ``F<n>:<scan>``
- ``-10lgp``    (substring)      → score

When several columns match a keyword the last one wins. A column that is
not found keeps index 0, i.e. silently reads the first column. This mirrors
the long-standing behaviour of the tool's column detection; it is logged as
a warning and reported through ``PsmColumns.missing`` rather than treated as
an error, because existing exports rely on it.

Repeated sequences within one file are folded into a single Identification
(exact string equality, modification annotations included) whose scan keys
and scores list every PSM in file order.
"""

import csv
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

from ..constants import (
    ACCESSION_KEYWORD,
    ACCESSION_SEPARATOR,
    DECOY_MARKER,
    PROGRESS_INTERVAL,
    SCAN_KEYWORD,
    SCORE_KEYWORD,
    SEQUENCE_COLUMN,
    TRANSCRIPT_PATTERN,
)
from ..exceptions import FileFormatError
from ..modifications import is_modified
from ..records import Identification, make_scan_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PsmColumns:
    """Column indices found in a PSM header.

    Attributes
    ----------
    sequence, accession, scan, score : int
        Column indices
    missing : Tuple[str, ...]
        Columns that were not found and defaulted to index 0
    """

    sequence: int
    accession: int = 0
    scan: int = 0
    score: int = 0
    missing: Tuple[str, ...] = ()


def detect_columns(header: Sequence[str]) -> PsmColumns:
    """Locate sequence, accession, scan and score columns by keyword.

    Parameters
    ----------
    header : Sequence[str]
        Header cells

    Returns
    -------
    PsmColumns
        Column indices; undetected accession/scan/score columns are 0

    Raises
    ------
    FileFormatError
        No column is named ``peptide``

    Examples
    --------
    >>> cols = detect_columns(["Peptide", "-10lgP", "Scan", "Accession"])
    >>> (cols.sequence, cols.score, cols.scan, cols.accession)
    (0, 1, 2, 3)
    """
    found: Dict[str, Optional[int]] = {
        "sequence": None,
        "accession": None,
        "scan": None,
        "score": None,
    }

    for i, cell in enumerate(header):
        name = cell.strip().lower()
        if name == SEQUENCE_COLUMN:
            found["sequence"] = i
        elif ACCESSION_KEYWORD in name:
            found["accession"] = i
        elif SCAN_KEYWORD in name:
            found["scan"] = i
        elif SCORE_KEYWORD in name:
            found["score"] = i

    if found["sequence"] is None:
        raise FileFormatError(
            f"PSM header has no '{SEQUENCE_COLUMN}' column: {list(header)}"
        )

    missing = tuple(key for key, idx in found.items() if idx is None)
    if missing:
        # Undetected columns fall back to the first column
        logger.warning(
            f"PSM header lacks {', '.join(missing)} column(s); using column 0 instead"
        )

    return PsmColumns(
        sequence=found["sequence"],
        accession=found["accession"] or 0,
        scan=found["scan"] or 0,
        score=found["score"] or 0,
        missing=missing,
    )


def is_decoy(accession: str) -> bool:
    """Decoy accessions carry 'DECOY' in any case (e.g. DECOY_P12345)."""
    return DECOY_MARKER in accession.upper()


def is_transcript(accession: str) -> bool:
    """Check for a bare Ensembl transcript id (ENST00000331789)."""
    return TRANSCRIPT_PATTERN.fullmatch(accession) is not None


def filter_accessions(
    accession_field: str,
    exclude_transcripts: bool = False,
) -> List[str]:
    """Split an accession cell and drop decoys (and optionally transcripts).

    Examples
    --------
    >>> filter_accessions("DECOY_P1:P2")
    ['P2']
    >>> filter_accessions("ENST00000331789:P2", exclude_transcripts=True)
    ['P2']
    """
    if ACCESSION_SEPARATOR in accession_field:
        accessions = accession_field.split(ACCESSION_SEPARATOR)
    else:
        accessions = [accession_field]

    kept = []
    for accession in accessions:
        if is_decoy(accession):
            continue
        if exclude_transcripts and is_transcript(accession):
            continue
        kept.append(accession)
    return kept


def _cell(row: List[str], idx: int, column: str, path: Path, line_number: int) -> str:
    try:
        return row[idx]
    except IndexError:
        raise FileFormatError(
            f"{path.name}:{line_number}: row has no {column} column (index {idx})"
        ) from None


def read_identifications(
    psm_path: Union[str, Path],
    sample: str = "",
    dataset: str = "",
    method: str = "",
    exclude_transcripts: bool = False,
) -> List[Identification]:
    """Read a PSM CSV file into deduplicated identifications.

    Parameters
    ----------
    psm_path : str or Path
        Path to the PSM CSV file
    sample : str
        Sample name; substituted as file number for bare scan numbers.
        Defaults to the name of the folder holding the file.
    dataset : str
        Dataset name stored on each identification
    method : str
        Method name stored on each identification
    exclude_transcripts : bool
        Also drop accessions that are bare Ensembl transcript ids

    Returns
    -------
    identifications : List[Identification]
        One per distinct sequence, in order of first appearance

    Raises
    ------
    FileFormatError
        Empty file, no peptide column, short row or non-numeric score
    """
    psm_path = Path(psm_path)
    sample = sample or psm_path.parent.name

    logger.info(f"Collecting peptides from {sample} {dataset} ({psm_path.name})...")

    identifications: Dict[str, Identification] = {}
    n_rows = 0
    n_skipped = 0

    with open(psm_path, newline="", encoding="utf-8-sig") as f:
        reader = csv.reader(f)
        header = next(reader, None)
        if not header:
            raise FileFormatError(f"{psm_path} is empty")

        columns = detect_columns(header)

        for line_number, row in enumerate(reader, start=2):
            if not row:
                continue
            n_rows += 1

            # Some exports leave trailing accession cells out entirely
            if len(row) > columns.accession:
                accessions = filter_accessions(
                    row[columns.accession], exclude_transcripts=exclude_transcripts
                )
            else:
                accessions = []

            if not accessions:
                n_skipped += 1
                continue

            sequence = _cell(row, columns.sequence, "peptide", psm_path, line_number)
            scan = _cell(row, columns.scan, "scan", psm_path, line_number)
            score_text = _cell(row, columns.score, "score", psm_path, line_number)
            try:
                score = float(score_text)
            except ValueError:
                raise FileFormatError(
                    f"{psm_path.name}:{line_number}: score {score_text!r} is not a number"
                ) from None

            scan_key = make_scan_key(scan, sample)
            existing = identifications.get(sequence)
            if existing is None:
                identifications[sequence] = Identification(
                    sequence=sequence,
                    scan_keys=[scan_key],
                    scores=[score],
                    sample=sample,
                    dataset=dataset,
                    method=method,
                    accessions=accessions,
                )
            else:
                existing.add_observation(scan_key, score)
                for accession in accessions:
                    if accession not in existing.accessions:
                        existing.accessions.append(accession)

            if n_rows % PROGRESS_INTERVAL == 0:
                logger.debug(f"Read {n_rows:,} PSMs from {psm_path.name}")

    result = list(identifications.values())
    n_modified = sum(1 for ident in result if is_modified(ident.sequence))
    logger.info(
        f"✓ Collected {len(result):,} unique peptide sequences from {n_rows:,} PSMs "
        f"({n_skipped:,} decoy/empty rows skipped, {n_modified:,} modified)"
    )
    return result
