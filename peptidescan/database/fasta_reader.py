"""FASTA file reading and the ordered protein database.

Lightweight FASTA parser for the three database tiers. Supports:
- Plain FASTA (.fa, .fasta)
- Gzip-compressed FASTA (.fa.gz, .fasta.gz), detected by extension
- Accession = first whitespace-delimited token of the header

Design principles:
1. Proteins keep FASTA order (first containing protein wins during search)
2. Flat ord() storage so Numba kernels can scan all sequences
3. Thread-safe (read-only after construction)
"""

import gzip
import logging
import zlib
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence, Tuple, Union

import numpy as np

from ..constants import FASTA_EXTENSIONS, GZIP_EXTENSION
from ..exceptions import DatabaseFormatError
from ..records import ProteinRecord

logger = logging.getLogger(__name__)


def is_fasta_path(path: Union[str, Path]) -> bool:
    """Check whether a path carries a FASTA or FASTA.GZ extension.

    Examples
    --------
    >>> is_fasta_path("uniprot.fasta.gz")
    True
    >>> is_fasta_path("psm.csv")
    False
    """
    name = Path(path).name.lower()
    if name.endswith(GZIP_EXTENSION):
        name = name[: -len(GZIP_EXTENSION)]
    return name.endswith(FASTA_EXTENSIONS)


def parse_accession(header: str) -> str:
    """Extract the accession from a FASTA header.

    Parameters
    ----------
    header : str
        Header line, with or without the leading '>'

    Returns
    -------
    accession : str
        First whitespace-delimited token ('' for an empty header)

    Examples
    --------
    >>> parse_accession(">sp|P12345|NAME_HUMAN Some protein")
    'sp|P12345|NAME_HUMAN'

    >>> parse_accession("ENST00000331789 chr1")
    'ENST00000331789'
    """
    tokens = header.lstrip(">").split()
    return tokens[0] if tokens else ""


def encode_sequence_to_ord(sequence: str) -> np.ndarray:
    """Encode a sequence to a uint8 ord() array for Numba processing.

    Non-ASCII characters become '?' so every character keeps one byte.

    Examples
    --------
    >>> encode_sequence_to_ord("PEPTIDE")
    array([80, 69, 80, 84, 73, 68, 69], dtype=uint8)
    """
    return np.frombuffer(
        sequence.encode("ascii", errors="replace"), dtype=np.uint8
    ).copy()


def _open_fasta(fasta_path: Path):
    if fasta_path.name.lower().endswith(GZIP_EXTENSION):
        return gzip.open(fasta_path, "rt", encoding="ascii", errors="replace")
    return open(fasta_path, encoding="ascii", errors="replace")


def read_fasta(
    fasta_path: Union[str, Path],
    min_length: int = 0,
) -> Iterator[ProteinRecord]:
    """Stream protein records from a FASTA or FASTA.GZ file.

    Parameters
    ----------
    fasta_path : str or Path
        Path to the database file
    min_length : int
        Minimum protein length (default: 0, no filter)

    Yields
    ------
    ProteinRecord
        Records in file order

    Raises
    ------
    FileNotFoundError
        The file does not exist
    DatabaseFormatError
        Unrecognized extension, broken gzip stream, or sequence data before
        the first header
    """
    fasta_path = Path(fasta_path)

    if not is_fasta_path(fasta_path):
        raise DatabaseFormatError(
            f"{fasta_path} is not a .fa, .fasta, .fa.gz or .fasta.gz file"
        )
    if not fasta_path.exists():
        raise FileNotFoundError(f"FASTA file not found: {fasta_path}")

    current_accession = None
    current_seq = []

    try:
        with _open_fasta(fasta_path) as f:
            for line_number, line in enumerate(f, start=1):
                if line.startswith(">"):
                    if current_accession is not None:
                        sequence = "".join(current_seq)
                        if len(sequence) >= min_length:
                            yield ProteinRecord(current_accession, sequence)

                    current_accession = parse_accession(line)
                    current_seq = []
                else:
                    stripped = line.strip()
                    if not stripped:
                        continue
                    if current_accession is None:
                        raise DatabaseFormatError(
                            f"{fasta_path.name}:{line_number}: sequence data before first header"
                        )
                    current_seq.append(stripped)
    except (gzip.BadGzipFile, EOFError, zlib.error) as e:
        raise DatabaseFormatError(f"{fasta_path.name} is not a valid gzip file: {e}") from e

    # Last record has no following header
    if current_accession is not None:
        sequence = "".join(current_seq)
        if len(sequence) >= min_length:
            yield ProteinRecord(current_accession, sequence)


class ProteinDatabase:
    """Ordered protein collection with flat ord() storage.

    Attributes
    ----------
    records : Tuple[ProteinRecord, ...]
        Proteins in FASTA order
    flat : np.ndarray (uint8)
        All sequences concatenated
    starts : np.ndarray (int64)
        Start of each protein in ``flat``
    lengths : np.ndarray (int64)
        Length of each protein
    name : str
        Label used in log messages

    Examples
    --------
    >>> db = ProteinDatabase([ProteinRecord("P1", "MKTAYIAKQRQISFVK")])
    >>> db.index_of("P1")
    0
    """

    def __init__(self, records: Sequence[ProteinRecord], name: str = ""):
        self.records = tuple(records)
        self.name = name
        self.n_proteins = len(self.records)

        self.lengths = np.array(
            [len(record.sequence) for record in self.records], dtype=np.int64
        )
        self.starts = np.zeros(self.n_proteins, dtype=np.int64)
        if self.n_proteins > 0:
            self.starts[1:] = self.lengths[:-1].cumsum()

        self.flat = encode_sequence_to_ord(
            "".join(record.sequence for record in self.records)
        )

        # First record wins for duplicated accessions
        self._accession_index: Dict[str, int] = {}
        for idx, record in enumerate(self.records):
            self._accession_index.setdefault(record.accession, idx)

    @classmethod
    def from_fasta(
        cls,
        fasta_path: Union[str, Path],
        min_length: int = 0,
    ) -> "ProteinDatabase":
        """Load a database from a FASTA or FASTA.GZ file."""
        fasta_path = Path(fasta_path)
        logger.info(f"Loading database proteins from {fasta_path}")
        db = cls(list(read_fasta(fasta_path, min_length=min_length)), name=fasta_path.name)
        logger.info(f"✓ Loaded {len(db):,} proteins from {fasta_path.name}")
        return db

    def index_of(self, accession: str) -> Optional[int]:
        """Position of the first protein with this accession, or None."""
        return self._accession_index.get(accession)

    def get_flat_arrays(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Extract flat arrays for Numba functions.

        Returns
        -------
        flat : np.ndarray (uint8)
        starts : np.ndarray (int64)
        lengths : np.ndarray (int64)
        """
        return self.flat, self.starts, self.lengths

    @property
    def accessions(self) -> List[str]:
        return [record.accession for record in self.records]

    def __len__(self) -> int:
        return self.n_proteins

    def __iter__(self) -> Iterator[ProteinRecord]:
        return iter(self.records)

    def __getitem__(self, idx: int) -> ProteinRecord:
        return self.records[idx]

    def __repr__(self) -> str:
        return (
            f"ProteinDatabase(name={self.name!r}, n_proteins={self.n_proteins:,}, "
            f"residues={int(self.lengths.sum()):,})"
        )


def load_fasta_database(
    fasta_path: Union[str, Path],
    min_length: int = 0,
) -> ProteinDatabase:
    """Load a FASTA or FASTA.GZ file into an ordered ProteinDatabase.

    Parameters
    ----------
    fasta_path : str or Path
        Path to the database
    min_length : int
        Minimum protein length

    Returns
    -------
    db : ProteinDatabase
        Read-only database, safe to share across worker threads
    """
    return ProteinDatabase.from_fasta(fasta_path, min_length=min_length)
