"""Data records shared by the reader, matcher, reconciler and matrix builder.

Multi-valued fields (scan keys, scores, per-tier sequence lists) are kept as
typed, positionally paired lists. Pipe-joined strings only appear when rows
are written to CSV.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, Iterator, List, NamedTuple, Optional, Tuple

from .constants import DatasetTier, SCAN_KEY_SEPARATOR, TIER_ORDER
from .modifications import strip_modifications


@dataclass(frozen=True)
class ProteinRecord:
    """One FASTA entry."""

    accession: str
    sequence: str


@dataclass
class Identification:
    """A peptide sequence identified in one PSM file.

    Repeated PSMs of the same sequence within a file are folded into one
    identification; ``scan_keys[i]`` and ``scores[i]`` describe the i-th PSM.

    Attributes
    ----------
    sequence : str
        Peptide sequence as reported, including modification annotations
        such as ``M(+15.99)``
    scan_keys : List[str]
        Scan keys ``<fileNumber>:<scanNumber>`` in file order
    scores : List[float]
        -10lgP scores paired with ``scan_keys``
    sample : str
        Sample folder name (e.g. ``COPD3``)
    dataset : str
        Dataset folder name (e.g. ``commonRNAseq``)
    method : str
        Name of the folder holding the dataset (e.g. ``1D25``)
    accessions : List[str]
        Non-decoy protein accessions reported for the sequence
    tier : DatasetTier
        Database the identification was matched against
    positions : List[Optional[Tuple[int, int]]]
        1-based inclusive (start, end) per accession, filled by individual
        database matching; ``None`` where the accession does not contain
        the sequence
    """

    sequence: str
    scan_keys: List[str] = field(default_factory=list)
    scores: List[float] = field(default_factory=list)
    sample: str = ""
    dataset: str = ""
    method: str = ""
    accessions: List[str] = field(default_factory=list)
    tier: DatasetTier = DatasetTier.PRIMARY
    positions: List[Optional[Tuple[int, int]]] = field(default_factory=list)

    @property
    def scan_key(self) -> str:
        return self.scan_keys[0]

    @property
    def score(self) -> float:
        return self.scores[0]

    @property
    def stripped_sequence(self) -> str:
        return strip_modifications(self.sequence)

    def add_observation(self, scan_key: str, score: float) -> None:
        """Record one more PSM of this sequence."""
        self.scan_keys.append(scan_key)
        self.scores.append(score)

    def observations(self) -> Iterator[Tuple[str, float]]:
        return zip(self.scan_keys, self.scores)

    def with_tier(self, tier: DatasetTier) -> "Identification":
        """Copy tagged with another tier; list fields are not shared."""
        return replace(
            self,
            tier=tier,
            scan_keys=list(self.scan_keys),
            scores=list(self.scores),
            accessions=list(self.accessions),
            positions=list(self.positions),
        )


class MatchResult(NamedTuple):
    """Partition of an identification list against one protein database.

    Both lists keep the order of the input list.
    """

    matched: List[Identification]
    unmatched: List[Identification]


@dataclass
class TierHits:
    """Sequences and scores one tier assigned to a scan."""

    sequences: List[str] = field(default_factory=list)
    scores: List[float] = field(default_factory=list)

    def add(self, sequence: str, score: float) -> bool:
        """Append the pair unless the sequence is already present."""
        if sequence in self.sequences:
            return False
        self.sequences.append(sequence)
        self.scores.append(score)
        return True

    def pairs(self) -> Iterator[Tuple[str, float]]:
        return zip(self.sequences, self.scores)

    def __len__(self) -> int:
        return len(self.sequences)


@dataclass
class ScanRecord:
    """All sequences assigned to one scan key, split by dataset tier."""

    scan_key: str
    method: str = ""
    tiers: Dict[DatasetTier, TierHits] = field(
        default_factory=lambda: {tier: TierHits() for tier in TIER_ORDER}
    )

    def hits(self, tier: DatasetTier) -> TierHits:
        return self.tiers[tier]

    def add(self, tier: DatasetTier, sequence: str, score: float) -> bool:
        return self.tiers[tier].add(sequence, score)

    def copy(self) -> "ScanRecord":
        return ScanRecord(
            scan_key=self.scan_key,
            method=self.method,
            tiers={
                tier: TierHits(list(hits.sequences), list(hits.scores))
                for tier, hits in self.tiers.items()
            },
        )


def make_scan_key(scan: str, sample: str) -> str:
    """Build a ``<fileNumber>:<scanNumber>`` key.

    PEAKS reports scans as ``F3:1234`` when several raw files were searched
    together. A bare scan number gets the sample name as file number.

    Examples
    --------
    >>> make_scan_key("F3:1234", "COPD3")
    'F3:1234'
    >>> make_scan_key("1234", "COPD3")
    'COPD3:1234'
    """
    if SCAN_KEY_SEPARATOR in scan:
        return scan
    return f"{sample}{SCAN_KEY_SEPARATOR}{scan}"


def format_score(score: float) -> str:
    """Render a score for CSV output."""
    return repr(float(score))
