"""Per-sample peptide matrix.

One row per distinct peptide sequence. After the sequence and dataset
columns every sample gets a ``Scan ID`` slot and a ``-10lgP`` slot. Samples
are named ``<prefix><n>`` (``Control4``, ``COPD12``); the prefixes, in order
``[control, target]``, define the sample groups and ``n`` runs from 1 to the
sample slot count (the highest sample number seen in any group).

Slot layout (excluding the two leading columns)::

    Control1..ControlN Scan ID | COPD1..COPDN Scan ID |
    Control1..ControlN -10lgP  | COPD1..COPDN -10lgP

A slot holds ``<datasetNumber>;<scan|scan...>`` (or scores likewise);
observations from further identifications are appended space-separated.
Empty slots keep the ``-`` placeholder.

Examples
--------
>>> builder = MatrixBuilder(["Control", "COPD"], sample_slot_count=3)
>>> matrix = builder.build(identifications)
>>> builder.fill(matrix, identifications, {"commonRNAseq": 1})
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Sequence, Tuple

from ..constants import (
    DATASET_NUMBER_SEPARATOR,
    OBSERVATION_SEPARATOR,
    PLACEHOLDER,
    PROGRESS_INTERVAL,
    SCAN_COLUMN_SUFFIX,
    SCORE_COLUMN_SUFFIX,
    SLOTS_PER_SAMPLE,
    VALUE_SEPARATOR,
)
from ..exceptions import MalformedSampleName
from ..records import Identification, format_score

logger = logging.getLogger(__name__)

SCAN_SLOT = 0
SCORE_SLOT = 1

_SAMPLE_NUMBER = re.compile(r"_?([0-9]+)")


def parse_sample_index(sample: str, prefix: str) -> int:
    """Sample number of a sample folder name.

    Parameters
    ----------
    sample : str
        Sample folder name, e.g. ``COPD3`` or ``COPD_3``
    prefix : str
        Sample group prefix, e.g. ``COPD`` (case-sensitive)

    Returns
    -------
    index : int
        Number following the prefix

    Raises
    ------
    MalformedSampleName
        The name does not start with the prefix or no digits follow it

    Examples
    --------
    >>> parse_sample_index("COPD3", "COPD")
    3
    >>> parse_sample_index("Control_12", "Control")
    12
    """
    if not sample.startswith(prefix):
        raise MalformedSampleName(f"{sample!r} does not start with {prefix!r}")
    match = _SAMPLE_NUMBER.fullmatch(sample[len(prefix):])
    if match is None:
        raise MalformedSampleName(f"{sample!r} has no sample number after {prefix!r}")
    return int(match.group(1))


def number_datasets(names: Iterable[str]) -> Dict[str, int]:
    """Number dataset names 1, 2, ... by first appearance.

    Examples
    --------
    >>> number_datasets(["commonRNAseq", "1D25", "commonRNAseq"])
    {'commonRNAseq': 1, '1D25': 2}
    """
    numbering: Dict[str, int] = {}
    for name in names:
        if name not in numbering:
            numbering[name] = len(numbering) + 1
    return numbering


@dataclass(frozen=True)
class SampleLayout:
    """Column layout of the per-sample slots.

    Attributes
    ----------
    sample_names : Tuple[str, ...]
        Sample group prefixes, ``(control, target)``
    sample_slot_count : int
        Samples per group (highest sample number)
    """

    sample_names: Tuple[str, ...]
    sample_slot_count: int

    @property
    def sample_count(self) -> int:
        return len(self.sample_names) * self.sample_slot_count

    @property
    def n_slots(self) -> int:
        return self.sample_count * SLOTS_PER_SAMPLE

    def samples(self) -> List[str]:
        """All sample names in column order."""
        return [
            f"{prefix}{i}"
            for prefix in self.sample_names
            for i in range(1, self.sample_slot_count + 1)
        ]

    def locate(self, sample: str) -> Tuple[int, int]:
        """Group position and sample number of a sample name.

        The group is the one whose prefix is followed by nothing but the
        sample number, so ``CO3`` belongs to ``CO`` even when ``C`` is also
        a prefix. Should both fit, the target (last) prefix wins.

        Raises
        ------
        MalformedSampleName
            Unknown prefix, no sample number, or number outside
            1..sample_slot_count
        """
        candidates = [
            group
            for group in reversed(range(len(self.sample_names)))
            if sample.startswith(self.sample_names[group])
        ]
        if not candidates:
            raise MalformedSampleName(
                f"{sample!r} matches none of the sample names {list(self.sample_names)}"
            )

        group = next(
            (
                g for g in candidates
                if _SAMPLE_NUMBER.fullmatch(sample[len(self.sample_names[g]):])
            ),
            candidates[0],
        )
        index = parse_sample_index(sample, self.sample_names[group])
        if not 1 <= index <= self.sample_slot_count:
            raise MalformedSampleName(
                f"{sample!r}: sample number {index} outside 1..{self.sample_slot_count}"
            )
        return group, index

    def slot(self, sample: str, kind: int) -> int:
        """Position of a sample's slot within ``MatrixRow.slots``.

        ``kind × sample_count + group × sample_slot_count + (index − 1)``
        """
        group, index = self.locate(sample)
        return kind * self.sample_count + group * self.sample_slot_count + index - 1

    def header(self) -> List[str]:
        samples = self.samples()
        return (
            ["Sequence", "Dataset"]
            + [f"{sample} {SCAN_COLUMN_SUFFIX}" for sample in samples]
            + [f"{sample} {SCORE_COLUMN_SUFFIX}" for sample in samples]
        )


@dataclass
class MatrixRow:
    """One peptide sequence with its per-sample slots."""

    sequence: str
    datasets: List[str] = field(default_factory=list)
    slots: List[str] = field(default_factory=list)

    def cells(self) -> List[str]:
        return [self.sequence, VALUE_SEPARATOR.join(self.datasets)] + self.slots

    def filled_slots(self) -> Dict[int, str]:
        """Non-placeholder slots by position."""
        return {i: value for i, value in enumerate(self.slots) if value != PLACEHOLDER}


def _append_to_slot(slots: List[str], idx: int, entry: str) -> None:
    if slots[idx] == PLACEHOLDER:
        slots[idx] = entry
    else:
        slots[idx] = f"{slots[idx]}{OBSERVATION_SEPARATOR}{entry}"


def build_matrix(
    identifications: Iterable[Identification],
    sample_names: Sequence[str],
    sample_slot_count: int,
) -> List[MatrixRow]:
    """Create one placeholder-filled row per distinct sequence.

    The first identification of a sequence sets the row's dataset.
    """
    layout = SampleLayout(tuple(sample_names), sample_slot_count)

    rows: Dict[str, MatrixRow] = {}
    for ident in identifications:
        if ident.sequence in rows:
            continue
        rows[ident.sequence] = MatrixRow(
            sequence=ident.sequence,
            datasets=[ident.dataset] if ident.dataset else [],
            slots=[PLACEHOLDER] * layout.n_slots,
        )

    logger.info(f"Created {len(rows):,} matrix rows with {layout.n_slots} sample slots each")
    return list(rows.values())


def fill_matrix(
    matrix: List[MatrixRow],
    identifications: Iterable[Identification],
    sample_names: Sequence[str],
    dataset_numbering: Mapping[str, int],
    sample_slot_count: int,
) -> List[MatrixRow]:
    """Write scan and score values into the matrix rows in place.

    Parameters
    ----------
    matrix : List[MatrixRow]
        Rows from build_matrix (possibly for other identifications)
    identifications : Iterable[Identification]
        Identifications to place
    sample_names : Sequence[str]
        Sample group prefixes, ``[control, target]``
    dataset_numbering : Mapping[str, int]
        Dataset name → number written in front of each slot entry
    sample_slot_count : int
        Samples per group

    Returns
    -------
    matrix : List[MatrixRow]
        The same rows. Identifications without a row are ignored; those of
        an unnumbered dataset only extend the row's dataset list.

    Raises
    ------
    MalformedSampleName
        An identification's sample cannot be placed
    """
    layout = SampleLayout(tuple(sample_names), sample_slot_count)
    rows_by_sequence = {row.sequence: row for row in matrix}

    count = 0
    for ident in identifications:
        row = rows_by_sequence.get(ident.sequence)
        if row is None:
            continue
        count += 1

        scan_slot = layout.slot(ident.sample, SCAN_SLOT)
        score_slot = layout.slot(ident.sample, SCORE_SLOT)
        number = dataset_numbering.get(ident.dataset)
        if number is not None:
            prefix = f"{number}{DATASET_NUMBER_SEPARATOR}"
            _append_to_slot(row.slots, scan_slot, prefix + VALUE_SEPARATOR.join(ident.scan_keys))
            _append_to_slot(
                row.slots,
                score_slot,
                prefix + VALUE_SEPARATOR.join(format_score(s) for s in ident.scores),
            )

        if ident.dataset and ident.dataset not in row.datasets:
            row.datasets.append(ident.dataset)

        if count % PROGRESS_INTERVAL == 0:
            logger.debug(f"Processed {count:,} peptides")

    logger.info(f"✓ Added {count:,} identifications to {len(matrix):,} matrix rows")
    return matrix


class MatrixBuilder:
    """Builds and fills matrices for one sample layout.

    Parameters
    ----------
    sample_names : Sequence[str]
        Sample group prefixes, ``[control, target]``
    sample_slot_count : int
        Samples per group
    """

    def __init__(self, sample_names: Sequence[str], sample_slot_count: int):
        self.layout = SampleLayout(tuple(sample_names), sample_slot_count)

    @property
    def sample_names(self) -> Tuple[str, ...]:
        return self.layout.sample_names

    @property
    def sample_slot_count(self) -> int:
        return self.layout.sample_slot_count

    def build(self, identifications: Iterable[Identification]) -> List[MatrixRow]:
        return build_matrix(identifications, self.sample_names, self.sample_slot_count)

    def fill(
        self,
        matrix: List[MatrixRow],
        identifications: Iterable[Identification],
        dataset_numbering: Mapping[str, int],
    ) -> List[MatrixRow]:
        return fill_matrix(
            matrix, identifications, self.sample_names, dataset_numbering, self.sample_slot_count
        )

    def render(
        self,
        identifications: Sequence[Identification],
        dataset_numbering: Mapping[str, int],
    ) -> List[MatrixRow]:
        """Build and fill in one go."""
        return self.fill(self.build(identifications), identifications, dataset_numbering)
