"""Discovery of PSM files, samples and per-sample databases.

Expected input layout::

    <method>/<dataset>/<sample>/<psm file>
    1D25/commonRNAseq/COPD3/DB search psm.csv

Dataset folders are given on the command line. Each holds one folder per
sample named ``<prefix><n>`` or ``<prefix>_<n>`` (``COPD3``, ``Control_12``).
Individual databases live together in one folder and carry the sample name
in their file name (``COPD3.fasta``, ``COPD_3_transcripts.fa.gz``).
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

from .database.fasta_reader import is_fasta_path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PsmSource:
    """One PSM file with the names derived from its location."""

    path: Path
    sample: str
    dataset: str
    method: str


def sample_pattern(sample_names: Sequence[str]) -> re.Pattern:
    """Folder names of any sample group.

    Prefixes are case-sensitive, as in count_samples and SampleLayout.

    Examples
    --------
    >>> bool(sample_pattern(["Control", "COPD"]).match("COPD_3"))
    True
    >>> bool(sample_pattern(["Control", "COPD"]).match("copd_3"))
    False
    """
    alternatives = "|".join(re.escape(name) for name in sample_names)
    return re.compile(rf"^({alternatives})_?[0-9]+$")


def find_sample_name(path: Union[str, Path], sample_names: Sequence[str]) -> Optional[str]:
    """Last path component that names a sample, None if there is none."""
    pattern = sample_pattern(sample_names)
    for part in reversed(Path(path).parts):
        if pattern.match(part):
            return part
    return None


def count_samples(dataset_dir: Union[str, Path], sample_names: Sequence[str]) -> List[int]:
    """Highest sample number per sample group.

    Parameters
    ----------
    dataset_dir : str or Path
        Folder holding the sample folders
    sample_names : Sequence[str]
        Sample group prefixes (case-sensitive here)

    Returns
    -------
    counts : List[int]
        One entry per prefix, 0 when the group has no folder

    Examples
    --------
    >>> count_samples("1D25/commonRNAseq", ["Control", "COPD"])
    [4, 12]
    """
    patterns = [re.compile(rf"{re.escape(name)}_?([0-9]+)") for name in sample_names]
    counts = [0] * len(sample_names)

    for folder in Path(dataset_dir).iterdir():
        if not folder.is_dir():
            continue
        for group, pattern in enumerate(patterns):
            match = pattern.fullmatch(folder.name)
            if match:
                counts[group] = max(counts[group], int(match.group(1)))

    return counts


def find_psm_files(dataset_dir: Union[str, Path], psm_name: str) -> List[Path]:
    """PSM files inside the sample folders of a dataset folder.

    Every file directly inside a sub-folder whose name contains ``psm_name``
    is returned, sorted by path.
    """
    found = []
    for folder in sorted(Path(dataset_dir).iterdir()):
        if not folder.is_dir():
            continue
        for path in sorted(folder.iterdir()):
            if path.is_file() and psm_name in path.name:
                logger.debug(f"Found {path}")
                found.append(path)
    return found


def describe_psm_file(path: Union[str, Path], sample_names: Sequence[str]) -> Optional[PsmSource]:
    """Derive sample, dataset and method names from a PSM file's location.

    Returns None when no folder on the path names a sample.
    """
    path = Path(path)
    sample = find_sample_name(path.parent, sample_names)
    if sample is None:
        return None

    sample_dir = next(p for p in [path.parent, *path.parent.parents] if p.name == sample)
    dataset_dir = sample_dir.parent
    return PsmSource(
        path=path,
        sample=sample,
        dataset=dataset_dir.name,
        method=dataset_dir.parent.name,
    )


def discover_sources(
    dataset_dirs: Iterable[Union[str, Path]],
    psm_name: str,
    sample_names: Sequence[str],
) -> List[PsmSource]:
    """All PSM files of the given dataset folders, in folder order."""
    sources = []
    for dataset_dir in dataset_dirs:
        for path in find_psm_files(dataset_dir, psm_name):
            source = describe_psm_file(path, sample_names)
            if source is None:
                logger.warning(f"Skipping {path}: no folder on its path names a sample")
                continue
            sources.append(source)

    logger.info(f"Found {len(sources)} PSM files")
    return sources


def individual_database_names(sample: str, sample_names: Sequence[str]) -> List[str]:
    """Names an individual database file may carry for a sample.

    Examples
    --------
    >>> individual_database_names("COPD3", ["Control", "COPD"])
    ['COPD3', 'COPD_3']
    """
    names = [sample]
    for prefix in sorted(sample_names, key=len, reverse=True):
        match = re.fullmatch(rf"({re.escape(prefix)})_?([0-9]+)", sample)
        if match:
            underscored = f"{match.group(1)}_{match.group(2)}"
            plain = f"{match.group(1)}{match.group(2)}"
            names.extend(n for n in (plain, underscored) if n not in names)
            break
    return names


def find_individual_database(
    database_dir: Union[str, Path],
    sample: str,
    sample_names: Sequence[str],
) -> Optional[Path]:
    """FASTA file of one sample inside the individual database folder.

    The file name must contain the sample name, with or without underscore,
    not followed by another digit (``COPD1`` does not pick ``COPD12.fa``).
    The first match in sorted order wins; None if there is none.
    """
    names = individual_database_names(sample, sample_names)
    patterns = [re.compile(rf"(?<![A-Za-z0-9]){re.escape(name)}(?![0-9])") for name in names]

    for path in sorted(Path(database_dir).iterdir()):
        if not path.is_file() or not is_fasta_path(path):
            continue
        if any(pattern.search(path.name) for pattern in patterns):
            return path
    return None
