"""Run configuration.

All paths and options of one pipeline run. ``validate`` checks every input
before any database or PSM file is read, so a misconfigured run stops
without touching the output folder.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from .constants import DEFAULT_THREADS
from .database.fasta_reader import is_fasta_path
from .exceptions import ConfigurationError, DatabaseFormatError

logger = logging.getLogger(__name__)


def _check_directory(path: Path, label: str) -> None:
    if not path.exists():
        raise ConfigurationError(f"{label} {path} does not exist")
    if not path.is_dir():
        raise ConfigurationError(f"{label} {path} is not a directory")


def _check_fasta(path: Path, label: str) -> None:
    if not path.is_file():
        raise ConfigurationError(f"{label} {path} does not exist")
    if not is_fasta_path(path):
        raise DatabaseFormatError(
            f"{label} {path} is not a .fa, .fasta, .fa.gz or .fasta.gz file"
        )


@dataclass
class PipelineConfig:
    """Options of one run.

    Attributes
    ----------
    input_dirs : List[Path]
        Dataset folders holding one sub-folder per sample
    psm_name : str
        File name (or part of it) of the PSM CSV in each sample folder
    database : Path
        UniProt FASTA
    combined_database : Path
        Combined multi-sample FASTA
    individual_database_dir : Path
        Folder with one FASTA per sample
    output_dir : Path
        Folder receiving the matrices and the scan comparison table
    target : str
        Target sample prefix (e.g. ``COPD``), case-sensitive
    control : str
        Control sample prefix (e.g. ``Control``), case-sensitive
    threads : int
        Worker threads (default: 2)
    timeout : float, optional
        Seconds to wait for one batch of worker results
    exclude_transcripts : bool
        Drop bare Ensembl transcript accessions from PSM rows
    """

    input_dirs: List[Path]
    psm_name: str
    database: Path
    combined_database: Path
    individual_database_dir: Path
    output_dir: Path
    target: str
    control: str
    threads: int = DEFAULT_THREADS
    timeout: Optional[float] = None
    exclude_transcripts: bool = False

    def __post_init__(self):
        self.input_dirs = [Path(p) for p in self.input_dirs]
        self.database = Path(self.database)
        self.combined_database = Path(self.combined_database)
        self.individual_database_dir = Path(self.individual_database_dir)
        self.output_dir = Path(self.output_dir)

    @property
    def sample_names(self) -> List[str]:
        """Sample group prefixes in matrix order: control, then target."""
        return [self.control, self.target]

    def validate(self) -> None:
        """Check all inputs.

        Raises
        ------
        ConfigurationError
            Missing or invalid path or option
        DatabaseFormatError
            A database path without FASTA extension
        """
        if not self.input_dirs:
            raise ConfigurationError("At least one dataset folder is required")
        for input_dir in self.input_dirs:
            _check_directory(input_dir, "Dataset folder")

        if not self.psm_name:
            raise ConfigurationError("PSM file name must not be empty")
        if not self.psm_name.lower().endswith(".csv"):
            raise ConfigurationError(f"PSM file {self.psm_name!r} is not a .csv file")

        _check_fasta(self.database, "Database")
        _check_fasta(self.combined_database, "Combined database")
        _check_directory(self.individual_database_dir, "Individual database folder")

        if self.output_dir.exists() and not self.output_dir.is_dir():
            raise ConfigurationError(f"Output {self.output_dir} is not a directory")

        if not self.target or not self.control:
            raise ConfigurationError("Both target and control sample names are required")
        if self.target == self.control:
            raise ConfigurationError(f"Target and control sample names are both {self.target!r}")

        if self.threads < 1:
            raise ConfigurationError(f"threads must be at least 1, got {self.threads}")
        if self.timeout is not None and self.timeout <= 0:
            raise ConfigurationError(f"timeout must be positive, got {self.timeout}")

        logger.debug(f"Configuration valid: {self}")

    @classmethod
    def from_args(cls, args) -> "PipelineConfig":
        """Build from an argparse namespace produced by the CLI parser."""
        return cls(
            input_dirs=args.input_dirs,
            psm_name=args.psm,
            database=args.database,
            combined_database=args.combined_database,
            individual_database_dir=args.individual_database_dir,
            output_dir=args.output,
            target=args.target,
            control=args.control,
            threads=args.threads,
            timeout=args.timeout,
            exclude_transcripts=args.exclude_transcripts,
        )
