"""End-to-end peptide scan collection.

Steps of one run:

1. Validate the configuration and discover PSM files and sample counts
2. Load the UniProt and combined databases
3. Per PSM file: read identifications, match against UniProt, match the
   unmatched ones against the sample's individual database
4. Match all UniProt-unmatched identifications against the combined database
5. Build one peptide matrix per tier
6. Collect scans per tier and reconcile Combined and Individual hits into the
   UniProt scans
7. Write ``<Tier>_scan_data.csv`` per tier, ``scan_comparison.csv`` and
   ``Individual_positions.csv``

Nothing is written before every phase finished.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from .config import PipelineConfig
from .constants import (
    MATRIX_FILE_SUFFIX,
    POSITIONS_FILE,
    SCAN_TABLE_FILE,
    TIER_ORDER,
    DatasetTier,
)
from .database.fasta_reader import ProteinDatabase, load_fasta_database
from .exceptions import ConfigurationError
from .identification.psm_reader import read_identifications
from .matrix.builder import MatrixBuilder, MatrixRow, number_datasets
from .matrix.writer import write_matrix_csv, write_positions_csv, write_scan_table_csv
from .records import Identification
from .samples import count_samples, discover_sources, find_individual_database
from .scans.reconciliation import ScanCollection, ScanReconciler, collect_scans
from .search.sequence_matching import SequenceMatcher
from .workers import WorkerPool

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Everything a run produced."""

    identifications: Dict[DatasetTier, List[Identification]]
    matrices: Dict[DatasetTier, List[MatrixRow]]
    scans: ScanCollection
    dataset_numbering: Dict[str, int]
    sample_slot_count: int
    output_files: List[Path] = field(default_factory=list)


class PeptideScanPipeline:
    """Runs one configured collection.

    Parameters
    ----------
    config : PipelineConfig
        Run options

    Examples
    --------
    >>> result = PeptideScanPipeline(config).run()
    >>> len(result.matrices[DatasetTier.PRIMARY])
    1523
    """

    def __init__(self, config: PipelineConfig):
        self.config = config
        self._individual_databases: Dict[Path, ProteinDatabase] = {}

    def run(self) -> PipelineResult:
        config = self.config
        config.validate()

        sources = discover_sources(config.input_dirs, config.psm_name, config.sample_names)
        if not sources:
            raise ConfigurationError(
                f"No PSM files named {config.psm_name!r} in {[str(d) for d in config.input_dirs]}"
            )

        sample_slot_count = max(
            max(count_samples(input_dir, config.sample_names))
            for input_dir in config.input_dirs
        )
        if sample_slot_count < 1:
            raise ConfigurationError(
                f"No sample folders named {config.control}<n> or {config.target}<n> found"
            )
        logger.info(f"Sample slot count: {sample_slot_count}")

        dataset_numbering = number_datasets(source.dataset for source in sources)

        primary_db = load_fasta_database(config.database)
        primary_db.name = str(DatasetTier.PRIMARY)
        combined_db = load_fasta_database(config.combined_database)
        combined_db.name = str(DatasetTier.COMBINED)

        identifications: Dict[DatasetTier, List[Identification]] = {
            tier: [] for tier in TIER_ORDER
        }
        unmatched: List[Identification] = []

        with WorkerPool(threads=config.threads, timeout=config.timeout) as pool:
            matcher = SequenceMatcher(pool)

            for source in sources:
                peptides = read_identifications(
                    source.path,
                    sample=source.sample,
                    dataset=source.dataset,
                    method=source.method,
                    exclude_transcripts=config.exclude_transcripts,
                )
                result = matcher.match(peptides, primary_db)
                identifications[DatasetTier.PRIMARY].extend(result.matched)
                unmatched.extend(result.unmatched)

                individual_db = self._individual_database(source.sample)
                if individual_db is None:
                    continue
                individual = matcher.match_individual(result.unmatched, individual_db)
                identifications[DatasetTier.INDIVIDUAL].extend(
                    ident.with_tier(DatasetTier.INDIVIDUAL) for ident in individual.matched
                )

            combined = matcher.match(unmatched, combined_db)
            identifications[DatasetTier.COMBINED].extend(
                ident.with_tier(DatasetTier.COMBINED) for ident in combined.matched
            )

            builder = MatrixBuilder(config.sample_names, sample_slot_count)
            matrices = {
                tier: builder.render(identifications[tier], dataset_numbering)
                for tier in TIER_ORDER
            }

            scans = ScanReconciler(pool).reconcile_tiers(
                collect_scans(identifications[DatasetTier.PRIMARY], DatasetTier.PRIMARY),
                collect_scans(identifications[DatasetTier.COMBINED], DatasetTier.COMBINED),
                collect_scans(identifications[DatasetTier.INDIVIDUAL], DatasetTier.INDIVIDUAL),
            )

        result = PipelineResult(
            identifications=identifications,
            matrices=matrices,
            scans=scans,
            dataset_numbering=dataset_numbering,
            sample_slot_count=sample_slot_count,
        )
        result.output_files = self.write(result, builder)
        return result

    def write(self, result: PipelineResult, builder: MatrixBuilder) -> List[Path]:
        """Write per-tier matrices, the scan comparison table and positions."""
        output_dir = self.config.output_dir
        output_dir.mkdir(parents=True, exist_ok=True)

        written = []
        for tier in TIER_ORDER:
            path = output_dir / f"{tier}{MATRIX_FILE_SUFFIX}"
            write_matrix_csv(result.matrices[tier], path, builder.layout)
            written.append(path)

        path = output_dir / SCAN_TABLE_FILE
        write_scan_table_csv(result.scans, path)
        written.append(path)

        path = output_dir / POSITIONS_FILE
        write_positions_csv(result.identifications[DatasetTier.INDIVIDUAL], path)
        written.append(path)

        logger.info(f"✓ Wrote {len(written)} files to {output_dir}")
        return written

    def _individual_database(self, sample: str) -> Optional[ProteinDatabase]:
        path = find_individual_database(
            self.config.individual_database_dir, sample, self.config.sample_names
        )
        if path is None:
            logger.warning(
                f"No individual database for {sample} in "
                f"{self.config.individual_database_dir}; skipping its Individual matching"
            )
            return None

        if path not in self._individual_databases:
            database = load_fasta_database(path)
            database.name = f"{sample} {DatasetTier.INDIVIDUAL}"
            self._individual_databases[path] = database
        return self._individual_databases[path]


def run_pipeline(config: PipelineConfig) -> PipelineResult:
    return PeptideScanPipeline(config).run()
