"""Shared constants for peptide scan collection.

This module collects the names, patterns and defaults used throughout
peptidescan: dataset tier labels, CSV header keywords, the modification
annotation pattern and the placeholders written to output matrices.

Header keywords follow the PEAKS "DB search psm.csv" export, which names
its columns ``Peptide``, ``Accession``, ``Scan`` and ``-10lgP``.
"""

import re
from enum import Enum


# =============================================================================
# Dataset Tiers
# =============================================================================

class DatasetTier(str, Enum):
    """Protein database a peptide identification was matched against."""

    PRIMARY = "Uniprot"
    COMBINED = "Combined"
    INDIVIDUAL = "Individual"

    def __str__(self) -> str:
        return self.value


TIER_ORDER = (DatasetTier.PRIMARY, DatasetTier.COMBINED, DatasetTier.INDIVIDUAL)

# =============================================================================
# PSM CSV Header Keywords (matched case-insensitively)
# =============================================================================

SEQUENCE_COLUMN = "peptide"      # exact match
ACCESSION_KEYWORD = "accession"  # substring
SCAN_KEYWORD = "scan"            # substring
SCORE_KEYWORD = "-10lgp"         # substring

ACCESSION_SEPARATOR = ":"
SCAN_KEY_SEPARATOR = ":"
DECOY_MARKER = "DECOY"

# Ensembl transcript ids (ENST00000331789) used by RNA-seq derived databases
TRANSCRIPT_PATTERN = re.compile(r"ENST[0-9]+")

# =============================================================================
# Modifications
# =============================================================================

# Parenthesized signed decimal mass shift, e.g. M(+15.99) or Q(-17.03)
MODIFICATION_PATTERN = re.compile(r"\([+-][0-9]+\.[0-9]+\)")

# =============================================================================
# FASTA
# =============================================================================

FASTA_EXTENSIONS = (".fa", ".fasta")
GZIP_EXTENSION = ".gz"

# =============================================================================
# Output
# =============================================================================

PLACEHOLDER = "-"
VALUE_SEPARATOR = "|"
OBSERVATION_SEPARATOR = " "
DATASET_NUMBER_SEPARATOR = ";"

SCAN_COLUMN_SUFFIX = "Scan ID"
SCORE_COLUMN_SUFFIX = "-10lgP"
SLOTS_PER_SAMPLE = 2

MATRIX_FILE_SUFFIX = "_scan_data.csv"
SCAN_TABLE_FILE = "scan_comparison.csv"
POSITIONS_FILE = "Individual_positions.csv"
POSITION_SEPARATOR = "_"

# =============================================================================
# Defaults
# =============================================================================

DEFAULT_THREADS = 2
PROGRESS_INTERVAL = 1000
