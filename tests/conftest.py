"""Pytest configuration for peptidescan tests.

Provides small protein databases, identifications and a factory that lays
out a complete input tree (dataset folders, sample folders, PSM files and
databases) under ``tmp_path``.
"""

import numpy as np
import pytest

from peptidescan.constants import DatasetTier
from peptidescan.database import ProteinDatabase
from peptidescan.records import Identification, ProteinRecord

PSM_HEADER = "Peptide,-10lgP,Mass,Length,ppm,m/z,z,RT,Area,Fraction,Scan,Source File,Accession,PTM,AScore"


def psm_row(peptide, score, scan, accession):
    """One PSM line in PEAKS column order."""
    return f"{peptide},{score},1000.5,9,1.2,500.3,2,30.1,1.0E5,1,{scan},raw.raw,{accession},,"


def write_fasta(path, records):
    """Write (accession, sequence) pairs as FASTA."""
    path.write_text("".join(f">{acc} description\n{seq}\n" for acc, seq in records))
    return path


def write_psm(path, rows):
    """Write a PSM CSV; ``rows`` are (peptide, score, scan, accession) tuples."""
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = [PSM_HEADER] + [psm_row(*row) for row in rows]
    path.write_text("\n".join(lines) + "\n")
    return path


@pytest.fixture
def psm_writer():
    """write_psm for tests that lay out their own PSM files."""
    return write_psm


@pytest.fixture
def fasta_writer():
    """write_fasta for tests that lay out their own databases."""
    return write_fasta


@pytest.fixture
def uniprot_records():
    """Three proteins in fixed FASTA order."""
    return [
        ProteinRecord("P1", "MKTAYIAKQRQISFVKSHFSRQ"),
        ProteinRecord("P2", "GSHMPEPTIDEKLLNEQ"),
        ProteinRecord("P3", "AAPEPTIDEKRR"),
    ]


@pytest.fixture
def uniprot_db(uniprot_records):
    return ProteinDatabase(uniprot_records, name="Uniprot")


@pytest.fixture
def identifications():
    """Identifications of two samples; one does not occur in uniprot_db."""
    return [
        Identification("AYIAK", ["F1:100"], [50.0], sample="COPD1", dataset="commonRNAseq", accessions=["P1"]),
        Identification("PEPTIDEK", ["F1:101"], [42.5], sample="COPD1", dataset="commonRNAseq", accessions=["P2"]),
        Identification("WWWWW", ["F1:102"], [20.0], sample="Control2", dataset="commonRNAseq", accessions=["X1"]),
        Identification("QIS(+0.98)FVK", ["F2:7"], [33.0], sample="Control2", dataset="commonRNAseq", accessions=["P1"]),
    ]


@pytest.fixture
def tier_identification():
    """Factory for identifications of a given tier."""

    def make(sequence, scan_key, score, tier=DatasetTier.PRIMARY, sample="COPD1", dataset="commonRNAseq"):
        return Identification(
            sequence, [scan_key], [score], sample=sample, dataset=dataset, tier=tier, method="1D25"
        )

    return make


@pytest.fixture
def input_tree(tmp_path):
    """Complete input layout with two samples of one dataset.

    Layout::

        1D25/commonRNAseq/COPD1/DB search psm.csv
        1D25/commonRNAseq/Control1/DB search psm.csv
        uniprot.fasta, combined.fa, individual/COPD1.fasta, individual/Control_1.fa
    """
    dataset_dir = tmp_path / "1D25" / "commonRNAseq"

    write_psm(
        dataset_dir / "COPD1" / "DB search psm.csv",
        [
            ("PEPTIDEK", 45.1, "F1:100", "P2"),
            ("PEPTIDEK", 40.0, "F1:105", "P2:P3"),
            ("NOVELPEP", 30.2, "F1:100", "TX1"),
            ("SAMPLEONE", 25.0, "F1:200", "IND1"),
            ("DECOYHIT", 10.0, "F1:300", "DECOY_P9"),
        ],
    )
    write_psm(
        dataset_dir / "Control1" / "DB search psm.csv",
        [
            ("AYIAK", 50.0, "F2:10", "P1"),
            ("NOVELPEP", 28.0, "F2:11", "TX1"),
        ],
    )

    write_fasta(tmp_path / "uniprot.fasta", [
        ("P1", "MKTAYIAKQRQISFVK"),
        ("P2", "GSHMPEPTIDEKLLNEQ"),
        ("P3", "AAPEPTIDEKRR"),
    ])
    write_fasta(tmp_path / "combined.fa", [("TX1", "MMNOVELPEPKK")])

    individual_dir = tmp_path / "individual"
    individual_dir.mkdir()
    write_fasta(individual_dir / "COPD1.fasta", [("IND1", "GGSAMPLEONEGG"), ("TX1", "NOVELPEP")])
    write_fasta(individual_dir / "Control_1.fa", [("TX1", "RRNOVELPEP")])

    return tmp_path


# Random seed for reproducibility
@pytest.fixture(scope="session", autouse=True)
def set_random_seed():
    """Set random seed for reproducible tests."""
    np.random.seed(42)
