"""Tests for PSM CSV reading.

- Keyword column detection and the index-0 default for missing columns
- Decoy and transcript filtering
- Exact-sequence deduplication within one file
- Format errors
"""

import pytest

from peptidescan.exceptions import FileFormatError
from peptidescan.identification import (
    detect_columns,
    filter_accessions,
    is_decoy,
    is_transcript,
    read_identifications,
)


def write_csv(path, lines):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(lines) + "\n")
    return path


# =============================================================================
# Column Detection
# =============================================================================

class TestDetectColumns:
    """Test keyword based header detection."""

    def test_peaks_header(self):
        header = ["Peptide", "-10lgP", "Mass", "Scan", "Source File", "Accession", "PTM"]
        cols = detect_columns(header)

        assert (cols.sequence, cols.score, cols.scan, cols.accession) == (0, 1, 3, 5)
        assert cols.missing == ()

    def test_case_insensitive(self):
        cols = detect_columns(["PEPTIDE", "ACCESSION", "SCAN", "-10LGP"])
        assert (cols.sequence, cols.accession, cols.scan, cols.score) == (0, 1, 2, 3)

    def test_peptide_must_match_exactly(self):
        """'Peptide Length' does not count as the sequence column."""
        with pytest.raises(FileFormatError):
            detect_columns(["Peptide Length", "Accession", "Scan", "-10lgP"])

    def test_last_matching_column_wins(self):
        cols = detect_columns(["Peptide", "Scan", "Accession", "Scan Number"])
        assert cols.scan == 3

    def test_accession_checked_before_scan(self):
        """A column matching several keywords counts for the first in order."""
        cols = detect_columns(["Peptide", "Scan Accession", "-10lgP"])
        assert cols.accession == 1
        assert cols.scan == 0
        assert cols.missing == ("scan",)

    def test_missing_columns_default_to_zero(self):
        """Undetected columns read the first column instead of failing."""
        cols = detect_columns(["Mass", "Peptide"])

        assert cols.sequence == 1
        assert (cols.accession, cols.scan, cols.score) == (0, 0, 0)
        assert cols.missing == ("accession", "scan", "score")


# =============================================================================
# Accession Filtering
# =============================================================================

class TestAccessionFilters:
    """Test decoy and transcript filtering."""

    @pytest.mark.parametrize("accession", ["DECOY_P1", "decoy_P1", "P1_Decoy", "xDECOYx"])
    def test_decoys(self, accession):
        assert is_decoy(accession)

    def test_not_decoy(self):
        assert not is_decoy("sp|P12345|NAME_HUMAN")

    def test_transcript_full_match_only(self):
        assert is_transcript("ENST00000331789")
        assert not is_transcript("ENST00000331789.2")
        assert not is_transcript("P1")

    def test_split_and_filter(self):
        assert filter_accessions("P1:DECOY_P2:P3") == ["P1", "P3"]

    def test_single_accession(self):
        assert filter_accessions("P1") == ["P1"]

    def test_transcripts_kept_by_default(self):
        assert filter_accessions("ENST00000331789:P2") == ["ENST00000331789", "P2"]

    def test_transcripts_excluded(self):
        assert filter_accessions("ENST00000331789:P2", exclude_transcripts=True) == ["P2"]

    def test_empty_cell(self):
        """An empty accession cell yields one empty accession, which is kept."""
        assert filter_accessions("") == [""]


# =============================================================================
# Reading
# =============================================================================

class TestReadIdentifications:
    """Test reading PSM files into identifications."""

    def test_basic(self, tmp_path):
        path = write_csv(tmp_path / "COPD3" / "psm.csv", [
            "Peptide,-10lgP,Scan,Accession",
            "AYIAK,50.2,F1:100,P1",
            "PEPTIDEK,42.0,F1:101,P2",
        ])

        peptides = read_identifications(path, dataset="commonRNAseq", method="1D25")

        assert [p.sequence for p in peptides] == ["AYIAK", "PEPTIDEK"]
        first = peptides[0]
        assert first.scan_keys == ["F1:100"]
        assert first.scores == [50.2]
        assert first.accessions == ["P1"]
        assert first.sample == "COPD3"
        assert first.dataset == "commonRNAseq"
        assert first.method == "1D25"

    def test_bare_scan_gets_sample_prefix(self, tmp_path):
        path = write_csv(tmp_path / "psm.csv", [
            "Peptide,-10lgP,Scan,Accession",
            "AYIAK,50.2,1234,P1",
        ])

        peptides = read_identifications(path, sample="Control2")

        assert peptides[0].scan_key == "Control2:1234"

    def test_duplicate_sequence_folded(self, tmp_path):
        """Repeated sequences append scan and score in file order."""
        path = write_csv(tmp_path / "psm.csv", [
            "Peptide,-10lgP,Scan,Accession",
            "AYIAK,50.0,F1:100,P1",
            "PEPTIDEK,42.0,F1:101,P2",
            "AYIAK,47.5,F1:230,P1:P7",
        ])

        peptides = read_identifications(path, sample="COPD1")

        assert len(peptides) == 2
        assert peptides[0].scan_keys == ["F1:100", "F1:230"]
        assert peptides[0].scores == [50.0, 47.5]
        assert peptides[0].accessions == ["P1", "P7"]

    def test_modified_sequence_is_distinct(self, tmp_path):
        """Deduplication compares sequences with their annotations."""
        path = write_csv(tmp_path / "psm.csv", [
            "Peptide,-10lgP,Scan,Accession",
            "LMTQGGK,30.0,F1:1,P1",
            "LM(+15.99)TQGGK,31.0,F1:2,P1",
        ])

        peptides = read_identifications(path, sample="COPD1")

        assert [p.sequence for p in peptides] == ["LMTQGGK", "LM(+15.99)TQGGK"]

    def test_all_decoy_row_skipped(self, tmp_path):
        """A row whose accessions are all decoys emits nothing."""
        path = write_csv(tmp_path / "psm.csv", [
            "Peptide,-10lgP,Scan,Accession",
            "AYIAK,50.0,F1:100,DECOY_P1",
        ])

        assert read_identifications(path, sample="COPD1") == []

    def test_mixed_decoy_row_kept(self, tmp_path):
        path = write_csv(tmp_path / "psm.csv", [
            "Peptide,-10lgP,Scan,Accession",
            "AYIAK,50.0,F1:100,DECOY_P1:P2",
        ])

        peptides = read_identifications(path, sample="COPD1")

        assert len(peptides) == 1
        assert peptides[0].accessions == ["P2"]
        assert peptides[0].scan_keys == ["F1:100"]

    def test_row_without_accession_cell_skipped(self, tmp_path):
        path = write_csv(tmp_path / "psm.csv", [
            "Peptide,-10lgP,Scan,Accession",
            "AYIAK,50.0,F1:100",
            "PEPTIDEK,42.0,F1:101,P2",
        ])

        peptides = read_identifications(path, sample="COPD1")

        assert [p.sequence for p in peptides] == ["PEPTIDEK"]

    def test_exclude_transcripts(self, tmp_path):
        path = write_csv(tmp_path / "psm.csv", [
            "Peptide,-10lgP,Scan,Accession",
            "AYIAK,50.0,F1:100,ENST00000331789",
            "PEPTIDEK,42.0,F1:101,ENST00000331789:P2",
        ])

        peptides = read_identifications(path, sample="COPD1", exclude_transcripts=True)

        assert [p.sequence for p in peptides] == ["PEPTIDEK"]
        assert peptides[0].accessions == ["P2"]

    def test_missing_scan_column_reads_first_column(self, tmp_path):
        """Without a scan column, scan keys come from column 0."""
        path = write_csv(tmp_path / "psm.csv", [
            "Peptide,-10lgP,Accession",
            "AYIAK,50.0,P1",
        ])

        peptides = read_identifications(path, sample="COPD1")

        assert peptides[0].scan_key == "COPD1:AYIAK"

    def test_utf8_bom(self, tmp_path):
        path = tmp_path / "psm.csv"
        path.write_bytes("\ufeffPeptide,-10lgP,Scan,Accession\nAYIAK,50.0,F1:1,P1\n".encode("utf-8"))

        peptides = read_identifications(path, sample="COPD1")

        assert peptides[0].sequence == "AYIAK"


class TestReadIdentificationsErrors:
    """Test format errors."""

    def test_empty_file(self, tmp_path):
        path = tmp_path / "psm.csv"
        path.write_text("")

        with pytest.raises(FileFormatError):
            read_identifications(path, sample="COPD1")

    def test_no_peptide_column(self, tmp_path):
        path = write_csv(tmp_path / "psm.csv", [
            "Sequence,-10lgP,Scan,Accession",
            "AYIAK,50.0,F1:100,P1",
        ])

        with pytest.raises(FileFormatError) as excinfo:
            read_identifications(path, sample="COPD1")

        assert excinfo.value.error_code == "FILE_FORMAT"

    def test_non_numeric_score(self, tmp_path):
        path = write_csv(tmp_path / "psm.csv", [
            "Peptide,-10lgP,Scan,Accession",
            "AYIAK,high,F1:100,P1",
        ])

        with pytest.raises(FileFormatError, match="not a number"):
            read_identifications(path, sample="COPD1")

    def test_short_row(self, tmp_path):
        """Accession in front, score missing from the row."""
        path = write_csv(tmp_path / "psm.csv", [
            "Accession,Peptide,Scan,-10lgP",
            "P1,AYIAK",
        ])

        with pytest.raises(FileFormatError):
            read_identifications(path, sample="COPD1")
