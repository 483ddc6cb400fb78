"""Tests for FASTA reading and the ordered protein database.

- Accession parsing
- Plain and gzip FASTA parsing, including the last record
- Format errors
- Flat storage and accession lookup
"""

import gzip

import numpy as np
import pytest

from peptidescan.database import (
    ProteinDatabase,
    encode_sequence_to_ord,
    is_fasta_path,
    load_fasta_database,
    parse_accession,
    read_fasta,
)
from peptidescan.exceptions import DatabaseFormatError
from peptidescan.records import ProteinRecord


# =============================================================================
# Accessions and Extensions
# =============================================================================

class TestParseAccession:
    """Test accession extraction from headers."""

    def test_uniprot_header(self):
        assert parse_accession(">sp|P12345|NAME_HUMAN Some protein OS=Homo sapiens") == "sp|P12345|NAME_HUMAN"

    def test_transcript_header(self):
        assert parse_accession(">ENST00000331789 chr1:100-200") == "ENST00000331789"

    def test_without_marker(self):
        assert parse_accession("P1") == "P1"

    def test_empty_header(self):
        assert parse_accession(">") == ""
        assert parse_accession(">   ") == ""


class TestIsFastaPath:

    @pytest.mark.parametrize(
        "name", ["db.fa", "db.fasta", "db.fa.gz", "db.fasta.gz", "DB.FASTA", "db.FA.GZ"]
    )
    def test_recognized(self, name):
        assert is_fasta_path(name)

    @pytest.mark.parametrize("name", ["db.txt", "db.gz", "db.fastq", "psm.csv", "fasta"])
    def test_rejected(self, name):
        assert not is_fasta_path(name)


# =============================================================================
# FASTA Parsing
# =============================================================================

class TestReadFasta:
    """Test FASTA file parsing."""

    def test_multiline_records(self, tmp_path):
        """Sequence lines are stripped and concatenated."""
        path = tmp_path / "db.fasta"
        path.write_text(
            ">sp|P12345|TEST_HUMAN Test protein\n"
            "PEPTIDE\n"
            "  KRPROTEINK  \n"
            ">sp|Q98765|TEST2_HUMAN Another protein\n"
            "SEQUENCEK\n"
        )

        records = list(read_fasta(path))

        assert records == [
            ProteinRecord("sp|P12345|TEST_HUMAN", "PEPTIDEKRPROTEINK"),
            ProteinRecord("sp|Q98765|TEST2_HUMAN", "SEQUENCEK"),
        ]

    def test_last_record_without_newline(self, tmp_path):
        """The final record is kept even without a trailing header or newline."""
        path = tmp_path / "db.fa"
        path.write_text(">P1\nAAA\n>P2\nCCC")

        records = list(read_fasta(path))

        assert [r.accession for r in records] == ["P1", "P2"]
        assert records[-1].sequence == "CCC"

    def test_blank_lines_ignored(self, tmp_path):
        path = tmp_path / "db.fa"
        path.write_text("\n>P1\nAAA\n\nCCC\n\n>P2\nGGG\n")

        records = list(read_fasta(path))

        assert [r.sequence for r in records] == ["AAACCC", "GGG"]

    def test_empty_sequence_kept(self, tmp_path):
        path = tmp_path / "db.fa"
        path.write_text(">P1\n>P2\nAAA\n")

        records = list(read_fasta(path))

        assert records[0] == ProteinRecord("P1", "")

    def test_min_length(self, tmp_path):
        path = tmp_path / "db.fa"
        path.write_text(">P1\nAA\n>P2\nAAAAA\n")

        records = list(read_fasta(path, min_length=3))

        assert [r.accession for r in records] == ["P2"]

    def test_no_alphabet_validation(self, tmp_path):
        path = tmp_path / "db.fa"
        path.write_text(">P1\nXBZ*U-\n")

        assert list(read_fasta(path))[0].sequence == "XBZ*U-"

    def test_gzip(self, tmp_path):
        path = tmp_path / "db.fasta.gz"
        with gzip.open(path, "wt") as f:
            f.write(">P1 first\nMKTAYIAK\n>P2 second\nPEPTIDEK\n")

        records = list(read_fasta(path))

        assert [r.accession for r in records] == ["P1", "P2"]
        assert records[1].sequence == "PEPTIDEK"


class TestReadFastaErrors:
    """Test rejection of unusable database files."""

    def test_wrong_extension(self, tmp_path):
        path = tmp_path / "db.txt"
        path.write_text(">P1\nAAA\n")

        with pytest.raises(DatabaseFormatError):
            list(read_fasta(path))

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            list(read_fasta(tmp_path / "missing.fasta"))

    def test_sequence_before_header(self, tmp_path):
        path = tmp_path / "db.fa"
        path.write_text("AAA\n>P1\nCCC\n")

        with pytest.raises(DatabaseFormatError):
            list(read_fasta(path))

    def test_invalid_gzip(self, tmp_path):
        """A .gz extension on a plain file is a format error."""
        path = tmp_path / "db.fa.gz"
        path.write_text(">P1\nAAA\n")

        with pytest.raises(DatabaseFormatError):
            list(read_fasta(path))

    def test_error_code(self, tmp_path):
        path = tmp_path / "db.csv"
        path.write_text("")

        with pytest.raises(DatabaseFormatError) as excinfo:
            load_fasta_database(path)

        assert excinfo.value.error_code == "DATABASE_FORMAT"
        assert str(excinfo.value).startswith("DATABASE_FORMAT: ")


# =============================================================================
# Protein Database
# =============================================================================

class TestProteinDatabase:
    """Test the ordered flat-storage database."""

    def test_flat_arrays(self, uniprot_db, uniprot_records):
        flat, starts, lengths = uniprot_db.get_flat_arrays()

        assert flat.dtype == np.uint8
        assert len(flat) == sum(len(r.sequence) for r in uniprot_records)
        for i, record in enumerate(uniprot_records):
            stored = flat[starts[i]:starts[i] + lengths[i]].tobytes().decode("ascii")
            assert stored == record.sequence

    def test_order_preserved(self, uniprot_db):
        assert uniprot_db.accessions == ["P1", "P2", "P3"]
        assert uniprot_db[1].accession == "P2"
        assert [r.accession for r in uniprot_db] == ["P1", "P2", "P3"]

    def test_index_of(self, uniprot_db):
        assert uniprot_db.index_of("P3") == 2
        assert uniprot_db.index_of("P9") is None

    def test_duplicate_accession_first_wins(self):
        db = ProteinDatabase([ProteinRecord("P1", "AAA"), ProteinRecord("P1", "CCC")])
        assert db.index_of("P1") == 0
        assert len(db) == 2

    def test_empty_database(self):
        db = ProteinDatabase([])
        flat, starts, lengths = db.get_flat_arrays()

        assert len(db) == 0
        assert len(flat) == len(starts) == len(lengths) == 0

    def test_from_fasta(self, tmp_path):
        path = tmp_path / "uniprot.fasta"
        path.write_text(">P1\nMKTAYIAK\n>P2\nPEPTIDEK\n")

        db = load_fasta_database(path)

        assert len(db) == 2
        assert db.name == "uniprot.fasta"
        assert "n_proteins=2" in repr(db)


class TestEncodeSequence:

    def test_ascii(self):
        encoded = encode_sequence_to_ord("PEPTIDE")
        assert encoded.dtype == np.uint8
        assert list(encoded) == [ord(c) for c in "PEPTIDE"]

    def test_non_ascii_one_byte_per_character(self):
        assert len(encode_sequence_to_ord("AÄA")) == 3
