"""Module containing custom exceptions."""


class PeptideScanError(Exception):
    """Base class for all errors raised by peptidescan."""

    _error_code = "PEPTIDESCAN_ERROR"

    @property
    def error_code(self):
        return self._error_code

    @property
    def msg(self):
        return self._msg

    def __init__(self, msg: str = ""):
        self._msg = msg

        super().__init__(msg)

    def __str__(self):
        return f"{self._error_code}: {self._msg}"


class DatabaseFormatError(PeptideScanError):
    """Raise when a protein database is not a readable FASTA or FASTA.GZ file."""

    _error_code = "DATABASE_FORMAT"


class FileFormatError(PeptideScanError):
    """Raise when a PSM file is empty or misses a required column."""

    _error_code = "FILE_FORMAT"


class MalformedSampleName(PeptideScanError):
    """Raise when a sample name does not end in a usable sample number."""

    _error_code = "MALFORMED_SAMPLE_NAME"


class MatchingInterrupted(PeptideScanError):
    """Raise when waiting for worker results was interrupted."""

    _error_code = "MATCHING_INTERRUPTED"


class MatchingTimeout(MatchingInterrupted):
    """Raise when worker results did not arrive within the configured timeout."""

    _error_code = "MATCHING_TIMEOUT"


class ConfigurationError(PeptideScanError):
    """Raise when a required argument is missing or invalid."""

    _error_code = "CONFIGURATION"
