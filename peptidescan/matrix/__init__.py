"""Per-sample peptide matrices and CSV output."""

from .builder import (
    SCAN_SLOT,
    SCORE_SLOT,
    MatrixBuilder,
    MatrixRow,
    SampleLayout,
    build_matrix,
    fill_matrix,
    number_datasets,
    parse_sample_index,
)
from .writer import (
    atomic_write,
    format_position,
    matrix_to_dataframe,
    read_matrix_csv,
    scan_table_header,
    write_matrix_csv,
    write_positions_csv,
    write_scan_table_csv,
)

__all__ = [
    # Builder
    'SCAN_SLOT',
    'SCORE_SLOT',
    'MatrixBuilder',
    'MatrixRow',
    'SampleLayout',
    'build_matrix',
    'fill_matrix',
    'number_datasets',
    'parse_sample_index',
    # Writer
    'atomic_write',
    'format_position',
    'matrix_to_dataframe',
    'read_matrix_csv',
    'scan_table_header',
    'write_matrix_csv',
    'write_positions_csv',
    'write_scan_table_csv',
]
