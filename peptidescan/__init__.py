"""peptidescan - peptide-to-protein matching and scan ID comparison.

Matches peptides identified in PSM exports against a UniProt database, a
combined multi-sample database and per-sample individual databases, then
compares the three tiers scan by scan.

Heavy lifting (substring search over all proteins) runs in Numba kernels
that release the GIL, sharded over a fixed-size thread pool.
"""

__version__ = "1.0.0"

# Import main submodules for convenient access
from peptidescan import database
from peptidescan import identification
from peptidescan import search
from peptidescan import scans
from peptidescan import matrix

__all__ = [
    "database",
    "identification",
    "search",
    "scans",
    "matrix",
]
