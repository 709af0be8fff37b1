"""Hi-C contact tables.

Sparse (chrom1, pos1, chrom2, pos2, score) records with typed metadata, conversion
to and from dense per-chromosome matrices, and readers/writers for common Hi-C
file formats.
"""

__version__ = "0.1.0"

from .builder import build_table, guess_resolution
from .errors import FormatError, HicTableError, PartialDataWarning, SubprocessError, ValidationError
from .matrix import matrix_to_table, to_matrix, to_records, to_sparse
from .readers import load_hic
from .table import ContactRecord, ContactTable, DataType, Norm, TableMeta
from .writers import write_hic, write_matrix

__all__ = [
    "ContactRecord",
    "ContactTable",
    "DataType",
    "FormatError",
    "HicTableError",
    "Norm",
    "PartialDataWarning",
    "SubprocessError",
    "TableMeta",
    "ValidationError",
    "build_table",
    "guess_resolution",
    "load_hic",
    "matrix_to_table",
    "to_matrix",
    "to_records",
    "to_sparse",
    "write_hic",
    "write_matrix",
]
