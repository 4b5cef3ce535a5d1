"""Dataset partitioning, column selection, normalization and text I/O."""

from .columns import ColumnSelectionError, sub_matrix_cols, sub_matrix_cols_exclude
from .table import DataTable, DataTableError
from .normalization import (
    DataTableNorm,
    DataTableNormError,
    FeatureNormalizer,
    NormalizationType,
)
from .loading import (
    TextFileError,
    one_hot_encode_text_file,
    read_text_file,
    write_text_file,
)

__all__ = [
    "ColumnSelectionError",
    "sub_matrix_cols",
    "sub_matrix_cols_exclude",
    "DataTable",
    "DataTableError",
    "DataTableNorm",
    "DataTableNormError",
    "FeatureNormalizer",
    "NormalizationType",
    "TextFileError",
    "one_hot_encode_text_file",
    "read_text_file",
    "write_text_file",
]
