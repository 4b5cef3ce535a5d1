"""Train/eval/test splitting, feature normalization and least-squares training for tabular data."""

__version__ = "0.1.0"

from .data import (
    ColumnSelectionError,
    DataTable,
    DataTableError,
    DataTableNorm,
    DataTableNormError,
    FeatureNormalizer,
    NormalizationType,
    TextFileError,
    one_hot_encode_text_file,
    read_text_file,
    sub_matrix_cols,
    sub_matrix_cols_exclude,
    write_text_file,
)

from .losses import Loss, LossError, LossFunc

from .models import (
    OlsGDTrainer,
    OrdLeastSquaresTrainer,
    Trainer,
    TrainerError,
)

__all__ = [
    # Data
    "ColumnSelectionError",
    "DataTable",
    "DataTableError",
    "DataTableNorm",
    "DataTableNormError",
    "FeatureNormalizer",
    "NormalizationType",
    "sub_matrix_cols",
    "sub_matrix_cols_exclude",

    # Text files
    "TextFileError",
    "one_hot_encode_text_file",
    "read_text_file",
    "write_text_file",

    # Losses
    "Loss",
    "LossError",
    "LossFunc",

    # Models
    "OlsGDTrainer",
    "OrdLeastSquaresTrainer",
    "Trainer",
    "TrainerError",
]
