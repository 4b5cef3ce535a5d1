"""
Per-column feature normalization derived from a training split.

The statistics of every feature column of `DataTable.x_train` are frozen
into one scalar transform per column. The transforms can then be applied
to any matrix with the same number of columns, e.g. the evaluation and test
splits or new samples passed to a trained model.
"""

import logging
import numpy as np
from enum import Enum
from functools import partial
from typing import Callable, List, Optional

from ..utils import as_matrix
from .table import DataTable

logger = logging.getLogger(__name__)


class NormalizationType(Enum):
    """Normalization methods."""

    MIN_MAX = "min_max"
    Z_SCORE = "z_score"


class DataTableNormError(ValueError):
    """Raised when a normalizer is used before it has a table, or with a mismatched matrix."""


def _min_max(values, low: float, span: float):
    if span == 0:
        return np.zeros_like(values, dtype=float)
    return (values - low) / span


def _z_score(values, mean: float, std: float):
    if std == 0:
        return np.zeros_like(values, dtype=float)
    return (values - mean) / std


def column_statistics(features: np.ndarray, norm_type: NormalizationType) -> np.ndarray:
    """
    Compute the statistics a normalization method needs for every column.

    Args:
        features: Training features of shape (n_samples, n_features)
        norm_type: Normalization method

    Returns:
        Array of shape (2, n_features): (min, max) rows for MIN_MAX,
        (mean, population std) rows for Z_SCORE
    """
    features = np.asarray(features, dtype=float)
    if norm_type == NormalizationType.MIN_MAX:
        return np.vstack([features.min(axis=0), features.max(axis=0)])

    std = features.std(axis=0, ddof=0)
    # Rounding in the mean can leave a tiny spread on constant columns
    std[features.max(axis=0) == features.min(axis=0)] = 0.0
    return np.vstack([features.mean(axis=0), std])


def derive_transforms(features: np.ndarray, norm_type: NormalizationType) -> List[Callable]:
    """
    Build one transform per column of a feature matrix.

    MIN_MAX maps `v` to `(v - min) / (max - min)`. Z_SCORE maps `v` to
    `(v - mean) / std`, using the population standard deviation. Columns with
    zero range (MIN_MAX) or zero variance (Z_SCORE) map every value to 0.

    Args:
        features: Training features of shape (n_samples, n_features)
        norm_type: Normalization method

    Returns:
        List of callables, one per column. Each accepts a scalar or an array.
    """
    stats = column_statistics(features, norm_type)
    transforms = []
    for first, second in stats.T:
        if norm_type == NormalizationType.MIN_MAX:
            transforms.append(partial(_min_max, low=float(first), span=float(second - first)))
        else:
            transforms.append(partial(_z_score, mean=float(first), std=float(second)))
    return transforms


class FeatureNormalizer:
    """
    Normalizer for the features of a `DataTable`.

    The transforms depend only on the training split statistics captured when
    the table is set. Mutating the table afterwards does not change them.

    Attributes:
        column_transforms: One callable per feature column

    Example:
        >>> normalizer = FeatureNormalizer(table, NormalizationType.Z_SCORE)
        >>> x_train = normalizer.x_train_normalized()
        >>> sample = normalizer.normalize(np.array([[1.0, 2.0]]))
    """

    def __init__(
        self,
        data_table: Optional[DataTable] = None,
        norm_type: NormalizationType = NormalizationType.MIN_MAX,
    ):
        """
        Create a `FeatureNormalizer` instance.

        Args:
            data_table: Table whose training features define the transforms.
                If None, the normalizer cannot be used until `set_data_table`
                is called. Default: None.
            norm_type: Normalization method. Default: `NormalizationType.MIN_MAX`.
        """
        self._norm_type = NormalizationType(norm_type)
        self._data_table = None
        self.column_transforms: List[Callable] = []
        if data_table is not None:
            self.set_data_table(data_table)

    @property
    def norm_type(self) -> NormalizationType:
        return self._norm_type

    @property
    def data_table(self) -> DataTable:
        if self._data_table is None:
            raise DataTableNormError("No DataTable has been set.")
        return self._data_table

    def set_data_table(self, data_table: DataTable):
        """
        Replace the table and re-derive every column transform from its training features.

        Args:
            data_table: The new `DataTable`
        """
        if not isinstance(data_table, DataTable):
            raise DataTableNormError(
                f"Expected a DataTable, got {type(data_table).__name__}."
            )
        transforms = derive_transforms(data_table.x_train, self._norm_type)
        self._data_table = data_table
        self._statistics = column_statistics(data_table.x_train, self._norm_type)
        self.column_transforms = transforms
        logger.debug(
            "Derived %d %s transform(s)", len(transforms), self._norm_type.name
        )

    @property
    def statistics(self) -> np.ndarray:
        """
        Frozen training statistics of shape (2, n_features).

        Row 0 and row 1 hold the column minimum and maximum for MIN_MAX,
        or the column mean and population standard deviation for Z_SCORE.
        """
        if self._data_table is None:
            raise DataTableNormError("No DataTable has been set.")
        return self._statistics.copy()

    def normalize(self, x, inplace: bool = False) -> np.ndarray:
        """
        Apply the column transforms to a matrix.

        Args:
            x: Matrix of shape (n_samples, n_features)
            inplace: If True and `x` is a writeable float array, its storage is
                reused for the result. If False, `x` is left untouched. Default: False.

        Returns:
            Normalized matrix
        """
        if not self.column_transforms:
            raise DataTableNormError("Normalizer has no DataTable; call set_data_table() first.")

        try:
            matrix = as_matrix(x, name="x")
        except ValueError as e:
            raise DataTableNormError(str(e)) from e

        if matrix.shape[1] != len(self.column_transforms):
            raise DataTableNormError(
                f"Matrix has {matrix.shape[1]} column(s), expected {len(self.column_transforms)}."
            )

        reuse = (
            inplace
            and matrix is x
            and np.issubdtype(matrix.dtype, np.floating)
            and matrix.flags.writeable
        )
        result = matrix if reuse else matrix.astype(float, copy=True)

        for j, transform in enumerate(self.column_transforms):
            result[:, j] = transform(result[:, j])

        return result

    def x_train_normalized(self) -> np.ndarray:
        """Return the normalized training features of the table."""
        return self.normalize(self.data_table.x_train)

    def x_eval_normalized(self) -> np.ndarray:
        """Return the normalized evaluation features of the table."""
        if not self.data_table.has_eval:
            raise DataTableNormError("DataTable has no evaluation split.")
        return self.normalize(self.data_table.x_eval)

    def x_test_normalized(self) -> np.ndarray:
        """Return the normalized test features of the table."""
        if not self.data_table.has_test:
            raise DataTableNormError("DataTable has no test split.")
        return self.normalize(self.data_table.x_test)

    def __repr__(self):
        return f"FeatureNormalizer(norm_type={self._norm_type.name}, n_features={len(self.column_transforms)})"


DataTableNorm = FeatureNormalizer
