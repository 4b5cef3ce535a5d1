"""
Train/eval/test partitioning of labelled tabular data.

A `DataTable` holds the feature (X) and label (Y) matrices of the training
split and, optionally, of an evaluation split and a test split. Tables are
built either by slicing a single matrix by row percentage, or from matrices
that were split beforehand.
"""

import logging
import numpy as np
import pandas as pd
from typing import List, Optional, Sequence

from ..utils import as_matrix, frozen, is_empty
from .columns import ColumnSelectionError, sub_matrix_cols, sub_matrix_cols_exclude

logger = logging.getLogger(__name__)


class DataTableError(ValueError):
    """Raised when a `DataTable` cannot be constructed from its inputs."""


def split_sizes(n_rows: int, eval_percent=None, test_percent=None):
    """
    Compute the (train, eval, test) row counts for a split by percentage.

    Sizes are floored: `size = floor(n_rows * percent / 100)`.

    Args:
        n_rows: Total number of rows
        eval_percent: Percentage of rows for the evaluation split, in (0, 100). Default: None.
        test_percent: Percentage of rows for the test split, in (0, 100). Default: None.

    Returns:
        Tuple of (train_size, eval_size, test_size)

    Raises:
        DataTableError: If a percentage is out of range, a split would be empty,
            or a test split is requested without an evaluation split
    """
    if test_percent is not None and eval_percent is None:
        raise DataTableError("A test split requires an evaluation split.")

    eval_size = 0
    test_size = 0

    if eval_percent is not None:
        if not 0 < eval_percent < 100:
            raise DataTableError("Inconsistent evaluation percentage.")
        eval_size = int(n_rows * eval_percent // 100)
        if eval_size == 0:
            raise DataTableError("Inconsistent evaluation percentage.")

    if test_percent is not None:
        if not 0 < test_percent < 100:
            raise DataTableError("Inconsistent test percentage.")
        test_size = int(n_rows * test_percent // 100)
        if test_size == 0:
            raise DataTableError("Inconsistent test percentage.")

    if eval_size + test_size >= n_rows:
        raise DataTableError("Inconsistent combination of test and eval percentages.")

    return n_rows - eval_size - test_size, eval_size, test_size


class DataTable:
    """
    Feature/label matrices split into training, evaluation and test sets.

    Row order is preserved: the first rows form the training split, followed
    by the evaluation split and then the test split. Tables are immutable; the
    stored matrices are returned as read-only arrays. Use `clone()` to get an
    independent copy that shares no storage with this table.

    Attributes:
        x_names: Feature column names when built with `from_dataframe`, else None
        y_names: Label column names when built with `from_dataframe`, else None

    Example:
        >>> data = np.arange(30.0).reshape(10, 3)
        >>> table = DataTable(data, y_cols=[2], eval_percent=20, test_percent=10)
        >>> table.x_train.shape, table.x_eval.shape, table.x_test.shape
        ((7, 2), (2, 2), (1, 2))
    """

    def __init__(
        self,
        data,
        y_cols: Sequence[int],
        x_cols: Optional[Sequence[int]] = None,
        eval_percent=None,
        test_percent=None,
    ):
        """
        Create a `DataTable` from a single matrix.

        Args:
            data: 2-D array (rows are samples, columns are features and labels)
            y_cols: Indices of the label columns
            x_cols: Indices of the feature columns. If None, every column not in
                `y_cols` is a feature column. Default: None.
            eval_percent: Percentage of rows for the evaluation split. Default: None.
            test_percent: Percentage of rows for the test split. Requires
                `eval_percent`. Default: None.
        """
        try:
            data = as_matrix(data, name="data")
        except ValueError as e:
            raise DataTableError(str(e)) from e
        if is_empty(data):
            raise DataTableError("Tensor has zero dimension.")

        y_cols = list(y_cols)
        if x_cols is not None:
            x_cols = list(x_cols)
            overlap = set(x_cols) & set(y_cols)
            if overlap:
                raise DataTableError(
                    f"Feature and label columns must be disjoint, both contain {sorted(overlap)}."
                )

        train_size, eval_size, test_size = split_sizes(len(data), eval_percent, test_percent)

        def select(rows: np.ndarray):
            try:
                if x_cols is None:
                    x = sub_matrix_cols_exclude(rows, y_cols)
                else:
                    x = sub_matrix_cols(rows, x_cols)
                y = sub_matrix_cols(rows, y_cols)
            except ColumnSelectionError as e:
                raise DataTableError(str(e)) from e
            return x, y

        eval_end = train_size + eval_size
        self._x_train, self._y_train = select(data[:train_size])
        self._x_eval = self._y_eval = None
        self._x_test = self._y_test = None
        if eval_size > 0:
            self._x_eval, self._y_eval = select(data[train_size:eval_end])
        if test_size > 0:
            self._x_test, self._y_test = select(data[eval_end:eval_end + test_size])

        self.x_names = None
        self.y_names = None

        logger.debug(
            "Built DataTable with train=%d eval=%d test=%d rows, %d feature(s), %d label(s)",
            train_size, eval_size, test_size, self.x_dim, self.y_dim,
        )

    @classmethod
    def from_splits(
        cls,
        x_train,
        y_train,
        x_eval=None,
        y_eval=None,
        x_test=None,
        y_test=None,
    ) -> "DataTable":
        """
        Create a `DataTable` from matrices that are already split.

        Args:
            x_train: Training features of shape (n_train, n_features)
            y_train: Training labels of shape (n_train, n_labels)
            x_eval: Evaluation features. Default: None.
            y_eval: Evaluation labels. Default: None.
            x_test: Test features. Requires the evaluation split. Default: None.
            y_test: Test labels. Default: None.

        Returns:
            table: The new `DataTable`
        """
        if (x_eval is None) != (y_eval is None):
            raise DataTableError("Evaluation features and labels must be given together.")
        if (x_test is None) != (y_test is None):
            raise DataTableError("Test features and labels must be given together.")
        if x_test is not None and x_eval is None:
            raise DataTableError("A test split requires an evaluation split.")

        splits = {"train": (x_train, y_train)}
        if x_eval is not None:
            splits["eval"] = (x_eval, y_eval)
        if x_test is not None:
            splits["test"] = (x_test, y_test)

        matrices = {}
        for split, (x, y) in splits.items():
            try:
                x = as_matrix(x, name=f"x_{split}")
                y = as_matrix(y, name=f"y_{split}")
            except ValueError as e:
                raise DataTableError(str(e)) from e
            if is_empty(x) or is_empty(y):
                raise DataTableError(f"The {split} split has a tensor with zero dimension.")
            if x.shape[0] != y.shape[0]:
                raise DataTableError(
                    f"Features ({x.shape[0]} rows) and labels ({y.shape[0]} rows) "
                    f"of the {split} split are incompatible."
                )
            matrices[split] = (x.copy(), y.copy())

        n_features = matrices["train"][0].shape[1]
        n_labels = matrices["train"][1].shape[1]
        for split, (x, y) in matrices.items():
            if x.shape[1] != n_features or y.shape[1] != n_labels:
                raise DataTableError(
                    f"Column counts of the {split} split do not match the training split."
                )

        table = cls.__new__(cls)
        table._x_train, table._y_train = matrices["train"]
        table._x_eval, table._y_eval = matrices.get("eval", (None, None))
        table._x_test, table._y_test = matrices.get("test", (None, None))
        table.x_names = None
        table.y_names = None
        return table

    @classmethod
    def from_dataframe(
        cls,
        df: pd.DataFrame,
        y_cols: List[str],
        x_cols: Optional[List[str]] = None,
        eval_percent=None,
        test_percent=None,
    ) -> "DataTable":
        """
        Create a `DataTable` from a `pandas.DataFrame` using column names.

        Args:
            df: `pandas.DataFrame` with numeric columns
            y_cols: Names of the label columns
            x_cols: Names of the feature columns. If None, every other column. Default: None.
            eval_percent: Percentage of rows for the evaluation split. Default: None.
            test_percent: Percentage of rows for the test split. Default: None.

        Returns:
            table: The new `DataTable`, with `x_names` and `y_names` set
        """
        missing = [c for c in list(y_cols) + list(x_cols or []) if c not in df.columns]
        if missing:
            raise DataTableError(f"Columns not found in DataFrame: {missing}")

        columns = list(df.columns)
        y_idx = [columns.index(c) for c in y_cols]
        x_idx = None if x_cols is None else [columns.index(c) for c in x_cols]

        try:
            values = df.to_numpy(dtype=float)
        except (TypeError, ValueError) as e:
            raise DataTableError(f"DataFrame must contain only numeric columns: {e}") from e

        table = cls(
            values,
            y_cols=y_idx,
            x_cols=x_idx,
            eval_percent=eval_percent,
            test_percent=test_percent,
        )
        table.y_names = list(y_cols)
        if x_cols is None:
            table.x_names = [c for c in columns if c not in set(y_cols)]
        else:
            table.x_names = list(x_cols)
        return table

    @property
    def x_train(self) -> np.ndarray:
        return frozen(self._x_train)

    @property
    def y_train(self) -> np.ndarray:
        return frozen(self._y_train)

    @property
    def x_eval(self) -> Optional[np.ndarray]:
        """Evaluation features, or None if there is no evaluation split."""
        return None if self._x_eval is None else frozen(self._x_eval)

    @property
    def y_eval(self) -> Optional[np.ndarray]:
        """Evaluation labels, or None if there is no evaluation split."""
        return None if self._y_eval is None else frozen(self._y_eval)

    @property
    def x_test(self) -> Optional[np.ndarray]:
        """Test features, or None if there is no test split."""
        return None if self._x_test is None else frozen(self._x_test)

    @property
    def y_test(self) -> Optional[np.ndarray]:
        """Test labels, or None if there is no test split."""
        return None if self._y_test is None else frozen(self._y_test)

    @property
    def has_eval(self) -> bool:
        return self._x_eval is not None

    @property
    def has_test(self) -> bool:
        return self._x_test is not None

    @property
    def x_dim(self) -> int:
        """Number of feature columns."""
        return self._x_train.shape[1]

    @property
    def y_dim(self) -> int:
        """Number of label columns."""
        return self._y_train.shape[1]

    @property
    def row_size(self) -> int:
        """Number of rows in the training split."""
        return self._x_train.shape[0]

    def clone(self) -> "DataTable":
        """Return a deep copy. The copy shares no storage with this table."""
        table = self.__class__.__new__(self.__class__)
        for attr in ("_x_train", "_y_train", "_x_eval", "_y_eval", "_x_test", "_y_test"):
            value = getattr(self, attr)
            setattr(table, attr, None if value is None else value.copy())
        table.x_names = None if self.x_names is None else list(self.x_names)
        table.y_names = None if self.y_names is None else list(self.y_names)
        return table

    def __repr__(self):
        eval_rows = self._x_eval.shape[0] if self.has_eval else 0
        test_rows = self._x_test.shape[0] if self.has_test else 0
        return (
            f"DataTable(train={self.row_size}, eval={eval_rows}, test={test_rows}, "
            f"x_dim={self.x_dim}, y_dim={self.y_dim})"
        )
