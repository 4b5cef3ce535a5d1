"""
Column selection for 2-D arrays.

Both helpers are pure: the result never shares storage with the source.
"""

import numpy as np
from typing import List, Sequence

from ..utils import as_matrix


class ColumnSelectionError(ValueError):
    """Raised when a column selection is empty or out of range."""


def _validate_indices(n_cols: int, indices: Sequence[int]) -> List[int]:
    indices = [int(i) for i in indices]
    if len(indices) == 0:
        raise ColumnSelectionError("Column indexes cannot be empty.")
    for index in indices:
        if index < 0 or index >= n_cols:
            raise ColumnSelectionError(
                f"Inconsistent column index {index} for a matrix with {n_cols} columns."
            )
    return indices


def sub_matrix_cols(source, indices: Sequence[int]) -> np.ndarray:
    """
    Select columns from a matrix.

    Args:
        source: 2-D array of shape (n_rows, n_cols)
        indices: Column indices, in the order they should appear in the result

    Returns:
        New array of shape (n_rows, len(indices))
    """
    try:
        matrix = as_matrix(source, name="source")
    except ValueError as e:
        raise ColumnSelectionError(str(e)) from e
    indices = _validate_indices(matrix.shape[1], indices)
    # Fancy indexing always copies
    return matrix[:, indices]


def sub_matrix_cols_exclude(source, indices: Sequence[int]) -> np.ndarray:
    """
    Select every column of a matrix except the given ones.

    Args:
        source: 2-D array of shape (n_rows, n_cols)
        indices: Column indices to leave out

    Returns:
        New array with the remaining columns in their original order
    """
    try:
        matrix = as_matrix(source, name="source")
    except ValueError as e:
        raise ColumnSelectionError(str(e)) from e
    excluded = set(_validate_indices(matrix.shape[1], indices))
    kept = [i for i in range(matrix.shape[1]) if i not in excluded]
    if len(kept) == 0:
        raise ColumnSelectionError("Excluding the given columns leaves no columns.")
    return matrix[:, kept]
