"""Array helpers shared by the data and model modules."""

import numpy as np
import pandas as pd


def as_matrix(values, name: str = "array", dtype=None) -> np.ndarray:
    """
    Convert array-like input (including `pandas.DataFrame`) to a 2-D `numpy.ndarray`.

    The result is a view when no conversion is needed; callers that keep the
    array must copy it.

    Args:
        values: Array-like with two dimensions
        name: Name used in error messages. Default: 'array'.
        dtype: Optional dtype for the conversion. Default: None (keep input dtype).

    Returns:
        2-D numpy array

    Raises:
        ValueError: If the input is not two-dimensional
    """
    if isinstance(values, (pd.DataFrame, pd.Series)):
        values = values.to_numpy()
    matrix = np.asarray(values, dtype=dtype)
    if matrix.ndim != 2:
        raise ValueError(f"{name} must be two-dimensional, got {matrix.ndim} dimension(s).")
    return matrix


def is_empty(matrix: np.ndarray) -> bool:
    """Return True if any axis of `matrix` has zero length."""
    return matrix.size == 0


def add_bias_column(x: np.ndarray, value: float = 1.0) -> np.ndarray:
    """
    Append a constant column to a feature matrix (bias augmentation).

    Args:
        x: Feature matrix of shape (n_samples, n_features)
        value: Value of the new column. Default: 1.0.

    Returns:
        Matrix of shape (n_samples, n_features + 1) with the constant column last
    """
    x = np.asarray(x, dtype=float)
    return np.hstack([x, np.full((x.shape[0], 1), value)])


def frozen(matrix: np.ndarray) -> np.ndarray:
    """Return a read-only view of `matrix`."""
    view = matrix.view()
    view.flags.writeable = False
    return view
