"""
Reading and writing delimited text files holding numeric matrices.

Used by the command line script to load datasets into a `DataTable` and to
save learned parameters.
"""

import numpy as np
import pandas as pd
from pathlib import Path
from typing import Optional


class TextFileError(ValueError):
    """Raised when a text file cannot be read as, or written from, a numeric matrix."""


def _read_frame(path, separator: str, has_header: bool) -> pd.DataFrame:
    path = Path(path)
    if not path.is_file():
        raise TextFileError(f"Could not open file: {path}")

    try:
        df = pd.read_csv(
            path,
            sep=separator,
            header=0 if has_header else None,
            skipinitialspace=True,
        )
    except pd.errors.EmptyDataError as e:
        raise TextFileError(f"File can not be empty: {path}") from e
    except pd.errors.ParserError as e:
        raise TextFileError(f"Inconsistent number of columns in {path}: {e}") from e

    if df.empty:
        raise TextFileError(f"File can not be empty: {path}")
    if df.shape[1] < 2 and separator not in path.read_text().splitlines()[0]:
        raise TextFileError(f"Separator {separator!r} not found in {path}")
    return df


def read_text_file(
    path,
    separator: str = ",",
    has_header: bool = False,
    verbose: bool = False,
) -> np.ndarray:
    """
    Load a delimited text file into a float matrix.

    Args:
        path: Path to the file.
        separator: Column separator. Default: ','.
        has_header: If True, the first line is a header and is skipped. Default: False.
        verbose: Print progress messages. Default: False.

    Returns:
        2-D numpy array of shape (n_rows, n_cols)
    """
    if verbose:
        print(f"Loading matrix from {path}...")

    df = _read_frame(path, separator, has_header)

    if df.isna().any().any():
        raise TextFileError(f"Inconsistent number of columns in {path}")
    try:
        matrix = df.to_numpy(dtype=float)
    except ValueError as e:
        raise TextFileError(f"Invalid element in {path}: {e}") from e

    if verbose:
        print(f"  Loaded {matrix.shape[0]} rows with {matrix.shape[1]} columns")

    return matrix


def write_text_file(
    matrix,
    path,
    separator: str = ",",
    precision: Optional[int] = None,
):
    """
    Write a matrix to a delimited text file (no header, no index).

    Args:
        matrix: 2-D array
        path: Destination path.
        separator: Column separator. Default: ','.
        precision: Number of decimal places written for every value, in
            fixed-point notation. Must be greater than 1. If None, values are
            written with full precision. Default: None.
    """
    matrix = np.asarray(matrix)
    if matrix.ndim != 2:
        raise TextFileError("Tensor is not a matrix!")
    if precision is not None and precision <= 1:
        raise TextFileError("Precision must be greater than 1!")

    float_format = None if precision is None else f"%.{precision}f"
    pd.DataFrame(matrix).to_csv(
        path, sep=separator, header=False, index=False, float_format=float_format
    )


def one_hot_encode_text_file(
    source_path,
    target_path,
    separator: str = ",",
    has_header: bool = False,
) -> pd.DataFrame:
    """
    One-hot encode the non-numeric columns of a delimited text file.

    Each non-numeric column is replaced, in place, by one indicator column per
    distinct value (in order of first appearance). Numeric columns are kept.

    Args:
        source_path: Path to the source file.
        target_path: Path of the encoded file to write.
        separator: Column separator, used for both files. Default: ','.
        has_header: If True, the first line is a header. The encoded file then
            gets a header with `<column>_<value>` names. Default: False.

    Returns:
        The encoded `pandas.DataFrame` (as written to `target_path`)
    """
    df = _read_frame(source_path, separator, has_header)

    columns = []
    for col in df.columns:
        values = df[col]
        numeric = pd.to_numeric(values, errors="coerce")
        if numeric.notna().all():
            columns.append(numeric.astype(float).rename(col))
            continue
        categories = pd.unique(values.astype(str).str.strip())
        for category in categories:
            name = f"{col}_{category}"
            columns.append((values.astype(str).str.strip() == category).astype(float).rename(name))

    df_encoded = pd.concat(columns, axis=1)
    df_encoded.to_csv(target_path, sep=separator, header=has_header, index=False)
    return df_encoded
