"""Loss metrics comparing predictions with ground truth."""

import numpy as np
from enum import Enum


class LossFunc(Enum):
    """Available loss metrics."""

    MSE = "mse"    # mean squared error
    MAE = "mae"    # mean absolute error
    MSLE = "msle"  # mean squared logarithmic error
    LCHE = "lche"  # log-cosh error


class LossError(ValueError):
    """Raised when a loss cannot be computed for the given arrays."""


class Loss:
    """
    Loss of predictions against a fixed array of valid (ground truth) values.

    Every metric is the mean over all elements.

    Example:
        >>> loss = Loss(y_test, LossFunc.MAE)
        >>> loss.get_loss(model.predict(x_test))
    """

    def __init__(self, valid, func: LossFunc = LossFunc.MSE):
        """
        Create a `Loss` instance.

        Args:
            valid: Ground truth values (any shape, non-empty)
            func: Metric used by `get_loss`. Default: `LossFunc.MSE`.
        """
        valid = np.asarray(valid, dtype=float)
        if valid.size == 0:
            raise LossError("Tensor has dimension zero.")
        self._valid = valid
        self.set_loss(func)

    @property
    def func(self) -> LossFunc:
        return self._func

    def set_loss(self, func: LossFunc):
        """Select the metric used by `get_loss`."""
        func = LossFunc(func)
        self._loss_func = {
            LossFunc.MSE: self.mean_squared_error,
            LossFunc.MAE: self.mean_absolute_error,
            LossFunc.MSLE: self.mean_squared_logarithmic_error,
            LossFunc.LCHE: self.log_cosh_error,
        }[func]
        self._func = func

    def _verify(self, pred) -> np.ndarray:
        pred = np.asarray(pred, dtype=float)
        if pred.size == 0:
            raise LossError("Tensor has dimension zero.")
        if pred.shape != self._valid.shape:
            raise LossError(
                f"Incompatible shape: expected {self._valid.shape}, got {pred.shape}."
            )
        return pred

    def mean_squared_error(self, pred) -> float:
        pred = self._verify(pred)
        return float(np.mean((pred - self._valid)**2))

    def mean_absolute_error(self, pred) -> float:
        pred = self._verify(pred)
        return float(np.mean(np.abs(pred - self._valid)))

    def mean_squared_logarithmic_error(self, pred) -> float:
        """
        Mean of `(log(1 + pred) - log(1 + valid))^2`.

        Raises:
            LossError: If any predicted or valid element is negative
        """
        pred = self._verify(pred)
        if np.any(pred < 0) or np.any(self._valid < 0):
            raise LossError("A tensor element is negative.")
        return float(np.mean((np.log1p(pred) - np.log1p(self._valid))**2))

    def log_cosh_error(self, pred) -> float:
        pred = self._verify(pred)
        diff = pred - self._valid
        # log(cosh(d)) without overflow for large |d|
        return float(np.mean(np.logaddexp(diff, -diff) - np.log(2.0)))

    mse = mean_squared_error
    mae = mean_absolute_error
    msle = mean_squared_logarithmic_error
    lche = log_cosh_error

    def get_loss(self, pred) -> float:
        """Compute the selected metric for `pred`."""
        return self._loss_func(pred)

    def __repr__(self):
        return f"Loss(func={self._func.name}, shape={self._valid.shape})"
