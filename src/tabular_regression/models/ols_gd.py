"""Ordinary least squares fitted by gradient descent."""

import logging
import numpy as np

from ..losses import Loss, LossFunc
from ..utils import add_bias_column
from .base import Trainer, TrainerError

logger = logging.getLogger(__name__)


class OlsGDTrainer(Trainer):
    """
    Linear model `Y = X·Wᵀ + b` fitted by gradient descent on the least-squares objective.

    Weights and bias are learned jointly as a single matrix `B` of shape
    (n_labels, n_features + 1) by appending a column of ones to the features.
    With `Z = XᵀX` and `K = YᵀX` precomputed, every epoch applies

        B ← B − lr·(B·Z − K)

    so an epoch costs O(n_labels·n_features²) regardless of the number of rows.

    With a variable learning rate the first step is `1/‖X‖²` (a step that
    never exceeds the inverse Lipschitz constant of the gradient) and the
    following steps use the Barzilai–Borwein rule. Otherwise the fixed
    `learning_rate` is used. The weights with the lowest training loss are kept.

    Example:
        >>> trainer = OlsGDTrainer(DataTable(data, y_cols=[3], eval_percent=20, test_percent=10))
        >>> trainer.enable_variable_lr()
        >>> trainer.fit(100, LossFunc.MAE, patience=5)
        >>> trainer.compute_test_loss(LossFunc.MAE)
    """

    def __init__(self, data_table, learning_rate: float = 0.01):
        """
        Create an `OlsGDTrainer` instance.

        Args:
            data_table: `DataTable` with the training split
            learning_rate: Fixed learning rate, used unless the variable learning
                rate is enabled. Default: 0.01.
        """
        super().__init__(data_table)
        if learning_rate <= 0:
            raise TrainerError(f"Learning rate must be positive, got {learning_rate}.")
        self._fixed_learning_rate = float(learning_rate)
        self._learning_rate = self._fixed_learning_rate
        self._variable_lr = False
        self._weight_bias = None

    @property
    def learning_rate(self) -> float:
        """Rate of the first step of the last fit, or the fixed rate if the variable rate is off."""
        return self._learning_rate

    def set_learning_rate(self, learning_rate: float):
        """Set the fixed learning rate. Resets the trainer to the untrained state."""
        if learning_rate <= 0:
            raise TrainerError(f"Learning rate must be positive, got {learning_rate}.")
        self.reset()
        self._fixed_learning_rate = float(learning_rate)
        self._learning_rate = self._fixed_learning_rate

    @property
    def is_variable_lr(self) -> bool:
        return self._variable_lr

    def enable_variable_lr(self):
        self._variable_lr = True

    def disable_variable_lr(self):
        """Go back to the fixed learning rate."""
        self._variable_lr = False
        self._learning_rate = self._fixed_learning_rate

    @property
    def weight_bias(self) -> np.ndarray:
        """Learned matrix of shape (n_labels, n_features + 1); the last column is the bias."""
        if not self._is_trained:
            raise TrainerError("Trainer is not trained. Call fit() first.")
        return self._weight_bias.copy()

    def reset(self):
        super().reset()
        self._weight_bias = None

    def _train(self, epochs: int, metric: LossFunc):
        x = add_bias_column(self._training_features())
        y = np.asarray(self._data_table.y_train, dtype=float)
        loss = Loss(y, metric)

        gram = x.T @ x
        k = y.T @ x

        x_norm = np.linalg.norm(x)
        weight_bias = np.full((y.shape[1], x.shape[1]), np.linalg.norm(y) / x_norm)

        lipschitz_lr = 1.0 / x_norm**2
        self._learning_rate = lipschitz_lr if self._variable_lr else self._fixed_learning_rate

        best = weight_bias.copy()
        stall = 0
        prev_weight_bias = prev_grad = None

        for epoch in range(epochs):
            grad = weight_bias @ gram - k

            lr = self._learning_rate
            if self._variable_lr and prev_grad is not None:
                step = weight_bias - prev_weight_bias
                denom = np.sum(step * (grad - prev_grad))
                if denom > 0:
                    lr = np.sum(step * step) / denom
                if not np.isfinite(lr) or lr <= 0:
                    lr = lipschitz_lr

            prev_weight_bias, prev_grad = weight_bias, grad
            weight_bias = weight_bias - lr * grad

            current = loss.get_loss(x @ weight_bias.T)
            if not np.isfinite(current):
                self._weight_bias = None
                raise TrainerError(
                    f"Training diverged at epoch {epoch + 1}; try a smaller learning rate "
                    "or enable the variable learning rate."
                )
            self.loss_history.append(current)

            if current < self._min_loss:
                self._min_loss = current
                best = weight_bias.copy()
                stall = 0
            else:
                stall += 1

            if current < self._tolerance:
                self._is_converged = True
                logger.debug("Converged at epoch %d with loss %.6g", epoch + 1, current)
                break

            if self._is_early_stop and stall >= self._patience:
                logger.debug("Early stop at epoch %d, no improvement for %d epoch(s)", epoch + 1, stall)
                break

            if not np.any(grad):
                # Exact optimum reached
                break

        self._weight_bias = best

    def predict(self, x) -> np.ndarray:
        x = self._prepare_input(x)
        return add_bias_column(x) @ self._weight_bias.T
