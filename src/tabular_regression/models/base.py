"""Base interface for trainers."""

import logging
import numpy as np
from abc import ABC, abstractmethod
from typing import List, Optional

from ..data.normalization import FeatureNormalizer, NormalizationType
from ..data.table import DataTable
from ..losses import Loss, LossFunc

logger = logging.getLogger(__name__)


class TrainerError(ValueError):
    """Raised on invalid trainer input, on use before training, or when training diverges."""


class Trainer(ABC):
    """
    Base class for trainers fitted on a `DataTable`.

    A trainer starts untrained. `fit()` runs the training loop and marks the
    trainer as trained; changing a hyperparameter through a setter resets it.

    Attributes:
        loss_history: Training loss recorded at every epoch of the last fit
    """

    def __init__(self, data_table: DataTable):
        """
        Create a trainer for a table.

        Args:
            data_table: Table holding the training split (and optionally the
                evaluation and test splits)
        """
        if not isinstance(data_table, DataTable):
            raise TrainerError(f"Expected a DataTable, got {type(data_table).__name__}.")

        x_train = data_table.x_train
        y_train = data_table.y_train
        if x_train.ndim != 2 or y_train.ndim != 2:
            raise TrainerError("Training tensors must be matrices.")
        if x_train.size == 0 or y_train.size == 0:
            raise TrainerError("One of the tensors has zero dimension.")
        if x_train.shape[0] != y_train.shape[0]:
            raise TrainerError("Training tensors are incompatible.")

        self._data_table = data_table
        self._tolerance = 0.001
        self._patience = 5
        self._is_early_stop = False
        self._is_trained = False
        self._is_converged = False
        self._min_loss = np.inf
        self._norm_type: Optional[NormalizationType] = None
        self._normalizer: Optional[FeatureNormalizer] = None
        self.loss_history: List[float] = []

    @property
    def data_table(self) -> DataTable:
        return self._data_table

    @property
    def is_trained(self) -> bool:
        return self._is_trained

    @property
    def is_converged(self) -> bool:
        """True if the last fit stopped because the loss fell below the tolerance."""
        return self._is_converged

    @property
    def is_early_stop(self) -> bool:
        return self._is_early_stop

    @property
    def patience(self) -> int:
        return self._patience

    @property
    def tolerance(self) -> float:
        return self._tolerance

    def set_tolerance(self, tolerance: float):
        """Set the loss below which training is considered converged."""
        if tolerance <= 0:
            raise TrainerError(f"Tolerance must be positive, got {tolerance}.")
        self._tolerance = float(tolerance)

    @property
    def min_loss(self) -> float:
        """Lowest training loss reached during the last fit."""
        if not self._is_trained:
            raise TrainerError("Trainer is not trained.")
        return self._min_loss

    @property
    def is_norm_enabled(self) -> bool:
        return self._norm_type is not None

    def enable_feature_norm(self, norm_type: NormalizationType = NormalizationType.MIN_MAX):
        """
        Train on normalized features and normalize every input to `predict()`.

        Args:
            norm_type: Normalization method. Default: `NormalizationType.MIN_MAX`.
        """
        self.reset()
        self._norm_type = NormalizationType(norm_type)

    def disable_feature_norm(self):
        self.reset()
        self._norm_type = None

    def reset(self):
        """Return to the untrained state."""
        self._is_trained = False
        self._is_converged = False
        self._min_loss = np.inf
        self._normalizer = None
        self.loss_history = []

    def fit(self, epochs: int, metric: LossFunc = LossFunc.MSE, patience: Optional[int] = None):
        """
        Fit model parameters to the training split.

        Args:
            epochs: Maximum number of training epochs
            metric: Loss metric tracked on the training data. Default: `LossFunc.MSE`.
            patience: If given, stop early once the loss has not improved for this
                many consecutive epochs. Default: None (no early stopping).

        Returns:
            self: The fitted trainer
        """
        if patience is not None:
            if patience < 1:
                raise TrainerError(f"Patience must be at least 1, got {patience}.")
            self._is_early_stop = True
            self._patience = int(patience)
            try:
                return self.fit(epochs, metric)
            finally:
                self._is_early_stop = False

        if epochs < 1:
            raise TrainerError(f"Number of epochs must be at least 1, got {epochs}.")

        self.reset()
        metric = LossFunc(metric)

        if self._norm_type is not None:
            self._normalizer = FeatureNormalizer(self._data_table, self._norm_type)

        logger.info(
            "Training %s for up to %d epoch(s) on %d sample(s) (metric=%s, early_stop=%s)",
            type(self).__name__, epochs, self._data_table.row_size, metric.name, self._is_early_stop,
        )
        self._train(int(epochs), metric)
        self._is_trained = True
        logger.info(
            "Finished training: min_loss=%.6g, converged=%s", self._min_loss, self._is_converged
        )
        return self

    def _training_features(self) -> np.ndarray:
        """Training features, normalized when feature normalization is enabled."""
        if self._normalizer is not None:
            return self._normalizer.x_train_normalized()
        return np.asarray(self._data_table.x_train, dtype=float)

    def _prepare_input(self, x) -> np.ndarray:
        """Validate a feature matrix for prediction and normalize it if required."""
        if not self._is_trained:
            raise TrainerError("Trainer is not trained. Call fit() first.")
        x = np.asarray(x, dtype=float)
        if x.ndim != 2:
            raise TrainerError(f"Input must be a matrix, got {x.ndim} dimension(s).")
        if x.shape[1] != self._data_table.x_dim:
            raise TrainerError(
                f"Input has {x.shape[1]} feature column(s), expected {self._data_table.x_dim}."
            )
        if self._normalizer is not None:
            x = self._normalizer.normalize(x)
        return x

    @abstractmethod
    def _train(self, epochs: int, metric: LossFunc):
        """
        Run the training loop.

        Implementations update `_min_loss`, `_is_converged` and `loss_history`.
        """
        pass

    @abstractmethod
    def predict(self, x) -> np.ndarray:
        """
        Generate predictions.

        Args:
            x: Feature matrix of shape (n_samples, n_features)

        Returns:
            predictions: Predicted labels of shape (n_samples, n_labels)
        """
        pass

    def compute_test_loss(self, metric: LossFunc = LossFunc.MSE) -> float:
        """
        Compute the loss of the trained model on the test split.

        Args:
            metric: Loss metric. Default: `LossFunc.MSE`.

        Returns:
            loss: Test loss
        """
        if not self._is_trained:
            raise TrainerError("Trainer is not trained. Call fit() first.")
        if not self._data_table.has_test:
            raise TrainerError("DataTable has no test split.")
        loss = Loss(self._data_table.y_test, metric)
        return loss.get_loss(self.predict(self._data_table.x_test))
