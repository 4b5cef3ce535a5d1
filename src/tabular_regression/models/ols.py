"""Ordinary least squares fitted in closed form."""

import numpy as np
from sklearn.linear_model import LinearRegression

from ..losses import Loss, LossFunc
from .base import Trainer, TrainerError


class OrdLeastSquaresTrainer(Trainer):
    """
    Linear model fitted in a single closed-form solve.

    Shares the `Trainer` lifecycle with `OlsGDTrainer`, so the two can be
    swapped or compared on the same `DataTable`. The number of epochs passed
    to `fit()` is accepted but the solve always counts as one epoch.

    Attributes:
        regressor: Underlying regression model (default: LinearRegression)
    """

    def __init__(self, data_table, regressor=None):
        """
        Create an `OrdLeastSquaresTrainer` instance.

        Args:
            data_table: `DataTable` with the training split
            regressor: Scikit-learn compatible regression model. Must implement
                fit(X, y) and predict(X) methods with coef_ and intercept_
                attributes. Default: LinearRegression(fit_intercept=True).
        """
        super().__init__(data_table)
        self.regressor = regressor if regressor is not None else LinearRegression(fit_intercept=True)

    def _train(self, epochs: int, metric: LossFunc):
        x = self._training_features()
        y = np.asarray(self._data_table.y_train, dtype=float)
        self.regressor.fit(x, y)

        current = Loss(y, metric).get_loss(self._raw_predict(x))
        self.loss_history.append(current)
        self._min_loss = current
        self._is_converged = current < self._tolerance

    def _raw_predict(self, x: np.ndarray) -> np.ndarray:
        predictions = np.asarray(self.regressor.predict(x), dtype=float)
        return predictions.reshape(x.shape[0], -1)

    @property
    def weight_bias(self) -> np.ndarray:
        """Learned matrix of shape (n_labels, n_features + 1); the last column is the bias."""
        if not self._is_trained:
            raise TrainerError("Trainer is not trained. Call fit() first.")
        coef = np.atleast_2d(np.asarray(self.regressor.coef_, dtype=float))
        intercept = np.asarray(self.regressor.intercept_, dtype=float).reshape(-1, 1)
        intercept = np.broadcast_to(intercept, (coef.shape[0], 1))
        return np.hstack([coef, intercept])

    def predict(self, x) -> np.ndarray:
        x = self._prepare_input(x)
        return self._raw_predict(x)

    def __repr__(self):
        return f"OrdLeastSquaresTrainer(regressor={self.regressor})"
