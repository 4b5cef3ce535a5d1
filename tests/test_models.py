import pytest
import numpy as np
from sklearn.linear_model import LinearRegression, Ridge

from tabular_regression.data import DataTable, NormalizationType
from tabular_regression.losses import LossError, LossFunc
from tabular_regression.models import OlsGDTrainer, OrdLeastSquaresTrainer, TrainerError


def line_table():
    """y = 2x on three samples."""
    return DataTable.from_splits(np.array([[1.0], [2.0], [3.0]]), np.array([[2.0], [4.0], [6.0]]))


@pytest.fixture
def linear_data():
    """Two features, two labels, exact linear relation with bias."""
    rng = np.random.default_rng(seed=1)
    x = rng.uniform(0.0, 1.0, size=(100, 2))
    y = np.column_stack([
        3.0 * x[:, 0] - 2.0 * x[:, 1] + 0.5,
        x[:, 0] + x[:, 1] - 1.0,
    ])
    return np.hstack([x, y])


class TestTrainerConstruction:
    """Tests for the validation done by the `Trainer` constructor."""

    def test_requires_data_table(self):
        with pytest.raises(TrainerError):
            OlsGDTrainer(np.zeros((3, 2)))

    def test_invalid_learning_rate(self):
        with pytest.raises(TrainerError):
            OlsGDTrainer(line_table(), learning_rate=0.0)

    def test_data_table_access(self):
        table = DataTable(np.zeros((100, 4)), y_cols=[2, 3], x_cols=[0, 1],
                          eval_percent=20, test_percent=10)
        trainer = OlsGDTrainer(table)

        assert trainer.data_table is table
        assert trainer.data_table.x_train.shape[0] == 70
        assert trainer.data_table.x_test.shape[1] == 2
        assert trainer.data_table.y_dim == 2

    def test_initial_state(self):
        trainer = OlsGDTrainer(line_table())
        assert not trainer.is_trained
        assert not trainer.is_converged
        assert not trainer.is_early_stop
        assert not trainer.is_variable_lr
        assert not trainer.is_norm_enabled


class TestOlsGDTrainer:
    """Tests for `OlsGDTrainer`."""

    def test_learning_rate_configuration(self):
        trainer = OlsGDTrainer(line_table())
        trainer.set_learning_rate(0.123)
        assert trainer.learning_rate == 0.123

    def test_set_learning_rate_resets(self):
        trainer = OlsGDTrainer(line_table())
        trainer.enable_variable_lr()
        trainer.fit(10)
        assert trainer.is_trained

        trainer.set_learning_rate(0.05)
        assert not trainer.is_trained
        assert not trainer.is_converged
        with pytest.raises(TrainerError):
            trainer.weight_bias

    def test_tolerance_configuration(self):
        trainer = OlsGDTrainer(line_table())
        trainer.set_tolerance(1e-5)
        assert trainer.tolerance == 1e-5
        with pytest.raises(TrainerError):
            trainer.set_tolerance(0.0)

    def test_variable_lr_sets_learning_rate(self):
        trainer = OlsGDTrainer(line_table())
        trainer.enable_variable_lr()
        trainer.fit(1)
        # ||X||² of [[1, 1], [2, 1], [3, 1]] is 17
        assert trainer.learning_rate == pytest.approx(1.0 / 17.0)

    def test_variable_lr_switches(self):
        trainer = OlsGDTrainer(line_table())
        trainer.enable_variable_lr()
        trainer.fit(10)
        trainer.disable_variable_lr()
        trainer.fit(10)
        assert trainer.is_trained
        assert not trainer.is_variable_lr
        assert trainer.learning_rate == 0.01

    def test_disable_variable_lr_restores_fixed_rate(self):
        trainer = OlsGDTrainer(line_table(), learning_rate=0.05)
        trainer.enable_variable_lr()
        trainer.fit(5)
        assert trainer.learning_rate == pytest.approx(1.0 / 17.0)

        trainer.disable_variable_lr()
        assert trainer.learning_rate == 0.05
        trainer.fit(5)
        assert trainer.learning_rate == 0.05

    def test_set_learning_rate_while_variable(self):
        trainer = OlsGDTrainer(line_table())
        trainer.enable_variable_lr()
        trainer.fit(5)
        trainer.set_learning_rate(0.02)
        trainer.disable_variable_lr()
        trainer.fit(5)
        assert trainer.learning_rate == 0.02

    def test_predict_output_dimensions(self):
        trainer = OlsGDTrainer(line_table())
        trainer.enable_variable_lr()
        trainer.fit(10)

        result = trainer.predict(np.array([[4.0], [5.0]]))
        assert result.shape == (2, 1)

    def test_weight_bias_dimensions(self):
        table = DataTable.from_splits(
            np.array([[1.0, 2.0], [3.0, 4.0], [5.0, 6.0]]), np.array([[3.0], [7.0], [11.0]])
        )
        trainer = OlsGDTrainer(table)
        trainer.fit(100)
        assert trainer.weight_bias.shape == (1, 3)

    def test_weight_update_during_training(self):
        trainer = OlsGDTrainer(line_table())
        trainer.fit(10)
        assert trainer.weight_bias[0, 0] > 0.0
        assert len(trainer.loss_history) == 10

    def test_convergence_with_fixed_learning_rate(self):
        trainer = OlsGDTrainer(line_table())
        trainer.fit(2000, LossFunc.MSE)
        assert trainer.is_converged
        assert trainer.is_trained
        assert trainer.min_loss < trainer.tolerance
        assert len(trainer.loss_history) < 2000

    def test_convergence_with_variable_learning_rate(self):
        trainer = OlsGDTrainer(line_table())
        trainer.set_tolerance(1e-10)
        trainer.enable_variable_lr()
        trainer.fit(200, LossFunc.MSE)

        assert trainer.is_converged
        np.testing.assert_allclose(trainer.weight_bias, [[2.0, 0.0]], atol=1e-4)
        np.testing.assert_allclose(trainer.predict(np.array([[10.0]])), [[20.0]], atol=1e-3)

    def test_no_convergence_with_few_epochs(self):
        trainer = OlsGDTrainer(line_table())
        trainer.set_tolerance(1e-12)
        trainer.fit(3)
        assert trainer.is_trained
        assert not trainer.is_converged
        assert len(trainer.loss_history) == 3

    def test_keeps_weights_with_lowest_loss(self):
        trainer = OlsGDTrainer(line_table())
        trainer.set_tolerance(1e-12)
        trainer.fit(50)
        assert trainer.min_loss == min(trainer.loss_history)
        predictions = trainer.predict(np.array([[1.0], [2.0], [3.0]]))
        mse = np.mean((predictions - np.array([[2.0], [4.0], [6.0]]))**2)
        assert mse == pytest.approx(trainer.min_loss)

    def test_matches_closed_form_solution(self, linear_data):
        table = DataTable(linear_data, y_cols=[2, 3])
        trainer = OlsGDTrainer(table)
        trainer.set_tolerance(1e-12)
        trainer.enable_variable_lr()
        trainer.fit(500)

        expected = np.array([[3.0, -2.0, 0.5], [1.0, 1.0, -1.0]])
        np.testing.assert_allclose(trainer.weight_bias, expected, atol=1e-4)

    def test_early_stopping(self):
        trainer = OlsGDTrainer(line_table())
        trainer.set_tolerance(1e-300)
        trainer.enable_variable_lr()
        trainer.fit(10000, LossFunc.MSE, patience=3)

        assert not trainer.is_early_stop
        assert trainer.patience == 3
        assert trainer.is_trained
        assert len(trainer.loss_history) < 10000

    def test_invalid_patience(self):
        trainer = OlsGDTrainer(line_table())
        with pytest.raises(TrainerError):
            trainer.fit(10, LossFunc.MSE, patience=0)
        assert not trainer.is_early_stop

    def test_invalid_epochs(self):
        with pytest.raises(TrainerError):
            OlsGDTrainer(line_table()).fit(0)

    def test_divergence(self):
        trainer = OlsGDTrainer(line_table(), learning_rate=10.0)
        with np.errstate(over="ignore", invalid="ignore"), pytest.raises(TrainerError):
            trainer.fit(1000)
        assert not trainer.is_trained

    def test_msle_with_negative_predictions(self):
        table = DataTable.from_splits(np.array([[1.0], [2.0]]), np.array([[-1.0], [-2.0]]))
        with pytest.raises(LossError):
            OlsGDTrainer(table).fit(5, LossFunc.MSLE)

    def test_predict_before_fit(self):
        with pytest.raises(TrainerError):
            OlsGDTrainer(line_table()).predict(np.array([[1.0]]))

    def test_predict_shape_mismatch(self):
        trainer = OlsGDTrainer(line_table())
        trainer.fit(5)
        with pytest.raises(TrainerError):
            trainer.predict(np.array([[1.0, 2.0]]))
        with pytest.raises(TrainerError):
            trainer.predict(np.array([1.0, 2.0]))

    def test_min_loss_before_fit(self):
        with pytest.raises(TrainerError):
            OlsGDTrainer(line_table()).min_loss

    def test_feature_normalization(self):
        data = np.array([[1.0, 3.0], [2.0, 6.0], [3.0, 9.0], [5.0, 15.0]])
        trainer = OlsGDTrainer(DataTable(data, y_cols=[1]))
        trainer.set_tolerance(1e-10)
        trainer.enable_feature_norm(NormalizationType.MIN_MAX)
        trainer.enable_variable_lr()
        trainer.fit(200, LossFunc.MAE)

        assert trainer.is_norm_enabled
        np.testing.assert_allclose(trainer.predict(np.array([[4.0]])), [[12.0]], atol=1e-3)
        # Weights are learned on features scaled to [0, 1]
        np.testing.assert_allclose(trainer.weight_bias, [[12.0, 3.0]], atol=1e-3)

        trainer.disable_feature_norm()
        assert not trainer.is_trained
        trainer.fit(200, LossFunc.MAE)
        np.testing.assert_allclose(trainer.predict(np.array([[4.0]])), [[12.0]], atol=1e-3)

    def test_feature_normalization_z_score(self, linear_data):
        table = DataTable(linear_data, y_cols=[2, 3], test_percent=20, eval_percent=10)
        trainer = OlsGDTrainer(table)
        trainer.set_tolerance(1e-12)
        trainer.enable_feature_norm(NormalizationType.Z_SCORE)
        trainer.enable_variable_lr()
        trainer.fit(500)

        assert trainer.compute_test_loss(LossFunc.MSE) < 1e-6


class TestComputeTestLoss:
    """Tests for `Trainer.compute_test_loss`."""

    def test_with_test_split(self):
        x_train = np.array([[1.0], [2.0], [3.0]])
        y_train = np.array([[3.1], [5.2], [7.3]])
        x_test = np.array([[4.0], [5.0]])
        y_test = np.array([[9.4], [11.5]])
        table = DataTable.from_splits(x_train, y_train, x_train, y_train, x_test, y_test)

        trainer = OlsGDTrainer(table)
        trainer.fit(100, LossFunc.MSE)
        loss = trainer.compute_test_loss(LossFunc.MSE)

        assert 0.0 < loss < 2.0

    def test_without_test_split(self):
        table = DataTable.from_splits(np.array([[1.0], [2.0]]), np.array([[3.0], [5.0]]))
        trainer = OlsGDTrainer(table)
        trainer.fit(10, LossFunc.MSE)

        with pytest.raises(TrainerError):
            trainer.compute_test_loss(LossFunc.MSE)

    def test_eval_split_only(self):
        data = np.arange(20.0).reshape(10, 2)
        trainer = OlsGDTrainer(DataTable(data, y_cols=[1], x_cols=[0], eval_percent=20))
        trainer.enable_variable_lr()
        trainer.fit(10, LossFunc.MSE)

        with pytest.raises(TrainerError):
            trainer.compute_test_loss(LossFunc.MSE)

    def test_before_fit(self):
        table = DataTable(np.arange(40.0).reshape(20, 2), y_cols=[1],
                          eval_percent=20, test_percent=20)
        with pytest.raises(TrainerError):
            OlsGDTrainer(table).compute_test_loss()


class TestOrdLeastSquaresTrainer:
    """Tests for `OrdLeastSquaresTrainer`."""

    def test_fit_matches_sklearn(self, linear_data):
        table = DataTable(linear_data, y_cols=[2, 3], eval_percent=20, test_percent=20)
        trainer = OrdLeastSquaresTrainer(table)
        trainer.fit(1)

        regressor = LinearRegression(fit_intercept=True)
        regressor.fit(table.x_train, table.y_train)
        expected = np.hstack([regressor.coef_, regressor.intercept_.reshape(-1, 1)])

        np.testing.assert_allclose(trainer.weight_bias, expected, rtol=1e-10)
        assert trainer.is_converged
        assert trainer.compute_test_loss() < 1e-20

    def test_custom_regressor(self, linear_data):
        table = DataTable(linear_data, y_cols=[2, 3])
        trainer = OrdLeastSquaresTrainer(table, regressor=Ridge(alpha=1e-12))
        trainer.fit(1)

        expected = np.array([[3.0, -2.0, 0.5], [1.0, 1.0, -1.0]])
        np.testing.assert_allclose(trainer.weight_bias, expected, atol=1e-8)

    def test_agrees_with_gradient_descent(self):
        rng = np.random.default_rng(seed=2)
        x = rng.uniform(0.0, 1.0, size=(50, 3))
        y = x @ np.array([[1.0], [-0.5], [2.0]]) + 0.3 + rng.normal(scale=0.05, size=(50, 1))
        table = DataTable(np.hstack([x, y]), y_cols=[3])

        closed_form = OrdLeastSquaresTrainer(table)
        closed_form.fit(1)
        gradient = OlsGDTrainer(table)
        gradient.set_tolerance(1e-12)
        gradient.enable_variable_lr()
        gradient.fit(2000, patience=50)

        np.testing.assert_allclose(gradient.weight_bias, closed_form.weight_bias, atol=1e-3)

    def test_single_label_weight_bias_shape(self):
        trainer = OrdLeastSquaresTrainer(line_table())
        trainer.fit(1)
        np.testing.assert_allclose(trainer.weight_bias, [[2.0, 0.0]], atol=1e-12)
        assert trainer.predict(np.array([[4.0]])).shape == (1, 1)

    def test_feature_normalization(self):
        trainer = OrdLeastSquaresTrainer(line_table())
        trainer.enable_feature_norm()
        trainer.fit(1)
        np.testing.assert_allclose(trainer.predict(np.array([[4.0]])), [[8.0]], atol=1e-10)

    def test_predict_before_fit(self):
        with pytest.raises(TrainerError):
            OrdLeastSquaresTrainer(line_table()).predict(np.array([[1.0]]))
