"""Trainers for linear models on a DataTable."""

from .base import Trainer, TrainerError
from .ols_gd import OlsGDTrainer
from .ols import OrdLeastSquaresTrainer

__all__ = ["Trainer", "TrainerError", "OlsGDTrainer", "OrdLeastSquaresTrainer"]
