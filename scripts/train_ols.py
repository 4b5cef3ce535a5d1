"""
Fit a linear model to a delimited text file by gradient descent.

The file is split by row into training, evaluation and test sets, the label
columns are separated from the features, and an `OlsGDTrainer` is fitted on
the training split. The learned weight/bias matrix and the losses are printed.

```bash
python scripts/train_ols.py data/housing.csv --header --label-cols 8 \
    --eval-percent 20 --test-percent 10 --normalize min_max --variable-lr \
    --epochs 200 --metric mae --patience 5 --verbose
```
"""

import argparse
import numpy as np

from tabular_regression import (
    DataTable,
    LossFunc,
    NormalizationType,
    OlsGDTrainer,
    read_text_file,
    write_text_file,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Fit a linear model to a delimited text file by gradient descent"
    )
    parser.add_argument("input_path", type=str, help="Path to the delimited data file")
    parser.add_argument(
        "--separator", type=str, default=",", help="Column separator (default: ',')"
    )
    parser.add_argument(
        "--header", action="store_true", help="Skip the first line of the file"
    )
    parser.add_argument(
        "--label-cols",
        type=int,
        nargs="+",
        required=True,
        help="Indices of the label columns",
    )
    parser.add_argument(
        "--feature-cols",
        type=int,
        nargs="+",
        default=None,
        help="Indices of the feature columns (default: every non-label column)",
    )
    parser.add_argument(
        "--eval-percent", type=int, default=None, help="Percentage of rows for evaluation"
    )
    parser.add_argument(
        "--test-percent", type=int, default=None, help="Percentage of rows for testing"
    )
    parser.add_argument("--epochs", type=int, default=100, help="Maximum number of epochs")
    parser.add_argument(
        "--metric",
        type=str,
        choices=[m.value for m in LossFunc],
        default=LossFunc.MSE.value,
        help="Loss metric (default: mse)",
    )
    parser.add_argument(
        "--patience", type=int, default=None, help="Enable early stopping with this patience"
    )
    parser.add_argument(
        "--learning-rate", type=float, default=0.01, help="Fixed learning rate (default: 0.01)"
    )
    parser.add_argument(
        "--variable-lr", action="store_true", help="Use the variable learning rate"
    )
    parser.add_argument(
        "--tolerance", type=float, default=0.001, help="Convergence tolerance (default: 0.001)"
    )
    parser.add_argument(
        "--normalize",
        type=str,
        choices=[t.value for t in NormalizationType],
        default=None,
        help="Normalize features before training",
    )
    parser.add_argument(
        "--output-path",
        type=str,
        default=None,
        help="Write the weight/bias matrix to this file",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Print progress messages",
    )
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    data = read_text_file(
        args.input_path, separator=args.separator, has_header=args.header, verbose=args.verbose
    )
    table = DataTable(
        data,
        y_cols=args.label_cols,
        x_cols=args.feature_cols,
        eval_percent=args.eval_percent,
        test_percent=args.test_percent,
    )
    print(f"\n{table}")

    trainer = OlsGDTrainer(table, learning_rate=args.learning_rate)
    trainer.set_tolerance(args.tolerance)
    if args.variable_lr:
        trainer.enable_variable_lr()
    if args.normalize is not None:
        trainer.enable_feature_norm(NormalizationType(args.normalize))

    metric = LossFunc(args.metric)
    if args.verbose:
        print(f"Training for up to {args.epochs} epochs...")
    trainer.fit(args.epochs, metric, patience=args.patience)

    print("\n=== Training Complete ===")
    print(f"Epochs run: {len(trainer.loss_history)}")
    print(f"Converged: {trainer.is_converged}")
    print(f"Minimum training loss ({metric.name}): {trainer.min_loss:.6g}")
    with np.printoptions(precision=6, suppress=True):
        print(f"Weight-Bias:\n{trainer.weight_bias}")

    if table.has_test:
        print(f"Test loss ({metric.name}): {trainer.compute_test_loss(metric):.6g}")

    if args.output_path:
        write_text_file(trainer.weight_bias, args.output_path, separator=args.separator)
        print(f"\nSaved weight/bias matrix to {args.output_path}")

    return trainer


if __name__ == "__main__":
    main()
