"""Command-line crop recommender: load, cross-validate, train, report, predict."""
from __future__ import annotations

import argparse
import sys
from typing import Callable, Sequence

import numpy as np
from loguru import logger

from .builder import train_final_model
from .config import (CROP_FEATURES, DEFAULT_CONFIDENCE_FACTOR, DEFAULT_FOLDS,
                     DEFAULT_MIN_INSTANCES_PER_LEAF, DEFAULT_SEED, FEATURE_BOUNDS,
                     FEATURE_PROMPTS)
from .dataset import load_csv
from .exceptions import CropTreeError, DataError
from .logging import enable_logging
from .prediction import PredictionService
from .validation import cross_validate


def validate_feature_vector(values: Sequence[float],
                            feature_names: Sequence[str] = CROP_FEATURES) -> np.ndarray:
    """Reject vectors of the wrong length or with values outside ``FEATURE_BOUNDS``.

    Features without a known range are passed through unchecked.
    """
    v = np.asarray(values, dtype=float).ravel()
    if v.shape[0] != len(feature_names):
        raise DataError(f"expected {len(feature_names)} values, got {v.shape[0]}")
    for name, value in zip(feature_names, v):
        lo, hi = FEATURE_BOUNDS.get(name, (-np.inf, np.inf))
        if not lo <= value <= hi:
            raise DataError(f"{name}={value} is outside the valid range [{lo}-{hi}]")
    return v


def prompt_value(name: str, input_fn: Callable[[str], str] = input,
                 out: Callable[[str], None] = print) -> float:
    """Ask for one feature until a number inside its range is entered."""
    text, hint = FEATURE_PROMPTS.get(name, (name, ""))
    lo, hi = FEATURE_BOUNDS.get(name, (-np.inf, np.inf))
    prompt = f"{text} [{hint}]: " if hint else f"{text}: "
    while True:
        raw = input_fn(prompt)
        try:
            value = float(raw)
        except ValueError:
            out("Invalid input. Please enter a numeric value.")
            continue
        if lo <= value <= hi:
            return value
        out(f"Warning: Value {value} is outside the valid range [{lo}-{hi}]. "
            "Please enter a valid value.")


def run_interactive(service: PredictionService, feature_names: Sequence[str],
                    input_fn: Callable[[str], str] = input,
                    out: Callable[[str], None] = print) -> int:
    """Prompt for measurements and print recommendations until the user stops.

    Returns the number of predictions made.
    """
    out("\n=== INTERACTIVE CROP RECOMMENDATION SYSTEM ===")
    made = 0
    try:
        while True:
            out("\n--- Enter Environmental Parameters ---")
            x = [prompt_value(name, input_fn, out) for name in feature_names]
            result = service.predict(x)
            made += 1
            out("\n=== RECOMMENDATION RESULT ===")
            out(result.format())
            choice = input_fn("\nWould you like to make another prediction? (y/n): ")
            if not choice.strip().lower().startswith("y"):
                break
    except EOFError:
        pass
    out("Thank you for using the Crop Recommendation System!")
    return made


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="croptree",
                                description="Crop recommendation with a pruned decision tree.")
    p.add_argument("dataset", help="CSV file; the last column holds the crop label")
    p.add_argument("--label-column", default=None)
    p.add_argument("--folds", type=int, default=DEFAULT_FOLDS)
    p.add_argument("--seed", type=int, default=DEFAULT_SEED)
    p.add_argument("--confidence-factor", type=float, default=DEFAULT_CONFIDENCE_FACTOR)
    p.add_argument("--min-leaf", type=int, default=DEFAULT_MIN_INSTANCES_PER_LEAF)
    p.add_argument("--graphviz", metavar="BASENAME", default=None,
                   help="write the final tree as BASENAME.dot")
    p.add_argument("--interactive", action="store_true",
                   help="prompt for measurements after training")
    p.add_argument("-v", "--verbose", action="store_true")
    return p


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    handle = enable_logging("DEBUG" if args.verbose else "INFO")
    try:
        print("=== CROP RECOMMENDATION SYSTEM USING DECISION TREES ===\n")
        dataset = load_csv(args.dataset, label_column=args.label_column)
        print(f"Dataset loaded successfully from: {args.dataset}")
        print(f"Number of instances: {dataset.n_rows}")
        # the label column counts as an attribute
        print(f"Number of attributes: {dataset.n_features + 1}")
        print(f"Features: {', '.join(dataset.feature_names)}")
        print(f"Classes: {', '.join(dataset.classes)}\n")

        print(f"=== PERFORMING {args.folds}-FOLD CROSS-VALIDATION ===")
        report = cross_validate(dataset, args.folds, args.seed,
                                args.confidence_factor, args.min_leaf)
        print(report.format_table())

        print("\n=== TRAINING FINAL CLASSIFIER ===")
        tree = train_final_model(dataset, args.confidence_factor, args.min_leaf)
        print(tree.export_text())
        print(f"\nNumber of Leaves: {tree.n_leaves}\nSize of the tree: "
              f"{tree.n_leaves + tree.n_internal}")

        if args.graphviz:
            try:
                path = tree.export_graphviz(args.graphviz, format="dot")
                print(f"Decision tree written to {path}")
            except RuntimeError as e:
                print(f"Skipping Graphviz export: {e}")

        if args.interactive:
            run_interactive(PredictionService(tree, dataset.classes), dataset.feature_names)
    except (CropTreeError, FileNotFoundError) as exc:
        logger.error("{}", exc)
        return 1
    finally:
        handle.disable()
    return 0


if __name__ == "__main__":
    sys.exit(main())
