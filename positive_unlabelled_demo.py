"""
mpul demo: Multi-class positive-unlabelled learning on Gaussian blobs
=====================================================================

This script demonstrates the one-vs-rest PU ensemble on synthetic data:
- K positive classes and one negative class, each a Gaussian blob
- only a fraction of each positive class is labelled, the rest of the
  positives and all negatives are unlabelled (label -1)
- one binary soft classifier per positive class (PyTorch logistic
  regression or scikit-learn), recombined with the 0.5 acceptance gate

Reported metrics
----------------
Since the generator knows the hidden truth we report:
    recall on hidden positives   -> share of unlabelled positives recovered
                                    with their correct class
    rejection on true negatives  -> share of negatives predicted unlabelled

Run
---
    python positive_unlabelled_demo.py --classes 3 --epochs 30

Dependencies
------------
    pip install torch pandas numpy matplotlib scikit-learn tqdm
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Tuple

import numpy as np
import pandas as pd
from sklearn.linear_model import LogisticRegression

from mpul.adapters import SklearnTrainer
from mpul.classifier import PositiveUnlabelled
from mpul.nn.logistic import LogisticTrainer
from mpul.utils import get_device, plot_confidences, setup_logging

# ============================================================
# Constants & configuration
# ============================================================

UNLABELLED = -1
RESPONSE = "y"
RADIUS = 4.0        # distance of positive blob centres from the origin
NOISE = 1.0         # blob standard deviation


# ============================================================
# Data
# ============================================================

def make_pu_blobs(
    n_classes: int,
    n_samples: int,
    label_fraction: float,
    rng: np.random.Generator,
) -> Tuple[pd.DataFrame, np.ndarray]:
    """
    Generate a 2D multi-class PU dataset.

    Returns
    -------
    (frame, truth)
        ``frame`` has feature columns ``x0, x1`` and the observed response
        ``y`` (positive labels 1..K or -1). ``truth`` holds the hidden true
        class of every row (0 for negatives).
    """
    angles = 2.0 * np.pi * np.arange(n_classes) / n_classes
    centres = np.vstack([[0.0, 0.0], RADIUS * np.column_stack([np.cos(angles), np.sin(angles)])])

    truth = rng.integers(0, n_classes + 1, size=n_samples)
    X = centres[truth] + NOISE * rng.standard_normal((n_samples, 2))

    labelled = (truth > 0) & (rng.random(n_samples) < label_fraction)
    y = np.where(labelled, truth, UNLABELLED)

    frame = pd.DataFrame({"x0": X[:, 0], "x1": X[:, 1], RESPONSE: y})
    return frame, truth


# ============================================================
# Main
# ============================================================

def main() -> None:
    parser = argparse.ArgumentParser(description="mpul demo: multi-class PU learning on Gaussian blobs")
    parser.add_argument("--classes", type=int, default=3, help="Number of positive classes")
    parser.add_argument("--samples", type=int, default=2000, help="Number of samples")
    parser.add_argument("--label-fraction", type=float, default=0.7, help="Share of positives that are labelled")
    parser.add_argument("--trainer", choices=["torch", "sklearn"], default="torch", help="Binary trainer")
    parser.add_argument("--epochs", type=int, default=30, help="Epochs of the torch trainer")
    parser.add_argument("--jobs", type=int, default=1, help="Sub-classifiers trained concurrently")
    parser.add_argument("--seed", type=int, default=0, help="Random seed")
    parser.add_argument("--out", type=str, default="pu_output", help="Output directory")
    args = parser.parse_args()

    setup_logging()

    out_dir = Path(args.out)
    out_dir.mkdir(parents=True, exist_ok=True)

    rng = np.random.default_rng(args.seed)
    data, truth = make_pu_blobs(args.classes, args.samples, args.label_fraction, rng)
    logging.info(
        "Generated %d samples, %d labelled",
        len(data), int((data[RESPONSE] != UNLABELLED).sum()),
    )

    # --------------------------------------------------------
    # Fit
    # --------------------------------------------------------
    if args.trainer == "torch":
        logging.info("Using device: %s", get_device())
        trainer = LogisticTrainer(epochs=args.epochs, seed=args.seed, progress=True)
    else:
        trainer = SklearnTrainer(LogisticRegression(max_iter=1000))

    model = PositiveUnlabelled.fit(data, RESPONSE, trainer, unlabelled=UNLABELLED, n_jobs=args.jobs)
    logging.info("Fitted %d binary classifiers, labels: %s", model.k, model.labels().tolist())

    # --------------------------------------------------------
    # Evaluate against the hidden truth
    # --------------------------------------------------------
    predicted = model.predict_frame(data, response=RESPONSE)
    confidence = model.predict_proba_frame(data, response=RESPONSE)

    hidden = (truth > 0) & (data[RESPONSE].to_numpy() == UNLABELLED)
    negatives = truth == 0
    if hidden.any():
        logging.info("Recall on hidden positives: %.3f", float(np.mean(predicted[hidden] == truth[hidden])))
    if negatives.any():
        logging.info("Rejection on true negatives: %.3f", float(np.mean(predicted[negatives] == UNLABELLED)))

    # --------------------------------------------------------
    # Save predictions and confidences
    # --------------------------------------------------------
    out_csv = out_dir / "predictions.csv"
    result = data.assign(truth=truth, predicted=predicted)
    for i, label in enumerate(model.codec.values[1:]):
        result[f"p_{label}"] = confidence[:, i]
    result.to_csv(out_csv, index=False)
    logging.info("Saved predictions to: %s", out_csv)

    plot_confidences(
        confidence,
        model.codec.values[1:].tolist(),
        out_path=out_dir / "confidences.png",
        title="Sub-classifier confidences (Gaussian blobs)",
    )

    logging.info("Demo finished successfully.")


if __name__ == "__main__":
    main()
