"""
utils
==============

Small, reusable utilities shared by mpul and its demo script:
- logging configuration
- device selection (CUDA / MPS / CPU) for the PyTorch trainer
- plotting per-class confidences with the acceptance gate
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence, Union

import numpy as np
import torch
import matplotlib.pyplot as plt


PathLike = Union[str, Path]


def setup_logging(level: int = logging.INFO) -> None:
    """
    Configure basic logging for scripts.

    Parameters
    ----------
    level:
        Logging level (e.g., logging.INFO).
    """
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def get_device() -> torch.device:
    """
    Return the best available PyTorch device.

    Returns
    -------
    torch.device
        "cuda" if available, else "mps" if available, else "cpu".
    """
    if torch.cuda.is_available():
        return torch.device("cuda")
    if torch.backends.mps.is_available():
        return torch.device("mps")
    return torch.device("cpu")


def plot_confidences(
    confidence: np.ndarray,
    labels: Sequence[int],
    *,
    out_path: PathLike = "images/confidences.png",
    title: str = "Positive-class confidences",
    threshold: float = 0.5,
    bins: int = 40,
) -> Path:
    """
    Plot one histogram of sub-classifier confidences per positive class.

    Parameters
    ----------
    confidence:
        Array of shape (N, K), e.g. from ``PositiveUnlabelled.predict_proba_frame``.
    labels:
        Raw label of each of the K columns.
    out_path:
        Where to save the figure. The raw array is saved next to it as ``.txt``.
    title:
        Title of the plot.
    threshold:
        Acceptance gate, drawn as a vertical line.
    bins:
        Histogram bins over [0, 1].

    Returns
    -------
    Path
        Path of the saved figure.

    Notes
    -----
    This function saves directly to disk and closes the figure.
    """
    confidence = np.asarray(confidence, dtype=np.float64)
    if confidence.ndim != 2 or confidence.shape[1] != len(labels):
        raise ValueError(
            f"confidence must have shape (N, {len(labels)}), got {confidence.shape}."
        )

    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    plt.figure(figsize=(12, 5))
    edges = np.linspace(0.0, 1.0, bins + 1)
    for i, label in enumerate(labels):
        plt.hist(confidence[:, i], bins=edges, alpha=0.5, label=f"class {label}")

    plt.axvline(threshold, linestyle="--", color="#FF3B30", label=f"Acceptance gate ({threshold})")

    plt.xlabel("p(positive)")
    plt.ylabel("Samples")
    plt.title(title)
    plt.xlim(0.0, 1.0)

    # Light style
    ax = plt.gca()
    ax.spines["top"].set_visible(False)
    ax.spines["right"].set_visible(False)

    plt.legend(loc="upper center")
    plt.tight_layout()
    plt.savefig(out_path)
    plt.close()

    np.savetxt(out_path.with_suffix(".txt"), confidence)
    return out_path
