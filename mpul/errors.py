"""
Exceptions raised while fitting a multi-positive unlabelled ensemble.
"""

from __future__ import annotations

from typing import Optional


class InvalidTrainingSetError(ValueError):
    """The training set cannot be used for PU learning (e.g. no unlabelled rows)."""


class DegenerateProblemError(ValueError):
    """No positive class is left once the unlabelled value is removed."""


class SubClassifierTrainingError(RuntimeError):
    """
    Training of one binary sub-classifier failed.

    Attributes
    ----------
    class_index:
        Dense code (1..K) of the positive class whose sub-problem failed.
    label:
        Raw label of that class, if known.
    """

    def __init__(self, class_index: int, label: Optional[int] = None, message: str = "") -> None:
        self.class_index = class_index
        self.label = label
        detail = f": {message}" if message else ""
        super().__init__(
            f"Training failed for positive class {class_index} (label {label}){detail}"
        )
