"""
mpul: Multi-Positive Unlabelled learning

Reduces classification from positive-unlabelled data with several positive
classes to one binary soft classifier per class, and recombines their
class-conditional probabilities into a single gated decision.
"""

from mpul.classifier import ACCEPT_THRESHOLD, PositiveUnlabelled, SoftClassifier, Trainer
from mpul.errors import DegenerateProblemError, InvalidTrainingSetError, SubClassifierTrainingError
from mpul.labels import LabelCodec
from mpul.synthesize import binary_response, synthesize

__version__ = "0.1.0"

__all__ = [
    "ACCEPT_THRESHOLD",
    "DegenerateProblemError",
    "InvalidTrainingSetError",
    "LabelCodec",
    "PositiveUnlabelled",
    "SoftClassifier",
    "SubClassifierTrainingError",
    "Trainer",
    "binary_response",
    "synthesize",
]
