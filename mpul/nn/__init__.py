"""PyTorch binary trainers for PU sub-problems."""

from mpul.nn.logistic import LogisticModel, LogisticTrainer, TorchSoftClassifier

__all__ = ["LogisticModel", "LogisticTrainer", "TorchSoftClassifier"]
