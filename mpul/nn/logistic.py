"""
Logistic regression trainer (PyTorch).

A default trainer for the binary sub-problems of
:class:`mpul.classifier.PositiveUnlabelled`. It fits a 2-logit linear model
with cross-entropy on standardised features, so its softmax output is the
class-conditional probability pair ``[p(neg), p(pos)]`` the ensemble needs.

Determinism
-----------
Weights start at zero (the problem is convex) and mini-batches are shuffled
with a dedicated, seeded ``torch.Generator``. Two fits on the same frame with
the same seed therefore give the same model, even when several sub-problems
are trained concurrently.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Union

import numpy as np
import pandas as pd
import torch
import torch.nn as nn
from torch.utils.data import DataLoader, Dataset
from tqdm import tqdm

from mpul.utils import get_device

logger = logging.getLogger(__name__)


# =============================================================================
# Dataset / model
# =============================================================================

class BinaryFrameDataset(Dataset):
    """
    Binary-labelled training rows.

    Each sample yields:
    - x : float32 standardised features, shape (D,)
    - y : int64 label in {0, 1} (1 = positive class)
    """
    def __init__(self, X: np.ndarray, y: np.ndarray):
        self.X = torch.from_numpy(np.ascontiguousarray(X, dtype=np.float32))
        self.y = torch.from_numpy(np.ascontiguousarray(y, dtype=np.int64))

    def __len__(self) -> int:
        return self.y.shape[0]

    def __getitem__(self, idx: int):
        return self.X[idx], self.y[idx]


class LogisticModel(nn.Module):
    """Logistic regression with two logits (negative, positive)."""
    def __init__(self, d: int):
        super().__init__()
        self.linear = nn.Linear(d, 2)
        nn.init.zeros_(self.linear.weight)
        nn.init.zeros_(self.linear.bias)

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return self.linear(x)


# =============================================================================
# Fitted classifier
# =============================================================================

class TorchSoftClassifier:
    """
    Fitted binary classifier wrapping a :class:`LogisticModel`.

    Parameters
    ----------
    model:
        Trained model (moved to CPU, eval mode).
    features:
        Feature column names, in training order.
    mean, std:
        Standardisation statistics of the training features.
    """

    def __init__(self, model: nn.Module, features: List[str], mean: np.ndarray, std: np.ndarray) -> None:
        self.model = model.to("cpu").eval()
        self.features = list(features)
        self.mean = np.asarray(mean, dtype=np.float32)
        self.std = np.asarray(std, dtype=np.float32)

    def _matrix(self, x: Union[pd.Series, pd.DataFrame, np.ndarray]) -> np.ndarray:
        if isinstance(x, (pd.Series, pd.DataFrame)):
            x = x[self.features]
        X = np.asarray(x, dtype=np.float32)
        if X.ndim == 1:
            X = X.reshape(1, -1)
        if X.shape[1] != len(self.features):
            raise ValueError(f"Expected {len(self.features)} features, got {X.shape[1]}.")
        return (X - self.mean) / self.std

    @torch.no_grad()
    def predict_proba(self, x: Union[pd.Series, np.ndarray]) -> np.ndarray:
        """Return ``[p(neg), p(pos)]`` for a single sample."""
        logits = self.model(torch.from_numpy(self._matrix(x)))
        return torch.softmax(logits, dim=1)[0].double().numpy()

    @torch.no_grad()
    def predict_proba_many(self, X: Union[pd.DataFrame, np.ndarray]) -> np.ndarray:
        """Return probabilities of shape (N, 2) for a batch of samples."""
        logits = self.model(torch.from_numpy(self._matrix(X)))
        return torch.softmax(logits, dim=1).double().numpy()


# =============================================================================
# Trainer
# =============================================================================

class LogisticTrainer:
    """
    Callable trainer ``trainer(frame, response) -> TorchSoftClassifier``.

    Parameters
    ----------
    pos:
        Response value of the positive class; every other value is negative.
    epochs:
        Number of passes over the data.
    batch_size:
        Mini-batch size.
    lr:
        Adam learning rate.
    weight_decay:
        L2 penalty passed to Adam.
    seed:
        Seed of the shuffling generator.
    device:
        Device to train on. Defaults to :func:`mpul.utils.get_device`.
    progress:
        Show a tqdm progress bar over epochs.
    """

    def __init__(
        self,
        *,
        pos: int = 1,
        epochs: int = 50,
        batch_size: int = 256,
        lr: float = 1e-2,
        weight_decay: float = 0.0,
        seed: int = 0,
        device: Optional[Union[str, torch.device]] = None,
        progress: bool = False,
    ) -> None:
        if epochs <= 0:
            raise ValueError("epochs must be > 0.")
        if batch_size <= 0:
            raise ValueError("batch_size must be > 0.")
        if lr <= 0:
            raise ValueError("lr must be > 0.")
        if weight_decay < 0:
            raise ValueError("weight_decay must be >= 0.")

        self.pos = pos
        self.epochs = int(epochs)
        self.batch_size = int(batch_size)
        self.lr = float(lr)
        self.weight_decay = float(weight_decay)
        self.seed = int(seed)
        self.device = torch.device(device) if device is not None else None
        self.progress = progress

    def __call__(self, data: pd.DataFrame, response: str) -> TorchSoftClassifier:
        if response not in data.columns:
            raise KeyError(f"Response column '{response}' not found.")
        if len(data) == 0:
            raise ValueError("Cannot train on an empty frame.")

        features = [c for c in data.columns if c != response]
        if not features:
            raise ValueError("The frame has no feature columns.")

        X = data[features].to_numpy(dtype=np.float32)
        y = (data[response].to_numpy() == self.pos).astype(np.int64)
        if y.min() == y.max():
            raise ValueError(
                f"Response '{response}' must hold both the positive label {self.pos} and other labels."
            )

        mean = X.mean(axis=0)
        std = X.std(axis=0)
        std[std == 0] = 1.0
        X = (X - mean) / std

        device = self.device if self.device is not None else get_device()
        model = LogisticModel(len(features)).to(device)
        optimizer = torch.optim.Adam(model.parameters(), lr=self.lr, weight_decay=self.weight_decay)
        criterion = nn.CrossEntropyLoss()

        generator = torch.Generator().manual_seed(self.seed)
        loader = DataLoader(
            BinaryFrameDataset(X, y),
            batch_size=self.batch_size,
            shuffle=True,
            generator=generator,
        )

        model.train()
        for epoch in tqdm(range(self.epochs), desc="Logistic", disable=not self.progress):
            epoch_loss = 0.0
            for xb, yb in loader:
                xb, yb = xb.to(device), yb.to(device)
                optimizer.zero_grad()
                loss = criterion(model(xb), yb)
                loss.backward()
                optimizer.step()
                epoch_loss += loss.item() * yb.shape[0]
            logger.debug("Epoch %02d | loss: %.4f", epoch + 1, epoch_loss / len(y))

        return TorchSoftClassifier(model, features, mean, std)
