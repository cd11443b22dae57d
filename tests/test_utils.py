import logging

import numpy as np
import pytest
import torch

from mpul.utils import get_device, plot_confidences, setup_logging


def test_get_device():
    assert isinstance(get_device(), torch.device)


def test_setup_logging():
    setup_logging(logging.DEBUG)


def test_plot_confidences(tmp_path):
    rng = np.random.default_rng(0)
    confidence = rng.random((50, 3))
    out = plot_confidences(confidence, [1, 2, 3], out_path=tmp_path / "plots" / "conf.png")

    assert out.exists()
    np.testing.assert_allclose(np.loadtxt(tmp_path / "plots" / "conf.txt"), confidence)


def test_plot_confidences_shape_mismatch(tmp_path):
    with pytest.raises(ValueError):
        plot_confidences(np.zeros((5, 2)), [1, 2, 3], out_path=tmp_path / "conf.png")
