import numpy as np
import pytest
import torch


@pytest.fixture
def generator():
    """Seeded torch generator so failures reproduce."""
    return torch.Generator().manual_seed(1234)


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


def _brute_force_lcc(haystack, needle, eps=1e-12):
    """
    Correlation coefficient of every valid window with the needle, one window at a time, in numpy.
    Returns the complex coefficient for complex inputs.
    """
    if isinstance(haystack, torch.Tensor):
        haystack = haystack.numpy()
    if isinstance(needle, torch.Tensor):
        needle = needle.numpy()

    out_shape = tuple(h - n + 1 for h, n in zip(haystack.shape, needle.shape))
    centered_needle = needle - needle.mean()
    needle_norm = np.sqrt(np.sum(np.abs(centered_needle) ** 2))

    out = np.zeros(out_shape, dtype=np.result_type(haystack, needle))
    for k in np.ndindex(*out_shape):
        window = haystack[tuple(slice(i, i + n) for i, n in zip(k, needle.shape))]
        centered_window = window - window.mean()
        window_norm = np.sqrt(np.sum(np.abs(centered_window) ** 2))
        denom = window_norm * needle_norm
        if denom < eps:
            continue
        out[k] = np.sum(centered_window * np.conj(centered_needle)) / denom
    return out


@pytest.fixture
def brute_force_lcc():
    return _brute_force_lcc
