from typing import List, Tuple

import numpy as np
import torch

from fastlcc.validation import as_tensor


def best_match(field: torch.Tensor|np.ndarray) -> Tuple[int, ...]:
    """Position of the maximum coefficient, one index per axis."""
    field = as_tensor(field, name="field")
    flat_index = int(torch.argmax(field.real if field.is_complex() else field))
    return tuple(int(i) for i in np.unravel_index(flat_index, tuple(field.shape)))


def best_matches(field: torch.Tensor|np.ndarray, k: int=1) -> List[Tuple[Tuple[int, ...], float]]:
    """
    The `k` highest coefficients, best first, as `(position, coefficient)` pairs.

    Neighbouring positions of one strong match usually score high as well; no suppression
    of neighbours is done here.
    """
    if k < 1:
        raise ValueError(f"k must be at least 1, got {k}")
    field = as_tensor(field, name="field")
    if field.is_complex():
        field = field.real
    k = min(k, field.numel())
    values, flat_indices = torch.topk(field.reshape(-1), k)
    positions = np.unravel_index(flat_indices.cpu().numpy(), tuple(field.shape))
    return [
        (tuple(int(axis[i]) for axis in positions), float(value))
        for i, value in enumerate(values.tolist())
    ]
