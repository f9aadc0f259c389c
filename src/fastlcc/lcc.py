import logging
import math
from typing import Optional

import numpy as np
import torch

from fastlcc.box_sums import direct_window_sums
from fastlcc.nd_windows import NdValidWindow
from fastlcc.normalization import center, correlate
from fastlcc.options import LccOptions, resolve
from fastlcc.scalars import kind_of
from fastlcc.validation import check_pair, restore_type, valid_shape

logger = logging.getLogger(__name__)


def direct_correlate(haystack: torch.Tensor, needle: torch.Tensor) -> torch.Tensor:
    """
    Valid-mode cross-correlation `sum_j h[k + j] * conj(n[j])` by direct accumulation.

    Loops over the needle elements, adding each shifted haystack view scaled by that element,
    so the extra memory is a single output sized accumulator.
    """
    kind = kind_of(needle)
    weights = kind.conj(needle).resolve_conj()
    acc = torch.zeros(valid_shape(haystack.shape, needle.shape), dtype=haystack.dtype, device=haystack.device)
    for offset, window in NdValidWindow.sliding(haystack, tuple(needle.shape)):
        acc.add_(window[...] * weights[offset])
    return acc


@torch.no_grad()
def lcc(haystack: torch.Tensor|np.ndarray, needle: torch.Tensor|np.ndarray,
        options: Optional[LccOptions]=None) -> torch.Tensor|np.ndarray:
    """
    Calculate the local correlation coefficients directly.

    Every valid placement of `needle` inside `haystack` gets the normalized correlation
    coefficient between the needle and the haystack window under it. The needle may be
    scaled and translated in value; the position of the maximum is the best match:

        >>> haystack = torch.rand(2**10, 2**10, dtype=torch.float64)
        >>> needle = 3.7 * haystack[42:48, 45:50] + 0.2
        >>> best_match(lcc(haystack, needle))
        (42, 45)

    Costs O(N * M) for N haystack and M needle elements. Use `flcc` for large needles.
    """
    options = resolve(options)
    raw_haystack = haystack
    haystack, needle = check_pair(haystack, needle)
    logger.debug(f"lcc: haystack={tuple(haystack.shape)}, needle={tuple(needle.shape)}, dtype={haystack.dtype}")

    # Shifting either side leaves the coefficients unchanged and keeps the moments precise
    haystack, needle = center(haystack), center(needle)
    cross_term = direct_correlate(haystack, needle)
    sums, sums_of_squares = direct_window_sums(haystack, tuple(needle.shape))
    field = correlate(cross_term, sums, sums_of_squares, math.prod(needle.shape), needle, options)
    return restore_type(field, raw_haystack)
