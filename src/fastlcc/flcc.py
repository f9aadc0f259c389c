import logging
import math
from typing import Optional

import numpy as np
import torch

from fastlcc import spectral
from fastlcc.box_sums import fft_round_off_scale, fft_window_sums
from fastlcc.normalization import center, correlate
from fastlcc.options import LccOptions, resolve
from fastlcc.scalars import kind_of
from fastlcc.validation import check_pair, restore_type

logger = logging.getLogger(__name__)


@torch.no_grad()
def flcc(haystack: torch.Tensor|np.ndarray, needle: torch.Tensor|np.ndarray,
         options: Optional[LccOptions]=None) -> torch.Tensor|np.ndarray:
    """
    Calculate the local correlation coefficients fast using fft.

    Same result as `lcc` up to floating point round-off, in O(N log N). The correlation term
    and the window moments are all computed by zero-padded convolutions in the frequency domain.

        >>> haystack = torch.rand(2**10, 2**10, dtype=torch.float64)
        >>> needle = 3.7 * haystack[42:48, 45:50] + 0.2
        >>> best_match(flcc(haystack, needle))
        (42, 45)

    Args:
        haystack: Tensor to search, real or complex, any rank.
        needle: Tensor of the same rank and dtype, no larger than `haystack` along any axis.
        options: See `LccOptions`.

    Returns:
        Coefficients of shape `haystack.shape - needle.shape + 1`.
    """
    options = resolve(options)
    raw_haystack = haystack
    haystack, needle = check_pair(haystack, needle)
    kind = kind_of(haystack)
    logger.debug(f"flcc: haystack={tuple(haystack.shape)}, needle={tuple(needle.shape)}, kind={kind.name}")

    haystack, needle = center(haystack), center(needle)
    cross_term = spectral.fft_correlate(haystack, needle, kind, options)
    sums, sums_of_squares = fft_window_sums(haystack, tuple(needle.shape), options)
    field = correlate(cross_term, sums, sums_of_squares, math.prod(needle.shape), needle, options,
                      round_off=fft_round_off_scale(haystack))
    return restore_type(field, raw_haystack)
