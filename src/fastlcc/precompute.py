"""
Search one haystack for many needles of the same shape.

`flcc_prepare` does all the work that only depends on the haystack and the window shape
once; `flcc_complete` then only has to transform each needle and combine.

    haystack = torch.rand(2**20, dtype=torch.float64)
    precomp = flcc_prepare(haystack, (7, ))
    for needle in needles:
        field = flcc_complete(precomp, needle)
"""
import logging
import math
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np
import torch

from fastlcc import spectral
from fastlcc.box_sums import box_kernel_spectrum, fft_round_off_scale, spectral_window_sums
from fastlcc.errors import ShapeMismatch, describe
from fastlcc.normalization import center, correlate
from fastlcc.options import LccOptions, resolve
from fastlcc.scalars import REAL, ScalarKind, kind_of
from fastlcc.validation import (
    as_tensor, check_haystack, check_same_scalar_type, check_window_shape, valid_shape
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FlccPrecomputed:
    """
    Haystack dependent data for one window shape.

    Nothing reads these tensors for writing; a session can be shared between threads
    calling `flcc_complete` concurrently.

    Attributes:
        haystack (torch.Tensor): The haystack as validated by `flcc_prepare`.
        window_shape (Tuple[int]): The only needle shape this session accepts.
        padded_shape (Tuple[int]): Transform shape, at least `haystack + window - 1` per axis.
        haystack_spectrum (torch.Tensor): Transform of the zero-padded, mean-free haystack.
        box_spectrum (torch.Tensor): Transform of a unit box of `window_shape`.
        window_sums (torch.Tensor): Mean-free haystack sums over every valid window.
        window_sums_of_squares (torch.Tensor): Mean-free haystack sums of `|x|^2` over every valid window.
        round_off (float): Round-off scale of those sums, see `fft_round_off_scale`.
        window_count (int): Elements per window.
        options (LccOptions): Options the session was prepared with, reused by every query.
        returns_numpy (bool): The haystack came in as a numpy array, so results go back as numpy.
    """
    haystack: torch.Tensor
    window_shape: Tuple[int, ...]
    padded_shape: Tuple[int, ...]
    haystack_spectrum: torch.Tensor
    box_spectrum: torch.Tensor
    window_sums: torch.Tensor
    window_sums_of_squares: torch.Tensor
    window_count: int
    round_off: float
    options: LccOptions
    returns_numpy: bool = False

    @property
    def kind(self) -> ScalarKind:
        return kind_of(self.haystack)

    @property
    def out_shape(self) -> Tuple[int, ...]:
        return valid_shape(self.haystack.shape, self.window_shape)

    def complete(self, needle: torch.Tensor|np.ndarray) -> torch.Tensor|np.ndarray:
        return flcc_complete(self, needle)

    def __repr__(self):
        return (f"{type(self).__qualname__}(haystack={describe(self.haystack)}, "
                f"window_shape={self.window_shape}, padded_shape={self.padded_shape})")


@torch.no_grad()
def flcc_prepare(haystack: torch.Tensor|np.ndarray, window_shape: Sequence[int],
                 options: Optional[LccOptions]=None) -> FlccPrecomputed:
    """
    When you need to search for several needles of the same size, precompute all common information once.

    Args:
        haystack: Tensor to search, real or complex.
        window_shape: Shape every needle will have, e.g. `needle.shape`.
        options: Kept in the session and used for every `flcc_complete` call.

    Raises:
        ShapeMismatch: `window_shape` has a different rank than `haystack` or exceeds it.
        EmptyInput: `haystack` or `window_shape` has a zero extent.
    """
    options = resolve(options)
    returns_numpy = isinstance(haystack, np.ndarray)
    haystack = as_tensor(haystack, name="haystack")
    window_shape = check_window_shape(window_shape)
    check_haystack(haystack, window_shape)

    kind = kind_of(haystack)
    shape = spectral.padded_shape(haystack.shape, window_shape, options)
    out_shape = valid_shape(haystack.shape, window_shape)
    centered = center(haystack)
    squares = kind.abs2(centered)

    haystack_spectrum = spectral.transform(centered, shape, kind)
    box_spectrum = box_kernel_spectrum(window_shape, shape, kind, haystack.dtype, haystack.device)

    # |x|^2 is real, so for complex haystacks it goes through the real transform with its own kernel
    if kind is REAL:
        squares_box_spectrum = box_spectrum
    else:
        squares_box_spectrum = box_kernel_spectrum(window_shape, shape, REAL, squares.dtype, squares.device)

    window_sums = spectral_window_sums(haystack_spectrum, box_spectrum, shape, window_shape, out_shape, kind)
    window_sums_of_squares = spectral_window_sums(
        spectral.transform(squares, shape, REAL), squares_box_spectrum, shape, window_shape, out_shape, REAL
    ).clamp_min(0)

    logger.debug(f"Prepared flcc session: haystack={tuple(haystack.shape)}, window={window_shape}, padded={shape}")
    return FlccPrecomputed(
        haystack=haystack,
        window_shape=window_shape,
        padded_shape=shape,
        haystack_spectrum=haystack_spectrum,
        box_spectrum=box_spectrum,
        window_sums=window_sums,
        window_sums_of_squares=window_sums_of_squares,
        window_count=math.prod(window_shape),
        round_off=fft_round_off_scale(centered),
        options=options,
        returns_numpy=returns_numpy,
    )


@torch.no_grad()
def flcc_complete(precomputed: FlccPrecomputed, needle: torch.Tensor|np.ndarray) -> torch.Tensor|np.ndarray:
    """
    Then, use the precomputed session for every needle.

        haystack = torch.rand(2**20, dtype=torch.float64)
        needle1 = 0.3 * haystack[1:8] + 0.5
        needle2 = 0.8 * haystack[41:48] + 0.1
        needle3 = 2.0 * haystack[-7:] + 0.9
        precomp = flcc_prepare(haystack, needle1.shape)
        best_match(flcc_complete(precomp, needle1)) == (1, )
        best_match(flcc_complete(precomp, needle2)) == (41, )
        best_match(flcc_complete(precomp, needle3)) == (2**20 - 7, )

    Raises:
        ShapeMismatch: `needle.shape` differs from the session's window shape.
        ScalarTypeMismatch: `needle` does not have the haystack's dtype.
    """
    needle = as_tensor(needle, name="needle")
    if tuple(needle.shape) != precomputed.window_shape:
        raise ShapeMismatch(f"Needle shape {tuple(needle.shape)} does not match the precomputed "
                            f"window shape {precomputed.window_shape}, needle: {describe(needle)}")
    check_same_scalar_type(precomputed.haystack, needle)
    needle = center(needle.to(precomputed.haystack.device))

    kind = precomputed.kind
    needle_spectrum = spectral.transform(needle, precomputed.padded_shape, kind)
    cross_term = spectral.correlate_spectra(
        precomputed.haystack_spectrum, needle_spectrum,
        precomputed.padded_shape, precomputed.out_shape, kind,
    )
    field = correlate(
        cross_term,
        precomputed.window_sums,
        precomputed.window_sums_of_squares,
        precomputed.window_count,
        needle,
        precomputed.options,
        round_off=precomputed.round_off,
    )
    return field.cpu().numpy() if precomputed.returns_numpy else field
