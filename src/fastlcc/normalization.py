import logging
from typing import Optional, Tuple

import torch

from fastlcc.options import LccOptions, resolve
from fastlcc.scalars import ScalarKind, kind_of, real_dtype

logger = logging.getLogger(__name__)


def center(tensor: torch.Tensor) -> torch.Tensor:
    """
    `tensor` minus its mean. The coefficient does not change under a constant shift of the
    haystack or the needle, and the window moments lose no precision to a large offset.

    The second pass removes what is left of the mean after the first one, which matters
    when the offset itself is not representable in the working precision.
    """
    centered = tensor - tensor.mean()
    return centered - centered.mean()


def needle_statistics(needle: torch.Tensor) -> Tuple[torch.Tensor, torch.Tensor, torch.Tensor]:
    """
    Mean, variance and spread scale of the needle, as 0-d tensors.

    The variance is taken about the mean, which equals `sum(|x|^2) / n - |mean|^2` but keeps
    its precision when the needle sits on a large offset. The spread scale is the mean squared
    magnitude after removing the mean once; for a constant needle the variance is round-off of
    that scale, for anything else the two are of the same order.
    """
    kind = kind_of(needle)
    shifted = needle - needle.mean()
    shift_mean = shifted.mean()
    mean = needle.mean() + shift_mean
    variance = kind.abs2(shifted - shift_mean).mean()
    spread = kind.abs2(shifted).mean()
    return mean, variance, spread


def window_statistics(window_sums: torch.Tensor, window_sums_of_squares: torch.Tensor,
                      window_count: int, kind: ScalarKind) -> Tuple[torch.Tensor, torch.Tensor, torch.Tensor]:
    mean = window_sums / window_count
    mean_square = window_sums_of_squares / window_count
    variance = (mean_square - kind.abs2(mean)).clamp_min(0)
    return mean, variance, mean_square


def report(field: torch.Tensor, kind: ScalarKind, options: LccOptions) -> torch.Tensor:
    if not kind.is_complex:
        return field
    match options.complex_output:
        case "real":
            return field.real.contiguous()
        case "abs":
            return field.abs()
        case "complex":
            return field
        case _:
            raise ValueError(f"Unsupported complex_output: \"{options.complex_output}\"")


@torch.no_grad()
def correlate(cross_term: torch.Tensor, window_sums: torch.Tensor, window_sums_of_squares: torch.Tensor,
              window_count: int, needle: torch.Tensor, options: Optional[LccOptions]=None,
              round_off: float=0.0) -> torch.Tensor:
    """
    Local correlation coefficients from the raw correlation term and the window moments.

    The haystack the moments came from and the needle may each be shifted by a constant
    (`center` does that); the cross term just has to be computed from the same two tensors.

    Parameters
    ----------
    cross_term : torch.Tensor
        `sum_j h[k + j] * conj(n[j])` for every valid position `k`.
    window_sums, window_sums_of_squares : torch.Tensor
        Sum and sum of squared magnitudes of the haystack over each window.
    window_count : int
        Number of elements per window, the product of the needle shape.
    needle : torch.Tensor
        The needle the cross term was computed with; only its moments are used here.
    options : LccOptions, optional
        Degeneracy tolerance and complex reporting.
    round_off : float, optional
        Absolute mean-square scale of the round-off in the window moments. 0 for direct sums,
        `fft_round_off_scale(haystack)` for sums taken through the FFT.

    Returns
    -------
    torch.Tensor
        `(cross - n * mean_w * conj(mean_n)) / sqrt(n^2 * var_w * var_n)` with shape of `cross_term`.
        Positions where the window or the needle has (numerically) zero variance are 0.
    """
    options = resolve(options)
    kind = kind_of(needle)
    n = window_count
    rtol = options.rtol_for(real_dtype(needle.dtype))

    needle_mean, needle_variance, needle_spread = needle_statistics(needle)
    if needle_variance <= rtol ** 2 * needle_spread:
        logger.debug(f"Needle of shape {tuple(needle.shape)} is constant, every coefficient is 0")
        zeros = torch.zeros(cross_term.shape, dtype=cross_term.dtype, device=cross_term.device)
        return report(zeros, kind, options)

    window_mean, window_variance, window_mean_square = window_statistics(
        window_sums, window_sums_of_squares, n, kind
    )

    # Each window against its own mean square, plus whatever the transforms smeared over it
    degenerate = window_variance <= rtol * (window_mean_square + round_off)
    n_degenerate = int(degenerate.sum())
    if n_degenerate:
        logger.debug(f"{n_degenerate} of {degenerate.numel()} windows have zero variance")

    numerator = cross_term - n * window_mean * kind.conj(needle_mean)
    denominator = n * torch.sqrt(window_variance * needle_variance)
    field = numerator / denominator.masked_fill(degenerate, 1)
    field = field.masked_fill(degenerate, 0)
    return report(field, kind, options)
