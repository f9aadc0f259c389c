"""
Sliding box sums.

For a tensor `x` and a window shape `w`, `window_sums` returns for every valid window
position `k` the sum of `x[k : k + w]` and the sum of `|x[k : k + w]|^2`. These are the
per-window first and second moments used to normalize the correlation.
"""
import logging
from typing import Literal, Optional, Sequence, Tuple

import torch

from fastlcc import spectral
from fastlcc.options import LccOptions, resolve
from fastlcc.scalars import ScalarKind, kind_of
from fastlcc.validation import as_tensor, check_haystack, check_window_shape, valid_shape

logger = logging.getLogger(__name__)

box_sum_mode_type = Literal["direct", "fft"]


def sliding_sum(tensor: torch.Tensor, window_shape: Sequence[int]) -> torch.Tensor:
    """
    Box filter by direct accumulation. The box is separable, so each axis is unfolded into
    windows of its extent and summed before moving to the next axis.
    """
    if all(size == 1 for size in window_shape):
        return tensor.clone()
    out = tensor
    for dim, size in enumerate(window_shape):
        if size == 1:
            continue
        out = out.unfold(dim, size, 1).sum(-1)
    return out


def box_kernel_spectrum(window_shape: Tuple[int, ...], shape: Tuple[int, ...], kind: ScalarKind,
                        dtype: torch.dtype, device: torch.device) -> torch.Tensor:
    """Transform of a unit valued box of `window_shape`, zero-padded to `shape`."""
    kernel = torch.ones(window_shape, dtype=dtype, device=device)
    return spectral.transform(kernel, shape, kind)


def spectral_window_sums(spectrum: torch.Tensor, kernel_spectrum: torch.Tensor, shape: Tuple[int, ...],
                         window_shape: Tuple[int, ...], out_shape: Tuple[int, ...], kind: ScalarKind) -> torch.Tensor:
    """Box sums of an already transformed input, cropped to the valid region."""
    full = spectral.inverse(spectrum * kernel_spectrum, shape, kind)
    return spectral.convolution_crop(full, window_shape, out_shape)


def fft_window_sums(tensor: torch.Tensor, window_shape: Tuple[int, ...],
                    options: LccOptions) -> Tuple[torch.Tensor, torch.Tensor]:
    kind = kind_of(tensor)
    shape = spectral.padded_shape(tensor.shape, window_shape, options)
    out_shape = valid_shape(tensor.shape, window_shape)
    squares = kind.abs2(tensor)

    sums = spectral_window_sums(
        spectral.transform(tensor, shape, kind),
        box_kernel_spectrum(window_shape, shape, kind, tensor.dtype, tensor.device),
        shape, window_shape, out_shape, kind,
    )
    # The squared magnitudes are real even for complex input
    real_kind = kind_of(squares)
    sums_of_squares = spectral_window_sums(
        spectral.transform(squares, shape, real_kind),
        box_kernel_spectrum(window_shape, shape, real_kind, squares.dtype, squares.device),
        shape, window_shape, out_shape, real_kind,
    )
    return sums, sums_of_squares.clamp_min(0)


def fft_round_off_scale(tensor: torch.Tensor) -> float:
    """
    Mean-square scale of the round-off `fft_window_sums` leaves in a window mean square.

    The error of a transform based convolution spreads over the whole output at a level set by
    the norm of the input, so this is the root mean square of `|x|^2` over the entire tensor.
    """
    return float(kind_of(tensor).abs2(tensor).square().mean().sqrt())


def direct_window_sums(tensor: torch.Tensor, window_shape: Tuple[int, ...]) -> Tuple[torch.Tensor, torch.Tensor]:
    kind = kind_of(tensor)
    return sliding_sum(tensor, window_shape), sliding_sum(kind.abs2(tensor), window_shape)


@torch.no_grad()
def window_sums(tensor: torch.Tensor, window_shape: Sequence[int], mode: box_sum_mode_type="direct",
                options: Optional[LccOptions]=None) -> Tuple[torch.Tensor, torch.Tensor]:
    """
    Sliding window sums and sums of squared magnitudes over every valid `window_shape` box.

    Args:
        tensor (torch.Tensor): Input of any rank, real or complex.
        window_shape (Sequence[int]): Box extent per axis, no larger than `tensor.shape`.
        mode (str): "direct" for sliding accumulation, "fft" for convolution with a unit kernel.
        options (LccOptions): Padding policy for the "fft" mode.

    Returns:
        Tuple[torch.Tensor, torch.Tensor]: `(sums, sums_of_squares)`, both of shape
        `tensor.shape - window_shape + 1`. `sums_of_squares` is real.
    """
    options = resolve(options)
    tensor = as_tensor(tensor)
    window_shape = check_window_shape(window_shape)
    check_haystack(tensor, window_shape)

    match mode:
        case "direct":
            return direct_window_sums(tensor, window_shape)
        case "fft":
            return fft_window_sums(tensor, window_shape, options)
        case _:
            raise ValueError(f"Unsupported box sum mode: \"{mode}\"")
