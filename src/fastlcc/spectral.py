import logging
from typing import Sequence, Tuple

import torch
from scipy.fft import next_fast_len

from fastlcc.options import LccOptions
from fastlcc.scalars import ScalarKind

logger = logging.getLogger(__name__)


def padded_shape(shape: Sequence[int], window_shape: Sequence[int], options: LccOptions) -> Tuple[int, ...]:
    """
    Shape to zero-pad to so that a linear convolution of `shape` with `window_shape`
    fits without circular wraparound: at least `shape + window_shape - 1` per axis.
    """
    linear = [s + w - 1 for s, w in zip(shape, window_shape)]
    match options.fft_size:
        case "exact":
            padded = tuple(linear)
        case "fast":
            padded = tuple(next_fast_len(n, real=True) for n in linear)
        case _:
            raise ValueError(f"Unsupported fft_size: \"{options.fft_size}\"")
    logger.debug(f"Padded shape for {tuple(shape)} * {tuple(window_shape)}: {padded}")
    return padded


def crop(tensor: torch.Tensor, start: Sequence[int], shape: Sequence[int]) -> torch.Tensor:
    return tensor[tuple(slice(b, b + s) for b, s in zip(start, shape))]


def convolution_crop(full: torch.Tensor, window_shape: Sequence[int], out_shape: Sequence[int]) -> torch.Tensor:
    """
    Valid part of a zero-padded linear convolution: the output positions where the
    kernel lies completely inside the input start at `window_shape - 1`.
    """
    return crop(full, [w - 1 for w in window_shape], out_shape)


def correlation_crop(full: torch.Tensor, out_shape: Sequence[int]) -> torch.Tensor:
    """
    Valid part of a zero-padded correlation computed as `IFFT(F(x) * conj(F(k)))`:
    lag `k` lands at index `k`, so the valid lags are the leading `out_shape` block.
    """
    return crop(full, [0] * len(out_shape), out_shape)


def transform(tensor: torch.Tensor, shape: Tuple[int, ...], kind: ScalarKind) -> torch.Tensor:
    return kind.forward(tensor, shape)


def inverse(spectrum: torch.Tensor, shape: Tuple[int, ...], kind: ScalarKind) -> torch.Tensor:
    return kind.inverse(spectrum, shape)


def correlate_spectra(haystack_spectrum: torch.Tensor, needle_spectrum: torch.Tensor,
                      shape: Tuple[int, ...], out_shape: Tuple[int, ...], kind: ScalarKind) -> torch.Tensor:
    """
    Valid-mode cross-correlation `sum_j h[k + j] * conj(n[j])` from two spectra padded to `shape`.

    Multiplying by the conjugate needle spectrum is the same as convolving with the
    needle conjugated and reversed along every axis.
    """
    full = inverse(haystack_spectrum * needle_spectrum.conj(), shape, kind)
    return correlation_crop(full, out_shape)


def fft_correlate(haystack: torch.Tensor, needle: torch.Tensor, kind: ScalarKind, options: LccOptions) -> torch.Tensor:
    shape = padded_shape(haystack.shape, needle.shape, options)
    out_shape = tuple(h - n + 1 for h, n in zip(haystack.shape, needle.shape))
    return correlate_spectra(
        transform(haystack, shape, kind),
        transform(needle, shape, kind),
        shape, out_shape, kind,
    )
