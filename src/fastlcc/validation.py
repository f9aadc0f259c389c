import logging
from numbers import Integral
from typing import Sequence, Tuple

import numpy as np
import torch

from fastlcc.errors import EmptyInput, ScalarTypeMismatch, ShapeMismatch, describe

logger = logging.getLogger(__name__)


def as_tensor(data: torch.Tensor|np.ndarray, name: str="tensor") -> torch.Tensor:
    """
    Bring `data` into a floating point or complex torch tensor.

    Integer and bool inputs become float64, half precision inputs become float32.
    """
    if isinstance(data, np.ndarray):
        data = torch.from_numpy(np.ascontiguousarray(data))
    if not isinstance(data, torch.Tensor):
        raise ScalarTypeMismatch(f"{name} must be a torch.Tensor or numpy.ndarray, got {describe(data)}")

    if data.is_complex():
        if data.dtype == torch.complex32:
            data = data.to(torch.complex64)
        return data
    if data.dtype in (torch.float16, torch.bfloat16):
        return data.to(torch.float32)
    if not data.is_floating_point():
        return data.to(torch.float64)
    return data


def check_window_shape(window_shape: Sequence[int]) -> Tuple[int, ...]:
    if isinstance(window_shape, torch.Size):
        window_shape = tuple(window_shape)
    try:
        window_shape = tuple(window_shape)
    except TypeError:
        raise ShapeMismatch(f"Window shape must be a sequence of ints, got {window_shape!r}") from None
    if len(window_shape) == 0:
        raise ShapeMismatch("Window shape must have at least one axis")
    if not all(isinstance(w, Integral) for w in window_shape):
        raise ShapeMismatch(f"Window shape must contain ints only, got {window_shape}")
    window_shape = tuple(int(w) for w in window_shape)
    if any(w == 0 for w in window_shape):
        raise EmptyInput(f"Window shape has a zero extent: {window_shape}")
    if any(w < 0 for w in window_shape):
        raise ShapeMismatch(f"Window shape must be positive, got {window_shape}")
    return window_shape


def check_haystack(haystack: torch.Tensor, window_shape: Tuple[int, ...]) -> None:
    if haystack.ndim == 0:
        raise ShapeMismatch(f"Haystack must have at least one axis, got {describe(haystack)}")
    if haystack.numel() == 0:
        raise EmptyInput(f"Haystack is empty: {describe(haystack)}")
    if len(window_shape) != haystack.ndim:
        raise ShapeMismatch(f"Needle rank {len(window_shape)} does not match haystack rank {haystack.ndim}: "
                            f"window_shape={window_shape}, haystack: {describe(haystack)}")
    too_large = [i for i, (w, h) in enumerate(zip(window_shape, haystack.shape)) if w > h]
    if too_large:
        raise ShapeMismatch(f"Needle extent exceeds the haystack along dims {too_large}: "
                            f"window_shape={window_shape}, haystack: {describe(haystack)}")


def check_same_scalar_type(haystack: torch.Tensor, needle: torch.Tensor) -> None:
    if haystack.dtype != needle.dtype:
        raise ScalarTypeMismatch(f"Haystack and needle must share one scalar type, "
                                 f"got haystack: {describe(haystack)} and needle: {describe(needle)}")


def check_pair(haystack, needle) -> Tuple[torch.Tensor, torch.Tensor]:
    """
    Coerce and validate a (haystack, needle) pair before any transform work.

    Raises:
        ShapeMismatch: ranks differ, or the needle is larger than the haystack along some axis.
        EmptyInput: haystack or needle has a zero extent.
        ScalarTypeMismatch: the two do not share one dtype.
    """
    haystack = as_tensor(haystack, name="haystack")
    needle = as_tensor(needle, name="needle")
    if needle.ndim == 0:
        raise ShapeMismatch(f"Needle must have at least one axis, got {describe(needle)}")
    if needle.numel() == 0:
        raise EmptyInput(f"Needle is empty: {describe(needle)}")
    check_haystack(haystack, tuple(needle.shape))
    check_same_scalar_type(haystack, needle)
    if needle.device != haystack.device:
        logger.debug(f"Moving needle from {needle.device} to {haystack.device}")
        needle = needle.to(haystack.device)
    return haystack, needle


def valid_shape(shape: Sequence[int], window_shape: Sequence[int]) -> Tuple[int, ...]:
    return tuple(s - w + 1 for s, w in zip(shape, window_shape))


def restore_type(field: torch.Tensor, like) -> torch.Tensor|np.ndarray:
    """Hand results back as numpy when the haystack came in as numpy."""
    if isinstance(like, np.ndarray):
        return field.cpu().numpy()
    return field
