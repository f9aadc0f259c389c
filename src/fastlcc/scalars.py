"""
Real vs complex element handling.

The box sums, the correlation term and the normalization are written once against a
`ScalarKind`; the kind decides how to conjugate, how to take a squared magnitude and
which FFT pair to use.
"""
from dataclasses import dataclass
from typing import Callable, Tuple

import torch
import torch.fft as fft


def _real_inverse(spectrum: torch.Tensor, s: Tuple[int, ...]) -> torch.Tensor:
    return fft.irfftn(spectrum, s=s, dim=tuple(range(-len(s), 0)))

def _complex_inverse(spectrum: torch.Tensor, s: Tuple[int, ...]) -> torch.Tensor:
    return fft.ifftn(spectrum, s=s, dim=tuple(range(-len(s), 0)))

def _real_forward(tensor: torch.Tensor, s: Tuple[int, ...]) -> torch.Tensor:
    return fft.rfftn(tensor, s=s, dim=tuple(range(-len(s), 0)))

def _complex_forward(tensor: torch.Tensor, s: Tuple[int, ...]) -> torch.Tensor:
    return fft.fftn(tensor, s=s, dim=tuple(range(-len(s), 0)))


@dataclass(frozen=True)
class ScalarKind:
    name: str
    conj: Callable[[torch.Tensor], torch.Tensor]
    abs2: Callable[[torch.Tensor], torch.Tensor]
    # forward(tensor, s) zero-pads `tensor` to `s` and transforms; inverse(spectrum, s) undoes it
    forward: Callable[[torch.Tensor, Tuple[int, ...]], torch.Tensor]
    inverse: Callable[[torch.Tensor, Tuple[int, ...]], torch.Tensor]

    @property
    def is_complex(self) -> bool:
        return self is COMPLEX

    def __repr__(self):
        return f"ScalarKind({self.name})"


REAL = ScalarKind(
    name="real",
    conj=lambda t: t,
    abs2=lambda t: t * t,
    forward=_real_forward,
    inverse=_real_inverse,
)

COMPLEX = ScalarKind(
    name="complex",
    conj=torch.conj,
    abs2=lambda t: (t * t.conj()).real,
    forward=_complex_forward,
    inverse=_complex_inverse,
)


def kind_of(tensor: torch.Tensor) -> ScalarKind:
    return COMPLEX if tensor.is_complex() else REAL

def real_dtype(dtype: torch.dtype) -> torch.dtype:
    match dtype:
        case torch.complex64:
            return torch.float32
        case torch.complex128:
            return torch.float64
        case _:
            return dtype
