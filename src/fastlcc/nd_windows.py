#%%
from typing import Iterator, Tuple

import numpy as np
import torch

from fastlcc.utils import Slicer


class NdValidWindow():
    """
    An axis aligned view into a tensor, defined by one bounding slice per dimension.

    Indexing a window is relative to its own origin and is bounds checked against the window,
    so a window over a window never reaches outside its bounds.

    Attributes:
        data (torch.Tensor): The underlying tensor being windowed.
        bounds (Tuple[slice]): Normalized bounds of the window in `data` coordinates.
    """
    def __init__(self, data: torch.Tensor, bounds: Tuple[slice]):
        self.data = data
        self.bounds = Slicer.normalize(bounds, shape=self.data.shape)
        self._shape = tuple(b.stop - b.start for b in self.bounds)

    @staticmethod
    def at(data: torch.Tensor, offset: Tuple[int, ...], shape: Tuple[int, ...]) -> "NdValidWindow":
        """Window of `shape` whose origin sits at `offset` in `data`."""
        stops = [o + s for o, s in zip(offset, shape)]
        if any(o < 0 for o in offset) or any(stop > d for stop, d in zip(stops, data.shape)):
            raise IndexError(f"Window of shape {tuple(shape)} at {tuple(offset)} does not fit in {tuple(data.shape)}")
        return NdValidWindow(data=data, bounds=Slicer.box(offset, shape))

    @staticmethod
    def sliding(data: torch.Tensor, window_shape: Tuple[int, ...]) -> Iterator[Tuple[Tuple[int, ...], "NdValidWindow"]]:
        """
        Yield `(offset, window)` for every element offset of a `window_shape` box.

        Each window has the shape of the valid sliding positions, `data.shape - window_shape + 1`,
        and is anchored at `offset`: element `k` of the window is `data[k + offset]`. Summing
        `window * kernel[offset]` over all offsets is a direct valid-mode correlation.
        """
        valid_shape = tuple(d - w + 1 for d, w in zip(data.shape, window_shape))
        for offset in np.ndindex(*window_shape):
            yield offset, NdValidWindow.at(data, offset, valid_shape)

    @property
    def shape(self) -> Tuple[int, ...]:
        return self._shape

    def __len__(self):
        return self._shape[0]

    def get_source_slices(self, index: int|slice|Tuple[slice]) -> Tuple[slice, ...]:
        index = Slicer.normalize(index=index, shape=self.shape)
        source_slices = []
        for i, (dim_idx, dim_bounds) in enumerate(zip(index, self.bounds)):
            size_idx = dim_idx.stop - dim_idx.start
            size_bounds = dim_bounds.stop - dim_bounds.start
            if size_idx > size_bounds:
                raise IndexError(f"Index out of bounds in dim={i}. index: {index}, bounds: {self.bounds}")
            source_slices.append(
                slice(
                    dim_idx.start + dim_bounds.start,
                    dim_idx.stop + dim_bounds.start,
                    dim_idx.step
                )
            )
        return tuple(source_slices)

    def __getitem__(self, index: int|slice|Tuple[slice]) -> torch.Tensor:
        source_index = self.get_source_slices(index)
        return self.data[source_index]

    def __repr__(self):
        return f"{type(self).__qualname__}(shape={self.shape}, bounds={self.bounds})"
