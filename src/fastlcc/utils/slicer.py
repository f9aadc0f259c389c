#%%
from typing import Optional, Tuple

import numpy as np
import torch
from ndindex import ndindex as _ndindex


class _Slicer:
    def normalize(self, index, shape: Optional[Tuple[int]]=None) -> Tuple[slice, ...]:
        if shape is None:
            normalized_index = _ndindex(index).raw
        else:
            if isinstance(shape, torch.Tensor):
                shape = shape.numpy()
            shape = [int(s.item()) if isinstance(s, (np.ndarray, np.generic)) else int(s) for s in shape]
            normalized_index = _ndindex(index).expand(shape).raw

        if not isinstance(normalized_index, tuple):
            normalized_index = (normalized_index, )
        slice_only_index = tuple((slice(i, i + 1) if isinstance(i, int) else i for i in normalized_index))
        return slice_only_index

    @staticmethod
    def box(offset: Tuple[int, ...], extent: Tuple[int, ...]) -> Tuple[slice, ...]:
        """Slices selecting the axis aligned box of `extent` anchored at `offset`."""
        return tuple(slice(o, o + e) for o, e in zip(offset, extent))

Slicer = _Slicer()
