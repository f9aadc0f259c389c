from dataclasses import dataclass, replace
from typing import Literal, Optional

import torch

fft_size_type = Literal["fast", "exact"]
complex_output_type = Literal["real", "abs", "complex"]


@dataclass(frozen=True)
class LccOptions:
    """
    Knobs shared by every entry point.

    Attributes:
        variance_rtol (Optional[float]): A window variance at or below `variance_rtol` times the
            window mean square (plus the FFT round-off scale) counts as zero. A needle counts as
            constant when its values differ from one another by round-off only, that is its
            standard deviation is at most `variance_rtol` times the square root of the spread
            `needle_statistics` reports. The coefficient there is set to 0.
            `None` picks `1000 * eps` of the working dtype.
        fft_size (str): "fast" rounds every padded axis up to a size the FFT handles well,
            "exact" pads to exactly `haystack + window - 1`.
        complex_output (str): How a complex coefficient is reported: its real part,
            its modulus, or the raw complex value.
    """
    variance_rtol: Optional[float] = None
    fft_size: fft_size_type = "fast"
    complex_output: complex_output_type = "real"

    def __post_init__(self):
        if self.variance_rtol is not None and self.variance_rtol < 0:
            raise ValueError(f"variance_rtol must be non-negative, got {self.variance_rtol}")
        if self.fft_size not in ("fast", "exact"):
            raise ValueError(f"Unsupported fft_size: \"{self.fft_size}\"")
        if self.complex_output not in ("real", "abs", "complex"):
            raise ValueError(f"Unsupported complex_output: \"{self.complex_output}\"")

    def rtol_for(self, dtype: torch.dtype) -> float:
        if self.variance_rtol is not None:
            return self.variance_rtol
        return 1000 * torch.finfo(dtype).eps

    def with_(self, **changes) -> "LccOptions":
        return replace(self, **changes)


default_options: LccOptions = LccOptions()


def resolve(options: Optional[LccOptions]) -> LccOptions:
    return default_options if options is None else options
