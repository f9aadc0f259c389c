import dataclasses
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest
import torch

from fastlcc import (
    EmptyInput, FlccPrecomputed, LccOptions, ScalarTypeMismatch, ShapeMismatch,
    best_match, flcc, flcc_complete, flcc_prepare
)


def test_prepare_and_complete_finds_each_needle(generator):
    haystack = torch.rand(2**20, dtype=torch.float64, generator=generator)
    scales = torch.rand(3, dtype=torch.float64, generator=generator) + 0.1
    offsets = torch.rand(3, dtype=torch.float64, generator=generator)
    needle1 = scales[0] * haystack[1:8] + offsets[0]
    needle2 = scales[1] * haystack[41:48] + offsets[1]
    needle3 = scales[2] * haystack[-7:] + offsets[2]

    precomp = flcc_prepare(haystack, needle1.shape)
    assert best_match(flcc_complete(precomp, needle1)) == (1, )
    assert best_match(flcc_complete(precomp, needle2)) == (41, )
    assert best_match(flcc_complete(precomp, needle3)) == (2**20 - 7, )


@pytest.mark.parametrize("dtype", [torch.float64, torch.complex128])
def test_complete_matches_flcc(dtype, generator):
    options = LccOptions(complex_output="complex")
    haystack = torch.randn(45, 38, dtype=dtype, generator=generator)
    precomp = flcc_prepare(haystack, (6, 5), options)

    for _ in range(4):
        needle = torch.randn(6, 5, dtype=dtype, generator=generator)
        torch.testing.assert_close(
            flcc_complete(precomp, needle), flcc(haystack, needle, options), rtol=1e-6, atol=1e-8
        )


def test_session_window_statistics_match_box_sums(generator):
    from fastlcc import window_sums
    from fastlcc.normalization import center

    haystack = torch.rand(20, 30, dtype=torch.float64, generator=generator)
    precomp = flcc_prepare(haystack, (4, 7))
    sums, sums_of_squares = window_sums(center(haystack), (4, 7), mode="direct")
    assert precomp.window_count == 28
    assert precomp.out_shape == (17, 24)
    assert all(p >= h + w - 1 for p, h, w in zip(precomp.padded_shape, (20, 30), (4, 7)))
    torch.testing.assert_close(precomp.window_sums, sums, rtol=1e-9, atol=1e-9)
    torch.testing.assert_close(precomp.window_sums_of_squares, sums_of_squares, rtol=1e-9, atol=1e-9)


def test_complete_rejects_other_needle_shapes(generator):
    haystack = torch.rand(50, 50, dtype=torch.float64, generator=generator)
    precomp = flcc_prepare(haystack, (5, 5))
    with pytest.raises(ShapeMismatch):
        flcc_complete(precomp, torch.rand(5, 4, dtype=torch.float64))
    with pytest.raises(ShapeMismatch):
        flcc_complete(precomp, torch.rand(25, dtype=torch.float64))
    with pytest.raises(ScalarTypeMismatch):
        flcc_complete(precomp, torch.rand(5, 5, dtype=torch.float32))


def test_prepare_rejects_invalid_window_shapes():
    haystack = torch.rand(10, 10, dtype=torch.float64)
    with pytest.raises(ShapeMismatch):
        flcc_prepare(haystack, (11, 2))
    with pytest.raises(ShapeMismatch):
        flcc_prepare(haystack, (2, ))
    with pytest.raises(ShapeMismatch):
        flcc_prepare(haystack, 5)
    with pytest.raises(ShapeMismatch):
        flcc_prepare(haystack, (2.5, 2))
    with pytest.raises(EmptyInput):
        flcc_prepare(haystack, (0, 2))
    with pytest.raises(EmptyInput):
        flcc_prepare(torch.rand(0, 10), (1, 1))


def test_session_is_frozen_and_left_untouched(generator):
    haystack = torch.rand(40, 40, dtype=torch.float64, generator=generator)
    precomp = flcc_prepare(haystack, (3, 3))
    snapshot = {
        f.name: getattr(precomp, f.name).clone()
        for f in dataclasses.fields(precomp) if isinstance(getattr(precomp, f.name), torch.Tensor)
    }

    with pytest.raises(dataclasses.FrozenInstanceError):
        precomp.window_shape = (4, 4)

    for _ in range(3):
        precomp.complete(torch.rand(3, 3, dtype=torch.float64, generator=generator))

    for name, before in snapshot.items():
        assert torch.equal(getattr(precomp, name), before), name


def test_session_shared_across_threads(generator):
    haystack = torch.rand(300, 200, dtype=torch.float64, generator=generator)
    precomp = flcc_prepare(haystack, (8, 6))
    needles = [haystack[i:i + 8, 2 * i:2 * i + 6] * (i + 1) for i in range(12)]

    sequential = [flcc_complete(precomp, n) for n in needles]
    with ThreadPoolExecutor(max_workers=4) as executor:
        concurrent = list(executor.map(precomp.complete, needles))

    for i, (s, c) in enumerate(zip(sequential, concurrent)):
        torch.testing.assert_close(c, s)
        assert best_match(c) == (i, 2 * i)


def test_numpy_session_returns_numpy(rng):
    haystack = rng.random((64, 64))
    precomp = flcc_prepare(haystack, (4, 4))
    assert isinstance(precomp, FlccPrecomputed)
    field = flcc_complete(precomp, 0.5 * haystack[9:13, 30:34])
    assert isinstance(field, np.ndarray)
    assert np.unravel_index(np.argmax(field), field.shape) == (9, 30)
    assert "window_shape=(4, 4)" in repr(precomp)


def test_session_keeps_only_window_statistics(generator):
    haystack = torch.rand(20, 30, dtype=torch.float64, generator=generator)
    precomp = flcc_prepare(haystack, (4, 7))
    spectra = [f.name for f in dataclasses.fields(precomp) if f.name.endswith("_spectrum")]
    assert spectra == ["haystack_spectrum", "box_spectrum"]
    assert precomp.round_off > 0


@pytest.mark.parametrize("dtype", [torch.float32, torch.float64])
def test_session_on_offset_haystack(dtype, generator):
    haystack = (1e6 + torch.rand(2000, dtype=torch.float64, generator=generator)).to(dtype)
    precomp = flcc_prepare(haystack, (12, ))
    for offset in (0, 700, 1988):
        field = flcc_complete(precomp, 2.0 * haystack[offset:offset + 12] - 5.0)
        assert (field != 0).all()
        assert best_match(field) == (offset, )
