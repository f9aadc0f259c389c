import numpy as np
import pytest
import torch

from fastlcc import best_match, best_matches


def test_best_match_returns_index_per_axis():
    field = torch.zeros(4, 5, 6)
    field[2, 3, 1] = 0.9
    assert best_match(field) == (2, 3, 1)
    assert best_match(field.numpy()) == (2, 3, 1)
    assert best_match(torch.tensor([0.1, 0.7, -0.2])) == (1, )


def test_best_matches_orders_by_coefficient():
    field = torch.tensor([[0.1, 0.95, 0.2], [0.5, -1.0, 0.8]], dtype=torch.float64)
    matches = best_matches(field, k=3)
    assert [position for position, _ in matches] == [(0, 1), (1, 2), (1, 0)]
    assert [value for _, value in matches] == [0.95, 0.8, 0.5]


def test_best_matches_caps_k_at_field_size():
    field = np.array([0.3, 0.1])
    assert best_matches(field, k=10) == [((0, ), 0.3), ((1, ), 0.1)]


@pytest.mark.parametrize("k", [0, -3])
def test_best_matches_rejects_k_below_one(k):
    with pytest.raises(ValueError):
        best_matches(torch.tensor([0.3, 0.1]), k=k)
