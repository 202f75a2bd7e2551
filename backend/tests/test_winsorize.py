"""
Unit tests for winsorization.

Covers both order-statistic rules:
- rank rule (portfolio averages): worked cases on 1..10 and 1..100
- count rule (tercile totals)
- order / length preservation, degenerate inputs, idempotence
"""

import random

import pytest

from carbonlens.domain.winsorize import symmetric_bounds, winsorize, winsorize_by_count


class TestWinsorize:
    """Tests for the rank-indexed rule."""

    def test_one_to_ten_leaves_middle_unchanged(self):
        result = winsorize(list(range(1, 11)), 10, 90)
        assert result[4] == 5

    def test_one_to_hundred_at_5_95(self):
        values = list(range(1, 101))
        result = winsorize(values, 5, 95)

        assert result[0] == 5  # 1 -> 5
        assert result[1] == 5  # 2 -> 5
        assert result[4] == 5  # 5 unchanged
        assert result[50] == 51  # 51 unchanged
        assert result[99] == 96  # 100 -> 96

    def test_preserves_order_and_length(self):
        values = list(range(1, 101))
        random.Random(7).shuffle(values)

        result = winsorize(values, 5, 95)

        assert len(result) == len(values)
        for original, clamped in zip(values, result):
            assert clamped == min(max(original, 5), 96)

    def test_empty(self):
        assert winsorize([], 5, 95) == []

    def test_single_element_unchanged(self):
        assert winsorize([42.5], 5, 95) == [42.5]

    def test_idempotent(self):
        values = [3.0, -20.0, 8.5, 1000.0, 4.2, 7.7, 0.0, 12.0, 5.5, 6.1, 9.9, -3.3]
        once = winsorize(values, 10, 90)
        twice = winsorize(once, 10, 90)
        assert twice == once

    def test_zero_and_hundred_are_identity(self):
        values = [5.0, 1.0, 9.0, 3.0]
        assert winsorize(values, 0, 100) == values

    @pytest.mark.parametrize("lower,upper", [(-1, 95), (5, 101), (60, 40)])
    def test_invalid_percentiles_raise(self, lower, upper):
        with pytest.raises(ValueError):
            winsorize([1, 2, 3], lower, upper)


class TestWinsorizeByCount:
    """Tests for the count-indexed rule."""

    def test_one_to_twenty_at_5(self):
        result = winsorize_by_count(list(range(1, 21)), 5, 95)

        assert result[0] == 2  # lower index floor(20 * 0.05) = 1 -> 2
        assert result[19] == 19  # upper index floor(20 * 0.95) - 1 = 18 -> 19
        assert result[1:19] == list(range(2, 20))

    def test_preserves_order(self):
        values = [20, 1, 10, 15, 5, 19, 2, 3, 4, 6, 7, 8, 9, 11, 12, 13, 14, 16, 17, 18]
        result = winsorize_by_count(values, 5, 95)

        assert len(result) == len(values)
        assert result[0] == 19
        assert result[1] == 2
        assert result[2] == 10

    def test_degenerate_inputs(self):
        assert winsorize_by_count([], 5, 95) == []
        assert winsorize_by_count([7], 5, 95) == [7.0]

    def test_invalid_percentiles_raise(self):
        with pytest.raises(ValueError):
            winsorize_by_count([1, 2, 3], 95, 5)


def test_symmetric_bounds():
    assert symmetric_bounds(5) == (5, 95)
    assert symmetric_bounds(0) == (0, 100)
