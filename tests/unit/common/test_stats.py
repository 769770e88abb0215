"""Tests for common.stats module."""

import math

import numpy as np
import pytest

from common.stats import (
    coerce_embedding,
    compute_centroid,
    cosine_distance,
    cosine_similarity,
    mean,
    round_to,
    stddev,
)


class TestMean:
    def test_empty_is_zero(self) -> None:
        assert mean([]) == 0.0

    def test_simple_mean(self) -> None:
        assert mean([10, 20, 30]) == 20.0


class TestStddev:
    def test_empty_is_zero(self) -> None:
        assert stddev([]) == 0.0

    def test_single_value_is_zero(self) -> None:
        assert stddev([42.0]) == 0.0

    def test_sample_stddev(self) -> None:
        assert stddev([10, 20, 30]) == pytest.approx(10.0)

    def test_uses_n_minus_one(self) -> None:
        # population stddev of [1, 3] is 1, sample stddev is sqrt(2)
        assert stddev([1, 3]) == pytest.approx(math.sqrt(2))


class TestRoundTo:
    def test_one_decimal(self) -> None:
        assert round_to(1.26, 1) == 1.3

    def test_halves_round_up(self) -> None:
        assert round_to(0.125, 2) == 0.13
        assert round_to(2.5, 0) == 3.0


class TestComputeCentroid:
    def test_empty_returns_none(self) -> None:
        assert compute_centroid([]) is None

    def test_element_wise_mean(self) -> None:
        assert compute_centroid([[1.0, 0.0], [0.0, 1.0], [2.0, 2.0]]) == pytest.approx([1.0, 1.0])


class TestCosine:
    def test_identical_vectors(self) -> None:
        assert cosine_similarity([1.0, 2.0, 3.0], [1.0, 2.0, 3.0]) == pytest.approx(1.0)
        assert cosine_distance([1.0, 2.0, 3.0], [1.0, 2.0, 3.0]) == pytest.approx(0.0)

    def test_orthogonal_vectors(self) -> None:
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)
        assert cosine_distance([1.0, 0.0], [0.0, 1.0]) == pytest.approx(1.0)

    def test_opposite_vectors(self) -> None:
        assert cosine_distance([1.0, 0.0], [-1.0, 0.0]) == pytest.approx(2.0)

    def test_dimension_mismatch_is_zero_similarity(self) -> None:
        assert cosine_similarity([1.0, 0.0], [1.0, 0.0, 0.0]) == 0.0

    def test_zero_vector_is_zero_similarity(self) -> None:
        assert cosine_similarity([0.0, 0.0], [1.0, 1.0]) == 0.0


class TestCoerceEmbedding:
    def test_none(self) -> None:
        assert coerce_embedding(None) is None

    def test_json_string(self) -> None:
        assert coerce_embedding("[0.1, 0.2]") == [0.1, 0.2]

    def test_invalid_json_string(self) -> None:
        assert coerce_embedding("not json") is None

    def test_numpy_array(self) -> None:
        assert coerce_embedding(np.array([1, 2])) == [1.0, 2.0]

    def test_list(self) -> None:
        assert coerce_embedding([1, 2]) == [1.0, 2.0]
