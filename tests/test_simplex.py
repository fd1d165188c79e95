import math

import pytest

from mrflp.simplex import (
    AtMostOneFactor,
    PairwiseSimplexFactor,
    UnarySimplexFactor,
    two_smallest,
)


def test_two_smallest_basic():
    assert two_smallest([3.0, 1.0, 2.0]) == (1.0, 2.0)


def test_two_smallest_duplicates_and_empty():
    assert two_smallest([1.0, 1.0, 5.0]) == (1.0, 1.0)
    assert two_smallest([4.0]) == (4.0, math.inf)
    assert two_smallest([]) == (math.inf, math.inf)


def test_unary_simplex_from_source():
    simplex = UnarySimplexFactor([0.1, 0.2, 0.05, 1])
    assert simplex.lower_bound() == 0.05
    simplex.init_primal()
    simplex.compute_primal()
    assert simplex.primal == 2
    assert simplex.evaluate_primal() == simplex.lower_bound()


def test_unary_primal_unset_is_infinite():
    simplex = UnarySimplexFactor([1.0, 2.0])
    simplex.init_primal()
    assert simplex.evaluate_primal() == math.inf


def test_unary_keeps_existing_primal():
    simplex = UnarySimplexFactor([1.0, 0.0])
    simplex.primal = 0
    simplex.compute_primal()
    assert simplex.primal == 0
    assert simplex.evaluate_primal() == 1.0


def test_unary_empty_lower_bound_raises():
    with pytest.raises(ValueError):
        UnarySimplexFactor([]).lower_bound()


def test_at_most_one_negative_minimum_is_chosen():
    factor = AtMostOneFactor([1.0, -2.0, 0.5])
    assert factor.lower_bound() == -2.0
    factor.init_primal()
    factor.compute_primal()
    assert factor.primal == 1
    assert factor.evaluate_primal() == -2.0


def test_at_most_one_positive_costs_choose_nothing():
    factor = AtMostOneFactor([1.0, 2.0])
    assert factor.lower_bound() == 0.0
    factor.compute_primal()
    assert factor.primal == 2
    assert factor.evaluate_primal() == 0.0


def test_at_most_one_from_size_and_sensitivity():
    factor = AtMostOneFactor(3)
    assert factor.costs == [0.0, 0.0, 0.0]
    assert AtMostOneFactor([3.0, 1.0, 1.5]).sensitivity() == pytest.approx(0.5)


def test_at_most_one_out_of_range_primal_infinite():
    factor = AtMostOneFactor([1.0])
    factor.primal = 5
    assert factor.evaluate_primal() == math.inf


def _diagonal_factor():
    simplex = PairwiseSimplexFactor(3, 3)
    for x1 in range(simplex.dim1):
        for x2 in range(simplex.dim2):
            simplex.pairwise[x1][x2] = 0.0 if x1 != x2 else -float(x1) - 1.0
    return simplex


def test_pairwise_simplex_from_source():
    simplex = _diagonal_factor()
    assert simplex.lower_bound() == -3.0
    simplex.init_primal()
    simplex.compute_primal()
    assert simplex.primal[0] == 2
    assert simplex.primal[1] == 2
    assert simplex.evaluate_primal() == simplex.lower_bound()


def test_pairwise_indexing_includes_messages():
    factor = PairwiseSimplexFactor(2, 3, [[1, 2, 3], [4, 5, 6]])
    factor.msg1[1] = 10.0
    factor.msg2[2] = 100.0
    assert factor[1, 2] == 116.0
    assert factor[5] == 116.0
    assert factor[1] == 2.0
    assert factor.size == 6
    with pytest.raises(IndexError):
        factor[6]
    with pytest.raises(IndexError):
        factor[2, 0]


def test_pairwise_min_marginals():
    factor = PairwiseSimplexFactor(2, 2, [[1, 4], [3, 0]])
    factor.msg1[:] = [0.5, 0.0]
    factor.msg2[:] = [0.0, 2.0]
    assert factor.min_marginal_1() == [1.5, 2.0]
    assert factor.min_marginal_2() == [1.5, 2.0]
    assert min(factor.min_marginal_1()) == factor.lower_bound()


def test_pairwise_sensitivity():
    factor = PairwiseSimplexFactor(2, 2, [[1, 4], [3, 0]])
    assert factor.sensitivity() == 1.0


def test_pairwise_partial_primal_completed():
    factor = PairwiseSimplexFactor(2, 2, [[1, 4], [3, 0]])
    factor.primal = [0, None]
    factor.compute_primal()
    assert factor.primal == [0, 0]
    factor.primal = [None, 0]
    factor.compute_primal()
    assert factor.primal == [0, 0]
    assert factor.evaluate_primal() == 1.0


def test_pairwise_unset_primal_infinite():
    factor = PairwiseSimplexFactor(2, 2)
    factor.init_primal()
    assert factor.evaluate_primal() == math.inf


def test_pairwise_bad_shape_raises():
    with pytest.raises(ValueError):
        PairwiseSimplexFactor(2, 2, [[1, 2, 3], [4, 5, 6]])
    with pytest.raises(ValueError):
        PairwiseSimplexFactor(0, 2)