import pytest

from mrflp.cycles import (
    KaryCycleSearch,
    compute_partitions,
    find_path,
    projection_weight_on_partitions,
    projection_weight_singleton_1,
    projection_weight_singleton_2,
)
from mrflp.model import PairwiseModel, construct_potts
from mrflp.simplex import PairwiseSimplexFactor
from mrflp.triplets import column_minima, row_minima

MATRICES = [
    [[3.0, 1.0, 4.0], [1.0, 5.0, 9.0], [2.0, 6.0, 5.0], [3.0, 5.0, 8.0]],
    [[0.0, 0.0, 2.0], [7.0, 0.0, 1.0], [2.0, 2.0, 2.0], [4.0, -1.0, 3.0]],
    [[-2.0, 5.0, 5.0], [5.0, -2.0, 0.5], [0.5, 0.5, -2.0], [1.0, 1.0, 1.0]],
]

BLOCK = [
    [0.0, 0.0, 10.0, 10.0],
    [0.0, 0.0, 10.0, 10.0],
    [10.0, 10.0, 0.0, 0.0],
    [10.0, 10.0, 0.0, 0.0],
]
ANTI_BLOCK = [[10.0 - v for v in row] for row in BLOCK]


def _factor(rows):
    return PairwiseSimplexFactor(len(rows), len(rows[0]), rows)


def _triangle(frustrated=True):
    model = PairwiseModel()
    for _ in range(3):
        model.add_unary_factor([0.0, 0.0])
    attractive = construct_potts(2, 2, 0.0, 1.0)
    repulsive = construct_potts(2, 2, 1.0, 0.0)
    model.add_pairwise_factor(0, 1, attractive)
    model.add_pairwise_factor(1, 2, attractive)
    model.add_pairwise_factor(0, 2, repulsive if frustrated else attractive)
    return model


def _block_triangle():
    model = PairwiseModel()
    for _ in range(3):
        model.add_unary_factor([0.0] * 4)
    model.add_pairwise_factor(0, 1, BLOCK)
    model.add_pairwise_factor(1, 2, BLOCK)
    model.add_pairwise_factor(0, 2, ANTI_BLOCK)
    return model


def test_find_path_reports_path_and_bottleneck():
    adjacency = [[(1, 5.0)], [(0, 5.0), (2, 3.0)], [(1, 3.0)]]
    assert find_path(adjacency, 0, 2) == ([0, 1, 2], 3.0)


def test_find_path_prefers_fewest_edges():
    adjacency = [
        [(1, 1.0), (3, 2.0)],
        [(0, 1.0), (2, 1.0)],
        [(1, 1.0), (3, 4.0)],
        [(0, 2.0), (2, 4.0)],
    ]
    path, bottleneck = find_path(adjacency, 0, 2)
    assert len(path) == 3
    assert path[0] == 0 and path[-1] == 2
    assert bottleneck == min(w for a, b in zip(path, path[1:]) for n, w in adjacency[a] if n == b)


def test_find_path_unreachable_is_none():
    adjacency = [[(1, 1.0)], [(0, 1.0)], []]
    assert find_path(adjacency, 0, 2) is None


def test_partitions_empty_for_small_factors():
    assert compute_partitions(_factor(construct_potts(3, 3, 0.0, 1.0))) == ([], [])


def test_partitions_of_block_matrix():
    assert compute_partitions(_factor(BLOCK)) == (
        [True, True, False, False],
        [True, True, False, False],
    )


def test_partitions_clear_short_side():
    rows = [
        [0.0, 10.0, 10.0],
        [0.0, 10.0, 10.0],
        [10.0, 0.0, 0.0],
        [10.0, 0.0, 0.0],
    ]
    assert compute_partitions(_factor(rows)) == ([True, True, False, False], [])


@pytest.mark.parametrize("rows", MATRICES)
def test_partition_weight_flips_sign(rows):
    factor = _factor(rows)
    part_i = [True, False, True, False]
    part_j = [True, True, False]
    flipped = [not v for v in part_j]
    assert projection_weight_on_partitions(factor, part_i, part_j) == -projection_weight_on_partitions(
        factor, part_i, flipped
    )


@pytest.mark.parametrize("rows", MATRICES)
@pytest.mark.parametrize("x1", range(4))
def test_singleton_1_matches_indicator_partition(rows, x1):
    factor = _factor(rows)
    part_j = [True, False, True]
    indicator = [x == x1 for x in range(4)]
    assert projection_weight_singleton_1(
        factor, x1, part_j, column_minima(factor)
    ) == projection_weight_on_partitions(factor, indicator, part_j)


@pytest.mark.parametrize("rows", MATRICES)
@pytest.mark.parametrize("x2", range(3))
def test_singleton_2_matches_indicator_partition(rows, x2):
    factor = _factor(rows)
    part_i = [True, True, False, False]
    indicator = [x == x2 for x in range(3)]
    assert projection_weight_singleton_2(
        factor, part_i, x2, row_minima(factor)
    ) == projection_weight_on_partitions(factor, part_i, indicator)


def test_partition_length_mismatch_raises():
    factor = _factor(MATRICES[0])
    with pytest.raises(ValueError):
        projection_weight_on_partitions(factor, [True, False], [True, False, True])


def test_frustrated_triangle_found():
    result = KaryCycleSearch(_triangle()).search()
    assert [c.variables for c in result] == [(0, 1, 2)]
    assert result[0].cost > 0.0


def test_consistent_triangle_has_no_candidates():
    assert KaryCycleSearch(_triangle(frustrated=False)).search() == []


def test_large_eps_filters_all_edges():
    assert KaryCycleSearch(_triangle(), eps=10.0).search() == []


def test_max_triplets_zero_still_returns_first_round():
    result = KaryCycleSearch(_triangle()).search(max_triplets=0)
    assert [c.variables for c in result] == [(0, 1, 2)]


def test_extended_equals_plain_on_binary_model():
    plain = KaryCycleSearch(_triangle()).search()
    extended = KaryCycleSearch(_triangle(), extended=True).search()
    assert [(c.variables, c.cost) for c in extended] == [(c.variables, c.cost) for c in plain]


def test_extended_on_block_model_gives_valid_candidates():
    result = KaryCycleSearch(_block_triangle(), extended=True).search()
    assert len(result) <= 1
    assert all(c.variables == (0, 1, 2) and c.cost > 0.0 for c in result)
    costs = [abs(c.cost) for c in result]
    assert costs == sorted(costs, reverse=True)


def test_empty_model_has_no_candidates():
    assert KaryCycleSearch(PairwiseModel()).search() == []