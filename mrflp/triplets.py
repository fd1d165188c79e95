"""Search for triplets of variables whose local polytope relaxation is loose.

A triplet ``(i, j, k)`` of pairwise-connected variables is a candidate for
tightening when the joint minimum over its three pairwise factors exceeds
the sum of their independent lower bounds.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Protocol

INF = math.inf
DEFAULT_EPS = 1e-8


class _PairwiseFactor(Protocol):
    dim1: int
    dim2: int

    def __getitem__(self, key: tuple[int, int]) -> float: ...

    def lower_bound(self) -> float: ...


class UnionFind:
    """Disjoint sets over the integers ``0 .. n-1``."""

    def __init__(self, n: int) -> None:
        if n < 0:
            raise ValueError("size must not be negative")
        self._parent = list(range(n))
        self._rank = [0] * n
        self._count = n

    def __len__(self) -> int:
        return len(self._parent)

    def find(self, x: int) -> int:
        """Representative of the set holding ``x``."""
        root = x
        while self._parent[root] != root:
            root = self._parent[root]
        while self._parent[x] != root:
            self._parent[x], x = root, self._parent[x]
        return root

    def merge(self, a: int, b: int) -> None:
        """Join the sets holding ``a`` and ``b``."""
        ra = self.find(a)
        rb = self.find(b)
        if ra == rb:
            return
        if self._rank[ra] < self._rank[rb]:
            ra, rb = rb, ra
        self._parent[rb] = ra
        if self._rank[ra] == self._rank[rb]:
            self._rank[ra] += 1
        self._count -= 1

    def connected(self, a: int, b: int) -> bool:
        """Whether ``a`` and ``b`` are in the same set."""
        return self.find(a) == self.find(b)

    def count(self) -> int:
        """Number of disjoint sets."""
        return self._count


class TripletCandidate:
    """Three distinct variables, stored in increasing order, with a score.

    Candidates compare equal when they name the same variables; one is
    "less" than another when its score is larger in absolute value, so
    that sorting puts the most promising candidates first.
    """

    __slots__ = ("i", "j", "k", "cost")

    def __init__(self, i1: int, i2: int, i3: int, cost: float) -> None:
        i, j, k = sorted((i1, i2, i3))
        if not i < j < k:
            raise ValueError(f"triplet needs three distinct variables, got {(i1, i2, i3)}")
        self.i = i
        self.j = j
        self.k = k
        self.cost = float(cost)

    @property
    def variables(self) -> tuple[int, int, int]:
        return self.i, self.j, self.k

    def __lt__(self, other: TripletCandidate) -> bool:
        if not isinstance(other, TripletCandidate):
            return NotImplemented
        return abs(self.cost) > abs(other.cost)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TripletCandidate):
            return NotImplemented
        return self.variables == other.variables

    def __hash__(self) -> int:
        return hash(self.variables)

    def __repr__(self) -> str:
        return f"TripletCandidate({self.i}, {self.j}, {self.k}, cost={self.cost!r})"


def minimize_triangle(
    factor_ij: _PairwiseFactor,
    factor_ik: _PairwiseFactor,
    factor_jk: _PairwiseFactor,
) -> float:
    """Joint minimum of three pairwise factors forming a triangle."""
    return min(
        (
            factor_ij[x1, x2] + factor_ik[x1, x3] + factor_jk[x2, x3]
            for x1 in range(factor_ij.dim1)
            for x2 in range(factor_ij.dim2)
            for x3 in range(factor_ik.dim2)
        ),
        default=INF,
    )


def _two_smallest(values) -> tuple[float, float]:
    smallest = INF
    second = INF
    for value in values:
        low, high = (value, smallest) if value < smallest else (smallest, value)
        smallest = low
        second = min(high, second)
    return smallest, second


def row_minima(factor: _PairwiseFactor) -> list[tuple[float, float]]:
    """Smallest and second smallest entry of every row."""
    return [
        _two_smallest(factor[x1, x2] for x2 in range(factor.dim2))
        for x1 in range(factor.dim1)
    ]


def column_minima(factor: _PairwiseFactor) -> list[tuple[float, float]]:
    """Smallest and second smallest entry of every column."""
    return [
        _two_smallest(factor[x1, x2] for x1 in range(factor.dim1))
        for x2 in range(factor.dim2)
    ]


def principal_minima(
    factor: _PairwiseFactor, col_minima: Sequence[tuple[float, float]]
) -> list[list[float]]:
    """For every entry, the minimum over entries in another row and column.

    ``col_minima`` must be the result of :func:`column_minima` on ``factor``.
    """
    result = []
    for x1 in range(factor.dim1):
        others = [
            second if first == factor[x1, x2] else first
            for x2, (first, second) in enumerate(col_minima)
        ]
        smallest = INF
        smallest_ind = 0
        for x2, value in enumerate(others):
            if value < smallest:
                smallest = value
                smallest_ind = x2
        second_smallest = min(
            (value for x2, value in enumerate(others) if x2 != smallest_ind),
            default=INF,
        )
        row = [smallest] * factor.dim2
        row[smallest_ind] = second_smallest
        result.append(row)
    return result


class TripletSearch:
    """Finds triangles in a pairwise model whose relaxation can be tightened."""

    def __init__(self, model, eps: float = DEFAULT_EPS) -> None:
        self.model = model
        self.eps = eps

    def search(self) -> list[TripletCandidate]:
        """Candidates whose gain exceeds ``eps``, largest gain first."""
        model = self.model
        adjacency: list[set[int]] = [set() for _ in range(model.number_of_variables)]
        for factor_id in range(model.number_of_pairwise_factors):
            i, j = model.pairwise_variables(factor_id)
            adjacency[i].add(j)
            adjacency[j].add(i)

        candidates = []
        for factor_id in range(model.number_of_pairwise_factors):
            i, j = model.pairwise_variables(factor_id)
            factor_ij = model.pairwise_factor(i, j)
            lb_ij = factor_ij.lower_bound()
            for k in sorted(adjacency[i] & adjacency[j]):
                if k <= j:
                    continue
                factor_ik = model.pairwise_factor(i, k)
                factor_jk = model.pairwise_factor(j, k)
                bound_indep = lb_ij + factor_ik.lower_bound() + factor_jk.lower_bound()
                bound_cycle = minimize_triangle(factor_ij, factor_ik, factor_jk)
                gain = bound_cycle - bound_indep
                if gain > self.eps:
                    candidates.append(TripletCandidate(i, j, k, gain))

        return sorted(candidates)