"""Ternary simplex factors and Potts pairwise factors.

A primal component of ``None`` (or one that is out of range) means "not yet
chosen", as in :mod:`mrflp.simplex`.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence

from mrflp.simplex import two_smallest

INF = math.inf


def _valid(index: int | None, size: int) -> bool:
    return index is not None and 0 <= index < size


def _zeros(rows: int, cols: int) -> list[list[float]]:
    return [[0.0] * cols for _ in range(rows)]


def is_potts(cost: Sequence[Sequence[float]]) -> bool:
    """Whether ``cost`` is a square Potts matrix of size at least two.

    The diagonal must be zero and every off-diagonal entry must equal
    ``cost[0][1]``.
    """
    dim1 = len(cost)
    if any(len(row) != dim1 for row in cost):
        return False
    if dim1 <= 1:
        return False
    off = cost[0][1]
    return all(
        (value == 0.0) if x1 == x2 else (value == off)
        for x1, row in enumerate(cost)
        for x2, value in enumerate(row)
    )


class TernarySimplexFactor:
    """A triplet factor that only holds messages to its three pairwise factors.

    The cost of a labelling ``(x1, x2, x3)`` is
    ``msg12[x1][x2] + msg13[x1][x3] + msg23[x2][x3]``.
    """

    def __init__(self, dim1: int, dim2: int, dim3: int) -> None:
        if dim1 <= 0 or dim2 <= 0 or dim3 <= 0:
            raise ValueError("dimensions must be positive")
        self.msg12 = _zeros(dim1, dim2)
        self.msg13 = _zeros(dim1, dim3)
        self.msg23 = _zeros(dim2, dim3)
        self.primal: list[int | None] = [None, None, None]

    @property
    def dim1(self) -> int:
        return len(self.msg12)

    @property
    def dim2(self) -> int:
        return len(self.msg23)

    @property
    def dim3(self) -> int:
        return len(self.msg13[0])

    @property
    def shape(self) -> tuple[int, int, int]:
        return self.dim1, self.dim2, self.dim3

    @property
    def size(self) -> int:
        return self.dim1 * self.dim2 * self.dim3

    def __len__(self) -> int:
        return self.size

    def value(self, x1: int, x2: int, x3: int) -> float:
        """Cost of the labelling ``(x1, x2, x3)``."""
        return self.msg12[x1][x2] + self.msg13[x1][x3] + self.msg23[x2][x3]

    def _labellings(self) -> Iterable[tuple[int, int, int]]:
        for x1 in range(self.dim1):
            for x2 in range(self.dim2):
                for x3 in range(self.dim3):
                    yield x1, x2, x3

    def lower_bound(self) -> float:
        """Smallest cost over all labellings."""
        return min(self.value(*labels) for labels in self._labellings())

    def evaluate_primal(self) -> float:
        """Cost of the current labelling, or infinity if incomplete."""
        x1, x2, x3 = self.primal
        if not (
            _valid(x1, self.dim1)
            and _valid(x2, self.dim2)
            and _valid(x3, self.dim3)
        ):
            return INF
        return self.value(x1, x2, x3)

    def init_primal(self) -> None:
        """Forget the current labelling."""
        self.primal = [None, None, None]

    def min_marginal_12(self) -> list[list[float]]:
        """Minimum over ``x3`` for every ``(x1, x2)``."""
        return [
            [
                min(self.value(x1, x2, x3) for x3 in range(self.dim3))
                for x2 in range(self.dim2)
            ]
            for x1 in range(self.dim1)
        ]

    def min_marginal_13(self) -> list[list[float]]:
        """Minimum over ``x2`` for every ``(x1, x3)``."""
        return [
            [
                min(self.value(x1, x2, x3) for x2 in range(self.dim2))
                for x3 in range(self.dim3)
            ]
            for x1 in range(self.dim1)
        ]

    def min_marginal_23(self) -> list[list[float]]:
        """Minimum over ``x1`` for every ``(x2, x3)``."""
        return [
            [
                min(self.value(x1, x2, x3) for x1 in range(self.dim1))
                for x3 in range(self.dim3)
            ]
            for x2 in range(self.dim2)
        ]


class PottsFactor:
    """Pairwise Potts factor: zero for equal labels, ``diff_cost`` otherwise.

    The factor also holds the messages ``msg1`` and ``msg2`` from its two
    unary factors, added to the Potts cost.
    """

    def __init__(self, dim: int, diff_cost: float = 0.0) -> None:
        if dim <= 0:
            raise ValueError("dimension must be positive")
        self.msg1 = [0.0] * dim
        self.msg2 = [0.0] * dim
        self.diff_cost = float(diff_cost)
        self.primal: list[int | None] = [None, None]

    @classmethod
    def from_matrix(cls, cost: Sequence[Sequence[float]]) -> PottsFactor:
        """Build a factor from a Potts cost matrix."""
        if not is_potts(cost):
            raise ValueError("cost matrix is not a Potts matrix")
        return cls(len(cost), cost[0][1])

    @property
    def dim(self) -> int:
        return len(self.msg1)

    @property
    def dim1(self) -> int:
        return self.dim

    @property
    def dim2(self) -> int:
        return self.dim

    def value(self, x1: int, x2: int) -> float:
        """Cost of the labelling ``(x1, x2)``."""
        potts = self.diff_cost if x1 != x2 else 0.0
        return self.msg1[x1] + self.msg2[x2] + potts

    @staticmethod
    def _other(value: float, smallest: tuple[float, float]) -> float:
        return smallest[1] if value == smallest[0] else smallest[0]

    def min_values(self) -> tuple[float, float]:
        """Smallest cost with equal labels and with different labels."""
        smallest2 = two_smallest(self.msg2)
        min_same = INF
        min_diff = INF
        for m1, m2 in zip(self.msg1, self.msg2):
            min_same = min(min_same, m1 + m2)
            min_diff = min(
                min_diff, m1 + self.diff_cost + self._other(m2, smallest2)
            )
        return min_same, min_diff

    def lower_bound(self) -> float:
        """Smallest cost over all labellings."""
        return min(self.min_values())

    def evaluate_primal(self) -> float:
        """Cost of the current labelling, or infinity if incomplete."""
        x1, x2 = self.primal
        if not (_valid(x1, self.dim) and _valid(x2, self.dim)):
            return INF
        return self.value(x1, x2)

    def init_primal(self) -> None:
        """Forget the current labelling."""
        self.primal = [None, None]

    def min_marginal_1(self) -> list[float]:
        """Minimum over the second label for every first label."""
        smallest2 = two_smallest(self.msg2)
        return [
            m1 + min(m2, self.diff_cost + self._other(m2, smallest2))
            for m1, m2 in zip(self.msg1, self.msg2)
        ]

    def min_marginal_2(self) -> list[float]:
        """Minimum over the first label for every second label."""
        smallest1 = two_smallest(self.msg1)
        return [
            m2 + min(m1, self.diff_cost + self._other(m1, smallest1))
            for m1, m2 in zip(self.msg1, self.msg2)
        ]

    def min_marginal_cut(self) -> float:
        """Difference between the best different-label and same-label cost."""
        same, diff = self.min_values()
        return diff - same