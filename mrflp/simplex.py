"""Simplex factors over one or two discrete variables.

Each factor holds a reparametrised cost and a primal labelling.  A primal
component of ``None`` (or one that is out of range) means "not yet chosen".
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence

INF = math.inf


def two_smallest(values: Iterable[float]) -> tuple[float, float]:
    """Return the smallest and second smallest of ``values``.

    Missing entries are reported as infinity; equal values may occupy both
    places.
    """
    smallest = INF
    second = INF
    for value in values:
        low, high = (value, smallest) if value < smallest else (smallest, value)
        smallest = low
        second = min(high, second)
    return smallest, second


def _argmin(values: Sequence[float]) -> int:
    return min(range(len(values)), key=values.__getitem__)


def _valid(index: int | None, size: int) -> bool:
    return index is not None and 0 <= index < size


class UnarySimplexFactor:
    """Costs on the simplex {x >= 0 : x_1 + ... + x_n = 1}."""

    def __init__(self, costs: Iterable[float]) -> None:
        self.costs = [float(c) for c in costs]
        self.primal: int | None = None

    def __len__(self) -> int:
        return len(self.costs)

    def __getitem__(self, index: int) -> float:
        return self.costs[index]

    def __setitem__(self, index: int, value: float) -> None:
        self.costs[index] = float(value)

    def lower_bound(self) -> float:
        """Smallest cost over all labels."""
        if not self.costs:
            raise ValueError("factor has no labels")
        return min(self.costs)

    def evaluate_primal(self) -> float:
        """Cost of the current label, or infinity if none is set."""
        if not _valid(self.primal, len(self.costs)):
            return INF
        return self.costs[self.primal]

    def compute_primal(self) -> None:
        """Choose the cheapest label unless one is already set."""
        if not _valid(self.primal, len(self.costs)):
            if not self.costs:
                raise ValueError("factor has no labels")
            self.primal = _argmin(self.costs)

    def init_primal(self) -> None:
        """Forget the current label."""
        self.primal = None


class AtMostOneFactor:
    """Costs on {x >= 0 : x_1 + ... + x_n <= 1}.

    A primal equal to ``len(self)`` means no entry is chosen, at cost zero.
    """

    def __init__(self, costs: Iterable[float] | int) -> None:
        if isinstance(costs, int):
            if costs < 0:
                raise ValueError("size must not be negative")
            self.costs = [0.0] * costs
        else:
            self.costs = [float(c) for c in costs]
        self.primal: int | None = None

    def __len__(self) -> int:
        return len(self.costs)

    def __getitem__(self, index: int) -> float:
        return self.costs[index]

    def __setitem__(self, index: int, value: float) -> None:
        self.costs[index] = float(value)

    def lower_bound(self) -> float:
        """Smallest cost, where choosing nothing costs zero."""
        if not self.costs:
            raise ValueError("factor has no entries")
        return min(min(self.costs), 0.0)

    def evaluate_primal(self) -> float:
        """Cost of the current choice, or infinity if none is set."""
        size = len(self.costs)
        if self.primal is None or self.primal < 0 or self.primal > size:
            return INF
        if self.primal == size:
            return 0.0
        return self.costs[self.primal]

    def compute_primal(self) -> None:
        """Pick the cheapest entry if it is negative, otherwise pick nothing."""
        size = len(self.costs)
        if self.primal is None or self.primal < 0 or self.primal > size:
            if not self.costs:
                raise ValueError("factor has no entries")
            best = _argmin(self.costs)
            self.primal = best if self.costs[best] < 0.0 else size

    def init_primal(self) -> None:
        """Forget the current choice."""
        self.primal = None

    def sensitivity(self) -> float:
        """Gap between the two smallest costs."""
        smallest, second = two_smallest(self.costs)
        return second - smallest


class PairwiseSimplexFactor:
    """Pairwise costs plus messages from the two adjacent unary factors."""

    def __init__(
        self,
        dim1: int,
        dim2: int,
        costs: Sequence[Sequence[float]] | None = None,
    ) -> None:
        if dim1 <= 0 or dim2 <= 0:
            raise ValueError("dimensions must be positive")
        if costs is None:
            self.pairwise = [[0.0] * dim2 for _ in range(dim1)]
        else:
            rows = [[float(v) for v in row] for row in costs]
            if len(rows) != dim1 or any(len(row) != dim2 for row in rows):
                raise ValueError(f"costs must be a {dim1}x{dim2} matrix")
            self.pairwise = rows
        self.msg1 = [0.0] * dim1
        self.msg2 = [0.0] * dim2
        self.primal: list[int | None] = [None, None]

    @property
    def dim1(self) -> int:
        return len(self.msg1)

    @property
    def dim2(self) -> int:
        return len(self.msg2)

    @property
    def size(self) -> int:
        return self.dim1 * self.dim2

    def __len__(self) -> int:
        return self.size

    def _value(self, x1: int, x2: int) -> float:
        return self.pairwise[x1][x2] + self.msg1[x1] + self.msg2[x2]

    def __getitem__(self, key: int | tuple[int, int]) -> float:
        """Reparametrised cost at ``(x1, x2)`` or at a row-major flat index."""
        if isinstance(key, tuple):
            x1, x2 = key
        else:
            if not 0 <= key < self.size:
                raise IndexError(f"index {key} out of range")
            x1, x2 = divmod(key, self.dim2)
        if not (0 <= x1 < self.dim1 and 0 <= x2 < self.dim2):
            raise IndexError(f"index ({x1}, {x2}) out of range")
        return self._value(x1, x2)

    def _values(self) -> Iterable[float]:
        for x1 in range(self.dim1):
            for x2 in range(self.dim2):
                yield self._value(x1, x2)

    def lower_bound(self) -> float:
        """Smallest reparametrised cost."""
        return min(self._values())

    def sensitivity(self) -> float:
        """Gap between the two smallest reparametrised costs."""
        smallest, second = two_smallest(self._values())
        return second - smallest

    def min_marginal_1(self) -> list[float]:
        """Minimum over the second label for every first label."""
        return [
            m + min(p + r for p, r in zip(row, self.msg2))
            for row, m in zip(self.pairwise, self.msg1)
        ]

    def min_marginal_2(self) -> list[float]:
        """Minimum over the first label for every second label."""
        return [
            r + min(row[x2] + m for row, m in zip(self.pairwise, self.msg1))
            for x2, r in enumerate(self.msg2)
        ]

    def evaluate_primal(self) -> float:
        """Cost of the current labelling, or infinity if incomplete."""
        x1, x2 = self.primal
        if not (_valid(x1, self.dim1) and _valid(x2, self.dim2)):
            return INF
        return self._value(x1, x2)

    def compute_primal(self) -> None:
        """Complete the labelling with the cheapest choice for unset labels.

        Among equal costs the last one in row-major order wins.
        """
        x1, x2 = self.primal
        set1 = _valid(x1, self.dim1)
        set2 = _valid(x2, self.dim2)
        if set1 and set2:
            return
        if set1:
            candidates = ((x1, j) for j in range(self.dim2))
        elif set2:
            candidates = ((i, x2) for i in range(self.dim1))
        else:
            candidates = (
                (i, j) for i in range(self.dim1) for j in range(self.dim2)
            )
        best_val = INF
        best = (x1, x2)
        for i, j in candidates:
            value = self._value(i, j)
            if best_val >= value:
                best_val = value
                best = (i, j)
        self.primal = list(best)

    def init_primal(self) -> None:
        """Forget the current labelling."""
        self.primal = [None, None]