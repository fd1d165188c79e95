"""A pairwise graphical model built from simplex factors."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from mrflp.simplex import PairwiseSimplexFactor, UnarySimplexFactor
from mrflp.uai import MrfInput


def construct_potts(
    n1: int, n2: int, diag_val: float, off_diag_val: float
) -> list[list[float]]:
    """An ``n1 x n2`` Potts matrix.

    Rows and columns beyond the square part are filled with ``100.0``.
    """
    square = min(n1, n2)
    return [
        [
            100.0
            if i >= square or j >= square
            else (float(diag_val) if i == j else float(off_diag_val))
            for j in range(n2)
        ]
        for i in range(n1)
    ]


class PairwiseModel:
    """Unary factors, one per variable, linked by pairwise factors."""

    def __init__(self) -> None:
        self.unaries: list[UnarySimplexFactor] = []
        self.pairwise: list[PairwiseSimplexFactor] = []
        self._pairwise_vars: list[tuple[int, int]] = []
        self._pairwise_ids: dict[tuple[int, int], int] = {}

    @classmethod
    def from_input(cls, mrf_input: MrfInput) -> PairwiseModel:
        """Build a model from parsed UAI data."""
        model = cls()
        for costs in mrf_input.unaries:
            model.add_unary_factor(costs)
        for (i, j), costs in zip(mrf_input.pairwise_indices, mrf_input.pairwise_values):
            model.add_pairwise_factor(i, j, costs)
        return model

    @property
    def number_of_variables(self) -> int:
        return len(self.unaries)

    @property
    def number_of_pairwise_factors(self) -> int:
        return len(self.pairwise)

    def add_unary_factor(self, costs: Iterable[float]) -> UnarySimplexFactor:
        """Add the next variable with the given unary costs."""
        factor = UnarySimplexFactor(costs)
        if len(factor) == 0:
            raise ValueError("a variable needs at least one label")
        self.unaries.append(factor)
        return factor

    def add_pairwise_factor(
        self, i: int, j: int, costs: Sequence[Sequence[float]]
    ) -> PairwiseSimplexFactor:
        """Link variables ``i < j`` with a pairwise cost matrix."""
        if not i < j:
            raise ValueError(f"pairwise factor needs i < j, got ({i}, {j})")
        if j >= self.number_of_variables or i < 0:
            raise ValueError(f"variables ({i}, {j}) have no unary factors")
        if (i, j) in self._pairwise_ids:
            raise ValueError(f"pairwise factor ({i}, {j}) already exists")
        factor = PairwiseSimplexFactor(
            self.number_of_labels(i), self.number_of_labels(j), costs
        )
        self._pairwise_ids[(i, j)] = len(self.pairwise)
        self.pairwise.append(factor)
        self._pairwise_vars.append((i, j))
        return factor

    def number_of_labels(self, i: int) -> int:
        """Number of labels of variable ``i``."""
        return len(self.unaries[i])

    def pairwise_variables(self, factor_id: int) -> tuple[int, int]:
        """The two variables joined by pairwise factor ``factor_id``."""
        return self._pairwise_vars[factor_id]

    def pairwise_factor(self, i: int, j: int) -> PairwiseSimplexFactor:
        """The pairwise factor joining ``i`` and ``j``."""
        try:
            return self.pairwise[self._pairwise_ids[(i, j)]]
        except KeyError:
            raise KeyError(f"no pairwise factor between {i} and {j}") from None

    def lower_bound(self) -> float:
        """Sum of the lower bounds of all factors."""
        return sum(f.lower_bound() for f in self.unaries) + sum(
            f.lower_bound() for f in self.pairwise
        )