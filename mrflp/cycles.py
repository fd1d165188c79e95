"""Separation of k-ary cycle inequalities through projection graphs.

Every label of every variable becomes a node of a projection graph. In the
extended variant, every nontrivial partition of a variable's labels found in
its pairwise factors becomes a node as well. Edges carry a signed weight:
negative when the two projections prefer to agree, positive when they
prefer to differ. A cycle with an odd number of positive edges is
frustrated. Frustrated cycles are split into triplets of variables, which
are candidates for tightening the relaxation.
"""

from __future__ import annotations

import math
from collections import deque
from collections.abc import Iterator, Sequence
from itertools import accumulate

from mrflp.triplets import (
    DEFAULT_EPS,
    TripletCandidate,
    UnionFind,
    column_minima,
    principal_minima,
    row_minima,
)

INF = math.inf
_MAX_ROUNDS = 8


def _other(minima: tuple[float, float], value: float) -> float:
    """The smallest entry once ``value`` is excluded."""
    first, second = minima
    return second if first == value else first


def compute_partitions(factor) -> tuple[list[bool], list[bool]]:
    """Split the labels of both sides of ``factor`` into two groups.

    Entries are joined from the most expensive downwards until only two
    groups are left. A side gets an empty list when it has three labels or
    fewer, or when one of its groups holds a single label.
    """
    dim1, dim2 = factor.dim1, factor.dim2
    if dim1 <= 3 and dim2 <= 3:
        return [], []

    entries = sorted(
        ((x1, x2, factor[x1, x2]) for x1 in range(dim1) for x2 in range(dim2)),
        key=lambda entry: entry[2],
        reverse=True,
    )
    uf = UnionFind(dim1 + dim2)
    part_i = [False] * dim1
    part_j = [False] * dim2
    for x1, x2, _ in entries:
        if uf.connected(x1, dim1 + x2):
            continue
        if uf.count() > 2:
            uf.merge(x1, dim1 + x2)
            continue
        root = uf.find(x1)
        part_i = [uf.find(y1) == root for y1 in range(dim1)]
        part_j = [uf.find(dim1 + y2) == root for y2 in range(dim2)]
        break

    if not part_i[0]:
        part_i = [not flag for flag in part_i]
    if not part_j[0]:
        part_j = [not flag for flag in part_j]

    if sum(part_i) in (1, dim1 - 1) or dim1 <= 3:
        part_i = []
    if sum(part_j) in (1, dim2 - 1) or dim2 <= 3:
        part_j = []
    return part_i, part_j


def projection_weight_singleton_1(
    factor,
    x1: int,
    part_j: Sequence[bool],
    col_minima: Sequence[tuple[float, float]],
) -> float:
    """Weight between label ``x1`` of the first variable and a partition of the second.

    ``col_minima`` must be the result of ``column_minima(factor)``.
    """
    if len(part_j) != factor.dim2 or len(col_minima) != factor.dim2:
        raise ValueError("partition and column minima must match the second dimension")
    min_same = INF
    min_diff = INF
    for x2, in_part in enumerate(part_j):
        value = factor[x1, x2]
        if in_part:
            min_same = min(min_same, value)
        else:
            min_diff = min(min_diff, value)
    for x2, (in_part, minima) in enumerate(zip(part_j, col_minima)):
        other = _other(minima, factor[x1, x2])
        if in_part:
            min_diff = min(min_diff, other)
        else:
            min_same = min(min_same, other)
    return min_same - min_diff


def projection_weight_singleton_2(
    factor,
    part_i: Sequence[bool],
    x2: int,
    row_min: Sequence[tuple[float, float]],
) -> float:
    """Weight between a partition of the first variable and label ``x2`` of the second.

    ``row_min`` must be the result of ``row_minima(factor)``.
    """
    if len(part_i) != factor.dim1 or len(row_min) != factor.dim1:
        raise ValueError("partition and row minima must match the first dimension")
    min_same = INF
    min_diff = INF
    for x1, in_part in enumerate(part_i):
        value = factor[x1, x2]
        if in_part:
            min_same = min(min_same, value)
        else:
            min_diff = min(min_diff, value)
    for x1, (in_part, minima) in enumerate(zip(part_i, row_min)):
        other = _other(minima, factor[x1, x2])
        if in_part:
            min_diff = min(min_diff, other)
        else:
            min_same = min(min_same, other)
    return min_same - min_diff


def projection_weight_on_partitions(
    factor, part_i: Sequence[bool], part_j: Sequence[bool]
) -> float:
    """Weight between a partition of each of the two variables."""
    if len(part_i) != factor.dim1 or len(part_j) != factor.dim2:
        raise ValueError("partitions must match the factor's dimensions")
    min_same = INF
    min_diff = INF
    for x1, in_i in enumerate(part_i):
        for x2, in_j in enumerate(part_j):
            value = factor[x1, x2]
            if in_i == in_j:
                min_same = min(min_same, value)
            else:
                min_diff = min(min_diff, value)
    return min_same - min_diff


def find_path(
    adjacency: Sequence[Sequence[tuple[int, float]]], start: int, goal: int
) -> tuple[list[int], float] | None:
    """Shortest path by edge count from ``start`` to ``goal``.

    ``adjacency[v]`` lists ``(neighbour, weight)`` pairs. Returns the nodes
    of the path, both ends included, and the smallest edge weight on it,
    or ``None`` when ``goal`` cannot be reached.
    """
    parent: dict[int, tuple[int, float] | None] = {start: None}
    queue = deque([start])
    while queue:
        node = queue.popleft()
        if node == goal:
            break
        for neighbour, weight in adjacency[node]:
            if neighbour not in parent:
                parent[neighbour] = (node, weight)
                queue.append(neighbour)
    if goal not in parent:
        return None

    path = [goal]
    bottleneck = INF
    step = parent[goal]
    while step is not None:
        previous, weight = step
        bottleneck = min(bottleneck, weight)
        path.append(previous)
        step = parent[previous]
    path.reverse()
    return path, bottleneck


class KaryCycleSearch:
    """Finds triplets along frustrated cycles of the projection graph."""

    def __init__(self, model, eps: float = DEFAULT_EPS, extended: bool = False) -> None:
        self.model = model
        self.eps = eps
        self.extended = extended

    def search(self, max_triplets: int | None = None) -> list[TripletCandidate]:
        """Triplet candidates, strongest first.

        The search stops after the round in which more than ``max_triplets``
        candidates were collected; ``None`` means no limit.
        """
        n_vars = self.model.number_of_variables
        if n_vars == 0:
            return []
        if self.extended:
            partitions = self._partitions()
        else:
            partitions = [[] for _ in range(n_vars)]
        edges, node_var, adjacency = self._projection_graph(partitions)
        return self._find_cycles(edges, node_var, adjacency, max_triplets)

    def _partitions(self) -> list[list[list[bool]]]:
        model = self.model
        found: list[set[tuple[bool, ...]]] = [
            set() for _ in range(model.number_of_variables)
        ]
        for factor_id in range(model.number_of_pairwise_factors):
            i, j = model.pairwise_variables(factor_id)
            part_i, part_j = compute_partitions(model.pairwise_factor(i, j))
            if part_i:
                found[i].add(tuple(part_i))
            if part_j:
                found[j].add(tuple(part_j))
        return [[list(part) for part in sorted(parts)] for parts in found]

    def _projection_graph(self, partitions):
        model = self.model
        counts = [
            model.number_of_labels(v) + len(partitions[v])
            for v in range(model.number_of_variables)
        ]
        offsets = [0, *accumulate(counts)][:-1]
        node_var = [v for v, count in enumerate(counts) for _ in range(count)]

        edges: list[tuple[int, int, float]] = []

        def add(n: int, m: int, value: float) -> None:
            if not math.isnan(value) and abs(value) >= self.eps:
                edges.append((m, n, value))

        for factor_id in range(model.number_of_pairwise_factors):
            i, j = model.pairwise_variables(factor_id)
            labels_i = model.number_of_labels(i)
            labels_j = model.number_of_labels(j)
            if labels_i <= 1 or labels_j <= 1:
                continue
            factor = model.pairwise_factor(i, j)
            row_min = row_minima(factor)
            col_min = column_minima(factor)
            principal = principal_minima(factor, col_min)

            for xi in range(factor.dim1):
                m = offsets[i] + xi
                for xj in range(factor.dim2):
                    n = offsets[j] + xj
                    value = factor[xi, xj]
                    not_xi = _other(row_min[xi], value)
                    not_xj = _other(col_min[xj], value)
                    same = min(value, principal[xi][xj])
                    different = min(not_xi, not_xj)
                    add(n, m, same - different)

            if not self.extended:
                continue
            for x1 in range(factor.dim1):
                m = offsets[i] + x1
                for p2, part in enumerate(partitions[j]):
                    n = offsets[j] + labels_j + p2
                    add(n, m, projection_weight_singleton_1(factor, x1, part, col_min))
            for x2 in range(factor.dim2):
                m = offsets[j] + x2
                for p1, part in enumerate(partitions[i]):
                    n = offsets[i] + labels_i + p1
                    add(n, m, projection_weight_singleton_2(factor, part, x2, row_min))
            for p1, part_i in enumerate(partitions[i]):
                n = offsets[i] + labels_i + p1
                for p2, part_j in enumerate(partitions[j]):
                    m = offsets[j] + labels_j + p2
                    add(n, m, projection_weight_on_partitions(factor, part_i, part_j))

        adjacency: list[list[tuple[int, float]]] = [[] for _ in range(2 * len(node_var))]
        for n, m, cost in edges:
            if cost < 0.0:
                pairs = ((2 * n, 2 * m), (2 * n + 1, 2 * m + 1))
                weight = -cost
            else:
                pairs = ((2 * n, 2 * m + 1), (2 * n + 1, 2 * m))
                weight = cost
            for a, b in pairs:
                adjacency[a].append((b, weight))
                adjacency[b].append((a, weight))
        for neighbours in adjacency:
            neighbours.sort()

        edges.sort(key=lambda edge: edge[2], reverse=True)
        return edges, node_var, adjacency

    def _find_cycles(self, edges, node_var, adjacency, max_triplets):
        uf = UnionFind(len(adjacency))

        def merge(m: int, n: int, sign: float) -> None:
            if sign < 0.0:
                uf.merge(2 * n, 2 * m)
                uf.merge(2 * n + 1, 2 * m + 1)
            else:
                uf.merge(2 * n, 2 * m + 1)
                uf.merge(2 * n + 1, 2 * m)

        largest = None
        position = 0
        for position, (i, j, sign) in enumerate(edges):
            merge(i, j, sign)
            if uf.connected(2 * i, 2 * i + 1) or uf.connected(2 * j, 2 * j + 1):
                largest = abs(sign)
                break
        if largest is None:
            return []

        candidates: list[TripletCandidate] = []
        searched = [False] * len(node_var)
        threshold = 0.5 * largest
        for _ in range(_MAX_ROUNDS):
            if threshold < self.eps:
                break
            while position < len(edges) and abs(edges[position][2]) >= threshold:
                i, j, sign = edges[position]
                merge(i, j, sign)
                position += 1

            for node in range(len(node_var)):
                if searched[node] or not uf.connected(2 * node, 2 * node + 1):
                    continue
                searched[node] = True
                found = find_path(adjacency, 2 * node, 2 * node + 1)
                if found is not None and len(found[0]) >= 3:
                    path, bottleneck = found
                    candidates.extend(_triangulate(path, node_var, bottleneck))

            if max_triplets is not None and len(candidates) > max_triplets:
                break
            threshold *= 0.1

        candidates.sort()
        unique: list[TripletCandidate] = []
        for candidate in candidates:
            if not unique or unique[-1] != candidate:
                unique.append(candidate)
        return unique


def _triangulate(
    path: Sequence[int], node_var: Sequence[int], cost: float
) -> Iterator[TripletCandidate]:
    """Fan triangulation of the closed walk of variables behind ``path``."""
    cycle = [node_var[node // 2] for node in path][:-1]
    anchor = cycle[0]
    for j, k in zip(cycle[1:-1], cycle[2:]):
        if j != anchor and k != anchor:
            yield TripletCandidate(anchor, j, k, cost)