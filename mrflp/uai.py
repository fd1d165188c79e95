"""Reader for Markov random fields in the UAI text format.

The format is::

    MARKOV
    <number of variables>
    <cardinality of each variable>
    <number of cliques>
    <one line per clique: arity followed by its variables>
    <one function table per clique: entry count followed by the entries>

Only unary and pairwise cliques are supported.  Variables without a unary
table get zero unary costs.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from dataclasses import dataclass, field

HEADER = "MARKOV"


class UaiParseError(ValueError):
    """Raised when a UAI document is malformed or unsupported."""


@dataclass
class MrfInput:
    """Unary and pairwise costs of a pairwise Markov random field.

    ``pairwise_values[k][x1][x2]`` is the cost of labelling the variables
    ``pairwise_indices[k]`` with ``(x1, x2)``.
    """

    cardinality: list[int] = field(default_factory=list)
    unaries: list[list[float]] = field(default_factory=list)
    pairwise_indices: list[tuple[int, int]] = field(default_factory=list)
    pairwise_values: list[list[list[float]]] = field(default_factory=list)

    @property
    def number_of_variables(self) -> int:
        return len(self.cardinality)

    @property
    def number_of_pairwise(self) -> int:
        return len(self.pairwise_indices)

    def num_labels(self, var: int) -> int:
        """Number of labels of variable ``var``."""
        return self.cardinality[var]


def _integer(token: str, what: str) -> int:
    if not token.isdigit():
        raise UaiParseError(f"expected {what}, got {token!r}")
    return int(token)


def _real(token: str) -> float:
    try:
        return float(token)
    except ValueError:
        raise UaiParseError(f"expected a real number, got {token!r}") from None


class _Lines:
    def __init__(self, text: str) -> None:
        self._lines = text.splitlines()
        self.pos = 0

    def take(self, what: str) -> list[str]:
        if self.pos >= len(self._lines):
            raise UaiParseError(f"unexpected end of input, expected {what}")
        tokens = self._lines[self.pos].split()
        self.pos += 1
        return tokens

    def single_integer(self, what: str) -> int:
        tokens = self.take(what)
        if len(tokens) != 1:
            raise UaiParseError(f"expected a single {what} on line {self.pos}")
        return _integer(tokens[0], what)

    def rest(self) -> Iterator[str]:
        for line in self._lines[self.pos:]:
            yield from line.split()


def _next(tokens: Iterator[str], what: str) -> str:
    try:
        return next(tokens)
    except StopIteration:
        raise UaiParseError(f"unexpected end of input, expected {what}") from None


def _parse_scope(tokens: list[str], line_no: int, n_vars: int) -> tuple[int, ...]:
    if not tokens:
        raise UaiParseError(f"empty clique scope on line {line_no}")
    arity = _integer(tokens[0], "clique arity")
    if arity not in (1, 2):
        raise UaiParseError(
            f"clique of arity {arity} on line {line_no}: "
            "only unary and pairwise cliques are supported"
        )
    variables = tuple(_integer(t, "variable index") for t in tokens[1:])
    if len(variables) != arity:
        raise UaiParseError(
            f"clique on line {line_no} declares {arity} variables "
            f"but lists {len(variables)}"
        )
    for var in variables:
        if var >= n_vars:
            raise UaiParseError(
                f"variable {var} on line {line_no} out of range "
                f"(there are {n_vars} variables)"
            )
    return variables


def parse_string(text: str) -> MrfInput:
    """Parse a UAI document held in ``text``."""
    lines = _Lines(text)

    header = lines.take("header")
    if header != [HEADER]:
        raise UaiParseError(f"expected header {HEADER!r}, got {' '.join(header)!r}")

    n_vars = lines.single_integer("number of variables")
    cardinality = [_integer(t, "cardinality") for t in lines.take("cardinalities")]
    if not cardinality:
        raise UaiParseError("no cardinalities given")
    if len(cardinality) != n_vars:
        raise UaiParseError(
            f"{n_vars} variables declared but {len(cardinality)} cardinalities given"
        )

    n_cliques = lines.single_integer("number of cliques")
    scopes = [
        _parse_scope(lines.take("clique scope"), lines.pos, n_vars)
        for _ in range(n_cliques)
    ]

    result = MrfInput(
        cardinality=cardinality,
        unaries=[[0.0] * card for card in cardinality],
        pairwise_indices=[scope for scope in scopes if len(scope) == 2],
    )

    tokens = lines.rest()
    for number, scope in enumerate(scopes):
        size = _integer(_next(tokens, "function table size"), "function table size")
        expected = 1
        for var in scope:
            expected *= cardinality[var]
        if size != expected:
            raise UaiParseError(
                f"function table {number} has {size} entries, expected {expected}"
            )
        table = [_real(_next(tokens, "function table entry")) for _ in range(size)]
        if len(scope) == 1:
            result.unaries[scope[0]] = table
        else:
            width = cardinality[scope[1]]
            result.pairwise_values.append(
                [table[row:row + width] for row in range(0, size, width)]
                if width
                else [[] for _ in range(cardinality[scope[0]])]
            )

    leftover = next(tokens, None)
    if leftover is not None:
        raise UaiParseError(f"unexpected trailing content {leftover!r}")
    return result


def parse_file(path: str | os.PathLike[str]) -> MrfInput:
    """Parse the UAI file at ``path``."""
    with open(path, encoding="utf-8") as handle:
        return parse_string(handle.read())