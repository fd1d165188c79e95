# mrflp

Building blocks for linear-programming relaxations of MAP inference in
pairwise Markov random fields. The package is pure Python and has no
runtime dependencies.

## Modules

- `mrflp.simplex`: factors over one or two variables.
  - `UnarySimplexFactor(costs)`: `lower_bound()`, `compute_primal()` (picks
    the cheapest label unless one is already set), `evaluate_primal()`,
    `init_primal()`.
  - `AtMostOneFactor(costs)`: like the unary factor, but choosing nothing
    costs zero. It also has `sensitivity()`, the gap between the two
    smallest costs. `costs` may be an integer, which gives that many zero
    costs.
  - `PairwiseSimplexFactor(dim1, dim2, costs=None)`: pairwise costs plus
    the messages `msg1` and `msg2`. It can be indexed as `f[x1, x2]` or by a
    flat row-major index. It has `lower_bound()`, `sensitivity()`,
    `min_marginal_1()`, `min_marginal_2()`, `compute_primal()`,
    `evaluate_primal()` and `init_primal()`.
  - `two_smallest(values)`: the smallest and second smallest value.
- `mrflp.higher`:
  - `TernarySimplexFactor(dim1, dim2, dim3)`: a factor whose cost is the
    sum of the messages `msg12`, `msg13` and `msg23`. It has `value()`,
    `lower_bound()`, `evaluate_primal()`, `init_primal()` and
    `min_marginal_12/13/23()`.
  - `PottsFactor(dim, diff_cost)` and `PottsFactor.from_matrix(cost)`:
    `value()`, `min_values()`, `lower_bound()`, `min_marginal_1()`,
    `min_marginal_2()`, `min_marginal_cut()`, `evaluate_primal()`,
    `init_primal()`.
  - `is_potts(cost)`: whether a matrix is a square Potts matrix.
- `mrflp.uai`: `parse_string(text)` and `parse_file(path)` read `MARKOV`
  models in the UAI text format into an `MrfInput`. Variables that have no
  unary table get zero costs. A malformed document, or a clique of arity
  other than 1 or 2, raises `UaiParseError`, which is a `ValueError`.
- `mrflp.model`: `PairwiseModel` holds one `UnarySimplexFactor` per variable
  and `PairwiseSimplexFactor`s between pairs `i < j`. Build it with
  `add_unary_factor` and `add_pairwise_factor`, or with
  `PairwiseModel.from_input(mrf_input)`. `lower_bound()` sums the lower
  bounds of all factors. `construct_potts(n1, n2, diag_val, off_diag_val)`
  builds a Potts cost matrix.
- `mrflp.triplets`: `TripletSearch(model, eps)` finds the triangles whose
  joint minimum exceeds the sum of the independent lower bounds of their
  three factors by more than `eps`. It returns `TripletCandidate`s, largest
  gain first. The module also provides `UnionFind`, `minimize_triangle`,
  `row_minima`, `column_minima` and `principal_minima`.
- `mrflp.cycles`: `KaryCycleSearch(model, eps, extended)` builds the
  projection graph of the model and finds frustrated cycles in it. It
  splits them into triplet candidates, strongest first and without
  duplicates. With `extended=True`, label partitions found by
  `compute_partitions` are added to the graph as extra nodes.
  `search(max_triplets)` stops after the round in which more than
  `max_triplets` candidates were collected. `None` means no limit.

## Installation

```
pip install .
```

## Example

```python
from mrflp.uai import parse_string
from mrflp.model import PairwiseModel
from mrflp.triplets import TripletSearch
from mrflp.cycles import KaryCycleSearch

text = """MARKOV
3
2 2 2
3
2 0 1
2 1 2
2 0 2

4
0 1
1 0

4
0 1
1 0

4
1 0
0 1
"""

model = PairwiseModel.from_input(parse_string(text))
print(model.lower_bound())

for t in TripletSearch(model, 1e-9).search():
    print(t.i, t.j, t.k, t.cost)

for t in KaryCycleSearch(model, 1e-9, False).search(100):
    print(t.i, t.j, t.k, t.cost)
```

The factors can also be used on their own:

```python
from mrflp.simplex import UnarySimplexFactor

f = UnarySimplexFactor([0.1, 0.2, 0.05, 1.0])
f.init_primal()
f.compute_primal()
print(f.lower_bound(), f.evaluate_primal())  # 0.05 0.05
```

## What the package does not do

- It has no solver. Nothing here runs message passing, tree decomposition
  or any other optimisation loop over a model. Adding the found triplets
  to a relaxation is left to the caller.
- It provides no command-line program.
- It reads only the UAI text format, and only unary and pairwise cliques.

## Tests

```
pip install .[test]
pytest
```