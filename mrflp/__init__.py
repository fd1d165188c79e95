"""Simplex and Potts factors, UAI input, pairwise models and triplet and cycle-inequality separation."""

__version__ = "0.1.0"

__all__ = ["simplex", "higher", "uai", "model", "triplets", "cycles"]