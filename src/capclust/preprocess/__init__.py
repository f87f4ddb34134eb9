"""Input validation, distance matrices and normalisation."""

from .distance import build_distance_matrix, cross_distances, prepare_distance_matrix
from .normalization import NormalizedProblem, normalize
from .validation import validate_coords, validate_inputs

__all__ = [
    "NormalizedProblem",
    "build_distance_matrix",
    "cross_distances",
    "normalize",
    "prepare_distance_matrix",
    "validate_coords",
    "validate_inputs",
]
