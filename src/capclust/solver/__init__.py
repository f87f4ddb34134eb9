"""
Single-pass capacitated solver used by each restart.
"""

from .initialization import INITIALIZERS, kmpp_init, random_init
from .location_allocation import (
    capacitated_location_allocation,
    relocate_centers,
    solve_allocation,
)

__all__ = [
    "INITIALIZERS",
    "capacitated_location_allocation",
    "kmpp_init",
    "random_init",
    "relocate_centers",
    "solve_allocation",
]
