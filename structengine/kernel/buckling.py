# structengine/kernel/buckling.py
"""Buckling analysis: eigenvalue problem on elastic and geometric stiffness."""

import logging
from typing import Sequence, Tuple

import numpy as np
import scipy.linalg

from .solve import partition_dofs

logger = logging.getLogger(__name__)


def critical_buckling_factor(
    K: np.ndarray,
    Kg: np.ndarray,
    fixed_dofs: Sequence[int],
) -> Tuple[float, np.ndarray, np.ndarray]:
    """
    Solve eigenvalue buckling problem: (K + λ·Kg)·φ = 0

    Kg is built from the axial forces of the reference load (compression
    negative), so the critical load is λ_cr × reference load.
    If λ_cr > 1.0, the structure is stable under current loads.
    If λ_cr < 1.0, the structure will buckle before reaching full load.

    K is positive definite on the free DOFs, so the problem is solved in the
    symmetric form  -Kg·φ = μ·K·φ  with μ = 1/λ; the largest positive μ gives
    the smallest positive λ.

    Args:
        K: Global elastic stiffness matrix
        Kg: Global geometric stiffness matrix
        fixed_dofs: List of constrained DOF indices

    Returns:
        (λ_cr, mode, free): critical factor (inf if no buckling mode),
        mode shape over the free DOFs (empty if none), free DOF indices
    """
    ndof = K.shape[0]
    _, free = partition_dofs(ndof, fixed_dofs)

    if len(free) == 0:
        return float('inf'), np.zeros(0), free

    Kff = K[np.ix_(free, free)]
    Kgff = Kg[np.ix_(free, free)]

    if np.allclose(Kgff, 0):
        return float('inf'), np.zeros(0), free  # No geometric effects, no buckling

    try:
        mu, vectors = scipy.linalg.eigh(-Kgff, Kff)
    except np.linalg.LinAlgError as e:
        raise ValueError(f"Buckling eigen-solve failed (elastic stiffness not positive definite): {e}") from e

    # eigh sorts ascending; largest μ is last
    mu_max = mu[-1]
    if mu_max <= 1e-12:
        return float('inf'), np.zeros(0), free

    mode = vectors[:, -1]
    peak = mode[np.argmax(np.abs(mode))]
    if peak != 0:
        mode = mode / peak

    return float(1.0 / mu_max), mode, free


def member_slenderness(L: float, A: float, I: float) -> float:
    """
    Compute member slenderness ratio λ = L/r where r = sqrt(I/A).
    """
    if A <= 0 or I <= 0:
        return float('inf')
    r = np.sqrt(I / A)  # Radius of gyration
    return L / r


def euler_buckling_load(E: float, I: float, L: float, k: float = 1.0) -> float:
    """
    Euler critical buckling load for a column.

    P_cr = π²EI / (kL)²

    Args:
        E: Young's modulus
        I: Moment of inertia
        L: Member length
        k: Effective length factor (1.0 pinned-pinned, 2.0 fixed-free)
    """
    Le = k * L  # Effective length
    return (np.pi ** 2 * E * I) / (Le ** 2)


def euler_buckling_stress(E: float, slenderness: float) -> float:
    """
    Euler critical buckling stress.

    σ_cr = π²E / λ²
    """
    if slenderness <= 0:
        return float('inf')
    return (np.pi ** 2 * E) / (slenderness ** 2)
