# structengine/kernel/modal.py
"""Modal analysis: generalized eigen-solve, participation factors and effective mass."""

import logging
from typing import Sequence, Tuple

import numpy as np
from scipy.linalg import eigh

from .solve import partition_dofs

logger = logging.getLogger(__name__)


def natural_frequencies(
    K: np.ndarray,
    M: np.ndarray,
    fixed_dofs: Sequence[int],
    n_modes: int = 5
) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """
    Compute natural frequencies and mode shapes.

    Solves the generalized eigenvalue problem K·φ = λ·M·φ on the free DOFs
    (restrained DOFs are eliminated from both K and M), λ = ω².

    Args:
        K: Global stiffness matrix
        M: Global mass matrix
        fixed_dofs: Constrained DOF indices
        n_modes: Number of modes to return (capped at the number of free DOFs)

    Returns:
        frequencies_hz: Natural frequencies in Hz, sorted ascending
        eigenvalues: λ = ω² for each mode (negatives from round-off clamped to 0)
        mode_shapes: Mode shape matrix (n_free_dofs x n_modes), mass-normalized
        free: Array of free DOF indices (rows of mode_shapes)

    Raises:
        ValueError: If no free DOFs, or the mass matrix is not positive definite
    """
    ndof = K.shape[0]
    _, free = partition_dofs(ndof, fixed_dofs)

    if len(free) == 0:
        raise ValueError("No free DOFs - cannot compute modes")
    if n_modes < 1:
        raise ValueError(f"n_modes must be >= 1, got {n_modes}")

    Kff = K[np.ix_(free, free)]
    Mff = M[np.ix_(free, free)]

    # Check mass matrix is positive
    M_diag = np.diag(Mff)
    if np.any(M_diag <= 0):
        raise ValueError("Mass matrix has non-positive diagonal entries (free DOF without mass)")

    n_actual = min(n_modes, len(free))

    try:
        eigenvalues, eigenvectors = eigh(Kff, Mff, subset_by_index=[0, n_actual - 1])
    except np.linalg.LinAlgError as e:
        raise ValueError(f"Eigenvalue solve failed: {e}") from e

    if np.any(eigenvalues < 0):
        logger.warning(
            "Clamped %d negative eigenvalue(s) to zero (min %.3e); model may have rigid-body modes",
            int(np.sum(eigenvalues < 0)), float(eigenvalues.min()),
        )
    eigenvalues = np.maximum(eigenvalues, 0.0)

    # ω² = eigenvalue, f = ω / (2π)
    omega = np.sqrt(eigenvalues)
    frequencies_hz = omega / (2.0 * np.pi)

    return frequencies_hz, eigenvalues, eigenvectors, free


def influence_vector(free_dofs: np.ndarray, direction: int, dof_per_node: int = 6) -> np.ndarray:
    """Unit ground acceleration in a global direction (0=X, 1=Y, 2=Z) over the free DOFs."""
    return np.array([1.0 if dof_idx % dof_per_node == direction else 0.0 for dof_idx in free_dofs])


def modal_participation_factors(
    mode_shapes: np.ndarray,
    M: np.ndarray,
    free_dofs: np.ndarray,
    direction: int = 2,
    dof_per_node: int = 6,
) -> np.ndarray:
    """
    Compute modal participation factors for a given direction.

    Γ = φᵀ·M·r / φᵀ·M·φ, with r the influence vector for the direction.

    Args:
        mode_shapes: Mode shape matrix from natural_frequencies()
        M: Full mass matrix
        free_dofs: Array of free DOF indices
        direction: Global direction (0=X, 1=Y, 2=Z)
        dof_per_node: DOFs per node in the numbering

    Returns:
        participation: Participation factor for each mode
    """
    n_modes = mode_shapes.shape[1]
    participation = np.zeros(n_modes)

    Mff = M[np.ix_(free_dofs, free_dofs)]
    r = influence_vector(free_dofs, direction, dof_per_node)

    for mode in range(n_modes):
        phi = mode_shapes[:, mode]
        m_star = phi @ Mff @ phi
        if m_star > 0:
            participation[mode] = (phi @ Mff @ r) / m_star

    return participation


def effective_modal_mass(
    mode_shapes: np.ndarray,
    M: np.ndarray,
    free_dofs: np.ndarray,
    direction: int = 2,
    dof_per_node: int = 6,
) -> np.ndarray:
    """
    Compute effective modal mass for each mode.

    Over a complete set of modes the effective masses sum to rᵀ·M·r, the
    mass that can move in that direction.
    """
    n_modes = mode_shapes.shape[1]
    eff_mass = np.zeros(n_modes)

    Mff = M[np.ix_(free_dofs, free_dofs)]
    r = influence_vector(free_dofs, direction, dof_per_node)

    for mode in range(n_modes):
        phi = mode_shapes[:, mode]
        m_star = phi @ Mff @ phi
        L = phi @ Mff @ r
        if m_star > 0:
            eff_mass[mode] = L**2 / m_star

    return eff_mass


def participating_mass(M: np.ndarray, free_dofs: np.ndarray, direction: int, dof_per_node: int = 6) -> float:
    """rᵀ·M·r over the free DOFs."""
    Mff = M[np.ix_(free_dofs, free_dofs)]
    r = influence_vector(free_dofs, direction, dof_per_node)
    return float(r @ Mff @ r)
