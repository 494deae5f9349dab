# structengine/kernel/solve.py
"""Boundary condition enforcement, linear solve, mechanism detection and reactions."""

import logging
from typing import Optional, Sequence

import numpy as np

from ..errors import MechanismError, SingularMatrixError
from .dof import DOFManager
from .matrix import Matrix

logger = logging.getLogger(__name__)


def partition_dofs(ndof: int, fixed_dofs: Sequence[int]) -> tuple[np.ndarray, np.ndarray]:
    """Split 0..ndof-1 into (fixed, free) index arrays, both sorted."""
    fixed_set = set(int(i) for i in fixed_dofs)
    fixed = np.array(sorted(fixed_set), dtype=int)
    free = np.array([i for i in range(ndof) if i not in fixed_set], dtype=int)
    return fixed, free


def apply_penalty(
    K: np.ndarray,
    F: np.ndarray,
    fixed_dofs: Sequence[int],
    penalty: float = 1e12
) -> tuple[np.ndarray, np.ndarray]:
    """
    Enforce restraints with the penalty method.

    Adds `penalty` to the diagonal of K at every restrained DOF and zeroes the
    matching load entry. Matrix size is unchanged. Returns new arrays.
    """
    Kmod = K.copy()
    Fmod = F.copy()
    for dof in fixed_dofs:
        Kmod[dof, dof] += penalty
        Fmod[dof] = 0.0
    return Kmod, Fmod


def solve_system(
    A: np.ndarray,
    b: np.ndarray,
    solver: str = 'lu',
    pivot_rtol: Optional[float] = None,
    cg_tol: float = 1e-10,
) -> np.ndarray:
    """
    Solve A·x = b with the selected backend.

    'lu' goes through the dense Matrix kernel (partial pivoting, singular pivot
    detection). 'sparse' and 'cg' use scipy.sparse (see kernel.sparse).
    """
    if A.shape[0] == 0:
        return np.zeros(0)
    if solver == 'lu':
        return Matrix.from_array(A).solve(b, pivot_rtol=pivot_rtol).to_vector()
    # Imported lazily: the dense path never needs scipy.sparse
    from .sparse import solve_sparse
    return solve_sparse(A, b, method='cg' if solver == 'cg' else 'direct', tol=cg_tol)


def _relabel(err: SingularMatrixError, dof: Optional[int], dof_manager: Optional[DOFManager]) -> SingularMatrixError:
    label = dof_manager.label(dof) if (dof_manager is not None and dof is not None) else None
    where = f" at {label}" if label else (f" at global DOF {dof}" if dof is not None else "")
    pivot = f" (pivot {err.pivot:.2e})" if err.pivot is not None else ""
    message = (
        f"Unstable structure: stiffness vanished{where}{pivot}. "
        f"Check supports and member connectivity."
    )
    return SingularMatrixError(
        message, kind=err.kind, pivot_index=err.pivot_index, pivot=err.pivot, dof=dof, label=label
    )


def solve_linear(
    K: np.ndarray,
    F: np.ndarray,
    fixed_dofs: Sequence[int],
    method: str = 'elimination',
    penalty: float = 1e12,
    cond_limit: Optional[float] = 1e13,
    solver: str = 'lu',
    pivot_rtol: Optional[float] = None,
    cg_tol: float = 1e-10,
    dof_manager: Optional[DOFManager] = None,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Solve K·d = F with fixed boundary conditions.

    Args:
        K: Global stiffness matrix (ndof x ndof), before boundary conditions
        F: Global load vector (ndof,)
        fixed_dofs: Constrained DOF indices (displacement = 0)
        method: 'elimination' (partition out restrained DOFs, exact) or
            'penalty' (large diagonal spring, matrix size preserved)
        penalty: Penalty stiffness for method='penalty'
        cond_limit: Max condition number of the reduced system (elimination only)
        solver: 'lu', 'sparse' or 'cg'
        pivot_rtol: Relative singular pivot threshold for the LU kernel
        cg_tol: Relative tolerance for the conjugate gradient solver
        dof_manager: Used to label the offending DOF in error messages

    Returns:
        d: Displacement vector (ndof,)
        R: Reaction vector (ndof,), R = K·d - F at restrained DOFs, zero elsewhere
        free: Array of free DOF indices

    Raises:
        SingularMatrixError: If the structure is a mechanism (kind='mechanism')
            or the reduced system is too ill-conditioned (kind='conditioning')
    """
    ndof = K.shape[0]
    fixed, free = partition_dofs(ndof, fixed_dofs)

    if method == 'elimination':
        d = np.zeros(ndof, dtype=float)
        if len(free):
            Kff = K[np.ix_(free, free)]
            Ff = F[free]
            try:
                df = solve_system(Kff, Ff, solver=solver, pivot_rtol=pivot_rtol, cg_tol=cg_tol)
            except SingularMatrixError as e:
                dof = int(free[e.pivot_index]) if e.pivot_index is not None else None
                raise _relabel(e, dof, dof_manager) from e

            if cond_limit is not None:
                cond = np.linalg.cond(Kff)
                if not np.isfinite(cond) or cond > cond_limit:
                    raise SingularMatrixError(
                        f"Ill-conditioned system (cond={cond:.2e}, limit {cond_limit:.0e}). "
                        f"The model is supported but numerically poorly scaled; check for very "
                        f"soft members, tiny sections or near-mechanisms.",
                        kind='conditioning',
                    )
            d[free] = df

    elif method == 'penalty':
        if solver == 'cg':
            raise ValueError("Conjugate gradient is not supported with penalty boundary conditions")
        Kmod, Fmod = apply_penalty(K, F, fixed, penalty)
        try:
            d = solve_system(Kmod, Fmod, solver=solver, pivot_rtol=pivot_rtol, cg_tol=cg_tol)
        except SingularMatrixError as e:
            raise _relabel(e, e.pivot_index, dof_manager) from e

    else:
        raise ValueError(f"Unknown boundary condition method {method!r}")

    if not np.all(np.isfinite(d)):
        raise MechanismError("Solve produced non-finite displacements. Check supports and section properties.")

    # Reactions: R = K·d - F, only meaningful at restrained DOFs
    R = np.zeros(ndof, dtype=float)
    if len(fixed):
        R[fixed] = K[fixed] @ d - F[fixed]

    logger.debug(
        "Solved %d DOFs (%d free, %d fixed) by %s/%s", ndof, len(free), len(fixed), method, solver
    )
    return d, R, free


def reactions_from(K: np.ndarray, d: np.ndarray, F: np.ndarray, fixed_dofs: list[int]) -> np.ndarray:
    """R = K·d - F restricted to restrained DOFs (zero elsewhere)."""
    R = np.zeros_like(F)
    fixed = np.asarray(sorted(set(fixed_dofs)), dtype=int)
    if len(fixed):
        R[fixed] = K[fixed] @ d - F[fixed]
    return R
