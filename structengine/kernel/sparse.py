# structengine/kernel/sparse.py
"""Sparse solve path for large frames: scipy.sparse direct solve and conjugate gradient."""

import logging

import numpy as np
import scipy.sparse
import scipy.sparse.linalg

from ..errors import SingularMatrixError

logger = logging.getLogger(__name__)


def to_sparse(A: np.ndarray, drop_tol: float = 0.0) -> scipy.sparse.csr_matrix:
    """
    Convert a dense matrix to CSR, dropping entries with |a| <= drop_tol.

    Frame stiffness matrices are banded: each row couples a node only to the
    nodes it shares an element with, so most entries are exact zeros.
    """
    if drop_tol > 0.0:
        A = np.where(np.abs(A) > drop_tol, A, 0.0)
    return scipy.sparse.csr_matrix(A)


def sparsity(A) -> float:
    """Fraction of zero entries (0 = dense, 1 = empty)."""
    n_total = A.shape[0] * A.shape[1]
    if n_total == 0:
        return 0.0
    nnz = A.nnz if scipy.sparse.issparse(A) else int(np.count_nonzero(A))
    return 1.0 - nnz / n_total


def solve_sparse(
    A,
    b: np.ndarray,
    method: str = 'direct',
    tol: float = 1e-10,
    maxiter: int = None,
) -> np.ndarray:
    """
    Solve A·x = b with scipy.sparse.

    Args:
        A: Dense or sparse square matrix
        b: Right-hand side (n,)
        method: 'direct' (SuperLU via spsolve) or 'cg' (conjugate gradient,
            A must be symmetric positive definite)
        tol: Relative residual tolerance for CG
        maxiter: CG iteration cap (default 10·n)

    Raises:
        SingularMatrixError: If the direct factorization is singular or
            CG fails to reach the tolerance
    """
    A = A if scipy.sparse.issparse(A) else to_sparse(A)
    A = A.tocsc() if method == 'direct' else A.tocsr()
    b = np.asarray(b, dtype=float).reshape(-1)
    n = A.shape[0]

    if method == 'direct':
        try:
            x = scipy.sparse.linalg.spsolve(A, b)
        except RuntimeError as e:
            # SuperLU reports exactly singular factors this way
            raise SingularMatrixError(f"Sparse factorization failed: {e}", kind='mechanism') from e
        if not np.all(np.isfinite(x)):
            raise SingularMatrixError("Sparse factorization produced non-finite values", kind='mechanism')
        return np.asarray(x, dtype=float)

    if method == 'cg':
        if maxiter is None:
            maxiter = 10 * max(n, 1)
        # Jacobi preconditioner: stiffness diagonals span many orders of magnitude
        diag = A.diagonal()
        if np.any(diag <= 0):
            raise SingularMatrixError(
                "Conjugate gradient needs a positive diagonal; a free DOF has no stiffness",
                kind='mechanism',
            )
        M = scipy.sparse.diags(1.0 / diag)
        x, info = scipy.sparse.linalg.cg(A, b, rtol=tol, maxiter=maxiter, M=M)
        if info != 0:
            raise SingularMatrixError(
                f"Conjugate gradient did not converge (info={info}) within {maxiter} iterations",
                kind='conditioning',
            )
        logger.debug("CG solve converged for %d unknowns", n)
        return np.asarray(x, dtype=float)

    raise ValueError(f"Unknown sparse method {method!r}")
