# structengine/kernel/matrix.py
"""
DENSE MATRIX KERNEL
===================

PURPOSE:
--------
A small rows×cols matrix type used by the analysis drivers to solve K·u = F.
It wraps a numpy array and adds the pieces the solver needs to own itself:

    - bounds-checked get/set
    - arithmetic with explicit shape contracts (DimensionMismatchError)
    - LU decomposition with partial pivoting (L, U, P and determinant sign)
    - forward/backward substitution, solve, inverse, determinant, norm

WHY NOT JUST np.linalg.solve?
-----------------------------
np.linalg.solve tells us nothing about WHERE a system went singular. Owning
the factorization lets us stop at the first vanishing pivot and report which
unknown (and therefore which node/DOF) is unrestrained. That is the single
most useful diagnostic when a model is missing a support.

All operations are pure: they return new matrices and never modify operands.

USAGE:
------
    A = Matrix.from_array([[4.0, 1.0], [1.0, 3.0]])
    b = Matrix.column([1.0, 2.0])
    x = A.solve(b)
    assert A.multiply(x).allclose(b)
"""

import numbers
from dataclasses import dataclass
from typing import Optional, Sequence, Union

import numpy as np

from ..errors import DimensionMismatchError, SingularMatrixError


ArrayLike = Union["Matrix", np.ndarray, Sequence[float], Sequence[Sequence[float]]]


def pivot_threshold(n: int, scale: float, pivot_rtol: Optional[float] = None) -> float:
    """
    Absolute threshold below which a pivot is treated as zero.

    Default follows the usual rank tolerance: n × machine epsilon × max|A|.
    """
    if pivot_rtol is None:
        pivot_rtol = max(n, 1) * np.finfo(float).eps
    return pivot_rtol * scale


@dataclass(frozen=True)
class LUDecomposition:
    """
    Result of P·A = L·U with partial pivoting.

    Attributes:
        L: Lower triangular, unit diagonal
        U: Upper triangular
        P: Permutation matrix (rows of the identity, swapped with U)
        sign: +1 or -1, parity of the row swaps (determinant sign)
    """
    L: "Matrix"
    U: "Matrix"
    P: "Matrix"
    sign: float

    def solve(self, b: ArrayLike) -> "Matrix":
        """Solve A·x = b reusing this factorization."""
        b = _as_matrix(b)
        if b.rows != self.L.rows:
            raise DimensionMismatchError(
                f"Right-hand side has {b.rows} rows, system has {self.L.rows}"
            )
        Pb = self.P.multiply(b)
        y = Matrix.forward_substitution(self.L, Pb)
        return Matrix.backward_substitution(self.U, y)

    def determinant(self) -> float:
        return float(self.sign * np.prod(np.diag(self.U._data)))


class Matrix:
    """
    Dense numeric matrix with explicit shape contracts.

    Parameters:
    -----------
    rows, cols : int
        Matrix dimensions
    data : array-like, optional
        Initial values, copied. Must have shape (rows, cols).
        If omitted, the matrix is zero-filled.
    """

    __slots__ = ('_data',)

    def __init__(self, rows: int, cols: int, data: Optional[ArrayLike] = None):
        if rows < 0 or cols < 0:
            raise ValueError(f"Matrix dimensions must be non-negative, got ({rows}, {cols})")
        if data is None:
            self._data = np.zeros((rows, cols), dtype=float)
        else:
            values = data._data if isinstance(data, Matrix) else data
            arr = np.array(values, dtype=float)
            if arr.shape != (rows, cols):
                raise DimensionMismatchError(
                    f"Data shape {arr.shape} does not match ({rows}, {cols})"
                )
            self._data = arr

    # ==================== CONSTRUCTORS ====================

    @classmethod
    def from_array(cls, values: ArrayLike) -> "Matrix":
        """Build a matrix from a 2D array, or a column vector from a 1D array."""
        if isinstance(values, Matrix):
            return values.clone()
        arr = np.array(values, dtype=float)
        if arr.ndim == 1:
            arr = arr.reshape(-1, 1)
        if arr.ndim != 2:
            raise DimensionMismatchError(f"Expected 1D or 2D data, got {arr.ndim}D")
        return cls(arr.shape[0], arr.shape[1], arr)

    @classmethod
    def column(cls, values: Sequence[float]) -> "Matrix":
        arr = np.asarray(values, dtype=float).reshape(-1, 1)
        return cls(arr.shape[0], 1, arr)

    @classmethod
    def identity(cls, size: int) -> "Matrix":
        return cls(size, size, np.eye(size))

    @classmethod
    def zeros(cls, rows: int, cols: int) -> "Matrix":
        return cls(rows, cols)

    @classmethod
    def ones(cls, rows: int, cols: int) -> "Matrix":
        return cls(rows, cols, np.ones((rows, cols)))

    # ==================== BASIC OPERATIONS ====================

    @property
    def rows(self) -> int:
        return self._data.shape[0]

    @property
    def cols(self) -> int:
        return self._data.shape[1]

    @property
    def shape(self):
        return self._data.shape

    @property
    def is_square(self) -> bool:
        return self.rows == self.cols

    def _check_bounds(self, row: int, col: int) -> None:
        if row < 0 or row >= self.rows or col < 0 or col >= self.cols:
            raise IndexError(f"Index out of bounds: ({row}, {col}) for {self.rows}x{self.cols} matrix")

    def get(self, row: int, col: int) -> float:
        self._check_bounds(row, col)
        return float(self._data[row, col])

    def set(self, row: int, col: int, value: float) -> None:
        self._check_bounds(row, col)
        self._data[row, col] = value

    def clone(self) -> "Matrix":
        return Matrix(self.rows, self.cols, self._data)

    def to_array(self) -> np.ndarray:
        """Copy of the underlying values as a 2D numpy array."""
        return self._data.copy()

    def to_vector(self) -> np.ndarray:
        """Copy of a single-column matrix as a 1D numpy array."""
        if self.cols != 1:
            raise DimensionMismatchError(f"to_vector requires a column matrix, got {self.rows}x{self.cols}")
        return self._data[:, 0].copy()

    def allclose(self, other: ArrayLike, rtol: float = 1e-9, atol: float = 1e-12) -> bool:
        other = _as_matrix(other)
        if self.shape != other.shape:
            return False
        return bool(np.allclose(self._data, other._data, rtol=rtol, atol=atol))

    # ==================== MATRIX ARITHMETIC ====================

    def _require_same_shape(self, other: "Matrix", op: str) -> None:
        if self.shape != other.shape:
            raise DimensionMismatchError(
                f"Matrix dimensions must match for {op}: {self.rows}x{self.cols} vs {other.rows}x{other.cols}"
            )

    def _require_square(self, op: str) -> None:
        if not self.is_square:
            raise DimensionMismatchError(f"{op} requires a square matrix, got {self.rows}x{self.cols}")

    def add(self, other: ArrayLike) -> "Matrix":
        other = _as_matrix(other)
        self._require_same_shape(other, "addition")
        return Matrix(self.rows, self.cols, self._data + other._data)

    def subtract(self, other: ArrayLike) -> "Matrix":
        other = _as_matrix(other)
        self._require_same_shape(other, "subtraction")
        return Matrix(self.rows, self.cols, self._data - other._data)

    def multiply(self, other: ArrayLike) -> "Matrix":
        other = _as_matrix(other)
        if self.cols != other.rows:
            raise DimensionMismatchError(
                f"Invalid dimensions for multiplication: {self.rows}x{self.cols} · {other.rows}x{other.cols}"
            )
        return Matrix(self.rows, other.cols, self._data @ other._data)

    def multiply_scalar(self, scalar: float) -> "Matrix":
        return Matrix(self.rows, self.cols, self._data * float(scalar))

    def __add__(self, other):
        return self.add(other)

    def __sub__(self, other):
        return self.subtract(other)

    def __matmul__(self, other):
        return self.multiply(other)

    def __mul__(self, other):
        # Matrix or array operand: matrix product; number: scale
        if isinstance(other, (Matrix, np.ndarray, list, tuple)):
            return self.multiply(other)
        if isinstance(other, numbers.Real):
            return self.multiply_scalar(other)
        return NotImplemented

    def __rmul__(self, other):
        if isinstance(other, numbers.Real):
            return self.multiply_scalar(other)
        return NotImplemented

    # ==================== MATRIX PROPERTIES ====================

    def transpose(self) -> "Matrix":
        return Matrix(self.cols, self.rows, self._data.T)

    @property
    def T(self) -> "Matrix":
        return self.transpose()

    def determinant(self) -> float:
        self._require_square("Determinant")
        a = self._data
        if self.rows == 0:
            return 1.0
        if self.rows == 1:
            return float(a[0, 0])
        if self.rows == 2:
            return float(a[0, 0] * a[1, 1] - a[0, 1] * a[1, 0])
        lu = self.lu_decomposition(check_singular=False)
        return lu.determinant()

    def norm(self) -> float:
        """Frobenius norm."""
        return float(np.sqrt(np.sum(self._data * self._data)))

    def is_symmetric(self, rtol: float = 1e-10, atol: float = 1e-12) -> bool:
        return self.is_square and bool(np.allclose(self._data, self._data.T, rtol=rtol, atol=atol))

    # ==================== LINEAR ALGEBRA ====================

    def lu_decomposition(
        self,
        pivot_rtol: Optional[float] = None,
        check_singular: bool = True,
    ) -> LUDecomposition:
        """
        Factorize P·A = L·U with partial pivoting.

        At each elimination step k the row with the largest |U[i, k]| (i >= k)
        becomes the pivot row. Rows of U and P are swapped, together with the
        already-computed columns of L.

        Parameters:
        -----------
        pivot_rtol : float, optional
            Relative pivot threshold (see pivot_threshold)
        check_singular : bool
            If True, a pivot at or below the threshold raises SingularMatrixError.
            If False, zero pivots are skipped (used by determinant()).

        Raises:
        -------
        SingularMatrixError
            With pivot_index set to the failing elimination step.
        """
        self._require_square("LU decomposition")
        n = self.rows
        U = self._data.copy()
        L = np.eye(n)
        P = np.eye(n)
        sign = 1.0

        scale = float(np.max(np.abs(U))) if n else 0.0
        tol = pivot_threshold(n, scale, pivot_rtol)

        for k in range(n):
            # Partial pivoting
            p = k + int(np.argmax(np.abs(U[k:, k])))
            if p != k:
                U[[k, p], :] = U[[p, k], :]
                P[[k, p], :] = P[[p, k], :]
                L[[k, p], :k] = L[[p, k], :k]
                sign = -sign

            pivot = U[k, k]
            if abs(pivot) <= tol:
                if check_singular:
                    raise SingularMatrixError(
                        f"Matrix is singular: pivot {abs(pivot):.3e} at step {k} "
                        f"is below threshold {tol:.3e}",
                        kind="mechanism",
                        pivot_index=k,
                        pivot=float(abs(pivot)),
                    )
                if pivot == 0.0:
                    continue

            # Elimination
            if k < n - 1:
                factors = U[k + 1:, k] / pivot
                L[k + 1:, k] = factors
                U[k + 1:, k:] -= np.outer(factors, U[k, k:])
                U[k + 1:, k] = 0.0

        return LUDecomposition(
            L=Matrix(n, n, L),
            U=Matrix(n, n, U),
            P=Matrix(n, n, P),
            sign=sign,
        )

    def solve(self, b: ArrayLike, pivot_rtol: Optional[float] = None) -> "Matrix":
        """
        Solve A·x = b.

        Applies LU, forward-substitutes L·y = P·b, then back-substitutes U·x = y.
        `b` may be a Matrix, a 1D array (treated as a column) or a 2D array.
        """
        self._require_square("System matrix")
        b = _as_matrix(b)
        if b.rows != self.rows:
            raise DimensionMismatchError(
                f"Right-hand side has {b.rows} rows, system has {self.rows}"
            )
        return self.lu_decomposition(pivot_rtol).solve(b)

    def inverse(self, pivot_rtol: Optional[float] = None) -> "Matrix":
        """Inverse via A·xᵢ = eᵢ for each unit basis vector (one factorization)."""
        self._require_square("Inverse")
        n = self.rows
        lu = self.lu_decomposition(pivot_rtol)
        result = np.zeros((n, n))
        for i in range(n):
            ei = np.zeros(n)
            ei[i] = 1.0
            result[:, i] = lu.solve(ei)._data[:, 0]
        return Matrix(n, n, result)

    # ==================== SUBSTITUTION ====================

    @staticmethod
    def forward_substitution(L: "Matrix", b: ArrayLike) -> "Matrix":
        """Solve L·y = b for lower triangular L."""
        b = _as_matrix(b)
        n = L.rows
        Ld = L._data
        x = np.zeros((n, b.cols))
        for i in range(n):
            x[i] = (b._data[i] - Ld[i, :i] @ x[:i]) / Ld[i, i]
        return Matrix(n, b.cols, x)

    @staticmethod
    def backward_substitution(U: "Matrix", b: ArrayLike) -> "Matrix":
        """Solve U·x = b for upper triangular U."""
        b = _as_matrix(b)
        n = U.rows
        Ud = U._data
        x = np.zeros((n, b.cols))
        for i in range(n - 1, -1, -1):
            x[i] = (b._data[i] - Ud[i, i + 1:] @ x[i + 1:]) / Ud[i, i]
        return Matrix(n, b.cols, x)

    # ==================== DISPLAY ====================

    def __repr__(self) -> str:
        return f"Matrix({self.rows}x{self.cols})"

    def __str__(self) -> str:
        lines = []
        for row in self._data:
            lines.append('[' + ', '.join(f"{v:.4f}" for v in row) + ']')
        return '\n'.join(lines)


def _as_matrix(value: ArrayLike) -> Matrix:
    if isinstance(value, Matrix):
        return value
    return Matrix.from_array(value)
