# structengine/errors.py
"""Error taxonomy for model validation, matrix operations and solving."""

from typing import Optional


class ModelError(ValueError):
    """Raised when the structural model is invalid (bad references, degenerate geometry)."""
    pass


class DimensionMismatchError(ValueError):
    """Raised when matrix operands have incompatible shapes."""
    pass


class MechanismError(RuntimeError):
    """Raised when structure is unstable or ill-conditioned."""
    pass


class SingularMatrixError(MechanismError):
    """
    Raised when a system matrix cannot be factorized.

    Attributes:
        kind: "mechanism" when a pivot vanished (under-constrained model),
              "conditioning" when the system is solvable in principle but its
              condition number exceeds the configured limit.
        pivot_index: Elimination step (unknown index) where the pivot failed.
        pivot: Magnitude of the failing pivot.
        dof: Global DOF index, once mapped by the caller.
        label: Human-readable DOF label such as "node 2 rz", once mapped.
    """

    def __init__(
        self,
        message: str,
        kind: str = "mechanism",
        pivot_index: Optional[int] = None,
        pivot: Optional[float] = None,
        dof: Optional[int] = None,
        label: Optional[str] = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.pivot_index = pivot_index
        self.pivot = pivot
        self.dof = dof
        self.label = label
