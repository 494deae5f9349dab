# structengine/kernel - Dimension-agnostic structural analysis core
"""
KERNEL: THE DIMENSION-AGNOSTIC FOUNDATION
==========================================

This package contains the core abstractions that work for ANY direct
stiffness analysis, independent of the element type.

The key insight: assembly and solving don't care about dimensions.
They just need:
- A way to map (node_id, local_dof) → global_dof_index
- Element matrices (any size)
- Fixed DOF lists
- Load vectors

The ELEMENT implementations (v3d.Frame3D) are dimension-specific, but the
plumbing here is universal:

- matrix: dense Matrix type with LU (partial pivoting) and singular pivot detection
- dof: DOFManager
- assemble: scatter-add of K, M, Kg and F
- solve: boundary conditions (elimination or penalty), linear solve, reactions
- sparse: scipy.sparse direct and conjugate gradient solves
- modal: generalized eigenproblem, participation factors, effective mass
- buckling: linear eigen-buckling and Euler reference formulas
- dynamics: Newmark-β integration, Rayleigh damping, response spectrum combination
"""

from ..errors import MechanismError, SingularMatrixError
from .dof import DOFManager
from .matrix import LUDecomposition, Matrix
from .solve import solve_linear

__all__ = [
    'DOFManager', 'LUDecomposition', 'Matrix', 'MechanismError', 'SingularMatrixError', 'solve_linear',
]
