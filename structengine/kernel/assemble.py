# structengine/kernel/assemble.py
"""
ASSEMBLY: Global Matrix Assembly
================================

PURPOSE:
--------
This module handles the assembly of element contributions into global matrices.
This is the scatter-add operation that builds K, M, Kg and F from element-level data.

The key insight: assembly doesn't care about element TYPE.
It just needs:
- Total number of DOFs
- For each element: its DOF map and its matrix (or vector)

A 12×12 frame stiffness, a 12×12 consistent mass matrix and a 12×12
geometric stiffness are all scattered the same way.

USAGE:
------
    contributions = []
    for element in elements:
        dof_map = dof.element_dof_map([element.ni, element.nj])
        ke = frame3d_global_stiffness(nodes, element)
        contributions.append((dof_map, ke))

    K = assemble_global_K(dof.ndof(), contributions)
"""

import logging
from typing import Hashable, Iterable, List, Tuple

import numpy as np

from ..errors import DimensionMismatchError
from .dof import DOFManager

logger = logging.getLogger(__name__)


def assemble_global_K(
    ndof: int,
    contributions: Iterable[Tuple[List[int], np.ndarray]]
) -> np.ndarray:
    """
    Assemble a global square matrix from element contributions.

    ALGORITHM:
    ----------
    K = zeros(ndof × ndof)
    for each element:
        for each (local_i, local_j) in element ke:
            K[dof_map[local_i], dof_map[local_j]] += ke[local_i, local_j]

    Used for stiffness, mass and geometric stiffness alike.

    Parameters:
    -----------
    ndof : int
        Total number of DOFs in the system (6 × n_nodes for a 3D frame)

    contributions : Iterable[Tuple[List[int], np.ndarray]]
        (dof_map, ke) tuples, one per element:
        - dof_map: global DOF indices for this element (12 for a 3D frame)
        - ke: element matrix in global coordinates, shape (len(dof_map), len(dof_map))

    Returns:
    --------
    np.ndarray
        Global matrix, shape (ndof, ndof)

    Raises:
    -------
    DimensionMismatchError
        If an element matrix does not match its DOF map, or a DOF index is out of range
    """
    K = np.zeros((ndof, ndof), dtype=float)

    count = 0
    for dof_map, ke in contributions:
        n_element_dofs = len(dof_map)
        if ke.shape != (n_element_dofs, n_element_dofs):
            raise DimensionMismatchError(
                f"Element matrix shape {ke.shape} doesn't match dof_map length {n_element_dofs}"
            )
        if n_element_dofs and (min(dof_map) < 0 or max(dof_map) >= ndof):
            raise DimensionMismatchError(f"DOF map {dof_map} out of range for {ndof} DOFs")

        # Scatter-add (DOFs within one element are distinct)
        idx = np.asarray(dof_map, dtype=int)
        K[np.ix_(idx, idx)] += ke
        count += 1

    logger.debug("Assembled %d element contributions into %dx%d matrix", count, ndof, ndof)
    return K


def assemble_global_F(
    ndof: int,
    contributions: Iterable[Tuple[List[int], np.ndarray]]
) -> np.ndarray:
    """
    Assemble global load vector from element contributions.

    Same scatter-add logic as assemble_global_K, but for load vectors.
    Used for equivalent nodal loads from element loads.

    Parameters:
    -----------
    ndof : int
        Total number of DOFs in the system

    contributions : Iterable[Tuple[List[int], np.ndarray]]
        (dof_map, fe) tuples; fe is in global coordinates, shape (len(dof_map),)

    Returns:
    --------
    np.ndarray
        Global load vector F, shape (ndof,)
    """
    F = np.zeros(ndof, dtype=float)

    for dof_map, fe in contributions:
        n_element_dofs = len(dof_map)
        if fe.shape != (n_element_dofs,):
            raise DimensionMismatchError(
                f"Element load shape {fe.shape} doesn't match dof_map length {n_element_dofs}"
            )
        F[np.asarray(dof_map, dtype=int)] += fe

    return F


def add_nodal_load(
    F: np.ndarray,
    node_id: Hashable,
    load_vector,
    dof_manager: DOFManager,
) -> None:
    """
    Add a nodal load to the global load vector (in-place).

    Parameters:
    -----------
    F : np.ndarray
        Global load vector (modified in-place)
    node_id : Hashable
        Node to apply load to
    load_vector : sequence of float
        [Fx, Fy, Fz, Mx, My, Mz]
    dof_manager : DOFManager
        Numbering used for F

    Example:
    --------
    >>> dof = DOFManager(6, [0, 1])
    >>> F = np.zeros(12)
    >>> add_nodal_load(F, 1, [0, 0, -1000, 0, 0, 0], dof)
    >>> # Now F[8] = -1000 (downward force at node 1)
    """
    load_vector = np.asarray(load_vector, dtype=float)
    if load_vector.shape != (dof_manager.dof_per_node,):
        raise DimensionMismatchError(
            f"Nodal load must have {dof_manager.dof_per_node} components, got {load_vector.shape}"
        )
    F[dof_manager.node_dofs(node_id)] += load_vector
