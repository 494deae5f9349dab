# structengine/v3d/assembly.py
"""
Model-level assembly for 3D frames: K, M, Kg and restrained DOFs.

Each function loops the elements, builds the 12×12 global element matrix and
hands (dof_map, matrix) pairs to the dimension-agnostic kernel scatter-add.
"""

from typing import Dict, Hashable, List, Optional

import numpy as np

from ..kernel.assemble import assemble_global_K
from ..kernel.dof import DOFManager
from .elements import (
    frame3d_global_geometric_stiffness,
    frame3d_global_mass,
    frame3d_global_stiffness,
)
from .model import StructuralModel

DOF_PER_NODE = 6


def build_dof_manager(model: StructuralModel) -> DOFManager:
    """6 DOFs per node, numbered in node insertion order."""
    return DOFManager(dof_per_node=DOF_PER_NODE, node_ids=list(model.nodes))


def assemble_stiffness_matrix(
    model: StructuralModel,
    dof: DOFManager,
    E_factors: Optional[Dict[Hashable, float]] = None,
) -> np.ndarray:
    """
    Global elastic stiffness K, shape (6N, 6N), before boundary conditions.

    E_factors optionally scales each element's moduli (secant stiffness).
    """
    nodes = model.nodes
    E_factors = E_factors or {}
    contributions = [
        (
            dof.element_dof_map([e.ni, e.nj]),
            frame3d_global_stiffness(nodes, e, E_factors.get(e.id, 1.0)),
        )
        for e in model.elements.values()
    ]
    return assemble_global_K(dof.ndof(), contributions)


def assemble_mass_matrix(
    model: StructuralModel,
    dof: DOFManager,
    formulation: str = 'consistent',
) -> np.ndarray:
    """Global mass matrix M from consistent or lumped element mass."""
    nodes = model.nodes
    contributions = [
        (dof.element_dof_map([e.ni, e.nj]), frame3d_global_mass(nodes, e, formulation))
        for e in model.elements.values()
    ]
    return assemble_global_K(dof.ndof(), contributions)


def assemble_geometric_stiffness(
    model: StructuralModel,
    dof: DOFManager,
    axial_forces: Dict[Hashable, float],
) -> np.ndarray:
    """
    Global geometric stiffness Kg from member axial forces (tension positive).

    Elements missing from axial_forces, or with zero force, contribute nothing.
    """
    nodes = model.nodes
    elements = model.elements
    contributions = [
        (
            dof.element_dof_map([elements[eid].ni, elements[eid].nj]),
            frame3d_global_geometric_stiffness(nodes, elements[eid], P),
        )
        for eid, P in axial_forces.items()
        if P != 0.0
    ]
    return assemble_global_K(dof.ndof(), contributions)


def restrained_dofs(model: StructuralModel, dof: DOFManager) -> List[int]:
    """Global indices of every restrained DOF, in ascending order."""
    fixed = []
    for node in model.nodes.values():
        for local, restrained in enumerate(node.restraints):
            if restrained:
                fixed.append(dof.idx(node.id, local))
    return sorted(fixed)
