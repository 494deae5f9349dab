# structengine/v3d/post.py
"""
POST-PROCESSING: displacements, end forces, stresses, reactions
===============================================================

Everything here reads the solved displacement vector; nothing writes back
into the system matrices.

END FORCES:
-----------
    u_local = T · u_global(element DOFs)
    f_local = k_local · u_local - f_equivalent  (+ Kg · u_local when P-Delta is on)

f_local holds the forces the NODES exert on the member ends, in local axes:

    [Fx_i, Fy_i, Fz_i, Mx_i, My_i, Mz_i, Fx_j, Fy_j, Fz_j, Mx_j, My_j, Mz_j]

Axial force N (tension positive) is -Fx_i at the start and +Fx_j at the end.
"""

from typing import Dict, Hashable, Optional

import numpy as np

from ..kernel.dof import DOFManager
from .elements import (
    element_geometry_3d,
    element_local_stiffness,
    frame3d_local_geometric_stiffness,
    frame3d_rotation,
    frame3d_transform,
)
from .model import Frame3D, Node3D, Section, StructuralModel

FORCE_NAMES = ('fx', 'fy', 'fz', 'mx', 'my', 'mz')
DISPLACEMENT_NAMES = ('ux', 'uy', 'uz', 'rx', 'ry', 'rz')


def element_displacements_local(
    nodes: Dict[Hashable, Node3D],
    element: Frame3D,
    d_global: np.ndarray,
    dof: DOFManager,
) -> np.ndarray:
    """Gather the element's 12 global displacements and rotate them to local axes."""
    dof_map = dof.element_dof_map([element.ni, element.nj])
    T = frame3d_transform(frame3d_rotation(nodes, element))
    return T @ d_global[dof_map]


def element_end_forces_local(
    nodes: Dict[Hashable, Node3D],
    element: Frame3D,
    d_global: np.ndarray,
    dof: DOFManager,
    equivalent_loads: Optional[np.ndarray] = None,
    E_factor: float = 1.0,
    axial_force: Optional[float] = None,
) -> np.ndarray:
    """
    Compute element end forces in LOCAL coordinates from global displacements.

    Parameters:
    -----------
    equivalent_loads : np.ndarray, optional
        Local equivalent nodal loads of the element loads on this member
        (from loads.assemble_load_vector). They were added to F during
        assembly, so they are subtracted here to get the actual end forces.
    E_factor : float
        Secant modulus ratio (material nonlinearity)
    axial_force : float, optional
        Axial force for the geometric stiffness contribution (P-Delta)

    Returns:
    --------
    np.ndarray
        Shape (12,) local end forces
    """
    L, _, _, _ = element_geometry_3d(nodes, element)
    u_local = element_displacements_local(nodes, element, d_global, dof)

    f_local = element_local_stiffness(element, L, E_factor) @ u_local

    if axial_force is not None and axial_force != 0.0:
        sec = element.section
        f_local = f_local + frame3d_local_geometric_stiffness(axial_force, L, sec.A, sec.Ix) @ u_local

    if equivalent_loads is not None:
        f_local = f_local - equivalent_loads

    return f_local


def axial_force(f_local: np.ndarray) -> float:
    """Mean member axial force, tension positive."""
    return float((f_local[6] - f_local[0]) / 2.0)


def end_forces_dict(f_local: np.ndarray) -> Dict[str, Dict[str, float]]:
    """{'start': {fx..mz}, 'end': {fx..mz}} from a 12-component local force vector."""
    return {
        'start': {name: float(f_local[k]) for k, name in enumerate(FORCE_NAMES)},
        'end': {name: float(f_local[6 + k]) for k, name in enumerate(FORCE_NAMES)},
    }


def _ratio(value: float, prop: float) -> float:
    return value / prop if prop > 0 else 0.0


def combined_fibre_stress(section: Section, f_local: np.ndarray) -> float:
    """Max over both ends of |N/A| + |My/Sy| + |Mz/Sz| (extreme fibre normal stress)."""
    worst = 0.0
    for s in (0, 6):
        sigma = (
            abs(_ratio(f_local[s], section.A))
            + abs(_ratio(f_local[s + 4], section.Sy))
            + abs(_ratio(f_local[s + 5], section.Sz))
        )
        worst = max(worst, sigma)
    return worst


def element_stresses(section: Section, f_local: np.ndarray) -> Dict[str, float]:
    """
    Member stresses from local end forces, maximum over both ends.

    Returns:
    --------
    Dict with:
        - axial: N/A at the end with the larger |N| (tension positive)
        - shear_y, shear_z: |V|/A
        - torsion: |Mx|·c/J, c = max(Iz/Sz, Iy/Sy)
        - bending_y, bending_z: |M|/S
        - von_mises: √(σ² + 3τ²), σ = |N/A| + |My/Sy| + |Mz/Sz|,
          τ = √(Vy² + Vz²)/A + torsion

    Zero section properties contribute zero.
    """
    c = max(_ratio(section.Iz, section.Sz), _ratio(section.Iy, section.Sy))

    result = {
        'axial': 0.0, 'shear_y': 0.0, 'shear_z': 0.0, 'torsion': 0.0,
        'bending_y': 0.0, 'bending_z': 0.0, 'von_mises': 0.0,
    }
    for s, sign in ((0, -1.0), (6, 1.0)):
        N = sign * f_local[s]
        Vy, Vz, Mx, My, Mz = f_local[s + 1:s + 6]

        axial = _ratio(N, section.A)
        shear_y = abs(_ratio(Vy, section.A))
        shear_z = abs(_ratio(Vz, section.A))
        torsion = abs(_ratio(Mx * c, section.J))
        bending_y = abs(_ratio(My, section.Sy))
        bending_z = abs(_ratio(Mz, section.Sz))

        sigma = abs(axial) + bending_y + bending_z
        tau = _ratio(np.hypot(Vy, Vz), section.A) + torsion
        von_mises = float(np.sqrt(sigma**2 + 3.0 * tau**2))

        if abs(axial) > abs(result['axial']):
            result['axial'] = float(axial)
        result['shear_y'] = max(result['shear_y'], float(shear_y))
        result['shear_z'] = max(result['shear_z'], float(shear_z))
        result['torsion'] = max(result['torsion'], float(torsion))
        result['bending_y'] = max(result['bending_y'], float(bending_y))
        result['bending_z'] = max(result['bending_z'], float(bending_z))
        result['von_mises'] = max(result['von_mises'], von_mises)

    return result


def compute_nodal_displacements(
    model: StructuralModel,
    d_global: np.ndarray,
    dof: DOFManager,
) -> Dict[Hashable, Dict[str, float]]:
    """
    Extract nodal displacements from global displacement vector.

    Returns:
    --------
    Dict[node_id, Dict[str, float]]
        {'ux', 'uy', 'uz', 'rx', 'ry', 'rz', 'magnitude'}; magnitude is the
        translational displacement length
    """
    result = {}
    for node_id in model.nodes:
        values = d_global[dof.node_dofs(node_id)]
        entry = {name: float(values[k]) for k, name in enumerate(DISPLACEMENT_NAMES)}
        entry['magnitude'] = float(np.linalg.norm(values[:3]))
        result[node_id] = entry
    return result


def compute_reactions(
    model: StructuralModel,
    R: np.ndarray,
    dof: DOFManager,
) -> Dict[Hashable, Dict[str, float]]:
    """
    Extract reaction forces at support nodes.

    Returns:
    --------
    Dict[node_id, Dict[str, float]]
        {'fx', 'fy', 'fz', 'mx', 'my', 'mz'} for every node with at least one
        restraint; unrestrained components are 0.0
    """
    result = {}
    for node in model.nodes.values():
        if not node.is_support:
            continue
        values = R[dof.node_dofs(node.id)]
        result[node.id] = {
            name: float(values[k]) if node.restraints[k] else 0.0
            for k, name in enumerate(FORCE_NAMES)
        }
    return result
