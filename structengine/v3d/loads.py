# structengine/v3d/loads.py
"""
EQUIVALENT NODAL LOADS
======================

PURPOSE:
--------
The solver only understands loads at nodes. Loads that act ALONG a member
(uniform loads, point loads and moments at some position, temperature
change) are converted to statically-equivalent nodal forces and moments
using the standard fixed-end-force tables for a prismatic beam.

These equivalent loads produce exactly the nodal displacements the real
distributed load would (for the cubic beam element), and they are
subtracted again during force recovery to get the true internal forces.

SIGN CONVENTION (local axes, loads applied TO the nodes):
---------------------------------------------------------
Uniform load w in local +y over length L:

    Fy_i = wL/2     Mz_i = +wL²/12
    Fy_j = wL/2     Mz_j = -wL²/12

Uniform load w in local +z: same forces, moments My mirrored
(My_i = -wL²/12, My_j = +wL²/12), see elements.py for why.

Point load P at a = position·L (b = L - a):

    Fy_i = Pb²(3a + b)/L³     Mz_i = +Pab²/L²
    Fy_j = Pa²(a + 3b)/L³     Mz_j = -Pa²b/L²

Concentrated moment M about local z at a:

    Fy_i = -6Mab/L³           Mz_i = Mb(b - 2a)/L²
    Fy_j = +6Mab/L³           Mz_j = Ma(a - 2b)/L²

Thermal ΔT (fully restrained expansion):

    Fx_i = -EAαΔT             Fx_j = +EAαΔT
"""

import logging
from typing import Dict, Hashable, Iterable, Optional, Tuple

import numpy as np

from ..kernel.assemble import add_nodal_load, assemble_global_F
from ..kernel.dof import DOFManager
from .elements import element_geometry_3d, frame3d_rotation, frame3d_transform
from .model import ElementLoad, Frame3D, LoadCase, StructuralModel

logger = logging.getLogger(__name__)

_AXIS = {'x': 0, 'y': 1, 'z': 2}


def frame3d_fef_udl(L: float, w: float, axis: int) -> np.ndarray:
    """
    Equivalent nodal loads (local, 12 components) for a uniform load w (N/m)
    along local axis 0=x, 1=y, 2=z.
    """
    f = np.zeros(12, dtype=float)
    half = w * L / 2.0
    moment = w * L * L / 12.0
    if axis == 0:
        f[0] = half
        f[6] = half
    elif axis == 1:
        f[1] = half
        f[5] = moment
        f[7] = half
        f[11] = -moment
    else:
        f[2] = half
        f[4] = -moment
        f[8] = half
        f[10] = moment
    return f


def frame3d_fef_point(L: float, P: float, position: float, axis: int) -> np.ndarray:
    """Equivalent nodal loads for a concentrated force P at position·L along local axis."""
    a = position * L
    b = L - a
    L2 = L * L
    L3 = L2 * L
    f = np.zeros(12, dtype=float)
    if axis == 0:
        f[0] = P * b / L
        f[6] = P * a / L
        return f

    Fi = P * b * b * (3.0 * a + b) / L3
    Fj = P * a * a * (a + 3.0 * b) / L3
    Mi = P * a * b * b / L2
    Mj = P * a * a * b / L2
    if axis == 1:
        f[1] = Fi
        f[5] = Mi
        f[7] = Fj
        f[11] = -Mj
    else:
        f[2] = Fi
        f[4] = -Mi
        f[8] = Fj
        f[10] = Mj
    return f


def frame3d_fef_moment(L: float, M: float, position: float, axis: int) -> np.ndarray:
    """Equivalent nodal loads for a concentrated moment M at position·L about local axis."""
    a = position * L
    b = L - a
    L2 = L * L
    L3 = L2 * L
    f = np.zeros(12, dtype=float)
    if axis == 0:
        f[3] = M * b / L
        f[9] = M * a / L
        return f

    shear = 6.0 * M * a * b / L3
    Mi = M * b * (b - 2.0 * a) / L2
    Mj = M * a * (a - 2.0 * b) / L2
    if axis == 1:
        f[2] = shear
        f[4] = Mi
        f[8] = -shear
        f[10] = Mj
    else:
        f[1] = -shear
        f[5] = Mi
        f[7] = shear
        f[11] = Mj
    return f


def frame3d_fef_thermal(E: float, A: float, alpha: float, delta_T: float) -> np.ndarray:
    """Equivalent nodal loads for a uniform temperature change (heating pushes the ends apart)."""
    force = E * A * alpha * delta_T
    f = np.zeros(12, dtype=float)
    f[0] = -force
    f[6] = force
    return f


def element_load_local(
    load: ElementLoad,
    element: Frame3D,
    L: float,
    R: np.ndarray,
) -> np.ndarray:
    """
    Equivalent nodal loads (local, 12 components) for one ElementLoad.

    Global-axis loads are projected onto the local axes with R, giving up to
    three local components that are converted independently.
    """
    if load.type == 'thermal':
        mat = element.material
        return frame3d_fef_thermal(mat.E, element.section.A, mat.alpha, load.value)

    vector = np.zeros(3)
    vector[_AXIS[load.direction]] = load.value
    if load.axes == 'global':
        vector = R @ vector

    f = np.zeros(12, dtype=float)
    for axis, component in enumerate(vector):
        if component == 0.0:
            continue
        if load.type == 'distributed':
            f += frame3d_fef_udl(L, component, axis)
        elif load.type == 'point':
            f += frame3d_fef_point(L, component, load.position, axis)
        else:
            f += frame3d_fef_moment(L, component, load.position, axis)
    return f


def element_equivalent_loads(
    nodes,
    element: Frame3D,
    loads: Iterable[ElementLoad],
    factor: float = 1.0,
) -> np.ndarray:
    """Sum of equivalent nodal loads (local) for all loads on one element, times factor."""
    L, _, _, _ = element_geometry_3d(nodes, element)
    R = frame3d_rotation(nodes, element)
    f = np.zeros(12, dtype=float)
    for load in loads:
        f += element_load_local(load, element, L, R)
    return factor * f


def assemble_load_vector(
    model: StructuralModel,
    load_case_id: Optional[Hashable],
    dof: DOFManager,
    include_thermal: bool = True,
) -> Tuple[np.ndarray, Dict[Hashable, np.ndarray]]:
    """
    Build the global load vector for one load case.

    Node loads: each node's own loads, unless the load case overrides that
    node. Element loads: converted to equivalent nodal loads, rotated to
    global and scatter-added. The case factor scales everything.
    load_case_id=None applies the nodes' own loads only. include_thermal=False
    skips thermal element loads.

    Returns:
    --------
    F : np.ndarray
        Global load vector, shape (ndof,)
    equivalent_loads : Dict[element id, np.ndarray]
        Local equivalent nodal loads per loaded element (needed to recover
        true end forces)
    """
    nodes = model.nodes
    elements = model.elements
    case: Optional[LoadCase] = model.load_case(load_case_id) if load_case_id is not None else None
    factor = case.factor if case is not None else 1.0

    F = np.zeros(dof.ndof(), dtype=float)
    for node in nodes.values():
        load = case.node_load(node) if case is not None else node.loads
        if any(load):
            add_nodal_load(F, node.id, factor * np.asarray(load, dtype=float), dof)

    equivalent_loads: Dict[Hashable, np.ndarray] = {}
    contributions = []
    if case is not None:
        for eid, loads in case.element_loads.items():
            if not include_thermal:
                loads = [load for load in loads if load.type != 'thermal']
                if not loads:
                    continue
            element = elements[eid]
            f_local = element_equivalent_loads(nodes, element, loads, factor)
            equivalent_loads[eid] = f_local
            T = frame3d_transform(frame3d_rotation(nodes, element))
            contributions.append((dof.element_dof_map([element.ni, element.nj]), T.T @ f_local))

    F += assemble_global_F(dof.ndof(), contributions)

    logger.debug(
        "Load vector for case %r: %d element(s) with equivalent loads, |F| = %.3e",
        load_case_id, len(equivalent_loads), float(np.linalg.norm(F)),
    )
    return F, equivalent_loads
