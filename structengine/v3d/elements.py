# structengine/v3d/elements.py
"""
3D FRAME ELEMENT: Stiffness, Geometric Stiffness and Mass
=========================================================

PURPOSE:
--------
This module computes the 12×12 element matrices for a 3D frame member.
This is THE core engineering calculation of the solver.

DOF ORDER (local and global):
-----------------------------
    [ux_i, uy_i, uz_i, rx_i, ry_i, rz_i, ux_j, uy_j, uz_j, rx_j, ry_j, rz_j]
      0     1     2     3     4     5     6     7     8     9     10    11

LOCAL AXES (fixed convention, Z-up):
------------------------------------
    x = unit vector from node i to node j
    y = normalize(Z × x)        horizontal, perpendicular to the member
    z = x × y                   "as vertical as possible"

If the member is parallel to global Z (a column), Z × x vanishes and the
fallback is y = global Y, z = x × y.

A horizontal beam along global X therefore has local y = global Y and
local z = global Z.

BENDING:
--------
    local y displacement (v) bends about local z → uses Iz,  θz = +dv/dx
    local z displacement (w) bends about local y → uses Iy,  θy = -dw/dx

The minus sign in θy is the right-hand rule, and it is why the off-diagonal
signs of the y-bending block are mirrored relative to the z-bending block.

TRANSFORMATION:
---------------
R (3×3) has the local axes as rows, so v_local = R · v_global.
T (12×12) = diag(R, R, R, R), and

    ke_global = Tᵀ · ke_local · T
"""

from typing import Dict, Hashable, Optional, Tuple

import numpy as np

from ..config import CONFIG
from ..errors import ModelError
from .model import Frame3D, Node3D, MIN_ELEMENT_LENGTH


def element_geometry_3d(nodes: Dict[Hashable, Node3D], element: Frame3D) -> Tuple[float, float, float, float]:
    """
    Compute length and direction cosines for a 3D element.

    Returns:
    --------
    Tuple[float, float, float, float]
        (L, l, m, n): length and direction cosines with the global x, y, z axes

    Raises:
    -------
    ModelError
        If element has zero length (nodes at same location)
    """
    ni = nodes[element.ni]
    nj = nodes[element.nj]

    dx = nj.x - ni.x
    dy = nj.y - ni.y
    dz = nj.z - ni.z

    L = float(np.sqrt(dx*dx + dy*dy + dz*dz))

    if L <= MIN_ELEMENT_LENGTH:
        raise ModelError(
            f"Element {element.id!r} has zero length (nodes {element.ni!r} and {element.nj!r} "
            f"at same location: ({ni.x}, {ni.y}, {ni.z}))"
        )

    return L, dx / L, dy / L, dz / L


def frame3d_rotation(
    nodes: Dict[Hashable, Node3D],
    element: Frame3D,
    vertical_tolerance: Optional[float] = None,
) -> np.ndarray:
    """
    3×3 rotation matrix whose rows are the local x, y, z axes in global coordinates.

    Parameters:
    -----------
    vertical_tolerance : float, optional
        A member whose horizontal projection is below this fraction of its
        length is treated as vertical. Defaults to CONFIG.vertical_tolerance.
    """
    if vertical_tolerance is None:
        vertical_tolerance = CONFIG.vertical_tolerance

    _, l, m, n = element_geometry_3d(nodes, element)
    x_axis = np.array([l, m, n])

    if np.hypot(l, m) < vertical_tolerance:
        # Parallel to global Z
        y_axis = np.array([0.0, 1.0, 0.0])
    else:
        y_axis = np.cross([0.0, 0.0, 1.0], x_axis)
        y_axis /= np.linalg.norm(y_axis)

    z_axis = np.cross(x_axis, y_axis)
    z_axis /= np.linalg.norm(z_axis)

    return np.vstack([x_axis, y_axis, z_axis])


def frame3d_transform(R: np.ndarray) -> np.ndarray:
    """
    12×12 transform from global DOFs to local DOFs: d_local = T @ d_global.
    """
    T = np.zeros((12, 12), dtype=float)
    for block in range(4):
        s = 3 * block
        T[s:s+3, s:s+3] = R
    return T


def frame3d_local_stiffness(
    E: float, G: float, A: float, Iy: float, Iz: float, J: float, L: float
) -> np.ndarray:
    """
    Local 12×12 stiffness matrix of a prismatic Euler–Bernoulli 3D frame member.

    Independent blocks:
        axial       EA/L            DOFs 0, 6
        torsion     GJ/L            DOFs 3, 9
        bending z   EIz (v, θz)     DOFs 1, 5, 7, 11
        bending y   EIy (w, θy)     DOFs 2, 4, 8, 10

    Only the upper triangle is written; the lower triangle is its mirror.
    """
    L2 = L * L
    L3 = L2 * L

    k = np.zeros((12, 12), dtype=float)

    # Axial
    EA_L = E * A / L
    k[0, 0] = EA_L
    k[0, 6] = -EA_L
    k[6, 6] = EA_L

    # Torsion
    GJ_L = G * J / L
    k[3, 3] = GJ_L
    k[3, 9] = -GJ_L
    k[9, 9] = GJ_L

    # Bending about local z (translation y, rotation z)
    EIz = E * Iz
    k[1, 1] = 12 * EIz / L3
    k[1, 5] = 6 * EIz / L2
    k[1, 7] = -12 * EIz / L3
    k[1, 11] = 6 * EIz / L2
    k[5, 5] = 4 * EIz / L
    k[5, 7] = -6 * EIz / L2
    k[5, 11] = 2 * EIz / L
    k[7, 7] = 12 * EIz / L3
    k[7, 11] = -6 * EIz / L2
    k[11, 11] = 4 * EIz / L

    # Bending about local y (translation z, rotation y), mirrored signs
    EIy = E * Iy
    k[2, 2] = 12 * EIy / L3
    k[2, 4] = -6 * EIy / L2
    k[2, 8] = -12 * EIy / L3
    k[2, 10] = -6 * EIy / L2
    k[4, 4] = 4 * EIy / L
    k[4, 8] = 6 * EIy / L2
    k[4, 10] = 2 * EIy / L
    k[8, 8] = 12 * EIy / L3
    k[8, 10] = 6 * EIy / L2
    k[10, 10] = 4 * EIy / L

    return _mirror_upper(k)


def frame3d_local_geometric_stiffness(P: float, L: float, A: float, Ip: float) -> np.ndarray:
    """
    Local 12×12 geometric stiffness for axial force P (tension positive).

    Consistent (cubic shape function) formulation. Compression (P < 0)
    softens the member; tension stiffens it.
    """
    L2 = L * L
    k = np.zeros((12, 12), dtype=float)

    # Bending about z
    k[1, 1] = 6.0 / 5.0
    k[1, 5] = L / 10.0
    k[1, 7] = -6.0 / 5.0
    k[1, 11] = L / 10.0
    k[5, 5] = 2.0 * L2 / 15.0
    k[5, 7] = -L / 10.0
    k[5, 11] = -L2 / 30.0
    k[7, 7] = 6.0 / 5.0
    k[7, 11] = -L / 10.0
    k[11, 11] = 2.0 * L2 / 15.0

    # Bending about y
    k[2, 2] = 6.0 / 5.0
    k[2, 4] = -L / 10.0
    k[2, 8] = -6.0 / 5.0
    k[2, 10] = -L / 10.0
    k[4, 4] = 2.0 * L2 / 15.0
    k[4, 8] = L / 10.0
    k[4, 10] = -L2 / 30.0
    k[8, 8] = 6.0 / 5.0
    k[8, 10] = L / 10.0
    k[10, 10] = 2.0 * L2 / 15.0

    # Torsion (Wagner term)
    ratio = Ip / A if A > 0 else 0.0
    k[3, 3] = ratio
    k[3, 9] = -ratio
    k[9, 9] = ratio

    return (P / L) * _mirror_upper(k)


def frame3d_local_consistent_mass(rho: float, A: float, L: float, Ip: float) -> np.ndarray:
    """
    Consistent 12×12 mass matrix (cubic Hermitian shape functions).

    Scaled by ρAL/420. Torsional inertia uses the polar moment Ip.
    """
    L2 = L * L
    m = np.zeros((12, 12), dtype=float)

    # Axial
    m[0, 0] = 140.0
    m[0, 6] = 70.0
    m[6, 6] = 140.0

    # Torsion
    r2 = Ip / A if A > 0 else 0.0
    m[3, 3] = 140.0 * r2
    m[3, 9] = 70.0 * r2
    m[9, 9] = 140.0 * r2

    # Bending about z: (v_i, θz_i, v_j, θz_j) = DOFs 1, 5, 7, 11
    m[1, 1] = 156.0
    m[1, 5] = 22.0 * L
    m[1, 7] = 54.0
    m[1, 11] = -13.0 * L
    m[5, 5] = 4.0 * L2
    m[5, 7] = 13.0 * L
    m[5, 11] = -3.0 * L2
    m[7, 7] = 156.0
    m[7, 11] = -22.0 * L
    m[11, 11] = 4.0 * L2

    # Bending about y: (w_i, θy_i, w_j, θy_j) = DOFs 2, 4, 8, 10
    m[2, 2] = 156.0
    m[2, 4] = -22.0 * L
    m[2, 8] = 54.0
    m[2, 10] = 13.0 * L
    m[4, 4] = 4.0 * L2
    m[4, 8] = -13.0 * L
    m[4, 10] = -3.0 * L2
    m[8, 8] = 156.0
    m[8, 10] = 22.0 * L
    m[10, 10] = 4.0 * L2

    return (rho * A * L / 420.0) * _mirror_upper(m)


def frame3d_local_lumped_mass(rho: float, A: float, L: float, Ip: float) -> np.ndarray:
    """
    Diagonal (HRZ-lumped) 12×12 mass matrix.

    Half the member mass at each node for the translations, ρ·Ip·L/2 for
    torsion, and mL²/78 for the bending rotations (diagonal scaling of the
    consistent matrix).
    """
    mass = rho * A * L
    half = mass / 2.0
    torsion = rho * Ip * L / 2.0
    rotation = mass * L * L / 78.0

    diag = np.array([
        half, half, half, torsion, rotation, rotation,
        half, half, half, torsion, rotation, rotation,
    ])
    return np.diag(diag)


def frame3d_global_stiffness(
    nodes: Dict[Hashable, Node3D],
    element: Frame3D,
    E_factor: float = 1.0,
) -> np.ndarray:
    """
    12×12 global stiffness: Tᵀ · k_local · T.

    E_factor scales E and G (secant modulus ratio for material nonlinearity).
    """
    L, _, _, _ = element_geometry_3d(nodes, element)
    k_local = element_local_stiffness(element, L, E_factor)
    T = frame3d_transform(frame3d_rotation(nodes, element))
    return T.T @ k_local @ T


def element_local_stiffness(element: Frame3D, L: float, E_factor: float = 1.0) -> np.ndarray:
    mat, sec = element.material, element.section
    return frame3d_local_stiffness(
        mat.E * E_factor, mat.G * E_factor, sec.A, sec.Iy, sec.Iz, sec.J, L
    )


def frame3d_global_geometric_stiffness(
    nodes: Dict[Hashable, Node3D],
    element: Frame3D,
    P: float,
) -> np.ndarray:
    """12×12 global geometric stiffness for axial force P (tension positive)."""
    L, _, _, _ = element_geometry_3d(nodes, element)
    sec = element.section
    kg_local = frame3d_local_geometric_stiffness(P, L, sec.A, sec.Ix)
    T = frame3d_transform(frame3d_rotation(nodes, element))
    return T.T @ kg_local @ T


def frame3d_global_mass(
    nodes: Dict[Hashable, Node3D],
    element: Frame3D,
    formulation: str = 'consistent',
) -> np.ndarray:
    """
    12×12 global mass matrix.

    Parameters:
    -----------
    formulation : str
        'consistent' or 'lumped'
    """
    L, _, _, _ = element_geometry_3d(nodes, element)
    rho, A, Ip = element.material.rho, element.section.A, element.section.Ix
    if formulation == 'consistent':
        m_local = frame3d_local_consistent_mass(rho, A, L, Ip)
    elif formulation == 'lumped':
        m_local = frame3d_local_lumped_mass(rho, A, L, Ip)
    else:
        raise ValueError(f"Unknown mass formulation {formulation!r}")
    T = frame3d_transform(frame3d_rotation(nodes, element))
    return T.T @ m_local @ T


def _mirror_upper(k: np.ndarray) -> np.ndarray:
    return np.triu(k) + np.triu(k, 1).T
