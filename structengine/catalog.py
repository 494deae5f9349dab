"""
CATALOG: MATERIAL AND SECTION PROPERTIES
=========================================

PURPOSE:
--------
A library of standard materials and section constructors, so models don't
hardcode E=210e9, A=0.01, Iy=8e-6 everywhere.

ENGINEERING CONTEXT:
--------------------
- **Material**: the substance (steel, concrete, timber)
  - E, G: axial/bending and torsional stiffness
  - rho: density, drives the mass matrix
  - fy: yield strength, drives material nonlinearity
  - alpha: thermal expansion, drives thermal loads

- **Section**: the cross-sectional shape, in member LOCAL axes
  - A: axial stiffness, mass
  - Iy: bending about local y (deflection along local z, the "strong" axis
    of a beam whose depth h is along local z)
  - Iz: bending about local z (deflection along local y)
  - J: torsion constant
  - Sy, Sz: elastic section moduli for stresses (σ = M/S)

Section constructors take the width b along local y and the depth h along
local z. For a horizontal beam this means h is the vertical depth.
"""

import math
from typing import List

from .v3d.model import Material, Section


# ============================================================================
# MATERIAL DEFINITIONS
# ============================================================================

STEEL_S275 = Material(
    name="S275 Steel",
    E=210e9,
    nu=0.3,
    rho=7850.0,
    fy=275e6,
    fu=430e6,
    alpha=12e-6,
    type='steel',
)

STEEL_S355 = Material(
    name="S355 Steel",
    E=210e9,
    nu=0.3,
    rho=7850.0,
    fy=355e6,
    fu=510e6,
    alpha=12e-6,
    type='steel',
)

# Concrete "yield" is the compressive strength; bilinear is a rough idealisation
CONCRETE_C30 = Material(
    name="C30/37 Concrete",
    E=33e9,
    nu=0.2,
    rho=2400.0,
    fy=30e6,
    fu=37e6,
    alpha=10e-6,
    type='concrete',
)

# Douglas Fir (common structural timber)
DOUGLAS_FIR = Material(
    name="Douglas Fir",
    E=12e9,
    nu=0.35,
    G=0.75e9,
    rho=550.0,
    fy=24e6,
    fu=40e6,
    alpha=4e-6,
    type='timber',
)

ALUMINUM_6061 = Material(
    name="6061-T6 Aluminum",
    E=69e9,
    nu=0.33,
    rho=2700.0,
    fy=240e6,
    fu=290e6,
    alpha=23e-6,
    type='aluminum',
)

DEFAULT_MATERIAL = STEEL_S355

MATERIALS = {
    'S275': STEEL_S275,
    'S355': STEEL_S355,
    'C30': CONCRETE_C30,
    'DouglasFir': DOUGLAS_FIR,
    'Al6061': ALUMINUM_6061,
}


# ============================================================================
# SECTION CONSTRUCTORS
# ============================================================================

def rectangular_torsion_constant(b: float, h: float) -> float:
    """
    Saint-Venant torsion constant of a solid rectangle.

    J ≈ β·a·t³ with a the long side, t the short side and
    β = 1/3 - 0.21·(t/a)·(1 - (t/a)⁴/12)
    """
    a, t = max(b, h), min(b, h)
    ratio = t / a
    beta = 1.0 / 3.0 - 0.21 * ratio * (1.0 - ratio**4 / 12.0)
    return beta * a * t**3


def rectangular_section(b: float, h: float, name: str = None) -> Section:
    """
    Solid rectangle, width b along local y, depth h along local z.

    Example:
    --------
    >>> sec = rectangular_section(0.1, 0.2)
    >>> sec.Iy   # b·h³/12
    6.666...e-05
    """
    if b <= 0 or h <= 0:
        raise ValueError(f"Rectangle dimensions must be positive, got b={b}, h={h}")
    return Section(
        name=name or f"RECT {b*1000:g}x{h*1000:g}",
        A=b * h,
        Iy=b * h**3 / 12.0,
        Iz=h * b**3 / 12.0,
        J=rectangular_torsion_constant(b, h),
        Sy=b * h**2 / 6.0,
        Sz=h * b**2 / 6.0,
    )


def circular_section(d: float, name: str = None) -> Section:
    """Solid circle of diameter d."""
    if d <= 0:
        raise ValueError(f"Diameter must be positive, got {d}")
    I = math.pi * d**4 / 64.0
    S = math.pi * d**3 / 32.0
    return Section(
        name=name or f"CIRC {d*1000:g}",
        A=math.pi * d**2 / 4.0,
        Iy=I,
        Iz=I,
        J=2.0 * I,
        Sy=S,
        Sz=S,
    )


def hollow_circular_section(D: float, t: float, name: str = None) -> Section:
    """Circular hollow section (tube), outside diameter D, wall thickness t."""
    if D <= 0 or t <= 0 or 2 * t > D:
        raise ValueError(f"Invalid tube dimensions D={D}, t={t}")
    d = D - 2.0 * t
    I = math.pi * (D**4 - d**4) / 64.0
    S = I / (D / 2.0)
    return Section(
        name=name or f"CHS {D*1000:g}x{t*1000:g}",
        A=math.pi * (D**2 - d**2) / 4.0,
        Iy=I,
        Iz=I,
        J=2.0 * I,
        Sy=S,
        Sz=S,
    )


# ============================================================================
# SECTION DEFINITIONS (Timber Sections)
# ============================================================================

# Nominal sizes (2x4, 2x6) are "before planing"; properties use actual
# dimensions (e.g. 2x4 → 38x89 mm), depth along local z.

TIMBER_SECTIONS: List[Section] = [
    rectangular_section(0.038, 0.089, "2x4"),
    rectangular_section(0.038, 0.140, "2x6"),
    rectangular_section(0.038, 0.184, "2x8"),
    rectangular_section(0.038, 0.235, "2x10"),
    rectangular_section(0.038, 0.286, "2x12"),
    rectangular_section(0.089, 0.184, "4x8"),
    rectangular_section(0.089, 0.235, "4x10"),
    rectangular_section(0.089, 0.286, "4x12"),
]

STEEL_TUBES: List[Section] = [
    hollow_circular_section(0.0603, 0.004, "CHS 60.3x4"),
    hollow_circular_section(0.0889, 0.005, "CHS 88.9x5"),
    hollow_circular_section(0.1143, 0.006, "CHS 114.3x6"),
    hollow_circular_section(0.1683, 0.008, "CHS 168.3x8"),
    hollow_circular_section(0.2191, 0.010, "CHS 219.1x10"),
]
