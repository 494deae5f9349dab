#!/usr/bin/env python3
"""
RUN_CANTILEVER_3D: Static, Modal and Buckling Analysis of a Cantilever
======================================================================

This demo runs every analysis driver on one simple structure whose
answers are in every textbook:
1. Linear static: tip deflection δ = P·L³ / (3·E·I)
2. Modal: first natural frequency f₁ = (1.8751²/2π)·√(E·I / (ρ·A·L⁴))
3. Buckling: flagpole Euler load P_cr = π²·E·I / (2L)²
4. Summary statistics and pandas tables

Run with:
    python demos/run_cantilever_3d.py
"""

import sys
from pathlib import Path

import numpy as np

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from structengine import FIXED, FrameAnalysis, LoadCase, Node3D, Frame3D, StructuralModel
from structengine.catalog import STEEL_S355, hollow_circular_section
from structengine.kernel.buckling import euler_buckling_load
from structengine.summary import element_forces_frame, modal_frame, summary_statistics


def print_header(text: str):
    """Print a formatted section header."""
    print("\n" + "=" * 60)
    print(f"  {text}")
    print("=" * 60)


def main():
    print_header("3D CANTILEVER: STATIC, MODAL, BUCKLING")

    # =========================================================================
    # STEP 1: BUILD THE MODEL
    # =========================================================================
    print_header("STEP 1: Build the Model")

    L = 4.0
    n_elements = 10
    section = hollow_circular_section(0.1143, 0.006)
    material = STEEL_S355

    print(f"\nLength: {L} m, {n_elements} elements along global Z (a vertical flagpole)")
    print(f"Section: {section.name}, A = {section.A * 1e4:.2f} cm², I = {section.Iy * 1e8:.1f} cm⁴")
    print(f"Material: {material.name}, E = {material.E / 1e9:.0f} GPa")

    model = StructuralModel("flagpole")
    for k in range(n_elements + 1):
        restraints = FIXED if k == 0 else (False,) * 6
        model.add_node(Node3D(k, 0.0, 0.0, L * k / n_elements, restraints=restraints))
    for k in range(n_elements):
        model.add_element(Frame3D(k, k, k + 1, material, section, type='column'))

    P_lateral = 5e3
    P_axial = 50e3
    tip = n_elements
    model.add_load_case(LoadCase('lateral', category='wind', node_loads={tip: (P_lateral, 0, 0, 0, 0, 0)}))
    model.add_load_case(LoadCase('axial', category='dead', node_loads={tip: (0, 0, -P_axial, 0, 0, 0)}))
    print(f"\n{model}")

    analysis = FrameAnalysis(model)

    # =========================================================================
    # STEP 2: LINEAR STATIC
    # =========================================================================
    print_header("STEP 2: Linear Static (lateral tip load)")

    results = analysis.run_linear_static_analysis('lateral')
    ux = results.displacements[tip]['ux']
    expected = P_lateral * L**3 / (3 * material.E * section.Iy)
    print(f"\n  Tip deflection:  {ux * 1000:8.3f} mm")
    print(f"  Beam theory:     {expected * 1000:8.3f} mm")
    print(f"  Base moment:     {results.reactions[0]['my'] / 1e3:8.3f} kN·m (P·L = {P_lateral * L / 1e3:.3f})")

    stats = summary_statistics(results)
    print(f"\n  Max von Mises stress: {stats['max_von_mises'] / 1e6:.1f} MPa in element {stats['critical_element']}")
    print(f"  Equilibrium error:    {stats['equilibrium_error']:.2e}")

    df = element_forces_frame(results)
    print("\nEnd forces of the two lowest elements (kN, kN·m):")
    print((df[df['element'].isin([0, 1])].set_index(['element', 'end']) / 1e3).round(3).to_string())

    # =========================================================================
    # STEP 3: MODAL
    # =========================================================================
    print_header("STEP 3: Modal Analysis")

    modal = analysis.run_modal_analysis(num_modes=6).modal
    f1_theory = 1.8751**2 / (2 * np.pi) * np.sqrt(
        material.E * section.Iy / (material.rho * section.A * L**4)
    )
    print(f"\n  f₁ = {modal.frequencies[0]:.3f} Hz (Euler–Bernoulli {f1_theory:.3f} Hz)")
    print(f"  T₁ = {modal.fundamental_period:.4f} s")
    print("\n" + modal_frame(modal)[['frequency_hz', 'period_s', 'cumulative_mass_x', 'cumulative_mass_y']]
          .round(4).to_string())

    # =========================================================================
    # STEP 4: BUCKLING
    # =========================================================================
    print_header("STEP 4: Buckling (axial tip load)")

    buckling = analysis.run_buckling_analysis('axial').buckling
    P_euler = euler_buckling_load(material.E, section.Iy, L, k=2.0)
    print(f"\n  Critical load factor: {buckling.critical_load_factor:.3f}")
    print(f"  Critical load:        {buckling.critical_load / 1e3:.2f} kN")
    print(f"  Euler (K = 2):        {P_euler / 1e3:.2f} kN")
    print(f"  Stable under {P_axial / 1e3:.0f} kN: {buckling.is_stable}")

    print_header("DONE")


if __name__ == "__main__":
    main()
