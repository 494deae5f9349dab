"""
TEST: Linear Eigen-Buckling
===========================

WHAT IS THIS TEST?
------------------
A slender column under compression suddenly bows sideways once the load
reaches the critical (Euler) load. For a column fixed at the base and free
at the top (a flagpole):

    P_cr = π²·E·I / (2L)²

The solver finds the multiplier λ on the applied load at which

    (K + λ·Kg)·φ = 0

has a non-trivial solution. We check λ·P against Euler, the mode shape,
and that a column in TENSION never buckles.
"""

import numpy as np
import pytest

from structengine import (
    FIXED,
    Frame3D,
    FrameAnalysis,
    Material,
    Node3D,
    Section,
    StructuralModel,
    run_buckling_analysis,
)
from structengine.kernel.buckling import (
    critical_buckling_factor,
    euler_buckling_load,
    euler_buckling_stress,
    member_slenderness,
)

H = 3.0
E = 210e9
A = 2e-3
I = 4e-6
N_ELEMENTS = 8

STEEL = Material("Steel", E=E, rho=7850.0)
TUBE = Section("Tube", A=A, Iy=I, Iz=I, J=8e-6)


def make_column(top_load, section=TUBE):
    model = StructuralModel("flagpole")
    for k in range(N_ELEMENTS + 1):
        restraints = FIXED if k == 0 else (False,) * 6
        loads = (0.0, 0.0, top_load, 0.0, 0.0, 0.0) if k == N_ELEMENTS else (0.0,) * 6
        model.add_node(Node3D(k, 0.0, 0.0, H * k / N_ELEMENTS, restraints=restraints, loads=loads))
    for k in range(N_ELEMENTS):
        model.add_element(Frame3D(k, k, k + 1, STEEL, section, type='column'))
    return model


class TestColumnBuckling:

    def test_cantilever_column_matches_euler(self):
        P = 10e3
        results = FrameAnalysis(make_column(-P)).run_buckling_analysis()
        buckling = results.buckling

        expected = euler_buckling_load(E, I, H, k=2.0)
        print(f"P_cr = {buckling.critical_load:.1f} N (Euler {expected:.1f} N), "
              f"factor {buckling.critical_load_factor:.3f}")

        assert results.analysis_type == 'buckling'
        assert np.isclose(buckling.critical_load, expected, rtol=0.01)
        assert np.isclose(buckling.critical_load_factor, expected / P, rtol=0.01)
        assert buckling.is_stable

    def test_axial_forces_are_compressive(self):
        P = 10e3
        buckling = run_buckling_analysis(make_column(-P)).buckling
        for N in buckling.axial_forces.values():
            assert N == pytest.approx(-P, rel=1e-9)

    def test_mode_shape_sways_most_at_the_top(self):
        buckling = run_buckling_analysis(make_column(-10e3)).buckling

        assert buckling.mode_vector is not None
        np.testing.assert_array_equal(buckling.mode_shape[0], np.zeros(6))

        sway = [np.hypot(buckling.mode_shape[k][0], buckling.mode_shape[k][1]) for k in range(N_ELEMENTS + 1)]
        assert np.argmax(sway) == N_ELEMENTS
        assert np.all(np.diff(sway) >= -1e-12)
        # Normalised so the largest component is 1
        assert np.max(np.abs(buckling.mode_vector)) == pytest.approx(1.0)

    def test_overloaded_column_is_unstable(self):
        expected = euler_buckling_load(E, I, H, k=2.0)
        buckling = run_buckling_analysis(make_column(-2.0 * expected)).buckling
        assert buckling.critical_load_factor == pytest.approx(0.5, rel=0.01)
        assert not buckling.is_stable

    def test_tension_never_buckles(self):
        buckling = run_buckling_analysis(make_column(10e3)).buckling
        assert buckling.critical_load_factor == float('inf')
        assert buckling.critical_load == float('inf')
        assert buckling.mode_vector is None
        assert buckling.mode_shape == {}
        assert buckling.is_stable

    def test_member_slenderness_is_reported(self):
        """Each 0.375 m segment: λ = L/r with r = sqrt(I/A), σ_cr = π²E/λ²."""
        buckling = run_buckling_analysis(make_column(-10e3)).buckling

        lam = (H / N_ELEMENTS) / np.sqrt(I / A)
        assert set(buckling.slenderness) == set(range(N_ELEMENTS))
        for k in range(N_ELEMENTS):
            assert buckling.slenderness[k] == pytest.approx(lam)
            assert buckling.euler_stresses[k] == pytest.approx(np.pi**2 * E / lam**2)
        assert buckling.max_slenderness == pytest.approx(lam)

    def test_slenderness_uses_the_weak_axis(self):
        plate = Section("Plate", A=A, Iy=I, Iz=25 * I, J=8e-6)
        buckling = run_buckling_analysis(make_column(-10e3, section=plate)).buckling
        assert buckling.slenderness[0] == pytest.approx(member_slenderness(H / N_ELEMENTS, A, I))


class TestBucklingHelpers:

    def test_euler_load(self):
        assert euler_buckling_load(E, I, 2.0) == pytest.approx(np.pi**2 * E * I / 4.0)
        assert euler_buckling_load(E, I, 2.0, k=0.5) == pytest.approx(np.pi**2 * E * I)

    def test_slenderness(self):
        assert member_slenderness(4.0, 0.01, 1e-4) == pytest.approx(40.0)
        assert member_slenderness(4.0, 0.0, 1e-4) == float('inf')
        assert euler_buckling_stress(E, 100.0) == pytest.approx(np.pi**2 * E / 1e4)
        assert euler_buckling_stress(E, 0.0) == float('inf')

    def test_no_geometric_stiffness(self):
        K = np.eye(4)
        factor, mode, free = critical_buckling_factor(K, np.zeros((4, 4)), [0])
        assert factor == float('inf')
        assert len(mode) == 0
        assert list(free) == [1, 2, 3]
