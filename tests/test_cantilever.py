"""
TEST: 3D Cantilever Against Closed-Form Solutions
=================================================

WHAT IS THIS TEST?
------------------
A cantilever is fixed at one end and free at the other. It is the simplest
structure with a textbook answer for every load direction:

    tip force ⊥ member:  δ = P·L³ / (3·E·I)     θ = P·L² / (2·E·I)
    tip force ∥ member:  δ = P·L / (E·A)
    tip torque:          φ = T·L / (G·J)

In 3D the interesting part is WHICH I: a load along local y bends about
local z (Iz), a load along local z bends about local y (Iy). We give the
section different Iy and Iz so a mix-up cannot pass.

Cubic beam elements are exact for tip loads, so tolerances are tight.
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
    SingularMatrixError,
    StructuralModel,
)

L = 3.0
E = 210e9
G = 81e9
A = 0.01
IY = 8.0e-6
IZ = 3.0e-6
J = 5.0e-6
P = 1000.0

STEEL = Material("Steel", E=E, G=G, rho=7850.0)
SECTION = Section("Test", A=A, Iy=IY, Iz=IZ, J=J)


def make_cantilever(tip, loads, n_elements=1, section=SECTION):
    """Cantilever from the origin to `tip`, fixed at node 0, `loads` at the free end."""
    model = StructuralModel("cantilever")
    tip = np.asarray(tip, dtype=float)
    for k in range(n_elements + 1):
        x, y, z = tip * k / n_elements
        if k == 0:
            model.add_node(Node3D(k, x, y, z, restraints=FIXED))
        elif k == n_elements:
            model.add_node(Node3D(k, x, y, z, loads=loads))
        else:
            model.add_node(Node3D(k, x, y, z))
    for k in range(n_elements):
        model.add_element(Frame3D(k, k, k + 1, STEEL, section))
    return model


class TestHorizontalCantilever:
    """Beam along global X: local y = global Y, local z = global Z."""

    def test_tip_load_in_y_uses_iz(self):
        model = make_cantilever((L, 0, 0), (0, P, 0, 0, 0, 0))
        results = FrameAnalysis(model).run_linear_static_analysis()

        tip = results.displacements[1]
        print(f"uy = {tip['uy']:.6e} m, expected {P * L**3 / (3 * E * IZ):.6e} m")

        assert np.isclose(tip['uy'], P * L**3 / (3 * E * IZ), rtol=1e-9)
        assert np.isclose(tip['rz'], P * L**2 / (2 * E * IZ), rtol=1e-9)
        assert abs(tip['uz']) < 1e-15 and abs(tip['ux']) < 1e-15

        reaction = results.reactions[0]
        assert np.isclose(reaction['fy'], -P, rtol=1e-9)
        assert np.isclose(reaction['mz'], -P * L, rtol=1e-9)

        start = results.element_forces[0]['start']
        end = results.element_forces[0]['end']
        assert np.isclose(start['fy'], -P, rtol=1e-9)
        assert np.isclose(start['mz'], -P * L, rtol=1e-9)
        assert np.isclose(end['fy'], P, rtol=1e-9)
        assert abs(end['mz']) < 1e-6

    def test_tip_load_in_z_uses_iy(self):
        model = make_cantilever((L, 0, 0), (0, 0, P, 0, 0, 0))
        results = FrameAnalysis(model).run_linear_static_analysis()

        tip = results.displacements[1]
        assert np.isclose(tip['uz'], P * L**3 / (3 * E * IY), rtol=1e-9)
        # θy = -dw/dx: an upward tip deflection rotates the tip negatively about y
        assert np.isclose(tip['ry'], -P * L**2 / (2 * E * IY), rtol=1e-9)

        reaction = results.reactions[0]
        assert np.isclose(reaction['fz'], -P, rtol=1e-9)
        assert np.isclose(reaction['my'], P * L, rtol=1e-9)

    def test_axial_load(self):
        model = make_cantilever((L, 0, 0), (P, 0, 0, 0, 0, 0))
        results = FrameAnalysis(model).run_linear_static_analysis()

        assert np.isclose(results.displacements[1]['ux'], P * L / (E * A), rtol=1e-9)
        assert np.isclose(results.element_stresses[0]['axial'], P / A, rtol=1e-9)

    def test_torsion(self):
        T = 500.0
        model = make_cantilever((L, 0, 0), (0, 0, 0, T, 0, 0))
        results = FrameAnalysis(model).run_linear_static_analysis()

        assert np.isclose(results.displacements[1]['rx'], T * L / (G * J), rtol=1e-9)
        assert np.isclose(results.reactions[0]['mx'], -T, rtol=1e-9)

    def test_subdivided_matches_single_element(self):
        single = FrameAnalysis(make_cantilever((L, 0, 0), (0, P, -P, 0, 0, 0))).run_linear_static_analysis()
        split = FrameAnalysis(
            make_cantilever((L, 0, 0), (0, P, -P, 0, 0, 0), n_elements=6)
        ).run_linear_static_analysis()

        for name in ('uy', 'uz', 'ry', 'rz'):
            assert np.isclose(split.displacements[6][name], single.displacements[1][name], rtol=1e-8)


class TestOrientedCantilevers:

    def test_vertical_column_uses_fallback_axes(self):
        """
        Column along global Z: local y = global Y, local z = x × y = -global X.

        A load in global X is a local z load (bends about local y, Iy);
        a load in global Y is a local y load (bends about local z, Iz).
        """
        model = make_cantilever((0, 0, L), (P, P, 0, 0, 0, 0))
        results = FrameAnalysis(model).run_linear_static_analysis()

        top = results.displacements[1]
        assert np.isclose(top['ux'], P * L**3 / (3 * E * IY), rtol=1e-9)
        assert np.isclose(top['uy'], P * L**3 / (3 * E * IZ), rtol=1e-9)

    def test_inclined_member(self):
        """
        Round section (Iy = Iz) along an arbitrary direction: every load
        perpendicular to the member sees the same P·L³/(3EI).
        """
        I = 6.0e-6
        round_section = Section("Round", A=A, Iy=I, Iz=I, J=2 * I)
        axis = np.array([2.0, 1.0, 2.0]) / 3.0
        perpendicular = np.cross(axis, [0.0, 0.0, 1.0])
        perpendicular /= np.linalg.norm(perpendicular)

        load = tuple(P * perpendicular) + (0.0, 0.0, 0.0)
        model = make_cantilever(L * axis, load, n_elements=3, section=round_section)
        results = FrameAnalysis(model).run_linear_static_analysis()

        tip = results.displacements[3]
        u = np.array([tip['ux'], tip['uy'], tip['uz']])

        assert np.isclose(u @ perpendicular, P * L**3 / (3 * E * I), rtol=1e-8)
        assert abs(u @ axis) < 1e-12

        # Reactions balance the load
        R = results.reactions[0]
        np.testing.assert_allclose([R['fx'], R['fy'], R['fz']], -P * perpendicular, atol=1e-8)

    def test_inclined_axial_load(self):
        axis = np.array([0.0, 3.0, 4.0]) / 5.0
        load = tuple(P * axis) + (0.0, 0.0, 0.0)
        results = FrameAnalysis(make_cantilever(L * axis, load)).run_linear_static_analysis()

        tip = results.displacements[1]
        u = np.array([tip['ux'], tip['uy'], tip['uz']])
        np.testing.assert_allclose(u, axis * P * L / (E * A), rtol=1e-8, atol=1e-15)
        assert np.isclose(results.element_forces[0]['end']['fx'], P, rtol=1e-9)


class TestUnstableCantilever:

    def test_no_supports_is_singular(self):
        model = StructuralModel("floating")
        model.add_node(Node3D(0, 0.0, 0.0, 0.0))
        model.add_node(Node3D(1, L, 0.0, 0.0, loads=(0, P, 0, 0, 0, 0)))
        model.add_element(Frame3D(0, 0, 1, STEEL, SECTION))

        analysis = FrameAnalysis(model)
        with pytest.raises(SingularMatrixError):
            analysis.run_linear_static_analysis()

    def test_missing_torsion_stiffness_names_the_dof(self):
        """
        J = 0: nothing resists twisting the free end, so the tip rx row of
        the reduced stiffness matrix is all zeros.
        """
        no_torsion = Section("Open", A=A, Iy=IY, Iz=IZ, J=0.0)
        model = make_cantilever((L, 0, 0), (0, P, 0, 0, 0, 0), section=no_torsion)

        with pytest.raises(SingularMatrixError) as info:
            FrameAnalysis(model).run_linear_static_analysis()

        print(f"Error: {info.value}")
        assert info.value.kind == 'mechanism'
        assert info.value.label == 'node 1 rx'
        assert 'node 1 rx' in str(info.value)
