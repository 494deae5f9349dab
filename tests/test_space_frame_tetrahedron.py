# tests/test_space_frame_tetrahedron.py
"""
TETRAHEDRON TEST: Validation of 3D Frame Analysis
=================================================

This is THE classic validation test for 3D structural analysis.
A regular tetrahedron with:
- 4 nodes (3 at base, 1 at apex)
- 6 round members (connecting all nodes)
- Pinned base (translations held, rotations free)
- Vertical load at apex

Expected behavior:
1. SYMMETRY: each base node carries exactly P/3 vertically
2. EQUILIBRIUM: ΣReactions = ΣApplied loads
3. FORCES: the three legs carry the same compression (by symmetry); the
   base edges join fixed points and carry no axial force

A round section makes every member's stiffness independent of its local
axis orientation, so the 3-fold symmetry is exact.
"""

import numpy as np
import pytest

from structengine import PINNED, AnalysisOptions, Frame3D, FrameAnalysis, Node3D, StructuralModel
from structengine.catalog import STEEL_S355, circular_section

P = 30e3
RADIUS = 1.0
HEIGHT = 1.5
ROD = circular_section(0.04)
LEGS = (3, 4, 5)
BASE_EDGES = (0, 1, 2)


def make_regular_tetrahedron(base_radius: float = RADIUS, height: float = HEIGHT):
    """
    Create a regular tetrahedron with base in the XY plane and apex above center.

    Layout:
        - Node 0, 1, 2: base triangle at z=0, 120° apart on a circle
        - Node 3: apex at (0, 0, height), loaded with -P in Z
        - Elements 0-2: base edges, 3-5: legs to the apex
    """
    model = StructuralModel("tetrahedron")
    angles = [0, 2 * np.pi / 3, 4 * np.pi / 3]
    for i, angle in enumerate(angles):
        model.add_node(Node3D(
            i, base_radius * np.cos(angle), base_radius * np.sin(angle), 0.0, restraints=PINNED,
        ))
    model.add_node(Node3D(3, 0.0, 0.0, height, loads=(0, 0, -P, 0, 0, 0)))

    for k, (a, b) in enumerate([(0, 1), (1, 2), (2, 0), (0, 3), (1, 3), (2, 3)]):
        model.add_element(Frame3D(k, a, b, STEEL_S355, ROD))
    return model


def test_tetrahedron_symmetric_reactions():
    results = FrameAnalysis(make_regular_tetrahedron()).run_linear_static_analysis()

    for i in range(3):
        print(f"Node {i}: Rz = {results.reactions[i]['fz']:.3f} N")
        assert results.reactions[i]['fz'] == pytest.approx(P / 3, rel=1e-7)

    # Pinned supports carry no moment
    for i in range(3):
        assert results.reactions[i]['mx'] == 0.0
        assert results.reactions[i]['my'] == 0.0


def test_tetrahedron_equilibrium():
    results = FrameAnalysis(make_regular_tetrahedron()).run_linear_static_analysis()

    total = np.zeros(3)
    for r in results.reactions.values():
        total += [r['fx'], r['fy'], r['fz']]

    np.testing.assert_allclose(total, [0.0, 0.0, P], atol=1e-6 * P)


def test_tetrahedron_member_forces():
    results = FrameAnalysis(make_regular_tetrahedron()).run_linear_static_analysis()

    def N(eid):
        f = results.element_forces[eid]
        return (f['end']['fx'] - f['start']['fx']) / 2.0

    legs = [N(e) for e in LEGS]
    edges = [N(e) for e in BASE_EDGES]
    print(f"Legs: {legs}\nBase edges: {edges}")

    np.testing.assert_allclose(legs, legs[0], rtol=1e-6)
    assert legs[0] < 0

    # Base nodes cannot move, so the base ring cannot stretch
    for n in edges:
        assert abs(n) < 1e-6 * P

    # Vertical component of the leg forces carries the load (bending is small)
    leg_length = np.hypot(RADIUS, HEIGHT)
    assert -3 * legs[0] * HEIGHT / leg_length == pytest.approx(P, rel=0.01)

    # Apex moves straight down
    apex = results.displacements[3]
    assert apex['uz'] < 0
    assert abs(apex['ux']) < 1e-6 * abs(apex['uz'])
    assert abs(apex['uy']) < 1e-6 * abs(apex['uz'])


@pytest.mark.parametrize("linear_solver, rtol", [("sparse", 1e-9), ("cg", 1e-4)])
def test_sparse_solvers_match_dense(linear_solver, rtol):
    model = make_regular_tetrahedron()
    dense = FrameAnalysis(model).run_linear_static_analysis()
    other = FrameAnalysis(model, AnalysisOptions(linear_solver=linear_solver)).run_linear_static_analysis()

    np.testing.assert_allclose(
        other.displacement_vector, dense.displacement_vector,
        rtol=rtol, atol=rtol * np.max(np.abs(dense.displacement_vector)),
    )
    assert other.reactions[0]['fz'] == pytest.approx(P / 3, rel=rtol)
