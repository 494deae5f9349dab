"""
TEST: Portal Frame Equilibrium and Stability
============================================

This test validates that the 3D frame solver, on a fixed-base portal frame
(two columns along Z, one beam along X):
1. Does not raise SingularMatrixError (structure is stable)
2. Produces finite, nonzero drift under lateral load
3. Satisfies global equilibrium (forces AND moments balance)
4. Gives symmetric results for a symmetric load
"""

import numpy as np
import pytest

from structengine import (
    FIXED,
    AnalysisOptions,
    ElementLoad,
    Frame3D,
    FrameAnalysis,
    LoadCase,
    Material,
    Node3D,
    Section,
    StructuralModel,
)
from structengine.summary import summary_statistics

L, H = 6.0, 3.0
E = 210e9
STEEL = Material("Steel", E=E, rho=7850.0)
COLUMN = Section("Column", A=0.01, Iy=8.0e-6, Iz=8.0e-6, J=1.2e-5, Sy=1e-4, Sz=1e-4)
BEAM = Section("Beam", A=0.012, Iy=2.0e-5, Iz=5.0e-6, J=1.0e-5, Sy=2e-4, Sz=6e-5)

w = -2000.0   # UDL on the beam, global Z (N/m)
P = 5000.0    # lateral load at the left knee, global X (N)


def make_portal():
    model = StructuralModel("portal")
    model.add_node(Node3D(0, 0.0, 0.0, 0.0, restraints=FIXED))
    model.add_node(Node3D(1, 0.0, 0.0, H))
    model.add_node(Node3D(2, L, 0.0, H))
    model.add_node(Node3D(3, L, 0.0, 0.0, restraints=FIXED))
    model.add_element(Frame3D(0, 0, 1, STEEL, COLUMN, type='column'))
    model.add_element(Frame3D(1, 1, 2, STEEL, BEAM))
    model.add_element(Frame3D(2, 3, 2, STEEL, COLUMN, type='column'))

    model.add_load_case(LoadCase('G', category='dead', element_loads={
        1: ElementLoad('distributed', w, direction='z', axes='global'),
    }))
    model.add_load_case(LoadCase('W', category='wind', node_loads={1: (P, 0, 0, 0, 0, 0)}))
    model.add_load_case(LoadCase('Y', category='wind', node_loads={2: (0, P, 0, 0, 0, 0)}))
    model.add_combination('G+W', {'G': 1.0, 'W': 1.0})
    return model


def check_global_equilibrium(model, results):
    """ΣF and ΣM about the origin, with loads taken from the assembled load vector."""
    nodes = model.nodes
    loads = results.load_vector.reshape(-1, 6)
    force = np.zeros(3)
    moment = np.zeros(3)
    for k, (nid, node) in enumerate(nodes.items()):
        r = np.array(node.position)
        applied = loads[k]
        force += applied[:3]
        moment += np.cross(r, applied[:3]) + applied[3:]
        if nid in results.reactions:
            R = results.reactions[nid]
            f = np.array([R['fx'], R['fy'], R['fz']])
            m = np.array([R['mx'], R['my'], R['mz']])
            force += f
            moment += np.cross(r, f) + m
    return force, moment


def test_portal_frame_stability():
    """Lateral load gives a finite, positive sway."""
    results = FrameAnalysis(make_portal()).run_linear_static_analysis('W')

    drift = results.displacements[1]['ux']
    print(f"Knee drift: {drift * 1000:.3f} mm")
    assert np.isfinite(drift)
    assert drift > 0
    # The beam is stiff axially: both knees sway together
    assert results.displacements[2]['ux'] == pytest.approx(drift, rel=1e-2)


@pytest.mark.parametrize("case", ['G', 'W', 'Y', 'G+W'])
def test_portal_frame_equilibrium(case):
    """Test that reactions balance applied loads, forces and moments."""
    model = make_portal()
    results = FrameAnalysis(model).run_linear_static_analysis(case)

    force, moment = check_global_equilibrium(model, results)
    print(f"{case}: ΣF = {force}, ΣM = {moment}")
    assert np.allclose(force, 0.0, atol=1e-6 * max(P, abs(w) * L))
    assert np.allclose(moment, 0.0, atol=1e-6 * max(P, abs(w) * L) * L)


def test_gravity_is_symmetric():
    results = FrameAnalysis(make_portal()).run_linear_static_analysis('G')

    R0, R3 = results.reactions[0], results.reactions[3]
    assert R0['fz'] == pytest.approx(-w * L / 2, rel=1e-9)
    assert R3['fz'] == pytest.approx(-w * L / 2, rel=1e-9)
    # Mirror symmetry about midspan
    assert R0['fx'] == pytest.approx(-R3['fx'], rel=1e-9)
    assert R0['my'] == pytest.approx(-R3['my'], rel=1e-9)
    # Nothing moves out of plane
    assert results.displacements[1]['uy'] == pytest.approx(0.0, abs=1e-15)

    stats = summary_statistics(results)
    assert stats['total_vertical_reaction'] == pytest.approx(-w * L, rel=1e-9)
    assert stats['base_shear'] == pytest.approx(0.0, abs=1e-6)


def test_combination_superposes():
    model = make_portal()
    analysis = FrameAnalysis(model)
    g = analysis.run_linear_static_analysis('G')
    wind = analysis.run_linear_static_analysis('W')
    both = analysis.run_linear_static_analysis('G+W')

    np.testing.assert_allclose(
        both.displacement_vector, g.displacement_vector + wind.displacement_vector,
        rtol=1e-9, atol=1e-15,
    )


def test_out_of_plane_load():
    """
    Pushing the right knee along Y bends both columns about their weak
    plane and twists the beam; reactions still balance.
    """
    results = FrameAnalysis(make_portal()).run_linear_static_analysis('Y')

    assert results.displacements[2]['uy'] > results.displacements[1]['uy'] > 0
    total_fy = results.reactions[0]['fy'] + results.reactions[3]['fy']
    assert total_fy == pytest.approx(-P, rel=1e-9)
    # The beam carries torsion
    assert abs(results.element_forces[1]['start']['mx']) > 0


def test_penalty_matches_elimination():
    model = make_portal()
    exact = FrameAnalysis(model).run_linear_static_analysis('G+W')
    penalty = FrameAnalysis(model, AnalysisOptions(bc_method='penalty')).run_linear_static_analysis('G+W')
    assert penalty.displacements[1]['ux'] == pytest.approx(exact.displacements[1]['ux'], rel=1e-2)
    assert penalty.reactions[0]['fz'] == pytest.approx(exact.reactions[0]['fz'], rel=1e-2)
