"""
TEST: Global Invariants of the Assembled System
===============================================

WHAT IS THIS TEST?
------------------
Properties that hold for ANY correct linear frame analysis, checked on a
deliberately irregular space frame (inclined members, a vertical column,
loads in every direction, element loads):

1. K is symmetric
2. Global equilibrium: Σ reactions + Σ applied loads = 0 (forces AND moments)
3. Both boundary-condition methods (elimination, penalty) agree
4. Running the same analysis twice gives identical results, and the
   analysis never mutates the model
"""

import numpy as np
import pytest

from structengine import (
    FIXED,
    PINNED,
    AnalysisOptions,
    AnalysisState,
    ElementLoad,
    Frame3D,
    FrameAnalysis,
    LoadCase,
    Material,
    ModelError,
    Node3D,
    Section,
    StructuralModel,
)
from structengine.v3d.assembly import assemble_stiffness_matrix, build_dof_manager

STEEL = Material("Steel", E=210e9, nu=0.3, rho=7850.0)
SECTION = Section("Box", A=0.01, Iy=8e-6, Iz=5e-6, J=1e-5, Sy=1e-4, Sz=8e-5)


def make_space_frame():
    """
    Irregular four-legged frame:

        nodes 0-3: supports (two fixed, two pinned) at different heights
        nodes 4-7: a skewed top ring
        members: four legs (one vertical), four ring beams, one diagonal
    """
    model = StructuralModel("space frame")
    model.add_node(Node3D(0, 0.0, 0.0, 0.0, restraints=FIXED))
    model.add_node(Node3D(1, 5.0, 0.0, 0.5, restraints=PINNED))
    model.add_node(Node3D(2, 5.5, 4.0, 0.0, restraints=FIXED))
    model.add_node(Node3D(3, 0.0, 4.0, -0.3, restraints=PINNED))
    model.add_node(Node3D(4, 0.0, 0.0, 3.0, loads=(2e3, 0, -5e3, 0, 0, 0)))
    model.add_node(Node3D(5, 4.5, 0.5, 3.2))
    model.add_node(Node3D(6, 5.0, 3.5, 3.0, loads=(0, -1e3, 0, 0, 300.0, 0)))
    model.add_node(Node3D(7, 0.5, 4.0, 3.4))

    for k in range(4):
        model.add_element(Frame3D(k, k, k + 4, STEEL, SECTION, type='column'))
    for k in range(4):
        model.add_element(Frame3D(4 + k, 4 + k, 4 + (k + 1) % 4, STEEL, SECTION))
    model.add_element(Frame3D(8, 0, 6, STEEL, SECTION, type='truss'))

    model.add_load_case(LoadCase(
        'D', name='Dead', category='dead',
        element_loads={
            4: ElementLoad('distributed', -4e3, direction='z', axes='global'),
            5: [ElementLoad('point', 2e3, position=0.3, direction='y'),
                ElementLoad('moment', 500.0, position=0.6, direction='z')],
            7: ElementLoad('distributed', 1.5e3, direction='x', axes='global'),
        },
    ))
    return model


def applied_resultant(model, results):
    """Σ forces and Σ moments about the origin of the global load vector."""
    F = results.load_vector.reshape(-1, 6)
    force = np.zeros(3)
    moment = np.zeros(3)
    for k, node in enumerate(model.nodes.values()):
        force += F[k, :3]
        moment += F[k, 3:] + np.cross(node.position, F[k, :3])
    return force, moment


def reaction_resultant(model, results):
    force = np.zeros(3)
    moment = np.zeros(3)
    for node_id, r in results.reactions.items():
        f = np.array([r['fx'], r['fy'], r['fz']])
        m = np.array([r['mx'], r['my'], r['mz']])
        force += f
        moment += m + np.cross(model.node(node_id).position, f)
    return force, moment


class TestStiffnessMatrix:

    def test_global_stiffness_is_symmetric(self):
        model = make_space_frame()
        K = assemble_stiffness_matrix(model, build_dof_manager(model))
        assert K.shape == (48, 48)
        np.testing.assert_allclose(K, K.T, rtol=1e-10, atol=1e-5)


class TestEquilibrium:

    @pytest.mark.parametrize("bc_method", ["elimination", "penalty"])
    def test_forces_and_moments_balance(self, bc_method):
        model = make_space_frame()
        results = FrameAnalysis(model, AnalysisOptions(bc_method=bc_method)).run_linear_static_analysis('D')

        F_app, M_app = applied_resultant(model, results)
        F_rea, M_rea = reaction_resultant(model, results)

        print(f"[{bc_method}] ΣF applied {F_app}, ΣR {F_rea}")
        scale = np.linalg.norm(F_app)
        assert np.linalg.norm(F_app + F_rea) < 1e-6 * scale
        assert np.linalg.norm(M_app + M_rea) < 1e-6 * scale * 5.0

    def test_element_load_total_reaches_supports(self):
        """The global UDL on ring beam 4 (node 4 → 5) adds w·L to the vertical reactions."""
        model = make_space_frame()
        results = FrameAnalysis(model).run_linear_static_analysis('D')
        F_app, _ = applied_resultant(model, results)

        L4 = model.element_length(model.element(4))
        assert np.isclose(F_app[2], -5e3 - 4e3 * L4, rtol=1e-9)

    def test_penalty_matches_elimination(self):
        model = make_space_frame()
        exact = FrameAnalysis(model).run_linear_static_analysis('D')
        penalty = FrameAnalysis(model, AnalysisOptions(bc_method='penalty')).run_linear_static_analysis('D')

        d_exact = exact.displacement_vector
        d_penalty = penalty.displacement_vector
        assert np.linalg.norm(d_penalty - d_exact) < 1e-2 * np.linalg.norm(d_exact)

    def test_member_end_forces_balance(self):
        """Each member with no element load: end forces are equal and opposite."""
        model = make_space_frame()
        results = FrameAnalysis(model).run_linear_static_analysis('D')

        for eid in (0, 1, 2, 3, 6, 8):
            start = results.element_forces[eid]['start']
            end = results.element_forces[eid]['end']
            for name in ('fx', 'fy', 'fz', 'mx'):
                assert np.isclose(start[name], -end[name], rtol=1e-6, atol=1e-6)


class TestIdempotence:

    def test_repeated_runs_are_identical(self):
        model = make_space_frame()
        analysis = FrameAnalysis(model)
        first = analysis.run_linear_static_analysis('D')
        second = analysis.run_linear_static_analysis('D')

        np.testing.assert_array_equal(first.displacement_vector, second.displacement_vector)
        assert first.reactions == second.reactions

    def test_model_is_not_mutated(self):
        model = make_space_frame()
        nodes_before = model.nodes
        cases_before = model.load_cases

        FrameAnalysis(model).run_linear_static_analysis('D')

        assert model.nodes == nodes_before
        assert model.n_elements == 9
        assert model.load_cases['D'].element_loads.keys() == cases_before['D'].element_loads.keys()

    def test_state_machine(self):
        analysis = FrameAnalysis(make_space_frame())
        assert analysis.state is AnalysisState.IDLE

        analysis.run_linear_static_analysis('D')
        assert analysis.history == [
            AnalysisState.IDLE,
            AnalysisState.ASSEMBLING,
            AnalysisState.BOUNDARY_CONDITIONS_APPLIED,
            AnalysisState.SOLVING,
            AnalysisState.RECOVERING_FORCES,
            AnalysisState.DONE,
        ]

    def test_failed_run_ends_in_failed_state(self):
        analysis = FrameAnalysis(make_space_frame())
        with pytest.raises(ModelError):
            analysis.run_linear_static_analysis('missing')
        assert analysis.state is AnalysisState.FAILED
