"""
TEST: Structural Model Integrity
================================

WHAT IS THIS TEST?
------------------
StructuralModel is the container the solver trusts. Bad input has to be
stopped at the door (ModelError), and a rejected call must leave the
model exactly as it was. Analyses read a snapshot, so nothing a caller
does afterwards can reach into a run.
"""

import pytest

from structengine import (
    FIXED,
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

STEEL = Material("Steel", E=210e9, nu=0.3, rho=7850.0)
SECTION = Section("Box", A=0.01, Iy=8e-6, Iz=8e-6, J=1.2e-5)


def two_node_model():
    model = StructuralModel("two nodes")
    model.add_node(Node3D(0, 0.0, 0.0, 0.0, restraints=FIXED))
    model.add_node(Node3D(1, 3.0, 0.0, 0.0, loads=(0, 1000.0, 0, 0, 0, 0)))
    return model


class TestNodes:

    def test_restraints_and_loads_normalised(self):
        node = Node3D('A', 1, 2, 3, restraints=[1, 0, 1, 0, 0, 0], loads=[1, 2, 3, 4, 5, 6])
        assert node.restraints == (True, False, True, False, False, False)
        assert node.loads == (1.0, 2.0, 3.0, 4.0, 5.0, 6.0)
        assert node.position == (1, 2, 3)
        assert node.is_support

    def test_wrong_component_count(self):
        with pytest.raises(ModelError):
            Node3D(0, 0, 0, 0, restraints=(True, True, True))
        with pytest.raises(ModelError):
            Node3D(0, 0, 0, 0, loads=(0, 0, -1))

    def test_duplicate_node(self):
        model = two_node_model()
        with pytest.raises(ModelError):
            model.add_node(Node3D(1, 9.0, 9.0, 9.0))
        assert model.node(1).x == 3.0

    def test_non_finite_coordinates(self):
        model = StructuralModel()
        with pytest.raises(ModelError):
            model.add_node(Node3D(0, float('nan'), 0.0, 0.0))
        assert model.n_nodes == 0


class TestElements:

    def test_missing_node_leaves_model_unchanged(self):
        model = two_node_model()
        model.add_element(Frame3D(0, 0, 1, STEEL, SECTION))

        with pytest.raises(ModelError, match="missing node"):
            model.add_element(Frame3D(1, 1, 42, STEEL, SECTION))

        assert model.n_elements == 1
        assert list(model.elements) == [0]

    def test_duplicate_element(self):
        model = two_node_model()
        model.add_element(Frame3D(0, 0, 1, STEEL, SECTION))
        with pytest.raises(ModelError):
            model.add_element(Frame3D(0, 1, 0, STEEL, SECTION))

    def test_self_reference(self):
        model = two_node_model()
        with pytest.raises(ModelError):
            model.add_element(Frame3D(0, 1, 1, STEEL, SECTION))

    def test_zero_length(self):
        model = two_node_model()
        model.add_node(Node3D(2, 3.0, 0.0, 0.0))
        with pytest.raises(ModelError, match="zero length"):
            model.add_element(Frame3D(0, 1, 2, STEEL, SECTION))
        assert model.n_elements == 0

    def test_invalid_properties(self):
        model = two_node_model()
        bad_cases = [
            Frame3D(0, 0, 1, Material("Void", E=0.0), SECTION),
            Frame3D(0, 0, 1, Material("Negative rho", E=1e9, rho=-1.0), SECTION),
            Frame3D(0, 0, 1, STEEL, Section("No area", A=0.0, Iy=1e-6, Iz=1e-6, J=1e-6)),
            Frame3D(0, 0, 1, STEEL, Section("Bad I", A=0.01, Iy=-1e-6, Iz=1e-6, J=1e-6)),
            Frame3D(0, 0, 1, STEEL, SECTION, type='spring'),
        ]
        for element in bad_cases:
            with pytest.raises(ModelError):
                model.add_element(element)
        assert model.n_elements == 0

    def test_material_and_section_defaults(self):
        assert STEEL.G == pytest.approx(210e9 / 2.6)
        assert SECTION.Ix == pytest.approx(16e-6)
        assert SECTION.ry == pytest.approx((8e-6 / 0.01) ** 0.5)

    def test_element_length(self):
        model = two_node_model()
        element = model.add_element(Frame3D(0, 0, 1, STEEL, SECTION))
        assert model.element_length(element) == pytest.approx(3.0)


class TestLoadCases:

    def test_unknown_references(self):
        model = two_node_model()
        model.add_element(Frame3D(0, 0, 1, STEEL, SECTION))

        with pytest.raises(ModelError):
            model.add_load_case(LoadCase('L1', node_loads={7: (0, 0, -1, 0, 0, 0)}))
        with pytest.raises(ModelError):
            model.add_load_case(LoadCase('L2', element_loads={5: ElementLoad('distributed', -1.0)}))
        assert model.load_cases == {}

    def test_element_load_validation(self):
        with pytest.raises(ModelError):
            ElementLoad('snow', 1.0)
        with pytest.raises(ModelError):
            ElementLoad('point', 1.0, position=1.5)
        with pytest.raises(ModelError):
            ElementLoad('distributed', 1.0, direction='w')
        with pytest.raises(ModelError):
            ElementLoad('distributed', 1.0, axes='polar')
        with pytest.raises(ModelError):
            LoadCase('X', category='hurricane')

    def test_single_element_load_is_wrapped(self):
        case = LoadCase('D', element_loads={0: ElementLoad('distributed', -5.0)})
        assert isinstance(case.element_loads[0], list)
        assert len(case.element_loads[0]) == 1

    def test_node_load_override(self):
        model = two_node_model()
        case = LoadCase('W', node_loads={1: (5.0, 0, 0, 0, 0, 0)})
        assert case.node_load(model.node(1)) == (5.0, 0.0, 0.0, 0.0, 0.0, 0.0)
        assert case.node_load(model.node(0)) == (0.0,) * 6

    def test_combination(self):
        model = two_node_model()
        model.add_element(Frame3D(0, 0, 1, STEEL, SECTION))
        model.add_load_case(LoadCase('D', node_loads={1: (0, 0, -10.0, 0, 0, 0)},
                                     element_loads={0: ElementLoad('distributed', -2.0, direction='z')}))
        model.add_load_case(LoadCase('L', factor=2.0, node_loads={1: (0, 0, -5.0, 0, 0, 0)}))

        combo = model.add_combination('ULS', {'D': 1.35, 'L': 1.5})

        assert combo.category == 'combination'
        assert combo.node_loads[1][2] == pytest.approx(1.35 * -10.0 + 1.5 * 2.0 * -5.0)
        assert combo.element_loads[0][0].value == pytest.approx(1.35 * -2.0)
        assert 'ULS' in model.load_cases

    def test_combination_unknown_case(self):
        model = two_node_model()
        with pytest.raises(ModelError):
            model.add_combination('C', {'missing': 1.0})
        with pytest.raises(ModelError):
            model.add_combination('C', {})


class TestOwnership:

    def test_returned_load_case_is_a_copy(self):
        model = two_node_model()
        model.add_load_case(LoadCase('D', node_loads={1: (0, 0, -10.0, 0, 0, 0)}))

        copy_ = model.load_case('D')
        copy_.node_loads[1] = (0, 0, -999.0, 0, 0, 0)
        copy_.factor = 100.0

        assert model.load_case('D').node_loads[1][2] == -10.0
        assert model.load_case('D').factor == 1.0

    def test_element_table_is_a_copy(self):
        model = two_node_model()
        model.add_element(Frame3D(0, 0, 1, STEEL, SECTION))
        table = model.elements
        table.clear()
        assert model.n_elements == 1

    def test_snapshot_is_independent(self):
        model = two_node_model()
        model.add_element(Frame3D(0, 0, 1, STEEL, SECTION))
        snap = model.snapshot()

        model.add_node(Node3D(2, 6.0, 0.0, 0.0))
        model.add_element(Frame3D(1, 1, 2, STEEL, SECTION))

        assert snap.n_nodes == 2
        assert snap.n_elements == 1

    def test_unknown_lookups(self):
        model = two_node_model()
        with pytest.raises(ModelError):
            model.node(99)
        with pytest.raises(ModelError):
            model.element(99)
        with pytest.raises(ModelError):
            model.load_case('nope')


class TestValidation:

    def test_empty_model(self):
        with pytest.raises(ModelError):
            StructuralModel().validate()

    def test_single_node_without_elements(self):
        model = StructuralModel()
        model.add_node(Node3D(0, 0.0, 0.0, 0.0))
        with pytest.raises(ModelError):
            model.validate()
        with pytest.raises(ModelError):
            FrameAnalysis(model).run_linear_static_analysis()

    def test_unknown_load_case_in_analysis(self):
        model = two_node_model()
        model.add_element(Frame3D(0, 0, 1, STEEL, SECTION))
        with pytest.raises(ModelError):
            FrameAnalysis(model).run_linear_static_analysis('does-not-exist')
