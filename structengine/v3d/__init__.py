# structengine/v3d - 3D Frame Analysis
"""
V3D: 3D FRAME ANALYSIS
======================

This package provides the 3D frame solver built on the dimension-agnostic
kernel:
- Model: Material, Section, Node3D, Frame3D, ElementLoad, LoadCase, StructuralModel
- Elements: 12×12 stiffness, geometric stiffness and mass (6 DOF/node)
- Loads: fixed-end-force conversion of element loads
- Analysis: linear static, modal, nonlinear (Newton–Raphson), buckling,
  time history (Newmark-β) and response spectrum drivers

USAGE:
------
    from structengine.v3d import (
        StructuralModel, Node3D, Frame3D, LoadCase, FIXED, FrameAnalysis,
    )
    from structengine.catalog import STEEL_S355, rectangular_section

    model = StructuralModel()
    model.add_node(Node3D(0, 0.0, 0.0, 0.0, restraints=FIXED))
    model.add_node(Node3D(1, 3.0, 0.0, 0.0))
    model.add_element(Frame3D(0, 0, 1, STEEL_S355, rectangular_section(0.1, 0.2)))
    model.add_load_case(LoadCase('P', node_loads={1: (0, 0, -10e3, 0, 0, 0)}))

    results = FrameAnalysis(model).run_linear_static_analysis('P')
    results.displacements[1]['uz']
"""

from .model import (
    FIXED,
    FREE,
    PINNED,
    ElementLoad,
    Frame3D,
    LoadCase,
    Material,
    Node3D,
    Section,
    StructuralModel,
)
from .elements import (
    element_geometry_3d,
    frame3d_global_stiffness,
    frame3d_local_stiffness,
    frame3d_rotation,
    frame3d_transform,
)
from .results import (
    AnalysisResults,
    BucklingResult,
    ModalResult,
    NonlinearResult,
    SeismicResult,
    TimeHistoryResult,
)
from .analysis import (
    AnalysisOptions,
    AnalysisState,
    FrameAnalysis,
    run_buckling_analysis,
    run_linear_static_analysis,
    run_modal_analysis,
    run_nonlinear_analysis,
    run_response_spectrum_analysis,
    run_time_history_analysis,
)

__all__ = [
    'FIXED', 'FREE', 'PINNED',
    'ElementLoad', 'Frame3D', 'LoadCase', 'Material', 'Node3D', 'Section', 'StructuralModel',
    'element_geometry_3d', 'frame3d_global_stiffness', 'frame3d_local_stiffness',
    'frame3d_rotation', 'frame3d_transform',
    'AnalysisResults', 'BucklingResult', 'ModalResult', 'NonlinearResult',
    'SeismicResult', 'TimeHistoryResult',
    'AnalysisOptions', 'AnalysisState', 'FrameAnalysis',
    'run_buckling_analysis', 'run_linear_static_analysis', 'run_modal_analysis', 'run_nonlinear_analysis',
    'run_response_spectrum_analysis', 'run_time_history_analysis',
]
