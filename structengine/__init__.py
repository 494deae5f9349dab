# structengine - 3D Structural Analysis Engine
"""
STRUCTENGINE: A 3D Direct Stiffness Frame Solver
================================================

This package provides:
- 3D frame analysis (12-DOF beam/column elements, 6 DOF/node)
- Linear static, modal, nonlinear (Newton–Raphson) and buckling drivers
- Newmark-β time history and response spectrum (SRSS) drivers
- Equivalent nodal loads for distributed, point, moment and thermal loads
- Summary tables (pandas) and interactive 3D plots (Plotly)

ARCHITECTURE:
-------------
    kernel/         Dimension-agnostic core (matrix, DOF management, assembly, solve,
                    sparse, modal, buckling, dynamics)
    v3d/            3D frame model, elements, loads, post-processing and analysis drivers
    catalog.py      Standard materials and section constructors
    summary.py      Report-facing statistics and DataFrames
    viz/            Plotly visualization
    config.py       Engine-wide defaults (CONFIG)
    errors.py       ModelError, DimensionMismatchError, MechanismError, SingularMatrixError
"""

import logging

from .config import CONFIG, SolverConfig
from .errors import DimensionMismatchError, MechanismError, ModelError, SingularMatrixError
from .kernel import DOFManager, Matrix, solve_linear
from .v3d import (
    FIXED,
    FREE,
    PINNED,
    AnalysisOptions,
    AnalysisResults,
    AnalysisState,
    ElementLoad,
    Frame3D,
    FrameAnalysis,
    LoadCase,
    Material,
    Node3D,
    Section,
    StructuralModel,
    run_buckling_analysis,
    run_linear_static_analysis,
    run_modal_analysis,
    run_nonlinear_analysis,
    run_response_spectrum_analysis,
    run_time_history_analysis,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

# Version
__version__ = "0.4.0"
