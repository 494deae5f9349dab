# structengine/v3d/results.py
"""Result records returned by the analysis drivers. Plain data, no solver state."""

from dataclasses import dataclass, field
from typing import Dict, Hashable, List, Optional

import numpy as np

from ..kernel.dof import FRAME3D_DOF_NAMES


@dataclass
class ModalResult:
    """
    Natural frequencies and mode shapes.

    mode_shapes[k] maps node id → 6-component mode vector of mode k
    (mass-normalized, zeros at restrained DOFs). participation_factors,
    effective_mass and cumulative_mass_ratio are keyed by global direction
    'x', 'y', 'z'.
    """
    frequencies: np.ndarray
    angular_frequencies: np.ndarray
    periods: np.ndarray
    eigenvalues: np.ndarray
    mode_shapes: List[Dict[Hashable, np.ndarray]]
    mode_vectors: np.ndarray
    participation_factors: Dict[str, np.ndarray]
    effective_mass: Dict[str, np.ndarray]
    cumulative_mass_ratio: Dict[str, np.ndarray]
    total_mass: Dict[str, float]
    mass_formulation: str = 'consistent'
    damping_ratio: Optional[float] = None
    damped_frequencies: Optional[np.ndarray] = None

    @property
    def n_modes(self) -> int:
        return len(self.frequencies)

    @property
    def fundamental_period(self) -> float:
        return float(self.periods[0]) if len(self.periods) else float('nan')


@dataclass
class BucklingResult:
    """
    Linear eigen-buckling result.

    critical_load_factor is the multiplier on the applied load case at which
    the structure buckles (inf if nothing is in compression).
    critical_load is that factor times the largest member compression.
    slenderness (L/r about the weak axis) and euler_stresses (π²E/λ²) are
    per-member checks independent of the eigen-solve.
    """
    critical_load_factor: float
    critical_load: float
    mode_shape: Dict[Hashable, np.ndarray]
    mode_vector: Optional[np.ndarray]
    axial_forces: Dict[Hashable, float]
    slenderness: Dict[Hashable, float] = field(default_factory=dict)
    euler_stresses: Dict[Hashable, float] = field(default_factory=dict)

    @property
    def is_stable(self) -> bool:
        return self.critical_load_factor > 1.0

    @property
    def max_slenderness(self) -> float:
        return max(self.slenderness.values(), default=0.0)


@dataclass
class NonlinearResult:
    """
    Convergence record of a Newton–Raphson run.

    iterations equals max_iterations when the loop ran out. residual is the
    absolute norm of the free-DOF residual at the returned displacements;
    residual_history has one entry per check, including the final one.
    relative_tolerance, when set, is an extra test on ‖R‖ / ‖F‖.
    """
    converged: bool
    iterations: int
    residual: float
    tolerance: float
    max_iterations: int
    relative_tolerance: Optional[float] = None
    residual_history: List[float] = field(default_factory=list)
    geometric: bool = False
    material: bool = False
    yielded_elements: List[Hashable] = field(default_factory=list)


@dataclass
class TimeHistoryResult:
    """
    Newmark-β response history.

    The *_history arrays have shape (len(times), ndof) in global DOF order;
    node_dofs maps node id → its six DOF indices. The load at time t is the
    load case vector times load_factors[i].
    """
    times: np.ndarray
    dt: float
    load_factors: np.ndarray
    displacement_history: np.ndarray
    velocity_history: np.ndarray
    acceleration_history: np.ndarray
    node_dofs: Dict[Hashable, np.ndarray]
    beta: float = 0.25
    gamma: float = 0.5
    damping_ratio: float = 0.0
    rayleigh_alpha: float = 0.0
    rayleigh_beta: float = 0.0
    max_displacement: float = 0.0
    time_of_max_displacement: float = 0.0
    max_velocity: float = 0.0
    max_acceleration: float = 0.0

    def node_history(self, node_id: Hashable, component: str = 'ux', quantity: str = 'displacement') -> np.ndarray:
        """History of one DOF: quantity is 'displacement', 'velocity' or 'acceleration'."""
        histories = {
            'displacement': self.displacement_history,
            'velocity': self.velocity_history,
            'acceleration': self.acceleration_history,
        }
        if quantity not in histories:
            raise ValueError(f"quantity must be one of {tuple(histories)}, got {quantity!r}")
        if component not in FRAME3D_DOF_NAMES:
            raise ValueError(f"component must be one of {FRAME3D_DOF_NAMES}, got {component!r}")
        index = self.node_dofs[node_id][FRAME3D_DOF_NAMES.index(component)]
        return histories[quantity][:, index].copy()


@dataclass
class SeismicResult:
    """
    Response spectrum analysis in one global direction, modal peaks
    combined by SRSS.

    Per mode: period, spectral acceleration Sa, participation factor Γ and
    base shear V = M_eff·Sa. peak_displacements are SRSS combinations of
    Γ·φ·Sa/ω² per node.
    """
    direction: str
    periods: np.ndarray
    spectral_accelerations: np.ndarray
    participation_factors: np.ndarray
    modal_base_shears: np.ndarray
    base_shear: float
    peak_displacements: Dict[Hashable, Dict[str, float]]
    displacement_vector: np.ndarray
    mass_participation: float


@dataclass
class AnalysisResults:
    """
    Everything one analysis run produces.

    displacements: node id → {'ux', 'uy', 'uz', 'rx', 'ry', 'rz', 'magnitude'}
    element_forces: element id → {'start': {fx..mz}, 'end': {fx..mz}} (local axes)
    element_stresses: element id → {'axial', 'shear_y', 'shear_z', 'torsion',
        'bending_y', 'bending_z', 'von_mises'}
    reactions: support node id → {fx..mz} (global axes)
    """
    analysis_type: str
    load_case_id: Optional[Hashable] = None
    displacements: Dict[Hashable, Dict[str, float]] = field(default_factory=dict)
    element_forces: Dict[Hashable, Dict[str, Dict[str, float]]] = field(default_factory=dict)
    element_stresses: Dict[Hashable, Dict[str, float]] = field(default_factory=dict)
    reactions: Dict[Hashable, Dict[str, float]] = field(default_factory=dict)
    displacement_vector: Optional[np.ndarray] = None
    load_vector: Optional[np.ndarray] = None
    modal: Optional[ModalResult] = None
    buckling: Optional[BucklingResult] = None
    nonlinear: Optional[NonlinearResult] = None
    time_history: Optional[TimeHistoryResult] = None
    seismic: Optional[SeismicResult] = None

    def max_displacement(self) -> float:
        """Largest translational displacement magnitude over all nodes."""
        if not self.displacements:
            return 0.0
        return max(d['magnitude'] for d in self.displacements.values())
