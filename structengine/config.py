# structengine/config.py
"""
Engine configuration and defaults.
"""

from dataclasses import dataclass
from typing import Optional, Tuple


BC_METHODS: Tuple[str, ...] = ('elimination', 'penalty')
MASS_FORMULATIONS: Tuple[str, ...] = ('consistent', 'lumped')
LINEAR_SOLVERS: Tuple[str, ...] = ('lu', 'sparse', 'cg')


@dataclass
class SolverConfig:
    """Engine-wide solver defaults. Per-run overrides live on AnalysisOptions."""

    # Boundary conditions
    bc_method: str = 'elimination'
    penalty: float = 1e12

    # Singularity detection
    # Pivot threshold is pivot_rtol * max|A|; None means n * machine epsilon
    pivot_rtol: Optional[float] = None
    # Only checked for the reduced system under elimination; None disables
    cond_limit: Optional[float] = 1e13

    # Linear solve
    linear_solver: str = 'lu'
    cg_tol: float = 1e-10

    # Dynamics
    mass_formulation: str = 'consistent'
    num_modes: int = 5
    # Time history: Newmark average acceleration over duration / time_steps
    time_steps: int = 1000
    duration: float = 1.0

    # Nonlinear
    # Absolute on ‖R‖ (force units); relative_tolerance adds a test on ‖R‖ / ‖F‖
    convergence_tolerance: float = 1e-6
    relative_tolerance: Optional[float] = None
    max_iterations: int = 100
    hardening_ratio: float = 0.02

    # Local axis fallback for members parallel to global Z
    vertical_tolerance: float = 1e-6

    def __post_init__(self):
        if self.bc_method not in BC_METHODS:
            raise ValueError(f"bc_method must be one of {BC_METHODS}, got {self.bc_method!r}")
        if self.mass_formulation not in MASS_FORMULATIONS:
            raise ValueError(
                f"mass_formulation must be one of {MASS_FORMULATIONS}, got {self.mass_formulation!r}"
            )
        if self.linear_solver not in LINEAR_SOLVERS:
            raise ValueError(f"linear_solver must be one of {LINEAR_SOLVERS}, got {self.linear_solver!r}")
        if self.penalty <= 0:
            raise ValueError("penalty must be positive")


# Global config instance
CONFIG = SolverConfig()
