# structengine/v3d/analysis.py
"""
ANALYSIS DRIVERS: Static, Modal, Nonlinear, Buckling, Dynamic
=============================================================

PURPOSE:
--------
This is the single call boundary of the solver:

    results = FrameAnalysis(model, options).run_linear_static_analysis('D')

Each run works on model.snapshot(), a deep copy taken when the run starts,
so the caller's model is never mutated and two analyses of the same model
cannot leak state into each other. Every call blocks until it returns an
AnalysisResults; any threading belongs to the caller.

DRIVERS:
--------
    run_linear_static_analysis      K·u = F
    run_modal_analysis              K·φ = ω²·M·φ
    run_nonlinear_analysis          Newton–Raphson on R = F - K(u)·u
    run_buckling_analysis           (K + λ·Kg)·φ = 0
    run_time_history_analysis       Newmark-β on M·a + C·v + K·u = F(t)
    run_response_spectrum_analysis  modal peaks from Sa(T), SRSS combined

STATE MACHINE (per run):
------------------------
    IDLE → ASSEMBLING → BOUNDARY_CONDITIONS_APPLIED → SOLVING
         → RECOVERING_FORCES → DONE
                             ↘ FAILED (on any error, which is re-raised)

FAILURE SEMANTICS:
------------------
- ModelError: raised by validation before any matrix is built
- SingularMatrixError: unstable (mechanism) or ill-conditioned system,
  labelled with the offending node/DOF
- Nonlinear non-convergence is NOT raised: the result carries
  nonlinear.converged = False, iterations = max_iterations and the
  residual norm at the returned displacements
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Dict, Hashable, Iterator, List, Optional, Tuple

import numpy as np

from ..config import BC_METHODS, CONFIG, LINEAR_SOLVERS, MASS_FORMULATIONS, SolverConfig
from ..kernel.buckling import critical_buckling_factor, euler_buckling_stress, member_slenderness
from ..kernel.dof import DOFManager
from ..kernel.dynamics import Spectrum, newmark_integrate, rayleigh_coefficients, spectral_acceleration, srss
from ..kernel.modal import effective_modal_mass, modal_participation_factors, natural_frequencies, participating_mass
from ..kernel.solve import partition_dofs, reactions_from, solve_linear
from .assembly import (
    assemble_geometric_stiffness,
    assemble_mass_matrix,
    assemble_stiffness_matrix,
    build_dof_manager,
    restrained_dofs,
)
from .elements import element_geometry_3d
from .loads import assemble_load_vector
from .model import Material, StructuralModel
from .post import (
    axial_force,
    combined_fibre_stress,
    compute_nodal_displacements,
    compute_reactions,
    element_end_forces_local,
    element_stresses,
    end_forces_dict,
)
from .results import (
    AnalysisResults,
    BucklingResult,
    ModalResult,
    NonlinearResult,
    SeismicResult,
    TimeHistoryResult,
)

logger = logging.getLogger(__name__)

DIRECTIONS = ('x', 'y', 'z')


class AnalysisState(Enum):
    IDLE = 'idle'
    ASSEMBLING = 'assembling'
    BOUNDARY_CONDITIONS_APPLIED = 'boundary_conditions_applied'
    SOLVING = 'solving'
    RECOVERING_FORCES = 'recovering_forces'
    DONE = 'done'
    FAILED = 'failed'


# Options that fall back to SolverConfig when left as None
_CONFIG_FIELDS = (
    'convergence_tolerance', 'relative_tolerance', 'max_iterations', 'num_modes',
    'bc_method', 'penalty', 'mass_formulation', 'linear_solver', 'time_steps', 'duration',
)


@dataclass
class AnalysisOptions:
    """
    Per-run analysis options.

    Fields left as None resolve to the engine-wide SolverConfig (CONFIG).

    include_dynamic_analysis    attach a modal block to static runs
    include_seismic_analysis    attach a response spectrum block to static
                                and modal runs; needs response_spectrum
    include_thermal_effects     apply thermal element loads (on by default)
    convergence_tolerance       absolute limit on ‖R_free‖
    relative_tolerance          optional extra limit on ‖R_free‖ / ‖F_free‖
    time_steps, duration        time history grid: dt = duration / time_steps
    damping_ratio               Rayleigh damping for time history, damped
                                frequencies for modal runs
    response_spectrum           Sa(T) callable or (periods, accelerations) table
    seismic_direction           'x', 'y' or 'z'
    """
    include_geometric_nonlinearity: bool = False
    include_material_nonlinearity: bool = False
    include_dynamic_analysis: bool = False
    include_seismic_analysis: bool = False
    include_thermal_effects: bool = True
    convergence_tolerance: Optional[float] = None
    relative_tolerance: Optional[float] = None
    max_iterations: Optional[int] = None
    time_steps: Optional[int] = None
    duration: Optional[float] = None
    damping_ratio: Optional[float] = None
    response_spectrum: Optional[Spectrum] = None
    seismic_direction: str = 'x'
    num_modes: Optional[int] = None
    bc_method: Optional[str] = None
    penalty: Optional[float] = None
    mass_formulation: Optional[str] = None
    linear_solver: Optional[str] = None

    def __post_init__(self):
        if self.convergence_tolerance is not None and not self.convergence_tolerance > 0:
            raise ValueError(f"convergence_tolerance must be positive, got {self.convergence_tolerance}")
        if self.relative_tolerance is not None and not self.relative_tolerance > 0:
            raise ValueError(f"relative_tolerance must be positive, got {self.relative_tolerance}")
        if self.seismic_direction not in DIRECTIONS:
            raise ValueError(f"seismic_direction must be one of {DIRECTIONS}, got {self.seismic_direction!r}")
        if self.include_seismic_analysis and self.response_spectrum is None:
            raise ValueError("include_seismic_analysis needs a response_spectrum")
        if self.max_iterations is not None and self.max_iterations < 1:
            raise ValueError(f"max_iterations must be >= 1, got {self.max_iterations}")
        if self.num_modes is not None and self.num_modes < 1:
            raise ValueError(f"num_modes must be >= 1, got {self.num_modes}")
        if self.time_steps is not None and self.time_steps < 1:
            raise ValueError(f"time_steps must be >= 1, got {self.time_steps}")
        if self.duration is not None and not self.duration > 0:
            raise ValueError(f"duration must be positive, got {self.duration}")
        if self.damping_ratio is not None and not 0.0 <= self.damping_ratio < 1.0:
            raise ValueError(f"damping_ratio must be in [0, 1), got {self.damping_ratio}")
        if self.penalty is not None and not self.penalty > 0:
            raise ValueError(f"penalty must be positive, got {self.penalty}")
        if self.bc_method is not None and self.bc_method not in BC_METHODS:
            raise ValueError(f"bc_method must be one of {BC_METHODS}, got {self.bc_method!r}")
        if self.mass_formulation is not None and self.mass_formulation not in MASS_FORMULATIONS:
            raise ValueError(
                f"mass_formulation must be one of {MASS_FORMULATIONS}, got {self.mass_formulation!r}"
            )
        if self.linear_solver is not None and self.linear_solver not in LINEAR_SOLVERS:
            raise ValueError(f"linear_solver must be one of {LINEAR_SOLVERS}, got {self.linear_solver!r}")

    def resolved(self, config: Optional[SolverConfig] = None) -> "AnalysisOptions":
        """Copy with every None default filled from config."""
        config = config or CONFIG
        defaults = {
            name: getattr(config, name) for name in _CONFIG_FIELDS if getattr(self, name) is None
        }
        return replace(self, **defaults)


def secant_modulus_ratio(material: Material, trial_stress: float, hardening_ratio: float) -> float:
    """
    E_secant / E for a bilinear (elastic, linear hardening) material.

    trial_stress is the elastic extreme-fibre stress E·ε. Past yield the true
    stress is fy + h·(σ_trial - fy) with h the post-yield modulus ratio.
    Materials with fy <= 0 stay elastic.
    """
    if material.fy <= 0 or trial_stress <= material.fy:
        return 1.0
    true_stress = material.fy + hardening_ratio * (trial_stress - material.fy)
    return true_stress / trial_stress


class FrameAnalysis:
    """
    Analysis drivers for a StructuralModel.

    Parameters:
    -----------
    model : StructuralModel
        Read, never written; each run analyses a fresh snapshot
    options : AnalysisOptions, optional
    config : SolverConfig, optional
        Defaults to the global CONFIG

    Attributes:
    -----------
    state : AnalysisState
        State of the most recent run
    history : List[AnalysisState]
        States visited by the most recent run
    """

    def __init__(
        self,
        model: StructuralModel,
        options: Optional[AnalysisOptions] = None,
        config: Optional[SolverConfig] = None,
    ):
        self.model = model
        self.config = config or CONFIG
        self.options = (options or AnalysisOptions()).resolved(self.config)
        self.state = AnalysisState.IDLE
        self.history: List[AnalysisState] = [AnalysisState.IDLE]

    # ------------------------------------------------------------------
    # Run bookkeeping
    # ------------------------------------------------------------------

    def _transition(self, state: AnalysisState) -> None:
        logger.debug("Analysis state %s -> %s", self.state.value, state.value)
        self.state = state
        self.history.append(state)

    @contextmanager
    def _run(self, analysis_type: str, load_case_id: Optional[Hashable]) -> Iterator[StructuralModel]:
        self.state = AnalysisState.IDLE
        self.history = [AnalysisState.IDLE]
        logger.info("Starting %s analysis (load case %r)", analysis_type, load_case_id)
        try:
            model = self.model.snapshot()
            model.validate()
            if load_case_id is not None:
                model.load_case(load_case_id)
            yield model
        except Exception:
            self._transition(AnalysisState.FAILED)
            logger.info("%s analysis failed in state %s", analysis_type, self.history[-2].value)
            raise
        self._transition(AnalysisState.DONE)
        logger.info("Finished %s analysis", analysis_type)

    # ------------------------------------------------------------------
    # Shared steps
    # ------------------------------------------------------------------

    def _solve(self, K: np.ndarray, F: np.ndarray, fixed: List[int], dof: DOFManager):
        o = self.options
        return solve_linear(
            K, F, fixed,
            method=o.bc_method,
            penalty=o.penalty,
            cond_limit=self.config.cond_limit,
            solver=o.linear_solver,
            pivot_rtol=self.config.pivot_rtol,
            cg_tol=self.config.cg_tol,
            dof_manager=dof,
        )

    def _recover(
        self,
        model: StructuralModel,
        dof: DOFManager,
        d: np.ndarray,
        R: np.ndarray,
        F: np.ndarray,
        equivalent_loads: Dict[Hashable, np.ndarray],
        analysis_type: str,
        load_case_id: Optional[Hashable],
        E_factors: Optional[Dict[Hashable, float]] = None,
        axial_forces: Optional[Dict[Hashable, float]] = None,
    ) -> Tuple[AnalysisResults, Dict[Hashable, np.ndarray]]:
        nodes = model.nodes
        E_factors = E_factors or {}
        axial_forces = axial_forces or {}

        local_forces = {}
        forces = {}
        stresses = {}
        for element in model.elements.values():
            f = element_end_forces_local(
                nodes, element, d, dof,
                equivalent_loads=equivalent_loads.get(element.id),
                E_factor=E_factors.get(element.id, 1.0),
                axial_force=axial_forces.get(element.id),
            )
            local_forces[element.id] = f
            forces[element.id] = end_forces_dict(f)
            stresses[element.id] = element_stresses(element.section, f)

        results = AnalysisResults(
            analysis_type=analysis_type,
            load_case_id=load_case_id,
            displacements=compute_nodal_displacements(model, d, dof),
            element_forces=forces,
            element_stresses=stresses,
            reactions=compute_reactions(model, R, dof),
            displacement_vector=d.copy(),
            load_vector=F.copy(),
        )
        return results, local_forces

    def _modal(
        self,
        model: StructuralModel,
        dof: DOFManager,
        K: np.ndarray,
        fixed: List[int],
        num_modes: Optional[int] = None,
    ) -> ModalResult:
        o = self.options
        n_modes = num_modes or o.num_modes

        M = assemble_mass_matrix(model, dof, o.mass_formulation)
        frequencies, eigenvalues, shapes, free = natural_frequencies(K, M, fixed, n_modes)

        omega = np.sqrt(eigenvalues)
        periods = np.full_like(frequencies, np.inf)
        positive = frequencies > 0
        periods[positive] = 1.0 / frequencies[positive]

        vectors = np.zeros((dof.ndof(), shapes.shape[1]))
        vectors[free, :] = shapes
        mode_shapes = [
            {nid: vectors[dof.node_dofs(nid), k].copy() for nid in model.nodes}
            for k in range(shapes.shape[1])
        ]

        participation, effective, cumulative, total = {}, {}, {}, {}
        for direction, name in enumerate(DIRECTIONS):
            participation[name] = modal_participation_factors(shapes, M, free, direction)
            effective[name] = effective_modal_mass(shapes, M, free, direction)
            total[name] = participating_mass(M, free, direction)
            if total[name] > 0:
                cumulative[name] = np.cumsum(effective[name]) / total[name]
            else:
                cumulative[name] = np.zeros_like(effective[name])

        damped = None
        if o.damping_ratio is not None:
            damped = frequencies * np.sqrt(1.0 - o.damping_ratio ** 2)

        logger.info(
            "Modal: %d mode(s), f1 = %.4g Hz (%s mass)",
            len(frequencies), float(frequencies[0]), o.mass_formulation,
        )
        return ModalResult(
            frequencies=frequencies,
            angular_frequencies=omega,
            periods=periods,
            eigenvalues=eigenvalues,
            mode_shapes=mode_shapes,
            mode_vectors=vectors,
            participation_factors=participation,
            effective_mass=effective,
            cumulative_mass_ratio=cumulative,
            total_mass=total,
            mass_formulation=o.mass_formulation,
            damping_ratio=o.damping_ratio,
            damped_frequencies=damped,
        )

    def _response_spectrum(self, model: StructuralModel, dof: DOFManager, modal: ModalResult) -> SeismicResult:
        """
        Peak modal response to the design spectrum, combined by SRSS.

        Mode k, direction r:
            u_k = Γ_k·φ_k·Sa(T_k) / ω_k²
            V_k = M_eff,k·Sa(T_k)
        Modes with ω = 0 carry no spectral response.
        """
        o = self.options
        direction = o.seismic_direction
        omega = modal.angular_frequencies
        gamma = modal.participation_factors[direction]

        Sa = np.array([
            spectral_acceleration(o.response_spectrum, T) if np.isfinite(T) else 0.0
            for T in modal.periods
        ])
        modal_shears = modal.effective_mass[direction] * Sa

        peaks = np.zeros((len(omega), dof.ndof()))
        for k in range(len(omega)):
            if omega[k] > 0:
                peaks[k] = gamma[k] * modal.mode_vectors[:, k] * Sa[k] / omega[k] ** 2
        u = srss(peaks, axis=0)

        ratio = modal.cumulative_mass_ratio[direction]
        participation = float(ratio[-1]) if len(ratio) else 0.0
        base_shear = float(srss(modal_shears))
        logger.info(
            "Response spectrum (%s): base shear %.4g from %d mode(s), %.1f%% mass",
            direction, base_shear, len(omega), 100.0 * participation,
        )
        return SeismicResult(
            direction=direction,
            periods=modal.periods.copy(),
            spectral_accelerations=Sa,
            participation_factors=gamma.copy(),
            modal_base_shears=modal_shears,
            base_shear=base_shear,
            peak_displacements=compute_nodal_displacements(model, u, dof),
            displacement_vector=u,
            mass_participation=participation,
        )

    def _current_stiffness(
        self,
        model: StructuralModel,
        dof: DOFManager,
        u: np.ndarray,
        equivalent_loads: Dict[Hashable, np.ndarray],
        K_elastic: np.ndarray,
    ) -> Tuple[np.ndarray, Dict[Hashable, float], Dict[Hashable, float]]:
        """
        System stiffness K(u) at the current displacement.

        Material nonlinearity scales each member's moduli by its secant
        ratio; geometric nonlinearity adds Kg built from the current axial
        forces. Returns (K(u), E_factors, axial_forces).
        """
        o = self.options
        if not (o.include_geometric_nonlinearity or o.include_material_nonlinearity):
            return K_elastic, {}, {}

        nodes = model.nodes
        elements = model.elements

        E_factors: Dict[Hashable, float] = {}
        if o.include_material_nonlinearity:
            for element in elements.values():
                f_trial = element_end_forces_local(
                    nodes, element, u, dof, equivalent_loads=equivalent_loads.get(element.id)
                )
                ratio = secant_modulus_ratio(
                    element.material,
                    combined_fibre_stress(element.section, f_trial),
                    self.config.hardening_ratio,
                )
                if ratio < 1.0:
                    E_factors[element.id] = ratio

        K = assemble_stiffness_matrix(model, dof, E_factors) if E_factors else K_elastic

        axial_forces: Dict[Hashable, float] = {}
        if o.include_geometric_nonlinearity:
            for element in elements.values():
                f = element_end_forces_local(
                    nodes, element, u, dof,
                    equivalent_loads=equivalent_loads.get(element.id),
                    E_factor=E_factors.get(element.id, 1.0),
                )
                axial_forces[element.id] = axial_force(f)
            K = K + assemble_geometric_stiffness(model, dof, axial_forces)

        return K, E_factors, axial_forces

    # ------------------------------------------------------------------
    # Drivers
    # ------------------------------------------------------------------

    def run_linear_static_analysis(self, load_case_id: Optional[Hashable] = None) -> AnalysisResults:
        """
        Linear static analysis of one load case.

        Assemble K and F, apply boundary conditions, solve K·u = F, recover
        end forces, stresses and reactions (R = K·u - F at restrained DOFs).
        With include_dynamic_analysis a modal block is attached, with
        include_seismic_analysis a response spectrum block (and its modes).
        """
        with self._run('linear_static', load_case_id) as model:
            self._transition(AnalysisState.ASSEMBLING)
            dof = build_dof_manager(model)
            K = assemble_stiffness_matrix(model, dof)
            F, equivalent_loads = assemble_load_vector(
                model, load_case_id, dof, include_thermal=self.options.include_thermal_effects
            )

            self._transition(AnalysisState.BOUNDARY_CONDITIONS_APPLIED)
            fixed = restrained_dofs(model, dof)

            self._transition(AnalysisState.SOLVING)
            d, R, _ = self._solve(K, F, fixed, dof)

            self._transition(AnalysisState.RECOVERING_FORCES)
            results, _ = self._recover(
                model, dof, d, R, F, equivalent_loads, 'linear_static', load_case_id
            )
            if self.options.include_dynamic_analysis or self.options.include_seismic_analysis:
                results.modal = self._modal(model, dof, K, fixed)
            if self.options.include_seismic_analysis:
                results.seismic = self._response_spectrum(model, dof, results.modal)

        return results

    def run_modal_analysis(self, num_modes: Optional[int] = None) -> AnalysisResults:
        """
        Natural frequencies and mode shapes: K·φ = ω²·M·φ on the free DOFs.

        Restrained DOFs are always eliminated from both K and M.
        """
        with self._run('modal', None) as model:
            self._transition(AnalysisState.ASSEMBLING)
            dof = build_dof_manager(model)
            K = assemble_stiffness_matrix(model, dof)

            self._transition(AnalysisState.BOUNDARY_CONDITIONS_APPLIED)
            fixed = restrained_dofs(model, dof)

            self._transition(AnalysisState.SOLVING)
            modal = self._modal(model, dof, K, fixed, num_modes)

            self._transition(AnalysisState.RECOVERING_FORCES)
            results = AnalysisResults(analysis_type='modal', modal=modal)
            if self.options.include_seismic_analysis:
                results.seismic = self._response_spectrum(model, dof, modal)

        return results

    def run_nonlinear_analysis(self, load_case_id: Optional[Hashable] = None) -> AnalysisResults:
        """
        Newton–Raphson equilibrium iteration.

        ALGORITHM:
        ----------
        u = 0
        for iteration in 1..max_iterations:
            K(u) = K_elastic(secant moduli) + Kg(N(u))
            R = F - K(u)·u
            if ‖R_free‖ < tolerance: converged
            (or ‖R_free‖ / ‖F_free‖ < relative_tolerance, when set)
            solve K(u)·Δu = R with boundary conditions; u += Δu
        if the loop ran out: check R once more at the final u

        Without nonlinearity flags K(u) = K and the run converges on the
        second iteration. Non-convergence is reported, not raised; the
        reported residual always belongs to the returned displacements.
        """
        o = self.options
        with self._run('nonlinear', load_case_id) as model:
            self._transition(AnalysisState.ASSEMBLING)
            dof = build_dof_manager(model)
            K_elastic = assemble_stiffness_matrix(model, dof)
            F, equivalent_loads = assemble_load_vector(
                model, load_case_id, dof, include_thermal=self.options.include_thermal_effects
            )

            self._transition(AnalysisState.BOUNDARY_CONDITIONS_APPLIED)
            fixed = restrained_dofs(model, dof)
            _, free = partition_dofs(dof.ndof(), fixed)
            reference = float(np.linalg.norm(F[free]))
            if reference < 1e-30:
                reference = 1.0

            self._transition(AnalysisState.SOLVING)
            u = np.zeros(dof.ndof(), dtype=float)
            history: List[float] = []
            converged = False
            iterations = 0
            residual = float('nan')

            def is_converged(r: float) -> bool:
                if r < o.convergence_tolerance:
                    return True
                return o.relative_tolerance is not None and r / reference < o.relative_tolerance

            for iteration in range(1, o.max_iterations + 1):
                iterations = iteration
                K_u, _, _ = self._current_stiffness(model, dof, u, equivalent_loads, K_elastic)
                R = F - K_u @ u
                residual = float(np.linalg.norm(R[free]))
                history.append(residual)
                logger.debug(
                    "NR iteration %d: |R| = %.3e (relative %.3e)", iteration, residual, residual / reference
                )

                if not np.isfinite(residual):
                    logger.warning("Residual became non-finite at iteration %d; stopping", iteration)
                    break
                if is_converged(residual):
                    converged = True
                    break

                du, _, _ = self._solve(K_u, R, fixed, dof)
                u = u + du
            else:
                # Iterations used up: the last update has not been checked yet
                K_u, _, _ = self._current_stiffness(model, dof, u, equivalent_loads, K_elastic)
                residual = float(np.linalg.norm((F - K_u @ u)[free]))
                history.append(residual)
                converged = bool(np.isfinite(residual)) and is_converged(residual)
                logger.debug("NR final check: |R| = %.3e", residual)

            if not converged:
                logger.warning(
                    "Nonlinear analysis did not converge in %d iteration(s); last residual %.3e",
                    iterations, residual,
                )

            self._transition(AnalysisState.RECOVERING_FORCES)
            K_u, E_factors, axial_forces = self._current_stiffness(
                model, dof, u, equivalent_loads, K_elastic
            )
            R_support = reactions_from(K_u, u, F, fixed)
            results, _ = self._recover(
                model, dof, u, R_support, F, equivalent_loads, 'nonlinear', load_case_id,
                E_factors=E_factors, axial_forces=axial_forces,
            )
            results.nonlinear = NonlinearResult(
                converged=converged,
                iterations=iterations,
                residual=residual,
                tolerance=o.convergence_tolerance,
                max_iterations=o.max_iterations,
                relative_tolerance=o.relative_tolerance,
                residual_history=history,
                geometric=o.include_geometric_nonlinearity,
                material=o.include_material_nonlinearity,
                yielded_elements=sorted(E_factors, key=str),
            )

        return results

    def run_buckling_analysis(self, load_case_id: Optional[Hashable] = None) -> AnalysisResults:
        """
        Linear eigen-buckling under one load case.

        Solves the linear static problem, builds Kg from the member axial
        forces and solves (K + λ·Kg)·φ = 0 for the smallest positive λ.
        """
        with self._run('buckling', load_case_id) as model:
            self._transition(AnalysisState.ASSEMBLING)
            dof = build_dof_manager(model)
            K = assemble_stiffness_matrix(model, dof)
            F, equivalent_loads = assemble_load_vector(
                model, load_case_id, dof, include_thermal=self.options.include_thermal_effects
            )

            self._transition(AnalysisState.BOUNDARY_CONDITIONS_APPLIED)
            fixed = restrained_dofs(model, dof)

            self._transition(AnalysisState.SOLVING)
            d, R, _ = self._solve(K, F, fixed, dof)

            self._transition(AnalysisState.RECOVERING_FORCES)
            results, local_forces = self._recover(
                model, dof, d, R, F, equivalent_loads, 'buckling', load_case_id
            )
            axial_forces = {eid: axial_force(f) for eid, f in local_forces.items()}

            Kg = assemble_geometric_stiffness(model, dof, axial_forces)
            factor, mode, free = critical_buckling_factor(K, Kg, fixed)

            max_compression = max((-N for N in axial_forces.values() if N < 0), default=0.0)
            if np.isfinite(factor):
                vector = np.zeros(dof.ndof())
                vector[free] = mode
                mode_shape = {nid: vector[dof.node_dofs(nid)].copy() for nid in model.nodes}
                critical_load = factor * max_compression
            else:
                vector = None
                mode_shape = {}
                critical_load = float('inf')

            # Member checks about the weak axis
            slenderness = {}
            euler_stresses = {}
            for eid, element in model.elements.items():
                L = element_geometry_3d(model.nodes, element)[0]
                section = element.section
                lam = member_slenderness(L, section.A, min(section.Iy, section.Iz))
                slenderness[eid] = lam
                euler_stresses[eid] = euler_buckling_stress(element.material.E, lam)

            logger.info(
                "Buckling: critical load factor %.4g, max slenderness %.1f",
                factor, max(slenderness.values(), default=0.0),
            )
            results.buckling = BucklingResult(
                critical_load_factor=factor,
                critical_load=critical_load,
                mode_shape=mode_shape,
                mode_vector=vector,
                axial_forces=axial_forces,
                slenderness=slenderness,
                euler_stresses=euler_stresses,
            )

        return results

    def run_time_history_analysis(
        self,
        load_case_id: Optional[Hashable] = None,
        load_function: Optional[Callable[[float], float]] = None,
    ) -> AnalysisResults:
        """
        Linear transient response, Newmark-β (β = 1/4, γ = 1/2).

        ALGORITHM:
        ----------
        K, M, F assembled as for the static and modal runs
        C = a·M + b·K, Rayleigh damping with damping_ratio at the first
            two natural frequencies (no damping when the ratio is 0)
        t_i = i·duration/time_steps, F(t_i) = load_function(t_i)·F
        integrate M·a + C·v + K·d = F(t) on the free DOFs from rest

        Without load_function the load is applied as a step at t = 0.
        Element forces and reactions are those of the final time step;
        reactions include the inertia and damping forces.
        """
        o = self.options
        with self._run('time_history', load_case_id) as model:
            self._transition(AnalysisState.ASSEMBLING)
            dof = build_dof_manager(model)
            ndof = dof.ndof()
            K = assemble_stiffness_matrix(model, dof)
            M = assemble_mass_matrix(model, dof, o.mass_formulation)
            F, equivalent_loads = assemble_load_vector(
                model, load_case_id, dof, include_thermal=o.include_thermal_effects
            )

            self._transition(AnalysisState.BOUNDARY_CONDITIONS_APPLIED)
            fixed = restrained_dofs(model, dof)
            _, free = partition_dofs(ndof, fixed)
            if len(free) == 0:
                raise ValueError("No free DOFs: nothing to integrate")

            damping_ratio = o.damping_ratio or 0.0
            alpha, beta_k = 0.0, 0.0
            if damping_ratio > 0:
                _, eigenvalues, _, _ = natural_frequencies(K, M, fixed, 2)
                omega = np.sqrt(eigenvalues[eigenvalues > 0])
                if len(omega):
                    alpha, beta_k = rayleigh_coefficients(damping_ratio, omega[0], omega[-1])
                else:
                    logger.warning("No positive natural frequency; running undamped")
            C = alpha * M + beta_k * K

            self._transition(AnalysisState.SOLVING)
            times = np.linspace(0.0, o.duration, o.time_steps + 1)
            dt = o.duration / o.time_steps
            if load_function is None:
                factors = np.ones_like(times)
            else:
                factors = np.array([float(load_function(t)) for t in times])

            ix = np.ix_(free, free)
            D_free, V_free, A_free = newmark_integrate(
                K[ix], M[ix], C[ix], np.outer(factors, F[free]), dt
            )
            D = np.zeros((len(times), ndof))
            V = np.zeros_like(D)
            A = np.zeros_like(D)
            D[:, free] = D_free
            V[:, free] = V_free
            A[:, free] = A_free

            self._transition(AnalysisState.RECOVERING_FORCES)
            F_end = factors[-1] * F
            d, v, a = D[-1], V[-1], A[-1]
            R = np.zeros(ndof)
            if len(fixed):
                R[fixed] = (K @ d + C @ v + M @ a - F_end)[fixed]
            scaled_loads = {eid: factors[-1] * q for eid, q in equivalent_loads.items()}
            results, _ = self._recover(
                model, dof, d, R, F_end, scaled_loads, 'time_history', load_case_id
            )

            # Peaks of the nodal translation magnitudes
            translations = np.array([dof.node_dofs(nid)[:3] for nid in model.nodes])

            def peak(history: np.ndarray) -> Tuple[float, int]:
                magnitudes = np.linalg.norm(history[:, translations], axis=2).max(axis=1)
                i = int(np.argmax(magnitudes))
                return float(magnitudes[i]), i

            max_d, i_max = peak(D)
            logger.info(
                "Time history: %d steps of %.3e s, peak displacement %.4g at t = %.4g s",
                o.time_steps, dt, max_d, times[i_max],
            )
            results.time_history = TimeHistoryResult(
                times=times,
                dt=dt,
                load_factors=factors,
                displacement_history=D,
                velocity_history=V,
                acceleration_history=A,
                node_dofs={nid: np.asarray(dof.node_dofs(nid)) for nid in model.nodes},
                damping_ratio=damping_ratio,
                rayleigh_alpha=alpha,
                rayleigh_beta=beta_k,
                max_displacement=max_d,
                time_of_max_displacement=float(times[i_max]),
                max_velocity=peak(V)[0],
                max_acceleration=peak(A)[0],
            )

        return results

    def run_response_spectrum_analysis(self, num_modes: Optional[int] = None) -> AnalysisResults:
        """
        Modal analysis followed by the SRSS response to response_spectrum
        in seismic_direction. The result carries both blocks.
        """
        if self.options.response_spectrum is None:
            raise ValueError("Response spectrum analysis needs options.response_spectrum")

        with self._run('response_spectrum', None) as model:
            self._transition(AnalysisState.ASSEMBLING)
            dof = build_dof_manager(model)
            K = assemble_stiffness_matrix(model, dof)

            self._transition(AnalysisState.BOUNDARY_CONDITIONS_APPLIED)
            fixed = restrained_dofs(model, dof)

            self._transition(AnalysisState.SOLVING)
            modal = self._modal(model, dof, K, fixed, num_modes)

            self._transition(AnalysisState.RECOVERING_FORCES)
            seismic = self._response_spectrum(model, dof, modal)
            results = AnalysisResults(
                analysis_type='response_spectrum',
                displacements=seismic.peak_displacements,
                displacement_vector=seismic.displacement_vector.copy(),
                modal=modal,
                seismic=seismic,
            )

        return results


def run_linear_static_analysis(
    model: StructuralModel,
    load_case_id: Optional[Hashable] = None,
    options: Optional[AnalysisOptions] = None,
) -> AnalysisResults:
    """Convenience wrapper: FrameAnalysis(model, options).run_linear_static_analysis(...)."""
    return FrameAnalysis(model, options).run_linear_static_analysis(load_case_id)


def run_modal_analysis(
    model: StructuralModel,
    num_modes: Optional[int] = None,
    options: Optional[AnalysisOptions] = None,
) -> AnalysisResults:
    return FrameAnalysis(model, options).run_modal_analysis(num_modes)


def run_nonlinear_analysis(
    model: StructuralModel,
    load_case_id: Optional[Hashable] = None,
    options: Optional[AnalysisOptions] = None,
) -> AnalysisResults:
    return FrameAnalysis(model, options).run_nonlinear_analysis(load_case_id)


def run_buckling_analysis(
    model: StructuralModel,
    load_case_id: Optional[Hashable] = None,
    options: Optional[AnalysisOptions] = None,
) -> AnalysisResults:
    return FrameAnalysis(model, options).run_buckling_analysis(load_case_id)


def run_time_history_analysis(
    model: StructuralModel,
    load_case_id: Optional[Hashable] = None,
    load_function: Optional[Callable[[float], float]] = None,
    options: Optional[AnalysisOptions] = None,
) -> AnalysisResults:
    return FrameAnalysis(model, options).run_time_history_analysis(load_case_id, load_function)


def run_response_spectrum_analysis(
    model: StructuralModel,
    num_modes: Optional[int] = None,
    options: Optional[AnalysisOptions] = None,
) -> AnalysisResults:
    return FrameAnalysis(model, options).run_response_spectrum_analysis(num_modes)
