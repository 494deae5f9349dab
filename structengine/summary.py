# structengine/summary.py
"""
SUMMARY: report-facing statistics and tables
============================================

A thin, read-only wrapper around AnalysisResults for report generators and
dashboards:

- summary_statistics(): max displacement / forces / stress, fundamental
  period, base shear and an equilibrium check, as a flat dict
- *_frame(): the per-node / per-element result maps as pandas DataFrames

USAGE:
------
    results = FrameAnalysis(model).run_linear_static_analysis('D')
    stats = summary_statistics(results)
    df = element_forces_frame(results)
    df.sort_values('mz', key=abs, ascending=False).head()
"""

from typing import Any, Dict, Optional

import numpy as np
import pandas as pd

from .v3d.results import AnalysisResults, ModalResult


def _resultant(*values: float) -> float:
    return float(np.sqrt(sum(v * v for v in values)))


def summary_statistics(results: AnalysisResults) -> Dict[str, Any]:
    """
    Headline numbers of one analysis run.

    Returns:
    --------
    Dict with:
        - max_displacement, max_displacement_node: largest translation (m)
        - max_axial_force: max |N| over all member ends (N)
        - max_shear: max √(Vy² + Vz²) (N)
        - max_moment: max √(My² + Mz²) (N·m)
        - max_torsion: max |Mx| (N·m)
        - max_von_mises, critical_element: largest combined stress (Pa)
        - base_shear: horizontal resultant of the summed reactions (N)
        - total_vertical_reaction: ΣRz (N)
        - equilibrium_error: |ΣR + ΣF| / |ΣF| over the force components
        - fundamental_period, fundamental_frequency: if a modal block exists
        - converged, iterations: if a nonlinear block exists
        - critical_load_factor, max_slenderness: if a buckling block exists
        - peak_dynamic_displacement: if a time history block exists
        - seismic_base_shear: if a response spectrum block exists
    """
    stats: Dict[str, Any] = {'analysis_type': results.analysis_type, 'load_case_id': results.load_case_id}

    max_disp, max_node = 0.0, None
    for node_id, d in results.displacements.items():
        if d['magnitude'] > max_disp:
            max_disp, max_node = d['magnitude'], node_id
    stats['max_displacement'] = max_disp
    stats['max_displacement_node'] = max_node

    max_axial = max_shear = max_moment = max_torsion = 0.0
    for forces in results.element_forces.values():
        for end in (forces['start'], forces['end']):
            max_axial = max(max_axial, abs(end['fx']))
            max_shear = max(max_shear, _resultant(end['fy'], end['fz']))
            max_moment = max(max_moment, _resultant(end['my'], end['mz']))
            max_torsion = max(max_torsion, abs(end['mx']))
    stats['max_axial_force'] = max_axial
    stats['max_shear'] = max_shear
    stats['max_moment'] = max_moment
    stats['max_torsion'] = max_torsion

    max_vm, critical = 0.0, None
    for element_id, s in results.element_stresses.items():
        if s['von_mises'] > max_vm:
            max_vm, critical = s['von_mises'], element_id
    stats['max_von_mises'] = max_vm
    stats['critical_element'] = critical

    if results.reactions:
        sum_r = np.zeros(3)
        for r in results.reactions.values():
            sum_r += [r['fx'], r['fy'], r['fz']]
        stats['base_shear'] = _resultant(sum_r[0], sum_r[1])
        stats['total_vertical_reaction'] = float(sum_r[2])
        if results.load_vector is not None:
            sum_f = results.load_vector.reshape(-1, 6)[:, :3].sum(axis=0)
            scale = max(float(np.linalg.norm(sum_f)), 1.0)
            stats['equilibrium_error'] = float(np.linalg.norm(sum_r + sum_f)) / scale

    if results.modal is not None:
        stats['fundamental_period'] = results.modal.fundamental_period
        stats['fundamental_frequency'] = float(results.modal.frequencies[0])

    if results.nonlinear is not None:
        stats['converged'] = results.nonlinear.converged
        stats['iterations'] = results.nonlinear.iterations

    if results.buckling is not None:
        stats['critical_load_factor'] = results.buckling.critical_load_factor
        stats['max_slenderness'] = results.buckling.max_slenderness

    if results.time_history is not None:
        stats['peak_dynamic_displacement'] = results.time_history.max_displacement

    if results.seismic is not None:
        stats['seismic_base_shear'] = results.seismic.base_shear

    return stats


def displacements_frame(results: AnalysisResults) -> pd.DataFrame:
    """Nodal displacements, one row per node (index: node id)."""
    df = pd.DataFrame.from_dict(results.displacements, orient='index')
    df.index.name = 'node'
    return df


def element_forces_frame(results: AnalysisResults) -> pd.DataFrame:
    """Local end forces, one row per (element, end)."""
    rows = []
    for element_id, forces in results.element_forces.items():
        for end in ('start', 'end'):
            rows.append({'element': element_id, 'end': end, **forces[end]})
    return pd.DataFrame(rows, columns=['element', 'end', 'fx', 'fy', 'fz', 'mx', 'my', 'mz'])


def stresses_frame(results: AnalysisResults) -> pd.DataFrame:
    """Member stresses, one row per element (index: element id)."""
    df = pd.DataFrame.from_dict(results.element_stresses, orient='index')
    df.index.name = 'element'
    return df


def reactions_frame(results: AnalysisResults) -> pd.DataFrame:
    """Support reactions, one row per support node (index: node id)."""
    df = pd.DataFrame.from_dict(results.reactions, orient='index')
    df.index.name = 'node'
    return df


def modal_frame(modal: Optional[ModalResult]) -> pd.DataFrame:
    """
    One row per mode: frequency, period and cumulative mass participation
    per global direction.
    """
    if modal is None:
        return pd.DataFrame()
    data = {
        'frequency_hz': modal.frequencies,
        'period_s': modal.periods,
        'omega_rad_s': modal.angular_frequencies,
    }
    for direction in ('x', 'y', 'z'):
        data[f'participation_{direction}'] = modal.participation_factors[direction]
        data[f'cumulative_mass_{direction}'] = modal.cumulative_mass_ratio[direction]
    df = pd.DataFrame(data, index=pd.RangeIndex(1, modal.n_modes + 1, name='mode'))
    return df
