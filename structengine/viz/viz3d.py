# structengine/viz/viz3d.py
"""
3D VISUALIZATION: Interactive Frame Viewer
==========================================

PURPOSE:
--------
Create interactive 3D visualizations of frame models and their results
using Plotly:
- Undeformed model, supports highlighted
- Deformed shape (displacements scaled for visibility)
- Member coloring by von Mises stress or axial force

The viewer only READS results; it never touches solver internals.
"""

import os
from typing import Dict, Hashable, Literal, Optional

import numpy as np
import plotly.graph_objects as go

from ..v3d.model import StructuralModel
from ..v3d.results import AnalysisResults


def _member_values(
    results: Optional[AnalysisResults],
    color_by: str,
) -> Dict[Hashable, float]:
    if results is None or color_by == 'none':
        return {}
    if color_by == 'stress':
        return {eid: s['von_mises'] for eid, s in results.element_stresses.items()}
    # Axial force, tension positive
    return {
        eid: (f['end']['fx'] - f['start']['fx']) / 2.0
        for eid, f in results.element_forces.items()
    }


def _value_color(value: float, vmax: float, color_by: str) -> str:
    ratio = abs(value) / vmax if vmax > 0 else 0.0
    level = int(50 + 205 * min(ratio, 1.0))
    if color_by == 'axial' and value < 0:
        return f'rgb(50, 50, {level})'  # compression blue
    return f'rgb({level}, 50, 50)'


def auto_deformation_scale(model: StructuralModel, results: AnalysisResults, fraction: float = 0.1) -> float:
    """Scale so the largest displacement is drawn at `fraction` of the model size."""
    max_disp = results.max_displacement()
    if max_disp <= 0:
        return 1.0
    coords = np.array([n.position for n in model.nodes.values()])
    size = float(np.max(coords.max(axis=0) - coords.min(axis=0))) or 1.0
    return fraction * size / max_disp


def create_frame_figure(
    model: StructuralModel,
    results: Optional[AnalysisResults] = None,
    title: str = "Frame Structure",
    color_by: Literal['none', 'stress', 'axial'] = 'stress',
    show_deformed: bool = True,
    deformation_scale: Optional[float] = None,
    show_nodes: bool = True,
) -> go.Figure:
    """
    Create a Plotly figure for a 3D frame model.

    Parameters:
    -----------
    model : StructuralModel
        The analysed model
    results : AnalysisResults, optional
        Results for coloring and the deformed shape
    color_by : str
        'stress' (von Mises), 'axial' (red tension / blue compression) or 'none'
    show_deformed : bool
        Overlay the deformed shape (needs results with displacements)
    deformation_scale : float, optional
        Displacement magnification; automatic if None

    Returns:
    --------
    go.Figure
    """
    nodes = model.nodes
    elements = model.elements
    fig = go.Figure()

    # =========================================================================
    # MEMBERS
    # =========================================================================

    values = _member_values(results, color_by)
    vmax = max((abs(v) for v in values.values()), default=0.0)

    if not values:
        xs, ys, zs = [], [], []
        for e in elements.values():
            ni, nj = nodes[e.ni], nodes[e.nj]
            xs.extend([ni.x, nj.x, None])
            ys.extend([ni.y, nj.y, None])
            zs.extend([ni.z, nj.z, None])
        fig.add_trace(go.Scatter3d(
            x=xs, y=ys, z=zs,
            mode='lines',
            line=dict(color='steelblue', width=4),
            name='Members',
            hoverinfo='skip',
        ))
    else:
        unit = 'MPa' if color_by == 'stress' else 'kN'
        divisor = 1e6 if color_by == 'stress' else 1e3
        for e in elements.values():
            ni, nj = nodes[e.ni], nodes[e.nj]
            value = values.get(e.id, 0.0)
            fig.add_trace(go.Scatter3d(
                x=[ni.x, nj.x], y=[ni.y, nj.y], z=[ni.z, nj.z],
                mode='lines',
                line=dict(color=_value_color(value, vmax, color_by), width=5),
                name=f'Element {e.id}',
                showlegend=False,
                hovertext=f"Element {e.id}: {value / divisor:.2f} {unit}",
                hoverinfo='text',
            ))

    # =========================================================================
    # DEFORMED SHAPE
    # =========================================================================

    if show_deformed and results is not None and results.displacements:
        scale = deformation_scale if deformation_scale is not None else auto_deformation_scale(model, results)
        xs, ys, zs = [], [], []
        for e in elements.values():
            for nid in (e.ni, e.nj):
                n, d = nodes[nid], results.displacements[nid]
                xs.append(n.x + scale * d['ux'])
                ys.append(n.y + scale * d['uy'])
                zs.append(n.z + scale * d['uz'])
            xs.append(None)
            ys.append(None)
            zs.append(None)
        fig.add_trace(go.Scatter3d(
            x=xs, y=ys, z=zs,
            mode='lines',
            line=dict(color='orange', width=3, dash='dash'),
            name=f'Deformed (x{scale:.3g})',
            hoverinfo='skip',
        ))

    # =========================================================================
    # NODES
    # =========================================================================

    if show_nodes:
        node_list = list(nodes.values())
        fig.add_trace(go.Scatter3d(
            x=[n.x for n in node_list],
            y=[n.y for n in node_list],
            z=[n.z for n in node_list],
            mode='markers',
            marker=dict(
                size=[9 if n.is_support else 4 for n in node_list],
                color=['red' if n.is_support else 'darkgray' for n in node_list],
                line=dict(width=1, color='black'),
            ),
            name='Nodes',
            text=[f"Node {n.id}: ({n.x:.2f}, {n.y:.2f}, {n.z:.2f})" for n in node_list],
            hoverinfo='text',
        ))

    # =========================================================================
    # LAYOUT
    # =========================================================================

    fig.update_layout(
        title=dict(text=title, font=dict(size=16)),
        scene=dict(
            xaxis=dict(title='X (m)'),
            yaxis=dict(title='Y (m)'),
            zaxis=dict(title='Z (m)'),
            aspectmode='data',
            camera=dict(eye=dict(x=1.5, y=1.5, z=1.0)),
        ),
        showlegend=True,
        legend=dict(x=0.02, y=0.98),
        margin=dict(l=0, r=0, t=40, b=0),
    )

    return fig


def plot_frame_3d(
    model: StructuralModel,
    results: Optional[AnalysisResults] = None,
    title: str = "Frame Structure",
    outpath: Optional[str] = None,
    show: bool = True,
    **kwargs
) -> go.Figure:
    """
    Create and optionally display/save a 3D frame visualization.

    Example:
    --------
    >>> fig = plot_frame_3d(model, results, outpath="artifacts/frame.html", show=False)
    """
    fig = create_frame_figure(model, results, title=title, **kwargs)

    if outpath:
        os.makedirs(os.path.dirname(outpath) or '.', exist_ok=True)
        fig.write_html(outpath)
        print(f"3D visualization saved to: {outpath}")

    if show:
        fig.show()

    return fig
