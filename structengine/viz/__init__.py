# structengine/viz - Visualization Tools
"""
VIZ: Visualization for 3D Frames
================================

- viz3d: interactive Plotly view of the model, deformed shape and stresses
"""

from .viz3d import create_frame_figure, plot_frame_3d

__all__ = ['create_frame_figure', 'plot_frame_3d']
