#!/usr/bin/env python3
"""
RUN_PORTAL_FRAME_3D: Load Cases, Combinations and P-Delta on a 3D Portal
========================================================================

This demo shows a complete 3D frame workflow:
1. Build a two-bay portal with a catalog material and sections
2. Define dead, live and wind load cases, and a factored combination
3. Run linear static and P-Delta (geometric nonlinear) analyses
4. Compare sway, print reactions and save an interactive 3D plot

Run with:
    python demos/run_portal_frame_3d.py
"""

import logging
import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from structengine import (
    FIXED,
    AnalysisOptions,
    ElementLoad,
    Frame3D,
    FrameAnalysis,
    LoadCase,
    Node3D,
    StructuralModel,
)
from structengine.catalog import STEEL_S355, rectangular_section
from structengine.summary import reactions_frame, summary_statistics
from structengine.viz import plot_frame_3d


def print_header(text: str):
    """Print a formatted section header."""
    print("\n" + "=" * 60)
    print(f"  {text}")
    print("=" * 60)


def build_portal(span: float = 6.0, height: float = 4.0, depth: float = 5.0) -> StructuralModel:
    """
    Two parallel portal frames (at y = 0 and y = depth) tied by two
    longitudinal beams at eaves level.
    """
    column = rectangular_section(0.25, 0.25, "COL 250")
    rafter = rectangular_section(0.2, 0.4, "BEAM 200x400")

    model = StructuralModel("portal 3D")
    nid = 0
    knees = {}
    for y in (0.0, depth):
        for x in (0.0, span):
            model.add_node(Node3D(nid, x, y, 0.0, restraints=FIXED))
            model.add_node(Node3D(nid + 1, x, y, height))
            knees[(x, y)] = nid + 1
            nid += 2

    eid = 0
    for (x, y), top in knees.items():
        model.add_element(Frame3D(eid, top - 1, top, STEEL_S355, column, type='column'))
        eid += 1
    for y in (0.0, depth):
        model.add_element(Frame3D(eid, knees[(0.0, y)], knees[(span, y)], STEEL_S355, rafter))
        eid += 1
    for x in (0.0, span):
        model.add_element(Frame3D(eid, knees[(x, 0.0)], knees[(x, depth)], STEEL_S355, rafter))
        eid += 1
    return model


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    print_header("3D PORTAL FRAME")

    # =========================================================================
    # STEP 1: MODEL AND LOAD CASES
    # =========================================================================
    print_header("STEP 1: Model and Load Cases")

    model = build_portal()
    rafters = [e.id for e in model.elements.values() if e.type == 'beam']
    windward_knees = [n.id for n in model.nodes.values() if n.x == 0.0 and n.z > 0]

    model.add_load_case(LoadCase('D', 'Dead', 'dead', element_loads={
        eid: ElementLoad('distributed', -8e3, direction='z', axes='global') for eid in rafters
    }))
    model.add_load_case(LoadCase('L', 'Live', 'live', element_loads={
        eid: ElementLoad('distributed', -5e3, direction='z', axes='global') for eid in rafters
    }))
    model.add_load_case(LoadCase('W', 'Wind', 'wind', node_loads={
        nid: (15e3, 0, 0, 0, 0, 0) for nid in windward_knees
    }))
    model.add_combination('ULS', {'D': 1.35, 'L': 1.05, 'W': 1.5})

    print(f"\n{model}")
    for case in model.load_cases.values():
        print(f"  {case.id:4s} {case.category:12s} {case.name}")

    # =========================================================================
    # STEP 2: LINEAR VS P-DELTA
    # =========================================================================
    print_header("STEP 2: Linear vs P-Delta (ULS)")

    linear = FrameAnalysis(model).run_linear_static_analysis('ULS')
    pdelta = FrameAnalysis(
        model, AnalysisOptions(include_geometric_nonlinearity=True)
    ).run_nonlinear_analysis('ULS')

    knee = windward_knees[0]
    sway_linear = linear.displacements[knee]['ux']
    sway_pdelta = pdelta.displacements[knee]['ux']
    print(f"\n  Eaves sway, linear:  {sway_linear * 1000:.3f} mm")
    print(f"  Eaves sway, P-Delta: {sway_pdelta * 1000:.3f} mm "
          f"({pdelta.nonlinear.iterations} iterations, converged={pdelta.nonlinear.converged})")
    print(f"  Amplification:       {sway_pdelta / sway_linear:.4f}")

    # =========================================================================
    # STEP 3: REACTIONS AND SUMMARY
    # =========================================================================
    print_header("STEP 3: Reactions (kN, kN·m)")

    print("\n" + (reactions_frame(linear) / 1e3).round(2).to_string())

    stats = summary_statistics(linear)
    print(f"\n  Total vertical reaction: {stats['total_vertical_reaction'] / 1e3:.2f} kN")
    print(f"  Base shear:              {stats['base_shear'] / 1e3:.2f} kN")
    print(f"  Max moment:              {stats['max_moment'] / 1e3:.2f} kN·m")
    print(f"  Max von Mises:           {stats['max_von_mises'] / 1e6:.1f} MPa")

    # =========================================================================
    # STEP 4: VISUALIZE
    # =========================================================================
    print_header("STEP 4: Visualize")

    outpath = Path(__file__).parent.parent / "artifacts" / "portal_frame_3d.html"
    plot_frame_3d(model, linear, title="3D Portal (ULS, von Mises)", outpath=str(outpath), show=False)

    print_header("DONE")


if __name__ == "__main__":
    main()
