# structengine/v3d/model.py
"""
3D MODEL DEFINITIONS
====================

PURPOSE:
--------
This module defines the data structures for 3D frame analysis:
- Material: E, G, ν, density, strengths, thermal coefficient
- Section: A, Ix, Iy, Iz, J, Sy, Sz, ry, rz
- Node3D: a point in 3D space with six restraint flags and six applied loads
- Frame3D: a 12-DOF beam/column connecting two nodes
- ElementLoad / LoadCase: loads on elements, grouped into named scenarios
- StructuralModel: the container that owns all of the above

ENGINEERING CONTEXT:
--------------------
A 3D FRAME member carries axial force, shear in two directions, torsion and
bending about two axes. Each node therefore has 6 DOFs:

    ux, uy, uz   (translations)
    rx, ry, rz   (rotations)

OWNERSHIP:
----------
StructuralModel owns its nodes, elements and load cases. Lookups return
copies, and analyses work on model.snapshot(), so nothing a caller does to a
returned object can change an analysis that is already running.

Every add_* method validates first and only then inserts: a call that raises
ModelError leaves the model exactly as it was.
"""

import copy
import logging
import math
from dataclasses import dataclass, field, replace
from typing import Dict, Hashable, List, Optional, Sequence, Tuple

from ..errors import ModelError

logger = logging.getLogger(__name__)


ELEMENT_TYPES: Tuple[str, ...] = ('beam', 'column', 'truss', 'cable')
MATERIAL_TYPES: Tuple[str, ...] = ('steel', 'concrete', 'timber', 'aluminum', 'composite')
LOAD_CATEGORIES: Tuple[str, ...] = (
    'dead', 'live', 'wind', 'seismic', 'thermal', 'construction', 'combination',
)
ELEMENT_LOAD_TYPES: Tuple[str, ...] = ('distributed', 'point', 'moment', 'thermal')
LOAD_DIRECTIONS: Tuple[str, ...] = ('x', 'y', 'z')
LOAD_AXES: Tuple[str, ...] = ('local', 'global')

# Restraint presets: (ux, uy, uz, rx, ry, rz)
FREE: Tuple[bool, ...] = (False,) * 6
FIXED: Tuple[bool, ...] = (True,) * 6
PINNED: Tuple[bool, ...] = (True, True, True, False, False, False)

# Elements shorter than this are degenerate
MIN_ELEMENT_LENGTH = 1e-9


@dataclass(frozen=True)
class Material:
    """
    Material properties for a frame member.

    Parameters:
    -----------
    name : str
        Human-readable name (e.g., "S355 Steel", "Douglas Fir")
    E : float
        Young's modulus (Pa)
    nu : float
        Poisson's ratio
    G : float, optional
        Shear modulus (Pa). Defaults to E / (2(1 + ν))
    rho : float
        Density (kg/m³), used for the mass matrix
    fy, fu : float
        Yield and ultimate strength (Pa). fy = 0 means "never yields"
        (material nonlinearity is skipped for that member)
    alpha : float
        Thermal expansion coefficient (1/°C)
    type : str
        Material class: steel, concrete, timber, aluminum, composite
    """
    name: str
    E: float
    nu: float = 0.3
    G: Optional[float] = None
    rho: float = 0.0
    fy: float = 0.0
    fu: float = 0.0
    alpha: float = 0.0
    type: str = 'steel'

    def __post_init__(self):
        if self.G is None:
            object.__setattr__(self, 'G', self.E / (2.0 * (1.0 + self.nu)))


@dataclass(frozen=True)
class Section:
    """
    Cross-section properties for a frame member (local axes).

    Iy is the second moment about local y (resists local z deflection),
    Iz is about local z (resists local y deflection). Ix defaults to the
    polar moment Iy + Iz, ry/rz to sqrt(I/A).
    """
    name: str
    A: float
    Iy: float
    Iz: float
    J: float
    Ix: Optional[float] = None
    Sy: float = 0.0
    Sz: float = 0.0
    ry: Optional[float] = None
    rz: Optional[float] = None

    def __post_init__(self):
        if self.Ix is None:
            object.__setattr__(self, 'Ix', self.Iy + self.Iz)
        if self.ry is None:
            object.__setattr__(self, 'ry', math.sqrt(self.Iy / self.A) if self.A > 0 and self.Iy > 0 else 0.0)
        if self.rz is None:
            object.__setattr__(self, 'rz', math.sqrt(self.Iz / self.A) if self.A > 0 and self.Iz > 0 else 0.0)


def _six(values: Sequence, cast, what: str) -> Tuple:
    values = tuple(cast(v) for v in values)
    if len(values) != 6:
        raise ModelError(f"{what} must have 6 components (x, y, z, rx, ry, rz), got {len(values)}")
    return values


@dataclass(frozen=True)
class Node3D:
    """
    A node (joint) in 3D space.

    Parameters:
    -----------
    id : Hashable
        Unique identifier (int or str)
    x, y, z : float
        Coordinates in the global system (m). Z is up.
    restraints : tuple of 6 bool
        (ux, uy, uz, rx, ry, rz); True = restrained
    loads : tuple of 6 float
        Applied (Fx, Fy, Fz, Mx, My, Mz) in global axes

    Examples:
    ---------
    >>> base = Node3D(0, 0.0, 0.0, 0.0, restraints=FIXED)
    >>> tip = Node3D(1, 3.0, 0.0, 0.0, loads=(0, 0, -10e3, 0, 0, 0))
    """
    id: Hashable
    x: float
    y: float
    z: float
    restraints: Tuple[bool, ...] = FREE
    loads: Tuple[float, ...] = (0.0,) * 6

    def __post_init__(self):
        object.__setattr__(self, 'restraints', _six(self.restraints, bool, f"Node {self.id!r} restraints"))
        object.__setattr__(self, 'loads', _six(self.loads, float, f"Node {self.id!r} loads"))

    @property
    def position(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.z)

    @property
    def is_support(self) -> bool:
        return any(self.restraints)


@dataclass(frozen=True)
class Frame3D:
    """
    A 3D frame element (Euler–Bernoulli beam-column) connecting two nodes.

    12 DOFs: [ux, uy, uz, rx, ry, rz] at node i, then the same at node j.
    The type tag is descriptive; every type is formulated as a full 3D
    frame member.
    """
    id: Hashable
    ni: Hashable
    nj: Hashable
    material: Material
    section: Section
    type: str = 'beam'


@dataclass(frozen=True)
class ElementLoad:
    """
    A load applied along an element.

    Parameters:
    -----------
    type : str
        'distributed' - uniform load per unit length over the whole member (N/m)
        'point'       - concentrated force (N) at position·L
        'moment'      - concentrated moment (N·m) at position·L
        'thermal'     - uniform temperature change ΔT (°C)
    value : float
        Magnitude (units per type above)
    position : float
        Normalized position along the member, 0 (node i) to 1 (node j)
    direction : str
        'x', 'y' or 'z': axis of the force, or the axis a moment acts about
    axes : str
        'local' (member axes) or 'global'
    """
    type: str
    value: float
    position: float = 0.5
    direction: str = 'y'
    axes: str = 'local'

    def __post_init__(self):
        if self.type not in ELEMENT_LOAD_TYPES:
            raise ModelError(f"Element load type must be one of {ELEMENT_LOAD_TYPES}, got {self.type!r}")
        if self.direction not in LOAD_DIRECTIONS:
            raise ModelError(f"Element load direction must be one of {LOAD_DIRECTIONS}, got {self.direction!r}")
        if self.axes not in LOAD_AXES:
            raise ModelError(f"Element load axes must be one of {LOAD_AXES}, got {self.axes!r}")
        if not 0.0 <= self.position <= 1.0:
            raise ModelError(f"Element load position must be in [0, 1], got {self.position}")
        if not math.isfinite(self.value):
            raise ModelError("Element load value must be finite")

    def scaled(self, factor: float) -> "ElementLoad":
        return replace(self, value=self.value * factor)


@dataclass
class LoadCase:
    """
    A named, scaled set of loads.

    node_loads overrides a node's own loads for this case; nodes not listed
    keep their own loads. factor scales everything in the case.
    element_loads maps element id → list of ElementLoad (a single
    ElementLoad is accepted and wrapped).
    """
    id: Hashable
    name: str = ''
    category: str = 'dead'
    factor: float = 1.0
    node_loads: Dict[Hashable, Tuple[float, ...]] = field(default_factory=dict)
    element_loads: Dict[Hashable, List[ElementLoad]] = field(default_factory=dict)

    def __post_init__(self):
        if self.category not in LOAD_CATEGORIES:
            raise ModelError(f"Load case category must be one of {LOAD_CATEGORIES}, got {self.category!r}")
        self.node_loads = {
            nid: _six(v, float, f"Load case {self.id!r} load on node {nid!r}")
            for nid, v in self.node_loads.items()
        }
        loads = {}
        for eid, v in self.element_loads.items():
            items = [v] if isinstance(v, ElementLoad) else list(v)
            for item in items:
                if not isinstance(item, ElementLoad):
                    raise ModelError(f"Load case {self.id!r}: element {eid!r} load is not an ElementLoad")
            loads[eid] = items
        self.element_loads = loads

    def node_load(self, node: Node3D) -> Tuple[float, ...]:
        """Unscaled load acting on a node in this case."""
        return self.node_loads.get(node.id, node.loads)


class StructuralModel:
    """
    In-memory structural model: nodes, elements and load cases.

    Insertion order of nodes defines the global DOF numbering.

    Examples:
    ---------
    >>> model = StructuralModel()
    >>> model.add_node(Node3D(0, 0, 0, 0, restraints=FIXED))
    >>> model.add_node(Node3D(1, 3, 0, 0))
    >>> model.add_element(Frame3D(0, 0, 1, steel, ipe))
    >>> model.add_load_case(LoadCase('D', node_loads={1: (0, 0, -1e3, 0, 0, 0)}))
    """

    def __init__(self, name: str = 'model'):
        self.name = name
        self._nodes: Dict[Hashable, Node3D] = {}
        self._elements: Dict[Hashable, Frame3D] = {}
        self._load_cases: Dict[Hashable, LoadCase] = {}

    def __repr__(self) -> str:
        return (
            f"StructuralModel({self.name!r}, nodes={len(self._nodes)}, "
            f"elements={len(self._elements)}, load_cases={len(self._load_cases)})"
        )

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def add_node(self, node: Node3D) -> Node3D:
        if node.id in self._nodes:
            raise ModelError(f"Duplicate node id {node.id!r}")
        if not all(math.isfinite(c) for c in node.position):
            raise ModelError(f"Node {node.id!r} has non-finite coordinates")
        self._nodes[node.id] = node
        return node

    def add_element(self, element: Frame3D) -> Frame3D:
        """
        Add a frame element.

        Raises ModelError (and leaves the model untouched) if the id is taken,
        an end node does not exist, both ends are the same node, the element
        has zero length, or the material/section values are invalid.
        """
        if element.id in self._elements:
            raise ModelError(f"Duplicate element id {element.id!r}")
        self._check_element(element)
        self._elements[element.id] = element
        return element

    def add_load_case(self, load_case: LoadCase) -> LoadCase:
        if load_case.id in self._load_cases:
            raise ModelError(f"Duplicate load case id {load_case.id!r}")
        self._check_load_case(load_case)
        self._load_cases[load_case.id] = copy.deepcopy(load_case)
        return load_case

    def add_combination(
        self,
        id: Hashable,
        factors: Dict[Hashable, float],
        name: Optional[str] = None,
    ) -> LoadCase:
        """
        Add a load combination Σ factorᵢ · (load case i).

        Each case's own scale factor is included. Node loads are materialised
        for every node, element loads are scaled and concatenated.

        Example: model.add_combination('ULS', {'D': 1.35, 'L': 1.5})
        """
        if not factors:
            raise ModelError(f"Combination {id!r} has no load cases")
        missing = [cid for cid in factors if cid not in self._load_cases]
        if missing:
            raise ModelError(f"Combination {id!r} references unknown load case(s) {missing}")

        node_loads = {}
        for node in self._nodes.values():
            total = [0.0] * 6
            for cid, f in factors.items():
                case = self._load_cases[cid]
                scale = f * case.factor
                for k, value in enumerate(case.node_load(node)):
                    total[k] += scale * value
            node_loads[node.id] = tuple(total)

        element_loads: Dict[Hashable, List[ElementLoad]] = {}
        for cid, f in factors.items():
            case = self._load_cases[cid]
            scale = f * case.factor
            for eid, loads in case.element_loads.items():
                element_loads.setdefault(eid, []).extend(load.scaled(scale) for load in loads)

        label = name or ' + '.join(f"{f:g}·{cid}" for cid, f in factors.items())
        combination = LoadCase(
            id=id,
            name=label,
            category='combination',
            factor=1.0,
            node_loads=node_loads,
            element_loads=element_loads,
        )
        return self.add_load_case(combination)

    # ------------------------------------------------------------------
    # Read-only access
    # ------------------------------------------------------------------

    @property
    def nodes(self) -> Dict[Hashable, Node3D]:
        """Copy of the node table (nodes themselves are immutable)."""
        return dict(self._nodes)

    @property
    def elements(self) -> Dict[Hashable, Frame3D]:
        return dict(self._elements)

    @property
    def load_cases(self) -> Dict[Hashable, LoadCase]:
        return copy.deepcopy(self._load_cases)

    def node(self, node_id: Hashable) -> Node3D:
        try:
            return self._nodes[node_id]
        except KeyError:
            raise ModelError(f"Unknown node {node_id!r}") from None

    def element(self, element_id: Hashable) -> Frame3D:
        try:
            return self._elements[element_id]
        except KeyError:
            raise ModelError(f"Unknown element {element_id!r}") from None

    def load_case(self, load_case_id: Hashable) -> LoadCase:
        try:
            return copy.deepcopy(self._load_cases[load_case_id])
        except KeyError:
            raise ModelError(f"Unknown load case {load_case_id!r}") from None

    @property
    def n_nodes(self) -> int:
        return len(self._nodes)

    @property
    def n_elements(self) -> int:
        return len(self._elements)

    def element_length(self, element: Frame3D) -> float:
        pi = self._nodes[element.ni]
        pj = self._nodes[element.nj]
        return math.dist(pi.position, pj.position)

    def snapshot(self) -> "StructuralModel":
        """Independent deep copy for analysis."""
        return copy.deepcopy(self)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _check_element(self, element: Frame3D) -> None:
        for end in (element.ni, element.nj):
            if end not in self._nodes:
                raise ModelError(f"Element {element.id!r} references missing node {end!r}")
        if element.ni == element.nj:
            raise ModelError(f"Element {element.id!r} connects node {element.ni!r} to itself")
        if element.type not in ELEMENT_TYPES:
            raise ModelError(f"Element {element.id!r} type must be one of {ELEMENT_TYPES}, got {element.type!r}")

        L = self.element_length(element)
        if L <= MIN_ELEMENT_LENGTH:
            raise ModelError(
                f"Element {element.id!r} has zero length (nodes {element.ni!r} and {element.nj!r} coincide)"
            )

        mat, sec = element.material, element.section
        if not mat.E > 0:
            raise ModelError(f"Element {element.id!r}: material {mat.name!r} needs E > 0, got {mat.E}")
        if not mat.G > 0:
            raise ModelError(f"Element {element.id!r}: material {mat.name!r} needs G > 0, got {mat.G}")
        if mat.rho < 0:
            raise ModelError(f"Element {element.id!r}: material {mat.name!r} has negative density")
        if not sec.A > 0:
            raise ModelError(f"Element {element.id!r}: section {sec.name!r} needs A > 0, got {sec.A}")
        if min(sec.Iy, sec.Iz, sec.J) < 0:
            raise ModelError(f"Element {element.id!r}: section {sec.name!r} has a negative Iy, Iz or J")

    def _check_load_case(self, load_case: LoadCase) -> None:
        for nid in load_case.node_loads:
            if nid not in self._nodes:
                raise ModelError(f"Load case {load_case.id!r} loads unknown node {nid!r}")
        for eid in load_case.element_loads:
            if eid not in self._elements:
                raise ModelError(f"Load case {load_case.id!r} loads unknown element {eid!r}")
        if not math.isfinite(load_case.factor):
            raise ModelError(f"Load case {load_case.id!r} has a non-finite factor")

    def validate(self) -> None:
        """
        Check referential integrity before any matrix work.

        Raises:
        -------
        ModelError
            Empty model, no elements, or any element/load case that would be
            rejected by add_element/add_load_case.
        """
        if not self._nodes:
            raise ModelError("Model has no nodes")
        if not self._elements:
            raise ModelError("Model has no elements; an unconnected node cannot be analysed")
        for element in self._elements.values():
            self._check_element(element)
        for load_case in self._load_cases.values():
            self._check_load_case(load_case)
        logger.debug("Validated %r", self)
