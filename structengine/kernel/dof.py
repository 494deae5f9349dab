# structengine/kernel/dof.py
"""
DOF MANAGER: Degree of Freedom Indexing
=======================================

PURPOSE:
--------
This module handles the mapping from (node_id, local_dof) to global DOF indices.

Node ids can be any hashable (ints, strings like "N1"). Nodes are numbered in
the order they are given, so the global system for N nodes has
dof_per_node × N rows:

    3D Frame:  6 DOF/node (ux, uy, uz, rx, ry, rz)

    node_ids = ["A", "B", "C"]
    "B", uz  →  6 × 1 + 2 = 8

USAGE:
------
    dof = DOFManager(dof_per_node=6, node_ids=["A", "B"])
    dof.idx("B", 2)                 # → 8
    dof.element_dof_map(["A", "B"]) # → [0, 1, ..., 11]
    dof.label(8)                    # → "node B uz"
"""

from dataclasses import dataclass, field
from typing import Dict, Hashable, List, Sequence, Tuple


FRAME3D_DOF_NAMES: Tuple[str, ...] = ('ux', 'uy', 'uz', 'rx', 'ry', 'rz')


@dataclass
class DOFManager:
    """
    Manages degree-of-freedom indexing for structural analysis.

    This is the bridge between "node B, z-displacement" and "global DOF index 8".

    Attributes:
    -----------
    dof_per_node : int
        Number of DOFs per node (6 for a 3D frame)
    node_ids : Sequence[Hashable]
        Node identifiers in global numbering order
    dof_names : Sequence[str]
        Component names used in diagnostics

    Examples:
    ---------
    >>> dof = DOFManager(dof_per_node=6, node_ids=[10, 20])
    >>> dof.idx(20, 0)
    6
    >>> dof.ndof()
    12
    """
    dof_per_node: int
    node_ids: Sequence[Hashable] = field(default_factory=list)
    dof_names: Sequence[str] = FRAME3D_DOF_NAMES

    def __post_init__(self):
        self.node_ids = list(self.node_ids)
        self._index: Dict[Hashable, int] = {nid: i for i, nid in enumerate(self.node_ids)}
        if len(self._index) != len(self.node_ids):
            raise ValueError("Duplicate node ids given to DOFManager")

    def node_index(self, node_id: Hashable) -> int:
        """Position of a node in the global numbering."""
        try:
            return self._index[node_id]
        except KeyError:
            raise KeyError(f"Node {node_id!r} is not part of this DOF numbering") from None

    def idx(self, node_id: Hashable, local_dof: int) -> int:
        """
        Get the global DOF index for a node's local DOF.

        Parameters:
        -----------
        node_id : Hashable
            The node identifier
        local_dof : int
            0=ux, 1=uy, 2=uz, 3=rx, 4=ry, 5=rz

        Returns:
        --------
        int
            Global DOF index in the system matrices
        """
        if not 0 <= local_dof < self.dof_per_node:
            raise IndexError(f"local_dof must be in [0, {self.dof_per_node}), got {local_dof}")
        return self.dof_per_node * self.node_index(node_id) + local_dof

    def ndof(self) -> int:
        """Total number of DOFs (size of K)."""
        return self.dof_per_node * len(self.node_ids)

    def node_dofs(self, node_id: Hashable) -> List[int]:
        """
        Get all global DOF indices for a single node.

        >>> DOFManager(6, ["a", "b"]).node_dofs("b")
        [6, 7, 8, 9, 10, 11]
        """
        base = self.dof_per_node * self.node_index(node_id)
        return list(range(base, base + self.dof_per_node))

    def element_dof_map(self, node_ids: Sequence[Hashable]) -> List[int]:
        """
        Get the DOF map for an element connecting multiple nodes.

        This returns the indices needed to scatter/gather element
        matrices into/from the global matrices.
        """
        result = []
        for node_id in node_ids:
            result.extend(self.node_dofs(node_id))
        return result

    def locate(self, global_dof: int) -> Tuple[Hashable, int]:
        """Inverse of idx(): (node_id, local_dof) for a global DOF index."""
        if not 0 <= global_dof < self.ndof():
            raise IndexError(f"Global DOF {global_dof} out of range [0, {self.ndof()})")
        node_pos, local = divmod(global_dof, self.dof_per_node)
        return self.node_ids[node_pos], local

    def label(self, global_dof: int) -> str:
        """Readable label for diagnostics, e.g. 'node 3 rz'."""
        node_id, local = self.locate(global_dof)
        return f"node {node_id} {self.dof_names[local]}"
