"""
Hierarchy resolver — builds the orbital forest from parent/child edges.

The forest is index based: child id → parent id and parent id → ordered
child ids. The root is the sun (or a virtual sun at the origin when the
data has no sun body, in which case the root id is None).

Fails fast with IntegrityError on duplicate bodies, dangling references,
multiple parents and cycles. Bodies without a parent edge are promoted to
orbit the sun and reported as IntegrityWarning.
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Set, Tuple

from orrery_errors import (
    CYCLE_DETECTED,
    DANGLING_REFERENCE,
    DUPLICATE_BODY,
    MULTIPLE_PARENTS,
    ORPHAN_PROMOTED,
    IntegrityError,
    IntegrityWarning,
)
from orrery_model import CelestialBody, OrbitalParent

SUN_NAME = "sun"


@dataclass(frozen=True)
class Forest:
    root_id: Optional[int]
    parent_of: Mapping[int, Optional[int]]
    children_of: Mapping[Optional[int], Tuple[int, ...]]
    depth_of: Mapping[int, int]
    root_of: Mapping[int, Optional[int]]
    warnings: Tuple[IntegrityWarning, ...] = ()

    def children(self, parent_id: Optional[int]) -> Tuple[int, ...]:
        return self.children_of.get(parent_id, ())

    def walk(self) -> Iterator[int]:
        """Depth-first pre-order over every body; a body's descendants come
        before its next sibling. The virtual root is not yielded."""
        if self.root_id is not None:
            yield self.root_id
        stack = list(reversed(self.children(self.root_id)))
        while stack:
            bid = stack.pop()
            yield bid
            stack.extend(reversed(self.children(bid)))

    def sibling_groups(self) -> Iterator[Tuple[Optional[int], Tuple[int, ...]]]:
        """(parent_id, ordered children) for every parent, parents in walk order."""
        kids = self.children(self.root_id)
        if kids:
            yield self.root_id, kids
        for bid in self.walk():
            if bid == self.root_id:
                continue
            kids = self.children(bid)
            if kids:
                yield bid, kids

    def __contains__(self, body_id: object) -> bool:
        return body_id in self.depth_of


# ── Helpers ────────────────────────────────────────────────

def _index_bodies(bodies: Iterable[CelestialBody]) -> Dict[int, CelestialBody]:
    by_id: Dict[int, CelestialBody] = {}
    names: Dict[str, int] = {}
    for body in bodies:
        if body.id in by_id:
            raise IntegrityError(DUPLICATE_BODY, f"Duplicate body id: {body.id}", [body.id])
        key = body.name.strip().lower()
        if key in names:
            raise IntegrityError(
                DUPLICATE_BODY,
                f"Duplicate body name: {body.name}",
                [names[key], body.id],
            )
        by_id[body.id] = body
        names[key] = body.id
    return by_id


def find_sun_id(by_id: Dict[int, CelestialBody], sun_id: Optional[int] = None) -> Optional[int]:
    if sun_id is not None:
        if sun_id not in by_id:
            raise IntegrityError(DANGLING_REFERENCE, f"Sun id references unknown body: {sun_id}", [sun_id])
        return sun_id
    for bid, body in by_id.items():
        if body.name.strip().lower() == SUN_NAME:
            return bid
    periodless = [bid for bid, body in by_id.items() if body.orbital_period is None]
    if len(periodless) == 1:
        return periodless[0]
    return None


def _child_sort_key(body: CelestialBody) -> Tuple[float, str, int]:
    return (body.aphelion, body.name.lower(), body.id)


def _find_cycle(start: int, edge_parent: Dict[int, int]) -> List[int]:
    seen: Dict[int, int] = {}
    path: List[int] = []
    current: Optional[int] = start
    while current is not None and current not in seen:
        seen[current] = len(path)
        path.append(current)
        current = edge_parent.get(current)
    if current is None:
        return []
    return path[seen[current]:]


def _raise_cycle(cycle: Sequence[int], by_id: Dict[int, CelestialBody]) -> None:
    names = [by_id[bid].name for bid in cycle]
    names.append(names[0])
    raise IntegrityError(CYCLE_DETECTED, "Cycle detected: " + " -> ".join(names), cycle)


# ── Resolver ───────────────────────────────────────────────

def resolve_hierarchy(
    bodies: Iterable[CelestialBody],
    edges: Iterable[OrbitalParent],
    sun_id: Optional[int] = None,
) -> Forest:
    by_id = _index_bodies(bodies)
    root_id = find_sun_id(by_id, sun_id)

    edge_parent: Dict[int, int] = {}
    for edge in edges:
        missing = [bid for bid in (edge.child, edge.parent) if bid not in by_id]
        if missing:
            raise IntegrityError(
                DANGLING_REFERENCE,
                f"Orbital parent edge {edge.child}->{edge.parent} references unknown body: {missing[0]}",
                missing,
            )
        if edge.child == edge.parent:
            _raise_cycle([edge.child], by_id)
        if edge.child in edge_parent:
            raise IntegrityError(
                MULTIPLE_PARENTS,
                f"Body {by_id[edge.child].name} has more than one parent "
                f"({edge_parent[edge.child]} and {edge.parent})",
                [edge.child, edge_parent[edge.child], edge.parent],
            )
        edge_parent[edge.child] = edge.parent

    if root_id is not None and root_id in edge_parent:
        # The root sits on a cycle or is the child of a body that descends from it.
        cycle = _find_cycle(root_id, edge_parent) or [root_id, edge_parent[root_id]]
        _raise_cycle(cycle, by_id)

    children: Dict[Optional[int], List[int]] = {}
    orphans: Set[int] = set()
    warnings: List[IntegrityWarning] = []
    for bid in sorted(by_id):
        if bid == root_id:
            continue
        parent = edge_parent.get(bid)
        if parent is None:
            orphans.add(bid)
            message = f"{by_id[bid].name} has no orbital parent; promoted to orbit the sun"
            warnings.append(IntegrityWarning(ORPHAN_PROMOTED, bid, message))
            logging.warning("[hierarchy] %s", message)
            children.setdefault(root_id, []).append(bid)
        else:
            children.setdefault(parent, []).append(bid)

    children_of: Dict[Optional[int], Tuple[int, ...]] = {
        pid: tuple(sorted(kids, key=lambda k: _child_sort_key(by_id[k])))
        for pid, kids in children.items()
    }

    parent_of: Dict[int, Optional[int]] = {}
    depth_of: Dict[int, int] = {}
    root_of: Dict[int, Optional[int]] = {}
    if root_id is not None:
        depth_of[root_id] = 0
        root_of[root_id] = root_id
        parent_of[root_id] = None

    stack: List[Tuple[int, Optional[int], int, Optional[int]]] = []
    for kid in reversed(children_of.get(root_id, ())):
        tree_root = kid if kid in orphans else root_id
        stack.append((kid, root_id, 1, tree_root))
    while stack:
        bid, parent, depth, tree_root = stack.pop()
        if bid in depth_of:
            cycle = _find_cycle(bid, edge_parent) or [bid]
            _raise_cycle(cycle, by_id)
        parent_of[bid] = parent
        depth_of[bid] = depth
        root_of[bid] = tree_root
        for kid in reversed(children_of.get(bid, ())):
            stack.append((kid, bid, depth + 1, tree_root))

    unreached = sorted(set(by_id) - set(depth_of))
    if unreached:
        cycle = _find_cycle(unreached[0], edge_parent) or unreached
        _raise_cycle(cycle, by_id)

    logging.debug(
        "[hierarchy] resolved %d bodies, %d orphans promoted, max depth %d",
        len(depth_of),
        len(orphans),
        max(depth_of.values(), default=0),
    )
    return Forest(
        root_id=root_id,
        parent_of=MappingProxyType(parent_of),
        children_of=MappingProxyType(children_of),
        depth_of=MappingProxyType(depth_of),
        root_of=MappingProxyType(root_of),
        warnings=tuple(warnings),
    )


def build_tree(forest: Forest, by_id: Dict[int, CelestialBody]) -> Dict[str, Any]:
    """Nested JSON view of the forest for the hierarchy endpoint."""
    root: Dict[str, Any]
    if forest.root_id is None:
        root = {"id": None, "name": "Sun", "depth": 0, "virtual": True}
    else:
        root = {"id": forest.root_id, "name": by_id[forest.root_id].name, "depth": 0, "virtual": False}
    root["children"] = []

    # Pre-order walk: a parent node exists before its children, siblings arrive in order.
    nodes: Dict[Optional[int], Dict[str, Any]] = {forest.root_id: root}
    for bid in forest.walk():
        if bid == forest.root_id:
            continue
        node = {
            "id": bid,
            "name": by_id[bid].name,
            "depth": forest.depth_of[bid],
            "root_id": forest.root_of[bid],
            "children": [],
        }
        nodes[forest.parent_of[bid]]["children"].append(node)
        nodes[bid] = node
    return {
        "tree": root,
        "warnings": [w.to_dict() for w in forest.warnings],
    }
