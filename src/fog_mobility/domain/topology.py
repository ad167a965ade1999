# fog_mobility/domain/topology.py
from __future__ import annotations

from collections.abc import Iterable, Mapping

from fog_mobility.domain.entities.device import FogNode
from fog_mobility.errors import InvariantViolation


class Topology:
    """
    Parent/child tree of fog devices plus what is derived from it: child latencies,
    per-device routing tables and orchestrator assignment.

    Only the methods below mutate these maps.
    """

    def __init__(self, nodes: Iterable[FogNode]):
        self.nodes: dict[int, FogNode] = {n.id: n for n in nodes}
        self._parent: dict[int, int | None] = {}
        self._children: dict[int, set[int]] = {i: set() for i in self.nodes}
        self._child_latency: dict[int, dict[int, float]] = {i: {} for i in self.nodes}
        self._uplink: dict[int, float] = {}
        self._routing: dict[int, dict[int, int]] = {i: {} for i in self.nodes}
        self._orchestrator: dict[int, int | None] = {}
        self._monitored: dict[int, set[int]] = {i: set() for i in self.nodes}

    # ------------------------------------------------------------ loading

    def load(
        self,
        parent_of: Mapping[int, int | None],
        *,
        uplink_latency: Mapping[int, float] | None = None,
        routing: Mapping[int, Mapping[int, int]] | None = None,
    ) -> None:
        referenced = set(parent_of) | {p for p in parent_of.values() if p is not None}
        unknown = referenced - set(self.nodes)
        if unknown:
            raise InvariantViolation(f"parent map references unknown devices {sorted(unknown)}")
        uplink_latency = uplink_latency or {}
        self._parent = {i: parent_of.get(i) for i in self.nodes}
        for i in self.nodes:
            self._children[i].clear()
            self._child_latency[i].clear()
            self._monitored[i].clear()
        for child, parent in self._parent.items():
            if parent is not None:
                self.add_child(parent, child, uplink_latency.get(child, 0.0))
        self.check_tree()
        if routing is None:
            self._derive_routes()
        else:
            self._routing = {i: dict(routing.get(i, {})) for i in self.nodes}
        self._derive_orchestrators()

    def _derive_routes(self) -> None:
        paths = {i: [i, *self.ancestors(i)] for i in self.nodes}  # self -> root
        for src in self.nodes:
            table: dict[int, int] = {}
            for dst in self.nodes:
                if dst == src:
                    continue
                chain = paths[dst]
                if src in chain:
                    # descendant: first hop down is the node just below src on dst's chain
                    table[dst] = chain[chain.index(src) - 1]
                else:
                    parent = self._parent[src]
                    if parent is not None:
                        table[dst] = parent
            self._routing[src] = table

    def _derive_orchestrators(self) -> None:
        self._orchestrator = {}
        for i, node in self.nodes.items():
            if node.role.orchestrates:
                self._orchestrator[i] = i
                continue
            orch = self.nearest_orchestrator(self._parent[i])
            self._orchestrator[i] = orch
            if orch is not None:
                self._monitored[orch].add(i)

    # ------------------------------------------------------------ queries

    def parent(self, i: int) -> int | None:
        return self._parent.get(i)

    def parent_of(self) -> dict[int, int | None]:
        return dict(self._parent)

    def children(self, i: int) -> frozenset[int]:
        return frozenset(self._children[i])

    def child_latency(self, i: int) -> dict[int, float]:
        return dict(self._child_latency[i])

    def uplink_latency(self, i: int) -> float | None:
        return self._uplink.get(i)

    def routing_table(self, i: int) -> dict[int, int]:
        return dict(self._routing[i])

    def next_hop(self, src: int, dst: int) -> int | None:
        return self._routing[src].get(dst)

    def orchestrator(self, i: int) -> int | None:
        return self._orchestrator.get(i)

    def monitored(self, i: int) -> frozenset[int]:
        return frozenset(self._monitored[i])

    def ancestors(self, i: int) -> list[int]:
        out: list[int] = []
        seen = {i}
        p = self._parent.get(i)
        while p is not None:
            if p in seen:
                raise InvariantViolation(f"cycle through device {p}")
            seen.add(p)
            out.append(p)
            p = self._parent.get(p)
        return out

    def descendants(self, i: int) -> set[int]:
        out: set[int] = set()
        stack = list(self._children[i])
        while stack:
            c = stack.pop()
            if c not in out:
                out.add(c)
                stack.extend(self._children[c])
        return out

    def nearest_orchestrator(self, start: int | None) -> int | None:
        node = start
        while node is not None:
            if self.nodes[node].role.orchestrates:
                return node
            node = self._parent.get(node)
        return None

    def check_tree(self) -> None:
        roots = [i for i, p in self._parent.items() if p is None]
        if len(roots) != 1:
            raise InvariantViolation(f"topology must have exactly one root, found {roots}")
        for i in self.nodes:
            self.ancestors(i)

    # ------------------------------------------------------------ mutation

    def add_child(self, parent: int, child: int, latency: float) -> None:
        self._children[parent].add(child)
        self._child_latency[parent][child] = latency
        self._uplink[child] = latency

    def remove_child(self, parent: int, child: int) -> None:
        self._children[parent].discard(child)
        self._child_latency[parent].pop(child, None)

    def reparent(self, child: int, new_parent: int, latency: float) -> int | None:
        """Move `child` under `new_parent`. Returns the old parent."""
        if child not in self.nodes or new_parent not in self.nodes:
            raise InvariantViolation(f"unknown device in reparent {child} -> {new_parent}")
        if new_parent == child or new_parent in self.descendants(child):
            raise InvariantViolation(f"reparenting {child} under {new_parent} makes a cycle")
        old = self._parent.get(child)
        if old is not None:
            self.remove_child(old, child)
        self.add_child(new_parent, child, latency)
        self._parent[child] = new_parent
        return old

    def set_route(self, src: int, dst: int, next_hop: int) -> None:
        self._routing[src][dst] = next_hop

    def assign_orchestrator(self, device: int, orchestrator: int) -> int | None:
        """Deregister from the previous orchestrator and register with `orchestrator`."""
        old = self._orchestrator.get(device)
        if old is not None and old != device:
            self._monitored[old].discard(device)
        self._orchestrator[device] = orchestrator
        if orchestrator != device:
            self._monitored[orchestrator].add(device)
        return old
