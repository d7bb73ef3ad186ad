# px/modules/graph.py

from __future__ import annotations
import heapq
from collections import deque
from typing import Dict, Iterable, List, Optional, Set


class CycleError(Exception):
    """The dependency graph contains a cycle, so no topological order exists."""

    def __init__(self, cycle: List[str]):
        self.cycle = list(cycle)
        loop = " -> ".join(self.cycle + self.cycle[:1])
        super().__init__(f"Dependency cycle detected: {loop}")


class DependencyGraph:
    """
    Directed graph of project names.
    An edge a -> b means "a depends on b". Simple graph: no parallel edges, no self loops.
    """

    def __init__(self):
        self._out: Dict[str, List[str]] = {}
        self._in: Dict[str, List[str]] = {}

    def add_node(self, node: str):
        if node not in self._out:
            self._out[node] = []
            self._in[node] = []

    def add_edge(self, src: str, dst: str) -> bool:
        """Adds src -> dst. Returns False when the edge is a self loop or already present."""
        if src == dst:
            return False
        self.add_node(src)
        self.add_node(dst)
        if dst in self._out[src]:
            return False
        self._out[src].append(dst)
        self._in[dst].append(src)
        return True

    # -------------------------
    # inspection
    # -------------------------
    @property
    def nodes(self) -> List[str]:
        return list(self._out)

    @property
    def edges(self) -> List[tuple]:
        return [(src, dst) for src, dsts in self._out.items() for dst in dsts]

    def __contains__(self, node) -> bool:
        return node in self._out

    def __len__(self) -> int:
        return len(self._out)

    def successors(self, node: str) -> List[str]:
        return list(self._out[node])

    def predecessors(self, node: str) -> List[str]:
        return list(self._in[node])

    def in_degree(self, node: str) -> int:
        return len(self._in[node])

    def out_degree(self, node: str) -> int:
        return len(self._out[node])

    # -------------------------
    # derived graphs
    # -------------------------
    def reachable(self, seeds: Iterable[str]) -> Set[str]:
        """Breadth-first closure over outgoing edges; the seeds are included."""
        seen: Set[str] = set()
        queue = deque()
        for s in seeds:
            if s in self._out and s not in seen:
                seen.add(s)
                queue.append(s)
        while queue:
            node = queue.popleft()
            for dep in self._out[node]:
                if dep not in seen:
                    seen.add(dep)
                    queue.append(dep)
        return seen

    def subgraph(self, keep: Iterable[str]) -> "DependencyGraph":
        """Induced subgraph on `keep` (unknown names are ignored)."""
        keep_set = {n for n in keep if n in self._out}
        sub = DependencyGraph()
        for node in self._out:
            if node in keep_set:
                sub.add_node(node)
        for node in sub.nodes:
            for dep in self._out[node]:
                if dep in keep_set:
                    sub.add_edge(node, dep)
        return sub

    # -------------------------
    # ordering
    # -------------------------
    def topo_order(self) -> List[str]:
        """
        Dependencies first: a node is emitted only after every node it points to.
        Among nodes ready at the same time the smallest name goes first.
        Raises CycleError when some nodes can never become ready.
        """
        pending = {n: len(self._out[n]) for n in self._out}
        ready = [n for n, count in pending.items() if count == 0]
        heapq.heapify(ready)
        order = []
        while ready:
            node = heapq.heappop(ready)
            order.append(node)
            for user in self._in[node]:
                pending[user] -= 1
                if pending[user] == 0:
                    heapq.heappush(ready, user)
        if len(order) != len(self._out):
            remain = {n for n, count in pending.items() if count > 0}
            raise CycleError(self.find_cycle(remain) or sorted(remain))
        return order

    def find_cycle(self, nodes_remaining: Optional[Set[str]] = None) -> Optional[List[str]]:
        """Returns one cycle (as a node list) among `nodes_remaining`, or None."""
        nodes = set(self._out) if nodes_remaining is None else set(nodes_remaining)
        state: Dict[str, int] = {}
        for start in sorted(nodes):
            if start in state:
                continue
            path = [start]
            state[start] = 1
            stack = [iter(sorted(d for d in self._out[start] if d in nodes))]
            while stack:
                advanced = False
                for nxt in stack[-1]:
                    if state.get(nxt) == 1:
                        return path[path.index(nxt):]
                    if nxt not in state:
                        state[nxt] = 1
                        path.append(nxt)
                        stack.append(iter(sorted(d for d in self._out[nxt] if d in nodes)))
                        advanced = True
                        break
                if not advanced:
                    state[path.pop()] = 2
                    stack.pop()
        return None
