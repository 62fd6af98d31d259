"""A directed graph of plan nodes, with cycle checks and execution ordering."""

from __future__ import annotations

from collections import deque
from typing import Iterator

from mediapipeline.schemas.plan import PlanEdge, PlanNode


class CycleError(ValueError):
    """Raised when a graph that must be acyclic contains a cycle."""


class Graph:
    """A directed graph of processing nodes, indexed for fast lookup."""

    def __init__(self) -> None:
        self.nodes: list[PlanNode] = []
        self.edges: list[PlanEdge] = []
        self._index: dict[str, PlanNode] = {}
        self._outgoing: dict[str, list[PlanEdge]] = {}
        self._incoming: dict[str, list[PlanEdge]] = {}

    def __iter__(self) -> Iterator[PlanNode]:
        return iter(self.nodes)

    def __len__(self) -> int:
        return len(self.nodes)

    def add_node(self, node: PlanNode) -> None:
        """Add a node; a later node with the same ID replaces it in the index."""
        self.nodes.append(node)
        self._index[node.id] = node

    def add_edge(self, edge: PlanEdge) -> None:
        """Add a dependency edge."""
        self.edges.append(edge)
        self._outgoing.setdefault(edge.source, []).append(edge)
        self._incoming.setdefault(edge.target, []).append(edge)

    def get_node(self, node_id: str) -> PlanNode | None:
        """Return the node with this ID, or None."""
        return self._index.get(node_id)

    def outgoing_edges(self, node_id: str) -> list[PlanEdge]:
        """Edges leaving the node, in insertion order."""
        return list(self._outgoing.get(node_id, ()))

    def incoming_edges(self, node_id: str) -> list[PlanEdge]:
        """Edges entering the node, in insertion order."""
        return list(self._incoming.get(node_id, ()))

    def predecessors(self, node_id: str) -> list[PlanNode]:
        """Known nodes with an edge into this node."""
        found = (self.get_node(e.source) for e in self._incoming.get(node_id, ()))
        return [node for node in found if node is not None]

    def successors(self, node_id: str) -> list[PlanNode]:
        """Known nodes with an edge from this node."""
        found = (self.get_node(e.target) for e in self._outgoing.get(node_id, ()))
        return [node for node in found if node is not None]

    def detect_cycles(self) -> None:
        """Raise CycleError naming the first back edge found by depth-first search."""
        visited: set[str] = set()
        on_path: set[str] = set()

        for start in self.nodes:
            if start.id in visited:
                continue
            visited.add(start.id)
            on_path.add(start.id)
            stack = [(start.id, iter(self._outgoing.get(start.id, ())))]
            while stack:
                current, edges = stack[-1]
                for edge in edges:
                    successor = edge.target
                    if successor not in visited:
                        visited.add(successor)
                        on_path.add(successor)
                        stack.append((successor, iter(self._outgoing.get(successor, ()))))
                        break
                    if successor in on_path:
                        raise CycleError(f"cycle detected: {current} -> {successor}")
                else:
                    on_path.discard(current)
                    stack.pop()

    def input_nodes(self) -> list[PlanNode]:
        """All nodes of type "input"."""
        return [node for node in self.nodes if node.type == "input"]

    def output_nodes(self) -> list[PlanNode]:
        """All nodes of type "output"."""
        return [node for node in self.nodes if node.type == "output"]

    def _in_degrees(self) -> dict[str, int]:
        return {node.id: len(self._incoming.get(node.id, ())) for node in self.nodes}

    def topological_sort(self) -> list[str]:
        """Return node IDs in dependency order (Kahn's algorithm)."""
        in_degree = self._in_degrees()
        queue = deque(node_id for node_id, degree in in_degree.items() if degree == 0)
        result: list[str] = []

        while queue:
            node_id = queue.popleft()
            result.append(node_id)
            for edge in self._outgoing.get(node_id, ()):
                in_degree[edge.target] = in_degree.get(edge.target, 0) - 1
                if in_degree[edge.target] == 0:
                    queue.append(edge.target)

        if len(result) != len(self.nodes):
            raise CycleError(
                f"graph contains cycle (processed {len(result)}/{len(self.nodes)} nodes)"
            )
        return result

    def execution_stages(self) -> list[list[str]]:
        """Group node IDs into stages whose members do not depend on each other."""
        in_degree = self._in_degrees()
        processed: set[str] = set()
        stages: list[list[str]] = []

        while len(processed) < len(self.nodes):
            stage = [
                node.id
                for node in self.nodes
                if node.id not in processed and in_degree.get(node.id, 0) == 0
            ]
            if not stage:
                raise CycleError("cannot compute stages (possible cycle)")
            stages.append(stage)
            for node_id in stage:
                processed.add(node_id)
                for edge in self._outgoing.get(node_id, ()):
                    in_degree[edge.target] = in_degree.get(edge.target, 0) - 1

        return stages