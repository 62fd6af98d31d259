"""Propagation of media metadata through a plan graph."""

from __future__ import annotations

from typing import Any, Mapping, Protocol

from mediapipeline.planner.graph import CycleError, Graph
from mediapipeline.schemas.plan import MediaInfo, NodeEstimates, PlanNode


class PlanningError(ValueError):
    """Raised when a plan cannot be completed."""


class Operator(Protocol):
    """A media operation known to the planner by name."""

    def validate_params(self, params: dict[str, Any]) -> None:
        """Raise if the parameters are not acceptable."""

    def compute_output_metadata(
        self, params: dict[str, Any], inputs: list[MediaInfo]
    ) -> MediaInfo:
        """Return the metadata of the operation's result."""

    def estimate_resources(
        self, params: dict[str, Any], inputs: list[MediaInfo]
    ) -> NodeEstimates:
        """Return the resources the operation is expected to need."""


def lookup_operator(registry: Mapping[str, Operator], name: str) -> Operator:
    """Return the operator registered under name, or raise PlanningError."""
    try:
        return registry[name]
    except KeyError:
        raise PlanningError(f"operator '{name}' not found") from None


class MetadataPropagator:
    """Computes each node's metadata from its predecessors, in dependency order."""

    def __init__(self, registry: Mapping[str, Operator]) -> None:
        self.registry = registry

    def propagate(self, graph: Graph) -> None:
        """Fill in metadata for every operation and output node."""
        try:
            order = graph.topological_sort()
        except CycleError as exc:
            raise PlanningError(f"failed to get topological order: {exc}") from exc

        for node_id in order:
            node = graph.get_node(node_id)
            if node is None:
                raise PlanningError(f"node {node_id} not found")

            if node.type == "input":
                if node.metadata is None:
                    raise PlanningError(f"input node {node_id} has no metadata")
            elif node.type == "operation":
                node.metadata = self._operation_metadata(graph, node)
            elif node.type == "output":
                node.metadata = self._output_metadata(graph, node)
            else:
                raise PlanningError(f"unknown node type: {node.type}")

    def _operation_metadata(self, graph: Graph, node: PlanNode) -> MediaInfo:
        try:
            operator = lookup_operator(self.registry, node.operator)
        except PlanningError as exc:
            raise PlanningError(
                f"node {node.id}: operator {node.operator} not found: {exc}"
            ) from exc

        try:
            inputs = _collect_input_metadata(graph, node)
        except PlanningError as exc:
            raise PlanningError(
                f"node {node.id}: failed to collect input metadata: {exc}"
            ) from exc

        try:
            return operator.compute_output_metadata(node.params, inputs)
        except Exception as exc:
            raise PlanningError(
                f"node {node.id}: failed to compute output metadata: {exc}"
            ) from exc

    @staticmethod
    def _output_metadata(graph: Graph, node: PlanNode) -> MediaInfo:
        predecessors = graph.predecessors(node.id)
        if not predecessors:
            raise PlanningError(f"output node {node.id} has no predecessors")
        if len(predecessors) > 1:
            raise PlanningError(f"output node {node.id} has multiple predecessors")
        source = predecessors[0]
        if source.metadata is None:
            raise PlanningError(
                f"output node {node.id}: predecessor {source.id} has no metadata"
            )
        return source.metadata.clone()


def _collect_input_metadata(graph: Graph, node: PlanNode) -> list[MediaInfo]:
    predecessors = graph.predecessors(node.id)
    if not predecessors:
        raise PlanningError(f"operation node {node.id} has no inputs")
    inputs = []
    for pred in predecessors:
        if pred.metadata is None:
            raise PlanningError(f"predecessor {pred.id} has no metadata")
        inputs.append(pred.metadata.clone())
    return inputs