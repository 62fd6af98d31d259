"""Estimation of the resources a plan needs to run."""

from __future__ import annotations

from datetime import timedelta
from typing import Mapping

from mediapipeline.planner.graph import CycleError, Graph
from mediapipeline.planner.metadata import Operator, PlanningError, lookup_operator
from mediapipeline.schemas.plan import MediaInfo, NodeEstimates, PlanNode, ResourceEstimates


class ResourceEstimator:
    """Sums per-operation estimates stage by stage.

    Stages run one after another, so their durations add up; nodes inside a
    stage run side by side, so the stage takes as long as its slowest node and
    needs the memory of all of them at once.
    """

    def __init__(self, registry: Mapping[str, Operator]) -> None:
        self.registry = registry

    def estimate(self, graph: Graph) -> ResourceEstimates:
        """Estimate every operation node; metadata must already be propagated."""
        try:
            stages = graph.execution_stages()
        except CycleError as exc:
            raise PlanningError(f"failed to compute execution stages: {exc}") from exc

        node_estimates: dict[str, NodeEstimates] = {}
        total_duration = timedelta(0)
        peak_memory_mb = 0
        total_disk_mb = 0

        for stage in stages:
            stage_duration = timedelta(0)
            stage_memory_mb = 0

            for node_id in stage:
                node = graph.get_node(node_id)
                if node is None:
                    raise PlanningError(f"node {node_id} not found")
                if node.type != "operation":
                    continue

                estimate = self._estimate_node(graph, node)
                node_estimates[node_id] = estimate
                stage_duration = max(stage_duration, estimate.duration)
                stage_memory_mb += estimate.memory_mb
                total_disk_mb += estimate.disk_mb

            total_duration += stage_duration
            peak_memory_mb = max(peak_memory_mb, stage_memory_mb)

        return ResourceEstimates(
            node_estimates=node_estimates,
            total_duration=total_duration,
            peak_memory_mb=peak_memory_mb,
            total_disk_mb=total_disk_mb,
        )

    def _estimate_node(self, graph: Graph, node: PlanNode) -> NodeEstimates:
        if node.metadata is None:
            raise PlanningError(
                f"node {node.id} has no metadata (run metadata propagation first)"
            )

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
            return operator.estimate_resources(node.params, inputs)
        except Exception as exc:
            raise PlanningError(
                f"node {node.id}: failed to estimate resources: {exc}"
            ) from exc


def _collect_input_metadata(graph: Graph, node: PlanNode) -> list[MediaInfo]:
    predecessors = graph.predecessors(node.id)
    if not predecessors:
        raise PlanningError(f"operation node {node.id} has no inputs")
    inputs = []
    for pred in predecessors:
        if pred.metadata is None:
            raise PlanningError(f"predecessor {pred.id} has no metadata")
        inputs.append(pred.metadata)
    return inputs