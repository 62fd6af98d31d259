"""The planner: turns a job specification into a processing plan."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from mediapipeline.planner.builder import Builder, ReferenceError_
from mediapipeline.planner.estimator import ResourceEstimator
from mediapipeline.planner.graph import CycleError
from mediapipeline.planner.metadata import (
    MetadataPropagator,
    Operator,
    PlanningError,
    lookup_operator,
)
from mediapipeline.schemas.jobspec import JobSpec
from mediapipeline.schemas.plan import ProcessingPlan, ResourceEstimates


@dataclass
class PlanOptions:
    """Switches for parts of planning that may be left out."""

    skip_metadata_validation: bool = False
    skip_resource_estimation: bool = False


class Planner:
    """Builds graphs, propagates metadata and estimates resources for jobs."""

    def __init__(self, registry: Mapping[str, Operator] | None = None) -> None:
        self.registry: Mapping[str, Operator] = {} if registry is None else registry
        self.builder = Builder()
        self.propagator = MetadataPropagator(self.registry)
        self.estimator = ResourceEstimator(self.registry)

    def plan(self, spec: JobSpec, options: PlanOptions | None = None) -> ProcessingPlan:
        """Generate the processing plan for a job; raise PlanningError on failure."""
        options = options or PlanOptions()

        try:
            graph = self.builder.build_dag(spec)
        except (ReferenceError_, CycleError) as exc:
            raise PlanningError(f"failed to build DAG: {exc}") from exc

        try:
            graph.detect_cycles()
        except CycleError as exc:
            raise PlanningError(f"graph validation failed: {exc}") from exc

        try:
            order = graph.topological_sort()
        except CycleError as exc:
            raise PlanningError(f"failed to compute execution order: {exc}") from exc

        try:
            stages = graph.execution_stages()
        except CycleError as exc:
            raise PlanningError(f"failed to compute execution stages: {exc}") from exc

        if not options.skip_metadata_validation and any(
            node.metadata is not None for node in graph.input_nodes()
        ):
            try:
                self.propagator.propagate(graph)
            except PlanningError as exc:
                raise PlanningError(f"metadata propagation failed: {exc}") from exc

        estimates: ResourceEstimates | None = None
        if not options.skip_resource_estimation and any(
            node.type == "operation" and node.metadata is not None for node in graph
        ):
            try:
                estimates = self.estimator.estimate(graph)
            except PlanningError as exc:
                raise PlanningError(f"resource estimation failed: {exc}") from exc

        return ProcessingPlan(
            job_id=spec.job_id,
            nodes=graph.nodes,
            edges=graph.edges,
            execution_order=order,
            execution_stages=stages,
            resource_estimate=estimates,
        )

    def validate_operators(self, spec: JobSpec) -> None:
        """Raise PlanningError if any operation names an unregistered operator."""
        for index, op in enumerate(spec.operations):
            if op.op not in self.registry:
                raise PlanningError(f"operation {index}: operator '{op.op}' not found")

    def validate_parameters(self, spec: JobSpec) -> None:
        """Raise PlanningError if any operation's parameters are rejected."""
        for index, op in enumerate(spec.operations):
            try:
                operator = lookup_operator(self.registry, op.op)
            except PlanningError:
                raise PlanningError(
                    f"operation {index}: operator '{op.op}' not found"
                ) from None
            try:
                operator.validate_params(op.params)
            except Exception as exc:
                raise PlanningError(f"operation {index} ({op.op}): {exc}") from exc