"""Builds the execution graph of a job specification."""

from __future__ import annotations

from mediapipeline.planner.graph import CycleError, Graph
from mediapipeline.schemas.jobspec import JobSpec
from mediapipeline.schemas.plan import PlanEdge, PlanNode


class ReferenceError_(ValueError):
    """Raised when an operation or output names an ID that nothing produces."""


class Builder:
    """Turns a JobSpec into a graph of input, operation and output nodes."""

    def build_dag(self, spec: JobSpec) -> Graph:
        """Build and check the graph; raise on bad references or cycles."""
        graph = Graph()
        producers: dict[str, str] = {}

        def resolve(ref: str, context: str) -> str:
            try:
                return producers[ref]
            except KeyError:
                raise ReferenceError_(f"{context}: reference '{ref}' not found") from None

        for item in spec.inputs:
            node = PlanNode(
                id=f"input_{item.id}",
                type="input",
                input_id=item.id,
                source_uri=item.source,
            )
            graph.add_node(node)
            producers[item.id] = node.id

        for index, op in enumerate(spec.operations):
            node_id = f"op_{index}_{op.op}"
            graph.add_node(
                PlanNode(id=node_id, type="operation", operator=op.op, params=op.params)
            )
            producers[op.output] = node_id

            context = f"operation {index} ({op.op})"
            references = ([op.input] if op.input else []) + list(op.inputs)
            for ref in references:
                graph.add_edge(
                    PlanEdge(source=resolve(ref, context), target=node_id, stream_type="both")
                )

        for out in spec.outputs:
            node = PlanNode(
                id=f"output_{out.id}",
                type="output",
                output_id=out.id,
                dest_uri=out.destination,
            )
            graph.add_node(node)
            source = resolve(out.id, f"output '{out.id}'")
            graph.add_edge(PlanEdge(source=source, target=node.id, stream_type="both"))

        try:
            graph.detect_cycles()
        except CycleError as exc:
            raise CycleError(f"cyclic dependency detected: {exc}") from exc

        return graph