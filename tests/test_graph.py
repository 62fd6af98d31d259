import pytest

from mediapipeline.planner.graph import CycleError, Graph
from mediapipeline.schemas.plan import PlanEdge, PlanNode


def _graph(node_ids, edges):
    graph = Graph()
    for node_id in node_ids:
        graph.add_node(PlanNode(id=node_id, type=""))
    for source, target in edges:
        graph.add_edge(PlanEdge(source=source, target=target))
    return graph


DIAMOND = (["A", "B", "C", "D"], [("A", "B"), ("A", "C"), ("B", "D"), ("C", "D")])


def test_add_node():
    graph = Graph()
    graph.add_node(PlanNode(id="node1", type="input"))
    assert len(graph.nodes) == 1
    retrieved = graph.get_node("node1")
    assert retrieved is not None
    assert retrieved.id == "node1"


def test_get_missing_node_returns_none():
    assert Graph().get_node("missing") is None


def test_add_edge():
    graph = Graph()
    graph.add_node(PlanNode(id="node1", type="input"))
    graph.add_node(PlanNode(id="node2", type="operation"))
    graph.add_edge(PlanEdge(source="node1", target="node2", stream_type="video"))
    assert len(graph.edges) == 1
    assert len(graph.outgoing_edges("node1")) == 1
    assert len(graph.incoming_edges("node2")) == 1
    assert graph.incoming_edges("node1") == []


def test_detect_cycles_no_cycle():
    graph = _graph(["A", "B", "C"], [("A", "B"), ("B", "C")])
    assert graph.detect_cycles() is None


def test_detect_cycles_simple_cycle():
    graph = _graph(["A", "B"], [("A", "B"), ("B", "A")])
    with pytest.raises(CycleError, match="cycle detected: B -> A"):
        graph.detect_cycles()


def test_detect_cycles_complex_cycle():
    graph = _graph(["A", "B", "C", "D"], [("A", "B"), ("B", "C"), ("C", "D"), ("D", "B")])
    with pytest.raises(CycleError, match="D -> B"):
        graph.detect_cycles()


def test_detect_cycles_self_loop():
    graph = _graph(["A"], [("A", "A")])
    with pytest.raises(CycleError, match="A -> A"):
        graph.detect_cycles()


def test_predecessors():
    graph = _graph(["A", "B", "C"], [("A", "C"), ("B", "C")])
    assert sorted(node.id for node in graph.predecessors("C")) == ["A", "B"]


def test_successors():
    graph = _graph(["A", "B", "C"], [("A", "B"), ("A", "C")])
    assert [node.id for node in graph.successors("A")] == ["B", "C"]


def test_predecessors_skip_unknown_nodes():
    graph = _graph(["C"], [("ghost", "C")])
    assert graph.predecessors("C") == []
    assert len(graph.incoming_edges("C")) == 1


def test_input_and_output_nodes():
    graph = Graph()
    graph.add_node(PlanNode(id="in", type="input"))
    graph.add_node(PlanNode(id="op", type="operation"))
    graph.add_node(PlanNode(id="out", type="output"))
    assert [n.id for n in graph.input_nodes()] == ["in"]
    assert [n.id for n in graph.output_nodes()] == ["out"]


def test_topological_sort_linear():
    order = _graph(["A", "B", "C"], [("A", "B"), ("B", "C")]).topological_sort()
    assert len(order) == 3
    assert order.index("A") < order.index("B") < order.index("C")


def test_topological_sort_diamond():
    order = _graph(*DIAMOND).topological_sort()
    assert len(order) == 4
    assert order.index("A") < order.index("B")
    assert order.index("A") < order.index("C")
    assert order.index("B") < order.index("D")
    assert order.index("C") < order.index("D")


def test_topological_sort_with_cycle():
    graph = _graph(["A", "B", "C"], [("A", "B"), ("B", "C"), ("C", "A")])
    with pytest.raises(CycleError, match="processed 0/3 nodes"):
        graph.topological_sort()


def test_execution_stages_linear():
    stages = _graph(["A", "B", "C"], [("A", "B"), ("B", "C")]).execution_stages()
    assert stages == [["A"], ["B"], ["C"]]


def test_execution_stages_parallel():
    stages = _graph(["A", "B", "C"], [("A", "B"), ("A", "C")]).execution_stages()
    assert len(stages) == 2
    assert stages[0] == ["A"]
    assert sorted(stages[1]) == ["B", "C"]


def test_execution_stages_diamond():
    stages = _graph(*DIAMOND).execution_stages()
    assert len(stages) == 3
    assert stages[0] == ["A"]
    assert len(stages[1]) == 2
    assert stages[2] == ["D"]


def test_execution_stages_with_cycle():
    graph = _graph(["A", "B"], [("A", "B"), ("B", "A")])
    with pytest.raises(CycleError, match="possible cycle"):
        graph.execution_stages()


def test_empty_graph_orders():
    graph = Graph()
    assert graph.topological_sort() == []
    assert graph.execution_stages() == []