# tests/test_sequencer.py
import pytest

from app import AUTOMATIC_STEPS, SCREENS
from exceptions import GraphError
from sequencer import ABORT, BACK, DONE, SequenceGraph, Sequencer

SMALL_GRAPH = {
    "a": {"next": "b", "abort": ABORT},
    "b": {"next": "c", "back": BACK, "abort": ABORT},
    "c": {"next": DONE, "back": BACK, "jump": "a"},
}


@pytest.fixture
def seq():
    return Sequencer(SequenceGraph(SMALL_GRAPH, "a"))


def test_start(seq):
    assert seq.start() == "a"
    assert seq.history == []
    assert not seq.finished


def test_forward_to_done(seq):
    seq.start()
    assert seq.advance("next") == "b"
    assert seq.advance("next") == "c"
    assert seq.advance("next") == DONE
    assert seq.finished


def test_back_uses_history(seq):
    seq.start()
    seq.advance("next")
    seq.advance("next")
    seq.advance("jump")
    assert seq.current == "a"
    # back from the jump target returns to where the jump came from
    assert seq.advance("back") == "c"
    assert seq.advance("back") == "b"
    assert seq.advance("back") == "a"


def test_back_with_empty_history_stays(seq):
    seq.start()
    assert seq.advance("back") == "a"


def test_abort(seq):
    seq.start()
    seq.advance("next")
    assert seq.advance("abort") == ABORT
    assert seq.finished
    with pytest.raises(GraphError):
        seq.advance("next")


def test_unknown_key(seq):
    seq.start()
    with pytest.raises(GraphError):
        seq.advance("sideways")


def test_run(seq):
    keys = iter(["next", "back", "next", "next", "next"])
    steps = {name: (lambda: next(keys)) for name in SMALL_GRAPH}
    assert seq.run(steps) == DONE


def test_run_missing_step():
    seq = Sequencer(SequenceGraph(SMALL_GRAPH, "a"))
    with pytest.raises(GraphError):
        seq.run({"a": lambda: "next"})


def test_debug_start():
    graph = SequenceGraph(dict(SMALL_GRAPH, d={"go": "c"}), "a", debug_start="d")
    assert Sequencer(graph, debug=True).start() == "d"
    assert Sequencer(graph).start() == "a"


def test_validate_dangling_target():
    graph = SequenceGraph({"a": {"next": "nowhere"}}, "a")
    with pytest.raises(GraphError, match="nowhere"):
        graph.validate()


def test_validate_unreachable_step():
    graph = SequenceGraph({"a": {"next": DONE}, "b": {"next": "a"}}, "a")
    with pytest.raises(GraphError, match="unreachable"):
        graph.validate()


def test_validate_missing_start():
    with pytest.raises(GraphError, match="start step"):
        SequenceGraph({"a": {"next": DONE}}, "z").validate()


def test_validate_unimplemented_step():
    graph = SequenceGraph(SMALL_GRAPH, "a")
    graph.validate()
    with pytest.raises(GraphError, match="no implementation"):
        graph.validate(known_steps=["a", "b"])


def test_from_yaml_malformed(tmp_path):
    path = tmp_path / "seq.yaml"
    path.write_text("steps: {}\n")
    with pytest.raises(GraphError):
        SequenceGraph.from_yaml(path)


def test_shipped_graph_is_valid():
    graph = SequenceGraph.from_yaml()
    graph.validate(known_steps=set(AUTOMATIC_STEPS) | set(SCREENS))
    assert graph.start == "product_check"
    assert graph.debug_start == "debug_run"


def test_shipped_graph_happy_path():
    seq = Sequencer(SequenceGraph.from_yaml())
    seq.start()
    for key, expected in [
        ("hana", "scenario_selection"),
        ("next", "configure_network"),
        ("next", "configure_members"),
        ("next", "fencing"),
        ("next", "watchdog"),
        ("next", "ntp"),
        ("next", "general_setup"),
        ("fencing", "fencing"),
        ("back", "general_setup"),
        ("install", "installation"),
        ("next", DONE),
    ]:
        assert seq.advance(key) == expected


def test_shipped_graph_join_cluster_detour():
    seq = Sequencer(SequenceGraph.from_yaml())
    seq.start()
    seq.advance("hana")
    seq.advance("next")
    assert seq.advance("join_cluster") == "join_cluster"
    assert seq.advance("back") == "configure_network"


def test_shipped_graph_unsupported_product():
    seq = Sequencer(SequenceGraph.from_yaml())
    seq.start()
    assert seq.advance("unknown") == "product_not_supported"
    assert seq.advance("abort") == ABORT


TWO_STEP_GRAPH = {"A": {"next": "B", "abort": ABORT}, "B": {"next": DONE}}


def _drive(keys):
    seq = Sequencer(SequenceGraph(TWO_STEP_GRAPH, "A"))
    keys = iter(keys)
    return seq.run({"A": lambda: next(keys), "B": lambda: next(keys)})


def test_two_step_graph_done():
    assert _drive(["next", "next"]) == DONE


def test_two_step_graph_abort():
    assert _drive(["abort"]) == ABORT


def test_two_step_graph_back_ignores_edges():
    # B has no "back" edge; history still returns to A
    seq = Sequencer(SequenceGraph(TWO_STEP_GRAPH, "A"))
    seq.start()
    seq.advance("next")
    assert seq.advance("back") == "A"
