import logging

import pytest

from glenn2vcf.errors import InputError, InternalInvariantViolation
from glenn2vcf.graph import parse_gfa
from glenn2vcf.models import Placement
from glenn2vcf.reference import trace_reference
from glenn2vcf.toy_data import TOY_LINKS, TOY_NODES, TOY_REF_PATH, format_gfa


def _graph(nodes, links, paths):
    return parse_gfa(format_gfa(nodes, links, paths).splitlines())


def _node_at(ref, coord):
    return int(ref.step_nodes[ref.floor_step(coord)])


def test_trace_linear_reference():
    ref = trace_reference(_graph(TOY_NODES, TOY_LINKS, [TOY_REF_PATH]), "ref")
    assert ref.sequence == "ACGTTT"
    assert len(ref) == 6
    assert ref.placements == {
        1: Placement(0, False),
        2: Placement(2, False),
        3: Placement(4, False),
    }
    assert 4 not in ref
    starts = [p.start for p in ref.placements.values()]
    assert starts == sorted(starts)


def test_floor_lookup():
    ref = trace_reference(_graph(TOY_NODES, TOY_LINKS, [TOY_REF_PATH]), "ref")
    assert _node_at(ref, 0) == 1
    assert _node_at(ref, 2) == 2
    assert _node_at(ref, 3) == 2
    assert _node_at(ref, 5) == 3
    assert list(ref.nodes_between(2, 6)) == [2, 3]
    assert list(ref.nodes_between(4, 4)) == []
    with pytest.raises(InternalInvariantViolation):
        ref.floor_step(6)


def test_backward_step_contributes_reverse_complement():
    graph = _graph({1: "AC", 2: "AAG"}, [(1, "+", 2, "-")], [("ref", ["1+", "2-"])])
    ref = trace_reference(graph, "ref")
    assert ref.sequence == "ACCTT"
    assert ref.placement(2) == Placement(2, True)


def test_revisited_node_keeps_first_placement():
    graph = _graph(
        {1: "AC", 2: "GT"},
        [(1, "+", 2, "+"), (2, "+", 1, "+")],
        [("ref", ["1+", "2+", "1+"])],
    )
    ref = trace_reference(graph, "ref")
    assert ref.sequence == "ACGTAC"
    # Sum over first-visited nodes is shorter than the traced sequence here.
    assert ref.placement(1) == Placement(0, False)
    assert _node_at(ref, 4) == 1


def test_missing_reference_path():
    with pytest.raises(InputError, match="not in the graph"):
        trace_reference(_graph(TOY_NODES, TOY_LINKS, [TOY_REF_PATH]), "chr1")


def test_reference_must_be_perfect_match():
    graph = parse_gfa(["S\t1\tAC", "S\t2\tGT", "P\tref\t1+,2+\t1M"])
    with pytest.raises(InputError, match="not a perfect match"):
        trace_reference(graph, "ref")


def test_revisited_node_is_reported(caplog):
    graph = _graph(
        {1: "AC", 2: "GT"},
        [(1, "+", 2, "+"), (2, "+", 1, "+")],
        [("ref", ["1+", "2+", "1+", "2+"])],
    )
    with caplog.at_level(logging.WARNING, logger="glenn2vcf.reference"):
        trace_reference(graph, "ref")
    assert "revisits 2 node(s)" in caplog.text
