import gzip
from pathlib import Path

import pytest

from glenn2vcf.errors import InputError
from glenn2vcf.graph import PathStep, load_gfa, parse_gfa
from glenn2vcf.models import OrientedNode
from glenn2vcf.toy_data import TOY_LINKS, TOY_NODES, TOY_REF_PATH, format_gfa


def _toy_graph():
    return parse_gfa(format_gfa(TOY_NODES, TOY_LINKS, [TOY_REF_PATH]).splitlines())


def test_parse_toy_graph():
    graph = _toy_graph()
    assert len(graph) == 4
    assert list(graph.node_ids()) == [1, 2, 3, 4]
    assert graph.sequence(4) == "GG"
    assert graph.has_path("ref")
    assert [s.node for s in graph.path("ref")] == [OrientedNode(1), OrientedNode(2), OrientedNode(3)]
    assert all(s.is_perfect_match for s in graph.path("ref"))


def test_neighbours_forward_links():
    graph = _toy_graph()
    assert graph.predecessors(4) == [OrientedNode(1, False)]
    assert graph.successors(4) == [OrientedNode(3, False)]
    assert set(graph.successors(1)) == {OrientedNode(2), OrientedNode(4)}
    assert graph.predecessors(1) == []


def test_neighbours_reverse_links():
    # Same edges as 1+ -> 4+ -> 3+, written from the other strand.
    gfa = format_gfa(
        {1: "AC", 3: "TT", 4: "GG"},
        [(4, "-", 1, "-"), (3, "-", 4, "-")],
        [],
    )
    graph = parse_gfa(gfa.splitlines())
    assert graph.predecessors(4) == [OrientedNode(1, False)]
    assert graph.successors(4) == [OrientedNode(3, False)]


def test_neighbours_of_flipped_node():
    gfa = format_gfa({1: "AC", 3: "TT", 4: "CC"}, [(1, "+", 4, "-"), (4, "-", 3, "+")], [])
    graph = parse_gfa(gfa.splitlines())
    assert graph.predecessors(4) == [OrientedNode(3, True)]
    assert graph.successors(4) == [OrientedNode(1, True)]


def test_path_step_perfect_match():
    assert PathStep(OrientedNode(1)).is_perfect_match
    assert PathStep(OrientedNode(1), overlap="0M").is_perfect_match
    assert not PathStep(OrientedNode(1), overlap="2M").is_perfect_match
    assert not PathStep(OrientedNode(1), overlap="1X").is_perfect_match


def test_path_overlaps_attach_to_later_step():
    lines = ["S\t1\tAC", "S\t2\tGT", "P\tref\t1+,2-\t3M"]
    graph = parse_gfa(lines)
    steps = graph.path("ref")
    assert steps[0].is_perfect_match
    assert steps[1].node == OrientedNode(2, True)
    assert not steps[1].is_perfect_match


@pytest.mark.parametrize(
    "lines, message",
    [
        (["S\tx\tAC"], "not an integer"),
        (["S\t1\tAC", "S\t1\tGT"], "Duplicate node"),
        (["S\t1\t*"], "without sequence"),
        (["S\t1\tAC", "L\t1\t+\t2\t+\t0M"], "unknown segment"),
        (["S\t1\tAC", "S\t2\tGT", "L\t1\t+\t2\t+\t3M"], "Overlapping link"),
        (["S\t1\tAC", "L\t1\t?\t1\t+\t0M"], "orientation"),
        (["S\t1\tAC", "P\tref\t1+,7+\t*"], "unknown segment"),
        (["S\t1\tAC", "S\t2\tGT", "P\tref\t1+,2+\t0M,0M"], "overlaps"),
    ],
)
def test_parse_errors(lines, message):
    with pytest.raises(InputError, match=message):
        parse_gfa(lines, source="bad.gfa")


def test_unknown_node_lookup():
    with pytest.raises(InputError):
        _toy_graph().sequence(42)


def test_load_gzipped_gfa(tmp_path: Path) -> None:
    path = tmp_path / "toy.gfa.gz"
    with gzip.open(path, "wt") as fh:
        fh.write(format_gfa(TOY_NODES, TOY_LINKS, [TOY_REF_PATH]))
    graph = load_gfa(path)
    assert len(graph) == 4
    assert graph.path_names() == ["ref"]
