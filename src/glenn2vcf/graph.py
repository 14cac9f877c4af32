"""Minimal sequence graph backed by a GFA 1 file.

Only what variant calling needs is modelled: node sequences, oriented
adjacencies and named paths. Segment names must be integers, and links must
be blunt (no overlaps), which is the shape of graphs exported by ``vg view``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Tuple

from .errors import InputError
from .models import OrientedNode
from .utils import open_textmaybe_gzip

logger = logging.getLogger(__name__)

_CIGAR_OP = re.compile(r"(\d+)([MIDNSHPX=])")
_ORIENTATIONS = {"+": False, "-": True}


def _is_blunt(overlap: str) -> bool:
    """True if an overlap field consumes no bases on either side."""
    if overlap in ("", "*"):
        return True
    ops = _CIGAR_OP.findall(overlap)
    if "".join(n + op for n, op in ops) != overlap:
        return False
    return all(int(n) == 0 for n, _ in ops)


@dataclass(frozen=True)
class PathStep:
    """One visit of a path to a node.

    ``overlap`` is the GFA overlap joining this step to the previous one.
    """

    node: OrientedNode
    overlap: str = "*"

    @property
    def is_perfect_match(self) -> bool:
        return _is_blunt(self.overlap)


class SequenceGraph:
    """Node/edge/path store with one-hop oriented neighbour queries."""

    def __init__(self) -> None:
        self._sequences: Dict[int, str] = {}
        self._next: Dict[OrientedNode, List[OrientedNode]] = {}
        self._paths: Dict[str, List[PathStep]] = {}

    def __len__(self) -> int:
        return len(self._sequences)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._sequences

    def add_node(self, node_id: int, sequence: str) -> None:
        if node_id in self._sequences:
            raise InputError(f"Duplicate node id {node_id}")
        self._sequences[node_id] = sequence.upper()

    def add_edge(self, src: OrientedNode, dst: OrientedNode) -> None:
        """Connect the end of ``src`` to the start of ``dst``, in both reading directions."""
        for a, b in ((src, dst), (dst.flip(), src.flip())):
            out = self._next.setdefault(a, [])
            if b not in out:
                out.append(b)

    def add_path(self, name: str, steps: Iterable[PathStep]) -> None:
        if name in self._paths:
            raise InputError(f"Duplicate path name {name!r}")
        self._paths[name] = list(steps)

    def sequence(self, node_id: int) -> str:
        try:
            return self._sequences[node_id]
        except KeyError:
            raise InputError(f"Node {node_id} is not in the graph") from None

    def node_ids(self) -> Iterator[int]:
        """Iterate node ids in the order they were added."""
        return iter(self._sequences)

    def successors(self, node_id: int) -> List[OrientedNode]:
        """Oriented nodes reachable from the end of ``node_id`` read forward."""
        return list(self._next.get(OrientedNode(node_id, False), []))

    def predecessors(self, node_id: int) -> List[OrientedNode]:
        """Oriented nodes whose end leads into the start of ``node_id`` read forward."""
        return [n.flip() for n in self._next.get(OrientedNode(node_id, True), [])]

    def has_path(self, name: str) -> bool:
        return name in self._paths

    def path(self, name: str) -> List[PathStep]:
        try:
            return list(self._paths[name])
        except KeyError:
            raise InputError(f"Path {name!r} is not in the graph") from None

    def path_names(self) -> List[str]:
        return list(self._paths)


def _node_id(token: str, *, source: str, line: int) -> int:
    try:
        return int(token)
    except ValueError:
        raise InputError(f"Segment name {token!r} is not an integer node id", source=source, line=line) from None


def _orientation(token: str, *, source: str, line: int) -> bool:
    try:
        return _ORIENTATIONS[token]
    except KeyError:
        raise InputError(f"Bad orientation {token!r}", source=source, line=line) from None


def _parse_path_steps(segments: str, overlaps: str, *, source: str, line: int) -> List[PathStep]:
    names = [s for s in segments.split(",") if s]
    if not names:
        raise InputError("Path has no steps", source=source, line=line)
    if overlaps in ("", "*"):
        joins = ["*"] * (len(names) - 1)
    else:
        joins = overlaps.split(",")
        if len(joins) != len(names) - 1:
            raise InputError(
                f"Path has {len(names)} steps but {len(joins)} overlaps", source=source, line=line
            )

    steps: List[PathStep] = []
    for i, name in enumerate(names):
        if len(name) < 2:
            raise InputError(f"Bad path step {name!r}", source=source, line=line)
        node = OrientedNode(
            _node_id(name[:-1], source=source, line=line),
            _orientation(name[-1], source=source, line=line),
        )
        steps.append(PathStep(node=node, overlap="*" if i == 0 else joins[i - 1]))
    return steps


def parse_gfa(lines: Iterable[str], *, source: str = "<gfa>") -> SequenceGraph:
    """Build a :class:`SequenceGraph` from GFA 1 lines.

    Links and paths may appear before the segments they mention; references
    are checked once every line has been read.
    """
    graph = SequenceGraph()
    links: List[Tuple[int, OrientedNode, OrientedNode]] = []
    paths: List[Tuple[int, str, List[PathStep]]] = []

    for lineno, raw in enumerate(lines, start=1):
        line = raw.rstrip("\r\n")
        if not line or line.startswith("#"):
            continue
        fields = line.split("\t")
        kind = fields[0]

        if kind == "S":
            if len(fields) < 3:
                raise InputError("Segment line needs a name and a sequence", source=source, line=lineno)
            if fields[2] == "*":
                raise InputError("Segments without sequence are not supported", source=source, line=lineno)
            node_id = _node_id(fields[1], source=source, line=lineno)
            if node_id in graph:
                raise InputError(f"Duplicate node id {node_id}", source=source, line=lineno)
            graph.add_node(node_id, fields[2])
        elif kind == "L":
            if len(fields) < 5:
                raise InputError("Link line needs 5 fields", source=source, line=lineno)
            overlap = fields[5] if len(fields) > 5 else "*"
            if not _is_blunt(overlap):
                raise InputError(f"Overlapping link {overlap!r} is not supported", source=source, line=lineno)
            src = OrientedNode(
                _node_id(fields[1], source=source, line=lineno),
                _orientation(fields[2], source=source, line=lineno),
            )
            dst = OrientedNode(
                _node_id(fields[3], source=source, line=lineno),
                _orientation(fields[4], source=source, line=lineno),
            )
            links.append((lineno, src, dst))
        elif kind == "P":
            if len(fields) < 3:
                raise InputError("Path line needs a name and steps", source=source, line=lineno)
            overlaps = fields[3] if len(fields) > 3 else "*"
            paths.append((lineno, fields[1], _parse_path_steps(fields[2], overlaps, source=source, line=lineno)))
        # H, W, C, and unknown records carry nothing we need.

    for lineno, src, dst in links:
        for end in (src, dst):
            if end.node_id not in graph:
                raise InputError(f"Link mentions unknown segment {end.node_id}", source=source, line=lineno)
        graph.add_edge(src, dst)

    for lineno, name, steps in paths:
        for step in steps:
            if step.node.node_id not in graph:
                raise InputError(
                    f"Path {name!r} visits unknown segment {step.node.node_id}", source=source, line=lineno
                )
        if graph.has_path(name):
            raise InputError(f"Duplicate path name {name!r}", source=source, line=lineno)
        graph.add_path(name, steps)

    logger.info(
        "Loaded graph from %s: %d nodes, %d links, %d paths", source, len(graph), len(links), len(paths)
    )
    return graph


def load_gfa(path: str | Path) -> SequenceGraph:
    """Read a GFA (optionally gzipped) file into a :class:`SequenceGraph`."""
    with open_textmaybe_gzip(path, "rt") as fh:
        return parse_gfa(fh, source=str(path))
