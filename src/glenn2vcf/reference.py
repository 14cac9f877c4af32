from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, Mapping

import numpy as np

from .errors import InputError, InternalInvariantViolation
from .graph import SequenceGraph
from .models import Placement
from .utils import oriented_sequence

logger = logging.getLogger(__name__)

_SHOW_SEQUENCE_BELOW = 100


@dataclass(frozen=True)
class ReferenceIndex:
    """Reference coordinates traced along one path of the graph.

    Coordinates are 0-based. ``placements`` holds the first visit of each node;
    ``step_starts``/``step_nodes`` hold every step of the path, sorted by start,
    for floor lookups.
    """

    path_name: str
    sequence: str
    placements: Mapping[int, Placement]
    step_starts: np.ndarray
    step_nodes: np.ndarray
    step_lengths: np.ndarray

    def __len__(self) -> int:
        return len(self.sequence)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.placements

    def placement(self, node_id: int) -> Placement:
        return self.placements[node_id]

    def floor_step(self, coord: int) -> int:
        """Index of the path step occupying reference coordinate ``coord``."""
        idx = int(np.searchsorted(self.step_starts, coord, side="right")) - 1
        if idx < 0 or coord >= len(self.sequence):
            raise InternalInvariantViolation(
                f"Reference coordinate {coord} is outside path {self.path_name!r} (length {len(self.sequence)})"
            )
        return idx

    def nodes_between(self, start: int, end: int) -> Iterator[int]:
        """Yield the node of each reference step from ``start`` up to ``end`` (exclusive).

        ``start`` is expected to be a step boundary; steps are visited whole.
        """
        pos = start
        while pos < end:
            idx = self.floor_step(pos)
            yield int(self.step_nodes[idx])
            pos = int(self.step_starts[idx]) + int(self.step_lengths[idx])


def trace_reference(graph: SequenceGraph, path_name: str) -> ReferenceIndex:
    """Walk ``path_name`` and assign every node on it a reference placement.

    Backward steps contribute the reverse complement of the node to the
    reference sequence. Only the first visit of a node is placed; later visits
    still extend the sequence and the floor index.
    """
    if not graph.has_path(path_name):
        raise InputError(
            f"Reference path {path_name!r} is not in the graph (paths: {graph.path_names()})"
        )

    placements: dict[int, Placement] = {}
    chunks: list[str] = []
    starts: list[int] = []
    nodes: list[int] = []
    lengths: list[int] = []
    revisits = 0

    offset = 0
    for i, step in enumerate(graph.path(path_name)):
        if not step.is_perfect_match:
            raise InputError(
                f"Step {i} of reference path {path_name!r} (node {step.node}) is not a perfect match "
                f"(overlap {step.overlap!r})"
            )
        node_id = step.node.node_id
        seq = graph.sequence(node_id)

        if node_id in placements:
            revisits += 1
        else:
            placements[node_id] = Placement(start=offset, backward=step.node.backward)

        chunks.append(oriented_sequence(seq, step.node.backward))
        starts.append(offset)
        nodes.append(node_id)
        lengths.append(len(seq))
        offset += len(seq)

    if revisits:
        logger.warning(
            "Reference path %s revisits %d node(s); only first visits get reference coordinates.",
            path_name,
            revisits,
        )

    sequence = "".join(chunks)
    logger.info("Traced %d bp reference path %s.", offset, path_name)
    if len(sequence) < _SHOW_SEQUENCE_BELOW:
        logger.info("Reference sequence: %s", sequence)

    return ReferenceIndex(
        path_name=path_name,
        sequence=sequence,
        placements=placements,
        step_starts=np.asarray(starts, dtype=np.int64),
        step_nodes=np.asarray(nodes, dtype=np.int64),
        step_lengths=np.asarray(lengths, dtype=np.int64),
    )
