from __future__ import annotations

import logging
from typing import Dict, Iterable, Iterator, Optional

from tqdm import tqdm

from .calls import CallTable
from .errors import InternalInvariantViolation
from .graph import SequenceGraph
from .models import BaseCall, VariantRecord
from .reference import ReferenceIndex
from .utils import oriented_sequence

logger = logging.getLogger(__name__)

CALLED = "variants_snp"


def snp_genotype(call: BaseCall) -> str:
    """Genotype for a reference base carrying at least one alt."""
    if call.number_of_alts not in (1, 2):
        raise InternalInvariantViolation(f"Semantically invalid BaseCall with {call.number_of_alts} alts: {call}")
    if call.graph_base_present:
        # Reference plus at least one alt.
        return "1/0"
    if call.number_of_alts == 1:
        return "1/1"
    return "1/2"


def reference_coordinate(reference: ReferenceIndex, node_id: int, length: int, offset: int) -> int:
    """0-based reference coordinate of ``offset`` within a reference node of ``length`` bases."""
    placement = reference.placement(node_id)
    if placement.backward:
        return placement.start + (length - offset - 1)
    return placement.start + offset


def snps_on_node(
    node_id: int,
    graph: SequenceGraph,
    calls: CallTable,
    reference: ReferenceIndex,
) -> Iterator[VariantRecord]:
    length = len(graph.sequence(node_id))
    backward = reference.placement(node_id).backward
    for offset, call in enumerate(calls.calls_for(node_id, length)):
        if call.number_of_alts == 0:
            continue
        coord = reference_coordinate(reference, node_id, length, offset)
        variant = VariantRecord(
            pos=coord + 1,
            ref=reference.sequence[coord],
            alts=tuple(oriented_sequence(alt, backward) for alt in call.alts),
            genotype=snp_genotype(call),
            source_node=node_id,
            kind="snp",
        )
        logger.info(
            "Found variant %s -> %s on node %d at 1-based reference position %d",
            variant.ref,
            ",".join(variant.alts),
            node_id,
            variant.pos,
        )
        yield variant


def call_reference_snps(
    graph: SequenceGraph,
    calls: CallTable,
    reference: ReferenceIndex,
    *,
    stats: Optional[Dict[str, int]] = None,
    progress: bool = False,
) -> Iterator[VariantRecord]:
    """Yield substitution variants on reference nodes, in graph order."""
    it: Iterable[int] = graph.node_ids()
    if progress:
        it = tqdm(it, total=len(graph), unit="node", desc="Calling reference SNPs")

    for node_id in it:
        if node_id not in reference:
            continue
        for variant in snps_on_node(node_id, graph, calls, reference):
            if stats is not None:
                stats[CALLED] = stats.get(CALLED, 0) + 1
            yield variant
