"""Variants from non-reference nodes that bridge two points of the reference.

A non-reference node N is called when:

- some predecessor and some successor of N lie on the reference path,
- N can be read in one consistent direction relative to the reference,
- leaving N lands strictly later on the reference than entering it, and
- every base of N is called present in the sample.

The reference span skipped by N becomes REF and N's sequence becomes ALT.
The sample is heterozygous when any base on the skipped span is still
present (or carries an alt), homozygous otherwise.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, Optional

from tqdm import tqdm

from .calls import CallTable
from .errors import InputError
from .graph import SequenceGraph
from .models import OrientedNode, VariantRecord
from .reference import ReferenceIndex
from .utils import oriented_sequence

logger = logging.getLogger(__name__)

# Outcome reasons; also the stats counter keys.
CALLED = "variants_bubble"
UNUSED = "nodes_unused"
NOT_ANCHORED = "skipped_not_anchored"
INVERTS_REFERENCE = "skipped_inverts_reference"
DUPLICATION = "skipped_duplication"
PARTIALLY_PRESENT = "skipped_partially_present"
NOVEL_ALTS = "present_with_novel_alts"


@dataclass(frozen=True)
class BubbleOutcome:
    node_id: int
    reason: str
    variant: Optional[VariantRecord] = None


def _leftmost_on_reference(candidates: Iterable[OrientedNode], reference: ReferenceIndex) -> Optional[OrientedNode]:
    best: Optional[OrientedNode] = None
    best_start = -1
    for candidate in candidates:
        if candidate.node_id not in reference:
            continue
        start = reference.placement(candidate.node_id).start
        if best is None or start < best_start:
            best = candidate
            best_start = start
    return best


def _reference_path_present(calls: CallTable, graph: SequenceGraph, reference: ReferenceIndex, start: int, end: int) -> bool:
    """True if any base on the reference nodes spanning [start, end) is present or has an alt."""
    for ref_node in reference.nodes_between(start, end):
        for offset in range(len(graph.sequence(ref_node))):
            call = calls.call_at(ref_node, offset)
            if call.graph_base_present or call.number_of_alts > 0:
                return True
    return False


def evaluate_bubble(
    node_id: int,
    graph: SequenceGraph,
    calls: CallTable,
    reference: ReferenceIndex,
) -> BubbleOutcome:
    """Decide whether non-reference node ``node_id`` yields a variant."""
    in_node = _leftmost_on_reference(graph.predecessors(node_id), reference)
    out_node = _leftmost_on_reference(graph.successors(node_id), reference)
    if in_node is None or out_node is None:
        logger.warning("Node %d not anchored to reference.", node_id)
        return BubbleOutcome(node_id, NOT_ANCHORED)

    # Reading forward along the reference means meeting each anchor in the
    # orientation it has on the reference path.
    read_in_forward = in_node.backward == reference.placement(in_node.node_id).backward
    read_out_forward = out_node.backward == reference.placement(out_node.node_id).backward
    if read_in_forward != read_out_forward:
        logger.warning("Node %d inverts reference path.", node_id)
        return BubbleOutcome(node_id, INVERTS_REFERENCE)

    alt_node = OrientedNode(node_id, False)
    if not read_in_forward:
        alt_node = alt_node.flip()
        in_node, out_node = out_node, in_node

    in_start = reference.placement(in_node.node_id).start
    out_start = reference.placement(out_node.node_id).start
    if out_start <= in_start:
        logger.warning("Node %d allows duplication.", node_id)
        return BubbleOutcome(node_id, DUPLICATION)

    start = in_start + len(graph.sequence(in_node.node_id))
    end = out_start

    node_seq = graph.sequence(node_id)
    node_calls = calls.calls_for(node_id, len(node_seq))
    fully_present = all(c.graph_base_present for c in node_calls)
    partly_present = any(c.graph_base_present for c in node_calls)
    if not partly_present:
        logger.info("Node %d is not used in this sample.", node_id)
        return BubbleOutcome(node_id, UNUSED)
    if not fully_present:
        logger.warning(
            "Node %d is nonreference attached to reference, but only partially present. Skipping!",
            node_id,
        )
        return BubbleOutcome(node_id, PARTIALLY_PRESENT)

    novel_alts = any(c.number_of_alts > 0 for c in node_calls)
    if novel_alts:
        # The node is still called; the alts on it are not.
        logger.warning(
            "Node %d is nonreference attached to reference, and present, but has additional novel alts!",
            node_id,
        )

    ref_path_exists = _reference_path_present(calls, graph, reference, start, end)

    ref_allele = reference.sequence[start:end]
    alt_allele = oriented_sequence(node_seq, alt_node.backward)
    if not ref_allele:
        # Insertions need an anchor base on the left.
        if start == 0:
            raise InputError(
                f"Node {node_id} is an insertion before the start of reference path "
                f"{reference.path_name!r}; there is no base to anchor it on"
            )
        start -= 1
        anchor = reference.sequence[start]
        ref_allele = anchor + ref_allele
        alt_allele = anchor + alt_allele

    variant = VariantRecord(
        pos=start + 1,
        ref=ref_allele,
        alts=(alt_allele,),
        genotype="1/0" if ref_path_exists else "1/1",
        source_node=node_id,
        kind="bubble",
    )
    logger.info(
        "Found variant %s -> %s caused by node %d at 1-based reference position %d",
        ref_allele,
        alt_allele,
        node_id,
        variant.pos,
    )
    return BubbleOutcome(node_id, NOVEL_ALTS if novel_alts else CALLED, variant)


def call_bubbles(
    graph: SequenceGraph,
    calls: CallTable,
    reference: ReferenceIndex,
    *,
    stats: Optional[Dict[str, int]] = None,
    progress: bool = False,
) -> Iterator[VariantRecord]:
    """Yield one variant per callable non-reference node, in graph order."""
    it: Iterable[int] = graph.node_ids()
    if progress:
        it = tqdm(it, total=len(graph), unit="node", desc="Calling bubbles")

    for node_id in it:
        if node_id in reference:
            continue
        outcome = evaluate_bubble(node_id, graph, calls, reference)
        if stats is not None:
            stats[outcome.reason] = stats.get(outcome.reason, 0) + 1
            if outcome.reason == NOVEL_ALTS:
                stats[CALLED] = stats.get(CALLED, 0) + 1
        if outcome.variant is not None:
            yield outcome.variant
