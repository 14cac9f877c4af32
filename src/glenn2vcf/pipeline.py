from __future__ import annotations

import itertools
import logging
import time
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional

from .bubbles import call_bubbles
from .calls import CallTable, load_call_table
from .graph import SequenceGraph, load_gfa
from .models import VariantRecord
from .reference import ReferenceIndex, trace_reference
from .snps import call_reference_snps
from .vcf_writer import write_variants

logger = logging.getLogger(__name__)

STAT_KEYS = [
    "nodes_total",
    "nodes_reference",
    "nodes_nonreference",
    "nodes_unused",
    "skipped_not_anchored",
    "skipped_inverts_reference",
    "skipped_duplication",
    "skipped_partially_present",
    "present_with_novel_alts",
    "variants_bubble",
    "variants_snp",
]


def new_stats() -> Dict[str, int]:
    return {k: 0 for k in STAT_KEYS}


def call_variants(
    graph: SequenceGraph,
    calls: CallTable,
    reference: ReferenceIndex,
    *,
    stats: Optional[Dict[str, int]] = None,
    progress: bool = False,
) -> Iterator[VariantRecord]:
    """Lazily yield bubble variants, then reference SNPs.

    Output follows graph order within each sweep and is not sorted by position.
    """
    if stats is not None:
        n_ref = sum(1 for node_id in graph.node_ids() if node_id in reference)
        stats["nodes_total"] = len(graph)
        stats["nodes_reference"] = n_ref
        stats["nodes_nonreference"] = len(graph) - n_ref

    return itertools.chain(
        call_bubbles(graph, calls, reference, stats=stats, progress=progress),
        call_reference_snps(graph, calls, reference, stats=stats, progress=progress),
    )


def sort_by_position(variants: Iterable[VariantRecord]) -> List[VariantRecord]:
    """Stable sort: records at the same position keep their emission order."""
    return sorted(variants, key=lambda v: v.pos)


def run(
    *,
    graph_path: str | Path,
    calls_path: str | Path,
    out_path: str | Path = "-",
    ref_path_name: str = "ref",
    sample: str = "SAMPLE",
    sort: bool = False,
    progress: bool = False,
) -> Dict[str, object]:
    """Load inputs, call variants, write the VCF and return a summary dict."""
    t0 = time.time()

    graph = load_gfa(graph_path)
    reference = trace_reference(graph, ref_path_name)
    calls = load_call_table(calls_path)

    stats = new_stats()
    variants: Iterable[VariantRecord] = call_variants(graph, calls, reference, stats=stats, progress=progress)
    if sort:
        variants = sort_by_position(variants)

    n_written = write_variants(
        variants,
        out_path,
        contig=ref_path_name,
        contig_length=len(reference),
        sample=sample,
    )

    dt = time.time() - t0
    logger.info(
        "Called %d variants (%d bubble, %d SNP) in %.2fs",
        n_written,
        stats["variants_bubble"],
        stats["variants_snp"],
        dt,
    )

    return {
        "graph_path": str(graph_path),
        "calls_path": str(calls_path),
        "out_path": str(out_path),
        "reference_path": ref_path_name,
        "reference_length": len(reference),
        "sample": sample,
        "sorted": bool(sort),
        "variants_written": n_written,
        "counts": stats,
        "runtime_seconds": float(dt),
    }
