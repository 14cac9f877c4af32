from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Sequence, Tuple

from .utils import ensure_outdir, write_json

# node id -> sequence for a three-node reference A,B,C plus a bypass D (A -> D -> C).
TOY_NODES: Dict[int, str] = {1: "AC", 2: "GT", 3: "TT", 4: "GG"}
TOY_LINKS: List[Tuple[int, str, int, str]] = [
    (1, "+", 2, "+"),
    (2, "+", 3, "+"),
    (1, "+", 4, "+"),
    (4, "+", 3, "+"),
]
TOY_REF_PATH = ("ref", ["1+", "2+", "3+"])


def format_gfa(
    nodes: Dict[int, str],
    links: Sequence[Tuple[int, str, int, str]],
    paths: Sequence[Tuple[str, Sequence[str]]],
) -> str:
    lines = ["H\tVN:Z:1.0"]
    for node_id, seq in nodes.items():
        lines.append(f"S\t{node_id}\t{seq}")
    for src, src_o, dst, dst_o in links:
        lines.append(f"L\t{src}\t{src_o}\t{dst}\t{dst_o}\t0M")
    for name, steps in paths:
        overlaps = ",".join(["0M"] * (len(steps) - 1)) or "*"
        lines.append(f"P\t{name}\t{','.join(steps)}\t{overlaps}")
    return "\n".join(lines) + "\n"


def format_calls(calls: Sequence[Tuple[int, int, str, str]]) -> str:
    """Render (node, 1-based offset, graph base, tokens) tuples as annotation lines."""
    return "".join(f"{node} {offset} {base} {tokens}\n" for node, offset, base, tokens in calls)


def make_toy_data(*, outdir: str | Path, heterozygous: bool = False) -> Dict[str, str]:
    """Write a tiny graph and call file with one bubble and one reference SNP.

    The reference is ``ACGTTT``. Node 4 (``GG``) replaces node 2 (``GT``) and is
    fully present. Base 2 of node 1 carries a ``T`` alt alongside the reference.
    With ``heterozygous`` set, one base of node 2 is also present.

    Returns
    -------
    dict
        Paths to the generated files.
    """
    outdir_p = ensure_outdir(outdir)

    graph_path = outdir_p / "toy.gfa"
    graph_path.write_text(format_gfa(TOY_NODES, TOY_LINKS, [TOY_REF_PATH]), encoding="utf-8")

    calls: List[Tuple[int, int, str, str]] = [
        (1, 1, "A", "."),
        (1, 2, "C", ".,T"),
        (2, 1, "G", "." if heterozygous else "-"),
        (2, 2, "T", "-"),
        (3, 1, "T", "."),
        (3, 2, "T", "."),
        (4, 1, "G", "."),
        (4, 2, "G", "."),
    ]
    calls_path = outdir_p / "toy.glenn"
    calls_path.write_text(format_calls(calls), encoding="utf-8")

    summary = {
        "graph": str(graph_path),
        "calls": str(calls_path),
        "outdir": str(outdir_p),
    }

    write_json(outdir_p / "toy_summary.json", summary)
    return summary
