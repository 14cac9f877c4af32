from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

_GRAPH_SUFFIXES = (".gfa", ".gfa.gz")


def check_sample_name(sample: str) -> str:
    """Sample names become a VCF column header; reject empty or whitespace-bearing names."""
    if not sample or any(ch.isspace() for ch in sample):
        raise ValueError(f"Sample name must be non-empty and contain no whitespace, got {sample!r}")
    return sample


def check_graph_path(graph_path: str | Path) -> None:
    """Log a hint when the graph file does not look like GFA."""
    name = Path(graph_path).name.lower()
    if not name.endswith(_GRAPH_SUFFIXES):
        logger.info(
            "Graph file %s does not end in .gfa/.gfa.gz; reading it as GFA 1 anyway. "
            "Convert vg graphs with: vg view <graph.vg> > graph.gfa",
            graph_path,
        )


def check_output_path(out_path: str | Path) -> None:
    """Ensure the parent directory of a file output exists."""
    if str(out_path) == "-":
        return
    parent = Path(out_path).expanduser().resolve().parent
    if not parent.exists():
        raise ValueError(f"Output directory does not exist: {parent}")
