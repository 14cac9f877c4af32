"""glenn2vcf: convert per-base graph calls on a sequence graph into a VCF.

Public API is intentionally small; most users should use the CLI:

    glenn2vcf --ref ref graph.gfa calls.glenn > sample.vcf

"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
