from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

import pysam

from .models import VariantRecord

logger = logging.getLogger(__name__)


def build_vcf_header(*, contig: str, contig_length: int, sample: str) -> pysam.VariantHeader:
    """Minimal single-sample header: genotype only, one contig for the reference path."""
    header = pysam.VariantHeader()
    header.contigs.add(contig, length=contig_length)
    header.formats.add("GT", number=1, type="String", description="Genotype")
    header.add_sample(sample)
    return header


def _write_mode(out_path: str | Path) -> str:
    return "wz" if str(out_path).endswith(".gz") else "w"


def write_variants(
    variants: Iterable[VariantRecord],
    out_path: str | Path,
    *,
    contig: str,
    contig_length: int,
    sample: str,
) -> int:
    """Write variants to ``out_path`` ('-' for stdout). Returns the number written."""
    header = build_vcf_header(contig=contig, contig_length=contig_length, sample=sample)
    n = 0
    with pysam.VariantFile(str(out_path), _write_mode(out_path), header=header) as vcf:
        for v in variants:
            rec = vcf.new_record(
                contig=contig,
                start=v.pos - 1,
                stop=v.pos - 1 + len(v.ref),
                alleles=(v.ref,) + tuple(v.alts),
                qual=0,
            )
            rec.samples[sample]["GT"] = v.gt_indices
            vcf.write(rec)
            n += 1
    logger.info("Wrote %d variant records to %s", n, out_path)
    return n
