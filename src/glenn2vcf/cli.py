from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import NoReturn, Optional

from . import __version__
from .errors import InternalInvariantViolation
from .pipeline import run
from .toy_data import make_toy_data
from .utils import write_json
from .validation import check_graph_path, check_output_path, check_sample_name

_DESCRIPTION = (
    "Convert a Glenn-format graph and call file pair to a VCF. "
    "There are three objects in play: the reference (a single path), the graph "
    "(containing the reference as a path, in GFA format) and the sample (a set of "
    "per-base calls on the graph, with some substitutions, given by the Glenn file)."
)


class _UsageParser(argparse.ArgumentParser):
    """ArgumentParser that reports usage problems on stderr with exit status 1."""

    def error(self, message: str) -> NoReturn:
        self.print_help(sys.stderr)
        sys.stderr.write(f"\n{self.prog}: error: {message}\n")
        raise SystemExit(1)


def _setup_logging(verbosity: int, *, logfile: Optional[Path] = None) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    log_fmt = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    logging.basicConfig(level=level, format=log_fmt, stream=sys.stderr)

    if logfile is not None:
        logfile.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(logfile)
        fh.setLevel(level)
        fh.setFormatter(logging.Formatter(log_fmt))
        logging.getLogger().addHandler(fh)


def _path_exists(p: str) -> str:
    if not Path(p).exists():
        raise argparse.ArgumentTypeError(f"Path does not exist: {p}")
    return p


def _handle_error(err: Exception, *, log_path: Optional[Path] = None) -> int:
    sys.stderr.write(f"{err.__class__.__name__}: {err}\n")
    if log_path is not None:
        sys.stderr.write(f"See log: {log_path}\n")
    if isinstance(err, InternalInvariantViolation):
        return 2
    return 1


def build_parser() -> argparse.ArgumentParser:
    p = _UsageParser(prog="glenn2vcf", description=_DESCRIPTION, add_help=False)
    p.add_argument(
        "graph", metavar="GRAPH_FILE", nargs="?", type=_path_exists, help="Graph in GFA format (.gfa/.gfa.gz)."
    )
    p.add_argument("calls", metavar="GLENN_FILE", nargs="?", type=_path_exists, help="Per-base call (Glenn) file.")
    p.add_argument(
        "-r",
        "--ref",
        metavar="PATH",
        default="ref",
        help="Use the given path name as the reference path (default: ref).",
    )
    p.add_argument(
        "-s",
        "--sample",
        metavar="NAME",
        default="SAMPLE",
        help="Sample name for the VCF genotype column (default: SAMPLE).",
    )
    p.add_argument(
        "-o",
        "--output",
        metavar="VCF",
        default="-",
        help="Output VCF path; '-' for stdout, .vcf.gz for bgzipped output (default: -).",
    )
    p.add_argument(
        "--sort",
        action="store_true",
        help="Sort records by position. By default bubble variants come first, then reference SNPs.",
    )
    p.add_argument("--stats-json", default=None, help="Write per-node outcome counters to this JSON file.")
    p.add_argument("--progress", action="store_true", help="Show progress bars on stderr.")
    p.add_argument("--log-file", default=None, help="Also write log messages to this file.")
    p.add_argument("-v", "--verbose", action="count", default=0, help="Increase verbosity (-v/-vv).")
    p.add_argument(
        "--make-toy-data",
        metavar="OUTDIR",
        default=None,
        help="Write a tiny example graph and call file into OUTDIR and exit.",
    )
    p.add_argument("--version", action="version", version=f"glenn2vcf {__version__}")
    p.add_argument("-h", "--help", action="store_true", help="Print this help message.")
    return p


def cmd_make_toy_data(args: argparse.Namespace) -> int:
    outdir = Path(args.make_toy_data).expanduser().resolve()
    try:
        summary = make_toy_data(outdir=outdir)
    except Exception as e:
        return _handle_error(e)
    print(json.dumps(summary, indent=2))
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    if argv is None:
        argv = sys.argv[1:]

    # Help is checked before parsing so it wins over missing positionals.
    if not argv or "-h" in argv or "--help" in argv:
        parser.print_help(sys.stderr)
        return 1

    args = parser.parse_args(argv)

    if args.make_toy_data:
        return cmd_make_toy_data(args)
    if args.graph is None or args.calls is None:
        parser.error("the following arguments are required: GRAPH_FILE, GLENN_FILE")

    log_path = Path(args.log_file).expanduser().resolve() if args.log_file else None
    _setup_logging(args.verbose, logfile=log_path)

    logger = logging.getLogger("glenn2vcf")
    logger.info("glenn2vcf %s", __version__)

    try:
        check_sample_name(args.sample)
        check_graph_path(args.graph)
        check_output_path(args.output)
        if args.stats_json:
            check_output_path(args.stats_json)

        summary = run(
            graph_path=args.graph,
            calls_path=args.calls,
            out_path=args.output,
            ref_path_name=args.ref,
            sample=args.sample,
            sort=bool(args.sort),
            progress=bool(args.progress),
        )

        if args.stats_json:
            write_json(args.stats_json, summary)
        return 0
    except Exception as e:
        return _handle_error(e, log_path=log_path)


if __name__ == "__main__":
    raise SystemExit(main())
