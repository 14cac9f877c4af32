"""Per-base call table loaded from a "Glenn" annotation file.

Each non-blank line of the file describes one base of one graph node::

    <node_id> <1-based offset> <graph base> <comma-separated call tokens>

e.g. ``12 3 A .,G`` says base 3 of node 12 is present as the graph's ``A``
and also as an alt ``G``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Tuple

from .errors import InputError
from .models import ABSENT, BaseCall
from .utils import open_textmaybe_gzip

logger = logging.getLogger(__name__)


class CallTable:
    """Read-only mapping of node id -> per-offset :class:`BaseCall` list."""

    def __init__(self, calls: Mapping[int, List[BaseCall]]) -> None:
        self._calls: Dict[int, Tuple[BaseCall, ...]] = {k: tuple(v) for k, v in calls.items()}

    def __len__(self) -> int:
        return len(self._calls)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._calls

    def calls_for(self, node_id: int, length: int) -> Tuple[BaseCall, ...]:
        """Calls for every offset of a node of the given length.

        Offsets never annotated are absent calls. Annotated offsets past
        ``length`` are kept in the table but not returned.
        """
        calls = self._calls.get(node_id, ())
        if len(calls) >= length:
            return calls[:length]
        return calls + (ABSENT,) * (length - len(calls))

    def call_at(self, node_id: int, offset: int) -> BaseCall:
        calls = self._calls.get(node_id, ())
        if offset < len(calls):
            return calls[offset]
        return ABSENT


def parse_call_line(line: str, *, source: str = "<calls>", lineno: int = 0) -> Tuple[int, int, BaseCall]:
    """Parse one annotation line into (node id, 0-based offset, call)."""
    fields = line.split()
    if len(fields) < 4:
        raise InputError(
            f"Expected '<node> <offset> <base> <calls>', got {line.strip()!r}", source=source, line=lineno
        )
    try:
        node_id = int(fields[0])
        offset = int(fields[1]) - 1
    except ValueError:
        raise InputError(f"Node id and offset must be integers in {line.strip()!r}", source=source, line=lineno) from None
    if offset < 0:
        raise InputError(f"Offsets are 1-based, got {fields[1]}", source=source, line=lineno)

    try:
        call = BaseCall.from_tokens(fields[3].split(","))
    except InputError as e:
        raise InputError(str(e), source=source, line=lineno) from None
    return node_id, offset, call


def build_call_table(lines: Iterable[str], *, source: str = "<calls>") -> CallTable:
    """Build a :class:`CallTable` from annotation lines, in any order."""
    calls: Dict[int, List[BaseCall]] = {}
    n_records = 0
    for lineno, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        node_id, offset, call = parse_call_line(line, source=source, lineno=lineno)
        node_calls = calls.setdefault(node_id, [])
        if len(node_calls) <= offset:
            node_calls.extend([ABSENT] * (offset + 1 - len(node_calls)))
        node_calls[offset] = call
        n_records += 1
        logger.debug(
            "Node %d base %d status: %s",
            node_id,
            offset,
            "Present" if call.graph_base_present else "Absent",
        )

    logger.info("Loaded %d base calls on %d nodes from %s", n_records, len(calls), source)
    return CallTable(calls)


def load_call_table(path: str | Path) -> CallTable:
    with open_textmaybe_gzip(path, "rt") as fh:
        return build_call_table(fh, source=str(path))
