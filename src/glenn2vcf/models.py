from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Tuple

from .errors import InputError

MAX_ALTS = 2

# Special call tokens in the annotation file.
PRESENT_TOKEN = "."
NO_CALL_TOKEN = "-"


@dataclass(frozen=True)
class OrientedNode:
    """A node id paired with the direction it is read in."""

    node_id: int
    backward: bool = False

    def flip(self) -> "OrientedNode":
        return OrientedNode(self.node_id, not self.backward)

    def __str__(self) -> str:
        return f"{self.node_id}{'-' if self.backward else '+'}"


@dataclass(frozen=True)
class Placement:
    """Where a node sits on the reference path.

    Attributes
    ----------
    start:
        0-based reference offset of the first reference-oriented base of the node.
    backward:
        True if the reference path reads the node in reverse. In that case the
        last base of the stored node sequence occurs at ``start``.
    """

    start: int
    backward: bool


@dataclass(frozen=True)
class BaseCall:
    """Our opinion of one base of one node in the sample."""

    graph_base_present: bool = False
    alts: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if len(self.alts) > MAX_ALTS:
            raise InputError(f"At most {MAX_ALTS} alt bases are allowed per position, got {list(self.alts)}")

    @property
    def number_of_alts(self) -> int:
        return len(self.alts)

    @classmethod
    def from_tokens(cls, tokens: Iterable[str]) -> "BaseCall":
        """Interpret a set of call tokens.

        ``-`` contributes nothing, ``.`` marks the graph's own base as present and
        any other single character is an alt base. Repeated tokens are merged as
        written, so "a" and "A" are distinct; alts are stored upper-cased, in
        sorted token order.
        """
        present = False
        alts = []
        distinct = sorted(set(tokens))
        for token in distinct:
            if token == NO_CALL_TOKEN:
                continue
            if token == PRESENT_TOKEN:
                present = True
                continue
            if len(token) != 1:
                raise InputError(f"Call token {token!r} is not a single base")
            if len(alts) >= MAX_ALTS:
                raise InputError(
                    f"More than {MAX_ALTS} distinct alt bases in call {','.join(distinct)!r}"
                )
            alts.append(token.upper())
        return cls(graph_base_present=present, alts=tuple(alts))


ABSENT = BaseCall()


@dataclass(frozen=True)
class VariantRecord:
    """One variant ready for serialization.

    ``pos`` is 1-based, as in VCF. ``source_node`` is the graph node the call was
    made from and is only used for diagnostics.
    """

    pos: int
    ref: str
    alts: Tuple[str, ...]
    genotype: str
    source_node: int
    kind: str  # 'bubble' or 'snp'

    @property
    def gt_indices(self) -> Tuple[int, ...]:
        return tuple(int(x) for x in self.genotype.split("/"))
