import pytest

from glenn2vcf.calls import build_call_table, parse_call_line
from glenn2vcf.errors import InputError
from glenn2vcf.models import ABSENT, BaseCall


def test_base_call_special_tokens():
    call = BaseCall.from_tokens([".", "-"])
    assert call.graph_base_present
    assert call.alts == ()

    call = BaseCall.from_tokens(["-"])
    assert not call.graph_base_present
    assert call.number_of_alts == 0


def test_base_call_alts_are_sorted_and_deduplicated():
    call = BaseCall.from_tokens(["T", ".", "A", "T"])
    assert call.graph_base_present
    assert call.alts == ("A", "T")
    assert "." not in call.alts and "-" not in call.alts


def test_base_call_rejects_too_many_alts():
    with pytest.raises(InputError, match="distinct alt bases"):
        BaseCall.from_tokens(["A", "C", "G"])


def test_base_call_counts_tokens_as_written():
    with pytest.raises(InputError, match="distinct alt bases"):
        BaseCall.from_tokens(["a", "A", "C"])
    assert BaseCall.from_tokens(["c", "."]).alts == ("C",)


def test_base_call_rejects_long_tokens():
    with pytest.raises(InputError, match="single base"):
        BaseCall.from_tokens(["AC"])
    with pytest.raises(InputError):
        BaseCall.from_tokens(["A", ""])


def test_parse_call_line_is_zero_based():
    node_id, offset, call = parse_call_line("12 3 A .,G")
    assert node_id == 12
    assert offset == 2
    assert call == BaseCall(graph_base_present=True, alts=("G",))


@pytest.mark.parametrize(
    "line",
    [
        "12 3 A",
        "x 3 A .",
        "12 0 A .",
        "12 1 A A,C,G",
    ],
)
def test_parse_call_line_errors(line):
    with pytest.raises(InputError):
        parse_call_line(line, source="calls.txt", lineno=7)


def test_call_table_out_of_order_and_padded():
    table = build_call_table(
        [
            "5 3 T .",
            "",
            "5 1 A .,C",
            "   ",
            "6 1 G -",
        ]
    )
    assert len(table) == 2
    calls = table.calls_for(5, 4)
    assert len(calls) == 4
    assert calls[0] == BaseCall(True, ("C",))
    assert calls[1] == ABSENT
    assert calls[2].graph_base_present
    assert calls[3] == ABSENT

    assert table.calls_for(99, 2) == (ABSENT, ABSENT)
    assert table.call_at(5, 10) == ABSENT
    # Offsets past the node length are kept but not returned.
    assert table.calls_for(5, 1) == (BaseCall(True, ("C",)),)


def test_call_table_error_names_line():
    with pytest.raises(InputError, match="calls.txt:2"):
        build_call_table(["1 1 A .", "1 2 C A,C,G"], source="calls.txt")
