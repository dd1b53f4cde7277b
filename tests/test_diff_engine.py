import functools
import itertools

import pytest

from billsync.diff import (
    Granularity,
    coalesce,
    compute_diff,
    diff_tokens,
    edit_distance,
    render_html,
    tokenize,
)
from billsync.models.documents import DiffOp, OpKind


SAMPLES = [
    ("", ""),
    ("", "Section 1. Short title.\n"),
    ("Section 1. Short title.\n", ""),
    ("a\nb\nc\n", "a\nb\nc\n"),
    ("a\nb\nc\n", "a\nc\n"),
    ("a\nb\nc", "a\nB\nc\nd"),
    ("x\ny\nz\n", "1\n2\n3\n"),
    ("no trailing newline", "no trailing newline\n"),
    ("a\nb\na\nb\n", "b\na\nb\na\n"),
    ("Sec. 1.\nThe term virtual currency means\nSec. 2.\n",
     "Sec. 1.\nThe term digital asset means\nSec. 2.\nSec. 3. Effective date.\n"),
]


def _kinds(result):
    return [op.kind for op in result.ops]


@pytest.mark.parametrize("old,new", SAMPLES)
@pytest.mark.parametrize("granularity", ["line", "word"])
def test_ops_reconstruct_both_texts(old: str, new: str, granularity: str) -> None:
    result = compute_diff(old, new, granularity=granularity)

    assert result.source_text() == old
    assert result.target_text() == new


def test_identical_texts_yield_only_equal_ops() -> None:
    text = "Section 1.\nSection 2.\nSection 3.\n"
    result = compute_diff(text, text)

    assert _kinds(result) == [OpKind.EQUAL]
    assert not result.has_changes
    assert "<ins" not in result.rendered_html
    assert "<del" not in result.rendered_html


def test_empty_from_text_is_all_inserts() -> None:
    result = compute_diff("", "line one\nline two\n")

    assert _kinds(result) == [OpKind.INSERT]
    assert result.ops[0].text == "line one\nline two\n"


def test_empty_inputs_yield_empty_script() -> None:
    result = compute_diff("", "")

    assert result.ops == []
    assert result.rendered_html == ""


def test_changed_line_between_equal_lines() -> None:
    result = compute_diff("Line A\nLine B", "Line A\nLine C")

    assert [(op.kind, op.text.rstrip("\n")) for op in result.ops] == [
        (OpKind.EQUAL, "Line A"),
        (OpKind.DELETE, "Line B"),
        (OpKind.INSERT, "Line C"),
    ]


def test_diff_is_deterministic() -> None:
    old, new = SAMPLES[-1]
    first = compute_diff(old, new)
    second = compute_diff(old, new)

    assert first.ops == second.ops
    assert first.rendered_html == second.rendered_html


def test_deletes_precede_inserts_within_a_block() -> None:
    result = compute_diff("a\nb\nc\nz\n", "a\nx\ny\nz\n")

    assert _kinds(result) == [OpKind.EQUAL, OpKind.DELETE, OpKind.INSERT, OpKind.EQUAL]
    assert result.ops[1].text == "b\nc\n"
    assert result.ops[2].text == "x\ny\n"


def _change_blocks(kinds) -> int:
    blocks = 0
    previous = OpKind.EQUAL
    for kind in kinds:
        if kind != OpKind.EQUAL and previous == OpKind.EQUAL:
            blocks += 1
        previous = kind
    return blocks


def _best_cost(a, b):
    """(edits, change blocks) of the cheapest script, by exhaustive search"""
    n, m = len(a), len(b)

    @functools.lru_cache(maxsize=None)
    def rest(i, j, in_change):
        if i == n and j == m:
            return (0, 0)
        options = []
        if i < n and j < m and a[i] == b[j]:
            options.append(rest(i + 1, j + 1, False))
        opening = 0 if in_change else 1
        if i < n:
            edits, blocks = rest(i + 1, j, True)
            options.append((edits + 1, blocks + opening))
        if j < m:
            edits, blocks = rest(i, j + 1, True)
            options.append((edits + 1, blocks + opening))
        return min(options)

    return rest(0, 0, False)


def _sequences(max_length: int):
    for length in range(max_length + 1):
        for letters in itertools.product("ab", repeat=length):
            yield list(letters)


def test_fewest_change_blocks_among_shortest_scripts() -> None:
    # Two shortest scripts exist; only this one needs just two blocks
    result = compute_diff("A\nA\nB\n", "B\nA\nB\nA\n")

    assert [(op.kind, op.text) for op in result.ops] == [
        (OpKind.DELETE, "A\n"),
        (OpKind.INSERT, "B\n"),
        (OpKind.EQUAL, "A\nB\n"),
        (OpKind.INSERT, "A\n"),
    ]


def test_rotation_needs_two_blocks() -> None:
    result = compute_diff("a\nb\na\nb\n", "b\na\nb\na\n")

    assert _change_blocks(_kinds(result)) == 2
    assert result.stats.inserted + result.stats.deleted == 2
    assert result.source_text() == "a\nb\na\nb\n"
    assert result.target_text() == "b\na\nb\na\n"


def test_scripts_are_shortest_then_fewest_blocks_on_small_alphabet() -> None:
    sequences = list(_sequences(5))

    for a in sequences:
        for b in sequences:
            raw = diff_tokens(a, b)
            kinds = [kind for kind, _ in raw]

            assert [t for kind, t in raw if kind != OpKind.INSERT] == a
            assert [t for kind, t in raw if kind != OpKind.DELETE] == b

            edits = sum(1 for kind in kinds if kind != OpKind.EQUAL)
            assert (edits, _change_blocks(kinds)) == _best_cost(tuple(a), tuple(b)), (a, b)
            assert edit_distance(a, b) == edits


def test_inserted_block_slides_to_lowest_position() -> None:
    raw = diff_tokens(["x\n", "x\n"], ["x\n", "x\n", "x\n"])

    assert [kind for kind, _ in raw] == [OpKind.EQUAL, OpKind.EQUAL, OpKind.INSERT]


def test_moved_token_costs_two_blocks() -> None:
    raw = diff_tokens(["a", "x", "b", "c"], ["a", "b", "x", "d"])
    ops = coalesce(raw)

    assert "".join(op.text for op in ops if op.kind != OpKind.INSERT) == "axbc"
    assert "".join(op.text for op in ops if op.kind != OpKind.DELETE) == "abxd"
    assert _change_blocks([op.kind for op in ops]) == 2
    assert ops[0] == DiffOp(kind=OpKind.EQUAL, text="a")



def test_word_granularity_marks_changed_words_only() -> None:
    result = compute_diff(
        "The term virtual currency means\n",
        "The term digital asset means\n",
        granularity="word",
    )

    deleted = [op.text for op in result.ops if op.kind == OpKind.DELETE]
    inserted = [op.text for op in result.ops if op.kind == OpKind.INSERT]
    assert deleted == ["virtual", "currency"]
    assert inserted == ["digital", "asset"]
    assert result.ops[0] == DiffOp(kind=OpKind.EQUAL, text="The term ")
    assert result.stats.deleted == 2
    assert result.stats.inserted == 2
    assert result.granularity == "word"


def test_rendering_escapes_bill_text() -> None:
    result = compute_diff("<b>bold</b>\n", '<script>alert("x")</script>\n')

    assert "<script>" not in result.rendered_html
    assert "&lt;script&gt;alert(&quot;x&quot;)&lt;/script&gt;" in result.rendered_html
    assert "&lt;b&gt;bold&lt;/b&gt;" in result.rendered_html


def test_render_html_wraps_each_kind() -> None:
    ops = [
        DiffOp(kind=OpKind.EQUAL, text="same "),
        DiffOp(kind=OpKind.DELETE, text="old"),
        DiffOp(kind=OpKind.INSERT, text="new & improved"),
        DiffOp(kind=OpKind.EQUAL, text=""),
    ]

    assert render_html(ops) == (
        '<span class="diff-equal">same </span>'
        '<del class="diff-delete">old</del>'
        '<ins class="diff-insert">new &amp; improved</ins>'
    )


def test_binary_input_is_rejected() -> None:
    with pytest.raises(TypeError):
        compute_diff(b"bytes", "text")


def test_unknown_granularity_is_rejected() -> None:
    with pytest.raises(ValueError):
        compute_diff("a", "b", granularity="character")


def test_tokenize_round_trips() -> None:
    text = "Sec. 1  amended\n\tSec. 2\n"

    assert "".join(tokenize(text)) == text
    assert "".join(tokenize(text, Granularity.WORD)) == text
