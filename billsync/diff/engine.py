"""
Text differencing for bill versions.

Computes an edit script between two texts in two passes. Myers' O(ND)
greedy search finds the edit distance D; a dynamic program over the
diagonals that a D-edit path can reach then picks, among all shortest
scripts, one with the fewest change blocks. The result is normalized so
output is readable and deterministic:

1. Inside every change block deletions come before insertions.
2. Consecutive operations of the same kind are merged.

Texts are split into lines (line endings kept) or, for word granularity,
into alternating word and whitespace runs. Word diffs are computed inside
the changed line blocks only, which keeps them fast on long bills.

Responsibility: Pure edit-script computation (no I/O, no shared state)
"""

from enum import Enum
from typing import List, Sequence, Tuple
import re

from ..models.documents import DiffOp, DiffResult, DiffStats, OpKind
from .render import render_html


EQUAL, DELETE, INSERT = OpKind.EQUAL, OpKind.DELETE, OpKind.INSERT

Token = str
RawOp = Tuple[OpKind, Token]

_WORD_RE = re.compile(r"\s+|\S+")

_INF = float("inf")

# Back-pointers of the block-minimizing search
_FROM_CHANGED = 1
_DELETE_AFTER_MATCH = 0
_DELETE_AFTER_CHANGE = 1
_INSERT_AFTER_MATCH = 2
_INSERT_AFTER_CHANGE = 3


class Granularity(str, Enum):
    """Token unit of the diff"""
    LINE = "line"
    WORD = "word"


def tokenize(text: str, granularity: Granularity = Granularity.LINE) -> List[Token]:
    """
    Split text into diff tokens whose concatenation is exactly text.

    Example:
        >>> tokenize("a\\nb")
        ['a\\n', 'b']
        >>> tokenize("Sec. 1 amended", Granularity.WORD)
        ['Sec.', ' ', '1', ' ', 'amended']
    """
    if granularity == Granularity.LINE:
        return text.splitlines(keepends=True)
    return _WORD_RE.findall(text)


def compute_diff(
    from_text: str,
    to_text: str,
    granularity: str = Granularity.LINE,
    bill_id: str = "",
    from_version: int = 0,
    to_version: int = 0
) -> DiffResult:
    """
    Compute the structured difference between two texts.

    Args:
        from_text: Earlier version
        to_text: Later version
        granularity: "line" or "word"
        bill_id, from_version, to_version: Identity recorded on the result

    Returns:
        DiffResult with coalesced ops, rendered HTML, and token counts

    Raises:
        TypeError: inputs are not str (binary input is not supported)
        ValueError: unknown granularity
    """
    if not isinstance(from_text, str) or not isinstance(to_text, str):
        raise TypeError("compute_diff expects two str texts")

    granularity = Granularity(granularity)

    raw = diff_tokens(tokenize(from_text), tokenize(to_text))
    if granularity == Granularity.WORD:
        raw = _refine_words(raw)

    ops = coalesce(raw)

    return DiffResult(
        bill_id=bill_id,
        from_version=from_version,
        to_version=to_version,
        granularity=granularity.value,
        ops=ops,
        rendered_html=render_html(ops),
        stats=_stats(raw),
    )


def diff_tokens(a: Sequence[Token], b: Sequence[Token]) -> List[RawOp]:
    """
    Normalized per-token edit script turning a into b.

    The script has the fewest edits, and among those the fewest change
    blocks. Common leading and trailing tokens are always kept as equal.
    """
    a, b = list(a), list(b)

    prefix = 0
    limit = min(len(a), len(b))
    while prefix < limit and a[prefix] == b[prefix]:
        prefix += 1

    suffix = 0
    limit -= prefix
    while suffix < limit and a[-1 - suffix] == b[-1 - suffix]:
        suffix += 1

    middle_a = a[prefix:len(a) - suffix]
    middle_b = b[prefix:len(b) - suffix]

    raw: List[RawOp] = [(EQUAL, token) for token in a[:prefix]]
    if not middle_a:
        raw.extend((INSERT, token) for token in middle_b)
    elif not middle_b:
        raw.extend((DELETE, token) for token in middle_a)
    else:
        distance = edit_distance(middle_a, middle_b)
        raw.extend(_fewest_blocks(middle_a, middle_b, distance))
    raw.extend((EQUAL, token) for token in a[len(a) - suffix:])

    labels = [kind for kind, _ in raw]
    tokens = [token for _, token in raw]
    _order_blocks(labels, tokens)
    return list(zip(labels, tokens))


def coalesce(raw: Sequence[RawOp]) -> List[DiffOp]:
    """Merge consecutive same-kind token ops into DiffOps"""
    ops: List[DiffOp] = []
    current_kind = None
    buffer: List[str] = []

    for kind, token in raw:
        if kind != current_kind and buffer:
            ops.append(DiffOp(kind=current_kind, text="".join(buffer)))
            buffer = []
        current_kind = kind
        buffer.append(token)

    if buffer:
        ops.append(DiffOp(kind=current_kind, text="".join(buffer)))

    return ops


# MARK: - Edit path search

def edit_distance(a: Sequence[Token], b: Sequence[Token]) -> int:
    """
    Number of insertions plus deletions in a shortest edit script.

    Myers' greedy forward search: round d records, for every diagonal
    k = x - y, the furthest x reachable with d edits.
    """
    n, m = len(a), len(b)
    max_d = n + m
    offset = max_d + 1
    v = [0] * (2 * max_d + 3)

    for d in range(max_d + 1):
        for k in range(-d, d + 1, 2):
            if k == -d or (k != d and v[offset + k - 1] < v[offset + k + 1]):
                x = v[offset + k + 1]
            else:
                x = v[offset + k - 1] + 1
            y = x - k
            while x < n and y < m and a[x] == b[y]:
                x += 1
                y += 1
            v[offset + k] = x
            if x >= n and y >= m:
                return d

    return max_d


def _fewest_blocks(a: List[Token], b: List[Token], distance: int) -> List[RawOp]:
    """
    Shortest edit script with the fewest change blocks.

    Dynamic programming over the edit graph, each point carrying two
    states: the last step was a match, or the last step was an edit.
    Cost is one unit per block started plus a weight per edit larger than
    any block count, so edits are minimized first. A path with
    ``distance`` edits never leaves the diagonals between
    min(0, n - m) - slack and max(0, n - m) + slack, which bounds the work
    by O((n + m) * distance).
    """
    n, m = len(a), len(b)
    delta = n - m
    slack = (distance - abs(delta)) // 2
    k_low = min(0, delta) - slack
    k_high = max(0, delta) + slack
    width = k_high - k_low + 1
    edit = n + m + 1

    # Per row i, indexed by diagonal k = i - j offset by k_low
    matched_cost: List[List[float]] = []
    changed_cost: List[List[float]] = []
    matched_back: List[List[int]] = []
    changed_back: List[List[int]] = []

    for i in range(n + 1):
        matched = [_INF] * width
        changed = [_INF] * width
        matched_from = [0] * width
        changed_from = [0] * width
        if i == 0:
            matched[-k_low] = 0

        for j in range(max(0, i - k_high), min(m, i - k_low) + 1):
            t = i - j - k_low

            if i and j and a[i - 1] == b[j - 1]:
                above_matched = matched_cost[i - 1][t]
                above_changed = changed_cost[i - 1][t]
                if above_changed < above_matched:
                    matched[t] = above_changed
                    matched_from[t] = _FROM_CHANGED
                else:
                    matched[t] = above_matched

            best = _INF
            step = 0
            if i and t >= 1:
                cost = matched_cost[i - 1][t - 1] + edit + 1
                if cost < best:
                    best, step = cost, _DELETE_AFTER_MATCH
                cost = changed_cost[i - 1][t - 1] + edit
                if cost < best:
                    best, step = cost, _DELETE_AFTER_CHANGE
            if j and t + 1 < width:
                cost = matched[t + 1] + edit + 1
                if cost < best:
                    best, step = cost, _INSERT_AFTER_MATCH
                cost = changed[t + 1] + edit
                if cost < best:
                    best, step = cost, _INSERT_AFTER_CHANGE
            changed[t] = best
            changed_from[t] = step

        matched_cost.append(matched)
        changed_cost.append(changed)
        matched_back.append(matched_from)
        changed_back.append(changed_from)

    i, j = n, m
    t = delta - k_low
    in_change = changed_cost[n][t] < matched_cost[n][t]

    path: List[RawOp] = []
    while i or j:
        t = i - j - k_low
        if not in_change:
            path.append((EQUAL, a[i - 1]))
            in_change = matched_back[i][t] == _FROM_CHANGED
            i -= 1
            j -= 1
            continue

        step = changed_back[i][t]
        if step in (_DELETE_AFTER_MATCH, _DELETE_AFTER_CHANGE):
            path.append((DELETE, a[i - 1]))
            i -= 1
        else:
            path.append((INSERT, b[j - 1]))
            j -= 1
        in_change = step in (_DELETE_AFTER_CHANGE, _INSERT_AFTER_CHANGE)

    path.reverse()
    return path


# MARK: - Normalization

def _run_end(labels: List[OpKind], start: int) -> int:
    end = start
    while end < len(labels) and labels[end] != EQUAL:
        end += 1
    return end


def _order_blocks(labels: List[OpKind], tokens: List[Token]) -> None:
    """Within each change block put deletions before insertions"""
    n = len(labels)
    i = 0
    while i < n:
        if labels[i] == EQUAL:
            i += 1
            continue

        end = _run_end(labels, i)
        deleted = [tokens[j] for j in range(i, end) if labels[j] == DELETE]
        inserted = [tokens[j] for j in range(i, end) if labels[j] == INSERT]

        labels[i:end] = [DELETE] * len(deleted) + [INSERT] * len(inserted)
        tokens[i:end] = deleted + inserted
        i = end


def _refine_words(line_ops: List[RawOp]) -> List[RawOp]:
    """Replace mixed line blocks with word-level edit scripts"""
    refined: List[RawOp] = []
    i = 0
    n = len(line_ops)

    while i < n:
        if line_ops[i][0] == EQUAL:
            refined.extend((EQUAL, t) for t in tokenize(line_ops[i][1], Granularity.WORD))
            i += 1
            continue

        end = i
        while end < n and line_ops[end][0] != EQUAL:
            end += 1

        old = "".join(token for kind, token in line_ops[i:end] if kind == DELETE)
        new = "".join(token for kind, token in line_ops[i:end] if kind == INSERT)
        refined.extend(diff_tokens(
            tokenize(old, Granularity.WORD),
            tokenize(new, Granularity.WORD)
        ))
        i = end

    return refined


def _stats(raw: Sequence[RawOp]) -> DiffStats:
    counts = {EQUAL: 0, DELETE: 0, INSERT: 0}
    for kind, token in raw:
        if token.strip():
            counts[kind] += 1
    return DiffStats(
        inserted=counts[INSERT],
        deleted=counts[DELETE],
        unchanged=counts[EQUAL],
    )
