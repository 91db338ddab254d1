"""Sentence shaping for generated replies.

A reply must fit a character budget and end on a terminal mark. Over-budget
text is cut back to the last natural break inside the budget, as long as that
break is not so early that only a fragment would remain.
"""

import string

TERMINAL_PUNCTUATION = "。！？!?.…~～"
SOFT_BREAK_PUNCTUATION = "，,、；;：:"
BREAK_PUNCTUATION = TERMINAL_PUNCTUATION + SOFT_BREAK_PUNCTUATION
DEFAULT_TERMINAL = "。"
MIN_BREAK_OFFSET = 8

_TRAILING_JUNK = SOFT_BREAK_PUNCTUATION + string.whitespace + "　"


def ends_with_terminal(text: str) -> bool:
    return bool(text) and text[-1] in TERMINAL_PUNCTUATION


def find_break(text: str, min_offset: int = MIN_BREAK_OFFSET) -> int:
    """Index of the rightmost acceptable break at or after min_offset, else -1."""
    for index in range(len(text) - 1, min_offset - 1, -1):
        if text[index] in BREAK_PUNCTUATION:
            return index
    return -1


def ensure_terminal(text: str, budget: int) -> str:
    """Make text end on a terminal mark without growing it past budget.

    Trailing soft breaks (commas and friends) are dropped before the mark is
    added. When text already fills the whole budget, its last character gives
    way to the terminal mark.
    """
    text = text.rstrip()
    if ends_with_terminal(text):
        return text
    if len(text) >= budget and text[-1] not in SOFT_BREAK_PUNCTUATION:
        text = text[: budget - 1]
    text = text.rstrip(_TRAILING_JUNK)
    if ends_with_terminal(text):
        return text
    return text + DEFAULT_TERMINAL


def truncate_at_break(text: str, budget: int) -> str:
    """Hard-cut text to budget, then pull back to the last natural break if any."""
    clipped = text[:budget]
    index = find_break(clipped)
    if index >= 0:
        return clipped[: index + 1]
    return clipped


def shape_reply(text: str, budget: int) -> str:
    """Clamp text to budget characters and guarantee terminal punctuation."""
    if budget <= 0:
        raise ValueError("budget must be positive")
    text = (text or "").strip()
    if len(text) > budget:
        text = truncate_at_break(text, budget)
    return ensure_terminal(text, budget)
