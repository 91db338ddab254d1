"""Rule-based complexity detection and reply length budget."""

import re
from dataclasses import dataclass

COMPLEX_KEYWORDS = (
    "為什麼",
    "为什么",
    "怎麼",
    "怎么",
    "如何",
    "比較",
    "比较",
    "差別",
    "差别",
    "步驟",
    "步骤",
    "推薦",
    "推荐",
    "建議",
    "建议",
    "解釋",
)
# Latin keywords match whole words only ("how" must not fire on "show").
COMPLEX_WORDS = frozenset({"why", "how", "compare", "steps", "recommend", "explain"})
QUESTION_MARKS = ("?", "？")

_LATIN_WORD = re.compile(r"[a-z]+")


@dataclass(frozen=True)
class BudgetPolicy:
    short_input_chars: int = 12
    short_budget: int = 20
    long_budget: int = 50
    complex_input_chars: int = 30


def normalize_for_matching(text: str) -> str:
    return " ".join((text or "").split()).casefold()


def is_complex_message(text: str, complex_input_chars: int = BudgetPolicy.complex_input_chars) -> bool:
    """Explanation-seeking keyword, a question mark, or a long message."""
    normalized = normalize_for_matching(text)
    if not normalized:
        return False
    if len(normalized) > complex_input_chars:
        return True
    if any(mark in normalized for mark in QUESTION_MARKS):
        return True
    if any(keyword in normalized for keyword in COMPLEX_KEYWORDS):
        return True
    return not COMPLEX_WORDS.isdisjoint(_LATIN_WORD.findall(normalized))


def choose_budget(text: str, policy: BudgetPolicy | None = None) -> int:
    """Short, plain inputs get the small budget; everything else the large one."""
    policy = policy or BudgetPolicy()
    stripped = (text or "").strip()
    if is_complex_message(stripped, policy.complex_input_chars):
        return policy.long_budget
    if len(stripped) <= policy.short_input_chars:
        return policy.short_budget
    return policy.long_budget
