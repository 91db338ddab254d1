import re
from typing import Iterable


def _build_pattern(terms: Iterable[str]) -> re.Pattern | None:
    cleaned = sorted({term.strip() for term in terms if term and term.strip()}, key=len, reverse=True)
    if not cleaned:
        return None
    alternatives = "|".join(re.escape(term) for term in cleaned)
    # Spaces/tabs hugging a term belong to the removal site.
    return re.compile(rf"([ \t]*)(?:{alternatives})([ \t]*)", re.IGNORECASE)


def _join_gap(match: re.Match) -> str:
    # Keep one space only where the term separated two words.
    return " " if match.group(1) and match.group(2) else ""


def scrub_terms(text: str, terms: Iterable[str]) -> str:
    """Remove every case-insensitive occurrence of each banned term.

    Removal is literal text surgery; the sentence around a removed word is left
    as-is and later shaping deals with any broken ending. Whitespace elsewhere
    in the text is untouched.
    """
    if not text:
        return ""
    pattern = _build_pattern(terms)
    if pattern is None:
        return text
    return pattern.sub(_join_gap, text).strip()
