"""
Name and attribute normalization

Canonical forms used by the exact, fuzzy and contains rule evaluators.
Normalized names are accent-free, upper-case, restricted to Latin letters,
digits and Hangul syllables, and have their tokens sorted so that
"KIM Jong-Un" and "Jong Un Kim" compare equal.
"""

import re
import unicodedata
from typing import Optional

from rapidfuzz.distance import Levenshtein

# Everything outside A-Z, 0-9, Hangul syllables and whitespace is deleted
_DISALLOWED = re.compile(r'[^A-Z0-9가-힣\s]')
_WHITESPACE = re.compile(r'\s+')


def _strip_marks(text: str) -> str:
    decomposed = unicodedata.normalize('NFD', text)
    stripped = ''.join(c for c in decomposed if not unicodedata.category(c).startswith('M'))
    # NFD splits Hangul syllables into conjoining jamo; recompose them
    return unicodedata.normalize('NFC', stripped)


def normalize_name(name: Optional[str]) -> str:
    """Normalize a person or entity name for comparison

    Args:
        name: Raw name, may be None

    Returns:
        Canonical name with sorted tokens, or "" for None/empty input
    """
    if not name:
        return ""
    cleaned = _DISALLOWED.sub('', _strip_marks(name).upper())
    tokens = _WHITESPACE.split(cleaned.strip())
    return ' '.join(sorted(t for t in tokens if t))


def normalize_nationality(nationality: Optional[str]) -> str:
    """Upper-case and trim a nationality code"""
    if not nationality:
        return ""
    return nationality.strip().upper()


def calculate_similarity(first: Optional[str], second: Optional[str]) -> float:
    """Levenshtein similarity of two normalized names

    Args:
        first: Raw name
        second: Raw name

    Returns:
        1 - distance / max(len) over normalized forms, 0.0 if either is empty
    """
    a = normalize_name(first)
    b = normalize_name(second)
    if not a or not b:
        return 0.0
    if a == b:
        return 1.0
    distance = Levenshtein.distance(a, b)
    return 1.0 - distance / max(len(a), len(b))


def contains_all_words(full_text: Optional[str], search_text: Optional[str]) -> bool:
    """Check that every normalized token of search_text occurs in full_text

    Tokens are matched as substrings of the normalized full text. A search
    text that normalizes to nothing never matches.
    """
    full = normalize_name(full_text)
    search = normalize_name(search_text)
    if not full or not search:
        return False
    return all(token in full for token in search.split(' '))
