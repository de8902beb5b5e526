"""
Normalization profiles for the matching strategies

These are stricter than normalization.normalize_name and never reorder
tokens, since phonetic and edit-distance algorithms care about word order.
"""

import re
import unicodedata
from typing import Optional

HANGUL_START = 0xAC00
HANGUL_END = 0xD7A3

_PHONETIC_DISALLOWED = re.compile(r'[^A-Z\s]')
_GENERAL_DISALLOWED = re.compile(r'[^A-Z0-9가-힣\s]')
_WHITESPACE = re.compile(r'\s+')


def strip_diacritics(text: str) -> str:
    """Drop combining marks, keeping precomposed Hangul syllables intact"""
    decomposed = unicodedata.normalize('NFD', text)
    stripped = ''.join(c for c in decomposed if not unicodedata.category(c).startswith('M'))
    return unicodedata.normalize('NFC', stripped)


def _apply_profile(text: Optional[str], disallowed: 're.Pattern[str]') -> str:
    if not text:
        return ""
    cleaned = disallowed.sub('', strip_diacritics(text).upper())
    return _WHITESPACE.sub(' ', cleaned).strip()


def normalize_phonetic(text: Optional[str]) -> str:
    """Phonetic profile: Latin letters A-Z and single spaces only"""
    return _apply_profile(text, _PHONETIC_DISALLOWED)


def normalize_general(text: Optional[str]) -> str:
    """General profile: A-Z, digits, Hangul syllables and single spaces"""
    return _apply_profile(text, _GENERAL_DISALLOWED)


def is_hangul_syllable(char: str) -> bool:
    return HANGUL_START <= ord(char) <= HANGUL_END


def contains_hangul(text: Optional[str]) -> bool:
    if not text:
        return False
    return any(is_hangul_syllable(c) for c in text)


def extract_hangul(text: Optional[str]) -> str:
    """Keep only the Hangul syllables of text, in order"""
    if not text:
        return ""
    return ''.join(c for c in text if is_hangul_syllable(c))
