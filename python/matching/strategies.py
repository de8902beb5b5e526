"""
Name Matching Strategies

Each strategy scores two names in [0, 1] and decides whether they match:

- SOUNDEX: per-token Soundex codes (jellyfish)
- METAPHONE: per-token Double Metaphone primary/alternate codes
- JARO_WINKLER: full-string and greedy token-wise Jaro-Winkler (rapidfuzz)
- NGRAM: Jaccard overlap of padded character n-grams
- KOREAN: Hangul syllable, chosung and jamo comparison
- COMPOSITE: weighted blend of the above

All strategies are stateless after construction and safe to share between
threads. None of them raise on None, blank or inapplicable input; they
return 0.0 / False instead.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, NamedTuple, Optional, Set

import jellyfish
from metaphone import doublemetaphone
from rapidfuzz.distance import JaroWinkler

from config_manager import COMPOSITE_WEIGHT_KEYS, ConfigurationError
from matching.profiles import (
    HANGUL_START,
    contains_hangul,
    extract_hangul,
    is_hangul_syllable,
    normalize_general,
    normalize_phonetic,
)

METAPHONE_CODE_LENGTH = 4

CHOSUNG = (
    'ㄱ', 'ㄲ', 'ㄴ', 'ㄷ', 'ㄸ', 'ㄹ', 'ㅁ', 'ㅂ', 'ㅃ', 'ㅅ',
    'ㅆ', 'ㅇ', 'ㅈ', 'ㅉ', 'ㅊ', 'ㅋ', 'ㅌ', 'ㅍ', 'ㅎ'
)
JUNGSUNG = (
    'ㅏ', 'ㅐ', 'ㅑ', 'ㅒ', 'ㅓ', 'ㅔ', 'ㅕ', 'ㅖ', 'ㅗ', 'ㅘ',
    'ㅙ', 'ㅚ', 'ㅛ', 'ㅜ', 'ㅝ', 'ㅞ', 'ㅟ', 'ㅠ', 'ㅡ', 'ㅢ', 'ㅣ'
)
# Index 0 means "no final consonant"
JONGSUNG = (
    '', 'ㄱ', 'ㄲ', 'ㄳ', 'ㄴ', 'ㄵ', 'ㄶ', 'ㄷ', 'ㄹ', 'ㄺ',
    'ㄻ', 'ㄼ', 'ㄽ', 'ㄾ', 'ㄿ', 'ㅀ', 'ㅁ', 'ㅂ', 'ㅄ', 'ㅅ',
    'ㅆ', 'ㅇ', 'ㅈ', 'ㅊ', 'ㅋ', 'ㅌ', 'ㅍ', 'ㅎ'
)
_JUNG_X_JONG = len(JUNGSUNG) * len(JONGSUNG)


def _split_codes(code: str) -> Set[str]:
    return {c for c in code.split('-') if c}


class MatchingStrategy(ABC):
    """Common contract for name matching algorithms"""

    name: str = ""

    @abstractmethod
    def similarity(self, first: Optional[str], second: Optional[str]) -> float:
        """Similarity score in [0, 1]"""

    @abstractmethod
    def matches(self, first: Optional[str], second: Optional[str]) -> bool:
        """Whether the two names are considered a match"""

    def is_applicable(self, text: Optional[str]) -> bool:
        """Whether this strategy can say anything useful about text"""
        return bool(text and text.strip())

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"


class SoundexMatchingStrategy(MatchingStrategy):
    """Soundex phonetic matching, e.g. "Robert" and "Rupert" are both R163"""

    name = "SOUNDEX"

    def encode(self, text: Optional[str]) -> str:
        """Per-token Soundex codes joined by '-'"""
        normalized = normalize_phonetic(text)
        if not normalized:
            return ""
        codes = [jellyfish.soundex(word) for word in normalized.split(' ')]
        return '-'.join(c for c in codes if c)

    def similarity(self, first: Optional[str], second: Optional[str]) -> float:
        code1 = self.encode(first)
        code2 = self.encode(second)
        if not code1 or not code2:
            return 0.0
        if code1 == code2:
            return 1.0
        codes1 = _split_codes(code1)
        codes2 = _split_codes(code2)
        return len(codes1 & codes2) / max(len(codes1), len(codes2))

    def matches(self, first: Optional[str], second: Optional[str]) -> bool:
        code1 = self.encode(first)
        code2 = self.encode(second)
        if not code1 or not code2:
            return False
        return code1 == code2 or bool(_split_codes(code1) & _split_codes(code2))

    def is_applicable(self, text: Optional[str]) -> bool:
        return bool(normalize_phonetic(text))


class MetaphoneCode(NamedTuple):
    """Double Metaphone codes, one per token joined by '-'"""
    primary: str
    alternate: str

    @property
    def is_empty(self) -> bool:
        return not self.primary and not self.alternate


class MetaphoneMatchingStrategy(MatchingStrategy):
    """Double Metaphone phonetic matching

    Handles spelling variants of transliterated names, e.g.
    "Muhammad" / "Mohammed" both encode to MHMT.
    """

    name = "METAPHONE"

    def encode(self, text: Optional[str]) -> MetaphoneCode:
        normalized = normalize_phonetic(text)
        if not normalized:
            return MetaphoneCode("", "")

        primary: List[str] = []
        alternate: List[str] = []
        for word in normalized.split(' '):
            first, second = doublemetaphone(word)
            first = (first or "")[:METAPHONE_CODE_LENGTH]
            # A word without a distinct alternate encodes the same both ways
            second = (second or first)[:METAPHONE_CODE_LENGTH]
            if first:
                primary.append(first)
            if second:
                alternate.append(second)
        return MetaphoneCode('-'.join(primary), '-'.join(alternate))

    def similarity(self, first: Optional[str], second: Optional[str]) -> float:
        code1 = self.encode(first)
        code2 = self.encode(second)
        if code1.is_empty or code2.is_empty:
            return 0.0
        if code1.primary == code2.primary:
            return 1.0
        if code1.primary == code2.alternate or code1.alternate == code2.primary:
            return 0.9

        tokens1 = _split_codes(code1.primary)
        tokens2 = _split_codes(code2.primary)
        union = tokens1 | tokens2
        if not union:
            return 0.0
        return len(tokens1 & tokens2) / len(union)

    def matches(self, first: Optional[str], second: Optional[str]) -> bool:
        code1 = self.encode(first)
        code2 = self.encode(second)
        if code1.is_empty or code2.is_empty:
            return False
        if (code1.primary == code2.primary
                or code1.primary == code2.alternate
                or code1.alternate == code2.primary
                or code1.alternate == code2.alternate):
            return True
        tokens1 = _split_codes(code1.primary) | _split_codes(code1.alternate)
        tokens2 = _split_codes(code2.primary) | _split_codes(code2.alternate)
        return bool(tokens1 & tokens2)

    def is_applicable(self, text: Optional[str]) -> bool:
        return bool(normalize_phonetic(text))


class JaroWinklerMatchingStrategy(MatchingStrategy):
    """Jaro-Winkler similarity, strong on shared prefixes and short typos"""

    name = "JARO_WINKLER"

    def __init__(self, threshold: float = 0.85):
        self.threshold = threshold

    def similarity(self, first: Optional[str], second: Optional[str]) -> float:
        s1 = normalize_general(first)
        s2 = normalize_general(second)
        if not s1 or not s2:
            return 0.0
        return JaroWinkler.similarity(s1, s2)

    def matches(self, first: Optional[str], second: Optional[str]) -> bool:
        return self.similarity(first, second) >= self.threshold

    def token_similarity(self, first: Optional[str], second: Optional[str]) -> float:
        """Word-order tolerant similarity

        Each token of the first name greedily takes the most similar unused
        token of the second name; ties keep the earliest candidate. The sum
        is divided by the larger token count.
        """
        s1 = normalize_general(first)
        s2 = normalize_general(second)
        if not s1 or not s2:
            return 0.0

        tokens1 = s1.split(' ')
        tokens2 = s2.split(' ')
        used = [False] * len(tokens2)
        total = 0.0

        for token in tokens1:
            best_score = 0.0
            best_index = -1
            for index, candidate in enumerate(tokens2):
                if used[index]:
                    continue
                score = JaroWinkler.similarity(token, candidate)
                if score > best_score:
                    best_score = score
                    best_index = index
            if best_index >= 0:
                used[best_index] = True
                total += best_score

        return total / max(len(tokens1), len(tokens2))


class NGramMatchingStrategy(MatchingStrategy):
    """Character n-gram (Jaccard) similarity, tolerant of typos and reordering"""

    name = "NGRAM"

    def __init__(self, n: int = 2, threshold: float = 0.5):
        self.n = n
        self.threshold = threshold

    @staticmethod
    def generate_ngrams(text: str, n: int) -> Set[str]:
        """Character n-grams of text padded with '_' and spaces replaced by '_'"""
        padded = '_' + text.replace(' ', '_') + '_'
        return {padded[i:i + n] for i in range(len(padded) - n + 1)}

    def ngram_similarity(self, first: Optional[str], second: Optional[str], n: int) -> float:
        if first is None or second is None or n < 1:
            return 0.0
        s1 = normalize_general(first)
        s2 = normalize_general(second)
        if not s1 or not s2:
            return 0.0
        if len(s1) < n or len(s2) < n:
            return 1.0 if s1 == s2 else 0.0

        grams1 = self.generate_ngrams(s1, n)
        grams2 = self.generate_ngrams(s2, n)
        union = grams1 | grams2
        if not union:
            return 0.0
        return len(grams1 & grams2) / len(union)

    def bigram_similarity(self, first: Optional[str], second: Optional[str]) -> float:
        return self.ngram_similarity(first, second, 2)

    def trigram_similarity(self, first: Optional[str], second: Optional[str]) -> float:
        return self.ngram_similarity(first, second, 3)

    def similarity(self, first: Optional[str], second: Optional[str]) -> float:
        return self.ngram_similarity(first, second, self.n)

    def matches(self, first: Optional[str], second: Optional[str]) -> bool:
        return self.similarity(first, second) >= self.threshold


class KoreanNameMatchingStrategy(MatchingStrategy):
    """Hangul name matching

    Compares the Hangul syllables of both names: identical syllables score
    1.0, identical initial consonants (chosung) score 0.8, otherwise the
    jamo decompositions are compared with Jaro-Winkler scaled by 0.9.
    """

    name = "KOREAN"

    def __init__(self, threshold: float = 0.7):
        self.threshold = threshold

    @staticmethod
    def extract_chosung(text: Optional[str]) -> str:
        """Initial consonants of each Hangul syllable, e.g. 김철수 -> ㄱㅊㅅ"""
        if not text:
            return ""
        return ''.join(
            CHOSUNG[(ord(c) - HANGUL_START) // _JUNG_X_JONG]
            for c in text if is_hangul_syllable(c)
        )

    @staticmethod
    def decompose_to_jamo(text: Optional[str]) -> str:
        """Split Hangul syllables into jamo, e.g. 김 -> ㄱㅣㅁ

        Characters that are not Hangul syllables are kept as they are.
        """
        if not text:
            return ""
        parts = []
        for c in text:
            if not is_hangul_syllable(c):
                parts.append(c)
                continue
            base = ord(c) - HANGUL_START
            parts.append(CHOSUNG[base // _JUNG_X_JONG])
            parts.append(JUNGSUNG[(base % _JUNG_X_JONG) // len(JONGSUNG)])
            parts.append(JONGSUNG[base % len(JONGSUNG)])
        return ''.join(parts)

    def matches_chosung(self, first: Optional[str], second: Optional[str]) -> bool:
        chosung1 = self.extract_chosung(extract_hangul(first))
        chosung2 = self.extract_chosung(extract_hangul(second))
        return bool(chosung1) and chosung1 == chosung2

    def contains_korean(self, text: Optional[str]) -> bool:
        return contains_hangul(text)

    def similarity(self, first: Optional[str], second: Optional[str]) -> float:
        if not contains_hangul(first) or not contains_hangul(second):
            return 0.0

        korean1 = extract_hangul(first)
        korean2 = extract_hangul(second)
        if korean1 == korean2:
            return 1.0

        chosung1 = self.extract_chosung(korean1)
        if chosung1 and chosung1 == self.extract_chosung(korean2):
            return 0.8

        jamo1 = self.decompose_to_jamo(korean1)
        jamo2 = self.decompose_to_jamo(korean2)
        return JaroWinkler.similarity(jamo1, jamo2) * 0.9

    def matches(self, first: Optional[str], second: Optional[str]) -> bool:
        return self.similarity(first, second) >= self.threshold

    def is_applicable(self, text: Optional[str]) -> bool:
        return contains_hangul(text)


@dataclass(frozen=True)
class CompositeMatchResult:
    """Per-algorithm scores behind one composite comparison"""
    composite_score: float
    jaro_winkler_score: float
    metaphone_score: float
    ngram_score: float
    korean_score: float
    metaphone_match: bool
    soundex_match: bool

    def is_high_confidence_match(self, threshold: float) -> bool:
        """Composite score reaches threshold, or the names sound alike"""
        return self.composite_score >= threshold or self.metaphone_match

    def to_dict(self) -> Dict[str, object]:
        return {
            'composite_score': round(self.composite_score, 4),
            'jaro_winkler_score': round(self.jaro_winkler_score, 4),
            'metaphone_score': round(self.metaphone_score, 4),
            'ngram_score': round(self.ngram_score, 4),
            'korean_score': round(self.korean_score, 4),
            'metaphone_match': self.metaphone_match,
            'soundex_match': self.soundex_match,
        }


class CompositeMatchingStrategy(MatchingStrategy):
    """Weighted blend of token Jaro-Winkler, Metaphone, bigram and Korean scores

    The Korean-aware weight profile is used whenever the Korean strategy
    produced a positive score.
    """

    name = "COMPOSITE"

    def __init__(self,
                 soundex: SoundexMatchingStrategy,
                 metaphone: MetaphoneMatchingStrategy,
                 jaro_winkler: JaroWinklerMatchingStrategy,
                 ngram: NGramMatchingStrategy,
                 korean: KoreanNameMatchingStrategy,
                 weights_with_korean: Dict[str, float],
                 weights_without_korean: Dict[str, float],
                 threshold: float = 0.75):
        self.soundex = soundex
        self.metaphone = metaphone
        self.jaro_winkler = jaro_winkler
        self.ngram = ngram
        self.korean = korean
        self.weights_with_korean = self._checked_weights('with_korean', weights_with_korean)
        self.weights_without_korean = self._checked_weights('without_korean', weights_without_korean)
        self.threshold = threshold

    @staticmethod
    def _checked_weights(profile: str, weights: Dict[str, float]) -> Dict[str, float]:
        """Copy of a weight profile as floats

        Raises:
            ConfigurationError: If a weight is missing or not a number
        """
        keys = COMPOSITE_WEIGHT_KEYS[profile]
        missing = [k for k in keys if k not in weights]
        if missing:
            raise ConfigurationError(f"Composite weights ({profile}) missing {missing}")
        try:
            return {k: float(weights[k]) for k in keys}
        except (TypeError, ValueError):
            raise ConfigurationError(f"Composite weights ({profile}) must be numbers: {weights}")

    def compare(self, first: Optional[str], second: Optional[str]) -> CompositeMatchResult:
        jw_score = self.jaro_winkler.token_similarity(first, second)
        metaphone_score = self.metaphone.similarity(first, second)
        ngram_score = self.ngram.bigram_similarity(first, second)
        korean_score = self.korean.similarity(first, second)

        if korean_score > 0:
            w = self.weights_with_korean
            composite = (jw_score * w['jaro_winkler'] + metaphone_score * w['metaphone']
                         + ngram_score * w['ngram'] + korean_score * w['korean'])
        else:
            w = self.weights_without_korean
            composite = (jw_score * w['jaro_winkler'] + metaphone_score * w['metaphone']
                         + ngram_score * w['ngram'])

        return CompositeMatchResult(
            composite_score=composite,
            jaro_winkler_score=jw_score,
            metaphone_score=metaphone_score,
            ngram_score=ngram_score,
            korean_score=korean_score,
            metaphone_match=self.metaphone.matches(first, second),
            soundex_match=self.soundex.matches(first, second),
        )

    def similarity(self, first: Optional[str], second: Optional[str]) -> float:
        return self.compare(first, second).composite_score

    def matches(self, first: Optional[str], second: Optional[str]) -> bool:
        return self.compare(first, second).is_high_confidence_match(self.threshold)
