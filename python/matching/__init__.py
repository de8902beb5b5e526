"""
Matching Package for the Watchlist Screening Engine

This package provides:
- Normalization profiles for phonetic and general matching
- Soundex, Double Metaphone, Jaro-Winkler, N-Gram and Korean strategies
- A weighted composite strategy
- AdvancedMatchingService facade with a name-keyed strategy registry
"""

from matching.strategies import (
    MatchingStrategy,
    SoundexMatchingStrategy,
    MetaphoneMatchingStrategy,
    MetaphoneCode,
    JaroWinklerMatchingStrategy,
    NGramMatchingStrategy,
    KoreanNameMatchingStrategy,
    CompositeMatchingStrategy,
    CompositeMatchResult,
)
from matching.service import (
    AdvancedMatchingService,
    UnknownStrategyError,
)

__all__ = [
    'MatchingStrategy',
    'SoundexMatchingStrategy',
    'MetaphoneMatchingStrategy',
    'MetaphoneCode',
    'JaroWinklerMatchingStrategy',
    'NGramMatchingStrategy',
    'KoreanNameMatchingStrategy',
    'CompositeMatchingStrategy',
    'CompositeMatchResult',
    'AdvancedMatchingService',
    'UnknownStrategyError',
]
