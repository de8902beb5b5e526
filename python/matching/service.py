"""
Advanced Matching Service

Facade over the matching strategies with a name-keyed strategy registry.
Evaluators and callers go through this service instead of building
strategies themselves, so thresholds and composite weights come from a
single MatchingConfig.

Usage:
    service = AdvancedMatchingService.from_config(get_config().matching)
    service.matches_metaphone("Muhammad", "Mohammed")   # True
    service.get_strategy("JARO_WINKLER").similarity("Jon", "John")
"""

import logging
from typing import Dict, List, Optional

from config_manager import MatchingConfig
from matching.strategies import (
    CompositeMatchingStrategy,
    CompositeMatchResult,
    JaroWinklerMatchingStrategy,
    KoreanNameMatchingStrategy,
    MatchingStrategy,
    MetaphoneCode,
    MetaphoneMatchingStrategy,
    NGramMatchingStrategy,
    SoundexMatchingStrategy,
)

logger = logging.getLogger(__name__)


class UnknownStrategyError(KeyError):
    """Raised when a strategy name is not registered"""
    pass


class AdvancedMatchingService:
    """Entry point for all name matching algorithms"""

    def __init__(self, config: Optional[MatchingConfig] = None):
        """Build every strategy from the matching configuration

        Args:
            config: Matching thresholds and composite weights; defaults if omitted
        """
        config = config or MatchingConfig()
        self.config = config

        self.soundex = SoundexMatchingStrategy()
        self.metaphone = MetaphoneMatchingStrategy()
        self.jaro_winkler = JaroWinklerMatchingStrategy(threshold=config.jaro_winkler_threshold)
        self.ngram = NGramMatchingStrategy(n=config.ngram_size, threshold=config.ngram_threshold)
        self.korean = KoreanNameMatchingStrategy(threshold=config.korean_threshold)
        self.composite = CompositeMatchingStrategy(
            soundex=self.soundex,
            metaphone=self.metaphone,
            jaro_winkler=self.jaro_winkler,
            ngram=self.ngram,
            korean=self.korean,
            weights_with_korean=config.weights_with_korean,
            weights_without_korean=config.weights_without_korean,
            threshold=config.composite_threshold,
        )

        self._strategies: Dict[str, MatchingStrategy] = {
            s.name: s for s in (
                self.soundex, self.metaphone, self.jaro_winkler,
                self.ngram, self.korean, self.composite
            )
        }
        logger.debug("Matching strategies registered: %s", ', '.join(self._strategies))

    @classmethod
    def from_config(cls, config: MatchingConfig) -> 'AdvancedMatchingService':
        return cls(config)

    # ==================== Registry ====================

    def get_strategy(self, name: str) -> MatchingStrategy:
        """Look up a strategy by its name, case-insensitively

        Raises:
            UnknownStrategyError: If no strategy has that name
        """
        key = (name or "").strip().upper()
        try:
            return self._strategies[key]
        except KeyError:
            raise UnknownStrategyError(
                f"Unknown matching strategy '{name}'. Available: {self.strategy_names()}"
            ) from None

    def strategy_names(self) -> List[str]:
        return sorted(self._strategies)

    # ==================== Soundex ====================

    def get_soundex_code(self, name: Optional[str]) -> str:
        return self.soundex.encode(name)

    def matches_soundex(self, name1: Optional[str], name2: Optional[str]) -> bool:
        return self.soundex.matches(name1, name2)

    def calculate_soundex_similarity(self, name1: Optional[str], name2: Optional[str]) -> float:
        return self.soundex.similarity(name1, name2)

    # ==================== Metaphone ====================

    def get_metaphone_code(self, name: Optional[str]) -> MetaphoneCode:
        return self.metaphone.encode(name)

    def matches_metaphone(self, name1: Optional[str], name2: Optional[str]) -> bool:
        return self.metaphone.matches(name1, name2)

    def calculate_metaphone_similarity(self, name1: Optional[str], name2: Optional[str]) -> float:
        return self.metaphone.similarity(name1, name2)

    # ==================== Jaro-Winkler ====================

    def calculate_jaro_winkler_similarity(self, name1: Optional[str], name2: Optional[str]) -> float:
        return self.jaro_winkler.similarity(name1, name2)

    def calculate_token_jaro_winkler_similarity(self, name1: Optional[str],
                                                name2: Optional[str]) -> float:
        return self.jaro_winkler.token_similarity(name1, name2)

    # ==================== N-Gram ====================

    def calculate_ngram_similarity(self, name1: Optional[str], name2: Optional[str],
                                   n: Optional[int] = None) -> float:
        return self.ngram.ngram_similarity(name1, name2, n or self.ngram.n)

    def calculate_bigram_similarity(self, name1: Optional[str], name2: Optional[str]) -> float:
        return self.ngram.bigram_similarity(name1, name2)

    def calculate_trigram_similarity(self, name1: Optional[str], name2: Optional[str]) -> float:
        return self.ngram.trigram_similarity(name1, name2)

    # ==================== Korean ====================

    def calculate_korean_name_similarity(self, name1: Optional[str], name2: Optional[str]) -> float:
        return self.korean.similarity(name1, name2)

    def extract_chosung(self, korean: Optional[str]) -> str:
        return self.korean.extract_chosung(korean)

    def decompose_to_jamo(self, korean: Optional[str]) -> str:
        return self.korean.decompose_to_jamo(korean)

    def matches_chosung(self, name1: Optional[str], name2: Optional[str]) -> bool:
        return self.korean.matches_chosung(name1, name2)

    def contains_korean(self, text: Optional[str]) -> bool:
        return self.korean.contains_korean(text)

    # ==================== Composite ====================

    def calculate_composite_match(self, name1: Optional[str],
                                  name2: Optional[str]) -> CompositeMatchResult:
        """Run every algorithm and blend the scores

        Args:
            name1: First name
            name2: Second name

        Returns:
            CompositeMatchResult with the blended and per-algorithm scores
        """
        return self.composite.compare(name1, name2)
