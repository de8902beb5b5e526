"""
Rule evaluator registry

Maps match types (upper-case) to evaluator instances.
"""

import logging
from typing import Dict, Iterable, List, Optional

from matching import AdvancedMatchingService
from rules.evaluators import (
    CompositeMatchEvaluator,
    ContainsMatchEvaluator,
    DateRangeMatchEvaluator,
    ExactMatchEvaluator,
    FuzzyMatchEvaluator,
    JaroWinklerMatchEvaluator,
    KoreanNameMatchEvaluator,
    NGramMatchEvaluator,
    PhoneticMatchEvaluator,
    RuleEvaluator,
)
from rules.fields import FieldValueExtractor

logger = logging.getLogger(__name__)


class UnsupportedMatchTypeError(LookupError):
    """Raised when no evaluator is registered for a match type

    Attributes:
        match_type: The requested match type
    """
    def __init__(self, match_type: str):
        self.match_type = match_type
        super().__init__(f"Unsupported match type: {match_type}")


class RuleEvaluatorRegistry:
    """Match type -> evaluator lookup"""

    def __init__(self, evaluators: Iterable[RuleEvaluator] = ()):
        self._evaluators: Dict[str, RuleEvaluator] = {}
        for evaluator in evaluators:
            self.register(evaluator)

    @staticmethod
    def _key(match_type: Optional[str]) -> str:
        return (match_type or "").strip().upper()

    def register(self, evaluator: RuleEvaluator) -> None:
        key = self._key(evaluator.match_type)
        if not key:
            raise ValueError(f"{type(evaluator).__name__} has no match_type")
        if key in self._evaluators:
            logger.warning("Replacing evaluator for match type %s", key)
        self._evaluators[key] = evaluator

    def is_supported(self, match_type: Optional[str]) -> bool:
        return self._key(match_type) in self._evaluators

    def get_evaluator(self, match_type: Optional[str]) -> RuleEvaluator:
        """Evaluator for match_type

        Raises:
            UnsupportedMatchTypeError: If none is registered
        """
        try:
            return self._evaluators[self._key(match_type)]
        except KeyError:
            raise UnsupportedMatchTypeError(match_type) from None

    def supported_match_types(self) -> List[str]:
        return sorted(self._evaluators)


def create_default_registry(matching: Optional[AdvancedMatchingService] = None,
                            fields: Optional[FieldValueExtractor] = None) -> RuleEvaluatorRegistry:
    """Registry with every built-in evaluator

    Args:
        matching: Matching service for the strategy-backed evaluators
        fields: Shared field extractor
    """
    matching = matching or AdvancedMatchingService()
    fields = fields or FieldValueExtractor()
    registry = RuleEvaluatorRegistry([
        ExactMatchEvaluator(fields),
        FuzzyMatchEvaluator(fields),
        ContainsMatchEvaluator(fields),
        DateRangeMatchEvaluator(fields),
        JaroWinklerMatchEvaluator(matching, fields),
        NGramMatchEvaluator(matching, fields),
        PhoneticMatchEvaluator(matching, fields),
        KoreanNameMatchEvaluator(matching, fields),
        CompositeMatchEvaluator(matching, fields),
    ])
    logger.info("Rule evaluators registered: %s", ', '.join(registry.supported_match_types()))
    return registry
