"""
Rule evaluators

One evaluator per match type. An evaluator reads the rule's source field
off the customer and its target field off the watchlist entry (which may
hold several values, e.g. aliases) and returns the MatchedRule facts the
rule produces, usually zero or one.

Match types:
- EXACT: normalized equality
- FUZZY: Levenshtein similarity of normalized names
- CONTAINS: token containment in either direction
- DATE_RANGE: dates within a number of days
- JARO_WINKLER, NGRAM, PHONETIC, KOREAN, COMPOSITE: matching strategies
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from matching import AdvancedMatchingService
from normalization import (
    calculate_similarity,
    contains_all_words,
    normalize_name,
    normalize_nationality,
)
from log_utils import sanitize_for_logging
from rules.fields import FieldValueExtractor
from rules.models import RuleDefinition, ScoreConfig
from screening_models import CustomerInfo, MatchedRule, WatchlistEntry

logger = logging.getLogger(__name__)


class RuleEvaluator(ABC):
    """Base class for match type evaluators"""

    match_type: str = ""

    def __init__(self, fields: Optional[FieldValueExtractor] = None):
        self.fields = fields or FieldValueExtractor()

    @abstractmethod
    def evaluate(self, customer: CustomerInfo, entry: WatchlistEntry,
                 rule: RuleDefinition) -> List[MatchedRule]:
        """Evaluate one rule against one customer/entry pair

        Args:
            customer: Customer being screened
            entry: Watchlist entry to compare with
            rule: Rule whose condition.match_type equals this evaluator's

        Returns:
            Matches produced by the rule, empty when it does not fire
        """

    # ------------------------------------------------------------------
    # Helpers shared by evaluators
    # ------------------------------------------------------------------

    def source_value(self, customer: CustomerInfo, rule: RuleDefinition) -> Optional[str]:
        value = self.fields.get_customer_value(customer, rule.condition.source_field)
        if value is None or not value.strip():
            return None
        return value

    def target_values(self, entry: WatchlistEntry, rule: RuleDefinition) -> List[str]:
        values = self.fields.get_watchlist_values(entry, rule.condition.target_field)
        return [v for v in values if v and v.strip()]

    @staticmethod
    def calculate_score(similarity: float, score: ScoreConfig) -> float:
        """Similarity-scaled score if the rule asks for it, else the partial score"""
        if score.proportional_to_similarity:
            return similarity * score.max_score
        return score.partial_match

    @staticmethod
    def build_matched_rule(rule: RuleDefinition, score: float, matched_value: Optional[str],
                           target_value: Optional[str], description: str) -> MatchedRule:
        return MatchedRule(
            rule_name=rule.id,
            rule_type=rule.type,
            score=score,
            matched_value=matched_value,
            target_value=target_value,
            description=description,
        )

    def _log_match(self, rule: RuleDefinition, source: str, target: str, detail: str = "") -> None:
        logger.debug("%s match found: %s ~ %s %s(Rule: %s)", self.match_type,
                     sanitize_for_logging(source), sanitize_for_logging(target),
                     f"{detail} " if detail else "", rule.id)


class ExactMatchEvaluator(RuleEvaluator):
    """Equality after normalization

    Names and aliases go through normalize_name so case, accents,
    punctuation and token order are ignored; nationalities are trimmed and
    upper-cased; other fields, including ISO dates, compare as upper-cased
    text.
    """

    match_type = "EXACT"

    def _normalize(self, value: str, field: str) -> str:
        if self.fields.is_name_field(field):
            return normalize_name(value)
        if self.fields.is_nationality_field(field):
            return normalize_nationality(value)
        return value.strip().upper()

    def evaluate(self, customer, entry, rule):
        source = self.source_value(customer, rule)
        if source is None:
            return []

        normalized_source = self._normalize(source, rule.condition.source_field)
        if not normalized_source:
            return []

        for target in self.target_values(entry, rule):
            if normalized_source == self._normalize(target, rule.condition.target_field):
                self._log_match(rule, source, target)
                return [self.build_matched_rule(rule, rule.score.exact_match, source,
                                                target, rule.description)]
        return []


class FuzzyMatchEvaluator(RuleEvaluator):
    """Levenshtein similarity against the best-matching target value

    When several targets tie for the best similarity, the first one wins.
    """

    match_type = "FUZZY"
    DEFAULT_THRESHOLD = 0.8

    def evaluate(self, customer, entry, rule):
        source = self.source_value(customer, rule)
        if source is None:
            return []

        threshold = rule.condition.parameters.similarity_threshold
        if threshold is None:
            threshold = self.DEFAULT_THRESHOLD

        best_similarity = 0.0
        best_target = None
        for target in self.target_values(entry, rule):
            similarity = calculate_similarity(source, target)
            if similarity > best_similarity:
                best_similarity = similarity
                best_target = target

        if best_target is None or best_similarity < threshold:
            return []

        score = self.calculate_score(best_similarity, rule.score)
        self._log_match(rule, source, best_target, f"(similarity: {best_similarity:.2f})")
        description = f"{rule.description} (similarity: {best_similarity * 100:.0f}%)"
        return [self.build_matched_rule(rule, score, source, best_target, description)]


class ContainsMatchEvaluator(RuleEvaluator):
    """One value contained in the other, in either direction

    With allWords (the default) every token of one normalized value must
    occur in the other; otherwise plain substring containment is used.
    """

    match_type = "CONTAINS"

    def evaluate(self, customer, entry, rule):
        source = self.source_value(customer, rule)
        if source is None:
            return []

        all_words = rule.condition.parameters.all_words
        normalized_source = normalize_name(source)
        if not normalized_source:
            return []

        for target in self.target_values(entry, rule):
            if all_words:
                matched = (contains_all_words(target, source)
                           or contains_all_words(source, target))
            else:
                normalized_target = normalize_name(target)
                matched = bool(normalized_target) and (
                    normalized_target in normalized_source
                    or normalized_source in normalized_target
                )
            if matched:
                self._log_match(rule, source, target)
                return [self.build_matched_rule(rule, rule.score.partial_match, source,
                                                target, rule.description)]
        return []


class DateRangeMatchEvaluator(RuleEvaluator):
    """Dates of birth within dateRangeDays of each other

    An identical date scores exactMatch; a date inside the window scores
    the partial or proximity-scaled score.
    """

    match_type = "DATE_RANGE"
    DEFAULT_RANGE_DAYS = 365

    def evaluate(self, customer, entry, rule):
        customer_date = self.fields.get_customer_date(customer, rule.condition.source_field)
        entry_date = self.fields.get_watchlist_date(entry, rule.condition.target_field)
        if customer_date is None or entry_date is None:
            return []

        range_days = rule.condition.parameters.date_range_days
        if range_days is None:
            range_days = self.DEFAULT_RANGE_DAYS

        if customer_date == entry_date:
            logger.debug("Exact DOB match: %s (Rule: %s)", customer_date, rule.id)
            return [self.build_matched_rule(
                rule, rule.score.exact_match, customer_date.isoformat(),
                entry_date.isoformat(), f"{rule.description} (exact match)"
            )]

        days_diff = abs((customer_date - entry_date).days)
        if days_diff > range_days:
            return []

        if rule.score.proportional_to_similarity:
            score = (1.0 - days_diff / range_days) * rule.score.max_score
        else:
            score = rule.score.partial_match
        logger.debug("Approximate DOB match: %s ~ %s (diff: %d days, Rule: %s)",
                     customer_date, entry_date, days_diff, rule.id)
        return [self.build_matched_rule(
            rule, score, customer_date.isoformat(), entry_date.isoformat(),
            f"{rule.description} (within {days_diff} days)"
        )]


class _StrategyEvaluator(RuleEvaluator):
    """Base for evaluators backed by the matching service"""

    def __init__(self, matching: AdvancedMatchingService,
                 fields: Optional[FieldValueExtractor] = None):
        super().__init__(fields)
        self.matching = matching

    @staticmethod
    def _threshold(rule: RuleDefinition, default: float) -> float:
        threshold = rule.condition.parameters.similarity_threshold
        return default if threshold is None else threshold


class JaroWinklerMatchEvaluator(_StrategyEvaluator):
    """Jaro-Winkler similarity, token-wise unless tokenMatching is false"""

    match_type = "JARO_WINKLER"
    DEFAULT_THRESHOLD = 0.85

    def evaluate(self, customer, entry, rule):
        source = self.source_value(customer, rule)
        if source is None:
            return []

        threshold = self._threshold(rule, self.DEFAULT_THRESHOLD)
        if rule.condition.parameters.token_matching:
            similarity_fn = self.matching.calculate_token_jaro_winkler_similarity
        else:
            similarity_fn = self.matching.calculate_jaro_winkler_similarity

        best_similarity = 0.0
        best_target = None
        for target in self.target_values(entry, rule):
            similarity = similarity_fn(source, target)
            if similarity >= threshold and similarity > best_similarity:
                best_similarity = similarity
                best_target = target

        if best_target is None:
            return []

        score = self.calculate_score(best_similarity, rule.score)
        self._log_match(rule, source, best_target, f"(similarity: {best_similarity:.2f})")
        description = (f"{rule.description} "
                       f"(Jaro-Winkler similarity: {best_similarity * 100:.0f}%)")
        return [self.build_matched_rule(rule, score, source, best_target, description)]


class NGramMatchEvaluator(_StrategyEvaluator):
    """Character n-gram similarity with a configurable n (ngramSize)"""

    match_type = "NGRAM"
    DEFAULT_THRESHOLD = 0.6
    DEFAULT_N = 2

    def evaluate(self, customer, entry, rule):
        source = self.source_value(customer, rule)
        if source is None:
            return []

        threshold = self._threshold(rule, self.DEFAULT_THRESHOLD)
        n = rule.condition.parameters.ngram_size or self.DEFAULT_N

        best_similarity = 0.0
        best_target = None
        for target in self.target_values(entry, rule):
            similarity = self.matching.calculate_ngram_similarity(source, target, n)
            if similarity >= threshold and similarity > best_similarity:
                best_similarity = similarity
                best_target = target

        if best_target is None:
            return []

        if n == 2:
            ngram_type = "Bigram"
        elif n == 3:
            ngram_type = "Trigram"
        else:
            ngram_type = f"{n}-gram"

        score = self.calculate_score(best_similarity, rule.score)
        self._log_match(rule, source, best_target, f"[{ngram_type}] (similarity: {best_similarity:.2f})")
        description = f"{rule.description} ({ngram_type} similarity: {best_similarity * 100:.0f}%)"
        return [self.build_matched_rule(rule, score, source, best_target, description)]


class PhoneticMatchEvaluator(_StrategyEvaluator):
    """Soundex and/or Double Metaphone comparison (algorithm parameter)

    A phonetic code match counts even below the similarity threshold and
    lifts the similarity to at least 0.8 (Soundex) or 0.85 (Metaphone).
    The first matching target wins.
    """

    match_type = "PHONETIC"
    DEFAULT_THRESHOLD = 0.7

    def _soundex(self, source: str, target: str, threshold: float):
        similarity = self.matching.calculate_soundex_similarity(source, target)
        matched = similarity >= threshold or self.matching.matches_soundex(source, target)
        return (matched, max(similarity, 0.8) if matched else similarity,
                self.matching.get_soundex_code(source), self.matching.get_soundex_code(target))

    def _metaphone(self, source: str, target: str, threshold: float):
        similarity = self.matching.calculate_metaphone_similarity(source, target)
        matched = similarity >= threshold or self.matching.matches_metaphone(source, target)
        return (matched, max(similarity, 0.85) if matched else similarity,
                self.matching.get_metaphone_code(source).primary,
                self.matching.get_metaphone_code(target).primary)

    def _compare(self, source: str, target: str, algorithm: str, threshold: float):
        if algorithm == "SOUNDEX":
            return self._soundex(source, target, threshold)
        if algorithm == "BOTH":
            s_match, s_sim, s_src, s_tgt = self._soundex(source, target, threshold)
            m_match, m_sim, m_src, m_tgt = self._metaphone(source, target, threshold)
            return (s_match or m_match, max(s_sim, m_sim),
                    f"{s_src}/{m_src}", f"{s_tgt}/{m_tgt}")
        return self._metaphone(source, target, threshold)

    def evaluate(self, customer, entry, rule):
        source = self.source_value(customer, rule)
        if source is None:
            return []

        threshold = self._threshold(rule, self.DEFAULT_THRESHOLD)
        algorithm = rule.condition.parameters.algorithm

        for target in self.target_values(entry, rule):
            matched, similarity, source_code, target_code = self._compare(
                source, target, algorithm, threshold
            )
            if not matched:
                continue
            score = self.calculate_score(similarity, rule.score)
            self._log_match(rule, source, target, f"[{algorithm}] (similarity: {similarity:.2f})")
            description = (f"{rule.description} - {algorithm.lower()} match "
                           f"(similarity: {similarity * 100:.0f}%, "
                           f"codes: {source_code} ~ {target_code})")
            return [self.build_matched_rule(rule, score, source, target, description)]
        return []


class KoreanNameMatchEvaluator(_StrategyEvaluator):
    """Hangul name comparison; chosungOnly restricts it to initial consonants"""

    match_type = "KOREAN"
    DEFAULT_THRESHOLD = 0.7
    CHOSUNG_SIMILARITY = 0.8

    def evaluate(self, customer, entry, rule):
        source = self.source_value(customer, rule)
        if source is None or not self.matching.contains_korean(source):
            return []

        threshold = self._threshold(rule, self.DEFAULT_THRESHOLD)
        chosung_only = rule.condition.parameters.chosung_only

        best_similarity = 0.0
        best_target = None
        chosung_match = False
        for target in self.target_values(entry, rule):
            if not self.matching.contains_korean(target):
                continue
            if chosung_only:
                if self.matching.matches_chosung(source, target):
                    best_similarity = self.CHOSUNG_SIMILARITY
                    best_target = target
                    chosung_match = True
                    break
                continue
            similarity = self.matching.calculate_korean_name_similarity(source, target)
            if similarity >= threshold and similarity > best_similarity:
                best_similarity = similarity
                best_target = target
                chosung_match = self.matching.matches_chosung(source, target)

        if best_target is None:
            return []

        score = self.calculate_score(best_similarity, rule.score)
        source_chosung = self.matching.extract_chosung(source)
        target_chosung = self.matching.extract_chosung(best_target)
        kind = "chosung match" if chosung_match else "jamo similarity"
        self._log_match(rule, source, best_target, f"({kind}: {best_similarity:.2f})")
        description = (f"{rule.description} - {kind} "
                       f"(similarity: {best_similarity * 100:.0f}%, "
                       f"chosung: {source_chosung} ~ {target_chosung})")
        return [self.build_matched_rule(rule, score, source, best_target, description)]


class CompositeMatchEvaluator(_StrategyEvaluator):
    """Blended multi-algorithm score; a Metaphone match is always high confidence"""

    match_type = "COMPOSITE"
    DEFAULT_THRESHOLD = 0.75

    @staticmethod
    def _details(result) -> str:
        parts = [
            f"JW:{result.jaro_winkler_score * 100:.0f}%",
            f"phonetic:{result.metaphone_score * 100:.0f}%",
            f"N-gram:{result.ngram_score * 100:.0f}%",
        ]
        if result.korean_score > 0:
            parts.append(f"Korean:{result.korean_score * 100:.0f}%")
        if result.metaphone_match:
            parts.append("sounds alike")
        return ", ".join(parts)

    def evaluate(self, customer, entry, rule):
        source = self.source_value(customer, rule)
        if source is None:
            return []

        threshold = self._threshold(rule, self.DEFAULT_THRESHOLD)

        best_result = None
        best_target = None
        for target in self.target_values(entry, rule):
            result = self.matching.calculate_composite_match(source, target)
            if not result.is_high_confidence_match(threshold):
                continue
            if best_result is None or result.composite_score > best_result.composite_score:
                best_result = result
                best_target = target

        if best_result is None:
            return []

        score = self.calculate_score(best_result.composite_score, rule.score)
        self._log_match(rule, source, best_target,
                        f"(composite: {best_result.composite_score:.2f})")
        description = (f"{rule.description} (composite similarity: "
                       f"{best_result.composite_score * 100:.0f}% | {self._details(best_result)})")
        return [self.build_matched_rule(rule, score, source, best_target, description)]
