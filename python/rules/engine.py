"""
Rule engine

Applies every enabled rule of the current configuration snapshot to one
customer/watchlist entry pair. Evaluation is best-effort per rule: an
unsupported match type or an evaluator error is recorded in the report
and the remaining rules still run.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from monitoring import record_rule_failure
from rules.loader import RuleConfigurationLoader
from rules.models import RuleConfiguration
from rules.registry import RuleEvaluatorRegistry, UnsupportedMatchTypeError, create_default_registry
from screening_models import CustomerInfo, MatchedRule, WatchlistEntry

logger = logging.getLogger(__name__)


class RuleStatus(str, Enum):
    MATCHED = "MATCHED"
    NO_MATCH = "NO_MATCH"
    SKIPPED = "SKIPPED"
    FAILED = "FAILED"


@dataclass(frozen=True)
class RuleOutcome:
    """Result of evaluating one rule"""
    rule_id: str
    status: RuleStatus
    matches: Tuple[MatchedRule, ...] = ()
    error: Optional[str] = None


@dataclass(frozen=True)
class RuleEvaluationReport:
    """Outcomes of all enabled rules for one customer/entry pair, in evaluation order"""
    configuration_version: str
    outcomes: Tuple[RuleOutcome, ...] = field(default_factory=tuple)

    @property
    def matched_rules(self) -> List[MatchedRule]:
        return [m for outcome in self.outcomes for m in outcome.matches]

    @property
    def failed(self) -> List[RuleOutcome]:
        return [o for o in self.outcomes if o.status is RuleStatus.FAILED]

    @property
    def skipped(self) -> List[RuleOutcome]:
        return [o for o in self.outcomes if o.status is RuleStatus.SKIPPED]


class RuleEngine:
    """Evaluates configured rules through the evaluator registry"""

    def __init__(self, loader: RuleConfigurationLoader,
                 registry: Optional[RuleEvaluatorRegistry] = None):
        """
        Args:
            loader: Source of the current rule configuration snapshot
            registry: Evaluators by match type; all built-ins if omitted
        """
        self.loader = loader
        self.registry = registry or create_default_registry()

    def evaluate_rules(self, customer: CustomerInfo, entry: WatchlistEntry) -> RuleEvaluationReport:
        """Evaluate every enabled rule, in ascending priority

        The configuration snapshot is read once, so a concurrent reload
        never mixes rules from two versions within one evaluation.
        """
        configuration = self.loader.get_configuration()
        outcomes = []

        for rule in configuration.enabled_rules():
            match_type = rule.condition.match_type
            try:
                evaluator = self.registry.get_evaluator(match_type)
            except UnsupportedMatchTypeError as e:
                logger.warning("⚠ No evaluator for match type %s, skipping rule %s",
                               match_type, rule.id)
                outcomes.append(RuleOutcome(rule.id, RuleStatus.SKIPPED, error=str(e)))
                continue

            try:
                matches = tuple(evaluator.evaluate(customer, entry, rule))
            except Exception as e:
                logger.error("Error evaluating rule %s against entry %s: %s",
                             rule.id, entry.id, e, exc_info=True)
                record_rule_failure(rule.id)
                outcomes.append(RuleOutcome(rule.id, RuleStatus.FAILED,
                                            error=f"{type(e).__name__}: {e}"))
                continue

            if matches:
                logger.debug("Rule %s matched entry %s (%d)", rule.id, entry.id, len(matches))
                outcomes.append(RuleOutcome(rule.id, RuleStatus.MATCHED, matches=matches))
            else:
                outcomes.append(RuleOutcome(rule.id, RuleStatus.NO_MATCH))

        return RuleEvaluationReport(configuration.version, tuple(outcomes))

    def apply_rules(self, customer: CustomerInfo, entry: WatchlistEntry) -> List[MatchedRule]:
        """All matches produced by the enabled rules for this pair"""
        return self.evaluate_rules(customer, entry).matched_rules

    def get_current_configuration(self) -> RuleConfiguration:
        return self.loader.get_configuration()

    def reload_configuration(self) -> RuleConfiguration:
        """Reload rules from disk

        Raises:
            ConfigurationError: If the new document is invalid; the current
                rules stay in effect
        """
        return self.loader.reload()

    def get_supported_match_types(self) -> List[str]:
        return self.registry.supported_match_types()
