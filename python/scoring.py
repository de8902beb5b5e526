"""
Risk scoring and decisioning

Turns the rule matches collected for a customer into a 0-100 risk score,
an alert decision and a human-readable explanation.

Only the highest score per rule type counts, so an exact and a fuzzy name
rule firing for the same name are not added up. Per-type maxima are summed
and capped at 100.
"""

import logging
from typing import Dict, Iterable, List, Optional

from config_manager import ScoringConfig
from log_utils import sanitize_for_logging
from screening_models import CustomerInfo, FilteringResult, MatchedRule, RiskTier

logger = logging.getLogger(__name__)

MAX_SCORE = 100.0
NO_MATCHES_EXPLANATION = "No matches found"

_BANNERS = {
    RiskTier.ALERT: "[!] ALERT: High-risk match detected",
    RiskTier.REVIEW: "[*] REVIEW: Potential match requires manual review",
    RiskTier.LOW_RISK: "[OK] LOW RISK: No significant matches",
}

_RECOMMENDATIONS = {
    RiskTier.ALERT: "Reject transaction and escalate to compliance team for investigation.",
    RiskTier.REVIEW: "Perform enhanced due diligence before proceeding.",
    RiskTier.LOW_RISK: "Proceed with standard processing.",
}


class ScoringService:
    """Scores matched rules against alert and review thresholds"""

    def __init__(self, alert_threshold: float = 70.0, review_threshold: float = 50.0):
        if review_threshold > alert_threshold:
            raise ValueError(
                f"review_threshold ({review_threshold}) must not exceed "
                f"alert_threshold ({alert_threshold})"
            )
        self.alert_threshold = alert_threshold
        self.review_threshold = review_threshold

    @classmethod
    def from_config(cls, config: ScoringConfig) -> 'ScoringService':
        return cls(alert_threshold=config.alert_threshold,
                   review_threshold=config.review_threshold)

    @staticmethod
    def aggregate_score(matched_rules: Iterable[MatchedRule]) -> float:
        """Sum of the maximum score per rule type, capped at 100"""
        best_by_type: Dict[str, float] = {}
        for match in matched_rules:
            current = best_by_type.get(match.rule_type)
            if current is None or match.score > current:
                best_by_type[match.rule_type] = match.score
        return min(sum(best_by_type.values()), MAX_SCORE)

    def classify(self, score: float) -> RiskTier:
        if score >= self.alert_threshold:
            return RiskTier.ALERT
        if score >= self.review_threshold:
            return RiskTier.REVIEW
        return RiskTier.LOW_RISK

    def build_explanation(self, score: float, tier: RiskTier,
                          matched_rules: List[MatchedRule]) -> str:
        """Deterministic multi-line explanation; rules are listed in the given order"""
        lines = [f"{_BANNERS[tier]} (Score: {score:.1f})", "", "Matched Rules:"]
        for match in matched_rules:
            lines.append(f"- {match.rule_name} ({match.score:.1f} points): {match.description}")
            if match.matched_value:
                lines.append(f"  Input: '{match.matched_value}' vs Target: '{match.target_value}'")
        lines.append("")
        lines.append(f"Recommendation: {_RECOMMENDATIONS[tier]}")
        return "\n".join(lines)

    def calculate_score(self, customer: Optional[CustomerInfo],
                        matched_rules: Optional[Iterable[MatchedRule]]) -> FilteringResult:
        """Score the matches collected for one customer

        Args:
            customer: Customer that was screened
            matched_rules: Matches across all watchlist entries, in a stable order

        Returns:
            FilteringResult with alert flag, score, tier and explanation
        """
        matches = list(matched_rules or ())
        if not matches:
            return FilteringResult(
                alert=False,
                score=0.0,
                matched_rules=(),
                explanation=NO_MATCHES_EXPLANATION,
                customer_info=customer,
                tier=RiskTier.LOW_RISK,
            )

        score = self.aggregate_score(matches)
        tier = self.classify(score)
        alert = tier is RiskTier.ALERT

        logger.info("Filtering result for customer %s: score=%.1f, alert=%s",
                    sanitize_for_logging(customer.name if customer else None), score, alert)

        return FilteringResult(
            alert=alert,
            score=score,
            matched_rules=tuple(matches),
            explanation=self.build_explanation(score, tier, matches),
            customer_info=customer,
            tier=tier,
        )
