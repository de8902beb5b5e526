"""
Screening value types

Immutable records passed between the rule engine, scoring and the
screener: the customer being screened, watchlist entries, rule matches
and the final filtering result.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class RiskTier(str, Enum):
    """Outcome tier derived from the risk score"""
    ALERT = "ALERT"
    REVIEW = "REVIEW"
    LOW_RISK = "LOW_RISK"


@dataclass(frozen=True)
class CustomerInfo:
    """Customer being screened"""
    name: str
    date_of_birth: Optional[date] = None
    nationality: Optional[str] = None
    customer_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'date_of_birth': self.date_of_birth.isoformat() if self.date_of_birth else None,
            'nationality': self.nationality,
            'customer_id': self.customer_id,
        }


@dataclass(frozen=True)
class WatchlistEntry:
    """One sanctioned individual or entity from a watchlist"""
    id: Optional[str]
    name: str
    aliases: Tuple[str, ...] = ()
    date_of_birth: Optional[date] = None
    nationality: Optional[str] = None
    list_source: Optional[str] = None
    entry_type: Optional[str] = None

    def __post_init__(self):
        # Accept any iterable of aliases but store an immutable tuple
        if not isinstance(self.aliases, tuple):
            object.__setattr__(self, 'aliases', tuple(self.aliases or ()))


@dataclass(frozen=True)
class MatchedRule:
    """A rule that fired for one customer/entry pair"""
    rule_name: str
    rule_type: str
    score: float
    matched_value: Optional[str] = None
    target_value: Optional[str] = None
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            'rule_name': self.rule_name,
            'rule_type': self.rule_type,
            'score': round(self.score, 2),
            'matched_value': self.matched_value,
            'target_value': self.target_value,
            'description': self.description,
        }


@dataclass(frozen=True)
class FilteringResult:
    """Screening decision for one customer"""
    alert: bool
    score: float
    matched_rules: Tuple[MatchedRule, ...] = field(default_factory=tuple)
    explanation: str = ""
    customer_info: Optional[CustomerInfo] = None
    tier: RiskTier = RiskTier.LOW_RISK

    def to_dict(self) -> Dict[str, Any]:
        return {
            'alert': self.alert,
            'score': round(self.score, 2),
            'tier': self.tier.value,
            'matched_rules': [m.to_dict() for m in self.matched_rules],
            'explanation': self.explanation,
            'customer_info': self.customer_info.to_dict() if self.customer_info else None,
        }
