"""
Rules Package for the Watchlist Screening Engine

This package provides:
- Pydantic models for the YAML rule document
- RuleConfigurationLoader with atomic snapshot reloads
- Field extraction and one evaluator per match type
- RuleEvaluatorRegistry and the RuleEngine
"""

from rules.models import (
    ScoreConfig,
    MatchParameters,
    MatchCondition,
    RuleDefinition,
    RuleConfiguration,
)
from rules.loader import (
    RuleConfigurationLoader,
    create_default_configuration,
    parse_configuration,
)
from rules.fields import FieldValueExtractor
from rules.evaluators import (
    RuleEvaluator,
    ExactMatchEvaluator,
    FuzzyMatchEvaluator,
    ContainsMatchEvaluator,
    DateRangeMatchEvaluator,
    JaroWinklerMatchEvaluator,
    NGramMatchEvaluator,
    PhoneticMatchEvaluator,
    KoreanNameMatchEvaluator,
    CompositeMatchEvaluator,
)
from rules.registry import (
    RuleEvaluatorRegistry,
    UnsupportedMatchTypeError,
    create_default_registry,
)
from rules.engine import (
    RuleEngine,
    RuleEvaluationReport,
    RuleOutcome,
    RuleStatus,
)

__all__ = [
    # Models
    'ScoreConfig',
    'MatchParameters',
    'MatchCondition',
    'RuleDefinition',
    'RuleConfiguration',
    # Loading
    'RuleConfigurationLoader',
    'create_default_configuration',
    'parse_configuration',
    # Evaluation
    'FieldValueExtractor',
    'RuleEvaluator',
    'ExactMatchEvaluator',
    'FuzzyMatchEvaluator',
    'ContainsMatchEvaluator',
    'DateRangeMatchEvaluator',
    'JaroWinklerMatchEvaluator',
    'NGramMatchEvaluator',
    'PhoneticMatchEvaluator',
    'KoreanNameMatchEvaluator',
    'CompositeMatchEvaluator',
    'RuleEvaluatorRegistry',
    'UnsupportedMatchTypeError',
    'create_default_registry',
    # Engine
    'RuleEngine',
    'RuleEvaluationReport',
    'RuleOutcome',
    'RuleStatus',
]
