"""
Pydantic schemas for the rule configuration document

The YAML document uses camelCase keys (matchType, sourceField, exactMatch,
similarityThreshold ...); snake_case field names are accepted as well.
All models are frozen so a loaded configuration can be shared between
threads as an immutable snapshot.
"""

from typing import List, Optional, Tuple

from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator

PHONETIC_ALGORITHMS = ("SOUNDEX", "METAPHONE", "BOTH")

_MODEL_CONFIG = {"populate_by_name": True, "frozen": True}


class ScoreConfig(BaseModel):
    """Points awarded when a rule fires"""
    exact_match: float = Field(default=0.0, ge=0.0, le=100.0, alias="exactMatch")
    partial_match: float = Field(default=0.0, ge=0.0, le=100.0, alias="partialMatch")
    proportional_to_similarity: bool = Field(default=False, alias="proportionalToSimilarity")
    max_score: float = Field(default=0.0, ge=0.0, le=100.0, alias="maxScore")

    model_config = _MODEL_CONFIG


class MatchParameters(BaseModel):
    """Typed per-rule matching parameters

    Each evaluator reads only the parameters it understands; unset values
    fall back to the evaluator's own default.
    """
    similarity_threshold: Optional[float] = Field(
        default=None, ge=0.0, le=1.0, alias="similarityThreshold"
    )
    date_range_days: Optional[int] = Field(
        default=None,
        ge=0,
        validation_alias=AliasChoices("dateRangeDays", "rangeDays", "date_range_days"),
        serialization_alias="dateRangeDays",
    )
    all_words: bool = Field(default=True, alias="allWords")
    token_matching: bool = Field(default=True, alias="tokenMatching")
    ngram_size: Optional[int] = Field(default=None, ge=1, alias="ngramSize")
    algorithm: str = Field(default="METAPHONE")
    chosung_only: bool = Field(default=False, alias="chosungOnly")

    model_config = _MODEL_CONFIG

    @field_validator('algorithm')
    @classmethod
    def validate_algorithm(cls, v: str) -> str:
        value = v.strip().upper()
        if value not in PHONETIC_ALGORITHMS:
            raise ValueError(f"algorithm must be one of {PHONETIC_ALGORITHMS}, got '{v}'")
        return value


class MatchCondition(BaseModel):
    """Which fields to compare and how"""
    match_type: str = Field(..., min_length=1, alias="matchType")
    source_field: str = Field(..., min_length=1, alias="sourceField")
    target_field: str = Field(..., min_length=1, alias="targetField")
    parameters: MatchParameters = Field(default_factory=MatchParameters)

    model_config = _MODEL_CONFIG

    @field_validator('match_type')
    @classmethod
    def normalize_match_type(cls, v: str) -> str:
        return v.strip().upper()

    @field_validator('parameters', mode='before')
    @classmethod
    def default_parameters(cls, v):
        return {} if v is None else v


class RuleDefinition(BaseModel):
    """One screening rule"""
    id: str = Field(..., description="Unique rule identifier")
    name: str = Field(default="", description="Display name used in explanations")
    type: str = Field(default="GENERAL", description="Rule category; scoring keeps the max per type")
    description: str = Field(default="")
    enabled: bool = Field(default=True)
    priority: int = Field(default=0, description="Lower values are evaluated first")
    condition: MatchCondition
    score: ScoreConfig

    model_config = _MODEL_CONFIG

    @field_validator('id')
    @classmethod
    def validate_id(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Rule ID is required")
        return v.strip()

    @model_validator(mode='before')
    @classmethod
    def default_name(cls, data):
        if isinstance(data, dict) and not data.get('name') and data.get('id'):
            data = {**data, 'name': data['id']}
        return data


class RuleConfiguration(BaseModel):
    """Complete rule document: an immutable snapshot once loaded"""
    version: str = Field(default="1.0")
    description: str = Field(default="")
    rules: Tuple[RuleDefinition, ...] = Field(..., min_length=1)

    model_config = _MODEL_CONFIG

    @field_validator('version', mode='before')
    @classmethod
    def coerce_version(cls, v):
        # YAML reads `version: 1.0` as a float
        return str(v) if v is not None else "1.0"

    @model_validator(mode='after')
    def validate_unique_ids(self) -> 'RuleConfiguration':
        seen = set()
        for rule in self.rules:
            if rule.id in seen:
                raise ValueError(f"Duplicate rule id: {rule.id}")
            seen.add(rule.id)
        return self

    def enabled_rules(self) -> List[RuleDefinition]:
        """Enabled rules in ascending priority; equal priorities keep document order"""
        return sorted((r for r in self.rules if r.enabled), key=lambda r: r.priority)

    def find_rule_by_id(self, rule_id: str) -> Optional[RuleDefinition]:
        for rule in self.rules:
            if rule.id == rule_id:
                return rule
        return None
