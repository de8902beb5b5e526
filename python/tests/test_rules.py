"""
Tests for the rule configuration model, loader, evaluators and engine.

Covers:
- Parsing and validation of the YAML rule document
- Default configuration fallback
- Manual and automatic reloads, keeping the old snapshot on failure
- Each match type evaluator
- Unsupported match types and failing evaluators not stopping other rules
"""

import os
from datetime import date
from unittest.mock import patch

import pytest

from config_manager import ConfigurationError, RulesConfig
from matching import AdvancedMatchingService
from rules import (
    CompositeMatchEvaluator,
    ContainsMatchEvaluator,
    DateRangeMatchEvaluator,
    ExactMatchEvaluator,
    FuzzyMatchEvaluator,
    JaroWinklerMatchEvaluator,
    KoreanNameMatchEvaluator,
    NGramMatchEvaluator,
    PhoneticMatchEvaluator,
    RuleConfiguration,
    RuleConfigurationLoader,
    RuleDefinition,
    RuleEngine,
    RuleEvaluator,
    RuleEvaluatorRegistry,
    RuleStatus,
    UnsupportedMatchTypeError,
    create_default_configuration,
    create_default_registry,
    parse_configuration,
)
from rules.fields import FieldValueExtractor
from rules.loader import DEFAULT_RULES_PATH
from screening_models import CustomerInfo, WatchlistEntry


RULES_V1 = """
version: 1.0
rules:
  - id: EXACT_NAME_MATCH
    type: NAME
    condition: {matchType: EXACT, sourceField: name, targetField: name}
    score: {exactMatch: 100}
"""

RULES_V2 = """
version: "2.0"
rules:
  - id: EXACT_NAME_MATCH
    type: NAME
    condition: {matchType: EXACT, sourceField: name, targetField: name}
    score: {exactMatch: 100}
  - id: NATIONALITY_MATCH
    type: NATIONALITY
    condition: {matchType: EXACT, sourceField: nationality, targetField: nationality}
    score: {exactMatch: 10}
"""


def make_rule(match_type, source="name", target="name", parameters=None,
              rule_id="TEST_RULE", rule_type="NAME", priority=0, enabled=True, **score):
    return RuleDefinition.model_validate({
        'id': rule_id,
        'type': rule_type,
        'description': f"{match_type} test rule",
        'enabled': enabled,
        'priority': priority,
        'condition': {
            'matchType': match_type,
            'sourceField': source,
            'targetField': target,
            'parameters': parameters or {},
        },
        'score': score,
    })


@pytest.fixture
def matching():
    return AdvancedMatchingService()


@pytest.fixture
def kim():
    return WatchlistEntry(
        id="OFAC-1",
        name="KIM Jong Un",
        aliases=("Kim Jong-un", "Kim Jong Eun"),
        date_of_birth=date(1984, 1, 8),
        nationality="KP",
        list_source="OFAC",
        entry_type="INDIVIDUAL",
    )


# ============================================
# MODEL AND PARSING
# ============================================


class TestRuleConfigurationParsing:
    """Tests for parsing the rule document."""

    def test_bundled_rules_load(self):
        configuration = parse_configuration(DEFAULT_RULES_PATH.read_text(encoding='utf-8'))
        assert configuration.version == "1.0"
        assert [r.id for r in configuration.enabled_rules()] == [
            "EXACT_NAME_MATCH", "FUZZY_NAME_MATCH", "EXACT_ALIAS_MATCH",
            "FUZZY_ALIAS_MATCH", "DOB_MATCH", "NATIONALITY_MATCH",
        ]
        assert configuration.find_rule_by_id("DOB_MATCH").condition.parameters.date_range_days == 0

    def test_numeric_version_becomes_string(self):
        assert parse_configuration(RULES_V1).version == "1.0"

    def test_name_defaults_to_id(self):
        rule = parse_configuration(RULES_V1).rules[0]
        assert rule.name == "EXACT_NAME_MATCH"
        assert rule.enabled is True
        assert rule.condition.parameters.similarity_threshold is None

    def test_match_type_is_upper_cased(self):
        assert make_rule("fuzzy").condition.match_type == "FUZZY"

    def test_range_days_alias(self):
        rule = make_rule("DATE_RANGE", parameters={'rangeDays': 30})
        assert rule.condition.parameters.date_range_days == 30

    def test_equal_priorities_keep_document_order(self):
        configuration = RuleConfiguration(rules=(
            make_rule("EXACT", rule_id="B", priority=5),
            make_rule("EXACT", rule_id="A", priority=5),
            make_rule("EXACT", rule_id="C", priority=1),
            make_rule("EXACT", rule_id="D", priority=0, enabled=False),
        ))
        assert [r.id for r in configuration.enabled_rules()] == ["C", "B", "A"]
        assert configuration.find_rule_by_id("missing") is None

    @pytest.mark.parametrize("document", [
        "rules: [",
        "",
        "- just a list",
        "rules: []",
        "version: 1\n",
    ])
    def test_invalid_documents(self, document):
        with pytest.raises(ConfigurationError):
            parse_configuration(document)

    def test_duplicate_ids_rejected(self):
        with pytest.raises(ConfigurationError, match="Duplicate rule id"):
            parse_configuration(RULES_V1 + """
  - id: EXACT_NAME_MATCH
    condition: {matchType: FUZZY, sourceField: name, targetField: name}
    score: {partialMatch: 10}
""")

    @pytest.mark.parametrize("parameters", [
        {'similarityThreshold': 1.5},
        {'dateRangeDays': -1},
        {'ngramSize': 0},
        {'algorithm': 'NYSIIS'},
    ])
    def test_invalid_parameters_rejected_at_load(self, parameters):
        with pytest.raises(ValueError):
            make_rule("FUZZY", parameters=parameters)

    def test_score_out_of_range_rejected(self):
        with pytest.raises(ValueError):
            make_rule("EXACT", exactMatch=150)

    def test_blank_id_rejected(self):
        with pytest.raises(ValueError):
            make_rule("EXACT", rule_id="   ")

    def test_configuration_is_immutable(self):
        configuration = parse_configuration(RULES_V1)
        with pytest.raises(Exception):
            configuration.version = "9.9"


# ============================================
# LOADER
# ============================================


class TestRuleConfigurationLoader:
    """Tests for loading and reloading rule documents."""

    def test_missing_file_falls_back_to_default(self, tmp_path):
        loader = RuleConfigurationLoader(str(tmp_path / "missing.yaml"))
        assert loader.using_default
        assert loader.get_configuration().version == "1.0-default"

    def test_missing_file_without_fallback_raises(self, tmp_path):
        with pytest.raises(ConfigurationError):
            RuleConfigurationLoader(str(tmp_path / "missing.yaml"), fallback_to_default=False)

    def test_default_configuration(self):
        configuration = create_default_configuration()
        assert [r.id for r in configuration.rules] == ["EXACT_NAME_MATCH"]
        assert configuration.rules[0].score.exact_match == 100.0

    def test_from_settings_uses_bundled_rules(self):
        loader = RuleConfigurationLoader.from_settings(RulesConfig())
        assert loader.config_path == DEFAULT_RULES_PATH
        assert not loader.using_default

    def test_reload_swaps_snapshot(self, tmp_path):
        path = tmp_path / "rules.yaml"
        path.write_text(RULES_V1, encoding='utf-8')
        loader = RuleConfigurationLoader(str(path))
        first = loader.get_configuration()

        path.write_text(RULES_V2, encoding='utf-8')
        reloaded = loader.reload()

        assert reloaded.version == "2.0"
        assert loader.get_configuration() is reloaded
        # Readers holding the old snapshot are unaffected
        assert first.version == "1.0"
        assert len(first.rules) == 1

    def test_failed_reload_keeps_previous_snapshot(self, tmp_path):
        path = tmp_path / "rules.yaml"
        path.write_text(RULES_V1, encoding='utf-8')
        loader = RuleConfigurationLoader(str(path))

        path.write_text("rules: [", encoding='utf-8')
        with pytest.raises(ConfigurationError):
            loader.reload()
        assert loader.get_configuration().version == "1.0"

    def test_watch_for_changes_reloads_modified_file(self, tmp_path):
        path = tmp_path / "rules.yaml"
        path.write_text(RULES_V1, encoding='utf-8')
        loader = RuleConfigurationLoader(str(path), watch_for_changes=True)

        path.write_text(RULES_V2, encoding='utf-8')
        mtime = path.stat().st_mtime + 10
        os.utime(path, (mtime, mtime))

        assert loader.get_configuration().version == "2.0"

    def test_watch_for_changes_keeps_snapshot_on_bad_edit(self, tmp_path):
        path = tmp_path / "rules.yaml"
        path.write_text(RULES_V1, encoding='utf-8')
        loader = RuleConfigurationLoader(str(path), watch_for_changes=True)

        path.write_text("version: [", encoding='utf-8')
        mtime = path.stat().st_mtime + 10
        os.utime(path, (mtime, mtime))

        assert loader.get_configuration().version == "1.0"

    def test_from_configuration(self):
        configuration = parse_configuration(RULES_V2)
        loader = RuleConfigurationLoader.from_configuration(configuration)
        assert loader.get_configuration() is configuration

    def test_from_configuration_has_same_state_as_file_loader(self, tmp_path):
        path = tmp_path / "rules.yaml"
        path.write_text(RULES_V1, encoding='utf-8')
        from_file = RuleConfigurationLoader(str(path))
        in_memory = RuleConfigurationLoader.from_configuration(parse_configuration(RULES_V2))

        assert set(vars(in_memory)) == set(vars(from_file))
        assert in_memory.config_path is None
        assert not in_memory.using_default
        with pytest.raises(ConfigurationError):
            in_memory.reload()
        assert in_memory.get_configuration().version == "2.0"


# ============================================
# FIELD EXTRACTION
# ============================================


class TestFieldValueExtractor:
    """Tests for field lookup by name."""

    def test_field_spellings(self, kim):
        fields = FieldValueExtractor()
        assert fields.get_watchlist_values(kim, "dateOfBirth") == ["1984-01-08"]
        assert fields.get_watchlist_values(kim, "date_of_birth") == ["1984-01-08"]
        assert fields.get_watchlist_values(kim, "LIST_SOURCE") == ["OFAC"]

    def test_aliases_are_multi_valued(self, kim):
        assert FieldValueExtractor().get_watchlist_values(kim, "aliases") == [
            "Kim Jong-un", "Kim Jong Eun"
        ]

    def test_unknown_and_unset_fields(self, kim):
        fields = FieldValueExtractor()
        customer = CustomerInfo(name="Kim")
        assert fields.get_watchlist_values(kim, "passport") == []
        assert fields.get_customer_value(customer, "nationality") is None
        assert fields.get_customer_date(customer, "dob") is None


# ============================================
# EVALUATORS
# ============================================


class TestExactMatchEvaluator:
    """Tests for EXACT."""

    def test_normalized_name_match(self, kim):
        rule = make_rule("EXACT", exactMatch=100)
        matches = ExactMatchEvaluator().evaluate(CustomerInfo(name="jong un kim"), kim, rule)
        assert len(matches) == 1
        assert matches[0].score == 100
        assert matches[0].rule_name == "TEST_RULE"
        assert matches[0].rule_type == "NAME"
        assert matches[0].target_value == "KIM Jong Un"

    def test_first_alias_wins(self, kim):
        rule = make_rule("EXACT", target="aliases", rule_type="ALIAS", exactMatch=90)
        matches = ExactMatchEvaluator().evaluate(CustomerInfo(name="Kim Jong Eun"), kim, rule)
        assert [m.target_value for m in matches] == ["Kim Jong Eun"]

    def test_nationality_is_case_insensitive(self, kim):
        rule = make_rule("EXACT", source="nationality", target="nationality",
                         rule_type="NATIONALITY", exactMatch=10)
        matches = ExactMatchEvaluator().evaluate(CustomerInfo(name="X", nationality=" kp"), kim, rule)
        assert matches[0].score == 10

    def test_missing_value_never_matches(self, kim):
        rule = make_rule("EXACT", source="nationality", target="nationality", exactMatch=10)
        assert ExactMatchEvaluator().evaluate(CustomerInfo(name="X"), kim, rule) == []


class TestFuzzyMatchEvaluator:
    """Tests for FUZZY."""

    def test_proportional_score(self):
        entry = WatchlistEntry(id="1", name="John Smith")
        rule = make_rule("FUZZY", parameters={'similarityThreshold': 0.8},
                         partialMatch=60, proportionalToSimilarity=True, maxScore=80)
        matches = FuzzyMatchEvaluator().evaluate(CustomerInfo(name="Jon Smith"), entry, rule)
        # JON SMITH vs JOHN SMITH: one edit over ten characters
        assert matches[0].score == pytest.approx(72.0)
        assert matches[0].description.endswith("(similarity: 90%)")

    def test_fixed_partial_score(self):
        entry = WatchlistEntry(id="1", name="John Smith")
        rule = make_rule("FUZZY", partialMatch=60)
        matches = FuzzyMatchEvaluator().evaluate(CustomerInfo(name="Jon Smith"), entry, rule)
        assert matches[0].score == 60

    def test_below_threshold(self):
        entry = WatchlistEntry(id="1", name="John Smith")
        rule = make_rule("FUZZY", parameters={'similarityThreshold': 0.95}, partialMatch=60)
        assert FuzzyMatchEvaluator().evaluate(CustomerInfo(name="Jon Smith"), entry, rule) == []

    def test_best_alias_is_reported(self):
        entry = WatchlistEntry(id="1", name="X", aliases=["Jonathan Smyth", "John Smith"])
        rule = make_rule("FUZZY", target="aliases", partialMatch=50)
        matches = FuzzyMatchEvaluator().evaluate(CustomerInfo(name="Jon Smith"), entry, rule)
        assert matches[0].target_value == "John Smith"

    @pytest.mark.parametrize("aliases, expected", [
        (["John Smiti", "John Smitx"], "John Smiti"),
        (["John Smitx", "John Smiti"], "John Smitx"),
    ])
    def test_tied_aliases_keep_the_first(self, aliases, expected):
        # Both aliases are one substitution away from JOHN SMITH
        entry = WatchlistEntry(id="1", name="X", aliases=aliases)
        rule = make_rule("FUZZY", target="aliases", partialMatch=50)
        matches = FuzzyMatchEvaluator().evaluate(CustomerInfo(name="John Smith"), entry, rule)
        assert len(matches) == 1
        assert matches[0].target_value == expected


class TestContainsMatchEvaluator:
    """Tests for CONTAINS."""

    def test_all_words_either_direction(self):
        entry = WatchlistEntry(id="1", name="Osama bin Mohammed bin Laden")
        rule = make_rule("CONTAINS", partialMatch=30)
        evaluator = ContainsMatchEvaluator()
        assert evaluator.evaluate(CustomerInfo(name="Osama Laden"), entry, rule)[0].score == 30

        short_entry = WatchlistEntry(id="2", name="Laden")
        assert evaluator.evaluate(CustomerInfo(name="Osama Laden"), short_entry, rule)

    def test_substring_mode(self):
        entry = WatchlistEntry(id="1", name="Petrov")
        rule = make_rule("CONTAINS", parameters={'allWords': False}, partialMatch=30)
        assert ContainsMatchEvaluator().evaluate(CustomerInfo(name="Petrova"), entry, rule)

    def test_no_overlap(self):
        entry = WatchlistEntry(id="1", name="Ivan Petrov")
        rule = make_rule("CONTAINS", partialMatch=30)
        assert ContainsMatchEvaluator().evaluate(CustomerInfo(name="John Smith"), entry, rule) == []


class TestDateRangeMatchEvaluator:
    """Tests for DATE_RANGE."""

    def test_exact_date(self, kim):
        rule = make_rule("DATE_RANGE", source="dateOfBirth", target="dateOfBirth",
                         rule_type="DOB", parameters={'dateRangeDays': 0}, exactMatch=20)
        customer = CustomerInfo(name="X", date_of_birth=date(1984, 1, 8))
        matches = DateRangeMatchEvaluator().evaluate(customer, kim, rule)
        assert matches[0].score == 20
        assert matches[0].description.endswith("(exact match)")

    def test_zero_range_is_same_day_only(self, kim):
        rule = make_rule("DATE_RANGE", source="dob", target="dob",
                         parameters={'dateRangeDays': 0}, exactMatch=20)
        customer = CustomerInfo(name="X", date_of_birth=date(1984, 1, 9))
        assert DateRangeMatchEvaluator().evaluate(customer, kim, rule) == []

    def test_within_range_proportional(self, kim):
        rule = make_rule("DATE_RANGE", source="dob", target="dob",
                         parameters={'dateRangeDays': 10},
                         exactMatch=20, proportionalToSimilarity=True, maxScore=20)
        customer = CustomerInfo(name="X", date_of_birth=date(1984, 1, 13))
        matches = DateRangeMatchEvaluator().evaluate(customer, kim, rule)
        assert matches[0].score == pytest.approx(10.0)
        assert matches[0].description.endswith("(within 5 days)")

    def test_default_range_is_a_year(self, kim):
        rule = make_rule("DATE_RANGE", source="dob", target="dob", partialMatch=5)
        near = CustomerInfo(name="X", date_of_birth=date(1984, 12, 1))
        far = CustomerInfo(name="X", date_of_birth=date(1986, 1, 8))
        assert DateRangeMatchEvaluator().evaluate(near, kim, rule)[0].score == 5
        assert DateRangeMatchEvaluator().evaluate(far, kim, rule) == []

    def test_missing_date(self, kim):
        rule = make_rule("DATE_RANGE", source="dob", target="dob", exactMatch=20)
        assert DateRangeMatchEvaluator().evaluate(CustomerInfo(name="X"), kim, rule) == []


class TestStrategyEvaluators:
    """Tests for evaluators backed by the matching service."""

    def test_jaro_winkler_token_matching(self, matching):
        entry = WatchlistEntry(id="1", name="Smith John")
        rule = make_rule("JARO_WINKLER", partialMatch=40)
        matches = JaroWinklerMatchEvaluator(matching).evaluate(CustomerInfo(name="John Smith"), entry, rule)
        assert matches[0].score == 40
        assert "Jaro-Winkler similarity: 100%" in matches[0].description

    def test_jaro_winkler_full_string(self, matching):
        entry = WatchlistEntry(id="1", name="Smith John")
        rule = make_rule("JARO_WINKLER", parameters={'tokenMatching': False,
                                                     'similarityThreshold': 0.95},
                         partialMatch=40)
        assert JaroWinklerMatchEvaluator(matching).evaluate(
            CustomerInfo(name="John Smith"), entry, rule) == []

    def test_ngram_label(self, matching):
        entry = WatchlistEntry(id="1", name="Smith")
        rule = make_rule("NGRAM", parameters={'ngramSize': 3}, partialMatch=30)
        matches = NGramMatchEvaluator(matching).evaluate(CustomerInfo(name="Smith"), entry, rule)
        assert "Trigram similarity: 100%" in matches[0].description

    @pytest.mark.parametrize("algorithm", ["SOUNDEX", "METAPHONE", "BOTH"])
    def test_phonetic_algorithms(self, matching, algorithm):
        entry = WatchlistEntry(id="1", name="Mohammed")
        rule = make_rule("PHONETIC", parameters={'algorithm': algorithm},
                         partialMatch=50, proportionalToSimilarity=True, maxScore=50)
        matches = PhoneticMatchEvaluator(matching).evaluate(CustomerInfo(name="Muhammad"), entry, rule)
        assert len(matches) == 1
        assert f"{algorithm.lower()} match" in matches[0].description
        assert matches[0].score >= 40.0

    def test_phonetic_no_match(self, matching):
        entry = WatchlistEntry(id="1", name="Ivanov")
        rule = make_rule("PHONETIC", parameters={'algorithm': 'SOUNDEX'}, partialMatch=50)
        assert PhoneticMatchEvaluator(matching).evaluate(CustomerInfo(name="Tanaka"), entry, rule) == []

    def test_korean_chosung_only(self, matching):
        entry = WatchlistEntry(id="1", name="김청수")
        rule = make_rule("KOREAN", parameters={'chosungOnly': True},
                         partialMatch=50, proportionalToSimilarity=True, maxScore=50)
        matches = KoreanNameMatchEvaluator(matching).evaluate(CustomerInfo(name="김철수"), entry, rule)
        assert matches[0].score == pytest.approx(40.0)
        assert "chosung match" in matches[0].description
        assert "ㄱㅊㅅ ~ ㄱㅊㅅ" in matches[0].description

    def test_korean_ignores_latin_names(self, matching):
        entry = WatchlistEntry(id="1", name="Kim Chul Soo")
        rule = make_rule("KOREAN", partialMatch=50)
        assert KoreanNameMatchEvaluator(matching).evaluate(CustomerInfo(name="김철수"), entry, rule) == []

    def test_composite(self, matching):
        entry = WatchlistEntry(id="1", name="John Smith")
        rule = make_rule("COMPOSITE", partialMatch=50, proportionalToSimilarity=True, maxScore=80)
        matches = CompositeMatchEvaluator(matching).evaluate(CustomerInfo(name="John Smith"), entry, rule)
        assert matches[0].score == pytest.approx(80.0)
        assert "composite similarity: 100%" in matches[0].description
        assert "sounds alike" in matches[0].description


# ============================================
# REGISTRY AND ENGINE
# ============================================


class ExplodingEvaluator(RuleEvaluator):
    match_type = "EXPLODE"

    def evaluate(self, customer, entry, rule):
        raise RuntimeError("evaluator bug")


def engine_for(*rules, registry=None):
    configuration = RuleConfiguration(version="test", rules=rules)
    return RuleEngine(RuleConfigurationLoader.from_configuration(configuration),
                      registry or create_default_registry())


class TestRuleEvaluatorRegistry:
    """Tests for the evaluator registry."""

    def test_default_registry_supports_all_types(self):
        registry = create_default_registry()
        assert registry.supported_match_types() == [
            "COMPOSITE", "CONTAINS", "DATE_RANGE", "EXACT", "FUZZY",
            "JARO_WINKLER", "KOREAN", "NGRAM", "PHONETIC",
        ]
        assert registry.is_supported("fuzzy")

    def test_unsupported_type(self):
        with pytest.raises(UnsupportedMatchTypeError) as exc_info:
            RuleEvaluatorRegistry().get_evaluator("BOGUS")
        assert exc_info.value.match_type == "BOGUS"

    def test_register_replaces(self):
        registry = create_default_registry()
        replacement = ExactMatchEvaluator()
        registry.register(replacement)
        assert registry.get_evaluator("EXACT") is replacement


class TestRuleEngine:
    """Tests for rule evaluation through the engine."""

    def test_rules_run_in_priority_order(self, kim):
        engine = engine_for(
            make_rule("EXACT", source="nationality", target="nationality",
                      rule_id="NAT", rule_type="NATIONALITY", priority=5, exactMatch=10),
            make_rule("EXACT", rule_id="NAME", priority=1, exactMatch=100),
        )
        customer = CustomerInfo(name="Kim Jong Un", nationality="KP")
        assert [m.rule_name for m in engine.apply_rules(customer, kim)] == ["NAME", "NAT"]

    def test_unknown_match_type_is_skipped(self, kim):
        engine = engine_for(
            make_rule("EXACT", rule_id="NAME", priority=1, exactMatch=100),
            make_rule("BOGUS", rule_id="BOGUS_RULE", priority=2, partialMatch=10),
            make_rule("EXACT", source="nationality", target="nationality",
                      rule_id="NAT", rule_type="NATIONALITY", priority=3, exactMatch=10),
        )
        customer = CustomerInfo(name="Kim Jong Un", nationality="KP")
        report = engine.evaluate_rules(customer, kim)
        assert [o.rule_id for o in report.skipped] == ["BOGUS_RULE"]
        assert [m.rule_name for m in report.matched_rules] == ["NAME", "NAT"]

    def test_failing_evaluator_does_not_stop_other_rules(self, kim):
        registry = create_default_registry()
        registry.register(ExplodingEvaluator())
        engine = engine_for(
            make_rule("EXPLODE", rule_id="BROKEN", priority=1, partialMatch=10),
            make_rule("EXACT", rule_id="NAME", priority=2, exactMatch=100),
            registry=registry,
        )
        with patch("rules.engine.record_rule_failure") as record_failure:
            report = engine.evaluate_rules(CustomerInfo(name="Kim Jong Un"), kim)
        record_failure.assert_called_once_with("BROKEN")
        assert report.failed[0].rule_id == "BROKEN"
        assert "evaluator bug" in report.failed[0].error
        assert [m.rule_name for m in report.matched_rules] == ["NAME"]

    def test_disabled_rules_are_not_evaluated(self, kim):
        engine = engine_for(
            make_rule("EXACT", rule_id="OFF", enabled=False, exactMatch=100),
            make_rule("FUZZY", rule_id="ON", partialMatch=10),
        )
        report = engine.evaluate_rules(CustomerInfo(name="Kim Jong Un"), kim)
        assert [o.rule_id for o in report.outcomes] == ["ON"]
        assert report.outcomes[0].status is RuleStatus.MATCHED
        assert report.configuration_version == "test"

    def test_no_match_status(self, kim):
        engine = engine_for(make_rule("EXACT", rule_id="NAME", exactMatch=100))
        report = engine.evaluate_rules(CustomerInfo(name="John Smith"), kim)
        assert report.outcomes[0].status is RuleStatus.NO_MATCH
        assert report.matched_rules == []

    def test_bundled_rules_end_to_end(self, kim):
        engine = RuleEngine(RuleConfigurationLoader())
        customer = CustomerInfo(name="Kim Jong Un", date_of_birth=date(1984, 1, 8), nationality="KP")
        rule_names = [m.rule_name for m in engine.apply_rules(customer, kim)]
        assert rule_names[0] == "EXACT_NAME_MATCH"
        assert "DOB_MATCH" in rule_names
        assert "NATIONALITY_MATCH" in rule_names
        assert engine.get_supported_match_types() == create_default_registry().supported_match_types()
