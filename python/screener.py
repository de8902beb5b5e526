"""
Watchlist Screener
Rule-based customer screening against sanctions watchlists

Features:
- Pluggable watchlist providers (in-memory, YAML file)
- Input validation before any screening work
- Per-entry rule evaluation through the RuleEngine, optionally in parallel
- Risk scoring with ALERT / REVIEW / LOW RISK tiers and explanations
- Configurable thresholds and rules via config.yaml

Provider and rule engine errors are not caught here: a screening either
completes against the whole watchlist or raises.
"""

import argparse
import json
import logging
import sys
import unicodedata
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

import yaml

from config_manager import ConfigManager, ConfigurationError, get_config
from log_utils import configure_logging, sanitize_for_logging
from matching import AdvancedMatchingService
from monitoring import configure_monitoring, record_screening_outcome, screening_timer
from rules import RuleConfigurationLoader, RuleEngine, create_default_registry
from scoring import ScoringService
from screening_models import CustomerInfo, FilteringResult, MatchedRule, WatchlistEntry

logger = logging.getLogger(__name__)


class InputValidationError(ValueError):
    """Raised when input validation fails

    Attributes:
        field: The field that failed validation
        code: Error code for programmatic handling
        message: Human-readable error message
        suggestion: Optional suggestion for fixing the error
    """
    def __init__(self, message: str, field: str = "unknown", code: str = "VALIDATION_ERROR", suggestion: str = ""):
        self.field = field
        self.code = code
        self.suggestion = suggestion
        super().__init__(message)


def validate_customer_info(customer: Optional[CustomerInfo], config: Optional[ConfigManager] = None) -> None:
    """Validate a customer before screening

    Supports international names (Latin, Hangul, Arabic, CJK ...) and
    rejects characters that could indicate injection attempts.

    Args:
        customer: Customer to validate
        config: Optional configuration manager for validation settings

    Raises:
        InputValidationError: If validation fails with detailed error info
    """
    if config is None:
        config = get_config()
    iv_config = config.input_validation

    if customer is None:
        raise InputValidationError("Customer is required", field="customer", code="CUSTOMER_REQUIRED")

    name = customer.name or ""
    if not name.strip():
        raise InputValidationError(
            "Customer name is required",
            field="name",
            code="NAME_REQUIRED",
            suggestion="Provide the customer's full name"
        )

    if len(name) > iv_config.name_max_length:
        raise InputValidationError(
            f"Name too long ({len(name)} chars, maximum {iv_config.name_max_length})",
            field="name",
            code="NAME_TOO_LONG",
            suggestion=f"Shorten the name to {iv_config.name_max_length} characters or less"
        )

    found_blocked = [c for c in name if c in iv_config.blocked_characters]
    if found_blocked:
        logger.warning("SECURITY: Blocked characters detected in name input: %s",
                       sanitize_for_logging(name))
        raise InputValidationError(
            f"Name contains blocked characters: {found_blocked}",
            field="name",
            code="BLOCKED_CHARACTERS",
            suggestion="Remove special characters like < > { } [ ] | \\ ; ` $"
        )

    for char in name:
        if unicodedata.category(char).startswith('C'):
            logger.warning("SECURITY: Control character detected in name: %s",
                           sanitize_for_logging(name))
            raise InputValidationError(
                f"Name contains invalid control character (code: {ord(char)})",
                field="name",
                code="CONTROL_CHARACTER",
                suggestion="Remove invisible or control characters from the name"
            )

    if customer.date_of_birth is not None and not isinstance(customer.date_of_birth, date):
        raise InputValidationError(
            f"Date of birth must be a date, got {type(customer.date_of_birth).__name__}",
            field="date_of_birth",
            code="INVALID_DOB",
            suggestion="Parse the date first, e.g. date.fromisoformat('1980-01-15')"
        )


# ============================================
# WATCHLIST PROVIDERS
# ============================================

class WatchlistLoadError(Exception):
    """Raised when a watchlist source cannot be read"""
    pass


class WatchlistProvider(ABC):
    """Source of watchlist entries"""

    @abstractmethod
    def get_all_entries(self) -> List[WatchlistEntry]:
        """Every entry on every list"""

    def get_entries_by_source(self, source: str) -> List[WatchlistEntry]:
        """Entries from one list (OFAC, UN, EU ...), compared case-insensitively"""
        wanted = (source or "").strip().upper()
        return [e for e in self.get_all_entries()
                if (e.list_source or "").strip().upper() == wanted]


class InMemoryWatchlistProvider(WatchlistProvider):
    """Provider over a fixed collection of entries"""

    def __init__(self, entries: Iterable[WatchlistEntry] = ()):
        self._entries = tuple(entries)

    def get_all_entries(self) -> List[WatchlistEntry]:
        return list(self._entries)


def _get(raw: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in raw and raw[key] is not None:
            return raw[key]
    return None


def _text(value: Any, field: str, entry_id: Any) -> Optional[str]:
    """Text value of a watchlist field; booleans and collections are rejected"""
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise WatchlistLoadError(
            f"Watchlist entry {entry_id} has non-text {field} {value!r}; quote the value"
        )
    return str(value)


def _parse_date(value: Any, entry_id: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise WatchlistLoadError(f"Invalid date of birth '{value}' for entry {entry_id}")


def parse_watchlist_entry(raw: Dict[str, Any]) -> WatchlistEntry:
    """Build a WatchlistEntry from a mapping with camelCase or snake_case keys"""
    if not isinstance(raw, dict):
        raise WatchlistLoadError(f"Watchlist entry must be a mapping, got {type(raw).__name__}")
    entry_id = _text(_get(raw, 'id'), 'id', None)
    name = _text(_get(raw, 'name'), 'name', entry_id)
    if not name:
        raise WatchlistLoadError(f"Watchlist entry {entry_id} has no name")

    aliases = _get(raw, 'aliases') or []
    if not isinstance(aliases, (list, tuple)):
        aliases = [aliases]

    return WatchlistEntry(
        id=entry_id,
        name=name,
        aliases=tuple(_text(a, 'alias', entry_id) for a in aliases if a is not None and a != ""),
        date_of_birth=_parse_date(_get(raw, 'dateOfBirth', 'date_of_birth', 'dob'), entry_id),
        nationality=_text(_get(raw, 'nationality'), 'nationality', entry_id),
        list_source=_text(_get(raw, 'listSource', 'list_source', 'source'), 'listSource', entry_id),
        entry_type=_text(_get(raw, 'entryType', 'entry_type', 'type'), 'entryType', entry_id),
    )


class WatchlistYamlLoader(yaml.SafeLoader):
    """SafeLoader that reads yes/no/on/off/true/false as plain strings

    Watchlists carry ISO country codes, and YAML 1.1 would turn Norway's
    ``NO`` into ``False``.
    """


WatchlistYamlLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != 'tag:yaml.org,2002:bool']
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


class YamlWatchlistProvider(WatchlistProvider):
    """Provider reading entries from a YAML file

    The file holds either a list of entries or a mapping with an
    ``entries`` list. Entries are read once, on first access.
    """

    def __init__(self, path: str):
        self.path = Path(path)
        self._entries: Optional[List[WatchlistEntry]] = None

    def _load(self) -> List[WatchlistEntry]:
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                raw = yaml.load(f, Loader=WatchlistYamlLoader)
        except FileNotFoundError:
            raise WatchlistLoadError(f"Watchlist file not found: {self.path}")
        except yaml.YAMLError as e:
            raise WatchlistLoadError(f"Invalid YAML in watchlist file {self.path}: {e}")

        if isinstance(raw, dict):
            raw = raw.get('entries')
        if not isinstance(raw, list):
            raise WatchlistLoadError(f"Watchlist file {self.path} must contain a list of entries")

        entries = [parse_watchlist_entry(item) for item in raw]
        logger.info("✓ Loaded %d watchlist entries from %s", len(entries), self.path)
        return entries

    def get_all_entries(self) -> List[WatchlistEntry]:
        if self._entries is None:
            self._entries = self._load()
        return list(self._entries)


# ============================================
# SCREENER
# ============================================

class WatchlistScreener:
    """Screens customers against watchlist entries using configured rules"""

    def __init__(self,
                 rule_engine: RuleEngine,
                 scoring_service: ScoringService,
                 provider: WatchlistProvider,
                 config: Optional[ConfigManager] = None):
        """Initialize screener

        Args:
            rule_engine: Applies rules to one customer/entry pair
            scoring_service: Turns matches into a decision
            provider: Source of watchlist entries
            config: Configuration manager instance
        """
        self.rule_engine = rule_engine
        self.scoring_service = scoring_service
        self.provider = provider
        self.config = config or get_config()

    def _use_parallel(self, entry_count: int) -> bool:
        perf = self.config.performance
        return (perf.concurrent_screening
                and perf.max_threads > 1
                and entry_count >= perf.min_entries_for_parallel)

    def _collect_matches(self, customer: CustomerInfo,
                         entries: Sequence[WatchlistEntry]) -> List[MatchedRule]:
        """Apply rules to every entry; matches are returned in entry order"""
        if self._use_parallel(len(entries)):
            with ThreadPoolExecutor(max_workers=self.config.performance.max_threads) as pool:
                per_entry = list(pool.map(
                    lambda entry: self.rule_engine.apply_rules(customer, entry), entries
                ))
        else:
            per_entry = [self.rule_engine.apply_rules(customer, entry) for entry in entries]
        return [match for matches in per_entry for match in matches]

    def _screen(self, customer: CustomerInfo, entries: Sequence[WatchlistEntry]) -> FilteringResult:
        logger.info("Screening %s against %d watchlist entries",
                    sanitize_for_logging(customer.name), len(entries))
        matches = self._collect_matches(customer, entries)
        result = self.scoring_service.calculate_score(customer, matches)
        record_screening_outcome(result.tier.value)
        if result.alert:
            logger.info("  ⚠️  ALERT - score %.1f, %d matched rules", result.score, len(matches))
        else:
            logger.info("  ✓ %s - score %.1f", result.tier.value, result.score)
        return result

    def filter_customer(self, customer: CustomerInfo) -> FilteringResult:
        """Screen a customer against every watchlist entry

        Args:
            customer: Customer to screen

        Returns:
            FilteringResult for the customer

        Raises:
            InputValidationError: If the customer data is invalid
        """
        with screening_timer("filter_customer"):
            validate_customer_info(customer, self.config)
            entries = self.provider.get_all_entries()
            return self._screen(customer, entries)

    def filter_customer_by_source(self, customer: CustomerInfo, source: str) -> FilteringResult:
        """Screen a customer against the entries of a single list (e.g. OFAC)"""
        with screening_timer("filter_customer_by_source"):
            validate_customer_info(customer, self.config)
            entries = self.provider.get_entries_by_source(source)
            return self._screen(customer, entries)


def create_screener(provider: WatchlistProvider,
                    config: Optional[ConfigManager] = None,
                    rules_path: Optional[str] = None) -> WatchlistScreener:
    """Wire a screener from configuration

    Args:
        provider: Source of watchlist entries
        config: Configuration manager; the shared instance if omitted
        rules_path: Rule document overriding config.rules.path

    Raises:
        ConfigurationError: If the rules cannot be loaded and fallback is disabled
    """
    config = config or get_config()
    configure_monitoring(config.monitoring)

    matching = AdvancedMatchingService.from_config(config.matching)
    registry = create_default_registry(matching)
    loader = RuleConfigurationLoader(
        config_path=rules_path or config.rules.path,
        watch_for_changes=config.rules.watch_for_changes,
        fallback_to_default=config.rules.fallback_to_default,
    )
    engine = RuleEngine(loader, registry)
    scoring = ScoringService.from_config(config.scoring)
    return WatchlistScreener(engine, scoring, provider, config)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Screen a customer against a watchlist file"
    )
    parser.add_argument('--name', required=True, help="Customer name")
    parser.add_argument('--dob', help="Date of birth (YYYY-MM-DD)")
    parser.add_argument('--nationality', help="Nationality code")
    parser.add_argument('--customer-id', help="Customer identifier")
    parser.add_argument('--watchlist', required=True, help="YAML file with watchlist entries")
    parser.add_argument('--source', help="Only screen against this list source")
    parser.add_argument('--rules', help="Rule document (defaults to config or bundled rules)")
    parser.add_argument('--config', help="Path to config.yaml")
    parser.add_argument('--json', action='store_true', help="Print the result as JSON")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point"""
    args = build_arg_parser().parse_args(argv)

    try:
        config = ConfigManager(args.config) if args.config else get_config()
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    configure_logging(config.logging)

    try:
        dob = date.fromisoformat(args.dob) if args.dob else None
    except ValueError:
        print(f"Invalid --dob '{args.dob}', expected YYYY-MM-DD", file=sys.stderr)
        return 2

    customer = CustomerInfo(
        name=args.name,
        date_of_birth=dob,
        nationality=args.nationality,
        customer_id=args.customer_id,
    )

    try:
        screener = create_screener(YamlWatchlistProvider(args.watchlist), config, args.rules)
        if args.source:
            result = screener.filter_customer_by_source(customer, args.source)
        else:
            result = screener.filter_customer(customer)
    except InputValidationError as e:
        print(f"Invalid input ({e.code}): {e}", file=sys.stderr)
        return 2
    except (ConfigurationError, WatchlistLoadError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    if args.json:
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    else:
        print(result.explanation)
    return 1 if result.alert else 0


if __name__ == "__main__":
    sys.exit(main())
