"""
Configuration Management Module
Loads and validates screening configuration from config.yaml
"""

import yaml
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)


COMPOSITE_WEIGHT_KEYS = {
    'with_korean': ('jaro_winkler', 'metaphone', 'ngram', 'korean'),
    'without_korean': ('jaro_winkler', 'metaphone', 'ngram'),
}


def _default_weights_with_korean() -> Dict[str, float]:
    return {
        'jaro_winkler': 0.30,
        'metaphone': 0.20,
        'ngram': 0.20,
        'korean': 0.30
    }


def _default_weights_without_korean() -> Dict[str, float]:
    return {
        'jaro_winkler': 0.40,
        'metaphone': 0.30,
        'ngram': 0.30
    }


@dataclass
class MatchingConfig:
    """Matching strategy thresholds and composite weights"""
    jaro_winkler_threshold: float = 0.85
    ngram_threshold: float = 0.5
    ngram_size: int = 2
    korean_threshold: float = 0.7
    composite_threshold: float = 0.75
    weights_with_korean: Dict[str, float] = field(default_factory=_default_weights_with_korean)
    weights_without_korean: Dict[str, float] = field(default_factory=_default_weights_without_korean)


@dataclass
class ScoringConfig:
    """Decision thresholds on the 0-100 risk score"""
    alert_threshold: float = 70.0
    review_threshold: float = 50.0


@dataclass
class RulesConfig:
    """Rule document location and reload behaviour"""
    path: Optional[str] = None
    watch_for_changes: bool = False
    fallback_to_default: bool = True


@dataclass
class InputValidationConfig:
    """Input validation configuration for customer-provided data"""
    name_max_length: int = 200
    blocked_characters: str = "<>{}[]|\\;`$"


@dataclass
class LoggingConfig:
    """Logging configuration"""
    level: str = "INFO"
    file: Optional[str] = None
    console: bool = True
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class PerformanceConfig:
    """Performance configuration"""
    concurrent_screening: bool = False
    max_threads: int = 4
    min_entries_for_parallel: int = 200


@dataclass
class MonitoringConfig:
    """Metrics configuration"""
    enable_prometheus: bool = True
    slow_screening_threshold_ms: float = 1000.0


@dataclass
class AlgorithmConfig:
    """Algorithm version information"""
    version: str = "1.0.0"
    name: str = "Rule-Based Watchlist Screener"
    last_updated: str = "2026-10-01"


class ConfigurationError(Exception):
    """Raised when configuration is invalid"""
    pass


class ConfigManager:
    """Manages system configuration"""

    _instance: Optional['ConfigManager'] = None

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration manager

        Args:
            config_path: Path to config.yaml file
        """
        self.config_path = Path(config_path) if config_path else self._find_config()
        self._raw_config: Dict[str, Any] = {}
        self.matching: MatchingConfig = MatchingConfig()
        self.scoring: ScoringConfig = ScoringConfig()
        self.rules: RulesConfig = RulesConfig()
        self.input_validation: InputValidationConfig = InputValidationConfig()
        self.logging: LoggingConfig = LoggingConfig()
        self.performance: PerformanceConfig = PerformanceConfig()
        self.monitoring: MonitoringConfig = MonitoringConfig()
        self.algorithm: AlgorithmConfig = AlgorithmConfig()

        if self.config_path and self.config_path.exists():
            self.load()
        else:
            logger.warning(f"Config file not found at {self.config_path}, using defaults")

    def _find_config(self) -> Path:
        """Find config.yaml in common locations"""
        search_paths = [
            Path(__file__).parent / "config.yaml",
            Path.cwd() / "config.yaml",
            Path.cwd() / "python" / "config.yaml",
        ]

        for path in search_paths:
            if path.exists():
                return path

        return search_paths[0]

    def load(self) -> None:
        """Load configuration from YAML file

        Raises:
            ConfigurationError: If the file cannot be read, parsed or validated
        """
        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in config file: {e}")
        except FileNotFoundError:
            raise ConfigurationError(f"Config file not found: {self.config_path}")

        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            raise ConfigurationError(
                f"Config file must contain a mapping at top level: {self.config_path}"
            )
        self._raw_config = raw

        self._parse_matching()
        self._parse_scoring()
        self._parse_rules()
        self._parse_input_validation()
        self._parse_logging()
        self._parse_performance()
        self._parse_monitoring()
        self._parse_algorithm()
        self._validate()
        logger.info("✓ Configuration loaded from %s", self.config_path)

    def _section(self, name: str) -> Dict[str, Any]:
        cfg = self._raw_config.get(name) or {}
        if not isinstance(cfg, dict):
            raise ConfigurationError(f"Config section '{name}' must be a mapping")
        return cfg

    def _parse_matching(self) -> None:
        """Parse matching configuration"""
        cfg = self._section('matching')
        weights_cfg = cfg.get('composite_weights') or {}

        self.matching = MatchingConfig(
            jaro_winkler_threshold=float(cfg.get('jaro_winkler_threshold', 0.85)),
            ngram_threshold=float(cfg.get('ngram_threshold', 0.5)),
            ngram_size=int(cfg.get('ngram_size', 2)),
            korean_threshold=float(cfg.get('korean_threshold', 0.7)),
            composite_threshold=float(cfg.get('composite_threshold', 0.75)),
            weights_with_korean=dict(
                weights_cfg.get('with_korean', _default_weights_with_korean())
            ),
            weights_without_korean=dict(
                weights_cfg.get('without_korean', _default_weights_without_korean())
            )
        )

    def _parse_scoring(self) -> None:
        """Parse scoring configuration"""
        cfg = self._section('scoring')
        self.scoring = ScoringConfig(
            alert_threshold=float(cfg.get('alert_threshold', 70.0)),
            review_threshold=float(cfg.get('review_threshold', 50.0))
        )

    def _parse_rules(self) -> None:
        """Parse rule document configuration"""
        cfg = self._section('rules')
        path = cfg.get('path')
        if path:
            rules_path = Path(path)
            # Relative rule paths are resolved against the config file
            if not rules_path.is_absolute():
                rules_path = self.config_path.parent / rules_path
            path = str(rules_path)
        self.rules = RulesConfig(
            path=path,
            watch_for_changes=bool(cfg.get('watch_for_changes', False)),
            fallback_to_default=bool(cfg.get('fallback_to_default', True))
        )

    def _parse_input_validation(self) -> None:
        """Parse input validation configuration"""
        cfg = self._section('input_validation')
        self.input_validation = InputValidationConfig(
            name_max_length=int(cfg.get('name_max_length', 200)),
            blocked_characters=cfg.get('blocked_characters', "<>{}[]|\\;`$")
        )

    def _parse_logging(self) -> None:
        """Parse logging configuration"""
        cfg = self._section('logging')
        self.logging = LoggingConfig(
            level=str(cfg.get('level', 'INFO')).upper(),
            file=cfg.get('file'),
            console=cfg.get('console', True),
            format=cfg.get('format', self.logging.format)
        )

    def _parse_performance(self) -> None:
        """Parse performance configuration"""
        cfg = self._section('performance')
        self.performance = PerformanceConfig(
            concurrent_screening=bool(cfg.get('concurrent_screening', False)),
            max_threads=int(cfg.get('max_threads', 4)),
            min_entries_for_parallel=int(cfg.get('min_entries_for_parallel', 200))
        )

    def _parse_monitoring(self) -> None:
        """Parse monitoring configuration"""
        cfg = self._section('monitoring')
        self.monitoring = MonitoringConfig(
            enable_prometheus=bool(cfg.get('enable_prometheus', True)),
            slow_screening_threshold_ms=float(cfg.get('slow_screening_threshold_ms', 1000.0))
        )

    def _parse_algorithm(self) -> None:
        """Parse algorithm configuration"""
        cfg = self._section('algorithm')
        self.algorithm = AlgorithmConfig(
            version=str(cfg.get('version', self.algorithm.version)),
            name=cfg.get('name', self.algorithm.name),
            last_updated=str(cfg.get('last_updated', self.algorithm.last_updated))
        )

    @classmethod
    def get_instance(cls, config_path: Optional[str] = None) -> 'ConfigManager':
        """Get singleton instance of ConfigManager"""
        if cls._instance is None:
            cls._instance = ConfigManager(config_path)
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Reset singleton instance (useful for testing)"""
        cls._instance = None

    def to_dict(self) -> Dict[str, Any]:
        """Export configuration as dictionary"""
        return {
            'matching': {
                'jaro_winkler_threshold': self.matching.jaro_winkler_threshold,
                'ngram_threshold': self.matching.ngram_threshold,
                'ngram_size': self.matching.ngram_size,
                'korean_threshold': self.matching.korean_threshold,
                'composite_threshold': self.matching.composite_threshold,
                'composite_weights': {
                    'with_korean': dict(self.matching.weights_with_korean),
                    'without_korean': dict(self.matching.weights_without_korean)
                }
            },
            'scoring': {
                'alert_threshold': self.scoring.alert_threshold,
                'review_threshold': self.scoring.review_threshold
            },
            'rules': {
                'path': self.rules.path,
                'watch_for_changes': self.rules.watch_for_changes,
                'fallback_to_default': self.rules.fallback_to_default
            },
            'performance': {
                'concurrent_screening': self.performance.concurrent_screening,
                'max_threads': self.performance.max_threads,
                'min_entries_for_parallel': self.performance.min_entries_for_parallel
            },
            'algorithm': {
                'version': self.algorithm.version,
                'name': self.algorithm.name,
                'last_updated': self.algorithm.last_updated
            }
        }

    def _validate(self) -> None:
        """Validate configuration values

        Raises:
            ConfigurationError: Listing every invalid value found
        """
        errors = []

        for name in ('jaro_winkler_threshold', 'ngram_threshold',
                     'korean_threshold', 'composite_threshold'):
            value = getattr(self.matching, name)
            if not 0.0 <= value <= 1.0:
                errors.append(f"matching.{name} must be between 0 and 1, got {value}")

        if self.matching.ngram_size < 1:
            errors.append(f"matching.ngram_size must be >= 1, got {self.matching.ngram_size}")

        for profile, keys in COMPOSITE_WEIGHT_KEYS.items():
            weights = getattr(self.matching, f"weights_{profile}")
            missing = [k for k in keys if k not in weights]
            if missing:
                errors.append(f"matching.composite_weights.{profile} missing {missing}")
                continue
            total = sum(float(weights[k]) for k in keys)
            if abs(total - 1.0) > 0.01:
                errors.append(
                    f"matching.composite_weights.{profile} must sum to 1.0, got {total:.3f}"
                )

        alert = self.scoring.alert_threshold
        review = self.scoring.review_threshold
        if not 0.0 <= review <= 100.0 or not 0.0 <= alert <= 100.0:
            errors.append("scoring thresholds must be between 0 and 100")
        elif review > alert:
            errors.append(
                f"scoring.review_threshold ({review}) must not exceed alert_threshold ({alert})"
            )

        if self.input_validation.name_max_length < 1:
            errors.append("input_validation.name_max_length must be >= 1")

        if self.performance.max_threads < 1:
            errors.append("performance.max_threads must be >= 1")

        if errors:
            raise ConfigurationError("; ".join(errors))


def get_config(config_path: Optional[str] = None) -> ConfigManager:
    """Convenience function to get configuration instance"""
    return ConfigManager.get_instance(config_path)
