"""
Rule configuration loader

Reads the YAML rule document into a frozen RuleConfiguration and keeps it
as the current snapshot. Readers always get a complete snapshot: reloads
build a new configuration first and only then swap the reference, and a
lock ensures only one reload runs at a time.
"""

import logging
import threading
from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError

from config_manager import ConfigurationError, RulesConfig
from monitoring import record_config_reload
from rules.models import MatchCondition, RuleConfiguration, RuleDefinition, ScoreConfig

logger = logging.getLogger(__name__)

DEFAULT_RULES_PATH = Path(__file__).parent / "filtering-rules.yaml"


def create_default_configuration() -> RuleConfiguration:
    """Minimal built-in rule set used when the rule document cannot be loaded"""
    return RuleConfiguration(
        version="1.0-default",
        description="Default fallback configuration",
        rules=(
            RuleDefinition(
                id="EXACT_NAME_MATCH",
                name="Exact Name Match",
                type="NAME",
                description="Exact name match after normalization",
                enabled=True,
                priority=1,
                condition=MatchCondition(match_type="EXACT", source_field="name",
                                         target_field="name"),
                score=ScoreConfig(exact_match=100.0),
            ),
        ),
    )


def parse_configuration(text: str, source: str = "<string>") -> RuleConfiguration:
    """Parse and validate a YAML rule document

    Args:
        text: YAML document
        source: Where the document came from, for error messages

    Returns:
        Validated RuleConfiguration

    Raises:
        ConfigurationError: If the YAML is invalid or fails schema validation
    """
    try:
        raw = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in rule configuration {source}: {e}")

    if raw is None:
        raise ConfigurationError(f"Rule configuration {source} is empty")
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Rule configuration {source} must be a mapping")

    try:
        return RuleConfiguration.model_validate(raw)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid rule configuration {source}: {e}")


class RuleConfigurationLoader:
    """Loads the rule document and serves the current snapshot"""

    def __init__(self,
                 config_path: Optional[str] = None,
                 watch_for_changes: bool = False,
                 fallback_to_default: bool = True):
        """Load the rule document immediately

        Args:
            config_path: Path to the YAML document; the bundled rules when None
            watch_for_changes: Reload on access when the file's mtime moves forward
            fallback_to_default: Use the built-in default rules if the first load fails

        Raises:
            ConfigurationError: If loading fails and fallback is disabled
        """
        self._init_state(Path(config_path) if config_path else DEFAULT_RULES_PATH,
                         watch_for_changes, fallback_to_default)

        try:
            self._configuration = self._load()
        except ConfigurationError as e:
            if not self.fallback_to_default:
                raise
            logger.error("Failed to load rule configuration from %s: %s", self.config_path, e)
            logger.warning("⚠ Using default rule configuration")
            self._configuration = create_default_configuration()
            self.using_default = True

        logger.info(
            "✓ Rule configuration loaded: %d rules (version: %s)",
            len(self._configuration.rules), self._configuration.version
        )

    @classmethod
    def from_settings(cls, settings: RulesConfig) -> 'RuleConfigurationLoader':
        return cls(
            config_path=settings.path,
            watch_for_changes=settings.watch_for_changes,
            fallback_to_default=settings.fallback_to_default,
        )

    @classmethod
    def from_configuration(cls, configuration: RuleConfiguration) -> 'RuleConfigurationLoader':
        """Serve an already-built configuration without touching the filesystem"""
        loader = cls.__new__(cls)
        loader._init_state(None, watch_for_changes=False, fallback_to_default=False)
        loader._configuration = configuration
        return loader

    def _init_state(self,
                    config_path: Optional[Path],
                    watch_for_changes: bool,
                    fallback_to_default: bool) -> None:
        self.config_path = config_path
        self.watch_for_changes = watch_for_changes
        self.fallback_to_default = fallback_to_default
        self._reload_lock = threading.Lock()
        self._last_modified: Optional[float] = None
        self._configuration: Optional[RuleConfiguration] = None
        self.using_default = False

    def _load(self) -> RuleConfiguration:
        if self.config_path is None:
            raise ConfigurationError("No rule configuration file to load")
        try:
            mtime = self.config_path.stat().st_mtime
            text = self.config_path.read_text(encoding='utf-8')
        except FileNotFoundError:
            raise ConfigurationError(f"Rule configuration file not found: {self.config_path}")
        except OSError as e:
            raise ConfigurationError(f"Cannot read rule configuration {self.config_path}: {e}")

        # Remember the attempt even if parsing fails, so a watched file
        # is not re-read until it changes again
        self._last_modified = mtime
        configuration = parse_configuration(text, source=str(self.config_path))
        logger.debug("Rule configuration validation passed")
        return configuration

    def _has_changed(self) -> bool:
        if self.config_path is None or self._last_modified is None:
            return False
        try:
            return self.config_path.stat().st_mtime > self._last_modified
        except OSError:
            return False

    def get_configuration(self) -> RuleConfiguration:
        """Current configuration snapshot

        When watching for changes, a modified file is reloaded first. A
        failed automatic reload is logged and the previous snapshot kept.
        """
        if self.watch_for_changes and self._has_changed():
            logger.info("Rule configuration file changed, reloading...")
            try:
                self.reload()
            except ConfigurationError as e:
                logger.error("Automatic rule reload failed, keeping version %s: %s",
                             self._configuration.version, e)
        return self._configuration

    def reload(self) -> RuleConfiguration:
        """Force a reload from disk

        Returns:
            The new configuration snapshot

        Raises:
            ConfigurationError: If the document is invalid; the previous
                snapshot stays active
        """
        with self._reload_lock:
            logger.info("Reloading rule configuration from: %s", self.config_path)
            try:
                configuration = self._load()
            except ConfigurationError:
                record_config_reload(success=False)
                raise
            self._configuration = configuration
            record_config_reload(success=True)
            self.using_default = False
            logger.info("✓ Rule configuration reloaded: %d rules (version: %s)",
                        len(configuration.rules), configuration.version)
            return configuration
