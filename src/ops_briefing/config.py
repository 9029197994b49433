"""
Configuration for ops-briefing.

Supports configuration via:
1. Environment variables (highest priority)
2. TOML config file (ops-briefing.toml)
3. Default values (lowest priority)

Environment variables:
- OPS_BRIEFING_CONFIG_FILE: Path to TOML config file
- OPS_BRIEFING_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
- OPS_BRIEFING_CONTEXT_BUDGET: Token budget for the assembled briefing context
- OPS_BRIEFING_TOKEN_MODEL: Model identifier used for token counting
- OPS_BRIEFING_ENRICHMENT_COUNT: Number of top-scored items to enrich
- OPS_BRIEFING_ENRICHMENT_BUDGET: Token budget for enriched items
- OPS_BRIEFING_CACHE_TTL: Enrichment cache time-to-live in seconds
- ANTHROPIC_API_KEY: API key for the token counting endpoint
"""

import logging
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_MODEL = "claude-opus-4-5-20251101"


@dataclass
class SectionPriorities:
    """Section priorities for context assembly.

    Higher values are more important and survive overflow handling.
    """

    work_items: int = 10  # daily work focus
    pull_requests: int = 8  # code review urgency
    projects: int = 6  # project awareness

    @classmethod
    def from_toml_dict(cls, data: Dict[str, Any]) -> "SectionPriorities":
        defaults = cls()
        return cls(
            work_items=int(data.get("work_items", defaults.work_items)),
            pull_requests=int(data.get("pull_requests", defaults.pull_requests)),
            projects=int(data.get("projects", defaults.projects)),
        )


@dataclass
class ContextConfig:
    """Configuration for the briefing context engine.

    Attributes:
        total_budget: Token budget for the assembled context
        model: Model identifier passed to the token counting endpoint
        api_key: Anthropic API key (None disables exact counting)
        api_base_url: Base URL of the token counting API
        timeout: Timeout for a single token counting request (seconds)
        priorities: Per-section priorities for overflow handling
        atomic_overflow: Roll back evictions when an overflow cannot be resolved
    """

    total_budget: int = 4000
    model: str = DEFAULT_TOKEN_MODEL
    api_key: Optional[str] = None
    api_base_url: str = "https://api.anthropic.com"
    timeout: float = 10.0
    priorities: SectionPriorities = field(default_factory=SectionPriorities)
    atomic_overflow: bool = True

    @classmethod
    def from_toml_dict(cls, data: Dict[str, Any]) -> "ContextConfig":
        """Create config from TOML dict (typically [context] section).

        Args:
            data: Dict from TOML parsing

        Returns:
            ContextConfig instance
        """
        defaults = cls()
        return cls(
            total_budget=int(data.get("total_budget", defaults.total_budget)),
            model=str(data.get("model", defaults.model)),
            api_key=data.get("api_key", defaults.api_key),
            api_base_url=str(data.get("api_base_url", defaults.api_base_url)),
            timeout=float(data.get("timeout", defaults.timeout)),
            priorities=SectionPriorities.from_toml_dict(data.get("priorities", {})),
            atomic_overflow=_parse_bool(
                data.get("atomic_overflow", defaults.atomic_overflow)
            ),
        )


@dataclass
class EnrichmentConfig:
    """Configuration for item enrichment and its token budget.

    Attributes:
        count: Number of top-scored items to enrich
        budget: Hard token budget for the enriched item list
        protected_count: Highest-ranked items that are never dropped
        comment_budget: Per-item token budget for comments (phase 1)
        description_budget: Per-item token budget for descriptions (phase 2)
        cache_ttl: Enrichment cache time-to-live in seconds (0 disables caching)
    """

    count: int = 10
    budget: int = 2000
    protected_count: int = 5
    comment_budget: int = 100
    description_budget: int = 100
    cache_ttl: int = 900

    @classmethod
    def from_toml_dict(cls, data: Dict[str, Any]) -> "EnrichmentConfig":
        defaults = cls()
        return cls(
            count=int(data.get("count", defaults.count)),
            budget=int(data.get("budget", defaults.budget)),
            protected_count=int(data.get("protected_count", defaults.protected_count)),
            comment_budget=int(data.get("comment_budget", defaults.comment_budget)),
            description_budget=int(
                data.get("description_budget", defaults.description_budget)
            ),
            cache_ttl=int(data.get("cache_ttl", defaults.cache_ttl)),
        )


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"true", "1", "yes", "on"}


@dataclass
class BriefingConfig:
    """Top-level configuration with support for env vars and TOML overrides."""

    log_level: str = "INFO"
    context: ContextConfig = field(default_factory=ContextConfig)
    enrichment: EnrichmentConfig = field(default_factory=EnrichmentConfig)

    @classmethod
    def from_env(cls, config_file: Optional[str] = None) -> "BriefingConfig":
        """
        Create configuration from environment variables and optional TOML file.

        Priority (highest to lowest):
        1. Environment variables
        2. TOML config file
        3. Default values
        """
        config = cls()

        toml_path = config_file or os.environ.get("OPS_BRIEFING_CONFIG_FILE")
        if toml_path:
            config._load_toml(Path(toml_path))
        else:
            for default_path in ["ops-briefing.toml", ".ops-briefing.toml"]:
                if Path(default_path).exists():
                    config._load_toml(Path(default_path))
                    break

        config._load_env()

        return config

    def _load_toml(self, path: Path) -> None:
        """Load configuration from TOML file."""
        if not path.exists():
            logger.warning(f"Config file not found: {path}")
            return

        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            logger.error(f"Error loading config file {path}: {e}")
            return

        if "logging" in data:
            log = data["logging"]
            if "level" in log:
                self.log_level = str(log["level"]).upper()

        if "context" in data:
            self.context = ContextConfig.from_toml_dict(data["context"])

        if "enrichment" in data:
            self.enrichment = EnrichmentConfig.from_toml_dict(data["enrichment"])

    def _load_env(self) -> None:
        """Load configuration from environment variables."""
        if level := os.environ.get("OPS_BRIEFING_LOG_LEVEL"):
            self.log_level = level.upper()

        if api_key := os.environ.get("ANTHROPIC_API_KEY"):
            self.context.api_key = api_key

        if model := os.environ.get("OPS_BRIEFING_TOKEN_MODEL"):
            self.context.model = model

        if budget := os.environ.get("OPS_BRIEFING_CONTEXT_BUDGET"):
            try:
                self.context.total_budget = int(budget)
            except ValueError:
                logger.warning(f"Ignoring invalid OPS_BRIEFING_CONTEXT_BUDGET: {budget!r}")

        if count := os.environ.get("OPS_BRIEFING_ENRICHMENT_COUNT"):
            try:
                self.enrichment.count = int(count)
            except ValueError:
                logger.warning(f"Ignoring invalid OPS_BRIEFING_ENRICHMENT_COUNT: {count!r}")

        if enrichment_budget := os.environ.get("OPS_BRIEFING_ENRICHMENT_BUDGET"):
            try:
                self.enrichment.budget = int(enrichment_budget)
            except ValueError:
                logger.warning(
                    f"Ignoring invalid OPS_BRIEFING_ENRICHMENT_BUDGET: {enrichment_budget!r}"
                )

        if ttl := os.environ.get("OPS_BRIEFING_CACHE_TTL"):
            try:
                cache_ttl = int(ttl)
                if cache_ttl < 0:
                    raise ValueError(ttl)
                self.enrichment.cache_ttl = cache_ttl
            except ValueError:
                logger.warning(f"Ignoring invalid OPS_BRIEFING_CACHE_TTL: {ttl!r}")

    def setup_logging(self) -> None:
        """Configure logging based on settings."""
        level = getattr(logging, self.log_level, logging.INFO)

        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
        handler = logging.StreamHandler()
        handler.setFormatter(formatter)

        root_logger = logging.getLogger("ops_briefing")
        root_logger.setLevel(level)
        root_logger.addHandler(handler)


# Global configuration instance
_config: Optional[BriefingConfig] = None


def get_config() -> BriefingConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = BriefingConfig.from_env()
    return _config


def set_config(config: BriefingConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
