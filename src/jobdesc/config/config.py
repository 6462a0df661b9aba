"""
Configuration management for jobdesc using Pydantic.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, ClassVar, List, Optional, cast

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from jobdesc.crawler.headers import DEFAULT_USER_AGENT
from jobdesc.extractor import validator as _validator
from jobdesc.extractor.profiles import DEFAULT_REGISTRY, DomainProfile, ProfileRegistry

# --- Setup Logging ---
log = logging.getLogger(__name__)

# --- Nested Configuration Models ---


class FetchConfig(BaseModel):
    """Timeouts and browser settings for both fetch tiers."""

    static_timeout: float = Field(default=30.0, gt=0, description="Total timeout for the static HTTP GET, seconds.")
    max_redirects: int = Field(default=5, ge=0, description="Maximum redirects followed by the static tier.")
    navigation_timeout: float = Field(default=45.0, gt=0, description="Headless browser navigation timeout, seconds.")
    wait_selector_timeout: float = Field(
        default=5.0, gt=0, description="Best-effort wait for the profile's wait selector, seconds."
    )
    user_agent: str = Field(default=DEFAULT_USER_AGENT, description="User-Agent sent by both tiers.")
    headless: bool = Field(default=True, description="Run the browser headless.")
    browser_args: List[str] = Field(
        default_factory=lambda: ["--no-sandbox", "--disable-setuid-sandbox"],
        description="Extra chromium launch flags for server environments.",
    )


class ValidationConfig(BaseModel):
    """Acceptance thresholds for extracted content."""

    min_length: int = Field(default=_validator.MIN_CONTENT_LENGTH, ge=0)
    min_improvement_percent: float = Field(default=_validator.MIN_IMPROVEMENT_PERCENT, ge=0)
    min_keyword_matches: int = Field(default=_validator.MIN_KEYWORD_MATCHES, ge=0)
    min_snippet_length: int = Field(default=50, ge=0, description="Shortest snippet accepted by the input gate.")

    def build_validator(self) -> _validator.QualityValidator:
        return _validator.QualityValidator(
            min_length=self.min_length,
            min_improvement_percent=self.min_improvement_percent,
            min_keyword_matches=self.min_keyword_matches,
        )


class DomainProfileConfig(BaseModel):
    """A domain profile declared in configuration."""

    match_suffix: str = Field(min_length=1)
    selectors: List[str]
    wait_selector: Optional[str] = None
    remove_selectors: List[str] = Field(default_factory=list)

    @field_validator("selectors")
    @classmethod
    def validate_selectors(cls, v: List[str]) -> List[str]:
        if not v:
            raise ValueError("selectors must contain at least one selector")
        return v

    @field_validator("match_suffix")
    @classmethod
    def lower_suffix(cls, v: str) -> str:
        return v.lower()

    def to_profile(self) -> DomainProfile:
        return DomainProfile(
            match_suffix=self.match_suffix,
            selectors=tuple(self.selectors),
            wait_selector=self.wait_selector,
            remove_selectors=tuple(self.remove_selectors),
        )


class ProfilesConfig(BaseModel):
    """Additional domain profiles, checked before the built-in table."""

    extra_profiles: List[DomainProfileConfig] = Field(default_factory=list)

    def build_registry(self) -> ProfileRegistry:
        if not self.extra_profiles:
            return DEFAULT_REGISTRY
        return DEFAULT_REGISTRY.with_profiles(p.to_profile() for p in self.extra_profiles)


class MonitoringConfig(BaseModel):
    """Configuration for logging and metrics."""

    log_level: str = Field(default="INFO", description="Logging level (e.g., DEBUG, INFO, WARNING).")
    log_file: str | None = Field(default=None, description="Path to log file. If None, logs to console.")
    metrics_enabled: bool = Field(default=True, description="Record Prometheus metrics.")

    @field_validator("log_file", mode="before")
    @classmethod
    def create_parent_dir(cls, v: str | Path | None) -> str | None:
        if v is None:
            return None
        path = Path(v)
        path.parent.mkdir(parents=True, exist_ok=True)
        return str(path)


# --- Main Configuration Class ---


class Config(BaseSettings):
    project_name: str = "jobdesc"
    fetch: FetchConfig = Field(default_factory=FetchConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    profiles: ProfilesConfig = Field(default_factory=ProfilesConfig)
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)

    model_config = SettingsConfigDict(env_prefix="JOBDESC_", env_nested_delimiter="__", case_sensitive=False)

    @classmethod
    def from_yaml(cls, path: Path) -> Config:
        log.debug("Loading configuration from YAML file: %s", path)
        if not path.is_file():
            raise FileNotFoundError(f"Configuration file not found or is not a file: {path}")
        with open(path, "r", encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f)
        if not yaml_data:
            log.warning("Configuration file is empty: %s. Using default settings.", path)
            return cls.model_validate({})
        return cls.model_validate(yaml_data)


def find_config_file() -> Path | None:
    current_dir = Path.cwd()
    for path in (current_dir / "jobdesc.yaml", current_dir / "jobdesc.yml"):
        if path.exists():
            return path
    return None


# --- Lazy Configuration Loader ---


class LazyConfig:
    """
    A proxy for the Config object that delays its loading and validation
    until an attribute is first accessed. This prevents configuration errors
    from crashing the application on import.
    """

    _config: ClassVar[Config | None] = None
    _lock: ClassVar[threading.Lock] = threading.Lock()

    def __getattr__(self, name: str) -> Any:
        if self.__class__._config is None:
            with self.__class__._lock:
                if self.__class__._config is None:
                    self.__class__._config = self._load_config_with_fallback()
        return getattr(self.__class__._config, name)

    def _load_config_with_fallback(self) -> Config:
        """Load configuration from file or fall back to defaults."""
        config_path = find_config_file()
        if config_path:
            try:
                log.info("Lazy loading configuration from: %s", config_path)
                return Config.from_yaml(config_path)
            except (ValidationError, FileNotFoundError, yaml.YAMLError) as e:
                log.error(
                    "Failed to load or validate configuration from '%s': %s. "
                    "Falling back to default settings. Please check your config file.",
                    config_path,
                    e,
                )
        else:
            log.debug("No config file found. Using default settings for lazy load.")

        try:
            return Config()
        except ValidationError as e:
            log.critical("FATAL: Default configuration is invalid: %s", e, exc_info=True)
            raise RuntimeError(f"Default configuration is invalid, cannot start: {e}") from e


# --- Global Settings Instance ---
settings: "Config" = cast("Config", LazyConfig())
