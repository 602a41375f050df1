"""Configuration management for TirePoint Search."""

from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings


class DatabaseConfig(BaseModel):
    """Database configuration."""

    url: str = "sqlite:///data/db/tirepoint.db"
    echo: bool = False


class SearchConfig(BaseModel):
    """Vehicle and tire lookup configuration.

    Taxonomy and post type names default to the ones used by the live
    catalog. The candidate lists are tried in order when looking up
    vehicles and tires, since older imports used different names.
    """

    make_taxonomy: str = "vehicle-make"
    model_taxonomy: str = "vehicles-model"
    year_taxonomy: str = "vehicle-model-year"
    vehicle_post_type: str = "vehicle-model"
    product_post_type: str = "product"
    vehicle_meta_key: str = "_vehicle_id"

    taxonomy_pairs: List[List[str]] = Field(
        default_factory=lambda: [
            ["vehicle-make", "vehicles-model"],
            ["make", "model"],
            ["car-make", "car-model"],
        ]
    )
    vehicle_post_types: List[str] = Field(
        default_factory=lambda: ["vehicle-model", "vehicle", "car", "product"]
    )
    product_taxonomies: List[str] = Field(
        default_factory=lambda: [
            "vehicle-make",
            "make",
            "car-make",
            "vehicles-model",
            "model",
            "car-model",
        ]
    )

    results_limit: int = 12
    fuzzy_threshold: float = 85.0
    catalog_fallback: bool = True
    demo_fallback: bool = True

    log_searches: bool = True
    search_log_option: str = "tpsf_search_log"
    search_log_limit: int = 100


class CommerceConfig(BaseModel):
    """Price display configuration."""

    enabled: bool = False  # sale-aware price html
    currency_symbol: str = "$"


class APIConfig(BaseModel):
    """API configuration."""

    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])


class SecurityConfig(BaseModel):
    """Nonce configuration."""

    require_nonce: bool = True
    nonce_action: str = "tpsf_nonce"
    nonce_lifetime: int = 86400


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: str = "json"
    file: str = "data/logs/tirepoint.log"


class Config(BaseModel):
    """Main configuration model."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    commerce: CommerceConfig = Field(default_factory=CommerceConfig)
    api: APIConfig = Field(default_factory=APIConfig)
    security: SecurityConfig = Field(default_factory=SecurityConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


class Settings(BaseSettings):
    """Environment-based settings."""

    # Database
    database_url: str = ""

    # Nonce signing
    secret_key: str = "change-me"

    # Logging
    log_level: str = ""

    # API
    api_host: str = ""
    api_port: int = 0

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


class ConfigManager:
    """Configuration manager for loading and merging config sources."""

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize configuration manager.

        Args:
            config_path: Path to YAML configuration file
        """
        load_dotenv()

        if config_path is None:
            config_path = Path(__file__).parent.parent.parent / "config" / "config.yaml"

        self.config_path = config_path
        self.yaml_config = self._load_yaml()

        self.env_settings = Settings()

        self.config = self._merge_config()

    def _load_yaml(self) -> Dict[str, Any]:
        """Load YAML configuration file."""
        if not self.config_path.exists():
            return {}

        with open(self.config_path, "r") as f:
            return yaml.safe_load(f) or {}

    def _merge_config(self) -> Config:
        """Merge YAML config with environment variables."""
        merged = self.yaml_config.copy()

        if self.env_settings.database_url:
            merged.setdefault("database", {})["url"] = self.env_settings.database_url

        if self.env_settings.log_level:
            merged.setdefault("logging", {})["level"] = self.env_settings.log_level

        if self.env_settings.api_host:
            merged.setdefault("api", {})["host"] = self.env_settings.api_host

        if self.env_settings.api_port:
            merged.setdefault("api", {})["port"] = self.env_settings.api_port

        return Config(**merged)


# Global config instance
_config_manager: Optional[ConfigManager] = None


def get_config_manager() -> ConfigManager:
    """Get configuration manager instance."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager


def get_config() -> Config:
    """Get global configuration instance."""
    return get_config_manager().config


def get_settings() -> Settings:
    """Get environment settings."""
    return get_config_manager().env_settings
