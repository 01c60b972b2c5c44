"""Configuration management using pydantic-settings."""

from functools import lru_cache
from pathlib import Path
from typing import Dict, Optional

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseConfig(BaseModel):
    """Database engine settings."""
    echo: bool = False
    connect_retries: int = 5
    retry_delay: int = 1


class PricingConfig(BaseModel):
    """Cart and discount rules."""
    discount_epsilon: float = 0.01
    floor_margin_rate: float = 0.05
    floor_margin_minimum: float = 1.0
    default_stock_threshold: int = 10


class PurchaseOrderConfig(BaseModel):
    """Purchase order business rules."""
    deletion_window_hours: int = 24


class OrdersConfig(BaseModel):
    """Order history paging."""
    default_page_size: int = 25
    max_page_size: int = 100


class AuthConfig(BaseModel):
    """Shop identity header verification."""
    validate_signature: bool = True


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    max_bytes: int = 10485760  # 10MB
    backup_count: int = 5
    # Logger name -> rotating log file; loggers without an entry are console only
    files: Dict[str, str] = Field(default_factory=lambda: {
        "orders": "logs/orders.log",
        "inventory": "logs/inventory.log",
        "error": "logs/error.log",
    })
    # Per-logger level overrides
    levels: Dict[str, str] = Field(default_factory=lambda: {"error": "ERROR"})


class SchedulerConfig(BaseModel):
    """Scheduler configuration."""
    timezone: str = "UTC"
    max_instances: int = 1
    coalesce: bool = True
    misfire_grace_time: int = 300

    low_stock_scan_minutes: int = 60
    initial_scan_delay_seconds: int = 15


class YAMLConfig(BaseModel):
    """Configuration loaded from YAML file."""
    database: DatabaseConfig = DatabaseConfig()
    pricing: PricingConfig = PricingConfig()
    purchase_orders: PurchaseOrderConfig = PurchaseOrderConfig()
    orders: OrdersConfig = OrdersConfig()
    auth: AuthConfig = AuthConfig()
    logging: LoggingConfig = LoggingConfig()
    scheduler: SchedulerConfig = SchedulerConfig()


class Settings(BaseSettings):
    """Application settings from environment variables."""

    database_url: str = Field(default="sqlite:///./retail_pos.db", description="SQLAlchemy database URL")
    session_secret: str = Field(..., description="HMAC key shared with the session provider")

    # Application settings
    environment: str = Field(default="development", description="Environment (development/production)")
    log_level: Optional[str] = Field(default=None, description="Override log level")
    port: int = Field(default=8000, description="Server port")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


class AppConfig:
    """Combined application configuration."""

    def __init__(self):
        self.env = Settings()

        # Load YAML config
        config_path = Path(__file__).parent.parent.parent / "config" / "config.yml"
        if config_path.exists():
            with open(config_path, "r") as f:
                yaml_data = yaml.safe_load(f) or {}
                self.yaml = YAMLConfig(**yaml_data)
        else:
            self.yaml = YAMLConfig()

        # Override log level if specified in env
        if self.env.log_level:
            self.yaml.logging.level = self.env.log_level

    @property
    def database(self) -> DatabaseConfig:
        return self.yaml.database

    @property
    def pricing(self) -> PricingConfig:
        return self.yaml.pricing

    @property
    def purchase_orders(self) -> PurchaseOrderConfig:
        return self.yaml.purchase_orders

    @property
    def orders(self) -> OrdersConfig:
        return self.yaml.orders

    @property
    def auth(self) -> AuthConfig:
        return self.yaml.auth

    @property
    def logging(self) -> LoggingConfig:
        return self.yaml.logging

    @property
    def scheduler(self) -> SchedulerConfig:
        return self.yaml.scheduler

    @property
    def is_production(self) -> bool:
        return self.env.environment.lower() == "production"


@lru_cache()
def get_config() -> AppConfig:
    """Get cached configuration instance."""
    return AppConfig()
