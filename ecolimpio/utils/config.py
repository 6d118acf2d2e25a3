"""
Configuration management with schema validation.
Single source of truth for EcoLimpio configuration.

Resolution order: defaults < config/settings.yaml (with ${VAR} substitution)
< environment variables.
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

from .exceptions import ConfigError

SETTINGS_FILE = Path(os.getenv("SETTINGS_FILE", "config/settings.yaml"))


class AppSettings(BaseModel):
    name: str = "EcoLimpio"
    version: str = "1.0.0"
    environment: str = "production"
    base_url: str = "https://ecolimpio.es"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def cookie_domain(self) -> Optional[str]:
        """Bare apex host for production cookies; host-only cookies elsewhere."""
        if not self.is_production:
            return None
        return urlparse(self.base_url).hostname


class DatabaseSettings(BaseModel):
    path: str = "data/ecolimpio.db"


class SessionSettings(BaseModel):
    cookie_name: str = "session_token"
    expiry_days: int = 7
    hash_max_attempts: int = 5


class SecuritySettings(BaseModel):
    bcrypt_rounds: int = 12
    max_failed_attempts: int = 5
    lockout_minutes: int = 15
    code_ttl_minutes: int = 10
    code_resend_seconds: int = 60


class CaptchaSettings(BaseModel):
    secret_key: Optional[str] = None
    verify_url: str = "https://www.google.com/recaptcha/api/siteverify"
    min_score: float = 0.5
    timeout_seconds: float = 8.0


class SmsSettings(BaseModel):
    api_key: Optional[str] = None
    api_url: str = "https://api.bird.com/workspaces/default/channels/sms/messages"
    timeout_seconds: float = 8.0
    max_attempts: int = 2


class LoggingSettings(BaseModel):
    level: str = "INFO"
    format: str = "json"
    file_path: Optional[str] = None
    max_bytes: int = 10485760
    backup_count: int = 5


class MaintenanceSettings(BaseModel):
    enabled: bool = True
    interval_seconds: int = 60


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    session: SessionSettings = Field(default_factory=SessionSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    captcha: CaptchaSettings = Field(default_factory=CaptchaSettings)
    sms: SmsSettings = Field(default_factory=SmsSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    maintenance: MaintenanceSettings = Field(default_factory=MaintenanceSettings)


# (section, field) pairs overridable from the environment
ENV_OVERRIDES = {
    "ENVIRONMENT": ("app", "environment"),
    "BASE_URL": ("app", "base_url"),
    "DATABASE_PATH": ("database", "path"),
    "RECAPTCHA_SECRET_KEY": ("captcha", "secret_key"),
    "BIRD_API_KEY": ("sms", "api_key"),
    "BIRD_API_URL": ("sms", "api_url"),
    "LOG_LEVEL": ("logging", "level"),
    "LOG_FORMAT": ("logging", "format"),
    "LOG_FILE": ("logging", "file_path"),
}


class ConfigManager:
    """Singleton configuration manager"""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(ConfigManager, cls).__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self.settings_path = SETTINGS_FILE
        self._settings: Optional[Settings] = None
        self._initialized = True

    def _substitute_env_vars(self, value: Any) -> Any:
        """Recursively substitute ${VAR} and ${VAR:default} references"""
        if isinstance(value, str):
            if value.startswith("${") and value.endswith("}"):
                var_expr = value[2:-1]
                if ":" in var_expr:
                    var_name, default = var_expr.split(":", 1)
                    return os.getenv(var_name.strip(), default.strip())
                return os.getenv(var_expr, value)
        elif isinstance(value, dict):
            return {k: self._substitute_env_vars(v) for k, v in value.items()}
        elif isinstance(value, list):
            return [self._substitute_env_vars(item) for item in value]
        return value

    def _read_yaml(self) -> Dict[str, Any]:
        if not self.settings_path.exists():
            return {}
        try:
            with open(self.settings_path, "r", encoding="utf-8") as f:
                raw_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid settings file {self.settings_path}: {e}")
        if not isinstance(raw_data, dict):
            raise ConfigError(f"Settings file {self.settings_path} must contain a mapping")
        return self._substitute_env_vars(raw_data)

    def load_settings(self) -> Settings:
        """Load .env, then settings.yaml, then environment overrides"""
        load_dotenv()
        data = self._read_yaml()
        for env_name, (section, field) in ENV_OVERRIDES.items():
            value = os.getenv(env_name)
            if value:
                data.setdefault(section, {})[field] = value
        try:
            self._settings = Settings(**data)
        except ValueError as e:
            raise ConfigError(f"Invalid configuration: {e}")
        return self._settings

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            return self.load_settings()
        return self._settings


# Global instance
config_manager = ConfigManager()
