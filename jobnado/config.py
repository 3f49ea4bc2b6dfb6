"""Load env configuration and optional settings.yaml defaults."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from jobnado.log import get_logger

log = get_logger(__name__)

load_dotenv()

ROOT_DIR: Path = Path(__file__).resolve().parent.parent
CONFIG_DIR: Path = ROOT_DIR / "config"
SETTINGS_PATH: Path = CONFIG_DIR / "settings.yaml"
REPORTS_DIR: Path = ROOT_DIR / "reports"
DATA_DIR: Path = ROOT_DIR / "data"

GEMINI_OPENAI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"
DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_FROM = "JobNado AI <noreply@jobnadoai.xyz>"


class ConfigError(RuntimeError):
    """A required credential or setting is missing."""


@dataclass
class Settings:
    gemini_api_key: str = ""
    llm_base_url: str = GEMINI_OPENAI_BASE_URL
    analysis_model: str = DEFAULT_MODEL
    search_model: str = DEFAULT_MODEL
    search_retry_strategy: str = "backoff"
    default_country: str = "United States"
    alert_store: str = "csv"
    supabase_url: str = ""
    supabase_key: str = ""
    email_backend: str = "smtp"
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    resend_api_key: str = ""
    alert_from_email: str = DEFAULT_FROM
    alert_run_hour_utc: int = 8


# settings.yaml key -> (env var, Settings field)
_KEYS: dict[str, tuple[str, str]] = {
    "gemini_api_key": ("GEMINI_API_KEY", "gemini_api_key"),
    "llm_base_url": ("LLM_BASE_URL", "llm_base_url"),
    "analysis_model": ("ANALYSIS_MODEL", "analysis_model"),
    "search_model": ("SEARCH_MODEL", "search_model"),
    "search_retry_strategy": ("SEARCH_RETRY_STRATEGY", "search_retry_strategy"),
    "default_country": ("DEFAULT_COUNTRY", "default_country"),
    "alert_store": ("ALERT_STORE", "alert_store"),
    "supabase_url": ("SUPABASE_URL", "supabase_url"),
    "supabase_key": ("SUPABASE_SERVICE_ROLE_KEY", "supabase_key"),
    "email_backend": ("EMAIL_BACKEND", "email_backend"),
    "smtp_host": ("SMTP_HOST", "smtp_host"),
    "smtp_port": ("SMTP_PORT", "smtp_port"),
    "smtp_user": ("SMTP_USER", "smtp_user"),
    "smtp_password": ("SMTP_PASSWORD", "smtp_password"),
    "resend_api_key": ("RESEND_API_KEY", "resend_api_key"),
    "alert_from_email": ("ALERT_FROM_EMAIL", "alert_from_email"),
    "alert_run_hour_utc": ("ALERT_RUN_HOUR_UTC", "alert_run_hour_utc"),
}

_INT_FIELDS = {"smtp_port", "alert_run_hour_utc"}


def get_env(key: str, default: str = "") -> str:
    return os.environ.get(key, default).strip()


def load_settings_file(path: Path | None = None) -> dict[str, Any]:
    path = path or SETTINGS_PATH
    if not path.exists():
        return {}
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        log.warning("Ignoring %s: expected a mapping, got %s", path.name, type(data).__name__)
        return {}
    return data


def load_settings(path: Path | None = None) -> Settings:
    """settings.yaml values first, environment variables override them."""
    file_values = load_settings_file(path)
    settings = Settings()
    for yaml_key, (env_key, field_name) in _KEYS.items():
        raw: Any = get_env(env_key) or file_values.get(yaml_key)
        if raw in (None, ""):
            continue
        if field_name in _INT_FIELDS:
            try:
                raw = int(raw)
            except (TypeError, ValueError):
                log.warning("Invalid integer for %s: %r — keeping default", env_key, raw)
                continue
        else:
            raw = str(raw).strip()
        setattr(settings, field_name, raw)

    if settings.search_retry_strategy not in ("backoff", "fast"):
        log.warning("Unknown SEARCH_RETRY_STRATEGY %r — using 'backoff'", settings.search_retry_strategy)
        settings.search_retry_strategy = "backoff"
    return settings


def require(value: str, name: str) -> str:
    if not value:
        raise ConfigError(f"{name} is not set (add it to .env or config/settings.yaml)")
    return value
