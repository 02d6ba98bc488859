"""TOML config loading and profiles."""

from __future__ import annotations

import logging
import os
import tomllib
from decimal import Decimal
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from dexmaker.errors import ConfigError
from dexmaker.models.asset import CORE_ASSET_ID

# Default config search path (project root or cwd)
_CONFIG_DIR = Path(__file__).resolve().parent.parent.parent.parent / "config"
_CWD_CONFIG = Path.cwd() / "config"

KEYS_ENV_VAR = "DEXMAKER_KEYS"
PROVIDER_KINDS = ("feed", "index")


def _load_toml(path: Path) -> dict[str, Any]:
    with open(path, "rb") as f:
        return tomllib.load(f)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into base. Override values take precedence."""
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _find_config_dir(config_dir: Path | None = None) -> Path:
    if config_dir is not None:
        return config_dir
    if _CWD_CONFIG.exists():
        return _CWD_CONFIG
    return _CONFIG_DIR


def load_config(profile: str | None = None, config_dir: Path | None = None) -> dict[str, Any]:
    """Load merged config from default.toml and optional profile overlay."""
    config_dir = _find_config_dir(config_dir)
    default_path = config_dir / "default.toml"
    if not default_path.exists():
        return {}
    base = _load_toml(default_path)
    if profile:
        profile_path = config_dir / f"{profile}.toml"
        if profile_path.exists():
            overlay = _load_toml(profile_path)
            base = _deep_merge(base, overlay)
    return base


def get_settings(profile: str | None = None, config_dir: Path | None = None) -> Settings:
    """Return Settings instance from merged config."""
    raw = load_config(profile, config_dir)
    return Settings.from_dict(raw)


class MarketConfig(BaseModel):
    """Per-market maker parameters ([[markets]] entries)."""

    base: str
    quote: str
    spread: float = Field(0.0, ge=0)
    threshold: float = Field(0.0, ge=0)
    expiration: int = Field(3600, gt=0, description="Order lifetime, seconds")
    amount: float = Field(..., gt=0, description="Target volume per side, base units")
    order_count: int = Field(1, ge=1, alias="orders")
    spread_step: float = Field(0.0, ge=0)

    model_config = {"populate_by_name": True}

    @property
    def display_name(self) -> str:
        return f"{self.base}/{self.quote}"


class Settings:
    """Application settings from TOML config."""

    def __init__(
        self,
        *,
        node: dict[str, Any] | None = None,
        account: dict[str, Any] | None = None,
        maker: dict[str, Any] | None = None,
        markets: list[dict[str, Any]] | None = None,
        price_provider: dict[str, Any] | None = None,
        logging: dict[str, Any] | None = None,
    ):
        self.node = node or {}
        self.account = account or {}
        self.maker = maker or {}
        self.raw_markets = markets or []
        self.price_provider = price_provider or {}
        self.logging = logging or {}

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Settings:
        return cls(
            node=raw.get("node"),
            account=raw.get("account"),
            maker=raw.get("maker"),
            markets=raw.get("markets"),
            price_provider=raw.get("price_provider"),
            logging=raw.get("logging"),
        )

    # Convenience accessors with defaults
    @property
    def node_url(self) -> str:
        return os.path.expandvars(self.node.get("url", "http://127.0.0.1:8090/rpc"))

    @property
    def wallet_url(self) -> str:
        return os.path.expandvars(self.node.get("wallet_url", "http://127.0.0.1:8093/rpc"))

    @property
    def wallet_password(self) -> str:
        return os.path.expandvars(self.node.get("wallet_password", ""))

    @property
    def rpc_timeout_sec(self) -> float:
        return float(self.node.get("timeout_sec", 10.0))

    @property
    def account_name(self) -> str:
        return self.account.get("name", "")

    @property
    def fee_reserve(self) -> Decimal:
        return Decimal(str(self.account.get("fee_reserve", 0)))

    @property
    def fee_asset(self) -> str:
        return self.account.get("fee_asset", CORE_ASSET_ID)

    @property
    def keys(self) -> list[str]:
        keys = list(self.account.get("keys") or [])
        env_keys = os.environ.get(KEYS_ENV_VAR, "")
        keys.extend(k.strip() for k in env_keys.split(",") if k.strip())
        return keys

    @property
    def update_interval_sec(self) -> float:
        return float(self.maker.get("update_interval_sec", 3.0))

    @property
    def order_book_depth(self) -> int:
        return int(self.maker.get("order_book_depth", 50))

    @property
    def markets(self) -> list[MarketConfig]:
        try:
            return [MarketConfig.model_validate(m) for m in self.raw_markets]
        except ValidationError as e:
            raise ConfigError(f"Invalid market configuration: {e}") from e

    @property
    def price_provider_kind(self) -> str:
        kind = self.price_provider.get("kind", "feed")
        if kind not in PROVIDER_KINDS:
            raise ConfigError(f"Unknown price provider '{kind}', expected one of {PROVIDER_KINDS}")
        return kind

    @property
    def index(self) -> dict[str, Any]:
        return self.price_provider.get("index") or {}

    @property
    def index_url(self) -> str:
        return self.index.get("url", "https://api.coinmarketcap.com")

    @property
    def index_bulk_size(self) -> int:
        return int(self.index.get("bulk_size", 100))

    @property
    def index_refresh_interval_sec(self) -> float:
        return float(self.index.get("refresh_interval_sec", 60.0))

    @property
    def logging_level(self) -> str:
        return self.logging.get("level", "INFO").upper()

    @property
    def logging_format(self) -> str:
        return self.logging.get("format", "console")

    @property
    def logging_level_num(self) -> int:
        return getattr(logging, self.logging_level, logging.INFO)


def configure_logging(settings: Settings) -> None:
    """Configure structlog with settings. Call once at application entry."""
    import structlog

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if settings.logging_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(settings.logging_level_num),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
