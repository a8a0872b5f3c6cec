"""Admission policy, provider selection, network settings."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

from gate.net.admission import AdmissionController

logger = logging.getLogger(__name__)


@dataclass
class GateConfig:
    # Versions
    service_version: str = "0.1.0"

    # Network
    host: str = "0.0.0.0"
    port: int = 8787
    cors_allow_all: bool = True
    cors_allowed_origins: list[str] = field(default_factory=list)

    # Admission
    per_client_cooldown: float = 5.0
    global_max_tokens: int = 3
    global_refill_interval: float = 60.0
    stale_entry_ttl: float = 60.0
    maintenance_interval: float = 60.0

    # Analysis
    provider: str = "mock"
    api_key: str = ""
    model: str = "mixtral-8x7b-32768"
    max_text_length: int = 3000
    cache_size: int = 100
    mock_delay_sec: float = 0.0

    # Diagnostics
    dev_mode: bool = False
    log_level: str = "INFO"

    def admission_controller(self, **kwargs) -> AdmissionController:
        return AdmissionController(
            cooldown=self.per_client_cooldown,
            max_tokens=self.global_max_tokens,
            refill_interval=self.global_refill_interval,
            stale_ttl=self.stale_entry_ttl,
            **kwargs,
        )

    @staticmethod
    def _parse_bool(v: str | None, default: bool) -> bool:
        if v is None:
            return default
        return v.strip().lower() in ("1", "true", "yes", "on")

    @staticmethod
    def _parse_num(name: str, cast, default):
        v = os.environ.get(name)
        if v is None or not v.strip():
            return default
        try:
            return cast(v)
        except ValueError:
            logger.warning("ignoring invalid %s=%r", name, v)
            return default

    @classmethod
    def from_env(cls) -> "GateConfig":
        cfg = cls()
        cfg.host = os.environ.get("GATE_HOST", cfg.host)
        cfg.port = cls._parse_num("GATE_PORT", int, cfg.port)
        cfg.cors_allow_all = cls._parse_bool(os.environ.get("GATE_CORS_ALLOW_ALL"), cfg.cors_allow_all)
        origins = os.environ.get("GATE_CORS_ORIGINS")
        if origins:
            cfg.cors_allowed_origins = [o.strip() for o in origins.split(",") if o.strip()]

        cfg.per_client_cooldown = cls._parse_num("GATE_CLIENT_COOLDOWN_SEC", float, cfg.per_client_cooldown)
        cfg.global_max_tokens = cls._parse_num("GATE_GLOBAL_MAX_TOKENS", int, cfg.global_max_tokens)
        cfg.global_refill_interval = cls._parse_num("GATE_GLOBAL_REFILL_SEC", float, cfg.global_refill_interval)
        cfg.stale_entry_ttl = cls._parse_num("GATE_STALE_TTL_SEC", float, cfg.stale_entry_ttl)
        cfg.maintenance_interval = cls._parse_num("GATE_MAINTENANCE_SEC", float, cfg.maintenance_interval)

        cfg.provider = os.environ.get("GATE_PROVIDER", cfg.provider).strip().lower()
        cfg.api_key = os.environ.get("GATE_API_KEY", cfg.api_key)
        cfg.model = os.environ.get("GATE_MODEL", cfg.model)
        cfg.max_text_length = cls._parse_num("GATE_MAX_TEXT_LENGTH", int, cfg.max_text_length)
        cfg.cache_size = cls._parse_num("GATE_CACHE_SIZE", int, cfg.cache_size)

        cfg.dev_mode = cls._parse_bool(os.environ.get("GATE_DEV_MODE"), cfg.dev_mode)
        cfg.log_level = os.environ.get("GATE_LOG_LEVEL", cfg.log_level).upper()
        return cfg
