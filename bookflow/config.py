"""
Centralized configuration with environment variable overrides.

Pricing constants, workflow timeouts, and delivery credentials are all
configurable here. Nothing is hardcoded in workflow or pricing logic.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

DELIVERY_BACKENDS = ("log", "twilio")


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


@dataclass(frozen=True)
class PricingConfig:
    """Deposit and display settings used by the cost calculator."""

    deposit_percentage: float = _safe_float("DEPOSIT_PERCENTAGE", "0.30")
    referral_fee_percentage: float = _safe_float("REFERRAL_FEE_PERCENTAGE", "0.10")
    currency_symbol: str = os.getenv("CURRENCY_SYMBOL", "$")


@dataclass(frozen=True)
class WorkflowConfig:
    """Booking lifecycle settings."""

    request_timeout_sec: float = _safe_float("REQUEST_TIMEOUT_SEC", "10.0")
    performer_prompt_delay_sec: float = _safe_float("PERFORMER_PROMPT_DELAY_SEC", "0")
    admin_display_name: str = os.getenv("ADMIN_DISPLAY_NAME", "Admin")
    receipt_path_prefix: str = os.getenv("RECEIPT_PATH_PREFIX", "simulated/receipt-")
    referral_receipt_path_prefix: str = os.getenv(
        "REFERRAL_RECEIPT_PATH_PREFIX", "referral-receipts/receipt-"
    )


@dataclass(frozen=True)
class DeliveryConfig:
    """Outbound SMS / WhatsApp delivery settings."""

    backend: str = os.getenv("DELIVERY_BACKEND", "log")
    twilio_account_sid: str = os.getenv("TWILIO_ACCOUNT_SID", "")
    twilio_auth_token: str = os.getenv("TWILIO_AUTH_TOKEN", "")
    twilio_from_number: str = os.getenv("TWILIO_FROM_NUMBER", "")
    twilio_api_base: str = os.getenv("TWILIO_API_BASE", "https://api.twilio.com/2010-04-01")
    send_timeout_sec: float = _safe_float("DELIVERY_TIMEOUT_SEC", "15.0")
    app_url: str = os.getenv("APP_URL", "http://localhost:3000")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    pricing: PricingConfig = field(default_factory=PricingConfig)
    workflow: WorkflowConfig = field(default_factory=WorkflowConfig)
    delivery: DeliveryConfig = field(default_factory=DeliveryConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    platform_name: str = os.getenv("PLATFORM_NAME", "Flavor Entertainers")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if not 0.0 <= config.pricing.deposit_percentage <= 1.0:
        raise ValueError(
            "DEPOSIT_PERCENTAGE must be between 0.0 and 1.0, "
            f"got {config.pricing.deposit_percentage}"
        )
    if not 0.0 <= config.pricing.referral_fee_percentage <= 1.0:
        raise ValueError(
            "REFERRAL_FEE_PERCENTAGE must be between 0.0 and 1.0, "
            f"got {config.pricing.referral_fee_percentage}"
        )
    if config.workflow.request_timeout_sec <= 0:
        raise ValueError(
            f"REQUEST_TIMEOUT_SEC must be > 0, got {config.workflow.request_timeout_sec}"
        )
    if config.workflow.performer_prompt_delay_sec < 0:
        raise ValueError(
            "PERFORMER_PROMPT_DELAY_SEC must be >= 0, "
            f"got {config.workflow.performer_prompt_delay_sec}"
        )
    if not config.workflow.admin_display_name.strip():
        raise ValueError("ADMIN_DISPLAY_NAME must not be empty")
    if config.delivery.backend not in DELIVERY_BACKENDS:
        raise ValueError(
            f"DELIVERY_BACKEND must be one of {DELIVERY_BACKENDS}, got {config.delivery.backend!r}"
        )
    if config.delivery.send_timeout_sec <= 0:
        raise ValueError(
            f"DELIVERY_TIMEOUT_SEC must be > 0, got {config.delivery.send_timeout_sec}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.info("Configuration loaded for '%s'", config.platform_name)
    return config


# Singleton instance
settings = load_config()
