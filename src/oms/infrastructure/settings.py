"""Shop configuration.

Read once at start-up from ``<data_dir>/settings.json`` (optional), then
overridden by ``OMS_*`` environment variables (a ``.env`` file in the
working directory is loaded into the environment first).  Invalid values fail
fast with ConfigurationError.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path

from dotenv import load_dotenv

from oms.domain.exceptions import DomainException
from oms.domain.model.pricing import PriceRoundMode, PricingContext, RoundingPolicy

logger = logging.getLogger(__name__)

# Resolve data directory relative to the project root.
# When installed in editable mode the project root is the repo root.
DEFAULT_DATA_DIR = Path(__file__).resolve().parents[3] / "data"

TAX_ADDRESS_TYPES = ("invoice", "delivery")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigurationError(DomainException):
    """Raised when configuration is invalid."""


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    round_type: RoundingPolicy = RoundingPolicy.ITEM
    price_round_mode: PriceRoundMode = PriceRoundMode.HALF_UP
    computing_precision: int = 2
    default_currency: str = "EUR"
    invoice_prefix: str = "#IN"
    invoice_start_number: int = 0
    tax_address_type: str = "invoice"
    allow_out_of_stock_ordering: bool = False
    wrapping_fee: Decimal = Decimal("0")
    wrapping_tax_rate: Decimal = Decimal("0")
    log_level: str = "WARNING"

    def pricing_context(self) -> PricingContext:
        """Shop-wide context every order edit starts from."""
        return PricingContext(
            currency=self.default_currency,
            precision=self.computing_precision,
            rounding_policy=self.round_type,
            round_mode=self.price_round_mode,
        )


def load_settings(
    data_dir: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    if environ is None:
        load_environment()
    env = os.environ if environ is None else environ
    data_dir = Path(data_dir or env.get("OMS_DATA_DIR") or DEFAULT_DATA_DIR)

    raw = _read_settings_file(data_dir / "settings.json")
    if "OMS_ROUND_TYPE" in env:
        raw["round_type"] = env["OMS_ROUND_TYPE"]
    if "OMS_LOG_LEVEL" in env:
        raw["log_level"] = env["OMS_LOG_LEVEL"]

    try:
        settings = Settings(
            data_dir=data_dir,
            round_type=RoundingPolicy(raw.get("round_type", "item")),
            price_round_mode=PriceRoundMode(raw.get("price_round_mode", "half_up")),
            computing_precision=int(raw.get("computing_precision", 2)),
            default_currency=str(raw.get("default_currency", "EUR")),
            invoice_prefix=str(raw.get("invoice_prefix", "#IN")),
            invoice_start_number=int(raw.get("invoice_start_number", 0)),
            tax_address_type=str(raw.get("tax_address_type", "invoice")),
            allow_out_of_stock_ordering=_flag(raw, "allow_out_of_stock_ordering"),
            wrapping_fee=Decimal(str(raw.get("wrapping_fee", "0"))),
            wrapping_tax_rate=Decimal(str(raw.get("wrapping_tax_rate", "0"))),
            log_level=str(raw.get("log_level", "WARNING")).upper(),
        )
    except (ValueError, TypeError, InvalidOperation) as exc:
        raise ConfigurationError(f"Invalid settings: {exc}") from exc

    if settings.tax_address_type not in TAX_ADDRESS_TYPES:
        raise ConfigurationError(
            f"tax_address_type must be one of {', '.join(TAX_ADDRESS_TYPES)}"
        )
    if settings.log_level not in LOG_LEVELS:
        raise ConfigurationError(f"Unknown log level '{settings.log_level}'")
    if settings.computing_precision < 0:
        raise ConfigurationError("computing_precision cannot be negative")
    return settings


def _flag(raw: dict, key: str) -> bool:
    value = raw.get(key, False)
    if not isinstance(value, bool):
        raise ConfigurationError(f"{key} must be true or false, got {value!r}")
    return value


def load_environment(env_path: Path = Path(".env")) -> None:
    """Load variables from *env_path* when present; real variables win."""
    if env_path.exists():
        load_dotenv(env_path)
        logger.debug("Loaded environment from %s", env_path)


def _read_settings_file(path: Path) -> dict:
    if not path.exists():
        logger.debug("No settings file at %s, using defaults", path)
        return {}
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigurationError(f"Cannot read {path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigurationError(f"{path} must contain a JSON object")
    return raw
