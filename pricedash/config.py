from __future__ import annotations

import logging
import os
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)

# Raw CSV columns the cleaner knows about.
ENGINE_SIZE_COL = "engine_size"
PRICE_COL = "avg_price_brl"
YEAR_MODEL_COL = "year_model"
FUEL_COL = "fuel"
BRAND_COL = "brand"
GEAR_COL = "gear"
MONTH_REF_COL = "month_of_reference"
YEAR_REF_COL = "year_of_reference"

DEFAULT_BRAND = "Outros"
UNKNOWN_GEAR = "Desconhecido"
NO_BRAND = "-"
BRAND_SEPARATOR = " - "

GEAR_AUTOMATIC = "automatic"
GEAR_MANUAL = "manual"

TOP_N_BRANDS_DEFAULT = 10
TOP_N_GROUPED_DEFAULT = 6

COLORS = ["#0088FE", "#00C49F", "#FFBB28", "#FF8042", "#8884d8", "#82ca9d", "#ffc658"]

BRAND_COLORS = {
    "Ford": "#003478",
    "VW": "#001E50",
    "GM": "#2951A3",
    "Fiat": "#AD0F2F",
    "Renault": "#FFCC33",
    "Nissan": "#C3002F",
    "Chevrolet": "#2951A3",
    "Toyota": "#EB0A1E",
    "Honda": "#CC0000",
    "Hyundai": "#002C5F",
}
BRAND_COLOR_FALLBACK = "#3b82f6"

GEAR_COLORS = {
    GEAR_AUTOMATIC: "#1B4F72",
    GEAR_MANUAL: "#2874A6",
}

EVOLUTION_LINE_COLOR = "#ff7300"


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if not raw:
        return list(default)
    return [item.strip() for item in raw.split(",") if item.strip()]


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r (not a number)", name, raw)
        return default


def _env_domain(name: str) -> Optional[Tuple[float, float]]:
    raw = os.getenv(name)
    if not raw:
        return None
    try:
        lo, hi = (float(part) for part in raw.split(","))
    except ValueError:
        logger.warning("Ignoring %s=%r (expected 'min,max')", name, raw)
        return None
    return (lo, hi) if lo < hi else None


CORS_ORIGINS = _env_list("PRICEDASH_CORS_ORIGINS", ["http://localhost:3000", "http://127.0.0.1:3000"])
MAX_UPLOAD_MB = _env_float("PRICEDASH_MAX_UPLOAD_MB", 50.0)
EVOLUTION_Y_DOMAIN = _env_domain("PRICEDASH_EVOLUTION_Y_DOMAIN")
