from __future__ import annotations

import logging
import math
import re
from decimal import ROUND_HALF_DOWN, ROUND_HALF_UP, Decimal
from functools import lru_cache
from typing import Dict, Iterable, List, Mapping, Optional

import pandas as pd

from pricedash.config import (
    BRAND_COL,
    BRAND_SEPARATOR,
    DEFAULT_BRAND,
    ENGINE_SIZE_COL,
    FUEL_COL,
    GEAR_COL,
    PRICE_COL,
    YEAR_MODEL_COL,
)
from pricedash.parsing import read_csv_records

logger = logging.getLogger(__name__)

_FLOAT_PREFIX = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_INT_PREFIX = re.compile(r"^[+-]?\d+")

CLEAN_COLUMNS = [
    "engine_size_clean",
    "avg_price_clean",
    "year_model_clean",
    "fuel_clean",
    "brand_clean",
]


def _is_missing(value: object) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def parse_decimal(value: object, *, decimal_comma: bool = False) -> float:
    """Best-effort float from the leading numeric prefix of ``value``.

    ``"1,6"`` with ``decimal_comma=True`` -> 1.6. Returns NaN when nothing
    numeric leads the text or the number overflows (``"1e999"``).
    """
    if _is_missing(value):
        return math.nan
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        out = float(value)
    else:
        s = str(value).replace('"', "").strip()
        if decimal_comma:
            s = s.replace(",", ".", 1)
        match = _FLOAT_PREFIX.match(s)
        if not match:
            return math.nan
        out = float(match.group(0))
    return out if math.isfinite(out) else math.nan


def parse_int(value: object) -> Optional[int]:
    if _is_missing(value):
        return None
    match = _INT_PREFIX.match(str(value).strip())
    if not match:
        return None
    return int(match.group(0))


def normalize_brand(value: object) -> str:
    if _is_missing(value):
        return DEFAULT_BRAND
    s = str(value).strip()
    if not s:
        return DEFAULT_BRAND
    return s.split(BRAND_SEPARATOR)[0].strip()


def normalize_text(value: object) -> Optional[str]:
    if _is_missing(value):
        return None
    s = str(value).strip()
    return s or None


def round_half_ceiling(value: object) -> Optional[int]:
    """Round to an integer with ties going towards +inf (-2.5 -> -2, 2.5 -> 3)."""
    if value is None or pd.isna(value) or not math.isfinite(float(value)):
        return None
    d = Decimal(str(value))
    return int(d.quantize(Decimal(1), rounding=ROUND_HALF_UP if d >= 0 else ROUND_HALF_DOWN))


def clean_records(records: Iterable[Mapping[str, object]]) -> pd.DataFrame:
    """Coerce known fields into ``*_clean`` columns and drop unusable rows.

    Rows are kept only when the price parses to a number and a brand is left
    after normalization. Unknown columns pass through untouched.
    """
    df = pd.DataFrame(list(records))
    if df.empty:
        return pd.DataFrame(columns=CLEAN_COLUMNS)

    def column(name: str) -> pd.Series:
        if name in df.columns:
            return df[name]
        return pd.Series([None] * len(df), index=df.index, dtype=object)

    df["engine_size_clean"] = column(ENGINE_SIZE_COL).apply(lambda v: parse_decimal(v, decimal_comma=True)).astype(float)
    df["avg_price_clean"] = column(PRICE_COL).apply(parse_decimal).astype(float)
    df["year_model_clean"] = column(YEAR_MODEL_COL).apply(parse_int).astype("Int64")
    df["fuel_clean"] = column(FUEL_COL).apply(normalize_text).astype("string")
    df["brand_clean"] = column(BRAND_COL).apply(normalize_brand)

    before = len(df)
    df = df[df["avg_price_clean"].notna() & (df["brand_clean"] != "")].reset_index(drop=True)
    dropped = before - len(df)
    if dropped:
        logger.info("Dropped %d of %d rows without a usable price or brand", dropped, before)
    return df


def distinct_values(df: pd.DataFrame, col: str) -> List[str]:
    if df.empty or col not in df.columns:
        return []
    return sorted(str(v) for v in df[col].dropna().unique() if str(v).strip())


@lru_cache(maxsize=4)
def _load_upload_cached(content: bytes) -> Dict[str, object]:
    raw = read_csv_records(content)
    records = clean_records(raw)
    return {
        "records": records,
        "rows_read": len(raw),
        "rows_dropped": len(raw) - len(records),
        "brands": distinct_values(records, "brand_clean"),
        "fuels": distinct_values(records, "fuel_clean"),
        "gears": distinct_values(records, GEAR_COL),
    }


def load_upload(content: bytes) -> Dict[str, object]:
    """Parse and clean an uploaded CSV. Results are cached per file content."""
    data_ctx = _load_upload_cached(bytes(content))
    return {**data_ctx, "records": data_ctx["records"].copy()}
