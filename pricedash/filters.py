from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

import pandas as pd

from pricedash.config import GEAR_COL, TOP_N_BRANDS_DEFAULT, TOP_N_GROUPED_DEFAULT


class InvalidFiltersError(ValueError):
    """Raised when a filters payload cannot be decoded."""


@dataclass(frozen=True)
class DashboardFilters:
    selected_brands: List[str] = field(default_factory=list)
    selected_fuels: List[str] = field(default_factory=list)
    selected_gears: List[str] = field(default_factory=list)
    top_n_brands: int = TOP_N_BRANDS_DEFAULT
    top_n_grouped: int = TOP_N_GROUPED_DEFAULT


def _as_str_list(values: Optional[Iterable[object]]) -> List[str]:
    if not values:
        return []
    if isinstance(values, str):
        values = [values]
    return [str(v).strip() for v in values if v is not None and str(v).strip()]


def _clamped_int(value: object, default: int, lo: int, hi: int) -> int:
    try:
        out = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        out = default
    return max(lo, min(hi, out))


def normalize_filters(raw: Optional[dict]) -> DashboardFilters:
    raw = raw or {}
    return DashboardFilters(
        selected_brands=_as_str_list(raw.get("selected_brands")),
        selected_fuels=_as_str_list(raw.get("selected_fuels")),
        selected_gears=_as_str_list(raw.get("selected_gears")),
        top_n_brands=_clamped_int(raw.get("top_n_brands", TOP_N_BRANDS_DEFAULT), TOP_N_BRANDS_DEFAULT, 1, 50),
        top_n_grouped=_clamped_int(raw.get("top_n_grouped", TOP_N_GROUPED_DEFAULT), TOP_N_GROUPED_DEFAULT, 1, 20),
    )


def apply_filters(df: pd.DataFrame, filters: DashboardFilters) -> pd.DataFrame:
    if df.empty:
        return df
    out = df
    if filters.selected_brands and "brand_clean" in out.columns:
        out = out[out["brand_clean"].astype(str).isin(set(filters.selected_brands))]
    if filters.selected_fuels and "fuel_clean" in out.columns:
        out = out[out["fuel_clean"].astype(str).isin(set(filters.selected_fuels))]
    if filters.selected_gears and GEAR_COL in out.columns:
        out = out[out[GEAR_COL].astype(str).isin(set(filters.selected_gears))]
    return out.reset_index(drop=True)
