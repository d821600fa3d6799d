from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from pricedash.charts import (
    build_brand_chart,
    build_brand_gear_chart,
    build_evolution_chart,
    build_gear_chart,
    to_vega_spec,
)
from pricedash.config import (
    GEAR_AUTOMATIC,
    GEAR_COL,
    GEAR_MANUAL,
    MONTH_REF_COL,
    NO_BRAND,
    UNKNOWN_GEAR,
    YEAR_REF_COL,
)
from pricedash.data import normalize_text, round_half_ceiling
from pricedash.filters import DashboardFilters, apply_filters

# Checked in order; the first quarter with a matching token wins.
QUARTER_TOKENS = [
    ("Q1", ["january", "february", "march", "jan", "fev", "feb", "mar"]),
    ("Q2", ["april", "may", "june", "abr", "apr", "mai", "jun"]),
    ("Q3", ["july", "august", "september", "jul", "ago", "aug", "set", "sep"]),
    ("Q4", ["october", "november", "december", "out", "oct", "nov", "dez", "dec"]),
]
DEFAULT_QUARTER = "Q4"


def _rounded(value: object) -> int:
    out = round_half_ceiling(value)
    return out if out is not None else 0


def _column(df: pd.DataFrame, col: str) -> pd.Series:
    if col in df.columns:
        return df[col]
    return pd.Series([None] * len(df), index=df.index, dtype=object)


def _has_price(prices: pd.Series) -> pd.Series:
    return prices.notna() & (prices != 0)


def quarter_for_month(month: object) -> str:
    """Map a month reference ("january", "fev", "Set/2021", "3") to Q1..Q4."""
    text = normalize_text(month)
    if text is None:
        return DEFAULT_QUARTER
    text = text.lower()
    if text.isdigit() and 1 <= int(text) <= 12:
        return f"Q{(int(text) - 1) // 3 + 1}"
    for quarter, tokens in QUARTER_TOKENS:
        if any(token in text for token in tokens):
            return quarter
    return DEFAULT_QUARTER


def compute_brand_distribution(df: pd.DataFrame, top_n: int = 10) -> List[Dict[str, Any]]:
    if df.empty or "brand_clean" not in df.columns:
        return []
    brands = df["brand_clean"].dropna().astype(str)
    brands = brands[brands != ""]
    counts = brands.groupby(brands, sort=False).size()
    counts = counts.sort_values(ascending=False, kind="stable").head(max(0, int(top_n)))
    return [{"name": str(name), "value": int(value)} for name, value in counts.items()]


def compute_gear_distribution(df: pd.DataFrame) -> List[Dict[str, Any]]:
    if df.empty:
        return []
    gears = _column(df, GEAR_COL).apply(normalize_text).fillna(UNKNOWN_GEAR).astype(str)
    counts = gears.groupby(gears, sort=False).size()
    return [{"name": str(name), "value": int(value)} for name, value in counts.items()]


def compute_price_evolution(df: pd.DataFrame) -> List[Dict[str, Any]]:
    if df.empty or "avg_price_clean" not in df.columns:
        return []
    months = _column(df, MONTH_REF_COL).apply(normalize_text)
    years = _column(df, YEAR_REF_COL).apply(normalize_text)
    prices = df["avg_price_clean"]
    mask = months.notna() & years.notna() & _has_price(prices)
    if not mask.any():
        return []

    work = pd.DataFrame(
        {
            "quarter": months[mask].apply(quarter_for_month),
            "year": years[mask].astype(str),
            "price": prices[mask].astype(float),
        }
    )
    work["sort_key"] = work["year"] + "-" + work["quarter"]
    work["name"] = work["quarter"] + "/" + work["year"]
    grouped = (
        work.groupby(["sort_key", "name"], sort=False)["price"]
        .mean()
        .reset_index()
        .sort_values("sort_key", kind="stable")
    )
    return [{"name": row.name, "price": _rounded(row.price)} for row in grouped.itertuples(index=False)]


def compute_brand_gear_prices(df: pd.DataFrame, brands: Sequence[str]) -> List[Dict[str, Any]]:
    if df.empty or not brands or "brand_clean" not in df.columns:
        return []
    subset = df[df["brand_clean"].isin(set(brands))]
    gears = _column(subset, GEAR_COL)
    prices = subset["avg_price_clean"]
    priced = _has_price(prices)

    out: List[Dict[str, Any]] = []
    for brand in subset["brand_clean"].drop_duplicates():
        in_brand = subset["brand_clean"] == brand
        auto = prices[in_brand & priced & (gears == GEAR_AUTOMATIC)]
        manual = prices[in_brand & priced & (gears == GEAR_MANUAL)]
        out.append(
            {
                "name": str(brand),
                "Automatico": _rounded(auto.mean()) if not auto.empty else 0,
                "Manual": _rounded(manual.mean()) if not manual.empty else 0,
            }
        )
    return out


def compute_kpis(df: pd.DataFrame, brand_data: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
    total_cars = int(len(df))
    avg_price = 0.0
    if total_cars and "avg_price_clean" in df.columns:
        avg_price = float(df["avg_price_clean"].fillna(0).sum()) / total_cars
    if brand_data is None:
        brand_data = compute_brand_distribution(df)
    most_common_brand = brand_data[0]["name"] if brand_data else NO_BRAND
    return {"total_cars": total_cars, "avg_price": avg_price, "most_common_brand": most_common_brand}


def compute_dashboard(
    df: pd.DataFrame,
    filters: Optional[DashboardFilters] = None,
    *,
    with_charts: bool = True,
) -> Dict[str, Any]:
    filters = filters or DashboardFilters()
    data = apply_filters(df, filters)

    brand_data = compute_brand_distribution(data, filters.top_n_brands)
    gear_data = compute_gear_distribution(data)
    evolution_data = compute_price_evolution(data)
    top_brands = [b["name"] for b in brand_data[: filters.top_n_grouped]]
    grouped_data = compute_brand_gear_prices(data, top_brands)

    charts: Dict[str, Any] = {}
    if with_charts and not data.empty:
        charts = {
            "brand_distribution": to_vega_spec(build_brand_chart(brand_data)),
            "gear_distribution": to_vega_spec(build_gear_chart(gear_data)),
            "price_evolution": to_vega_spec(build_evolution_chart(evolution_data)),
            "brand_gear_prices": to_vega_spec(build_brand_gear_chart(grouped_data)),
        }

    return {
        "filters": asdict(filters),
        "kpis": compute_kpis(data, brand_data),
        "brand_data": brand_data,
        "gear_data": gear_data,
        "evolution_data": evolution_data,
        "grouped_data": grouped_data,
        "charts": charts,
    }
