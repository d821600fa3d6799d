from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Tuple

import altair as alt
import pandas as pd

from pricedash.config import (
    BRAND_COLOR_FALLBACK,
    BRAND_COLORS,
    COLORS,
    EVOLUTION_LINE_COLOR,
    EVOLUTION_Y_DOMAIN,
    GEAR_COLORS,
)
from pricedash.formatting import format_k_brl

alt.data_transformers.disable_max_rows()

MANUAL_LABEL = "Manual"
AUTOMATIC_LABEL = "Automático"


def to_vega_spec(chart: alt.TopLevelMixin) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def lighten_color(hex_color: str, percent: float) -> str:
    """Move each RGB channel ``percent``% of the way towards white."""
    num = int(hex_color.lstrip("#"), 16)
    channels = [(num >> 16) & 0xFF, (num >> 8) & 0xFF, num & 0xFF]
    r, g, b = (min(255, int(c + (255 - c) * percent / 100)) for c in channels)
    return f"#{(r << 16) | (g << 8) | b:06x}"


def brand_color(name: str, fallback: str = BRAND_COLOR_FALLBACK) -> str:
    return BRAND_COLORS.get(name, fallback)


def gear_color(name: str, index: int) -> str:
    return GEAR_COLORS.get(name.lower(), COLORS[index % len(COLORS)])


def build_brand_chart(brand_data: List[Dict[str, Any]]) -> alt.LayerChart:
    df = pd.DataFrame(brand_data, columns=["name", "value"])
    names = df["name"].tolist()
    base = alt.Chart(df).encode(
        y=alt.Y("name:N", title=None, sort=names),
        x=alt.X("value:Q", title="Quantidade"),
    )
    bars = base.mark_bar(cornerRadiusEnd=4).encode(
        color=alt.Color("name:N", scale=alt.Scale(domain=names, range=[brand_color(n) for n in names]), legend=None),
        tooltip=[alt.Tooltip("name:N", title="Marca"), alt.Tooltip("value:Q", title="Quantidade", format=",")],
    )
    labels = base.mark_text(align="left", dx=4, fontSize=12, color="#374151").encode(text="value:Q")
    return (bars + labels).properties(height=320)


def build_gear_chart(gear_data: List[Dict[str, Any]]) -> alt.Chart:
    df = pd.DataFrame(gear_data, columns=["name", "value"])
    total = float(df["value"].sum()) if not df.empty else 0.0
    df["percent"] = df["value"] / total if total else 0.0
    names = df["name"].tolist()
    return (
        alt.Chart(df)
        .mark_arc(outerRadius=100)
        .encode(
            theta=alt.Theta("value:Q"),
            color=alt.Color(
                "name:N",
                title="Câmbio",
                scale=alt.Scale(domain=names, range=[gear_color(n, i) for i, n in enumerate(names)]),
            ),
            tooltip=[
                alt.Tooltip("name:N", title="Câmbio"),
                alt.Tooltip("value:Q", title="Quantidade", format=","),
                alt.Tooltip("percent:Q", title="Participação", format=".0%"),
            ],
        )
        .properties(height=320)
    )


def build_evolution_chart(
    evolution_data: List[Dict[str, Any]],
    y_domain: Optional[Tuple[float, float]] = EVOLUTION_Y_DOMAIN,
) -> alt.LayerChart:
    df = pd.DataFrame(evolution_data, columns=["name", "price"])
    df["label"] = df["price"].apply(format_k_brl)
    scale = alt.Scale(domain=list(y_domain)) if y_domain else alt.Scale(zero=False)
    base = alt.Chart(df).encode(
        x=alt.X("name:N", title=None, sort=df["name"].tolist()),
        y=alt.Y("price:Q", title="Preço Médio", scale=scale, axis=alt.Axis(format="~s")),
    )
    line = base.mark_line(point={"size": 60}, strokeWidth=3, color=EVOLUTION_LINE_COLOR).encode(
        tooltip=[alt.Tooltip("name:N", title="Trimestre"), alt.Tooltip("price:Q", title="Preço Médio", format=",.0f")]
    )
    labels = base.mark_text(dy=-12, fontSize=11, color=EVOLUTION_LINE_COLOR).encode(text="label:N")
    return (line + labels).properties(height=320)


def brand_gear_long(grouped_data: Sequence[Dict[str, Any]]) -> pd.DataFrame:
    """Reshape per-brand Manual/Automatico averages into one row per bar."""
    rows = []
    for item in grouped_data:
        base = brand_color(item["name"], fallback="")
        for label, key, color in (
            (MANUAL_LABEL, "Manual", lighten_color(base or "#82ca9d", 30)),
            (AUTOMATIC_LABEL, "Automatico", base or "#8884d8"),
        ):
            value = int(item.get(key, 0) or 0)
            rows.append(
                {
                    "name": item["name"],
                    "gear": label,
                    "price": value,
                    "color": color,
                    "label": format_k_brl(value),
                }
            )
    return pd.DataFrame(rows, columns=["name", "gear", "price", "color", "label"])


def build_brand_gear_chart(grouped_data: Sequence[Dict[str, Any]]) -> alt.LayerChart:
    df = brand_gear_long(grouped_data)
    names = list(dict.fromkeys(df["name"].tolist()))
    base = alt.Chart(df).encode(
        x=alt.X("name:N", title=None, sort=names),
        xOffset=alt.XOffset("gear:N", sort=[MANUAL_LABEL, AUTOMATIC_LABEL]),
        y=alt.Y("price:Q", title="Preço Médio", axis=alt.Axis(format="~s")),
    )
    bars = base.mark_bar().encode(
        color=alt.Color("color:N", scale=None),
        tooltip=[
            alt.Tooltip("name:N", title="Marca"),
            alt.Tooltip("gear:N", title="Câmbio"),
            alt.Tooltip("price:Q", title="Preço Médio", format=",.0f"),
        ],
    )
    labels = base.mark_text(dy=-8, fontSize=10).encode(text="label:N")
    return (bars + labels).properties(height=320)
