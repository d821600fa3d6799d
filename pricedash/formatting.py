from __future__ import annotations

import math

import pandas as pd

from pricedash.data import round_half_ceiling


def format_int_ptbr(value: object) -> str:
    """1234567 -> '1.234.567' (pt-BR thousands separator)."""
    rounded = None if value is None or pd.isna(value) else round_half_ceiling(value)
    if rounded is None:
        return "N/A"
    return f"{rounded:,}".replace(",", ".")


def format_brl_0(value: object) -> str:
    formatted = format_int_ptbr(value)
    return formatted if formatted == "N/A" else f"R$ {formatted}"


def format_k_brl(value: object) -> str:
    """52300 -> 'R$52k' for chart labels; zero/blank/non-finite -> ''."""
    if value is None or pd.isna(value) or not math.isfinite(float(value)) or float(value) <= 0:
        return ""
    return f"R${float(value) / 1000:.0f}k"
