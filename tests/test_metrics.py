from __future__ import annotations

import pandas as pd
import pytest

from pricedash.data import clean_records
from pricedash.filters import DashboardFilters
from pricedash.metrics import (
    compute_brand_distribution,
    compute_brand_gear_prices,
    compute_dashboard,
    compute_gear_distribution,
    compute_kpis,
    compute_price_evolution,
    quarter_for_month,
)
from pricedash.parsing import parse_csv


@pytest.mark.parametrize(
    "month, quarter",
    [
        ("January", "Q1"),
        ("fevereiro", "Q1"),
        ("Março", "Q1"),
        ("abril", "Q2"),
        ("June", "Q2"),
        ("agosto", "Q3"),
        ("Setembro", "Q3"),
        ("outubro", "Q4"),
        ("December", "Q4"),
        ("7", "Q3"),
        ("12", "Q4"),
        ("??", "Q4"),
        (None, "Q4"),
    ],
)
def test_quarter_for_month(month, quarter):
    assert quarter_for_month(month) == quarter


def test_brand_distribution_sorted_by_count(sample_df):
    assert compute_brand_distribution(sample_df) == [
        {"name": "VW", "value": 3},
        {"name": "GM", "value": 2},
        {"name": "Fiat", "value": 1},
    ]


def test_brand_distribution_ties_keep_first_appearance():
    df = clean_records(
        [{"brand": b, "avg_price_brl": "1"} for b in ["Renault", "Ford", "Ford", "Renault", "Honda"]]
    )
    names = [b["name"] for b in compute_brand_distribution(df, top_n=2)]
    assert names == ["Renault", "Ford"]


def test_gear_distribution_marks_missing_gear_unknown():
    df = clean_records(
        [
            {"brand": "Fiat", "gear": "manual", "avg_price_brl": "1"},
            {"brand": "Fiat", "gear": "", "avg_price_brl": "1"},
            {"brand": "Fiat", "avg_price_brl": "1"},
        ]
    )
    assert compute_gear_distribution(df) == [
        {"name": "manual", "value": 1},
        {"name": "Desconhecido", "value": 2},
    ]


def test_price_evolution_is_chronological(sample_df):
    assert compute_price_evolution(sample_df) == [
        {"name": "Q1/2021", "price": 45000},
        {"name": "Q2/2021", "price": 55000},
        {"name": "Q3/2021", "price": 20000},
        {"name": "Q1/2022", "price": 90000},
    ]


def test_price_evolution_skips_rows_without_reference_or_price():
    df = clean_records(
        [
            {"brand": "Fiat", "month_of_reference": "jan", "year_of_reference": "2021", "avg_price_brl": "0"},
            {"brand": "Fiat", "month_of_reference": "", "year_of_reference": "2021", "avg_price_brl": "100"},
            {"brand": "Fiat", "month_of_reference": "jan", "avg_price_brl": "100"},
            {"brand": "Fiat", "month_of_reference": "jan", "year_of_reference": "2021", "avg_price_brl": "101"},
            {"brand": "Fiat", "month_of_reference": "feb", "year_of_reference": "2021", "avg_price_brl": "102"},
        ]
    )
    assert compute_price_evolution(df) == [{"name": "Q1/2021", "price": 102}]


def test_price_evolution_rounds_half_up():
    df = clean_records(
        [
            {"brand": "Fiat", "month_of_reference": "may", "year_of_reference": "2020", "avg_price_brl": "1"},
            {"brand": "Fiat", "month_of_reference": "may", "year_of_reference": "2020", "avg_price_brl": "2"},
        ]
    )
    assert compute_price_evolution(df) == [{"name": "Q2/2020", "price": 2}]


def test_brand_gear_prices(sample_df):
    assert compute_brand_gear_prices(sample_df, ["VW", "GM", "Fiat"]) == [
        {"name": "VW", "Automatico": 75000, "Manual": 30000},
        {"name": "GM", "Automatico": 70000, "Manual": 40000},
        {"name": "Fiat", "Automatico": 0, "Manual": 20000},
    ]


def test_brand_gear_prices_limits_to_given_brands(sample_df):
    out = compute_brand_gear_prices(sample_df, ["Fiat"])
    assert [row["name"] for row in out] == ["Fiat"]


def test_kpis(sample_df):
    kpis = compute_kpis(sample_df)
    assert kpis["total_cars"] == 6
    assert kpis["avg_price"] == pytest.approx(310000 / 6)
    assert kpis["most_common_brand"] == "VW"


def test_kpis_empty():
    assert compute_kpis(pd.DataFrame()) == {"total_cars": 0, "avg_price": 0.0, "most_common_brand": "-"}


def test_compute_dashboard_payload(sample_df):
    payload = compute_dashboard(sample_df, DashboardFilters(top_n_grouped=2))
    assert payload["kpis"]["total_cars"] == 6
    assert [row["name"] for row in payload["grouped_data"]] == ["VW", "GM"]
    assert set(payload["charts"]) == {"brand_distribution", "gear_distribution", "price_evolution", "brand_gear_prices"}
    assert payload["filters"]["top_n_grouped"] == 2


def test_compute_dashboard_respects_filters(sample_df):
    payload = compute_dashboard(sample_df, DashboardFilters(selected_brands=["GM"]), with_charts=False)
    assert payload["kpis"] == {"total_cars": 2, "avg_price": 55000.0, "most_common_brand": "GM"}
    assert payload["charts"] == {}


def test_compute_dashboard_empty():
    payload = compute_dashboard(clean_records([]))
    assert payload["brand_data"] == []
    assert payload["evolution_data"] == []
    assert payload["kpis"]["most_common_brand"] == "-"
    assert payload["charts"] == {}


def test_compute_dashboard_ignores_overflowing_price():
    text = "brand,gear,month_of_reference,year_of_reference,avg_price_brl\nFiat,manual,jan,2021,1e999\nFiat,manual,jan,2021,100\n"
    payload = compute_dashboard(clean_records(parse_csv(text)))
    assert payload["kpis"]["total_cars"] == 1
    assert payload["evolution_data"] == [{"name": "Q1/2021", "price": 100}]
    assert payload["grouped_data"] == [{"name": "Fiat", "Automatico": 0, "Manual": 100}]


def test_negative_half_averages_round_towards_positive():
    df = clean_records(
        [
            {"brand": "Fiat", "gear": "manual", "month_of_reference": "jan", "year_of_reference": "2021", "avg_price_brl": "-2"},
            {"brand": "Fiat", "gear": "manual", "month_of_reference": "jan", "year_of_reference": "2021", "avg_price_brl": "-3"},
        ]
    )
    assert compute_price_evolution(df) == [{"name": "Q1/2021", "price": -2}]
    assert compute_brand_gear_prices(df, ["Fiat"])[0]["Manual"] == -2
