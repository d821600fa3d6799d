from __future__ import annotations

import pytest

from pricedash.data import clean_records
from pricedash.parsing import parse_csv

SAMPLE_CSV = "\n".join(
    [
        "year_of_reference,month_of_reference,fipe_code,brand,model,fuel,gear,engine_size,year_model,avg_price_brl",
        '2021,January,038001-6,VW - VolksWagen,Gol 1.0,Gasoline,manual,"1,0",2015,30000.0',
        '2021,February,038002-4,VW - VolksWagen,Polo 1.6,Gasoline,automatic,"1,6",2019,60000.0',
        '2021,April,004001-0,GM - Chevrolet,Onix 1.4,Alcohol,manual,"1,4",2018,40000.0',
        '2021,May,004002-9,GM - Chevrolet,Cruze 1.8,Gasoline,automatic,"1,8",2017,70000.0',
        '2021,July,001001-0,Fiat,Uno 1.0,Gasoline,manual,"1,0",2012,20000.0',
        '2022,January,038003-2,VW - VolksWagen,Golf 2.0,Gasoline,automatic,"2,0",2020,90000.0',
        "",
    ]
)


@pytest.fixture
def sample_csv() -> str:
    return SAMPLE_CSV


@pytest.fixture
def sample_df():
    return clean_records(parse_csv(SAMPLE_CSV))
