from __future__ import annotations

from typing import Dict, List

from pydantic import BaseModel, Field

from pricedash.config import TOP_N_BRANDS_DEFAULT, TOP_N_GROUPED_DEFAULT


class DashboardFiltersModel(BaseModel):
    selected_brands: List[str] = Field(default_factory=list)
    selected_fuels: List[str] = Field(default_factory=list)
    selected_gears: List[str] = Field(default_factory=list)
    top_n_brands: int = TOP_N_BRANDS_DEFAULT
    top_n_grouped: int = TOP_N_GROUPED_DEFAULT


class KpisModel(BaseModel):
    total_cars: int
    avg_price: float
    most_common_brand: str


class CountPoint(BaseModel):
    name: str
    value: int


class PricePoint(BaseModel):
    name: str
    price: int


class BrandGearPoint(BaseModel):
    name: str
    Automatico: int
    Manual: int


class DashboardResponse(BaseModel):
    filters: DashboardFiltersModel
    kpis: KpisModel
    brand_data: List[CountPoint]
    gear_data: List[CountPoint]
    evolution_data: List[PricePoint]
    grouped_data: List[BrandGearPoint]
    charts: Dict[str, dict] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    error: str
    type: str
