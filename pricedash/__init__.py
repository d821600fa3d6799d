"""Core (UI-agnostic) vehicle price dashboard logic.

This package contains:
- CSV tokenizing (uploaded bytes -> list of row dicts)
- field cleaning (row dicts -> pandas)
- filter normalization
- aggregation (JSON-serializable series + KPIs)
- chart helpers (Altair -> Vega-Lite spec dict)
"""
