from __future__ import annotations

import json
import logging
import math
from typing import Optional

import numpy as np
import pandas as pd
from fastapi import FastAPI, File, Form, UploadFile
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from api.schemas import DashboardFiltersModel, DashboardResponse, ErrorResponse
from pricedash.config import CORS_ORIGINS, MAX_UPLOAD_MB
from pricedash.data import load_upload
from pricedash.filters import DashboardFilters, InvalidFiltersError, normalize_filters
from pricedash.metrics import compute_dashboard
from pricedash.parsing import CsvReadError


app = FastAPI(title="Vehicle Price Dashboard API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

ERROR_RESPONSES = {400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}
UPLOAD_CHUNK_BYTES = 1024 * 1024


def _filters_from_form(raw: Optional[str]) -> DashboardFilters:
    if not raw:
        return normalize_filters({})
    try:
        model = DashboardFiltersModel.model_validate(json.loads(raw))
    except ValueError as exc:
        raise InvalidFiltersError(f"Invalid filters: {exc}") from exc
    return normalize_filters(model.model_dump())


async def _read_upload(file: UploadFile) -> bytes:
    limit = int(MAX_UPLOAD_MB * 1024 * 1024)
    too_large = CsvReadError(f"File exceeds {MAX_UPLOAD_MB:g} MB limit.")
    if file.size is not None and file.size > limit:
        raise too_large
    chunks = []
    total = 0
    while True:
        chunk = await file.read(UPLOAD_CHUNK_BYTES)
        if not chunk:
            break
        total += len(chunk)
        if total > limit:
            raise too_large
        chunks.append(chunk)
    return b"".join(chunks)


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        )
    )


def _error(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc), "type": type(exc).__name__})


@app.get("/health")
def health():
    return {"status": "ok"}


@app.post("/dashboard", response_model=DashboardResponse, responses=ERROR_RESPONSES)
async def dashboard(file: UploadFile = File(...), filters: Optional[str] = Form(default=None)):
    try:
        f = _filters_from_form(filters)
        data_ctx = load_upload(await _read_upload(file))
        payload = compute_dashboard(data_ctx["records"], f)
        logger.info("Dashboard for %s: %d rows", file.filename, payload["kpis"]["total_cars"])
        return _json(payload)
    except (CsvReadError, InvalidFiltersError) as exc:
        logger.warning("dashboard rejected %s: %s", file.filename, exc)
        return _error(400, exc)
    except Exception as exc:
        logger.exception("dashboard failed")
        return _error(500, exc)


@app.post("/records", responses=ERROR_RESPONSES)
async def records(file: UploadFile = File(...), limit: int = Form(default=500)):
    try:
        data_ctx = load_upload(await _read_upload(file))
        df: pd.DataFrame = data_ctx["records"]
        limit = max(0, min(10_000, int(limit)))
        return _json(
            {
                "file": file.filename,
                "rows_read": data_ctx["rows_read"],
                "rows_kept": int(len(df)),
                "rows_dropped": data_ctx["rows_dropped"],
                "brands": data_ctx["brands"],
                "fuels": data_ctx["fuels"],
                "gears": data_ctx["gears"],
                "records": df.head(limit).astype(object).where(df.head(limit).notna(), None).to_dict(orient="records"),
            }
        )
    except CsvReadError as exc:
        logger.warning("records rejected %s: %s", file.filename, exc)
        return _error(400, exc)
    except Exception as exc:
        logger.exception("records failed")
        return _error(500, exc)


@app.post("/export", responses=ERROR_RESPONSES)
async def export_cleaned(file: UploadFile = File(...)):
    try:
        data_ctx = load_upload(await _read_upload(file))
        stem = (file.filename or "export").rsplit(".", 1)[0]
        csv_bytes = data_ctx["records"].to_csv(index=False).encode("utf-8")
    except CsvReadError as exc:
        logger.warning("export rejected %s: %s", file.filename, exc)
        return _error(400, exc)
    except Exception as exc:
        logger.exception("export failed")
        return _error(500, exc)
    filename = f"{stem}_clean.csv"
    return Response(content=csv_bytes, media_type="text/csv", headers={"Content-Disposition": f"attachment; filename={filename}"})
