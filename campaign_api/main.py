from __future__ import annotations

import logging
import math

import numpy as np
import pandas as pd
from fastapi import Depends, FastAPI, File, UploadFile
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from campaign_api.schemas import DashboardOptionsModel, DatasetModel, StateResponse
from campaign_core.data import dataset_to_text, decode_upload
from campaign_core.metrics_achievement import compute_achievement
from campaign_core.metrics_debug import compute_debug
from campaign_core.metrics_distribution import compute_distribution
from campaign_core.metrics_overview import compute_overview
from campaign_core.options import DashboardOptions, normalize_options
from campaign_core.state import STATUS_REJECTED, DashboardState, DashboardStore, prepare_context


app = FastAPI(title="Campaign Dashboard API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000", "http://localhost:8501"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

STORE = DashboardStore()


def get_store() -> DashboardStore:
    return STORE


def _options_from_model(model: DashboardOptionsModel, state: DashboardState) -> DashboardOptions:
    raw = model.model_dump()
    return normalize_options(raw, available_departments=list(state.dataset.labels))


def _json(data: object, status_code: int = 200) -> JSONResponse:
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
        status_code=status_code,
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
            },
        ),
    )


def _error(exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})


def _state_payload(state: DashboardState, *, include_dataset: bool = True) -> dict:
    dataset = None
    if include_dataset:
        dataset = DatasetModel(
            labels=list(state.dataset.labels),
            target=list(state.dataset.target),
            achieved=list(state.dataset.achieved),
            remaining=list(state.dataset.remaining),
        )
    return StateResponse(**state.describe(), dataset=dataset).model_dump()


@app.get("/dataset")
def dataset(store: DashboardStore = Depends(get_store)):
    try:
        return _json(_state_payload(store.current()))
    except Exception as exc:
        logger.exception("dataset failed")
        return _error(exc)


@app.post("/upload")
async def upload(file: UploadFile = File(...), store: DashboardStore = Depends(get_store)):
    try:
        raw = await file.read()
        state = store.upload(decode_upload(raw), source=file.filename or "upload")
        status_code = 422 if state.status == STATUS_REJECTED else 200
        return _json(_state_payload(state, include_dataset=False), status_code=status_code)
    except Exception as exc:
        logger.exception("upload failed")
        return _error(exc)


@app.post("/reset")
def reset(store: DashboardStore = Depends(get_store)):
    try:
        return _json(_state_payload(store.reset(), include_dataset=False))
    except Exception as exc:
        logger.exception("reset failed")
        return _error(exc)


@app.post("/overview")
def overview(options: DashboardOptionsModel, store: DashboardStore = Depends(get_store)):
    try:
        state = store.current()
        opts = _options_from_model(options, state)
        return _json(compute_overview(opts, prepare_context(opts, state)))
    except Exception as exc:
        logger.exception("overview failed")
        return _error(exc)


@app.post("/achievement")
def achievement(options: DashboardOptionsModel, store: DashboardStore = Depends(get_store)):
    try:
        state = store.current()
        opts = _options_from_model(options, state)
        return _json(compute_achievement(opts, prepare_context(opts, state)))
    except Exception as exc:
        logger.exception("achievement failed")
        return _error(exc)


@app.post("/distribution")
def distribution(options: DashboardOptionsModel, store: DashboardStore = Depends(get_store)):
    try:
        state = store.current()
        opts = _options_from_model(options, state)
        return _json(compute_distribution(opts, prepare_context(opts, state)))
    except Exception as exc:
        logger.exception("distribution failed")
        return _error(exc)


@app.post("/debug")
def debug(options: DashboardOptionsModel, store: DashboardStore = Depends(get_store)):
    try:
        state = store.current()
        opts = _options_from_model(options, state)
        return _json(compute_debug(opts, prepare_context(opts, state)))
    except Exception as exc:
        logger.exception("debug failed")
        return _error(exc)


@app.get("/export")
def export(store: DashboardStore = Depends(get_store)):
    state = store.current()
    body = dataset_to_text(state.dataset).encode("utf-8")
    return Response(
        content=body,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": "attachment; filename=campaign.csv"},
    )
