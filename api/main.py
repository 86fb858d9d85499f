from __future__ import annotations

import logging
import math
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Dict, Optional

import numpy as np
import pandas as pd
from fastapi import APIRouter, FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from api.schemas import TaskCreateModel, TaskFiltersModel, TaskPatchModel
from taskdash.data import TASKS_PATH
from taskdash.filters import TaskFilters, normalize_filters
from taskdash.metrics_overview import compute_overview, export_frame
from taskdash.store import TaskStore

logger = logging.getLogger(__name__)
router = APIRouter()


def _filters_from_model(model: TaskFiltersModel) -> TaskFilters:
    return normalize_filters(model.model_dump())


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
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        )
    )


def _error(exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})


def _store(request: Request) -> TaskStore:
    store: TaskStore = request.app.state.store
    store.ensure_loaded(request.app.state.tasks_source)
    return store


def _snapshot(store: TaskStore, **extra: Any) -> Dict[str, Any]:
    payload = store.snapshot()
    payload.update(extra)
    return payload


@router.get("/tasks")
def list_tasks(request: Request):
    try:
        return _json(_snapshot(_store(request)))
    except Exception as exc:
        logger.exception("list_tasks failed")
        return _error(exc)


@router.post("/overview")
def overview(request: Request, filters: TaskFiltersModel):
    try:
        store = _store(request)
        return _json(compute_overview(_filters_from_model(filters), store.tasks))
    except Exception as exc:
        logger.exception("overview failed")
        return _error(exc)


@router.post("/tasks")
def add_task(request: Request, body: TaskCreateModel):
    try:
        store = _store(request)
        task = store.add_task(body.model_dump(exclude_none=True))
        return _json(_snapshot(store, task=task.to_dict()))
    except Exception as exc:
        logger.exception("add_task failed")
        return _error(exc)


@router.post("/tasks/undo")
def undo_delete(request: Request):
    try:
        store = _store(request)
        restored = store.undo_delete()
        return _json(_snapshot(store, task=restored.to_dict() if restored else None))
    except Exception as exc:
        logger.exception("undo_delete failed")
        return _error(exc)


@router.post("/tasks/clear-last-deleted")
def clear_last_deleted(request: Request):
    try:
        store = _store(request)
        store.clear_last_deleted()
        return _json(_snapshot(store))
    except Exception as exc:
        logger.exception("clear_last_deleted failed")
        return _error(exc)


@router.patch("/tasks/{task_id}")
def update_task(request: Request, task_id: str, patch: TaskPatchModel):
    try:
        store = _store(request)
        updated = store.update_task(task_id, patch.model_dump(exclude_unset=True))
        return _json(_snapshot(store, task=updated.to_dict() if updated else None))
    except Exception as exc:
        logger.exception("update_task failed")
        return _error(exc)


@router.delete("/tasks/{task_id}")
def delete_task(request: Request, task_id: str):
    try:
        store = _store(request)
        removed = store.delete_task(task_id)
        return _json(_snapshot(store, task=removed.to_dict() if removed else None))
    except Exception as exc:
        logger.exception("delete_task failed")
        return _error(exc)


@router.post("/export/tasks")
def export_tasks(request: Request, filters: TaskFiltersModel):
    store = _store(request)
    export_df = export_frame(_filters_from_model(filters), store.tasks)
    csv_bytes = export_df.to_csv(index=False).encode("utf-8")
    return Response(content=csv_bytes, media_type="text/csv", headers={"Content-Disposition": "attachment; filename=tasks.csv"})


@asynccontextmanager
async def _lifespan(app: FastAPI):
    await run_in_threadpool(app.state.store.ensure_loaded, app.state.tasks_source)
    yield


def create_app(store: Optional[TaskStore] = None, *, source: Path = TASKS_PATH) -> FastAPI:
    app = FastAPI(title="Task Dashboard API", version="0.1.0", lifespan=_lifespan)
    app.state.store = store if store is not None else TaskStore()
    app.state.tasks_source = source
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router)
    return app


app = create_app()
