import json
import logging
from datetime import datetime
from typing import Dict, List, Optional, Any, Union
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, Depends, Query
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field, field_validator

from config import settings
from models.decision import Decision
from services import (
    AnalyticsService, DecisionService, DecisionStore,
    create_decision_store, MISSING
)

logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
logger = logging.getLogger("api")

NO_CACHE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, proxy-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}

class SafeJSONEncoder(json.JSONEncoder):
    def default(self, obj: Any) -> Any:
        if isinstance(obj, Decision):
            return obj.to_dict()
        elif isinstance(obj, datetime):
            return obj.isoformat()
        return super().default(obj)

def safe_json_response(data: Any, status_code: int = 200, no_cache: bool = False) -> Response:
    content = json.dumps(data, cls=SafeJSONEncoder, ensure_ascii=False)
    return Response(
        content=content.encode("utf-8"),
        status_code=status_code,
        media_type="application/json; charset=utf-8",
        headers=NO_CACHE_HEADERS if no_cache else None
    )

class DecisionCreateInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    category_id: Optional[str] = Field(default=None, alias="categoryId", max_length=50)
    title: Optional[str] = Field(default=None, max_length=200)
    notes: Optional[str] = Field(default=None, max_length=5000)
    tags: List[str] = Field(default=[])
    confidence: Optional[Union[int, float]] = None
    result: Optional[str] = None
    meta: Optional[Dict[str, Union[str, int, float, bool, None]]] = None

    @field_validator("tags", mode="before")
    @classmethod
    def coerce_tags(cls, v):
        if not isinstance(v, list):
            return []
        return [str(t) for t in v if t is not None]

class DecisionPatchInput(BaseModel):
    """Either a result update (``result`` present) or a field edit."""

    model_config = ConfigDict(populate_by_name=True)

    result: Optional[Any] = None
    category_id: Optional[str] = Field(default=None, alias="categoryId", max_length=50)
    title: Optional[str] = Field(default=None, max_length=200)
    notes: Optional[str] = Field(default=None, max_length=5000)
    tags: Optional[List[str]] = None
    confidence: Optional[Union[int, float]] = None
    meta: Optional[Dict[str, Union[str, int, float, bool, None]]] = None

    @field_validator("tags", mode="before")
    @classmethod
    def coerce_tags(cls, v):
        if v is None or not isinstance(v, list):
            return None
        return [str(t) for t in v if t is not None]

    def provided(self, name: str) -> bool:
        return name in self.model_fields_set


class AppState:
    store: DecisionStore = None
    decisions: DecisionService = None
    analytics: AnalyticsService = None

app_state = AppState()

def configure(store: DecisionStore):
    app_state.store = store
    app_state.decisions = DecisionService(store)
    app_state.analytics = AnalyticsService.from_settings(store, settings)
    logger.info("Decision store ready (%s)", store.backend)

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting Decision Journal API...")
    if app_state.store is None:
        configure(create_decision_store(settings))
    logger.info("API: http://%s:%s", settings.HOST, settings.PORT)

    yield

    logger.info("Shutdown complete")


app = FastAPI(
    title="Decision Journal API",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list(),
    allow_credentials=False,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "x-user-id"],
    max_age=600
)

@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"error": "Invalid request body"})

async def get_current_user(request: Request) -> str:
    """FastAPI dependency returning the caller's user id from the x-user-id header"""
    user_id = request.headers.get("x-user-id", "").strip()
    if not user_id:
        raise HTTPException(status_code=401, detail="Login required (missing x-user-id header)")
    return user_id

def _require(decision: Optional[Decision]) -> Decision:
    if decision is None:
        raise HTTPException(status_code=404, detail="Not found")
    return decision

@app.get("/api/health")
async def health():
    return safe_json_response({
        "status": "healthy",
        "store": app_state.store.backend if app_state.store else None
    })

@app.get("/api/decisions")
async def list_decisions(current_user: str = Depends(get_current_user)):
    return safe_json_response(app_state.decisions.list(current_user))

@app.post("/api/decisions")
async def create_decision(entry: DecisionCreateInput, current_user: str = Depends(get_current_user)):
    try:
        created = app_state.decisions.create(
            user_id=current_user,
            category_id=entry.category_id,
            title=entry.title,
            notes=entry.notes,
            tags=entry.tags,
            confidence=entry.confidence if entry.confidence is not None else 3,
            result=entry.result or "pending",
            meta=entry.meta
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return safe_json_response(created)

@app.get("/api/decisions/{decision_id}")
async def get_decision(decision_id: str, current_user: str = Depends(get_current_user)):
    return safe_json_response(_require(app_state.decisions.get(current_user, decision_id)))

@app.patch("/api/decisions/{decision_id}")
async def patch_decision(decision_id: str, body: DecisionPatchInput, current_user: str = Depends(get_current_user)):
    meta = body.meta if body.provided("meta") else MISSING

    if body.provided("result"):
        try:
            updated = app_state.decisions.resolve(
                current_user, decision_id, body.result,
                confidence=body.confidence,
                meta=meta
            )
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return safe_json_response(_require(updated))

    updated = app_state.decisions.edit(
        current_user, decision_id,
        category_id=body.category_id,
        title=body.title,
        notes=body.notes if body.provided("notes") else MISSING,
        tags=body.tags,
        confidence=body.confidence,
        meta=meta
    )
    return safe_json_response(_require(updated))

@app.delete("/api/decisions/{decision_id}")
async def delete_decision(decision_id: str, current_user: str = Depends(get_current_user)):
    if not app_state.decisions.remove(current_user, decision_id):
        raise HTTPException(status_code=404, detail="Not found")
    return safe_json_response({"ok": True})

@app.get("/api/analysis")
async def get_analysis(current_user: str = Depends(get_current_user)):
    return safe_json_response(app_state.analytics.overview(current_user), no_cache=True)

@app.get("/api/analysis/pending")
async def get_pending(current_user: str = Depends(get_current_user)):
    return safe_json_response(app_state.analytics.pending(current_user), no_cache=True)

@app.get("/api/analysis/summary")
async def get_summary(
    current_user: str = Depends(get_current_user),
    days: Optional[str] = None,
    category_id: Optional[str] = Query(default=None, alias="categoryId"),
    limit: Optional[str] = None
):
    summary = app_state.analytics.summary(current_user, days=days, category_id=category_id, limit=limit)
    return safe_json_response(summary, no_cache=True)

@app.get("/api/analysis/weekly-trend")
async def get_weekly_trend(
    current_user: str = Depends(get_current_user),
    weeks: Optional[str] = None,
    category_id: Optional[str] = Query(default=None, alias="categoryId")
):
    trend = app_state.analytics.weekly_trend(current_user, weeks=weeks, category_id=category_id)
    return safe_json_response(trend, no_cache=True)

@app.get("/api/analysis/weekly")
async def get_weekly_report(
    current_user: str = Depends(get_current_user),
    week_start: Optional[str] = Query(default=None, alias="weekStart")
):
    report = app_state.analytics.weekly_report(current_user, week_start=week_start)
    return safe_json_response(report, no_cache=True)

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        access_log=True
    )
