import json
import importlib
import logging
import time
from typing import List, Mapping

from fastapi import Depends, FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import config
from .config import VARIANTS
from .feeds.base import FeedError, FeedProvider
from .logging_config import setup_logging
from .models import ArrivalsRequest, StopArrivals, StopInfo, StopRoutes
from .pipeline import assemble_grouped, assemble_single, build_arrivals, collect_arrivals
from .stops import load_stop_names

setup_logging(config.LOG_LEVEL)
log = logging.getLogger(__name__)

# =========================
# App & CORS
# =========================
app = FastAPI(title="nextbus", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[config.FRONTEND_ORIGIN],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# =========================
# Feed provider loader
# =========================
def load_provider():
    provider_name = config.FEED_PROVIDER
    try:
        opts = json.loads(config.FEED_PROVIDER_OPTS)
    except json.JSONDecodeError:
        opts = {}
    try:
        module = importlib.import_module(f".feeds.{provider_name}", __package__)
    except ModuleNotFoundError as e:
        raise RuntimeError(f"Feed provider module not found: {provider_name}") from e
    class_name = f"{provider_name.capitalize()}FeedProvider"
    ProviderClass = getattr(module, class_name, None)
    if ProviderClass is None:
        raise RuntimeError(f"Feed provider class {class_name} not found in module '{provider_name}'")
    return ProviderClass(**opts)

provider = load_provider()
STOP_NAMES = load_stop_names(config.STOPS_CSV)


def get_provider() -> FeedProvider:
    return provider

def get_stop_names() -> Mapping[str, str]:
    return STOP_NAMES

def get_now() -> int:
    # captured once per request, reused for filtering and formatting
    return int(time.time())


async def fetch_feed(feed: FeedProvider):
    try:
        return await feed.fetch_trip_updates()
    except FeedError as e:
        log.error("Trip update fetch failed: %s", e)
        raise HTTPException(status_code=502, detail=f"Failed to fetch transit data: {e}")


def cache_for(response: Response):
    response.headers["Cache-Control"] = f"public, max-age={config.CACHE_MAX_AGE}"

@app.exception_handler(Exception)
async def unexpected_error(request: Request, exc: Exception):
    log.exception("Error processing %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "message": str(exc)},
    )

# =========================
# Endpoints
# =========================
@app.get("/health")
async def health():
    return {"status": "ok"}

@app.get("/stops", response_model=List[StopInfo])
async def stops(stop_names: Mapping[str, str] = Depends(get_stop_names)):
    return [StopInfo(stop_id=k, stop_name=v) for k, v in stop_names.items()]

@app.get("/stop/{stop_id}", response_model=StopRoutes)
async def stop_routes(
    stop_id: str,
    response: Response,
    feed: FeedProvider = Depends(get_provider),
    now: int = Depends(get_now),
    stop_names: Mapping[str, str] = Depends(get_stop_names),
):
    """Upcoming buses at one stop, grouped by route."""
    variant = VARIANTS["grouped"]
    records = await fetch_feed(feed)
    buffers = collect_arrivals(records, [stop_id], now, variant)
    grouped = assemble_grouped(buffers, now, variant, stop_names)
    cache_for(response)
    return grouped[0]

@app.get("/stop/{stop_id}/arrivals", response_model=StopArrivals)
async def stop_arrivals(
    stop_id: str,
    response: Response,
    feed: FeedProvider = Depends(get_provider),
    now: int = Depends(get_now),
    stop_names: Mapping[str, str] = Depends(get_stop_names),
):
    """Next arrivals at one stop across all routes."""
    variant = VARIANTS["single"]
    records = await fetch_feed(feed)
    buffers = collect_arrivals(records, [stop_id], now, variant)
    cache_for(response)
    return assemble_single(buffers, stop_id, now, variant, stop_names)

@app.post("/arrivals", response_model=List[StopArrivals])
async def arrivals(
    body: ArrivalsRequest,
    response: Response,
    feed: FeedProvider = Depends(get_provider),
    now: int = Depends(get_now),
    stop_names: Mapping[str, str] = Depends(get_stop_names),
):
    """Next arrivals for several stops, in request order."""
    records = await fetch_feed(feed)
    result = build_arrivals(records, body.stop_ids, now, VARIANTS["flat"], stop_names)
    cache_for(response)
    return result

# Registered last so it only sees paths nothing else matched
@app.get("/{path:path}", include_in_schema=False)
async def invalid_route(path: str, request: Request, stop_names: Mapping[str, str] = Depends(get_stop_names)):
    origin = str(request.base_url).rstrip("/")
    example = next(iter(stop_names), "101028")
    return JSONResponse(
        status_code=400,
        content={
            "error": "Invalid route",
            "message": "Please use the format /stop/{stopId}",
            "usage": f"{origin}/stop/{example}",
            "exampleStops": [{"stopId": k, "stopName": v} for k, v in stop_names.items()],
        },
    )
