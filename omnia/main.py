"""
FastAPI Application for the Omnia Health Dashboard

Serves the computed dashboard data to the rendering layer:
- Timeframe and focus mode options
- Dashboard views (windowed chart data, axis domains, spotlight summaries)
- Headline summary cards
- CSV export conversion (upload -> normalized records)

The sample store is loaded once from OMNIA_DATA_PATH and is read-only
afterwards.
"""

import os
from typing import Any, Dict, List, Optional

import structlog
from fastapi import FastAPI, File, HTTPException, Query, UploadFile
from fastapi.responses import JSONResponse

from omnia.engine.csv_normalizer import CSVInputError, load_records_from_upload
from omnia.engine.dashboard import Dashboard
from omnia.engine.focus import DEFAULT_FOCUS_MODE, FOCUS_CONFIGS, parse_focus_mode
from omnia.engine.sample_store import load_store
from omnia.engine.window import DEFAULT_TIMEFRAME, Timeframe, parse_timeframe
from omnia.log import configure_logging

configure_logging()
logger = structlog.get_logger()

DATA_PATH = os.environ.get(
    "OMNIA_DATA_PATH",
    os.path.join(os.path.dirname(os.path.dirname(__file__)), "data", "data.json"),
)

app = FastAPI(title="Omnia Health Dashboard", version="1.0.0")

# Loaded on first request (single-user, local use only)
STATE: Dict[str, Optional[Dashboard]] = {
    "dashboard": None,
}


def get_dashboard() -> Dashboard:
    """
    Return the process-wide dashboard, loading the store on first use.

    A data file that cannot be read is a server fault and surfaces as HTTP 500.
    """
    if STATE["dashboard"] is None:
        try:
            store = load_store(DATA_PATH)
        except ValueError as e:
            logger.error("dashboard_load_failed", path=DATA_PATH, error=str(e))
            raise HTTPException(status_code=500, detail="Health data could not be loaded.")
        logger.info("dashboard_loaded", path=DATA_PATH, samples=len(store))
        STATE["dashboard"] = Dashboard(store)
    return STATE["dashboard"]


@app.get("/api/options")
async def options() -> Dict[str, Any]:
    """List the selectable timeframes and focus modes."""
    return {
        "timeframes": [
            {"value": timeframe.value, "label": timeframe.label, "days": timeframe.days}
            for timeframe in Timeframe
        ],
        "focus_modes": [
            {"value": mode.value, "label": config.label, "description": config.description}
            for mode, config in FOCUS_CONFIGS.items()
        ],
        "default_timeframe": DEFAULT_TIMEFRAME.value,
        "default_focus_mode": DEFAULT_FOCUS_MODE.value,
    }


@app.get("/api/samples")
async def samples() -> List[Dict[str, Any]]:
    """Return the whole observation history."""
    return [sample.to_dict() for sample in get_dashboard().store]


@app.get("/api/dashboard")
async def dashboard_view(
    timeframe: str = Query(DEFAULT_TIMEFRAME.value),
    focus: str = Query(DEFAULT_FOCUS_MODE.value),
) -> Dict[str, Any]:
    """
    Compute the dashboard view for a timeframe and focus mode.

    Unknown identifiers are rejected with HTTP 400.
    """
    try:
        selected_timeframe = parse_timeframe(timeframe)
        selected_focus = parse_focus_mode(focus)
    except ValueError as e:
        logger.warning("dashboard_bad_selection", timeframe=timeframe, focus=focus, error=str(e))
        raise HTTPException(status_code=400, detail=f"Invalid selection: {e}")

    return get_dashboard().view(selected_timeframe, selected_focus).to_dict()


@app.get("/api/summary-cards")
async def summary_cards() -> List[Dict[str, Any]]:
    """Headline cards computed over the whole history."""
    return get_dashboard().summary_cards()


@app.post("/api/convert")
async def convert(file: UploadFile = File(...)):
    """
    Convert an uploaded CSV export into normalized records.

    Returns the records as a JSON array; a file without data rows is rejected
    with HTTP 400.
    """
    contents = await file.read()
    try:
        records = load_records_from_upload(contents)
    except CSVInputError as e:
        logger.warning("convert_rejected", filename=file.filename, error=str(e))
        raise HTTPException(status_code=400, detail=str(e))

    logger.info("convert_completed", filename=file.filename, records=len(records))
    return JSONResponse(content=records)
