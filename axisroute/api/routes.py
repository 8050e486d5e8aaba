"""FastAPI route definitions - the presentation-layer boundary of the engine."""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, HTTPException, Depends
from pydantic import BaseModel, Field

from ..errors import ConflictError, TransportError
from ..models.geo import BlockageDraft, Point
from ..models.presets import TRAVEL_MODE_LABEL, TravelMode, preset_for
from ..models.state import EngineSnapshot
from ..processing.engine import RoutingEngine

logger = logging.getLogger(__name__)

router = APIRouter()


# Dependency to get engine instance (set in main.py)
_engine: RoutingEngine = None


def get_engine() -> RoutingEngine:
    """Get the engine instance."""
    if _engine is None:
        raise HTTPException(status_code=503, detail="Engine not initialized")
    return _engine


def set_engine(engine: Optional[RoutingEngine]):
    """Set the engine instance (called from main.py)."""
    global _engine
    _engine = engine


EngineDep = Annotated[RoutingEngine, Depends(get_engine)]


class ClickRequest(BaseModel):
    """A point clicked on the map."""
    lat: float = Field(description="Latitude in decimal degrees", ge=-90, le=90)
    long: float = Field(description="Longitude in decimal degrees", ge=-180, le=180)


class ModeRequest(BaseModel):
    mode: TravelMode


class VisibilityRequest(BaseModel):
    show: bool


class DraftRequest(BaseModel):
    """Partial update of the blockage being composed."""
    name: Optional[str] = None
    description: Optional[str] = None
    radius_meters: Optional[float] = Field(default=None, gt=0)


def _check_stop_index(engine: RoutingEngine, index: int):
    if not 0 <= index < len(engine.state.stops):
        raise HTTPException(status_code=404, detail=f"No stop at index {index}")


@router.get("/health")
async def health_check(engine: EngineDep):
    """Health check - reports the last known readiness, no remote call."""
    return {
        "status": "ok",
        "readiness": engine.state.readiness.value,
    }


@router.get("/modes")
async def list_modes():
    """Travel modes and their road-type presets."""
    return [
        {"id": mode.value, "label": TRAVEL_MODE_LABEL[mode], "axis_types": preset_for(mode)}
        for mode in TravelMode
    ]


@router.get("/state", response_model=EngineSnapshot)
async def get_state(engine: EngineDep):
    """Read-only snapshot for the map and side panel."""
    return engine.snapshot()


@router.post("/click", response_model=EngineSnapshot)
async def point_clicked(request: ClickRequest, engine: EngineDep):
    """Map click: fills the pending stop, the blockage point or the next unset stop."""
    engine.point_clicked(request.lat, request.long)
    return engine.snapshot()


@router.post("/pick/stop/{index}", response_model=EngineSnapshot)
async def pick_stop(index: int, engine: EngineDep):
    _check_stop_index(engine, index)
    engine.pick_stop(index)
    return engine.snapshot()


@router.post("/pick/blockage", response_model=EngineSnapshot)
async def pick_blockage_point(engine: EngineDep):
    engine.pick_blockage_point()
    return engine.snapshot()


@router.delete("/pick", response_model=EngineSnapshot)
async def cancel_pick(engine: EngineDep):
    engine.cancel_pick()
    return engine.snapshot()


@router.post("/stops", response_model=EngineSnapshot)
async def add_stop(engine: EngineDep):
    engine.add_stop()
    return engine.snapshot()


@router.put("/stops/{index}", response_model=EngineSnapshot)
async def set_stop(index: int, point: Point, engine: EngineDep):
    """Replace one stop with typed coordinates."""
    _check_stop_index(engine, index)
    engine.set_stop(index, point)
    return engine.snapshot()


@router.delete("/stops/{index}", response_model=EngineSnapshot)
async def delete_stop(index: int, engine: EngineDep):
    _check_stop_index(engine, index)
    engine.delete_stop(index)
    return engine.snapshot()


@router.post("/stops/swap", response_model=EngineSnapshot)
async def swap_stops(engine: EngineDep):
    if not engine.swap_stops():
        raise HTTPException(status_code=400, detail="Swap needs exactly two stops")
    return engine.snapshot()


@router.delete("/stops", response_model=EngineSnapshot)
async def clear_stops(engine: EngineDep):
    engine.clear_stops()
    return engine.snapshot()


@router.put("/mode", response_model=EngineSnapshot)
async def set_mode(request: ModeRequest, engine: EngineDep):
    """Change travel mode; the preset is pushed when the service is ready."""
    await engine.set_mode(request.mode)
    return engine.snapshot()


@router.post("/route", response_model=EngineSnapshot)
async def get_route(engine: EngineDep):
    """Route through all stops. Segment errors are reported in the snapshot."""
    try:
        await engine.request_route()
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return engine.snapshot()


@router.get("/axis-types/{axis_type}")
async def get_axis_type(axis_type: str, engine: EngineDep):
    """Geometry of one road category, passed through from the routing service."""
    try:
        return await engine.get_axis_type(axis_type)
    except TransportError as e:
        logger.warning(f"Axis type lookup failed: {e}")
        raise HTTPException(status_code=502, detail=str(e))


@router.put("/blockages/draft", response_model=BlockageDraft)
async def update_blockage_draft(request: DraftRequest, engine: EngineDep):
    try:
        return engine.update_blockage_draft(
            name=request.name,
            description=request.description,
            radius_meters=request.radius_meters,
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.delete("/blockages/draft/point", response_model=BlockageDraft)
async def clear_blockage_point(engine: EngineDep):
    engine.clear_blockage_point()
    return engine.state.draft


@router.post("/blockages", response_model=EngineSnapshot)
async def add_blockage(engine: EngineDep):
    """Create the drafted blockage and wait for the list to reflect it."""
    if not engine.blockages.can_add():
        raise HTTPException(
            status_code=400,
            detail="Service must be ready and the blockage needs a point and a name",
        )
    await engine.add_blockage()
    return engine.snapshot()


@router.delete("/blockages/{name:path}", response_model=EngineSnapshot)
async def delete_blockage(name: str, engine: EngineDep):
    await engine.delete_blockage(name)
    return engine.snapshot()


@router.put("/blockages/visibility", response_model=EngineSnapshot)
async def set_blockage_visibility(request: VisibilityRequest, engine: EngineDep):
    await engine.set_show_blockages(request.show)
    return engine.snapshot()
