"""FastAPI main application."""

import threading
import uuid
from typing import Dict, List, Optional, Tuple, Union

import structlog
import uvicorn
from fastapi import FastAPI, HTTPException, Query, Request, Response
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from ..config import settings
from ..core.errors import GenerationConfigError, SnapshotLoadError
from ..core.game import new_game, run_turns, set_region_owner
from ..core.game_config import GameConfig
from ..core.snapshot import deserialize_state, serialize_state
from ..core.state import WorldState
from ..core.turn_engine import era_name
from ..core.vision import query_explored, query_visible
from ..utils.logging import configure_logging

configure_logging(settings)

logger = structlog.get_logger()

# Initialize FastAPI app
app = FastAPI(
    title="Age of Conflict API",
    description="Procedural world generation and turn-based faction simulation",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class GameStore:
    """In-memory games, keyed by ID. One lock guards every read and write."""

    def __init__(self):
        self._games: Dict[str, WorldState] = {}
        self.lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._games)

    def add(self, world: WorldState) -> str:
        game_id = str(uuid.uuid4())
        with self.lock:
            self._games[game_id] = world
        return game_id

    def get(self, game_id: str) -> WorldState:
        world = self._games.get(game_id)
        if world is None:
            raise HTTPException(status_code=404, detail="Game not found")
        return world

    def items(self) -> List[Tuple[str, WorldState]]:
        with self.lock:
            return list(self._games.items())

    def remove(self, game_id: str) -> None:
        with self.lock:
            if self._games.pop(game_id, None) is None:
                raise HTTPException(status_code=404, detail="Game not found")


store = GameStore()


# Request/Response models
class NewGameRequest(BaseModel):
    """Request to generate a new game."""

    seed: Optional[Union[int, str]] = Field(None, description="Seed for reproducible generation")
    width: Optional[int] = Field(None, ge=8, description="Map width in tiles")
    height: Optional[int] = Field(None, ge=8, description="Map height in tiles")
    factions_count: Optional[int] = Field(None, ge=1, le=64, description="Number of factions")
    region_count: Optional[int] = Field(None, ge=1, description="Number of Voronoi region seeds")
    initial_cities: Optional[int] = Field(None, ge=0, description="Neutral towns placed at start")


class FactionSummary(BaseModel):
    id: int
    name: str
    color: Tuple[int, int, int]
    capital: Tuple[int, int]
    treasury: int
    tech: int
    regions: int
    units: int


class GameSummary(BaseModel):
    """Summary information about a game."""

    id: str
    seed: int
    width: int
    height: int
    turn: int
    era: int
    era_name: str
    regions: int
    factions: int
    units: int


class GameDetail(GameSummary):
    faction_details: List[FactionSummary]
    cities: int
    rivers: int


class TurnResponse(BaseModel):
    game_id: str
    turn: int
    era: int
    era_name: str
    reports: List[dict]


class RegionOwnerRequest(BaseModel):
    faction_id: Optional[int] = Field(None, description="New owner, null for unowned")


class RegionOwnerResponse(BaseModel):
    region_id: int
    owner: Optional[int]
    changed: bool


class VisibilityResponse(BaseModel):
    faction_id: int
    x: int
    y: int
    visible: bool
    explored: bool


def _summary(game_id: str, world: WorldState) -> GameSummary:
    return GameSummary(
        id=game_id,
        seed=world.seed,
        width=world.grid.width,
        height=world.grid.height,
        turn=world.turn,
        era=world.era_index,
        era_name=era_name(world.era_index),
        regions=len(world.regions),
        factions=len(world.factions),
        units=len(world.units),
    )


def _build_config(request: NewGameRequest) -> GameConfig:
    config = GameConfig.from_settings(settings)
    width = request.width or config.width
    height = request.height or config.height
    if width > settings.max_map_width or height > settings.max_map_height:
        raise HTTPException(
            status_code=400,
            detail=f"Map size is limited to {settings.max_map_width}x{settings.max_map_height}",
        )

    regions = config.regions
    if request.region_count is not None:
        regions = regions.model_copy(update={"region_count": request.region_count})
    factions = config.factions
    if request.factions_count is not None:
        factions = factions.model_copy(update={"factions_count": request.factions_count})
    if request.initial_cities is not None:
        factions = factions.model_copy(update={"initial_cities": request.initial_cities})

    return config.model_copy(
        update={"width": width, "height": height, "regions": regions, "factions": factions}
    )


# Event handlers
@app.on_event("startup")
async def startup_event():
    logger.info("Starting Age of Conflict API", log_level=settings.log_level)


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down Age of Conflict API", games=len(store))


# API endpoints
@app.get("/")
async def root():
    """Root endpoint."""
    return {"message": "Age of Conflict API", "version": "0.1.0", "status": "running"}


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "games": len(store)}


@app.post("/games", response_model=GameSummary)
def create_game(request: NewGameRequest):
    """Generate a new game and keep it in memory."""
    logger.info("Game generation requested", request=request.model_dump())
    config = _build_config(request)

    try:
        world = new_game(request.seed, config)
    except GenerationConfigError as e:
        logger.warning("Game generation failed", error=str(e))
        raise HTTPException(status_code=422, detail=str(e)) from e

    game_id = store.add(world)
    logger.info("Game created", game_id=game_id, seed=world.seed)
    return _summary(game_id, world)


@app.get("/games", response_model=List[GameSummary])
def list_games():
    """List all games held in memory."""
    return [_summary(game_id, world) for game_id, world in store.items()]


@app.get("/games/{game_id}", response_model=GameDetail)
def get_game(game_id: str):
    """Get details for one game."""
    with store.lock:
        world = store.get(game_id)
        summary = _summary(game_id, world)
        factions = [
            FactionSummary(
                id=f.id,
                name=f.name,
                color=f.color,
                capital=f.capital,
                treasury=f.treasury,
                tech=f.tech,
                regions=len(f.regions),
                units=len(f.units),
            )
            for f in world.factions
        ]
        return GameDetail(
            **summary.model_dump(),
            faction_details=factions,
            cities=len(world.grid.cities),
            rivers=len(world.grid.rivers),
        )


@app.post("/games/{game_id}/turns", response_model=TurnResponse)
def advance_game(game_id: str, count: int = Query(1, ge=1, description="Turns to advance")):
    """Advance a game by one or more turns."""
    if count > settings.max_turns_per_request:
        raise HTTPException(
            status_code=400,
            detail=f"At most {settings.max_turns_per_request} turns per request",
        )

    with store.lock:
        world = store.get(game_id)
        reports = run_turns(world, count)
        return TurnResponse(
            game_id=game_id,
            turn=world.turn,
            era=world.era_index,
            era_name=era_name(world.era_index),
            reports=[r.to_dict() for r in reports],
        )


@app.put("/games/{game_id}/regions/{region_id}/owner", response_model=RegionOwnerResponse)
def update_region_owner(game_id: str, region_id: int, request: RegionOwnerRequest):
    """Editor override of a region's owner. Unknown IDs leave the game unchanged."""
    with store.lock:
        world = store.get(game_id)
        changed = set_region_owner(world, region_id, request.faction_id)
        region = world.region(region_id)
        return RegionOwnerResponse(
            region_id=region_id,
            owner=region.owner if region is not None else None,
            changed=changed,
        )


@app.get("/games/{game_id}/visibility/{faction_id}", response_model=VisibilityResponse)
def get_visibility(game_id: str, faction_id: int, x: int = Query(...), y: int = Query(...)):
    """Whether a faction sees, or has ever seen, a tile."""
    with store.lock:
        world = store.get(game_id)
        return VisibilityResponse(
            faction_id=faction_id,
            x=x,
            y=y,
            visible=query_visible(world, faction_id, x, y),
            explored=query_explored(world, faction_id, x, y),
        )


@app.get("/games/{game_id}/export")
def export_game(game_id: str):
    """Download a game as a JSON snapshot."""
    with store.lock:
        world = store.get(game_id)
        content = serialize_state(world)
    return Response(content=content, media_type="application/json")


@app.post("/games/import", response_model=GameSummary)
async def import_game(request: Request):
    """Load a JSON snapshot as a new game. Validation runs off the event loop."""
    body = await request.body()
    try:
        world = await run_in_threadpool(deserialize_state, body)
    except SnapshotLoadError as e:
        logger.warning("Snapshot import failed", error=str(e))
        raise HTTPException(status_code=400, detail=str(e)) from e

    game_id = store.add(world)
    logger.info("Game imported", game_id=game_id, turn=world.turn)
    return _summary(game_id, world)


@app.delete("/games/{game_id}")
def delete_game(game_id: str):
    """Drop a game from memory."""
    store.remove(game_id)
    logger.info("Game deleted", game_id=game_id)
    return {"deleted": game_id}


if __name__ == "__main__":
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
