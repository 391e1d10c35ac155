"""
Snapshot projection and persistence.

A ``GameSnapshot`` holds everything that matters for play: terrain
columns, region membership and owners, factions, units, cities, the
explored layer and the position of the random stream. Generation
artifacts such as the Voronoi seed points are not kept.

Loading validates the snapshot fully and builds a fresh WorldState, so a
failed load never touches the game currently in memory.
"""

from pathlib import Path
from typing import List, Optional, Tuple, Union

import numpy as np
import structlog
from pydantic import BaseModel, Field, ValidationError

from .errors import SnapshotLoadError
from .game_config import GameConfig
from .hydrology import River
from .lcg_prng import LCGPRNG
from .regions import Region
from .state import Faction, WorldState
from .units import Unit, UnitKind
from .vision import compute_vision
from .world_grid import City, NO_REGION, WorldGrid

logger = structlog.get_logger()

SNAPSHOT_VERSION = 1


class TerrainSnapshot(BaseModel):
    """Per-tile columns in row-major order."""

    heights: List[float]
    water: List[bool]
    mountain: List[bool]
    region: List[int] = Field(description="Region ID per tile, -1 when unassigned")


class RegionSnapshot(BaseModel):
    id: int
    owner: Optional[int] = None
    tiles: List[int] = Field(description="Tile indices in membership order")


class UnitSnapshot(BaseModel):
    id: str
    kind: UnitKind
    owner: int
    x: int
    y: int
    hp: int
    moves: int


class CitySnapshot(BaseModel):
    x: int
    y: int
    name: str
    owner: Optional[int] = None
    garrison: List[str] = Field(default_factory=list)


class FactionSnapshot(BaseModel):
    id: int
    name: str
    color: Tuple[int, int, int]
    capital: Tuple[int, int]
    regions: List[int]
    units: List[str]
    treasury: int = Field(ge=0)
    tech: int = 0


class GameSnapshot(BaseModel):
    """Serializable state of a whole game."""

    version: int = SNAPSHOT_VERSION
    seed: int
    config: GameConfig
    width: int = Field(ge=1)
    height: int = Field(ge=1)
    turn: int = Field(ge=0)
    era: int = Field(ge=0)
    rng_state: int
    next_unit_id: int = Field(ge=1)
    terrain: TerrainSnapshot
    regions: List[RegionSnapshot]
    factions: List[FactionSnapshot]
    units: List[UnitSnapshot]
    cities: List[CitySnapshot]
    explored: List[List[int]] = Field(
        default_factory=list, description="Per faction, tile indices ever seen"
    )
    rivers: List[List[int]] = Field(default_factory=list)


def build_snapshot(world: WorldState) -> GameSnapshot:
    """Project a WorldState into a GameSnapshot."""
    grid = world.grid
    explored = []
    if world.explored is not None:
        explored = [np.flatnonzero(row).tolist() for row in world.explored]

    return GameSnapshot(
        seed=world.seed,
        config=world.config,
        width=grid.width,
        height=grid.height,
        turn=world.turn,
        era=world.era_index,
        rng_state=world.rng.state,
        next_unit_id=world.next_unit_id,
        terrain=TerrainSnapshot(
            heights=grid.heights.tolist(),
            water=grid.water.tolist(),
            mountain=grid.mountain.tolist(),
            region=grid.region.tolist(),
        ),
        regions=[RegionSnapshot(id=r.id, owner=r.owner, tiles=list(r.tiles)) for r in world.regions],
        factions=[
            FactionSnapshot(
                id=f.id,
                name=f.name,
                color=f.color,
                capital=f.capital,
                regions=list(f.regions),
                units=[u.id for u in f.units],
                treasury=f.treasury,
                tech=f.tech,
            )
            for f in world.factions
        ],
        units=[
            UnitSnapshot(id=u.id, kind=u.kind, owner=u.owner, x=u.x, y=u.y, hp=u.hp, moves=u.moves)
            for u in world.units.values()
        ],
        cities=[_city_snapshot(grid, i, c) for i, c in sorted(grid.cities.items())],
        explored=explored,
        rivers=[list(r.cells) for r in grid.rivers],
    )


def serialize_state(world: WorldState) -> str:
    """Serialize a world to JSON text."""
    return build_snapshot(world).model_dump_json()


def deserialize_state(data: Union[str, bytes]) -> WorldState:
    """
    Rebuild a world from JSON text.

    Raises:
        SnapshotLoadError: If the text is not a valid, consistent snapshot
    """
    try:
        snap = GameSnapshot.model_validate_json(data)
    except ValidationError as e:
        raise SnapshotLoadError(f"Invalid snapshot: {e.error_count()} validation error(s)") from e
    return restore_snapshot(snap)


def save_game(world: WorldState, filepath: Union[str, Path]) -> None:
    """Save a world to a JSON file."""
    Path(filepath).write_text(serialize_state(world), encoding="utf-8")
    logger.info("Game saved", path=str(filepath), turn=world.turn)


def load_game(filepath: Union[str, Path]) -> WorldState:
    """
    Load a world from a JSON file.

    Raises:
        SnapshotLoadError: If the file cannot be read or holds a bad snapshot
    """
    try:
        text = Path(filepath).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise SnapshotLoadError(f"Cannot read snapshot {filepath}: {e}") from e
    world = deserialize_state(text)
    logger.info("Game loaded", path=str(filepath), turn=world.turn)
    return world


def restore_snapshot(snap: GameSnapshot) -> WorldState:
    """
    Build a WorldState from a validated snapshot.

    Raises:
        SnapshotLoadError: If the snapshot contradicts itself
    """
    if snap.version != SNAPSHOT_VERSION:
        raise SnapshotLoadError(f"Unsupported snapshot version {snap.version}")

    grid = _restore_grid(snap)
    regions = _restore_regions(snap, grid)

    rng = LCGPRNG(snap.seed)
    rng.state = snap.rng_state
    world = WorldState(
        config=snap.config,
        seed=snap.seed,
        rng=rng,
        grid=grid,
        regions=regions,
        turn=snap.turn,
        era_index=snap.era,
        next_unit_id=snap.next_unit_id,
    )
    _restore_factions(snap, world)
    _restore_cities(snap, world)

    compute_vision(world)
    for faction_id, tiles in enumerate(snap.explored[: len(world.factions)]):
        if any(not 0 <= t < grid.size for t in tiles):
            raise SnapshotLoadError(f"Explored tile out of range for faction {faction_id}")
        world.explored[faction_id, np.asarray(tiles, dtype=np.int64)] = True

    return world


def _restore_grid(snap: GameSnapshot) -> WorldGrid:
    size = snap.width * snap.height
    terrain = snap.terrain
    columns = (terrain.heights, terrain.water, terrain.mountain, terrain.region)
    if any(len(column) != size for column in columns):
        raise SnapshotLoadError(f"Terrain columns do not match a {snap.width}x{snap.height} map")

    water = np.array(terrain.water, dtype=bool)
    mountain = np.array(terrain.mountain, dtype=bool)
    if np.any(water & mountain):
        raise SnapshotLoadError("Tiles cannot be both water and mountain")

    grid = WorldGrid(
        width=snap.width,
        height=snap.height,
        heights=np.array(terrain.heights, dtype=np.float64),
        water=water,
        mountain=mountain,
        region=np.array(terrain.region, dtype=np.int32),
    )
    for cells in snap.rivers:
        if any(not 0 <= c < size for c in cells):
            raise SnapshotLoadError("River cell out of range")
    grid.rivers = [River(id=i, cells=list(cells)) for i, cells in enumerate(snap.rivers)]
    return grid


def _restore_regions(snap: GameSnapshot, grid: WorldGrid) -> List[Region]:
    membership = np.full(grid.size, NO_REGION, dtype=np.int64)
    regions = []
    for position, rs in enumerate(snap.regions):
        if rs.id != position:
            raise SnapshotLoadError(f"Region IDs must be dense, got {rs.id} at {position}")
        if not rs.tiles:
            raise SnapshotLoadError(f"Region {rs.id} is empty")
        tiles = np.asarray(rs.tiles, dtype=np.int64)
        if np.any((tiles < 0) | (tiles >= grid.size)):
            raise SnapshotLoadError(f"Region {rs.id} has tiles out of range")
        if np.any(membership[tiles] != NO_REGION) or len(np.unique(tiles)) != len(tiles):
            raise SnapshotLoadError(f"Region {rs.id} shares tiles with another region")
        membership[tiles] = rs.id
        if rs.owner is not None and not 0 <= rs.owner < len(snap.factions):
            raise SnapshotLoadError(f"Region {rs.id} has unknown owner {rs.owner}")
        regions.append(Region(id=rs.id, tiles=list(rs.tiles), owner=rs.owner))

    if not np.array_equal(membership, grid.region.astype(np.int64)):
        raise SnapshotLoadError("Tile region column disagrees with region membership")
    return regions


def _restore_factions(snap: GameSnapshot, world: WorldState) -> None:
    grid = world.grid
    units = {}
    for us in snap.units:
        if us.id in units:
            raise SnapshotLoadError(f"Duplicate unit ID {us.id}")
        if not grid.in_bounds(us.x, us.y):
            raise SnapshotLoadError(f"Unit {us.id} is off the map")
        if not 0 <= us.owner < len(snap.factions):
            raise SnapshotLoadError(f"Unit {us.id} has unknown owner {us.owner}")
        tile = grid.index(us.x, us.y)
        if tile in grid.occupants:
            raise SnapshotLoadError(f"Units {grid.occupants[tile].id} and {us.id} share a tile")
        unit = Unit(id=us.id, kind=us.kind, owner=us.owner, x=us.x, y=us.y, hp=us.hp, moves=us.moves)
        units[unit.id] = unit
        grid.occupants[tile] = unit
    world.units = units

    for position, fs in enumerate(snap.factions):
        if fs.id != position:
            raise SnapshotLoadError(f"Faction IDs must be dense, got {fs.id} at {position}")
        if not grid.in_bounds(*fs.capital):
            raise SnapshotLoadError(f"Faction {fs.id} capital is off the map")
        owned = sorted(r.id for r in world.regions if r.owner == fs.id)
        if sorted(fs.regions) != owned:
            raise SnapshotLoadError(f"Faction {fs.id} region list disagrees with region owners")
        members = []
        for unit_id in fs.units:
            unit = units.get(unit_id)
            if unit is None or unit.owner != fs.id:
                raise SnapshotLoadError(f"Faction {fs.id} lists unit {unit_id} it does not own")
            members.append(unit)
        world.factions.append(
            Faction(
                id=fs.id,
                name=fs.name,
                color=fs.color,
                capital=fs.capital,
                regions=list(fs.regions),
                units=members,
                treasury=fs.treasury,
                tech=fs.tech,
            )
        )

    listed = sum(len(f.units) for f in world.factions)
    if listed != len(units):
        raise SnapshotLoadError("Some units are not listed by their faction")


def _restore_cities(snap: GameSnapshot, world: WorldState) -> None:
    grid = world.grid
    for cs in snap.cities:
        if not grid.in_bounds(cs.x, cs.y):
            raise SnapshotLoadError(f"City {cs.name} is off the map")
        if cs.owner is not None and world.faction(cs.owner) is None:
            raise SnapshotLoadError(f"City {cs.name} has unknown owner {cs.owner}")
        if any(unit_id not in world.units for unit_id in cs.garrison):
            raise SnapshotLoadError(f"City {cs.name} lists a garrison unit that does not exist")
        grid.cities[grid.index(cs.x, cs.y)] = City(name=cs.name, owner=cs.owner, garrison=list(cs.garrison))


def _city_snapshot(grid: WorldGrid, tile: int, city: City) -> CitySnapshot:
    x, y = grid.coords(tile)
    return CitySnapshot(x=x, y=y, name=city.name, owner=city.owner, garrison=list(city.garrison))
