"""
Mutable game state.

``WorldState`` is the single aggregate every operation works on. It is
passed explicitly; nothing in the package keeps game state at module
level. The helpers here are the only code that moves units or changes
region ownership, so occupancy and ownership bookkeeping stay in sync.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional, Set, Tuple

import numpy as np

from .lcg_prng import LCGPRNG
from .regions import Region
from .units import Unit, UnitKind
from .world_grid import NO_REGION, WorldGrid

if TYPE_CHECKING:
    from .game_config import GameConfig


@dataclass
class Faction:
    """An AI-controlled player."""

    id: int
    name: str
    color: Tuple[int, int, int]
    capital: Tuple[int, int]  # (x, y), fixed at creation
    regions: List[int] = field(default_factory=list)
    units: List[Unit] = field(default_factory=list)
    treasury: int = 0
    tech: int = 0  # Follows the era


@dataclass
class WorldState:
    """Complete game state."""

    config: "GameConfig"
    seed: int
    rng: LCGPRNG  # Main stream: rivers, garrisons, towns and all turn randomness
    grid: WorldGrid
    regions: List[Region]
    factions: List[Faction] = field(default_factory=list)
    units: Dict[str, Unit] = field(default_factory=dict)  # unit ID -> unit
    turn: int = 0
    era_index: int = 0
    next_unit_id: int = 1
    # Per-faction visibility layers, shape (factions, tiles); set by vision
    visible: Optional[np.ndarray] = None
    explored: Optional[np.ndarray] = None

    def faction(self, faction_id: Optional[int]) -> Optional[Faction]:
        """Faction by ID, or None for unknown IDs."""
        if faction_id is None or not 0 <= faction_id < len(self.factions):
            return None
        return self.factions[faction_id]

    def region(self, region_id: Optional[int]) -> Optional[Region]:
        if region_id is None or not 0 <= region_id < len(self.regions):
            return None
        return self.regions[region_id]

    def generate_unit_id(self) -> str:
        """Generate a unique unit ID."""
        unit_id = f"u{self.next_unit_id}"
        self.next_unit_id += 1
        return unit_id

    def capital_region(self, faction: Faction) -> int:
        x, y = faction.capital
        return int(self.grid.region[self.grid.index(x, y)])

    def capital_holders(self, region_id: int) -> Set[int]:
        """IDs of the factions whose capitals lie in the region."""
        return {f.id for f in self.factions if self.capital_region(f) == region_id}

    def assign_region(self, region_id: int, faction_id: Optional[int]) -> None:
        """Set a region's owner and keep faction region lists consistent."""
        region = self.regions[region_id]
        previous = self.faction(region.owner)
        if previous is not None and region_id in previous.regions:
            previous.regions.remove(region_id)
        region.owner = faction_id
        new_owner = self.faction(faction_id)
        if new_owner is not None and region_id not in new_owner.regions:
            new_owner.regions.append(region_id)

    def spawn_unit(self, faction: Faction, kind: UnitKind, tile: int) -> Unit:
        """Create a unit on an empty tile."""
        if tile in self.grid.occupants:
            raise ValueError(f"Tile {tile} is already occupied")
        x, y = self.grid.coords(tile)
        unit = Unit.create(self.generate_unit_id(), kind, faction.id, x, y)
        self.units[unit.id] = unit
        faction.units.append(unit)
        self.grid.occupants[tile] = unit
        return unit

    def remove_unit(self, unit: Unit) -> None:
        """Destroy a unit: drop it from its faction, the registry, its tile and any garrison."""
        self.units.pop(unit.id, None)
        owner = self.faction(unit.owner)
        if owner is not None and unit in owner.units:
            owner.units.remove(unit)
        tile = self.grid.index(unit.x, unit.y)
        if self.grid.occupants.get(tile) is unit:
            del self.grid.occupants[tile]
        for city in self.grid.cities.values():
            if unit.id in city.garrison:
                city.garrison.remove(unit.id)

    def move_unit(self, unit: Unit, tile: int) -> None:
        """Move a unit onto an empty tile."""
        if tile in self.grid.occupants:
            raise ValueError(f"Tile {tile} is already occupied")
        origin = self.grid.index(unit.x, unit.y)
        if self.grid.occupants.get(origin) is unit:
            del self.grid.occupants[origin]
        unit.x, unit.y = self.grid.coords(tile)
        self.grid.occupants[tile] = unit

    def region_at(self, x: int, y: int) -> Optional[Region]:
        if not self.grid.in_bounds(x, y):
            return None
        region_id = int(self.grid.region[self.grid.index(x, y)])
        return None if region_id == NO_REGION else self.regions[region_id]
