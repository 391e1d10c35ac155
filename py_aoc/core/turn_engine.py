"""
Turn engine and faction AI.

One call to ``TurnEngine.advance`` is one game tick:
1. Advance the turn counter and derive the era
2. For each faction in list order: collect income, maybe raise a unit,
   then let each unit take one greedy step towards enemy territory
3. Recompute fog of war

Units step one tile per turn (no path search). Walking onto an enemy
starts a battle; walking onto a free tile may slowly win the region for
the mover. A land unit that ends its step on a city, by moving or by
winning a battle there, takes the city. Units raised during a turn first
act on the next one.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import structlog
from pydantic import BaseModel, Field

from .combat import CombatOptions, CombatResult, resolve_combat
from .regions import Region
from .state import Faction, WorldState
from .units import SPAWNABLE_KINDS, UNIT_CATALOG, Unit
from .vision import compute_vision
from .world_grid import NO_REGION, Terrain

logger = structlog.get_logger()

ERA_NAMES = ("Ancient", "Classical", "Medieval", "Industrial")


class SimulationOptions(BaseModel):
    """Turn simulation options."""

    income_base: int = Field(default=5, ge=0, description="Treasury gained every turn")
    income_per_region: int = Field(default=2, ge=0, description="Treasury gained per owned region")
    spawn_threshold: int = Field(default=50, ge=0, description="Treasury needed to consider a spawn")
    spawn_chance: float = Field(default=0.5, ge=0, le=1, description="Chance to spawn when affordable")
    spawn_cost: int = Field(default=30, ge=0, description="Treasury spent per spawned unit")
    spawn_search_radius: int = Field(default=6, ge=0, description="Max distance from the capital")
    act_chance: float = Field(default=0.75, ge=0, le=1, description="Chance a unit acts this turn")
    roam_radius: int = Field(default=3, ge=1, description="Offset range when there is no target")
    capture_base: float = Field(default=0.02, ge=0, description="Base chance a step flips a region")
    capture_per_turn: float = Field(default=0.001, ge=0, description="Capture chance added per turn")
    heal_per_turn: int = Field(default=1, ge=0, description="Hit points a unit regains each turn")
    era_length: int = Field(default=25, ge=1, description="Turns per era")
    max_era: int = Field(default=len(ERA_NAMES) - 1, ge=0, description="Last era index")
    combat: CombatOptions = Field(default_factory=CombatOptions)


def era_for_turn(turn: int, era_length: int = 25, max_era: int = len(ERA_NAMES) - 1) -> int:
    """Era index for a turn: ``clamp(turn // era_length, 0, max_era)``."""
    return min(max(turn // era_length, 0), max_era)


def era_name(era: int) -> str:
    return ERA_NAMES[min(max(era, 0), len(ERA_NAMES) - 1)]


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


@dataclass
class FactionTurnReport:
    """What one faction did during a turn."""

    faction_id: int
    income: int = 0
    spent: int = 0
    spawned: List[str] = field(default_factory=list)
    moves: int = 0
    battles: int = 0
    captured_regions: List[int] = field(default_factory=list)
    captured_cities: List[str] = field(default_factory=list)


@dataclass
class TurnReport:
    """Summary of one advanced turn."""

    turn: int
    era: int
    factions: List[FactionTurnReport] = field(default_factory=list)
    battles: List[CombatResult] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "turn": self.turn,
            "era": self.era,
            "era_name": era_name(self.era),
            "factions": [asdict(f) for f in self.factions],
            "battles": [
                {
                    "attacker_id": b.attacker_id,
                    "defender_id": b.defender_id,
                    "attacker_power": b.attacker_power,
                    "defender_power": b.defender_power,
                    "winner_id": b.winner_id,
                    "x": b.x,
                    "y": b.y,
                }
                for b in self.battles
            ],
        }


class TurnEngine:
    """Advances a world by one turn at a time."""

    def __init__(self, world: WorldState, options: Optional[SimulationOptions] = None):
        """
        Initialize the engine.

        Args:
            world: Game state to mutate
            options: Simulation options
        """
        self.world = world
        self.options = options or SimulationOptions()
        self._anchors: List[Tuple[int, int]] = []
        self._has_terrain: List[Dict[Terrain, bool]] = []

    def advance(self) -> TurnReport:
        """Run one full turn and return its report."""
        world = self.world
        world.turn += 1
        world.era_index = era_for_turn(world.turn, self.options.era_length, self.options.max_era)
        self._index_regions()

        report = TurnReport(turn=world.turn, era=world.era_index)
        for unit in world.units.values():
            unit.reset_moves()
            unit.heal(self.options.heal_per_turn)

        for faction in world.factions:
            faction.tech = world.era_index
            faction_report = FactionTurnReport(faction_id=faction.id)
            report.factions.append(faction_report)

            self._collect_income(faction, faction_report)
            self._maybe_spawn(faction, faction_report)
            for unit in list(faction.units):
                if unit.id not in world.units:
                    continue
                if world.rng.chance(self.options.act_chance):
                    self._act(faction, unit, faction_report, report)

        compute_vision(world)

        logger.info(
            "Turn advanced",
            turn=world.turn,
            era=world.era_index,
            battles=len(report.battles),
            units=len(world.units),
        )
        return report

    def _index_regions(self) -> None:
        """Cache region anchor coordinates and terrain presence for target search."""
        grid = self.world.grid
        ratio = self.world.config.factions.representative_ratio
        self._anchors = []
        self._has_terrain = []
        for region in self.world.regions:
            self._anchors.append(grid.coords(region.representative_tile(ratio)))
            terrains = {grid.terrain(t) for t in region.tiles}
            self._has_terrain.append({t: t in terrains for t in Terrain})

    def _collect_income(self, faction: Faction, report: FactionTurnReport) -> None:
        income = self.options.income_base + self.options.income_per_region * len(faction.regions)
        faction.treasury += income
        report.income = income

    def _maybe_spawn(self, faction: Faction, report: FactionTurnReport) -> None:
        """
        Possibly raise a unit near the capital.

        The cost is only paid when a free tile the new unit can stand on
        is found within the search radius.
        """
        if faction.treasury <= self.options.spawn_threshold:
            return
        if not self.world.rng.chance(self.options.spawn_chance):
            return

        world = self.world
        grid = world.grid
        kind = world.rng.choice(SPAWNABLE_KINDS)
        stats = UNIT_CATALOG[kind]
        cx, cy = faction.capital
        tile = grid.ring_search(
            cx,
            cy,
            self.options.spawn_search_radius,
            lambda i: i not in grid.occupants and stats.can_enter(grid.terrain(i)),
        )
        if tile is None:
            logger.debug("No room to spawn unit", faction=faction.id, kind=kind.value)
            return

        faction.treasury -= self.options.spawn_cost
        unit = world.spawn_unit(faction, kind, tile)
        # Raised units first move on the next turn
        unit.moves = 0
        report.spent += self.options.spawn_cost
        report.spawned.append(unit.id)

    def _act(self, faction: Faction, unit: Unit, report: FactionTurnReport, turn_report: TurnReport) -> None:
        world = self.world
        if unit.moves <= 0:
            return
        target = self._nearest_target(faction, unit)
        if target is not None:
            tx, ty = world.grid.coords(world.rng.choice(target.tiles))
        else:
            span = 2 * self.options.roam_radius + 1
            tx = unit.x + world.rng.randint(span) - self.options.roam_radius
            ty = unit.y + world.rng.randint(span) - self.options.roam_radius
        self._step_toward(unit, tx, ty, report, turn_report)

    def _nearest_target(self, faction: Faction, unit: Unit) -> Optional[Region]:
        """Closest region (by anchor tile) not owned by the faction that the unit can enter."""
        best = None
        best_d2 = None
        naval = unit.stats.naval
        for region in self.world.regions:
            if region.owner == faction.id:
                continue
            terrain = self._has_terrain[region.id]
            if not (terrain[Terrain.WATER] if naval else terrain[Terrain.PLAIN]):
                continue
            ax, ay = self._anchors[region.id]
            d2 = (ax - unit.x) ** 2 + (ay - unit.y) ** 2
            if best_d2 is None or d2 < best_d2:
                best, best_d2 = region, d2
        return best

    def _step_toward(self, unit: Unit, tx: int, ty: int, report: FactionTurnReport, turn_report: TurnReport) -> None:
        """
        Take one greedy step towards (tx, ty).

        Each axis moves by the sign of its delta, clamped to the map. The
        step is dropped if it goes nowhere, onto terrain the unit cannot
        enter, or onto a friendly unit.
        """
        world = self.world
        grid = world.grid
        nx, ny = grid.clamp(unit.x + _sign(tx - unit.x), unit.y + _sign(ty - unit.y))
        if (nx, ny) == (unit.x, unit.y):
            return
        tile = grid.index(nx, ny)
        if not unit.stats.can_enter(grid.terrain(tile)):
            return

        occupant = grid.occupants.get(tile)
        if occupant is not None:
            if occupant.owner == unit.owner:
                return
            result = resolve_combat(world, unit, occupant, self.options.combat)
            turn_report.battles.append(result)
            report.battles += 1
            unit.moves = 0
            if result.attacker_won:
                self._occupy_city(unit, tile, report)
            return

        world.move_unit(unit, tile)
        unit.moves -= 1
        report.moves += 1
        self._try_capture(unit, tile, report)
        self._occupy_city(unit, tile, report)

    def _try_capture(self, unit: Unit, tile: int, report: FactionTurnReport) -> None:
        """Territory creep: a small, growing chance to flip the region underfoot."""
        world = self.world
        chance = self.options.capture_base + world.turn * self.options.capture_per_turn
        if not world.rng.chance(chance):
            return
        region_id = int(world.grid.region[tile])
        if region_id == NO_REGION:
            return
        region = world.regions[region_id]
        if region.owner == unit.owner:
            return
        holders = world.capital_holders(region_id)
        if holders and unit.owner not in holders:
            return

        previous = region.owner
        world.assign_region(region_id, unit.owner)
        report.captured_regions.append(region_id)
        logger.debug("Region captured", region=region_id, faction=unit.owner, previous=previous)

    def _occupy_city(self, unit: Unit, tile: int, report: FactionTurnReport) -> None:
        city = self.world.grid.cities.get(tile)
        if city is None or city.owner == unit.owner or unit.stats.naval:
            return
        logger.debug("City taken", city=city.name, faction=unit.owner, previous=city.owner)
        city.owner = unit.owner
        report.captured_cities.append(city.name)
