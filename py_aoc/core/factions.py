"""
Faction and starting unit placement.

Process:
1. generate_colors() - One RGB color per faction
2. place_capitals() - A capital on a plain tile of a distinct habitable region
3. claim_regions() - Each faction claims regions near its capital
4. found_capital() - Capital city on the capital tile
5. place_garrison() - A few starting units around the capital
6. place_neutral_towns() - Unowned settlements scattered over the map
"""

from typing import Dict, List, Optional, Set, Tuple

import structlog
from pydantic import BaseModel, Field

from .errors import GenerationConfigError
from .lcg_prng import LCGPRNG
from .state import Faction, WorldState
from .units import GARRISON_KINDS, UNIT_CATALOG
from .world_grid import City

logger = structlog.get_logger()


class FactionOptions(BaseModel):
    """Faction generation options."""

    factions_count: int = Field(default=8, ge=1, description="Number of factions")
    claim_divisor: float = Field(
        default=1.6,
        gt=0,
        description="Claim radius squared is map area / (factions * this)",
    )
    representative_ratio: float = Field(
        default=0.4, ge=0, lt=1, description="Position of a region's representative tile"
    )
    starting_treasury: int = Field(default=200, ge=0, description="Minimum starting treasury")
    treasury_spread: int = Field(default=300, ge=0, description="Random extra starting treasury")
    garrison_min: int = Field(default=2, ge=0, description="Minimum starting units")
    garrison_spread: int = Field(default=3, ge=1, description="Random extra starting units")
    garrison_search_radius: int = Field(
        default=6, ge=0, description="How far from the capital garrison units may stand"
    )
    initial_cities: int = Field(default=10, ge=0, description="Neutral towns placed at start")
    town_placement_attempts: int = Field(default=100, ge=1, description="Tries per neutral town")


class FactionGenerator:
    """Creates factions, their capitals and starting garrisons."""

    def __init__(self, world: WorldState, prng: LCGPRNG, options: Optional[FactionOptions] = None):
        """
        Initialize the faction generator.

        Args:
            world: State with grid and regions built; factions are added to it
            prng: Faction stream (colors, capitals, treasuries). Garrisons and
                towns draw from the world's main stream.
            options: Faction generation options
        """
        self.world = world
        self.prng = prng
        self.options = options or FactionOptions()

    def generate(self) -> List[Faction]:
        """Create all factions and place starting cities and units."""
        logger.info("Starting faction generation", factions=self.options.factions_count)

        colors = self.generate_colors()
        self.place_capitals(colors)
        for faction in self.world.factions:
            self.claim_regions(faction)
            self.found_capital(faction)
            self.place_garrison(faction)
        self.place_neutral_towns()

        logger.info(
            "Faction generation completed",
            factions=len(self.world.factions),
            units=len(self.world.units),
            owned_regions=sum(len(f.regions) for f in self.world.factions),
        )
        return self.world.factions

    def generate_colors(self) -> List[Tuple[int, int, int]]:
        def channel() -> int:
            return int(60 + self.prng.random() * 180)

        return [(channel(), channel(), channel()) for _ in range(self.options.factions_count)]

    def place_capitals(self, colors: List[Tuple[int, int, int]]) -> None:
        """
        Pick a capital for every faction.

        Only regions with at least one plain tile qualify. Each faction gets
        a region no other capital uses while any is left; after that,
        capitals share regions.

        Raises:
            GenerationConfigError: If no region has a plain tile
        """
        grid = self.world.grid
        candidates = [r for r in self.world.regions if any(grid.is_plain(t) for t in r.tiles)]
        if not candidates:
            raise GenerationConfigError("No region contains a habitable tile for a capital")

        used = set()
        for faction_id in range(self.options.factions_count):
            available = [r for r in candidates if r.id not in used] or candidates
            region = self.prng.choice(available)
            taken = {f.capital for f in self.world.factions}
            plains = [t for t in region.tiles if grid.is_plain(t) and grid.coords(t) not in taken]
            tile = self.prng.choice(plains or [t for t in region.tiles if grid.is_plain(t)])
            treasury = self.options.starting_treasury + self.prng.randint(self.options.treasury_spread)

            faction = Faction(
                id=faction_id,
                name=f"Faction {faction_id + 1}",
                color=colors[faction_id],
                capital=grid.coords(tile),
                treasury=treasury,
            )
            self.world.factions.append(faction)
            self.world.assign_region(region.id, faction.id)
            used.add(region.id)

        logger.info("Placed capitals", capitals=len(self.world.factions), regions=len(used))

    def claim_regions(self, faction: Faction) -> None:
        """
        Claim every region whose representative tile is close to the capital.

        Factions claim in list order and a later claim overwrites an
        earlier one, except that a region holding capitals can only be
        claimed by the factions whose capitals it holds.
        """
        world = self.world
        grid = world.grid
        threshold = grid.width * grid.height / (len(world.factions) * self.options.claim_divisor)
        cx, cy = faction.capital
        founders: Dict[int, Set[int]] = {}
        for f in world.factions:
            founders.setdefault(world.capital_region(f), set()).add(f.id)

        claimed = 0
        for region in world.regions:
            x, y = grid.coords(region.representative_tile(self.options.representative_ratio))
            if (x - cx) ** 2 + (y - cy) ** 2 >= threshold:
                continue
            if region.id in founders and faction.id not in founders[region.id]:
                continue
            world.assign_region(region.id, faction.id)
            claimed += 1

        logger.debug("Regions claimed", faction=faction.id, claimed=claimed)

    def found_capital(self, faction: Faction) -> None:
        x, y = faction.capital
        self.world.grid.cities[self.world.grid.index(x, y)] = City(
            name=f"{faction.name} Capital", owner=faction.id
        )

    def place_garrison(self, faction: Faction) -> None:
        """
        Raise the starting units of a faction.

        The first unit stands on the capital; each further unit takes the
        nearest free plain tile around it, so no tile ever holds two units.
        """
        world = self.world
        grid = world.grid
        rng = world.rng
        cx, cy = faction.capital
        city = grid.cities[grid.index(cx, cy)]

        count = self.options.garrison_min + rng.randint(self.options.garrison_spread)
        for _ in range(count):
            kind = rng.choice(GARRISON_KINDS)
            stats = UNIT_CATALOG[kind]
            tile = grid.ring_search(
                cx,
                cy,
                self.options.garrison_search_radius,
                lambda i: i not in grid.occupants and stats.can_enter(grid.terrain(i)),
            )
            if tile is None:
                logger.warning("No room for garrison unit", faction=faction.id, kind=kind.value)
                continue
            unit = world.spawn_unit(faction, kind, tile)
            city.garrison.append(unit.id)

    def place_neutral_towns(self) -> None:
        """Scatter unowned towns on free plain tiles."""
        world = self.world
        grid = world.grid
        placed = 0
        for number in range(1, self.options.initial_cities + 1):
            for _ in range(self.options.town_placement_attempts):
                tile = world.rng.randint(grid.size)
                if grid.is_plain(tile) and tile not in grid.cities and tile not in grid.occupants:
                    grid.cities[tile] = City(name=f"Town {number}")
                    placed += 1
                    break
            else:
                logger.warning("Could not place neutral town", town=number)

        logger.info("Placed neutral towns", towns=placed)
