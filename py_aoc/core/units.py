"""
Unit kinds, their fixed stats, and unit instances.
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from .world_grid import Terrain


class UnitKind(str, Enum):
    """Closed set of unit kinds."""

    SCOUT = "scout"
    INFANTRY = "infantry"
    CAVALRY = "cavalry"
    SIEGE = "siege"
    SHIP = "ship"


@dataclass(frozen=True)
class UnitStats:
    """Immutable stats shared by every unit of a kind."""

    name: str
    move: int
    attack: float
    defense: float
    sight: int
    cost: int
    naval: bool = False
    max_hp: int = 10

    def can_enter(self, terrain: Terrain) -> bool:
        """Ships sail on water; everything else walks on plains."""
        if self.naval:
            return terrain is Terrain.WATER
        return terrain is Terrain.PLAIN


UNIT_CATALOG: Mapping[UnitKind, UnitStats] = MappingProxyType({
    UnitKind.SCOUT: UnitStats(name="Scout", move=5, attack=1, defense=1, sight=6, cost=10),
    UnitKind.INFANTRY: UnitStats(name="Infantry", move=3, attack=3, defense=2, sight=4, cost=30),
    UnitKind.CAVALRY: UnitStats(name="Cavalry", move=5, attack=4, defense=2.5, sight=5, cost=50),
    UnitKind.SIEGE: UnitStats(name="Siege", move=1, attack=8, defense=1, sight=3, cost=120),
    UnitKind.SHIP: UnitStats(name="Ship", move=4, attack=2, defense=1.5, sight=5, cost=60, naval=True),
})

# Kinds a capital starts with
GARRISON_KINDS = (UnitKind.INFANTRY, UnitKind.SCOUT, UnitKind.CAVALRY)

# Kinds a faction may raise during play
SPAWNABLE_KINDS = tuple(UnitKind)


@dataclass
class Unit:
    """Individual unit instance."""

    id: str  # Unique across the game, e.g. "u17"
    kind: UnitKind
    owner: int  # Faction ID
    x: int
    y: int
    hp: int  # Lost by winning a battle, regained slowly each turn
    moves: int  # Movement left this turn (restored at turn start)

    @property
    def stats(self) -> UnitStats:
        return UNIT_CATALOG[self.kind]

    @classmethod
    def create(cls, unit_id: str, kind: UnitKind, owner: int, x: int, y: int) -> "Unit":
        stats = UNIT_CATALOG[kind]
        return cls(id=unit_id, kind=kind, owner=owner, x=x, y=y, hp=stats.max_hp, moves=stats.move)

    def reset_moves(self) -> None:
        self.moves = self.stats.move

    def heal(self, amount: int) -> None:
        self.hp = min(self.hp + amount, self.stats.max_hp)

    @property
    def health(self) -> float:
        """Fraction of hit points left, 1.0 when unhurt."""
        return self.hp / self.stats.max_hp

