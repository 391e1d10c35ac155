"""
Combat resolution.

A single exchange decides every battle. Each side's base stat plus an
era bonus is scaled by a random roll and by the unit's health; the higher
result wins and the loser is destroyed. The winner loses hit points in
proportion to how close the fight was. Attack gains more per era than
defense, so later eras favour the aggressor.
"""

from dataclasses import dataclass
from typing import Optional

import structlog
from pydantic import BaseModel, Field

from .state import WorldState
from .units import Unit

logger = structlog.get_logger()


class CombatOptions(BaseModel):
    """Combat tuning."""

    attack_era_bonus: float = Field(default=0.5, ge=0, description="Attack added per era")
    defense_era_bonus: float = Field(default=0.3, ge=0, description="Defense added per era")
    roll_min: float = Field(default=0.6, gt=0, description="Lowest power multiplier")
    roll_max: float = Field(default=1.4, gt=0, description="Highest power multiplier")
    wound_factor: float = Field(
        default=0.5, ge=0, description="Share of max HP a winner loses in an even fight"
    )


@dataclass
class CombatResult:
    """Outcome of one battle."""

    attacker_id: str
    defender_id: str
    attacker_power: float
    defender_power: float
    x: int  # Contested tile
    y: int

    @property
    def attacker_won(self) -> bool:
        return self.attacker_power > self.defender_power

    @property
    def winner_id(self) -> str:
        return self.attacker_id if self.attacker_won else self.defender_id

    @property
    def loser_id(self) -> str:
        return self.defender_id if self.attacker_won else self.attacker_id


def attack_power(unit: Unit, era: int, roll: float, options: CombatOptions) -> float:
    return (unit.stats.attack + era * options.attack_era_bonus) * roll * unit.health


def defense_power(unit: Unit, era: int, roll: float, options: CombatOptions) -> float:
    return (unit.stats.defense + era * options.defense_era_bonus) * roll * unit.health


def wound(winner: Unit, loser_power: float, winner_power: float, options: CombatOptions) -> None:
    """Take hit points from a battle winner; an even fight costs ``wound_factor`` of max HP."""
    if winner_power <= 0:
        return
    damage = int(winner.stats.max_hp * options.wound_factor * loser_power / winner_power)
    winner.hp = max(winner.hp - damage, 1)


def resolve_combat(
    world: WorldState,
    attacker: Unit,
    defender: Unit,
    options: Optional[CombatOptions] = None,
) -> CombatResult:
    """
    Fight a battle between two units and apply the result to the world.

    The attacker's roll is drawn before the defender's, both from the
    world's main stream. Ties go to the defender. A wounded unit fights
    with its power scaled by the share of hit points it has left.

    The loser is removed from its faction, the unit registry and its
    tile; a winning attacker then moves onto the defender's tile, so
    exactly one unit is left on the contested tile. The winner is wounded
    but never killed.

    Args:
        world: Game state holding both units
        attacker: Unit stepping onto the defender's tile
        defender: Unit holding the tile
        options: Combat tuning

    Returns:
        CombatResult describing the battle
    """
    options = options or CombatOptions()
    era = world.era_index
    atk_roll = world.rng.uniform(options.roll_min, options.roll_max)
    def_roll = world.rng.uniform(options.roll_min, options.roll_max)

    result = CombatResult(
        attacker_id=attacker.id,
        defender_id=defender.id,
        attacker_power=attack_power(attacker, era, atk_roll, options),
        defender_power=defense_power(defender, era, def_roll, options),
        x=defender.x,
        y=defender.y,
    )

    contested = world.grid.index(defender.x, defender.y)
    if result.attacker_won:
        world.remove_unit(defender)
        world.move_unit(attacker, contested)
        wound(attacker, result.defender_power, result.attacker_power, options)
    else:
        world.remove_unit(attacker)
        wound(defender, result.attacker_power, result.defender_power, options)

    logger.debug(
        "Combat resolved",
        attacker=attacker.id,
        defender=defender.id,
        attacker_power=round(result.attacker_power, 3),
        defender_power=round(result.defender_power, 3),
        winner=result.winner_id,
    )
    return result
