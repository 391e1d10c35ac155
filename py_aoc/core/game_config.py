"""Aggregate configuration for a whole game."""

from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from .factions import FactionOptions
from .heightmap_generator import HeightmapConfig
from .hydrology import HydrologyOptions
from .regions import RegionOptions
from .turn_engine import SimulationOptions
from .world_grid import WorldGridOptions

if TYPE_CHECKING:
    from ..config.config import Settings


class GameConfig(BaseModel):
    """Everything needed to regenerate a world from a seed."""

    width: int = Field(default=160, ge=8, le=2048, description="Map width in tiles")
    height: int = Field(default=96, ge=8, le=2048, description="Map height in tiles")
    lattice_size: int = Field(default=32, ge=2, description="Noise lattice cells per axis")
    octaves: int = Field(default=5, ge=1, description="fBM octaves")
    latitude_bias: float = Field(
        default=0.0, ge=0, le=1, description="Equator-favoring height falloff (0 = off)"
    )
    terrain: WorldGridOptions = Field(default_factory=WorldGridOptions)
    hydrology: HydrologyOptions = Field(default_factory=HydrologyOptions)
    regions: RegionOptions = Field(default_factory=RegionOptions)
    factions: FactionOptions = Field(default_factory=FactionOptions)
    simulation: SimulationOptions = Field(default_factory=SimulationOptions)

    def heightmap_config(self) -> HeightmapConfig:
        return HeightmapConfig(
            width=self.width,
            height=self.height,
            lattice_size=self.lattice_size,
            octaves=self.octaves,
            latitude_bias=self.latitude_bias,
        )

    @classmethod
    def from_settings(cls, settings: "Settings") -> "GameConfig":
        """Game defaults taken from application settings."""
        return cls(
            width=settings.default_map_width,
            height=settings.default_map_height,
            regions=RegionOptions(region_count=settings.default_region_count),
            factions=FactionOptions(
                factions_count=settings.default_factions_count,
                initial_cities=settings.initial_cities,
            ),
        )
