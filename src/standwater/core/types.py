"""
Type definitions and small records shared across the standwater package.
"""
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Optional

from typing_extensions import TypeAlias

from standwater.core.exceptions import SoilTextureError, ErrorContext


# Type aliases for clarity
Millimetres: TypeAlias = float
MolPerM2PerSec: TypeAlias = float
MetresPerSec: TypeAlias = float
StressFactor: TypeAlias = float  # (0, 1]
Celsius: TypeAlias = float
KiloPascal: TypeAlias = float
WattsPerM2: TypeAlias = float


class TextureClass(str, Enum):
    """Soil texture vocabulary keying the pedotransfer tables"""
    SAND = "sand"
    LOAMY_SAND = "loamy_sand"
    SANDY_LOAM = "sandy_loam"
    LOAM = "loam"
    SILTY_LOAM = "silty_loam"
    SANDY_CLAY_LOAM = "sandy_clay_loam"
    CLAY_LOAM = "clay_loam"
    SILTY_CLAY_LOAM = "silty_clay_loam"
    SANDY_CLAY = "sandy_clay"
    SILTY_CLAY = "silty_clay"
    CLAY = "clay"
    SILT = "silt"  # stress coefficients only, no Cosby fractions

    @classmethod
    def parse(cls, name: "str | TextureClass") -> "TextureClass":
        """Resolve a texture name, failing loudly on anything unknown."""
        if isinstance(name, cls):
            return name
        key = str(name).strip().lower().replace(" ", "_").replace("-", "_")
        try:
            return cls(key)
        except ValueError:
            raise SoilTextureError(
                f"Could not understand soil type '{name}'",
                ErrorContext(component="pedotransfer", operation="parse_texture"),
            ) from None


class StressModel(IntEnum):
    """Soil moisture stress closures"""
    POWER_LAW = 0
    LANDSBERG_WARING = 1
    MATRIC_POTENTIAL = 2


class FluxUpdatePolicy(str, Enum):
    """How a step's fluxes are written into the flux record"""
    ACCUMULATE = "accumulate"  # sub-daily steps summed into the day
    OVERWRITE = "overwrite"  # daily steps replace the record


@dataclass
class SimulationMode:
    """
    Run-level switches.

    The flags are fixed for a run; only ``step_idx`` advances between
    sub-daily steps.
    """
    sub_daily: bool = False
    water_stress: bool = True
    sw_stress_model: StressModel = StressModel.LANDSBERG_WARING
    calc_sw_params: bool = True
    split_am_pm: bool = True
    subdaily_step_seconds: float = 1800.0
    step_idx: int = 0

    @property
    def flux_policy(self) -> FluxUpdatePolicy:
        if self.sub_daily:
            return FluxUpdatePolicy.ACCUMULATE
        return FluxUpdatePolicy.OVERWRITE

    @classmethod
    def from_config(cls, config) -> "SimulationMode":
        """Build the mode from a StandWaterConfig"""
        sim = config.simulation
        return cls(
            sub_daily=sim.sub_daily,
            water_stress=sim.water_stress,
            sw_stress_model=StressModel(sim.sw_stress_model),
            calc_sw_params=sim.calc_sw_params,
            split_am_pm=sim.split_am_pm,
            subdaily_step_seconds=sim.subdaily_step_seconds,
        )


@dataclass(frozen=True)
class StepForcing:
    """Meteorological drivers for a single step"""
    rain: Millimetres
    tair: Celsius
    sw_rad: WattsPerM2
    press: Optional[KiloPascal] = None
    vpd: Optional[KiloPascal] = None
    wind: Optional[float] = None
    co2: Optional[float] = None  # umol mol-1, daily only
    # Half-day means, daily mode only
    tam: Optional[Celsius] = None
    tpm: Optional[Celsius] = None
    sw_rad_am: Optional[WattsPerM2] = None
    sw_rad_pm: Optional[WattsPerM2] = None
    vpd_am: Optional[KiloPascal] = None
    vpd_pm: Optional[KiloPascal] = None
    wind_am: Optional[float] = None
    wind_pm: Optional[float] = None


@dataclass(frozen=True)
class Assimilation:
    """Carbon uptake supplied by the photosynthesis component (g C m-2)"""
    gpp: float = 0.0  # whole day
    gpp_am: float = 0.0  # morning half day
    gpp_pm: float = 0.0  # afternoon half day
