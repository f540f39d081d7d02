"""
Configuration system with validation and environment awareness.
Based on Pydantic Settings for robust configuration management.
"""
import logging
from pathlib import Path
from typing import Literal, Optional, Union

import yaml
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from standwater.core.types import SimulationMode, StressModel, TextureClass


class SoilConfig(BaseSettings):
    """Soil layers and moisture-stress coefficients"""

    topsoil_type: str = Field("loam", description="Texture class of the topsoil layer")
    rootsoil_type: str = Field("loam", description="Texture class of the root zone")
    topsoil_depth_mm: float = Field(350.0, gt=0, description="Topsoil depth (mm)")
    rooting_depth_mm: float = Field(2000.0, gt=0, description="Rooting depth (mm)")

    # Only used when soil parameters are not derived from texture
    wcapac_topsoil: Optional[float] = Field(None, gt=0, description="Topsoil water capacity (mm)")
    wcapac_root: Optional[float] = Field(None, gt=0, description="Root zone water capacity (mm)")
    theta_sat_topsoil: Optional[float] = Field(None, gt=0, le=1)
    theta_sat_root: Optional[float] = Field(None, gt=0, le=1)
    b_topsoil: Optional[float] = Field(None, gt=0)
    b_root: Optional[float] = Field(None, gt=0)
    psi_sat_topsoil: Optional[float] = Field(None, lt=0, description="MPa")
    psi_sat_root: Optional[float] = Field(None, lt=0, description="MPa")

    # Landsberg & Waring coefficients; looked up from texture when unset
    ctheta_topsoil: Optional[float] = Field(None, gt=0)
    ntheta_topsoil: Optional[float] = Field(None, gt=0)
    ctheta_root: Optional[float] = Field(None, gt=0)
    ntheta_root: Optional[float] = Field(None, gt=0)

    qs: float = Field(1.0, gt=0, description="Power-law stress exponent")
    fractup_soil: float = Field(0.4, ge=0, le=1, description="Fraction of uptake from topsoil")

    model_config = SettingsConfigDict(env_prefix="STANDWATER_SOIL_", case_sensitive=False)

    @field_validator("topsoil_type", "rootsoil_type", mode="before")
    @classmethod
    def validate_texture(cls, v):
        """Unknown texture names are fatal at load time"""
        return TextureClass.parse(v).value


class CanopyConfig(BaseSettings):
    """Canopy architecture and radiative properties"""

    leaf_width: float = Field(0.02, gt=0, description="Leaf width (m)")
    dz0v_dh: float = Field(0.075, gt=0, lt=1, description="Momentum roughness / canopy height")
    z0h_z0m: float = Field(1.0, gt=0, description="Heat / momentum roughness ratio")
    displace_ratio: float = Field(0.78, ge=0, lt=1, description="Displacement / canopy height")
    albedo: float = Field(0.123, ge=0, le=1)
    intercep_frac: float = Field(0.15, ge=0, le=1, description="Max fraction of rain intercepted")
    max_intercep_lai: float = Field(3.0, gt=0, description="LAI at which interception saturates")
    g1: float = Field(4.8, gt=0, description="Medlyn stomatal slope (kPa^0.5)")

    model_config = SettingsConfigDict(env_prefix="STANDWATER_CANOPY_", case_sensitive=False)

    @model_validator(mode="after")
    def validate_roughness(self):
        """Log-wind profile needs canopy height above displacement + roughness"""
        if self.displace_ratio + self.dz0v_dh >= 1.0:
            raise ValueError(
                "displace_ratio + dz0v_dh must be < 1 for a valid wind profile"
            )
        return self


class InitialStateConfig(BaseSettings):
    """Starting conditions of the stand"""

    topsoil_fraction: float = Field(1.0, ge=0, le=1, description="Initial fraction of capacity")
    root_fraction: float = Field(1.0, ge=0, le=1, description="Initial fraction of capacity")
    lai: float = Field(0.0, ge=0)
    canht: float = Field(20.0, gt=0, description="Canopy height (m)")

    model_config = SettingsConfigDict(env_prefix="STANDWATER_STATE_", case_sensitive=False)


class SimulationConfig(BaseSettings):
    """Temporal resolution and stress feedback switches"""

    sub_daily: bool = Field(False)
    water_stress: bool = Field(True, description="Feed soil moisture stress back")
    sw_stress_model: StressModel = Field(StressModel.LANDSBERG_WARING)
    calc_sw_params: bool = Field(True, description="Derive soil hydraulics from texture")
    split_am_pm: bool = Field(True, description="Daily mode: two half-day solves")
    subdaily_step_seconds: float = Field(1800.0, gt=0)
    mass_balance_tolerance_mm: float = Field(1e-6, gt=0)

    model_config = SettingsConfigDict(env_prefix="STANDWATER_SIM_", case_sensitive=False)


class LoggingConfig(BaseSettings):
    """Configuration for logging"""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: str = Field(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    model_config = SettingsConfigDict(env_prefix="STANDWATER_LOG_", case_sensitive=False)


class StandWaterConfig(BaseSettings):
    """Main configuration for a stand water balance run"""

    project_name: str = "standwater"
    site_id: Optional[str] = None

    soil: SoilConfig = Field(default_factory=SoilConfig)
    canopy: CanopyConfig = Field(default_factory=CanopyConfig)
    initial_state: InitialStateConfig = Field(default_factory=InitialStateConfig)
    simulation: SimulationConfig = Field(default_factory=SimulationConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = SettingsConfigDict(
        env_prefix="STANDWATER_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    @model_validator(mode="after")
    def validate_config(self):
        """Cross-field validation"""
        sim = self.simulation
        soil = self.soil
        if not sim.calc_sw_params:
            if soil.wcapac_topsoil is None or soil.wcapac_root is None:
                raise ValueError(
                    "wcapac_topsoil and wcapac_root are required when "
                    "calc_sw_params is disabled"
                )
            if sim.sw_stress_model == StressModel.MATRIC_POTENTIAL:
                missing = [
                    name for name in (
                        "theta_sat_topsoil", "theta_sat_root", "b_topsoil",
                        "b_root", "psi_sat_topsoil", "psi_sat_root"
                    )
                    if getattr(soil, name) is None
                ]
                if missing:
                    raise ValueError(
                        f"Matric-potential stress model needs {missing} when "
                        "calc_sw_params is disabled"
                    )
        return self

    @classmethod
    def from_yaml(cls, yaml_path: Union[str, Path]) -> "StandWaterConfig":
        """Load configuration from YAML file"""
        yaml_path = Path(yaml_path)
        if not yaml_path.exists():
            raise FileNotFoundError(f"Config file not found: {yaml_path}")

        with open(yaml_path, encoding="utf-8") as f:
            yaml_config = yaml.safe_load(f) or {}

        return cls(**yaml_config)

    def to_yaml(self, yaml_path: Union[str, Path]):
        """Save configuration to YAML file"""
        yaml_path = Path(yaml_path)
        yaml_path.parent.mkdir(parents=True, exist_ok=True)

        with open(yaml_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(self.model_dump(mode="json"), f, default_flow_style=False)

    def simulation_mode(self) -> SimulationMode:
        """Build the run-level mode switches"""
        return SimulationMode.from_config(self)


def setup_logging(config: Optional[StandWaterConfig] = None):
    """Apply the configured log level and format to the root logger"""
    config = config or get_config()
    level = getattr(logging, config.logging.log_level)
    logging.basicConfig(level=level, format=config.logging.log_format)
    logging.getLogger("standwater").setLevel(level)


# Global configuration instance
_config: Optional[StandWaterConfig] = None


def get_config(config_path: Optional[Path] = None) -> StandWaterConfig:
    """Get or create configuration instance (singleton pattern)"""
    global _config

    if _config is None:
        if config_path and Path(config_path).exists():
            _config = StandWaterConfig.from_yaml(config_path)
        else:
            # Try to load from environment
            _config = StandWaterConfig()

    return _config


def set_config(config: Optional[StandWaterConfig]):
    """Set configuration (useful for testing)"""
    global _config
    _config = config
