"""
Pedotransfer functions for soil hydraulic parameters from texture class.

Texture classes key two fixed tables:

1. Sand/silt/clay fractions (Cosby et al. 1984, Table 2), from which the
   Clapp & Hornberger (1978) retention parameters are derived.
2. Landsberg & Waring soil-water modifier coefficients (Landsberg & Sands
   2011, Table 7.1).

Both tables are resolved once when parameters are built; an unknown class
raises SoilTextureError there and never mid-run.

References:
- Cosby, B.J. et al. (1984). A statistical exploration of the relationships
  of soil moisture characteristics to the physical properties of soils.
  Water Resources Research, 20:682-690.
- Clapp, R.B. and Hornberger, G.M. (1978). Empirical equations for some soil
  hydraulic properties. Water Resources Research, 14:601-604.
- Landsberg, J.J. and Sands, P. (2011). Physiological Ecology of Forest
  Production. Academic Press.
- Landsberg, J.J. and Waring, R.H. (1997). Forest Ecology and Management,
  95:209-228.
"""
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Union

import numpy as np

from standwater.core.constants import (
    METER_OF_HEAD_TO_MPA, PRESSURE_HEAD_FIELD_CAPACITY,
    PRESSURE_HEAD_WILTING_POINT
)
from standwater.core.exceptions import (
    ErrorContext, ParameterError, SoilTextureError
)
from standwater.core.types import TextureClass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SoilFractions:
    """Texture composition as fractions (0-1)"""
    silt: float
    sand: float
    clay: float


@dataclass(frozen=True)
class LandsbergWaringCoefficients:
    """Sigmoid soil-water modifier coefficients"""
    c_theta: float
    n_theta: float


@dataclass(frozen=True)
class SoilHydraulics:
    """Clapp-Hornberger retention properties of one soil layer"""
    theta_fc: float  # volumetric water content at field capacity
    theta_wp: float  # volumetric water content at the wilting point
    theta_sat: float  # volumetric water content at saturation
    b: float  # Clapp-Hornberger exponent
    psi_sat: float  # matric potential at saturation (MPa)

    @property
    def available_fraction(self) -> float:
        """Plant-available water per unit depth"""
        return self.theta_fc - self.theta_wp

    def water_capacity(self, depth_mm: float) -> float:
        """Plant-available water holding capacity (mm) of a layer"""
        return depth_mm * self.available_fraction


# Cosby et al. (1984), Table 2
COSBY_FRACTIONS: Mapping[TextureClass, SoilFractions] = MappingProxyType({
    TextureClass.SAND: SoilFractions(silt=0.05, sand=0.92, clay=0.03),
    TextureClass.LOAMY_SAND: SoilFractions(silt=0.12, sand=0.82, clay=0.06),
    TextureClass.SANDY_LOAM: SoilFractions(silt=0.32, sand=0.58, clay=0.10),
    TextureClass.LOAM: SoilFractions(silt=0.39, sand=0.43, clay=0.18),
    TextureClass.SILTY_LOAM: SoilFractions(silt=0.70, sand=0.17, clay=0.13),
    TextureClass.SANDY_CLAY_LOAM: SoilFractions(silt=0.15, sand=0.58, clay=0.27),
    TextureClass.CLAY_LOAM: SoilFractions(silt=0.34, sand=0.32, clay=0.34),
    TextureClass.SILTY_CLAY_LOAM: SoilFractions(silt=0.56, sand=0.10, clay=0.34),
    TextureClass.SANDY_CLAY: SoilFractions(silt=0.06, sand=0.52, clay=0.42),
    TextureClass.SILTY_CLAY: SoilFractions(silt=0.47, sand=0.06, clay=0.47),
    TextureClass.CLAY: SoilFractions(silt=0.20, sand=0.22, clay=0.58),
})

# Landsberg and Sands (2011), pg 190, Table 7.1
LANDSBERG_WARING_COEFFICIENTS: Mapping[TextureClass, LandsbergWaringCoefficients] = MappingProxyType({
    TextureClass.CLAY: LandsbergWaringCoefficients(0.4, 3.0),
    TextureClass.CLAY_LOAM: LandsbergWaringCoefficients(0.5, 5.0),
    TextureClass.LOAM: LandsbergWaringCoefficients(0.55, 6.0),
    TextureClass.LOAMY_SAND: LandsbergWaringCoefficients(0.65, 8.0),
    TextureClass.SAND: LandsbergWaringCoefficients(0.7, 9.0),
    TextureClass.SANDY_CLAY: LandsbergWaringCoefficients(0.45, 4.0),
    TextureClass.SANDY_CLAY_LOAM: LandsbergWaringCoefficients(0.525, 5.5),
    TextureClass.SANDY_LOAM: LandsbergWaringCoefficients(0.6, 7.0),
    TextureClass.SILT: LandsbergWaringCoefficients(0.625, 7.5),
    TextureClass.SILTY_CLAY: LandsbergWaringCoefficients(0.425, 3.5),
    TextureClass.SILTY_CLAY_LOAM: LandsbergWaringCoefficients(0.475, 4.5),
    TextureClass.SILTY_LOAM: LandsbergWaringCoefficients(0.575, 6.5),
})


def get_soil_fracs(soil_type: Union[str, TextureClass]) -> SoilFractions:
    """Silt, sand and clay fractions for a texture class"""
    texture = TextureClass.parse(soil_type)
    try:
        return COSBY_FRACTIONS[texture]
    except KeyError:
        raise SoilTextureError(
            f"No Cosby texture fractions for soil type '{texture.value}'",
            ErrorContext(component="pedotransfer", operation="get_soil_fracs"),
        ) from None


def get_soil_params(soil_type: Union[str, TextureClass]) -> LandsbergWaringCoefficients:
    """Landsberg & Waring modifier coefficients for a texture class"""
    texture = TextureClass.parse(soil_type)
    return LANDSBERG_WARING_COEFFICIENTS[texture]


def calc_soil_params(fsoil: SoilFractions) -> SoilHydraulics:
    """
    Cosby parameters for the Clapp-Hornberger soil hydraulics scheme.

    Slopes are scaled for fractions rather than percentages (the "b" slope
    of 0.157 becomes 15.7). Logarithms are base 10.

    Field capacity and wilting point are the water contents at suctions of
    3.364 m and 152.9 m of water (-0.033 and -1.5 MPa).
    """
    # Clapp Hornberger exponent [-]
    b = 3.1 + 15.7 * fsoil.clay - 0.3 * fsoil.sand

    # Matric potential at saturation, mm of head -> m
    psi_sat = 0.01 * -(10.0 ** (1.54 - 0.95 * fsoil.sand + 0.63 * fsoil.silt))
    psi_sat_mpa = psi_sat * METER_OF_HEAD_TO_MPA

    theta_sat = 0.505 - 0.037 * fsoil.clay - 0.142 * fsoil.sand

    theta_wp = theta_sat * np.power(psi_sat / PRESSURE_HEAD_WILTING_POINT, 1.0 / b)
    theta_fc = theta_sat * np.power(psi_sat / PRESSURE_HEAD_FIELD_CAPACITY, 1.0 / b)

    return SoilHydraulics(
        theta_fc=float(theta_fc),
        theta_wp=float(theta_wp),
        theta_sat=float(theta_sat),
        b=float(b),
        psi_sat=float(psi_sat_mpa),
    )


def soil_hydraulics_for_texture(soil_type: Union[str, TextureClass]) -> SoilHydraulics:
    """Texture class straight to Clapp-Hornberger properties"""
    return calc_soil_params(get_soil_fracs(soil_type))


def validate_soil_hydraulics(hydraulics: SoilHydraulics, layer: str = "soil"):
    """
    Check derived properties for physical plausibility.

    Raises:
        ParameterError: if the layer would hold no plant-available water
    """
    if not 0.0 < hydraulics.theta_wp < hydraulics.theta_fc < hydraulics.theta_sat:
        raise ParameterError(
            f"Implausible retention for {layer}: "
            f"theta_wp={hydraulics.theta_wp:.3f}, "
            f"theta_fc={hydraulics.theta_fc:.3f}, "
            f"theta_sat={hydraulics.theta_sat:.3f}",
            ErrorContext(component="pedotransfer", operation="validate"),
        )
    if hydraulics.b <= 0.0:
        raise ParameterError(
            f"Clapp-Hornberger b must be positive for {layer}, got {hydraulics.b:.3f}",
            ErrorContext(component="pedotransfer", operation="validate"),
        )

    logger.debug(
        f"{layer}: theta_fc={hydraulics.theta_fc:.3f}, "
        f"theta_wp={hydraulics.theta_wp:.3f}, b={hydraulics.b:.2f}, "
        f"psi_sat={hydraulics.psi_sat:.5f} MPa"
    )


def parse_texture_class(name: Union[str, TextureClass]) -> TextureClass:
    """Texture name to TextureClass, raising SoilTextureError if unknown"""
    return TextureClass.parse(name)


def initialise_soil_moisture_parameters(soil, calc_sw_params: bool) -> Dict[str, Optional[float]]:
    """
    Derive the per-layer soil parameters needed by the water balance.

    With ``calc_sw_params`` the Clapp-Hornberger properties and water
    holding capacities come from the texture tables; otherwise the values
    supplied in ``soil`` are used as given. Landsberg & Waring coefficients
    left unset are looked up from texture either way.

    Args:
        soil: soil configuration (SoilConfig or anything with its fields)
        calc_sw_params: derive hydraulics from texture

    Returns:
        Mapping of ``wcapac_*``, ``theta_sat_*``, ``b_*``, ``psi_sat_*``,
        ``ctheta_*`` and ``ntheta_*`` for the topsoil and root layers

    Raises:
        SoilTextureError: unknown texture class
        ParameterError: implausible retention or non-positive capacity
    """
    layers = (
        ("topsoil", soil.topsoil_type, soil.topsoil_depth_mm),
        ("root", soil.rootsoil_type, soil.rooting_depth_mm),
    )

    derived: Dict[str, Optional[float]] = {}
    for layer, texture_name, depth_mm in layers:
        texture = parse_texture_class(texture_name)

        if calc_sw_params:
            hydraulics = soil_hydraulics_for_texture(texture)
            validate_soil_hydraulics(hydraulics, layer)
            derived[f"wcapac_{layer}"] = hydraulics.water_capacity(depth_mm)
            derived[f"theta_sat_{layer}"] = hydraulics.theta_sat
            derived[f"b_{layer}"] = hydraulics.b
            derived[f"psi_sat_{layer}"] = hydraulics.psi_sat
        else:
            for name in ("wcapac", "theta_sat", "b", "psi_sat"):
                derived[f"{name}_{layer}"] = getattr(soil, f"{name}_{layer}")

        wcapac = derived[f"wcapac_{layer}"]
        if wcapac is None or wcapac <= 0.0:
            raise ParameterError(
                f"Water holding capacity of the {layer} must be positive, got {wcapac}",
                ErrorContext(component="pedotransfer", operation="initialise"),
            )

        c_theta = getattr(soil, f"ctheta_{layer}")
        n_theta = getattr(soil, f"ntheta_{layer}")
        if c_theta is None or n_theta is None:
            coefficients = get_soil_params(texture)
            c_theta = coefficients.c_theta if c_theta is None else c_theta
            n_theta = coefficients.n_theta if n_theta is None else n_theta
        derived[f"ctheta_{layer}"] = c_theta
        derived[f"ntheta_{layer}"] = n_theta

        logger.info(
            f"{layer} ({texture.value}): wcapac={wcapac:.1f} mm, "
            f"c_theta={c_theta}, n_theta={n_theta}"
        )

    return derived
