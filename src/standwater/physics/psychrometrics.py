"""
Thermodynamic and psychrometric primitives.

Pure functions of air temperature and pressure used by the Penman and
Penman-Monteith combination equations.

References:
- Allen, R.G., Pereira, L.S., Raes, D. and Smith, M. (1998).
  Crop evapotranspiration - Guidelines for computing crop water requirements.
  FAO Irrigation and drainage paper 56. FAO, Rome.
- Jones, H.G. (1992). Plants and Microclimate, 2nd edn. CUP.
- Harrison, L.P. (1963). Fundamental concepts and definitions relating to
  humidity. In Wexler, A. (ed.) Humidity and Moisture, Vol 3.
"""
import numpy as np

from standwater.core.constants import (
    CP_MJ, EPSILON_WATER_AIR, H2OLV0, H2OMW, CP, MASS_AIR
)


def calc_sat_water_vapour_press(tac: float) -> float:
    """
    Saturated water vapour pressure (Pa) at temperature tac (degC).

    Jones (1992) p 110.
    """
    return 613.75 * np.exp(17.502 * tac / (240.97 + tac))


def calc_latent_heat_of_vapourisation(tavg: float) -> float:
    """
    Latent heat of water vaporisation (MJ kg-1) after Harrison (1963).

    Roughly 2.45 MJ kg-1 at 20 degC.
    """
    return 2.501 - 0.002361 * tavg


def latent_heat_molar(tair: float) -> float:
    """Latent heat of water vapour at air temperature (J mol-1)"""
    return (H2OLV0 - 2.365e3 * tair) * H2OMW


def calc_pyschrometric_constant(lambdax: float, press: float) -> float:
    """
    Psychrometric constant (kPa degC-1), FAO-56 eqn 8.

    Args:
        lambdax: latent heat of vaporisation (MJ kg-1)
        press: air pressure (kPa)
    """
    return (CP_MJ * press) / (EPSILON_WATER_AIR * lambdax)


def molar_psychrometric_constant(press_pa: float, lambda_molar: float) -> float:
    """Psychrometric constant (Pa K-1) from molar heat capacity of air"""
    return CP * MASS_AIR * press_pa / lambda_molar


def calc_slope_of_saturation_vapour_pressure_curve(tavg: float) -> float:
    """
    Slope of the saturation vapour pressure curve (kPa degC-1), FAO-56 eqn 13.
    """
    t = tavg + 237.3
    arg1 = 4098.0 * (0.6108 * np.exp((17.27 * tavg) / t))
    return arg1 / (t * t)


def slope_sat_vapour_press_finite(tair: float, dt: float = 0.1) -> float:
    """Slope of the Jones saturation curve (Pa K-1) by forward difference"""
    arg1 = calc_sat_water_vapour_press(tair + dt)
    arg2 = calc_sat_water_vapour_press(tair)
    return (arg1 - arg2) / dt


def calc_density_of_air(tavg: float) -> float:
    """Density of air (kg m-3), Dawes and Zhang (2011)"""
    return 1.292 - 0.00428 * tavg


def calc_atmos_pressure(elevation_m: float = 125.0) -> float:
    """
    Standard atmospheric pressure (kPa) at a given elevation, FAO-56 eqn 7.

    Used when the forcing carries no pressure observation.
    """
    return 101.3 * ((293.0 - 0.0065 * elevation_m) / 293.0) ** 5.26
