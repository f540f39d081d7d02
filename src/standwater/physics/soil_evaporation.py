"""
Topsoil evaporation at the Penman potential rate, reduced for canopy
shading and topsoil dryness.

Key assumptions from Ritchie (1972): when the canopy shades the soil, wind
speed, net radiation and VPD at the surface all drop in proportion to canopy
density. Wind and VPD effects are taken as negligible, so only the
radiation term is scaled. These fits come from crops; a forest crown far
above the soil may shade differently.

References:
- Ritchie, J.T. (1972). Water Resources Research, 8:1204-1213.
- Monteith, J.L. and Unsworth, M.H. (1990). Principles of Environmental
  Physics, pg. 52 eqn 4.17 and pg. 54 eqn 4.21.
"""
import numpy as np

from standwater.core.constants import (
    KPA_2_PA, NET_LW_INTERCEPT, NET_LW_SLOPE, RITCHIE_LAI_EXTINCTION
)
from standwater.physics.psychrometrics import (
    latent_heat_molar, molar_psychrometric_constant,
    slope_sat_vapour_press_finite
)


def calc_net_radiation(sw_rad: float, tair: float, albedo: float) -> float:
    """
    Net radiation at a surface (W m-2), bounded at zero.

    Net long-wave loss is the linear clear-sky fit 107 - 0.3 T.
    """
    net_lw = NET_LW_INTERCEPT - NET_LW_SLOPE * tair
    return max(0.0, (1.0 - albedo) * sw_rad - net_lw)


def canopy_shading_factor(lai: float) -> float:
    """
    Fraction of net radiation reaching the soil below a canopy.

    Ritchie (1972) fit between LAI of five crops and the surface share of
    net radiation (12 observations, three with LAI > 3).
    """
    if lai <= 0.0:
        return 1.0
    return float(np.exp(-RITCHIE_LAI_EXTINCTION * lai))


def calc_soil_evaporation(sw_rad: float, press: float, tair: float,
                          albedo: float, lai: float,
                          wtfac_topsoil: float) -> float:
    """
    Topsoil evaporation flux (mol H2O m-2 s-1).

    Args:
        sw_rad: shortwave radiation (W m-2)
        press: air pressure (kPa)
        tair: air temperature (degC)
        albedo: surface albedo
        lai: canopy leaf area index
        wtfac_topsoil: topsoil water availability factor (0, 1]
    """
    lambda_molar = latent_heat_molar(tair)  # J mol-1
    gamma = molar_psychrometric_constant(press * KPA_2_PA, lambda_molar)  # Pa K-1
    slope = slope_sat_vapour_press_finite(tair)  # Pa K-1

    net_rad = calc_net_radiation(sw_rad, tair, albedo)

    soil_evap = ((slope / (slope + gamma)) * net_rad) / lambda_molar
    soil_evap *= canopy_shading_factor(lai)

    # dry topsoil evaporates less
    soil_evap *= wtfac_topsoil

    return float(soil_evap)
