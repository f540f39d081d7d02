"""
Conductance primitives for leaf and canopy exchange.

1. Radiation conductance
2. Leaf boundary layer conductance for heat (forced and free convection)
3. Canopy aerodynamic conductance from a log wind profile
4. Stomatal conductance (Medlyn et al. 2011 optimal model)
5. Conversions between molar (mol m-2 s-1) and velocity (m s-1) units

References:
- Leuning, R. et al. (1995). Leaf nitrogen, photosynthesis, conductance and
  transpiration: scaling from leaves to canopies. PC&E, 18:1183-1200.
- Wang, Y.P. and Leuning, R. (1998). Agric. For. Meteorol., 91:89-111.
- Monteith, J.L. and Unsworth, M.H. (1990). Principles of Environmental
  Physics, pg. 248-249.
- Medlyn, B.E. et al. (2011). Global Change Biology, 17:2134-2144.
- Jones, H.G. (1992). Plants and Microclimate, pg. 56 and Appendix 3.
"""

import numpy as np

from standwater.core.constants import (
    CP, DEG_TO_KELVIN, DHEAT, EPSILON, GRAMS_C_TO_MOL_C, KPA_2_PA,
    LEAF_EMISSIVITY, MASS_AIR, MIN_VPD_KPA, MOL_TO_UMOL, RGAS, SIGMA,
    SECONDS_PER_HOUR, VON_KARMAN
)
from standwater.core.types import MetresPerSec


def molar_air_density(tair: float, press_kpa: float) -> float:
    """Molar density of air, P / (R Tk) (mol m-3)"""
    tk = tair + DEG_TO_KELVIN
    return press_kpa * KPA_2_PA / (RGAS * tk)


def mol_to_m_per_sec_factor(tair: float, press_kpa: float) -> float:
    """Multiply a conductance in mol m-2 s-1 by this to get m s-1"""
    return 1.0 / molar_air_density(tair, press_kpa)


def calc_radiation_conductance(tair: float) -> float:
    """
    Radiation conductance (mol m-2 s-1) at a given air temperature.

    Wang and Leuning (1998), Table 1; uses Tk**3 (not Tk**4).
    """
    tk = tair + DEG_TO_KELVIN
    return 4.0 * SIGMA * (tk * tk * tk) * LEAF_EMISSIVITY / (CP * MASS_AIR)


def calc_bdn_layer_forced_conduct(tair: float, press_pa: float, wind: float,
                                  leaf_width: float) -> float:
    """
    Boundary layer conductance for heat, single sided, forced convection
    (mol m-2 s-1). Leuning et al. (1995) eqn E1.
    """
    tk = tair + DEG_TO_KELVIN
    cmolar = press_pa / (RGAS * tk)
    return 0.003 * np.sqrt(max(0.0, wind) / leaf_width) * cmolar


def calc_bdn_layer_free_conduct(tair: float, tleaf: float, press_pa: float,
                                leaf_width: float) -> float:
    """
    Boundary layer conductance for heat, single sided, free convection
    (mol m-2 s-1). Leuning et al. (1995) eqns E3 & E4.

    Zero when the leaf and the air are at the same temperature.
    """
    tk = tair + DEG_TO_KELVIN
    cmolar = press_pa / (RGAS * tk)

    if abs(tleaf - tair) < EPSILON:
        return 0.0

    grashof = 1.6e8 * abs(tleaf - tair) * leaf_width ** 3
    return 0.5 * DHEAT * grashof ** 0.25 / leaf_width * cmolar


def canopy_boundary_layer_conductance(wind: float, canht: float,
                                      dz0v_dh: float, z0h_z0m: float,
                                      displace_ratio: float) -> MetresPerSec:
    """
    Canopy aerodynamic conductance, ga = 1 / ra (m s-1).

    Characterises transfer of heat and water vapour away from the canopy
    but not the leaf boundary layers themselves. With z0h_z0m = 1 this is
    Monteith & Unsworth (1990) eqn 15.7.

    Args:
        wind: wind speed above the canopy (m s-1)
        canht: canopy height (m)
        dz0v_dh: momentum roughness length / canopy height
        z0h_z0m: heat / momentum roughness length ratio
        displace_ratio: zero-plane displacement / canopy height
    """
    z0m = dz0v_dh * canht
    z0h = z0h_z0m * z0m
    d = displace_ratio * canht

    # no canopy, or a profile too shallow for the log law
    if canht <= 0.0 or (canht - d) <= max(z0m, z0h):
        return 0.0

    arg1 = VON_KARMAN * VON_KARMAN * max(0.0, wind)
    arg2 = np.log((canht - d) / z0m)
    arg3 = np.log((canht - d) / z0h)

    return arg1 / (arg2 * arg3)


def gpp_to_umol_per_sec(gpp: float, period_hours: float) -> float:
    """Assimilation over a period (g C m-2) as a mean rate (umol m-2 s-1)"""
    return gpp * GRAMS_C_TO_MOL_C * MOL_TO_UMOL / (SECONDS_PER_HOUR * period_hours)


def calc_stomatal_conductance(g1: float, wtfac: float, vpd: float, ca: float,
                              period_hours: float, gpp: float) -> float:
    """
    Stomatal conductance to water vapour (mol m-2 s-1).

        gs = 1.6 * (1 + g1 * wtfac / sqrt(D)) * A / Ca

    Assimilation has already been adjusted for water availability; the
    root-zone stress factor additionally scales the slope g1.

    Args:
        g1: Medlyn slope (kPa^0.5)
        wtfac: root zone water availability factor (0, 1]
        vpd: vapour pressure deficit (kPa)
        ca: atmospheric CO2 (umol mol-1)
        period_hours: length of the period the assimilation covers (h)
        gpp: assimilation over that period (g C m-2)
    """
    if period_hours <= 0.0 or ca <= 0.0:
        return 0.0

    vpd = max(vpd, MIN_VPD_KPA)
    assim = gpp_to_umol_per_sec(gpp, period_hours)

    arg1 = 1.6 * (1.0 + (g1 * wtfac) / np.sqrt(vpd))
    arg2 = assim / ca

    return max(0.0, arg1 * arg2)
