"""
Two-layer plant-available-water bucket and soil moisture stress factors.

The topsoil and the whole root zone are tracked as overlapping "leaky
buckets": the root zone includes the topsoil. Excess water above the root
zone capacity leaves as runoff (combined drainage and surface outflow);
there is no separate drainage term.

A drying soil induces stomatal closure and lowers transpiration. The
relative water content of each bucket is mapped to a water availability
factor (wtfac, 0 < wtfac <= 1) by one of three closures:

- power law:            wtfac = theta ** qs
- Landsberg & Waring:   wtfac = 1 / (1 + ((1 - theta) / c) ** n)
- matric potential:     wtfac = exp(0.66 * psi),  psi = psi_sat (theta/theta_sat) ** b

References:
- Landsberg, J.J. and Waring, R.H. (1997). Forest Ecology and Management,
  95:209-228, Figure 2.
- Egea, G. et al. (2011). Agric. For. Meteorol., 151:1370-1384.
- Zhou, S. et al. (2013). Agric. For. Meteorol., 182-183:204-214.
- Makela, A. et al. (1996). Tree Physiology, 16:1009-1017.
"""
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from standwater.core.constants import (
    EPSILON, WILTING_POINT_PSI_MPA, ZHOU_PSI_SENSITIVITY
)
from standwater.core.types import SimulationMode, StressModel

if TYPE_CHECKING:
    from standwater.physics.water_balance import ModelParameters, WaterState

logger = logging.getLogger(__name__)


@dataclass
class StorageUpdate:
    """Outcome of one bucket update (mm per step)"""
    transpiration: float
    soil_evap: float
    et: float
    runoff: float
    delta_storage: float
    water_limited: bool = False


# =============================================================================
# STRESS CLOSURES
# =============================================================================

def _bounded_fraction(theta: float) -> float:
    return float(np.clip(theta, 0.0, 1.0))


def _bounded_stress(wtfac: float) -> float:
    return float(np.clip(wtfac, EPSILON, 1.0))


def calc_power_law_modifier(theta: float, qs: float) -> float:
    """Power-law availability factor, theta ** qs"""
    return _bounded_stress(np.power(_bounded_fraction(theta), qs))


def calc_sw_modifier(theta: float, c_theta: float, n_theta: float) -> float:
    """Landsberg & Waring sigmoid availability factor"""
    theta = _bounded_fraction(theta)
    return _bounded_stress(1.0 / (1.0 + np.power((1.0 - theta) / c_theta, n_theta)))


def calc_soil_water_potential(theta: float, psi_sat: float, theta_sat: float,
                              b: float) -> float:
    """
    Soil water potential (MPa) from the relative water content.

    An empty bucket is pinned to the -1.5 MPa wilting point rather than
    raising zero to a fractional power.
    """
    theta = _bounded_fraction(theta)
    if theta < EPSILON:
        return WILTING_POINT_PSI_MPA
    return float(psi_sat * np.power(theta / theta_sat, b))


def calc_matric_potential_modifier(theta: float, psi_sat: float,
                                   theta_sat: float, b: float) -> float:
    """
    Exponential reduction of g1 with soil water potential (Zhou et al.
    2013, eqn 3). Night-time soil water potential stands in for leaf water
    potential at a daily time step.
    """
    psi = calc_soil_water_potential(theta, psi_sat, theta_sat, b)
    return _bounded_stress(np.exp(ZHOU_PSI_SENSITIVITY * psi))


def calculate_soil_water_fac(mode: SimulationMode, params: "ModelParameters",
                             state: "WaterState"):
    """
    Recompute topsoil and root zone water availability factors in place.
    """
    smc_topsoil = state.pawater_topsoil / params.wcapac_topsoil
    smc_root = state.pawater_root / params.wcapac_root

    model = StressModel(mode.sw_stress_model)

    if model == StressModel.POWER_LAW:
        state.wtfac_topsoil = calc_power_law_modifier(smc_topsoil, params.qs)
        state.wtfac_root = calc_power_law_modifier(smc_root, params.qs)

    elif model == StressModel.LANDSBERG_WARING:
        state.wtfac_topsoil = calc_sw_modifier(
            smc_topsoil, params.ctheta_topsoil, params.ntheta_topsoil
        )
        state.wtfac_root = calc_sw_modifier(
            smc_root, params.ctheta_root, params.ntheta_root
        )

    else:
        state.wtfac_topsoil = calc_matric_potential_modifier(
            smc_topsoil, state.psi_sat_topsoil, state.theta_sat_topsoil,
            state.b_topsoil
        )
        state.wtfac_root = calc_matric_potential_modifier(
            smc_root, state.psi_sat_root, state.theta_sat_root, state.b_root
        )


# =============================================================================
# BUCKET UPDATE
# =============================================================================

def update_water_storage(mode: SimulationMode, params: "ModelParameters",
                         state: "WaterState", rain: float, interception: float,
                         transpiration: float, soil_evap: float,
                         et: float) -> StorageUpdate:
    """
    Update topsoil and root zone plant-available water and compute runoff.

    Transpiration is drawn from the topsoil in proportion to
    fractup_soil * wtfac_topsoil, so uptake shifts deeper as the topsoil
    dries. If the root zone would go negative the step is water limited:
    transpiration and soil evaporation are zeroed and ET falls back to
    interception, after which the root zone is clamped to its bounds.

    Args:
        mode: run switches (stress feedback, stress closure)
        params: model parameters with derived capacities
        state: water state, updated in place
        rain, interception, transpiration, soil_evap, et: step fluxes (mm)

    Returns:
        StorageUpdate with the fluxes as finally applied
    """
    # reduce transpiration from the top soil if it is dry
    trans_frac = params.fractup_soil * state.wtfac_topsoil

    state.pawater_topsoil += (
        (rain - interception) - transpiration * trans_frac - soil_evap
    )
    state.pawater_topsoil = float(
        np.clip(state.pawater_topsoil, 0.0, params.wcapac_topsoil)
    )

    previous = state.pawater_root
    state.pawater_root += (rain - interception) - transpiration - soil_evap

    # remove any excess from the root zone as runoff
    if state.pawater_root > params.wcapac_root:
        runoff = state.pawater_root - params.wcapac_root
        state.pawater_root -= runoff
    else:
        runoff = 0.0

    water_limited = state.pawater_root < 0.0
    if water_limited:
        logger.debug(
            f"Root zone overdrawn ({state.pawater_root:.3f} mm): "
            f"shutting down transpiration and soil evaporation"
        )
        transpiration = 0.0
        soil_evap = 0.0
        et = interception

    state.pawater_root = float(np.clip(state.pawater_root, 0.0, params.wcapac_root))
    state.delta_sw_store = state.pawater_root - previous

    if mode.water_stress:
        calculate_soil_water_fac(mode, params, state)
    else:
        # diagnostic no-stress mode
        state.wtfac_topsoil = 1.0
        state.wtfac_root = 1.0

    return StorageUpdate(
        transpiration=transpiration,
        soil_evap=soil_evap,
        et=et,
        runoff=runoff,
        delta_storage=state.delta_sw_store,
        water_limited=water_limited,
    )
