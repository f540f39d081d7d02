"""
Canopy and leaf transpiration with the Penman-Monteith combination equation.

The canopy is treated as a single "big leaf" whose exchange with the
atmosphere is limited by stomatal (gs) and aerodynamic (ga) conductance in
series. Soil heat flux is ignored over a day, and soil evaporation is
computed separately.

Three temporal-resolution solvers share one combination equation:

1. SubDailyTranspiration: the leaf flux has already been solved together
   with photosynthesis; only a unit conversion is applied.
2. DailyTranspiration: a single Penman-Monteith call over the daylight period.
3. AmPmTranspiration: two half-day calls (morning, afternoon) summed to
   capture diurnal asymmetry.

References:
- Monteith, J.L. and Unsworth, M.H. (1990). Principles of Environmental
  Physics, pg. 247.
- Allen, R.G. et al. (1989). Operational estimates of reference
  evapotranspiration. Agronomy Journal, 81:650-662.
- Allen, R.G. et al. (1998). FAO Irrigation and drainage paper 56.
- Jarvis, P.G. and McNaughton, K.G. (1986). Stomatal control of
  transpiration. Adv. Ecol. Res., 15:1-49.
- Dawes, W. and Zhang, L. (2011). WAVES - An integrated energy and water
  balance model. CSIRO.
"""
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from standwater.core.constants import (
    CP, CP_MJ, G_TO_KG, GBHGBC, GBVGBH, GSVGSC, J_TO_MJ, MASS_AIR,
    MOLE_WATER_2_G_WATER, SECONDS_PER_HOUR
)
from standwater.core.exceptions import ErrorContext, ForcingError
from standwater.core.types import Assimilation, SimulationMode, StepForcing
from standwater.physics.conductance import (
    calc_bdn_layer_forced_conduct, calc_bdn_layer_free_conduct,
    calc_radiation_conductance, calc_stomatal_conductance,
    canopy_boundary_layer_conductance, mol_to_m_per_sec_factor
)
from standwater.physics.psychrometrics import (
    calc_density_of_air, calc_latent_heat_of_vapourisation,
    calc_pyschrometric_constant, calc_slope_of_saturation_vapour_pressure_curve,
    latent_heat_molar, molar_psychrometric_constant,
    slope_sat_vapour_press_finite
)
from standwater.physics.soil_evaporation import calc_net_radiation

if TYPE_CHECKING:
    from standwater.physics.water_balance import ModelParameters, WaterState

logger = logging.getLogger(__name__)


@dataclass
class PenmanMonteithResult:
    """Big-leaf combination equation output"""
    et: float  # kg m-2 s-1 (mm s-1)
    omega: float  # decoupling coefficient [0, 1]


@dataclass
class CanopyTranspiration:
    """Canopy transpiration over one step"""
    transpiration: float  # mm per step
    omega: Optional[float] = None
    gs_mol_m2_sec: Optional[float] = None
    ga_mol_m2_sec: Optional[float] = None


@dataclass
class HalfDayTranspiration:
    """Half-day canopy solution, conductances integrated over the half day"""
    transpiration: float  # mm per half day
    omega: float
    gs_mol_m2_hfday: float
    ga_mol_m2_hfday: float


@dataclass
class LeafTranspiration:
    """Leaf-scale Penman-Monteith output"""
    transpiration: float  # mol H2O m-2 s-1
    LE: float  # latent heat flux, W m-2
    gbc: float  # boundary layer conductance to CO2, mol m-2 s-1
    gh: float  # total two-sided conductance to heat, mol m-2 s-1
    gv: float  # total conductance to water vapour, mol m-2 s-1
    omega: float


# =============================================================================
# COMBINATION EQUATIONS
# =============================================================================

def penman_monteith(vpd: float, gs: float, net_rad: float, tavg: float,
                    press: float, ga: float) -> PenmanMonteithResult:
    """
    Water loss from a big-leaf canopy.

    When omega is close to zero the canopy is well coupled to the atmosphere
    and gs dominates the control of water loss (gs < ga).

    Args:
        vpd: vapour pressure deficit (kPa)
        gs: stomatal conductance (m s-1)
        net_rad: net radiation (MJ m-2 s-1)
        tavg: air temperature (degC)
        press: air pressure (kPa)
        ga: aerodynamic conductance (m s-1)

    Returns:
        PenmanMonteithResult, et in kg m-2 s-1
    """
    lambdax = calc_latent_heat_of_vapourisation(tavg)
    gamma = calc_pyschrometric_constant(lambdax, press)
    slope = calc_slope_of_saturation_vapour_pressure_curve(tavg)
    rho = calc_density_of_air(tavg)

    if gs <= 0.0:
        return PenmanMonteithResult(et=0.0, omega=0.0)

    # supersaturated air drives no evaporative demand
    vpd = max(0.0, vpd)

    # change of latent heat relative to sensible heat of air
    e = slope / gamma
    omega = (e + 1.0) / (e + 1.0 + (ga / gs))

    arg1 = (slope * net_rad) + (rho * CP_MJ * vpd * ga)
    arg2 = slope + gamma * (1.0 + (ga / gs))

    return PenmanMonteithResult(et=float((arg1 / arg2) / lambdax), omega=float(omega))


def penman_leaf(leaf_width: float, press: float, vpd: float, tair: float,
                tleaf: float, wind: float, rnet: float,
                gsc: float) -> LeafTranspiration:
    """
    Leaf transpiration with the Penman-Monteith equation.

    Args:
        leaf_width: leaf width (m)
        press: air pressure (Pa)
        vpd: vapour pressure deficit of air (Pa)
        tair: air temperature (degC)
        tleaf: leaf temperature (degC)
        wind: wind speed (m s-1)
        rnet: leaf net radiation (W m-2)
        gsc: stomatal conductance to CO2 (mol m-2 s-1)
    """
    gradn = calc_radiation_conductance(tair)
    gbhu = calc_bdn_layer_forced_conduct(tair, press, wind, leaf_width)
    gbhf = calc_bdn_layer_free_conduct(tair, tleaf, press, leaf_width)
    gbh = gbhu + gbhf

    # two-sided
    gh = 2.0 * (gbh + gradn)

    gbv = GBVGBH * gbh
    gsv = GSVGSC * gsc
    gv = (gbv * gsv) / (gbv + gsv) if (gbv + gsv) > 0.0 else 0.0
    gbc = gbh / GBHGBC

    lambda_molar = latent_heat_molar(tair)
    gamma = molar_psychrometric_constant(press, lambda_molar)
    slope = slope_sat_vapour_press_finite(tair)

    if gv > 0.0:
        arg1 = slope * rnet + vpd * gh * CP * MASS_AIR
        arg2 = slope + gamma * gh / gv
        LE = arg1 / arg2
        transpiration = LE / lambda_molar
    else:
        LE = 0.0
        transpiration = 0.0

    # g0 can be tiny but positive, so clamp explicitly
    transpiration = max(0.0, transpiration)

    if gsv > 0.0:
        epsilon = slope / gamma
        omega = (1.0 + epsilon) / (1.0 + epsilon + gbv / gsv)
    else:
        omega = 0.0

    return LeafTranspiration(
        transpiration=float(transpiration), LE=float(LE), gbc=float(gbc),
        gh=float(gh), gv=float(gv), omega=float(omega),
    )


# =============================================================================
# CANOPY TRANSPIRATION
# =============================================================================

def _canopy_conductances(params: "ModelParameters", state: "WaterState",
                         wind: float, ca: float, period_hours: float,
                         press: float, vpd: float, tair: float, gpp: float):
    """gs (mol m-2 s-1) and ga (m s-1) plus the molar conversion factor"""
    mol_2_m = mol_to_m_per_sec_factor(tair, press)
    ga_m_per_sec = canopy_boundary_layer_conductance(
        wind, state.canht, params.dz0v_dh, params.z0h_z0m, params.displace_ratio
    )
    gs_mol_m2_sec = calc_stomatal_conductance(
        params.g1, state.wtfac_root, vpd, ca, period_hours, gpp
    )
    return gs_mol_m2_sec, ga_m_per_sec, mol_2_m


def calc_transpiration_penmon(params: "ModelParameters", state: "WaterState",
                              vpd: float, sw_rad: float, tavg: float,
                              wind: float, ca: float, daylen: float,
                              press: float, gpp: float) -> CanopyTranspiration:
    """
    Canopy transpiration over the whole daylight period (mm day-1).

    Args:
        vpd: mean daytime vpd (kPa)
        sw_rad: mean daytime shortwave radiation (W m-2)
        tavg: mean daytime temperature (degC)
        wind: mean daytime wind speed (m s-1)
        ca: atmospheric CO2 (umol mol-1)
        daylen: day length (h)
        press: mean daytime pressure (kPa)
        gpp: daily assimilation (g C m-2)
    """
    sec_per_day = SECONDS_PER_HOUR * daylen

    gs_mol_m2_sec, ga_m_per_sec, mol_2_m = _canopy_conductances(
        params, state, wind, ca, daylen, press, vpd, tavg, gpp
    )
    net_rad = calc_net_radiation(sw_rad, tavg, params.albedo) * J_TO_MJ

    pm = penman_monteith(vpd, gs_mol_m2_sec * mol_2_m, net_rad, tavg, press,
                         ga_m_per_sec)

    return CanopyTranspiration(
        transpiration=pm.et * sec_per_day,
        omega=pm.omega,
        gs_mol_m2_sec=gs_mol_m2_sec,
        ga_mol_m2_sec=ga_m_per_sec / mol_2_m,
    )


def calc_transpiration_penmon_am_pm(params: "ModelParameters",
                                    state: "WaterState", sw_rad: float,
                                    wind: float, ca: float, daylen: float,
                                    press: float, vpd: float, tair: float,
                                    gpp: float) -> HalfDayTranspiration:
    """
    Canopy transpiration over one half of the day (mm per half day).

    Conductances are returned integrated over the half day (mol m-2) so the
    morning and afternoon values can be summed and divided by the day
    length in seconds.

    Args:
        sw_rad: half-day mean shortwave radiation (W m-2)
        wind: half-day mean wind speed (m s-1)
        ca: atmospheric CO2 (umol mol-1)
        daylen: full day length (h)
        press: pressure (kPa)
        vpd: half-day mean vpd (kPa)
        tair: half-day mean air temperature (degC)
        gpp: half-day assimilation (g C m-2)
    """
    half_day = daylen / 2.0
    sec_per_half_day = SECONDS_PER_HOUR * half_day

    gs_mol_m2_sec, ga_m_per_sec, mol_2_m = _canopy_conductances(
        params, state, wind, ca, half_day, press, vpd, tair, gpp
    )
    net_rad = calc_net_radiation(sw_rad, tair, params.albedo) * J_TO_MJ

    pm = penman_monteith(vpd, gs_mol_m2_sec * mol_2_m, net_rad, tair, press,
                         ga_m_per_sec)

    return HalfDayTranspiration(
        transpiration=pm.et * sec_per_half_day,
        omega=pm.omega,
        gs_mol_m2_hfday=gs_mol_m2_sec * sec_per_half_day,
        ga_mol_m2_hfday=(ga_m_per_sec / mol_2_m) * sec_per_half_day,
    )


# =============================================================================
# TEMPORAL-RESOLUTION SOLVERS
# =============================================================================

class TranspirationSolver:
    """Transpiration for one step at a fixed temporal resolution"""

    name = "base"

    def step_seconds(self, mode: SimulationMode, daylen: float) -> float:
        """Seconds over which instantaneous fluxes are integrated"""
        return SECONDS_PER_HOUR * daylen

    def solve(self, params: "ModelParameters", state: "WaterState",
              forcing: StepForcing, press: float, daylen: float,
              assimilation: Optional[Assimilation] = None,
              trans_leaf: Optional[float] = None) -> CanopyTranspiration:
        raise NotImplementedError

    @staticmethod
    def _require(forcing: StepForcing, *names: str):
        missing = [name for name in names if getattr(forcing, name) is None]
        if missing:
            raise ForcingError(
                f"Forcing is missing {missing}",
                ErrorContext(component="evapotranspiration", operation="solve"),
            )

    @staticmethod
    def _require_assimilation(assimilation: Optional[Assimilation]) -> Assimilation:
        if assimilation is None:
            raise ForcingError(
                "Daily transpiration needs assimilation from the canopy model",
                ErrorContext(component="evapotranspiration", operation="solve"),
            )
        return assimilation


class SubDailyTranspiration(TranspirationSolver):
    """Converts an externally solved leaf flux to a per-step depth"""

    name = "sub_daily"

    def __init__(self, mode: SimulationMode):
        self.seconds = mode.subdaily_step_seconds

    def step_seconds(self, mode: SimulationMode, daylen: float) -> float:
        return self.seconds

    def solve(self, params, state, forcing, press, daylen, assimilation=None,
              trans_leaf=None):
        if trans_leaf is None:
            raise ForcingError(
                "Sub-daily steps need the leaf transpiration rate",
                ErrorContext(component="evapotranspiration", operation="solve"),
            )
        # mol m-2 s-1 -> mm per step
        transpiration = trans_leaf * MOLE_WATER_2_G_WATER * G_TO_KG * self.seconds
        return CanopyTranspiration(transpiration=transpiration)


class DailyTranspiration(TranspirationSolver):
    """A single Penman-Monteith solve over the daylight period"""

    name = "daily"

    def solve(self, params, state, forcing, press, daylen, assimilation=None,
              trans_leaf=None):
        self._require(forcing, "vpd", "wind", "co2")
        assimilation = self._require_assimilation(assimilation)

        return calc_transpiration_penmon(
            params, state, forcing.vpd, forcing.sw_rad, forcing.tair,
            forcing.wind, forcing.co2, daylen, press, assimilation.gpp
        )


class AmPmTranspiration(TranspirationSolver):
    """Morning and afternoon Penman-Monteith solves, summed"""

    name = "am_pm"

    def solve(self, params, state, forcing, press, daylen, assimilation=None,
              trans_leaf=None):
        self._require(
            forcing, "co2", "tam", "tpm", "sw_rad_am", "sw_rad_pm", "vpd_am",
            "vpd_pm", "wind_am", "wind_pm"
        )
        assimilation = self._require_assimilation(assimilation)

        am = calc_transpiration_penmon_am_pm(
            params, state, forcing.sw_rad_am, forcing.wind_am, forcing.co2,
            daylen, press, forcing.vpd_am, forcing.tam, assimilation.gpp_am
        )
        pm = calc_transpiration_penmon_am_pm(
            params, state, forcing.sw_rad_pm, forcing.wind_pm, forcing.co2,
            daylen, press, forcing.vpd_pm, forcing.tpm, assimilation.gpp_pm
        )

        # polar night: no daylight seconds to average over
        day_2_sec = 1.0 / (SECONDS_PER_HOUR * daylen) if daylen > 0.0 else 0.0

        return CanopyTranspiration(
            transpiration=am.transpiration + pm.transpiration,
            omega=(am.omega + pm.omega) / 2.0,
            gs_mol_m2_sec=(am.gs_mol_m2_hfday + pm.gs_mol_m2_hfday) * day_2_sec,
            ga_mol_m2_sec=(am.ga_mol_m2_hfday + pm.ga_mol_m2_hfday) * day_2_sec,
        )


def select_transpiration_solver(mode: SimulationMode) -> TranspirationSolver:
    """Pick the solver for a run from its mode switches"""
    if mode.sub_daily:
        solver = SubDailyTranspiration(mode)
    elif mode.split_am_pm:
        solver = AmPmTranspiration()
    else:
        solver = DailyTranspiration()

    logger.debug(f"Using {solver.name} transpiration solver")
    return solver
