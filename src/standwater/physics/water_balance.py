"""
Stand water balance: step orchestration, parameters, state and fluxes.

Each step partitions rainfall into canopy interception, soil evaporation,
transpiration and runoff, then updates a two-layer plant-available-water
bucket whose stress factors feed stomatal conductance on the next step.

Temporal resolution is fixed per run:
1. Sub-daily: the leaf transpiration rate arrives already solved; fluxes
   are accumulated into the day's record.
2. Daily: transpiration from one Penman-Monteith solve over the daylight
   period, or from separate morning and afternoon solves; fluxes
   overwrite the record.
"""
import logging
from dataclasses import asdict, dataclass
from typing import Dict, List, Optional

import pandas as pd

from standwater.core.config import StandWaterConfig, get_config
from standwater.core.constants import G_TO_KG, MOLE_WATER_2_G_WATER, PAR_2_SW
from standwater.core.exceptions import ErrorContext, ForcingError, StandWaterError
from standwater.core.types import (
    Assimilation, FluxUpdatePolicy, MolPerM2PerSec, SimulationMode,
    StepForcing, StressFactor
)
from standwater.physics.evapotranspiration import select_transpiration_solver
from standwater.physics.interception import calc_interception
from standwater.physics.pedotransfer import initialise_soil_moisture_parameters
from standwater.physics.psychrometrics import calc_atmos_pressure
from standwater.physics.soil_evaporation import calc_soil_evaporation
from standwater.physics.soil_water import (
    calculate_soil_water_fac, update_water_storage
)

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400.0

# Soil quantities that must be set before the first step
_DERIVED_SOIL = (
    "wcapac_topsoil", "wcapac_root",
    "ctheta_topsoil", "ntheta_topsoil", "ctheta_root", "ntheta_root",
)


@dataclass
class ModelParameters:
    """Static parameters of the stand water balance"""
    # Soil layers
    topsoil_type: str = "loam"
    rootsoil_type: str = "loam"
    topsoil_depth_mm: float = 350.0
    rooting_depth_mm: float = 2000.0

    # Canopy architecture
    leaf_width: float = 0.02  # m
    dz0v_dh: float = 0.075  # momentum roughness length / canopy height
    z0h_z0m: float = 1.0  # heat / momentum roughness length
    displace_ratio: float = 0.78  # zero-plane displacement / canopy height
    albedo: float = 0.123
    intercep_frac: float = 0.15
    max_intercep_lai: float = 3.0
    g1: float = 4.8  # kPa^0.5

    # Moisture stress
    qs: float = 1.0
    fractup_soil: float = 0.4
    ctheta_topsoil: Optional[float] = None
    ntheta_topsoil: Optional[float] = None
    ctheta_root: Optional[float] = None
    ntheta_root: Optional[float] = None

    # Derived once at initialisation unless supplied
    wcapac_topsoil: Optional[float] = None  # mm
    wcapac_root: Optional[float] = None  # mm
    theta_sat_topsoil: Optional[float] = None
    theta_sat_root: Optional[float] = None
    b_topsoil: Optional[float] = None
    b_root: Optional[float] = None
    psi_sat_topsoil: Optional[float] = None  # MPa
    psi_sat_root: Optional[float] = None  # MPa

    mass_balance_tolerance_mm: float = 1e-6

    def initialise_soil(self, calc_sw_params: bool) -> "ModelParameters":
        """Fill the derived soil parameters in place; call before the first step"""
        for name, value in initialise_soil_moisture_parameters(self, calc_sw_params).items():
            setattr(self, name, value)
        return self

    @classmethod
    def from_config(cls, config: StandWaterConfig) -> "ModelParameters":
        """Create initialised parameters from a configuration"""
        soil = config.soil.model_dump()
        canopy = config.canopy.model_dump()

        params = cls(
            **soil,
            **canopy,
            mass_balance_tolerance_mm=config.simulation.mass_balance_tolerance_mm,
        )
        return params.initialise_soil(config.simulation.calc_sw_params)


@dataclass
class WaterState:
    """Step-to-step state of the stand"""
    pawater_topsoil: float  # mm
    pawater_root: float  # mm
    wtfac_topsoil: StressFactor = 1.0
    wtfac_root: StressFactor = 1.0
    lai: float = 0.0
    canht: float = 20.0  # m

    # Copied soil hydraulics, matric-potential stress only
    psi_sat_topsoil: Optional[float] = None
    psi_sat_root: Optional[float] = None
    theta_sat_topsoil: Optional[float] = None
    theta_sat_root: Optional[float] = None
    b_topsoil: Optional[float] = None
    b_root: Optional[float] = None

    delta_sw_store: float = 0.0

    @classmethod
    def from_parameters(
        cls,
        params: ModelParameters,
        mode: SimulationMode,
        topsoil_fraction: float = 1.0,
        root_fraction: float = 1.0,
        lai: float = 0.0,
        canht: float = 20.0,
    ) -> "WaterState":
        """Initial state with buckets filled to a fraction of capacity"""
        state = cls(
            pawater_topsoil=topsoil_fraction * params.wcapac_topsoil,
            pawater_root=root_fraction * params.wcapac_root,
            lai=lai,
            canht=canht,
            psi_sat_topsoil=params.psi_sat_topsoil,
            psi_sat_root=params.psi_sat_root,
            theta_sat_topsoil=params.theta_sat_topsoil,
            theta_sat_root=params.theta_sat_root,
            b_topsoil=params.b_topsoil,
            b_root=params.b_root,
        )
        if mode.water_stress:
            calculate_soil_water_fac(mode, params, state)
        return state


@dataclass
class StepFluxes:
    """Fluxes of a single step (mm per step, conductances mol m-2 s-1)"""
    interception: float = 0.0
    soil_evap: float = 0.0
    transpiration: float = 0.0
    et: float = 0.0
    runoff: float = 0.0
    gs_mol_m2_sec: Optional[MolPerM2PerSec] = None
    ga_mol_m2_sec: Optional[MolPerM2PerSec] = None
    omega: Optional[float] = None
    water_limited: bool = False


@dataclass
class Fluxes:
    """Flux record read by downstream consumers"""
    interception: float = 0.0
    soil_evap: float = 0.0
    transpiration: float = 0.0
    et: float = 0.0
    runoff: float = 0.0
    gs_mol_m2_sec: float = 0.0
    ga_mol_m2_sec: float = 0.0
    omega: float = 0.0

    _WATER = ("interception", "soil_evap", "transpiration", "et", "runoff")
    _RATES = ("gs_mol_m2_sec", "ga_mol_m2_sec", "omega")

    def zero_day(self):
        """Reset the day's accumulators before its first sub-daily step"""
        for name in self._WATER + self._RATES:
            setattr(self, name, 0.0)

    def update(self, step: StepFluxes, policy: FluxUpdatePolicy):
        """
        Write one step into the record.

        Water fluxes are summed under ACCUMULATE and replaced under
        OVERWRITE. Conductances and omega are rates and are only ever
        replaced, and only when the step reports them.
        """
        for name in self._WATER:
            value = getattr(step, name)
            if policy == FluxUpdatePolicy.ACCUMULATE:
                value += getattr(self, name)
            setattr(self, name, value)

        for name in self._RATES:
            value = getattr(step, name)
            if value is not None:
                setattr(self, name, value)


class MetForcing:
    """
    Time-indexed meteorological forcing table.

    Required columns depend on the resolution:
    - sub-daily: rain, tair and either sw_rad or par
    - daily: rain, tair, sw_rad, vpd, wind, co2, daylen
    - daily AM/PM: rain, tair, sw_rad, co2, daylen and the tam/tpm,
      sw_rad_am/pm, vpd_am/pm, wind_am/pm half-day means

    ``press`` (kPa) is optional everywhere; missing values fall back to the
    standard atmosphere.
    """

    SUB_DAILY_COLUMNS = ("rain", "tair")
    DAILY_COLUMNS = ("rain", "tair", "sw_rad", "vpd", "wind", "co2", "daylen")
    AM_PM_COLUMNS = (
        "rain", "tair", "sw_rad", "co2", "daylen", "tam", "tpm", "sw_rad_am",
        "sw_rad_pm", "vpd_am", "vpd_pm", "wind_am", "wind_pm",
    )

    def __init__(self, data: pd.DataFrame, mode: SimulationMode):
        self.mode = mode
        self.data = self._prepare(data.copy())

    def _required_columns(self) -> tuple:
        if self.mode.sub_daily:
            return self.SUB_DAILY_COLUMNS
        if self.mode.split_am_pm:
            return self.AM_PM_COLUMNS
        return self.DAILY_COLUMNS

    def _prepare(self, data: pd.DataFrame) -> pd.DataFrame:
        if self.mode.sub_daily and "sw_rad" not in data.columns and "par" in data.columns:
            # umol m-2 s-1 -> W m-2
            data["sw_rad"] = data["par"] * PAR_2_SW

        required = self._required_columns()
        if self.mode.sub_daily:
            required = required + ("sw_rad",)

        missing = [col for col in required if col not in data.columns]
        if missing:
            raise ForcingError(
                f"Missing required forcing columns: {missing}",
                ErrorContext(component="forcing", operation="validate"),
            )

        if data[list(required)].isna().any().any():
            raise ForcingError(
                "Required forcing columns contain missing values",
                ErrorContext(component="forcing", operation="validate"),
            )

        if (data["rain"] < 0).any():
            logger.warning("Negative values found in rain")

        return data

    def __len__(self) -> int:
        return len(self.data)

    @property
    def index(self) -> pd.Index:
        return self.data.index

    def _value(self, row: pd.Series, name: str) -> Optional[float]:
        value = row.get(name)
        if value is None or pd.isna(value):
            return None
        return float(value)

    def step(self, idx: int) -> StepForcing:
        """Forcing record for the idx-th step"""
        row = self.data.iloc[idx]
        names = (
            "press", "vpd", "wind", "co2", "tam", "tpm", "sw_rad_am",
            "sw_rad_pm", "vpd_am", "vpd_pm", "wind_am", "wind_pm",
        )
        return StepForcing(
            rain=float(row["rain"]),
            tair=float(row["tair"]),
            sw_rad=float(row["sw_rad"]),
            **{name: self._value(row, name) for name in names},
        )

    def day_length(self, idx: int) -> float:
        """Day length (h) of the idx-th step, a full day if not supplied"""
        value = self._value(self.data.iloc[idx], "daylen")
        return 24.0 if value is None else value


class WaterBalanceModel:
    """
    Stand-scale two-bucket water balance.

    One instance owns the state of one stand. The transpiration solver and
    the flux update policy are chosen once from the simulation mode.
    """

    def __init__(
        self,
        parameters: ModelParameters,
        mode: Optional[SimulationMode] = None,
        state: Optional[WaterState] = None,
        site_id: Optional[str] = None,
    ):
        """
        Initialize the water balance.

        Args:
            parameters: initialised model parameters
            mode: run-level switches (defaults to daily AM/PM with stress)
            state: initial state (defaults to buckets at capacity)
            site_id: label used in log and error messages
        """
        self.params = parameters
        self.mode = mode or SimulationMode()
        self.site_id = site_id
        self._setup_logging()

        if any(getattr(self.params, name) is None for name in _DERIVED_SOIL):
            self.params.initialise_soil(self.mode.calc_sw_params)

        self.state = state or WaterState.from_parameters(self.params, self.mode)
        self.fluxes = Fluxes()

        self.solver = select_transpiration_solver(self.mode)
        self.flux_policy = self.mode.flux_policy

        # Track water balance error
        self.cumulative_error = 0.0
        self.step_count = 0

        self.logger.info(
            f"Water balance ready: solver={self.solver.name}, "
            f"policy={self.flux_policy.value}, "
            f"wcapac_topsoil={self.params.wcapac_topsoil:.1f} mm, "
            f"wcapac_root={self.params.wcapac_root:.1f} mm"
        )

    def _setup_logging(self):
        """Configure model-specific logging"""
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @classmethod
    def from_config(cls, config: Optional[StandWaterConfig] = None) -> "WaterBalanceModel":
        """Build parameters, mode and initial state from a configuration"""
        config = config or get_config()
        mode = SimulationMode.from_config(config)
        params = ModelParameters.from_config(config)

        initial = config.initial_state
        state = WaterState.from_parameters(
            params,
            mode,
            topsoil_fraction=initial.topsoil_fraction,
            root_fraction=initial.root_fraction,
            lai=initial.lai,
            canht=initial.canht,
        )
        return cls(params, mode, state, site_id=config.site_id)

    @property
    def steps_per_day(self) -> int:
        return max(1, int(round(SECONDS_PER_DAY / self.mode.subdaily_step_seconds)))

    def set_canopy(self, lai: Optional[float] = None, canht: Optional[float] = None):
        """Take LAI and canopy height from the growth component"""
        if lai is not None:
            self.state.lai = max(0.0, lai)
        if canht is not None:
            self.state.canht = max(0.0, canht)

    def step(
        self,
        forcing: StepForcing,
        day_length: float,
        assimilation: Optional[Assimilation] = None,
        trans_leaf: Optional[float] = None,
    ) -> StepFluxes:
        """
        Advance the water balance by one step.

        Args:
            forcing: meteorological drivers for the step
            day_length: day length (h)
            assimilation: carbon uptake for the day (daily modes)
            trans_leaf: solved leaf transpiration, mol H2O m-2 s-1 (sub-daily)

        Returns:
            StepFluxes as applied to the bucket
        """
        if self.flux_policy == FluxUpdatePolicy.ACCUMULATE and self.mode.step_idx == 0:
            self.fluxes.zero_day()

        params = self.params
        state = self.state
        press = forcing.press if forcing.press is not None else calc_atmos_pressure()

        interception = calc_interception(
            forcing.rain, state.lai, params.intercep_frac, params.max_intercep_lai
        )

        # mol m-2 s-1 -> mm per step
        seconds = self.solver.step_seconds(self.mode, day_length)
        soil_evap = calc_soil_evaporation(
            forcing.sw_rad, press, forcing.tair, params.albedo, state.lai,
            state.wtfac_topsoil
        )
        soil_evap *= MOLE_WATER_2_G_WATER * G_TO_KG * seconds

        try:
            canopy = self.solver.solve(
                params, state, forcing, press, day_length,
                assimilation=assimilation, trans_leaf=trans_leaf
            )
        except StandWaterError as e:
            e.context.site_id = e.context.site_id or self.site_id
            e.context.step = self.step_count
            raise

        et = canopy.transpiration + soil_evap + interception

        storage_before = state.pawater_root
        update = update_water_storage(
            self.mode, params, state, forcing.rain, interception,
            canopy.transpiration, soil_evap, et
        )

        step_fluxes = StepFluxes(
            interception=interception,
            soil_evap=update.soil_evap,
            transpiration=update.transpiration,
            et=update.et,
            runoff=update.runoff,
            gs_mol_m2_sec=canopy.gs_mol_m2_sec,
            ga_mol_m2_sec=canopy.ga_mol_m2_sec,
            omega=canopy.omega,
            water_limited=update.water_limited,
        )

        self._check_water_balance(storage_before, forcing.rain, step_fluxes)
        self.fluxes.update(step_fluxes, self.flux_policy)

        self.logger.debug(
            f"Step {self.step_count}: rain={forcing.rain:.2f}, "
            f"I={interception:.3f}, Es={step_fluxes.soil_evap:.3f}, "
            f"T={step_fluxes.transpiration:.3f}, RO={step_fluxes.runoff:.3f} mm, "
            f"root={state.pawater_root:.1f} mm, wtfac_root={state.wtfac_root:.3f}"
        )

        self.step_count += 1
        if self.mode.sub_daily:
            self.mode.step_idx = (self.mode.step_idx + 1) % self.steps_per_day

        return step_fluxes

    def _check_water_balance(
        self,
        storage_before: float,
        rain: float,
        step: StepFluxes
    ) -> float:
        """
        Root-zone closure residual (mm) of the step just taken.

        Water-limited steps do not close by construction and are not
        counted.
        """
        delta_storage = self.state.pawater_root - storage_before
        expected = (
            rain - step.interception - step.transpiration - step.soil_evap
            - step.runoff
        )
        residual = delta_storage - expected

        if step.water_limited:
            self.logger.debug(
                f"Water-limited step {self.step_count}: residual {residual:.3f} mm"
            )
            return residual

        self.cumulative_error += abs(residual)
        if abs(residual) > self.params.mass_balance_tolerance_mm:
            self.logger.warning(
                f"Water balance residual {residual:.3e} mm at step {self.step_count}\n"
                f"  dS (calc): {delta_storage:.3f} mm\n"
                f"  dS (expected): {expected:.3f} mm"
            )
        return residual

    def run_period(
        self,
        forcing: MetForcing,
        canopy: Optional[pd.DataFrame] = None,
    ) -> pd.DataFrame:
        """
        Run the water balance over a forcing table.

        Args:
            forcing: validated meteorological forcing
            canopy: per-step outputs of the growth component, aligned with
                the forcing rows. Columns (all optional): gpp, gpp_am,
                gpp_pm (g C m-2), lai, canht (m), trans_leaf
                (mol H2O m-2 s-1, sub-daily)

        Returns:
            DataFrame of step fluxes and storages, indexed like the forcing
        """
        if canopy is not None and len(canopy) != len(forcing):
            raise ForcingError(
                f"Canopy table has {len(canopy)} rows, forcing has {len(forcing)}",
                ErrorContext(site_id=self.site_id, component="water_balance",
                             operation="run_period"),
            )

        self.logger.info(
            f"Running water balance for {len(forcing)} steps ({self.solver.name})"
        )

        records: List[Dict] = []
        for i in range(len(forcing)):
            assimilation = None
            trans_leaf = None
            if canopy is not None:
                row = canopy.iloc[i]
                self.set_canopy(_optional(row, "lai"), _optional(row, "canht"))
                assimilation = Assimilation(
                    gpp=_optional(row, "gpp") or 0.0,
                    gpp_am=_optional(row, "gpp_am") or 0.0,
                    gpp_pm=_optional(row, "gpp_pm") or 0.0,
                )
                trans_leaf = _optional(row, "trans_leaf")

            try:
                step = self.step(
                    forcing.step(i), forcing.day_length(i),
                    assimilation=assimilation, trans_leaf=trans_leaf,
                )
            except StandWaterError as e:
                self.logger.error(f"Error at step {forcing.index[i]}: {e}")
                raise

            record = asdict(step)
            record.update(
                pawater_topsoil=self.state.pawater_topsoil,
                pawater_root=self.state.pawater_root,
                wtfac_topsoil=self.state.wtfac_topsoil,
                wtfac_root=self.state.wtfac_root,
                delta_sw_store=self.state.delta_sw_store,
            )
            records.append(record)

        results = pd.DataFrame(records, index=forcing.index)

        self.logger.info(
            f"Water balance run complete. "
            f"Cumulative residual: {self.cumulative_error:.3e} mm, "
            f"water-limited steps: {int(results['water_limited'].sum()) if len(results) else 0}"
        )
        return results

    def get_diagnostic_info(self) -> Dict:
        """Get diagnostic information about model state"""
        return {
            'current_state': asdict(self.state),
            'fluxes': asdict(self.fluxes),
            'parameters': {
                k: v for k, v in self.params.__dict__.items()
                if not k.startswith('_')
            },
            'performance': {
                'cumulative_water_balance_error_mm': self.cumulative_error,
                'step_count': self.step_count,
                'avg_water_balance_error_mm': (
                    self.cumulative_error / self.step_count
                    if self.step_count > 0 else 0.0
                ),
            },
        }


def _optional(row: pd.Series, name: str) -> Optional[float]:
    value = row.get(name)
    if value is None or pd.isna(value):
        return None
    return float(value)
