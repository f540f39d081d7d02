"""
Tests for the Penman-Monteith engine and the temporal-resolution solvers.
"""
import pytest

from standwater.core.exceptions import ForcingError
from standwater.core.types import Assimilation, SimulationMode, StepForcing
from standwater.physics.evapotranspiration import (
    AmPmTranspiration, DailyTranspiration, SubDailyTranspiration,
    calc_transpiration_penmon, calc_transpiration_penmon_am_pm,
    penman_leaf, penman_monteith, select_transpiration_solver
)
from standwater.physics.water_balance import ModelParameters, WaterState


@pytest.fixture
def params():
    return ModelParameters().initialise_soil(calc_sw_params=True)


@pytest.fixture
def state(params):
    return WaterState.from_parameters(params, SimulationMode(), lai=3.0, canht=20.0)


@pytest.fixture
def symmetric_day():
    """Morning and afternoon identical to the daytime means"""
    return StepForcing(
        rain=0.0, tair=18.0, sw_rad=450.0, press=100.0, vpd=1.2, wind=2.5,
        co2=400.0, tam=18.0, tpm=18.0, sw_rad_am=450.0, sw_rad_pm=450.0,
        vpd_am=1.2, vpd_pm=1.2, wind_am=2.5, wind_pm=2.5,
    )


class TestPenmanMonteith:
    """Big-leaf combination equation"""

    def test_zero_stomatal_conductance(self):
        result = penman_monteith(vpd=1.5, gs=0.0, net_rad=4e-4, tavg=20.0,
                                 press=101.3, ga=0.05)
        assert result.et == 0.0
        assert result.omega == 0.0

    def test_typical_day(self):
        result = penman_monteith(vpd=1.5, gs=0.008, net_rad=4e-4, tavg=20.0,
                                 press=101.3, ga=0.05)
        assert result.et > 0.0
        assert 0.0 < result.omega < 1.0
        # mm over a 12 h day stays physical
        assert result.et * 43200.0 < 15.0

    def test_decoupling_grows_with_weaker_aerodynamic_coupling(self):
        coupled = penman_monteith(1.5, 0.008, 4e-4, 20.0, 101.3, 0.2)
        decoupled = penman_monteith(1.5, 0.008, 4e-4, 20.0, 101.3, 0.005)
        assert decoupled.omega > coupled.omega

    def test_more_conductance_more_water(self):
        low = penman_monteith(1.5, 0.002, 4e-4, 20.0, 101.3, 0.05)
        high = penman_monteith(1.5, 0.010, 4e-4, 20.0, 101.3, 0.05)
        assert high.et > low.et

    def test_supersaturated_air(self):
        """Negative VPD adds no demand beyond the radiation term"""
        wet = penman_monteith(-0.5, 0.008, 0.0, 20.0, 101.3, 0.05)
        assert wet.et == 0.0

        radiative = penman_monteith(0.0, 0.008, 4e-4, 20.0, 101.3, 0.05)
        supersaturated = penman_monteith(-0.5, 0.008, 4e-4, 20.0, 101.3, 0.05)
        assert supersaturated.et == pytest.approx(radiative.et)
        assert supersaturated.et > 0.0


class TestPenmanLeaf:
    """Leaf-scale Penman-Monteith"""

    def test_closed_stomata(self):
        leaf = penman_leaf(leaf_width=0.02, press=101300.0, vpd=1500.0,
                           tair=25.0, tleaf=25.0, wind=2.0, rnet=300.0, gsc=0.0)
        assert leaf.transpiration == 0.0
        assert leaf.omega == 0.0
        assert leaf.gv == 0.0
        assert leaf.gh > 0.0

    def test_open_stomata(self):
        leaf = penman_leaf(0.02, 101300.0, 1500.0, 25.0, 26.0, 2.0, 300.0, 0.2)
        assert leaf.transpiration > 0.0
        assert leaf.LE > 0.0
        assert 0.0 < leaf.omega < 1.0
        assert leaf.gbc > 0.0

    def test_transpiration_never_negative(self):
        # strongly negative net radiation with saturated air
        leaf = penman_leaf(0.02, 101300.0, 0.0, 10.0, 10.0, 1.0, -400.0, 0.01)
        assert leaf.transpiration >= 0.0


class TestCanopyTranspiration:
    """Daily and half-day canopy solves"""

    def test_am_pm_matches_single_call_for_symmetric_day(self, params, state, symmetric_day):
        daylen = 12.0
        gpp = 8.0

        single = calc_transpiration_penmon(
            params, state, symmetric_day.vpd, symmetric_day.sw_rad,
            symmetric_day.tair, symmetric_day.wind, symmetric_day.co2, daylen,
            symmetric_day.press, gpp
        )
        combined = AmPmTranspiration().solve(
            params, state, symmetric_day, symmetric_day.press, daylen,
            assimilation=Assimilation(gpp=gpp, gpp_am=gpp / 2.0, gpp_pm=gpp / 2.0),
        )

        assert combined.transpiration == pytest.approx(single.transpiration, rel=1e-9)
        assert combined.gs_mol_m2_sec == pytest.approx(single.gs_mol_m2_sec, rel=1e-9)
        assert combined.ga_mol_m2_sec == pytest.approx(single.ga_mol_m2_sec, rel=1e-9)
        assert combined.omega == pytest.approx(single.omega, rel=1e-9)

    def test_half_day_conductances_integrated(self, params, state):
        half = calc_transpiration_penmon_am_pm(
            params, state, sw_rad=400.0, wind=2.0, ca=400.0, daylen=12.0,
            press=100.0, vpd=1.0, tair=20.0, gpp=4.0
        )
        full = calc_transpiration_penmon(
            params, state, vpd=1.0, sw_rad=400.0, tavg=20.0, wind=2.0, ca=400.0,
            daylen=6.0, press=100.0, gpp=4.0
        )
        # same 6 h window, conductances expressed per half day
        assert half.transpiration == pytest.approx(full.transpiration)
        assert half.gs_mol_m2_hfday == pytest.approx(full.gs_mol_m2_sec * 6.0 * 3600.0)

    def test_stress_reduces_transpiration(self, params, state, symmetric_day):
        solver = DailyTranspiration()
        assim = Assimilation(gpp=8.0)
        wet = solver.solve(params, state, symmetric_day, 100.0, 12.0, assimilation=assim)
        state.wtfac_root = 0.1
        dry = solver.solve(params, state, symmetric_day, 100.0, 12.0, assimilation=assim)
        assert dry.transpiration < wet.transpiration

    def test_polar_night(self, params, state, symmetric_day):
        result = AmPmTranspiration().solve(
            params, state, symmetric_day, 100.0, 0.0,
            assimilation=Assimilation(gpp=0.0),
        )
        assert result.transpiration == 0.0
        assert result.gs_mol_m2_sec == 0.0

    def test_negative_vpd_never_gives_negative_transpiration(self, params, state):
        result = calc_transpiration_penmon(
            params, state, vpd=-0.3, sw_rad=0.0, tavg=12.0, wind=2.0, ca=400.0,
            daylen=10.0, press=100.0, gpp=2.0
        )
        assert result.transpiration >= 0.0

        half = calc_transpiration_penmon_am_pm(
            params, state, sw_rad=0.0, wind=2.0, ca=400.0, daylen=10.0,
            press=100.0, vpd=-0.3, tair=12.0, gpp=1.0
        )
        assert half.transpiration >= 0.0


class TestSolverSelection:
    """Temporal-resolution strategies"""

    @pytest.mark.parametrize("mode,expected", [
        (SimulationMode(sub_daily=True), SubDailyTranspiration),
        (SimulationMode(split_am_pm=True), AmPmTranspiration),
        (SimulationMode(split_am_pm=False), DailyTranspiration),
    ])
    def test_select(self, mode, expected):
        assert isinstance(select_transpiration_solver(mode), expected)

    def test_step_seconds(self):
        mode = SimulationMode(sub_daily=True)
        assert select_transpiration_solver(mode).step_seconds(mode, 12.0) == 1800.0
        daily = SimulationMode()
        assert select_transpiration_solver(daily).step_seconds(daily, 12.0) == 43200.0

    def test_sub_daily_unit_conversion(self, params, state, symmetric_day):
        solver = SubDailyTranspiration(SimulationMode(sub_daily=True))
        result = solver.solve(params, state, symmetric_day, 100.0, 12.0, trans_leaf=1e-3)
        assert result.transpiration == pytest.approx(1e-3 * 18.02 * 1e-3 * 1800.0)
        assert result.gs_mol_m2_sec is None

    def test_sub_daily_needs_leaf_flux(self, params, state, symmetric_day):
        solver = SubDailyTranspiration(SimulationMode(sub_daily=True))
        with pytest.raises(ForcingError):
            solver.solve(params, state, symmetric_day, 100.0, 12.0)

    def test_daily_needs_assimilation(self, params, state, symmetric_day):
        with pytest.raises(ForcingError):
            DailyTranspiration().solve(params, state, symmetric_day, 100.0, 12.0)

    def test_am_pm_needs_half_day_forcing(self, params, state):
        forcing = StepForcing(rain=0.0, tair=15.0, sw_rad=300.0, co2=400.0)
        with pytest.raises(ForcingError):
            AmPmTranspiration().solve(
                params, state, forcing, 100.0, 12.0, assimilation=Assimilation(gpp=5.0)
            )
