"""
Tests for the thermodynamic and conductance primitives.
Reference values from FAO-56 tables and hand evaluation of the equations.
"""
import numpy as np
import pytest

from standwater.physics.psychrometrics import (
    calc_atmos_pressure, calc_density_of_air,
    calc_latent_heat_of_vapourisation, calc_pyschrometric_constant,
    calc_sat_water_vapour_press, calc_slope_of_saturation_vapour_pressure_curve,
    latent_heat_molar, molar_psychrometric_constant,
    slope_sat_vapour_press_finite
)
from standwater.physics.conductance import (
    calc_bdn_layer_forced_conduct, calc_bdn_layer_free_conduct,
    calc_radiation_conductance, calc_stomatal_conductance,
    canopy_boundary_layer_conductance, gpp_to_umol_per_sec,
    molar_air_density, mol_to_m_per_sec_factor
)


class TestPsychrometrics:
    """Thermodynamic primitives against reference values"""

    def test_latent_heat(self):
        assert calc_latent_heat_of_vapourisation(20.0) == pytest.approx(2.45378)
        # molar form: J kg-1 * kg mol-1
        assert latent_heat_molar(0.0) == pytest.approx(2.501e6 * 18e-3)

    def test_saturation_vapour_pressure(self):
        assert calc_sat_water_vapour_press(0.0) == pytest.approx(613.75)
        assert calc_sat_water_vapour_press(25.0) > calc_sat_water_vapour_press(15.0)

    def test_psychrometric_constant_sea_level(self):
        gamma = calc_pyschrometric_constant(2.45, 101.3)
        assert gamma == pytest.approx(0.0673, rel=1e-3)

    def test_molar_psychrometric_constant_units(self):
        """Pa K-1 form agrees with the kPa form to within the cp choices"""
        tair = 20.0
        gamma_pa = molar_psychrometric_constant(101300.0, latent_heat_molar(tair))
        gamma_kpa = calc_pyschrometric_constant(
            calc_latent_heat_of_vapourisation(tair), 101.3
        )
        assert gamma_pa * 1e-3 == pytest.approx(gamma_kpa, rel=0.03)

    def test_slope_fao_table(self):
        # FAO-56 Annex 2, Table 2.4: 0.145 kPa/degC at 20 degC
        assert calc_slope_of_saturation_vapour_pressure_curve(20.0) == pytest.approx(
            0.1447, rel=5e-3
        )

    def test_finite_difference_slope_matches_analytic(self):
        for tair in (5.0, 15.0, 25.0):
            finite_kpa = slope_sat_vapour_press_finite(tair) * 1e-3
            analytic = calc_slope_of_saturation_vapour_pressure_curve(tair)
            assert finite_kpa == pytest.approx(analytic, rel=0.02)

    def test_atmospheric_pressure(self):
        assert calc_atmos_pressure(0.0) == pytest.approx(101.3)
        assert calc_atmos_pressure() < 101.3
        assert calc_atmos_pressure(1000.0) < calc_atmos_pressure(125.0)

    def test_density_of_air(self):
        assert calc_density_of_air(0.0) == pytest.approx(1.292)
        assert calc_density_of_air(30.0) < calc_density_of_air(0.0)


class TestConductance:
    """Conductance primitives"""

    def test_molar_air_density(self):
        assert molar_air_density(0.0, 101.325) == pytest.approx(44.6, rel=1e-2)
        assert mol_to_m_per_sec_factor(0.0, 101.325) == pytest.approx(
            1.0 / molar_air_density(0.0, 101.325)
        )

    def test_radiation_conductance_positive(self):
        assert calc_radiation_conductance(20.0) > 0.0
        assert calc_radiation_conductance(30.0) > calc_radiation_conductance(10.0)

    def test_forced_convection_scales_with_wind(self):
        slow = calc_bdn_layer_forced_conduct(20.0, 101300.0, 1.0, 0.02)
        fast = calc_bdn_layer_forced_conduct(20.0, 101300.0, 4.0, 0.02)
        assert fast == pytest.approx(2.0 * slow)

    def test_free_convection_zero_without_temperature_difference(self):
        assert calc_bdn_layer_free_conduct(20.0, 20.0, 101300.0, 0.02) == 0.0
        assert calc_bdn_layer_free_conduct(20.0, 22.0, 101300.0, 0.02) > 0.0

    def test_canopy_boundary_layer_conductance(self):
        ga = canopy_boundary_layer_conductance(
            wind=2.0, canht=20.0, dz0v_dh=0.075, z0h_z0m=1.0, displace_ratio=0.78
        )
        assert ga == pytest.approx(0.290309, rel=1e-3)

    def test_canopy_boundary_layer_conductance_calm(self):
        ga = canopy_boundary_layer_conductance(0.0, 20.0, 0.075, 1.0, 0.78)
        assert ga == 0.0

    @pytest.mark.parametrize("canht", [0.0, -1.0])
    def test_canopy_boundary_layer_conductance_no_canopy(self, canht):
        assert canopy_boundary_layer_conductance(2.0, canht, 0.075, 1.0, 0.78) == 0.0

    def test_canopy_boundary_layer_conductance_shallow_profile(self):
        # displacement leaves less height than the roughness length
        assert canopy_boundary_layer_conductance(2.0, 10.0, 0.1, 1.0, 0.95) == 0.0

    def test_gpp_conversion(self):
        # 5.184 g C over 12 h is 10 umol m-2 s-1
        assert gpp_to_umol_per_sec(5.184, 12.0) == pytest.approx(10.0)

    def test_medlyn_stomatal_conductance(self):
        gs = calc_stomatal_conductance(
            g1=4.8, wtfac=1.0, vpd=1.0, ca=400.0, period_hours=12.0, gpp=5.184
        )
        assert gs == pytest.approx(1.6 * 5.8 * 10.0 / 400.0)

    def test_stomatal_conductance_responds_to_stress(self):
        wet = calc_stomatal_conductance(4.8, 1.0, 1.5, 400.0, 12.0, 5.0)
        dry = calc_stomatal_conductance(4.8, 0.2, 1.5, 400.0, 12.0, 5.0)
        assert 0.0 < dry < wet

    @pytest.mark.parametrize("period_hours,gpp", [(0.0, 5.0), (12.0, 0.0)])
    def test_stomatal_conductance_degenerate(self, period_hours, gpp):
        assert calc_stomatal_conductance(4.8, 1.0, 1.0, 400.0, period_hours, gpp) == 0.0

    def test_stomatal_conductance_vpd_floor(self):
        gs = calc_stomatal_conductance(4.8, 1.0, 0.0, 400.0, 12.0, 5.0)
        assert np.isfinite(gs)
        assert gs > 0.0
