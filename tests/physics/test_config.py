"""
Tests for configuration loading, validation and the error hierarchy.
"""
import logging

import pytest
from pydantic import ValidationError

from standwater.core.config import (
    CanopyConfig, SoilConfig, StandWaterConfig, get_config, set_config,
    setup_logging
)
from standwater.core.exceptions import (
    ConfigurationError, ErrorContext, ForcingError, ParameterError,
    PhysicsModelError, SoilTextureError, StandWaterError, handle_exception
)
from standwater.core.types import FluxUpdatePolicy, StressModel
from standwater.physics.water_balance import ModelParameters


class TestStandWaterConfig:
    """Configuration surface"""

    @pytest.fixture(autouse=True)
    def reset_singleton(self):
        set_config(None)
        yield
        set_config(None)

    def test_defaults(self):
        config = StandWaterConfig()
        assert config.soil.topsoil_type == "loam"
        assert config.simulation.sw_stress_model == StressModel.LANDSBERG_WARING
        assert config.simulation.split_am_pm is True

    def test_texture_names_normalised(self):
        soil = SoilConfig(topsoil_type="Sandy Loam")
        assert soil.topsoil_type == "sandy_loam"

    def test_unknown_texture_fails_at_load(self):
        with pytest.raises((SoilTextureError, ValidationError)):
            SoilConfig(rootsoil_type="basalt")

    def test_supplied_capacities_required_without_texture_derivation(self):
        with pytest.raises(ValidationError):
            StandWaterConfig(simulation={"calc_sw_params": False})

        config = StandWaterConfig(
            simulation={"calc_sw_params": False},
            soil={"wcapac_topsoil": 40.0, "wcapac_root": 150.0},
        )
        params = ModelParameters.from_config(config)
        assert params.wcapac_root == 150.0

    def test_matric_model_needs_hydraulics(self):
        with pytest.raises(ValidationError):
            StandWaterConfig(
                simulation={"calc_sw_params": False, "sw_stress_model": 2},
                soil={"wcapac_topsoil": 40.0, "wcapac_root": 150.0},
            )

    def test_roughness_geometry_validated(self):
        with pytest.raises(ValidationError):
            CanopyConfig(displace_ratio=0.95, dz0v_dh=0.1)

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("STANDWATER_CANOPY_G1", "3.2")
        assert CanopyConfig().g1 == pytest.approx(3.2)

    def test_yaml_round_trip(self, tmp_path):
        config = StandWaterConfig(
            site_id="harvard",
            soil={"topsoil_type": "clay_loam", "rooting_depth_mm": 1500.0},
            simulation={"sub_daily": True, "sw_stress_model": 0},
        )
        path = tmp_path / "config" / "stand.yaml"
        config.to_yaml(path)

        loaded = StandWaterConfig.from_yaml(path)
        assert loaded.site_id == "harvard"
        assert loaded.soil.topsoil_type == "clay_loam"
        assert loaded.soil.rooting_depth_mm == 1500.0
        assert loaded.simulation.sw_stress_model == StressModel.POWER_LAW

    def test_missing_yaml(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            StandWaterConfig.from_yaml(tmp_path / "absent.yaml")

    def test_simulation_mode(self):
        mode = StandWaterConfig(simulation={"sub_daily": True}).simulation_mode()
        assert mode.sub_daily
        assert mode.flux_policy == FluxUpdatePolicy.ACCUMULATE
        assert mode.step_idx == 0

    def test_singleton(self):
        config = StandWaterConfig(project_name="singleton")
        set_config(config)
        assert get_config() is config

    def test_setup_logging(self):
        setup_logging(StandWaterConfig(logging={"log_level": "DEBUG"}))
        assert logging.getLogger("standwater").getEffectiveLevel() <= logging.INFO


class TestExceptions:
    """Error hierarchy"""

    def test_hierarchy(self):
        assert issubclass(SoilTextureError, ConfigurationError)
        assert issubclass(ParameterError, PhysicsModelError)
        assert issubclass(ForcingError, StandWaterError)
        assert PhysicsModelError.__subclasses__() == [ParameterError]

    def test_context_in_message(self):
        err = ForcingError("no co2", ErrorContext(site_id="s1", step=4, component="forcing"))
        text = str(err)
        assert "[Site: s1]" in text
        assert "[Step: 4]" in text
        assert "[Component: forcing]" in text

    @pytest.mark.parametrize("exc,expected", [
        (KeyError("vpd"), ForcingError),
        (FileNotFoundError("x.yaml"), ConfigurationError),
        (ValueError("bad"), ParameterError),
        (ZeroDivisionError("div"), PhysicsModelError),
        (RuntimeError("other"), StandWaterError),
    ])
    def test_handle_exception(self, exc, expected):
        wrapped = handle_exception(exc)
        assert type(wrapped) is expected

    def test_handle_exception_passthrough(self):
        err = ParameterError("already wrapped")
        assert handle_exception(err) is err
