"""Physics modules for the stand water balance."""
from standwater.physics.water_balance import (
    WaterBalanceModel,
    ModelParameters,
    WaterState,
    Fluxes,
    StepFluxes,
    MetForcing,
)
from standwater.physics.evapotranspiration import (
    penman_monteith,
    penman_leaf,
    select_transpiration_solver,
)
from standwater.physics.pedotransfer import (
    TextureClass,
    parse_texture_class,
    initialise_soil_moisture_parameters,
)

__all__ = [
    "WaterBalanceModel",
    "ModelParameters",
    "WaterState",
    "Fluxes",
    "StepFluxes",
    "MetForcing",
    # Combination equations
    "penman_monteith",
    "penman_leaf",
    "select_transpiration_solver",
    # Pedotransfer
    "TextureClass",
    "parse_texture_class",
    "initialise_soil_moisture_parameters",
]
