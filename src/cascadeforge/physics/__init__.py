"""CascadeForge physics module."""

from cascadeforge.physics.nuclides import (
    Nuclide,
    NUCLIDE_ALIASES,
    build_nuclide_id,
    parse_nuclide_id,
    parse_fuel_nuclides,
    split_nuclide_id,
    element_of,
    mass_number_from_id,
)
from cascadeforge.physics.fuel import (
    ProportionFormat,
    FuelNuclide,
    create_equal_proportion_fuel,
    normalize_fuel_proportions,
    proportion_map,
    calculate_reaction_weight,
    convert_proportion_format,
    parse_mass_ratios,
    validate_fuel_proportions,
    format_proportion,
)

__all__ = [
    # Nuclides
    "Nuclide",
    "NUCLIDE_ALIASES",
    "build_nuclide_id",
    "parse_nuclide_id",
    "parse_fuel_nuclides",
    "split_nuclide_id",
    "element_of",
    "mass_number_from_id",
    # Fuel
    "ProportionFormat",
    "FuelNuclide",
    "create_equal_proportion_fuel",
    "normalize_fuel_proportions",
    "proportion_map",
    "calculate_reaction_weight",
    "convert_proportion_format",
    "parse_mass_ratios",
    "validate_fuel_proportions",
    "format_proportion",
]
