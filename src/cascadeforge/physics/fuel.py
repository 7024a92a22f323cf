"""
Fuel Proportion Module

Turns user-supplied fuel abundances into a normalized probability
distribution over fuel nuclides and derives per-reaction weights from it.

Supported input formats:
    - plain list of nuclide identifiers (equal weighting)
    - percentages:      Li-7: 92.5, Li-6: 7.5
    - atomic ratios:    Li-7: 12.3, Li-6: 1
    - mass amounts:     converted to molar amounts via atomic masses

Normalization is scale-invariant: only the ratios between retained
(non-zero) entries matter. Display values are presentation-only and
never enter the arithmetic.

For a reaction A + B -> products the weight is

    w = p(A) * p(B)

with nuclides absent from the proportion map contributing a factor of 1.
Weights rank and annotate reactions; they never decide whether a reaction
enters the cascade.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from cascadeforge.core.errors import InvalidInput
from cascadeforge.physics.nuclides import mass_number_from_id


class ProportionFormat(Enum):
    """How a fuel proportion is entered and displayed."""

    PERCENTAGE = "percentage"
    ATOMIC_RATIO = "atomic_ratio"
    MASS_RATIO = "mass_ratio"


@dataclass
class FuelNuclide:
    """
    One fuel nuclide with its abundance.

    Attributes
    ----------
    nuclide_id : str
        Canonical identifier (e.g. ``'Li-7'``)
    proportion : float
        Abundance; a fraction in [0, 1] once normalized
    display_value : float, optional
        Value as the user entered it (presentation only)
    format : ProportionFormat
        Format of ``display_value``
    """
    nuclide_id: str
    proportion: float
    display_value: Optional[float] = None
    format: ProportionFormat = ProportionFormat.PERCENTAGE

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "nuclideId": self.nuclide_id,
            "proportion": self.proportion,
            "format": self.format.value,
        }
        if self.display_value is not None:
            data["displayValue"] = self.display_value
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FuelNuclide":
        """Build from a mapping with camelCase or snake_case keys."""
        nuclide_id = data.get("nuclideId", data.get("nuclide_id"))
        if nuclide_id is None:
            raise InvalidInput(f"Fuel entry is missing a nuclide id: {dict(data)}")
        if "proportion" not in data:
            raise InvalidInput(f"Fuel entry {nuclide_id} is missing a proportion")
        display = data.get("displayValue", data.get("display_value"))
        fmt = data.get("format", ProportionFormat.PERCENTAGE)
        return cls(
            nuclide_id=str(nuclide_id),
            proportion=float(data["proportion"]),
            display_value=None if display is None else float(display),
            format=ProportionFormat(fmt),
        )


FuelInput = Union[Sequence[str], Sequence[Union[FuelNuclide, Mapping[str, Any]]]]


def _coerce_fuel(entry: Union[FuelNuclide, Mapping[str, Any]]) -> FuelNuclide:
    if isinstance(entry, FuelNuclide):
        return entry
    if isinstance(entry, Mapping):
        return FuelNuclide.from_dict(entry)
    raise InvalidInput(f"Unsupported fuel entry: {entry!r}")


def create_equal_proportion_fuel(nuclide_ids: Sequence[str]) -> List[FuelNuclide]:
    """
    Equal weighting over ``nuclide_ids``.

    Each of N identifiers receives 1/N; a single identifier receives
    exactly 1.0. An empty list gives an empty result.
    """
    n = len(nuclide_ids)
    if n == 0:
        return []
    proportion = 1.0 / n
    display_value = 100.0 / n
    return [
        FuelNuclide(nuclide_id, proportion, display_value, ProportionFormat.PERCENTAGE)
        for nuclide_id in nuclide_ids
    ]


def normalize_fuel_proportions(
    fuel_input: FuelInput,
    format: Optional[ProportionFormat] = None,
) -> List[FuelNuclide]:
    """
    Normalize fuel abundances so the retained entries sum to 1.

    Parameters
    ----------
    fuel_input : list of str or list of FuelNuclide/mapping
        Plain identifiers are weighted equally. Records keep their relative
        magnitudes; zero entries are dropped.
    format : ProportionFormat, optional
        Overrides the format tag of every returned record.

    Returns
    -------
    list of FuelNuclide
        Normalized records, input order preserved.

    Raises
    ------
    InvalidInput
        If the input is empty, any proportion is negative or non-finite,
        or every proportion is zero.
    """
    if len(fuel_input) == 0:
        raise InvalidInput("At least one fuel nuclide is required")

    if all(isinstance(entry, str) for entry in fuel_input):
        result = create_equal_proportion_fuel(list(fuel_input))  # type: ignore[arg-type]
    else:
        records = [_coerce_fuel(entry) for entry in fuel_input]  # type: ignore[arg-type]
        values = np.array([record.proportion for record in records], dtype=float)

        if not np.all(np.isfinite(values)):
            raise InvalidInput("Fuel proportions must be finite numbers")
        negative = [r for r, v in zip(records, values) if v < 0]
        if negative:
            raise InvalidInput(
                f"Negative proportion not allowed: {negative[0].nuclide_id} = {negative[0].proportion}"
            )

        keep = values > 0
        if not np.any(keep):
            raise InvalidInput("Sum of proportions cannot be zero")

        total = values[keep].sum()
        result = [
            replace(record, proportion=float(value / total))
            for record, value, kept in zip(records, values, keep)
            if kept
        ]

    if format is not None:
        result = [replace(record, format=format) for record in result]
    return result


def proportion_map(fuel: Iterable[FuelNuclide]) -> Dict[str, float]:
    """Map nuclide id -> proportion (later duplicates accumulate)."""
    mapping: Dict[str, float] = {}
    for record in fuel:
        mapping[record.nuclide_id] = mapping.get(record.nuclide_id, 0.0) + record.proportion
    return mapping


def _reaction_inputs(reaction: Any) -> Sequence[str]:
    if isinstance(reaction, Mapping):
        return reaction["inputs"]
    return reaction.inputs


def calculate_reaction_weight(reaction: Any, proportions: Mapping[str, float]) -> float:
    """
    Weight of a reaction from the proportions of its input nuclides.

    Parameters
    ----------
    reaction : Reaction or mapping
        Anything exposing an ``inputs`` sequence of nuclide ids
    proportions : mapping
        Nuclide id -> proportion; absent inputs contribute 1.0

    Returns
    -------
    float
        Product of the input proportions
    """
    factors = [proportions.get(nuclide_id, 1.0) for nuclide_id in _reaction_inputs(reaction)]
    return float(np.prod(factors)) if factors else 1.0


def convert_proportion_format(
    fuel: Sequence[FuelNuclide],
    target_format: ProportionFormat,
    atomic_masses: Optional[Mapping[str, float]] = None,
) -> List[FuelNuclide]:
    """
    Recompute display values of normalized fuel in another format.

    Proportions are untouched; only ``display_value`` and ``format`` change.
    Atomic and mass ratios are expressed relative to the smallest entry.
    """
    if not fuel:
        return []
    proportions = np.array([record.proportion for record in fuel], dtype=float)

    if target_format is ProportionFormat.PERCENTAGE:
        display = proportions * 100.0
    elif target_format is ProportionFormat.ATOMIC_RATIO:
        display = proportions / proportions.min()
    elif target_format is ProportionFormat.MASS_RATIO:
        if atomic_masses is None:
            raise InvalidInput("Atomic masses required for mass_ratio conversion")
        masses = np.array([atomic_masses.get(record.nuclide_id, 0.0) for record in fuel])
        mass_amounts = proportions * masses
        display = mass_amounts / mass_amounts.min()
    else:
        raise InvalidInput(f"Unsupported proportion format: {target_format}")

    return [
        replace(record, display_value=float(value), format=target_format)
        for record, value in zip(fuel, display)
    ]


def parse_mass_ratios(
    mass_values: Mapping[str, float],
    atomic_masses: Optional[Mapping[str, float]] = None,
) -> List[FuelNuclide]:
    """
    Build normalized fuel from mass amounts.

    Each mass is converted to a molar amount ``mass / atomic_mass`` before
    normalization. Without ``atomic_masses`` the mass number of each
    nuclide is used as its atomic mass.
    """
    fuel: List[FuelNuclide] = []
    for nuclide_id, mass_value in mass_values.items():
        if atomic_masses is None:
            atomic_mass = float(mass_number_from_id(nuclide_id))
        else:
            atomic_mass = atomic_masses.get(nuclide_id)
            if not atomic_mass:
                raise InvalidInput(f"Atomic mass not found for nuclide: {nuclide_id}")
        fuel.append(FuelNuclide(
            nuclide_id=nuclide_id,
            proportion=float(mass_value) / atomic_mass,
            display_value=float(mass_value),
            format=ProportionFormat.MASS_RATIO,
        ))
    return normalize_fuel_proportions(fuel, ProportionFormat.MASS_RATIO)


def validate_fuel_proportions(
    fuel: Sequence[FuelNuclide],
    tolerance: float = 1e-3,
) -> Tuple[bool, List[str]]:
    """Check normalized fuel: non-empty, non-negative, sums to 1, no duplicates."""
    errors: List[str] = []
    if not fuel:
        errors.append("At least one fuel nuclide is required")
        return False, errors

    for record in fuel:
        if record.proportion < 0:
            errors.append(f"Negative proportion not allowed: {record.nuclide_id} = {record.proportion}")

    total = sum(record.proportion for record in fuel)
    if abs(total - 1.0) > tolerance:
        errors.append(f"Proportions must sum to 1.0 (current sum: {total:.3f})")

    seen = set()
    for record in fuel:
        if record.nuclide_id in seen:
            errors.append(f"Duplicate nuclide: {record.nuclide_id}")
        seen.add(record.nuclide_id)

    return len(errors) == 0, errors


def format_proportion(fuel: FuelNuclide) -> str:
    """Display text, e.g. ``'92.50%'``, ``'3.00'`` or ``'7.00g'``."""
    value = fuel.display_value if fuel.display_value is not None else fuel.proportion * 100.0
    if fuel.format is ProportionFormat.ATOMIC_RATIO:
        return f"{value:.2f}"
    if fuel.format is ProportionFormat.MASS_RATIO:
        return f"{value:.2f}g"
    return f"{value:.2f}%"
