"""Cascade run parameters."""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Union

from cascadeforge.core.errors import InvalidParameters
from cascadeforge.physics.fuel import FuelNuclide


# Defaults match the interactive cascade page
DEFAULT_MAX_LOOPS = 25
DEFAULT_MAX_NUCLIDES = 5000
DEFAULT_MIN_FUSION_MEV = 1.0
DEFAULT_MIN_TWO_TO_TWO_MEV = 1.0

# Wire (camelCase) key -> attribute name
_WIRE_KEYS = {
    "fuelNuclides": "fuel_nuclides",
    "maxLoops": "max_loops",
    "maxNuclides": "max_nuclides",
    "minFusionMeV": "min_fusion_mev",
    "minTwoToTwoMeV": "min_two_to_two_mev",
    "useWeightedMode": "use_weighted_mode",
}


@dataclass
class CascadeParameters:
    """
    Configuration for one cascade run.

    Attributes
    ----------
    fuel_nuclides : list
        Fuel tokens (``'H-1'``, ``'Li7'``, ``'D'``) or, in weighted mode,
        :class:`FuelNuclide` records with abundances
    max_loops : int
        Generation cap
    max_nuclides : int
        Active-pool size cap, checked before each generation's queries
    min_fusion_mev : float
        Minimum released energy for fusion candidates
    min_two_to_two_mev : float
        Minimum released energy for two-to-two candidates
    use_weighted_mode : bool
        Weight reactions and product counts by fuel proportions
    """
    fuel_nuclides: List[Union[str, FuelNuclide]] = field(default_factory=list)
    max_loops: int = DEFAULT_MAX_LOOPS
    max_nuclides: int = DEFAULT_MAX_NUCLIDES
    min_fusion_mev: float = DEFAULT_MIN_FUSION_MEV
    min_two_to_two_mev: float = DEFAULT_MIN_TWO_TO_TWO_MEV
    use_weighted_mode: bool = False

    def validate(self) -> None:
        """Raise :class:`InvalidParameters` for out-of-range bounds or thresholds."""
        if isinstance(self.max_loops, bool) or not isinstance(self.max_loops, int) or self.max_loops < 0:
            raise InvalidParameters(f"max_loops must be a non-negative integer, got {self.max_loops!r}")
        if isinstance(self.max_nuclides, bool) or not isinstance(self.max_nuclides, int) or self.max_nuclides < 0:
            raise InvalidParameters(f"max_nuclides must be a non-negative integer, got {self.max_nuclides!r}")
        for name in ("min_fusion_mev", "min_two_to_two_mev"):
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or not math.isfinite(value):
                raise InvalidParameters(f"{name} must be a finite number, got {value!r}")

    def to_dict(self) -> Dict[str, Any]:
        """Wire-format (camelCase) dictionary."""
        return {
            "fuelNuclides": [
                f.to_dict() if isinstance(f, FuelNuclide) else f for f in self.fuel_nuclides
            ],
            "maxLoops": self.max_loops,
            "maxNuclides": self.max_nuclides,
            "minFusionMeV": self.min_fusion_mev,
            "minTwoToTwoMeV": self.min_two_to_two_mev,
            "useWeightedMode": self.use_weighted_mode,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CascadeParameters":
        """Build from camelCase wire keys or snake_case attribute names."""
        kwargs: Dict[str, Any] = {}
        known = set(_WIRE_KEYS.values())
        for key, value in data.items():
            name = _WIRE_KEYS.get(key, key)
            if name in known:
                kwargs[name] = value

        fuel = kwargs.get("fuel_nuclides", [])
        if isinstance(fuel, str):
            fuel = [token for token in fuel.replace(",", " ").split()]
        kwargs["fuel_nuclides"] = [
            FuelNuclide.from_dict(entry) if isinstance(entry, Mapping) else entry for entry in fuel
        ]
        return cls(**kwargs)

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "CascadeParameters":
        return cls.from_dict(json.loads(Path(path).read_text()))
