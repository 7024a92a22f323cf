"""
Shared data-class types for the cascade subpackage.

Reactions are recorded once during an engine run and never mutated;
results and progress records are plain snapshots handed to callers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from cascadeforge.data.elements import sort_elements
from cascadeforge.physics.fuel import FuelNuclide
from cascadeforge.physics.nuclides import element_of


class ReactionType(Enum):
    """Reaction family."""

    FUSION = "fusion"  # 2 in -> 1 out
    TWO_TO_TWO = "twotwo"  # 2 in -> 2 out

    @property
    def output_count(self) -> int:
        return 1 if self is ReactionType.FUSION else 2


class TerminationReason(Enum):
    """Why a cascade run stopped. All of these are successful outcomes."""

    MAX_LOOPS = "max_loops"
    NO_NEW_PRODUCTS = "no_new_products"
    MAX_NUCLIDES = "max_nuclides"


@dataclass(frozen=True)
class Reaction:
    """
    One recorded reaction event.

    Attributes
    ----------
    reaction_type : ReactionType
        Fusion or two-to-two
    inputs : tuple of str
        The two input nuclide ids, in dataset order
    outputs : tuple of str
        One (fusion) or two (two-to-two) output nuclide ids
    energy_mev : float
        Released energy
    generation : int
        Engine generation that admitted the reaction
    neutrino : str, optional
        Neutrino-emission tag carried through from the dataset
    weight : float, optional
        Fuel-proportion weight (weighted mode only)
    """
    reaction_type: ReactionType
    inputs: Tuple[str, ...]
    outputs: Tuple[str, ...]
    energy_mev: float
    generation: int
    neutrino: Optional[str] = None
    weight: Optional[float] = None

    def __post_init__(self):
        object.__setattr__(self, "inputs", tuple(self.inputs))
        object.__setattr__(self, "outputs", tuple(self.outputs))
        if len(self.inputs) != 2:
            raise ValueError(f"{self.reaction_type.value} reaction needs exactly 2 inputs, got {self.inputs}")
        if len(self.outputs) != self.reaction_type.output_count:
            raise ValueError(
                f"{self.reaction_type.value} reaction needs exactly "
                f"{self.reaction_type.output_count} output(s), got {self.outputs}"
            )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "type": self.reaction_type.value,
            "inputs": list(self.inputs),
            "outputs": list(self.outputs),
            "MeV": self.energy_mev,
            "loop": self.generation,
            "neutrino": self.neutrino,
        }
        if self.weight is not None:
            data["weight"] = self.weight
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Reaction":
        weight = data.get("weight")
        return cls(
            reaction_type=ReactionType(data["type"]),
            inputs=tuple(data["inputs"]),
            outputs=tuple(data["outputs"]),
            energy_mev=float(data["MeV"]),
            generation=int(data["loop"]),
            neutrino=data.get("neutrino"),
            weight=None if weight is None else float(weight),
        )


@dataclass(frozen=True)
class CascadeProgress:
    """Per-generation progress notification."""
    generation: int
    total_generations: int
    new_reactions_count: int
    active_pool_size: int = 0

    def to_message(self) -> Dict[str, Any]:
        return {
            "type": "progress",
            "loop": self.generation,
            "totalLoops": self.total_generations,
            "newReactionsCount": self.new_reactions_count,
        }


@dataclass
class CascadeResult:
    """
    Result of one cascade run.

    Attributes
    ----------
    reactions : list of Reaction
        Full reaction log in admission order
    product_distribution : list of (str, float)
        Nuclide id and how often it appeared as a reaction output (the
        sum of weights in weighted mode), most produced first
    generations : int
        Generations executed
    total_energy_mev : float
        Sum of released energy over all recorded reactions
    execution_time_s : float
        Wall-clock run time
    termination_reason : TerminationReason
        Why the run stopped
    fuel_composition : list of FuelNuclide
        Normalized fuel used for the run
    is_weighted : bool
        Whether weighted mode was on
    """
    reactions: List[Reaction]
    product_distribution: List[Tuple[str, float]]
    generations: int
    total_energy_mev: float
    execution_time_s: float
    termination_reason: TerminationReason
    fuel_composition: List[FuelNuclide] = field(default_factory=list)
    is_weighted: bool = False

    @property
    def fuel_nuclides(self) -> List[str]:
        return [fuel.nuclide_id for fuel in self.fuel_composition]

    @property
    def involved_nuclides(self) -> List[str]:
        """Every nuclide appearing in a recorded reaction, sorted."""
        ids = {n for r in self.reactions for n in (*r.inputs, *r.outputs)}
        return sorted(ids)

    @property
    def involved_elements(self) -> List[str]:
        """Element symbols of :attr:`involved_nuclides`, by atomic number."""
        return sort_elements(element_of(n) for n in self.involved_nuclides)

    def product_counts(self) -> Dict[str, float]:
        return dict(self.product_distribution)

    def to_dict(self) -> Dict[str, Any]:
        """Wire-format dictionary (the ``results`` of a ``complete`` response)."""
        return {
            "reactions": [r.to_dict() for r in self.reactions],
            "productDistribution": [[n, c] for n, c in self.product_distribution],
            "loopsExecuted": self.generations,
            "totalEnergy": self.total_energy_mev,
            "executionTime": self.execution_time_s,
            "terminationReason": self.termination_reason.value,
            "fuelComposition": [f.to_dict() for f in self.fuel_composition],
            "isWeighted": self.is_weighted,
            "nuclides": self.involved_nuclides,
            "elements": self.involved_elements,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CascadeResult":
        return cls(
            reactions=[Reaction.from_dict(r) for r in data["reactions"]],
            product_distribution=[(str(n), c) for n, c in data["productDistribution"]],
            generations=int(data["loopsExecuted"]),
            total_energy_mev=float(data["totalEnergy"]),
            execution_time_s=float(data["executionTime"]),
            termination_reason=TerminationReason(data["terminationReason"]),
            fuel_composition=[FuelNuclide.from_dict(f) for f in data.get("fuelComposition", [])],
            is_weighted=bool(data.get("isWeighted", False)),
        )
