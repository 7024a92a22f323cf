"""
Pathway Aggregation
===================

Collapses a raw cascade reaction log into deduplicated pathways suitable
for ranking, filtering and flow-diagram rendering.

A pathway groups every recorded reaction sharing the signature

    (type, sorted inputs, sorted outputs)

and reports how often it occurred (optionally weighted by fuel
proportions), its mean released energy, the generations it occurred in,
and whether it feeds back into the reactant stream.

Feedback rule
-------------
A pathway is *feedback* when one of its output nuclides is consumed as an
input by a recorded reaction of a different pathway whose generation is
at or after this pathway's earliest generation. Consumption in the same
generation counts.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from cascadeforge.cascade._types import Reaction, ReactionType
from cascadeforge.physics.fuel import calculate_reaction_weight
from cascadeforge.physics.nuclides import parse_fuel_nuclides

PathwaySignature = Tuple[str, Tuple[str, ...], Tuple[str, ...]]


class NodeType(Enum):
    """Role of a nuclide in a pathway set."""

    FUEL = "fuel"
    INTERMEDIATE = "intermediate"
    FINAL = "final"


@dataclass(frozen=True)
class Pathway:
    """
    Aggregated view of all reactions sharing one signature.

    Attributes
    ----------
    reaction_type : ReactionType
        Fusion or two-to-two
    inputs, outputs : tuple of str
        Sorted nuclide ids
    frequency : float
        Sum of reaction weights (the occurrence count when unweighted)
    avg_energy : float
        Frequency-weighted mean released energy (MeV)
    loops : tuple of int
        Distinct generations the pathway occurred in, ascending
    is_feedback : bool
        Whether an output re-enters the reactant stream
    occurrences : int
        Number of raw reactions aggregated
    total_energy : float
        Frequency-weighted energy sum (MeV)
    rarity_score : float
        Frequency as a percentage of the most frequent pathway
    """
    reaction_type: ReactionType
    inputs: Tuple[str, ...]
    outputs: Tuple[str, ...]
    frequency: float
    avg_energy: float
    loops: Tuple[int, ...]
    is_feedback: bool = False
    occurrences: int = 0
    total_energy: float = 0.0
    rarity_score: float = 0.0

    @property
    def signature(self) -> PathwaySignature:
        return (self.reaction_type.value, self.inputs, self.outputs)

    @property
    def label(self) -> str:
        """Readable form, e.g. ``'H-1 + Li-7 → He-4 + He-4'``."""
        return f"{' + '.join(self.inputs)} → {' + '.join(self.outputs)}"

    @property
    def first_loop(self) -> int:
        return self.loops[0]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.reaction_type.value,
            "inputs": list(self.inputs),
            "outputs": list(self.outputs),
            "pathway": self.label,
            "frequency": self.frequency,
            "occurrences": self.occurrences,
            "avgEnergy": self.avg_energy,
            "totalEnergy": self.total_energy,
            "loops": list(self.loops),
            "isFeedback": self.is_feedback,
            "rarityScore": self.rarity_score,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Pathway":
        return cls(
            reaction_type=ReactionType(data["type"]),
            inputs=tuple(data["inputs"]),
            outputs=tuple(data["outputs"]),
            frequency=float(data["frequency"]),
            avg_energy=float(data["avgEnergy"]),
            loops=tuple(int(x) for x in data["loops"]),
            is_feedback=bool(data.get("isFeedback", False)),
            occurrences=int(data.get("occurrences", 0)),
            total_energy=float(data.get("totalEnergy", 0.0)),
            rarity_score=float(data.get("rarityScore", 0.0)),
        )


def pathway_signature(reaction: Reaction) -> PathwaySignature:
    """Grouping key ``(type, sorted inputs, sorted outputs)``."""
    return (
        reaction.reaction_type.value,
        tuple(sorted(reaction.inputs)),
        tuple(sorted(reaction.outputs)),
    )


def _rank_key(pathway: Pathway):
    return (-pathway.frequency, -pathway.avg_energy, pathway.signature)


def _reaction_weight(reaction: Reaction, proportions: Optional[Mapping[str, float]]) -> float:
    if proportions is not None:
        return calculate_reaction_weight(reaction, proportions)
    return 1.0 if reaction.weight is None else reaction.weight


def aggregate_pathways(
    reactions: Iterable[Reaction],
    proportions: Optional[Mapping[str, float]] = None,
) -> List[Pathway]:
    """
    Group a reaction log into pathways.

    Parameters
    ----------
    reactions : iterable of Reaction
        Raw reaction log
    proportions : mapping, optional
        Fuel proportions; when given, each reaction is weighted by
        :func:`calculate_reaction_weight`. Otherwise a reaction's recorded
        ``weight`` is used, defaulting to 1.

    Returns
    -------
    list of Pathway
        Pathways in ranked order (see :func:`rank_pathways`)
    """
    groups: Dict[PathwaySignature, List[Reaction]] = {}
    for reaction in reactions:
        groups.setdefault(pathway_signature(reaction), []).append(reaction)

    if not groups:
        return []

    # nuclide -> (signature, generation) of every reaction consuming it
    consumers: Dict[str, List[Tuple[PathwaySignature, int]]] = {}
    for signature, members in groups.items():
        for reaction in members:
            for nuclide in set(reaction.inputs):
                consumers.setdefault(nuclide, []).append((signature, reaction.generation))

    staged = []
    for signature, members in groups.items():
        weights = np.array([_reaction_weight(r, proportions) for r in members], dtype=float)
        energies = np.array([r.energy_mev for r in members], dtype=float)
        frequency = float(weights.sum())
        total_energy = float(np.dot(weights, energies))
        avg_energy = total_energy / frequency if frequency > 0 else float(energies.mean())
        loops = tuple(sorted({r.generation for r in members}))

        is_feedback = any(
            other != signature and generation >= loops[0]
            for nuclide in signature[2]
            for other, generation in consumers.get(nuclide, ())
        )
        staged.append((signature, frequency, avg_energy, total_energy, loops, is_feedback, len(members)))

    max_frequency = max(item[1] for item in staged)
    pathways = [
        Pathway(
            reaction_type=ReactionType(signature[0]),
            inputs=signature[1],
            outputs=signature[2],
            frequency=frequency,
            avg_energy=avg_energy,
            loops=loops,
            is_feedback=is_feedback,
            occurrences=occurrences,
            total_energy=total_energy,
            rarity_score=100.0 * frequency / max_frequency if max_frequency > 0 else 0.0,
        )
        for signature, frequency, avg_energy, total_energy, loops, is_feedback, occurrences in staged
    ]
    pathways.sort(key=_rank_key)
    return pathways


def rank_pathways(
    pathways: Iterable[Pathway],
    top_n: Optional[int] = None,
    min_frequency: Optional[float] = None,
    feedback_only: bool = False,
) -> List[Pathway]:
    """
    Filter and order pathways for display.

    Filters (feedback, then minimum frequency) apply before truncation to
    ``top_n``. Order is descending frequency, then descending average
    energy, then signature.
    """
    if top_n is not None and top_n < 0:
        raise ValueError(f"top_n must be non-negative, got {top_n}")

    result = list(pathways)
    if feedback_only:
        result = [p for p in result if p.is_feedback]
    if min_frequency is not None:
        result = [p for p in result if p.frequency >= min_frequency]
    result.sort(key=_rank_key)
    if top_n is not None:
        result = result[:top_n]
    return result


def search_pathways(
    pathways: Iterable[Pathway],
    term: Optional[str] = None,
    reaction_types: Optional[Iterable[ReactionType]] = None,
) -> List[Pathway]:
    """Case-insensitive substring search over nuclide ids, plus a type filter."""
    result = list(pathways)
    if term:
        needle = term.lower()
        result = [
            p for p in result
            if any(needle in n.lower() for n in (*p.inputs, *p.outputs))
        ]
    if reaction_types is not None:
        allowed = set(reaction_types)
        result = [p for p in result if p.reaction_type in allowed]
    return result


def representative_reactions(pathways: Iterable[Pathway]) -> List[Reaction]:
    """
    Collapse each pathway to a single unweighted reaction.

    The reaction carries the pathway's average energy and earliest
    generation. Aggregating the result gives one pathway per signature
    with frequency 1; collapsing and aggregating again is a fixed point.
    """
    return [
        Reaction(
            reaction_type=p.reaction_type,
            inputs=p.inputs,
            outputs=p.outputs,
            energy_mev=p.avg_energy,
            generation=p.first_loop,
        )
        for p in pathways
    ]


def classify_nodes(
    pathways: Sequence[Pathway],
    fuel_nuclides: Iterable[str] = (),
) -> Dict[str, NodeType]:
    """
    Classify every nuclide of a pathway set.

    A nuclide is fuel if it belongs to the (normalized) fuel set, final if
    it is never an input within ``pathways``, and intermediate otherwise.
    Nodes are returned in order of first appearance.
    """
    fuel = set(parse_fuel_nuclides(fuel_nuclides))
    consumed = {n for p in pathways for n in p.inputs}

    nodes: Dict[str, NodeType] = {}
    for pathway in pathways:
        for nuclide in (*pathway.inputs, *pathway.outputs):
            if nuclide in nodes:
                continue
            if nuclide in fuel:
                nodes[nuclide] = NodeType.FUEL
            elif nuclide not in consumed:
                nodes[nuclide] = NodeType.FINAL
            else:
                nodes[nuclide] = NodeType.INTERMEDIATE
    return nodes


@dataclass
class FlowGraph:
    """Node and link lists for a flow-diagram renderer."""
    nodes: List[Dict[str, Any]] = field(default_factory=list)
    links: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"nodes": self.nodes, "links": self.links}


def build_flow_graph(
    pathways: Sequence[Pathway],
    fuel_nuclides: Iterable[str] = (),
) -> FlowGraph:
    """
    Convert (already filtered) pathways into flow-diagram data.

    Each pathway contributes one link from its first input to its first
    output, with the pathway frequency as link value.
    """
    node_types = classify_nodes(pathways, fuel_nuclides)
    index = {nuclide: i for i, nuclide in enumerate(node_types)}

    graph = FlowGraph()
    graph.nodes = [{"name": nuclide, "type": kind.value} for nuclide, kind in node_types.items()]
    for pathway in pathways:
        graph.links.append({
            "source": index[pathway.inputs[0]],
            "target": index[pathway.outputs[0]],
            "value": pathway.frequency,
            "pathway": pathway.label,
            "isFeedback": pathway.is_feedback,
        })
    return graph
