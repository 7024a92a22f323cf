"""
Cascade simulation and pathway analysis.

The engine expands a fuel mixture into a reaction log; the pathway and
cycle modules summarize that log.
"""

from __future__ import annotations

from cascadeforge.cascade._types import (
    CascadeProgress,
    CascadeResult,
    Reaction,
    ReactionType,
    TerminationReason,
)
from cascadeforge.cascade.engine import CascadeEngine, resolve_fuel, run_cascade
from cascadeforge.cascade.pathways import (
    FlowGraph,
    NodeType,
    Pathway,
    aggregate_pathways,
    build_flow_graph,
    classify_nodes,
    pathway_signature,
    rank_pathways,
    representative_reactions,
    search_pathways,
)
from cascadeforge.cascade.cycles import (
    CycleDetectionResult,
    ReactionGraph,
    build_reaction_graph,
    detect_cycles,
    find_simple_cycles,
    is_in_cycle,
)

__all__ = [
    "CascadeEngine",
    "CascadeProgress",
    "CascadeResult",
    "CycleDetectionResult",
    "FlowGraph",
    "NodeType",
    "Pathway",
    "Reaction",
    "ReactionGraph",
    "ReactionType",
    "TerminationReason",
    "aggregate_pathways",
    "build_flow_graph",
    "build_reaction_graph",
    "classify_nodes",
    "detect_cycles",
    "find_simple_cycles",
    "is_in_cycle",
    "pathway_signature",
    "rank_pathways",
    "representative_reactions",
    "resolve_fuel",
    "run_cascade",
    "search_pathways",
]
