"""
Tests for pathway aggregation, ranking, feedback detection and flow graphs.
"""

import pytest

from cascadeforge.cascade import (
    NodeType,
    Pathway,
    Reaction,
    ReactionType,
    aggregate_pathways,
    build_flow_graph,
    classify_nodes,
    pathway_signature,
    rank_pathways,
    representative_reactions,
    run_cascade,
    search_pathways,
)
from cascadeforge.core.parameters import CascadeParameters

FUSION = ReactionType.FUSION
TWO_TO_TWO = ReactionType.TWO_TO_TWO


def fusion(a, b, out, mev=1.0, generation=0, weight=None):
    return Reaction(FUSION, (a, b), (out,), mev, generation, weight=weight)


def two_to_two(a, b, c, d, mev=1.0, generation=0):
    return Reaction(TWO_TO_TWO, (a, b), (c, d), mev, generation)


@pytest.fixture
def chain_pathways(chain_source):
    result = run_cascade(chain_source, CascadeParameters(fuel_nuclides=["H-1"]))
    return aggregate_pathways(result.reactions)


class TestAggregation:
    """Tests for grouping reactions by signature."""

    def test_signature_ignores_input_order(self):
        a = pathway_signature(fusion("H-1", "Li-7", "Be-8"))
        b = pathway_signature(fusion("Li-7", "H-1", "Be-8"))
        assert a == b == ("fusion", ("H-1", "Li-7"), ("Be-8",))

    def test_type_is_part_of_signature(self):
        pathways = aggregate_pathways([
            fusion("H-1", "Li-7", "Be-8"),
            two_to_two("H-1", "Li-7", "He-4", "He-4"),
        ])
        assert len(pathways) == 2

    def test_frequency_energy_and_loops(self):
        pathways = aggregate_pathways([
            fusion("H-1", "Li-7", "Be-8", mev=10.0, generation=2),
            fusion("Li-7", "H-1", "Be-8", mev=20.0, generation=0),
            fusion("H-1", "Li-7", "Be-8", mev=30.0, generation=2),
        ])
        assert len(pathways) == 1
        pathway = pathways[0]
        assert pathway.frequency == 3
        assert pathway.occurrences == 3
        assert pathway.avg_energy == pytest.approx(20.0)
        assert pathway.total_energy == pytest.approx(60.0)
        assert pathway.loops == (0, 2)
        assert pathway.label == "H-1 + Li-7 → Be-8"

    def test_recorded_weights_used(self):
        pathways = aggregate_pathways([
            fusion("H-1", "Li-7", "Be-8", mev=2.0, weight=1.0),
            fusion("H-1", "Li-7", "Be-8", mev=6.0, weight=3.0),
        ])
        assert pathways[0].frequency == pytest.approx(4.0)
        assert pathways[0].avg_energy == pytest.approx(5.0)

    def test_proportions_override_weights(self):
        pathways = aggregate_pathways(
            [fusion("H-1", "Li-7", "Be-8"), fusion("H-1", "Li-7", "Be-8")],
            proportions={"H-1": 0.5, "Li-7": 0.5},
        )
        assert pathways[0].frequency == pytest.approx(0.5)

    def test_zero_weight_falls_back_to_mean(self):
        pathways = aggregate_pathways(
            [fusion("H-1", "Li-7", "Be-8", mev=2.0), fusion("H-1", "Li-7", "Be-8", mev=4.0)],
            proportions={"H-1": 0.0},
        )
        assert pathways[0].frequency == 0
        assert pathways[0].avg_energy == pytest.approx(3.0)
        assert pathways[0].rarity_score == 0.0

    def test_rarity_score(self):
        pathways = aggregate_pathways([
            fusion("H-1", "H-1", "D-2"),
            fusion("H-1", "H-1", "D-2"),
            fusion("H-1", "H-1", "D-2"),
            fusion("H-1", "H-1", "D-2"),
            fusion("H-1", "Li-7", "Be-8"),
        ])
        scores = {p.label: p.rarity_score for p in pathways}
        assert scores["H-1 + H-1 → D-2"] == pytest.approx(100.0)
        assert scores["H-1 + Li-7 → Be-8"] == pytest.approx(25.0)

    def test_empty_log(self):
        assert aggregate_pathways([]) == []

    def test_frequency_sum_matches_log_size(self, chain_source):
        result = run_cascade(chain_source, CascadeParameters(fuel_nuclides=["H-1"]))
        pathways = aggregate_pathways(result.reactions)
        assert sum(p.frequency for p in pathways) == len(result.reactions)

    def test_round_trip_dict(self, chain_pathways):
        for pathway in chain_pathways:
            assert Pathway.from_dict(pathway.to_dict()) == pathway


class TestFeedbackDetection:
    """Tests for the feedback flag on hand-built reaction graphs."""

    def test_output_consumed_later(self):
        pathways = aggregate_pathways([
            fusion("H-1", "H-1", "D-2", generation=0),
            fusion("H-1", "D-2", "He-3", generation=1),
        ])
        flags = {p.outputs: p.is_feedback for p in pathways}
        assert flags[("D-2",)] is True
        assert flags[("He-3",)] is False

    def test_output_consumed_same_generation(self):
        pathways = aggregate_pathways([
            fusion("H-1", "H-1", "D-2", generation=1),
            fusion("H-1", "D-2", "He-3", generation=1),
        ])
        flags = {p.outputs: p.is_feedback for p in pathways}
        assert flags[("D-2",)] is True

    def test_output_consumed_only_earlier(self):
        pathways = aggregate_pathways([
            fusion("H-1", "D-2", "He-3", generation=0),
            fusion("H-1", "H-1", "D-2", generation=2),
        ])
        flags = {p.outputs: p.is_feedback for p in pathways}
        assert flags[("D-2",)] is False

    def test_own_consumption_does_not_count(self):
        pathways = aggregate_pathways([
            two_to_two("He-4", "Li-7", "He-4", "B-7", generation=0),
            two_to_two("He-4", "Li-7", "He-4", "B-7", generation=1),
        ])
        assert pathways[0].is_feedback is False

    def test_regenerated_input_is_feedback(self):
        pathways = aggregate_pathways([
            two_to_two("H-1", "B-11", "He-4", "Be-8", generation=0),
            two_to_two("He-4", "Li-7", "H-1", "B-10", generation=1),
        ])
        flags = {p.inputs: p.is_feedback for p in pathways}
        assert flags[("B-11", "H-1")] is True
        assert flags[("He-4", "Li-7")] is False

    def test_chain_flags(self, chain_pathways):
        flags = {p.label: p.is_feedback for p in chain_pathways}
        assert flags["H-1 + H-1 → D-2"] is True
        assert flags["He-3 + Li-5 → B-8"] is False


class TestRanking:
    """Tests for rank_pathways filters and ordering."""

    def test_ties_broken_by_energy(self, chain_pathways):
        energies = [p.avg_energy for p in chain_pathways]
        assert energies == [16.0, 5.49, 4.03, 2.0, 1.44]

    def test_frequency_first(self):
        pathways = aggregate_pathways([
            fusion("H-1", "Li-7", "Be-8", mev=100.0),
            fusion("H-1", "H-1", "D-2", mev=1.0),
            fusion("H-1", "H-1", "D-2", mev=1.0),
        ])
        ranked = rank_pathways(pathways)
        assert ranked[0].outputs == ("D-2",)

    def test_top_n(self, chain_pathways):
        ranked = rank_pathways(chain_pathways, top_n=2)
        assert [p.avg_energy for p in ranked] == [16.0, 5.49]
        assert rank_pathways(chain_pathways, top_n=0) == []

    def test_filters_before_truncation(self, chain_pathways):
        ranked = rank_pathways(list(reversed(chain_pathways)), top_n=10, feedback_only=True)
        assert all(p.is_feedback for p in ranked)
        assert len(ranked) == 4

    def test_min_frequency(self):
        pathways = aggregate_pathways([
            fusion("H-1", "H-1", "D-2"),
            fusion("H-1", "H-1", "D-2"),
            fusion("H-1", "Li-7", "Be-8"),
        ])
        ranked = rank_pathways(pathways, min_frequency=2)
        assert [p.outputs for p in ranked] == [("D-2",)]

    def test_negative_top_n(self, chain_pathways):
        with pytest.raises(ValueError):
            rank_pathways(chain_pathways, top_n=-1)


class TestSearch:
    """Tests for search_pathways."""

    def test_term_matches_any_nuclide(self, chain_pathways):
        found = search_pathways(chain_pathways, "li")
        assert {p.label for p in found} == {"D-2 + He-3 → Li-5", "He-3 + Li-5 → B-8"}

    def test_type_filter(self, chain_pathways):
        found = search_pathways(chain_pathways, reaction_types=[TWO_TO_TWO])
        assert [p.label for p in found] == ["D-2 + D-2 → H-1 + T-3"]


class TestRepresentatives:
    """Tests for collapsing pathways back to reactions."""

    def test_one_reaction_per_pathway(self, chain_pathways):
        reactions = representative_reactions(chain_pathways)
        assert len(reactions) == len(chain_pathways)
        assert all(r.weight is None for r in reactions)

    def test_aggregation_is_idempotent(self):
        pathways = aggregate_pathways([
            fusion("H-1", "H-1", "D-2", mev=1.0, generation=0),
            fusion("H-1", "H-1", "D-2", mev=2.0, generation=3),
            fusion("H-1", "D-2", "He-3", mev=5.5, generation=1),
            two_to_two("D-2", "D-2", "T-3", "H-1", mev=4.0, generation=1),
        ])
        once = aggregate_pathways(representative_reactions(pathways))
        twice = aggregate_pathways(representative_reactions(once))
        assert once == twice
        assert all(p.frequency == 1 for p in once)


class TestFlowGraph:
    """Tests for node classification and flow-diagram data."""

    def test_classify_nodes(self, chain_pathways):
        nodes = classify_nodes(chain_pathways, ["H-1"])
        assert nodes["H-1"] is NodeType.FUEL
        assert nodes["D-2"] is NodeType.INTERMEDIATE
        assert nodes["He-3"] is NodeType.INTERMEDIATE
        assert nodes["T-3"] is NodeType.FINAL
        assert nodes["B-8"] is NodeType.FINAL

    def test_fuel_tokens_normalized(self, chain_pathways):
        nodes = classify_nodes(chain_pathways, ["H1"])
        assert nodes["H-1"] is NodeType.FUEL

    def test_classification_relative_to_subset(self, chain_pathways):
        subset = [p for p in chain_pathways if p.outputs == ("D-2",)]
        assert classify_nodes(subset, ["H-1"])["D-2"] is NodeType.FINAL

    def test_build_flow_graph(self, chain_pathways):
        graph = build_flow_graph(chain_pathways, ["H-1"])
        names = [node["name"] for node in graph.nodes]
        assert len(names) == len(set(names)) == 6
        assert len(graph.links) == len(chain_pathways)
        for link, pathway in zip(graph.links, chain_pathways):
            assert names[link["source"]] == pathway.inputs[0]
            assert names[link["target"]] == pathway.outputs[0]
            assert link["value"] == pathway.frequency
        assert set(graph.to_dict()) == {"nodes", "links"}
