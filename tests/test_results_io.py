"""
Tests for result and pathway artifacts.
"""

import json

import pytest

from cascadeforge.cascade import aggregate_pathways, run_cascade
from cascadeforge.core.artifacts import (
    CASCADE_RESULTS_SCHEMA,
    PATHWAYS_SCHEMA,
    build_artifact,
    compute_sha256,
    validate_artifact,
)
from cascadeforge.core.parameters import CascadeParameters
from cascadeforge.io.results import (
    pathways_to_dataframe,
    read_cascade_results,
    read_pathways,
    save_pathways_csv,
    write_cascade_results,
    write_pathways,
)


@pytest.fixture
def chain_result(chain_source):
    return run_cascade(chain_source, CascadeParameters(fuel_nuclides=["H-1"]))


def test_cascade_results_roundtrip(tmp_path, chain_result):
    output = tmp_path / "results.json"
    params = CascadeParameters(fuel_nuclides=["H-1"]).to_dict()
    artifact = write_cascade_results(output, chain_result, params)

    assert artifact["metadata"]["schema_name"] == "cascadeforge.cascade_results"
    assert artifact["metadata"]["units"]["totalEnergy"] == "MeV"
    assert artifact["data"]["parameters"]["maxLoops"] == 25

    restored = read_cascade_results(output)
    assert restored.reactions == chain_result.reactions
    assert restored.product_distribution == chain_result.product_distribution
    assert restored.termination_reason is chain_result.termination_reason


def test_tampered_payload_rejected(tmp_path, chain_result):
    output = tmp_path / "results.json"
    write_cascade_results(output, chain_result)
    artifact = json.loads(output.read_text())
    artifact["data"]["totalEnergy"] = 0.0
    output.write_text(json.dumps(artifact))

    with pytest.raises(ValueError, match="checksum"):
        read_cascade_results(output)


def test_schema_mismatch_rejected(tmp_path, chain_result):
    output = tmp_path / "pathways.json"
    write_pathways(output, aggregate_pathways(chain_result.reactions))
    with pytest.raises(ValueError, match="schema mismatch"):
        read_cascade_results(output)


def test_pathways_roundtrip(tmp_path, chain_result):
    pathways = aggregate_pathways(chain_result.reactions)
    output = tmp_path / "pathways.json"
    write_pathways(output, pathways)
    assert read_pathways(output) == pathways


def test_yaml_artifact(tmp_path, chain_result):
    pytest.importorskip("yaml")
    output = tmp_path / "results.yaml"
    write_cascade_results(output, chain_result)
    assert read_cascade_results(output).reactions == chain_result.reactions


def test_validate_artifact_missing_sections():
    with pytest.raises(ValueError, match="metadata"):
        validate_artifact({"data": {}}, CASCADE_RESULTS_SCHEMA)


def test_validate_artifact_missing_data_field():
    payload = {"pathway_list": []}
    artifact = build_artifact(
        PATHWAYS_SCHEMA, payload,
        units={"avgEnergy": "MeV", "frequency": "count"},
        normalization={"basis": "count", "description": "test"},
    )
    with pytest.raises(ValueError, match="pathways"):
        validate_artifact(artifact, PATHWAYS_SCHEMA)


def test_checksum_is_key_order_independent():
    assert compute_sha256({"a": 1, "b": [1, 2]}) == compute_sha256({"b": [1, 2], "a": 1})


def test_pathways_dataframe(tmp_path, chain_result):
    pytest.importorskip("pandas")
    pathways = aggregate_pathways(chain_result.reactions)
    df = pathways_to_dataframe(pathways)
    assert len(df) == len(pathways)
    assert df.loc[0, "Pathway"] == pathways[0].label
    assert df["Frequency"].sum() == pytest.approx(5.0)

    output = tmp_path / "out" / "pathways.csv"
    save_pathways_csv(pathways, output)
    assert output.read_text().splitlines()[0].startswith("Pathway,Type")
