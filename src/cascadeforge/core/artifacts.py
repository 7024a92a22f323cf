"""Artifact schemas, validation, and provenance helpers."""

from __future__ import annotations

import hashlib
import json
import platform
from datetime import datetime, timezone
from importlib.metadata import PackageNotFoundError, version
from typing import Any, Dict, Iterable, Mapping

SchemaDict = Dict[str, Any]

SCHEMA_VERSION = "0.1.0"

CASCADE_RESULTS_SCHEMA: SchemaDict = {
    "schema_name": "cascadeforge.cascade_results",
    "schema_version": SCHEMA_VERSION,
    "required_data_fields": [
        "reactions",
        "productDistribution",
        "loopsExecuted",
        "totalEnergy",
        "terminationReason",
    ],
    "required_units": ["totalEnergy", "executionTime"],
    "required_normalization": ["basis", "description"],
}

PATHWAYS_SCHEMA: SchemaDict = {
    "schema_name": "cascadeforge.pathways",
    "schema_version": SCHEMA_VERSION,
    "required_data_fields": ["pathways"],
    "required_units": ["avgEnergy", "frequency"],
    "required_normalization": ["basis", "description"],
}


def _cascadeforge_version() -> str:
    try:
        return version("cascadeforge")
    except PackageNotFoundError:
        return "0.1.0"


def _require_keys(container: Mapping[str, Any], keys: Iterable[str], context: str) -> None:
    missing = [key for key in keys if key not in container]
    if missing:
        raise ValueError(f"Missing required {context} keys: {', '.join(missing)}")


def _json_dumps(value: Any) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def compute_sha256(payload: Any) -> str:
    serialized = _json_dumps(payload).encode("utf-8")
    return hashlib.sha256(serialized).hexdigest()


def build_metadata(
    schema: SchemaDict,
    payload: Any,
    units: Mapping[str, str],
    normalization: Mapping[str, str],
    extra_versions: Mapping[str, str] | None = None,
) -> Dict[str, Any]:
    return {
        "schema_name": schema["schema_name"],
        "schema_version": schema["schema_version"],
        "created_at": datetime.now(timezone.utc).isoformat(),
        "units": dict(units),
        "normalization": dict(normalization),
        "library_versions": {
            "cascadeforge": _cascadeforge_version(),
            "python": platform.python_version(),
            **(dict(extra_versions) if extra_versions else {}),
        },
        "checksums": {"payload_sha256": compute_sha256(payload)},
    }


def build_artifact(
    schema: SchemaDict,
    payload: Any,
    units: Mapping[str, str],
    normalization: Mapping[str, str],
    extra_versions: Mapping[str, str] | None = None,
) -> Dict[str, Any]:
    metadata = build_metadata(schema, payload, units, normalization, extra_versions)
    return {"metadata": metadata, "data": payload}


def validate_artifact(artifact: Mapping[str, Any], schema: SchemaDict) -> None:
    """
    Check an artifact's envelope against ``schema``.

    Raises
    ------
    ValueError
        On a missing section or key, a schema name or version mismatch, or
        a payload whose checksum does not match the recorded one
    """
    if "metadata" not in artifact or "data" not in artifact:
        raise ValueError("Artifact must include 'metadata' and 'data' sections.")
    metadata = artifact["metadata"]
    data = artifact["data"]
    _require_keys(
        metadata,
        ["schema_name", "schema_version", "units", "normalization", "library_versions", "checksums"],
        "metadata",
    )
    if metadata["schema_name"] != schema["schema_name"]:
        raise ValueError(
            f"Artifact schema mismatch: expected {schema['schema_name']} but got {metadata['schema_name']}"
        )
    if metadata["schema_version"] != schema["schema_version"]:
        raise ValueError(
            f"Artifact schema version mismatch: expected {schema['schema_version']} "
            f"but got {metadata['schema_version']}"
        )
    _require_keys(metadata["units"], schema["required_units"], "units")
    _require_keys(metadata["normalization"], schema["required_normalization"], "normalization")
    _require_keys(data, schema["required_data_fields"], "data")

    checksum = metadata.get("checksums", {}).get("payload_sha256")
    if checksum and checksum != compute_sha256(data):
        raise ValueError("Artifact checksum does not match payload.")
