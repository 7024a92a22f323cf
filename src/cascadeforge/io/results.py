"""Read/write helpers for cascade result and pathway artifacts (JSON or YAML)."""

from __future__ import annotations

import importlib.util
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from cascadeforge.cascade._types import CascadeResult
from cascadeforge.cascade.pathways import Pathway
from cascadeforge.core.artifacts import (
    CASCADE_RESULTS_SCHEMA,
    PATHWAYS_SCHEMA,
    build_artifact,
    validate_artifact,
)

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

_RESULT_UNITS = {"totalEnergy": "MeV", "executionTime": "s", "MeV": "MeV"}
_PATHWAY_UNITS = {"avgEnergy": "MeV", "totalEnergy": "MeV", "frequency": "weighted count"}


def _load_yaml_module():
    if importlib.util.find_spec("yaml") is None:
        return None
    import yaml

    return yaml


def write_artifact(path: PathLike, payload: Dict[str, Any]) -> None:
    """Write artifact data as JSON or YAML depending on extension."""
    path = Path(path)
    if path.suffix.lower() in {".yml", ".yaml"}:
        yaml = _load_yaml_module()
        if yaml is None:
            raise ImportError("PyYAML is required to write YAML artifacts.")
        path.write_text(yaml.safe_dump(payload, sort_keys=False), encoding="utf-8")
    else:
        path.write_text(json.dumps(payload, indent=2), encoding="utf-8")


def read_artifact(path: PathLike) -> Dict[str, Any]:
    """Read artifact data from JSON or YAML."""
    path = Path(path)
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in {".yml", ".yaml"}:
        yaml = _load_yaml_module()
        if yaml is None:
            raise ImportError("PyYAML is required to read YAML artifacts.")
        return yaml.safe_load(text)
    return json.loads(text)


def write_cascade_results(
    path: PathLike,
    result: CascadeResult,
    parameters: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Write a cascade result wrapped in a checksummed artifact envelope.

    Parameters
    ----------
    path : str or Path
        Output file; ``.yaml``/``.yml`` selects YAML, anything else JSON
    result : CascadeResult
        Completed run
    parameters : mapping, optional
        Wire-format run parameters, stored alongside the result

    Returns
    -------
    dict
        The artifact that was written
    """
    payload = result.to_dict()
    if parameters is not None:
        payload["parameters"] = dict(parameters)
    normalization = {
        "basis": "weighted" if result.is_weighted else "count",
        "description": (
            "product counts are sums of fuel-proportion weights"
            if result.is_weighted
            else "product counts are numbers of producing reactions"
        ),
    }
    artifact = build_artifact(CASCADE_RESULTS_SCHEMA, payload, _RESULT_UNITS, normalization)
    write_artifact(path, artifact)
    logger.info(f"Wrote {len(result.reactions)} reactions to {path}")
    return artifact


def read_cascade_results(path: PathLike) -> CascadeResult:
    """Read and validate a cascade result artifact."""
    artifact = read_artifact(path)
    validate_artifact(artifact, CASCADE_RESULTS_SCHEMA)
    return CascadeResult.from_dict(artifact["data"])


def write_pathways(
    path: PathLike,
    pathways: Iterable[Pathway],
    weighted: bool = False,
) -> Dict[str, Any]:
    """Write aggregated pathways as an artifact."""
    payload = {"pathways": [p.to_dict() for p in pathways]}
    normalization = {
        "basis": "weighted" if weighted else "count",
        "description": "frequency is the sum of reaction weights per pathway",
    }
    artifact = build_artifact(PATHWAYS_SCHEMA, payload, _PATHWAY_UNITS, normalization)
    write_artifact(path, artifact)
    logger.info(f"Wrote {len(payload['pathways'])} pathways to {path}")
    return artifact


def read_pathways(path: PathLike) -> List[Pathway]:
    """Read and validate a pathway artifact."""
    artifact = read_artifact(path)
    validate_artifact(artifact, PATHWAYS_SCHEMA)
    return [Pathway.from_dict(entry) for entry in artifact["data"]["pathways"]]


def pathways_to_dataframe(pathways: Iterable[Pathway]):
    """
    Convert pathways to a pandas DataFrame.

    Returns DataFrame with columns:
    - Pathway, Type, Inputs, Outputs
    - Frequency, Occurrences, Avg_Energy_MeV, Total_Energy_MeV
    - Loops, Feedback, Rarity
    """
    try:
        import pandas as pd
    except ImportError:
        raise ImportError("pandas required for DataFrame output")

    rows = [
        {
            "Pathway": p.label,
            "Type": p.reaction_type.value,
            "Inputs": " + ".join(p.inputs),
            "Outputs": " + ".join(p.outputs),
            "Frequency": p.frequency,
            "Occurrences": p.occurrences,
            "Avg_Energy_MeV": p.avg_energy,
            "Total_Energy_MeV": p.total_energy,
            "Loops": ", ".join(str(loop) for loop in p.loops),
            "Feedback": p.is_feedback,
            "Rarity": p.rarity_score,
        }
        for p in pathways
    ]
    return pd.DataFrame(rows)


def save_pathways_csv(pathways: Iterable[Pathway], output_path: PathLike) -> None:
    """Save pathways to a CSV file."""
    output_path = Path(output_path)
    df = pathways_to_dataframe(pathways)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(output_path, index=False)
    logger.info(f"Saved {len(df)} pathways to {output_path}")
