"""Core error taxonomy and artifact helpers."""

from cascadeforge.core.errors import (
    CascadeError,
    MalformedNuclideId,
    InvalidFuel,
    InvalidInput,
    InvalidParameters,
    SourceUnavailable,
    MalformedReactionRow,
    Cancelled,
)
from cascadeforge.core.artifacts import (
    CASCADE_RESULTS_SCHEMA,
    PATHWAYS_SCHEMA,
    build_artifact,
    validate_artifact,
    compute_sha256,
)

__all__ = [
    # Errors
    "CascadeError",
    "MalformedNuclideId",
    "InvalidFuel",
    "InvalidInput",
    "InvalidParameters",
    "SourceUnavailable",
    "MalformedReactionRow",
    "Cancelled",
    # Artifacts
    "CASCADE_RESULTS_SCHEMA",
    "PATHWAYS_SCHEMA",
    "build_artifact",
    "validate_artifact",
    "compute_sha256",
]
