"""CascadeForge I/O module for result and pathway artifacts."""

from cascadeforge.io.results import (
    read_artifact,
    write_artifact,
    read_cascade_results,
    write_cascade_results,
    read_pathways,
    write_pathways,
    pathways_to_dataframe,
    save_pathways_csv,
)

__all__ = [
    "read_artifact",
    "write_artifact",
    "read_cascade_results",
    "write_cascade_results",
    "read_pathways",
    "write_pathways",
    "pathways_to_dataframe",
    "save_pathways_csv",
]
