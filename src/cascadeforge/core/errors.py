"""Exception taxonomy for cascade runs.

Termination reasons (``max_loops``, ``no_new_products``, ``max_nuclides``)
are successful outcomes and are never raised.
"""

from __future__ import annotations


class CascadeError(Exception):
    """Base class for every failure surfaced by a cascade run."""

    kind = "CascadeError"

    def describe(self) -> str:
        """Human-readable ``"<Kind>: <message>"`` text for error responses."""
        return f"{self.kind}: {self}"


class MalformedNuclideId(CascadeError, ValueError):
    """A nuclide token does not match the ``Element-MassNumber`` grammar."""

    kind = "MalformedNuclideId"


class InvalidFuel(CascadeError, ValueError):
    """No usable fuel nuclide remains after parsing."""

    kind = "InvalidFuel"


class InvalidInput(CascadeError, ValueError):
    """Fuel proportions cannot be normalized."""

    kind = "InvalidInput"


class InvalidParameters(CascadeError, ValueError):
    """Cascade bounds or thresholds are out of range."""

    kind = "InvalidParameters"


class SourceUnavailable(CascadeError):
    """The reaction dataset could not be reached or queried."""

    kind = "SourceUnavailable"


class MalformedReactionRow(SourceUnavailable):
    """A row returned by the reaction dataset failed boundary validation."""

    kind = "MalformedReactionRow"


class Cancelled(CascadeError):
    """A cancellation request was observed at a generation boundary."""

    kind = "Cancelled"
