"""
Nuclide Identity Module

Canonical parsing and formatting of nuclide identifiers of the form
``Element-MassNumber`` (e.g. ``H-1``, ``Li-7``). Fuel tokens may omit the
hyphen or use a space (``Li7``, ``Li 7``); deuterium and tritium may be
given as the bare aliases ``D`` and ``T``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, List, Tuple

from cascadeforge.core.errors import MalformedNuclideId
from cascadeforge.data.elements import is_known_element, z_from_element


# Bare aliases resolved before the grammar is applied
NUCLIDE_ALIASES = {
    "D": "D-2",
    "T": "T-3",
}

_NUCLIDE_PATTERN = re.compile(r"^([A-Z][a-z]?)[-\s]?(\d+)$")


@dataclass(frozen=True, order=True)
class Nuclide:
    """
    A specific isotope identified by element symbol and mass number.

    Attributes
    ----------
    element : str
        Element symbol (``D``/``T`` are kept as their own symbols)
    mass_number : int
        Mass number A
    """
    element: str
    mass_number: int

    @property
    def nuclide_id(self) -> str:
        """Canonical identifier, e.g. ``'Li-7'``."""
        return build_nuclide_id(self.element, self.mass_number)

    @property
    def atomic_number(self) -> int:
        """Atomic number Z (0 for symbols outside the element table)."""
        return z_from_element(self.element)

    def __str__(self) -> str:
        return self.nuclide_id

    @classmethod
    def parse(cls, token: str) -> "Nuclide":
        """Parse a user token such as ``'Li7'``, ``'H-1'`` or ``'D'``."""
        element, mass = split_nuclide_id(parse_nuclide_id(token))
        return cls(element, mass)


def build_nuclide_id(element: str, mass_number: int) -> str:
    """Format an identifier from element symbol and mass number."""
    return f"{element}-{int(mass_number)}"


def parse_nuclide_id(token: str) -> str:
    """
    Normalize one nuclide token to ``Element-MassNumber`` form.

    Raises
    ------
    MalformedNuclideId
        If the token does not match the accepted grammar, names an unknown
        element, or has a zero mass number.
    """
    trimmed = token.strip()
    if trimmed in NUCLIDE_ALIASES:
        return NUCLIDE_ALIASES[trimmed]

    match = _NUCLIDE_PATTERN.match(trimmed)
    if not match:
        raise MalformedNuclideId(
            f'Invalid nuclide format: "{token}". Expected format: "E-A" (e.g., "H-1", "Li-7")'
        )

    element, mass = match.group(1), int(match.group(2))
    if not is_known_element(element):
        raise MalformedNuclideId(f'Unknown element symbol "{element}" in nuclide "{token}"')
    if mass <= 0:
        raise MalformedNuclideId(f'Mass number must be positive in nuclide "{token}"')
    return build_nuclide_id(element, mass)


def parse_fuel_nuclides(tokens: Iterable[str]) -> List[str]:
    """
    Parse fuel tokens into canonical identifiers.

    Blank tokens are skipped. Order is preserved and duplicates are kept;
    callers that need a set should deduplicate.
    """
    parsed: List[str] = []
    for token in tokens:
        if not token or not token.strip():
            continue
        parsed.append(parse_nuclide_id(token))
    return parsed


def split_nuclide_id(nuclide_id: str) -> Tuple[str, int]:
    """Split a canonical identifier into ``(element, mass_number)``."""
    parts = nuclide_id.split("-")
    if len(parts) != 2 or not parts[0] or not parts[1].isdigit():
        raise MalformedNuclideId(f"Invalid nuclide ID: {nuclide_id}")
    return parts[0], int(parts[1])


def element_of(nuclide_id: str) -> str:
    """Element symbol of a canonical identifier."""
    return split_nuclide_id(nuclide_id)[0]


def mass_number_from_id(nuclide_id: str) -> int:
    """Mass number of a canonical identifier (``'Li-7'`` -> 7)."""
    return split_nuclide_id(nuclide_id)[1]
