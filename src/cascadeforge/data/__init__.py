"""CascadeForge data module for element tables and reaction datasets.

Reaction sources live in :mod:`cascadeforge.data.reaction_source`.
"""

from cascadeforge.data.elements import (
    ELEMENT_SYMBOLS,
    ATOMIC_NUMBERS,
    element_from_z,
    z_from_element,
    is_known_element,
    sort_elements,
)

__all__ = [
    "ELEMENT_SYMBOLS",
    "ATOMIC_NUMBERS",
    "element_from_z",
    "z_from_element",
    "is_known_element",
    "sort_elements",
]
