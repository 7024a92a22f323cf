"""
Tests for nuclide identifier parsing and element tables.
"""

import pytest

from cascadeforge.core.errors import CascadeError, MalformedNuclideId
from cascadeforge.data.elements import element_from_z, sort_elements, z_from_element
from cascadeforge.physics.nuclides import (
    Nuclide,
    element_of,
    mass_number_from_id,
    parse_fuel_nuclides,
    parse_nuclide_id,
    split_nuclide_id,
)


class TestParseNuclideId:
    """Tests for the fuel token grammar."""

    @pytest.mark.parametrize("token, expected", [
        ("H-1", "H-1"),
        ("Li7", "Li-7"),
        ("Li 7", "Li-7"),
        ("  B-11 ", "B-11"),
        ("He-004", "He-4"),
        ("D", "D-2"),
        ("T", "T-3"),
        ("D-2", "D-2"),
    ])
    def test_valid_tokens(self, token, expected):
        """Accepted spellings normalize to Element-MassNumber."""
        assert parse_nuclide_id(token) == expected

    @pytest.mark.parametrize("token", ["", "li-7", "Li-", "7Li", "Li--7", "Li-7a", "Xx99", "Li-0"])
    def test_malformed_tokens(self, token):
        """Anything outside the grammar is rejected."""
        with pytest.raises(MalformedNuclideId):
            parse_nuclide_id(token)

    def test_error_is_cascade_error(self):
        """Parse failures belong to the cascade error taxonomy."""
        with pytest.raises(CascadeError) as excinfo:
            parse_nuclide_id("Li-")
        assert excinfo.value.describe().startswith("MalformedNuclideId: ")

    def test_normalization_is_idempotent(self):
        """A canonical id parses to itself."""
        for token in ["Li7", "D", "He 3"]:
            once = parse_nuclide_id(token)
            assert parse_nuclide_id(once) == once


class TestParseFuelNuclides:
    """Tests for fuel list parsing."""

    def test_blank_tokens_skipped(self):
        assert parse_fuel_nuclides(["H-1", " ", "", "Li7"]) == ["H-1", "Li-7"]

    def test_duplicates_kept(self):
        assert parse_fuel_nuclides(["H-1", "H1"]) == ["H-1", "H-1"]

    def test_first_bad_token_raises(self):
        with pytest.raises(MalformedNuclideId):
            parse_fuel_nuclides(["H-1", "bogus"])


class TestNuclide:
    """Tests for the Nuclide value type."""

    def test_parse_and_format(self):
        nuclide = Nuclide.parse("Li7")
        assert nuclide.element == "Li"
        assert nuclide.mass_number == 7
        assert str(nuclide) == "Li-7"
        assert nuclide.atomic_number == 3

    def test_deuterium_atomic_number(self):
        assert Nuclide.parse("D").atomic_number == 1

    def test_ordering(self):
        assert Nuclide("H", 1) < Nuclide("H", 2)

    def test_split_helpers(self):
        assert split_nuclide_id("He-4") == ("He", 4)
        assert element_of("Li-7") == "Li"
        assert mass_number_from_id("B-11") == 11

    def test_split_rejects_non_canonical(self):
        with pytest.raises(MalformedNuclideId):
            split_nuclide_id("Li7")


class TestElements:
    """Tests for the element table."""

    def test_lookup(self):
        assert element_from_z(26) == "Fe"
        assert z_from_element("Fe") == 26
        assert z_from_element("T") == 1
        assert z_from_element("Xx") == 0

    def test_sort_by_atomic_number(self):
        assert sort_elements(["Li", "H", "Xx", "He", "B"]) == ["H", "He", "Li", "B", "Xx"]
