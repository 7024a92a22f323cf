"""Shared fixtures: a small hand-built reaction network.

Starting from H-1 the network unfolds over four generations:

    gen 0  H-1 + H-1 -> D-2
    gen 1  H-1 + D-2 -> He-3,  D-2 + D-2 -> T-3 + H-1
    gen 2  D-2 + He-3 -> Li-5
    gen 3  He-3 + Li-5 -> B-8
"""

import pytest

from cascadeforge.data.reaction_source import (
    FusionRow,
    InMemoryReactionSource,
    TwoToTwoRow,
    create_reaction_database,
)


CHAIN_FUSION = [
    FusionRow(e1="H", a1=1, e2="H", a2=1, e="D", a=2, mev=1.44, z1=1, z2=1, z=1),
    FusionRow(e1="H", a1=1, e2="D", a2=2, e="He", a=3, mev=5.49, z1=1, z2=1, z=2),
    FusionRow(e1="D", a1=2, e2="He", a2=3, e="Li", a=5, mev=16.0, z1=1, z2=2, z=3),
    FusionRow(e1="He", a1=3, e2="Li", a2=5, e="B", a=8, mev=2.0, z1=2, z2=3, z=5),
]

CHAIN_TWO_TO_TWO = [
    TwoToTwoRow(
        e1="D", a1=2, e2="D", a2=2, e3="T", a3=3, e4="H", a4=1,
        mev=4.03, z1=1, z2=1, z3=1, z4=1,
    ),
]


@pytest.fixture
def chain_source():
    return InMemoryReactionSource(CHAIN_FUSION, CHAIN_TWO_TO_TWO)


@pytest.fixture
def chain_database(tmp_path):
    return create_reaction_database(tmp_path / "reactions.db", CHAIN_FUSION, CHAIN_TWO_TO_TWO)
