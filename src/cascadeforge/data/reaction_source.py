"""
Reaction Source Interface
=========================

Read-only access to the dataset of known fusion (2-in/1-out) and
two-to-two (2-in/2-out) reactions.

Rows cross into the cascade core as fixed, validated records
(:class:`FusionRow`, :class:`TwoToTwoRow`) so that schema drift in the
dataset surfaces as :class:`MalformedReactionRow` at the boundary rather
than as a wrong cascade.

Two sources are provided:

- :class:`SQLiteReactionSource` reads the ``Fus_Fis`` and ``TwoToTwo``
  tables of a SQLite database.
- :class:`InMemoryReactionSource` serves a fixed list of rows, for tests
  and small hand-built networks.
"""

from __future__ import annotations

import logging
import math
import re
import sqlite3
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Collection, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from cascadeforge.core.errors import MalformedReactionRow, SourceUnavailable
from cascadeforge.physics.nuclides import build_nuclide_id

logger = logging.getLogger(__name__)

DEFAULT_ROW_LIMIT = 10000

_SYMBOL_PATTERN = re.compile(r"^[A-Z][a-z]?$")


def _symbol(record: Mapping[str, Any], key: str) -> str:
    value = record.get(key)
    symbol = value.strip() if isinstance(value, str) else None
    if not symbol or not _SYMBOL_PATTERN.match(symbol):
        raise MalformedReactionRow(f"Reaction row field {key!r} must be an element symbol, got {value!r}")
    return symbol


def _mass(record: Mapping[str, Any], key: str) -> int:
    value = record.get(key)
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise MalformedReactionRow(f"Reaction row field {key!r} must be a mass number, got {value!r}") from None
    if not number.is_integer() or number <= 0:
        raise MalformedReactionRow(f"Reaction row field {key!r} must be a positive integer, got {value!r}")
    return int(number)


def _charge(record: Mapping[str, Any], key: str) -> Optional[int]:
    value = record.get(key)
    if value is None or value == "":
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError):
        raise MalformedReactionRow(f"Reaction row field {key!r} must be an atomic number, got {value!r}") from None


def _energy(record: Mapping[str, Any]) -> float:
    value = record.get("MeV", record.get("mev"))
    try:
        energy = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise MalformedReactionRow(f"Reaction row energy must be numeric, got {value!r}") from None
    if not math.isfinite(energy):
        raise MalformedReactionRow(f"Reaction row energy must be finite, got {value!r}")
    if energy < 0:
        raise MalformedReactionRow(f"Reaction row energy must be non-negative, got {value!r}")
    return energy


def _neutrino(record: Mapping[str, Any]) -> Optional[str]:
    value = record.get("neutrino")
    return None if value is None else str(value)


@dataclass(frozen=True)
class FusionRow:
    """Fusion candidate ``(E1,A1) + (E2,A2) -> (E,A)``."""
    e1: str
    a1: int
    e2: str
    a2: int
    e: str
    a: int
    mev: float
    neutrino: Optional[str] = None
    z1: Optional[int] = None
    z2: Optional[int] = None
    z: Optional[int] = None

    @property
    def inputs(self) -> Tuple[str, str]:
        return build_nuclide_id(self.e1, self.a1), build_nuclide_id(self.e2, self.a2)

    @property
    def outputs(self) -> Tuple[str]:
        return (build_nuclide_id(self.e, self.a),)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "FusionRow":
        """Validate a raw dataset row (``E1, Z1, A1, ..., MeV, neutrino``)."""
        return cls(
            e1=_symbol(record, "E1"), a1=_mass(record, "A1"),
            e2=_symbol(record, "E2"), a2=_mass(record, "A2"),
            e=_symbol(record, "E"), a=_mass(record, "A"),
            mev=_energy(record),
            neutrino=_neutrino(record),
            z1=_charge(record, "Z1"), z2=_charge(record, "Z2"), z=_charge(record, "Z"),
        )


@dataclass(frozen=True)
class TwoToTwoRow:
    """Two-to-two candidate ``(E1,A1) + (E2,A2) -> (E3,A3) + (E4,A4)``."""
    e1: str
    a1: int
    e2: str
    a2: int
    e3: str
    a3: int
    e4: str
    a4: int
    mev: float
    neutrino: Optional[str] = None
    z1: Optional[int] = None
    z2: Optional[int] = None
    z3: Optional[int] = None
    z4: Optional[int] = None

    @property
    def inputs(self) -> Tuple[str, str]:
        return build_nuclide_id(self.e1, self.a1), build_nuclide_id(self.e2, self.a2)

    @property
    def outputs(self) -> Tuple[str, str]:
        return build_nuclide_id(self.e3, self.a3), build_nuclide_id(self.e4, self.a4)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "TwoToTwoRow":
        """Validate a raw dataset row (``E1..E4, Z1..Z4, A1..A4, MeV, neutrino``)."""
        return cls(
            e1=_symbol(record, "E1"), a1=_mass(record, "A1"),
            e2=_symbol(record, "E2"), a2=_mass(record, "A2"),
            e3=_symbol(record, "E3"), a3=_mass(record, "A3"),
            e4=_symbol(record, "E4"), a4=_mass(record, "A4"),
            mev=_energy(record),
            neutrino=_neutrino(record),
            z1=_charge(record, "Z1"), z2=_charge(record, "Z2"),
            z3=_charge(record, "Z3"), z4=_charge(record, "Z4"),
        )


class ReactionSource(ABC):
    """
    Queryable store of known reactions.

    Implementations must be read-only: the cascade engine may issue
    repeated queries per generation, possibly from a worker thread.
    """

    @abstractmethod
    def query_fusion(self, elements: Collection[str], min_mev: float) -> List[FusionRow]:
        """Fusion rows whose both input symbols are in ``elements`` and MeV >= ``min_mev``."""

    @abstractmethod
    def query_two_to_two(self, elements: Collection[str], min_mev: float) -> List[TwoToTwoRow]:
        """Two-to-two rows whose both input symbols are in ``elements`` and MeV >= ``min_mev``."""

    def close(self) -> None:
        """Release any held resources."""


class InMemoryReactionSource(ReactionSource):
    """
    Reaction source backed by in-memory rows.

    Parameters
    ----------
    fusion : iterable of FusionRow or mapping
        Fusion rows; mappings are validated with :meth:`FusionRow.from_record`
    two_to_two : iterable of TwoToTwoRow or mapping
        Two-to-two rows; mappings are validated likewise

    Examples
    --------
    >>> source = InMemoryReactionSource(
    ...     fusion=[FusionRow("H", 1, "H", 1, "D", 2, 1.44)],
    ... )
    >>> [row.outputs for row in source.query_fusion({"H"}, 1.0)]
    [('D-2',)]
    """

    def __init__(
        self,
        fusion: Iterable[Union[FusionRow, Mapping[str, Any]]] = (),
        two_to_two: Iterable[Union[TwoToTwoRow, Mapping[str, Any]]] = (),
    ):
        self._fusion: List[FusionRow] = [
            row if isinstance(row, FusionRow) else FusionRow.from_record(row) for row in fusion
        ]
        self._two_to_two: List[TwoToTwoRow] = [
            row if isinstance(row, TwoToTwoRow) else TwoToTwoRow.from_record(row) for row in two_to_two
        ]

    def __len__(self) -> int:
        return len(self._fusion) + len(self._two_to_two)

    def query_fusion(self, elements: Collection[str], min_mev: float) -> List[FusionRow]:
        allowed = set(elements)
        return [
            row for row in self._fusion
            if row.e1 in allowed and row.e2 in allowed and row.mev >= min_mev
        ]

    def query_two_to_two(self, elements: Collection[str], min_mev: float) -> List[TwoToTwoRow]:
        allowed = set(elements)
        return [
            row for row in self._two_to_two
            if row.e1 in allowed and row.e2 in allowed and row.mev >= min_mev
        ]


FUSION_TABLE = "Fus_Fis"
TWO_TO_TWO_TABLE = "TwoToTwo"

_FUSION_COLUMNS = ("E1", "Z1", "A1", "E2", "Z2", "A2", "E", "Z", "A", "MeV", "neutrino")
_TWO_TO_TWO_COLUMNS = (
    "E1", "Z1", "A1", "E2", "Z2", "A2",
    "E3", "Z3", "A3", "E4", "Z4", "A4", "MeV", "neutrino",
)


class SQLiteReactionSource(ReactionSource):
    """
    Reaction source reading a SQLite reaction database.

    The database is opened read-only. The connection may be used from a
    thread other than the one that opened it, as long as only one thread
    queries at a time (one engine run per source).

    Parameters
    ----------
    path : str or Path
        Database file
    row_limit : int
        Maximum rows returned per query
    """

    def __init__(self, path: Union[str, Path], row_limit: int = DEFAULT_ROW_LIMIT):
        self.path = Path(path)
        self.row_limit = int(row_limit)
        if not self.path.is_file():
            raise SourceUnavailable(f"Reaction database not found: {self.path}")
        try:
            self.conn = sqlite3.connect(
                f"{self.path.resolve().as_uri()}?mode=ro", uri=True, check_same_thread=False
            )
        except sqlite3.Error as exc:
            raise SourceUnavailable(f"Cannot open reaction database {self.path}: {exc}") from exc
        self.conn.row_factory = sqlite3.Row
        logger.info(f"Opened reaction database {self.path}")

    def _select(self, table: str, columns: Sequence[str], elements: Collection[str], min_mev: float):
        symbols = sorted(set(elements))
        if not symbols:
            return []
        placeholders = ",".join("?" for _ in symbols)
        sql = (
            f"SELECT {', '.join(columns)} FROM {table} "
            f"WHERE E1 IN ({placeholders}) AND E2 IN ({placeholders}) AND MeV >= ? "
            f"LIMIT ?"
        )
        try:
            cur = self.conn.execute(sql, (*symbols, *symbols, float(min_mev), self.row_limit))
            rows = cur.fetchall()
        except sqlite3.Error as exc:
            logger.error(f"Query against {table} failed: {exc}")
            raise SourceUnavailable(f"Query against {table} failed: {exc}") from exc
        if len(rows) >= self.row_limit:
            logger.warning(f"{table} query hit the row limit ({self.row_limit}); results are truncated")
        return rows

    def query_fusion(self, elements: Collection[str], min_mev: float) -> List[FusionRow]:
        rows = self._select(FUSION_TABLE, _FUSION_COLUMNS, elements, min_mev)
        return [FusionRow.from_record(dict(row)) for row in rows]

    def query_two_to_two(self, elements: Collection[str], min_mev: float) -> List[TwoToTwoRow]:
        rows = self._select(TWO_TO_TWO_TABLE, _TWO_TO_TWO_COLUMNS, elements, min_mev)
        return [TwoToTwoRow.from_record(dict(row)) for row in rows]

    def close(self) -> None:
        self.conn.close()

    def __enter__(self) -> "SQLiteReactionSource":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def open_reaction_source(handle: Union[ReactionSource, str, Path]) -> ReactionSource:
    """Resolve a dataset handle: an existing source, or a SQLite database path."""
    if isinstance(handle, ReactionSource):
        return handle
    if isinstance(handle, (str, Path)):
        return SQLiteReactionSource(handle)
    raise SourceUnavailable(f"Unsupported dataset handle: {handle!r}")


def create_reaction_database(
    path: Union[str, Path],
    fusion: Iterable[FusionRow] = (),
    two_to_two: Iterable[TwoToTwoRow] = (),
) -> Path:
    """
    Write a minimal reaction database with the ``Fus_Fis``/``TwoToTwo`` schema.

    Useful for fixtures and for exporting hand-built reaction networks.
    """
    path = Path(path)
    conn = sqlite3.connect(path)
    try:
        conn.execute(
            f"CREATE TABLE IF NOT EXISTS {FUSION_TABLE} ("
            "E1 TEXT, Z1 INTEGER, A1 INTEGER, E2 TEXT, Z2 INTEGER, A2 INTEGER, "
            "E TEXT, Z INTEGER, A INTEGER, MeV REAL, neutrino TEXT)"
        )
        conn.execute(
            f"CREATE TABLE IF NOT EXISTS {TWO_TO_TWO_TABLE} ("
            "E1 TEXT, Z1 INTEGER, A1 INTEGER, E2 TEXT, Z2 INTEGER, A2 INTEGER, "
            "E3 TEXT, Z3 INTEGER, A3 INTEGER, E4 TEXT, Z4 INTEGER, A4 INTEGER, "
            "MeV REAL, neutrino TEXT)"
        )
        conn.executemany(
            f"INSERT INTO {FUSION_TABLE} VALUES (?,?,?,?,?,?,?,?,?,?,?)",
            [
                (r.e1, r.z1, r.a1, r.e2, r.z2, r.a2, r.e, r.z, r.a, r.mev, r.neutrino)
                for r in fusion
            ],
        )
        conn.executemany(
            f"INSERT INTO {TWO_TO_TWO_TABLE} VALUES (?,?,?,?,?,?,?,?,?,?,?,?,?,?)",
            [
                (r.e1, r.z1, r.a1, r.e2, r.z2, r.a2, r.e3, r.z3, r.a3, r.e4, r.z4, r.a4, r.mev, r.neutrino)
                for r in two_to_two
            ],
        )
        conn.commit()
    finally:
        conn.close()
    return path
