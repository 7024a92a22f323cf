"""
Cascade Expansion Engine

Simulates multi-generation reaction cascades starting from a fuel mixture.

Each generation:
    1. stop if the generation cap is reached (``max_loops``)
    2. stop if the active pool exceeds ``max_nuclides``
    3. query fusion and two-to-two candidates among the pool's elements
    4. admit a fusion reaction iff both inputs are active and its output
       is not; admit a two-to-two reaction iff both inputs are active and
       at least one output is not
    5. record admitted reactions, count their products, report progress
    6. stop if nothing produced this generation is new relative to all
       previous generations (``no_new_products``), otherwise feed the
       products back into the active pool

The active pool only ever grows, and every admitted reaction has at least
one output outside it, so a run always terminates on a finite dataset.

Cancellation is cooperative: it is sampled at generation boundaries and
raises :class:`Cancelled` instead of returning a partial result.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Dict, List, Mapping, Optional, Set

from cascadeforge.cascade._types import (
    CascadeProgress,
    CascadeResult,
    Reaction,
    ReactionType,
    TerminationReason,
)
from cascadeforge.core.errors import Cancelled, CascadeError, InvalidFuel, SourceUnavailable
from cascadeforge.core.parameters import CascadeParameters
from cascadeforge.data.reaction_source import ReactionSource
from cascadeforge.physics.fuel import (
    FuelNuclide,
    calculate_reaction_weight,
    create_equal_proportion_fuel,
    normalize_fuel_proportions,
    proportion_map,
)
from cascadeforge.physics.nuclides import element_of, parse_fuel_nuclides, parse_nuclide_id

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[CascadeProgress], None]


def resolve_fuel(parameters: CascadeParameters) -> List[FuelNuclide]:
    """
    Parse and normalize the fuel of a run.

    Plain tokens are parsed and weighted equally; records are normalized
    and their ids parsed. Duplicate ids are merged.

    Raises
    ------
    MalformedNuclideId
        If a fuel token is malformed
    InvalidFuel
        If no fuel nuclide remains
    """
    entries = parameters.fuel_nuclides
    if all(isinstance(entry, str) for entry in entries):
        ids = list(dict.fromkeys(parse_fuel_nuclides(entries)))  # type: ignore[arg-type]
        fuel = create_equal_proportion_fuel(ids)
    else:
        records = []
        for entry in entries:
            if isinstance(entry, FuelNuclide):
                records.append(entry)
            elif isinstance(entry, Mapping):
                records.append(FuelNuclide.from_dict(entry))
            elif str(entry).strip():
                records.append(FuelNuclide(str(entry), 1.0))
        parsed = [
            FuelNuclide(parse_nuclide_id(r.nuclide_id), r.proportion, r.display_value, r.format)
            for r in records
        ]
        merged = proportion_map(parsed)
        first = {r.nuclide_id: r for r in reversed(parsed)}
        fuel = normalize_fuel_proportions([
            FuelNuclide(nid, merged[nid], first[nid].display_value, first[nid].format)
            for nid in merged
        ])

    if not fuel:
        raise InvalidFuel("No valid fuel nuclides provided")
    return fuel


class CascadeEngine:
    """
    Bounded fixed-point expansion of a reaction network.

    One instance owns the state of one run at a time; nothing is shared
    between instances, so independent engines may run concurrently.

    Parameters
    ----------
    source : ReactionSource
        Read-only reaction dataset
    parameters : CascadeParameters
        Fuel, bounds and energy thresholds
    progress_callback : callable, optional
        Called with a :class:`CascadeProgress` after every generation

    Examples
    --------
    >>> engine = CascadeEngine(source, CascadeParameters(fuel_nuclides=["H-1", "Li-7"]))
    >>> result = engine.run()
    >>> result.termination_reason
    <TerminationReason.NO_NEW_PRODUCTS: 'no_new_products'>
    """

    def __init__(
        self,
        source: ReactionSource,
        parameters: CascadeParameters,
        progress_callback: Optional[ProgressCallback] = None,
    ):
        self.source = source
        self.parameters = parameters
        self.progress_callback = progress_callback
        self._cancel = threading.Event()
        self._running = threading.Lock()
        self._reset()

    def _reset(self) -> None:
        self.active_pool: Set[str] = set()
        self.processed_products: Set[str] = set()
        self.reaction_log: List[Reaction] = []
        self.product_distribution: Dict[str, float] = {}
        self.proportions: Dict[str, float] = {}
        self.generation = 0

    @property
    def is_running(self) -> bool:
        return self._running.locked()

    @property
    def cancel_requested(self) -> bool:
        return self._cancel.is_set()

    def cancel(self) -> None:
        """Request cancellation; honored at the next generation boundary."""
        self._cancel.set()

    def run(self) -> CascadeResult:
        """
        Execute the cascade.

        Returns
        -------
        CascadeResult
            Reaction log, product distribution and termination reason

        Raises
        ------
        MalformedNuclideId, InvalidFuel, InvalidParameters
            Before any query is issued
        SourceUnavailable
            If the reaction source fails
        Cancelled
            If cancellation was requested before the run completed
        RuntimeError
            If this instance is already running
        """
        if not self._running.acquire(blocking=False):
            raise RuntimeError("A cascade run is already in progress on this engine")
        try:
            return self._run()
        finally:
            self._cancel.clear()
            self._running.release()

    def _run(self) -> CascadeResult:
        start = time.perf_counter()
        params = self.parameters
        params.validate()
        fuel = resolve_fuel(params)
        weighted = params.use_weighted_mode

        self._reset()
        self.active_pool.update(f.nuclide_id for f in fuel)
        self.proportions = proportion_map(fuel)

        logger.info(
            f"Starting cascade: fuel={sorted(self.active_pool)}, max_loops={params.max_loops}, "
            f"max_nuclides={params.max_nuclides}, weighted={weighted}"
        )

        reason = TerminationReason.NO_NEW_PRODUCTS
        while True:
            if self._cancel.is_set():
                break
            if self.generation >= params.max_loops:
                reason = TerminationReason.MAX_LOOPS
                break
            if len(self.active_pool) > params.max_nuclides:
                reason = TerminationReason.MAX_NUCLIDES
                break

            new_products, admitted = self._expand_generation(weighted)

            progress = CascadeProgress(
                generation=self.generation,
                total_generations=params.max_loops,
                new_reactions_count=admitted,
                active_pool_size=len(self.active_pool),
            )
            logger.debug(
                f"Generation {self.generation}: {admitted} reactions admitted, "
                f"pool size {len(self.active_pool)}"
            )
            if self.progress_callback is not None:
                self.progress_callback(progress)

            if new_products <= self.processed_products:
                reason = TerminationReason.NO_NEW_PRODUCTS
                break

            self.active_pool |= new_products
            self.processed_products |= new_products
            self.generation += 1

        if self._cancel.is_set():
            logger.info(f"Cascade cancelled at generation {self.generation}")
            raise Cancelled("Cascade simulation cancelled")

        total_energy = float(sum(r.energy_mev for r in self.reaction_log))
        distribution = sorted(self.product_distribution.items(), key=lambda item: (-item[1], item[0]))
        elapsed = time.perf_counter() - start

        logger.info(
            f"Cascade finished: {reason.value} after {self.generation} generation(s), "
            f"{len(self.reaction_log)} reactions, {total_energy:.3f} MeV"
        )
        return CascadeResult(
            reactions=list(self.reaction_log),
            product_distribution=distribution,
            generations=self.generation,
            total_energy_mev=total_energy,
            execution_time_s=elapsed,
            termination_reason=reason,
            fuel_composition=fuel,
            is_weighted=weighted,
        )

    def _query(self, query, elements: Set[str], min_mev: float) -> list:
        try:
            return query(elements, min_mev)
        except CascadeError:
            raise
        except Exception as exc:
            logger.error(f"Reaction source query failed: {exc}")
            raise SourceUnavailable(f"Reaction source query failed: {exc}") from exc

    def _expand_generation(self, weighted: bool):
        """Admit this generation's reactions; return (new products, admitted count)."""
        params = self.parameters
        pool = self.active_pool
        elements = {element_of(n) for n in pool}

        fusion_rows = self._query(self.source.query_fusion, elements, params.min_fusion_mev)
        two_to_two_rows = self._query(self.source.query_two_to_two, elements, params.min_two_to_two_mev)

        new_products: Set[str] = set()
        admitted = 0

        candidates = [(ReactionType.FUSION, row) for row in fusion_rows]
        candidates += [(ReactionType.TWO_TO_TWO, row) for row in two_to_two_rows]

        for reaction_type, row in candidates:
            inputs, outputs = row.inputs, row.outputs
            if not (inputs[0] in pool and inputs[1] in pool):
                continue
            if reaction_type is ReactionType.FUSION:
                if outputs[0] in pool:
                    continue
            elif all(out in pool for out in outputs):
                continue

            weight = calculate_reaction_weight(row, self.proportions) if weighted else None
            self.reaction_log.append(Reaction(
                reaction_type=reaction_type,
                inputs=inputs,
                outputs=outputs,
                energy_mev=row.mev,
                generation=self.generation,
                neutrino=row.neutrino,
                weight=weight,
            ))
            increment = weight if weighted else 1
            for out in outputs:
                self.product_distribution[out] = self.product_distribution.get(out, 0) + increment
                new_products.add(out)
                if weighted:
                    self.proportions[out] = self.proportions.get(out, 0.0) + weight
            admitted += 1

        return new_products, admitted


def run_cascade(
    source: ReactionSource,
    parameters: CascadeParameters,
    progress_callback: Optional[ProgressCallback] = None,
) -> CascadeResult:
    """Run one cascade with a fresh engine."""
    return CascadeEngine(source, parameters, progress_callback).run()
