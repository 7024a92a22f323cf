"""Command-line interface for CascadeForge using argparse."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from cascadeforge.cascade._types import CascadeResult
from cascadeforge.cascade.cycles import detect_cycles
from cascadeforge.cascade.pathways import aggregate_pathways, rank_pathways
from cascadeforge.core.errors import CascadeError, InvalidInput
from cascadeforge.core.parameters import CascadeParameters
from cascadeforge.io.results import (
    read_cascade_results,
    save_pathways_csv,
    write_cascade_results,
    write_pathways,
)
from cascadeforge.physics.fuel import FuelNuclide
from cascadeforge.workflows.worker import CascadeWorker


def _parse_fuel(text: str) -> List[object]:
    """``'H-1, Li-7'`` or, with abundances, ``'H-1=0.9, Li-7=0.1'``."""
    entries: List[object] = []
    for token in text.replace(",", " ").split():
        if "=" in token:
            nuclide, value = token.split("=", 1)
            try:
                proportion = float(value)
            except ValueError:
                raise InvalidInput(f"Fuel proportion for {nuclide!r} must be numeric, got {value!r}") from None
            entries.append(FuelNuclide(nuclide, proportion))
        else:
            entries.append(token)
    return entries


def _build_parameters(args: argparse.Namespace) -> CascadeParameters:
    params = CascadeParameters.from_json(args.params_file) if args.params_file else CascadeParameters()
    if args.fuel is not None:
        params.fuel_nuclides = _parse_fuel(args.fuel)
    if args.max_loops is not None:
        params.max_loops = args.max_loops
    if args.max_nuclides is not None:
        params.max_nuclides = args.max_nuclides
    if args.min_fusion_mev is not None:
        params.min_fusion_mev = args.min_fusion_mev
    if args.min_two_to_two_mev is not None:
        params.min_two_to_two_mev = args.min_two_to_two_mev
    if args.weighted:
        params.use_weighted_mode = True
    return params


def cmd_run(args: argparse.Namespace) -> None:
    try:
        params = _build_parameters(args)
    except CascadeError as exc:
        print(f"Cascade failed: {exc.describe()}", file=sys.stderr)
        raise SystemExit(1) from exc
    worker = CascadeWorker()
    worker.post({"type": "run", "params": params.to_dict(), "datasetHandle": str(args.database)})

    terminal = None
    for response in worker.iter_responses():
        if response["type"] == "progress":
            print(
                f"Loop {response['loop'] + 1}/{response['totalLoops']}: "
                f"{response['newReactionsCount']} new reactions"
            )
        else:
            terminal = response
    worker.join()

    if terminal["type"] == "error":
        print(f"Cascade failed: {terminal['error']}", file=sys.stderr)
        raise SystemExit(1)

    results = terminal["results"]
    print(
        f"Finished ({results['terminationReason']}): {len(results['reactions'])} reactions, "
        f"{results['loopsExecuted']} loops, {results['totalEnergy']:.3f} MeV"
    )
    if args.output:
        write_cascade_results(args.output, CascadeResult.from_dict(results), params.to_dict())
        print(f"Saved cascade results to {args.output}")


def cmd_pathways(args: argparse.Namespace) -> None:
    result = read_cascade_results(args.results_file)
    pathways = rank_pathways(
        aggregate_pathways(result.reactions),
        top_n=args.top_n,
        min_frequency=args.min_frequency,
        feedback_only=args.feedback_only,
    )
    for rank, pathway in enumerate(pathways, start=1):
        flag = "  [feedback]" if pathway.is_feedback else ""
        print(
            f"{rank:>4}. {pathway.label:<36} freq={pathway.frequency:<10.4g} "
            f"avg={pathway.avg_energy:.3f} MeV loops={list(pathway.loops)}{flag}"
        )
    if args.output:
        if Path(args.output).suffix.lower() == ".csv":
            save_pathways_csv(pathways, args.output)
        else:
            write_pathways(args.output, pathways, weighted=result.is_weighted)
        print(f"Saved {len(pathways)} pathways to {args.output}")


def cmd_cycles(args: argparse.Namespace) -> None:
    result = read_cascade_results(args.results_file)
    cycles = detect_cycles(aggregate_pathways(result.reactions))
    print(f"Cyclic components: {cycles.cycle_count}")
    print(f"Nuclides on cycles: {len(cycles.cycle_nuclides)}")
    for component in cycles.components:
        print(f"  {' <-> '.join(component)}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Nuclear reaction cascade simulator and pathway analyzer")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser("run", help="Run a cascade simulation against a reaction database")
    run.add_argument("--database", type=Path, required=True)
    run.add_argument("--fuel", help="Fuel nuclides, e.g. 'H-1,Li-7' or 'H-1=0.9,Li-7=0.1'")
    run.add_argument("--params-file", type=Path, help="JSON parameters; command-line flags override it")
    run.add_argument("--max-loops", type=int)
    run.add_argument("--max-nuclides", type=int)
    run.add_argument("--min-fusion-mev", type=float)
    run.add_argument("--min-two-to-two-mev", type=float)
    run.add_argument("--weighted", action="store_true", help="Weight reactions by fuel proportions")
    run.add_argument("--output", type=Path, default=Path("cascade_results.json"))
    run.add_argument("--verbose", action="store_true")
    run.set_defaults(func=cmd_run)

    pathways = subparsers.add_parser("pathways", help="Aggregate and rank pathways from saved results")
    pathways.add_argument("--results-file", type=Path, required=True)
    pathways.add_argument("--top-n", type=int)
    pathways.add_argument("--min-frequency", type=float)
    pathways.add_argument("--feedback-only", action="store_true")
    pathways.add_argument("--output", type=Path, help="Pathway artifact (.json/.yaml) or table (.csv)")
    pathways.add_argument("--verbose", action="store_true")
    pathways.set_defaults(func=cmd_pathways)

    cycles = subparsers.add_parser("cycles", help="Detect reaction cycles in saved results")
    cycles.add_argument("--results-file", type=Path, required=True)
    cycles.add_argument("--verbose", action="store_true")
    cycles.set_defaults(func=cmd_cycles)
    return parser


def main(argv: Optional[list[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    args.func(args)


if __name__ == "__main__":
    main()
