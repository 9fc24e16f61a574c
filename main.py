#!/usr/bin/env python3
"""Camogie Team Optimizer - Command Line Front-end

Splits a CSV roster into two balanced teams using a MiniZinc solver:
1. Roster - Parse the CSV (name, rating, position)
2. Scenario - Pick the balance objective (model file)
3. Solver - Run MiniZinc with the chosen backend
4. Report - Print both teams and the rating difference

Usage:
    # Balance by rating with the default solver
    python main.py players.csv

    # Balance ratings and positions with cp-sat
    python main.py players.csv --scenario with_positions --solver cp-sat

    # Try every solver available in this execution context
    python main.py players.csv --solver all

    # Inspect what is available
    python main.py --list-scenarios
    python main.py --list-solvers
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from utils.config import DEFAULT_SCENARIO, LOG_LEVEL, SOLVER_TIME_LIMIT_MS

# Configure logging
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format='%(levelname)s | %(message)s'
)
logger = logging.getLogger(__name__)

from roster.loader import parse_roster_csv  # noqa: E402
from roster.teams import format_assignment  # noqa: E402
from solver.definitions import STATUS_ERROR  # noqa: E402
from solver.errors import InitializationError, InputError, UnsupportedSolverError  # noqa: E402
from solver.optimizer import SolveRequest, SolveResponse, TeamBalanceOptimizer  # noqa: E402
from solver.scenarios import get_scenario, list_scenarios  # noqa: E402


def positive_int(value: str) -> int:
    """argparse type for strictly positive integers (milliseconds)."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer value: '{value}'") from None
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be greater than 0, got {number}")
    return number


def print_scenarios() -> None:
    """Print the registered scenarios."""
    print("Scenarios:")
    for scenario in list_scenarios():
        print(f"  {scenario.id:<20} {scenario.display_name}")
        print(f"  {'':<20} {scenario.description}")


def print_solvers(optimizer: TeamBalanceOptimizer) -> None:
    """Print the solvers usable in the active execution context."""
    default = optimizer.session.capabilities.default
    print(f"Mode: {optimizer.mode}")
    print("Solvers:")
    for solver_id in optimizer.available_solvers():
        marker = ' (default)' if solver_id == default else ''
        print(f"  {solver_id}{marker}")


def print_solve_report(response: SolveResponse) -> None:
    """Print one solve outcome in human-readable form."""
    result = response.result
    print(f"\n=== {response.solver.upper()} | {response.scenario} | {response.mode} mode ===")
    print(f"Status: {result.status}")
    print(f"Solve Time: {result.elapsed_millis}ms")

    if response.teams is not None:
        print()
        print(format_assignment(response.teams))
    elif result.error_detail:
        print(f"Error: {result.error_detail}")

    if result.statistics:
        stats = result.statistics
        print("\nStatistics:")
        print(f"  Nodes: {stats.get('nodes', 'n/a')}")
        print(f"  Failures: {stats.get('failures', 'n/a')}")
        print(f"  Restarts: {stats.get('restarts', stats.get('restartCount', 'n/a'))}")


async def run_solves(
    optimizer: TeamBalanceOptimizer,
    csv_text: str,
    solvers: List[Optional[str]],
    scenario: str,
    time_limit: int,
    substitute: bool,
    as_json: bool
) -> int:
    """Solve once per requested solver, sequentially.

    Returns:
        1 if any solve ended in ERROR, else 0.
    """
    exit_code = 0
    payloads = []
    for solver_id in solvers:
        request = SolveRequest(
            csv_text=csv_text,
            solver_id=solver_id,
            scenario_id=scenario,
            time_limit_millis=time_limit,
            substitute_solver=substitute,
        )
        response = await optimizer.solve_request(request)
        if response.result.status == STATUS_ERROR:
            exit_code = 1
        if as_json:
            payloads.append(response.to_dict())
        else:
            print_solve_report(response)

    if as_json:
        print(json.dumps(payloads[0] if len(payloads) == 1 else payloads, indent=2))
    return exit_code


async def run(args: argparse.Namespace) -> int:
    if args.list_scenarios:
        print_scenarios()
        return 0

    optimizer = TeamBalanceOptimizer.from_config()
    if args.list_solvers:
        print_solvers(optimizer)
        return 0

    if not args.csv_file:
        logger.error("❌ A roster CSV file is required (see --help)")
        return 1

    if args.csv_file == '-':
        csv_text = sys.stdin.read()
    else:
        try:
            csv_text = Path(args.csv_file).read_text(encoding='utf-8')
        except OSError as e:
            raise InputError(f"Cannot read roster file {args.csv_file}: {e}") from e
    # Fail on a bad scenario or roster before starting the engine
    get_scenario(args.scenario)
    players = parse_roster_csv(csv_text)
    logger.info(f"Loaded {len(players)} players from {args.csv_file}")

    solvers: List[Optional[str]]
    if args.solver == 'all':
        solvers = list(optimizer.solvers_in_order())
    else:
        solvers = [args.solver]

    try:
        await optimizer.start()
        return await run_solves(
            optimizer,
            csv_text,
            solvers,
            scenario=args.scenario,
            time_limit=args.time_limit,
            substitute=args.substitute,
            as_json=args.json,
        )
    finally:
        await optimizer.close()


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the team optimizer CLI."""
    parser = argparse.ArgumentParser(
        description='Camogie Team Optimizer - balanced two-team splits via MiniZinc',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py players.csv
  python main.py players.csv --scenario balanced_positions --solver chuffed
  python main.py players.csv --solver all --time-limit 5000
  cat players.csv | python main.py - --json
"""
    )

    parser.add_argument('csv_file', nargs='?', default=None,
                        help="Roster CSV with name,rating[,position] columns ('-' for stdin)")

    # Solver options
    parser.add_argument('--scenario', default=DEFAULT_SCENARIO,
                        help=f'Balance scenario (default: {DEFAULT_SCENARIO})')
    parser.add_argument('--solver', '-s', default=None,
                        help="Solver id, or 'all' to try every available solver (default: context default)")
    parser.add_argument('--time-limit', type=positive_int, default=SOLVER_TIME_LIMIT_MS,
                        help=f'Solver time limit in milliseconds (default: {SOLVER_TIME_LIMIT_MS})')
    parser.add_argument('--substitute', action='store_true',
                        help='Use the default solver when the requested one is unavailable')

    # Listing options
    parser.add_argument('--list-scenarios', action='store_true',
                        help='List balance scenarios and exit')
    parser.add_argument('--list-solvers', action='store_true',
                        help='List solvers for the current execution context and exit')

    # Output options
    parser.add_argument('--json', action='store_true',
                        help='Print the solve response as JSON')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Verbose output')
    parser.add_argument('--quiet', '-q', action='store_true',
                        help='Minimal output')

    args = parser.parse_args(argv)

    # Configure logging level
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    elif args.quiet or args.json:
        logging.getLogger().setLevel(logging.WARNING)

    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        print("\n⚠️ Interrupted by user")
        return 130
    except (InputError, UnsupportedSolverError, InitializationError, OSError) as e:
        logger.error(f"❌ Error: {e}")
        return 1
    except Exception as e:
        logger.error(f"❌ Error: {e}")
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1


if __name__ == '__main__':
    sys.exit(main())
