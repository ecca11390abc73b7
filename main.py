#!/usr/bin/env python3
# main.py
"""
Command-Line Interface for the QuickRide ride lifecycle simulation.

Runs a headless session: books a handful of demo rides, chats with one of
the drivers, lets the simulated clock run and prints the session KPIs.
Handy for a quick look at the engine without the dashboard.

Usage:
    python main.py                        # Run with defaults
    python main.py --rides 5 --duration 600
    python main.py --seed 42 --verbose    # Reproducible run with logs
    python main.py --cancel 1             # Cancel one ride half way

Exit Codes:
    0: Success
    1: Invalid input
    2: Session error
"""

from __future__ import annotations

import argparse
import logging
import os
import random
import sys
from typing import Any, Dict, List, Optional

# Ensure the quickride package is importable when run from a checkout
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from quickride import config
from quickride.engine import RideEngine
from quickride.intake import InvalidRideParameters, RideParameters
from quickride.models import Collection


DEMO_PASSENGERS: List[Dict[str, str]] = [
    {"passenger_name": "Ana Paula Costa", "passenger_cpf": "529.982.247-25",
     "passenger_whatsapp": "(93) 99123-4567", "destination": "Aeroporto de Santarém", "category": "CARRO"},
    {"passenger_name": "João Pereira", "passenger_cpf": "111.444.777-35",
     "passenger_whatsapp": "(93) 98811-2233", "destination": "Orla de Alter do Chão", "category": "MOTO"},
    {"passenger_name": "Beatriz Lima", "passenger_cpf": "529.982.247-25",
     "passenger_whatsapp": "(93) 99900-1122", "destination": "Shopping Rio Tapajós", "category": "SUV"},
    {"passenger_name": "Rafael Gomes", "passenger_cpf": "111.444.777-35",
     "passenger_whatsapp": "(93) 98444-5566", "destination": "Mercadão 2000", "category": "CARRO"},
]


def print_header() -> None:
    """Print the CLI header."""
    print("\n" + "=" * 60)
    print("  QUICKRIDE EXPRESS - Ride Lifecycle Simulation")
    print("  Headless session")
    print("=" * 60 + "\n")


def print_results_table(results: Dict[str, Any]) -> None:
    """
    Print the session KPIs.

    Args:
        results: Output of RideEngine.get_results()
    """
    metrics = [
        "Active Rides",
        "Archived Rides",
        "Finished Rides",
        "Cancelled Rides",
        "Messages",
        "Ticks",
        "Avg Remaining Distance",
    ]

    print("\n" + "=" * 60)
    print("  SESSION RESULTS")
    print("=" * 60 + "\n")
    print(f"| {'Metric':<25} | {'Value':^15} |")
    print("|" + "-" * 27 + "|" + "-" * 17 + "|")
    for metric in metrics:
        print(f"| {metric:<25} | {str(results.get(metric, 'N/A')):^15} |")
    print("\n" + "=" * 60 + "\n")


def print_rides(engine: RideEngine) -> None:
    """Print both collections, newest first."""
    for title, collection in (("ACTIVE", Collection.ACTIVE), ("HISTORY", Collection.ARCHIVE)):
        rows = engine.snapshot_rows(collection)
        print(f"  {title} ({len(rows)})")
        for row in rows:
            print(f"    OS {row['OS']}  {row['Passageiro']:<20} {row['Categoria']:<6} "
                  f"{row['Status']:<21} {row['Distância']:>8}  msgs={row['Mensagens']}")
    print()


def book_demo_rides(engine: RideEngine, count: int) -> Optional[List[str]]:
    """
    Book ``count`` demo rides, cycling through DEMO_PASSENGERS.

    Returns:
        Ride ids, or None if a demo record failed validation
    """
    ride_ids: List[str] = []
    for i in range(count):
        fields = DEMO_PASSENGERS[i % len(DEMO_PASSENGERS)]
        try:
            ride_ids.append(engine.request_ride(RideParameters(**fields)))
        except InvalidRideParameters as e:
            print(f"ERROR: {e}")
            return None
    print(f"Booked {len(ride_ids)} ride(s)")
    return ride_ids


def main() -> int:
    """
    Main entry point for the CLI.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = argparse.ArgumentParser(
        description="QuickRide ride lifecycle simulation CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py                          # 3 rides, 10 simulated minutes
  python main.py --rides 8 --duration 1800
  python main.py --finish-probability 0.5 # Rides finish quickly at the curb
        """
    )

    parser.add_argument("--rides", "-r", type=int, default=3,
                        help="Number of demo rides to book (default: 3)")
    parser.add_argument("--duration", "-d", type=float, default=600.0,
                        help="Simulated seconds to run (default: 600)")
    parser.add_argument("--seed", type=int, default=None,
                        help="Random seed for a reproducible session")
    parser.add_argument("--cancel", type=int, default=0,
                        help="Cancel this many rides half way through")
    parser.add_argument("--finish-probability", type=float, default=None,
                        help=f"Per-tick finish chance at the curb (default: {config.FINISH_PROBABILITY})")
    parser.add_argument("--no-history", action="store_true",
                        help="Start with an empty archive")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Show per-tick progress and engine logs")

    args = parser.parse_args()

    if args.rides < 0 or args.duration < 0 or args.cancel < 0:
        print("ERROR: --rides, --duration and --cancel must be non-negative")
        return 1
    if args.finish_probability is not None:
        if not 0.0 <= args.finish_probability <= 1.0:
            print("ERROR: --finish-probability must be between 0 and 1")
            return 1
        config.FINISH_PROBABILITY = args.finish_probability

    if args.verbose:
        logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")

    print_header()

    try:
        engine = RideEngine(rng=random.Random(args.seed), seed_history=not args.no_history)

        ride_ids = book_demo_rides(engine, args.rides)
        if ride_ids is None:
            return 1

        if ride_ids:
            engine.send_message(ride_ids[0], "Onde você está?")

        half = args.duration / 2
        engine.run(half, verbose=args.verbose)

        for ride_id in ride_ids[:args.cancel]:
            engine.cancel(ride_id)

        results = engine.run(args.duration - half, verbose=args.verbose)
    except Exception as e:
        print(f"ERROR: Session failed: {e}")
        import traceback
        traceback.print_exc()
        return 2

    print_rides(engine)
    print_results_table(results)
    return 0


if __name__ == "__main__":
    sys.exit(main())
