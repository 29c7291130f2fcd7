#!/usr/bin/env python3
"""
Count an STV election from a CSV ballot file.

The CSV must be in the following format:

    candidate_name,candidate_name,candidate_name,...
    first_preference_candidate,second_preference_candidate,...
    first_preference_candidate,second_preference_candidate,...
"""

import argparse
import json
import logging
import sys
from pathlib import Path

import numpy as np

# Add src to path so we can import our modules
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from counting.report import (  # noqa: E402
    final_results,
    format_results,
    results_to_dict,
    round_summary,
)
from counting.stv import Election, NotEnoughVotesError  # noqa: E402
from counting.tiebreak import TIEBREAK_POLICIES, get_tiebreak  # noqa: E402
from data.ballot_loader import BallotFileError, load_ballots  # noqa: E402

logger = logging.getLogger(__name__)


def positive_int(value: str) -> int:
    """argparse type for the seat count."""
    try:
        seats = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"Invalid input for seats: {value!r}. Must be an integer."
        )
    if seats < 1:
        raise argparse.ArgumentTypeError("Number of seats must be at least 1.")
    return seats


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="A tool for evaluating elections using Single Transferable Vote.",
        epilog=__doc__,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("seats", type=positive_int, help="Number of seats to be filled")
    parser.add_argument(
        "-f", "--file", help="CSV file to read votes from (default: stdin)"
    )
    parser.add_argument(
        "--seed", type=int, help="Random seed for surplus selection and random tie-breaks"
    )
    parser.add_argument(
        "--tiebreak",
        choices=sorted(TIEBREAK_POLICIES),
        default="list-order",
        help="How to choose between candidates tied for fewest votes (default: list-order)",
    )
    parser.add_argument(
        "--rounds", action="store_true", help="Print round-by-round results"
    )
    parser.add_argument(
        "--json", action="store_true", help="Print results as JSON instead of text"
    )
    parser.add_argument("--export", help="Export results to CSV file")
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log every transfer"
    )
    return parser


def print_rounds(results):
    """Print the round-by-round table."""
    print("\n=== Round-by-Round Results ===")
    summary = round_summary(results)
    if summary.empty:
        return

    for round_num in sorted(summary["round"].unique()):
        round_data = summary[summary["round"] == round_num]
        print(f"\nRound {round_num}:")
        print(f"Quota: {round_data.iloc[0]['quota']}")

        for _, row in round_data.sort_values("votes", ascending=False).iterrows():
            status_symbol = {
                "elected": "+ ",
                "eliminated": "x ",
                "continuing": "  ",
                "already_elected": "* ",
                "already_eliminated": "- ",
            }.get(row["status"], "  ")
            print(f"  {status_symbol} {row['candidate']:25s}: {row['votes']:8d} votes")

        if round_data.iloc[0]["exhausted_votes"] > 0:
            print(
                f"     {'Exhausted':25s}: {round_data.iloc[0]['exhausted_votes']:8d} votes"
            )


def export_results(results, export_path: Path):
    """Write final results and the round summary next to each other as CSV."""
    final_path = export_path.with_suffix(".csv")
    final_results(results).to_csv(final_path, index=False)
    print(f"\nFinal results exported to: {final_path}")

    rounds_path = export_path.with_stem(export_path.stem + "_rounds").with_suffix(".csv")
    round_summary(results).to_csv(rounds_path, index=False)
    print(f"Round summary exported to: {rounds_path}")


def main(argv=None):
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    try:
        source = args.file if args.file else sys.stdin
        candidates, ballots = load_ballots(source)

        election = Election(
            candidates,
            ballots,
            args.seats,
            rng=np.random.default_rng(args.seed),
            tiebreak=get_tiebreak(args.tiebreak),
        )
        results = election.results()

    except (BallotFileError, NotEnoughVotesError) as e:
        logger.error(str(e))
        if e.__cause__ is not None:
            logger.error(f"Caused by: {e.__cause__}")
        sys.exit(1)

    if args.json:
        print(json.dumps(results_to_dict(results, include_rounds=args.rounds), indent=2))
    else:
        if args.rounds:
            print_rounds(results)
            print()
        print(format_results(results))

    if args.export:
        export_results(results, Path(args.export))


if __name__ == "__main__":
    main()
