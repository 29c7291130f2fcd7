"""
Rendering of election results for consoles, network callers and exports.
"""

from dataclasses import asdict
from typing import Any, Dict, Optional

import pandas as pd

from .stv import ElectionResults, STVRound


def format_results(results: ElectionResults) -> str:
    """
    Plain-text results, one line per decided candidate.

    Args:
        results: Output of ``Election.results()``

    Returns:
        Report with ``Elected:`` and ``Eliminated:`` sections
    """
    lines = ["Elected:"]
    for candidate, votes in results.elected.items():
        lines.append(f"\t{candidate} with {votes} votes.")
    lines.append("")
    lines.append("Eliminated:")
    for candidate, votes in results.eliminated.items():
        lines.append(f"\t{candidate} with {votes} votes.")
    return "\n".join(lines)


def results_to_dict(results: ElectionResults, include_rounds: bool = True) -> Dict[str, Any]:
    """JSON-serializable payload for HTTP responses and ``--json`` output."""
    payload: Dict[str, Any] = {
        "elected": dict(results.elected),
        "eliminated": dict(results.eliminated),
        "quota": results.quota,
        "spoiled_ballots": results.spoiled_ballots,
    }
    if include_rounds:
        payload["rounds"] = [asdict(r) for r in results.rounds]
    return payload


def _get_candidate_status(
    candidate: str, round_obj: STVRound, results: ElectionResults
) -> str:
    """Get the status of a candidate in a given round."""
    if candidate in round_obj.winners_this_round:
        return "elected"
    elif candidate in round_obj.eliminated_this_round:
        return "eliminated"
    elif candidate in round_obj.continuing_candidates:
        return "continuing"
    elif candidate in results.elected:
        return "already_elected"
    else:
        return "already_eliminated"


def round_summary(results: ElectionResults) -> pd.DataFrame:
    """
    Summary of every round as a DataFrame.

    Candidates decided in an earlier round appear with the ballots they
    held when decided, so each round lists every candidate.

    Returns:
        DataFrame with columns round, candidate, votes, quota, status and
        exhausted_votes
    """
    if not results.rounds:
        return pd.DataFrame()

    decided_votes = {**results.elected, **results.eliminated}
    summary_data = []
    for round_obj in results.rounds:
        candidates = list(round_obj.vote_totals)
        earlier = [c for c in decided_votes if c not in round_obj.vote_totals]
        for candidate in candidates + earlier:
            summary_data.append(
                {
                    "round": round_obj.round_number,
                    "candidate": candidate,
                    "votes": round_obj.vote_totals.get(
                        candidate, decided_votes.get(candidate, 0)
                    ),
                    "quota": round_obj.quota,
                    "status": _get_candidate_status(candidate, round_obj, results),
                    "exhausted_votes": round_obj.exhausted_votes,
                }
            )

    return pd.DataFrame(summary_data)


def _decision_round(candidate: str, results: ElectionResults) -> Optional[int]:
    for r in results.rounds:
        if candidate in r.winners_this_round or candidate in r.eliminated_this_round:
            return r.round_number
    return None


def final_results(results: ElectionResults) -> pd.DataFrame:
    """
    Final results for every decided candidate.

    Returns:
        DataFrame with candidate, votes, status and decision round, elected
        candidates first
    """
    rows = []
    for status, decided in (
        ("elected", results.elected),
        ("eliminated", results.eliminated),
    ):
        for candidate, votes in decided.items():
            rows.append(
                {
                    "candidate": candidate,
                    "votes": votes,
                    "status": status,
                    "round": _decision_round(candidate, results),
                }
            )

    if not rows:
        return pd.DataFrame(columns=["candidate", "votes", "status", "round"])
    return pd.DataFrame(rows)
