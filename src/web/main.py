import logging
import os
from typing import List, Literal, Optional

import numpy as np
from fastapi import FastAPI, HTTPException, Query, Request
from pydantic import BaseModel, Field

try:
    from ..counting.report import results_to_dict
    from ..counting.stv import Election, NotEnoughVotesError
    from ..counting.tiebreak import get_tiebreak
    from ..data.ballot_loader import BallotFileError, load_ballots_from_text
except ImportError:
    from counting.report import results_to_dict
    from counting.stv import Election, NotEnoughVotesError
    from counting.tiebreak import get_tiebreak
    from data.ballot_loader import BallotFileError, load_ballots_from_text

logger = logging.getLogger(__name__)

SEED_ENV_VAR = "STV_RANDOM_SEED"

app = FastAPI(
    title="STV Count",
    description="Single Transferable Vote counting service",
)


class CountRequest(BaseModel):
    """One election to count."""

    candidates: List[str] = Field(..., min_length=1)
    ballots: List[List[str]]
    seats: int = Field(..., ge=1)
    seed: Optional[int] = None
    tiebreak: Literal["list-order", "random"] = "list-order"


@app.on_event("startup")
async def startup_event():
    """Initialize the application."""
    logger.info("Starting STV Count service")


@app.on_event("shutdown")
async def shutdown_event():
    """Clean up on shutdown."""
    logger.info("Shutting down STV Count service")


def get_default_seed() -> Optional[int]:
    """
    Seed used when a request does not carry one.

    Read from the STV_RANDOM_SEED environment variable; unset or invalid
    values mean an unseeded generator.
    """
    value = os.environ.get(SEED_ENV_VAR)
    if value is None or value == "":
        return None
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Ignoring non-integer {SEED_ENV_VAR}={value!r}")
        return None


def run_count(
    candidates: List[str],
    ballots: List[List[str]],
    seats: int,
    seed: Optional[int] = None,
    tiebreak: str = "list-order",
) -> dict:
    """Count one election and return the JSON payload, mapping failures to HTTP errors."""
    if seed is None:
        seed = get_default_seed()

    try:
        election = Election(
            candidates,
            ballots,
            seats,
            rng=np.random.default_rng(seed),
            tiebreak=get_tiebreak(tiebreak),
        )
        results = election.results()
    except NotEnoughVotesError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error running STV: {e}")
        raise HTTPException(status_code=500, detail=f"STV calculation failed: {str(e)}")

    return results_to_dict(results)


# API Routes
@app.get("/api/health")
async def health():
    """Liveness check."""
    return {"status": "ok"}


@app.post("/api/count")
async def count_election(request: CountRequest):
    """Count an election supplied as JSON."""
    return run_count(
        request.candidates,
        request.ballots,
        request.seats,
        seed=request.seed,
        tiebreak=request.tiebreak,
    )


@app.post("/api/count/csv")
async def count_election_csv(
    request: Request,
    seats: int = Query(..., ge=1),
    seed: Optional[int] = None,
    tiebreak: Literal["list-order", "random"] = "list-order",
):
    """Count an election supplied as a CSV ballot file in the request body."""
    try:
        body = (await request.body()).decode("utf-8")
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="Ballot CSV must be UTF-8 text")

    try:
        candidates, ballots = load_ballots_from_text(body)
    except BallotFileError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return run_count(candidates, ballots, seats, seed=seed, tiebreak=tiebreak)
