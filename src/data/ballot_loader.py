import csv
import io
import logging
from pathlib import Path
from typing import List, TextIO, Tuple, Union

import pandas as pd

logger = logging.getLogger(__name__)

BallotSource = Union[str, Path, TextIO]


class BallotFileError(ValueError):
    """Raised when a ballot source cannot be read or parsed."""


def _source_name(source: BallotSource) -> str:
    if isinstance(source, (str, Path)):
        return str(source)
    return getattr(source, "name", "<stream>")


def _read_text(source: BallotSource, name: str) -> str:
    try:
        if isinstance(source, (str, Path)):
            with open(source, newline="", encoding="utf-8") as f:
                return f.read()
        return source.read()
    except OSError as e:
        raise BallotFileError(f"Error opening file {name!r}") from e
    except UnicodeDecodeError as e:
        raise BallotFileError(f"Ballots in {name!r} are not UTF-8 text") from e


def _widest_row(text: str, name: str) -> int:
    # pandas truncates rows wider than the first one, so size the frame first
    try:
        reader = csv.reader(io.StringIO(text), skipinitialspace=True)
        return max((len(row) for row in reader), default=0)
    except csv.Error as e:
        raise BallotFileError(f"Could not parse ballots in {name!r}: {e}") from e


def load_ballots(source: BallotSource) -> Tuple[List[str], List[List[str]]]:
    """
    Load candidates and ranked ballots from CSV data.

    The header row lists the candidate names. Every following row is one
    ballot, most preferred candidate first; rows may be shorter or longer
    than the header, and every cell of a long row is kept so that a ballot
    naming an unknown candidate is spoiled by the election. Blank cells
    inside a ballot are ignored and rows with no preference at all are
    skipped. A blank candidate name in the header is an error.

    Args:
        source: Path to a CSV file, or an open text stream such as stdin

    Returns:
        Tuple of (candidates, ballots)

    Raises:
        BallotFileError: if the source is missing, empty, not UTF-8 text,
            not valid CSV, or has a blank candidate name
    """
    name = _source_name(source)
    logger.info(f"Loading ballots from: {name}")

    text = _read_text(source, name)
    read_options = dict(
        header=None, dtype=str, keep_default_na=False, skipinitialspace=True
    )

    try:
        header = pd.read_csv(io.StringIO(text), nrows=1, **read_options)
        width = max(header.shape[1], _widest_row(text, name))
        df = pd.read_csv(io.StringIO(text), names=list(range(width)), **read_options)
    except pd.errors.EmptyDataError as e:
        raise BallotFileError(f"No candidate header found in {name!r}") from e
    except pd.errors.ParserError as e:
        raise BallotFileError(f"Could not parse ballots in {name!r}: {e}") from e

    candidates = [str(cell).strip() for cell in header.iloc[0]]
    if not all(candidates):
        raise BallotFileError(
            f"Blank candidate name in header of {name!r}: {candidates}"
        )

    ballots = []
    skipped = 0
    for row in df.iloc[1:].fillna("").itertuples(index=False, name=None):
        ballot = [cell.strip() for cell in row if cell.strip()]
        if ballot:
            ballots.append(ballot)
        else:
            skipped += 1

    if skipped:
        logger.debug(f"Skipped {skipped} rows with no preferences")
    logger.info(f"Loaded {len(ballots)} ballots for {len(candidates)} candidates")

    return candidates, ballots


def load_ballots_from_text(text: str) -> Tuple[List[str], List[List[str]]]:
    """Load candidates and ballots from CSV text already held in memory."""
    return load_ballots(io.StringIO(text))
